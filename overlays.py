"""
Named visual primitives belonging to a satellite, and the set that
attaches and detaches them from the host's entity collection.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from properties import CallbackProperty
from viewport import EntityCollection


class OverlayKind(Enum):
    SATELLITE = "Satellite"
    ORBIT_TRACK = "OrbitTrack"
    GROUND_TRACK = "GroundTrack"
    CONE = "Cone"


@dataclass(eq=False)
class Overlay:
    """
    One visual primitive. The host reads the time varying properties
    every frame and draws according to kind and style.

    position: (longitude, latitude, height) of the primitive
    orientation: (w, x, y, z) quaternion in the earth fixed frame
    path: flat (longitude, latitude, height) track for polylines
    """

    kind: OverlayKind
    position: CallbackProperty | None = None
    orientation: CallbackProperty | None = None
    path: CallbackProperty | None = None
    style: dict[str, Any] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return self.kind.value


class OverlaySet:
    """
    Overlays of one satellite, keyed by kind.

    Showing adds an overlay to the host entity collection, hiding removes
    it. Both are idempotent and unknown names are ignored.
    """

    def __init__(self, entities: EntityCollection) -> None:
        self.entities = entities
        self.overlays: dict[OverlayKind, Overlay] = {}

    @staticmethod
    def kind_of(name: str | OverlayKind | None) -> OverlayKind | None:
        if name is None or isinstance(name, OverlayKind):
            return name
        try:
            return OverlayKind(name)
        except ValueError:
            return None

    def add(self, overlay: Overlay) -> None:
        if overlay.kind in self.overlays:
            raise ValueError(f"Overlay {overlay.name} already registered")
        self.overlays[overlay.kind] = overlay

    def exists(self, name: str | OverlayKind | None) -> bool:
        return self.kind_of(name) in self.overlays

    def get(self, name: str | OverlayKind | None) -> Overlay | None:
        kind = self.kind_of(name)
        if kind is None:
            return None
        return self.overlays.get(kind)

    def names(self) -> list[str]:
        return [kind.value for kind in self.overlays]

    def is_shown(self, name: str | OverlayKind | None) -> bool:
        overlay = self.get(name)
        return overlay is not None and self.entities.contains(overlay)

    def show(self, name: str | OverlayKind | None) -> None:
        overlay = self.get(name)
        if overlay is not None and not self.entities.contains(overlay):
            self.entities.add(overlay)

    def hide(self, name: str | OverlayKind | None) -> None:
        overlay = self.get(name)
        if overlay is not None and self.entities.contains(overlay):
            self.entities.remove(overlay)

    def show_all(self) -> None:
        for kind in list(self.overlays):
            self.show(kind)

    def hide_all(self) -> None:
        for kind in list(self.overlays):
            self.hide(kind)

    def __contains__(self, name: str | OverlayKind | None) -> bool:
        return self.exists(name)

    def __iter__(self):
        return iter(list(self.overlays.values()))

    def __len__(self) -> int:
        return len(self.overlays)
