"""
A satellite drawn in the viewer: marker, orbit track, ground track
and sensor cone, all recomputed from TLE data as the clock advances.
"""

import datetime
import math

from camera_tracker import CameraTracker
from geometry import heading_pitch_roll_quaternion
from ground_track import project_to_ground
from overlays import Overlay, OverlayKind, OverlaySet
from properties import CallbackProperty
from sat_orbit import SatelliteOrbit
from viewer_config import ViewerConfig
from viewport import Viewport

WHITE = (1.0, 1.0, 1.0, 1.0)
GOLD = (1.0, 0.843, 0.0, 1.0)


def with_alpha(color: tuple, alpha: float) -> tuple:
    return color[:3] + (alpha,)


class SatelliteEntity:
    """
    All overlays of one satellite plus the camera tracker that follows it.
    The Satellite marker is the default overlay and the tracking target.
    """

    # Edge length of the satellite box in meters
    SIZE = 1000

    def __init__(self, viewport: Viewport, tle: str, config: ViewerConfig | None = None) -> None:
        if config is None:
            config = ViewerConfig()
        self.viewport = viewport
        self.config = config
        self.orbit = SatelliteOrbit(
            tle, valid_days=config.orbit.valid_days_limit(), samples=config.orbit.samples
        )
        self.name = self.orbit.name
        self.overlays = OverlaySet(viewport.entities)
        self.position_property = CallbackProperty(self.orbit.position_at)

        self.create_satellite()
        self.create_orbit_track()
        self.create_ground_track()
        self.create_cone(config.display.cone_fov)
        self.default_overlay = self.overlays.get(OverlayKind.SATELLITE)

        self.tracker = CameraTracker(
            viewport.camera,
            viewport.clock,
            self.default_overlay,
            offset=config.camera.offset(),
            flight_duration=config.camera.flight_duration,
        )

    def __repr__(self) -> str:
        return f"SatelliteEntity({self.name!r})"

    @property
    def components(self) -> list[str]:
        return self.overlays.names()

    def show(self) -> None:
        self.overlays.show_all()

    def hide(self) -> None:
        self.overlays.hide_all()

    def show_component(self, name) -> None:
        self.overlays.show(name)

    def hide_component(self, name) -> None:
        self.overlays.hide(name)

    def track(self, animate: bool = False):
        return self.tracker.track(animate)

    def untrack(self) -> None:
        self.tracker.untrack()

    @property
    def is_tracked(self) -> bool:
        return self.tracker.is_tracked

    def destroy(self) -> None:
        """Detach all overlays and release the tracker's listeners."""
        if self.is_tracked:
            self.tracker.untrack()
        self.hide()
        self.tracker.destroy()

    def create_satellite(self) -> None:
        style = {
            "label": self.name,
            "label_scale": 0.8,
            "label_distance": (self.SIZE * 10, 5.0e7),
            "point_size": 10,
            "point_color": WHITE,
            "box_dimensions": (self.SIZE, self.SIZE, self.SIZE),
            "box_color": WHITE,
            "view_from": (0.0, -1200000.0, 1150000.0),
        }
        self.overlays.add(Overlay(OverlayKind.SATELLITE, position=self.position_property, style=style))

    def orbit_track(self, time: datetime.datetime) -> list[float]:
        return self.orbit.compute_orbit_track(time)

    def ground_track(self, time: datetime.datetime) -> list[float]:
        return project_to_ground(self.orbit.compute_orbit_track(time))

    def create_orbit_track(self) -> None:
        style = {"color": with_alpha(WHITE, 0.2), "width": 5}
        self.overlays.add(
            Overlay(OverlayKind.ORBIT_TRACK, path=CallbackProperty(self.orbit_track), style=style)
        )

    def create_ground_track(self) -> None:
        style = {"color": with_alpha(WHITE, 0.5), "width": 5, "dashed": True}
        self.overlays.add(
            Overlay(OverlayKind.GROUND_TRACK, path=CallbackProperty(self.ground_track), style=style)
        )

    def cone_orientation(self, time: datetime.datetime) -> tuple[float, float, float, float]:
        # Point the sensor axis straight down
        position = self.orbit.position_at(time)
        return heading_pitch_roll_quaternion(position, 0.0, math.radians(180), 0.0)

    def create_cone(self, fov: float = 10) -> None:
        style = {
            "radius": 10000000,
            "outer_half_angle": math.radians(fov),
            "surface_color": with_alpha(GOLD, 0.15),
            "intersection_color": with_alpha(GOLD, 0.3),
            "intersection_width": 1,
        }
        self.overlays.add(
            Overlay(
                OverlayKind.CONE,
                position=self.position_property,
                orientation=CallbackProperty(self.cone_orientation),
                style=style,
            )
        )
