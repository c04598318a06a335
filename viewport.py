"""
Interfaces between satellite entities and the host that draws them.

A host provides:
    - an EntityCollection of overlays currently drawn
    - a CameraController that owns the tracked target and moves the camera
    - a clock (see sim_clock.py) with a running flag and a tick event
"""

import concurrent.futures
from dataclasses import dataclass
from typing import Any, Callable


class Subscription:
    """
    Handle for a listener registered on an Event.
    remove() may be called any number of times.
    """

    def __init__(self, event: "Event", listener: Callable) -> None:
        self.event: Event | None = event
        self.listener = listener

    @property
    def active(self) -> bool:
        return self.event is not None

    def remove(self) -> None:
        if self.event is None:
            return
        self.event._remove(self)
        self.event = None


class Event:
    """A list of listeners called in registration order."""

    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def add_listener(self, listener: Callable) -> Subscription:
        subscription = Subscription(self, listener)
        self._subscriptions.append(subscription)
        return subscription

    def _remove(self, subscription: Subscription) -> None:
        self._subscriptions.remove(subscription)

    def raise_event(self, *args: Any) -> None:
        # Listeners may add or remove subscriptions while we run.
        # Removed listeners are skipped, added ones wait for the next event.
        for subscription in list(self._subscriptions):
            if subscription.active:
                subscription.listener(*args)

    def __len__(self) -> int:
        return len(self._subscriptions)


class EntityCollection:
    """
    The set of overlays the host is drawing.
    Membership is by identity.
    """

    def __init__(self) -> None:
        self._entities: list[Any] = []
        self.added = Event()
        self.removed = Event()

    def contains(self, entity: Any) -> bool:
        return any(e is entity for e in self._entities)

    def add(self, entity: Any) -> None:
        if self.contains(entity):
            raise ValueError(f"{entity} is already in the collection")
        self._entities.append(entity)
        self.added.raise_event(entity)

    def remove(self, entity: Any) -> bool:
        for i, e in enumerate(self._entities):
            if e is entity:
                del self._entities[i]
                self.removed.raise_event(entity)
                return True
        return False

    def __iter__(self):
        return iter(list(self._entities))

    def __len__(self) -> int:
        return len(self._entities)


@dataclass
class HeadingPitchRange:
    """Camera offset from a target. Angles in radians, range in meters."""

    heading: float
    pitch: float
    range: float


class CameraController:
    """
    Owns the single tracked target slot of a view and moves its camera.
    Hosts implement fly_to and set_view.
    """

    def __init__(self) -> None:
        self._tracked_target: Any = None
        self.tracked_target_changed = Event()

    @property
    def tracked_target(self) -> Any:
        return self._tracked_target

    @tracked_target.setter
    def tracked_target(self, target: Any) -> None:
        if target is self._tracked_target:
            return
        self._tracked_target = target
        self.tracked_target_changed.raise_event(target)

    def fly_to(self, target: Any, offset: HeadingPitchRange, duration: float) -> concurrent.futures.Future:
        """
        Start moving the camera to view target from offset.

        The future resolves True once the camera arrives, or False if the
        flight was interrupted. A flight lasts at most duration seconds.
        """
        raise NotImplementedError

    def set_view(self, position, look_at) -> None:
        """Place the camera at a cartesian position looking at look_at."""
        raise NotImplementedError


@dataclass
class Viewport:
    """The host services used by a satellite entity."""

    entities: EntityCollection
    camera: CameraController
    clock: Any
