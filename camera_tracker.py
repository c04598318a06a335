"""
Make the viewport camera follow a satellite.

States:
    UNTRACKED              - camera is not following us
    ANIMATING              - flying to the satellite, clock paused
    LOCKED                 - we own the tracked target slot
    ARTIFICIALLY_FOLLOWING - locked, and the camera is moved on each clock tick

A single position property can't drive the camera by itself, so once we
are the tracked target the camera placement is recomputed from the
satellite's live position on every tick.

Overlapping animated requests cancel and replace the pending flight.
Only the newest flight can lock, and it restores the clock state seen
by the first request of the overlapping run. A flight that fails or is
cancelled by the host leaves the clock paused; untrack() or a direct
track() restores it.
"""

import concurrent.futures
import logging
import math
from enum import Enum

from geometry import camera_placement
from overlays import Overlay
from viewport import CameraController, HeadingPitchRange, Subscription

# Offset used when flying to a satellite
DEFAULT_OFFSET = HeadingPitchRange(0.0, -math.pi / 4, 1580000.0)
DEFAULT_FLIGHT_DURATION = 3.0  # seconds
# Default local (east, north, up) offset of the camera while following
DEFAULT_VIEW_FROM = (0.0, -1200000.0, 1150000.0)


class TrackState(Enum):
    UNTRACKED = "untracked"
    LOCKED = "locked"
    ANIMATING = "animating"
    ARTIFICIALLY_FOLLOWING = "artificially_following"


class CameraTracker:
    def __init__(
        self,
        camera: CameraController,
        clock,
        target: Overlay | None,
        offset: HeadingPitchRange = DEFAULT_OFFSET,
        flight_duration: float = DEFAULT_FLIGHT_DURATION,
    ) -> None:
        self.camera = camera
        self.clock = clock
        self.target = target
        self.offset = offset
        self.flight_duration = flight_duration
        self.state = TrackState.UNTRACKED

        self._flight: concurrent.futures.Future | None = None
        self._resume_clock: bool | None = None
        self._tick_subscription: Subscription | None = None
        self._release_subscription: Subscription | None = None
        self._change_subscription: Subscription | None = camera.tracked_target_changed.add_listener(
            self._on_tracked_target_changed
        )

    @property
    def is_tracked(self) -> bool:
        return self.target is not None and self.camera.tracked_target is self.target

    @property
    def is_following(self) -> bool:
        return self._tick_subscription is not None

    def track(self, animate: bool = False) -> concurrent.futures.Future | None:
        """
        Make the camera follow the target, immediately or after flying to it.
        Returns the flight future when animating.
        """
        if self.target is None:
            return None

        if not animate:
            self._cancel_flight()
            self.state = TrackState.LOCKED
            self.camera.tracked_target = self.target
            if self.is_tracked:
                self.start_artificial_follow()
            return None

        self.camera.tracked_target = None
        if self._flight is not None:
            # Replace the pending flight, keep the clock state it saw
            pending = self._flight
            self._flight = None
            pending.cancel()
        else:
            self._resume_clock = self.clock.should_animate
        self.clock.should_animate = False

        self.state = TrackState.ANIMATING
        future = self.camera.fly_to(self.target, self.offset, self.flight_duration)
        self._flight = future
        future.add_done_callback(self._on_flight_done)
        return future

    def untrack(self) -> None:
        """Release the camera."""
        self._cancel_flight()
        if self.is_tracked:
            self.camera.tracked_target = None
        self.stop_artificial_follow()
        self.state = TrackState.UNTRACKED

    def _cancel_flight(self) -> None:
        """Drop a pending flight we started, giving the clock back its state."""
        if self._flight is None:
            return
        pending = self._flight
        self._flight = None
        self.clock.should_animate = self._resume_clock
        self._resume_clock = None
        pending.cancel()

    def _on_flight_done(self, future: concurrent.futures.Future) -> None:
        if future is not self._flight:
            # Replaced or cancelled by us
            return
        self._flight = None
        resume_clock = self._resume_clock
        self._resume_clock = None

        if future.cancelled():
            logging.info("flight to %s cancelled", self.target.name)
            self.state = TrackState.UNTRACKED
            return
        error = future.exception()
        if error is not None or not future.result():
            logging.info("flight to %s did not complete: %s", self.target.name, error)
            self.state = TrackState.UNTRACKED
            return

        self.state = TrackState.LOCKED
        self.camera.tracked_target = self.target
        self.clock.should_animate = resume_clock
        if self.is_tracked:
            self.start_artificial_follow()

    def _on_tracked_target_changed(self, target) -> None:
        if target is not None and target is self.target:
            self.start_artificial_follow()

    def _on_target_released(self, target) -> None:
        if not self.is_tracked:
            self.stop_artificial_follow()

    def start_artificial_follow(self) -> None:
        self.state = TrackState.ARTIFICIALLY_FOLLOWING
        if self._tick_subscription is not None:
            return
        self._tick_subscription = self.clock.on_tick.add_listener(self.update_camera)
        self._release_subscription = self.camera.tracked_target_changed.add_listener(
            self._on_target_released
        )

    def stop_artificial_follow(self) -> None:
        """Remove the per-tick listeners. Safe to call repeatedly."""
        if self._tick_subscription is not None:
            self._tick_subscription.remove()
            self._tick_subscription = None
        if self._release_subscription is not None:
            self._release_subscription.remove()
            self._release_subscription = None
        if self.state in (TrackState.LOCKED, TrackState.ARTIFICIALLY_FOLLOWING):
            self.state = TrackState.UNTRACKED

    def update_camera(self, clock) -> None:
        if self.target is None or self.target.position is None:
            return
        position = self.target.position.get_value(clock.current_time)
        if position is None:
            # Nothing to follow this frame
            return
        view_from = self.target.style.get("view_from", DEFAULT_VIEW_FROM)
        camera_position, look_at = camera_placement(position, view_from)
        self.camera.set_view(camera_position, look_at)

    def destroy(self) -> None:
        self._cancel_flight()
        self.stop_artificial_follow()
        if self._change_subscription is not None:
            self._change_subscription.remove()
            self._change_subscription = None
