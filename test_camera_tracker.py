import concurrent.futures
import datetime
import unittest

import numpy as np

from camera_tracker import CameraTracker, TrackState
from errors import PropagationError
from geometry import camera_placement
from overlays import Overlay, OverlayKind
from properties import CallbackProperty
from sim_clock import SimClock
from viewport import CameraController

START = datetime.datetime(2024, 5, 31, 12, 0, tzinfo=datetime.timezone.utc)
POSITION = (0.1, 0.2, 550000.0)
VIEW_FROM = (0.0, -1200000.0, 1150000.0)


class FakeCamera(CameraController):
    """Records camera moves. Flights finish when the test resolves them."""

    def __init__(self):
        super().__init__()
        self.flights = []
        self.views = []

    def fly_to(self, target, offset, duration):
        future = concurrent.futures.Future()
        self.flights.append((target, offset, duration, future))
        return future

    def set_view(self, position, look_at):
        self.views.append((position, look_at))

    def last_flight(self):
        return self.flights[-1][3]


def fixed_clock(start=START):
    return SimClock(start=start, wall_clock=lambda: start)


def marker(callback=lambda t: POSITION):
    return Overlay(OverlayKind.SATELLITE, position=CallbackProperty(callback), style={"view_from": VIEW_FROM})


class CameraTrackerTestCase(unittest.TestCase):
    def setUp(self):
        self.camera = FakeCamera()
        self.clock = fixed_clock()
        self.target = marker()
        self.tracker = CameraTracker(self.camera, self.clock, self.target)

    def testInitialState(self):
        self.assertFalse(self.tracker.is_tracked)
        self.assertEqual(self.tracker.state, TrackState.UNTRACKED)
        self.assertIsNone(self.camera.tracked_target)

    def testTrackImmediately(self):
        self.assertIsNone(self.tracker.track(False))
        self.assertTrue(self.tracker.is_tracked)
        self.assertIs(self.camera.tracked_target, self.target)
        self.assertEqual(self.tracker.state, TrackState.ARTIFICIALLY_FOLLOWING)
        self.assertEqual(len(self.camera.flights), 0)

    def testFollowOnTick(self):
        self.tracker.track()
        self.clock.tick()
        self.assertEqual(len(self.camera.views), 1)
        position, look_at = self.camera.views[0]
        expected_position, expected_look_at = camera_placement(POSITION, VIEW_FROM)
        np.testing.assert_allclose(position, expected_position)
        np.testing.assert_allclose(look_at, expected_look_at)

    def testFollowStartsWhenTargetSetElsewhere(self):
        self.camera.tracked_target = self.target
        self.assertEqual(self.tracker.state, TrackState.ARTIFICIALLY_FOLLOWING)
        self.clock.tick()
        self.assertEqual(len(self.camera.views), 1)

    def testStopFollowWhenTargetChanges(self):
        self.tracker.track()
        self.assertEqual(len(self.clock.on_tick), 1)
        self.assertEqual(len(self.camera.tracked_target_changed), 2)
        self.camera.tracked_target = marker()
        self.assertFalse(self.tracker.is_tracked)
        self.assertEqual(self.tracker.state, TrackState.UNTRACKED)
        self.assertEqual(len(self.clock.on_tick), 0)
        self.assertEqual(len(self.camera.tracked_target_changed), 1)
        self.clock.tick()
        self.assertEqual(len(self.camera.views), 0)

    def testStopFollowTwice(self):
        self.tracker.track()
        self.tracker.stop_artificial_follow()
        self.tracker.stop_artificial_follow()
        self.assertEqual(len(self.clock.on_tick), 0)
        self.assertEqual(len(self.camera.tracked_target_changed), 1)

    def testTrackTwice(self):
        self.tracker.track()
        self.tracker.track()
        self.assertEqual(len(self.clock.on_tick), 1)
        self.assertEqual(self.tracker.state, TrackState.ARTIFICIALLY_FOLLOWING)
        self.camera.tracked_target = marker()
        self.assertFalse(self.tracker.is_tracked)
        self.assertEqual(self.tracker.state, TrackState.UNTRACKED)
        self.assertEqual(len(self.clock.on_tick), 0)

    def testReleaseAndReacquire(self):
        other = CameraTracker(self.camera, self.clock, marker())
        self.tracker.track()
        self.tracker.track()
        other.track()
        self.assertEqual(self.tracker.state, TrackState.UNTRACKED)
        self.assertEqual(other.state, TrackState.ARTIFICIALLY_FOLLOWING)

        future = self.tracker.track(True)
        self.assertEqual(self.tracker.state, TrackState.ANIMATING)
        self.assertEqual(other.state, TrackState.UNTRACKED)
        self.assertEqual(len(self.clock.on_tick), 0)
        future.set_result(True)
        self.assertEqual(self.tracker.state, TrackState.ARTIFICIALLY_FOLLOWING)
        self.assertTrue(self.tracker.is_tracked)
        self.assertEqual(len(self.clock.on_tick), 1)

        self.tracker.untrack()
        self.assertEqual(self.tracker.state, TrackState.UNTRACKED)
        self.assertIsNone(self.camera.tracked_target)

    def testTickWithoutPosition(self):
        def out_of_range(t):
            raise PropagationError("no ephemeris")

        tracker = CameraTracker(self.camera, self.clock, marker(out_of_range))
        tracker.track()
        self.clock.tick()
        self.assertEqual(self.camera.views, [])
        self.assertTrue(tracker.is_tracked)

    def testNoTarget(self):
        other = marker()
        self.camera.tracked_target = other
        tracker = CameraTracker(self.camera, self.clock, None)
        self.assertIsNone(tracker.track(True))
        self.assertIsNone(tracker.track(False))
        self.assertIs(self.camera.tracked_target, other)
        self.assertTrue(self.clock.should_animate)
        self.assertEqual(self.camera.flights, [])
        self.assertFalse(tracker.is_tracked)

    def testNoTargetNotTrackedWhenSlotEmpty(self):
        tracker = CameraTracker(self.camera, self.clock, None)
        self.assertFalse(tracker.is_tracked)

    def testAnimatedTrack(self):
        future = self.tracker.track(True)
        self.assertIs(future, self.camera.last_flight())
        target, offset, duration, _ = self.camera.flights[0]
        self.assertIs(target, self.target)
        self.assertEqual(offset, self.tracker.offset)
        self.assertEqual(duration, self.tracker.flight_duration)
        self.assertEqual(self.tracker.state, TrackState.ANIMATING)
        self.assertFalse(self.clock.should_animate)
        self.assertIsNone(self.camera.tracked_target)

        future.set_result(True)
        self.assertTrue(self.clock.should_animate)
        self.assertIs(self.camera.tracked_target, self.target)
        self.assertEqual(self.tracker.state, TrackState.ARTIFICIALLY_FOLLOWING)

    def testAnimatedTrackKeepsPausedClock(self):
        self.clock.should_animate = False
        self.tracker.track(True).set_result(True)
        self.assertFalse(self.clock.should_animate)
        self.assertTrue(self.tracker.is_tracked)

    def testAnimatedTrackClearsOtherTarget(self):
        self.camera.tracked_target = marker()
        self.tracker.track(True)
        self.assertIsNone(self.camera.tracked_target)

    def testFlightFails(self):
        self.tracker.track(True).set_result(False)
        self.assertIsNone(self.camera.tracked_target)
        self.assertFalse(self.clock.should_animate)
        self.assertEqual(self.tracker.state, TrackState.UNTRACKED)

    def testFlightError(self):
        self.tracker.track(True).set_exception(RuntimeError("view changed"))
        self.assertIsNone(self.camera.tracked_target)
        self.assertEqual(self.tracker.state, TrackState.UNTRACKED)

    def testFlightCancelledByHost(self):
        self.tracker.track(True).cancel()
        self.assertIsNone(self.camera.tracked_target)
        self.assertFalse(self.clock.should_animate)
        self.assertEqual(self.tracker.state, TrackState.UNTRACKED)

    def testOverlappingFlights(self):
        first = self.tracker.track(True)
        second = self.tracker.track(True)
        self.assertTrue(first.cancelled())
        self.assertEqual(self.tracker.state, TrackState.ANIMATING)
        second.set_result(True)
        # The clock state from before the first request is restored
        self.assertTrue(self.clock.should_animate)
        self.assertTrue(self.tracker.is_tracked)

    def testUntrackDuringFlight(self):
        future = self.tracker.track(True)
        self.tracker.untrack()
        self.assertTrue(future.cancelled())
        self.assertTrue(self.clock.should_animate)
        self.assertEqual(self.tracker.state, TrackState.UNTRACKED)
        self.assertIsNone(self.camera.tracked_target)

    def testTrackImmediatelyDuringFlight(self):
        future = self.tracker.track(True)
        self.tracker.track(False)
        self.assertTrue(future.cancelled())
        self.assertTrue(self.clock.should_animate)
        self.assertTrue(self.tracker.is_tracked)

    def testUntrack(self):
        self.tracker.track()
        self.tracker.untrack()
        self.assertIsNone(self.camera.tracked_target)
        self.assertEqual(self.tracker.state, TrackState.UNTRACKED)
        self.assertEqual(len(self.clock.on_tick), 0)

    def testUntrackLeavesOtherTarget(self):
        other = marker()
        self.camera.tracked_target = other
        self.tracker.untrack()
        self.assertIs(self.camera.tracked_target, other)

    def testDestroy(self):
        self.tracker.track()
        self.tracker.destroy()
        self.tracker.destroy()
        self.assertEqual(len(self.clock.on_tick), 0)
        self.assertEqual(len(self.camera.tracked_target_changed), 0)


if __name__ == "__main__":
    unittest.main()
