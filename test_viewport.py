import datetime
import unittest

from sim_clock import SimClock
from viewport import CameraController, EntityCollection, Event


class EventTestCase(unittest.TestCase):
    def testListeners(self):
        event = Event()
        received = []
        event.add_listener(lambda v: received.append(("a", v)))
        event.add_listener(lambda v: received.append(("b", v)))
        event.raise_event(1)
        self.assertEqual(received, [("a", 1), ("b", 1)])
        self.assertEqual(len(event), 2)

    def testRemoveTwice(self):
        event = Event()
        received = []
        subscription = event.add_listener(received.append)
        subscription.remove()
        subscription.remove()
        self.assertFalse(subscription.active)
        event.raise_event(1)
        self.assertEqual(received, [])
        self.assertEqual(len(event), 0)

    def testRemoveDuringEvent(self):
        event = Event()
        received = []
        second = None

        def first(v):
            received.append("first")
            second.remove()

        event.add_listener(first)
        second = event.add_listener(lambda v: received.append("second"))
        event.raise_event(None)
        self.assertEqual(received, ["first"])

    def testAddDuringEvent(self):
        event = Event()
        received = []

        def first(v):
            received.append(v)
            event.add_listener(lambda w: received.append(("late", w)))

        event.add_listener(first)
        event.raise_event(1)
        self.assertEqual(received, [1])


class EntityCollectionTestCase(unittest.TestCase):
    def testAddRemove(self):
        entities = EntityCollection()
        added, removed = [], []
        entities.added.add_listener(added.append)
        entities.removed.add_listener(removed.append)
        item = object()
        entities.add(item)
        self.assertTrue(entities.contains(item))
        self.assertEqual(len(entities), 1)
        self.assertTrue(entities.remove(item))
        self.assertFalse(entities.remove(item))
        self.assertFalse(entities.contains(item))
        self.assertEqual(added, [item])
        self.assertEqual(removed, [item])

    def testDuplicate(self):
        entities = EntityCollection()
        item = object()
        entities.add(item)
        with self.assertRaises(ValueError):
            entities.add(item)


class CameraControllerTestCase(unittest.TestCase):
    def testTrackedTargetChanged(self):
        camera = CameraController()
        changes = []
        camera.tracked_target_changed.add_listener(changes.append)
        target = object()
        camera.tracked_target = target
        camera.tracked_target = target
        camera.tracked_target = None
        self.assertEqual(changes, [target, None])

    def testHostMustMoveCamera(self):
        with self.assertRaises(NotImplementedError):
            CameraController().set_view((0, 0, 0), (1, 0, 0))


class SimClockTestCase(unittest.TestCase):
    START = datetime.datetime(2024, 5, 31, 12, 0, tzinfo=datetime.timezone.utc)

    def setUp(self):
        self.wall = [self.START]
        self.clock = SimClock(start=self.START, time_rate=10, wall_clock=lambda: self.wall[0])

    def advance_wall(self, seconds):
        self.wall[0] += datetime.timedelta(seconds=seconds)

    def testTick(self):
        self.advance_wall(2)
        self.assertEqual(self.clock.tick(), self.START + datetime.timedelta(seconds=20))

    def testPaused(self):
        self.clock.should_animate = False
        self.advance_wall(5)
        self.assertEqual(self.clock.tick(), self.START)
        # Time spent paused is not counted after resuming
        self.clock.should_animate = True
        self.advance_wall(1)
        self.assertEqual(self.clock.tick(), self.START + datetime.timedelta(seconds=10))

    def testTogglePause(self):
        self.clock.toggle_pause()
        self.assertFalse(self.clock.should_animate)
        self.clock.toggle_pause()
        self.assertTrue(self.clock.should_animate)

    def testTickEvent(self):
        ticks = []
        self.clock.on_tick.add_listener(ticks.append)
        self.clock.should_animate = False
        self.clock.tick()
        self.assertEqual(ticks, [self.clock])

    def testJump(self):
        later = self.START + datetime.timedelta(days=1)
        self.clock.current_time = later
        self.assertEqual(self.clock.tick(), later)


if __name__ == "__main__":
    unittest.main()
