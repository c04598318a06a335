"""
Draw satellite entities with Panda3D.

Overlays added to the entity collection get a scene node, and every
frame the clock is advanced and each node is refreshed from its
overlay's time varying properties. The scene is the earth fixed frame,
scaled so the earth has a radius of earth_size_scale.
"""

import concurrent.futures
import math
import sys

import numpy as np
from direct.gui.DirectGui import OnscreenText
from direct.interval.IntervalGlobal import Func, Sequence
from direct.showbase.DirectObject import DirectObject
from direct.task import Task
from panda3d.core import LineSegs, NodePath, Point3, TextNode, TransparencyAttrib, Vec3

from geometry import (
    WGS84_A,
    geodetic_to_cartesian,
    heading_pitch_range_vector,
    offset_position,
    quaternion_to_matrix,
    track_to_cartesian,
)
from overlays import Overlay, OverlayKind
from viewport import CameraController, EntityCollection, HeadingPitchRange, Viewport

# Line segments used to draw the edge of a sensor cone
CONE_SEGMENTS = 24


class PandaCamera(CameraController):
    """Moves the ShowBase camera."""

    def __init__(self, base, clock, pos_scale: float) -> None:
        super().__init__()
        self.base = base
        self.clock = clock
        self.pos_scale = pos_scale
        self.flight: tuple[concurrent.futures.Future, Sequence] | None = None

    def toScene(self, point) -> Point3:
        x, y, z = (float(v) * self.pos_scale for v in point)
        return Point3(x, y, z)

    @staticmethod
    def upVector(point) -> Vec3:
        x, y, z = (float(v) for v in np.asarray(point) / np.linalg.norm(point))
        return Vec3(x, y, z)

    def set_view(self, position, look_at) -> None:
        self.base.camera.setPos(self.toScene(position))
        self.base.camera.lookAt(self.toScene(look_at), self.upVector(look_at))

    def fly_to(self, target: Overlay, offset: HeadingPitchRange, duration: float) -> concurrent.futures.Future:
        # A new flight interrupts the current one
        self.interruptFlight()

        future: concurrent.futures.Future = concurrent.futures.Future()
        position = None
        if target.position is not None:
            position = target.position.get_value(self.clock.current_time)
        if position is None:
            future.set_result(False)
            return future

        destination = offset_position(position, heading_pitch_range_vector(offset))
        look_at = geodetic_to_cartesian(*position)

        # Use a scratch node to find the final camera orientation
        scratch = self.base.render.attachNewNode("flight_target")
        scratch.setPos(self.toScene(destination))
        scratch.lookAt(self.toScene(look_at), self.upVector(look_at))
        hpr = scratch.getHpr()
        scratch.removeNode()

        interval = Sequence(
            self.base.camera.posHprInterval(duration, self.toScene(destination), hpr),
            Func(self.finishFlight, future),
        )
        self.flight = (future, interval)
        future.add_done_callback(self.flightDone)
        interval.start()
        return future

    def flightDone(self, future: concurrent.futures.Future) -> None:
        # A flight cancelled by its requester stops where it is
        if not future.cancelled():
            return
        if self.flight is not None and self.flight[0] is future:
            _, interval = self.flight
            self.flight = None
            interval.pause()

    def finishFlight(self, future: concurrent.futures.Future) -> None:
        if self.flight is not None and self.flight[0] is future:
            self.flight = None
        if not future.done():
            future.set_result(True)

    def interruptFlight(self) -> None:
        if self.flight is None:
            return
        future, interval = self.flight
        self.flight = None
        interval.pause()
        if not future.done():
            future.set_result(False)


class PandaViewport(DirectObject):
    def __init__(self, base, clock, earth_size_scale: float = 10) -> None:
        self.base = base
        self.clock = clock
        self.earth_size_scale = earth_size_scale
        self.pos_scale = earth_size_scale / WGS84_A
        self.sat_size_scale = 0.1

        self.entities = EntityCollection()
        self.camera = PandaCamera(base, clock, self.pos_scale)
        self.viewport = Viewport(self.entities, self.camera, clock)
        self.entities.added.add_listener(self.attachOverlay)
        self.entities.removed.add_listener(self.detachOverlay)

        self.nodes: dict[Overlay, NodePath] = {}
        self.satellites: list = []
        self.selected = 0
        self.zoom = 8
        self.heading = 0
        self.pitch = 0

        base.disableMouse()  # disable mouse control of the camera
        self.scene = base.render.attachNewNode("scene")
        self.earth = base.loader.loadModel("models/misc/sphere")
        self.earth.reparentTo(self.scene)
        self.earth.setScale(self.earth_size_scale)
        self.earth.setColor(0.2, 0.35, 0.7, 1.0)

        # Virtual current time
        self.time = OnscreenText(
            text="time",
            parent=base.a2dTopLeft,
            align=TextNode.A_left,
            fg=(1, 1, 1, 1),
            pos=(0.1, -0.1),
            scale=0.07,
            mayChange=True,
        )
        # Currently selected satellite
        self.info = OnscreenText(
            text="",
            parent=base.a2dTopLeft,
            align=TextNode.A_left,
            fg=(1, 1, 1, 1),
            pos=(0.1, -0.2),
            scale=0.07,
            mayChange=True,
        )

        self.accept("q", sys.exit)
        self.accept("arrow_up", self.moveUp)
        self.accept("arrow_down", self.moveDown)
        self.accept("arrow_right", self.moveRight)
        self.accept("arrow_left", self.moveLeft)
        self.accept("+", self.zoomIn)
        self.accept("-", self.zoomOut)
        self.accept("space", self.clock.toggle_pause)
        self.accept("n", self.selectNext)
        self.accept("t", self.trackSelected, [True])
        self.accept("l", self.trackSelected, [False])
        self.accept("u", self.untrackSelected)
        self.accept("o", self.toggleComponent, [OverlayKind.ORBIT_TRACK])
        self.accept("g", self.toggleComponent, [OverlayKind.GROUND_TRACK])
        self.accept("c", self.toggleComponent, [OverlayKind.CONE])

        self.setCameraPos()
        base.taskMgr.add(self.gLoop, "gloop")

    def setSatellites(self, satellites: list) -> None:
        self.satellites = satellites
        self.selected = 0
        self.showSelection()

    def selected_satellite(self):
        if len(self.satellites) == 0:
            return None
        return self.satellites[self.selected]

    def showSelection(self) -> None:
        satellite = self.selected_satellite()
        self.info.setText("" if satellite is None else satellite.name)

    def selectNext(self) -> None:
        if len(self.satellites) > 0:
            self.selected = (self.selected + 1) % len(self.satellites)
        self.showSelection()

    def trackSelected(self, animate: bool) -> None:
        satellite = self.selected_satellite()
        if satellite is not None:
            satellite.track(animate)

    def untrackSelected(self) -> None:
        satellite = self.selected_satellite()
        if satellite is not None:
            satellite.untrack()
        self.setCameraPos()

    def toggleComponent(self, kind: OverlayKind) -> None:
        for satellite in self.satellites:
            if satellite.overlays.is_shown(kind):
                satellite.hide_component(kind)
            else:
                satellite.show_component(kind)

    def camera_is_free(self) -> bool:
        return self.camera.tracked_target is None and self.camera.flight is None

    def setCameraPos(self) -> None:
        if not self.camera_is_free():
            return
        # Earth radius plus a zoom dependent altitude in km
        altitude = WGS84_A / 1000 + self.zoom**2 * 500
        distance = altitude * 1000 * self.pos_scale
        heading = math.radians(self.heading)
        pitch = math.radians(self.pitch)
        self.base.camera.setPos(
            distance * math.cos(pitch) * math.sin(heading),
            -distance * math.cos(pitch) * math.cos(heading),
            distance * math.sin(pitch),
        )
        self.base.camera.lookAt(0, 0, 0)
        for overlay, node in self.nodes.items():
            if overlay.kind == OverlayKind.SATELLITE:
                node.find("marker").setScale(self.getSatSizeScale())

    def getSatSizeScale(self) -> float:
        # Increase scale with farther zoom settings.
        # zoom 8 : multiplier = 1
        return self.sat_size_scale * (self.zoom / 8)

    def zoomIn(self):
        if self.zoom > 1:
            self.zoom -= 1
            self.setCameraPos()

    def zoomOut(self):
        self.zoom += 1
        self.setCameraPos()

    def moveUp(self):
        self.pitch = min(self.pitch + 30, 90)
        self.setCameraPos()

    def moveDown(self):
        self.pitch = max(self.pitch - 30, -90)
        self.setCameraPos()

    def moveLeft(self):
        self.heading -= 30
        self.setCameraPos()

    def moveRight(self):
        self.heading += 30
        self.setCameraPos()

    def attachOverlay(self, overlay: Overlay) -> None:
        node = self.scene.attachNewNode(overlay.name)
        node.setTransparency(TransparencyAttrib.MAlpha)
        if overlay.kind == OverlayKind.SATELLITE:
            self.buildSatellite(overlay, node)
        self.nodes[overlay] = node
        self.updateOverlay(overlay, node, self.clock.current_time)

    def detachOverlay(self, overlay: Overlay) -> None:
        node = self.nodes.pop(overlay, None)
        if node is not None:
            node.removeNode()

    def buildSatellite(self, overlay: Overlay, node: NodePath) -> None:
        style = overlay.style
        # The marker keeps a constant screen size as the camera zooms
        marker = node.attachNewNode("marker")
        marker.setScale(self.getSatSizeScale())
        point = self.base.loader.loadModel("models/misc/sphere")
        point.reparentTo(marker)
        point.setScale(style.get("point_size", 10) / 10)
        point.setColor(*style.get("point_color", (1, 1, 1, 1)))
        label = TextNode("label")
        label.setText(style.get("label", ""))
        label_node = marker.attachNewNode(label)
        label_node.setScale(style.get("label_scale", 1.0) * 2)
        label_node.setPos(1.5, 0, 0)
        label_node.setBillboardPointEye()

        # The box is drawn at its true size
        dimensions = style.get("box_dimensions")
        if dimensions is not None:
            box_node = node.attachNewNode("box")
            box_node.setScale(*(d * self.pos_scale for d in dimensions))
            box_node.setColor(*style.get("box_color", (1, 1, 1, 1)))
            box = self.base.loader.loadModel("models/box")
            box.reparentTo(box_node)
            # models/box spans 0..1 on each axis
            box.setPos(-0.5, -0.5, -0.5)

    def updateLabel(self, overlay: Overlay, node: NodePath) -> None:
        """Show the label only within the label_distance range."""
        near, far = overlay.style.get("label_distance", (0.0, math.inf))
        distance = (self.base.camera.getPos(self.scene) - node.getPos()).length() / self.pos_scale
        label = node.find("marker/label")
        if near <= distance <= far:
            label.show()
        else:
            label.hide()

    @staticmethod
    def replaceGeometry(node: NodePath, segs: LineSegs) -> None:
        for child in node.getChildren():
            child.removeNode()
        node.attachNewNode(segs.create())

    def drawTrack(self, overlay: Overlay, node: NodePath, track: list[float]) -> None:
        points = track_to_cartesian(track)
        segs = LineSegs(overlay.name)
        segs.setThickness(overlay.style.get("width", 1))
        segs.setColor(*overlay.style.get("color", (1, 1, 1, 1)))
        dashed = overlay.style.get("dashed", False)
        for i in range(1, len(points)):
            if dashed and i % 2 == 0:
                continue
            segs.moveTo(self.camera.toScene(points[i - 1]))
            segs.drawTo(self.camera.toScene(points[i]))
        self.replaceGeometry(node, segs)

    def drawCone(self, overlay: Overlay, node: NodePath, position, orientation) -> None:
        apex = geodetic_to_cartesian(*position)
        frame = quaternion_to_matrix(orientation)
        half_angle = overlay.style.get("outer_half_angle", math.radians(10))
        # Stop the cone at the ground rather than at its full radius
        length = min(overlay.style.get("radius", 1.0e7), position[2] / math.cos(half_angle))

        segs = LineSegs(overlay.name)
        segs.setThickness(overlay.style.get("intersection_width", 1))
        rim = []
        for k in range(CONE_SEGMENTS + 1):
            angle = 2 * math.pi * k / CONE_SEGMENTS
            direction = np.array(
                [
                    math.sin(half_angle) * math.cos(angle),
                    math.sin(half_angle) * math.sin(angle),
                    math.cos(half_angle),
                ]
            )
            rim.append(self.camera.toScene(apex + frame @ direction * length))
        # Rim where the cone meets the ground, then lines down its surface
        segs.setColor(*overlay.style.get("intersection_color", (1, 1, 1, 1)))
        segs.moveTo(rim[0])
        for point in rim[1:]:
            segs.drawTo(point)
        segs.setColor(*overlay.style.get("surface_color", (1, 1, 1, 1)))
        for point in rim[:: CONE_SEGMENTS // 4]:
            segs.moveTo(self.camera.toScene(apex))
            segs.drawTo(point)
        self.replaceGeometry(node, segs)

    def updateOverlay(self, overlay: Overlay, node: NodePath, time) -> None:
        if overlay.kind == OverlayKind.SATELLITE:
            position = overlay.position.get_value(time)
            if position is None:
                node.hide()
                return
            node.show()
            node.setPos(self.camera.toScene(geodetic_to_cartesian(*position)))
            self.updateLabel(overlay, node)
        elif overlay.kind == OverlayKind.CONE:
            position = overlay.position.get_value(time)
            orientation = overlay.orientation.get_value(time)
            if position is None or orientation is None:
                node.hide()
                return
            node.show()
            self.drawCone(overlay, node, position, orientation)
        elif overlay.path is not None:
            track = overlay.path.get_value(time)
            if track is None:
                node.hide()
                return
            node.show()
            self.drawTrack(overlay, node, track)

    def gLoop(self, task):
        now = self.clock.tick()
        for overlay, node in list(self.nodes.items()):
            self.updateOverlay(overlay, node, now)
        self.time.setText(now.isoformat(sep=" ", timespec="seconds"))
        return Task.cont
