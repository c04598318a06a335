"""
Coordinate helpers for placing overlays and the camera.

Geodetic positions are (longitude, latitude, height) with angles in
radians and height in meters. Cartesian positions are earth fixed
(ITRS) coordinates in meters on the WGS84 ellipsoid. Local offsets are
given in an east, north, up frame at a geodetic position.

Rotations follow the heading / pitch / roll convention of 3D globe
viewers: heading turns about -up, pitch about -north, roll about east.
"""

import math

import numpy as np
from skyfield.api import wgs84

from viewport import HeadingPitchRange

# WGS84 ellipsoid
WGS84_A = wgs84.radius.m
WGS84_F = 1 / wgs84.inverse_flattening


def geodetic_to_cartesian(lon: float, lat: float, height: float = 0.0) -> np.ndarray:
    position = wgs84.latlon(math.degrees(lat), math.degrees(lon), elevation_m=height)
    return np.asarray(position.itrs_xyz.m, dtype=float)


def track_to_cartesian(track: list[float]) -> np.ndarray:
    """
    Convert a flat (longitude, latitude, height) track to an (N, 3)
    array of cartesian points.
    """
    samples = np.asarray(track, dtype=float).reshape(-1, 3)
    if len(samples) == 0:
        return np.empty((0, 3))
    positions = wgs84.latlon(np.degrees(samples[:, 1]), np.degrees(samples[:, 0]), elevation_m=samples[:, 2])
    return np.asarray(positions.itrs_xyz.m, dtype=float).T


def east_north_up_matrix(lon: float, lat: float) -> np.ndarray:
    """Columns are the east, north and up unit vectors."""
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)
    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    east = [-sin_lon, cos_lon, 0.0]
    north = [-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat]
    up = [cos_lat * cos_lon, cos_lat * sin_lon, sin_lat]
    return np.column_stack((east, north, up))


def _axis_rotation(axis: int, angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    if axis == 0:
        return np.array([[1, 0, 0], [0, c, -s], [0, s, c]])
    if axis == 1:
        return np.array([[c, 0, s], [0, 1, 0], [-s, 0, c]])
    return np.array([[c, -s, 0], [s, c, 0], [0, 0, 1]])


def heading_pitch_roll_matrix(heading: float, pitch: float, roll: float) -> np.ndarray:
    return _axis_rotation(2, -heading) @ _axis_rotation(1, -pitch) @ _axis_rotation(0, roll)


def heading_pitch_roll_frame(position: tuple, heading: float, pitch: float, roll: float) -> np.ndarray:
    """
    Rotation from a body frame to the earth fixed frame for a body at the
    geodetic position turned by heading, pitch and roll.
    """
    lon, lat = position[0], position[1]
    return east_north_up_matrix(lon, lat) @ heading_pitch_roll_matrix(heading, pitch, roll)


def matrix_to_quaternion(m: np.ndarray) -> tuple[float, float, float, float]:
    """Returns (w, x, y, z)."""
    trace = m[0, 0] + m[1, 1] + m[2, 2]
    if trace > 0:
        s = 0.5 / math.sqrt(trace + 1.0)
        w = 0.25 / s
        x = (m[2, 1] - m[1, 2]) * s
        y = (m[0, 2] - m[2, 0]) * s
        z = (m[1, 0] - m[0, 1]) * s
    elif m[0, 0] > m[1, 1] and m[0, 0] > m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[0, 0] - m[1, 1] - m[2, 2])
        w = (m[2, 1] - m[1, 2]) / s
        x = 0.25 * s
        y = (m[0, 1] + m[1, 0]) / s
        z = (m[0, 2] + m[2, 0]) / s
    elif m[1, 1] > m[2, 2]:
        s = 2.0 * math.sqrt(1.0 + m[1, 1] - m[0, 0] - m[2, 2])
        w = (m[0, 2] - m[2, 0]) / s
        x = (m[0, 1] + m[1, 0]) / s
        y = 0.25 * s
        z = (m[1, 2] + m[2, 1]) / s
    else:
        s = 2.0 * math.sqrt(1.0 + m[2, 2] - m[0, 0] - m[1, 1])
        w = (m[1, 0] - m[0, 1]) / s
        x = (m[0, 2] + m[2, 0]) / s
        y = (m[1, 2] + m[2, 1]) / s
        z = 0.25 * s
    return float(w), float(x), float(y), float(z)


def quaternion_to_matrix(q: tuple[float, float, float, float]) -> np.ndarray:
    w, x, y, z = q
    return np.array(
        [
            [1 - 2 * (y * y + z * z), 2 * (x * y - z * w), 2 * (x * z + y * w)],
            [2 * (x * y + z * w), 1 - 2 * (x * x + z * z), 2 * (y * z - x * w)],
            [2 * (x * z - y * w), 2 * (y * z + x * w), 1 - 2 * (x * x + y * y)],
        ]
    )


def heading_pitch_roll_quaternion(position: tuple, heading: float, pitch: float, roll: float) -> tuple[float, float, float, float]:
    return matrix_to_quaternion(heading_pitch_roll_frame(position, heading, pitch, roll))


def heading_pitch_range_vector(offset: HeadingPitchRange) -> np.ndarray:
    """
    Local east, north, up offset of a camera that looks at the origin
    with the given heading and pitch from range meters away.
    """
    cos_pitch = math.cos(offset.pitch)
    direction = np.array(
        [
            cos_pitch * math.sin(offset.heading),
            cos_pitch * math.cos(offset.heading),
            math.sin(offset.pitch),
        ]
    )
    return -offset.range * direction


def offset_position(position: tuple, local_offset) -> np.ndarray:
    """Cartesian point at a local east, north, up offset from position."""
    lon, lat, height = position
    origin = geodetic_to_cartesian(lon, lat, height)
    return origin + east_north_up_matrix(lon, lat) @ np.asarray(local_offset, dtype=float)


def camera_placement(position: tuple, view_from) -> tuple[np.ndarray, np.ndarray]:
    """
    Camera position and look-at point for viewing a target at position
    from the local offset view_from.
    """
    target = geodetic_to_cartesian(*position)
    return offset_position(position, view_from), target
