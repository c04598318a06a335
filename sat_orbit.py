"""
Sample satellite positions from TLE data.

Positions are reported as flat lists of (longitude, latitude, height)
triples, with longitude and latitude in radians and height in meters
above the WGS84 ellipsoid. SGP4 propagation is done by skyfield.
"""

import datetime
import math

from skyfield.api import load, wgs84  # type: ignore
from skyfield.api import EarthSatellite  # type: ignore

from errors import PropagationError

# Number of samples in an orbit track when none is requested.
DEFAULT_SAMPLES = 120

# TLE data is only trusted this many days either side of the epoch.
DEFAULT_VALID_DAYS = 14


def tle_name(tle_text: str) -> str:
    """
    Return the display name of a TLE record.

    The name is the first line. Some sources use the three line
    format with a "0 " prefix on the name line, which is dropped.
    """
    lines = [line.rstrip() for line in tle_text.strip().splitlines()]
    name = lines[0].strip()
    if lines[0].startswith("0 "):
        name = name[2:].strip()
    elif name.startswith("1 ") and len(lines) == 2:
        # No header line, fall back on the catalog number
        name = f"SAT {name[2:7].strip()}"
    return name


def split_tle_records(text: str) -> list[str]:
    """
    Split the contents of a TLE file into records of one satellite each.
    Both the two line and three line formats are accepted.
    """
    lines = [line.rstrip() for line in text.splitlines() if line.strip()]
    records = []
    i = 0
    while i < len(lines):
        if lines[i].startswith("1 ") and i + 1 < len(lines) and lines[i + 1].startswith("2 "):
            records.append("\n".join(lines[i : i + 2]))
            i += 2
        elif (
            i + 2 < len(lines)
            and lines[i + 1].startswith("1 ")
            and lines[i + 2].startswith("2 ")
        ):
            records.append("\n".join(lines[i : i + 3]))
            i += 3
        else:
            raise ValueError(f"Malformed TLE data near line: {lines[i]!r}")
    return records


def as_utc(time: datetime.datetime) -> datetime.datetime:
    """Naive datetimes are taken to be UTC."""
    if time.tzinfo is None:
        return time.replace(tzinfo=datetime.timezone.utc)
    return time


class SatelliteOrbit:
    """
    Computes the current position and the orbit track of one satellite.

    Results depend only on the arguments, so the same instance can be
    sampled any number of times per rendered frame.
    """

    def __init__(
        self,
        tle_text: str,
        valid_days: float | None = DEFAULT_VALID_DAYS,
        samples: int = DEFAULT_SAMPLES,
    ) -> None:
        lines = [line.strip() for line in tle_text.strip().splitlines() if line.strip()]
        if len(lines) == 3:
            line1, line2 = lines[1], lines[2]
        elif len(lines) == 2:
            line1, line2 = lines
        else:
            raise ValueError(f"TLE record must have 2 or 3 lines, got {len(lines)}")

        self.name = tle_name(tle_text)
        self.valid_days = valid_days
        self.samples = samples
        self.ts = load.timescale()
        self.satellite = EarthSatellite(line1, line2, self.name, self.ts)

    @property
    def epoch(self) -> datetime.datetime:
        return self.satellite.epoch.utc_datetime()

    @property
    def orbital_period(self) -> datetime.timedelta:
        # Mean motion is in radians per minute
        return datetime.timedelta(minutes=2 * math.pi / self.satellite.model.no_kozai)

    def sample_times(self, time: datetime.datetime, sample_count: int) -> list[datetime.datetime]:
        """
        Times for a track of sample_count points spread evenly over one
        orbital period centered on time.
        """
        if sample_count == 1:
            return [time]
        period = self.orbital_period
        return [
            time + period * (k / (sample_count - 1) - 0.5)
            for k in range(sample_count)
        ]

    def check_domain(self, time: datetime.datetime) -> None:
        if self.valid_days is None:
            return
        age = abs(time - self.epoch)
        if age > datetime.timedelta(days=self.valid_days):
            raise PropagationError(
                f"{self.name}: {time.isoformat()} is {age.days} days from the TLE epoch"
            )

    def compute_orbit_track(self, time: datetime.datetime, sample_count: int | None = None) -> list[float]:
        """
        Return a flat list of (longitude, latitude, height) triples.

        A sample_count of 1 gives the position at time. Larger counts give
        a window of past and future positions around time.
        """
        if sample_count is None:
            sample_count = self.samples
        if sample_count < 1:
            raise ValueError(f"sample_count must be at least 1, got {sample_count}")

        time = as_utc(time)
        self.check_domain(time)
        times = self.sample_times(time, sample_count)
        # The window edges are the farthest samples from the epoch
        self.check_domain(times[0])
        self.check_domain(times[-1])

        sf_time = self.ts.from_datetimes(times)
        geo = self.satellite.at(sf_time)
        lat, lon = wgs84.latlon_of(geo)
        height = wgs84.height_of(geo)

        track: list[float] = []
        for lon_rad, lat_rad, height_m in zip(lon.radians, lat.radians, height.m):
            if not (math.isfinite(lon_rad) and math.isfinite(lat_rad) and math.isfinite(height_m)):
                raise PropagationError(f"{self.name}: SGP4 failed near {time.isoformat()}")
            track.extend((float(lon_rad), float(lat_rad), float(height_m)))
        return track

    def position_at(self, time: datetime.datetime) -> tuple[float, float, float]:
        lon, lat, height = self.compute_orbit_track(time, 1)
        return lon, lat, height
