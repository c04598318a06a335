"""
Viewer settings read from an INI file.

Example:

    [orbit]
    samples = 120
    valid_days = 14

    [camera]
    heading = 0
    pitch = -45
    range = 1580000
    flight_duration = 3

    [clock]
    time_rate = 10

    [display]
    selection = stations
    max_satellites = 50
    cone_fov = 10
    log_level = INFO
"""

import configparser
import math
from typing import Literal

from pydantic import BaseModel, Field, ValidationError, field_validator

from errors import ConfigError
from sat_orbit import DEFAULT_SAMPLES, DEFAULT_VALID_DAYS
from sim_clock import DEFAULT_TIME_RATE
from viewport import HeadingPitchRange

SECTIONS = ("orbit", "camera", "clock", "display")


class OrbitSettings(BaseModel):
    samples: int = Field(DEFAULT_SAMPLES, ge=1)
    # 0 means no limit
    valid_days: float = Field(DEFAULT_VALID_DAYS, ge=0)

    def valid_days_limit(self) -> float | None:
        return self.valid_days or None


class CameraSettings(BaseModel):
    heading: float = 0.0  # degrees
    pitch: float = Field(-45.0, ge=-90, le=90)  # degrees
    range: float = Field(1580000.0, gt=0)  # meters
    flight_duration: float = Field(3.0, ge=0)  # seconds

    def offset(self) -> HeadingPitchRange:
        return HeadingPitchRange(math.radians(self.heading), math.radians(self.pitch), self.range)


class ClockSettings(BaseModel):
    time_rate: float = Field(DEFAULT_TIME_RATE, gt=0)


class DisplaySettings(BaseModel):
    selection: str = "stations"
    max_satellites: int = Field(50, ge=1)
    cone_fov: float = Field(10.0, gt=0, lt=90)  # degrees
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_case_level(cls, value):
        if isinstance(value, str):
            return value.upper()
        return value


class ViewerConfig(BaseModel):
    orbit: OrbitSettings = Field(default_factory=OrbitSettings)
    camera: CameraSettings = Field(default_factory=CameraSettings)
    clock: ClockSettings = Field(default_factory=ClockSettings)
    display: DisplaySettings = Field(default_factory=DisplaySettings)


def load_config(path: str | None = None) -> ViewerConfig:
    """
    Read settings from path, using defaults for anything not given.
    Raises ConfigError if the file can't be read or a value is invalid.
    """
    parser = configparser.ConfigParser()
    for section in SECTIONS:
        parser[section] = {}
    if path is not None:
        try:
            read = parser.read(path)
        except configparser.Error as e:
            raise ConfigError(f"{path}: {e}") from e
        if len(read) == 0:
            raise ConfigError(f"{path}: unable to read config file")

    try:
        return ViewerConfig(**{section: dict(parser[section]) for section in SECTIONS})
    except ValidationError as e:
        raise ConfigError(str(e)) from e


def apply_overrides(config: ViewerConfig, selection: str | None = None, time_rate=None) -> ViewerConfig:
    """
    Return a copy of config with command line values applied.
    Raises ConfigError if an override is invalid.
    """
    settings = config.model_dump()
    if selection is not None:
        settings["display"]["selection"] = selection
    if time_rate is not None:
        settings["clock"]["time_rate"] = time_rate
    try:
        return ViewerConfig.model_validate(settings)
    except ValidationError as e:
        raise ConfigError(str(e)) from e
