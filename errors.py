"""
Exceptions raised by the satellite viewer.
"""


class SatviewError(Exception):
    """Base class for satview errors."""


class PropagationError(SatviewError):
    """The requested time is outside the range the propagator can handle."""


class ConfigError(SatviewError):
    """A configuration file or value could not be used."""
