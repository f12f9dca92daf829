"""
errors.py — Typed failures raised by the evolving-string core.

The core never exits the process and never retries; every failure is raised
to the caller (CLI, Flask routes) which decides how to report it.
"""


class EvolvingStringError(Exception):
    """Base class for every error raised by evolvingstring."""


class InvalidInterval(EvolvingStringError, ValueError):
    """Interval is zero, negative, or not an unsigned 64-bit integer."""


class InvalidOffset(EvolvingStringError, ValueError):
    """Prediction offset is negative or not an unsigned 64-bit integer."""


class ClockSkew(EvolvingStringError):
    """Wall-clock "now" is earlier than the generator epoch."""


class DecodeError(EvolvingStringError, ValueError):
    """Serialized state is not valid base64."""


class FormatError(EvolvingStringError, ValueError):
    """Decoded payload does not have the expected four fields."""


class InvalidTimestamp(EvolvingStringError, ValueError):
    """Timestamp text does not match YYYY-MM-DDTHH:MM:SS±HHMM."""


class PastTimestamp(EvolvingStringError, ValueError):
    """Requested target time lies in the past."""
