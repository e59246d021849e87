# hcb/errors.py
"""
Defines the exception types raised by the Haptic Command Bridge.
"""


class HcbError(Exception):
    """Base class for all errors raised by this package."""


class ValidationError(HcbError, ValueError):
    """Raised when a gesture receives an out-of-range parameter."""


class ServiceConnectionError(HcbError, ConnectionError):
    """Raised when the device-control service cannot be reached."""
