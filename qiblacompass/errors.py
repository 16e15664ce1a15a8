"""Exception types raised by qiblacompass"""

__all__ = [
    'InvalidCoordinate', 'LocationUnavailable', 'OrientationUnavailable',
    'PositionErrorCode', 'QiblaError'
]

from enum import IntEnum
from typing import Optional


class PositionErrorCode(IntEnum):
    """Geolocation failure codes, numbered as in the W3C Geolocation API"""
    PERMISSION_DENIED = 1
    POSITION_UNAVAILABLE = 2
    TIMEOUT = 3


class QiblaError(Exception):
    """Base class for all qiblacompass errors"""


class InvalidCoordinate(QiblaError, ValueError):
    """A latitude or longitude was out of range or not a finite number"""


class LocationUnavailable(QiblaError):
    """
    A location fix could not be acquired.

    Args:
        code:
            The reason for the failure

        message:
            (Optional) A human-readable description, as reported by the platform
    """

    def __init__(self, code: PositionErrorCode, message: Optional[str] = None):
        self.code = PositionErrorCode(code)
        self.message = message or self.code.name.replace('_', ' ').lower()
        super().__init__(f'{self.code.name}: {self.message}')


class OrientationUnavailable(QiblaError):
    """The device orientation capability is absent or permission was denied"""
