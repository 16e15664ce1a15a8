"""
Normalization of device orientation events into compass headings.

Devices report heading in one of several conventions: an explicit compass heading
(clockwise from north, e.g. Safari's ``webkitCompassHeading``), or a raw orientation
``alpha`` that increases counter-clockwise. ``normalize`` resolves each event to a
single clockwise-from-north azimuth, and ``HeadingSource`` turns an injected
orientation capability into a stream of those samples.
"""

from __future__ import annotations

__all__ = [
    'HeadingKind', 'HeadingSample', 'HeadingSource', 'OrientationCapability',
    'RawOrientationEvent', 'normalize'
]

import abc
from datetime import datetime, timezone
from enum import Enum
import math
from typing import Callable, List, Optional

from pydantic import validate_call

from qiblacompass.errors import OrientationUnavailable
from qiblacompass.utils.functions import default_to_zulu, wrap_degrees
from qiblacompass.utils.mixins import LoggingMixin


class HeadingKind(Enum):
    """Where a heading sample came from"""
    ABSOLUTE = 'absolute'
    MAGNETIC_UNCALIBRATED = 'magnetic_uncalibrated'
    UNAVAILABLE = 'unavailable'


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _usable(value: Optional[float]) -> bool:
    return value is not None and math.isfinite(value)


class RawOrientationEvent:
    """
    A device orientation event as delivered by the platform.

    Args:
        alpha:
            (Optional) Rotation around the z axis in degrees, increasing counter-clockwise

        absolute:
            (Default False) Whether the platform reports the event relative to the earth's
            frame rather than an arbitrary one

        compass_heading:
            (Optional) A vendor-specific compass heading, clockwise from north

        timestamp:
            (Optional) When the event was observed; defaults to now (UTC)
    """

    @validate_call
    def __init__(
        self,
        alpha: Optional[float] = None,
        absolute: bool = False,
        compass_heading: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ):
        self.alpha = alpha
        self.absolute = absolute
        self.compass_heading = compass_heading
        self.timestamp = default_to_zulu(timestamp) if timestamp else _now()

    def __repr__(self):
        return (
            f'<RawOrientationEvent alpha={self.alpha} absolute={self.absolute} '
            f'compass_heading={self.compass_heading}>'
        )


class HeadingSample:
    """
    A normalized heading, in degrees clockwise from north.

    The azimuth is None if and only if the source is UNAVAILABLE. Azimuths outside
    [0, 360) are wrapped into it.
    """

    @validate_call
    def __init__(
        self,
        azimuth: Optional[float],
        source: HeadingKind,
        timestamp: Optional[datetime] = None,
    ):
        if source is HeadingKind.UNAVAILABLE:
            if azimuth is not None:
                raise ValueError('An unavailable heading sample cannot carry an azimuth')
        elif azimuth is None or not math.isfinite(azimuth):
            raise ValueError(f'A {source.name} heading sample requires a finite azimuth')
        else:
            azimuth = wrap_degrees(azimuth)

        self.azimuth = azimuth
        self.source = source
        self.timestamp = default_to_zulu(timestamp) if timestamp else _now()

    def __eq__(self, other):
        if not isinstance(other, HeadingSample):
            return False

        return (
            self.azimuth == other.azimuth and
            self.source == other.source and
            self.timestamp == other.timestamp
        )

    def __hash__(self):
        return hash((self.azimuth, self.source, self.timestamp))

    def __repr__(self):
        return f'<HeadingSample {self.azimuth} ({self.source.name}) at {self.timestamp.isoformat()}>'

    @property
    def available(self) -> bool:
        return self.source is not HeadingKind.UNAVAILABLE

    @classmethod
    def unavailable(cls, timestamp: Optional[datetime] = None) -> 'HeadingSample':
        return cls(None, HeadingKind.UNAVAILABLE, timestamp)


def normalize(raw: RawOrientationEvent) -> HeadingSample:
    """
    Resolve a raw orientation event into a heading sample.

    In priority order:
        1. An explicit compass heading is used verbatim; the sample is ABSOLUTE if the
           event is flagged absolute, otherwise MAGNETIC_UNCALIBRATED.
        2. Otherwise alpha is converted with (360 - alpha) mod 360, since alpha
           increases counter-clockwise. MAGNETIC_UNCALIBRATED.
        3. Otherwise the sample is UNAVAILABLE.

    Args:
        raw:
            The platform orientation event

    Returns:
        HeadingSample
    """
    if _usable(raw.compass_heading):
        kind = HeadingKind.ABSOLUTE if raw.absolute else HeadingKind.MAGNETIC_UNCALIBRATED
        return HeadingSample(raw.compass_heading, kind, raw.timestamp)

    if _usable(raw.alpha):
        return HeadingSample(
            (360 - raw.alpha) % 360, HeadingKind.MAGNETIC_UNCALIBRATED, raw.timestamp
        )

    return HeadingSample.unavailable(raw.timestamp)


class OrientationCapability(abc.ABC):
    """
    The platform's device-orientation feed. Implementations push RawOrientationEvents
    to every registered listener.
    """

    @property
    def available(self) -> bool:
        """Whether the platform has an orientation sensor at all"""
        return True

    def request_permission(self) -> bool:
        """
        Ask the platform for permission to read orientation. Platforms that need no
        permission return True.
        """
        return True

    @abc.abstractmethod
    def add_listener(self, callback: Callable[[RawOrientationEvent], None]) -> None:
        """Start delivering events to callback"""

    @abc.abstractmethod
    def remove_listener(self, callback: Callable[[RawOrientationEvent], None]) -> None:
        """Stop delivering events to callback"""


class HeadingSource(LoggingMixin):
    """
    A push feed of normalized heading samples.

    Each raw event yields exactly one sample, which replaces the previous one and is
    delivered once to each subscriber. Nothing is buffered or smoothed.

    Listeners run in subscription order on the thread that delivered the raw event; an
    exception raised by a listener propagates to that thread and later listeners do
    not see the sample.

    If the capability is missing, unsupported, or permission is denied, the source
    becomes permanently unavailable: it emits a single UNAVAILABLE sample, records the
    reason in ``error``, and never retries.

    Args:
        capability:
            The platform orientation feed, or None if the platform has none
    """

    def __init__(self, capability: Optional[OrientationCapability]):
        super().__init__()
        self.capability = capability
        self.error: Optional[OrientationUnavailable] = None
        self.latest: Optional[HeadingSample] = None
        self._listeners: List[Callable[[HeadingSample], None]] = []
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    @property
    def permanently_unavailable(self) -> bool:
        return self.error is not None

    def subscribe(self, listener: Callable[[HeadingSample], None]) -> Callable[[], None]:
        """
        Register a listener for new samples.

        Returns:
            A callable that removes the listener; calling it more than once is a no-op
        """
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def start(self) -> None:
        """Attach to the orientation capability. A no-op if already running or unavailable."""
        if self._running or self.permanently_unavailable:
            return

        if self.capability is None or not self.capability.available:
            self._mark_unavailable('Device orientation is not supported on this platform')
            return

        if not self.capability.request_permission():
            self._mark_unavailable('Permission to read device orientation was denied')
            return

        self.capability.add_listener(self.handle_event)
        self._running = True
        self.logger.debug('Heading source started')

    def stop(self) -> None:
        """Detach from the orientation capability. Stopping twice is a no-op."""
        if not self._running:
            return

        self.capability.remove_listener(self.handle_event)
        self._running = False
        self.logger.debug('Heading source stopped')

    def handle_event(self, raw: RawOrientationEvent) -> HeadingSample:
        """Normalize one raw event and deliver the result"""
        sample = normalize(raw)
        self._emit(sample)
        return sample

    def _emit(self, sample: HeadingSample) -> None:
        self.latest = sample
        for listener in list(self._listeners):
            listener(sample)

    def _mark_unavailable(self, reason: str) -> None:
        self.error = OrientationUnavailable(reason)
        self.logger.warning('%s; heading will remain unavailable', reason)
        self._emit(HeadingSample.unavailable())
