"""
Acquisition of location fixes from an injected platform geolocation capability.

Acquiring a fix can take seconds, so one-shot requests run on a worker thread and
are handed back as futures; continuous tracking is exposed as a cancelable
subscription.
"""

from __future__ import annotations

__all__ = [
    'GeolocationCapability', 'LocationFix', 'LocationSubscription', 'LocationTracker',
    'PositionOptions'
]

import abc
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
import threading
from typing import Any, Callable, Hashable, List, Optional

from pydantic import NonNegativeFloat, PositiveFloat, validate_call

from qiblacompass.coordinates import GeoCoordinate
from qiblacompass.errors import LocationUnavailable, PositionErrorCode
from qiblacompass.utils.functions import default_to_zulu
from qiblacompass.utils.mixins import LoggingMixin


class PositionOptions:
    """
    Options passed to the platform when acquiring a position.

    Args:
        high_accuracy:
            (Default True) Prefer the most accurate source (e.g. GPS) over a fast one

        timeout:
            (Default 5.0) Seconds to wait for a fix before failing with TIMEOUT

        maximum_age:
            (Default 0.0) Maximum age, in seconds, of a cached position the platform
            may return instead of acquiring a new one
    """

    @validate_call
    def __init__(
        self,
        high_accuracy: bool = True,
        timeout: PositiveFloat = 5.0,
        maximum_age: NonNegativeFloat = 0.0,
    ):
        self.high_accuracy = high_accuracy
        self.timeout = timeout
        self.maximum_age = maximum_age

    def __eq__(self, other):
        if not isinstance(other, PositionOptions):
            return False

        return (
            self.high_accuracy == other.high_accuracy and
            self.timeout == other.timeout and
            self.maximum_age == other.maximum_age
        )

    def __repr__(self):
        return (
            f'<PositionOptions high_accuracy={self.high_accuracy} timeout={self.timeout} '
            f'maximum_age={self.maximum_age}>'
        )


class LocationFix:
    """
    A single position reported by the platform.

    Args:
        coordinate:
            The position

        accuracy:
            (Optional) Radius of uncertainty, in meters

        timestamp:
            (Optional) When the position was acquired; defaults to now (UTC)
    """

    @validate_call(config=dict(arbitrary_types_allowed=True))
    def __init__(
        self,
        coordinate: GeoCoordinate,
        accuracy: Optional[NonNegativeFloat] = None,
        timestamp: Optional[datetime] = None,
    ):
        self.coordinate = coordinate
        self.accuracy = accuracy
        self.timestamp = default_to_zulu(timestamp) if timestamp else datetime.now(timezone.utc)

    def __eq__(self, other):
        if not isinstance(other, LocationFix):
            return False

        return (
            self.coordinate == other.coordinate and
            self.accuracy == other.accuracy and
            self.timestamp == other.timestamp
        )

    def __repr__(self):
        return f'<LocationFix {self.coordinate!r} ±{self.accuracy}m at {self.timestamp.isoformat()}>'


class GeolocationCapability(abc.ABC):
    """The platform's geolocation service"""

    @abc.abstractmethod
    def get_current_position(self, options: PositionOptions) -> LocationFix:
        """
        Acquire a single fix. May block for up to options.timeout seconds.

        Raises:
            LocationUnavailable: on permission denial, timeout, or no position
        """

    @abc.abstractmethod
    def watch_position(
        self,
        on_fix: Callable[[LocationFix], None],
        on_error: Callable[[LocationUnavailable], None],
        options: PositionOptions,
    ) -> Hashable:
        """
        Deliver fixes to on_fix as the position changes, and failures to on_error.

        Returns:
            An identifier to pass to clear_watch
        """

    @abc.abstractmethod
    def clear_watch(self, watch_id: Hashable) -> None:
        """Stop a watch started with watch_position"""


class LocationSubscription:
    """
    Handle on a continuous location watch. Cancelling more than once is a no-op.
    """

    def __init__(
        self,
        capability: GeolocationCapability,
        watch_id: Hashable,
        on_cancel: Optional[Callable[[LocationSubscription], Any]] = None,
    ):
        self._capability = capability
        self._watch_id = watch_id
        self._on_cancel = on_cancel
        self._lock = threading.Lock()
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        with self._lock:
            if not self._active:
                return
            self._active = False

        self._capability.clear_watch(self._watch_id)
        if self._on_cancel is not None:
            self._on_cancel(self)


class LocationTracker(LoggingMixin):
    """
    Feeds location fixes from a geolocation capability to a consumer.

    One-shot requests run on a single background worker so that slow fixes never
    stall heading processing on the caller's thread. A failed fix is logged and
    surfaced through the returned future; it is not retried, and on_fix is not
    called, so consumer state from earlier fixes stays intact.

    Args:
        capability:
            The platform geolocation service, or None if the platform has none

        on_fix:
            Called with every successful fix

        on_error:
            (Optional) Called with errors reported by continuous watches

        options:
            (Optional) Acquisition options; see PositionOptions
    """

    def __init__(
        self,
        capability: Optional[GeolocationCapability],
        on_fix: Callable[[LocationFix], Any],
        on_error: Optional[Callable[[LocationUnavailable], Any]] = None,
        options: Optional[PositionOptions] = None,
    ):
        super().__init__()
        self.capability = capability
        self.on_fix = on_fix
        self.on_error = on_error
        self.options = options or PositionOptions()
        self._executor = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix='qiblacompass-location'
        )
        self._lock = threading.Lock()
        self._subscriptions: List[LocationSubscription] = []
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def subscriptions(self) -> List[LocationSubscription]:
        """The watches that are still active"""
        with self._lock:
            return list(self._subscriptions)

    def _unsupported(self) -> LocationUnavailable:
        if self._closed:
            return LocationUnavailable(
                PositionErrorCode.POSITION_UNAVAILABLE, 'Location tracker is closed'
            )

        return LocationUnavailable(
            PositionErrorCode.POSITION_UNAVAILABLE,
            'Geolocation is not supported on this platform'
        )

    def _forget(self, subscription: LocationSubscription) -> None:
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

    def _acquire(self) -> LocationFix:
        try:
            fix = self.capability.get_current_position(self.options)
        except LocationUnavailable as exc:
            self.logger.warning('Location fix failed: %s', exc)
            raise

        self.logger.debug('Acquired %r', fix)
        self.on_fix(fix)
        return fix

    def request_fix(self) -> Future:
        """
        Request a single fix in the background.

        Returns:
            A Future resolving to the LocationFix, or failing with LocationUnavailable.
            After close() the future has already failed.
        """
        with self._lock:
            if self.capability is not None and not self._closed:
                return self._executor.submit(self._acquire)

        future: Future = Future()
        exc = self._unsupported()
        self.logger.warning('Location fix failed: %s', exc)
        future.set_exception(exc)
        return future

    def _handle_watch_error(self, exc: LocationUnavailable) -> None:
        self.logger.warning('Location watch reported an error: %s', exc)
        if self.on_error is not None:
            self.on_error(exc)

    def watch(self) -> LocationSubscription:
        """
        Track the position continuously until the returned subscription is cancelled.

        Cancelled subscriptions are dropped from the tracker.

        Raises:
            LocationUnavailable: if the platform has no geolocation service, or the
                tracker is closed
        """
        if self.capability is None or self._closed:
            raise self._unsupported()

        watch_id = self.capability.watch_position(
            self.on_fix, self._handle_watch_error, self.options
        )
        subscription = LocationSubscription(self.capability, watch_id, on_cancel=self._forget)
        with self._lock:
            self._subscriptions.append(subscription)
        self.logger.debug('Started location watch %r', watch_id)
        return subscription

    def close(self) -> None:
        """
        Cancel all watches and shut down the background worker. Later fix requests
        fail with LocationUnavailable. Closing twice is a no-op.
        """
        with self._lock:
            if self._closed:
                return
            self._closed = True
            subscriptions = list(self._subscriptions)

        for subscription in subscriptions:
            subscription.cancel()
        self._executor.shutdown(wait=False)
