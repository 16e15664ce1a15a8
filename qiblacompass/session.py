"""
Wiring of location, heading and reconciliation into a single qibla compass.
"""

__all__ = ['QiblaSession']

from concurrent.futures import Future
from typing import Any, Callable, Optional

from qiblacompass.coordinates import KAABA, GeoCoordinate
from qiblacompass.errors import LocationUnavailable
from qiblacompass.heading import HeadingSource, OrientationCapability
from qiblacompass.location import (
    GeolocationCapability, LocationFix, LocationSubscription, LocationTracker,
    PositionOptions
)
from qiblacompass.reconciler import AlignmentReconciler, AlignmentSnapshot


class QiblaSession:
    """
    A running qibla compass.

    Heading samples flow from the orientation capability into the reconciler on the
    caller's thread; location fixes are acquired in the background and applied as
    they arrive. Subscribers receive a fresh AlignmentSnapshot after every update.

    Args:
        geolocation:
            The platform geolocation service, or None if the platform has none

        orientation:
            The platform orientation feed, or None if the platform has none

        watch_location:
            (Default False) Track the position continuously instead of taking a
            single fix on start

        options:
            (Optional) Location acquisition options

        destination:
            (Default the Kaaba) The reference point to face

        on_location_error:
            (Optional) Called with every LocationUnavailable reported while watching
            location. One-shot failures are raised through the returned futures.
    """

    def __init__(
        self,
        geolocation: Optional[GeolocationCapability],
        orientation: Optional[OrientationCapability],
        watch_location: bool = False,
        options: Optional[PositionOptions] = None,
        destination: GeoCoordinate = KAABA,
        on_location_error: Optional[Callable[[LocationUnavailable], Any]] = None,
    ):
        self.reconciler = AlignmentReconciler(destination)
        self.heading = HeadingSource(orientation)
        self.heading.subscribe(self.reconciler.on_heading_update)
        self.location = LocationTracker(
            geolocation, self._apply_fix, on_error=on_location_error, options=options
        )
        self.watch_location = watch_location
        self._subscription: Optional[LocationSubscription] = None
        self._started = False

    def _apply_fix(self, fix: LocationFix) -> None:
        self.reconciler.on_location_update(fix.coordinate, fix.accuracy)

    @property
    def snapshot(self) -> AlignmentSnapshot:
        return self.reconciler.current_snapshot()

    def subscribe(self, listener: Callable[[AlignmentSnapshot], None]) -> Callable[[], None]:
        return self.reconciler.subscribe(listener)

    def start(self) -> Optional[Future]:
        """
        Start the heading feed and begin acquiring location.

        Returns:
            The Future of the initial one-shot fix, or None when watching location
            or when already started

        Raises:
            LocationUnavailable: if watching location on a platform without geolocation
        """
        if self._started:
            return None

        self._started = True
        self.heading.start()
        if self.watch_location:
            self._subscription = self.location.watch()
            return None

        return self.location.request_fix()

    def refresh_location(self) -> Future:
        """Take a new one-shot fix; the current snapshot is kept until it arrives"""
        return self.location.request_fix()

    def stop(self) -> None:
        """Stop the heading feed and any location watch. Stopping twice is a no-op."""
        if not self._started:
            return

        self._started = False
        self.heading.stop()
        if self._subscription is not None:
            self._subscription.cancel()
            self._subscription = None

    def close(self) -> None:
        self.stop()
        self.location.close()
