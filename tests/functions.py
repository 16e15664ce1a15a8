import threading
from typing import Callable, Dict, Hashable, List, Optional

from pytest import approx

from qiblacompass import GeoCoordinate
from qiblacompass.heading import OrientationCapability, RawOrientationEvent
from qiblacompass.location import GeolocationCapability, LocationFix, PositionOptions
from qiblacompass.errors import LocationUnavailable


def assert_coordinates_equal(c1: GeoCoordinate, c2: GeoCoordinate, abs_tol=1e-7):
    """
    Asserts that two coordinates are equal within a specified absolute tolerance.

    Args:
        c1: The first GeoCoordinate
        c2: The second GeoCoordinate
        abs_tol: The absolute tolerance for floating point comparison.
                 Default is 1e-7 (approx 1.1cm at the equator).
    """
    assert c1.latitude == approx(c2.latitude, abs=abs_tol)
    assert c1.longitude == approx(c2.longitude, abs=abs_tol)


class FakeOrientation(OrientationCapability):
    """Orientation feed driven by the test through .emit()"""

    def __init__(self, available: bool = True, permission: bool = True):
        self._available = available
        self.permission = permission
        self.listeners: List[Callable[[RawOrientationEvent], None]] = []
        self.permission_requests = 0

    @property
    def available(self) -> bool:
        return self._available

    def request_permission(self) -> bool:
        self.permission_requests += 1
        return self.permission

    def add_listener(self, callback):
        self.listeners.append(callback)

    def remove_listener(self, callback):
        self.listeners.remove(callback)

    def emit(self, **kwargs):
        event = RawOrientationEvent(**kwargs)
        for listener in list(self.listeners):
            listener(event)


class FakeGeolocation(GeolocationCapability):
    """
    Geolocation service that returns queued fixes or raises queued errors.

    When gated, get_current_position blocks until .release() is called.
    """

    def __init__(self, *results, gated: bool = False):
        self.results = list(results)
        self.gate = threading.Event()
        if not gated:
            self.gate.set()
        self.requests: List[PositionOptions] = []
        self.watches: Dict[Hashable, tuple] = {}
        self.cleared: List[Hashable] = []
        self._next_id = 0

    def release(self):
        self.gate.set()

    def get_current_position(self, options: PositionOptions) -> LocationFix:
        self.requests.append(options)
        assert self.gate.wait(timeout=5)
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result

    def watch_position(self, on_fix, on_error, options):
        self._next_id += 1
        self.watches[self._next_id] = (on_fix, on_error, options)
        return self._next_id

    def clear_watch(self, watch_id):
        self.cleared.append(watch_id)
        del self.watches[watch_id]

    def push(self, result, watch_id: Optional[Hashable] = None):
        """Deliver a fix or error to a watch (the latest one by default)"""
        on_fix, on_error, _ = self.watches[watch_id or max(self.watches)]
        if isinstance(result, LocationUnavailable):
            on_error(result)
        else:
            on_fix(result)
