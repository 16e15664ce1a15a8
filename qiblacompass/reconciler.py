"""
Reconciliation of the target bearing with the live compass heading.
"""

__all__ = ['AlignmentReconciler', 'AlignmentSnapshot', 'dial_rotation', 'signed_deviation']

import math
import threading
from typing import Callable, List, Optional

from qiblacompass import geodesy
from qiblacompass.coordinates import KAABA, GeoCoordinate
from qiblacompass.errors import InvalidCoordinate
from qiblacompass.heading import HeadingKind, HeadingSample
from qiblacompass.utils.functions import round_half_up, wrap_degrees
from qiblacompass.utils.mixins import LoggingMixin


def signed_deviation(target_bearing: float, heading: float) -> float:
    """
    How far, in degrees, the user must turn to face target_bearing from heading.
    Positive is clockwise.

    Returns:
        (float) the deviation in (-180, 180]
    """
    deviation = ((target_bearing - heading + 540) % 360) - 180
    if deviation <= -180:
        return 180.0

    return deviation


def dial_rotation(target_bearing: float, heading: float) -> float:
    """
    The same turn as signed_deviation, expressed as a clockwise dial rotation in [0, 360).
    """
    return wrap_degrees(target_bearing - heading)


class AlignmentSnapshot:
    """
    Everything a renderer needs to draw the compass at one instant.

    Any field may be None while its inputs are pending; renderers must show a
    "calculating" state rather than treating None as 0.

    Attributes:
        target_bearing:
            Bearing to the reference point, degrees clockwise from true north

        current_heading:
            The device heading, degrees clockwise from north

        signed_deviation:
            Turn needed to face the target, in (-180, 180]; positive is clockwise

        rotation:
            The same turn in [0, 360), for dial display

        distance:
            Great-circle distance to the reference point, in meters

        accuracy:
            Accuracy of the location fix, in meters, if the platform reported one

        heading_source:
            The kind of the latest heading sample

        degenerate:
            True when the device stands at (or opposite) the reference point, where
            every direction is equally valid and target_bearing is reported as 0
    """

    __slots__ = (
        'target_bearing', 'current_heading', 'signed_deviation', 'rotation',
        'distance', 'accuracy', 'heading_source', 'degenerate'
    )

    def __init__(
        self,
        target_bearing: Optional[float] = None,
        current_heading: Optional[float] = None,
        distance: Optional[float] = None,
        accuracy: Optional[float] = None,
        heading_source: Optional[HeadingKind] = None,
        degenerate: bool = False,
    ):
        values = dict(
            target_bearing=target_bearing,
            current_heading=current_heading,
            distance=distance,
            accuracy=accuracy,
            heading_source=heading_source,
            degenerate=degenerate,
            signed_deviation=None,
            rotation=None,
        )
        if target_bearing is not None and current_heading is not None:
            values['signed_deviation'] = signed_deviation(target_bearing, current_heading)
            values['rotation'] = dial_rotation(target_bearing, current_heading)

        for key, value in values.items():
            object.__setattr__(self, key, value)

    def __setattr__(self, key, value):
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    def _key(self):
        return tuple(getattr(self, x) for x in self.__slots__)

    def __eq__(self, other):
        if not isinstance(other, AlignmentSnapshot):
            return False

        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __repr__(self):
        def fmt(value, precision=2):
            return 'pending' if value is None else str(round_half_up(value, precision))

        return (
            f'<AlignmentSnapshot bearing={fmt(self.target_bearing)} '
            f'heading={fmt(self.current_heading)} deviation={fmt(self.signed_deviation)} '
            f'distance={fmt(self.distance, 0)}>'
        )

    @property
    def pending(self) -> bool:
        """Whether the snapshot is still missing a location or a heading"""
        return self.signed_deviation is None

    def is_aligned(self, tolerance: float = 5.0) -> bool:
        """
        Whether the device faces the target within tolerance degrees. Always False
        while pending.
        """
        if self.signed_deviation is None:
            return False

        return abs(self.signed_deviation) <= tolerance


class AlignmentReconciler(LoggingMixin):
    """
    Combines the latest location and heading into AlignmentSnapshots.

    The target bearing and distance are only recomputed when the location changes;
    every heading tick reuses them. The deviation is always derived from the two
    latest absolute values, never accumulated across updates.

    Updates and the snapshots they produce are serialized by a single lock, so
    location and heading updates may arrive from different threads. Listeners are
    notified while the lock is held, in update order.

    Args:
        destination:
            (Default the Kaaba) The fixed reference point
    """

    def __init__(self, destination: GeoCoordinate = KAABA):
        super().__init__()
        self.destination = GeoCoordinate.ensure(destination)
        self._lock = threading.RLock()
        self._listeners: List[Callable[[AlignmentSnapshot], None]] = []

        self._coordinate: Optional[GeoCoordinate] = None
        self._bearing: Optional[float] = None
        self._distance: Optional[float] = None
        self._accuracy: Optional[float] = None
        self._degenerate = False
        self._heading: Optional[HeadingSample] = None

    @property
    def coordinate(self) -> Optional[GeoCoordinate]:
        """The last known location"""
        return self._coordinate

    @property
    def heading(self) -> Optional[HeadingSample]:
        """The last heading sample"""
        return self._heading

    def subscribe(self, listener: Callable[[AlignmentSnapshot], None]) -> Callable[[], None]:
        """
        Register a listener that receives the new snapshot after every update.

        Returns:
            A callable that removes the listener; calling it more than once is a no-op
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def on_location_update(
        self,
        coordinate: GeoCoordinate,
        accuracy: Optional[float] = None,
    ) -> AlignmentSnapshot:
        """
        Record a new location and recompute the bearing and distance to the destination.

        Raises:
            InvalidCoordinate: if the coordinate or accuracy is malformed; prior state
                is kept
        """
        coordinate = GeoCoordinate.ensure(coordinate)
        if accuracy is not None:
            try:
                accuracy = float(accuracy)
            except (TypeError, ValueError) as exc:
                raise InvalidCoordinate(f'Accuracy must be a number, got {accuracy!r}') from exc
            if not math.isfinite(accuracy) or accuracy < 0:
                raise InvalidCoordinate(
                    f'Accuracy must be a non-negative distance in meters, got {accuracy!r}'
                )

        with self._lock:
            self._bearing = geodesy.bearing_degrees(coordinate, self.destination)
            self._distance = geodesy.distance_meters(coordinate, self.destination)
            self._degenerate = geodesy.is_degenerate(coordinate, self.destination)
            self._coordinate = coordinate
            self._accuracy = accuracy
            self.logger.debug(
                'Location %r: bearing %s, distance %s', coordinate, self._bearing, self._distance
            )
            return self._publish()

    def on_heading_update(self, sample: HeadingSample) -> AlignmentSnapshot:
        """Record a new heading sample"""
        with self._lock:
            if not sample.available:
                self.logger.debug('Heading unavailable')
            self._heading = sample
            return self._publish()

    def current_snapshot(self) -> AlignmentSnapshot:
        """The snapshot for the current state; no side effects"""
        with self._lock:
            heading = self._heading
            return AlignmentSnapshot(
                target_bearing=self._bearing,
                current_heading=heading.azimuth if heading is not None else None,
                distance=self._distance,
                accuracy=self._accuracy,
                heading_source=heading.source if heading is not None else None,
                degenerate=self._degenerate,
            )

    def _publish(self) -> AlignmentSnapshot:
        snapshot = self.current_snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

        return snapshot
