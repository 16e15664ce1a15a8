from qiblacompass._version import __version__  # noqa: F401
from qiblacompass.utils.logging import LOGGER, set_log_level
from qiblacompass.coordinates import KAABA, GeoCoordinate
from qiblacompass.errors import (
    InvalidCoordinate, LocationUnavailable, OrientationUnavailable, PositionErrorCode,
    QiblaError
)
from qiblacompass.heading import (
    HeadingKind, HeadingSample, HeadingSource, OrientationCapability, RawOrientationEvent,
    normalize
)
from qiblacompass.location import (
    GeolocationCapability, LocationFix, LocationSubscription, LocationTracker,
    PositionOptions
)
from qiblacompass.reconciler import AlignmentReconciler, AlignmentSnapshot
from qiblacompass.session import QiblaSession


__all__ = [
    'AlignmentReconciler',
    'AlignmentSnapshot',
    'GeoCoordinate',
    'GeolocationCapability',
    'HeadingKind',
    'HeadingSample',
    'HeadingSource',
    'InvalidCoordinate',
    'KAABA',
    'LocationFix',
    'LocationSubscription',
    'LocationTracker',
    'LocationUnavailable',
    'OrientationCapability',
    'OrientationUnavailable',
    'PositionErrorCode',
    'PositionOptions',
    'QiblaError',
    'QiblaSession',
    'RawOrientationEvent',
    'normalize',
    'LOGGER',
    'set_log_level',
]
