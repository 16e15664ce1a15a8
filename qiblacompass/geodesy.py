"""
Great-circle bearing and distance calculations.

Supports switching between Haversine (sphere) and Karney (ellipsoid) calculations.
Callers should look the active implementation up through the module, e.g.
``geodesy.bearing_degrees(...)``, so that ``set_geodesic_algorithm`` takes effect.
"""

__all__ = [
    'haversine_bearing', 'haversine_destination', 'haversine_distance',
    'karney_bearing', 'karney_destination', 'karney_distance',
    'bearing_degrees', 'destination_point', 'distance_meters',
    'bearing_degrees_many', 'distance_meters_many',
    'is_degenerate', 'set_geodesic_algorithm',
]

import math
from typing import Literal, Sequence, Tuple, Union

import numpy as np

from qiblacompass._const import DEGENERATE_EPSILON, EARTH_RADIUS_METERS
from qiblacompass.coordinates import KAABA, GeoCoordinate
from qiblacompass.errors import InvalidCoordinate
from qiblacompass.utils.functions import wrap_degrees
from qiblacompass.utils.logging import warn_once

CoordinateLike = Union[GeoCoordinate, Sequence[float]]

_DEGENERATE_WARNING = (
    'Bearing is undefined between coincident or antipodal points; 0.0 returned. '
    '(this warning will not repeat)'
)


def _bearing_components(origin: GeoCoordinate, destination: GeoCoordinate) -> Tuple[float, float]:
    """Returns the (y, x) arguments of the initial bearing atan2"""
    lat1, lat2 = math.radians(origin.latitude), math.radians(destination.latitude)
    dlon = math.radians(destination.longitude) - math.radians(origin.longitude)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    return y, x


def is_degenerate(origin: CoordinateLike, destination: CoordinateLike) -> bool:
    """
    Whether the initial bearing between two points is undefined, i.e. the points
    coincide or are antipodal and every direction is a valid great circle.
    """
    y, x = _bearing_components(GeoCoordinate.ensure(origin), GeoCoordinate.ensure(destination))
    return abs(y) < DEGENERATE_EPSILON and abs(x) < DEGENERATE_EPSILON


# -------------------------------------------------------------------------
# Haversine Implementation (Spherical)
# -------------------------------------------------------------------------

def haversine_distance(coord1: CoordinateLike, coord2: CoordinateLike) -> float:
    """
    Calculate the great-circle distance in meters using the Haversine formula
    (spherical earth, mean radius 6,371 km).

    Args:
        coord1:
            A coordinate

        coord2:
            A second coordinate

    Returns:
        (float) the distance in meters
    """
    coord1, coord2 = GeoCoordinate.ensure(coord1), GeoCoordinate.ensure(coord2)
    lon1, lat1 = math.radians(coord1.longitude), math.radians(coord1.latitude)
    lon2, lat2 = math.radians(coord2.longitude), math.radians(coord2.latitude)

    dlon = lon2 - lon1
    dlat = lat2 - lat1

    a = (math.sin(dlat / 2) ** 2 +
         math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2)
    # Rounding can push a fraction past 1 for antipodal points
    a = min(a, 1.0)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_METERS * c


def haversine_destination(
        start: CoordinateLike,
        bearing: float,
        distance: float,
) -> GeoCoordinate:
    """
    Give a start location, a direction of travel (in degrees clockwise from North), and a
    distance of travel, returns the finish location.

    Args:
        start:
            The starting location

        bearing:
            The angle of heading, in degrees

        distance:
            The amount of movement, in meters

    Returns:
        GeoCoordinate
    """
    start = GeoCoordinate.ensure(start)
    lon1 = math.radians(start.longitude)
    lat1 = math.radians(start.latitude)
    bearing_rad = math.radians(bearing)

    ang_dist = distance / EARTH_RADIUS_METERS

    lat2 = math.asin(math.sin(lat1) * math.cos(ang_dist) +
                     math.cos(lat1) * math.sin(ang_dist) * math.cos(bearing_rad))

    lon2 = lon1 + math.atan2(math.sin(bearing_rad) * math.sin(ang_dist) * math.cos(lat1),
                             math.cos(ang_dist) - math.sin(lat1) * math.sin(lat2))

    # Crossing the antimeridian
    lon2 = (math.degrees(lon2) + 540) % 360 - 180
    return GeoCoordinate(math.degrees(lat2), lon2)


def haversine_bearing(start: CoordinateLike, end: CoordinateLike) -> float:
    """
    Calculate the initial great-circle bearing, in degrees clockwise from true north.

    Coincident and antipodal points have no defined bearing; 0.0 is returned for
    them (see ``is_degenerate``) rather than whatever atan2(0, 0) rounds to.

    Args:
        start:
            The start point

        end:
            The finish point

    Returns:
        (float) the bearing in degrees, in [0, 360)
    """
    y, x = _bearing_components(GeoCoordinate.ensure(start), GeoCoordinate.ensure(end))
    if abs(y) < DEGENERATE_EPSILON and abs(x) < DEGENERATE_EPSILON:
        warn_once(_DEGENERATE_WARNING)
        return 0.0

    return wrap_degrees(math.degrees(math.atan2(y, x)) + 360)


# -------------------------------------------------------------------------
# Karney Implementation (Ellipsoidal)
# -------------------------------------------------------------------------

def karney_distance(coord1: CoordinateLike, coord2: CoordinateLike) -> float:
    """
    Calculate distance using Karney's algorithm (via geographiclib).
    Robust against antipodal points and convergence failures.
    """
    from geographiclib.geodesic import Geodesic  # pylint: disable=import-outside-toplevel

    coord1, coord2 = GeoCoordinate.ensure(coord1), GeoCoordinate.ensure(coord2)

    # Inverse returns a dict with 's12' (distance in meters), 'azi1', etc.
    res = Geodesic.WGS84.Inverse(
        coord1.latitude, coord1.longitude,
        coord2.latitude, coord2.longitude
    )
    return res['s12']


def karney_destination(start: CoordinateLike, bearing: float, distance: float) -> GeoCoordinate:
    """
    Calculate destination using Karney's algorithm (via geographiclib).
    """
    from geographiclib.geodesic import Geodesic  # pylint: disable=import-outside-toplevel

    start = GeoCoordinate.ensure(start)

    # Direct takes (lat1, lon1, azi1, s12)
    res = Geodesic.WGS84.Direct(
        start.latitude, start.longitude,
        bearing, distance
    )

    return GeoCoordinate(res['lat2'], (res['lon2'] + 540) % 360 - 180)


def karney_bearing(start: CoordinateLike, end: CoordinateLike) -> float:
    """
    Calculate initial bearing using Karney's algorithm (via geographiclib).
    Shares the degenerate-point policy of ``haversine_bearing``.
    """
    from geographiclib.geodesic import Geodesic  # pylint: disable=import-outside-toplevel

    start, end = GeoCoordinate.ensure(start), GeoCoordinate.ensure(end)
    if is_degenerate(start, end):
        warn_once(_DEGENERATE_WARNING)
        return 0.0

    res = Geodesic.WGS84.Inverse(
        start.latitude, start.longitude,
        end.latitude, end.longitude
    )

    # geographiclib returns azimuth in range [-180, 180]; normalize to [0, 360)
    return wrap_degrees(res['azi1'] + 360)


# -------------------------------------------------------------------------
# Vectorized Haversine
# -------------------------------------------------------------------------

def _as_degree_arrays(latitudes, longitudes) -> Tuple[np.ndarray, np.ndarray]:
    lats = np.asarray(latitudes, dtype=float)
    lons = np.asarray(longitudes, dtype=float)
    if lats.shape != lons.shape:
        raise ValueError(
            f'latitudes and longitudes must have the same shape, not {lats.shape} and {lons.shape}'
        )

    if not (np.all(np.isfinite(lats)) and np.all(np.abs(lats) <= 90)):
        raise InvalidCoordinate('All latitudes must be finite and within [-90, 90]')
    if not (np.all(np.isfinite(lons)) and np.all(np.abs(lons) <= 180)):
        raise InvalidCoordinate('All longitudes must be finite and within [-180, 180]')

    return lats, lons


def bearing_degrees_many(
    latitudes: Union[Sequence[float], np.ndarray],
    longitudes: Union[Sequence[float], np.ndarray],
    destination: CoordinateLike = KAABA,
) -> np.ndarray:
    """
    Haversine initial bearings from many origins to a single destination, e.g. for
    tabulating qibla directions over a grid of cities.

    Args:
        latitudes:
            Origin latitudes, in degrees

        longitudes:
            Origin longitudes, in degrees (same shape as latitudes)

        destination:
            (Default the Kaaba) The common destination

    Returns:
        np.ndarray of bearings in [0, 360); degenerate origins yield 0
    """
    lats, lons = _as_degree_arrays(latitudes, longitudes)
    destination = GeoCoordinate.ensure(destination)

    lat1 = np.radians(lats)
    lat2 = math.radians(destination.latitude)
    dlon = math.radians(destination.longitude) - np.radians(lons)

    y = np.sin(dlon) * math.cos(lat2)
    x = np.cos(lat1) * math.sin(lat2) - np.sin(lat1) * math.cos(lat2) * np.cos(dlon)

    bearings = np.mod(np.degrees(np.arctan2(y, x)) + 360, 360)
    bearings = np.where(bearings >= 360, 0.0, bearings)
    degenerate = (np.abs(y) < DEGENERATE_EPSILON) & (np.abs(x) < DEGENERATE_EPSILON)
    if np.any(degenerate):
        warn_once(_DEGENERATE_WARNING)

    return np.where(degenerate, 0.0, bearings)


def distance_meters_many(
    latitudes: Union[Sequence[float], np.ndarray],
    longitudes: Union[Sequence[float], np.ndarray],
    destination: CoordinateLike = KAABA,
) -> np.ndarray:
    """
    Haversine distances, in meters, from many origins to a single destination.
    """
    lats, lons = _as_degree_arrays(latitudes, longitudes)
    destination = GeoCoordinate.ensure(destination)

    lat1 = np.radians(lats)
    lat2 = math.radians(destination.latitude)
    dlat = lat2 - lat1
    dlon = math.radians(destination.longitude) - np.radians(lons)

    a = np.sin(dlat / 2) ** 2 + np.cos(lat1) * math.cos(lat2) * np.sin(dlon / 2) ** 2
    a = np.minimum(a, 1.0)
    return EARTH_RADIUS_METERS * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


# -------------------------------------------------------------------------
# Dynamic Dispatch & Configuration
# -------------------------------------------------------------------------

# These declare the distance algo in use (default haversine)
distance_meters = haversine_distance
destination_point = haversine_destination
bearing_degrees = haversine_bearing


_ALGORITHMS = {
    'haversine': (
        haversine_distance,
        haversine_destination,
        haversine_bearing
    ),
    'karney': (
        karney_distance,
        karney_destination,
        karney_bearing
    )
}


def set_geodesic_algorithm(algorithm: Literal['haversine', 'karney']):
    """
    Set the global geodesic calculation method.

    Args:
        algorithm: 'haversine' or 'karney'
    """
    global distance_meters, destination_point, bearing_degrees  # pylint: disable=global-statement

    if algorithm not in _ALGORITHMS:
        raise ValueError(f"Unknown algorithm '{algorithm}'. Options: {list(_ALGORITHMS.keys())}")

    funcs = _ALGORITHMS[algorithm]
    distance_meters = funcs[0]
    destination_point = funcs[1]
    bearing_degrees = funcs[2]
