import math

import numpy as np
import pytest
from pytest import approx

from qiblacompass import GeoCoordinate, InvalidCoordinate, KAABA
from qiblacompass import geodesy
from qiblacompass.geodesy import *

from tests.functions import assert_coordinates_equal


@pytest.fixture
def karney():
    geodesy.set_geodesic_algorithm('karney')
    yield
    geodesy.set_geodesic_algorithm('haversine')


def test_haversine_bearing():
    expected = 45.
    actual = haversine_bearing(GeoCoordinate(0.0, 0.0), GeoCoordinate(0.001, 0.001))
    assert actual == approx(expected, abs=1e-6)

    origin = GeoCoordinate(0., 0.)
    assert haversine_bearing(origin, GeoCoordinate(1., 0.)) == 0.
    assert haversine_bearing(origin, GeoCoordinate(0., 1.)) == 90.
    assert haversine_bearing(origin, GeoCoordinate(-1., 0.)) == 180.
    assert haversine_bearing(origin, GeoCoordinate(0., -1.)) == 270.

    # Antimeridian test
    assert haversine_bearing(GeoCoordinate(0., 179.), GeoCoordinate(0., -179.)) == approx(90.)


def test_haversine_bearing_to_kaaba():
    actual = haversine_bearing(GeoCoordinate(0., 0.), KAABA)
    assert 0. < actual < 90.
    assert actual == approx(58.5082, abs=1e-2)


def test_haversine_bearing_degenerate():
    c = GeoCoordinate(12.5, -40.)
    assert haversine_bearing(c, c) == 0.
    assert is_degenerate(c, c)

    assert haversine_bearing(KAABA, KAABA) == 0.
    assert haversine_bearing(GeoCoordinate(90., 0.), GeoCoordinate(90., 50.)) == 0.

    # Antipodal points
    assert haversine_bearing(GeoCoordinate(0., 0.), GeoCoordinate(0., 180.)) == 0.
    assert is_degenerate((10., 20.), (-10., -160.))

    assert not is_degenerate(GeoCoordinate(0., 0.), KAABA)
    assert not is_degenerate(GeoCoordinate(0., 0.), GeoCoordinate(0., 0.0001))


def test_haversine_bearing_range():
    origins = [
        GeoCoordinate(lat, lon)
        for lat in (-89.9, -45., 0., 21.422487, 45., 89.9)
        for lon in (-180., -120., -0.5, 0., 39.826206, 120., 180.)
    ]
    for origin in origins:
        for destination in origins:
            bearing = haversine_bearing(origin, destination)
            assert 0. <= bearing < 360.
            assert not math.isnan(bearing)


def test_haversine_bearing_invalid():
    with pytest.raises(InvalidCoordinate):
        haversine_bearing((91., 0.), KAABA)

    with pytest.raises(InvalidCoordinate):
        haversine_bearing(KAABA, (0., -200.))


def test_haversine_distance():
    # Sourced from haversine package
    expected = 157.253373
    actual = haversine_distance(GeoCoordinate(0.0, 0.0), GeoCoordinate(0.001, 0.001))
    assert actual == approx(expected, abs=1e-4)

    expected = 157_249.381271
    actual = haversine_distance(GeoCoordinate(0.0, 0.0), GeoCoordinate(1.0, 1.0))
    assert actual == approx(expected, rel=1e-6)

    # One degree of arc on the mean sphere
    actual = haversine_distance(GeoCoordinate(0.0, 0.0), GeoCoordinate(0.0, 1.0))
    assert actual == approx(6_371_000 * math.pi / 180, rel=1e-12)

    # Antimeridian test
    expected = 222389.853289
    actual = haversine_distance(GeoCoordinate(0., 179.), GeoCoordinate(0., -179.))
    assert actual == approx(expected, abs=1e-5)

    assert haversine_distance(KAABA, KAABA) == 0.

    # Antipodal points are half the circumference apart
    actual = haversine_distance(GeoCoordinate(0., 0.), GeoCoordinate(0., 180.))
    assert actual == approx(6_371_000 * math.pi, rel=1e-12)


def test_haversine_distance_to_kaaba():
    actual = haversine_distance(GeoCoordinate(0., 0.), KAABA)
    assert actual == approx(4_932_869, abs=500)


def test_haversine_distance_symmetric():
    pairs = [
        (GeoCoordinate(0., 0.), KAABA),
        (GeoCoordinate(51.5074, -0.1278), KAABA),
        (GeoCoordinate(-33.8688, 151.2093), GeoCoordinate(40.7128, -74.006)),
        (GeoCoordinate(89.9, 10.), GeoCoordinate(-89.9, -170.)),
    ]
    for a, b in pairs:
        assert haversine_distance(a, b) >= 0
        assert haversine_distance(a, b) == approx(haversine_distance(b, a), rel=1e-6)


def test_haversine_destination():
    expected = GeoCoordinate(0.7058494, 0.7059029)
    actual = haversine_destination(GeoCoordinate(0.0, 0.0), 45., 111_000)
    assert_coordinates_equal(expected, actual)

    # Crossing the antimeridian
    actual = haversine_destination(GeoCoordinate(0., 179.5), 90., 111_194.92664455873)
    assert_coordinates_equal(GeoCoordinate(0., -179.5), actual)


def test_haversine_destination_roundtrip():
    origin = GeoCoordinate(-6.2088, 106.8456)
    bearing = haversine_bearing(origin, KAABA)
    distance = haversine_distance(origin, KAABA)
    assert_coordinates_equal(haversine_destination(origin, bearing, distance), KAABA, abs_tol=1e-6)


def test_karney_distance():
    # Checked against PyGeodesy library results
    expected = 156.903468
    actual = karney_distance(GeoCoordinate(0.0, 0.0), GeoCoordinate(0.001, 0.001))
    assert actual == approx(expected, abs=1e-4)

    expected = 111_319.490793
    actual = karney_distance(GeoCoordinate(0.0, 0.0), GeoCoordinate(0.0, 1.0))
    assert actual == approx(expected, abs=1e-5)

    assert karney_distance(KAABA, KAABA) == 0.


def test_karney_bearing():
    c1 = GeoCoordinate(0.0, 0.0)
    assert karney_bearing(c1, GeoCoordinate(0.001, 0.001)) == approx(45.19, abs=1e-2)
    assert karney_bearing(c1, GeoCoordinate(0.0, 1.0)) == approx(90.)
    assert karney_bearing(c1, GeoCoordinate(0.0, -1.0)) == approx(270.)

    assert karney_bearing(c1, c1) == 0.
    assert karney_bearing(c1, GeoCoordinate(0., 180.)) == 0.

    # Ellipsoidal and spherical bearings agree closely over long distances
    assert karney_bearing(c1, KAABA) == approx(haversine_bearing(c1, KAABA), abs=0.5)


def test_karney_destination():
    start = GeoCoordinate(0., 0.)
    actual = karney_destination(start, 90., 111_319.490793)
    assert_coordinates_equal(GeoCoordinate(0., 1.), actual, abs_tol=1e-6)


def test_set_geodesic_algorithm(karney):
    assert geodesy.distance_meters is karney_distance
    assert geodesy.bearing_degrees is karney_bearing
    assert geodesy.destination_point is karney_destination

    geodesy.set_geodesic_algorithm('haversine')
    assert geodesy.distance_meters is haversine_distance
    assert geodesy.bearing_degrees is haversine_bearing
    assert geodesy.destination_point is haversine_destination

    with pytest.raises(ValueError):
        geodesy.set_geodesic_algorithm('flat')


def test_bearing_degrees_many():
    lats = [0., 51.5074, -33.8688, KAABA.latitude]
    lons = [0., -0.1278, 151.2093, KAABA.longitude]
    actual = bearing_degrees_many(lats, lons)

    assert isinstance(actual, np.ndarray)
    assert actual.shape == (4,)
    for lat, lon, bearing in zip(lats, lons, actual):
        assert bearing == approx(haversine_bearing(GeoCoordinate(lat, lon), KAABA), abs=1e-9)

    # The Kaaba itself is degenerate
    assert actual[-1] == 0.

    actual = bearing_degrees_many(np.array([[0.], [0.]]), np.array([[1.], [-1.]]), (1., 0.))
    assert actual.shape == (2, 1)
    assert actual[0, 0] == approx(315., abs=1e-2)
    assert actual[1, 0] == approx(45., abs=1e-2)


def test_distance_meters_many():
    lats = [0., -33.8688, KAABA.latitude]
    lons = [0., 151.2093, KAABA.longitude]
    actual = distance_meters_many(lats, lons)
    for lat, lon, dist in zip(lats, lons, actual):
        assert dist == approx(haversine_distance(GeoCoordinate(lat, lon), KAABA), rel=1e-9, abs=1e-6)


def test_many_invalid():
    with pytest.raises(InvalidCoordinate):
        bearing_degrees_many([0., 95.], [0., 0.])

    with pytest.raises(InvalidCoordinate):
        distance_meters_many([0., 0.], [0., np.nan])

    with pytest.raises(ValueError):
        bearing_degrees_many([0., 1.], [0.])
