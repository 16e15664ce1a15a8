"""
Representation of a specific point on earth
"""

__all__ = ['GeoCoordinate', 'KAABA']

import math
from typing import Sequence, Tuple, Union

from qiblacompass._const import KAABA_LATITUDE, KAABA_LONGITUDE
from qiblacompass.errors import InvalidCoordinate
from qiblacompass.utils.functions import round_half_up


def _to_degrees(value: Union[float, int, str], name: str, bound: float) -> float:
    try:
        out = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidCoordinate(f'{name} must be a number, not {value!r}') from exc

    if not math.isfinite(out) or not -bound <= out <= bound:
        raise InvalidCoordinate(f'{name} {value!r} is outside [-{bound:g}, {bound:g}]')

    return out


class GeoCoordinate:
    """
    Immutable representation of a coordinate on the globe (i.e., a lat/lon pair).

    Unlike a projected point, out-of-range values are rejected rather than wrapped
    around the poles or the antimeridian, since a wrapped fix would silently point
    the user somewhere else.

    Args:
        latitude:
            Degrees north, in [-90, 90]

        longitude:
            Degrees east, in [-180, 180]
    """

    __slots__ = ('_latitude', '_longitude')

    def __init__(
        self,
        latitude: Union[float, int, str],
        longitude: Union[float, int, str],
    ):
        object.__setattr__(self, '_latitude', _to_degrees(latitude, 'latitude', 90))
        object.__setattr__(self, '_longitude', _to_degrees(longitude, 'longitude', 180))

    def __setattr__(self, key, value):
        raise AttributeError(f'{self.__class__.__name__} is immutable')

    def __eq__(self, other):
        if not isinstance(other, GeoCoordinate):
            return False

        return self.latitude == other.latitude and self.longitude == other.longitude

    def __hash__(self):
        return hash((self.latitude, self.longitude))

    def __repr__(self):
        return f'<GeoCoordinate({self.latitude}, {self.longitude})>'

    def __reduce__(self):
        return self.__class__, (self.latitude, self.longitude)

    @property
    def latitude(self) -> float:
        return self._latitude

    @property
    def longitude(self) -> float:
        return self._longitude

    @classmethod
    def ensure(cls, value: Union['GeoCoordinate', Sequence[float]]) -> 'GeoCoordinate':
        """
        Returns value unchanged if it is already a GeoCoordinate, otherwise builds one
        from a (latitude, longitude) pair.

        Raises:
            InvalidCoordinate: if the pair is malformed or out of range
        """
        if isinstance(value, GeoCoordinate):
            return value

        try:
            lat, lon = value
        except (TypeError, ValueError) as exc:
            raise InvalidCoordinate(
                f'Expected a GeoCoordinate or a (latitude, longitude) pair, not {value!r}'
            ) from exc

        return cls(lat, lon)

    @classmethod
    def from_dms(cls, lat: Tuple[int, int, float, str], lon: Tuple[int, int, float, str]):
        """
        Creates a GeoCoordinate from a Degree Minutes Seconds (lat, lon) pair.

        The quadrant value should consist of either 'N'/'S' (latitude) or 'E'/'W' (longitude)

        Args:
            lat:
                Latitude, as a 4-tuple of
                ( <degrees> (float),  <minutes> (float), <seconds> (float), <quadrant> (str) )
            lon:
                Longitude, as a 4-tuple of
                ( <degrees> (float),  <minutes> (float), <seconds> (float), <quadrant> (str))

        Returns:
            GeoCoordinate
        """
        def convert(dms: Tuple[int, int, float, str]):
            mult = -1 if dms[3] in ('S', 'W') else 1
            return mult * (dms[0] + (dms[1] / 60) + (dms[2] / 3600))

        return cls(convert(lat), convert(lon))

    def to_dms(self) -> Tuple[Tuple[int, int, float, str], Tuple[int, int, float, str]]:
        """
        Convert the coordinate to a (latitude, longitude) pair of
        (degrees, minutes, seconds, hemisphere) tuples

        Returns:
            converted value as ((d, m, s, 'N'/'S'), (d, m, s, 'E'/'W'))
        """
        def convert(dd: float) -> Tuple[int, int, float]:
            """Converts a Decimal Degree to Degrees Minutes Seconds"""
            minutes, seconds = divmod(abs(dd) * 3600, 60)
            degrees, minutes = divmod(minutes, 60)
            return int(degrees), int(minutes), round_half_up(seconds, 5)

        return (
            (*convert(self.latitude), 'N' if self.latitude >= 0 else 'S'),
            (*convert(self.longitude), 'E' if self.longitude >= 0 else 'W'),
        )

    def to_float(self, reverse: bool = False) -> Tuple[float, float]:
        """
        Converts the coordinate to a tuple of floats (latitude, longitude).

        Args:
            reverse: (bool)
                (Default False) If True, reverses the coordinate order to (longitude, latitude)

        Returns:
            Tuple of (latitude, longitude)
        """
        if reverse:
            return self.longitude, self.latitude

        return self.latitude, self.longitude


KAABA = GeoCoordinate(KAABA_LATITUDE, KAABA_LONGITUDE)
