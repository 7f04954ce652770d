"""
Coordinate extraction from heterogeneous location encodings.

Infrastructure records arrive from the hosted database in several shapes:
GeoJSON points, ``{x, y}`` / ``{lon, lat}`` objects, EWKT/WKT strings,
JSON-encoded strings of those objects, hex-encoded (E)WKB, or plain
latitude/longitude fields. Each shape has one parser returning
``Coordinates`` or None; parsers are tried in ``PARSER_CHAIN`` order and
the first match wins.

When nothing matches the caller gets an explicit ``CoordinateError``.
There is no fallback coordinate.
"""
import json
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Callable, Optional, Tuple

from shapely import wkb, wkt
from shapely.errors import GEOSException

from infra_coverage.utils.exceptions import CoordinateError
from infra_coverage.utils.logging_config import get_logger

logger = get_logger(__name__)

_EWKT_PATTERN = re.compile(r'^\s*SRID=(\d+)\s*;\s*(POINT\b.*)$', re.IGNORECASE | re.DOTALL)
_WKT_POINT_PATTERN = re.compile(r'^\s*POINT\b', re.IGNORECASE)
_HEX_PATTERN = re.compile(r'^(?:[0-9a-fA-F]{2})+$')

# A 2D WKB point is 21 bytes (42 hex chars); EWKB adds a 4-byte SRID
_MIN_WKB_HEX_LENGTH = 42

_LATITUDE_KEYS = ('latitude', 'lat', 'y')
_LONGITUDE_KEYS = ('longitude', 'lon', 'lng', 'x')


@dataclass(frozen=True)
class Coordinates:
    """A WGS84 position in decimal degrees."""
    latitude: float
    longitude: float

    def as_lon_lat(self) -> Tuple[float, float]:
        """Return (longitude, latitude), the GeoJSON/WKT axis order."""
        return (self.longitude, self.latitude)


def _build(latitude: Any, longitude: Any) -> Optional[Coordinates]:
    """Convert raw values to Coordinates, or None if they are not a WGS84 position."""
    if isinstance(latitude, bool) or isinstance(longitude, bool):
        return None
    try:
        lat = float(latitude)
        lon = float(longitude)
    except (TypeError, ValueError):
        return None

    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    if not (-90 <= lat <= 90 and -180 <= lon <= 180):
        return None
    return Coordinates(latitude=lat, longitude=lon)


def _as_mapping(value: Any) -> Optional[Mapping]:
    """Mappings pass through; objects exposing __geo_interface__ are unwrapped."""
    if isinstance(value, Mapping):
        return value
    geo_interface = getattr(value, '__geo_interface__', None)
    if isinstance(geo_interface, Mapping):
        return geo_interface
    return None


def _point_from_geometry(geometry) -> Optional[Coordinates]:
    if geometry.geom_type != 'Point' or geometry.is_empty:
        return None
    return _build(geometry.y, geometry.x)


def parse_geojson_point(value: Any) -> Optional[Coordinates]:
    """``{"type": "Point", "coordinates": [lon, lat]}``"""
    mapping = _as_mapping(value)
    if mapping is None or str(mapping.get('type', '')).lower() != 'point':
        return None

    coords = mapping.get('coordinates')
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    return _build(coords[1], coords[0])


def parse_xy_object(value: Any) -> Optional[Coordinates]:
    """``{"x": lon, "y": lat}`` or ``{"lon": lon, "lat": lat}``"""
    mapping = _as_mapping(value)
    if mapping is None:
        return None
    if mapping.get('x') is None and mapping.get('lon') is None:
        return None

    longitude = mapping['x'] if mapping.get('x') is not None else mapping.get('lon')
    latitude = mapping['y'] if mapping.get('y') is not None else mapping.get('lat')
    if latitude is None:
        return None
    return _build(latitude, longitude)


def _load_wkt_point(text: str) -> Optional[Coordinates]:
    try:
        geometry = wkt.loads(text)
    except (GEOSException, ValueError, TypeError):
        return None
    return _point_from_geometry(geometry)


def parse_ewkt(value: Any) -> Optional[Coordinates]:
    """``SRID=4326;POINT(lon lat)``"""
    if not isinstance(value, str):
        return None
    match = _EWKT_PATTERN.match(value)
    if not match:
        return None
    if match.group(1) != '4326':
        logger.debug("ewkt_non_wgs84_srid", srid=match.group(1))
    return _load_wkt_point(match.group(2))


def parse_wkt(value: Any) -> Optional[Coordinates]:
    """``POINT(lon lat)``"""
    if not isinstance(value, str) or not _WKT_POINT_PATTERN.match(value):
        return None
    return _load_wkt_point(value)


def parse_json_string(value: Any) -> Optional[Coordinates]:
    """A JSON-encoded object of any mapping form; re-enters the chain."""
    if not isinstance(value, str) or not value.lstrip().startswith('{'):
        return None
    try:
        parsed = json.loads(value)
    except json.JSONDecodeError:
        return None
    if not isinstance(parsed, Mapping):
        return None
    return _run_chain(parsed)


def parse_wkb(value: Any) -> Optional[Coordinates]:
    """Hex string or raw bytes of a (E)WKB point, e.g. ``0101000020E6100000...``"""
    try:
        if isinstance(value, str):
            text = value.strip()
            if len(text) < _MIN_WKB_HEX_LENGTH or not _HEX_PATTERN.match(text):
                return None
            geometry = wkb.loads(text, hex=True)
        elif isinstance(value, (bytes, bytearray, memoryview)):
            geometry = wkb.loads(bytes(value))
        else:
            return None
    except (GEOSException, ValueError, TypeError):
        return None
    return _point_from_geometry(geometry)


def parse_lat_lon_fields(value: Any) -> Optional[Coordinates]:
    """``{"latitude": lat, "longitude": lon}``"""
    mapping = _as_mapping(value)
    if mapping is None:
        return None
    if mapping.get('latitude') is None or mapping.get('longitude') is None:
        return None
    return _build(mapping['latitude'], mapping['longitude'])


def parse_coordinate_properties(value: Any) -> Optional[Coordinates]:
    """Last resort: any of latitude/lat/y paired with any of longitude/lon/lng/x."""
    mapping = _as_mapping(value)
    if mapping is None:
        return None

    latitude = next((mapping[k] for k in _LATITUDE_KEYS if mapping.get(k) is not None), None)
    longitude = next((mapping[k] for k in _LONGITUDE_KEYS if mapping.get(k) is not None), None)
    if latitude is None or longitude is None:
        return None
    return _build(latitude, longitude)


# Fixed priority order; first successful parser wins.
PARSER_CHAIN: Tuple[Tuple[str, Callable[[Any], Optional[Coordinates]]], ...] = (
    ('geojson', parse_geojson_point),
    ('xy_object', parse_xy_object),
    ('ewkt', parse_ewkt),
    ('wkt', parse_wkt),
    ('json_string', parse_json_string),
    ('wkb', parse_wkb),
    ('lat_lon_fields', parse_lat_lon_fields),
    ('property_scan', parse_coordinate_properties),
)


def _run_chain(value: Any) -> Optional[Coordinates]:
    for _name, parser in PARSER_CHAIN:
        coords = parser(value)
        if coords is not None:
            return coords
    return None


def _describe(value: Any, limit: int = 80) -> str:
    text = repr(value)
    return text if len(text) <= limit else text[:limit] + '...'


def extract_coordinates(value: Any) -> Coordinates:
    """
    Resolve a location value of unknown shape to Coordinates.

    Args:
        value: GeoJSON mapping, x/y mapping, (E)WKT string, JSON string,
            (E)WKB hex/bytes, or a mapping with latitude/longitude fields

    Returns:
        Coordinates of the point

    Raises:
        CoordinateError: If no parser in the chain recognizes the value

    Example:
        >>> extract_coordinates("SRID=4326;POINT(32.58 0.31)")
        Coordinates(latitude=0.31, longitude=32.58)
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise CoordinateError("Location is empty", value=value)

    coords = _run_chain(value)
    if coords is None:
        raise CoordinateError(
            f"Unable to extract coordinates from location: {_describe(value)}",
            value=_describe(value),
        )
    return coords


def try_extract_coordinates(value: Any) -> Optional[Coordinates]:
    """Like :func:`extract_coordinates` but returns None instead of raising."""
    try:
        return extract_coordinates(value)
    except CoordinateError:
        return None


def resolve_point_location(point: Any) -> Coordinates:
    """
    Resolve the position of an infrastructure record.

    The record's ``location`` value is tried first, then its raw
    ``latitude``/``longitude`` attributes.

    Raises:
        CoordinateError: If neither source yields a valid position
    """
    location = getattr(point, 'location', None)
    if location is not None:
        coords = try_extract_coordinates(location)
        if coords is not None:
            return coords

    coords = _build(getattr(point, 'latitude', None), getattr(point, 'longitude', None))
    if coords is not None:
        return coords

    raise CoordinateError(
        f"Record {getattr(point, 'id', '?')} has no resolvable location",
        value=_describe(location),
    )
