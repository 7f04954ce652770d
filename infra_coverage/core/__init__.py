"""
Core geometry modules for coverage analysis.

Contains coordinate extraction and coverage-area geometry synthesis.
"""
from infra_coverage.core.coordinates import (
    Coordinates,
    PARSER_CHAIN,
    extract_coordinates,
    try_extract_coordinates,
    resolve_point_location,
)
from infra_coverage.core.geometry import (
    haversine_distance_km,
    circle_ring,
    circle_polygon,
    combine_polygons,
    geometry_to_wkt,
    EARTH_RADIUS_KM,
    DEFAULT_CIRCLE_POINTS,
)

__all__ = [
    'Coordinates',
    'PARSER_CHAIN',
    'extract_coordinates',
    'try_extract_coordinates',
    'resolve_point_location',
    'haversine_distance_km',
    'circle_ring',
    'circle_polygon',
    'combine_polygons',
    'geometry_to_wkt',
    'EARTH_RADIUS_KM',
    'DEFAULT_CIRCLE_POINTS',
]
