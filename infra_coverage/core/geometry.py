"""
Geospatial geometry functions for coverage area estimation.

Provides great-circle distance and a planar (equirectangular) circle
approximation used to draw the coverage area of a tower or facility.
Circles are combined by concatenation into a MultiPolygon; overlapping
areas are not dissolved (overlap is accounted for by the scalar overlap
factor of the telecom model, not geometrically).
"""
import math
from typing import Iterable, List, Optional, Tuple

from shapely.geometry import MultiPolygon, Polygon
from shapely.geometry.base import BaseGeometry

from infra_coverage.utils.exceptions import GeometryError


# Earth's mean radius in kilometers
EARTH_RADIUS_KM = 6371.0

# Vertices per synthesized circle (before closing the ring)
DEFAULT_CIRCLE_POINTS = 32


def haversine_distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate great-circle distance between two points using Haversine formula.

    Args:
        lat1: Latitude of first point (decimal degrees)
        lon1: Longitude of first point (decimal degrees)
        lat2: Latitude of second point (decimal degrees)
        lon2: Longitude of second point (decimal degrees)

    Returns:
        Distance in kilometers

    Example:
        >>> # Kampala to Entebbe
        >>> distance = haversine_distance_km(0.3136, 32.5811, 0.0512, 32.4637)
        >>> print(f"{distance:.1f} km")
        32.0 km
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = lat2_rad - lat1_rad
    dlon = math.radians(lon2 - lon1)

    a = (math.sin(dlat / 2)) ** 2 + \
        math.cos(lat1_rad) * math.cos(lat2_rad) * (math.sin(dlon / 2)) ** 2

    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def circle_ring(
    center_lat: float,
    center_lon: float,
    radius_km: float,
    num_points: int = DEFAULT_CIRCLE_POINTS,
    earth_radius_km: float = EARTH_RADIUS_KM,
) -> List[Tuple[float, float]]:
    """
    Synthesize a closed ring approximating a circle around a point.

    For each of ``num_points`` angles a planar offset
    ``(r*cos(theta), r*sin(theta))`` in km is converted to degrees with an
    equirectangular projection. This is not geodesically exact.

    Args:
        center_lat: Circle center latitude (decimal degrees)
        center_lon: Circle center longitude (decimal degrees)
        radius_km: Circle radius in kilometers (0 yields a degenerate ring)
        num_points: Number of distinct vertices
        earth_radius_km: Earth radius used for the degree conversion

    Returns:
        List of ``num_points + 1`` (longitude, latitude) tuples; the last
        vertex repeats the first.

    Raises:
        GeometryError: If the radius is negative or not finite, fewer than
            3 vertices are requested, or the center is at a pole.

    Example:
        >>> ring = circle_ring(0.3136, 32.5811, 5.0)
        >>> len(ring)
        33
        >>> ring[0] == ring[-1]
        True
    """
    if radius_km is None or not math.isfinite(radius_km) or radius_km < 0:
        raise GeometryError(f"Coverage radius must be a non-negative number: {radius_km}")
    if num_points < 3:
        raise GeometryError(f"A circle needs at least 3 vertices, got {num_points}")

    cos_lat = math.cos(math.radians(center_lat))
    if abs(cos_lat) < 1e-12:
        raise GeometryError(f"Cannot synthesize a circle at latitude {center_lat}")

    deg_per_rad = 180 / math.pi
    ring = []
    for i in range(num_points):
        angle = (i / num_points) * 2 * math.pi
        dx = radius_km * math.cos(angle)
        dy = radius_km * math.sin(angle)

        lat_offset = (dy / earth_radius_km) * deg_per_rad
        lon_offset = (dx / (earth_radius_km * cos_lat)) * deg_per_rad

        ring.append((center_lon + lon_offset, center_lat + lat_offset))

    ring.append(ring[0])
    return ring


def circle_polygon(
    center_lat: float,
    center_lon: float,
    radius_km: float,
    num_points: int = DEFAULT_CIRCLE_POINTS,
    earth_radius_km: float = EARTH_RADIUS_KM,
) -> Polygon:
    """Wrap :func:`circle_ring` in a shapely Polygon (lon/lat axis order)."""
    return Polygon(circle_ring(center_lat, center_lon, radius_km, num_points, earth_radius_km))


def combine_polygons(polygons: Iterable[Polygon]) -> Optional[MultiPolygon]:
    """
    Combine polygons into a single MultiPolygon by concatenation.

    No union or dissolve is performed, so overlapping members stay
    overlapping. Returns None when there is nothing to combine.
    """
    polygons = list(polygons)
    if not polygons:
        return None
    return MultiPolygon(polygons)


def geometry_to_wkt(geometry: Optional[BaseGeometry]) -> Optional[str]:
    """Render a geometry as WKT, passing None through."""
    if geometry is None:
        return None
    return geometry.wkt
