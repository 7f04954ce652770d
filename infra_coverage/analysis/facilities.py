"""
Facility-ratio coverage model for education and healthcare.

Coverage is the mean of two ratios:
- share of facilities with internet
- share of capacity (students or beds) in facilities with internet

Connected facilities contribute a fixed-radius circle to the coverage
area (2 km for schools, 5 km for hospitals).
"""
from dataclasses import dataclass
from typing import Optional, Sequence

from shapely.geometry import MultiPolygon

from infra_coverage.core.coordinates import resolve_point_location
from infra_coverage.core.geometry import circle_polygon, combine_polygons
from infra_coverage.data.schemas import InfrastructurePoint
from infra_coverage.utils.config import FacilityParams, GeometryParams
from infra_coverage.utils.error_handling import safe_division
from infra_coverage.utils.exceptions import CoordinateError, GeometryError
from infra_coverage.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FacilityCoverage:
    """Outcome of the facility model for one district."""
    percentage: float
    coverage_geometry: Optional[MultiPolygon]
    facility_count: int
    connected_count: int
    facility_ratio: float
    capacity_ratio: float


class FacilityCoverageModel:
    """
    Connectivity coverage of a facility type.

    Args:
        capacity_field: Record attribute weighting each facility
            ('student_count' or 'beds'); missing values count as 0
        radius_km: Radius of the circle drawn around connected facilities
        geometry: Circle synthesis parameters
    """

    def __init__(
        self,
        capacity_field: str,
        radius_km: float,
        geometry: Optional[GeometryParams] = None
    ):
        self.capacity_field = capacity_field
        self.radius_km = radius_km
        self.geometry = geometry or GeometryParams()

    @classmethod
    def education(cls, params: Optional[FacilityParams] = None, geometry: Optional[GeometryParams] = None):
        """Schools weighted by student count."""
        params = params or FacilityParams()
        return cls('student_count', params.school_radius_km, geometry)

    @classmethod
    def healthcare(cls, params: Optional[FacilityParams] = None, geometry: Optional[GeometryParams] = None):
        """Hospitals weighted by bed count."""
        params = params or FacilityParams()
        return cls('beds', params.hospital_radius_km, geometry)

    def _capacity(self, facility: InfrastructurePoint) -> int:
        return getattr(facility, self.capacity_field, None) or 0

    def calculate(self, facilities: Sequence[InfrastructurePoint]) -> FacilityCoverage:
        """
        Estimate connectivity coverage from the facilities of one district.

        Example:
            >>> schools = [School(id=str(i), has_internet=i < 4, student_count=100) for i in range(10)]
            >>> FacilityCoverageModel.education().calculate(schools).percentage
            40.0
        """
        connected = [f for f in facilities if f.has_internet]

        facility_ratio = 100 * safe_division(len(connected), len(facilities))
        capacity_ratio = 100 * safe_division(
            sum(self._capacity(f) for f in connected),
            sum(self._capacity(f) for f in facilities),
        )
        percentage = max(0.0, min(100.0, (facility_ratio + capacity_ratio) / 2))

        return FacilityCoverage(
            percentage=percentage,
            coverage_geometry=self._coverage_geometry(connected),
            facility_count=len(facilities),
            connected_count=len(connected),
            facility_ratio=facility_ratio,
            capacity_ratio=capacity_ratio,
        )

    def _coverage_geometry(self, facilities: Sequence[InfrastructurePoint]) -> Optional[MultiPolygon]:
        polygons = []
        for facility in facilities:
            try:
                coords = resolve_point_location(facility)
                polygons.append(circle_polygon(
                    coords.latitude,
                    coords.longitude,
                    self.radius_km,
                    num_points=self.geometry.circle_points,
                    earth_radius_km=self.geometry.earth_radius_km,
                ))
            except (CoordinateError, GeometryError) as e:
                logger.warning("facility_location_unresolved", facility_id=facility.id, error=str(e))
        return combine_polygons(polygons)
