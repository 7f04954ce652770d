"""
Telecom coverage model.

Estimates the share of a district served by its towers:
1. Each contributing tower covers a circle of pi * r^2 km2
2. Areas are weighted by tower type and status (or only active towers count)
3. The summed area is discounted for overlap with a logarithmic factor
4. Percentage = adjusted area / district area, capped at 100%
5. Districts without a known area fall back to a tower-density estimate

Overlap is approximated by the scalar factor only; tower circles are
never unioned geometrically.
"""
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from shapely.geometry import MultiPolygon

from infra_coverage.core.coordinates import resolve_point_location
from infra_coverage.core.geometry import circle_polygon, combine_polygons
from infra_coverage.data.schemas import District, Tower
from infra_coverage.utils.config import GeometryParams, TelecomParams
from infra_coverage.utils.exceptions import CoordinateError, GeometryError
from infra_coverage.utils.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TelecomCoverage:
    """Outcome of the telecom model for one district."""
    percentage: float
    coverage_geometry: Optional[MultiPolygon]
    tower_count: int
    total_area_km2: float = 0.0
    adjusted_area_km2: float = 0.0
    overlap_factor: float = 1.0
    area_estimated: bool = False


def overlap_factor(tower_count: int, params: Optional[TelecomParams] = None) -> float:
    """
    Discount applied to the summed tower area for overlapping service zones.

    reciprocal: 1 / (1 + c * ln(1 + n))
    linear:     1 - min(cap, c * ln(n + 1))

    Both are non-increasing in ``tower_count``.

    Example:
        >>> round(overlap_factor(3), 4)
        0.8783
    """
    params = params or TelecomParams()
    discount = params.overlap_coefficient * math.log(1 + max(tower_count, 0))

    if params.overlap_model == "linear":
        return 1 - min(params.max_overlap_discount, discount)
    return 1 / (1 + discount)


class TelecomCoverageModel:
    """Tower-based coverage estimate for one district at a time."""

    def __init__(
        self,
        params: Optional[TelecomParams] = None,
        geometry: Optional[GeometryParams] = None
    ):
        self.params = params or TelecomParams()
        self.geometry = geometry or GeometryParams()

    def tower_radius(self, tower: Tower) -> float:
        """Coverage radius in km; missing or zero radii use the default."""
        return tower.coverage_radius or self.params.default_radius_km

    def tower_weight(self, tower: Tower) -> float:
        """
        Area multiplier of a tower.

        With type weighting, type and status multipliers combine
        (unknown types count as cellular, unknown statuses as down).
        Without it, active towers weigh 1 and everything else 0.
        """
        if not self.params.weight_by_tower_type:
            return 1.0 if tower.status == 'active' else 0.0

        type_weight = self.params.type_weights.get(tower.type, 1.0)
        status_weight = self.params.status_weights.get(tower.status, 0.0)
        return type_weight * status_weight

    def calculate(self, towers: Sequence[Tower], district: District) -> TelecomCoverage:
        """
        Estimate coverage of ``district`` by ``towers``.

        Args:
            towers: Towers located in the district (any status)
            district: The district being analyzed

        Returns:
            TelecomCoverage with the unrounded, clamped percentage

        Example:
            >>> model = TelecomCoverageModel()
            >>> district = District(id='d1', name='Mukono', area_sqkm=1000, population=400000)
            >>> towers = [Tower(id=f't{i}', district_id='d1', coverage_radius=5) for i in range(3)]
            >>> round(model.calculate(towers, district).percentage, 1)
            20.7
        """
        weighted = [(t, self.tower_weight(t)) for t in towers]
        contributing = [(t, w) for t, w in weighted if w > 0]
        tower_count = len(contributing)

        if tower_count == 0:
            return TelecomCoverage(percentage=0.0, coverage_geometry=None, tower_count=0)

        total_area = sum(math.pi * self.tower_radius(t) ** 2 * w for t, w in contributing)
        factor = overlap_factor(tower_count, self.params)
        adjusted_area = total_area * factor

        area_estimated = not district.area_sqkm
        if not area_estimated:
            percentage = 100 * adjusted_area / district.area_sqkm
        else:
            if district.population:
                estimated_area = district.population / self.params.population_per_km2_for_area_estimate
            else:
                estimated_area = self.params.default_area_sqkm
            ideal_tower_count = estimated_area / self.params.km2_per_tower
            percentage = 100 * tower_count / ideal_tower_count
            logger.debug(
                "district_area_estimated",
                district=district.name,
                estimated_area_sqkm=estimated_area,
                ideal_tower_count=ideal_tower_count,
            )

        percentage = max(0.0, min(100.0, percentage))

        return TelecomCoverage(
            percentage=percentage,
            coverage_geometry=self._coverage_geometry([t for t, _ in contributing], district),
            tower_count=tower_count,
            total_area_km2=total_area,
            adjusted_area_km2=adjusted_area,
            overlap_factor=factor,
            area_estimated=area_estimated,
        )

    def _coverage_geometry(self, towers: Sequence[Tower], district: District) -> Optional[MultiPolygon]:
        """One circle per locatable tower; unlocatable towers are skipped."""
        polygons = []
        for tower in towers:
            try:
                coords = resolve_point_location(tower)
                polygons.append(circle_polygon(
                    coords.latitude,
                    coords.longitude,
                    self.tower_radius(tower),
                    num_points=self.geometry.circle_points,
                    earth_radius_km=self.geometry.earth_radius_km,
                ))
            except (CoordinateError, GeometryError) as e:
                logger.warning(
                    "tower_location_unresolved",
                    tower_id=tower.id,
                    district=district.name,
                    error=str(e),
                )
        return combine_polygons(polygons)
