"""
Dashboard metrics derived from coverage results.

All functions are deterministic reductions over already-computed
results and records; nothing here re-runs an analysis.
"""
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, Dict, List, Optional, Sequence

import pandas as pd

from infra_coverage.analysis.engine import estimate_population
from infra_coverage.analysis.tiers import classify_connection_quality
from infra_coverage.data.schemas import (
    CoverageLevel,
    CoverageResult,
    District,
    Hospital,
    School,
    Tower,
)
from infra_coverage.utils.error_handling import round_half_up
from infra_coverage.utils.logging_config import get_logger

logger = get_logger(__name__)

TOP_DISTRICTS = 5
POPULATION_PER_ACTIVE_TOWER = 5000


@dataclass(frozen=True)
class DistrictRanking:
    """A ranked district and its coverage percentage."""
    name: str
    value: float


@dataclass
class CoverageMetrics:
    """Aggregate view of one set of coverage results."""
    average_coverage: float = 0.0
    population_covered: int = 0
    total_population: int = 0
    connection_quality: str = 'Poor'
    infrastructure_utilization: float = 0.0
    coverage_distribution: Dict[str, float] = field(
        default_factory=lambda: {'high': 0.0, 'medium': 0.0, 'low': 0.0}
    )
    district_rankings: List[DistrictRanking] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'average_coverage': self.average_coverage,
            'population_covered': self.population_covered,
            'total_population': self.total_population,
            'connection_quality': self.connection_quality,
            'infrastructure_utilization': self.infrastructure_utilization,
            'coverage_distribution': dict(self.coverage_distribution),
            'district_rankings': [{'name': r.name, 'value': r.value} for r in self.district_rankings],
        }


@dataclass(frozen=True)
class SummaryStats:
    """Inventory counts shown on the overview dashboard."""
    total_towers: int
    active_towers: int
    total_schools: int
    schools_with_internet: int
    total_hospitals: int
    hospitals_with_internet: int
    total_districts: int
    population_covered: int
    population_total: int


def _active_count(towers: Sequence[Tower]) -> int:
    return sum(1 for t in towers if t.status == 'active')


def calculate_coverage_metrics(
    results: Sequence[CoverageResult],
    districts: Sequence[District],
    towers: Sequence[Tower] = (),
    population_of: Optional[Callable[[District], int]] = None
) -> CoverageMetrics:
    """
    Aggregate coverage results into dashboard metrics.

    Args:
        results: Coverage results of one analysis type
        districts: Districts the results refer to (names, populations)
        towers: Tower inventory for the utilization figure
        population_of: Population of a district; must match the population
            the results were computed against (default: ``estimate_population``)

    Returns:
        CoverageMetrics; zeroed (quality 'Poor') when there are no
        results or no districts
    """
    if not results or not districts:
        return CoverageMetrics()
    population_of = population_of or estimate_population

    df = pd.DataFrame([r.to_record() for r in results])
    district_df = pd.DataFrame(
        [{'district_id': d.id, 'name': d.name, 'population': population_of(d)} for d in districts]
    ).drop_duplicates('district_id')
    df = df.merge(district_df, on='district_id', how='left')

    average = round_half_up(df['percentage_covered'].mean(), 1)

    level_counts = df['coverage_level'].value_counts()
    total = len(df)
    distribution = {
        level.value.lower(): round_half_up(100 * level_counts.get(level.value, 0) / total)
        for level in CoverageLevel
    }

    utilization = 0.0
    if towers:
        utilization = round_half_up(100 * _active_count(towers) / len(towers), 1)

    ranked = (
        df.dropna(subset=['name'])
        .drop_duplicates('district_id')
        .sort_values('percentage_covered', ascending=False, kind='stable')
        .head(TOP_DISTRICTS)
    )
    rankings = [
        DistrictRanking(name=row.name, value=float(row.percentage_covered))
        for row in ranked[['name', 'percentage_covered']].itertuples(index=False)
    ]

    metrics = CoverageMetrics(
        average_coverage=average,
        population_covered=int(df['population_covered'].sum()),
        total_population=int(df['population'].fillna(0).sum()),
        connection_quality=classify_connection_quality(average),
        infrastructure_utilization=utilization,
        coverage_distribution=distribution,
        district_rankings=rankings,
    )

    logger.info(
        "coverage_metrics_calculated",
        results=total,
        average_coverage=metrics.average_coverage,
        connection_quality=metrics.connection_quality,
    )
    return metrics


def calculate_efficiency_score(coverage: float, tower_count: int, district_count: int) -> int:
    """
    Coverage achieved per unit of tower density (0-100).

    80% of the score is the coverage itself; up to 20 points reward good
    coverage obtained with few towers per district.
    """
    if not tower_count or not district_count:
        return 0

    score = coverage * 0.8
    density = tower_count / district_count
    if density > 0 and coverage > 0:
        score += min(20.0, (coverage / density) / 50)

    return int(min(100, round_half_up(score)))


def calculate_reliability_index(towers: Sequence[Tower], coverage: float) -> int:
    """Active tower share (70 points) plus 0.3 points per coverage percent, capped at 100."""
    if not towers:
        return 0

    score = (_active_count(towers) / len(towers)) * 70 + coverage * 0.3
    return int(min(100, round_half_up(score)))


def calculate_infrastructure_health(towers: Sequence[Tower], as_of: Optional[date] = None) -> int:
    """
    Maintenance and status health of the tower inventory (0-100).

    Towers maintained within one year of ``as_of`` (default today) score
    60 points pro rata, active towers 40.
    """
    if not towers:
        return 0

    as_of = as_of or date.today()
    try:
        one_year_ago = as_of.replace(year=as_of.year - 1)
    except ValueError:
        # 29 February
        one_year_ago = as_of.replace(year=as_of.year - 1, day=28)

    maintained = sum(
        1 for t in towers
        if t.last_maintenance is not None and t.last_maintenance >= one_year_ago
    )
    maintenance_score = (maintained / len(towers)) * 60
    active_score = (_active_count(towers) / len(towers)) * 40
    return int(round_half_up(maintenance_score + active_score))


def calculate_growth_capacity(coverage: float, utilization: float) -> int:
    """Room for expansion; larger when coverage and utilization are low."""
    return int(round_half_up(5 + (100 - coverage) * 0.3 + (100 - utilization) * 0.2))


def summarize_infrastructure(
    districts: Sequence[District],
    towers: Sequence[Tower] = (),
    schools: Sequence[School] = (),
    hospitals: Sequence[Hospital] = (),
    results: Sequence[CoverageResult] = (),
    population_of: Optional[Callable[[District], int]] = None
) -> SummaryStats:
    """
    Inventory counts for the overview dashboard.

    Population covered is the sum over ``results``; without results it is
    estimated as 5000 people per active tower, capped at the total.
    Districts without a known population count with ``population_of``
    (default: ``estimate_population``), as the results do.
    """
    population_of = population_of or estimate_population
    population_total = sum(population_of(d) for d in districts)
    active_towers = _active_count(towers)

    if results:
        population_covered = sum(r.population_covered for r in results)
    else:
        population_covered = min(population_total, active_towers * POPULATION_PER_ACTIVE_TOWER)

    return SummaryStats(
        total_towers=len(towers),
        active_towers=active_towers,
        total_schools=len(schools),
        schools_with_internet=sum(1 for s in schools if s.has_internet),
        total_hospitals=len(hospitals),
        hospitals_with_internet=sum(1 for h in hospitals if h.has_internet),
        total_districts=len(districts),
        population_covered=population_covered,
        population_total=population_total,
    )


