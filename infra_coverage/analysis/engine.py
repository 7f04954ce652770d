"""
Coverage engine.

Turns districts plus already-fetched infrastructure records into one
CoverageResult per district for a chosen analysis type:

- telecom / internet: tower area model (``TelecomCoverageModel``)
- education: school connectivity ratio (``FacilityCoverageModel.education``)
- healthcare: hospital connectivity ratio (``FacilityCoverageModel.healthcare``)

Districts are independent; with ``processing.n_workers > 1`` they are
evaluated on a thread pool and results keep the input district order.
"""
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Union

from infra_coverage.analysis.facilities import FacilityCoverageModel
from infra_coverage.analysis.telecom import TelecomCoverageModel
from infra_coverage.analysis.tiers import classify_coverage
from infra_coverage.core.geometry import geometry_to_wkt
from infra_coverage.data.schemas import (
    AnalysisType,
    CoverageResult,
    District,
    Hospital,
    InfrastructurePoint,
    School,
    Tower,
)
from infra_coverage.utils.config import CoverageConfig, TelecomParams, get_default_config
from infra_coverage.utils.error_handling import round_half_up
from infra_coverage.utils.exceptions import ConfigurationError, NoDistrictsError
from infra_coverage.utils.logging_config import get_logger

logger = get_logger(__name__)

TOWER_ANALYSES = (AnalysisType.TELECOM, AnalysisType.INTERNET)


def parse_analysis_type(value: Union[AnalysisType, str]) -> AnalysisType:
    """Coerce a user-supplied analysis type, rejecting unknown names."""
    try:
        return AnalysisType(value)
    except ValueError as e:
        valid = [t.value for t in AnalysisType]
        raise ConfigurationError(f"Unknown analysis type: {value!r}. Valid: {valid}") from e


def estimate_population(district: District, params: Optional[TelecomParams] = None) -> int:
    """Known population, or area (or default area) times the default density."""
    if district.population is not None:
        return district.population

    params = params or TelecomParams()
    area = district.area_sqkm or params.default_area_sqkm
    estimate = int(round_half_up(area * params.default_population_density))
    logger.debug("district_population_estimated", district=district.name, population=estimate)
    return estimate


def _group_by_district(records: Sequence[InfrastructurePoint]) -> Dict[str, List[InfrastructurePoint]]:
    grouped = defaultdict(list)
    for record in records:
        grouped[record.district_id].append(record)
    return grouped


class CoverageEngine:
    """
    Per-district coverage analysis.

    Args:
        config: Run configuration; defaults apply when omitted

    Example:
        >>> engine = CoverageEngine()
        >>> results = engine.analyze(districts, 'telecom', towers=towers)
    """

    def __init__(self, config: Optional[CoverageConfig] = None):
        self.config = config or get_default_config()
        self.telecom_model = TelecomCoverageModel(self.config.telecom, self.config.geometry)
        self.education_model = FacilityCoverageModel.education(self.config.facilities, self.config.geometry)
        self.healthcare_model = FacilityCoverageModel.healthcare(self.config.facilities, self.config.geometry)

    def resolve_population(self, district: District) -> int:
        """Population used for this engine's results (see ``estimate_population``)."""
        return estimate_population(district, self.config.telecom)

    def analyze_district(
        self,
        district: District,
        analysis_type: Union[AnalysisType, str],
        records: Sequence[InfrastructurePoint],
        calculated_at: datetime
    ) -> CoverageResult:
        """
        Analyze one district.

        Args:
            district: District to analyze
            analysis_type: Analysis type
            records: Infrastructure of that district matching the analysis
                (towers for telecom/internet, schools or hospitals otherwise)
            calculated_at: Timestamp stamped on the result

        Returns:
            CoverageResult for the district
        """
        analysis_type = parse_analysis_type(analysis_type)

        if analysis_type in TOWER_ANALYSES:
            coverage = self.telecom_model.calculate(records, district)
        elif analysis_type == AnalysisType.EDUCATION:
            coverage = self.education_model.calculate(records)
        else:
            coverage = self.healthcare_model.calculate(records)

        raw_percentage = coverage.percentage
        population = self.resolve_population(district)
        population_covered = min(population, int(round_half_up(population * raw_percentage / 100)))
        percentage = round_half_up(raw_percentage, 1)

        return CoverageResult(
            id=CoverageResult.make_id(district.id, analysis_type.value, calculated_at),
            district_id=district.id,
            coverage_type=analysis_type,
            coverage_level=classify_coverage(percentage, self.config.tiers),
            percentage_covered=percentage,
            population_covered=population_covered,
            coverage_area=geometry_to_wkt(coverage.coverage_geometry),
            last_calculated=calculated_at,
            analysis_version=self.config.analysis_version,
        )

    def analyze(
        self,
        districts: Sequence[District],
        analysis_type: Union[AnalysisType, str],
        towers: Sequence[Tower] = (),
        schools: Sequence[School] = (),
        hospitals: Sequence[Hospital] = (),
        district_id: Optional[str] = None,
        calculated_at: Optional[datetime] = None
    ) -> List[CoverageResult]:
        """
        Analyze every district (or only ``district_id``).

        Args:
            districts: Candidate districts
            analysis_type: telecom, internet, education or healthcare
            towers: Tower records (telecom/internet)
            schools: School records (education)
            hospitals: Hospital records (healthcare)
            district_id: Restrict the run to one district
            calculated_at: Timestamp of the run; now (UTC) if omitted

        Returns:
            One CoverageResult per analyzed district, in input order

        Raises:
            ConfigurationError: Unknown analysis type
            NoDistrictsError: The district filter leaves nothing to analyze
        """
        analysis_type = parse_analysis_type(analysis_type)
        calculated_at = calculated_at or datetime.now(timezone.utc)

        selected = [d for d in districts if district_id is None or d.id == district_id]
        if not selected:
            raise NoDistrictsError(
                "No districts found for analysis",
                analysis_type=analysis_type.value,
                district_id=district_id,
            )

        if analysis_type in TOWER_ANALYSES:
            records = towers
        elif analysis_type == AnalysisType.EDUCATION:
            records = schools
        else:
            records = hospitals
        by_district = _group_by_district(records)

        logger.info(
            "coverage_analysis_started",
            analysis_type=analysis_type.value,
            districts=len(selected),
            records=len(records),
            n_workers=self.config.processing.n_workers,
        )

        def run_one(district: District) -> CoverageResult:
            return self.analyze_district(
                district, analysis_type, by_district.get(district.id, []), calculated_at
            )

        n_workers = min(self.config.processing.n_workers, len(selected))
        if n_workers > 1:
            with ThreadPoolExecutor(max_workers=n_workers) as executor:
                results = list(executor.map(run_one, selected))
        else:
            results = [run_one(d) for d in selected]

        logger.info(
            "coverage_analysis_complete",
            analysis_type=analysis_type.value,
            results=len(results),
            high=sum(1 for r in results if r.coverage_level.value == 'High'),
        )
        return results
