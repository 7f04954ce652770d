"""
Unit tests for the coverage engine.
"""
import math
from datetime import datetime, timezone

import pytest
from shapely import wkt

from infra_coverage.analysis.engine import CoverageEngine, estimate_population, parse_analysis_type
from infra_coverage.data.schemas import (
    AnalysisType,
    CoverageLevel,
    District,
    Hospital,
    School,
    Tower,
)
from infra_coverage.utils.config import CoverageConfig, ProcessingParams, TelecomParams
from infra_coverage.utils.exceptions import ConfigurationError, NoDistrictsError

CALCULATED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def make_towers(count, district_id='d1', radius=5.0, **fields):
    return [
        Tower(
            id=f'{district_id}-t{i}',
            district_id=district_id,
            coverage_radius=radius,
            location={'type': 'Point', 'coordinates': [32.6 + i * 0.01, 0.35]},
            **fields,
        )
        for i in range(count)
    ]


@pytest.fixture
def districts():
    return [
        District(id='d1', name='Mukono', area_sqkm=1000.0, population=400000),
        District(id='d2', name='Wakiso', area_sqkm=1000.0, population=400000),
        District(id='d3', name='Buvuma'),
    ]


@pytest.fixture
def engine():
    return CoverageEngine()


class TestParseAnalysisType:
    """Tests for parse_analysis_type."""

    def test_known_types(self):
        assert parse_analysis_type('internet') == AnalysisType.INTERNET
        assert parse_analysis_type(AnalysisType.EDUCATION) == AnalysisType.EDUCATION

    def test_unknown_type(self):
        with pytest.raises(ConfigurationError, match="Unknown analysis type"):
            parse_analysis_type('water')


class TestTelecomAnalysis:
    """Telecom analysis end to end."""

    def test_three_towers_low(self, engine, districts):
        results = engine.analyze(districts[:1], 'telecom', towers=make_towers(3), calculated_at=CALCULATED_AT)
        result = results[0]

        raw_percentage = 100 * 3 * math.pi * 25 / (1 + 0.1 * math.log(4)) / 1000
        assert result.percentage_covered == pytest.approx(round(raw_percentage, 1))
        assert result.percentage_covered == pytest.approx(20.6, abs=0.2)
        assert result.population_covered == round(400000 * raw_percentage / 100)
        assert result.population_covered == pytest.approx(82400, abs=1000)
        assert result.coverage_level == CoverageLevel.LOW
        assert result.coverage_type == AnalysisType.TELECOM
        assert result.last_calculated == CALCULATED_AT

    def test_twenty_towers_high(self, engine, districts):
        result = engine.analyze(districts[:1], 'telecom', towers=make_towers(20))[0]

        assert result.percentage_covered == 100.0
        assert result.population_covered == 400000
        assert result.coverage_level == CoverageLevel.HIGH

    def test_zero_towers(self, engine, districts):
        result = engine.analyze(districts[:1], 'telecom', towers=[])[0]

        assert result.percentage_covered == 0
        assert result.population_covered == 0
        assert result.coverage_area is None
        assert result.coverage_level == CoverageLevel.LOW

    def test_coverage_area_is_multipolygon_wkt(self, engine, districts):
        result = engine.analyze(districts[:1], 'telecom', towers=make_towers(2))[0]

        geometry = wkt.loads(result.coverage_area)
        assert geometry.geom_type == 'MultiPolygon'
        assert len(geometry.geoms) == 2

    def test_internet_uses_tower_model(self, engine, districts):
        telecom = engine.analyze(districts[:1], 'telecom', towers=make_towers(3), calculated_at=CALCULATED_AT)[0]
        internet = engine.analyze(districts[:1], 'internet', towers=make_towers(3), calculated_at=CALCULATED_AT)[0]

        assert internet.coverage_type == AnalysisType.INTERNET
        assert internet.percentage_covered == telecom.percentage_covered
        assert internet.id != telecom.id

    def test_towers_assigned_to_their_district(self, engine, districts):
        towers = make_towers(20, district_id='d1') + make_towers(1, district_id='d2')
        results = engine.analyze(districts[:2], 'telecom', towers=towers)

        assert results[0].coverage_level == CoverageLevel.HIGH
        assert results[1].coverage_level == CoverageLevel.LOW

    def test_unweighted_ignores_maintenance(self, districts):
        engine = CoverageEngine(CoverageConfig(telecom=TelecomParams(weight_by_tower_type=False)))
        towers = make_towers(3, status='maintenance')

        assert engine.analyze(districts[:1], 'telecom', towers=towers)[0].percentage_covered == 0


class TestFacilityAnalysis:
    """Education and healthcare analyses."""

    def test_education_medium(self, engine, districts):
        schools = (
            [School(id=f's{i}', district_id='d1', has_internet=True, student_count=150) for i in range(4)]
            + [School(id=f's{i + 4}', district_id='d1', has_internet=False, student_count=c)
               for i, c in enumerate([100, 100, 50, 50, 50, 50])]
        )
        result = engine.analyze(districts[:1], 'education', schools=schools)[0]

        assert result.percentage_covered == 50.0
        assert result.population_covered == 200000
        assert result.coverage_level == CoverageLevel.MEDIUM

    def test_healthcare_ignores_schools(self, engine, districts):
        schools = [School(id='s1', district_id='d1', has_internet=True, student_count=10)]
        hospitals = [Hospital(id='h1', district_id='d1', has_internet=True, beds=50)]

        result = engine.analyze(districts[:1], 'healthcare', schools=schools, hospitals=hospitals)[0]
        assert result.percentage_covered == 100.0
        assert result.coverage_level == CoverageLevel.HIGH

        result = engine.analyze(districts[:1], 'healthcare', schools=schools)[0]
        assert result.percentage_covered == 0


class TestDistrictSelection:
    """District filtering and failures."""

    def test_one_result_per_district_in_order(self, engine, districts):
        results = engine.analyze(districts, 'telecom', towers=make_towers(3))
        assert [r.district_id for r in results] == ['d1', 'd2', 'd3']

    def test_district_filter(self, engine, districts):
        results = engine.analyze(districts, 'telecom', towers=make_towers(3), district_id='d2')
        assert [r.district_id for r in results] == ['d2']

    def test_no_districts_raises(self, engine):
        with pytest.raises(NoDistrictsError):
            engine.analyze([], 'telecom')

    def test_unmatched_filter_raises(self, engine, districts):
        with pytest.raises(NoDistrictsError) as exc_info:
            engine.analyze(districts, 'education', district_id='d-404')

        assert exc_info.value.district_id == 'd-404'
        assert exc_info.value.analysis_type == 'education'

    def test_unknown_type_raises(self, engine, districts):
        with pytest.raises(ConfigurationError):
            engine.analyze(districts, 'water')


class TestPopulation:
    """Population defaults and bounds."""

    def test_missing_population_estimated_from_area(self, engine):
        district = District(id='d1', name='Kalangala', area_sqkm=50.0)
        assert engine.resolve_population(district) == 20000

    def test_missing_population_and_area(self, engine):
        assert engine.resolve_population(District(id='d1', name='Buvuma')) == 400000

    def test_estimate_follows_telecom_params(self):
        district = District(id='d1', name='Kalangala', area_sqkm=50.0)
        assert estimate_population(district) == 20000
        assert estimate_population(district, TelecomParams(default_population_density=10.0)) == 500

    def test_engine_uses_configured_density(self):
        config = CoverageConfig(telecom=TelecomParams(default_population_density=10.0))
        district = District(id='d1', name='Kalangala', area_sqkm=50.0)
        assert CoverageEngine(config).resolve_population(district) == 500

    def test_zero_population_is_known(self, engine):
        district = District(id='d1', name='Reserve', population=0, area_sqkm=10.0)
        result = engine.analyze([district], 'telecom', towers=make_towers(5))[0]

        assert result.percentage_covered == 100.0
        assert result.population_covered == 0

    def test_population_covered_never_exceeds_population(self, engine, districts):
        for count in (0, 1, 3, 10, 20, 50):
            for result in engine.analyze(districts, 'telecom', towers=make_towers(count)):
                district = next(d for d in districts if d.id == result.district_id)
                if district.population is not None:
                    assert result.population_covered <= district.population
                assert 0 <= result.percentage_covered <= 100


class TestDeterminism:
    """Same inputs and timestamp give identical results."""

    def test_repeatable(self, engine, districts):
        towers = make_towers(5) + make_towers(2, district_id='d2', type='satellite')

        first = engine.analyze(districts, 'telecom', towers=towers, calculated_at=CALCULATED_AT)
        second = engine.analyze(districts, 'telecom', towers=towers, calculated_at=CALCULATED_AT)
        assert first == second

    def test_thread_pool_matches_sequential(self, districts):
        towers = make_towers(5) + make_towers(12, district_id='d2')
        sequential = CoverageEngine().analyze(districts, 'telecom', towers=towers, calculated_at=CALCULATED_AT)

        parallel_engine = CoverageEngine(CoverageConfig(processing=ProcessingParams(n_workers=4)))
        parallel = parallel_engine.analyze(districts, 'telecom', towers=towers, calculated_at=CALCULATED_AT)

        assert parallel == sequential
