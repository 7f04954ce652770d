"""
Unit tests for the analysis service.
"""
from datetime import datetime, timezone

import pytest

from infra_coverage.analysis.service import AnalysisRun, CoverageAnalysisService, audit_details
from infra_coverage.data.schemas import AnalysisType, CoverageLevel, District, School, Tower
from infra_coverage.data.sources import InMemoryDataSource
from infra_coverage.outputs.sinks import InMemoryResultSink, ResultSink
from infra_coverage.utils.exceptions import ConfigurationError, NoDistrictsError, PersistenceError

CALCULATED_AT = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FailingSink(ResultSink):
    """Sink whose store is unavailable."""

    def __init__(self, fail_audit=True):
        self.fail_audit = fail_audit
        self.audits = []

    def persist(self, results):
        raise PersistenceError("coverage_analysis table unavailable")

    def record_audit(self, record):
        if self.fail_audit:
            raise PersistenceError("audit_log table unavailable")
        self.audits.append(record)


@pytest.fixture
def source():
    towers = [
        Tower(id=f't{i}', district_id='d1', coverage_radius=5.0, location=f'POINT({32.6 + i * 0.01} 0.35)')
        for i in range(3)
    ]
    schools = [
        School(id='s1', district_id='d2', has_internet=True, student_count=300),
        School(id='s2', district_id='d2', has_internet=False, student_count=100),
    ]
    return InMemoryDataSource(
        districts=[
            District(id='d1', name='Mukono', area_sqkm=1000.0, population=400000),
            District(id='d2', name='Gulu', area_sqkm=3449.0, population=275613),
        ],
        towers=towers,
        schools=schools,
    )


class TestRun:
    """Tests for CoverageAnalysisService.run."""

    def test_full_run_persists(self, source):
        sink = InMemoryResultSink()
        run = CoverageAnalysisService(source, sink).run('telecom', calculated_at=CALCULATED_AT)

        assert isinstance(run, AnalysisRun)
        assert [r.district_id for r in run.results] == ['d1', 'd2']
        assert run.persisted is True
        assert sink.results == run.results
        assert run.validation.is_valid
        assert run.audit_recorded is False

    def test_single_district(self, source):
        run = CoverageAnalysisService(source, InMemoryResultSink()).run('education', district_id='d2')

        assert len(run.results) == 1
        # (50 + 75) / 2
        assert run.results[0].percentage_covered == 62.5
        assert run.results[0].coverage_level == CoverageLevel.MEDIUM
        assert [d.id for d in run.districts] == ['d2']

    def test_audit_for_all_districts(self, source):
        sink = InMemoryResultSink()
        run = CoverageAnalysisService(source, sink).run('telecom', user_id='analyst-7')

        assert run.audit_recorded is True
        assert sink.audit_log[0].user_id == 'analyst-7'
        assert sink.audit_log[0].action == 'analysis'
        assert sink.audit_log[0].details == 'Ran telecom coverage analysis for all districts'

    def test_audit_for_one_district(self, source):
        sink = InMemoryResultSink()
        CoverageAnalysisService(source, sink).run('education', district_id='d2', user_id='analyst-7')

        assert sink.audit_log[0].details == 'Ran education coverage analysis for district Gulu'

    def test_persistence_failure_keeps_results(self, source):
        sink = FailingSink(fail_audit=False)
        run = CoverageAnalysisService(source, sink).run('telecom', user_id='analyst-7')

        assert len(run.results) == 2
        assert run.persisted is False
        assert "unavailable" in run.persist_error
        assert run.audit_recorded is True

    def test_audit_failure_is_non_fatal(self, source):
        run = CoverageAnalysisService(source, FailingSink()).run('telecom', user_id='analyst-7')

        assert len(run.results) == 2
        assert run.audit_recorded is False
        assert "audit_log" in run.audit_error

    def test_without_sink(self, source):
        run = CoverageAnalysisService(source).run('healthcare')

        assert run.persisted is False
        assert all(r.percentage_covered == 0 for r in run.results)

    def test_unknown_district(self, source):
        with pytest.raises(NoDistrictsError):
            CoverageAnalysisService(source, InMemoryResultSink()).run('telecom', district_id='d-404')

    def test_unknown_analysis_type(self, source):
        with pytest.raises(ConfigurationError):
            CoverageAnalysisService(source).run('water')


def test_audit_details():
    assert audit_details(AnalysisType.INTERNET) == 'Ran internet coverage analysis for all districts'
    assert audit_details(
        AnalysisType.HEALTHCARE, District(id='d1', name='Lira')
    ) == 'Ran healthcare coverage analysis for district Lira'
