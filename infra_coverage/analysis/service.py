"""
Analysis service: one complete coverage run.

Fetches inputs from a ``DataSource``, runs the ``CoverageEngine``,
validates the results and hands them to a ``ResultSink``. Persistence
and auditing are best-effort; their failures are recorded on the
returned ``AnalysisRun`` and never discard computed results.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Union

from infra_coverage.analysis.engine import CoverageEngine, TOWER_ANALYSES, parse_analysis_type
from infra_coverage.data.schemas import (
    AnalysisType,
    AuditRecord,
    CoverageResult,
    District,
    InfrastructureKind,
)
from infra_coverage.data.sources import DataSource
from infra_coverage.outputs.sinks import ResultSink
from infra_coverage.utils.exceptions import PersistenceError
from infra_coverage.utils.logging_config import get_logger
from infra_coverage.validation.validators import CoverageResultValidator, ValidationResult

logger = get_logger(__name__)

KIND_FOR_ANALYSIS = {
    AnalysisType.TELECOM: InfrastructureKind.TOWERS,
    AnalysisType.INTERNET: InfrastructureKind.TOWERS,
    AnalysisType.EDUCATION: InfrastructureKind.SCHOOLS,
    AnalysisType.HEALTHCARE: InfrastructureKind.HOSPITALS,
}


@dataclass
class AnalysisRun:
    """Outcome of one service run."""
    analysis_type: AnalysisType
    results: List[CoverageResult]
    districts: List[District] = field(default_factory=list)
    validation: Optional[ValidationResult] = None
    persisted: bool = False
    persist_error: Optional[str] = None
    audit_recorded: bool = False
    audit_error: Optional[str] = None


def audit_details(analysis_type: AnalysisType, district: Optional[District] = None) -> str:
    """Human readable description of a run for the audit log."""
    target = f"district {district.name}" if district is not None else "all districts"
    return f"Ran {analysis_type.value} coverage analysis for {target}"


class CoverageAnalysisService:
    """
    Runs coverage analyses against injected read and write collaborators.

    Args:
        source: Where districts and infrastructure are read from
        sink: Where results and audit records are written
        engine: Engine to use; a default engine when omitted
    """

    def __init__(
        self,
        source: DataSource,
        sink: Optional[ResultSink] = None,
        engine: Optional[CoverageEngine] = None
    ):
        self.source = source
        self.sink = sink
        self.engine = engine or CoverageEngine()
        self.validator = CoverageResultValidator(self.engine.config.tiers)

    def run(
        self,
        analysis_type: Union[AnalysisType, str],
        district_id: Optional[str] = None,
        user_id: Optional[str] = None,
        calculated_at: Optional[datetime] = None
    ) -> AnalysisRun:
        """
        Run one analysis.

        Args:
            analysis_type: telecom, internet, education or healthcare
            district_id: Restrict the run to one district
            user_id: Who triggered the run; an audit record is written when given
            calculated_at: Timestamp of the run

        Returns:
            AnalysisRun with results and persistence outcome

        Raises:
            ConfigurationError: Unknown analysis type
            NoDistrictsError: No district matches ``district_id``
            DataLoadError: Inputs could not be read
        """
        analysis_type = parse_analysis_type(analysis_type)
        districts = self.source.list_districts()
        selected = [d for d in districts if district_id is None or d.id == district_id]

        kind = KIND_FOR_ANALYSIS[analysis_type]
        records = self.source.list_infrastructure(kind, district_id)
        logger.info(
            "analysis_inputs_loaded",
            analysis_type=analysis_type.value,
            districts=len(selected),
            kind=kind.value,
            records=len(records),
        )

        results = self.engine.analyze(
            districts,
            analysis_type,
            towers=records if analysis_type in TOWER_ANALYSES else (),
            schools=records if analysis_type == AnalysisType.EDUCATION else (),
            hospitals=records if analysis_type == AnalysisType.HEALTHCARE else (),
            district_id=district_id,
            calculated_at=calculated_at,
        )

        run = AnalysisRun(
            analysis_type=analysis_type,
            results=results,
            districts=selected,
            validation=self.validator.validate(results, selected),
        )

        if self.sink is not None:
            try:
                self.sink.persist(results)
                run.persisted = True
            except PersistenceError as e:
                run.persist_error = str(e)
                logger.error("persist_results_failed", error=str(e), results=len(results))

            if user_id:
                district = selected[0] if district_id is not None else None
                record = AuditRecord(user_id=user_id, details=audit_details(analysis_type, district))
                try:
                    self.sink.record_audit(record)
                    run.audit_recorded = True
                except PersistenceError as e:
                    run.audit_error = str(e)
                    logger.error("audit_record_failed", error=str(e), user_id=user_id)

        return run
