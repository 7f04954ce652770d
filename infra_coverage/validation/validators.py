"""
Validation of computed coverage results.

Flags results that break the coverage invariants before they are
persisted. Critical results are reported, not removed; callers decide
what to do with them.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from shapely import wkt
from shapely.errors import GEOSException

from infra_coverage.analysis.tiers import classify_coverage
from infra_coverage.data.schemas import CoverageResult, District
from infra_coverage.utils.config import TierThresholds
from infra_coverage.utils.logging_config import get_logger

logger = get_logger(__name__)


class IssueSeverity(Enum):
    """Severity levels for validation issues."""
    CRITICAL = "CRITICAL"  # Breaks a coverage invariant
    WARNING = "WARNING"    # Suspicious, review recommended
    INFO = "INFO"


@dataclass
class ValidationIssue:
    """A single validation issue found in a coverage result."""
    district_id: Any
    severity: IssueSeverity
    rule: str
    message: str
    actual_value: Any = None
    expected_range: Optional[str] = None


@dataclass
class ValidationResult:
    """Result of validating a set of coverage results."""
    total_results: int
    valid_results: int
    flagged_results: int
    issues: List[ValidationIssue] = field(default_factory=list)

    @property
    def critical_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == IssueSeverity.CRITICAL)

    @property
    def warning_count(self) -> int:
        return sum(1 for i in self.issues if i.severity == IssueSeverity.WARNING)

    @property
    def is_valid(self) -> bool:
        """True when no critical issue was found."""
        return self.critical_count == 0

    def log_summary(self):
        """Log a summary of validation results."""
        logger.info(
            "validation_complete",
            total=self.total_results,
            valid=self.valid_results,
            flagged=self.flagged_results,
            critical=self.critical_count,
            warnings=self.warning_count,
        )

        if self.critical_count > 0:
            logger.warning(
                "invalid_coverage_results",
                flagged=self.flagged_results,
                critical_issues=self.critical_count,
                rules=sorted({i.rule for i in self.issues if i.severity == IssueSeverity.CRITICAL}),
            )


class CoverageResultValidator:
    """
    Validator for coverage results.

    Rules:
    - PERCENTAGE_RANGE (critical): percentage outside 0-100
    - POPULATION_EXCEEDED (critical): more people covered than live in the district
    - LEVEL_MISMATCH (critical): tier does not match the percentage
    - INVALID_GEOMETRY (warning): coverage area is not readable WKT
    """

    def __init__(self, thresholds: Optional[TierThresholds] = None):
        self.thresholds = thresholds or TierThresholds()

    def validate(
        self,
        results: Sequence[CoverageResult],
        districts: Sequence[District] = ()
    ) -> ValidationResult:
        """
        Validate coverage results against their districts.

        Parameters
        ----------
        results : Sequence[CoverageResult]
            Results to validate
        districts : Sequence[District]
            Source districts; population checks are skipped for districts
            that are missing or have no known population

        Returns
        -------
        ValidationResult
            Validation results with flagged issues
        """
        if not results:
            return ValidationResult(total_results=0, valid_results=0, flagged_results=0)

        populations: Dict[str, Optional[int]] = {d.id: d.population for d in districts}
        issues = []
        critical_ids = set()

        for result in results:
            district_id = result.district_id
            pct = result.percentage_covered

            if not 0 <= pct <= 100:
                issues.append(ValidationIssue(
                    district_id=district_id,
                    severity=IssueSeverity.CRITICAL,
                    rule="PERCENTAGE_RANGE",
                    message=f"Coverage {pct}% outside valid range",
                    actual_value=pct,
                    expected_range="0-100",
                ))
                critical_ids.add(district_id)

            population = populations.get(district_id)
            if population is not None and result.population_covered > population:
                issues.append(ValidationIssue(
                    district_id=district_id,
                    severity=IssueSeverity.CRITICAL,
                    rule="POPULATION_EXCEEDED",
                    message=f"Population covered {result.population_covered} exceeds district population {population}",
                    actual_value=result.population_covered,
                    expected_range=f"0-{population}",
                ))
                critical_ids.add(district_id)

            expected_level = classify_coverage(pct, self.thresholds)
            if result.coverage_level != expected_level:
                issues.append(ValidationIssue(
                    district_id=district_id,
                    severity=IssueSeverity.CRITICAL,
                    rule="LEVEL_MISMATCH",
                    message=f"Level {result.coverage_level.value} does not match {pct}% ({expected_level.value})",
                    actual_value=result.coverage_level.value,
                ))
                critical_ids.add(district_id)

            if result.coverage_area is not None:
                try:
                    wkt.loads(result.coverage_area)
                except (GEOSException, ValueError, TypeError) as e:
                    issues.append(ValidationIssue(
                        district_id=district_id,
                        severity=IssueSeverity.WARNING,
                        rule="INVALID_GEOMETRY",
                        message=f"Coverage area is not valid WKT: {e}",
                    ))

        validation = ValidationResult(
            total_results=len(results),
            valid_results=sum(1 for r in results if r.district_id not in critical_ids),
            flagged_results=len(critical_ids),
            issues=issues,
        )
        validation.log_summary()
        return validation
