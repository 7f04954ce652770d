"""
Validation of coverage results.

Flags results that break the coverage invariants before persistence.
"""
from .validators import (
    CoverageResultValidator,
    ValidationResult,
    ValidationIssue,
    IssueSeverity,
)

__all__ = [
    'CoverageResultValidator',
    'ValidationResult',
    'ValidationIssue',
    'IssueSeverity',
]
