"""
Coverage analysis: models, engine and metrics.

The run service lives in ``infra_coverage.analysis.service``.
"""
from .tiers import classify_coverage, classify_connection_quality
from .telecom import TelecomCoverage, TelecomCoverageModel, overlap_factor
from .facilities import FacilityCoverage, FacilityCoverageModel
from .engine import CoverageEngine, parse_analysis_type
from .metrics import (
    CoverageMetrics,
    DistrictRanking,
    SummaryStats,
    calculate_coverage_metrics,
    calculate_efficiency_score,
    calculate_reliability_index,
    calculate_infrastructure_health,
    calculate_growth_capacity,
    summarize_infrastructure,
)

__all__ = [
    'classify_coverage',
    'classify_connection_quality',
    'TelecomCoverage',
    'TelecomCoverageModel',
    'overlap_factor',
    'FacilityCoverage',
    'FacilityCoverageModel',
    'CoverageEngine',
    'parse_analysis_type',
    'CoverageMetrics',
    'DistrictRanking',
    'SummaryStats',
    'calculate_coverage_metrics',
    'calculate_efficiency_score',
    'calculate_reliability_index',
    'calculate_infrastructure_health',
    'calculate_growth_capacity',
    'summarize_infrastructure',
]
