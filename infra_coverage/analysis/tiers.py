"""
Coverage tier and connection quality classification.
"""
from typing import Optional

from infra_coverage.data.schemas import CoverageLevel
from infra_coverage.utils.config import TierThresholds

# (lower bound, label), checked top-down
CONNECTION_QUALITY_BANDS = (
    (75.0, 'Excellent'),
    (60.0, 'Good'),
    (40.0, 'Fair'),
)


def classify_coverage(percentage: float, thresholds: Optional[TierThresholds] = None) -> CoverageLevel:
    """
    Map a coverage percentage to its tier.

    Args:
        percentage: Percent of the district covered
        thresholds: Tier boundaries (default High >= 70, Medium >= 40)

    Returns:
        CoverageLevel.HIGH, MEDIUM or LOW

    Example:
        >>> classify_coverage(70.0)
        <CoverageLevel.HIGH: 'High'>
        >>> classify_coverage(39.9)
        <CoverageLevel.LOW: 'Low'>
    """
    thresholds = thresholds or TierThresholds()
    if percentage >= thresholds.high:
        return CoverageLevel.HIGH
    if percentage >= thresholds.medium:
        return CoverageLevel.MEDIUM
    return CoverageLevel.LOW


def classify_connection_quality(average_coverage: float) -> str:
    """Label the average coverage of a set of districts (Excellent/Good/Fair/Poor)."""
    for lower_bound, label in CONNECTION_QUALITY_BANDS:
        if average_coverage >= lower_bound:
            return label
    return 'Poor'
