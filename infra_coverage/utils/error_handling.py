"""
Error handling utilities for coverage analysis.

Provides numeric guards and input checks shared by the analysis models
and the metrics reductions.
"""
import math
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Sized

from infra_coverage.utils.logging_config import get_logger
from infra_coverage.utils.exceptions import DataValidationError

logger = get_logger(__name__)


def safe_division(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default on error.

    Parameters
    ----------
    numerator : float
        Numerator
    denominator : float
        Denominator
    default : float
        Value to return on division by zero, missing operands or error

    Returns
    -------
    float
        Result of division or default value
    """
    if numerator is None or denominator is None or denominator == 0:
        return default

    try:
        result = numerator / denominator
    except (ZeroDivisionError, ValueError, TypeError):
        return default

    if not math.isfinite(result):
        return default
    return result


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round to a fixed number of decimals with halves rounded away from zero.

    Python's round() uses banker's rounding, so 0.5 -> 0 and 2.5 -> 2.
    Dashboard figures are rounded the way people read them (2.5 -> 3).

    Parameters
    ----------
    value : float
        Value to round
    digits : int
        Number of decimal places

    Returns
    -------
    float
        Rounded value (0.0 for NaN/infinite input)

    Examples
    --------
    >>> round_half_up(20.65, 1)
    20.7
    >>> round_half_up(12.5)
    13.0
    """
    try:
        number = float(value)
        if not math.isfinite(number):
            raise ValueError(f"non-finite value: {number}")
        quantum = Decimal(1).scaleb(-digits)
        rounded = Decimal(repr(number)).quantize(quantum, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError, TypeError):
        logger.warning("round_half_up_invalid_value", value=value, returning=0.0)
        return 0.0
    return float(rounded)


def validate_not_empty(items: Sized, name: str = "input") -> None:
    """
    Validate that a collection is not empty.

    Parameters
    ----------
    items : Sized
        Collection to validate
    name : str
        Name of the collection for the error message

    Raises
    ------
    DataValidationError
        If the collection is empty
    """
    if len(items) == 0:
        raise DataValidationError(f"{name} is empty - no data to process")
