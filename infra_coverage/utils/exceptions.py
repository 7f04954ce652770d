"""
Custom exception hierarchy for infrastructure coverage analysis.

All custom exceptions inherit from CoverageError for easy catching.
"""


class CoverageError(Exception):
    """Base exception for all coverage analysis errors."""
    pass


class ConfigurationError(CoverageError):
    """Configuration-related errors.

    Raised when configuration loading or validation fails, or when an
    unknown analysis type is requested.

    Example:
        >>> raise ConfigurationError("Unknown analysis type: water")
    """
    pass


class DataValidationError(CoverageError):
    """Data validation errors.

    Raised when input records fail validation checks.

    Attributes:
        invalid_rows: Number of rows that failed validation
        details: Dictionary with validation error details
    """

    def __init__(self, message: str, invalid_rows: int = 0, details: dict = None):
        super().__init__(message)
        self.invalid_rows = invalid_rows
        self.details = details or {}

    def __str__(self):
        base = super().__str__()
        if self.invalid_rows > 0:
            return f"{base} (invalid_rows={self.invalid_rows})"
        return base


class DataLoadError(CoverageError):
    """Data loading errors.

    Raised when district or infrastructure data cannot be loaded or parsed.

    Example:
        >>> raise DataLoadError("Failed to load districts: file not found")
    """
    pass


class AnalysisError(CoverageError):
    """Coverage analysis errors.

    Attributes:
        analysis_type: Analysis type that was running when the error occurred
    """

    def __init__(self, message: str, analysis_type: str = None):
        super().__init__(message)
        self.analysis_type = analysis_type

    def __str__(self):
        base = super().__str__()
        if self.analysis_type:
            return f"{base} (analysis_type={self.analysis_type})"
        return base


class NoDistrictsError(AnalysisError):
    """The requested district filter selected nothing to analyze.

    Distinguishes "nothing to run" from a run that found no coverage.
    The caller must pick a valid district or run a full analysis.
    """

    def __init__(self, message: str, analysis_type: str = None, district_id: str = None):
        super().__init__(message, analysis_type=analysis_type)
        self.district_id = district_id


class GeometryError(CoverageError):
    """Geometric calculation errors.

    Raised when geometry operations fail (e.g., negative radius).

    Example:
        >>> raise GeometryError("Coverage radius must be non-negative: -2.0")
    """
    pass


class CoordinateError(GeometryError):
    """A positional value could not be resolved to latitude/longitude.

    Attributes:
        value: The offending positional value (truncated repr)
    """

    def __init__(self, message: str, value=None):
        super().__init__(message)
        self.value = value


class PersistenceError(CoverageError):
    """Writing results or audit records failed.

    Never invalidates results that were already computed.
    """
    pass
