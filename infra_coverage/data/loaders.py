"""
Data loading functions with validation.

Loads district and infrastructure exports from CSV files, validates every
row against its pydantic schema and reports data quality problems.
Invalid rows are dropped; a file fails as a whole only when the share of
invalid rows passes a threshold.
"""
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple, Type, TypeVar

import pandas as pd
from pydantic import BaseModel, ValidationError

from infra_coverage.data.schemas import District, Tower, School, Hospital
from infra_coverage.utils.exceptions import DataLoadError, DataValidationError
from infra_coverage.utils.logging_config import get_logger

logger = get_logger(__name__)

RecordT = TypeVar("RecordT", bound=BaseModel)

# Column aliases found in store exports -> schema field names
COLUMN_ALIASES: Dict[str, str] = {
    'area': 'area_sqkm',
    'area_km2': 'area_sqkm',
    'lat': 'latitude',
    'lon': 'longitude',
    'lng': 'longitude',
    'coverage_radius_km': 'coverage_radius',
    'students': 'student_count',
    'bed_count': 'beds',
    'geom': 'location',
}

# Districts are the denominator of every result, so be stricter with them
MAX_DISTRICT_ERROR_RATE = 0.05
MAX_INFRASTRUCTURE_ERROR_RATE = 0.10


def standardize_columns(df: pd.DataFrame, aliases: Optional[Dict[str, str]] = None) -> pd.DataFrame:
    """Rename alias columns to schema field names, leaving existing fields alone."""
    aliases = COLUMN_ALIASES if aliases is None else aliases
    rename_map = {
        old: new for old, new in aliases.items()
        if old in df.columns and new not in df.columns
    }
    if rename_map:
        df = df.rename(columns=rename_map)
    return df


def dataframe_to_records(df: pd.DataFrame) -> List[dict]:
    """Convert rows to dictionaries with NaN/NaT replaced by None."""
    clean = df.astype(object).where(pd.notna(df), None)
    return clean.to_dict(orient='records')


def validate_records(
    rows: Sequence[dict],
    schema_class: Type[RecordT]
) -> Tuple[List[RecordT], List[dict]]:
    """
    Validate row dictionaries against a Pydantic schema.

    Args:
        rows: Row dictionaries
        schema_class: Pydantic model class (District, Tower, School or Hospital)

    Returns:
        Tuple of (valid_records, list_of_validation_errors)

    Example:
        >>> records, errors = validate_records(rows, Tower)
        >>> print(f"Validation errors: {len(errors)}")
    """
    records = []
    validation_errors = []

    for idx, row in enumerate(rows):
        try:
            records.append(schema_class(**row))
        except ValidationError as e:
            validation_errors.append({
                'row_index': idx,
                'errors': e.errors(include_url=False),
                'row_sample': {k: row.get(k) for k in list(row.keys())[:5]}
            })

    return records, validation_errors


def load_records(
    file_path: Path,
    schema_class: Type[RecordT],
    max_error_rate: float = MAX_INFRASTRUCTURE_ERROR_RATE,
) -> List[RecordT]:
    """
    Load and validate records of one schema from CSV.

    Args:
        file_path: Path to CSV file
        schema_class: Pydantic model each row must satisfy
        max_error_rate: Largest tolerated share of invalid rows

    Returns:
        List of validated records

    Raises:
        DataLoadError: If file not found or cannot be read
        DataValidationError: If too many rows fail validation
    """
    if not file_path.exists():
        raise DataLoadError(f"{schema_class.__name__} file not found: {file_path}")

    logger.info("loading_records", file=str(file_path), schema=schema_class.__name__)

    try:
        df = pd.read_csv(file_path, dtype={'id': str, 'district_id': str})
    except (OSError, ValueError, pd.errors.ParserError) as e:
        raise DataLoadError(f"Failed to read {file_path}: {e}") from e

    df = standardize_columns(df)
    logger.info("records_read", rows=len(df), columns=len(df.columns))

    rows = dataframe_to_records(df)
    records, validation_errors = validate_records(rows, schema_class)

    if validation_errors:
        error_rate = len(validation_errors) / len(rows)
        logger.warning(
            "record_validation_errors",
            schema=schema_class.__name__,
            total_rows=len(rows),
            invalid_rows=len(validation_errors),
            error_rate=f"{error_rate:.2%}"
        )

        if error_rate > max_error_rate:
            raise DataValidationError(
                f"{schema_class.__name__} data validation failed: "
                f"{len(validation_errors)} invalid rows",
                invalid_rows=len(validation_errors),
                details={
                    'total_rows': len(rows),
                    'error_rate': error_rate,
                    'sample_errors': validation_errors[:5]
                }
            )

    return records


def load_districts(file_path: Path) -> List[District]:
    """
    Load and validate districts from CSV.

    Example:
        >>> districts = load_districts(Path("data/districts.csv"))
        >>> print(f"Loaded {len(districts)} districts")
    """
    return load_records(file_path, District, max_error_rate=MAX_DISTRICT_ERROR_RATE)


def load_towers(file_path: Path) -> List[Tower]:
    """Load and validate telecom towers from CSV."""
    return load_records(file_path, Tower)


def load_schools(file_path: Path) -> List[School]:
    """Load and validate schools from CSV."""
    return load_records(file_path, School)


def load_hospitals(file_path: Path) -> List[Hospital]:
    """Load and validate hospitals from CSV."""
    return load_records(file_path, Hospital)


def get_data_summary(records: Sequence[BaseModel], data_type: str = "towers") -> dict:
    """
    Generate summary statistics for loaded records.

    Args:
        records: Validated records
        data_type: 'districts', 'towers', 'schools' or 'hospitals'

    Returns:
        Dictionary with summary statistics

    Example:
        >>> towers = load_towers(Path("data/telecom_towers.csv"))
        >>> summary = get_data_summary(towers, "towers")
        >>> print(summary['status_counts'])
    """
    df = pd.DataFrame([r.model_dump(exclude={'location'}) for r in records])
    summary = {'total_rows': len(df)}

    if df.empty:
        return summary

    if data_type == "districts":
        summary.update({
            'total_population': int(df['population'].fillna(0).sum()),
            'total_area_sqkm': float(df['area_sqkm'].fillna(0).sum()),
            'missing_population': int(df['population'].isna().sum()),
            'missing_area': int(df['area_sqkm'].isna().sum()),
        })
    elif data_type == "towers":
        summary.update({
            'status_counts': df['status'].value_counts().to_dict(),
            'type_counts': df['type'].value_counts().to_dict(),
            'unique_districts': int(df['district_id'].nunique()),
        })
    elif data_type in ("schools", "hospitals"):
        summary.update({
            'with_internet': int(df['has_internet'].fillna(False).astype(bool).sum()),
            'unique_districts': int(df['district_id'].nunique()),
        })

    return summary
