"""
Data source abstraction layer.

The coverage engine never talks to the data store directly; it is handed
records read through a ``DataSource``:
- In-memory lists (tests, embedding in another application)
- CSV exports of the store tables
- PostgreSQL/PostGIS tables
"""
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

import pandas as pd

from infra_coverage.data.loaders import (
    dataframe_to_records,
    load_records,
    standardize_columns,
    validate_records,
    MAX_DISTRICT_ERROR_RATE,
)
from infra_coverage.data.schemas import (
    District,
    Hospital,
    InfrastructureKind,
    InfrastructurePoint,
    School,
    Tower,
)
from infra_coverage.utils.config import InputParams
from infra_coverage.utils.exceptions import DataLoadError, DataValidationError
from infra_coverage.utils.logging_config import get_logger

logger = get_logger(__name__)

SCHEMAS = {
    InfrastructureKind.TOWERS: Tower,
    InfrastructureKind.SCHOOLS: School,
    InfrastructureKind.HOSPITALS: Hospital,
}

KindLike = Union[InfrastructureKind, str]


def _parse_kind(kind: KindLike) -> InfrastructureKind:
    try:
        return InfrastructureKind(kind)
    except ValueError as e:
        valid = [k.value for k in InfrastructureKind]
        raise DataLoadError(f"Unknown infrastructure kind: {kind!r}. Valid: {valid}") from e


def _filter_by_district(
    records: List[InfrastructurePoint],
    district_id: Optional[str]
) -> List[InfrastructurePoint]:
    if district_id is None:
        return list(records)
    return [r for r in records if r.district_id == district_id]


class DataSource(ABC):
    """Abstract base class for data sources."""

    @abstractmethod
    def list_districts(self) -> List[District]:
        """Load all districts."""
        pass

    @abstractmethod
    def list_infrastructure(
        self,
        kind: KindLike,
        district_id: Optional[str] = None
    ) -> List[InfrastructurePoint]:
        """Load towers, schools or hospitals, optionally for one district."""
        pass


class InMemoryDataSource(DataSource):
    """Data source over records already held in memory."""

    def __init__(
        self,
        districts: Sequence[District] = (),
        towers: Sequence[Tower] = (),
        schools: Sequence[School] = (),
        hospitals: Sequence[Hospital] = (),
    ):
        self._districts = list(districts)
        self._records = {
            InfrastructureKind.TOWERS: list(towers),
            InfrastructureKind.SCHOOLS: list(schools),
            InfrastructureKind.HOSPITALS: list(hospitals),
        }

    def list_districts(self) -> List[District]:
        return list(self._districts)

    def list_infrastructure(self, kind: KindLike, district_id: Optional[str] = None):
        kind = _parse_kind(kind)
        return _filter_by_district(self._records[kind], district_id)


class CSVDataSource(DataSource):
    """Data source implementation for CSV exports."""

    def __init__(self, config: InputParams):
        """
        Initialize CSV data source.

        Args:
            config: Input configuration with base path and file names
        """
        if config.base_path is None:
            raise DataLoadError("CSV data source requires inputs.base_path")

        self.config = config
        self._cache: Dict[str, list] = {}

        logger.info(
            "csv_source_initialized",
            base_path=str(self.config.base_path),
            files=list(self.config.files.keys())
        )

    def _get_path(self, file_key: str) -> Path:
        """Get full path for a file key."""
        if file_key not in self.config.files:
            raise DataLoadError(
                f"Unknown file key: {file_key}. Available: {list(self.config.files.keys())}"
            )
        return self.config.base_path / self.config.files[file_key]

    def list_districts(self, use_cache: bool = True) -> List[District]:
        """Load districts from ``districts.csv``."""
        if use_cache and 'districts' in self._cache:
            logger.debug("using_cached_districts")
            return list(self._cache['districts'])

        districts = load_records(self._get_path('districts'), District, MAX_DISTRICT_ERROR_RATE)

        if use_cache:
            self._cache['districts'] = districts
        return list(districts)

    def list_infrastructure(
        self,
        kind: KindLike,
        district_id: Optional[str] = None,
        use_cache: bool = True
    ) -> List[InfrastructurePoint]:
        """
        Load one infrastructure collection.

        A missing optional file (e.g. no hospitals export) yields an empty
        list with a warning rather than an error.
        """
        kind = _parse_kind(kind)
        cache_key = kind.value

        if use_cache and cache_key in self._cache:
            logger.debug("using_cached_infrastructure", kind=cache_key)
            return _filter_by_district(self._cache[cache_key], district_id)

        file_path = self._get_path(cache_key)
        if not file_path.exists():
            logger.warning("infrastructure_file_missing", kind=cache_key, path=str(file_path))
            records = []
        else:
            records = load_records(file_path, SCHEMAS[kind])

        if use_cache:
            self._cache[cache_key] = records
        return _filter_by_district(records, district_id)

    def clear_cache(self):
        """Clear all cached data."""
        self._cache.clear()
        logger.info("cache_cleared")


class PostgresDataSource(DataSource):
    """Data source implementation for PostgreSQL (PostGIS) tables."""

    DEFAULT_TABLES = {
        'districts': 'districts',
        'towers': 'telecom_towers',
        'schools': 'schools',
        'hospitals': 'hospitals',
    }

    def __init__(self, connection_string: str, tables: Optional[Dict[str, str]] = None):
        """
        Initialize PostgreSQL data source.

        Args:
            connection_string: SQLAlchemy database URL
            tables: Override of the table name per collection
        """
        self.connection_string = connection_string
        self.tables = {**self.DEFAULT_TABLES, **(tables or {})}
        self._engine = None

        logger.info("postgres_source_initialized", tables=list(self.tables.values()))

    def _get_engine(self):
        """Get or create SQLAlchemy engine."""
        if self._engine is None:
            try:
                from sqlalchemy import create_engine
                from sqlalchemy.exc import ArgumentError
            except ImportError as e:
                raise DataLoadError(
                    "SQLAlchemy not installed. Run: pip install 'infra-coverage[postgres]'"
                ) from e
            try:
                self._engine = create_engine(self.connection_string)
            except (ArgumentError, ValueError) as e:
                raise DataLoadError(f"Failed to create database connection: {e}") from e
            logger.info("postgres_engine_created")
        return self._engine

    def _load_rows(self, table_key: str) -> List[dict]:
        table_name = self.tables[table_key]
        logger.info("loading_table", table=table_name)
        engine = self._get_engine()
        from sqlalchemy.exc import SQLAlchemyError

        try:
            df = pd.read_sql_table(table_name, engine)
        except (SQLAlchemyError, ValueError) as e:
            raise DataLoadError(f"Table {table_name} could not be read: {e}") from e
        return dataframe_to_records(standardize_columns(df))

    def list_districts(self) -> List[District]:
        rows = self._load_rows('districts')
        districts, errors = validate_records(rows, District)
        if errors and len(errors) / len(rows) > MAX_DISTRICT_ERROR_RATE:
            raise DataValidationError(
                "District table validation failed",
                invalid_rows=len(errors),
                details={'sample_errors': errors[:5]},
            )
        logger.info("districts_loaded", rows=len(districts), invalid=len(errors))
        return districts

    def list_infrastructure(self, kind: KindLike, district_id: Optional[str] = None):
        kind = _parse_kind(kind)
        records, errors = validate_records(self._load_rows(kind.value), SCHEMAS[kind])
        if errors:
            logger.warning("infrastructure_rows_dropped", kind=kind.value, invalid=len(errors))
        return _filter_by_district(records, district_id)
