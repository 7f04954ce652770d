"""
Result sinks: the write side of a coverage run.

A sink receives the computed results and the audit record of a run.
Persistence is best-effort from the caller's point of view: sinks raise
``PersistenceError`` and the analysis service records it without
discarding the in-memory results.

Output files of ``FileResultSink``:
1. coverage_analysis.csv - one row per district and analysis type
2. coverage_analysis.geojson - same rows with coverage areas (optional)
3. audit_log.csv - one row per recorded run
"""
import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Sequence

import geopandas as gpd
import pandas as pd
from shapely import wkt

from infra_coverage.data.schemas import AuditRecord, CoverageResult
from infra_coverage.utils.config import OutputParams
from infra_coverage.utils.exceptions import PersistenceError
from infra_coverage.utils.logging_config import get_logger

logger = get_logger(__name__)

RESULTS_FILE = 'coverage_analysis.csv'
GEOJSON_FILE = 'coverage_analysis.geojson'
AUDIT_FILE = 'audit_log.csv'

SUPERSEDE_KEY = ['district_id', 'coverage_type']


def supersede(existing: pd.DataFrame, df: pd.DataFrame) -> pd.DataFrame:
    """
    Rows of ``existing`` not replaced by ``df``, followed by ``df``.

    A row is replaced when ``df`` holds a result for the same district and
    analysis type. Without the key columns ``existing`` cannot be matched
    and is dropped.
    """
    if not set(SUPERSEDE_KEY).issubset(existing.columns):
        return df

    keys = set(zip(df['district_id'], df['coverage_type']))
    kept = [
        (d, t) not in keys
        for d, t in zip(existing['district_id'].astype(str), existing['coverage_type'])
    ]
    return pd.concat([existing[kept], df], ignore_index=True)


class ResultSink(ABC):
    """Abstract base class for result sinks."""

    @abstractmethod
    def persist(self, results: Sequence[CoverageResult]) -> None:
        """Store results, superseding earlier results of the same district and type."""
        pass

    @abstractmethod
    def record_audit(self, record: AuditRecord) -> None:
        """Append an audit record."""
        pass


class InMemoryResultSink(ResultSink):
    """Keeps results and audit records in lists."""

    def __init__(self):
        self.results: List[CoverageResult] = []
        self.audit_log: List[AuditRecord] = []

    def persist(self, results: Sequence[CoverageResult]) -> None:
        replaced = {(r.district_id, r.coverage_type) for r in results}
        self.results = [
            r for r in self.results if (r.district_id, r.coverage_type) not in replaced
        ] + list(results)

    def record_audit(self, record: AuditRecord) -> None:
        self.audit_log.append(record)


class FileResultSink(ResultSink):
    """
    Writes results and audit records to files under ``base_path``.

    Args:
        config: Output configuration (base path, formats, column whitelist)
    """

    def __init__(self, config: OutputParams):
        if config.base_path is None:
            raise PersistenceError("File result sink requires outputs.base_path")
        self.config = config
        self.base_path = Path(config.base_path)

    def _select_columns(self, df: pd.DataFrame) -> pd.DataFrame:
        """Keep only whitelisted columns that exist in the frame."""
        if not self.config.result_columns:
            return df
        columns = [c for c in self.config.result_columns if c in df.columns]
        dropped = [c for c in df.columns if c not in columns]
        if dropped:
            logger.debug("result_columns_dropped", columns=dropped)
        return df[columns]

    def persist(self, results: Sequence[CoverageResult]) -> None:
        """
        Write results as CSV (and GeoJSON when enabled).

        Raises:
            PersistenceError: If any output file cannot be written
        """
        df = pd.DataFrame([r.to_record() for r in results])
        if df.empty:
            logger.info("no_results_to_persist")
            return

        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            if self.config.formats.get('csv', True):
                self._write_csv(df)
            if self.config.formats.get('geojson', False):
                self._write_geojson(df)
        except (OSError, ValueError, RuntimeError) as e:
            raise PersistenceError(f"Failed to persist coverage results: {e}") from e

    def _write_csv(self, df: pd.DataFrame) -> None:
        output_path = self.base_path / RESULTS_FILE
        if output_path.exists():
            existing = pd.read_csv(output_path, dtype={'district_id': str})
            df = supersede(existing, df)

        df = self._select_columns(df)
        df.to_csv(output_path, index=False)
        logger.info("results_written", path=str(output_path), rows=len(df))

    def _read_geojson(self, path: Path) -> pd.DataFrame:
        """Earlier GeoJSON rows with geometries back as WKT ``coverage_area``."""
        with open(path) as f:
            features = json.load(f).get('features', [])
        if not features:
            return pd.DataFrame()

        existing = gpd.GeoDataFrame.from_features(features)
        existing['coverage_area'] = existing.geometry.to_wkt()
        return pd.DataFrame(existing.drop(columns='geometry'))

    def _write_geojson(self, df: pd.DataFrame) -> None:
        output_path = self.base_path / GEOJSON_FILE
        if output_path.exists():
            df = supersede(self._read_geojson(output_path), df)

        geometry = [wkt.loads(area) if isinstance(area, str) else None for area in df['coverage_area']]
        properties = self._select_columns(df.drop(columns=['coverage_area']))
        gdf = gpd.GeoDataFrame(properties, geometry=geometry, crs='EPSG:4326')
        gdf.to_file(output_path, driver='GeoJSON')
        logger.info("results_written", path=str(output_path), rows=len(gdf))

    def record_audit(self, record: AuditRecord) -> None:
        """
        Append one row to ``audit_log.csv``.

        Raises:
            PersistenceError: If the audit log cannot be written
        """
        output_path = self.base_path / AUDIT_FILE
        row = record.model_dump()
        row['created_at'] = record.created_at.isoformat()
        try:
            self.base_path.mkdir(parents=True, exist_ok=True)
            pd.DataFrame([row]).to_csv(
                output_path, mode='a', index=False, header=not output_path.exists()
            )
        except OSError as e:
            raise PersistenceError(f"Failed to write audit record: {e}") from e
        logger.info("audit_recorded", user_id=record.user_id, action=record.action)
