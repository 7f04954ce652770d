"""
Data loading and validation module.

Provides Pydantic schemas for district and infrastructure records,
CSV loaders with validation, and the data sources the analysis
service reads from.
"""
from infra_coverage.data.schemas import (
    AnalysisType,
    AuditRecord,
    CoverageLevel,
    CoverageResult,
    District,
    Hospital,
    InfrastructureKind,
    InfrastructurePoint,
    School,
    Tower,
)
from infra_coverage.data.loaders import (
    load_districts,
    load_towers,
    load_schools,
    load_hospitals,
)
from infra_coverage.data.sources import (
    DataSource,
    InMemoryDataSource,
    CSVDataSource,
    PostgresDataSource,
)

__all__ = [
    'AnalysisType',
    'AuditRecord',
    'CoverageLevel',
    'CoverageResult',
    'District',
    'Hospital',
    'InfrastructureKind',
    'InfrastructurePoint',
    'School',
    'Tower',
    'load_districts',
    'load_towers',
    'load_schools',
    'load_hospitals',
    'DataSource',
    'InMemoryDataSource',
    'CSVDataSource',
    'PostgresDataSource',
]
