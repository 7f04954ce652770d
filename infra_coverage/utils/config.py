"""
Configuration management using Pydantic for validation.

This module provides type-safe configuration loading and validation
for coverage analysis runs. Configuration lives in YAML files; every
section is optional and falls back to the documented model defaults.
"""
import os
import re
from pathlib import Path
from typing import Optional, Dict, List, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from infra_coverage.utils.exceptions import ConfigurationError


def _expand_env_vars(value: str) -> str:
    """Expand ${VAR} references in string values."""
    pattern = r'\$\{([^}]+)\}'

    def replace_var(match):
        return os.environ.get(match.group(1), '')

    return re.sub(pattern, replace_var, value)


class TelecomParams(BaseModel):
    """Parameters for the tower coverage model."""
    weight_by_tower_type: bool = Field(
        True, description="Weight tower areas by type and status; if False only active towers count"
    )
    overlap_model: Literal["reciprocal", "linear"] = Field(
        "reciprocal", description="Overlap discount curve applied to the summed tower area"
    )
    overlap_coefficient: float = Field(0.1, ge=0.0, description="Log coefficient of the overlap discount")
    max_overlap_discount: float = Field(0.7, ge=0.0, le=1.0, description="Cap of the linear overlap discount")
    default_radius_km: float = Field(5.0, gt=0.0, description="Coverage radius when a tower has none (km)")
    type_weights: Dict[str, float] = Field(
        default_factory=lambda: {
            'cellular': 1.0,
            'microwave': 0.8,   # directional
            'satellite': 1.5,
            'fiber_node': 0.5,
        }
    )
    status_weights: Dict[str, float] = Field(
        default_factory=lambda: {
            'active': 1.0,
            'maintenance': 0.5,
            'inactive': 0.0,
        }
    )
    km2_per_tower: float = Field(25.0, gt=0.0, description="Area one tower ideally serves (km2)")
    population_per_km2_for_area_estimate: float = Field(
        100.0, gt=0.0, description="Divisor turning population into an area estimate"
    )
    default_area_sqkm: float = Field(1000.0, gt=0.0, description="District area when nothing else is known")
    default_population_density: float = Field(
        400.0, ge=0.0, description="People per km2 used when a district has no population (Uganda average)"
    )


class FacilityParams(BaseModel):
    """Parameters for the school/hospital ratio model."""
    school_radius_km: float = Field(2.0, ge=0.0)
    hospital_radius_km: float = Field(5.0, ge=0.0)


class TierThresholds(BaseModel):
    """Coverage tier boundaries (percent)."""
    high: float = Field(70.0, ge=0.0, le=100.0)
    medium: float = Field(40.0, ge=0.0, le=100.0)

    @model_validator(mode='after')
    def check_order(self):
        if self.medium > self.high:
            raise ValueError(f"medium threshold ({self.medium}) must not exceed high ({self.high})")
        return self


class GeometryParams(BaseModel):
    """Circle synthesis parameters."""
    circle_points: int = Field(32, ge=3, le=720)
    earth_radius_km: float = Field(6371.0, gt=0.0)


class ProcessingParams(BaseModel):
    """Processing configuration."""
    n_workers: int = Field(1, ge=1, le=32, description="Threads used to analyze districts")


class InputParams(BaseModel):
    """Input file locations for the CSV data source."""
    base_path: Optional[Path] = None
    files: Dict[str, str] = Field(
        default_factory=lambda: {
            "districts": "districts.csv",
            "towers": "telecom_towers.csv",
            "schools": "schools.csv",
            "hospitals": "hospitals.csv",
        }
    )

    @field_validator('base_path', mode='before')
    @classmethod
    def expand_path(cls, v):
        if isinstance(v, str):
            return Path(_expand_env_vars(v))
        return v


class OutputParams(BaseModel):
    """Output locations and formats for the file result sink."""
    base_path: Optional[Path] = None
    formats: Dict[str, bool] = Field(
        default_factory=lambda: {
            "csv": True,
            "geojson": False,
        }
    )
    result_columns: Optional[List[str]] = Field(
        None, description="Restrict persisted result columns (None = all)"
    )

    @field_validator('base_path', mode='before')
    @classmethod
    def expand_path(cls, v):
        if isinstance(v, str):
            return Path(_expand_env_vars(v))
        return v


class CoverageConfig(BaseModel):
    """Complete configuration for a coverage analysis run."""
    analysis_version: str = "2.0"
    telecom: TelecomParams = Field(default_factory=TelecomParams)
    facilities: FacilityParams = Field(default_factory=FacilityParams)
    tiers: TierThresholds = Field(default_factory=TierThresholds)
    geometry: GeometryParams = Field(default_factory=GeometryParams)
    processing: ProcessingParams = Field(default_factory=ProcessingParams)
    inputs: InputParams = Field(default_factory=InputParams)
    outputs: OutputParams = Field(default_factory=OutputParams)


def load_config(config_path: Path) -> CoverageConfig:
    """
    Load and validate configuration from YAML file.

    Args:
        config_path: Path to YAML config file

    Returns:
        Validated CoverageConfig object

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If YAML is malformed or validation fails

    Example:
        >>> config = load_config(Path("config/coverage.yaml"))
        >>> config.telecom.default_radius_km
        5.0
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path, 'r') as f:
            config_dict = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Malformed YAML in {config_path}: {e}") from e

    if not isinstance(config_dict, dict):
        raise ConfigurationError(f"Config root must be a mapping: {config_path}")

    try:
        return CoverageConfig(**config_dict)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration in {config_path}: {e}") from e


def get_default_config() -> CoverageConfig:
    """
    Get default configuration.

    Returns:
        Default CoverageConfig
    """
    return CoverageConfig()
