"""
Tests for configuration management.
"""
from pathlib import Path

import pytest
from pydantic import ValidationError

from infra_coverage.utils.config import (
    CoverageConfig,
    GeometryParams,
    InputParams,
    ProcessingParams,
    TelecomParams,
    TierThresholds,
    get_default_config,
    load_config,
)
from infra_coverage.utils.exceptions import ConfigurationError

REPO_ROOT = Path(__file__).resolve().parents[2]


def test_default_config():
    """Defaults match the documented coverage model."""
    config = get_default_config()

    assert config.analysis_version == "2.0"
    assert config.telecom.default_radius_km == 5.0
    assert config.telecom.overlap_model == "reciprocal"
    assert config.telecom.type_weights['satellite'] == 1.5
    assert config.telecom.status_weights['maintenance'] == 0.5
    assert config.facilities.school_radius_km == 2.0
    assert config.facilities.hospital_radius_km == 5.0
    assert config.tiers.high == 70.0
    assert config.tiers.medium == 40.0
    assert config.geometry.circle_points == 32
    assert config.processing.n_workers == 1


def test_load_example_config(monkeypatch):
    """The shipped example configuration is valid."""
    monkeypatch.setenv("INFRA_COVERAGE_DATA", "/srv/coverage")
    config = load_config(REPO_ROOT / "config" / "coverage.yaml")

    assert config.processing.n_workers == 4
    assert config.outputs.formats['geojson'] is True
    assert config.inputs.base_path == Path("/srv/coverage/input")


def test_config_file_not_found():
    """Test error handling when config file doesn't exist."""
    with pytest.raises(FileNotFoundError):
        load_config(Path("config/nonexistent.yaml"))


def test_empty_config_uses_defaults(tmp_path):
    config_file = tmp_path / "empty.yaml"
    config_file.write_text("")

    assert load_config(config_file) == CoverageConfig()


def test_partial_config(tmp_path):
    config_file = tmp_path / "partial.yaml"
    config_file.write_text("telecom:\n  weight_by_tower_type: false\n  overlap_model: linear\n")

    config = load_config(config_file)
    assert config.telecom.weight_by_tower_type is False
    assert config.telecom.overlap_model == "linear"
    assert config.telecom.default_radius_km == 5.0


def test_malformed_yaml(tmp_path):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("telecom: [unclosed\n")

    with pytest.raises(ConfigurationError, match="Malformed YAML"):
        load_config(config_file)


def test_non_mapping_root(tmp_path):
    config_file = tmp_path / "list.yaml"
    config_file.write_text("- a\n- b\n")

    with pytest.raises(ConfigurationError, match="mapping"):
        load_config(config_file)


def test_invalid_values_raise_configuration_error(tmp_path):
    config_file = tmp_path / "invalid.yaml"
    config_file.write_text("telecom:\n  overlap_model: quadratic\n")

    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_config(config_file)


def test_telecom_params_validation():
    """Radius must be positive and the discount cap within [0, 1]."""
    with pytest.raises(ValidationError):
        TelecomParams(default_radius_km=0)

    with pytest.raises(ValidationError):
        TelecomParams(max_overlap_discount=1.5)


def test_tier_thresholds_order():
    """Medium threshold may not exceed high."""
    TierThresholds(high=80, medium=50)

    with pytest.raises(ValidationError, match="must not exceed"):
        TierThresholds(high=30, medium=50)


def test_geometry_and_processing_bounds():
    with pytest.raises(ValidationError):
        GeometryParams(circle_points=2)

    with pytest.raises(ValidationError):
        ProcessingParams(n_workers=0)


def test_input_path_env_expansion(monkeypatch):
    monkeypatch.setenv("COVERAGE_DATA", "/data/uganda")
    params = InputParams(base_path="${COVERAGE_DATA}/exports")

    assert params.base_path == Path("/data/uganda/exports")
    assert params.files['towers'] == "telecom_towers.csv"
