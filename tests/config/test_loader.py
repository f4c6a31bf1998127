"""
Tests for procurement_config loading, validation and bridges.

Tests cover:
- Bundled defaults load and validate
- Missing files and malformed sections raise typed errors
- Threshold coercion (int stays int, strings become Decimal)
- Checksum determinism
- Bridges into revision and detection engine configs
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from procurement_config import DEFAULT_CONFIG_PATH, get_default_config, load_config
from procurement_config.bridges import (
    build_detection_engine_config,
    build_revision_engine_config,
)
from procurement_config.loader import (
    compute_checksum,
    load_yaml_file,
    parse_configuration,
    parse_detection_settings,
    parse_revision_settings,
)
from procurement_engines.revision import RevisionEngine
from procurement_kernel.domain.ids import SequentialIdGenerator
from procurement_kernel.exceptions import (
    ConfigurationNotFoundError,
    InvalidConfigurationError,
)


def write_config(tmp_path: Path, data: dict) -> Path:
    path = tmp_path / "settings.yaml"
    path.write_text(yaml.safe_dump(data))
    return path


# =========================================================================
# Defaults
# =========================================================================


class TestDefaults:

    def test_default_file_ships_with_package(self):
        assert DEFAULT_CONFIG_PATH.is_file()

    def test_default_config(self):
        config = get_default_config()
        assert config.config_id == "procurement-default"
        assert config.version == 1
        assert "supplier_id" in config.revision.major_change_fields
        assert "ship_to" in config.revision.minor_change_fields
        assert config.revision.field_labels["supplier_id"] == "Supplier"
        assert config.detection.thresholds["late_delivery_critical_days"] == 7
        assert config.detection.thresholds["invoice_variance_tolerance"] == Decimal("0.01")
        assert len(config.checksum) == 64

    def test_load_emits_config_trace(self, captured_logs):
        get_default_config()
        traces = [r for r in captured_logs() if r["message"] == "PROCUREMENT_CONFIG_TRACE"]
        assert traces[-1]["config_set_id"] == "procurement-default"
        assert traces[-1]["checksum"]


# =========================================================================
# Loading
# =========================================================================


class TestLoading:

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationNotFoundError) as exc_info:
            load_yaml_file(tmp_path / "absent.yaml")
        assert exc_info.value.code == "CONFIGURATION_NOT_FOUND"

    def test_non_mapping_document(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(InvalidConfigurationError) as exc_info:
            load_yaml_file(path)
        assert exc_info.value.section == "root"

    def test_minimal_file(self, tmp_path):
        config = load_config(write_config(tmp_path, {"config_id": "minimal", "version": 3}))
        assert config.config_id == "minimal"
        assert config.revision.major_change_fields == ()
        assert config.detection.thresholds == {}

    def test_missing_config_id(self):
        with pytest.raises(InvalidConfigurationError, match="config_id"):
            parse_configuration({"version": 1})

    @pytest.mark.parametrize("version", [None, "1", True, 1.5])
    def test_version_must_be_integer(self, version):
        with pytest.raises(InvalidConfigurationError):
            parse_configuration({"config_id": "x", "version": version})


# =========================================================================
# Section validation
# =========================================================================


class TestRevisionSettings:

    def test_major_minor_overlap_rejected(self):
        with pytest.raises(InvalidConfigurationError, match="both major and minor: qty"):
            parse_revision_settings({
                "major_change_fields": ["qty", "supplier_id"],
                "minor_change_fields": ["qty"],
            })

    def test_fields_must_be_strings(self):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            parse_revision_settings({"ignore_fields": ["ok", 3]})
        assert exc_info.value.section == "revision.ignore_fields"

    @pytest.mark.parametrize("max_depth", [-1, "2", True])
    def test_bad_max_depth(self, max_depth):
        with pytest.raises(InvalidConfigurationError):
            parse_revision_settings({"max_depth": max_depth})

    def test_include_unchanged_must_be_bool(self):
        with pytest.raises(InvalidConfigurationError):
            parse_revision_settings({"include_unchanged": "yes"})


class TestDetectionSettings:

    def test_threshold_types(self):
        settings = parse_detection_settings({"thresholds": {"days": 5, "tolerance": "0.05", "cap": 1.5}})
        assert settings.thresholds["days"] == 5
        assert isinstance(settings.thresholds["days"], int)
        assert settings.thresholds["tolerance"] == Decimal("0.05")
        assert settings.thresholds["cap"] == Decimal("1.5")

    @pytest.mark.parametrize("value", ["lots", -1, True])
    def test_bad_threshold(self, value):
        with pytest.raises(InvalidConfigurationError) as exc_info:
            parse_detection_settings({"thresholds": {"days": value}})
        assert exc_info.value.section == "detection.thresholds.days"

    def test_thresholds_must_be_mapping(self):
        with pytest.raises(InvalidConfigurationError):
            parse_detection_settings({"thresholds": ["days"]})


# =========================================================================
# Checksum
# =========================================================================


class TestChecksum:

    def test_key_order_independent(self):
        assert compute_checksum({"a": 1, "b": {"c": 2}}) == compute_checksum({"b": {"c": 2}, "a": 1})

    def test_content_sensitive(self):
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})

    def test_same_file_same_checksum(self, tmp_path):
        path = write_config(tmp_path, {"config_id": "x", "version": 1})
        assert load_config(path).checksum == load_config(path).checksum


# =========================================================================
# Bridges
# =========================================================================


class TestBridges:

    def test_revision_engine_config(self):
        config = get_default_config()
        ids = SequentialIdGenerator()
        engine_config = build_revision_engine_config(config, generate_id=ids)

        assert engine_config.generate_id is ids
        assert engine_config.major_change_fields == config.revision.major_change_fields
        assert engine_config.ignore_fields == ("updated_at", "meta")
        assert engine_config.default_comparison_options.max_depth == 0

    def test_revision_engine_uses_configured_significance(self, deterministic_clock):
        engine = RevisionEngine(build_revision_engine_config(get_default_config()), deterministic_clock)
        change_set = engine.calculate_changes(
            {"supplier_id": "SUP-1", "updated_at": "t1"},
            {"supplier_id": "SUP-2", "updated_at": "t2"},
        )
        (change,) = change_set.field_changes
        assert change.label == "Supplier"
        assert engine.suggest_version_bump(change_set).value == "major"

    def test_detection_engine_config(self):
        engine_config = build_detection_engine_config(get_default_config())
        assert engine_config.default_config["late_delivery_critical_days"] == 7
        assert engine_config.default_meta == {"source_system": "procurement"}
