"""
Smoke tests for configuration loading and validation.
"""

import os

import pytest

from models.config import Config
from ops.config import _deep_merge, load_config, validate_config


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    def test_empty_config_passes(self):
        """Every section is optional."""
        assert validate_config({}) == (True, None)

    def test_negative_device_id(self, valid_config):
        valid_config["source"]["device_id"] = -1

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "device_id" in error

    def test_bad_resolution(self, valid_config):
        valid_config["source"]["resolution"] = [640]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "resolution" in error

    def test_unknown_backend(self, valid_config):
        valid_config["detection"]["backend"] = "bgsub"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "detection.backend" in error

    @pytest.mark.parametrize("threshold", [-0.1, 1.5, "high"])
    def test_threshold_out_of_range(self, valid_config, threshold):
        valid_config["counting"]["confidence_threshold"] = threshold

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "confidence_threshold" in error

    def test_threshold_bounds_inclusive(self, valid_config):
        for threshold in (0, 1, 0.0, 1.0):
            valid_config["counting"]["confidence_threshold"] = threshold
            assert validate_config(valid_config) == (True, None)

    def test_classes_must_be_strings(self, valid_config):
        valid_config["counting"]["classes"] = ["person", 3]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "classes" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "log_level" in error

    def test_invalid_port(self, valid_config):
        valid_config["web"] = {"port": 70000}

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert "web.port" in error


class TestLoadConfig:
    """Tests for layered config loading."""

    def test_loads_default_only(self, temp_config_dir):
        cfg = load_config(str(temp_config_dir / "config.yaml"))

        assert cfg["source"]["resolution"] == [640, 480]
        assert cfg["detection"]["backend"] == "yolo"

    def test_local_overrides_merge(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text(
            "counting:\n  confidence_threshold: 0.8\n"
        )

        cfg = load_config(str(temp_config_dir / "config.yaml"))

        assert cfg["counting"]["confidence_threshold"] == 0.8
        # Sibling keys survive the merge
        assert cfg["counting"]["classes"] == ["person", "car", "truck", "bus"]

    def test_explicit_file_wins(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("log_level: WARNING\n")
        explicit = temp_config_dir / "site.yaml"
        explicit.write_text("log_level: DEBUG\nweb:\n  port: 8080\n")

        cfg = load_config(str(explicit))

        assert cfg["log_level"] == "DEBUG"
        assert cfg["web"]["port"] == 8080

    def test_non_mapping_raises(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("- just\n- a list\n")

        with pytest.raises(ValueError):
            load_config(str(temp_config_dir / "config.yaml"))

    def test_deep_merge_replaces_lists(self):
        base = {"a": {"b": [1, 2], "c": 1}}
        merged = _deep_merge(base, {"a": {"b": [3]}})

        assert merged == {"a": {"b": [3], "c": 1}}


class TestTypedConfig:
    """Tests for Config.from_dict defaults and round trip."""

    def test_defaults(self):
        cfg = Config.from_dict({})

        assert cfg.counting.confidence_threshold == 0.5
        assert cfg.counting.classes == ["person", "car", "truck", "bus"]
        assert cfg.detection.backend == "yolo"
        assert cfg.display.width is None
        assert cfg.web.port == 5000

    def test_from_valid_config(self, valid_config):
        cfg = Config.from_dict(valid_config)

        assert cfg.source.resolution == [1280, 720]
        assert cfg.detection.backend == "static"
        assert len(cfg.detection.static_detections) == 1

    def test_round_trip(self, valid_config):
        cfg = Config.from_dict(valid_config)
        again = Config.from_dict(cfg.to_dict())

        assert again == cfg

    def test_checked_in_default_is_valid(self):
        path = os.path.join(os.path.dirname(__file__), "..", "config", "default.yaml")
        cfg = load_config(path)

        assert validate_config(cfg) == (True, None)
