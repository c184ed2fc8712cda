"""
Tests for analysis configuration and logging setup.
"""

import json
import logging

import pytest
import yaml

from tpmap.core.logger import configure_logging, get_logger, log_execution_time
from tpmap.io import load_analysis_config, save_analysis_config
from tpmap.model.config import AnalysisConfig
from tpmap.model.normalization import ExperimentType, NormalizationMethod


class TestAnalysisConfig:
    """Tests for the AnalysisConfig dataclass."""

    def test_defaults(self):
        config = AnalysisConfig()
        assert config.normalization_method == NormalizationMethod.NONE
        assert config.min_percentile == 0.2
        assert config.max_percentile == 0.8
        assert config.tm_weight == 0.7
        assert config.bootstrap_iterations == 0
        assert config.seed == 123

    def test_from_dict_ignores_unknown_keys(self):
        config = AnalysisConfig.from_dict({"normalization": "median", "colour": "blue"})
        assert config.normalization_method == NormalizationMethod.MEDIAN

    def test_round_trip_dict(self):
        config = AnalysisConfig(normalization="median", bootstrap_iterations=500, n_jobs=2)
        assert AnalysisConfig.from_dict(config.to_dict()) == config

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"min_percentile": 1.5},
            {"tm_weight": -0.1},
            {"bootstrap_iterations": -1},
            {"curve_fit_attempts": -2},
            {"n_jobs": 0},
        ],
    )
    def test_invalid_values(self, kwargs):
        with pytest.raises(ValueError):
            AnalysisConfig(**kwargs)

    def test_unknown_normalization(self):
        with pytest.raises(KeyError):
            AnalysisConfig(normalization="quantile")

    def test_apply_overrides_skips_none(self):
        config = AnalysisConfig(seed=7)
        config.apply_overrides({"seed": None, "tm_weight": 0.4})
        assert config.seed == 7
        assert config.tm_weight == 0.4

    def test_apply_overrides_validates(self):
        config = AnalysisConfig()
        with pytest.raises(ValueError):
            config.apply_overrides({"max_percentile": 2.0})


class TestConfigFiles:
    """Tests for YAML and JSON configuration files."""

    def test_yaml(self, tmp_path):
        config = AnalysisConfig(normalization="median", tm_weight=0.5)
        path = tmp_path / "config.yaml"
        save_analysis_config(config, path)
        assert yaml.safe_load(path.read_text())["tm_weight"] == 0.5
        assert load_analysis_config(path) == config

    def test_json(self, tmp_path):
        config = AnalysisConfig(bootstrap_iterations=100)
        path = tmp_path / "nested" / "config.json"
        save_analysis_config(config, path)
        assert json.loads(path.read_text())["bootstrap_iterations"] == 100
        assert load_analysis_config(path) == config

    def test_partial_file_keeps_defaults(self, tmp_path):
        path = tmp_path / "config.yml"
        path.write_text("seed: 42\n")
        config = load_analysis_config(path)
        assert config.seed == 42
        assert config.curve_fit_attempts == 10

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_analysis_config(path) == AnalysisConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_analysis_config(tmp_path / "missing.yaml")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text("")
        with pytest.raises(ValueError, match="Unsupported config format"):
            load_analysis_config(path)
        with pytest.raises(ValueError, match="Unsupported format"):
            save_analysis_config(AnalysisConfig(), path, format="toml")


class TestExperimentType:
    """Tests for the ExperimentType enum."""

    @pytest.mark.parametrize("name", ["2d", "2D", "TP2D", "tp2d"])
    def test_2d_names(self, name):
        assert ExperimentType.from_str(name) == ExperimentType.TP2D

    def test_unknown(self):
        with pytest.raises(KeyError):
            ExperimentType.from_str("3d")


class TestLogging:
    """Tests for the logging helpers."""

    def test_get_logger_namespace(self):
        assert get_logger("scoring").name == "tpmap.scoring"
        assert get_logger("tpmap.io").name == "tpmap.io"

    def test_configure_logging_writes_file(self, tmp_path):
        log_file = tmp_path / "logs" / "tpmap.log"
        root = configure_logging("debug", log_file=log_file)
        try:
            get_logger("tpmap.test").debug("hello from the test")
            for handler in root.handlers:
                handler.flush()
            assert "hello from the test" in log_file.read_text()
            assert root.level == logging.DEBUG
        finally:
            for handler in list(root.handlers):
                if not isinstance(handler, logging.NullHandler):
                    root.removeHandler(handler)
                    handler.close()

    def test_log_execution_time(self, caplog):
        @log_execution_time(logger=get_logger("tpmap.test"))
        def work():
            return 42

        with caplog.at_level(logging.INFO, logger="tpmap"):
            assert work() == 42
        assert "finished in" in caplog.text
