#!/usr/bin/env python3
"""
Tests for the configuration manager.
"""
import unittest
import tempfile
import json
import os
import sys
from pathlib import Path
from unittest.mock import patch

# Add the parent directory to sys.path so we can import from config
sys.path.insert(0, os.path.abspath(os.path.dirname(os.path.dirname(__file__))))

from config.config_manager import ConfigManager, AppConfig
from model.exceptions import ConfigurationError
from model.constants import DEFAULT_DRAWS, DEFAULT_STEP_METHOD


class TestAppConfig(unittest.TestCase):
    """Tests for AppConfig."""

    def test_defaults(self):
        cfg = AppConfig()
        self.assertEqual(cfg.data_score_col, "MMSE")
        self.assertEqual(cfg.model_n_draws, DEFAULT_DRAWS)
        self.assertTrue(cfg.data_standardize)

    def test_unknown_attribute_raises(self):
        with self.assertRaises(AttributeError):
            AppConfig().n_draws

    def test_covariates(self):
        cfg = AppConfig()
        self.assertEqual(cfg.covariate_cols, ["Age", "EDUC", "SES", "eTIV", "nWBV", "male"])
        self.assertNotIn("SES", cfg.hierarchical_covariate_cols)
        self.assertEqual(len(cfg.hierarchical_covariate_cols), 5)


class TestConfigManager(unittest.TestCase):
    """Tests for ConfigManager."""

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self.tmp.name)
        self.data_path = self.tmp_path / "visits.csv"
        self.data_path.write_text("MMSE\n30\n")

    def tearDown(self):
        self.tmp.cleanup()

    def _write_config(self, content):
        path = self.tmp_path / "config.json"
        path.write_text(json.dumps(content))
        return path

    def test_load_prefixed_and_unprefixed_keys(self):
        path = self._write_config({"n_draws": 500, "model_n_tune": 300, "score_col": "Score", "show_plots": True})
        manager = ConfigManager(config_path=path)

        self.assertEqual(manager.app_config.model_n_draws, 500)
        self.assertEqual(manager.app_config.model_n_tune, 300)
        self.assertEqual(manager.app_config.data_score_col, "Score")
        self.assertTrue(manager.app_config.show_plots)

    def test_missing_file_keeps_defaults(self):
        manager = ConfigManager(config_path=self.tmp_path / "absent.json")
        self.assertEqual(manager.app_config.model_n_draws, DEFAULT_DRAWS)

    def test_invalid_json_raises(self):
        path = self.tmp_path / "broken.json"
        path.write_text("{not json")
        with self.assertRaises(ConfigurationError):
            ConfigManager(config_path=path)

    def test_env_overrides(self):
        env = {"OASIS_N_CHAINS": "4", "OASIS_DATA_STANDARDIZE": "false", "OASIS_RESULTS_DIR": "out"}
        with patch.dict(os.environ, env):
            manager = ConfigManager()
        self.assertEqual(manager.app_config.model_n_chains, 4)
        self.assertFalse(manager.app_config.data_standardize)
        self.assertEqual(manager.app_config.results_dir, "out")

    def test_invalid_env_value_is_ignored(self):
        with patch.dict(os.environ, {"OASIS_N_DRAWS": "many"}):
            manager = ConfigManager()
        self.assertEqual(manager.app_config.model_n_draws, DEFAULT_DRAWS)

    def test_save_and_reload(self):
        manager = ConfigManager()
        manager.app_config.model_n_draws = 1234
        path = self.tmp_path / "saved" / "config.json"
        manager.save_config(path)

        saved = json.loads(path.read_text())
        self.assertEqual(saved["model_n_draws"], 1234)
        self.assertEqual(ConfigManager(config_path=path).app_config.model_n_draws, 1234)

    def test_validate_clamps_sampling_parameters(self):
        manager = ConfigManager()
        cfg = manager.app_config
        cfg.data_path = str(self.data_path)
        cfg.model_n_draws = 10
        cfg.model_n_tune = 0
        cfg.model_n_chains = 0
        cfg.model_step_method = "gibbs"
        cfg.model_target_accept = 1.5

        self.assertTrue(manager.validate())
        self.assertEqual(cfg.model_n_draws, 100)
        self.assertEqual(cfg.model_n_tune, 50)
        self.assertEqual(cfg.model_n_chains, 1)
        self.assertEqual(cfg.model_step_method, DEFAULT_STEP_METHOD)
        self.assertLess(cfg.model_target_accept, 1)

    def test_validate_fails_without_data(self):
        manager = ConfigManager()
        manager.app_config.data_path = str(self.tmp_path / "absent.csv")
        self.assertFalse(manager.validate())

    def test_validate_fails_with_equal_gender_labels(self):
        manager = ConfigManager()
        manager.app_config.data_path = str(self.data_path)
        manager.app_config.data_male_label = manager.app_config.data_female_label
        self.assertFalse(manager.validate())


if __name__ == '__main__':
    unittest.main()
