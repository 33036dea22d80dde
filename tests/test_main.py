#!/usr/bin/env python3
"""
Tests for the command line entry point.
"""
import unittest
import tempfile
import os
import sys
from pathlib import Path
from unittest.mock import patch

import matplotlib
matplotlib.use("Agg")

# Add the parent directory to sys.path so we can import main
sys.path.insert(0, os.path.abspath(os.path.dirname(os.path.dirname(__file__))))
sys.path.insert(0, os.path.abspath(os.path.dirname(__file__)))

from main import main, parse_arguments, setup_config
from utils.logging_utils import LoggerProvider
from fixtures import write_visits_csv


class TestMain(unittest.TestCase):
    """Tests for main.py."""

    def setUp(self):
        self._saved_logger = LoggerProvider._logger
        self.tmp = tempfile.TemporaryDirectory()
        self.tmp_path = Path(self.tmp.name)
        self.csv_path = self.tmp_path / "visits.csv"
        write_visits_csv(self.csv_path)
        self.env = patch.dict(os.environ, {"OASIS_LOG_TO_FILE": "false"})
        self.env.start()

    def tearDown(self):
        self.env.stop()
        self.tmp.cleanup()
        LoggerProvider._logger = self._saved_logger

    def test_arguments_override_config(self):
        args = parse_arguments([
            "--draws", "500", "--tune", "250", "--chains", "4", "--target-accept", "0.95",
            "--step-method", "metropolis", "--seed", "3", "--no-standardize", "--show-plots",
        ])
        cfg = setup_config(args).app_config

        self.assertEqual(cfg.model_n_draws, 500)
        self.assertEqual(cfg.model_n_tune, 250)
        self.assertEqual(cfg.model_n_chains, 4)
        self.assertEqual(cfg.model_target_accept, 0.95)
        self.assertEqual(cfg.model_step_method, "metropolis")
        self.assertEqual(cfg.model_random_seed, 3)
        self.assertFalse(cfg.data_standardize)
        self.assertTrue(cfg.show_plots)

    def test_defaults_come_from_config(self):
        args = parse_arguments([])
        self.assertEqual(args.run, "full")
        self.assertIsNone(args.draws)

    def test_invalid_run_choice(self):
        with self.assertRaises(SystemExit):
            parse_arguments(["--run", "compare"])

    def test_ols_run_succeeds(self):
        code = main([
            "--run", "ols", "--data-path", str(self.csv_path),
            "--results-dir", str(self.tmp_path / "results"), "--no-plots",
        ])
        self.assertEqual(code, 0)
        self.assertTrue((self.tmp_path / "results" / "summary.json").exists())
        self.assertTrue((self.tmp_path / "results" / "config.json").exists())

    def test_missing_data_returns_error_code(self):
        code = main(["--run", "ols", "--data-path", str(self.tmp_path / "absent.csv"),
                     "--results-dir", str(self.tmp_path / "results")])
        self.assertEqual(code, 1)

    def test_non_numeric_covariate_returns_error_code(self):
        visits = write_visits_csv(self.csv_path)
        visits["Age"] = visits["Age"].astype(object)
        visits.loc[0, "Age"] = "unknown"
        visits.to_csv(self.csv_path, index=False)

        code = main(["--run", "ols", "--data-path", str(self.csv_path),
                     "--results-dir", str(self.tmp_path / "results"), "--no-plots"])
        self.assertEqual(code, 1)

    def test_unexpected_error_returns_error_code(self):
        with patch("main.run_single_model", side_effect=ValueError("bad value")):
            code = main(["--run", "ols", "--data-path", str(self.csv_path),
                         "--results-dir", str(self.tmp_path / "results"), "--no-plots"])
        self.assertEqual(code, 1)

    def test_broken_config_returns_error_code(self):
        broken = self.tmp_path / "broken.json"
        broken.write_text("{")
        self.assertEqual(main(["--config", str(broken)]), 1)


if __name__ == '__main__':
    unittest.main()
