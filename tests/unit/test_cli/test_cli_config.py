# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Unit Tests for CLI Configuration Loading

Tests YAML/JSON configuration file loading, merging, and two-phase parsing.
"""

import io
import json
import logging
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from driverprov.cli.parser import build_parser, parse_args_with_config
from driverprov.core.exceptions import ConfigError

LOG = logging.getLogger("driverprov.test")


def _parse(argv, env=None):
    return parse_args_with_config(argv, env=env or {}, logger=LOG)


class TestCLIConfigTwoPhaseParse(unittest.TestCase):
    """Test two-phase config parsing (config files + CLI args)"""

    def test_config_satisfies_required_owner_repo(self):
        """Owner/repo may come from a config file alone"""
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "cfg.yaml"
            cfg.write_text("owner: contoso\nrepo: drivers\n", encoding="utf-8")

            args, pc, conf, _logger = _parse(["--config", str(cfg)])

            self.assertEqual(pc.owner, "contoso")
            self.assertEqual(pc.repo, "drivers")
            self.assertIn("owner", conf)

    def test_cli_args_override_config(self):
        """Explicit flags win over config values"""
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "cfg.yaml"
            cfg.write_text("owner: contoso\nrepo: drivers\nbranch: staging\nretries: 5\n", encoding="utf-8")

            _args, pc, _conf, _logger = _parse(["--config", str(cfg), "--branch", "main", "--retries", "2"])

            self.assertEqual(pc.branch, "main")
            self.assertEqual(pc.retries, 2)

    def test_multiple_config_files_merge(self):
        """Later files override earlier ones"""
        with tempfile.TemporaryDirectory() as td:
            td = Path(td)
            base = td / "base.yaml"
            site = td / "site.json"
            base.write_text("owner: contoso\nrepo: drivers\nbranch: main\n", encoding="utf-8")
            site.write_text(json.dumps({"branch": "pilot", "dry-run": True}), encoding="utf-8")

            _args, pc, _conf, _logger = _parse(["--config", str(base), "--config", str(site)])

            self.assertEqual(pc.branch, "pilot")
            self.assertTrue(pc.dry_run)

    def test_fallback_models_from_config(self):
        """fallback_models has no flag and is read from config only"""
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "cfg.yaml"
            cfg.write_text(
                "owner: contoso\nrepo: drivers\nfallback_models:\n  EliteBook 840: hp-840\n",
                encoding="utf-8",
            )

            _args, pc, _conf, _logger = _parse(["--config", str(cfg)])

            self.assertEqual(pc.fallback_models, {"EliteBook 840": "hp-840"})

    def test_missing_config_file_is_config_error(self):
        with self.assertRaises(ConfigError) as cm:
            _parse(["--config", "/nonexistent/driverprov.yaml", "--owner", "o", "--repo", "r"])
        self.assertEqual(cm.exception.code, 2)

    def test_config_must_be_mapping(self):
        with tempfile.TemporaryDirectory() as td:
            cfg = Path(td) / "cfg.yaml"
            cfg.write_text("- just\n- a list\n", encoding="utf-8")
            with self.assertRaises(ConfigError):
                _parse(["--config", str(cfg)])

    def test_unmatched_glob_is_config_error(self):
        with tempfile.TemporaryDirectory() as td:
            with self.assertRaises(ConfigError):
                _parse(["--config", str(Path(td) / "*.yaml"), "--owner", "o", "--repo", "r"])


class TestCLIParse(unittest.TestCase):
    def test_owner_and_repo_required(self):
        with self.assertRaises(SystemExit) as cm:
            _parse([])
        self.assertEqual(cm.exception.code, 2)

    def test_defaults(self):
        _args, pc, _conf, _logger = _parse(["--owner", "contoso", "--repo", "drivers"])

        self.assertEqual(pc.branch, "main")
        self.assertEqual(pc.catalog_path, "catalog.json")
        self.assertEqual(pc.manifest_dir, "manifests")
        self.assertEqual(pc.retries, 3)
        self.assertEqual(pc.retry_delay_s, 5.0)
        self.assertEqual(pc.timeout, (15.0, 120.0))
        self.assertEqual(pc.registry_path, r"HKLM\SOFTWARE\DriverProv")
        self.assertEqual(pc.registry_name, "DriversInstalled")
        self.assertFalse(pc.dry_run)
        self.assertIsNone(pc.token)

    def test_token_from_environment(self):
        _args, pc, _conf, _logger = _parse(
            ["--owner", "o", "--repo", "r"], env={"GITHUB_TOKEN": "ghp_env", "ProgramData": "C:\\ProgramData"}
        )
        self.assertEqual(pc.token, "ghp_env")

    def test_token_flag_wins_over_environment(self):
        _args, pc, _conf, _logger = _parse(
            ["--owner", "o", "--repo", "r", "--token", "ghp_flag"], env={"DRIVERPROV_TOKEN": "ghp_env"}
        )
        self.assertEqual(pc.token, "ghp_flag")

    def test_invalid_retries_is_config_error(self):
        with self.assertRaises(ConfigError):
            _parse(["--owner", "o", "--repo", "r", "--retries", "0"])

    def test_dump_config_redacts_token(self):
        buf = io.StringIO()
        with redirect_stdout(buf), self.assertRaises(SystemExit) as cm:
            _parse(["--owner", "o", "--repo", "r", "--token", "ghp_secret", "--dump-config"])

        self.assertEqual(cm.exception.code, 0)
        out = json.loads(buf.getvalue())
        self.assertEqual(out["token"], "***REDACTED***")
        self.assertNotIn("ghp_secret", buf.getvalue())

    def test_help_lists_exit_codes(self):
        self.assertIn("Exit codes", build_parser().format_help())


if __name__ == "__main__":
    unittest.main()
