# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

from pathlib import Path

import pytest

from driverprov.config.settings import ProvisionConfig, default_work_root, token_from_env
from driverprov.core.exceptions import ConfigError


@pytest.mark.unit
class TestProvisionConfig:
    def test_endpoints(self, tmp_path):
        cfg = ProvisionConfig(owner="contoso", repo="drivers", branch="pilot", work_root=tmp_path)

        assert cfg.raw_base == "https://raw.githubusercontent.com/contoso/drivers/pilot"
        assert cfg.repo_api == "https://api.github.com/repos/contoso/drivers"

    def test_working_tree_layout(self, tmp_path):
        cfg = ProvisionConfig(owner="o", repo="r", work_root=tmp_path)

        assert cfg.downloads_dir == tmp_path / "downloads"
        assert cfg.extraction_root == tmp_path / "drivers"
        assert cfg.manifest_copy_path == tmp_path / "manifest.json"
        assert cfg.report_path == tmp_path / "last-run.json"
        assert cfg.log_path == tmp_path / "logs" / "driverprov.log"

    def test_explicit_log_file(self, tmp_path):
        cfg = ProvisionConfig(owner="o", repo="r", work_root=tmp_path, log_file=tmp_path / "x.log")
        assert cfg.log_path == tmp_path / "x.log"

    def test_token_not_in_repr(self):
        cfg = ProvisionConfig(owner="o", repo="r", token="ghp_secret")
        assert "ghp_secret" not in repr(cfg)
        assert cfg.to_jsonable()["token"] == "***REDACTED***"

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"owner": "", "repo": "r"},
            {"owner": "o", "repo": "  "},
            {"owner": "a/b", "repo": "r"},
            {"owner": "o", "repo": "r", "retries": 0},
            {"owner": "o", "repo": "r", "retry_delay_s": -1},
            {"owner": "o", "repo": "r", "registry_name": " "},
            {"owner": "o", "repo": "r", "fallback_models": "hp-840"},
            {"owner": "o", "repo": "r", "fallback_models": [{"model": "x"}]},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigError):
            ProvisionConfig(**kwargs)

    def test_retry_policy(self):
        cfg = ProvisionConfig(owner="o", repo="r", retries=4, retry_delay_s=2)
        assert cfg.retry_policy.max_attempts == 4
        assert cfg.retry_policy.delay_s == 2.0


@pytest.mark.unit
def test_default_work_root_uses_programdata():
    assert default_work_root({"ProgramData": "C:\\ProgramData"}) == Path("C:\\ProgramData") / "DriverProv"


@pytest.mark.unit
def test_token_env_order():
    assert token_from_env({"GITHUB_TOKEN": "b", "DRIVERPROV_TOKEN": "a"}) == "a"
    assert token_from_env({"GITHUB_TOKEN": "b"}) == "b"
    assert token_from_env({"DRIVERPROV_TOKEN": "  "}) is None
