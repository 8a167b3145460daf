# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/config/settings.py

from __future__ import annotations

import os
import tempfile
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from ..core.exceptions import REDACTED, wrap_config
from ..core.retry import RetryPolicy

DEFAULT_RAW_ROOT = "https://raw.githubusercontent.com"
DEFAULT_API_ROOT = "https://api.github.com"
DEFAULT_REGISTRY_PATH = r"HKLM\SOFTWARE\DriverProv"
DEFAULT_REGISTRY_NAME = "DriversInstalled"
TOKEN_ENV_VARS = ("DRIVERPROV_TOKEN", "GITHUB_TOKEN")


def default_work_root(env: Optional[Mapping[str, str]] = None) -> Path:
    env = os.environ if env is None else env
    base = env.get("ProgramData") or env.get("PROGRAMDATA") or tempfile.gettempdir()
    return Path(base) / "DriverProv"


def token_from_env(env: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if env is None else env
    for name in TOKEN_ENV_VARS:
        v = (env.get(name) or "").strip()
        if v:
            return v
    return None


@dataclass(frozen=True)
class ProvisionConfig:
    """Everything a run needs, built once in main() and passed down."""

    owner: str
    repo: str
    branch: str = "main"
    manifest: Optional[str] = None
    model: Optional[str] = None
    token: Optional[str] = field(default=None, repr=False)

    catalog_path: str = "catalog.json"
    manifest_dir: str = "manifests"
    fallback_models: Any = None

    raw_root: str = DEFAULT_RAW_ROOT
    api_root: str = DEFAULT_API_ROOT
    connect_timeout_s: float = 15.0
    read_timeout_s: float = 120.0

    work_root: Path = field(default_factory=default_work_root)
    log_file: Optional[Path] = None

    registry_path: str = DEFAULT_REGISTRY_PATH
    registry_name: str = DEFAULT_REGISTRY_NAME
    pnputil_path: Optional[Path] = None

    retries: int = 3
    retry_delay_s: float = 5.0
    dry_run: bool = False

    def __post_init__(self) -> None:
        for name in ("owner", "repo", "branch"):
            v = getattr(self, name)
            if not isinstance(v, str) or not v.strip():
                raise wrap_config(f"'{name}' is required")
            if "/" in v.strip("/") and name != "branch":
                raise wrap_config(f"'{name}' must not contain '/': {v!r}")
        if int(self.retries) < 1:
            raise wrap_config(f"'retries' must be >= 1, got {self.retries}")
        if float(self.retry_delay_s) < 0:
            raise wrap_config(f"'retry_delay_s' must be >= 0, got {self.retry_delay_s}")
        if not self.registry_name.strip():
            raise wrap_config("'registry_name' must not be empty")
        if fallback_models_invalid(self.fallback_models):
            raise wrap_config("'fallback_models' must be a mapping or a list of {model|pattern, manifest}")

    # -- working tree --------------------------------------------------------

    @property
    def downloads_dir(self) -> Path:
        return self.work_root / "downloads"

    @property
    def extraction_root(self) -> Path:
        return self.work_root / "drivers"

    @property
    def manifest_copy_path(self) -> Path:
        return self.work_root / "manifest.json"

    @property
    def report_path(self) -> Path:
        return self.work_root / "last-run.json"

    @property
    def log_path(self) -> Path:
        return self.log_file or (self.work_root / "logs" / "driverprov.log")

    # -- endpoints -----------------------------------------------------------

    @property
    def raw_base(self) -> str:
        return f"{self.raw_root.rstrip('/')}/{self.owner}/{self.repo}/{self.branch}"

    @property
    def repo_api(self) -> str:
        return f"{self.api_root.rstrip('/')}/repos/{self.owner}/{self.repo}"

    @property
    def timeout(self) -> tuple:
        return (float(self.connect_timeout_s), float(self.read_timeout_s))

    @property
    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(max_attempts=int(self.retries), delay_s=float(self.retry_delay_s))

    def to_jsonable(self) -> Dict[str, Any]:
        d = asdict(self)
        d["token"] = REDACTED if self.token else None
        return {k: (str(v) if isinstance(v, Path) else v) for k, v in d.items()}


def fallback_models_invalid(value: Any) -> bool:
    if value is None or isinstance(value, dict):
        return False
    if not isinstance(value, list):
        return True
    return any(not isinstance(item, dict) or not item.get("manifest") for item in value)


def build_config(args: Any, conf: Mapping[str, Any], env: Optional[Mapping[str, str]] = None) -> ProvisionConfig:
    """Assemble a ProvisionConfig from parsed flags (config defaults already applied)."""
    token = getattr(args, "token", None) or token_from_env(env)
    work_root = getattr(args, "work_root", None)
    log_file = getattr(args, "log_file", None)
    pnputil = getattr(args, "pnputil_path", None)

    try:
        return ProvisionConfig(
            owner=str(getattr(args, "owner", None) or ""),
            repo=str(getattr(args, "repo", None) or ""),
            branch=str(getattr(args, "branch", None) or "main"),
            manifest=getattr(args, "manifest", None) or None,
            model=getattr(args, "model", None) or None,
            token=token,
            catalog_path=str(args.catalog_path),
            manifest_dir=str(args.manifest_dir),
            fallback_models=conf.get("fallback_models"),
            raw_root=str(args.raw_root),
            api_root=str(args.api_root),
            connect_timeout_s=float(args.connect_timeout_s),
            read_timeout_s=float(args.read_timeout_s),
            work_root=Path(work_root).expanduser() if work_root else default_work_root(env),
            log_file=Path(log_file).expanduser() if log_file else None,
            registry_path=str(args.registry_path),
            registry_name=str(args.registry_name),
            pnputil_path=Path(pnputil) if pnputil else None,
            retries=int(args.retries),
            retry_delay_s=float(args.retry_delay_s),
            dry_run=bool(args.dry_run),
        )
    except (TypeError, ValueError) as e:
        raise wrap_config(f"Invalid configuration value: {e}", e)
