# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/cli/groups.py
from __future__ import annotations

import argparse

from ..config.settings import (
    DEFAULT_API_ROOT,
    DEFAULT_RAW_ROOT,
    DEFAULT_REGISTRY_NAME,
    DEFAULT_REGISTRY_PATH,
)


def _add_global_config_logging(p: argparse.ArgumentParser) -> None:
    # ------------------------------------------------------------------
    # Global config/logging (two-phase parse relies on these)
    # ------------------------------------------------------------------
    from .. import __version__

    p.add_argument(
        "--config",
        action="append",
        default=[],
        help="YAML/JSON config file (repeatable; later overrides earlier).",
    )
    p.add_argument("--dump-config", action="store_true", help="Print merged configuration (token redacted) and exit.")
    p.add_argument("--version", action="version", version=__version__)
    p.add_argument("-v", "--verbose", action="count", default=0, help="Verbosity: -vv debug, -vvv trace")
    p.add_argument("-q", "--quiet", action="count", default=0, help="Less output: -q warnings, -qq errors")
    p.add_argument("--log-file", dest="log_file", default=None, help="Log file (default: <work-root>/logs/driverprov.log).")
    p.add_argument("--json-logs", dest="json_logs", action="store_true", help="Emit NDJSON log lines.")


def _add_repository(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("Repository")
    g.add_argument("--owner", default=None, help="Repository owner (user or organization).")
    g.add_argument("--repo", default=None, help="Repository name.")
    g.add_argument("--branch", default="main", help="Branch for catalog/manifest/raw files.")
    g.add_argument(
        "--token",
        default=None,
        help="API token for release access (env fallback: DRIVERPROV_TOKEN, GITHUB_TOKEN).",
    )
    g.add_argument("--raw-root", dest="raw_root", default=DEFAULT_RAW_ROOT, help="Static file endpoint root.")
    g.add_argument("--api-root", dest="api_root", default=DEFAULT_API_ROOT, help="REST API root.")
    g.add_argument("--connect-timeout", dest="connect_timeout_s", type=float, default=15.0, help="HTTP connect timeout (s).")
    g.add_argument("--read-timeout", dest="read_timeout_s", type=float, default=120.0, help="HTTP read timeout (s).")
    g.add_argument("--retries", type=int, default=3, help="Attempts per network call (1 disables retrying).")
    g.add_argument("--retry-delay", dest="retry_delay_s", type=float, default=5.0, help="Fixed delay between attempts (s).")


def _add_resolution(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("Model resolution")
    g.add_argument("--manifest", default=None, help="Manifest name; skips the catalog lookup.")
    g.add_argument("--model", default=None, help="Use this model string instead of querying the hardware.")
    g.add_argument("--catalog-path", dest="catalog_path", default="catalog.json", help="Catalog path in the repository.")
    g.add_argument("--manifest-dir", dest="manifest_dir", default="manifests", help="Directory of manifests in the repository.")


def _add_install(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("Install")
    g.add_argument("--work-root", dest="work_root", default=None, help="Working tree (default: %%ProgramData%%\\DriverProv).")
    g.add_argument("--pnputil", dest="pnputil_path", default=None, help="Explicit pnputil.exe path.")
    g.add_argument("--registry-path", dest="registry_path", default=DEFAULT_REGISTRY_PATH, help="Completion marker key.")
    g.add_argument("--registry-name", dest="registry_name", default=DEFAULT_REGISTRY_NAME, help="Completion marker value name.")
    g.add_argument(
        "--dry-run",
        dest="dry_run",
        action="store_true",
        help="Download and extract, but do not run pnputil or write the marker.",
    )
