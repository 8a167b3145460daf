# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/orchestrator.py
from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Callable, List, Optional, Sequence, Tuple

import requests

from .archive import extract_archive
from .config.settings import ProvisionConfig
from .core.exceptions import (
    EXIT_INSTALL_FAILURES,
    EXIT_OK,
    DriverProvError,
    wrap_config,
    wrap_manifest,
)
from .core.file_ops import atomic_write, safe_join
from .core.logger import Log, get_logger
from .core.logging_utils import log_step
from .core.retry import retry_with_policy
from .core.utils import U
from .drivers import DriverInstaller, DryRunInstaller, PnpUtilInstaller, find_descriptors, install_all, resolve_pnputil
from .hardware import detect_model
from .manifest import fetch_manifest
from .marker import RegistryAccessor, WindowsRegistryAccessor, write_completion_marker
from .models import InstallOutcome, Manifest, PackageEntry, Release, RunReport, StandaloneFile
from .remote.raw import RawClient
from .remote.releases import ReleaseClient
from .remote.session import build_session
from .resolver import manifest_path, parse_catalog, parse_catalog_bytes, resolve_manifest_name

LOG = get_logger(__name__)


class Orchestrator:
    """
    One provisioning run, stage by stage:

      bootstrap -> resolve model -> manifest -> release assets -> extract
      -> install INFs -> completion marker -> run report

    Every collaborator with a side effect outside the working tree (HTTP
    session, pnputil, registry, model query, sleep) can be injected.
    """

    def __init__(
        self,
        config: ProvisionConfig,
        *,
        session: Optional[requests.Session] = None,
        installer: Optional[DriverInstaller] = None,
        registry_factory: Optional[Callable[[], RegistryAccessor]] = None,
        model_detector: Optional[Callable[[], str]] = None,
        sleep: Callable[[float], None] = time.sleep,
        logger: Optional[logging.Logger] = None,
    ):
        self.config = config
        self.logger = logger or LOG
        self.session = session if session is not None else build_session()
        self._installer = installer
        self._registry_factory = registry_factory or WindowsRegistryAccessor
        self._model_detector = model_detector or (lambda: detect_model(self.logger))
        self._sleep = sleep
        self.report = RunReport(dry_run=config.dry_run)

        self.raw = RawClient(self.session, config.raw_base, timeout=config.timeout, logger=self.logger)
        self.releases = ReleaseClient(
            self.session, config.repo_api, config.token, timeout=config.timeout, logger=self.logger
        )

    # -- helpers -------------------------------------------------------------

    def _retry(self, what: str, fn: Callable):
        return retry_with_policy(
            self.config.retry_policy, fn, operation_name=what, logger=self.logger, sleep=self._sleep
        )

    # -- stages --------------------------------------------------------------

    def bootstrap(self) -> None:
        cfg = self.config
        try:
            for d in (cfg.work_root, cfg.downloads_dir, cfg.extraction_root):
                U.ensure_dir(d)
        except OSError as e:
            raise wrap_config(f"Cannot create working tree under {cfg.work_root}: {e}", e)
        if not cfg.token:
            Log.warn(self.logger, "No API token (--token, DRIVERPROV_TOKEN, GITHUB_TOKEN); using anonymous requests")
        self.logger.info("Repository %s/%s@%s, working tree %s", cfg.owner, cfg.repo, cfg.branch, cfg.work_root)

    def resolve(self) -> str:
        cfg = self.config
        model = cfg.model
        if not model:
            try:
                model = self._model_detector()
            except DriverProvError:
                if not cfg.manifest:
                    raise
                Log.warn(self.logger, "Hardware model unknown; continuing with manifest override")
        self.report.model = model

        try:
            fallbacks = parse_catalog(cfg.fallback_models) if cfg.fallback_models else None
        except ValueError as e:
            raise wrap_config(f"Invalid fallback_models: {e}", e)

        def load_catalog():
            raw = self._retry("catalog fetch", lambda: self.raw.get_bytes(cfg.catalog_path))
            return parse_catalog_bytes(raw)

        name = resolve_manifest_name(
            model,
            override=cfg.manifest,
            load_catalog=load_catalog,
            fallbacks=fallbacks,
            logger=self.logger,
        )
        self.report.manifest_name = name
        return name

    def fetch_manifest(self, name: str) -> Manifest:
        rel = manifest_path(name, self.config.manifest_dir)
        manifest = self._retry(
            "manifest fetch",
            lambda: fetch_manifest(self.raw, rel, self.config.manifest_copy_path, logger=self.logger),
        )
        self.report.release_tag = manifest.release_tag
        return manifest

    def fetch_assets(self, manifest: Manifest) -> List[Tuple[PackageEntry, Path]]:
        tag = manifest.release_tag
        release: Release = self._retry(f"release lookup {tag}", lambda: self.releases.get_release(tag))

        out: List[Tuple[PackageEntry, Path]] = []
        for pkg in manifest.packages:
            asset = self.releases.find_asset(release, pkg.asset)
            dest = self.config.downloads_dir / asset.name
            res = self._retry(f"download {asset.name}", lambda: self.releases.download_asset(asset, dest))
            self.report.downloads.append(
                {"asset": asset.name, "id": asset.id, "path": str(res.path), "bytes": res.bytes_written, "sha256": res.sha256}
            )
            out.append((pkg, res.path))
        return out

    def extract(self, archives: List[Tuple[PackageEntry, Path]]) -> None:
        root = self.config.extraction_root
        for pkg, archive in archives:
            dest = safe_join(root, pkg.path) if pkg.path else root
            extract_archive(archive, dest, logger=self.logger)
            self.report.extracted.append(str(dest))

    def fetch_standalone_files(self, files: Sequence[StandaloneFile]) -> None:
        """Raw-endpoint files copied into the driver tree after extraction, overwriting."""
        root = self.config.extraction_root
        for f in files:
            try:
                dest = safe_join(root, f.path)
            except ValueError as e:
                raise wrap_manifest(f"Standalone file escapes the driver tree: {f.path!r}", e)
            self._retry(f"file {f.source}", lambda: self.raw.download(f.source, dest))
            self.report.standalone_files.append(str(dest))

    def _installer_for_run(self) -> DriverInstaller:
        if self._installer is not None:
            return self._installer
        if self.config.dry_run:
            return DryRunInstaller(self.logger)
        return PnpUtilInstaller(resolve_pnputil(self.config.pnputil_path), logger=self.logger)

    def install(self) -> InstallOutcome:
        descriptors = find_descriptors(self.config.extraction_root)
        installer = self._installer_for_run()
        Log.step(self.logger, f"Installing {len(descriptors)} driver descriptor(s)", dry_run=self.config.dry_run)
        log = Log.bind(self.logger, model=self.report.model or "-", release=self.report.release_tag)
        outcome = install_all(descriptors, installer, logger=log)
        self.report.install = outcome.to_jsonable()
        return outcome

    def mark_complete(self) -> None:
        if self.config.dry_run:
            self.logger.info("[dry-run] completion marker not written")
            return
        err = write_completion_marker(
            self._registry_factory,
            self.config.registry_path,
            self.config.registry_name,
            logger=self.logger,
        )
        self.report.marker_written = err is None
        self.report.marker_error = str(err) if err else None

    def write_report(self) -> None:
        path = self.config.report_path
        try:
            with atomic_write(path) as tmp:
                tmp.write_text(json.dumps(self.report.to_jsonable(), indent=2, default=str), encoding="utf-8")
        except OSError as e:
            self.logger.warning("Could not write run report %s: %s", path, e)
        else:
            self.logger.debug("Run report written to %s", path)

    # -- driver --------------------------------------------------------------

    def run(self) -> int:
        """Execute all stages. Returns the process exit code; setup errors propagate."""
        self.report.started_at = U.now_iso()
        Log.banner(self.logger, "driverprov")
        try:
            with log_step(self.logger, "Bootstrap"):
                self.bootstrap()
            with log_step(self.logger, "Resolve manifest"):
                name = self.resolve()
            with log_step(self.logger, f"Fetch manifest {name}"):
                manifest = self.fetch_manifest(name)
            with log_step(self.logger, f"Fetch release {manifest.release_tag}"):
                archives = self.fetch_assets(manifest)
            with log_step(self.logger, "Extract packages"):
                self.extract(archives)
            if manifest.files:
                with log_step(self.logger, f"Fetch {len(manifest.files)} standalone file(s)"):
                    self.fetch_standalone_files(manifest.files)
            with log_step(self.logger, "Install drivers"):
                outcome = self.install()
            self.mark_complete()
            self.report.exit_code = EXIT_OK if outcome.failures == 0 else EXIT_INSTALL_FAILURES
        except DriverProvError as e:
            self.report.error = e.to_dict(include_cause=True)
            self.report.exit_code = e.code
            raise
        finally:
            self.report.finished_at = U.now_iso()
            if self.config.work_root.is_dir():
                self.write_report()

        if self.report.exit_code == EXIT_OK:
            reboot = " (reboot required)" if outcome.reboot_required else ""
            Log.ok(self.logger, f"All {outcome.processed} driver(s) installed{reboot}")
        else:
            Log.fail(self.logger, f"{outcome.failures} of {outcome.processed} driver install(s) failed")
        return int(self.report.exit_code)
