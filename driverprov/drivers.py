# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/drivers.py
"""INF discovery and installation through pnputil."""

from __future__ import annotations

import logging
import os
import subprocess
from pathlib import Path
from typing import Callable, Iterable, List, Mapping, Optional, Protocol

from .core.exceptions import wrap_no_drivers, wrap_utility_not_found
from .core.logger import get_logger
from .core.utils import U
from .models import InstallOutcome

LOG = get_logger(__name__)

PNPUTIL = "pnputil.exe"
LAUNCH_FAILED = -1


class DriverInstaller(Protocol):
    def install(self, descriptor: Path) -> int:  # pragma: no cover - protocol
        ...


def find_descriptors(root: Path) -> List[Path]:
    """Every *.inf under root (any case), sorted. Raises NoDriversFoundError if none."""
    found = sorted(
        (p for p in root.rglob("*") if p.is_file() and p.suffix.lower() == ".inf"),
        key=lambda p: str(p).lower(),
    ) if root.is_dir() else []
    if not found:
        raise wrap_no_drivers(f"No driver descriptors (*.inf) under {root}", root=str(root))
    return found


def resolve_pnputil(
    configured: Optional[Path] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    which: Callable[[str], Optional[str]] = U.which,
) -> Path:
    """
    Locate pnputil.exe.

    A 32-bit process on 64-bit Windows sees SysWOW64 through System32; the
    Sysnative alias is the only way to reach the native 64-bit binary, and it
    exists only for such processes.
    """
    if configured is not None:
        if configured.is_file():
            return configured
        raise wrap_utility_not_found(f"Configured pnputil not found: {configured}", path=str(configured))

    env = os.environ if env is None else env
    system_root = Path(env.get("SystemRoot") or env.get("SYSTEMROOT") or env.get("windir") or r"C:\Windows")
    for sub in ("Sysnative", "System32"):
        cand = system_root / sub / PNPUTIL
        if cand.is_file():
            return cand

    found = which(PNPUTIL) or which("pnputil")
    if found:
        return Path(found)
    raise wrap_utility_not_found("pnputil.exe not found", system_root=str(system_root))


class PnpUtilInstaller:
    """Runs `pnputil /add-driver "<inf>" /install` and reports its exit code."""

    def __init__(self, pnputil: Path, *, timeout_s: int = 900, logger: Optional[logging.Logger] = None):
        self.pnputil = pnputil
        self.timeout_s = timeout_s
        self.logger = logger or LOG

    def command(self, descriptor: Path) -> List[str]:
        return [str(self.pnputil), "/add-driver", str(descriptor), "/install"]

    def install(self, descriptor: Path) -> int:
        cp = U.run_cmd(self.logger, self.command(descriptor), timeout=self.timeout_s)
        out = (cp.stdout or "").strip()
        if out:
            self.logger.info("pnputil: %s", " | ".join(ln.strip() for ln in out.splitlines() if ln.strip()))
        return int(cp.returncode)


class DryRunInstaller:
    """Logs what would be installed; reports success for everything."""

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or LOG

    def install(self, descriptor: Path) -> int:
        self.logger.info("[dry-run] would install %s", descriptor)
        return 0


def install_all(
    descriptors: Iterable[Path],
    installer: DriverInstaller,
    *,
    logger: Optional[logging.Logger] = None,
) -> InstallOutcome:
    """
    Attempt every descriptor, in order, regardless of earlier failures.
    0/3010/1641 count as success; any other code (or a launch failure) counts
    as one failure.
    """
    log = logger or LOG
    outcome = InstallOutcome()
    items = list(descriptors)

    for i, inf in enumerate(items, 1):
        try:
            code = installer.install(inf)
        except (OSError, subprocess.SubprocessError) as e:
            log.error("[%d/%d] %s: could not run installer: %s", i, len(items), inf.name, e)
            code = LAUNCH_FAILED

        r = outcome.add(inf, code)
        if r.ok:
            note = " (reboot required)" if r.reboot_required else ""
            log.info("[%d/%d] %s: exit %d%s", i, len(items), inf, code, note)
        else:
            log.warning("[%d/%d] %s: FAILED exit %d", i, len(items), inf, code)

    log.info("Driver install: %d processed, %d failed", outcome.processed, outcome.failures)
    return outcome
