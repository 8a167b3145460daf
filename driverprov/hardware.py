# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/hardware.py
"""Hardware model detection (Win32_ComputerSystem.Model)."""

from __future__ import annotations

import logging
import subprocess
import sys
from pathlib import Path
from typing import Callable, List, Optional

from .core.exceptions import wrap_resolution
from .core.logger import get_logger
from .core.utils import U

LOG = get_logger(__name__)

DMI_PRODUCT_NAME = Path("/sys/class/dmi/id/product_name")

_PS_QUERY = "(Get-CimInstance -ClassName Win32_ComputerSystem).Model"

Runner = Callable[..., subprocess.CompletedProcess]


def _powershell_cmd() -> List[str]:
    return [
        "powershell.exe",
        "-NoProfile",
        "-NonInteractive",
        "-ExecutionPolicy",
        "Bypass",
        "-Command",
        _PS_QUERY,
    ]


def _query_windows(logger: logging.Logger, run: Runner) -> Optional[str]:
    try:
        cp = run(logger, _powershell_cmd(), timeout=60)
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.warning("PowerShell model query failed: %s", e)
        return None
    if cp.returncode != 0:
        logger.warning("PowerShell model query exited %d: %s", cp.returncode, (cp.stderr or "").strip())
        return None
    return (cp.stdout or "").strip() or None


def _query_dmi(logger: logging.Logger, dmi_path: Path) -> Optional[str]:
    try:
        return dmi_path.read_text(encoding="utf-8", errors="replace").strip() or None
    except OSError as e:
        logger.debug("Cannot read %s: %s", dmi_path, e)
        return None


def detect_model(
    logger: Optional[logging.Logger] = None,
    *,
    run: Runner = U.run_cmd,
    platform: str = sys.platform,
    dmi_path: Path = DMI_PRODUCT_NAME,
) -> str:
    """
    Return the hardware model string as reported by firmware.

    Raises ResolutionError when the model cannot be read at all.
    """
    log = logger or LOG
    if platform.startswith("win"):
        model = _query_windows(log, run)
    else:
        model = _query_dmi(log, dmi_path)

    if not model:
        raise wrap_resolution("Unable to read the hardware model", platform=platform)
    log.info("Detected hardware model: %s", model)
    return model
