# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/core/utils.py
from __future__ import annotations

import datetime as _dt
import json
import logging
import shlex
import subprocess
from pathlib import Path
from typing import Any, List, Optional, Union


class U:
    @staticmethod
    def ensure_dir(p: Path) -> Path:
        p.mkdir(parents=True, exist_ok=True)
        return p

    @staticmethod
    def which(prog: str) -> Optional[str]:
        from shutil import which as _which
        return _which(prog)

    @staticmethod
    def now_iso() -> str:
        return _dt.datetime.now(tz=_dt.timezone.utc).isoformat(timespec="seconds")

    @staticmethod
    def json_dump(obj: Any) -> str:
        try:
            return json.dumps(obj, indent=2, sort_keys=True, default=str)
        except Exception:
            return repr(obj)

    @staticmethod
    def human_bytes(n: Optional[int]) -> str:
        if n is None:
            return "unknown"
        x = float(n)
        for unit in ["B", "KiB", "MiB", "GiB", "TiB"]:
            if x < 1024 or unit == "TiB":
                return f"{x:.2f} {unit}" if unit != "B" else f"{int(x)} {unit}"
            x /= 1024
        return f"{n} B"

    @staticmethod
    def pretty_cmd(cmd: List[str]) -> str:
        return " ".join(shlex.quote(x) for x in cmd)

    @staticmethod
    def run_cmd(
        logger: logging.Logger,
        cmd: List[str],
        *,
        timeout: Optional[int] = None,
        cwd: Optional[Union[str, Path]] = None,
    ) -> subprocess.CompletedProcess:
        """
        Run a command synchronously, capturing text output. Never raises on a
        non-zero exit: callers interpret return codes themselves. OSError
        (missing binary, access denied) and TimeoutExpired propagate.
        """
        logger.debug("Running: %s", U.pretty_cmd(cmd))
        cp = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
            cwd=str(cwd) if cwd is not None else None,
        )
        if cp.stdout and cp.stdout.strip():
            logger.debug("stdout: %s", cp.stdout.strip())
        if cp.stderr and cp.stderr.strip():
            logger.debug("stderr: %s", cp.stderr.strip())
        return cp
