# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/core/logger.py
"""
Logging for provisioning runs.

Two sinks per run: stderr for whoever watches the device (ESP screen, a
technician's shell) and an append-mode file under the working root that
Intune log collection picks up afterwards. Either sink can emit NDJSON
instead of text lines (--json-logs).
"""
from __future__ import annotations

import datetime as _dt
import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from termcolor import colored as _colored

LOGGER_NAME = "driverprov"

TRACE = 5
if logging.getLevelName(TRACE) != "TRACE":
    logging.addLevelName(TRACE, "TRACE")


def _trace(self: logging.Logger, msg: str, *args, **kwargs) -> None:
    if self.isEnabledFor(TRACE):
        self._log(TRACE, msg, args, **kwargs)


if not hasattr(logging.Logger, "trace"):
    logging.Logger.trace = _trace  # type: ignore[attr-defined]

# levelname -> (marker, ascii marker, color)
_LEVELS = {
    "TRACE": ("🧬", ".", "cyan"),
    "DEBUG": ("🔍", ".", "blue"),
    "INFO": ("✅", "*", "green"),
    "WARNING": ("⚠️", "!", "yellow"),
    "ERROR": ("💥", "x", "red"),
    "CRITICAL": ("🧨", "X", "red"),
}


def is_tty(stream: Any = None) -> bool:
    s = stream if stream is not None else sys.stdout
    try:
        return bool(s.isatty())
    except (AttributeError, ValueError):
        return False


def _console_takes_emoji(stream: Any) -> bool:
    # cp1252 consoles under a provisioning agent cannot encode emoji.
    enc = getattr(stream, "encoding", None) or "utf-8"
    try:
        "✅".encode(enc)
    except (LookupError, UnicodeEncodeError):
        return False
    return True


def c(text: str, color: Optional[str] = None, attrs: Optional[List[str]] = None, *, enable: bool = True) -> str:
    """Colorize text with termcolor when enabled."""
    if not enable or not color:
        return text
    return _colored(text, color=color, attrs=attrs or [])


def _clip(v: Any, limit: int = 240) -> str:
    s = str(v).replace("\r", "\\r").replace("\n", "\\n")
    return s if len(s) <= limit else s[: limit - 1] + "…"


class BoundLogger(logging.LoggerAdapter):
    """
    Adapter that stamps key=value context (model, release, inf...) on every record.
    Per-call extra={"ctx": {...}} is merged over the bound values.
    """

    def __init__(self, logger: logging.Logger, ctx: Optional[Dict[str, Any]] = None):
        super().__init__(logger, {"ctx": dict(ctx or {})})

    def process(self, msg, kwargs):
        extra = dict(kwargs.get("extra") or {})
        extra["ctx"] = {**self.extra["ctx"], **(extra.get("ctx") or {})}  # type: ignore[index]
        kwargs["extra"] = extra
        return msg, kwargs

    def bind(self, **ctx: Any) -> "BoundLogger":
        return BoundLogger(self.logger, {**self.extra["ctx"], **ctx})  # type: ignore[index]


class LineFormatter(logging.Formatter):
    """
    Human-readable lines.

    Console: ``14:02:11 ✅ INFO     message key=value``
    File (detailed): adds the date, milliseconds, pid and logger name.
    """

    def __init__(self, *, color: bool = False, emoji: bool = True, detailed: bool = False):
        super().__init__()
        self.color = color
        self.emoji = emoji
        self.detailed = detailed

    def _stamp(self, created: float) -> str:
        dt = _dt.datetime.fromtimestamp(created)
        if self.detailed:
            return dt.strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]
        return dt.strftime("%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        mark, ascii_mark, color = _LEVELS.get(record.levelname, ("•", "-", None))
        msg = record.getMessage()
        if not self.emoji:
            mark = ascii_mark
            msg = msg.encode("ascii", "replace").decode("ascii")

        paint = self.color and is_tty(sys.stderr)
        level = c(f"{record.levelname:<8}", color, enable=paint)
        if record.levelno >= logging.WARNING:
            msg = c(msg, color, attrs=["bold"], enable=paint)

        where = f" [{os.getpid()} {record.name}]" if self.detailed else ""
        ctx = getattr(record, "ctx", None) or {}
        tail = "".join(f" {k}={_clip(v)}" for k, v in sorted(ctx.items()))

        line = f"{self._stamp(record.created)} {mark} {level}{where} {msg}{tail}"
        if record.exc_info:
            tb = self.formatException(record.exc_info)
            line += "\n" + c("\n".join("  " + ln for ln in tb.splitlines()), "red", enable=paint)
        return line


class JsonFormatter(logging.Formatter):
    """One JSON object per line, UTC timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        obj: Dict[str, Any] = {
            "ts": _dt.datetime.fromtimestamp(record.created, tz=_dt.timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "pid": os.getpid(),
        }
        ctx = getattr(record, "ctx", None)
        if ctx:
            obj["ctx"] = {str(k): _clip(v) for k, v in ctx.items()}
        if record.exc_info and record.exc_info[0] is not None:
            obj["exc_type"] = record.exc_info[0].__name__
            obj["traceback"] = self.formatException(record.exc_info)
        return json.dumps(obj, ensure_ascii=False, default=str)


class Log:
    """Run-level logging setup plus the stage markers the orchestrator prints."""

    @staticmethod
    def _level_from_flags(verbose: int, quiet: int) -> int:
        # -q WARNING, -qq ERROR, -vv DEBUG, -vvv TRACE; quiet wins.
        if quiet:
            return logging.ERROR if quiet >= 2 else logging.WARNING
        if verbose >= 3:
            return TRACE
        return logging.DEBUG if verbose >= 2 else logging.INFO

    @staticmethod
    def bind(logger: logging.Logger, **ctx: Any) -> BoundLogger:
        return BoundLogger(logger, ctx)

    @staticmethod
    def banner(logger: logging.Logger, title: str) -> None:
        t = f" {title.strip()} "
        side = "─" * max(8, (72 - len(t)) // 2)
        logger.info((side + t + side)[:72])

    @staticmethod
    def step(logger: logging.Logger, msg: str, **ctx: Any) -> None:
        logger.info("➡️  %s", msg, extra={"ctx": ctx})

    @staticmethod
    def ok(logger: logging.Logger, msg: str, **ctx: Any) -> None:
        logger.info("✅ %s", msg, extra={"ctx": ctx})

    @staticmethod
    def warn(logger: logging.Logger, msg: str, **ctx: Any) -> None:
        logger.warning("⚠️  %s", msg, extra={"ctx": ctx})

    @staticmethod
    def fail(logger: logging.Logger, msg: str, **ctx: Any) -> None:
        logger.error("💥 %s", msg, extra={"ctx": ctx})

    @staticmethod
    def setup(
        verbose: int = 0,
        log_file: Optional[str] = None,
        *,
        quiet: int = 0,
        json_logs: bool = False,
        logger_name: str = LOGGER_NAME,
    ) -> logging.Logger:
        """
        Configure and return the project logger.

        Calling it again replaces the handlers: __main__ sets up stderr first
        and re-runs setup once the config names the log file. The file always
        records DEBUG and up regardless of -q.
        """
        logger = logging.getLogger(logger_name)
        logger.propagate = False
        level = Log._level_from_flags(verbose, quiet)

        for h in list(logger.handlers):
            logger.removeHandler(h)
            h.close()

        console = logging.StreamHandler(stream=sys.stderr)
        console.setLevel(level)
        console.setFormatter(
            JsonFormatter() if json_logs else LineFormatter(color=True, emoji=_console_takes_emoji(sys.stderr))
        )
        logger.addHandler(console)

        if log_file:
            fp = Path(log_file).expanduser().resolve()
            fp.parent.mkdir(parents=True, exist_ok=True)
            fh = logging.FileHandler(fp, mode="a", encoding="utf-8")
            fh.setLevel(min(level, logging.DEBUG))
            fh.setFormatter(JsonFormatter() if json_logs else LineFormatter(detailed=True))
            logger.addHandler(fh)
            level = min(level, logging.DEBUG)

        logger.setLevel(level)
        logger.debug("Logging to stderr%s", f" and {log_file}" if log_file else "")
        return logger


def get_logger(name: str) -> logging.Logger:
    """Child of the project logger, e.g. get_logger(__name__)."""
    if name == LOGGER_NAME or name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")
