# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""
Shared logging helpers for driverprov stages.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Any, Generator


def emoji_for_level(level: int) -> str:
    if level >= logging.ERROR:
        return "❌"
    if level >= logging.WARNING:
        return "⚠️"
    if level >= logging.INFO:
        return "✅"
    return "🔍"


def log_with_emoji(logger: logging.Logger, level: int, msg: str, *args: Any) -> None:
    logger.log(level, f"{emoji_for_level(level)} {msg}", *args)


@contextmanager
def log_step(logger: logging.Logger, description: str) -> Generator[None, None, None]:
    """
    Context manager for logging and timing a provisioning stage.

    Logs the start, runs the block, then logs completion with elapsed time.
    On exception, logs the failure and re-raises.

    Example:
        with log_step(logger, "Fetch manifest"):
            manifest = fetcher.fetch(name)
    """
    t0 = time.time()
    log_with_emoji(logger, logging.INFO, "%s ...", description)
    try:
        yield
        log_with_emoji(logger, logging.INFO, "%s done (%.2fs)", description, time.time() - t0)
    except Exception as e:
        log_with_emoji(logger, logging.ERROR, "%s failed (%.2fs): %s", description, time.time() - t0, e)
        raise
