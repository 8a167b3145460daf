# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/__main__.py
from __future__ import annotations

import logging
import sys
from typing import Optional, Sequence

from .cli.parser import parse_args_with_config
from .core.exceptions import (
    EXIT_INSTALL_FAILURES,
    EXIT_INTERRUPTED,
    DriverProvError,
    format_exception_for_cli,
)
from .core.logger import Log
from .orchestrator import Orchestrator


def _print_stderr(msg: str) -> None:
    print(msg, file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None) -> int:
    logger: Optional[logging.Logger] = None

    # Phase 1: parse (ConfigError can happen here)
    try:
        args, cfg, _conf, logger = parse_args_with_config(argv)
    except DriverProvError as e:
        _print_stderr(f"💥 ERROR    {format_exception_for_cli(e, verbose=2)}")
        return e.code

    # The file log lives in the working tree, which is only known now.
    try:
        logger = Log.setup(args.verbose, str(cfg.log_path), quiet=args.quiet, json_logs=args.json_logs)
    except OSError as e:
        Log.warn(logger, f"Cannot open log file {cfg.log_path}: {e}; logging to stderr only")

    # Phase 2: run
    try:
        return Orchestrator(cfg, logger=logger).run()
    except DriverProvError as e:
        Log.fail(logger, format_exception_for_cli(e, verbose=max(1, args.verbose)))
        return e.code
    except KeyboardInterrupt:
        logger.warning("Interrupted by user (Ctrl+C).")
        return EXIT_INTERRUPTED
    except Exception as e:
        logger.error("Unexpected error: %s: %s", type(e).__name__, e)
        logger.debug("Traceback", exc_info=True)
        return EXIT_INSTALL_FAILURES


def run() -> None:
    raise SystemExit(main())


if __name__ == "__main__":
    run()
