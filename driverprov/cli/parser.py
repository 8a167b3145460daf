# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/cli/parser.py
from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

from ..config.config_loader import Config
from ..config.settings import ProvisionConfig, build_config
from ..core.logger import Log, c
from ..core.utils import U
from .groups import _add_global_config_logging, _add_install, _add_repository, _add_resolution
from .help_texts import EXIT_CODES, MANIFEST_EXAMPLE, YAML_EXAMPLE


class HelpFormatter(argparse.RawDescriptionHelpFormatter, argparse.ArgumentDefaultsHelpFormatter):
    """Combines raw description formatting with default value display in help."""


def _build_epilog() -> str:
    return (
        c("YAML example:\n", "cyan", ["bold"])
        + c(YAML_EXAMPLE, "cyan")
        + "\n"
        + c("Manifest examples:\n", "cyan", ["bold"])
        + c(MANIFEST_EXAMPLE, "cyan")
        + "\n"
        + c("Exit codes:\n", "cyan", ["bold"])
        + EXIT_CODES
    )


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="driverprov",
        description=c("driverprov: model-specific driver provisioning for Windows deployment", "green", ["bold"]),
        formatter_class=HelpFormatter,
        epilog=_build_epilog(),
    )
    _add_global_config_logging(p)
    _add_repository(p)
    _add_resolution(p)
    _add_install(p)
    return p


def _build_preparser() -> argparse.ArgumentParser:
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", action="append", default=[])
    pre.add_argument("-v", "--verbose", action="count", default=0)
    pre.add_argument("-q", "--quiet", action="count", default=0)
    pre.add_argument("--log-file", dest="log_file", default=None)
    pre.add_argument("--json-logs", dest="json_logs", action="store_true")
    return pre


def parse_args_with_config(
    argv: Optional[Sequence[str]] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
    logger: Optional[logging.Logger] = None,
) -> Tuple[argparse.Namespace, ProvisionConfig, Dict[str, Any], logging.Logger]:
    """
    Flow:
      Phase 0: parse only the flags needed to find config files and set up logging
      Phase 1: load + merge config files
      Phase 2: apply config as parser defaults
      Phase 3: full parse (explicit flags win)
      Phase 4: build and validate ProvisionConfig (ConfigError on bad input)

    --dump-config prints the merged configuration and exits 0.
    """
    if argv is None:
        argv = sys.argv[1:]
    argv = list(argv)

    pre = _build_preparser()
    args0, _rest = pre.parse_known_args(argv)

    if logger is None:
        logger = Log.setup(args0.verbose, args0.log_file, quiet=args0.quiet, json_logs=args0.json_logs)

    conf: Dict[str, Any] = {}
    if args0.config:
        conf = Config.load_many(logger, Config.expand_configs(logger, args0.config))

    parser = build_parser()
    Config.apply_as_defaults(logger, parser, conf)
    args = parser.parse_args(argv)

    if not args.owner or not args.repo:
        parser.error("--owner and --repo are required (flag or config file)")

    cfg = build_config(args, conf, env)

    if args.dump_config:
        print(U.json_dump(cfg.to_jsonable()))
        raise SystemExit(0)

    return args, cfg, conf, logger
