# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/config/config_loader.py
"""
YAML/JSON config files layered under command-line flags.

Files are merged in the order given (later wins, nested mappings merge), then
applied to the argparse parser as defaults so explicit flags still override.
"""
from __future__ import annotations

import argparse
import glob
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List

import yaml

from ..core.exceptions import wrap_config

# Keys consumed from config files that have no command-line flag.
CONFIG_ONLY_KEYS = frozenset({"fallback_models"})


def _deep_merge(base: Dict[str, Any], over: Dict[str, Any]) -> Dict[str, Any]:
    out = dict(base)
    for k, v in over.items():
        if isinstance(v, dict) and isinstance(out.get(k), dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _normalize_keys(d: Dict[str, Any]) -> Dict[str, Any]:
    # Accept "retry-delay" as well as "retry_delay" (flags use dashes).
    return {str(k).replace("-", "_"): v for k, v in d.items()}


class Config:
    @staticmethod
    def expand_configs(logger: logging.Logger, paths: Iterable[str]) -> List[Path]:
        """Expand ~ and glob patterns; keep order; a pattern matching nothing is an error."""
        out: List[Path] = []
        for raw in paths:
            p = str(Path(raw).expanduser())
            if any(ch in p for ch in "*?["):
                matches = sorted(glob.glob(p))
                if not matches:
                    raise wrap_config(f"Config pattern matched no files: {raw}")
                out.extend(Path(m) for m in matches)
            else:
                out.append(Path(p))
        logger.debug("Config files: %s", [str(p) for p in out])
        return out

    @staticmethod
    def load_one(logger: logging.Logger, path: Path) -> Dict[str, Any]:
        if not path.is_file():
            raise wrap_config(f"Config file not found: {path}")
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise wrap_config(f"Cannot read config file: {path}", e)

        try:
            if path.suffix.lower() == ".json":
                data = json.loads(raw) if raw.strip() else {}
            else:
                data = yaml.safe_load(raw) or {}
        except (json.JSONDecodeError, yaml.YAMLError) as e:
            raise wrap_config(f"Config file is not valid {path.suffix.lstrip('.') or 'YAML'}: {path}", e)

        if not isinstance(data, dict):
            raise wrap_config(f"Config file must contain a mapping: {path}")
        logger.info("Loaded config %s (%d keys)", path, len(data))
        return _normalize_keys(data)

    @staticmethod
    def load_many(logger: logging.Logger, paths: Iterable[Path]) -> Dict[str, Any]:
        merged: Dict[str, Any] = {}
        for p in paths:
            merged = _deep_merge(merged, Config.load_one(logger, p))
        return merged

    @staticmethod
    def apply_as_defaults(logger: logging.Logger, parser: argparse.ArgumentParser, conf: Dict[str, Any]) -> None:
        known = {a.dest for a in parser._actions}
        defaults: Dict[str, Any] = {}
        for k, v in conf.items():
            if k in known:
                defaults[k] = v
            elif k not in CONFIG_ONLY_KEYS:
                logger.warning("Ignoring unknown config key: %s", k)
        if defaults:
            parser.set_defaults(**defaults)
