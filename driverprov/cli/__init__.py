# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""Command line: argparse groups, config-file layering, help texts."""
from __future__ import annotations

from .parser import build_parser, parse_args_with_config

__all__ = ["build_parser", "parse_args_with_config"]
