# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
"""Remote repository access: raw files and release assets."""

from __future__ import annotations

from .raw import RawClient
from .releases import ReleaseClient
from .session import build_session

__all__ = ["RawClient", "ReleaseClient", "build_session"]
