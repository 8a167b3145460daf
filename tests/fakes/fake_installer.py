# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Optional, Sequence


class FakeInstaller:
    """
    Returns exit codes in call order (codes=[...]) or by INF file name
    (by_name={...}); default 0. Calls are recorded.
    """

    def __init__(self, codes: Optional[Sequence[int]] = None, by_name: Optional[Dict[str, int]] = None):
        self._codes = list(codes or [])
        self._by_name = dict(by_name or {})
        self.calls: List[Path] = []

    def install(self, descriptor: Path) -> int:
        self.calls.append(descriptor)
        if descriptor.name in self._by_name:
            return self._by_name[descriptor.name]
        if self._codes:
            return self._codes.pop(0)
        return 0


class RaisingInstaller(FakeInstaller):
    def __init__(self, fail_on: str, **kw):
        super().__init__(**kw)
        self.fail_on = fail_on

    def install(self, descriptor: Path) -> int:
        if descriptor.name == self.fail_on:
            self.calls.append(descriptor)
            raise PermissionError("access denied")
        return super().install(descriptor)
