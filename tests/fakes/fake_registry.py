# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

from typing import Dict, Optional, Tuple, Union


class InMemoryRegistry:
    def __init__(self) -> None:
        self.values: Dict[Tuple[str, str], Union[str, int]] = {}
        self.writes = 0

    def get_value(self, path: str, value_name: str) -> Optional[Union[str, int]]:
        return self.values.get((path, value_name))

    def set_value(self, path: str, value_name: str, value: Union[str, int]) -> None:
        self.writes += 1
        self.values[(path, value_name)] = value


class DeniedRegistry(InMemoryRegistry):
    def set_value(self, path: str, value_name: str, value: Union[str, int]) -> None:
        self.writes += 1
        raise PermissionError(5, "Access is denied")
