# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/marker.py
"""Completion marker: one DWORD in the registry, read by the deployment's detection rule."""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol, Tuple, Union

from .core.exceptions import DriverProvError, MarkerWriteError, wrap_marker
from .core.logger import get_logger

try:
    import winreg  # type: ignore[import-not-found]
except ImportError:  # non-Windows hosts
    winreg = None  # type: ignore[assignment]

LOG = get_logger(__name__)

MARKER_VALUE = 1

RegValue = Union[str, int]


class RegistryAccessor(Protocol):
    def get_value(self, path: str, value_name: str) -> Optional[RegValue]:  # pragma: no cover - protocol
        ...

    def set_value(self, path: str, value_name: str, value: RegValue) -> None:  # pragma: no cover - protocol
        ...


def split_registry_path(path: str) -> Tuple[str, str]:
    """
    'HKLM\\SOFTWARE\\X', 'HKLM:\\SOFTWARE\\X' and 'HKEY_LOCAL_MACHINE/SOFTWARE/X'
    all give ('HKLM', 'SOFTWARE\\X').
    """
    cleaned = path.strip().replace("/", "\\")
    hive, sep, subkey = cleaned.partition("\\")
    hive = hive.rstrip(":").upper()
    hive = {
        "HKEY_LOCAL_MACHINE": "HKLM",
        "HKEY_CURRENT_USER": "HKCU",
        "HKEY_USERS": "HKU",
        "HKEY_CLASSES_ROOT": "HKCR",
        "HKEY_CURRENT_CONFIG": "HKCC",
    }.get(hive, hive)
    subkey = subkey.strip("\\")
    if not sep or not subkey or hive not in ("HKLM", "HKCU", "HKU", "HKCR", "HKCC"):
        raise ValueError(f"Invalid registry path: {path}")
    return hive, subkey


class WindowsRegistryAccessor:
    """Registry access through winreg, always in the 64-bit view."""

    def __init__(self) -> None:
        if winreg is None:
            raise RuntimeError("winreg not available on this platform")

    def _hive(self, name: str) -> object:
        return {
            "HKLM": winreg.HKEY_LOCAL_MACHINE,
            "HKCU": winreg.HKEY_CURRENT_USER,
            "HKU": winreg.HKEY_USERS,
            "HKCR": winreg.HKEY_CLASSES_ROOT,
            "HKCC": winreg.HKEY_CURRENT_CONFIG,
        }[name]

    def get_value(self, path: str, value_name: str) -> Optional[RegValue]:
        hive, subkey = split_registry_path(path)
        try:
            with winreg.OpenKey(self._hive(hive), subkey, 0, winreg.KEY_READ | winreg.KEY_WOW64_64KEY) as key:
                value, _ = winreg.QueryValueEx(key, value_name)
                return value
        except FileNotFoundError:
            return None

    def set_value(self, path: str, value_name: str, value: RegValue) -> None:
        hive, subkey = split_registry_path(path)
        value_type = winreg.REG_DWORD if isinstance(value, int) else winreg.REG_SZ
        with winreg.CreateKeyEx(self._hive(hive), subkey, 0, winreg.KEY_WRITE | winreg.KEY_WOW64_64KEY) as key:
            winreg.SetValueEx(key, value_name, 0, value_type, value)


def write_completion_marker(
    registry_factory: Callable[[], RegistryAccessor],
    path: str,
    name: str,
    *,
    logger: Optional[logging.Logger] = None,
) -> Optional[MarkerWriteError]:
    """
    Set path\\name = 1 (DWORD). Returns None on success, the error otherwise.
    Never raises: the marker records that the run finished, and a failure to
    record it must not change the run's outcome.
    """
    log = logger or LOG
    try:
        registry_factory().set_value(path, name, MARKER_VALUE)
    except (OSError, RuntimeError, ValueError, DriverProvError) as e:
        err = wrap_marker(f"Could not write completion marker {path}\\{name}: {e}", e, path=path, name=name)
        log.error("%s", err)
        return err

    log.info("Completion marker set: %s\\%s = %d", path, name, MARKER_VALUE)
    return None
