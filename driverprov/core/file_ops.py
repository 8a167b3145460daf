# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/core/file_ops.py
"""
File helpers: atomic writes and containment checks for paths that come from
remote manifests and archives.
"""

from __future__ import annotations

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path, PurePosixPath, PureWindowsPath
from typing import Generator, Optional


@contextmanager
def atomic_write(
    target_path: Path,
    *,
    suffix: str = ".part",
    dir: Optional[Path] = None,
) -> Generator[Path, None, None]:
    """
    Yield a temporary path next to target_path; rename it over the target on
    success, delete it on failure.

    Example:
        with atomic_write(Path("downloads/pack.zip")) as tmp:
            tmp.write_bytes(data)
    """
    target_path = Path(target_path)
    temp_dir = Path(dir) if dir else target_path.parent
    temp_dir.mkdir(parents=True, exist_ok=True)

    fd, temp_name = tempfile.mkstemp(
        suffix=suffix,
        prefix=f".{target_path.name}.",
        dir=str(temp_dir),
    )
    temp_path = Path(temp_name)

    try:
        os.close(fd)
        yield temp_path
        os.replace(temp_path, target_path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


def is_safe_relative(rel: str) -> bool:
    """
    True if rel is a relative path that stays inside whatever it is joined to.
    Both separators are checked: manifests are written on Windows, archives
    may come from anywhere.
    """
    if not rel or rel.strip() == "":
        return False
    if PureWindowsPath(rel).is_absolute() or PureWindowsPath(rel).drive:
        return False
    if PurePosixPath(rel.replace("\\", "/")).is_absolute():
        return False
    parts = rel.replace("\\", "/").split("/")
    return ".." not in parts


def safe_join(root: Path, rel: str) -> Path:
    """Join rel under root; raise ValueError if the result escapes root."""
    if not is_safe_relative(rel):
        raise ValueError(f"unsafe relative path: {rel!r}")
    parts = [p for p in rel.replace("\\", "/").split("/") if p not in ("", ".")]
    out = Path(root).joinpath(*parts)
    root_r = Path(root).resolve()
    out_r = out.resolve()
    if out_r != root_r and root_r not in out_r.parents:
        raise ValueError(f"path escapes {root}: {rel!r}")
    return out
