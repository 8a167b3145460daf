# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/archive.py
"""Archive extraction into the driver tree (zip and tar flavours)."""

from __future__ import annotations

import logging
import shutil
import tarfile
import zipfile
import zlib
from pathlib import Path
from typing import Optional

from .core.exceptions import wrap_extraction
from .core.file_ops import safe_join
from .core.logger import get_logger

LOG = get_logger(__name__)

TAR_SUFFIXES = (".tar", ".tar.gz", ".tgz", ".tar.bz2", ".tbz2", ".tar.xz", ".txz")


def archive_kind(path: Path) -> Optional[str]:
    name = path.name.lower()
    if name.endswith(".zip"):
        return "zip"
    if name.endswith(TAR_SUFFIXES):
        return "tar"
    # Content sniffing for assets published without an extension.
    if path.is_file():
        if zipfile.is_zipfile(path):
            return "zip"
        if tarfile.is_tarfile(path):
            return "tar"
    return None


def _extract_zip(archive: Path, dest: Path) -> int:
    count = 0
    with zipfile.ZipFile(archive) as zf:
        bad = zf.testzip()
        if bad is not None:
            raise wrap_extraction(f"Corrupt member {bad!r} in {archive.name}", archive=str(archive))
        for info in zf.infolist():
            try:
                target = safe_join(dest, info.filename)
            except ValueError as e:
                raise wrap_extraction(f"Unsafe member path in {archive.name}: {info.filename!r}", e)
            if info.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            # open(..., "wb") truncates: re-runs overwrite rather than append.
            with zf.open(info) as src, open(target, "wb") as out:
                shutil.copyfileobj(src, out)
            count += 1
    return count


def _extract_tar(archive: Path, dest: Path) -> int:
    count = 0
    with tarfile.open(archive) as tf:
        for member in tf.getmembers():
            try:
                target = safe_join(dest, member.name)
            except ValueError as e:
                raise wrap_extraction(f"Unsafe member path in {archive.name}: {member.name!r}", e)
            if member.isdir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            if not member.isfile():
                LOG.debug("Skipping non-regular tar member %s", member.name)
                continue
            src = tf.extractfile(member)
            if src is None:
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with src, open(target, "wb") as out:
                shutil.copyfileobj(src, out)
            count += 1
    return count


def extract_archive(archive: Path, dest: Path, *, logger: Optional[logging.Logger] = None) -> int:
    """
    Fully extract archive into dest, overwriting files of the same name.
    Returns the number of files written. Raises ExtractionError.
    """
    log = logger or LOG
    kind = archive_kind(archive)
    if kind is None:
        raise wrap_extraction(f"Unsupported archive format: {archive.name}", archive=str(archive))

    try:
        dest.mkdir(parents=True, exist_ok=True)
        n = _extract_zip(archive, dest) if kind == "zip" else _extract_tar(archive, dest)
    except (zipfile.BadZipFile, tarfile.TarError, zlib.error, EOFError) as e:
        raise wrap_extraction(f"Corrupt archive {archive.name}: {e}", e, archive=str(archive))
    except OSError as e:
        raise wrap_extraction(f"Cannot extract {archive.name} into {dest}: {e}", e, archive=str(archive))

    log.info("Extracted %d file(s) from %s into %s", n, archive.name, dest)
    return n
