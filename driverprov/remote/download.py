# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/remote/download.py

from __future__ import annotations

import hashlib
import logging
import sys
from pathlib import Path
from typing import Any, Optional

from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)

from ..core.exceptions import wrap_download
from ..core.file_ops import atomic_write
from ..core.logger import get_logger, is_tty
from ..core.utils import U
from ..models import DownloadResult

LOG = get_logger(__name__)

CHUNK_BYTES = 1024 * 1024


def _header(resp: Any, name: str) -> Optional[str]:
    for k, v in (resp.headers or {}).items():
        if str(k).lower() == name.lower():
            return v
    return None


def _expected_total(resp: Any) -> Optional[int]:
    """
    Decoded byte count the body should yield, if known.

    iter_content() undoes gzip/deflate, so Content-Length (the encoded wire
    size) says nothing about the bytes written once a Content-Encoding is set.
    """
    encoding = (_header(resp, "Content-Encoding") or "identity").strip().lower()
    if encoding not in ("", "identity"):
        return None
    v = _header(resp, "Content-Length")
    if v is not None and str(v).isdigit():
        return int(v)
    return None


def _progress(show: bool) -> Progress:
    return Progress(
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        transient=True,
        disable=not show,
    )


def stream_to_file(
    resp: Any,
    dest: Path,
    *,
    label: Optional[str] = None,
    chunk_bytes: int = CHUNK_BYTES,
    show_progress: Optional[bool] = None,
    logger: Optional[logging.Logger] = None,
) -> DownloadResult:
    """
    Stream an HTTP response body into dest.

    Bytes land in a temp file beside dest and are renamed over it only after
    the whole body arrived, so a failed run never leaves a truncated archive
    under the final name. Existing files are replaced.

    Args:
        resp: a requests.Response opened with stream=True
        dest: final path
        label: progress bar text (defaults to dest.name)
        chunk_bytes: iter_content chunk size
        show_progress: force the rich bar on/off (default: on when stderr is a TTY)

    Returns:
        DownloadResult with byte count and SHA-256
    """
    log = logger or LOG
    expected = _expected_total(resp)
    show = is_tty(sys.stderr) if show_progress is None else show_progress
    digest = hashlib.sha256()
    written = 0

    try:
        with atomic_write(dest) as tmp, _progress(show) as progress:
            task = progress.add_task(label or dest.name, total=expected)
            with open(tmp, "wb") as f:
                for chunk in resp.iter_content(chunk_size=chunk_bytes):
                    if not chunk:
                        continue
                    f.write(chunk)
                    digest.update(chunk)
                    written += len(chunk)
                    progress.update(task, completed=written)
    except OSError as e:
        # requests.RequestException is an OSError too: covers both the socket and the disk.
        raise wrap_download(f"Failed streaming {dest.name}: {e}", e, dest=str(dest))

    if expected is not None and written != expected:
        dest.unlink(missing_ok=True)
        raise wrap_download(
            f"Size mismatch for {dest.name}: expected {expected}, got {written}",
            dest=str(dest),
        )

    log.info("Downloaded %s (%s)", dest, U.human_bytes(written))
    return DownloadResult(path=dest, bytes_written=written, sha256=digest.hexdigest(), expected_total=expected)
