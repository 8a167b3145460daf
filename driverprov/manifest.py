# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/manifest.py
"""
Manifest parsing and retrieval.

Single-package:
    {"releaseTag": "hp-840-g8-2024.06", "asset": "hp-840-g8.zip", "extractTo": "HP"}

Multi-package (legacy):
    {"releaseTag": "v7",
     "packages": [{"path": "Chipset", "asset": "chipset.zip"},
                  {"path": "Audio",   "asset": "audio.zip"}]}

Either shape may add standalone files fetched from the raw endpoint:
    "files": [{"path": "Fixes/usb.inf", "source": "extras/usb.inf"}, "Fixes/usb.cat"]
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .core.exceptions import DownloadError, wrap_manifest
from .core.file_ops import atomic_write, is_safe_relative
from .core.logger import get_logger
from .models import Manifest, MultiPackage, PackageEntry, SinglePackage, StandaloneFile
from .remote.raw import RawClient

LOG = get_logger(__name__)


def _req_str(d: Dict[str, Any], *keys: str) -> Optional[str]:
    for k in keys:
        v = d.get(k)
        if v is None:
            continue
        if not isinstance(v, str) or not v.strip():
            raise wrap_manifest(f"Manifest field {k!r} must be a non-empty string")
        return v.strip()
    return None


def _rel_path(value: Any, what: str) -> str:
    if not isinstance(value, str) or not is_safe_relative(value):
        raise wrap_manifest(f"Manifest {what} must be a relative path inside the working tree: {value!r}")
    return value.strip()


def _parse_files(raw: Any) -> Tuple[StandaloneFile, ...]:
    if raw is None:
        return ()
    if not isinstance(raw, list):
        raise wrap_manifest("Manifest field 'files' must be a list")
    out: List[StandaloneFile] = []
    for i, item in enumerate(raw):
        if isinstance(item, str):
            p = _rel_path(item, f"files[{i}]")
            out.append(StandaloneFile(path=p, source=p))
        elif isinstance(item, dict):
            p = _rel_path(item.get("path"), f"files[{i}].path")
            src = item.get("source", p)
            if not isinstance(src, str) or not src.strip():
                raise wrap_manifest(f"Manifest files[{i}].source must be a non-empty string")
            out.append(StandaloneFile(path=p, source=src.strip().lstrip("/")))
        else:
            raise wrap_manifest(f"Manifest files[{i}] must be a string or an object")
    return tuple(out)


def _parse_packages(raw: Any) -> Tuple[PackageEntry, ...]:
    if not isinstance(raw, list) or not raw:
        raise wrap_manifest("Manifest field 'packages' must be a non-empty list")
    out: List[PackageEntry] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise wrap_manifest(f"Manifest packages[{i}] must be an object")
        asset = item.get("asset")
        if not isinstance(asset, str) or not asset.strip():
            raise wrap_manifest(f"Manifest packages[{i}] has no asset")
        out.append(PackageEntry(path=_rel_path(item.get("path"), f"packages[{i}].path"), asset=asset.strip()))
    return tuple(out)


def parse_manifest(data: Any) -> Manifest:
    """Validate a decoded manifest document and return its variant. Raises ManifestError."""
    if not isinstance(data, dict):
        raise wrap_manifest("Manifest must be a JSON object")

    tag = _req_str(data, "releaseTag", "tag")
    if not tag:
        raise wrap_manifest("Manifest has no 'releaseTag'")

    model = data.get("model") if isinstance(data.get("model"), str) else None
    description = data.get("description") if isinstance(data.get("description"), str) else None
    files = _parse_files(data.get("files"))

    has_single = data.get("asset") is not None
    multi_key = "packages" if "packages" in data else ("paths" if "paths" in data else None)

    if has_single and multi_key:
        raise wrap_manifest(f"Manifest declares both 'asset' and '{multi_key}'")

    if has_single:
        asset = _req_str(data, "asset")
        extract_to = data.get("extractTo")
        if extract_to is not None and extract_to != "":
            extract_to = _rel_path(extract_to, "extractTo")
        return SinglePackage(
            release_tag=tag,
            asset=str(asset),
            extract_to=extract_to or None,
            files=files,
            model=model,
            description=description,
        )

    if multi_key:
        return MultiPackage(
            release_tag=tag,
            entries=_parse_packages(data[multi_key]),
            files=files,
            model=model,
            description=description,
        )

    raise wrap_manifest("Manifest declares no 'asset' and no 'packages'")


def parse_manifest_bytes(raw: bytes) -> Manifest:
    try:
        data = json.loads(raw.decode("utf-8-sig"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise wrap_manifest(f"Manifest is not valid JSON: {e}", e)
    return parse_manifest(data)


def fetch_manifest(
    raw_client: RawClient,
    rel_path: str,
    copy_to: Path,
    *,
    logger: Optional[logging.Logger] = None,
) -> Manifest:
    """
    Download the manifest, keep a copy of the raw bytes at copy_to, and parse it.
    Transport errors stay retryable; content errors are not.
    """
    log = logger or LOG
    try:
        raw = raw_client.get_bytes(rel_path)
    except DownloadError as e:
        raise wrap_manifest(f"Manifest {rel_path!r} unreachable: {e.msg}", e, retryable=e.retryable, path=rel_path)

    with atomic_write(copy_to) as tmp:
        tmp.write_bytes(raw)
    log.debug("Manifest copy written to %s", copy_to)

    manifest = parse_manifest_bytes(raw)
    kind = "single-package" if isinstance(manifest, SinglePackage) else "multi-package"
    log.info(
        "Manifest %s: release %s, %s, %d package(s), %d file(s)",
        rel_path,
        manifest.release_tag,
        kind,
        len(manifest.packages),
        len(manifest.files),
    )
    return manifest
