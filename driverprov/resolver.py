# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/resolver.py
"""Map a hardware model string to a manifest name."""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Callable, List, Optional

from .core.exceptions import DriverProvError, wrap_resolution
from .core.logger import get_logger
from .models import Catalog, CatalogEntry

LOG = get_logger(__name__)


def parse_catalog(data: Any) -> Catalog:
    """
    Accepts:
      [{"model": "EliteBook 840 G8", "manifest": "hp-840-g8.json"},
       {"pattern": "Latitude 54[0-9]0", "manifest": "dell-latitude-5x40.json"}]
      {"EliteBook 840 G8": "hp-840-g8.json", ...}
      {"models": [...]}   (either shape nested)
    Order is preserved; the first match wins.
    """
    if isinstance(data, dict) and "models" in data and len(data) == 1:
        data = data["models"]

    entries: List[CatalogEntry] = []
    if isinstance(data, dict):
        for k, v in data.items():
            if not isinstance(v, str) or not str(k).strip():
                raise ValueError(f"catalog entry {k!r} must map to a manifest name")
            entries.append(CatalogEntry(manifest=v, model=str(k)))
    elif isinstance(data, list):
        for i, item in enumerate(data):
            if not isinstance(item, dict):
                raise ValueError(f"catalog entry #{i} is not an object")
            manifest = item.get("manifest")
            model = item.get("model")
            pattern = item.get("pattern")
            if not isinstance(manifest, str) or not manifest.strip():
                raise ValueError(f"catalog entry #{i} has no manifest")
            if not (isinstance(model, str) and model.strip()) and not (isinstance(pattern, str) and pattern):
                raise ValueError(f"catalog entry #{i} needs 'model' or 'pattern'")
            if pattern:
                try:
                    re.compile(pattern)
                except re.error as e:
                    raise ValueError(f"catalog entry #{i} has an invalid pattern: {e}") from e
            entries.append(CatalogEntry(manifest=manifest, model=model or None, pattern=pattern or None))
    else:
        raise ValueError("catalog must be a list or an object")
    return Catalog(entries=tuple(entries))


def parse_catalog_bytes(raw: bytes) -> Catalog:
    return parse_catalog(json.loads(raw.decode("utf-8-sig")))


def manifest_path(name: str, manifest_dir: str) -> str:
    """'hp-840' -> 'manifests/hp-840.json'; names containing '/' are used as given."""
    n = name.strip().replace("\\", "/")
    if not n.lower().endswith(".json"):
        n += ".json"
    if "/" in n or not manifest_dir:
        return n.lstrip("/")
    return f"{manifest_dir.strip('/')}/{n}"


def resolve_manifest_name(
    model: Optional[str],
    *,
    override: Optional[str] = None,
    load_catalog: Optional[Callable[[], Catalog]] = None,
    fallbacks: Optional[Catalog] = None,
    logger: Optional[logging.Logger] = None,
) -> str:
    """
    Override wins without touching the catalog. Otherwise the first catalog
    entry matching the model, then the first fallback entry. A catalog that
    cannot be loaded only matters if no fallback matches either.
    """
    log = logger or LOG
    if override:
        log.info("Manifest override given: %s (catalog lookup skipped)", override)
        return override

    if not model:
        raise wrap_resolution("No hardware model and no manifest override")

    catalog_error: Optional[BaseException] = None
    if load_catalog is not None:
        try:
            catalog = load_catalog()
        except (DriverProvError, ValueError) as e:
            catalog_error = e
            log.warning("Catalog unavailable: %s", e)
        else:
            hit = catalog.first_match(model)
            if hit is not None:
                log.info("Catalog match for %r: %s -> %s", model, hit.pattern or hit.model, hit.manifest)
                return hit.manifest
            log.warning("No catalog entry matches %r (%d entries)", model, len(catalog))

    if fallbacks is not None:
        hit = fallbacks.first_match(model)
        if hit is not None:
            log.info("Fallback mapping for %r: %s -> %s", model, hit.pattern or hit.model, hit.manifest)
            return hit.manifest

    raise wrap_resolution(f"No manifest mapping for model {model!r}", catalog_error, model=model)
