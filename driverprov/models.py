# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/models.py

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

# pnputil: success, success + reboot required, success + reboot initiated
SUCCESS_EXIT_CODES = frozenset({0, 3010, 1641})
REBOOT_EXIT_CODES = frozenset({3010, 1641})


@dataclass(frozen=True)
class CatalogEntry:
    manifest: str
    model: Optional[str] = None     # case-insensitive substring
    pattern: Optional[str] = None   # case-insensitive regex (re.search)

    def matches(self, detected: str) -> bool:
        text = detected or ""
        if self.pattern:
            return re.search(self.pattern, text, re.IGNORECASE) is not None
        if self.model:
            return self.model.strip().casefold() in text.casefold()
        return False


@dataclass(frozen=True)
class Catalog:
    entries: Tuple[CatalogEntry, ...] = ()

    def first_match(self, detected: str) -> Optional[CatalogEntry]:
        for e in self.entries:
            if e.matches(detected):
                return e
        return None

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class StandaloneFile:
    path: str       # relative to the extraction root
    source: str     # relative to the raw branch root


@dataclass(frozen=True)
class PackageEntry:
    path: str       # extraction subfolder
    asset: str      # release asset name


@dataclass(frozen=True)
class SinglePackage:
    release_tag: str
    asset: str
    extract_to: Optional[str] = None
    files: Tuple[StandaloneFile, ...] = ()
    model: Optional[str] = None
    description: Optional[str] = None

    @property
    def packages(self) -> Tuple[PackageEntry, ...]:
        return (PackageEntry(path=self.extract_to or "", asset=self.asset),)


@dataclass(frozen=True)
class MultiPackage:
    release_tag: str
    entries: Tuple[PackageEntry, ...]
    files: Tuple[StandaloneFile, ...] = ()
    model: Optional[str] = None
    description: Optional[str] = None

    @property
    def packages(self) -> Tuple[PackageEntry, ...]:
        return self.entries


Manifest = Union[SinglePackage, MultiPackage]


@dataclass(frozen=True)
class ReleaseAsset:
    id: int
    name: str
    size: Optional[int] = None
    url: Optional[str] = None
    browser_download_url: Optional[str] = None


@dataclass(frozen=True)
class Release:
    tag_name: str
    assets: Tuple[ReleaseAsset, ...] = ()
    id: Optional[int] = None
    name: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Release":
        assets: List[ReleaseAsset] = []
        for a in data.get("assets") or []:
            if not isinstance(a, dict) or "id" not in a or "name" not in a:
                continue
            assets.append(
                ReleaseAsset(
                    id=int(a["id"]),
                    name=str(a["name"]),
                    size=a.get("size"),
                    url=a.get("url"),
                    browser_download_url=a.get("browser_download_url"),
                )
            )
        return cls(
            tag_name=str(data.get("tag_name") or ""),
            assets=tuple(assets),
            id=data.get("id"),
            name=data.get("name"),
        )


@dataclass
class DownloadResult:
    path: Path
    bytes_written: int
    sha256: str
    expected_total: Optional[int] = None


@dataclass(frozen=True)
class DriverResult:
    descriptor: Path
    exit_code: int

    @property
    def ok(self) -> bool:
        return self.exit_code in SUCCESS_EXIT_CODES

    @property
    def reboot_required(self) -> bool:
        return self.exit_code in REBOOT_EXIT_CODES


@dataclass
class InstallOutcome:
    results: List[DriverResult] = field(default_factory=list)

    def add(self, descriptor: Path, exit_code: int) -> DriverResult:
        r = DriverResult(descriptor=descriptor, exit_code=int(exit_code))
        self.results.append(r)
        return r

    @property
    def processed(self) -> int:
        return len(self.results)

    @property
    def failures(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    @property
    def reboot_required(self) -> bool:
        return any(r.reboot_required for r in self.results)

    def to_jsonable(self) -> Dict[str, Any]:
        return {
            "processed": self.processed,
            "failures": self.failures,
            "reboot_required": self.reboot_required,
            "results": [
                {"descriptor": str(r.descriptor), "exit_code": r.exit_code, "ok": r.ok}
                for r in self.results
            ],
        }


@dataclass
class RunReport:
    started_at: str = ""
    finished_at: str = ""
    model: Optional[str] = None
    manifest_name: Optional[str] = None
    release_tag: Optional[str] = None
    dry_run: bool = False
    downloads: List[Dict[str, Any]] = field(default_factory=list)
    extracted: List[str] = field(default_factory=list)
    standalone_files: List[str] = field(default_factory=list)
    install: Optional[Dict[str, Any]] = None
    marker_written: Optional[bool] = None
    marker_error: Optional[str] = None
    error: Optional[Dict[str, Any]] = None
    exit_code: Optional[int] = None

    def to_jsonable(self) -> Dict[str, Any]:
        return asdict(self)
