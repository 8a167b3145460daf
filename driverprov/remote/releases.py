# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/remote/releases.py
"""
Release REST API: resolve a release by tag, pick an asset by name, stream its
bytes.

GET {api}/repos/{owner}/{repo}/releases/tags/{tag}
GET {api}/repos/{owner}/{repo}/releases/assets/{id}   (Accept: octet-stream)

The asset endpoint answers with a 302 to a pre-signed storage URL. That hop is
followed by hand so the bearer token is never sent to the storage host.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from ..core.exceptions import (
    wrap_asset_not_found,
    wrap_download,
    wrap_release_not_found,
)
from ..core.logger import get_logger
from ..models import DownloadResult, Release, ReleaseAsset
from .download import stream_to_file

LOG = get_logger(__name__)

API_VERSION = "2022-11-28"
JSON_ACCEPT = "application/vnd.github+json"
BINARY_ACCEPT = "application/octet-stream"
REDIRECT_CODES = frozenset({301, 302, 303, 307, 308})


class ReleaseClient:
    def __init__(
        self,
        session: requests.Session,
        repo_api: str,
        token: Optional[str] = None,
        *,
        timeout: Any = (15.0, 120.0),
        logger: Optional[logging.Logger] = None,
    ):
        self.session = session
        self.repo_api = repo_api.rstrip("/")
        self._token = token
        self.timeout = timeout
        self.logger = logger or LOG

    def _headers(self, accept: str) -> Dict[str, str]:
        h = {"Accept": accept, "X-GitHub-Api-Version": API_VERSION}
        if self._token:
            h["Authorization"] = f"Bearer {self._token}"
        return h

    def get_release(self, tag: str) -> Release:
        url = f"{self.repo_api}/releases/tags/{quote(tag, safe='')}"
        self.logger.info("GET %s", url)
        try:
            resp = self.session.get(url, headers=self._headers(JSON_ACCEPT), timeout=self.timeout)
        except requests.RequestException as e:
            raise wrap_download(f"Release lookup for {tag!r} failed: {e}", e, tag=tag)

        # 401/403 mean the token cannot see the repository: same outcome for the caller.
        if resp.status_code in (401, 403, 404):
            raise wrap_release_not_found(
                f"Release {tag!r} not found or not accessible (HTTP {resp.status_code})",
                tag=tag,
                status=resp.status_code,
            )
        if not 200 <= resp.status_code < 300:
            raise wrap_download(f"Release lookup for {tag!r} returned HTTP {resp.status_code}", tag=tag)

        try:
            data = resp.json()
        except ValueError as e:
            raise wrap_download(f"Release metadata for {tag!r} is not JSON", e, tag=tag)
        if not isinstance(data, dict):
            raise wrap_download(f"Release metadata for {tag!r} is not an object", retryable=False, tag=tag)

        release = Release.from_api(data)
        self.logger.info("Release %s has %d asset(s)", release.tag_name or tag, len(release.assets))
        return release

    @staticmethod
    def find_asset(release: Release, name: str) -> ReleaseAsset:
        for a in release.assets:
            if a.name == name:
                return a
        raise wrap_asset_not_found(
            f"Asset {name!r} not found in release {release.tag_name!r}",
            tag=release.tag_name,
            available=[a.name for a in release.assets],
        )

    def download_asset(self, asset: ReleaseAsset, dest: Path) -> DownloadResult:
        url = f"{self.repo_api}/releases/assets/{asset.id}"
        self.logger.info("GET %s (%s)", url, asset.name)
        try:
            resp = self.session.get(
                url,
                headers=self._headers(BINARY_ACCEPT),
                stream=True,
                allow_redirects=False,
                timeout=self.timeout,
            )
            if resp.status_code in REDIRECT_CODES:
                location = resp.headers.get("Location")
                resp.close()
                if not location:
                    raise wrap_download(f"Redirect without Location for asset {asset.name!r}", asset=asset.name)
                self.logger.debug("Following redirect for %s", asset.name)
                resp = self.session.get(
                    location,
                    headers={"Accept": BINARY_ACCEPT},
                    stream=True,
                    allow_redirects=False,
                    timeout=self.timeout,
                )
                if resp.status_code in REDIRECT_CODES:
                    resp.close()
                    raise wrap_download(f"Too many redirects for asset {asset.name!r}", asset=asset.name)
        except requests.RequestException as e:
            raise wrap_download(f"Download of {asset.name!r} failed: {e}", e, asset=asset.name)

        try:
            if not 200 <= resp.status_code < 300:
                raise wrap_download(
                    f"Download of {asset.name!r} returned HTTP {resp.status_code}",
                    asset=asset.name,
                    status=resp.status_code,
                )
            return stream_to_file(resp, dest, label=asset.name, logger=self.logger)
        finally:
            resp.close()
