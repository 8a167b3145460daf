# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/remote/raw.py
"""Unauthenticated static-file endpoint: {raw_root}/{owner}/{repo}/{branch}/{path}."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional
from urllib.parse import quote

import requests

from ..core.exceptions import wrap_download
from ..core.logger import get_logger
from ..models import DownloadResult
from .download import stream_to_file

LOG = get_logger(__name__)


class RawClient:
    def __init__(
        self,
        session: requests.Session,
        base_url: str,
        *,
        timeout: Any = (15.0, 120.0),
        logger: Optional[logging.Logger] = None,
    ):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.logger = logger or LOG

    def url_for(self, rel_path: str) -> str:
        parts = [p for p in rel_path.replace("\\", "/").split("/") if p]
        return self.base_url + "/" + "/".join(quote(p) for p in parts)

    def _get(self, rel_path: str, *, stream: bool) -> requests.Response:
        url = self.url_for(rel_path)
        self.logger.info("GET %s", url)
        try:
            resp = self.session.get(url, stream=stream, timeout=self.timeout)
        except requests.RequestException as e:
            raise wrap_download(f"Request failed for {rel_path}: {e}", e, url=url)

        if resp.status_code == 404:
            resp.close()
            raise wrap_download(f"Not found: {url}", retryable=False, url=url, status=404)
        if not 200 <= resp.status_code < 300:
            resp.close()
            raise wrap_download(f"HTTP {resp.status_code} for {url}", url=url, status=resp.status_code)
        return resp

    def get_bytes(self, rel_path: str) -> bytes:
        resp = self._get(rel_path, stream=False)
        self.logger.debug("Fetched %s (%d bytes)", rel_path, len(resp.content))
        return resp.content

    def download(self, rel_path: str, dest: Path) -> DownloadResult:
        resp = self._get(rel_path, stream=True)
        try:
            return stream_to_file(resp, dest, label=Path(rel_path).name, logger=self.logger)
        finally:
            resp.close()
