# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/remote/session.py
"""HTTP session shared by the raw-file and release clients."""

from __future__ import annotations

import ssl
from typing import Any

import requests
import requests.adapters

from .. import __version__


class Tls12Adapter(requests.adapters.HTTPAdapter):
    """HTTPAdapter whose SSL context refuses anything older than TLS 1.2."""

    def _context(self) -> ssl.SSLContext:
        ctx = ssl.create_default_context()
        ctx.minimum_version = ssl.TLSVersion.TLSv1_2
        return ctx

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> Any:
        kwargs["ssl_context"] = self._context()
        return super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, *args: Any, **kwargs: Any) -> Any:
        kwargs["ssl_context"] = self._context()
        return super().proxy_manager_for(*args, **kwargs)


def build_session() -> requests.Session:
    session = requests.Session()
    session.headers["User-Agent"] = f"driverprov/{__version__}"
    # Retries are done per call site by core.retry, not by urllib3.
    adapter = Tls12Adapter(pool_connections=4, pool_maxsize=4, max_retries=0)
    session.mount("https://", adapter)
    return session
