# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import pytest

from driverprov.core.exceptions import DownloadError
from driverprov.remote.raw import RawClient
from fakes.fake_http import FakeResponse, FakeSession, connection_error

BASE = "https://raw.example.test/contoso/drivers/main"


@pytest.mark.unit
class TestRawClient:
    def test_url_for_quotes_and_normalizes(self):
        rc = RawClient(FakeSession(), BASE + "/")

        assert rc.url_for("manifests/hp 840.json") == BASE + "/manifests/hp%20840.json"
        assert rc.url_for("\\extras\\usb.inf") == BASE + "/extras/usb.inf"

    def test_get_bytes(self):
        s = FakeSession({BASE + "/catalog.json": FakeResponse(200, b"[]")})

        assert RawClient(s, BASE).get_bytes("catalog.json") == b"[]"
        assert s.calls[0][1]["timeout"] == (15.0, 120.0)

    def test_404_is_not_retryable(self):
        with pytest.raises(DownloadError) as ei:
            RawClient(FakeSession(), BASE).get_bytes("missing.json")

        assert ei.value.retryable is False
        assert ei.value.context["status"] == 404

    def test_server_error_is_retryable(self):
        s = FakeSession({BASE + "/catalog.json": FakeResponse(503)})

        with pytest.raises(DownloadError) as ei:
            RawClient(s, BASE).get_bytes("catalog.json")
        assert ei.value.retryable is True

    def test_transport_error_is_download_error(self):
        s = FakeSession({BASE + "/catalog.json": connection_error()})

        with pytest.raises(DownloadError) as ei:
            RawClient(s, BASE).get_bytes("catalog.json")
        assert ei.value.retryable is True
        assert ei.value.code == 14

    def test_download_to_file(self, tmp_path):
        s = FakeSession({BASE + "/extras/usb.inf": FakeResponse(200, b"[Version]\n")})
        dest = tmp_path / "Fixes" / "usb.inf"

        res = RawClient(s, BASE).download("extras/usb.inf", dest)

        assert dest.read_bytes() == b"[Version]\n"
        assert res.bytes_written == 10
        assert s.calls[0][1]["stream"] is True

    def test_download_gzip_served_text_file(self, tmp_path):
        body = b"[Version]\r\nClass=USB\r\n" * 50
        s = FakeSession(
            {BASE + "/Fixes/usb.inf": FakeResponse(200, body, headers={"Content-Encoding": "gzip", "Content-Length": "71"})}
        )
        dest = tmp_path / "drivers" / "Fixes" / "usb.inf"

        RawClient(s, BASE).download("Fixes/usb.inf", dest)

        assert dest.read_bytes() == body
