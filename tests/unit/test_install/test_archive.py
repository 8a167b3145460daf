# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import io
import tarfile
import zipfile

import pytest

from driverprov.archive import archive_kind, extract_archive
from driverprov.core.exceptions import ExtractionError


def make_zip(path, members):
    with zipfile.ZipFile(path, "w") as zf:
        for name, data in members.items():
            zf.writestr(name, data)
    return path


def make_tar(path, members):
    with tarfile.open(path, "w:gz") as tf:
        for name, data in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(data)
            tf.addfile(info, io.BytesIO(data))
    return path


@pytest.mark.unit
class TestArchiveKind:
    def test_by_suffix(self, tmp_path):
        assert archive_kind(tmp_path / "a.ZIP") == "zip"
        assert archive_kind(tmp_path / "a.tar.gz") == "tar"
        assert archive_kind(tmp_path / "a.7z") is None

    def test_sniffed_without_extension(self, tmp_path):
        p = make_zip(tmp_path / "asset", {"x.inf": b"x"})
        assert archive_kind(p) == "zip"


@pytest.mark.unit
class TestExtractArchive:
    def test_zip_full_extraction(self, tmp_path):
        archive = make_zip(tmp_path / "pack.zip", {"Audio/a.inf": b"[Version]", "Audio/a.sys": b"\x00", "readme.txt": b"r"})
        dest = tmp_path / "drivers"

        n = extract_archive(archive, dest)

        assert n == 3
        assert (dest / "Audio" / "a.inf").read_bytes() == b"[Version]"
        assert (dest / "readme.txt").exists()

    def test_tar_extraction(self, tmp_path):
        archive = make_tar(tmp_path / "pack.tar.gz", {"Net/n.inf": b"[Version]"})
        dest = tmp_path / "drivers"

        assert extract_archive(archive, dest) == 1
        assert (dest / "Net" / "n.inf").exists()

    def test_rerun_overwrites(self, tmp_path):
        dest = tmp_path / "drivers"
        extract_archive(make_zip(tmp_path / "v1.zip", {"a.inf": b"old old old"}), dest)
        extract_archive(make_zip(tmp_path / "v2.zip", {"a.inf": b"new"}), dest)

        assert (dest / "a.inf").read_bytes() == b"new"

    def test_corrupt_archive(self, tmp_path):
        p = tmp_path / "pack.zip"
        p.write_bytes(b"PK\x03\x04 this is not really a zip")

        with pytest.raises(ExtractionError) as ei:
            extract_archive(p, tmp_path / "drivers")
        assert ei.value.code == 15

    def test_unsupported_format(self, tmp_path):
        p = tmp_path / "pack.bin"
        p.write_bytes(b"plain bytes")
        with pytest.raises(ExtractionError):
            extract_archive(p, tmp_path / "drivers")

    @pytest.mark.security
    def test_zip_slip_rejected(self, tmp_path):
        archive = make_zip(tmp_path / "evil.zip", {"../../escape.inf": b"x"})

        with pytest.raises(ExtractionError):
            extract_archive(archive, tmp_path / "drivers" / "sub")
        assert not (tmp_path / "escape.inf").exists()

    @pytest.mark.security
    def test_tar_symlink_skipped(self, tmp_path):
        archive = tmp_path / "links.tar"
        with tarfile.open(archive, "w") as tf:
            link = tarfile.TarInfo("evil.inf")
            link.type = tarfile.SYMTYPE
            link.linkname = "/etc/passwd"
            tf.addfile(link)
            info = tarfile.TarInfo("ok.inf")
            info.size = 2
            tf.addfile(info, io.BytesIO(b"ok"))
        dest = tmp_path / "drivers"

        assert extract_archive(archive, dest) == 1
        assert not (dest / "evil.inf").exists()
