# SPDX-License-Identifier: LGPL-3.0-or-later
from __future__ import annotations

import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

from driverprov.core.exceptions import NoDriversFoundError, UtilityNotFoundError
from driverprov.drivers import (
    LAUNCH_FAILED,
    PnpUtilInstaller,
    find_descriptors,
    install_all,
    resolve_pnputil,
)
from fakes.fake_installer import FakeInstaller, RaisingInstaller


def _tree(root: Path, names):
    for n in names:
        p = root / n
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text("[Version]\n", encoding="utf-8")
    return root


@pytest.mark.unit
class TestFindDescriptors:
    def test_recursive_case_insensitive_sorted(self, tmp_path):
        _tree(tmp_path, ["b/Two.INF", "a/one.inf", "a/one.sys", "c/deep/three.Inf"])

        found = find_descriptors(tmp_path)

        assert [p.name for p in found] == ["one.inf", "Two.INF", "three.Inf"]

    def test_none_found(self, tmp_path):
        _tree(tmp_path, ["a/readme.txt"])
        with pytest.raises(NoDriversFoundError) as ei:
            find_descriptors(tmp_path)
        assert ei.value.code == 16

    def test_missing_root(self, tmp_path):
        with pytest.raises(NoDriversFoundError):
            find_descriptors(tmp_path / "absent")


@pytest.mark.unit
class TestInstallAll:
    def test_every_descriptor_attempted_despite_failures(self, tmp_path):
        infs = [tmp_path / n for n in ("a.inf", "b.inf", "c.inf")]
        inst = FakeInstaller(codes=[0, 3010, 87])

        outcome = install_all(infs, inst)

        assert inst.calls == infs
        assert outcome.processed == 3
        assert outcome.failures == 1
        assert outcome.reboot_required is True

    def test_success_codes(self, tmp_path):
        infs = [tmp_path / n for n in ("a.inf", "b.inf", "c.inf")]

        outcome = install_all(infs, FakeInstaller(codes=[0, 3010, 1641]))

        assert outcome.failures == 0

    def test_launch_failure_counts_and_continues(self, tmp_path):
        infs = [tmp_path / n for n in ("a.inf", "b.inf")]
        inst = RaisingInstaller("a.inf")

        outcome = install_all(infs, inst)

        assert [r.exit_code for r in outcome.results] == [LAUNCH_FAILED, 0]
        assert outcome.failures == 1
        assert len(inst.calls) == 2

    def test_empty_list(self):
        outcome = install_all([], FakeInstaller())
        assert outcome.processed == 0
        assert outcome.failures == 0


@pytest.mark.unit
class TestResolvePnputil:
    def test_configured_path(self, tmp_path):
        exe = tmp_path / "pnputil.exe"
        exe.write_bytes(b"")
        assert resolve_pnputil(exe) == exe

    def test_configured_path_missing(self, tmp_path):
        with pytest.raises(UtilityNotFoundError) as ei:
            resolve_pnputil(tmp_path / "nope.exe")
        assert ei.value.code == 17

    def test_sysnative_preferred(self, tmp_path):
        for sub in ("Sysnative", "System32"):
            (tmp_path / sub).mkdir()
            (tmp_path / sub / "pnputil.exe").write_bytes(b"")

        found = resolve_pnputil(env={"SystemRoot": str(tmp_path)}, which=lambda _n: None)

        assert found == tmp_path / "Sysnative" / "pnputil.exe"

    def test_system32(self, tmp_path):
        (tmp_path / "System32").mkdir()
        (tmp_path / "System32" / "pnputil.exe").write_bytes(b"")

        found = resolve_pnputil(env={"SystemRoot": str(tmp_path)}, which=lambda _n: None)

        assert found == tmp_path / "System32" / "pnputil.exe"

    def test_path_lookup(self, tmp_path):
        found = resolve_pnputil(env={"SystemRoot": str(tmp_path)}, which=lambda n: "/opt/bin/pnputil.exe")
        assert found == Path("/opt/bin/pnputil.exe")

    def test_not_found(self, tmp_path):
        with pytest.raises(UtilityNotFoundError):
            resolve_pnputil(env={"SystemRoot": str(tmp_path)}, which=lambda _n: None)


@pytest.mark.unit
class TestPnpUtilInstaller:
    def test_command_line(self):
        inst = PnpUtilInstaller(Path("C:/Windows/System32/pnputil.exe"))
        cmd = inst.command(Path("C:/DriverProv/drivers/Audio/a.inf"))

        assert cmd[1:] == ["/add-driver", str(Path("C:/DriverProv/drivers/Audio/a.inf")), "/install"]

    def test_install_returns_exit_code(self, tmp_path):
        inf = tmp_path / "a.inf"
        cp = subprocess.CompletedProcess([], 3010, stdout="Driver package added.\nReboot required.\n", stderr="")

        with patch("driverprov.drivers.U.run_cmd", return_value=cp) as run:
            code = PnpUtilInstaller(Path("pnputil.exe"), timeout_s=30).install(inf)

        assert code == 3010
        assert run.call_args.kwargs["timeout"] == 30
