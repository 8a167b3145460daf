# SPDX-License-Identifier: LGPL-3.0-or-later
import os
import sys
from pathlib import Path

import pytest

_THIS_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _THIS_DIR.parent

for p in (_REPO_ROOT, _THIS_DIR):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

os.environ.setdefault("PYTHONPATH", str(_REPO_ROOT))


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests without network, registry or pnputil")
    config.addinivalue_line("markers", "security: secret redaction and path containment")


@pytest.fixture(autouse=True)
def _no_token_env(monkeypatch):
    # A developer's GITHUB_TOKEN must not leak into config tests.
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    monkeypatch.delenv("DRIVERPROV_TOKEN", raising=False)
