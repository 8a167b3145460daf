# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/__init__.py
"""
driverprov - model-specific driver provisioning for Windows deployment

Run once per device during Autopilot/Intune enrollment:

    driverprov --owner contoso --repo drivers --token $TOKEN

It detects the hardware model, resolves a manifest from the repository's
catalog, downloads the release assets the manifest names, extracts them,
installs every INF with pnputil and finally sets a registry value that the
deployment's detection rule looks for.

Usage as a library:

    from driverprov import Orchestrator, ProvisionConfig

    cfg = ProvisionConfig(owner="contoso", repo="drivers", manifest="hp-840-g8.json")
    exit_code = Orchestrator(cfg).run()
"""

__version__ = "1.2.0"

from .config.settings import ProvisionConfig
from .core.exceptions import DriverProvError
from .orchestrator import Orchestrator

__all__ = [
    "__version__",
    "DriverProvError",
    "Orchestrator",
    "ProvisionConfig",
]
