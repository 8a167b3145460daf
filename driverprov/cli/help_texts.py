# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# driverprov/cli/help_texts.py
from __future__ import annotations

YAML_EXAMPLE = r"""# driverprov config
# Run:
#   driverprov.exe --config C:\ProgramData\DriverProv\driverprov.yaml
# or layer a site file over a base file:
#   driverprov.exe --config base.yaml --config site.yaml --token %GITHUB_TOKEN%
owner: contoso
repo: endpoint-drivers
branch: main
catalog_path: catalog.json        # model substring -> manifest name
manifest_dir: manifests
work_root: C:\ProgramData\DriverProv
registry_path: HKLM\SOFTWARE\Contoso\DriverProv
registry_name: DriversInstalled
retries: 3
retry_delay_s: 5
# Used when the remote catalog has no match (same shape as the catalog):
fallback_models:
  - model: "EliteBook 840 G8"
    manifest: hp-elitebook-840-g8.json
  - pattern: "Latitude 5[45]\\d0"
    manifest: dell-latitude-5x40.json
"""

MANIFEST_EXAMPLE = r"""# manifests/hp-elitebook-840-g8.json
{"releaseTag": "hp-840-g8-2024.06", "asset": "hp-840-g8.zip", "extractTo": "HP"}

# multi-package
{"releaseTag": "v7",
 "packages": [{"path": "Chipset", "asset": "chipset.zip"},
              {"path": "Audio", "asset": "audio.zip"}],
 "files": [{"path": "Fixes/usb.inf", "source": "extras/usb.inf"}]}
"""

EXIT_CODES = r""" 0   all driver installs succeeded (incl. 3010/1641 reboot codes)
 1   one or more driver installs failed; completion marker still written
 2   configuration error
 10  no manifest for this model        14  download failed
 11  manifest unreachable/malformed    15  archive extraction failed
 12  release tag not found             16  no *.inf in the driver tree
 13  asset not in release              17  pnputil.exe not found
"""
