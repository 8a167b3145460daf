#!/usr/bin/env python3
# SPDX-License-Identifier: LGPL-3.0-or-later
"""
Example: Preview a driver provisioning run using the driverprov library.

This example demonstrates:
- Building a ProvisionConfig in code instead of from flags
- Resolving the manifest for a given model string
- Downloading and extracting packages without running pnputil
- Reading the run report afterwards

Usage:
    python library_dry_run.py <owner> <repo> "<model>" [work_root]
"""

import json
import sys
import tempfile
from pathlib import Path

from driverprov import DriverProvError, Orchestrator, ProvisionConfig
from driverprov.core.logger import Log

logger = Log.setup(verbose=1)


def preview(owner: str, repo: str, model: str, work_root: Path) -> int:
    """Run every stage up to install in dry-run mode."""
    cfg = ProvisionConfig(owner=owner, repo=repo, model=model, work_root=work_root, dry_run=True)
    logger.info(f"Previewing drivers for {model!r} from {owner}/{repo}")

    try:
        code = Orchestrator(cfg, logger=logger).run()
    except DriverProvError as e:
        logger.error(f"Preview failed: {e}")
        return e.code

    report = json.loads(cfg.report_path.read_text(encoding="utf-8"))
    logger.info(f"  Manifest: {report['manifest_name']}")
    logger.info(f"  Release:  {report['release_tag']}")
    for d in report["downloads"]:
        logger.info(f"  Asset:    {d['asset']} ({d['bytes']:,} bytes)")
    logger.info(f"  INFs:     {report['install']['processed']}")
    return code


def main():
    """Main entry point."""

    if len(sys.argv) not in (4, 5):
        print(f"Usage: {sys.argv[0]} <owner> <repo> \"<model>\" [work_root]")
        print()
        print("Example:")
        print(f"  {sys.argv[0]} contoso endpoint-drivers \"HP EliteBook 840 G8 Notebook PC\"")
        sys.exit(2)

    work_root = Path(sys.argv[4]) if len(sys.argv) == 5 else Path(tempfile.mkdtemp(prefix="driverprov-"))
    sys.exit(preview(sys.argv[1], sys.argv[2], sys.argv[3], work_root))


if __name__ == "__main__":
    main()
