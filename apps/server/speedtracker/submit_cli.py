"""Submit one day's record from the command line.

Runs a single sync cycle with the configured remote store and prints the
derived record.  Exit codes: 0 committed, 1 not saved, 2 bad input.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from .buckets import BUCKETS
from .config import load_config
from .domain_models import RawInput
from .history import RecordHistory
from .metrics import MetricsDeriver
from .remote_store import RemoteRecordStore
from .sync import SyncCoordinator


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="speedtracker-submit",
        description="Derive a daily speed record and send it to the remote store.",
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to config YAML")
    parser.add_argument("--date", required=True, help="Record date (YYYY-MM-DD)")
    for bucket in BUCKETS:
        parser.add_argument(
            f"--{bucket['key']}",
            default="0",
            help=f"Transactions taking {bucket['label']} minutes",
        )
    parser.add_argument("--revenue", default="0", help="Revenue in the smallest currency unit")
    parser.add_argument("--note", default="", help="Free-text note")
    parser.add_argument("--qc-count", dest="qc_count", default="0", help="Batch/QC count")
    parser.add_argument("--validated", action="store_true", help="Mark the record as validated")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = create_parser().parse_args(argv)
    config = load_config(args.config)
    logging.basicConfig(level=config.logging.level, format="%(levelname)s: %(message)s")

    try:
        raw = RawInput.from_form(vars(args))
    except ValueError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 2

    coordinator = SyncCoordinator(
        RemoteRecordStore(config.remote.url, timeout_s=config.remote.timeout_s),
        RecordHistory(),
        deriver=MetricsDeriver(config.locale.language),
        field_style=config.remote.field_style,
    )
    result = asyncio.run(coordinator.submit(raw))
    print(json.dumps(result.record.to_payload(config.remote.field_style), indent=2))
    if not result.ok:
        print(f"ERROR: record not saved: {result.message}", file=sys.stderr)
        return 1
    print(result.message)
    return 0


if __name__ == "__main__":
    sys.exit(main())
