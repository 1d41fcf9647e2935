#!/usr/bin/env python3
"""
Synchronization script for the content mirror.

This script performs one sync round against the upstream repository:
- Runs an initial sync when no cursor is stored, otherwise a delta sync
- Applies upserts and deletions to the configured record store
- Logs and prints synchronization statistics

Designed to be run on a schedule (e.g., via cron). With the sqlite store the
cursor persists between runs, so each run only fetches new changes.

Usage:
    python scripts/sync_mirror.py [--config CONFIG_PATH] [--reset] [--dump-resolved FILE]
"""

import argparse
import json
import sys
from datetime import datetime

import structlog

from content_mirror.errors import ContentMirrorError
from content_mirror.mirror import ContentMirror
from content_mirror.models.config import AppConfig
from content_mirror.providers import build_mirror
from content_mirror.utils.config_loader import ConfigLoader
from content_mirror.utils.logging_config import configure_logging_from_config

log = structlog.stdlib.get_logger()


def perform_sync(mirror: ContentMirror, reset: bool = False) -> dict:
    """
    Run one sync round and collect statistics.

    Args:
        mirror: Wired content mirror
        reset: If True, forget the stored cursor and run an initial sync

    Returns:
        Dictionary with sync statistics
    """
    start_time = datetime.now()

    try:
        if reset:
            mirror.coordinator.reset()

        report = mirror.sync()

        stats = {
            "success": True,
            "sync_type": "initial" if report.initial else "delta",
            "cursor_advanced": report.cursor_advanced,
            "entries_upserted": report.entries_upserted,
            "assets_upserted": report.assets_upserted,
            "entries_deleted": report.entries_deleted,
            "assets_deleted": report.assets_deleted,
            "start_time": report.start_time.isoformat(),
            "end_time": report.end_time.isoformat(),
            "duration_seconds": report.duration_seconds,
        }
        log.info("sync_script_completed", **stats)
        return stats

    except ContentMirrorError as e:
        duration = (datetime.now() - start_time).total_seconds()
        log.error("sync_script_failed", error=str(e), kind=e.kind.value, duration_seconds=duration)
        return {"success": False, "error": str(e), "duration_seconds": duration}


def dump_resolved_entries(mirror: ContentMirror, output_path: str) -> int:
    """
    Write all resolved entries to a JSON file.

    Args:
        mirror: Wired content mirror (syncs again, which is a no-op right after a sync)
        output_path: Destination file

    Returns:
        Number of entries written
    """
    resolved = mirror.get_resolved_entries()
    with open(output_path, "w", encoding="utf-8") as f:
        json.dump([entry.model_dump(mode="json") for entry in resolved], f, indent=2)
    log.info("resolved_entries_dumped", path=output_path, count=len(resolved))
    return len(resolved)


def load_configuration(config_path: str | None = None) -> AppConfig:
    """
    Load configuration, configure logging and report validation warnings.

    Args:
        config_path: Path to configuration file (APP_ENV-selected file if None)

    Returns:
        Validated application configuration

    Raises:
        ConfigurationError: If the configuration cannot be loaded
    """
    loader = ConfigLoader()
    config = loader.load_config(config_path)
    configure_logging_from_config(config.logging)

    for warning in loader.validate_config(config):
        print(f"Configuration warning: {warning}", file=sys.stderr)

    return config


def main():
    """Main entry point for the sync script."""
    parser = argparse.ArgumentParser(description="Synchronize the local content mirror")
    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file",
        default=None,
    )
    parser.add_argument(
        "--reset",
        action="store_true",
        help="Forget the stored cursor and perform an initial sync",
    )
    parser.add_argument(
        "--dump-resolved",
        type=str,
        help="Write resolved entries as JSON to this file after syncing",
        default=None,
    )

    args = parser.parse_args()

    try:
        config = load_configuration(args.config)
    except ContentMirrorError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        sys.exit(2)

    mirror = build_mirror(config)

    stats = perform_sync(mirror, reset=args.reset)

    if stats.get("success") and args.dump_resolved:
        try:
            stats["resolved_entries"] = dump_resolved_entries(mirror, args.dump_resolved)
        except ContentMirrorError as e:
            log.error("dump_resolved_failed", error=str(e))
            stats = {**stats, "success": False, "error": str(e)}

    print("\n" + "=" * 60)
    print("SYNCHRONIZATION SUMMARY")
    print("=" * 60)

    if stats.get("success"):
        print("Status: SUCCESS")
        print(f"Sync Type: {stats.get('sync_type', 'unknown')}")
        print(f"Cursor Advanced: {stats.get('cursor_advanced')}")
        print(f"Entries Upserted: {stats.get('entries_upserted', 0)}")
        print(f"Assets Upserted: {stats.get('assets_upserted', 0)}")
        print(f"Entries Deleted: {stats.get('entries_deleted', 0)}")
        print(f"Assets Deleted: {stats.get('assets_deleted', 0)}")
        if "resolved_entries" in stats:
            print(f"Resolved Entries Written: {stats['resolved_entries']}")
        print(f"Duration: {stats.get('duration_seconds', 0):.2f} seconds")
    else:
        print("Status: FAILED")
        print(f"Error: {stats.get('error', 'Unknown error')}")
        print(f"Duration: {stats.get('duration_seconds', 0):.2f} seconds")

    print("=" * 60)

    sys.exit(0 if stats.get("success") else 1)


if __name__ == "__main__":
    main()
