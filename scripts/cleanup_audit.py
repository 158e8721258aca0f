#!/usr/bin/env python3
"""
Audit cleanup script

Manually purge session outcomes older than the retention period.

Usage:
    python -m scripts.cleanup_audit
    python -m scripts.cleanup_audit --dry-run
    python -m scripts.cleanup_audit --retention-days 30
"""

import argparse
from datetime import datetime

from src.core.config import load_config
from src.lifecycle.audit_cleanup import AuditCleanup


def main():
    parser = argparse.ArgumentParser(description="Purge expired session outcomes")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="only report what would be deleted",
    )
    parser.add_argument(
        "--retention-days",
        type=int,
        default=None,
        help="days of history to keep (default: from config)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="config/settings.yaml",
        help="config file (default: config/settings.yaml)",
    )
    args = parser.parse_args()

    config = load_config(args.config)
    retention_days = (
        args.retention_days if args.retention_days is not None else config.audit.retention_days
    )

    cleanup = AuditCleanup(db_path=config.audit.db_path, retention_days=retention_days)

    print("Audit cleanup")
    print("=" * 50)
    print(f"Database: {config.audit.db_path}")
    print(f"Retention: {retention_days} days")
    print(f"Mode: {'dry run' if args.dry_run else 'delete'}")
    print("=" * 50)

    expired = cleanup.get_expired_records()
    print(f"\nFound {len(expired)} expired outcomes")

    if not expired:
        print("Nothing to clean up")
        return

    for record in expired:
        finished = datetime.fromtimestamp(record["finished_at"]).isoformat(timespec="seconds")
        print(f"  - {record['session_id']}: {record['status']} at {finished}")

    result = cleanup.cleanup(dry_run=args.dry_run)

    print(f"\nDone in {result['duration_sec']:.2f}s")
    if args.dry_run:
        print(f"  Would delete: {result['would_delete_count']} outcomes")
    else:
        print(f"  Deleted: {result['deleted_count']} outcomes")


if __name__ == "__main__":
    main()
