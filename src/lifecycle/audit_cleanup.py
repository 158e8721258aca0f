"""
Audit retention

Deletes outcome records older than the retention period.
"""

import sqlite3
import time
from pathlib import Path


class AuditCleanup:
    """Purges expired rows from the outcomes table.

    Example:
        >>> cleanup = AuditCleanup(db_path="data/guardian.db", retention_days=90)
        >>> result = cleanup.cleanup()
        >>> print(f"Deleted {result['deleted_count']} records")
    """

    def __init__(self, db_path: str, retention_days: int = 90):
        """
        Args:
            db_path: SQLite database path
            retention_days: days of history to keep
        """
        self.db_path = Path(db_path)
        self.retention_days = retention_days

    def _cutoff(self) -> float:
        return time.time() - (self.retention_days * 24 * 60 * 60)

    def get_expired_records(self) -> list[dict]:
        """Outcome records finished before the retention cutoff, oldest first."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            cursor = conn.execute(
                """
                SELECT session_id, status, finished_at
                FROM outcomes
                WHERE finished_at < ?
                ORDER BY finished_at ASC
                """,
                (self._cutoff(),),
            )
            columns = ["session_id", "status", "finished_at"]
            return [dict(zip(columns, row)) for row in cursor.fetchall()]
        finally:
            conn.close()

    def cleanup(self, dry_run: bool = False) -> dict:
        """
        Args:
            dry_run: only count what would be deleted

        Returns:
            dict with deleted_count, would_delete_count, duration_sec
        """
        start_time = time.time()
        expired = self.get_expired_records()

        deleted_count = 0
        if expired and not dry_run:
            conn = sqlite3.connect(str(self.db_path))
            try:
                cursor = conn.execute(
                    "DELETE FROM outcomes WHERE finished_at < ?", (self._cutoff(),)
                )
                deleted_count = cursor.rowcount
                conn.commit()
            finally:
                conn.close()

        return {
            "deleted_count": deleted_count,
            "would_delete_count": len(expired) if dry_run else 0,
            "duration_sec": time.time() - start_time,
        }


__all__ = ["AuditCleanup"]
