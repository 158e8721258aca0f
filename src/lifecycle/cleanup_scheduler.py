"""
Audit cleanup scheduler

Runs AuditCleanup periodically on an APScheduler background thread.
"""

import logging
from pathlib import Path

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from src.core.config import Config
from src.lifecycle.audit_cleanup import AuditCleanup


logger = logging.getLogger(__name__)


class CleanupScheduler:
    """Periodic audit-log retention.

    Example:
        >>> from src.core.config import load_config
        >>> config = load_config()
        >>> scheduler = CleanupScheduler(config)
        >>> scheduler.start()
        >>> # ... service runs ...
        >>> scheduler.stop()
    """

    def __init__(self, config: Config, db_path: str | Path | None = None):
        """
        Args:
            config: application config
            db_path: SQLite database path, defaults to config.audit.db_path
        """
        self.config = config
        self.db_path = Path(db_path or config.audit.db_path)

        self._scheduler: BackgroundScheduler | None = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    def start(self) -> None:
        """Start the background scheduler unless audit.cleanup_enabled is False."""
        if not self.config.audit.cleanup_enabled:
            logger.info("Audit cleanup disabled (cleanup_enabled=False)")
            return

        if self._is_running:
            logger.warning("Audit cleanup scheduler already running")
            return

        self._scheduler = BackgroundScheduler(daemon=True)

        hours = self.config.audit.cleanup_schedule_hours
        trigger = IntervalTrigger(hours=hours)

        self._scheduler.add_job(
            func=self._run_cleanup,
            trigger=trigger,
            id="audit_cleanup",
            name="Audit retention",
            replace_existing=True,
        )

        self._scheduler.start()
        self._is_running = True

        logger.info(
            f"Audit cleanup scheduled every {hours} hours, "
            f"keeping {self.config.audit.retention_days} days of outcomes"
        )

    def stop(self) -> None:
        if not self._is_running or self._scheduler is None:
            logger.info("Audit cleanup scheduler not running")
            return

        self._scheduler.shutdown(wait=False)
        self._scheduler = None
        self._is_running = False

        logger.info("Audit cleanup scheduler stopped")

    def run_now(self) -> dict:
        """Run one cleanup immediately.

        Returns:
            cleanup statistics
        """
        return self._run_cleanup()

    def _run_cleanup(self) -> dict:
        logger.info("Running audit cleanup...")

        try:
            cleanup = AuditCleanup(
                db_path=str(self.db_path),
                retention_days=self.config.audit.retention_days,
            )

            result = cleanup.cleanup(dry_run=False)

            if result["deleted_count"] > 0:
                logger.info(
                    f"Audit cleanup removed {result['deleted_count']} records "
                    f"in {result['duration_sec']:.2f}s"
                )
            else:
                logger.info("Audit cleanup: nothing expired")

            return result

        except Exception as e:
            logger.error(f"Audit cleanup failed: {e}")
            return {
                "deleted_count": 0,
                "would_delete_count": 0,
                "error": str(e),
            }


__all__ = ["CleanupScheduler"]
