import json
import sqlite3
import threading
import time
from pathlib import Path

from src.events.observer import SessionObserver, SessionOutcome


class OutcomeLogger(SessionObserver):
    """SQLite audit log of every finished confirmation session."""

    def __init__(self, db_path: str = "data/guardian.db"):
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        # sessions finish on the engine worker thread, reads come from the web API
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._lock = threading.Lock()
        self._create_tables()

    def _create_tables(self) -> None:
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS outcomes (
                session_id TEXT PRIMARY KEY,
                detected_at REAL NOT NULL,
                source_id TEXT,
                status TEXT NOT NULL,
                attempts INTEGER NOT NULL,
                language TEXT NOT NULL,
                intent TEXT,
                reason TEXT,
                escalation_kind TEXT,
                contact TEXT,
                escalation_json TEXT,
                finished_at REAL NOT NULL,
                created_at REAL NOT NULL
            )
        """)
        self.conn.commit()

    def on_session_finished(self, outcome: SessionOutcome) -> None:
        escalation = outcome.escalation
        with self._lock:
            self.conn.execute(
                """
                INSERT OR REPLACE INTO outcomes
                (session_id, detected_at, source_id, status, attempts, language, intent,
                 reason, escalation_kind, contact, escalation_json, finished_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    outcome.session_id,
                    outcome.event.detected_at,
                    outcome.event.source_id,
                    outcome.status.value,
                    outcome.attempts,
                    outcome.language,
                    outcome.intent,
                    outcome.reason,
                    escalation.kind.value if escalation else None,
                    escalation.contact if escalation else None,
                    json.dumps(escalation.to_dict(), ensure_ascii=False) if escalation else None,
                    outcome.finished_at,
                    time.time(),
                ),
            )
            self.conn.commit()

    def get_recent_outcomes(self, limit: int = 10) -> list[dict]:
        with self._lock:
            cursor = self.conn.execute(
                """
                SELECT session_id, detected_at, source_id, status, attempts, language,
                       intent, reason, escalation_json, finished_at
                FROM outcomes
                ORDER BY finished_at DESC
                LIMIT ?
                """,
                (limit,),
            )
            rows = cursor.fetchall()
        return [self._row_to_dict(row) for row in rows]

    def get_outcome(self, session_id: str) -> dict | None:
        with self._lock:
            cursor = self.conn.execute(
                """
                SELECT session_id, detected_at, source_id, status, attempts, language,
                       intent, reason, escalation_json, finished_at
                FROM outcomes
                WHERE session_id = ?
                """,
                (session_id,),
            )
            row = cursor.fetchone()
        return self._row_to_dict(row) if row else None

    def count_by_status(self) -> dict[str, int]:
        with self._lock:
            cursor = self.conn.execute("SELECT status, COUNT(*) FROM outcomes GROUP BY status")
            return dict(cursor.fetchall())

    @staticmethod
    def _row_to_dict(row: tuple) -> dict:
        columns = [
            "session_id", "detected_at", "source_id", "status", "attempts", "language",
            "intent", "reason", "escalation", "finished_at",
        ]
        record = dict(zip(columns, row))
        if record["escalation"]:
            record["escalation"] = json.loads(record["escalation"])
        return record

    def close(self) -> None:
        with self._lock:
            self.conn.close()
