import sqlite3

import pytest

from src.events.event_logger import OutcomeLogger
from src.events.observer import (
    EscalationOutcome,
    FallEvent,
    SessionOutcome,
    SessionStatus,
)


def make_outcome(session_id="ses_1000_abc123", status=SessionStatus.RESOLVED, **kwargs):
    defaults = {
        "event": FallEvent(detected_at=1000.0, source_id="bedroom"),
        "attempts": 1,
        "language": "english",
        "finished_at": 1010.0,
    }
    defaults.update(kwargs)
    return SessionOutcome(session_id=session_id, status=status, **defaults)


class TestOutcomeLogger:
    @pytest.fixture
    def db_path(self, tmp_path):
        return tmp_path / "data" / "test.db"

    @pytest.fixture
    def logger(self, db_path):
        logger = OutcomeLogger(db_path=str(db_path))
        yield logger
        logger.close()

    def test_creates_database(self, db_path):
        logger = OutcomeLogger(db_path=str(db_path))
        logger.close()
        assert db_path.exists()

    def test_creates_outcomes_table(self, logger, db_path):
        conn = sqlite3.connect(str(db_path))
        cursor = conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table' AND name='outcomes'"
        )
        assert cursor.fetchone() is not None
        conn.close()

    def test_log_resolved_outcome(self, logger):
        logger.on_session_finished(make_outcome(intent="affirmative"))

        record = logger.get_outcome("ses_1000_abc123")
        assert record["status"] == "resolved"
        assert record["source_id"] == "bedroom"
        assert record["intent"] == "affirmative"
        assert record["escalation"] is None

    def test_log_escalation_details(self, logger):
        escalation = EscalationOutcome.contact_notified(
            "+911234567890", message_sent=False, call_placed=True, errors=("SMS failed",)
        )
        logger.on_session_finished(
            make_outcome(
                status=SessionStatus.ESCALATED,
                attempts=2,
                reason="no confirmation after 2 attempts",
                escalation=escalation,
            )
        )

        record = logger.get_outcome("ses_1000_abc123")
        assert record["status"] == "escalated"
        assert record["attempts"] == 2
        assert record["escalation"]["kind"] == "contact_notified"
        assert record["escalation"]["message_sent"] is False
        assert record["escalation"]["errors"] == ["SMS failed"]

    def test_get_outcome_missing(self, logger):
        assert logger.get_outcome("ses_missing") is None

    def test_recent_outcomes_newest_first(self, logger):
        logger.on_session_finished(make_outcome("ses_a", finished_at=100.0))
        logger.on_session_finished(make_outcome("ses_b", finished_at=300.0))
        logger.on_session_finished(make_outcome("ses_c", finished_at=200.0))

        recent = logger.get_recent_outcomes(limit=2)
        assert [r["session_id"] for r in recent] == ["ses_b", "ses_c"]

    def test_count_by_status(self, logger):
        logger.on_session_finished(make_outcome("ses_a"))
        logger.on_session_finished(make_outcome("ses_b", status=SessionStatus.ESCALATED))
        logger.on_session_finished(make_outcome("ses_c", status=SessionStatus.ESCALATED))

        assert logger.count_by_status() == {"resolved": 1, "escalated": 2}
