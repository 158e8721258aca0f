from src.events.observer import (
    EscalationOutcome,
    FallEvent,
    OutcomeKind,
    SessionOutcome,
    SessionStatus,
)


class TestFallEvent:
    def test_now_uses_current_time(self):
        event = FallEvent.now(source_id="hall")
        assert event.detected_at > 0
        assert event.source_id == "hall"


class TestEscalationOutcome:
    def test_contact_notified(self):
        outcome = EscalationOutcome.contact_notified("+911234567890", True, False, ("call failed",))
        assert outcome.kind == OutcomeKind.CONTACT_NOTIFIED
        assert outcome.siren_sounded is False
        assert outcome.to_dict()["errors"] == ["call failed"]

    def test_siren(self):
        outcome = EscalationOutcome.siren()
        assert outcome.kind == OutcomeKind.SIREN_SOUNDED
        assert outcome.contact is None
        assert outcome.siren_sounded is True


class TestSessionOutcome:
    def test_to_dict(self):
        outcome = SessionOutcome(
            session_id="ses_1000_abc123",
            event=FallEvent(detected_at=1000.0),
            status=SessionStatus.ESCALATED,
            attempts=2,
            language="english",
            intent="unknown",
            escalation=EscalationOutcome.siren(),
            finished_at=1030.0,
        )
        data = outcome.to_dict()
        assert data["status"] == "escalated"
        assert data["escalation"]["kind"] == "siren_sounded"
        assert data["detected_at"] == 1000.0
