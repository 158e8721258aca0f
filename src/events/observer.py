import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Protocol


@dataclass(frozen=True)
class FallEvent:
    detected_at: float
    source_id: str | None = None

    @classmethod
    def now(cls, source_id: str | None = None) -> "FallEvent":
        return cls(detected_at=time.time(), source_id=source_id)


class OutcomeKind(Enum):
    CONTACT_NOTIFIED = "contact_notified"
    SIREN_SOUNDED = "siren_sounded"


@dataclass(frozen=True)
class EscalationOutcome:
    """Record of the safety action taken after a failed confirmation."""

    kind: OutcomeKind
    contact: str | None = None
    message_sent: bool = False
    call_placed: bool = False
    siren_sounded: bool = False
    errors: tuple[str, ...] = ()

    @classmethod
    def contact_notified(
        cls,
        contact: str,
        message_sent: bool,
        call_placed: bool,
        errors: tuple[str, ...] = (),
    ) -> "EscalationOutcome":
        return cls(
            kind=OutcomeKind.CONTACT_NOTIFIED,
            contact=contact,
            message_sent=message_sent,
            call_placed=call_placed,
            errors=errors,
        )

    @classmethod
    def siren(cls, sounded: bool = True, errors: tuple[str, ...] = ()) -> "EscalationOutcome":
        return cls(kind=OutcomeKind.SIREN_SOUNDED, siren_sounded=sounded, errors=errors)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "contact": self.contact,
            "message_sent": self.message_sent,
            "call_placed": self.call_placed,
            "siren_sounded": self.siren_sounded,
            "errors": list(self.errors),
        }


class SessionStatus(Enum):
    RESOLVED = "resolved"
    ESCALATED = "escalated"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class SessionOutcome:
    """Audit record emitted once per session, after its terminal transition."""

    session_id: str
    event: FallEvent
    status: SessionStatus
    attempts: int
    language: str
    intent: str | None = None
    reason: str | None = None
    escalation: EscalationOutcome | None = None
    finished_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "detected_at": self.event.detected_at,
            "source_id": self.event.source_id,
            "status": self.status.value,
            "attempts": self.attempts,
            "language": self.language,
            "intent": self.intent,
            "reason": self.reason,
            "escalation": self.escalation.to_dict() if self.escalation else None,
            "finished_at": self.finished_at,
        }


class SessionObserver(Protocol):
    def on_session_finished(self, outcome: SessionOutcome) -> None: ...
