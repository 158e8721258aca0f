"""
Escalation dispatcher

Final safety action after a failed confirmation: notify the emergency
contact, or sound the siren when there is nobody to notify.
"""

import logging
from datetime import datetime

from src.events.alarm import AlarmCapability
from src.events.notifier import NotifyCapability
from src.events.observer import EscalationOutcome
from src.events.status_board import StatusBoard
from src.speech.phrases import DEFAULT_LANGUAGE, PhraseCatalog, PhraseKey

logger = logging.getLogger(__name__)

SOURCE = "EscalationDispatcher"
MISSING_CONTACT = "ERROR: Emergency phone number not set"


class EscalationDispatcher:
    def __init__(
        self,
        notifier: NotifyCapability,
        alarm: AlarmCapability,
        status: StatusBoard,
        catalog: PhraseCatalog | None = None,
        location_url: str | None = None,
        local_language: str = "hinglish",
    ):
        self.notifier = notifier
        self.alarm = alarm
        self.status = status
        self.catalog = catalog or PhraseCatalog()
        self.location_url = location_url
        self.local_language = local_language

    def compose_message(self, detected_at: float | None = None) -> str:
        """Bilingual alert: English line, local-language line, optional location."""
        lines = [self.catalog.lookup(PhraseKey.EMERGENCY_ALERT, DEFAULT_LANGUAGE)]
        local = self.catalog.lookup(PhraseKey.EMERGENCY_ALERT, self.local_language)
        if local not in lines:
            lines.append(local)
        if detected_at is not None:
            timestamp = datetime.fromtimestamp(detected_at).strftime("%Y-%m-%d %H:%M:%S")
            lines.append(f"Time: {timestamp}")
        if self.location_url:
            lines.append(f"Location: {self.location_url}")
        return "\n".join(lines)

    def escalate(self, contact: str | None, detected_at: float | None = None) -> EscalationOutcome:
        contact = contact.strip() if contact else ""
        if not contact:
            return self.sound_siren()

        self.status.warning(SOURCE, f"Alerting the emergency phone number ({contact})")
        message = self.compose_message(detected_at)
        errors: list[str] = []

        message_sent = self._attempt(lambda: self.notifier.send_message(contact, message))
        if not message_sent:
            errors.append(f"Failed to send SMS to {contact}")
            self.status.error(SOURCE, errors[-1])

        spoken = self.catalog.lookup(PhraseKey.EMERGENCY_ALERT, DEFAULT_LANGUAGE)
        call_placed = self._attempt(lambda: self.notifier.place_call(contact, spoken))
        if not call_placed:
            errors.append(f"Failed to place call to {contact}")
            self.status.error(SOURCE, errors[-1])

        return EscalationOutcome.contact_notified(
            contact, message_sent=message_sent, call_placed=call_placed, errors=tuple(errors)
        )

    def sound_siren(self, reason: str = MISSING_CONTACT) -> EscalationOutcome:
        self.status.error(SOURCE, reason)
        try:
            self.alarm.sound()
        except Exception as e:
            message = f"Siren failed: {e}"
            self.status.error(SOURCE, message)
            return EscalationOutcome.siren(sounded=False, errors=(message,))
        return EscalationOutcome.siren()

    @staticmethod
    def _attempt(send) -> bool:
        try:
            return bool(send())
        except Exception as e:
            logger.error(f"Delivery raised: {e}")
            return False
