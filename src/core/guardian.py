import logging
from concurrent.futures import Future

from src.analysis.confirmation import ConfirmationMachine, ConfirmationState
from src.analysis.intent_classifier import IntentClassifier
from src.capture.adapter import PromptListenAdapter
from src.core.config import Config
from src.core.settings import SettingsStore
from src.events.alarm import AlarmCapability, SirenAlarm
from src.events.dispatcher import EscalationDispatcher
from src.events.event_logger import OutcomeLogger
from src.events.notifier import NotifyCapability, TwilioNotifier
from src.events.observer import FallEvent, SessionOutcome, SessionStatus
from src.events.status_board import StatusBoard
from src.speech.phrases import AudioLibrary, PhraseCatalog

logger = logging.getLogger(__name__)


class Guardian:
    """Wires the confirmation engine to its collaborators.

    Capabilities can be injected (tests, other platforms); otherwise the
    speech adapter, Twilio notifier and siren are built from config.
    """

    def __init__(
        self,
        config: Config,
        adapter: PromptListenAdapter | None = None,
        notifier: NotifyCapability | None = None,
        alarm: AlarmCapability | None = None,
        db_path: str | None = None,
    ):
        self.config = config

        self.catalog = (
            PhraseCatalog.load(config.speech.phrases_file)
            if config.speech.phrases_file
            else PhraseCatalog()
        )
        self.classifier = (
            IntentClassifier.load(config.speech.keywords_file)
            if config.speech.keywords_file
            else IntentClassifier()
        )

        self.settings = SettingsStore(
            preferred_language=config.settings.preferred_language,
            emergency_contact=config.settings.emergency_contact or None,
            voice_confirmation_enabled=config.settings.voice_confirmation_enabled,
            use_tts=config.settings.use_tts,
        )
        self.status_board = StatusBoard()

        self.notifier = notifier or TwilioNotifier(
            account_sid=config.notification.account_sid,
            auth_token=config.notification.auth_token,
            from_number=config.notification.from_number,
            enabled=config.notification.enabled,
        )
        self.alarm = alarm or SirenAlarm(
            repeats=config.escalation.siren_repeats,
            enabled=config.escalation.siren_enabled,
        )
        self.dispatcher = EscalationDispatcher(
            notifier=self.notifier,
            alarm=self.alarm,
            status=self.status_board,
            catalog=self.catalog,
            location_url=config.escalation.location_url or None,
            local_language=config.escalation.local_language,
        )

        if adapter is None:
            from src.capture.speech import SpeechAdapter

            adapter = SpeechAdapter(
                catalog=self.catalog,
                device_index=config.speech.device_index,
                phrase_time_limit=config.speech.phrase_time_limit,
                speech_rate=config.speech.speech_rate,
                audio=AudioLibrary(config.speech.audio_dir) if config.speech.audio_dir else None,
                settings=self.settings,
            )
        self.adapter = adapter

        self.outcome_logger = OutcomeLogger(db_path=db_path or config.audit.db_path)

        self.machine = ConfirmationMachine(
            adapter=self.adapter,
            classifier=self.classifier,
            settings=self.settings,
            dispatcher=self.dispatcher,
            catalog=self.catalog,
            max_attempts=config.confirmation.max_attempts,
            listen_timeout=config.confirmation.listen_timeout,
            prompt_timeout=config.confirmation.prompt_timeout,
            retry_pause=config.confirmation.retry_pause,
            answer_grace=config.confirmation.answer_grace,
        )
        self.machine.add_observer(self.outcome_logger)
        self.machine.add_observer(self)

        if not self.settings.get_emergency_contact():
            self.status_board.warning(
                "Guardian", "Emergency phone number not set, siren is the only fallback"
            )

    def on_fall_detected(self, event: FallEvent) -> "Future[SessionOutcome] | None":
        return self.machine.on_fall_detected(event)

    def cancel(self, reason: str = "cancelled by user") -> bool:
        return self.machine.cancel(reason)

    def on_session_finished(self, outcome: SessionOutcome) -> None:
        match outcome.status:
            case SessionStatus.RESOLVED:
                self.status_board.info("Guardian", "User confirmed they are okay")
            case SessionStatus.ESCALATED:
                self.status_board.warning("Guardian", f"Emergency escalated: {outcome.reason}")
            case SessionStatus.CANCELLED:
                self.status_board.info("Guardian", f"Confirmation cancelled: {outcome.reason}")

    def status(self) -> dict:
        session = self.machine.active_session
        return {
            "state": session.state.value if session else ConfirmationState.IDLE.value,
            "session": session.to_dict() if session else None,
        }

    def shutdown(self) -> None:
        logger.info("Shutting down guardian...")
        self.machine.shutdown(wait=True)
        close = getattr(self.adapter, "close", None)
        if close is not None:
            close()
        self.outcome_logger.close()
