"""
Confirmation state machine

Drives prompt -> listen -> classify cycles after a fall and commits exactly
one terminal outcome per session: RESOLVED on an affirmative answer,
ESCALATED otherwise.

Sessions run one at a time on a single worker thread. Every wait selects over
(adapter future, timeout, cancel signal); the first to complete wins and the
others are ignored.
"""

import logging
import threading
import time
import uuid
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from src.analysis.intent_classifier import Intent, IntentClassifier
from src.capture.adapter import AdapterError, PromptListenAdapter, RecognitionFailure
from src.core.settings import SettingsStore
from src.events.dispatcher import EscalationDispatcher
from src.events.observer import (
    FallEvent,
    SessionObserver,
    SessionOutcome,
    SessionStatus,
)
from src.speech.phrases import PhraseCatalog, PhraseKey

logger = logging.getLogger(__name__)

# playback wait = base + per character of prompt text, capped by prompt_timeout
PROMPT_BASE_SEC = 2.0
PROMPT_SEC_PER_CHAR = 0.1


class ConfirmationState(Enum):
    IDLE = "idle"
    PROMPTING = "prompting"
    LISTENING = "listening"
    CLASSIFYING = "classifying"
    ESCALATED = "escalated"
    RESOLVED = "resolved"


TERMINAL_STATES = {ConfirmationState.ESCALATED, ConfirmationState.RESOLVED}


@dataclass
class Session:
    session_id: str
    event: FallEvent
    language: str
    started_at: float
    state: ConfirmationState = ConfirmationState.IDLE
    attempt_count: int = 0
    last_transition_at: float = 0.0
    last_intent: Intent | None = None
    transcript: tuple[str, ...] = ()
    cancel_signal: Future = field(default_factory=Future, repr=False)

    @property
    def cancelled(self) -> bool:
        return self.cancel_signal.done()

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "detected_at": self.event.detected_at,
            "source_id": self.event.source_id,
            "state": self.state.value,
            "attempt_count": self.attempt_count,
            "language": self.language,
            "started_at": self.started_at,
            "last_transition_at": self.last_transition_at,
            "last_intent": self.last_intent.value if self.last_intent else None,
        }


class _Wait(Enum):
    DONE = "done"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class _Verdict:
    intent: Intent
    failure: RecognitionFailure | None = None

    @property
    def unavailable(self) -> bool:
        return self.failure is not None and not self.failure.recoverable


class ConfirmationMachine:
    def __init__(
        self,
        adapter: PromptListenAdapter,
        classifier: IntentClassifier,
        settings: SettingsStore,
        dispatcher: EscalationDispatcher,
        catalog: PhraseCatalog | None = None,
        max_attempts: int = 2,
        listen_timeout: float = 12.0,
        prompt_timeout: float = 8.0,
        retry_pause: float = 2.0,
        answer_grace: float = 10.0,
        clock: Callable[[], float] = time.time,
    ):
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

        self.adapter = adapter
        self.classifier = classifier
        self.settings = settings
        self.dispatcher = dispatcher
        self.catalog = catalog or PhraseCatalog()
        self.max_attempts = max_attempts
        self.listen_timeout = listen_timeout
        self.prompt_timeout = prompt_timeout
        self.retry_pause = retry_pause
        self.answer_grace = answer_grace
        self.clock = clock

        self._lock = threading.Lock()
        self._session: Session | None = None
        self._observers: list[SessionObserver] = []
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="confirmation")

    def add_observer(self, observer: SessionObserver) -> None:
        self._observers.append(observer)

    @property
    def active_session(self) -> Session | None:
        with self._lock:
            return self._session

    @property
    def is_active(self) -> bool:
        return self.active_session is not None

    @property
    def state(self) -> ConfirmationState:
        session = self.active_session
        return session.state if session else ConfirmationState.IDLE

    def on_fall_detected(self, event: FallEvent) -> "Future[SessionOutcome] | None":
        """Start a confirmation session, or drop the event if one is active.

        Returns:
            Future of the session outcome, or None when the event was dropped.
        """
        with self._lock:
            if self._session is not None:
                logger.info(
                    f"Fall event ignored, session {self._session.session_id} already active"
                )
                return None

            now = self.clock()
            session = Session(
                session_id=f"ses_{int(event.detected_at)}_{uuid.uuid4().hex[:6]}",
                event=event,
                language=self.settings.get_preferred_language(),
                started_at=now,
                last_transition_at=now,
            )
            self._session = session

        logger.warning(f"Fall detected, starting voice confirmation {session.session_id}")
        try:
            return self._executor.submit(self.run_session, session)
        except RuntimeError as e:
            logger.error(f"Confirmation engine is shut down, fall event dropped: {e}")
            self._release(session)
            return None

    def cancel(self, reason: str = "cancelled") -> bool:
        """Abort the active session without escalating.

        Returns:
            False when idle or when the session already reached its outcome.
        """
        with self._lock:
            session = self._session
            if session is None or session.cancelled or session.state in TERMINAL_STATES:
                return False
            session.cancel_signal.set_result(reason)
            self._session = None

        logger.warning(f"Session {session.session_id} cancelled: {reason}")
        self._stop_adapter()
        return True

    def shutdown(self, wait: bool = True) -> None:
        self.cancel("shutdown")
        self._executor.shutdown(wait=wait)

    def run_session(self, session: Session) -> SessionOutcome:
        try:
            try:
                outcome = self._drive(session)
            except Exception as e:
                logger.exception(f"Session {session.session_id} failed unexpectedly: {e}")
                outcome = self._recover(session, reason=f"internal error: {e}")
            self._publish(outcome)
            return outcome
        finally:
            self._release(session)

    def _drive(self, session: Session) -> SessionOutcome:
        if not self.settings.is_voice_confirmation_enabled():
            return self._escalate(session, reason="voice confirmation disabled")

        while True:
            session.attempt_count += 1
            logger.info(f"Voice confirmation attempt {session.attempt_count}/{self.max_attempts}")

            verdict = self._attempt(session)

            if session.cancelled:
                return self._cancelled(session)
            if verdict.intent is Intent.AFFIRMATIVE:
                return self._resolve(session)
            if verdict.unavailable:
                return self._escalate(session, reason=verdict.failure.value, announce=False)
            if session.attempt_count >= self.max_attempts:
                return self._escalate(
                    session, reason=f"no confirmation after {session.attempt_count} attempts"
                )

            logger.info(f"No response on attempt {session.attempt_count}, trying again")
            self._announce(session, PhraseKey.NO_RESPONSE)
            if self._pause(session):
                return self._cancelled(session)

    def _attempt(self, session: Session) -> _Verdict:
        self._transition(session, ConfirmationState.PROMPTING)
        failure = self._prompt(session, PhraseKey.FALL_DETECTED)
        if session.cancelled:
            return _Verdict(Intent.UNKNOWN)
        if failure is not None and not failure.recoverable:
            logger.error(f"Prompt playback unavailable: {failure.value}")
            return _Verdict(Intent.UNKNOWN, failure)

        self._transition(session, ConfirmationState.LISTENING)
        return self._listen(session)

    def _prompt(self, session: Session, key: PhraseKey) -> RecognitionFailure | None:
        try:
            future = self.adapter.play(key, session.language)
        except AdapterError as e:
            logger.error(f"Error playing {key.value}: {e}")
            return e.reason
        except Exception as e:
            logger.error(f"Error playing {key.value}: {e}")
            return None

        text = self.catalog.lookup(key, session.language)
        budget = min(self.prompt_timeout, PROMPT_BASE_SEC + len(text) * PROMPT_SEC_PER_CHAR)

        match self._await(session, future, budget):
            case _Wait.CANCELLED:
                return None
            case _Wait.TIMEOUT:
                logger.warning(f"Playback of {key.value} did not complete in {budget:.1f}s")
                self._stop_adapter()
                future.cancel()
                return None

        if future.cancelled():
            return None
        error = future.exception()
        if isinstance(error, AdapterError):
            logger.error(f"Error playing {key.value}: {error}")
            return error.reason
        if error is not None:
            logger.error(f"Error playing {key.value}: {error}")
        return None

    def _listen(self, session: Session) -> _Verdict:
        try:
            future = self.adapter.listen(session.language, self.listen_timeout)
        except AdapterError as e:
            logger.error(f"Error starting speech recognition: {e}")
            return _Verdict(Intent.UNKNOWN, e.reason)
        except Exception as e:
            logger.error(f"Error starting speech recognition: {e}")
            return _Verdict(Intent.UNKNOWN)

        # listen_timeout bounds the start of an answer; answer_grace lets it finish
        match self._await(session, future, self.listen_timeout + self.answer_grace):
            case _Wait.CANCELLED:
                return _Verdict(Intent.UNKNOWN)
            case _Wait.TIMEOUT:
                logger.info("No response received within timeout period")
                self._stop_adapter()
                future.cancel()
                return _Verdict(Intent.UNKNOWN, RecognitionFailure.NO_SPEECH)

        if future.cancelled():
            return _Verdict(Intent.UNKNOWN)
        error = future.exception()
        if isinstance(error, AdapterError):
            logger.error(f"Speech recognition error: {error}")
            return _Verdict(Intent.UNKNOWN, error.reason)
        if error is not None:
            logger.error(f"Speech recognition error: {error}")
            return _Verdict(Intent.UNKNOWN)

        result = future.result()
        if not result.ok:
            logger.info(f"Speech recognition failed: {result.failure.value}")
            return _Verdict(Intent.UNKNOWN, result.failure)

        self._transition(session, ConfirmationState.CLASSIFYING)
        classification = self.classifier.match(result.candidates, session.language)
        session.transcript = result.candidates
        session.last_intent = classification.intent
        logger.info(
            f"Speech recognized: {', '.join(result.candidates)} -> "
            f"{classification.intent.value} (matched: {classification.matched})"
        )
        return _Verdict(classification.intent)

    def _announce(self, session: Session, key: PhraseKey) -> None:
        """Best-effort playback; failures never change the outcome."""
        if session.cancelled:
            return
        self._prompt(session, key)

    def _pause(self, session: Session) -> bool:
        """Inter-attempt pause. Returns True if cancelled meanwhile."""
        done, _ = wait([session.cancel_signal], timeout=self.retry_pause)
        return bool(done)

    def _await(self, session: Session, future: Future, timeout: float) -> _Wait:
        done, _ = wait(
            [future, session.cancel_signal], timeout=timeout, return_when=FIRST_COMPLETED
        )
        if session.cancel_signal in done:
            return _Wait.CANCELLED
        if future in done:
            return _Wait.DONE
        return _Wait.TIMEOUT

    def _resolve(self, session: Session) -> SessionOutcome:
        if not self._commit(session, ConfirmationState.RESOLVED):
            return self._cancelled(session)

        logger.info(f"User confirmed they are okay, session {session.session_id} resolved")
        self._announce(session, PhraseKey.CONFIRMATION_RECEIVED)
        self._announce(session, PhraseKey.TAKE_CARE)
        return self._outcome(session, SessionStatus.RESOLVED)

    def _escalate(self, session: Session, reason: str, announce: bool = True) -> SessionOutcome:
        if not self._commit(session, ConfirmationState.ESCALATED):
            return self._cancelled(session)

        logger.warning(f"Triggering emergency alert for {session.session_id}: {reason}")
        contact = self.settings.get_emergency_contact()
        try:
            escalation = self.dispatcher.escalate(contact, detected_at=session.event.detected_at)
        except Exception as e:
            logger.exception(f"Escalation dispatch failed: {e}")
            escalation = self.dispatcher.sound_siren(f"Escalation failed, sounding siren: {e}")

        if announce:
            self._announce(session, PhraseKey.EMERGENCY_TRIGGERED)
        return self._outcome(session, SessionStatus.ESCALATED, reason=reason, escalation=escalation)

    def _recover(self, session: Session, reason: str) -> SessionOutcome:
        """Outcome for a session interrupted by an unexpected error.

        A fall must never end without resolution or escalation, so anything
        not yet terminal escalates.
        """
        match session.state:
            case ConfirmationState.RESOLVED:
                return self._outcome(session, SessionStatus.RESOLVED, reason=reason)
            case ConfirmationState.ESCALATED:
                return self._outcome(session, SessionStatus.ESCALATED, reason=reason)
        return self._escalate(session, reason=reason, announce=False)

    def _cancelled(self, session: Session) -> SessionOutcome:
        reason = session.cancel_signal.result() if session.cancelled else "cancelled"
        with self._lock:
            session.state = ConfirmationState.IDLE
            session.last_transition_at = self.clock()
        return self._outcome(session, SessionStatus.CANCELLED, reason=reason)

    def _outcome(self, session: Session, status: SessionStatus, **kwargs) -> SessionOutcome:
        return SessionOutcome(
            session_id=session.session_id,
            event=session.event,
            status=status,
            attempts=session.attempt_count,
            language=session.language,
            intent=session.last_intent.value if session.last_intent else None,
            finished_at=self.clock(),
            **kwargs,
        )

    def _commit(self, session: Session, state: ConfirmationState) -> bool:
        """Single terminal transition; loses against a concurrent cancel()."""
        with self._lock:
            if session.cancelled or session.state in TERMINAL_STATES:
                return False
            self._set_state(session, state)
            return True

    def _transition(self, session: Session, state: ConfirmationState) -> None:
        with self._lock:
            if session.cancelled or session.state in TERMINAL_STATES:
                return
            self._set_state(session, state)

    def _set_state(self, session: Session, state: ConfirmationState) -> None:
        logger.debug(f"{session.session_id}: {session.state.value} -> {state.value}")
        session.state = state
        session.last_transition_at = self.clock()

    def _publish(self, outcome: SessionOutcome) -> None:
        logger.info(f"Session outcome: {outcome.to_dict()}")
        for observer in self._observers:
            try:
                observer.on_session_finished(outcome)
            except Exception as e:
                logger.error(f"Outcome observer {type(observer).__name__} failed: {e}")

    def _release(self, session: Session) -> None:
        with self._lock:
            if self._session is session:
                self._session = None

    def _stop_adapter(self) -> None:
        try:
            self.adapter.stop()
        except Exception as e:
            logger.error(f"Adapter stop failed: {e}")
