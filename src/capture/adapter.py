import threading
from concurrent.futures import Future
from dataclasses import dataclass
from enum import Enum
from typing import Generic, Protocol, TypeVar

from src.speech.phrases import PhraseKey

T = TypeVar("T")


class RecognitionFailure(Enum):
    NO_SPEECH = "no_speech"
    NO_MATCH = "no_match"
    AUDIO_ERROR = "audio_error"
    PERMISSION_DENIED = "permission_denied"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NETWORK_ERROR = "network_error"

    @property
    def recoverable(self) -> bool:
        """Whether re-prompting can help; otherwise the channel itself is down."""
        return self in _RECOVERABLE


_RECOVERABLE = {
    RecognitionFailure.NO_SPEECH,
    RecognitionFailure.NO_MATCH,
    RecognitionFailure.NETWORK_ERROR,
}


class AdapterError(Exception):
    """Typed failure carried by an adapter future."""

    def __init__(self, reason: RecognitionFailure, message: str = ""):
        super().__init__(message or reason.value)
        self.reason = reason


@dataclass(frozen=True)
class RecognitionResult:
    candidates: tuple[str, ...] = ()
    failure: RecognitionFailure | None = None

    @classmethod
    def success(cls, candidates: list[str] | tuple[str, ...]) -> "RecognitionResult":
        cleaned = tuple(c for c in candidates if c and c.strip())
        if not cleaned:
            return cls(failure=RecognitionFailure.NO_SPEECH)
        return cls(candidates=cleaned)

    @classmethod
    def failed(cls, reason: RecognitionFailure) -> "RecognitionResult":
        return cls(failure=reason)

    @property
    def ok(self) -> bool:
        return self.failure is None


class PromptListenAdapter(Protocol):
    def play(self, key: PhraseKey, language: str) -> "Future[None]": ...
    def listen(self, language: str, timeout: float) -> "Future[RecognitionResult]": ...
    def stop(self) -> None: ...


class SingleShot(Generic[T]):
    """Wraps a Future so that only the first completion wins.

    Background callbacks may race with stop() or with each other; later
    completions are silently dropped.
    """

    def __init__(self):
        self.future: Future[T] = Future()
        self._lock = threading.Lock()

    @property
    def done(self) -> bool:
        return self.future.done()

    def resolve(self, value: T) -> bool:
        with self._lock:
            if self.future.done():
                return False
            self.future.set_result(value)
            return True

    def fail(self, error: BaseException) -> bool:
        with self._lock:
            if self.future.done():
                return False
            self.future.set_exception(error)
            return True

    def cancel(self) -> bool:
        with self._lock:
            return self.future.cancel()
