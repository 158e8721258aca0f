import logging
import threading
import time
from collections import deque
from dataclasses import dataclass


@dataclass
class StatusMessage:
    timestamp: float
    level: int
    source: str
    message: str

    def to_dict(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "level": logging.getLevelName(self.level),
            "source": self.source,
            "message": self.message,
        }


class StatusBoard:
    """Operator-visible message channel.

    Every message is logged and kept in a bounded history that the web API
    serves, so delivery failures and misconfiguration are never silent.
    """

    def __init__(self, max_messages: int = 100):
        self._messages: deque[StatusMessage] = deque(maxlen=max_messages)
        self._lock = threading.Lock()

    def say(self, level: int, source: str, message: str) -> None:
        logging.getLogger(source).log(level, message)
        with self._lock:
            self._messages.append(StatusMessage(time.time(), level, source, message))

    def info(self, source: str, message: str) -> None:
        self.say(logging.INFO, source, message)

    def warning(self, source: str, message: str) -> None:
        self.say(logging.WARNING, source, message)

    def error(self, source: str, message: str) -> None:
        self.say(logging.ERROR, source, message)

    def recent(self, limit: int = 20, min_level: int = logging.NOTSET) -> list[StatusMessage]:
        with self._lock:
            selected = [m for m in self._messages if m.level >= min_level]
        return list(reversed(selected))[:limit]

    def errors(self, limit: int = 20) -> list[StatusMessage]:
        return self.recent(limit=limit, min_level=logging.ERROR)
