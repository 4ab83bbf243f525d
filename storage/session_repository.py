import json
import logging
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import List, Optional, Union

from pydantic import TypeAdapter, ValidationError

from config import constants
from models.session import ScreeningSession

logger = logging.getLogger("fast_screen.storage.session_repository")

_history_adapter = TypeAdapter(List[ScreeningSession])


def _newest_first(sessions: List[ScreeningSession]) -> List[ScreeningSession]:
    return sorted(sessions, key=lambda s: s.timestamp, reverse=True)


class SessionRepository(ABC):
    """Persistence of completed screening sessions."""

    @abstractmethod
    def save(self, session: ScreeningSession) -> None:
        ...

    @abstractmethod
    def load_all(self) -> List[ScreeningSession]:
        """All stored sessions, newest first."""

    @abstractmethod
    def clear(self) -> None:
        ...

    def is_ready(self) -> bool:
        return True


class InMemorySessionRepository(SessionRepository):

    def __init__(self, max_sessions: Optional[int] = None):
        self.max_sessions = constants.MAX_STORED_SESSIONS if max_sessions is None else max_sessions
        self._sessions: List[ScreeningSession] = []
        self._lock = threading.Lock()

    def save(self, session: ScreeningSession) -> None:
        with self._lock:
            self._sessions = _newest_first(self._sessions + [session])[: self.max_sessions]

    def load_all(self) -> List[ScreeningSession]:
        with self._lock:
            return list(self._sessions)

    def clear(self) -> None:
        with self._lock:
            self._sessions = []


class JsonFileSessionRepository(SessionRepository):
    """Session history kept as a single JSON array on disk.

    Only the newest `max_sessions` records are kept. A missing or unreadable
    file reads as an empty history; the next save overwrites it.
    """

    def __init__(self, path: Union[str, Path, None] = None, max_sessions: Optional[int] = None):
        self.path = Path(path or constants.SESSION_STORE_PATH)
        self.max_sessions = constants.MAX_STORED_SESSIONS if max_sessions is None else max_sessions
        self._lock = threading.Lock()

    def save(self, session: ScreeningSession) -> None:
        with self._lock:
            sessions = _newest_first(self._read() + [session])
            dropped = len(sessions) - self.max_sessions
            if dropped > 0:
                logger.info("Session history over capacity, dropping %d oldest record(s)", dropped)
            self._write(sessions[: self.max_sessions])
        logger.info("Session saved: id=%s, overall=%s", session.id, session.overall_result)

    def load_all(self) -> List[ScreeningSession]:
        with self._lock:
            return _newest_first(self._read())

    def clear(self) -> None:
        with self._lock:
            self._write([])
        logger.info("Session history cleared: path=%s", self.path)

    def is_ready(self) -> bool:
        directory = self.path.parent
        return directory.is_dir() or not directory.exists()

    def _read(self) -> List[ScreeningSession]:
        if not self.path.exists():
            return []
        try:
            raw = self.path.read_text(encoding="utf-8")
            return _history_adapter.validate_json(raw) if raw.strip() else []
        except (OSError, ValidationError, ValueError) as e:
            logger.error("Session history at %s is unreadable, starting empty: %s", self.path, e)
            return []

    def _write(self, sessions: List[ScreeningSession]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = [s.model_dump(mode="json") for s in sessions]
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        tmp_path.replace(self.path)
