import threading

from loguru import logger

from style_engine.core.security import redact_user_id
from style_engine.models.session import PresentationSession


class SessionRegistry:
    """In-memory presentation sessions keyed by (user, session). Nothing here is persisted."""

    def __init__(self):
        self._sessions: dict[tuple[str, str], PresentationSession] = {}
        self._lock = threading.Lock()

    def open(self, user_id: str, session_id: str) -> PresentationSession:
        """Return the session, creating it on first use."""
        key = (user_id, session_id)
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = PresentationSession(user_id=user_id, session_id=session_id)
                self._sessions[key] = session
                logger.debug(f"[{redact_user_id(user_id)}] Opened session {session_id}")
            return session

    def get(self, user_id: str, session_id: str) -> PresentationSession | None:
        with self._lock:
            return self._sessions.get((user_id, session_id))

    def end(self, user_id: str, session_id: str) -> PresentationSession | None:
        """Discard a session. Returns it so the caller can read the final tallies."""
        with self._lock:
            session = self._sessions.pop((user_id, session_id), None)
        if session is not None:
            logger.debug(f"[{redact_user_id(user_id)}] Ended session {session_id}")
        return session
