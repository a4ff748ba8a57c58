from __future__ import annotations

import logging
import threading
from datetime import UTC, datetime

from .models import ConfigurationState, ReplyKind

logger = logging.getLogger(__name__)

AFFIRMATIVE_TOKENS: frozenset[str] = frozenset({"yes"})
NEGATIVE_TOKENS: frozenset[str] = frozenset({"no"})


def interpret_reply(text: str) -> ReplyKind:
    """Classify a message as a yes/no answer before any intent classification."""
    token = text.strip().lower()
    if token in AFFIRMATIVE_TOKENS:
        return ReplyKind.AFFIRMATIVE
    if token in NEGATIVE_TOKENS:
        return ReplyKind.NEGATIVE
    return ReplyKind.OTHER


class ConversationSession:
    """One operator conversation: its configuration ledger and at most one pending proposal.

    ``lock`` serializes turns on this session; hold it for the whole
    read-decide-dispatch sequence.
    """

    def __init__(self, key: str) -> None:
        self.key = key
        self.state = ConfigurationState()
        self.pending_action: str | None = None
        self.lock = threading.RLock()
        self.created_at = datetime.now(UTC)
        self.last_active_at = self.created_at

    @property
    def awaiting_confirmation(self) -> bool:
        return self.pending_action is not None

    def propose(self, action: str) -> None:
        # Last proposal wins.
        if self.pending_action is not None and self.pending_action != action:
            logger.debug("session %s: replacing pending %s with %s", self.key, self.pending_action, action)
        self.pending_action = action

    def clear_pending(self) -> str | None:
        previous = self.pending_action
        self.pending_action = None
        return previous

    def touch(self) -> None:
        self.last_active_at = datetime.now(UTC)


class SessionStore:
    """Thread-safe, lazily populated registry of conversation sessions.

    Sessions are kept for the lifetime of the process.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, ConversationSession] = {}
        self._lock = threading.Lock()

    def get_or_create(self, key: str) -> ConversationSession:
        if not key or not key.strip():
            raise ValueError("session key must be non-empty")
        with self._lock:
            session = self._sessions.get(key)
            if session is None:
                session = ConversationSession(key)
                self._sessions[key] = session
                logger.info("Created conversation session %s", key)
            return session

    def get(self, key: str) -> ConversationSession | None:
        with self._lock:
            return self._sessions.get(key)

    def keys(self) -> list[str]:
        with self._lock:
            return sorted(self._sessions)

    def __contains__(self, key: object) -> bool:
        with self._lock:
            return key in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)
