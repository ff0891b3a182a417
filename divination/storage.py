"""In-process reading sessions for the HTTP surface.

Sessions live for the life of the process. Durable history is the caller's
job; Reading.to_record() is what it stores.
"""

import threading
from typing import Dict, Optional

from .followup import FollowUpSession
from .models import Tier
from .providers.registry import ProviderRegistry
from .reading import Reading


class ReadingSession:
    def __init__(self, reading: Reading, tier: Tier = Tier.FREE):
        self.reading = reading
        self.tier = tier
        self.chats: Dict[str, FollowUpSession] = {}

    def chat(self, mode: str, registry: ProviderRegistry) -> FollowUpSession:
        """Follow-up session for `mode`, opened on first use."""
        session = self.chats.get(mode)
        if session is None:
            session = FollowUpSession(self.reading.followup_context(mode), registry, self.tier)
            self.chats[mode] = session
        return session


_sessions: Dict[str, ReadingSession] = {}
_lock = threading.Lock()


def new_session(reading: Reading, tier: Tier = Tier.FREE) -> ReadingSession:
    session = ReadingSession(reading, tier)
    with _lock:
        _sessions[reading.reading_id] = session
    return session


def load_session(reading_id: str) -> ReadingSession:
    session = _sessions.get(reading_id)
    if session is None:
        raise KeyError(reading_id)
    return session


def reset_chat(reading_id: str, mode: Optional[str] = None) -> None:
    """Drop follow-up conversations; all modes when mode is None."""
    session = load_session(reading_id)
    with _lock:
        if mode is None:
            session.chats.clear()
        else:
            session.chats.pop(mode, None)


def clear() -> None:
    with _lock:
        _sessions.clear()
