"""Error types raised by the reading engine.

Caller errors (InvalidRequest), configuration errors (ProviderNotFound,
NoActiveProvider), backend failures (ProviderError) and expected user-facing
conditions (QuotaExceeded, FollowUpInFlight) all share DivinationError as base.
"""

from __future__ import annotations

from typing import Optional


class DivinationError(Exception):
    pass


class DeckError(DivinationError):
    """Reference data is missing or malformed."""


class InvalidRequest(DivinationError):
    pass


class ProviderNotFound(DivinationError):
    def __init__(self, name: str):
        super().__init__(f"Provider {name!r} not registered")
        self.name = name


class NoActiveProvider(DivinationError):
    def __init__(self) -> None:
        super().__init__("No active provider set")


class ProviderError(DivinationError):
    """A provider call failed. The original exception is kept as __cause__."""

    def __init__(self, message: str, provider: Optional[str] = None):
        super().__init__(message)
        self.provider = provider


class PromptTooLong(ProviderError):
    pass


class QuotaExceeded(DivinationError):
    def __init__(self, tier: str, limit: int):
        super().__init__(f"Follow-up limit reached for tier {tier!r} ({limit} questions)")
        self.tier = tier
        self.limit = limit


class FollowUpInFlight(DivinationError):
    def __init__(self) -> None:
        super().__init__("A follow-up question is already waiting for an answer")
