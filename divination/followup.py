"""Follow-up conversation over a single reading.

A session owns the append-only message list of one reading. Each turn is two
steps: record_attempt() appends the user's question right away, and
resolve_attempt() asks the provider and appends the answer. A failed turn keeps
the question (it was asked) but gets no answer.

The tier quota here is advisory: it saves a round trip and tells the user to
upgrade, but billing must be enforced by whatever owns the user's account.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from datetime import datetime, timezone
from typing import List, Literal, Optional, Sequence, Union

from pydantic import BaseModel

from .errors import DivinationError, FollowUpInFlight, InvalidRequest, QuotaExceeded
from .models import FollowUpMessage, GenerationRequest, ReadingContext, Role, Tier
from .prompts import build_followup_prompt, followup_max_tokens
from .providers.registry import ProviderRegistry

log = logging.getLogger("divination.followup")

FOLLOW_UP_LIMITS = {
    Tier.FREE: 3,
    Tier.PREMIUM: 3,
    Tier.PRO: 10,
    Tier.EXPERT: None,
}

AttemptStatus = Literal["pending", "answered", "failed", "abandoned"]


def follow_up_limit(tier: Union[Tier, str, None]) -> Optional[int]:
    """Questions allowed per reading; None means unlimited."""
    return FOLLOW_UP_LIMITS[Tier.parse(tier)]


def questions_asked(messages: Sequence[FollowUpMessage]) -> int:
    return sum(1 for m in messages if m.role == "user")


def quota_exceeded(tier: Union[Tier, str, None], messages: Sequence[FollowUpMessage]) -> bool:
    limit = follow_up_limit(tier)
    return limit is not None and questions_asked(messages) >= limit


class FollowUpAttempt(BaseModel):
    id: str
    question: str
    message_id: str
    history_length: int
    status: AttemptStatus = "pending"
    answer: Optional[str] = None
    error: Optional[str] = None


class FollowUpSession:
    def __init__(
        self,
        context: ReadingContext,
        registry: ProviderRegistry,
        tier: Union[Tier, str, None] = Tier.FREE,
        temperature: float = 0.7,
    ):
        self.context = context
        self.registry = registry
        self.tier = Tier.parse(tier)
        self.temperature = temperature
        self._pending: Optional[FollowUpAttempt] = None

    @property
    def messages(self) -> List[FollowUpMessage]:
        return list(self.context.messages)

    @property
    def pending(self) -> Optional[FollowUpAttempt]:
        return self._pending

    def remaining(self) -> Optional[int]:
        limit = follow_up_limit(self.tier)
        if limit is None:
            return None
        return max(0, limit - questions_asked(self.context.messages))

    def _append(self, role: Role, content: str) -> FollowUpMessage:
        now = datetime.now(timezone.utc)
        if self.context.messages and now < self.context.messages[-1].timestamp:
            now = self.context.messages[-1].timestamp
        message = FollowUpMessage(id=uuid.uuid4().hex, role=role, content=content, timestamp=now)
        self.context.messages.append(message)
        return message

    def record_attempt(self, question: str) -> FollowUpAttempt:
        question = (question or "").strip()
        if not question:
            raise InvalidRequest("question is required")
        if self._pending is not None:
            raise FollowUpInFlight()
        if quota_exceeded(self.tier, self.context.messages):
            limit = follow_up_limit(self.tier)
            log.warning(
                "follow-up quota reached reading=%s tier=%s limit=%s",
                self.context.reading_id,
                self.tier.value,
                limit,
            )
            raise QuotaExceeded(self.tier.value, limit or 0)

        history_length = len(self.context.messages)
        message = self._append("user", question)
        attempt = FollowUpAttempt(
            id=uuid.uuid4().hex,
            question=question,
            message_id=message.id,
            history_length=history_length,
        )
        self._pending = attempt
        return attempt

    def _finish(self, attempt: FollowUpAttempt, status: AttemptStatus, error: Optional[str] = None) -> None:
        attempt.status = status
        attempt.error = error
        if self._pending is not None and self._pending.id == attempt.id:
            self._pending = None

    def abandon(self, attempt: FollowUpAttempt) -> None:
        """Give up on a pending attempt; its question stays in the history."""
        if attempt.status == "pending":
            self._finish(attempt, "abandoned")

    async def resolve_attempt(self, attempt: FollowUpAttempt) -> str:
        if attempt.status != "pending" or self._pending is None or self._pending.id != attempt.id:
            raise InvalidRequest(f"attempt {attempt.id} is not pending")

        history = self.context.messages[: attempt.history_length]
        prompt = build_followup_prompt(self.context, attempt.question, history=history)
        request = GenerationRequest(
            prompt=prompt.user_prompt,
            system_prompt=prompt.system_prompt,
            temperature=self.temperature,
            max_tokens=followup_max_tokens(self.context.mode),
            language=self.context.locale,
        )

        try:
            result = await self.registry.generate(request)
        except asyncio.CancelledError:
            if attempt.status == "pending":
                self._finish(attempt, "abandoned")
            raise
        except DivinationError as e:
            if attempt.status == "pending":
                self._finish(attempt, "failed", error=str(e))
            log.warning("follow-up failed reading=%s: %s", self.context.reading_id, e)
            raise

        if attempt.status != "pending":
            # abandoned while the provider was working; the answer is dropped
            log.info("dropping late answer reading=%s attempt=%s", self.context.reading_id, attempt.id)
            raise InvalidRequest(f"attempt {attempt.id} was {attempt.status}")

        self._append("assistant", result.text)
        attempt.answer = result.text
        self._finish(attempt, "answered")
        return result.text

    async def ask(self, question: str) -> str:
        attempt = self.record_attempt(question)
        return await self.resolve_attempt(attempt)
