"""Reading orchestration: draw, interpret per mode, hand off to follow-ups.

A Reading keeps its drawn cards fixed for its whole life. Interpreting it again
under another mode sends a new prompt over the same cards and caches the text
under that mode.
"""

from __future__ import annotations

import logging
import random
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, Field

from .draw import REVERSAL_PROBABILITY, draw, draw_manual
from .errors import InvalidRequest
from .models import (
    Card,
    CardSummary,
    DrawnCard,
    GenerationRequest,
    HexagramCast,
    ReadingContext,
    Spread,
    UserChart,
)
from .prompts import build_iching_prompt, build_prompt, interpretation_max_tokens
from .providers.registry import ProviderRegistry
from .reference import get_deck

log = logging.getLogger("divination.reading")

INTERPRETATION_TEMPERATURE = 0.7


class Reading(BaseModel):
    reading_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    question: Optional[str] = None
    spread: Spread
    drawn: List[DrawnCard]
    locale: str = "en"
    interpretations: Dict[str, str] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def card_summaries(self) -> List[CardSummary]:
        return [
            CardSummary(position=d.position, title=d.card.title_for(self.locale), reversed=d.reversed)
            for d in self.drawn
        ]

    def followup_context(self, mode: str) -> ReadingContext:
        """Context for a follow-up conversation over the interpretation in `mode`."""
        if mode not in self.interpretations:
            raise InvalidRequest(f"Reading has no {mode} interpretation yet")
        return ReadingContext(
            reading_id=self.reading_id,
            question=self.question,
            cards=self.card_summaries(),
            interpretation=self.interpretations[mode],
            mode=mode,
            locale=self.locale,
        )

    def to_record(self) -> Dict[str, Any]:
        """Value handed to the history store."""
        return {
            "question": self.question,
            "elements_drawn": [
                {
                    "elementId": d.code,
                    "position": d.position,
                    "metadata": {
                        "cardTitle": d.card.title_for(self.locale),
                        "cardCode": d.code,
                        "positionLabel": d.position,
                        "reversed": d.reversed,
                    },
                }
                for d in self.drawn
            ],
            "interpretations": {mode: {"content": text} for mode, text in self.interpretations.items()},
            "created_at": self.created_at.isoformat(),
        }


def new_reading(
    spread: Spread,
    deck: Optional[Sequence[Card]] = None,
    question: Optional[str] = None,
    locale: str = "en",
    rng: Optional[random.Random] = None,
    reversal_probability: float = REVERSAL_PROBABILITY,
    allow_reversals: bool = True,
    codes: Optional[Sequence[str]] = None,
) -> Reading:
    """Draw a reading. Pass `codes` to place cards picked from a physical deck."""
    deck = deck if deck is not None else get_deck()
    options = dict(
        locale=locale,
        rng=rng,
        reversal_probability=reversal_probability,
        allow_reversals=allow_reversals,
    )
    if codes:
        cards = draw_manual(deck, codes, spread, **options)
    else:
        cards = draw(deck, spread, **options)
    question = question.strip() if question and question.strip() else None
    return Reading(question=question, spread=spread, drawn=cards, locale=locale)


async def interpret(
    reading: Reading,
    registry: ProviderRegistry,
    mode: str,
    chart: Optional[UserChart] = None,
    refresh: bool = False,
) -> str:
    if not refresh and mode in reading.interpretations:
        return reading.interpretations[mode]

    prompt = build_prompt(
        mode,
        reading.spread,
        reading.drawn,
        reading.question,
        locale=reading.locale,
        chart=chart,
    )
    result = await registry.generate(
        GenerationRequest(
            prompt=prompt.user_prompt,
            system_prompt=prompt.system_prompt,
            temperature=INTERPRETATION_TEMPERATURE,
            max_tokens=interpretation_max_tokens(mode),
            language=reading.locale,
        )
    )
    reading.interpretations[mode] = result.text
    log.info(
        "interpreted reading=%s mode=%s via %s (%s chars)",
        reading.reading_id,
        mode,
        result.provider,
        len(result.text),
    )
    return result.text


async def interpret_hexagram(
    cast: HexagramCast,
    registry: ProviderRegistry,
    mode: str = "traditional",
    question: Optional[str] = None,
    locale: str = "en",
) -> str:
    prompt = build_iching_prompt(mode, cast, question, locale=locale)
    result = await registry.generate(
        GenerationRequest(
            prompt=prompt.user_prompt,
            system_prompt=prompt.system_prompt,
            temperature=INTERPRETATION_TEMPERATURE,
            max_tokens=interpretation_max_tokens(mode),
            language=locale,
        )
    )
    return result.text
