from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

InterpretationMode = Literal["traditional", "esoteric", "jungian"]
INTERPRETATION_MODES = ("traditional", "esoteric", "jungian")

Role = Literal["user", "assistant"]
CastMethod = Literal["coins", "yarrow"]


def localized(values: Dict[str, str], locale: str = "en") -> str:
    """Pick the text for a locale, falling back to English, then to anything."""
    if not values:
        return ""
    if locale in values:
        return values[locale]
    if "en" in values:
        return values["en"]
    return next(iter(values.values()))


class Card(BaseModel):
    model_config = ConfigDict(frozen=True)

    code: str
    title: Dict[str, str]
    arcana: str = "Major"
    suit: Optional[str] = None
    keywords: List[str] = Field(default_factory=list)
    element: str = ""
    astro: str = ""
    upright: Dict[str, str] = Field(default_factory=dict)
    reversed: Dict[str, str] = Field(default_factory=dict)

    def title_for(self, locale: str = "en") -> str:
        return localized(self.title, locale)

    def meaning(self, reversed_: bool, locale: str = "en") -> str:
        return localized(self.reversed if reversed_ else self.upright, locale)


class SpreadPosition(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: Dict[str, str]
    meaning: str = ""


class Spread(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: Dict[str, str]
    positions: List[SpreadPosition]
    card_count: int
    is_premium: bool = False

    @model_validator(mode="after")
    def _positions_match_count(self) -> "Spread":
        if self.card_count != len(self.positions):
            raise ValueError(
                f"spread {self.key!r} declares {self.card_count} cards but has {len(self.positions)} positions"
            )
        return self

    def name_for(self, locale: str = "en") -> str:
        return localized(self.name, locale)

    def labels(self, locale: str = "en") -> List[str]:
        return [localized(p.label, locale) for p in self.positions]


class DrawnCard(BaseModel):
    """A card bound to an orientation and a spread slot for one reading."""

    model_config = ConfigDict(frozen=True)

    card: Card
    position: str
    reversed: bool = False

    @property
    def code(self) -> str:
        return self.card.code


class UserChart(BaseModel):
    sun_sign: Optional[str] = None
    moon_sign: Optional[str] = None
    rising_sign: Optional[str] = None
    use_for_readings: bool = True


class PromptPair(BaseModel):
    model_config = ConfigDict(frozen=True)

    system_prompt: str
    user_prompt: str


class GenerationRequest(BaseModel):
    prompt: str
    system_prompt: str = ""
    temperature: float = 0.7
    max_tokens: int = 1024
    language: str = "en"


class TokenUsage(BaseModel):
    input: int = 0
    output: int = 0


class GenerationResult(BaseModel):
    text: str
    tokens_used: Optional[TokenUsage] = None
    provider: Optional[str] = None
    model: Optional[str] = None
    finish_reason: Optional[str] = None


class FollowUpMessage(BaseModel):
    id: str
    role: Role
    content: str
    timestamp: datetime


class Tier(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    PRO = "pro"
    EXPERT = "expert"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Tier":
        """Unrecognized or missing tiers count as free."""
        if isinstance(value, cls):
            return value
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            return cls.FREE


class CardSummary(BaseModel):
    position: str
    title: str
    reversed: bool = False


class ReadingContext(BaseModel):
    reading_id: str
    question: Optional[str] = None
    cards: List[CardSummary]
    interpretation: str
    mode: str = "traditional"
    locale: str = "en"
    messages: List[FollowUpMessage] = Field(default_factory=list)


class Trigram(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str
    name: str
    image: str
    element: str
    lines: List[int]


class Hexagram(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    name: str
    pinyin: str
    keywords: List[str] = Field(default_factory=list)
    upper: str = ""
    lower: str = ""


class HexagramCast(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: CastMethod
    lines: List[int]
    changing_lines: List[int] = Field(default_factory=list)
    primary: Hexagram
    resulting: Optional[Hexagram] = None
