"""Prompt construction for readings and follow-up questions.

The system prompt carries the interpretation mode (who is speaking and through
which lens); the user prompt carries the reading itself. Keeping the two apart
lets the same draw be reinterpreted under another mode without drawing again.
"""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence

from .models import (
    DrawnCard,
    FollowUpMessage,
    HexagramCast,
    PromptPair,
    ReadingContext,
    Spread,
    UserChart,
)
from .reference import get_trigram

_SHARED_RULES = """
HANDLING BRIEF QUESTIONS:
Single-word questions such as "love?" or "career?" are invitations to explore that area fully. Do not ask for clarification; give your best reading.

FORMAT:
- Prose only, no headers, no bullet points
- Use **bold** for at most a few key insights"""


def _traditional(chart: Optional[UserChart]) -> str:
    return f"""You are a modern tarot reader with deep knowledge of traditional symbolism.

VOICE & TONE:
- Speak naturally, never archaic or flowery
- Present tense, active voice, direct and insightful

INTERPRETATION APPROACH:
- Synthesize the cards into one narrative instead of listing them one by one
- Tie the reading to the querent's question when one is given
- Traditional meanings are the foundation, intuitive synthesis is the expression
- Favour practical wisdom and clear guidance

LENGTH: 100-120 words in two short paragraphs.
{_SHARED_RULES}"""


def _esoteric(chart: Optional[UserChart]) -> str:
    if chart and chart.sun_sign:
        chart_note = (
            f"- Weave in the querent's chart ({chart.sun_sign} sun, {chart.moon_sign or 'unknown'} moon, "
            f"{chart.rising_sign or 'unknown'} rising) where the correspondences are meaningful"
        )
    else:
        chart_note = "- Without birth data, stay with universal astrological themes"
    return f"""You are an esoteric tarot reader specializing in astrological, elemental and hermetic correspondences.

VOICE & TONE:
- Sophisticated but accessible; explain esoteric ideas plainly
- Precise about symbolism, human in delivery

INTERPRETATION APPROACH:
- Emphasize **astrological correspondences** and **elemental relationships**
- Show how planetary influences interact across the spread
- Draw on hermetic principles such as as above, so below
{chart_note}

LENGTH: 150-180 words in two or three short paragraphs.
{_SHARED_RULES}"""


def _jungian(chart: Optional[UserChart]) -> str:
    if chart and chart.sun_sign:
        chart_note = (
            f"- Read the chart as personality structure: {chart.sun_sign} sun (conscious identity), "
            f"{chart.moon_sign or 'unknown'} moon (emotional patterns), {chart.rising_sign or 'unknown'} rising (persona)"
        )
    else:
        chart_note = "- Focus on universal archetypal patterns"
    return f"""You are a tarot reader specializing in Jungian psychology and archetypal analysis.

VOICE & TONE:
- Depth-psychological perspective with compassionate delivery
- Contemporary language without clinical jargon

INTERPRETATION APPROACH:
- Focus on **archetypes**, **individuation**, the **shadow** and the collective unconscious
- Treat reversed and difficult cards as material for integration, not pathology
- Describe inner processes and psychological patterns
{chart_note}

LENGTH: 180-200 words in two or three short paragraphs.
{_SHARED_RULES}"""


NEUTRAL_SYSTEM_PROMPT = f"""You are a thoughtful tarot reader. Offer a balanced, grounded interpretation of the cards in relation to the querent's question.

LENGTH: about 120 words.
{_SHARED_RULES}"""

SYSTEM_PROMPTS: Dict[str, Callable[[Optional[UserChart]], str]] = {
    "traditional": _traditional,
    "esoteric": _esoteric,
    "jungian": _jungian,
}

LANGUAGE_NAMES = {
    "en": "English",
    "zh-TW": "Traditional Chinese",
    "ja": "Japanese",
    "es": "Spanish",
    "ru": "Russian",
    "pt": "Portuguese",
}

LOCALE_LABELS: Dict[str, Dict[str, str]] = {
    "en": {
        "question": "**Question:**",
        "spread": "**Spread:**",
        "cards": "**Cards:**",
        "orientation": "Orientation",
        "upright": "Upright",
        "reversed": "Reversed",
        "keywords": "Keywords",
        "element": "Element",
        "astrology": "Astrology",
        "basic_meaning": "Basic meaning",
        "symbolic_meaning": "Symbolic meaning",
        "archetypal_meaning": "Archetypal meaning",
        "user_chart": "**User's Chart:**",
        "sun": "Sun",
        "moon": "Moon",
        "rising": "Rising",
        "instructions": "**Instructions:**",
        "synthesize": "Provide a concise, insightful interpretation. Do NOT explain the cards one by one; synthesize them into a unified narrative.",
    },
    "zh-TW": {
        "question": "**問題：**",
        "spread": "**牌陣：**",
        "cards": "**抽到的牌：**",
        "orientation": "正逆位",
        "upright": "正位",
        "reversed": "逆位",
        "keywords": "關鍵詞",
        "element": "元素",
        "astrology": "占星",
        "basic_meaning": "基本含義",
        "symbolic_meaning": "象徵意義",
        "archetypal_meaning": "原型意義",
        "user_chart": "**用戶星盤：**",
        "sun": "太陽",
        "moon": "月亮",
        "rising": "上升",
        "instructions": "**指示：**",
        "synthesize": "提供簡潔、有洞察力的解讀。不要逐張解釋卡片，而是將它們綜合成一個統一的敘述。",
    },
}

_MEANING_LABEL = {
    "traditional": "basic_meaning",
    "esoteric": "symbolic_meaning",
    "jungian": "archetypal_meaning",
}

_INTERPRETATION_TOKENS = {"traditional": 2200, "esoteric": 2800, "jungian": 3200}
_FOLLOWUP_TOKENS = {"traditional": 600, "esoteric": 800, "jungian": 1000}


def get_labels(locale: str) -> Dict[str, str]:
    return LOCALE_LABELS.get(locale, LOCALE_LABELS["en"])


def language_directive(locale: str) -> str:
    if locale == "en":
        return ""
    language = LANGUAGE_NAMES.get(locale, locale)
    return f"\n\nRespond in {language}."


def get_system_prompt(mode: str, locale: str = "en", chart: Optional[UserChart] = None) -> str:
    """Persona for a mode. Unknown modes get a neutral reader instead of an error."""
    if chart is not None and not chart.use_for_readings:
        chart = None
    build = SYSTEM_PROMPTS.get(mode)
    base = build(chart) if build else NEUTRAL_SYSTEM_PROMPT
    return base + language_directive(locale)


def interpretation_max_tokens(mode: str) -> int:
    return _INTERPRETATION_TOKENS.get(mode, _INTERPRETATION_TOKENS["traditional"])


def followup_max_tokens(mode: str) -> int:
    return _FOLLOWUP_TOKENS.get(mode, _FOLLOWUP_TOKENS["traditional"])


def card_block(index: int, drawn: DrawnCard, mode: str, locale: str) -> str:
    labels = get_labels(locale)
    card = drawn.card
    orientation = labels["reversed"] if drawn.reversed else labels["upright"]
    meaning_label = labels[_MEANING_LABEL.get(mode, "basic_meaning")]
    return (
        f"{index}. **{drawn.position}:** {card.title_for(locale)}\n"
        f"   {labels['orientation']}: {orientation}\n"
        f"   {labels['keywords']}: {', '.join(card.keywords)}\n"
        f"   {labels['element']}: {card.element} | {labels['astrology']}: {card.astro}\n"
        f"   {meaning_label}: {card.meaning(drawn.reversed, locale)}\n"
    )


def format_chart(chart: Optional[UserChart], locale: str) -> str:
    if chart is None or not chart.use_for_readings or not chart.sun_sign:
        return ""
    labels = get_labels(locale)
    parts = [f"{labels['sun']}: {chart.sun_sign}"]
    if chart.moon_sign:
        parts.append(f"{labels['moon']}: {chart.moon_sign}")
    if chart.rising_sign:
        parts.append(f"{labels['rising']}: {chart.rising_sign}")
    return f"{labels['user_chart']} {', '.join(parts)}\n\n"


def build_prompt(
    mode: str,
    spread: Spread,
    drawn: Sequence[DrawnCard],
    question: Optional[str] = None,
    *,
    locale: str = "en",
    chart: Optional[UserChart] = None,
) -> PromptPair:
    """Serialize a reading: question, spread, then one block per card in draw order."""
    labels = get_labels(locale)
    parts: List[str] = []

    if question and question.strip():
        parts.append(f"{labels['question']} {question.strip()}\n\n")

    parts.append(f"{labels['spread']} {spread.name_for(locale)}\n\n")
    parts.append(f"{labels['cards']}\n")
    for i, d in enumerate(drawn, start=1):
        parts.append(card_block(i, d, mode, locale) + "\n")

    parts.append(format_chart(chart, locale))
    parts.append(f"{labels['instructions']} {labels['synthesize']}\n")

    return PromptPair(
        system_prompt=get_system_prompt(mode, locale, chart),
        user_prompt="".join(parts),
    )


FOLLOWUP_SYSTEM_PROMPT = """You are a helpful tarot reading assistant. The user has just received a tarot reading and wants to ask follow-up questions about it.

Your role:
- Answer questions about the cards drawn and their meanings
- Give deeper insight into the reading and clarify confusing parts
- Be supportive and stay within the context of the reading provided

Keep responses concise (2-4 sentences) unless the question needs more detail."""

_FOLLOWUP_LENS = {
    "traditional": "Answer through traditional tarot symbolism.",
    "esoteric": "Answer through astrological and elemental correspondences.",
    "jungian": "Answer through archetypal, Jungian psychology.",
}


def format_conversation(messages: Sequence[FollowUpMessage]) -> str:
    if not messages:
        return ""
    lines = ["Previous conversation:"]
    for msg in messages:
        speaker = "User" if msg.role == "user" else "Assistant"
        lines.append(f"{speaker}: {msg.content}")
    return "\n".join(lines) + "\n\n"


def build_followup_prompt(
    context: ReadingContext,
    question: str,
    history: Optional[Sequence[FollowUpMessage]] = None,
) -> PromptPair:
    """Prompt for one follow-up turn.

    history defaults to context.messages; callers that have already appended
    the pending question pass the earlier messages explicitly.
    """
    messages = context.messages if history is None else history
    parts = ["You are continuing a tarot reading conversation.\n\n"]

    if context.question:
        parts.append(f"Original Question: {context.question}\n\n")

    parts.append("Cards Drawn:\n")
    for i, card in enumerate(context.cards, start=1):
        suffix = " (Reversed)" if card.reversed else ""
        parts.append(f"{i}. {card.position}: {card.title}{suffix}\n")

    parts.append(f"\nInterpretation:\n{context.interpretation}\n\n")
    parts.append(format_conversation(messages))
    parts.append(f"New question: {question}\n")

    system = FOLLOWUP_SYSTEM_PROMPT
    lens = _FOLLOWUP_LENS.get(context.mode)
    if lens:
        system += f"\n\n{lens}"
    system += language_directive(context.locale)

    return PromptPair(system_prompt=system, user_prompt="".join(parts))


ICHING_SYSTEM_PROMPT = """You are an I Ching interpreter who speaks in a clear, modern voice.

INTERPRETATION APPROACH:
- Read the primary hexagram as the present situation
- Treat changing lines as the moving forces, and the resulting hexagram as where the situation is heading
- Connect the images of the trigrams to the question when one is given

LENGTH: 150-180 words, prose only."""

_ICHING_LENS = {
    "traditional": "Stay close to the classical judgements and images.",
    "esoteric": "Bring out the elemental and cosmological correspondences of the trigrams.",
    "jungian": "Read the hexagrams as archetypal images of an inner process.",
}


def build_iching_prompt(
    mode: str,
    cast: HexagramCast,
    question: Optional[str] = None,
    *,
    locale: str = "en",
) -> PromptPair:
    labels = get_labels(locale)
    parts: List[str] = []
    if question and question.strip():
        parts.append(f"{labels['question']} {question.strip()}\n\n")

    def describe(title: str, number: int, name: str, pinyin: str, upper: str, lower: str, keywords: List[str]) -> str:
        up, low = get_trigram(upper), get_trigram(lower)
        return (
            f"{title}: {number}. {name} ({pinyin})\n"
            f"   Trigrams: {up.name} {up.image} over {low.name} {low.image}\n"
            f"   {labels['element']}: {up.element} over {low.element}\n"
            f"   {labels['keywords']}: {', '.join(keywords)}\n"
        )

    p = cast.primary
    parts.append(describe("Primary hexagram", p.number, p.name, p.pinyin, p.upper, p.lower, p.keywords))
    parts.append(f"   Lines (bottom to top): {' '.join(str(v) for v in cast.lines)}\n")
    if cast.changing_lines:
        parts.append(f"   Changing lines: {', '.join(str(n) for n in cast.changing_lines)}\n")
    if cast.resulting is not None:
        r = cast.resulting
        parts.append("\n" + describe("Resulting hexagram", r.number, r.name, r.pinyin, r.upper, r.lower, r.keywords))

    lens = _ICHING_LENS.get(mode)
    system = ICHING_SYSTEM_PROMPT + (f"\n\n{lens}" if lens else "") + language_directive(locale)
    return PromptPair(system_prompt=system, user_prompt="".join(parts))
