from datetime import datetime, timezone

from divination.draw import hexagram_from_lines
from divination.models import (
    CardSummary,
    DrawnCard,
    FollowUpMessage,
    ReadingContext,
    UserChart,
)
from divination.prompts import (
    NEUTRAL_SYSTEM_PROMPT,
    build_followup_prompt,
    build_iching_prompt,
    build_prompt,
    followup_max_tokens,
    format_conversation,
    get_system_prompt,
    interpretation_max_tokens,
)
from divination.reference import get_card, get_spread


def _drawn():
    return [
        DrawnCard(card=get_card("00"), position="Past", reversed=False),
        DrawnCard(card=get_card("C03"), position="Present", reversed=True),
        DrawnCard(card=get_card("S10"), position="Future", reversed=False),
    ]


def test_prompt_is_deterministic():
    spread = get_spread("three-card")
    a = build_prompt("traditional", spread, _drawn(), "What next?")
    b = build_prompt("traditional", spread, _drawn(), "What next?")
    assert a == b


def test_prompt_does_not_mutate_drawn():
    drawn = _drawn()
    before = list(drawn)
    build_prompt("esoteric", get_spread("three-card"), drawn, "Q")
    assert drawn == before


def test_prompt_section_order():
    drawn = _drawn()
    prompt = build_prompt("traditional", get_spread("three-card"), drawn, "Will it work out?").user_prompt

    q = prompt.index("**Question:** Will it work out?")
    s = prompt.index("**Spread:** Past, Present, Future")
    cards = [prompt.index(d.card.title_for("en")) for d in drawn]
    instructions = prompt.index("**Instructions:**")
    assert q < s < cards[0] < cards[1] < cards[2] < instructions


def test_card_block_contents():
    drawn = _drawn()
    prompt = build_prompt("traditional", get_spread("three-card"), drawn).user_prompt
    reversed_card = drawn[1].card
    assert "2. **Present:** " + reversed_card.title_for("en") in prompt
    assert "Orientation: Reversed" in prompt
    assert reversed_card.meaning(True) in prompt
    assert "Basic meaning:" in prompt
    assert "**Question:**" not in prompt


def test_mode_changes_meaning_label_and_persona():
    spread = get_spread("three-card")
    esoteric = build_prompt("esoteric", spread, _drawn())
    jungian = build_prompt("jungian", spread, _drawn())
    assert "Symbolic meaning:" in esoteric.user_prompt
    assert "Archetypal meaning:" in jungian.user_prompt
    assert "esoteric" in esoteric.system_prompt
    assert "Jungian" in jungian.system_prompt


def test_unknown_mode_gets_neutral_persona():
    prompt = build_prompt("astrological-cats", get_spread("three-card"), _drawn())
    assert prompt.system_prompt == NEUTRAL_SYSTEM_PROMPT
    assert interpretation_max_tokens("astrological-cats") == interpretation_max_tokens("traditional")
    assert followup_max_tokens("jungian") == 1000


def test_locale_labels_and_language_directive():
    prompt = build_prompt("traditional", get_spread("three-card"), _drawn(), "問題", locale="zh-TW")
    assert "**牌陣：**" in prompt.user_prompt
    assert "愚者" in prompt.user_prompt
    assert prompt.system_prompt.endswith("Respond in Traditional Chinese.")


def test_chart_is_included_only_when_enabled():
    spread = get_spread("three-card")
    chart = UserChart(sun_sign="Leo", moon_sign="Pisces", rising_sign="Virgo")
    with_chart = build_prompt("esoteric", spread, _drawn(), chart=chart)
    assert "**User's Chart:** Sun: Leo, Moon: Pisces, Rising: Virgo" in with_chart.user_prompt
    assert "Leo sun" in with_chart.system_prompt

    disabled = UserChart(sun_sign="Leo", use_for_readings=False)
    without = build_prompt("esoteric", spread, _drawn(), chart=disabled)
    assert "User's Chart" not in without.user_prompt
    assert without.system_prompt == get_system_prompt("esoteric")


def _context(messages=()):
    return ReadingContext(
        reading_id="r1",
        question="Should I change jobs?",
        cards=[
            CardSummary(position="Past", title="The Fool"),
            CardSummary(position="Present", title="Three of Cups", reversed=True),
        ],
        interpretation="Change is in the air.",
        mode="jungian",
        messages=list(messages),
    )


def test_followup_prompt_order():
    now = datetime.now(timezone.utc)
    history = [
        FollowUpMessage(id="a", role="user", content="What about money?", timestamp=now),
        FollowUpMessage(id="b", role="assistant", content="Money follows.", timestamp=now),
    ]
    prompt = build_followup_prompt(_context(history), "And love?").user_prompt

    order = [
        prompt.index("You are continuing a tarot reading conversation."),
        prompt.index("Original Question: Should I change jobs?"),
        prompt.index("Cards Drawn:"),
        prompt.index("2. Present: Three of Cups (Reversed)"),
        prompt.index("Interpretation:\nChange is in the air."),
        prompt.index("User: What about money?"),
        prompt.index("Assistant: Money follows."),
        prompt.index("New question: And love?"),
    ]
    assert order == sorted(order)


def test_followup_prompt_explicit_history():
    now = datetime.now(timezone.utc)
    pending = FollowUpMessage(id="a", role="user", content="And love?", timestamp=now)
    prompt = build_followup_prompt(_context([pending]), "And love?", history=[])
    assert "Previous conversation:" not in prompt.user_prompt
    assert "archetypal" in prompt.system_prompt


def test_iching_prompt():
    cast = hexagram_from_lines([9, 7, 7, 7, 7, 7])
    prompt = build_iching_prompt("traditional", cast, "Is now the time?")
    assert prompt.user_prompt.startswith("**Question:** Is now the time?")
    assert "Primary hexagram: 1." in prompt.user_prompt
    assert "Changing lines: 1" in prompt.user_prompt
    assert "Resulting hexagram: 44." in prompt.user_prompt
    assert "classical" in prompt.system_prompt


def test_format_conversation():
    now = datetime.now(timezone.utc)
    assert format_conversation([]) == ""
    text = format_conversation([FollowUpMessage(id="a", role="user", content="Hi", timestamp=now)])
    assert text == "Previous conversation:\nUser: Hi\n\n"
