from __future__ import annotations

import pytest

from hookbuilder.errors import ValidationError
from hookbuilder.prompt_builder.extraction import extract_key_points, extract_metaphors
from hookbuilder.prompt_builder.hook import build_hook_prompts
from hookbuilder.prompt_builder.model import EndingStyle, HookRequest, ResistanceLevel, ScriptBrief
from hookbuilder.prompt_builder.script import RESISTANCE_INSTRUCTIONS, build_script_prompts

FORM = {
    "title": "",
    "philosophy": "Growth is not comfort, but courage. It's about showing up when nobody claps.",
    "numCharacters": 2,
    "characterRoles": "Mentor and a stubborn student",
    "tone": "Raw",
    "themes": ["growth", "discipline"],
    "emotionalArc": "Denial to acceptance",
    "resistanceLevel": "High (Sarcastic)",
    "emotionEnding": "Impact (Mic drop)",
    "finalMicDrop": "Own it.",
}


def test_script_brief_from_form_parses_labels_and_defaults():
    brief = ScriptBrief.from_form(FORM)

    assert brief.title == "Untitled Script"
    assert brief.resistance_level is ResistanceLevel.HIGH
    assert brief.ending_style is EndingStyle.IMPACT
    assert brief.pacing == "Medium (60-90 sec)"


@pytest.mark.parametrize(
    ("missing", "message"),
    [
        ("philosophy", "Please enter your philosophical idea"),
        ("characterRoles", "Please define character roles"),
        ("tone", "Please select a tone"),
        ("themes", "Please select at least one theme"),
        ("emotionalArc", "Please select an emotional arc"),
    ],
)
def test_script_brief_from_form_reports_missing_fields(missing, message):
    form = dict(FORM, **{missing: [] if missing == "themes" else ""})

    with pytest.raises(ValidationError, match=message):
        ScriptBrief.from_form(form)


def test_script_brief_rejects_long_creator_note():
    with pytest.raises(ValidationError):
        ScriptBrief.from_form(dict(FORM, creatorNote="x" * 701))


def test_script_prompt_includes_resistance_and_mic_drop():
    prompts = build_script_prompts(ScriptBrief.from_form(FORM))

    assert "🗣 NAME (emotion):" in prompts.system
    assert RESISTANCE_INSTRUCTIONS[ResistanceLevel.HIGH] in prompts.user
    assert 'Use this as the final line, word for word: "Own it."' in prompts.user
    assert "- Not comfort, but courage" in prompts.user


def test_script_prompt_omits_mic_drop_for_silence_and_single_character():
    brief = ScriptBrief.from_form(dict(FORM, emotionEnding="Silence", numCharacters=1))

    user = build_script_prompts(brief).user

    assert "Own it." not in user
    assert "Resistance level" not in user
    assert "- Character: Passionate and fiery" in user


def test_hook_request_from_form():
    with pytest.raises(ValidationError, match="Please fill in all required fields"):
        HookRequest.from_form({"hook": "Why?", "context": "", "emotion": "sad", "theme": "loss"})

    request = HookRequest.from_form(
        {"hook": " Why did I leave? ", "context": "Kitchen", "emotion": "regret", "theme": "family", "tone": " "}
    )
    prompts = build_hook_prompts(request)

    assert request.tone is None
    assert 'Hook: "Why did I leave?"' in prompts.user
    assert "Tone:" not in prompts.user
    assert '"personalStakes"' in prompts.system


def test_extract_key_points_prefers_contrasts_and_lead_ins():
    text = (
        "Growth is not comfort, but courage. It's about showing up when nobody claps. "
        "Discipline beats motivation every day."
    )

    points = extract_key_points(text)

    assert points[:2] == ["Not comfort, but courage", "Showing up when nobody claps"]
    assert len(points) == 5
    assert extract_key_points("   ") == []


def test_extract_metaphors_in_text_order():
    text = "Your mind is a locked room. Life is like a river that never stops."

    assert extract_metaphors(text) == ["is a locked room", "like a river that never stops"]
    assert extract_metaphors("") == []
