from __future__ import annotations

import json

from hookbuilder.script_engine.parser import parse_hook_analysis, parse_script_response

HOOK_PAYLOAD = {
    "score": 7,
    "tripBreakdown": {"tension": True, "relatability": True, "intrigue": False, "personalStakes": True},
    "feedback": "Strong tension, the mystery could be sharper.",
    "variations": ["You never asked why I left.", "I left, and you never asked.", "Ask me why I left."],
    "reframePrompt": "",
}


def test_parse_hook_analysis_reads_fenced_json():
    content = "Here you go:\n```json\n" + json.dumps(HOOK_PAYLOAD) + "\n```"

    result = parse_hook_analysis(content, "Why did I leave?")

    assert result.original_hook == "Why did I leave?"
    assert result.score == 7
    assert result.trip_breakdown.tension is True
    assert result.trip_breakdown.intrigue is False
    assert result.trip_breakdown.personal_stakes is True
    assert result.variations == HOOK_PAYLOAD["variations"]
    assert result.reframe_prompt is None


def test_parse_hook_analysis_repairs_and_clamps():
    content = '{"score": 12.6, "feedback": "ok", "variations": ["x",],}'

    result = parse_hook_analysis(content, "hook")

    assert result.score == 10
    assert result.variations == ["x"]
    assert result.trip_breakdown.relatability is False


def test_parse_hook_analysis_falls_back_on_garbage():
    for content in ("not json at all", '{"feedback": "missing score"}', ""):
        result = parse_hook_analysis(content, "hook")

        assert result.score == 0
        assert result.variations == []
        assert result.feedback.startswith("Sorry, there was an error analyzing your hook")
        assert result.original_hook == "hook"


def test_parse_script_response_splits_music_section():
    text = "🗣 A (calm):\nHi.\n\n🎵 Music Recommendation: Slow piano, 70 BPM\n"

    result = parse_script_response(text)

    assert result.script == "🗣 A (calm):\nHi."
    assert result.music_recommendation == "Slow piano, 70 BPM"


def test_parse_script_response_accepts_bold_heading():
    result = parse_script_response("🗣 A (calm):\nHi.\n\n**Music Recommendation:**\nLo-fi strings")

    assert result.script == "🗣 A (calm):\nHi."
    assert result.music_recommendation == "Lo-fi strings"


def test_parse_script_response_without_music():
    result = parse_script_response("  🗣 A (calm):\nHi.  \n")

    assert result.script == "🗣 A (calm):\nHi."
    assert result.music_recommendation is None
    assert parse_script_response("🗣 A (calm):\nHi.\n🎵 Music:").music_recommendation is None


def test_parse_script_response_keeps_music_cue_inside_the_script():
    text = (
        "🗣 COACH (calm):\nYou keep running.\n\n"
        "Music: a low piano note starts.\n\n"
        "🗣 RILEY (defensive):\nI'm not running.\n\n"
        "🗣 COACH (calm):\nThen stay.\n\n"
        "🎵 Music Recommendation: slow piano"
    )

    result = parse_script_response(text)

    assert "Music: a low piano note starts." in result.script
    assert "RILEY" in result.script
    assert result.script.endswith("Then stay.")
    assert result.music_recommendation == "slow piano"


def test_parse_script_response_bare_music_trailer_after_last_turn():
    result = parse_script_response("Music: rain\n\n🗣 A (calm):\nHi.\n\nMusic: ambient pads")

    assert result.script == "Music: rain\n\n🗣 A (calm):\nHi."
    assert result.music_recommendation == "ambient pads"
