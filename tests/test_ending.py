from __future__ import annotations

import random

from hookbuilder.postprocess.ending import (
    compatible_label,
    enforce_ending,
    has_vocabulary,
    score_line,
    truncate_at_clause,
)
from hookbuilder.postprocess.lines import Block, LineKind, ScriptLine, word_count
from hookbuilder.postprocess.tables import ProcessingTables
from hookbuilder.prompt_builder.model import EndingStyle, ResistanceLevel

TABLES = ProcessingTables()
MEDIUM = TABLES.stages_for(ResistanceLevel.MEDIUM)
HIGH = TABLES.stages_for(ResistanceLevel.HIGH)


def _blocks(*turns):
    return [
        Block(header=ScriptLine.header(speaker, emotion), body=[ScriptLine.dialogue(text)])
        for speaker, emotion, text in turns
    ]


def test_score_line_weights():
    assert score_line("I choose now.", "determined", TABLES.power_words, 10, TABLES.resolute_emotions) == 10
    assert score_line("I choose now", "neutral", TABLES.power_words, 10, TABLES.resolute_emotions) == 7
    assert score_line("Okay.", None, TABLES.power_words, 10, TABLES.resolute_emotions) == 5


def test_truncate_at_clause_keeps_leading_clauses():
    assert truncate_at_clause("We ran, we hid, we waited far too long for anyone", 7) == "We ran, we hid"
    assert truncate_at_clause("Short enough", 7) == "Short enough"


def test_silence_appends_standalone_direction():
    blocks = _blocks(
        ("A", "calm", "You came back."),
        ("B", "tired", "I did."),
        ("A", "calm", "Why?"),
        ("B", "quiet", "I had nowhere else."),
    )

    result = enforce_ending(blocks, EndingStyle.SILENCE, TABLES, MEDIUM, random.Random(0))

    assert len(result) == 5
    assert result[-1].header is None
    assert result[-1].body[0].kind is LineKind.STAGE
    assert result[-1].body[0].text in TABLES.silence_templates
    assert result[:4] == blocks


def test_silence_replaces_trailing_direction():
    blocks = _blocks(
        ("A", "calm", "You came back."),
        ("B", "tired", "I did."),
        ("A", "calm", "Why?"),
    )
    blocks.append(Block(body=[ScriptLine.stage("(She exits.)")]))
    blocks.append(Block(header=ScriptLine.header("B", "quiet"), body=[ScriptLine.dialogue("Bye.")]))

    result = enforce_ending(blocks, EndingStyle.SILENCE, TABLES, MEDIUM, random.Random(0))
    last = result[-1].body[-1]
    assert last.text in TABLES.silence_templates

    blocks[-1] = Block(
        header=ScriptLine.header("B", "quiet"),
        body=[ScriptLine.dialogue("Bye."), ScriptLine.stage("(waves)")],
    )
    result = enforce_ending(blocks, EndingStyle.SILENCE, TABLES, MEDIUM, random.Random(0))

    assert len(result) == len(blocks)
    assert result[-1].body[0].text == "Bye."
    assert result[-1].body[-1].text in TABLES.silence_templates


def test_impact_swaps_in_a_stronger_line_from_the_same_speaker():
    weak = "Well, I guess maybe I could think about it sometime later."
    blocks = _blocks(
        ("A", "calm", "What do you want?"),
        ("B", "determined", "I choose the truth now."),
        ("A", "calm", "Then say it."),
        ("B", "neutral", weak),
    )

    result = enforce_ending(blocks, EndingStyle.IMPACT, TABLES, MEDIUM, random.Random(4))

    assert result[3].body[0].text == "I choose the truth now."
    assert result[1].body[0].text == weak
    assert result[3].emotion in TABLES.resolute_emotions


def test_impact_strengthens_a_weak_final_line():
    blocks = _blocks(
        ("A", "calm", "Tell me."),
        ("B", "neutral", "Okay."),
        ("A", "calm", "Go on."),
        ("B", "neutral", "You keep asking why I ran away from all of it, I hid behind jokes"),
    )

    result = enforce_ending(blocks, EndingStyle.IMPACT, TABLES, MEDIUM, random.Random(8))
    final = result[-1].body[0].text

    assert word_count(final) <= 10
    assert final[-1] in "!."
    assert has_vocabulary(final, TABLES.power_words)
    assert final[:-1].endswith("I hid behind jokes")
    assert any(final.startswith(lead_in) for lead_in in TABLES.power_lead_ins)


def test_resolution_keeps_a_settled_line_and_calms_the_label():
    blocks = _blocks(
        ("A", "calm", "Still here?"),
        ("B", "tired", "Yes."),
        ("A", "calm", "And?"),
        ("B", "tired", "It's okay. I'm home now."),
    )

    result = enforce_ending(blocks, EndingStyle.RESOLUTION, TABLES, MEDIUM, random.Random(2))

    assert result[-1].body[0].text == "It's okay. I'm home now."
    assert result[-1].emotion in TABLES.calm_emotions


def test_resolution_appends_closing_line_from_category_template():
    blocks = _blocks(
        ("A", "calm", "Why are you here?"),
        ("B", "angry", "Because you dragged me here!"),
        ("A", "calm", "And now?"),
        ("B", "defiant", "Whatever you say"),
    )

    result = enforce_ending(blocks, EndingStyle.RESOLUTION, TABLES, MEDIUM, random.Random(6))

    assert len(result) == 5
    closing = result[-1]
    assert closing.speaker == "B"
    assert closing.emotion == "reflective"
    assert closing.body[0].text in TABLES.resolution_templates["reflective"]


def test_compatible_label_never_leaves_the_stage_window():
    blocks = _blocks(
        ("B", "vulnerable", "It hurt."),
        ("B", "neutral", "I know."),
        ("B", "reflective", "I see it."),
    )
    rng = random.Random(0)

    assert compatible_label(blocks, 0, "B", "angry", TABLES.resolute_emotions, HIGH, rng) is None
    for _ in range(10):
        label = compatible_label(blocks, 1, "B", "neutral", ["determined", "calm", "hurt"], HIGH, rng)
        assert label in {"calm", "hurt"}


def test_ending_skips_short_scripts():
    blocks = _blocks(("A", "calm", "Hi."), ("B", "neutral", "Bye"))

    assert enforce_ending(blocks, EndingStyle.SILENCE, TABLES, MEDIUM, random.Random(0)) == blocks
