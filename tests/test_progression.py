from __future__ import annotations

import random

from hookbuilder.postprocess.lines import Block, LineKind, ScriptLine
from hookbuilder.postprocess.pipeline import ScriptPostProcessor
from hookbuilder.postprocess.progression import (
    enforce_progression,
    main_characters,
    resistant_character,
    resistant_stage_sequence,
    stage_index,
)
from hookbuilder.postprocess.tables import ProcessingTables
from hookbuilder.prompt_builder.model import ResistanceLevel

TABLES = ProcessingTables()


def _blocks(*turns):
    return [
        Block(header=ScriptLine.header(speaker, emotion), body=[ScriptLine.dialogue(text)])
        for speaker, emotion, text in turns
    ]


def _labels(blocks, speaker):
    return [block.emotion for block in blocks if block.speaker == speaker]


def test_stage_index_prefers_whole_label_then_first_token():
    stages = TABLES.stages_for(ResistanceLevel.HIGH)

    assert stage_index("sarcastic", stages) == 1
    assert stage_index("quietly angry", stages) == 2
    assert stage_index("angry but hurt", stages) == 2
    assert stage_index("neutral", stages) is None


def test_main_and_resistant_characters():
    blocks = _blocks(
        ("A", "calm", "One."),
        ("B", "defensive", "Two."),
        ("C", "angry", "Three."),
        ("A", "calm", "Four."),
        ("B", "dismissive", "Five."),
    )

    mains = main_characters(blocks)

    assert mains == ["A", "B"]
    assert resistant_character(blocks, mains, TABLES.negative_emotions) == "B"


def test_resistant_tie_goes_to_second_speaker():
    blocks = _blocks(("A", "angry", "One."), ("B", "angry", "Two."))

    assert resistant_character(blocks, ["A", "B"], TABLES.negative_emotions) == "B"


def test_low_resistance_relabels_unclassified_lines_in_order():
    turns = []
    for number in range(4):
        turns.append(("MENTOR", "calm", f"Point {number}."))
        turns.append(("SAM", "neutral", f"Reply {number}."))
    blocks = _blocks(*turns)

    result = enforce_progression(
        blocks, TABLES.stages_for(ResistanceLevel.LOW), TABLES.negative_emotions, random.Random(1)
    )

    assert _labels(result, "SAM") == ["curious", "considering", "understanding", "accepting"]
    assert [block.body[0].text for block in result] == [block.body[0].text for block in blocks]


def test_medium_resistance_reorders_labels_without_moving_text():
    blocks = _blocks(
        ("A", "calm", "Look at this."),
        ("B", "accepting", "First."),
        ("A", "calm", "And this."),
        ("B", "defensive", "Second."),
        ("A", "calm", "Well?"),
        ("B", "questioning", "Third."),
        ("A", "calm", "Go on."),
        ("B", "challenged", "Fourth."),
        ("A", "calm", "And?"),
        ("B", "realizing", "Fifth."),
    )

    result = enforce_progression(
        blocks, TABLES.stages_for(ResistanceLevel.MEDIUM), TABLES.negative_emotions, random.Random(1)
    )

    assert _labels(result, "B") == ["defensive", "challenged", "questioning", "realizing", "accepting"]
    assert [line.text for block in result for line in block.body] == [
        line.text for block in blocks for line in block.body
    ]


def test_medium_resistance_relabels_between_neighbours_then_synthesizes():
    blocks = _blocks(
        ("A", "calm", "Tell me what happened."),
        ("B", "defensive", "Nothing happened."),
        ("A", "calm", "Something did."),
        ("B", "neutral", "Maybe."),
        ("A", "calm", "Say it."),
        ("B", "accepting", "Fine. I was wrong."),
    )
    stages = TABLES.stages_for(ResistanceLevel.MEDIUM)

    result = enforce_progression(blocks, stages, TABLES.negative_emotions, random.Random(3))

    assert _labels(result, "B") == ["defensive", "challenged", "questioning", "realizing", "accepting"]
    relabelled = next(block for block in result if block.body[0].text == "Maybe.")
    assert relabelled.emotion == "challenged"
    inserted = [block for block in result if block.emotion in {"questioning", "realizing"}]
    assert inserted[0].body[0].text in stages[2].templates
    assert inserted[1].body[0].text in stages[3].templates
    assert result.index(inserted[0]) == 5


def test_high_resistance_with_three_stages_gets_all_eight_in_order():
    blocks = _blocks(
        ("MENTOR", "calm", "You keep running."),
        ("JAY", "skeptical", "Says who?"),
        ("MENTOR", "calm", "Says your silence."),
        ("JAY", "angry", "Back off!"),
        ("MENTOR", "calm", "I'm not leaving."),
        ("JAY", "reflective", "Maybe I built this cage."),
    )
    stages = TABLES.stages_for(ResistanceLevel.HIGH)

    result = enforce_progression(blocks, stages, TABLES.negative_emotions, random.Random(5))

    sequence = resistant_stage_sequence(result, stages, "JAY")
    assert sorted(set(sequence)) == list(range(8))
    assert sequence == sorted(sequence)
    for block in result:
        if block.speaker == "JAY" and block.body[0].text not in {"Says who?", "Back off!", "Maybe I built this cage."}:
            assert block.body[0].text in stages[stage_index(block.emotion, stages)].templates


def test_progression_skips_short_or_single_speaker_scripts():
    stages = TABLES.stages_for(ResistanceLevel.HIGH)
    short = _blocks(("A", "calm", "Hi."), ("B", "angry", "No."))
    solo = _blocks(*[("A", "calm", f"Line {n}.") for n in range(6)])

    assert enforce_progression(short, stages, TABLES.negative_emotions, random.Random(0)) == short
    assert enforce_progression(solo, stages, TABLES.negative_emotions, random.Random(0)) == solo


def test_pipeline_enforces_high_progression_end_to_end():
    raw = (
        "🗣 MENTOR (calm): You keep running.\n\n"
        "🗣 JAY (skeptical): \"Says who?\"\n\n"
        "🗣 MENTOR (calm):\nSays your silence.\n\n"
        "🗣 JAY (angry):\nBack off!\n\n"
        "🗣 MENTOR (calm):\nI'm not leaving.\n\n"
        "🗣 JAY (reflective):\nMaybe I built this cage."
    )
    stages = TABLES.stages_for(ResistanceLevel.HIGH)

    processed = ScriptPostProcessor(rng=random.Random(11)).process(raw, "High", "Impact")

    jay = [
        stage_index(line.emotion, stages)
        for line in processed.lines
        if line.kind is LineKind.HEADER and line.speaker == "JAY"
    ]
    classified = [index for index in jay if index is not None]
    assert sorted(set(classified)) == list(range(8))
    assert classified == sorted(classified)
