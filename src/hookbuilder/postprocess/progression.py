"""Emotional-progression enforcement for the resistant character.

The resistant character must move through every stage configured for the
resistance level, and never step back to an earlier stage.
"""

from __future__ import annotations

import logging
import random
import re
from collections import Counter
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .lines import Block, ScriptLine, count_content_lines
from .tables import EmotionStage

logger = logging.getLogger(__name__)

MIN_CONTENT_LINES = 6


def stage_index(label: Optional[str], stages: Sequence[EmotionStage]) -> Optional[int]:
    """Map an emotion label to its stage: whole-label match first, then the first matching token."""
    normalized = (label or "").strip().lower()
    if not normalized:
        return None
    for index, stage in enumerate(stages):
        if normalized in stage.synonyms:
            return index
    for token in re.findall(r"[a-z]+", normalized):
        for index, stage in enumerate(stages):
            if token in stage.synonyms:
                return index
    return None


def is_negative(label: Optional[str], negative: Iterable[str]) -> bool:
    normalized = (label or "").strip().lower()
    negative_set = set(negative)
    return normalized in negative_set or any(token in negative_set for token in re.findall(r"[a-z]+", normalized))


def speaker_order(blocks: Sequence[Block]) -> List[str]:
    seen: List[str] = []
    for block in blocks:
        if block.speaker and block.speaker not in seen:
            seen.append(block.speaker)
    return seen


def main_characters(blocks: Sequence[Block]) -> List[str]:
    """The two speakers with the most header blocks, in order of first appearance on ties."""
    order = speaker_order(blocks)
    counts = Counter(block.speaker for block in blocks if block.speaker)
    ranked = sorted(order, key=lambda name: (-counts[name], order.index(name)))
    return ranked[:2]


def resistant_character(blocks: Sequence[Block], mains: Sequence[str], negative: Iterable[str]) -> str:
    negative = list(negative)
    scores: Dict[str, int] = {name: 0 for name in mains}
    for block in blocks:
        if block.speaker in scores and is_negative(block.emotion, negative):
            scores[block.speaker] += 1
    first, second = sorted(mains, key=speaker_order(blocks).index)
    return first if scores[first] > scores[second] else second


def _classified(blocks: Sequence[Block], speaker: str, stages: Sequence[EmotionStage]) -> List[Tuple[int, Optional[int]]]:
    return [
        (position, stage_index(block.emotion, stages))
        for position, block in enumerate(blocks)
        if block.speaker == speaker
    ]


def _bounds(classified: Sequence[Tuple[int, Optional[int]]], stage: int, total: int) -> Tuple[int, int]:
    """Block positions between which a line for ``stage`` keeps the order intact."""
    lower = max((position for position, index in classified if index is not None and index < stage), default=-1)
    upper = min((position for position, index in classified if index is not None and index > stage), default=total)
    return lower, upper


def _relabel(blocks: List[Block], position: int, label: str) -> None:
    block = blocks[position]
    blocks[position] = block.model_copy(update={"header": block.header.with_emotion(label)})


def _fill_missing_stage(
    blocks: List[Block],
    stage_number: int,
    stages: Sequence[EmotionStage],
    resistant: str,
    other: str,
    rng: random.Random,
) -> None:
    stage = stages[stage_number]
    classified = _classified(blocks, resistant, stages)
    lower, upper = _bounds(classified, stage_number, len(blocks))

    unclassified = [position for position, index in classified if index is None]
    if unclassified:
        between = [position for position in unclassified if lower < position < upper]
        position = (between or unclassified)[0]
        _relabel(blocks, position, stage.canonical)
        logger.debug("Relabelled %s at block %d as %s", resistant, position, stage.canonical)
        return

    anchors = [
        position
        for position, block in enumerate(blocks)
        if block.speaker == other and lower < position < upper
    ]
    insert_at = anchors[-1] + 1 if anchors else upper
    synthesized = Block(
        header=ScriptLine.header(resistant, stage.canonical),
        body=[ScriptLine.dialogue(rng.choice(stage.templates))],
    )
    blocks.insert(insert_at, synthesized)
    logger.debug("Inserted %s stage line for %s at block %d", stage.name, resistant, insert_at)


def _restore_order(blocks: List[Block], resistant: str, stages: Sequence[EmotionStage]) -> None:
    classified = [
        (position, index)
        for position, index in _classified(blocks, resistant, stages)
        if index is not None
    ]
    sequence = [index for _, index in classified]
    if all(earlier <= later for earlier, later in zip(sequence, sequence[1:])):
        return
    labels = [blocks[position].emotion for position, _ in classified]
    ordered = [label for _, label in sorted(zip(sequence, labels), key=lambda pair: pair[0])]
    for (position, _), label in zip(classified, ordered):
        _relabel(blocks, position, label or "")
    logger.debug("Reordered emotion labels for %s", resistant)


def enforce_progression(
    blocks: List[Block],
    stages: Sequence[EmotionStage],
    negative_emotions: Iterable[str],
    rng: random.Random,
) -> List[Block]:
    if not stages or count_content_lines(blocks) < MIN_CONTENT_LINES:
        return blocks
    mains = main_characters(blocks)
    if len(mains) < 2:
        return blocks

    resistant = resistant_character(blocks, mains, negative_emotions)
    other = mains[0] if mains[1] == resistant else mains[1]
    result = list(blocks)

    for stage_number in range(len(stages)):
        present = {index for _, index in _classified(result, resistant, stages)}
        if stage_number not in present:
            _fill_missing_stage(result, stage_number, stages, resistant, other, rng)

    _restore_order(result, resistant, stages)
    return result


def resistant_stage_sequence(blocks: Sequence[Block], stages: Sequence[EmotionStage], resistant: str) -> List[int]:
    return [index for _, index in _classified(blocks, resistant, stages) if index is not None]
