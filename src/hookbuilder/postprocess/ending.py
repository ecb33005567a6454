from __future__ import annotations

import logging
import random
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from hookbuilder.prompt_builder.model import EndingStyle

from .cleanup import TERMINAL
from .lines import Block, LineKind, ScriptLine, count_content_lines, word_count
from .progression import MIN_CONTENT_LINES, stage_index
from .tables import EmotionStage, ProcessingTables

logger = logging.getLogger(__name__)

IMPACT_WORD_LIMIT = 10
RESOLUTION_WORD_LIMIT = 12
STRENGTHENED_WORD_LIMIT = 7
# The text criteria alone reach 9, so a line can
# qualify before its emotion is resolute. Impact relabels the emotion
# afterwards when the speaker's stage order allows it.
SWAP_THRESHOLD = 9
EXCLAMATION_BIAS = 0.7

CLAUSE_SPLIT = re.compile(r"\s*(?:[,;:—–]|\s-\s)\s*")
SENTENCE_SPLIT = re.compile(r"(?<=[.!?…])\s+")
FIRST_PERSON = {"i", "i'm", "i've", "i'll", "i'd"}

Position = Tuple[int, int]


def _tokens(text: str) -> List[str]:
    return [token.strip("'") for token in re.findall(r"[a-z']+", text.lower())]


def has_vocabulary(text: str, vocabulary: Iterable[str]) -> bool:
    wanted = {word.lower() for word in vocabulary}
    return any(token in wanted for token in _tokens(text))


def has_terminal_punctuation(text: str) -> bool:
    return bool(TERMINAL.search(text.strip()))


def _emotion_in(emotion: Optional[str], emotions: Iterable[str]) -> bool:
    return (emotion or "").strip().lower() in {label.lower() for label in emotions}


def score_line(text: str, emotion: Optional[str], vocabulary: Iterable[str], word_limit: int, emotions: Iterable[str]) -> int:
    score = 0
    if has_vocabulary(text, vocabulary):
        score += 4
    if word_count(text) <= word_limit:
        score += 3
    if has_terminal_punctuation(text):
        score += 2
    if _emotion_in(emotion, emotions):
        score += 1
    return score


def final_dialogue(blocks: Sequence[Block]) -> Optional[Position]:
    for block_index in range(len(blocks) - 1, -1, -1):
        block = blocks[block_index]
        if block.header is None:
            continue
        for line_index in range(len(block.body) - 1, -1, -1):
            if block.body[line_index].kind is LineKind.DIALOGUE:
                return block_index, line_index
    return None


def _set_text(blocks: List[Block], position: Position, text: str) -> None:
    block_index, line_index = position
    block = blocks[block_index]
    body = list(block.body)
    body[line_index] = body[line_index].model_copy(update={"text": text})
    blocks[block_index] = block.model_copy(update={"body": body})


def _text_at(blocks: Sequence[Block], position: Position) -> str:
    block_index, line_index = position
    return blocks[block_index].body[line_index].text


def _best_candidate(
    blocks: Sequence[Block],
    final: Position,
    vocabulary: Iterable[str],
    word_limit: int,
    emotions: Iterable[str],
) -> Tuple[Optional[Position], int]:
    speaker = blocks[final[0]].speaker
    best: Optional[Position] = None
    best_score = -1
    for block_index, block in enumerate(blocks[: final[0] + 1]):
        if block.speaker != speaker:
            continue
        for line_index, line in enumerate(block.body):
            position = (block_index, line_index)
            if position == final or line.kind is not LineKind.DIALOGUE:
                continue
            score = score_line(line.text, block.emotion, vocabulary, word_limit, emotions)
            if score >= best_score:
                best, best_score = position, score
    return best, best_score


def _stage_window(
    blocks: Sequence[Block], block_index: int, speaker: Optional[str], stages: Sequence[EmotionStage]
) -> Tuple[int, int]:
    before = [stage_index(block.emotion, stages) for block in blocks[:block_index] if block.speaker == speaker]
    after = [stage_index(block.emotion, stages) for block in blocks[block_index + 1 :] if block.speaker == speaker]
    floor = max((index for index in before if index is not None), default=0)
    ceiling = min((index for index in after if index is not None), default=len(stages))
    return floor, ceiling


def compatible_label(
    blocks: Sequence[Block],
    block_index: int,
    speaker: Optional[str],
    current: Optional[str],
    options: Sequence[str],
    stages: Sequence[EmotionStage],
    rng: random.Random,
) -> Optional[str]:
    """Pick a replacement label that cannot break the speaker's stage order."""
    current_stage = stage_index(current, stages)
    floor, ceiling = _stage_window(blocks, block_index, speaker, stages)
    allowed = []
    for label in options:
        stage = stage_index(label, stages)
        if current_stage is not None:
            if stage == current_stage:
                allowed.append(label)
        elif stage is None or floor <= stage <= ceiling:
            allowed.append(label)
    return rng.choice(allowed) if allowed else None


def _upgrade_emotion(
    blocks: List[Block],
    block_index: int,
    emotions: Sequence[str],
    stages: Sequence[EmotionStage],
    rng: random.Random,
) -> None:
    block = blocks[block_index]
    if _emotion_in(block.emotion, emotions):
        return
    label = compatible_label(blocks, block_index, block.speaker, block.emotion, emotions, stages, rng)
    if label:
        blocks[block_index] = block.model_copy(update={"header": block.header.with_emotion(label)})


def truncate_at_clause(sentence: str, limit: int) -> str:
    if word_count(sentence) <= limit:
        return sentence
    clauses = [clause for clause in CLAUSE_SPLIT.split(sentence) if clause.strip()]
    kept = ""
    for clause in clauses:
        candidate = f"{kept}, {clause}" if kept else clause
        if word_count(candidate) > limit:
            break
        kept = candidate
    if kept:
        return kept
    for clause in reversed(clauses):
        if word_count(clause) <= limit:
            return clause
    return " ".join(sentence.split()[:limit])


def _terminal_mark(rng: random.Random) -> str:
    return "!" if rng.random() < EXCLAMATION_BIAS else "."


def strengthen_line(text: str, tables: ProcessingTables, rng: random.Random) -> str:
    """Cut a weak closing line down to a short, punchy sentence."""
    sentences = [part for part in SENTENCE_SPLIT.split(text.strip()) if word_count(part)]
    if not sentences:
        return text
    core = truncate_at_clause(sentences[-1], STRENGTHENED_WORD_LIMIT)
    core = core.strip().rstrip(" ,;:-–—.!?…\"'”’")
    if not has_vocabulary(core, tables.power_words) and tables.power_lead_ins:
        first = core.split()[0] if core.split() else ""
        if first.lower() not in FIRST_PERSON:
            core = core[:1].lower() + core[1:]
        core = f"{rng.choice(tables.power_lead_ins)} {core}"
    return f"{core}{_terminal_mark(rng)}"


def _swap(blocks: List[Block], first: Position, second: Position) -> None:
    first_text, second_text = _text_at(blocks, first), _text_at(blocks, second)
    _set_text(blocks, first, second_text)
    _set_text(blocks, second, first_text)


def _silence(blocks: List[Block], tables: ProcessingTables, rng: random.Random) -> List[Block]:
    template = rng.choice(tables.silence_templates)
    last = blocks[-1]
    if last.body and last.body[-1].kind is LineKind.STAGE:
        body = list(last.body[:-1]) + [ScriptLine.stage(template)]
        blocks[-1] = last.model_copy(update={"body": body})
    else:
        blocks.append(Block(body=[ScriptLine.stage(template)]))
    return blocks


def _impact(
    blocks: List[Block], tables: ProcessingTables, stages: Sequence[EmotionStage], rng: random.Random
) -> List[Block]:
    final = final_dialogue(blocks)
    if final is None:
        return blocks
    block = blocks[final[0]]
    current = score_line(
        _text_at(blocks, final), block.emotion, tables.power_words, IMPACT_WORD_LIMIT, tables.resolute_emotions
    )
    if current < SWAP_THRESHOLD:
        candidate, candidate_score = _best_candidate(
            blocks, final, tables.power_words, IMPACT_WORD_LIMIT, tables.resolute_emotions
        )
        if candidate is not None and candidate_score >= SWAP_THRESHOLD:
            logger.debug("Swapping a stronger line into the closing position")
            _swap(blocks, final, candidate)
        else:
            _set_text(blocks, final, strengthen_line(_text_at(blocks, final), tables, rng))
    _upgrade_emotion(blocks, final[0], tables.resolute_emotions, stages, rng)
    return blocks


def _resolution(
    blocks: List[Block], tables: ProcessingTables, stages: Sequence[EmotionStage], rng: random.Random
) -> List[Block]:
    final = final_dialogue(blocks)
    if final is None:
        return blocks
    block = blocks[final[0]]
    text = _text_at(blocks, final)
    text_score = score_line(text, None, tables.gentle_words, RESOLUTION_WORD_LIMIT, ())
    if text_score == SWAP_THRESHOLD:
        _upgrade_emotion(blocks, final[0], tables.calm_emotions, stages, rng)
        return blocks

    candidate, candidate_score = _best_candidate(
        blocks, final, tables.gentle_words, RESOLUTION_WORD_LIMIT, tables.calm_emotions
    )
    if candidate is not None and candidate_score >= SWAP_THRESHOLD:
        logger.debug("Swapping a settled line into the closing position")
        _swap(blocks, final, candidate)
        _upgrade_emotion(blocks, final[0], tables.calm_emotions, stages, rng)
        return blocks

    category = tables.resolution_category(block.emotion)
    label = compatible_label(blocks, len(blocks), block.speaker, None, [category], stages, rng)
    closing = Block(
        header=ScriptLine.header(block.speaker or "", label or block.emotion or "neutral"),
        body=[ScriptLine.dialogue(rng.choice(tables.resolution_templates[category]))],
    )
    logger.debug("Appending a %s closing line for %s", category, block.speaker)
    blocks.append(closing)
    return blocks


def enforce_ending(
    blocks: List[Block],
    style: EndingStyle,
    tables: ProcessingTables,
    stages: Sequence[EmotionStage],
    rng: random.Random,
) -> List[Block]:
    if count_content_lines(blocks) < MIN_CONTENT_LINES:
        return blocks
    result = list(blocks)
    if style is EndingStyle.SILENCE:
        return _silence(result, tables, rng)
    if style is EndingStyle.RESOLUTION:
        return _resolution(result, tables, stages, rng)
    return _impact(result, tables, stages, rng)
