from __future__ import annotations

import logging
import re
from typing import List, Optional

from .lines import Block, LineKind, ScriptLine, is_stage_direction

logger = logging.getLogger(__name__)

DEFAULT_EMOTION = "neutral"

QUOTE_PAIRS = {'"': '"', "“": "”", "”": "”", "'": "'", "‘": "’"}
TRAILING_DIRECTION = re.compile(r"^(?P<speech>.*?[.!?…][\"'”’]?)\s*(?P<stage>\([^()]*[A-Za-z][^()]*\))$")


def strip_quotes(text: str) -> str:
    text = text.strip()
    while len(text) >= 2 and QUOTE_PAIRS.get(text[0]) == text[-1]:
        text = text[1:-1].strip()
    return text


def split_dialogue(text: str) -> List[ScriptLine]:
    """Turn one spoken line into dialogue, plus a stage line for a trailing ``(direction)``."""
    text = text.strip()
    if not text:
        return []
    if is_stage_direction(text):
        return [ScriptLine.stage(text)]
    match = TRAILING_DIRECTION.match(text)
    if match:
        speech = strip_quotes(match.group("speech"))
        lines = [ScriptLine.dialogue(speech)] if speech else []
        return lines + [ScriptLine.stage(match.group("stage"))]
    speech = strip_quotes(text)
    return [ScriptLine.dialogue(speech)] if speech else []


def format_headers(lines: List[ScriptLine]) -> List[ScriptLine]:
    formatted: List[ScriptLine] = []
    for line in lines:
        if line.kind is LineKind.HEADER:
            emotion = (line.emotion or "").strip() or DEFAULT_EMOTION
            formatted.append(ScriptLine.header(line.speaker or "", emotion))
            if line.inline:
                formatted.extend(split_dialogue(line.inline))
        elif line.kind is LineKind.DIALOGUE:
            formatted.extend(split_dialogue(line.text))
        else:
            formatted.append(line)
    return formatted


def _continuation(header: ScriptLine) -> Block:
    return Block(header=ScriptLine.header(header.speaker or "", header.emotion or DEFAULT_EMOTION))


def build_blocks(lines: List[ScriptLine]) -> List[Block]:
    """Group classified lines into character blocks.

    Dialogue that follows a stage direction gets a continuation header so
    every spoken line sits directly under a header. Dialogue that appears
    before any header is model preamble and is dropped.
    """
    blocks: List[Block] = []
    current: Optional[Block] = None
    last_header: Optional[ScriptLine] = None
    after_blank = False
    dropped = 0

    for line in lines:
        if line.kind is LineKind.BLANK:
            after_blank = current is not None and bool(current.body)
            continue

        if line.kind is LineKind.HEADER:
            current = Block(header=line)
            blocks.append(current)
            last_header = line
        elif line.kind is LineKind.STAGE:
            if current is None or after_blank:
                current = Block()
                blocks.append(current)
            current.body.append(line)
        elif line.kind is LineKind.DIALOGUE:
            if current is None or current.header is None:
                if last_header is None:
                    dropped += 1
                    continue
                current = _continuation(last_header)
                blocks.append(current)
            elif current.body and current.body[-1].kind is LineKind.STAGE:
                current = _continuation(current.header)
                blocks.append(current)
            if current.body and current.body[-1].kind is LineKind.DIALOGUE:
                previous = current.body[-1]
                current.body[-1] = previous.model_copy(update={"text": f"{previous.text} {line.text}"})
            else:
                current.body.append(line)
        after_blank = False

    if dropped:
        logger.debug("Dropped %d preamble line(s) before the first character header", dropped)
    return [block for block in blocks if block.body]
