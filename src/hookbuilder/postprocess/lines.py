"""Line classification for generated scripts.

Text is classified once into :class:`ScriptLine` records; later passes work
on these records (and on :class:`Block` groups of them) instead of
re-matching raw text.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, List, Optional

from pydantic import BaseModel, Field

SPEAKER_MARKER = "🗣"

HEADER_PATTERN = re.compile(
    r"^(?P<speaker>[^():]+?)\s*(?:\((?P<emotion>[^()]*)\))?\s*:\s*(?P<rest>.*)$"
)
LEADING_TAG = re.compile(r"^\((?P<emotion>[A-Za-z][A-Za-z ,'-]{0,30})\)\s*(?P<rest>.*)$")
MARKDOWN_DECORATION = re.compile(r"[*_]{1,3}")
STAGE_PATTERN = re.compile(r"^(?:\([^()]*\)|\[[^\[\]]*\])$")
WORD = re.compile(r"[A-Za-z0-9]")


class LineKind(str, Enum):
    HEADER = "header"
    DIALOGUE = "dialogue"
    STAGE = "stage"
    BLANK = "blank"


class ScriptLine(BaseModel):
    kind: LineKind
    text: str = ""
    speaker: Optional[str] = None
    emotion: Optional[str] = None
    inline: Optional[str] = Field(default=None, description="Dialogue found after a header colon")

    @classmethod
    def header(cls, speaker: str, emotion: Optional[str]) -> "ScriptLine":
        line = cls(kind=LineKind.HEADER, speaker=speaker, emotion=emotion)
        line.text = line.render()
        return line

    @classmethod
    def dialogue(cls, text: str) -> "ScriptLine":
        return cls(kind=LineKind.DIALOGUE, text=text)

    @classmethod
    def stage(cls, text: str) -> "ScriptLine":
        return cls(kind=LineKind.STAGE, text=text)

    @classmethod
    def blank(cls) -> "ScriptLine":
        return cls(kind=LineKind.BLANK)

    def render(self) -> str:
        if self.kind is LineKind.HEADER:
            emotion = f" ({self.emotion})" if self.emotion is not None else ""
            return f"{SPEAKER_MARKER} {self.speaker}{emotion}:"
        if self.kind is LineKind.BLANK:
            return ""
        return self.text

    def with_emotion(self, emotion: str) -> "ScriptLine":
        updated = self.model_copy(update={"emotion": emotion})
        updated.text = updated.render()
        return updated


class Block(BaseModel):
    """A character header plus the lines spoken or performed under it.

    Blocks without a header hold stand-alone stage directions.
    """

    header: Optional[ScriptLine] = None
    body: List[ScriptLine] = Field(default_factory=list)

    @property
    def speaker(self) -> Optional[str]:
        return self.header.speaker if self.header else None

    @property
    def emotion(self) -> Optional[str]:
        return self.header.emotion if self.header else None

    def dialogue_lines(self) -> List[ScriptLine]:
        return [line for line in self.body if line.kind is LineKind.DIALOGUE]

    def lines(self) -> List[ScriptLine]:
        return ([self.header] if self.header else []) + list(self.body)


def is_stage_direction(text: str) -> bool:
    return bool(STAGE_PATTERN.match(text.strip()))


def parse_header(raw: str) -> Optional[ScriptLine]:
    """Parse a line carrying the speaker marker and a colon into a header record."""
    if SPEAKER_MARKER not in raw or ":" not in raw:
        return None
    cleaned = MARKDOWN_DECORATION.sub("", raw.replace(SPEAKER_MARKER, " ")).strip()
    match = HEADER_PATTERN.match(cleaned)
    if not match:
        return None
    speaker = re.sub(r"\s+", " ", match.group("speaker")).strip(" -–—")
    if not speaker:
        return None
    emotion = match.group("emotion")
    rest = match.group("rest").strip()
    if emotion is None:
        leading = LEADING_TAG.match(rest)
        if leading:
            emotion = leading.group("emotion")
            rest = leading.group("rest").strip()
    if emotion is not None:
        emotion = emotion.strip()
    line = ScriptLine(
        kind=LineKind.HEADER,
        speaker=speaker,
        emotion=emotion,
        inline=rest or None,
    )
    line.text = line.render()
    return line


def classify_line(raw: str) -> ScriptLine:
    stripped = raw.strip()
    if not stripped:
        return ScriptLine.blank()
    header = parse_header(stripped)
    if header is not None:
        return header
    if is_stage_direction(stripped):
        return ScriptLine.stage(stripped)
    return ScriptLine.dialogue(stripped)


def classify(text: str) -> List[ScriptLine]:
    return [classify_line(raw) for raw in text.split("\n")]


def render_lines(lines: Iterable[ScriptLine]) -> str:
    return "\n".join(line.render() for line in lines)


def flatten(blocks: Iterable[Block]) -> List[ScriptLine]:
    """Blocks as a line sequence with one blank line between blocks."""
    lines: List[ScriptLine] = []
    for block in blocks:
        block_lines = block.lines()
        if not block_lines:
            continue
        if lines:
            lines.append(ScriptLine.blank())
        lines.extend(block_lines)
    return lines


def count_content_lines(blocks: Iterable[Block]) -> int:
    return sum(len(block.lines()) for block in blocks)


def word_count(text: str) -> int:
    return sum(1 for token in text.split() if WORD.search(token))
