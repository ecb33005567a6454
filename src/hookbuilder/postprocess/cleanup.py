"""Text-level cleanup passes.

Each pass is total: input it cannot make sense of is returned unchanged.
"""

from __future__ import annotations

import re
from typing import List

from .lines import SPEAKER_MARKER, Block, LineKind, ScriptLine
from .tables import ProcessingTables

MOJIBAKE = (
    ("â€™", "'"),
    ("â€˜", "'"),
    ("â€œ", '"'),
    ("â€\x9d", '"'),
    ("â€”", "—"),
    ("â€“", "–"),
    ("â€¦", "..."),
    ("â€", '"'),
    ("Â\xa0", " "),
)
CONTROL_CHARACTERS = re.compile(r"[\x00-\x08\x0b-\x1f\x7f-\x9f\u200b-\u200f\u2060\ufeff\ufffd]")

CONTRACTION_APOSTROPHE = re.compile(
    r"([A-Za-z])[ \t]*[’‘`´'][ \t]*(s|t|re|ve|ll|d|m)\b", re.IGNORECASE
)
SPACE_BEFORE_PUNCTUATION = re.compile(r"[ \t]+([,.!?;:])")
MISSING_SPACE_AFTER = re.compile(r"([,!?;:])(?=[A-Za-z])")
MISSING_SPACE_AFTER_PERIOD = re.compile(r"(?<=[a-z])\.(?=[A-Z])")
REPEATED_SPACES = re.compile(r" {2,}")

LETTERLESS_PARENTHETICAL = re.compile(r"[ \t]*(?:\([^()A-Za-z]*\)|\[[^\[\]A-Za-z]*\])")

FILLERS = (
    re.compile(r"\b(?:u+m+|u+h+|e+r+m+|h+m+)\b[,.]?[ \t]*", re.IGNORECASE),
    re.compile(r"\b(?:basically|literally)\b,?[ \t]*", re.IGNORECASE),
    re.compile(r"\blike,[ \t]*", re.IGNORECASE),
    re.compile(r"(^|[,.;!?][ \t]*)(?:you know|i mean),[ \t]*", re.IGNORECASE),
    re.compile(r",[ \t]*(?:you know|i mean)(?=[ \t]*(?:[.!?]|$))", re.IGNORECASE),
)

CONTRACTIONS = {
    "i am": "I'm",
    "do not": "don't",
    "does not": "doesn't",
    "did not": "didn't",
    "cannot": "can't",
    "can not": "can't",
    "will not": "won't",
    "would not": "wouldn't",
    "should not": "shouldn't",
    "could not": "couldn't",
    "is not": "isn't",
    "are not": "aren't",
    "was not": "wasn't",
    "have not": "haven't",
    "it is": "it's",
    "that is": "that's",
    "you are": "you're",
    "we are": "we're",
    "they are": "they're",
    "i will": "I'll",
    "let us": "let's",
}
CONTRACTION_PATTERN = re.compile(
    r"\b(" + "|".join(r"\s+".join(map(re.escape, phrase.split())) for phrase in CONTRACTIONS)
    + r")\b(?![ \t]*(?:[.!?,;:]|$))",
    re.IGNORECASE,
)
SENTENCE_START = re.compile(r"([.!?][\"'”’)]*\s+)([a-z])")
FIRST_LETTER = re.compile(r"^([^A-Za-z]*)([a-z])")
LONE_I = re.compile(r"\bi\b")
TERMINAL = re.compile(r"[.!?…][\"'”’)\]]*$")


def strip_control_characters(text: str) -> str:
    text = (text or "").replace("\r\n", "\n").replace("\r", "\n")
    for broken, fixed in MOJIBAKE:
        text = text.replace(broken, fixed)
    text = text.replace("\U0001f5e3\ufe0f", SPEAKER_MARKER)
    return CONTROL_CHARACTERS.sub("", text)


def normalize_punctuation(text: str) -> str:
    """Tidy spacing around punctuation and straighten contraction apostrophes.

    Applying this twice gives the same result as applying it once.
    """
    text = CONTRACTION_APOSTROPHE.sub(r"\1'\2", text)
    text = SPACE_BEFORE_PUNCTUATION.sub(r"\1", text)
    text = MISSING_SPACE_AFTER.sub(r"\1 ", text)
    text = MISSING_SPACE_AFTER_PERIOD.sub(". ", text)
    return REPEATED_SPACES.sub(" ", text)


def is_garbled_emotion(emotion: str, tables: ProcessingTables, vocabulary: set[str] | None = None) -> bool:
    label = emotion.strip().lower()
    if not re.search(r"[a-z]", label):
        return True
    if re.search(r"[^a-z ,'\-]", label):
        return True
    tokens = label.split()
    if len(tokens) == 1 and len(label) > tables.max_emotion_token_length:
        known = vocabulary if vocabulary is not None else tables.emotion_vocabulary()
        return label not in known
    return False


def substitute_invalid_emotions(blocks: List[Block], tables: ProcessingTables) -> List[Block]:
    vocabulary = tables.emotion_vocabulary()
    result: List[Block] = []
    for block in blocks:
        header = block.header
        if header is None:
            result.append(block)
            continue
        label = (header.emotion or "").strip().lower()
        if label in tables.emotion_replacements:
            header = header.with_emotion(tables.emotion_replacements[label])
        elif is_garbled_emotion(label, tables, vocabulary):
            header = header.with_emotion("neutral")
        result.append(block.model_copy(update={"header": header}))
    return result


def _prune(blocks: List[Block]) -> List[Block]:
    return [block for block in blocks if block.body]


def remove_malformed_directions(blocks: List[Block]) -> List[Block]:
    result: List[Block] = []
    for block in blocks:
        body: List[ScriptLine] = []
        for line in block.body:
            if line.kind not in (LineKind.DIALOGUE, LineKind.STAGE):
                body.append(line)
                continue
            cleaned = REPEATED_SPACES.sub(" ", LETTERLESS_PARENTHETICAL.sub("", line.text)).strip()
            if cleaned:
                body.append(line.model_copy(update={"text": cleaned}))
        result.append(block.model_copy(update={"body": body}))
    return _prune(result)


def _contract(match: re.Match) -> str:
    phrase = match.group(0)
    replacement = CONTRACTIONS[re.sub(r"\s+", " ", phrase.lower())]
    if phrase[0].isupper():
        replacement = replacement[0].upper() + replacement[1:]
    return replacement


def _tidy(text: str) -> str:
    text = REPEATED_SPACES.sub(" ", text)
    text = re.sub(r",[ \t]*(?=[,.!?;:])", "", text)
    text = SPACE_BEFORE_PUNCTUATION.sub(r"\1", text)
    text = re.sub(r"^[\s,;:]+", "", text)
    return text.strip()


def _recapitalize(text: str) -> str:
    text = FIRST_LETTER.sub(lambda m: m.group(1) + m.group(2).upper(), text, count=1)
    text = SENTENCE_START.sub(lambda m: m.group(1) + m.group(2).upper(), text)
    return LONE_I.sub("I", text)


def ensure_terminal_punctuation(text: str) -> str:
    text = text.rstrip()
    if not text or TERMINAL.search(text):
        return text
    text = text.rstrip(",;:-–— ")
    return f"{text}."


def naturalize_line(text: str) -> str:
    """Strip filler words and stiff phrasing from a single dialogue line."""
    updated, previous = text, None
    # one filler can consume the punctuation the next one anchors on
    while updated != previous:
        previous = updated
        for pattern in FILLERS:
            updated = pattern.sub(lambda m: m.group(1) if m.re.groups else "", updated)
    updated = CONTRACTION_PATTERN.sub(_contract, updated)
    updated = _tidy(updated)
    if not re.search(r"[A-Za-z0-9]", updated):
        return text
    return ensure_terminal_punctuation(_recapitalize(updated))


def naturalize_dialogue(blocks: List[Block]) -> List[Block]:
    result: List[Block] = []
    for block in blocks:
        body = [
            line.model_copy(update={"text": naturalize_line(line.text)})
            if line.kind is LineKind.DIALOGUE
            else line
            for line in block.body
        ]
        result.append(block.model_copy(update={"body": body}))
    return result


def normalize_whitespace(text: str) -> str:
    text = "\n".join(line.strip() for line in text.split("\n"))
    return re.sub(r"\n{3,}", "\n\n", text).strip()
