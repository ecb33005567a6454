"""Best-effort mining of key points and metaphors from a free-text philosophy.

The results only shape prompt content, so every heuristic here prefers
returning something plausible over being exact.
"""

from __future__ import annotations

import re
from typing import Iterable, List

SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")
PHRASE_SPLIT = re.compile(r"[,;]\s*")
LIST_ITEM = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s+(?P<item>.+?)\s*$", re.MULTILINE)
CONTRAST = re.compile(
    r"\bnot\s+(?P<x>[^,.;!?]+?),?\s+but\s+(?P<y>[^,.;!?]+)",
    re.IGNORECASE,
)
LEAD_IN = re.compile(
    r"\b(?:it'?s about|this is(?: about)?|the point is|the truth is)\s+(?P<rest>[^.!?\n]+)",
    re.IGNORECASE,
)

METAPHOR_PATTERNS = (
    re.compile(r"\blike\s+an?\s+[a-z]+(?:\s+[a-z]+){0,3}", re.IGNORECASE),
    re.compile(r"\bas\s+[a-z]+\s+as\s+an?\s+[a-z]+(?:\s+[a-z]+)?", re.IGNORECASE),
    re.compile(r"\b(?:is|are)\s+an?\s+(?!lot\b|few\b|little\b|bit\b)[a-z]+(?:\s+(?:of\s+)?[a-z]+){0,2}", re.IGNORECASE),
    re.compile(r"\b(?:chapter|page|story|book)\s+of\s+(?:your|my|our|his|her|their)\s+[a-z]+", re.IGNORECASE),
    re.compile(r"\bmirror\b[^.!?\n]{0,40}", re.IGNORECASE),
    re.compile(r"\b(?:foundation|walls?|bridges?|brick by brick)\b[^.!?\n]{0,40}", re.IGNORECASE),
    re.compile(r"\b(?:journey|road|path)\b[^.!?\n]{0,40}", re.IGNORECASE),
)

MIN_POINT_WORDS = 3


def _tidy(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip(" \t\n-–—,;:")


def _dedupe(items: Iterable[str], limit: int) -> List[str]:
    seen: set[str] = set()
    result: List[str] = []
    for item in items:
        cleaned = _tidy(item)
        key = cleaned.lower().rstrip(".!?")
        if not cleaned or key in seen:
            continue
        seen.add(key)
        result.append(cleaned)
        if len(result) >= limit:
            break
    return result


def split_sentences(text: str) -> List[str]:
    return [part.strip() for part in SENTENCE_SPLIT.split(text.strip()) if part.strip()]


def extract_key_points(text: str, limit: int = 5) -> List[str]:
    """Pull up to ``limit`` distinct key points out of ``text``."""
    if not text or not text.strip():
        return []

    candidates: List[str] = []
    candidates.extend(match.group("item") for match in LIST_ITEM.finditer(text))
    for match in CONTRAST.finditer(text):
        candidates.append(f"Not {_tidy(match.group('x'))}, but {_tidy(match.group('y'))}")
    for match in LEAD_IN.finditer(text):
        rest = _tidy(match.group("rest"))
        if rest:
            candidates.append(rest[0].upper() + rest[1:])

    body = LIST_ITEM.sub("", text)
    sentences = split_sentences(body)
    if len(sentences) < 2:
        sentences = [part for part in PHRASE_SPLIT.split(body) if part.strip()]
    candidates.extend(s for s in sentences if len(s.split()) >= MIN_POINT_WORDS)

    return _dedupe(candidates, limit)


def extract_metaphors(text: str, limit: int = 3) -> List[str]:
    """Return up to ``limit`` figurative phrases found in ``text``."""
    if not text:
        return []
    found: List[tuple[int, str]] = []
    for pattern in METAPHOR_PATTERNS:
        for match in pattern.finditer(text):
            found.append((match.start(), match.group(0)))
    found.sort(key=lambda item: item[0])
    return _dedupe((phrase for _, phrase in found), limit)
