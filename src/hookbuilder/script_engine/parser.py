from __future__ import annotations

import logging
import re
from typing import Optional

from pydantic import ValidationError

from hookbuilder.errors import ParseError

from .model import GeneratedScript, HookAnalysisResult
from .utils import load_json_object

logger = logging.getLogger(__name__)

_MARKER_TAIL = r")[ \t*_]*:?[ \t*_]*"

RECOMMENDATION_MARKER = re.compile(
    r"^[ \t>]*(?:"
    r"(?:🎵|🎶|🎼)[ \t*_]*music(?:\s+recommendations?)?"
    r"|\*\*[ \t]*music\s+recommendations?[ \t]*:?[ \t]*\*\*"
    r"|#{1,6}[ \t]*music\s+recommendations?"
    r"|music\s+recommendations?[ \t]*:"
    r"|recommended\s+music[ \t]*:"
    r"|music\s+suggestions?[ \t]*:"
    + _MARKER_TAIL,
    re.IGNORECASE | re.MULTILINE,
)
# "Music:" is also a common scene cue, so it only counts after the last turn.
BARE_MUSIC_MARKER = re.compile(r"^[ \t>]*(?:music[ \t]*:" + _MARKER_TAIL, re.IGNORECASE | re.MULTILINE)
SPEAKER_LINE = re.compile(r"^[ \t]*(?:🗣|[A-Z][A-Z0-9 .'-]*\([^()\n]*\)[ \t]*:)", re.MULTILINE)


def parse_hook_analysis(content: str, original_hook: str) -> HookAnalysisResult:
    """Read a hook-analysis completion, degrading to a zeroed result on any failure."""
    try:
        payload = load_json_object(content or "", logger=logger, repair_log_level=logging.DEBUG)
        payload["originalHook"] = original_hook
        return HookAnalysisResult.model_validate(payload)
    except (ParseError, ValidationError) as exc:
        logger.warning("Hook analysis response could not be parsed; using fallback: %s", exc)
        return HookAnalysisResult.fallback(original_hook)


def _find_music_marker(text: str) -> Optional[re.Match]:
    headers = list(SPEAKER_LINE.finditer(text))
    start = headers[-1].start() if headers else 0
    return RECOMMENDATION_MARKER.search(text, start) or BARE_MUSIC_MARKER.search(text, start)


def parse_script_response(text: str) -> GeneratedScript:
    """Split a script completion into body and optional music recommendation.

    The recommendation is only looked for after the last speaker turn.
    """
    text = text or ""
    match = _find_music_marker(text)
    if match is None:
        return GeneratedScript(script=text.strip(), music_recommendation=None)
    body = text[: match.start()].strip()
    recommendation = text[match.end() :].strip()
    return GeneratedScript(script=body, music_recommendation=recommendation or None)
