from __future__ import annotations

import json
import logging
import re
from typing import Any

from json_repair import repair_json

from hookbuilder.errors import ParseError

FENCED_BLOCK = re.compile(r"```[A-Za-z]*[ \t]*\n(?P<body>.*?)(?:```|$)", re.DOTALL)


def extract_json_block(text: str) -> str:
    """Return the JSON object embedded in a model reply.

    Looks inside the first fenced code block when there is one, then trims
    to the outermost braces.
    """
    candidate = text.strip()
    fenced = FENCED_BLOCK.search(candidate)
    if fenced:
        candidate = fenced.group("body")
    start = candidate.find("{")
    end = candidate.rfind("}")
    if start != -1 and end >= start:
        return candidate[start : end + 1]
    return candidate


def load_json_object(
    raw: str,
    *,
    logger: logging.Logger,
    repair_log_level: int = logging.WARNING,
) -> dict[str, Any]:
    """Parse the JSON object in ``raw``, running it through json_repair if needed.

    Raises :class:`ParseError` when no object can be recovered.
    """
    cleaned = extract_json_block(raw)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as exc:
        logger.log(repair_log_level, "Hook analysis is not valid JSON, repairing: %s", exc)
        try:
            payload = json.loads(repair_json(cleaned))
        except Exception as repair_exc:
            raise ParseError(f"JSON repair failed: {repair_exc}") from exc
    if not isinstance(payload, dict):
        raise ParseError(f"Expected a JSON object, got {type(payload).__name__}")
    return payload
