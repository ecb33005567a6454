from __future__ import annotations

import logging
import random
from typing import Optional

from hookbuilder.prompt_builder.model import EndingStyle, ResistanceLevel
from hookbuilder.script_engine.model import ProcessedScript

from .cleanup import (
    naturalize_dialogue,
    normalize_punctuation,
    normalize_whitespace,
    remove_malformed_directions,
    strip_control_characters,
    substitute_invalid_emotions,
)
from .ending import enforce_ending
from .formatting import build_blocks, format_headers
from .lines import classify, flatten, render_lines
from .progression import enforce_progression
from .tables import ProcessingTables

logger = logging.getLogger(__name__)


class ScriptPostProcessor:
    """Runs the fixed sequence of cleanup and structure passes over a generated script.

    Wording picked from templates depends on ``rng``; the structure of the
    output (headers, stage coverage, ending shape) does not.
    """

    def __init__(self, tables: Optional[ProcessingTables] = None, rng: Optional[random.Random] = None) -> None:
        self.tables = tables or ProcessingTables()
        self.rng = rng or random.Random()

    def process(
        self,
        text: str,
        resistance_level: ResistanceLevel | str | None = ResistanceLevel.MEDIUM,
        ending_style: EndingStyle | str | None = EndingStyle.IMPACT,
    ) -> ProcessedScript:
        level = ResistanceLevel.parse(resistance_level)
        style = EndingStyle.parse(ending_style)
        stages = self.tables.stages_for(level)

        cleaned = normalize_punctuation(strip_control_characters(text))
        blocks = build_blocks(format_headers(classify(cleaned)))
        blocks = substitute_invalid_emotions(blocks, self.tables)
        blocks = remove_malformed_directions(blocks)
        blocks = naturalize_dialogue(blocks)
        blocks = enforce_progression(blocks, stages, self.tables.negative_emotions, self.rng)
        blocks = enforce_ending(blocks, style, self.tables, stages, self.rng)

        lines = flatten(blocks)
        logger.debug(
            "Post-processed script into %d block(s) (%s resistance, %s ending)",
            len(blocks),
            level.value,
            style.value,
        )
        return ProcessedScript(text=normalize_whitespace(render_lines(lines)), lines=lines)
