from __future__ import annotations

import logging

from hookbuilder.config import Settings
from hookbuilder.errors import ProtocolError
from hookbuilder.postprocess.pipeline import ScriptPostProcessor
from hookbuilder.prompt_builder.hook import build_hook_prompts
from hookbuilder.prompt_builder.model import HookRequest, ScriptBrief
from hookbuilder.prompt_builder.script import build_script_prompts

from .llm import LLMClient
from .model import HookAnalysisResult, ProcessedScript
from .parser import parse_hook_analysis, parse_script_response

logger = logging.getLogger(__name__)

MIN_SCRIPT_LENGTH = 30


class HookAnalyzer:
    def __init__(self, llm: LLMClient, settings: Settings | None = None) -> None:
        self.llm = llm
        self.settings = settings or Settings()

    def analyze(self, request: HookRequest) -> HookAnalysisResult:
        prompts = build_hook_prompts(request)
        raw = self.llm.complete(
            prompts.user,
            system=prompts.system,
            model=self.settings.hook_model,
            temperature=self.settings.hook_temperature,
            max_tokens=self.settings.hook_max_tokens,
        )
        logger.debug("LLM raw hook analysis: %s", raw)
        return parse_hook_analysis(raw, request.hook)


class ScriptWriter:
    """Generates a script for a brief and runs it through the post-processor."""

    def __init__(
        self,
        llm: LLMClient,
        post_processor: ScriptPostProcessor | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.llm = llm
        self.post_processor = post_processor or ScriptPostProcessor()
        self.settings = settings or Settings()

    def generate(self, brief: ScriptBrief) -> ProcessedScript:
        prompts = build_script_prompts(brief)
        raw = self.llm.complete(
            prompts.user,
            system=prompts.system,
            model=self.settings.script_model,
            temperature=self.settings.script_temperature,
            max_tokens=self.settings.script_max_tokens,
        )
        logger.debug("LLM raw script: %s", raw)
        generated = parse_script_response(raw)
        if len(generated.script) < MIN_SCRIPT_LENGTH:
            raise ProtocolError("The API returned an invalid script. Please try again.")

        processed = self.post_processor.process(
            generated.script,
            resistance_level=brief.resistance_level,
            ending_style=brief.ending_style,
        )
        logger.info("Generated script '%s' (%d characters)", brief.title, len(processed.text))
        return processed.model_copy(update={"music_recommendation": generated.music_recommendation})
