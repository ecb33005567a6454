from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hookbuilder.postprocess.lines import ScriptLine


class TripBreakdown(BaseModel):
    """Which T.R.I.P. criteria a hook satisfies."""

    model_config = ConfigDict(populate_by_name=True)

    tension: bool = False
    relatability: bool = False
    intrigue: bool = False
    personal_stakes: bool = Field(default=False, alias="personalStakes")


class HookAnalysisResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    original_hook: str = Field(default="", alias="originalHook")
    score: int = Field(ge=0, le=10)
    trip_breakdown: TripBreakdown = Field(default_factory=TripBreakdown, alias="tripBreakdown")
    feedback: str = ""
    variations: List[str] = Field(default_factory=list)
    reframe_prompt: Optional[str] = Field(default=None, alias="reframePrompt")

    @field_validator("score", mode="before")
    @classmethod
    def _clamp_score(cls, value: object) -> object:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return max(0, min(10, round(value)))
        return value

    @field_validator("reframe_prompt", mode="before")
    @classmethod
    def _empty_reframe(cls, value: object) -> object:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def fallback(cls, original_hook: str) -> "HookAnalysisResult":
        return cls(
            original_hook=original_hook,
            score=0,
            trip_breakdown=TripBreakdown(),
            feedback="Sorry, there was an error analyzing your hook. Please try again.",
            variations=[],
            reframe_prompt=None,
        )


class GeneratedScript(BaseModel):
    """Raw completion split into the script body and its music trailer."""

    script: str
    music_recommendation: Optional[str] = None


class ProcessedScript(BaseModel):
    text: str
    lines: List[ScriptLine] = Field(default_factory=list)
    music_recommendation: Optional[str] = None
