from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from hookbuilder.prompt_builder.model import ScriptBrief
from hookbuilder.script_engine.model import ProcessedScript

BRIEF_EXCLUDED = {"title"}


@dataclass(frozen=True)
class SavedScript:
    brief: ScriptBrief
    script: str
    music_recommendation: Optional[str] = None
    script_id: Optional[str] = None
    owner_id: Optional[str] = None
    created_at: Optional[str] = None

    @classmethod
    def from_generation(cls, brief: ScriptBrief, processed: ProcessedScript) -> "SavedScript":
        return cls(brief=brief, script=processed.text, music_recommendation=processed.music_recommendation)

    @property
    def title(self) -> str:
        return self.brief.title

    def to_document(self) -> dict[str, Any]:
        document = self.brief.model_dump(mode="json", by_alias=True, exclude=BRIEF_EXCLUDED)
        document.update(
            {
                "title": self.brief.title,
                "script": self.script,
                "musicRecommendation": self.music_recommendation,
            }
        )
        return document

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "SavedScript":
        data = dict(item)
        if data.get("numCharacters") is not None:
            data["numCharacters"] = int(data["numCharacters"])
        brief = ScriptBrief.model_validate(
            {key: value for key, value in data.items() if key not in {"id", "ownerId", "timestamp"}}
        )
        return cls(
            brief=brief,
            script=str(data.get("script", "")),
            music_recommendation=data.get("musicRecommendation"),
            script_id=data.get("id"),
            owner_id=data.get("ownerId"),
            created_at=data.get("timestamp"),
        )


@dataclass(frozen=True)
class SavedHookVariation:
    original_hook: str
    selected_variation: str
    score: int
    hook_id: Optional[str] = None
    owner_id: Optional[str] = None
    created_at: Optional[str] = None

    def to_document(self) -> dict[str, Any]:
        return {
            "originalHook": self.original_hook,
            "selectedVariation": self.selected_variation,
            "score": int(self.score),
        }

    @classmethod
    def from_item(cls, item: Mapping[str, Any]) -> "SavedHookVariation":
        return cls(
            original_hook=str(item.get("originalHook", "")),
            selected_variation=str(item.get("selectedVariation", "")),
            score=int(item.get("score", 0)),
            hook_id=item.get("id"),
            owner_id=item.get("ownerId"),
            created_at=item.get("timestamp"),
        )
