from __future__ import annotations

from enum import Enum
from typing import Any, List, Mapping, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from hookbuilder.errors import ValidationError


class ResistanceLevel(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"

    @classmethod
    def parse(cls, value: "str | ResistanceLevel | None") -> "ResistanceLevel":
        if isinstance(value, cls):
            return value
        text = (value or "").strip().lower()
        for level in cls:
            if text.startswith(level.value.lower()):
                return level
        return cls.MEDIUM


class EndingStyle(str, Enum):
    IMPACT = "Impact"
    RESOLUTION = "Resolution"
    SILENCE = "Silence"

    @classmethod
    def parse(cls, value: "str | EndingStyle | None") -> "EndingStyle":
        """Accept the bare name or a form label such as ``"Impact (Mic drop)"``."""
        if isinstance(value, cls):
            return value
        text = (value or "").strip().lower()
        for style in cls:
            if text.startswith(style.value.lower()):
                return style
        return cls.IMPACT


class PromptPair(NamedTuple):
    system: str
    user: str


class HookRequest(BaseModel):
    """A single hook sentence plus the scene it belongs to."""

    hook: str
    context: str
    emotion: str
    theme: str
    tone: Optional[str] = None

    @classmethod
    def from_form(cls, payload: Mapping[str, Any]) -> "HookRequest":
        required = ("hook", "context", "emotion", "theme")
        if any(not str(payload.get(name) or "").strip() for name in required):
            raise ValidationError("Please fill in all required fields")
        tone = str(payload.get("tone") or "").strip() or None
        return cls(
            hook=str(payload["hook"]).strip(),
            context=str(payload["context"]).strip(),
            emotion=str(payload["emotion"]).strip(),
            theme=str(payload["theme"]).strip(),
            tone=tone,
        )


class ScriptBrief(BaseModel):
    """Generation parameters collected by the script form."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    title: str = "Untitled Script"
    philosophy: str
    num_characters: int = Field(default=2, ge=1, le=3, alias="numCharacters")
    character_roles: str = Field(alias="characterRoles")
    tone: str
    themes: List[str]
    emotional_arc: str = Field(alias="emotionalArc")
    hook_directive: Optional[str] = Field(default=None, alias="hookDirective")
    final_mic_drop: Optional[str] = Field(default=None, alias="finalMicDrop")
    creator_note: Optional[str] = Field(default=None, max_length=700, alias="creatorNote")
    resistance_level: ResistanceLevel = Field(default=ResistanceLevel.MEDIUM, alias="resistanceLevel")
    opening_style: str = Field(default="Start with a challenge", alias="openingStyle")
    messenger_personality: str = Field(default="Calm and persuasive", alias="messengerPersonality")
    resistor_personality: str = Field(default="Defensive and angry", alias="resistorPersonality")
    character1_personality: str = Field(default="Passionate and fiery", alias="character1Personality")
    character2_personality: str = Field(default="Mocking and sarcastic", alias="character2Personality")
    character3_personality: str = Field(default="Calm and reflective", alias="character3Personality")
    ending_style: EndingStyle = Field(default=EndingStyle.IMPACT, alias="emotionEnding")
    pacing: str = "Medium (60-90 sec)"

    @field_validator("resistance_level", mode="before")
    @classmethod
    def _parse_resistance(cls, value: Any) -> ResistanceLevel:
        return ResistanceLevel.parse(value)

    @field_validator("ending_style", mode="before")
    @classmethod
    def _parse_ending(cls, value: Any) -> EndingStyle:
        return EndingStyle.parse(value)

    @field_validator("hook_directive", "final_mic_drop", "creator_note", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @classmethod
    def from_form(cls, payload: Mapping[str, Any]) -> "ScriptBrief":
        """Validate a submitted form before anything reaches the network."""
        if not str(payload.get("philosophy") or "").strip():
            raise ValidationError("Please enter your philosophical idea")
        if not str(payload.get("characterRoles") or payload.get("character_roles") or "").strip():
            raise ValidationError("Please define character roles")
        if not str(payload.get("tone") or "").strip():
            raise ValidationError("Please select a tone")
        if not (payload.get("themes") or []):
            raise ValidationError("Please select at least one theme")
        if not str(payload.get("emotionalArc") or payload.get("emotional_arc") or "").strip():
            raise ValidationError("Please select an emotional arc")

        data = {key: value for key, value in payload.items() if value is not None}
        if not str(data.get("title") or "").strip():
            data["title"] = "Untitled Script"
        try:
            return cls.model_validate(data)
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc

    def personality_summary(self) -> dict[str, str]:
        if self.num_characters == 1:
            return {"Character": self.character1_personality}
        if self.num_characters == 2:
            return {
                "Messenger": self.messenger_personality,
                "Resistant character": self.resistor_personality,
            }
        return {
            "Character A (main speaker)": self.character1_personality,
            "Character B (support or contrast)": self.character2_personality,
            "Character C (wildcard or audience POV)": self.character3_personality,
        }
