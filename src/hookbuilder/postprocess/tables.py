"""Hand-authored vocabulary used by the post-processing passes.

All of it is plain data: a deployment can swap the defaults for a JSON or
YAML document via :meth:`ProcessingTables.from_file`.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from hookbuilder.prompt_builder.model import ResistanceLevel


class EmotionStage(BaseModel):
    name: str
    canonical: str
    synonyms: List[str]
    templates: List[str] = Field(min_length=1)

    @field_validator("synonyms")
    @classmethod
    def _lowercase(cls, value: List[str]) -> List[str]:
        return [item.strip().lower() for item in value if item.strip()]

    @model_validator(mode="after")
    def _canonical_is_synonym(self) -> "EmotionStage":
        canonical = self.canonical.strip().lower()
        if canonical not in self.synonyms:
            self.synonyms.insert(0, canonical)
        return self


def _stage(name: str, synonyms: List[str], templates: List[str], canonical: Optional[str] = None) -> dict:
    return {
        "name": name,
        "canonical": canonical or synonyms[0],
        "synonyms": synonyms,
        "templates": templates,
    }


DEFAULT_STAGES: Dict[str, List[dict]] = {
    "low": [
        _stage(
            "curious",
            ["curious", "intrigued", "interested", "wondering", "puzzled"],
            ["Wait. What do you mean by that?", "Okay, I'm listening. Go on."],
        ),
        _stage(
            "considering",
            ["considering", "pondering", "contemplative", "weighing", "mulling"],
            ["Huh. I never looked at it that way.", "Let me think about that for a second."],
        ),
        _stage(
            "understanding",
            ["understanding", "recognizing", "grasping", "seeing", "aware"],
            ["So that's what I've been missing.", "I see it now. I really do."],
        ),
        _stage(
            "accepting",
            ["accepting", "open", "embracing", "convinced", "agreeing", "at peace"],
            ["Okay. I'm ready to try it your way.", "You're right. I can live with that."],
        ),
    ],
    "medium": [
        _stage(
            "defensive",
            ["defensive", "guarded", "resistant", "skeptical", "dismissive"],
            ["That's easy for you to say.", "I don't need a lecture right now."],
        ),
        _stage(
            "challenged",
            ["challenged", "irritated", "frustrated", "annoyed", "provoked"],
            ["Why does that get under my skin?", "Fine. Say it, then. Say what you mean."],
        ),
        _stage(
            "questioning",
            ["questioning", "uncertain", "hesitant", "doubtful", "conflicted"],
            ["What if you're right about this?", "I don't know anymore. I really don't."],
        ),
        _stage(
            "realizing",
            ["realizing", "quiet", "reflective", "stunned", "thoughtful"],
            ["I've been telling myself a story.", "All this time, it was me."],
        ),
        _stage(
            "accepting",
            ["accepting", "resolved", "understanding", "hopeful", "open"],
            ["Okay. I'm done running from it.", "Then I choose differently. Starting now."],
        ),
    ],
    "high": [
        _stage(
            "early",
            ["resistant", "skeptical", "defensive", "dismissive", "doubtful"],
            ["You don't know the first thing about me.", "Save it. I've heard it all before."],
        ),
        _stage(
            "mocking",
            ["sarcastic", "mocking", "condescending", "smug", "contemptuous"],
            ["Oh, please. Tell me more, guru.", "Wow. Did you get that off a poster?"],
        ),
        _stage(
            "hostile",
            ["angry", "hostile", "furious", "aggressive", "heated"],
            ["Don't you dare tell me who I am!", "Back off. You have no idea!"],
        ),
        _stage(
            "cracking",
            ["frustrated", "agitated", "rattled", "irritated", "exasperated"],
            ["Why can't you just let this go?", "Stop. Just stop pushing."],
        ),
        _stage(
            "wavering",
            ["uncertain", "hesitant", "conflicted", "confused", "wavering"],
            ["I... I don't know what I believe.", "Maybe. Maybe not. I can't tell anymore."],
        ),
        _stage(
            "vulnerable",
            ["vulnerable", "hurt", "shaken", "exposed", "broken", "pained"],
            ["I was scared. I've always been scared.", "It hurt too much to look at."],
        ),
        _stage(
            "realizing",
            ["realizing", "quiet", "reflective", "stunned", "thoughtful", "humbled"],
            ["I built the walls myself, didn't I?", "All this time, I was the one holding on."],
        ),
        _stage(
            "transformed",
            ["transformed", "accepting", "resolved", "determined", "understanding", "hopeful"],
            ["Then it ends with me. Today.", "I'm done hiding. I choose to change."],
        ),
    ],
}

DEFAULT_NEGATIVE_EMOTIONS = [
    "defensive", "angry", "dismissive", "resistant", "skeptical", "hostile",
    "sarcastic", "mocking", "condescending", "smug", "contemptuous", "furious",
    "aggressive", "heated", "frustrated", "irritated", "annoyed", "agitated",
    "doubtful", "bitter", "cold", "guarded", "scornful", "defiant",
]

# Tags that are really stage-direction fragments or concatenated junk.
DEFAULT_EMOTION_REPLACEMENTS = {
    "beat": "thoughtful",
    "pause": "hesitant",
    "pauses": "hesitant",
    "pausing": "hesitant",
    "sighs": "weary",
    "sighing": "weary",
    "laughs": "amused",
    "laughing": "amused",
    "chuckles": "amused",
    "whispers": "quiet",
    "whispering": "quiet",
    "softly": "gentle",
    "quietly": "quiet",
    "continuing": "neutral",
    "continued": "neutral",
    "cont'd": "neutral",
    "contd": "neutral",
    "o.s.": "neutral",
    "v.o.": "neutral",
    "off screen": "neutral",
    "voiceover": "neutral",
    "looks away": "uncertain",
    "lookingaway": "uncertain",
    "pausesbriefly": "hesitant",
    "sighsheavily": "weary",
    "shakeshead": "dismissive",
    "crossesarms": "defensive",
    "rollseyes": "sarcastic",
    "eyeroll": "sarcastic",
    "n/a": "neutral",
    "none": "neutral",
    "emotion": "neutral",
    "tone": "neutral",
}

DEFAULT_KNOWN_EMOTIONS = [
    "neutral", "calm", "sad", "happy", "excited", "warm", "tender", "weary",
    "amused", "gentle", "nervous", "anxious", "tired", "earnest", "sincere",
    "playful", "serious", "patient", "compassionate", "empathetic", "encouraging",
    "wise", "knowing", "firm", "fierce", "confident", "certain", "passionate",
    "intense", "bitter", "cold", "scornful", "defiant", "inspired", "moved",
    "grateful", "peaceful", "serene", "content", "thankful", "touched",
]

DEFAULT_POWER_WORDS = [
    "truth", "never", "always", "enough", "nothing", "everything", "now",
    "choose", "choice", "power", "free", "freedom", "real", "fear", "courage",
    "change", "become", "remember", "rise", "stop", "own", "matter", "matters",
    "forever", "strength", "brave", "alive", "decide", "today", "begins", "ends",
    "fight", "mine", "yours", "worth",
]

DEFAULT_RESOLUTE_EMOTIONS = [
    "determined", "resolved", "defiant", "confident", "certain", "fierce",
    "firm", "resolute", "empowered", "triumphant", "unwavering", "powerful",
    "accepting", "transformed",
]

DEFAULT_POWER_LEAD_INS = [
    "Truth is,",
    "Here's the truth:",
    "Never forget:",
    "Remember this:",
    "Now hear this:",
]

DEFAULT_SILENCE_TEMPLATES = [
    "(A long silence. Neither of them moves.)",
    "(Silence. The weight of the words hangs in the air.)",
    "(They sit in silence as the light fades.)",
    "(A breath. Then nothing but silence.)",
    "(Stillness. Nothing left to say.)",
]

DEFAULT_GENTLE_WORDS = [
    "peace", "quiet", "gentle", "softly", "rest", "home", "okay", "breathe",
    "light", "together", "maybe", "slowly", "hope", "grateful", "thank",
    "thanks", "understand", "listen", "listening", "stay", "calm", "heal",
    "begin", "forgive", "time", "tomorrow", "love", "ready",
]

DEFAULT_CALM_EMOTIONS = [
    "calm", "peaceful", "serene", "content", "gentle", "reflective", "hopeful",
    "grateful", "accepting", "quiet", "tender", "warm", "thoughtful",
    "understanding", "at peace",
]

DEFAULT_RESOLUTION_CATEGORIES = {
    "hopeful": ["hopeful", "determined", "resolved", "accepting", "transformed", "inspired", "open"],
    "peaceful": ["calm", "peaceful", "serene", "content", "gentle", "neutral", "at peace"],
    "grateful": ["grateful", "thankful", "warm", "moved", "touched", "tender"],
    "reflective": ["reflective", "quiet", "thoughtful", "realizing", "humbled", "sad", "vulnerable"],
}

DEFAULT_RESOLUTION_TEMPLATES = {
    "hopeful": [
        "Maybe tomorrow can be different.",
        "I think I'm ready to begin again.",
        "There's still time. I can feel it.",
    ],
    "peaceful": [
        "For the first time, it's quiet inside.",
        "I can finally breathe.",
        "It's okay. I'm home now.",
    ],
    "grateful": [
        "Thank you for staying.",
        "I'm grateful you didn't let me run.",
        "Thank you. I needed that.",
    ],
    "reflective": [
        "Maybe I was never really listening.",
        "I think I finally understand.",
        "Let me sit with that in the quiet.",
    ],
}

DEFAULT_RESOLUTION_CATEGORY = "reflective"


class ProcessingTables(BaseModel):
    model_config = ConfigDict(validate_default=True)

    stages: Dict[str, List[EmotionStage]] = Field(default_factory=lambda: dict(DEFAULT_STAGES))
    negative_emotions: List[str] = Field(default_factory=lambda: list(DEFAULT_NEGATIVE_EMOTIONS))
    emotion_replacements: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_EMOTION_REPLACEMENTS))
    known_emotions: List[str] = Field(default_factory=lambda: list(DEFAULT_KNOWN_EMOTIONS))
    max_emotion_token_length: int = 14
    power_words: List[str] = Field(default_factory=lambda: list(DEFAULT_POWER_WORDS))
    resolute_emotions: List[str] = Field(default_factory=lambda: list(DEFAULT_RESOLUTE_EMOTIONS))
    power_lead_ins: List[str] = Field(default_factory=lambda: list(DEFAULT_POWER_LEAD_INS))
    silence_templates: List[str] = Field(default_factory=lambda: list(DEFAULT_SILENCE_TEMPLATES), min_length=1)
    gentle_words: List[str] = Field(default_factory=lambda: list(DEFAULT_GENTLE_WORDS))
    calm_emotions: List[str] = Field(default_factory=lambda: list(DEFAULT_CALM_EMOTIONS))
    resolution_categories: Dict[str, List[str]] = Field(default_factory=lambda: dict(DEFAULT_RESOLUTION_CATEGORIES))
    resolution_templates: Dict[str, List[str]] = Field(default_factory=lambda: dict(DEFAULT_RESOLUTION_TEMPLATES))
    default_resolution_category: str = DEFAULT_RESOLUTION_CATEGORY

    @field_validator("stages")
    @classmethod
    def _stage_sets_disjoint(cls, value: Dict[str, List[EmotionStage]]) -> Dict[str, List[EmotionStage]]:
        normalized: Dict[str, List[EmotionStage]] = {}
        for level, stages in value.items():
            seen: Set[str] = set()
            for stage in stages:
                overlap = seen.intersection(stage.synonyms)
                if overlap:
                    raise ValueError(
                        f"Stage '{stage.name}' of level '{level}' reuses labels: {sorted(overlap)}"
                    )
                seen.update(stage.synonyms)
            normalized[level.lower()] = stages
        return normalized

    @model_validator(mode="after")
    def _templates_cover_categories(self) -> "ProcessingTables":
        missing = [name for name in self.resolution_categories if not self.resolution_templates.get(name)]
        if missing:
            raise ValueError(f"Resolution categories without templates: {missing}")
        if self.default_resolution_category not in self.resolution_templates:
            raise ValueError(f"Unknown default resolution category '{self.default_resolution_category}'")
        return self

    @classmethod
    def from_file(cls, path: Path) -> "ProcessingTables":
        text = Path(path).read_text(encoding="utf-8")
        try:
            payload = json.loads(text)
        except json.JSONDecodeError:
            import yaml

            payload = yaml.safe_load(text)
        return cls.model_validate(payload)

    def stages_for(self, level: ResistanceLevel) -> List[EmotionStage]:
        return self.stages.get(level.value.lower()) or self.stages[ResistanceLevel.MEDIUM.value.lower()]

    def emotion_vocabulary(self) -> Set[str]:
        vocabulary = set(self.known_emotions)
        vocabulary.update(self.negative_emotions, self.resolute_emotions, self.calm_emotions)
        vocabulary.update(self.emotion_replacements.values())
        for stages in self.stages.values():
            for stage in stages:
                vocabulary.update(stage.synonyms)
        return {label.lower() for label in vocabulary}

    def resolution_category(self, emotion: Optional[str]) -> str:
        label = (emotion or "").strip().lower()
        for name, emotions in self.resolution_categories.items():
            if label in emotions:
                return name
        for token in label.split():
            for name, emotions in self.resolution_categories.items():
                if token in emotions:
                    return name
        return self.default_resolution_category
