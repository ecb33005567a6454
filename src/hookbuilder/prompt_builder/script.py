from __future__ import annotations

from textwrap import dedent
from typing import Mapping

from .extraction import extract_key_points, extract_metaphors
from .model import EndingStyle, PromptPair, ResistanceLevel, ScriptBrief

SCRIPT_SYSTEM_PROMPT = dedent(
    """
    You are a screenwriter for short-form cinematic videos (TikTok, Instagram Reels). You turn a creator's
    philosophy into a raw, dialogue-driven scene between real people. The scene must feel overheard, not
    performed.

    Structure:
    - Open inside the conflict. No greetings, no scene-setting narration, no title card.
    - Every exchange must either raise the pressure or expose something the character was hiding.
    - The resistant character changes gradually. Never flip from hostile to agreeable in a single line.
    - Include exactly one unscripted-feeling "breakthrough line": a short, imperfect sentence where the
      resistant character admits something true without meaning to. It must not sound quotable.

    Tone constraints:
    - Plain spoken language. Contractions, interruptions, and unfinished thoughts are welcome.
    - No therapy-speak, no motivational-poster phrasing, no lecturing monologues longer than three sentences.
    - Forbidden clichés: "at the end of the day", "everything happens for a reason", "you got this",
      "trust the process", "it is what it is", "find your why", "level up", "be the best version of yourself".

    Metaphors:
    - Use at most two metaphors in the whole script and never stack them in one line.
    - If the creator supplied a metaphor, use theirs instead of inventing a new one.

    Ending types:
    - Impact: the last spoken line lands like a verdict. Short, declarative, no hedging.
    - Resolution: the last line is calm and hopeful; tension releases into understanding.
    - Silence: no final spoken line. End on a stage direction that lets the realization sit.

    Formatting (mandatory):
    - Every speaking turn starts with a header line: 🗣 NAME (emotion):
    - The dialogue goes on the next line, without quotation marks.
    - Stage directions go on their own line in parentheses, e.g. (Long pause.)
    - The emotion in each header is a single plain word such as defensive, angry, hesitant, resolved.
    - Leave one blank line between speaking turns.
    - After the script, add a section that starts with "🎵 Music Recommendation:" describing the mood,
      tempo, and one or two reference tracks.
    """
).strip()

RESISTANCE_INSTRUCTIONS: Mapping[ResistanceLevel, str] = {
    ResistanceLevel.LOW: (
        "The resistant character is calm and open-minded and accepts logic quickly. Move through curiosity, "
        "consideration, understanding, and acceptance."
    ),
    ResistanceLevel.MEDIUM: (
        "The resistant character is defensive but not closed-minded. They push back and ask questions, then "
        "start opening up after the halfway point. Move through defensive, challenged, questioning, realizing, "
        "and accepting."
    ),
    ResistanceLevel.HIGH: (
        "The resistant character is sarcastic, dismissive, or emotionally closed. They resist hard and only crack "
        "in the final lines after real pressure. Move through skeptical, mocking, hostile, frustrated, wavering, "
        "vulnerable, realizing, and finally transformed."
    ),
}

OPENING_INSTRUCTIONS: Mapping[str, str] = {
    "Start with a challenge": "The first line is a direct challenge thrown at the other character.",
    "Start with humor": "Open with a dry joke that hides something painful underneath.",
    "Start with confusion": "Open with a character who does not understand what just happened.",
    "Start mid-fight": "Drop the viewer into an argument that is already heated.",
    "Start with a question": "Open with a question that the rest of the scene has to answer.",
    "Start with a provocative statement": "Open with a statement that most viewers will instinctively disagree with.",
}

ENDING_INSTRUCTIONS: Mapping[EndingStyle, str] = {
    EndingStyle.IMPACT: "End with a mic-drop line: ten words or fewer, declarative, delivered with conviction.",
    EndingStyle.RESOLUTION: "End calm and hopeful. The final line releases the tension and points forward.",
    EndingStyle.SILENCE: "End without a final spoken line. Close on a stage direction that holds the silence.",
}

PACING_INSTRUCTIONS: Mapping[str, str] = {
    "Short (30 sec)": "Keep it to 6-8 speaking turns; every line under 15 words.",
    "Medium (60-90 sec)": "Aim for 10-14 speaking turns with room for one longer beat.",
    "Long (2-3 min)": "Aim for 18-24 speaking turns; let the turning point breathe before the ending.",
}

DEFAULT_OPENING = "Start with a challenge"
DEFAULT_PACING = "Medium (60-90 sec)"


def _bullets(items: list[str], empty: str) -> str:
    if not items:
        return f"- {empty}"
    return "\n".join(f"- {item}" for item in items)


def render_script_user_prompt(brief: ScriptBrief) -> str:
    key_points = extract_key_points(brief.philosophy)
    metaphors = extract_metaphors(brief.philosophy)
    personalities = "\n".join(f"- {role}: {label}" for role, label in brief.personality_summary().items())

    sections = [
        f"Title: {brief.title}",
        "",
        "Philosophy / idea:",
        brief.philosophy.strip(),
        "",
        "Key points to land:",
        _bullets(key_points, "Use the philosophy as a whole."),
        "",
        "Creator metaphors (reuse, do not replace):",
        _bullets(metaphors, "None supplied."),
        "",
        f"Number of characters: {brief.num_characters}",
        f"Character roles: {brief.character_roles}",
        "Character personalities:",
        personalities,
        "",
        f"Tone: {brief.tone}",
        f"Themes: {', '.join(brief.themes)}",
        f"Emotional arc: {brief.emotional_arc}",
    ]

    if brief.num_characters > 1:
        sections.extend(
            [
                "",
                f"Resistance level: {brief.resistance_level.value}",
                RESISTANCE_INSTRUCTIONS[brief.resistance_level],
            ]
        )

    sections.extend(
        [
            "",
            f"Opening style: {brief.opening_style}",
            OPENING_INSTRUCTIONS.get(brief.opening_style, OPENING_INSTRUCTIONS[DEFAULT_OPENING]),
            "",
            f"Ending: {brief.ending_style.value}",
            ENDING_INSTRUCTIONS[brief.ending_style],
            "",
            f"Pacing: {brief.pacing}",
            PACING_INSTRUCTIONS.get(brief.pacing, PACING_INSTRUCTIONS[DEFAULT_PACING]),
        ]
    )

    if brief.hook_directive:
        sections.extend(["", f"Hook directive: {brief.hook_directive}"])
    if brief.final_mic_drop and brief.ending_style is not EndingStyle.SILENCE:
        sections.extend(["", f'Use this as the final line, word for word: "{brief.final_mic_drop}"'])
    if brief.creator_note:
        sections.extend(["", "Creator note (follow within the rules above):", brief.creator_note.strip()])

    sections.extend(["", "Include the music recommendation section after the script."])
    return "\n".join(sections)


def build_script_prompts(brief: ScriptBrief) -> PromptPair:
    return PromptPair(system=SCRIPT_SYSTEM_PROMPT, user=render_script_user_prompt(brief))
