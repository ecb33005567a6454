from __future__ import annotations

import json
import random
from dataclasses import replace

from hookbuilder.app import HookBuilderApp
from hookbuilder.auth.session import INVALID_CREDENTIALS, User
from hookbuilder.errors import InvalidCredentialsError, StaleCopyError, UpstreamError
from hookbuilder.postprocess.pipeline import ScriptPostProcessor
from hookbuilder.prompt_builder.model import ScriptBrief
from hookbuilder.script_engine.engine import HookAnalyzer, ScriptWriter
from hookbuilder.script_engine.llm import StaticLLM
from hookbuilder.storage.records import SavedScript

BRIEF_FORM = {
    "title": "Own It",
    "philosophy": "Nobody is coming to save you.",
    "characterRoles": "Coach and athlete",
    "tone": "Raw",
    "themes": ["discipline"],
    "emotionalArc": "Denial to acceptance",
    "emotionEnding": "Silence",
}

SCRIPT = (
    "🗣 COACH (calm):\nYou look tired.\n\n"
    "🗣 RILEY (defensive):\nI am fine.\n\n"
    "🗣 COACH (calm):\nAre you?\n\n"
    "🗣 RILEY (questioning):\nI do not know anymore.\n\n"
    "🎵 Music Recommendation: Sparse piano"
)

HOOK_REPLY = json.dumps(
    {
        "score": 6,
        "tripBreakdown": {"tension": True, "relatability": False, "intrigue": True, "personalStakes": False},
        "feedback": "Good start.",
        "variations": ["A.", "B.", "C."],
    }
)


class StubAuth:
    def __init__(self, user=None, error=None):
        self.current_user = user
        self.error = error

    def sign_in(self, email, password):
        if self.error is not None:
            raise self.error
        self.current_user = User("user-1", email)
        return self.current_user

    def sign_out(self):
        self.current_user = None


class RecordingLibrary:
    def __init__(self, delete_error=None, replace_error=None):
        self.delete_error = delete_error
        self.replace_error = replace_error
        self.saved = []
        self.replaced = []

    def save_script(self, record):
        self.saved.append(record)
        return replace(record, script_id=f"script-{len(self.saved)}")

    def delete_script(self, script_id):
        if self.delete_error is not None:
            raise self.delete_error

    def replace_script(self, old_id, record):
        if self.replace_error is not None:
            raise self.replace_error
        self.replaced.append((old_id, record))
        return replace(record, script_id="script-new")

    def list_scripts(self, limit=None):
        return list(self.saved)


def _app(auth=None, library=None, script=SCRIPT):
    return HookBuilderApp(
        auth=auth or StubAuth(User("user-1", "a@example.com")),
        analyzer=HookAnalyzer(StaticLLM(HOOK_REPLY)),
        writer=ScriptWriter(StaticLLM(script), ScriptPostProcessor(rng=random.Random(0))),
        library=library or RecordingLibrary(),
    )


def _saved_record(script_id="old-1"):
    brief = ScriptBrief.from_form(BRIEF_FORM)
    return SavedScript(brief=brief, script="🗣 A (calm):\nOld.", script_id=script_id)


def test_actions_need_a_signed_in_user():
    app = _app(auth=StubAuth())

    result = app.analyze_hook({"hook": "Hi", "context": "c", "emotion": "e", "theme": "t"})

    assert not result.ok
    assert result.message == "You must be logged in to analyze hooks"
    assert app.list_scripts().message == "You must be logged in to view saved scripts"


def test_form_validation_message_comes_first():
    result = _app(auth=StubAuth()).analyze_hook({"hook": "Hi"})

    assert not result.ok
    assert result.message == "Please fill in all required fields"


def test_analyze_hook_returns_result():
    result = _app().analyze_hook({"hook": "Hi", "context": "c", "emotion": "e", "theme": "t"})

    assert result.ok
    assert result.payload.score == 6
    assert len(result.payload.variations) == 3


def test_sign_in_failure_message():
    app = _app(auth=StubAuth(error=InvalidCredentialsError(INVALID_CREDENTIALS)))

    result = app.sign_in("a@example.com", "bad")

    assert not result.ok
    assert result.message == INVALID_CREDENTIALS


def test_generate_then_save_script():
    library = RecordingLibrary()
    app = _app(library=library)

    generated = app.generate_script(BRIEF_FORM)
    saved = app.save_script()

    assert generated.ok
    assert generated.payload.music_recommendation == "Sparse piano"
    assert app.current_script.script == generated.payload.text
    assert saved.ok
    assert saved.message == "Script saved successfully!"
    assert saved.payload.script_id == "script-1"
    assert library.saved[0].title == "Own It"


def test_save_without_generated_script():
    result = _app().save_script()

    assert not result.ok
    assert result.message == "Generate a script before saving it"


def test_invalid_script_message():
    result = _app(script="🗣 A (calm):\nHi.").generate_script(BRIEF_FORM)

    assert not result.ok
    assert result.message == "The API returned an invalid script. Please try again."


def test_upstream_failure_message():
    app = _app(library=RecordingLibrary(delete_error=UpstreamError("Service unavailable", status=500)))

    result = app.delete_script("script-1")

    assert not result.ok
    assert result.message == "Request failed: 500 - Service unavailable. Please try again."


def test_edit_script_replaces_the_saved_copy():
    library = RecordingLibrary()
    app = _app(library=library)

    result = app.edit_script(_saved_record(), "🗣 A (calm):\nNew.", title="Own It Again")

    assert result.ok
    assert result.message == "Script updated."
    old_id, record = library.replaced[0]
    assert old_id == "old-1"
    assert record.script_id is None
    assert record.title == "Own It Again"
    assert record.script == "🗣 A (calm):\nNew."


def test_edit_script_reports_stale_copy():
    error = StaleCopyError(new_id="new-1", old_id="old-1", detail="Saved the edited script but could not remove the previous copy")
    app = _app(library=RecordingLibrary(replace_error=error))

    result = app.edit_script(_saved_record(), "🗣 A (calm):\nNew.")

    assert not result.ok
    assert result.message == (
        "Saved the edited script but could not remove the previous copy. Please delete script old-1 manually."
    )


def test_edit_script_rejects_empty_text():
    result = _app().edit_script(_saved_record(), "   ")

    assert not result.ok
    assert result.message == "Script text cannot be empty"
