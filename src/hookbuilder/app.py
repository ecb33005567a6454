from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping, Optional

from hookbuilder.auth.session import AuthService
from hookbuilder.config import Settings
from hookbuilder.errors import (
    AuthError,
    AuthRequiredError,
    ConfigurationError,
    ProtocolError,
    StaleCopyError,
    UpstreamError,
    ValidationError,
)
from hookbuilder.postprocess.pipeline import ScriptPostProcessor
from hookbuilder.postprocess.tables import ProcessingTables
from hookbuilder.prompt_builder.model import HookRequest, ScriptBrief
from hookbuilder.script_engine.engine import HookAnalyzer, ScriptWriter
from hookbuilder.script_engine.llm import build_llm
from hookbuilder.storage.library import ScriptLibrary
from hookbuilder.storage.records import SavedHookVariation, SavedScript
from hookbuilder.storage.repository import DocumentStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ActionResult:
    ok: bool
    message: str = ""
    payload: Any = None


class HookBuilderApp:
    """One method per user action; failures come back as inline messages."""

    def __init__(
        self,
        auth: AuthService,
        analyzer: HookAnalyzer,
        writer: ScriptWriter,
        library: ScriptLibrary,
    ) -> None:
        self.auth = auth
        self.analyzer = analyzer
        self.writer = writer
        self.library = library
        self.current_script: Optional[SavedScript] = None

    @classmethod
    def from_settings(cls, settings: Settings, rng: Optional[random.Random] = None) -> "HookBuilderApp":
        tables = (
            ProcessingTables.from_file(settings.processing_tables_path)
            if settings.processing_tables_path
            else ProcessingTables()
        )
        llm = build_llm(settings)
        auth = AuthService.from_settings(settings)
        store = DocumentStore(auth, table_prefix=settings.table_prefix, region_name=settings.aws_region)
        return cls(
            auth=auth,
            analyzer=HookAnalyzer(llm, settings),
            writer=ScriptWriter(llm, ScriptPostProcessor(tables=tables, rng=rng), settings),
            library=ScriptLibrary(store),
        )

    def _require_user(self, action: str) -> None:
        if self.auth.current_user is None:
            raise AuthRequiredError(f"You must be logged in to {action}")

    def _run(self, action: str, operation: Callable[[], Any], success: str = "") -> ActionResult:
        try:
            payload = operation()
        except ValidationError as exc:
            return ActionResult(ok=False, message=str(exc))
        except AuthError as exc:
            logger.info("%s rejected: %s", action, exc)
            return ActionResult(ok=False, message=str(exc))
        except ConfigurationError as exc:
            logger.error("%s failed: %s", action, exc)
            return ActionResult(ok=False, message=str(exc))
        except StaleCopyError as exc:
            logger.exception("%s left a duplicate copy", action)
            return ActionResult(ok=False, message=f"{exc}. Please delete script {exc.old_id} manually.")
        except ProtocolError as exc:
            logger.warning("%s got an unusable response: %s", action, exc)
            return ActionResult(ok=False, message=str(exc))
        except UpstreamError as exc:
            logger.exception("%s failed", action)
            return ActionResult(ok=False, message=f"Request failed: {exc}. Please try again.")
        return ActionResult(ok=True, message=success, payload=payload)

    def sign_in(self, email: str, password: str) -> ActionResult:
        return self._run("Sign-in", lambda: self.auth.sign_in(email, password), "Signed in.")

    def sign_out(self) -> ActionResult:
        return self._run("Sign-out", self.auth.sign_out, "Signed out.")

    def analyze_hook(self, form: Mapping[str, Any]) -> ActionResult:
        def operation() -> Any:
            request = HookRequest.from_form(form)
            self._require_user("analyze hooks")
            return self.analyzer.analyze(request)

        return self._run("Hook analysis", operation)

    def save_variation(self, original_hook: str, variation: str, score: int) -> ActionResult:
        def operation() -> Any:
            self._require_user("save hook variations")
            record = SavedHookVariation(original_hook=original_hook, selected_variation=variation, score=score)
            return self.library.save_hook_variation(record)

        return self._run("Saving variation", operation, "Hook variation saved successfully!")

    def list_hooks(self, limit: Optional[int] = None) -> ActionResult:
        def operation() -> Any:
            self._require_user("view saved hooks")
            return self.library.list_hook_variations(limit=limit)

        return self._run("Loading hooks", operation)

    def generate_script(self, form: Mapping[str, Any]) -> ActionResult:
        def operation() -> Any:
            brief = ScriptBrief.from_form(form)
            self._require_user("generate scripts")
            processed = self.writer.generate(brief)
            self.current_script = SavedScript.from_generation(brief, processed)
            return processed

        return self._run("Script generation", operation)

    def save_script(self, record: Optional[SavedScript] = None) -> ActionResult:
        def operation() -> Any:
            self._require_user("save scripts")
            target = record or self.current_script
            if target is None:
                raise ValidationError("Generate a script before saving it")
            return self.library.save_script(target)

        return self._run("Saving script", operation, "Script saved successfully!")

    def list_scripts(self, limit: Optional[int] = None) -> ActionResult:
        def operation() -> Any:
            self._require_user("view saved scripts")
            return self.library.list_scripts(limit=limit)

        return self._run("Loading scripts", operation)

    def delete_script(self, script_id: str) -> ActionResult:
        def operation() -> Any:
            self._require_user("delete scripts")
            self.library.delete_script(script_id)
            return script_id

        return self._run("Deleting script", operation, "Script deleted.")

    def edit_script(self, record: SavedScript, script: str, title: Optional[str] = None) -> ActionResult:
        def operation() -> Any:
            self._require_user("edit scripts")
            if not script.strip():
                raise ValidationError("Script text cannot be empty")
            if record.script_id is None:
                raise ValidationError("Only saved scripts can be edited")
            brief = record.brief.model_copy(update={"title": title}) if title else record.brief
            updated = replace(record, brief=brief, script=script, script_id=None, created_at=None)
            return self.library.replace_script(record.script_id, updated)

        return self._run("Editing script", operation, "Script updated.")
