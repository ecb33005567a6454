from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional

from hookbuilder.errors import StaleCopyError, UpstreamError

from .records import SavedHookVariation, SavedScript
from .repository import HOOK_RESULTS, SCRIPTS, DocumentStore

logger = logging.getLogger(__name__)


class ScriptLibrary:
    """Saved scripts and hook variations for the signed-in user."""

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def save_script(self, record: SavedScript) -> SavedScript:
        script_id = self._store.create(SCRIPTS, record.to_document())
        return replace(record, script_id=script_id)

    def list_scripts(self, limit: Optional[int] = None) -> List[SavedScript]:
        return [SavedScript.from_item(item) for item in self._store.query(SCRIPTS, limit=limit)]

    def delete_script(self, script_id: str) -> None:
        self._store.delete(SCRIPTS, script_id)

    def replace_script(self, old_id: str, record: SavedScript) -> SavedScript:
        """Store ``record`` as a new document, then remove ``old_id``.

        A failure after the first write leaves both copies in place and raises
        :class:`StaleCopyError` naming them.
        """
        saved = self.save_script(record)
        try:
            self._store.delete(SCRIPTS, old_id)
        except UpstreamError as exc:
            logger.warning("Saved %s but could not remove %s: %s", saved.script_id, old_id, exc)
            raise StaleCopyError(
                new_id=saved.script_id or "",
                old_id=old_id,
                detail=f"Saved the edited script but could not remove the previous copy ({exc})",
            ) from exc
        return saved

    def save_hook_variation(self, variation: SavedHookVariation) -> SavedHookVariation:
        hook_id = self._store.create(HOOK_RESULTS, variation.to_document())
        return replace(variation, hook_id=hook_id)

    def list_hook_variations(self, limit: Optional[int] = None) -> List[SavedHookVariation]:
        return [SavedHookVariation.from_item(item) for item in self._store.query(HOOK_RESULTS, limit=limit)]
