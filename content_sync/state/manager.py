"""
Edit-state manager: working copy, linear undo/redo history, dirty tracking,
debounced autosave and the two-path save protocol.

All transitions are synchronous. Failures are appended to `state.errors` and
never touch `current_document` or `history`.
"""

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from content_sync.api.backend import ContentBackend
from content_sync.api.handlers import CONFLICT_MESSAGE
from content_sync.core.errors import RemoteConflictError, RemoteError
from content_sync.core.models import ContentDocument, PreviewDevice, VersionTokens
from content_sync.state.events import KEY_EVENT, UNLOAD_EVENT, EventHub, KeyEvent, Subscription, UnloadEvent
from content_sync.state.scheduling import ScheduledTask, Scheduler
from content_sync.utils.html_modifier import inject_content_into_html
from content_sync.utils.storage import DRAFT_SHA_KEY, DraftCache

logger = logging.getLogger(__name__)

DEFAULT_AUTOSAVE_DELAY = 30.0
UNSAVED_CHANGES_MESSAGE = "You have unsaved changes. Leave anyway?"


@dataclass
class EditState:
    original_document: ContentDocument
    history: List[ContentDocument]
    history_index: int = 0
    dirty: bool = False
    active_section_id: Optional[str] = None
    preview_device: PreviewDevice = "desktop"
    show_editable_regions: bool = True
    errors: List[str] = field(default_factory=list)
    original_html: Optional[str] = None
    version_tokens: Optional[VersionTokens] = None
    is_saving: bool = False
    last_saved: Optional[datetime] = None

    @property
    def current_document(self) -> ContentDocument:
        return self.history[self.history_index]


class EditStateManager:
    def __init__(
        self,
        backend: Optional[ContentBackend] = None,
        cache: Optional[DraftCache] = None,
        scheduler: Optional[Scheduler] = None,
        events: Optional[EventHub] = None,
        autosave_delay: float = DEFAULT_AUTOSAVE_DELAY,
        document: Optional[ContentDocument] = None,
    ):
        self.backend = backend
        self.cache = cache
        self.scheduler = scheduler
        self.autosave_delay = autosave_delay

        initial = document or ContentDocument()
        self.state = EditState(original_document=initial, history=[initial])

        self._autosave_task: Optional[ScheduledTask] = None
        self._subscriptions: List[Subscription] = []
        if events is not None:
            self.attach(events)

    # ========== Read-only views ==========

    @property
    def current_document(self) -> ContentDocument:
        return self.state.current_document

    @property
    def dirty(self) -> bool:
        return self.state.dirty

    @property
    def errors(self) -> List[str]:
        return self.state.errors

    @property
    def can_undo(self) -> bool:
        return self.state.history_index > 0

    @property
    def can_redo(self) -> bool:
        return self.state.history_index < len(self.state.history) - 1

    # ========== Dirty flag & autosave ==========

    def _set_dirty(self, dirty: bool) -> None:
        was_dirty = self.state.dirty
        self.state.dirty = dirty
        if dirty and not was_dirty:
            self._arm_autosave()
        elif not dirty:
            self._cancel_autosave()

    def _arm_autosave(self) -> None:
        if self.scheduler is None:
            return
        self._cancel_autosave()
        self._autosave_task = self.scheduler.call_later(self.autosave_delay, self._autosave)

    def _cancel_autosave(self) -> None:
        if self._autosave_task is not None:
            self._autosave_task.cancel()
            self._autosave_task = None

    def _autosave(self) -> None:
        self._autosave_task = None
        if self.state.dirty:
            logger.info("Autosaving draft")
            self.save_draft()

    # ========== Loading ==========

    def load(
        self,
        document: ContentDocument,
        html: Optional[str] = None,
        version_tokens: Optional[VersionTokens] = None,
    ) -> None:
        self.state.original_document = document
        self.state.history = [document]
        self.state.history_index = 0
        if html is not None:
            self.state.original_html = html
        if version_tokens is not None:
            self.state.version_tokens = version_tokens
        self._set_dirty(False)

    def init(self) -> bool:
        """Load html, content and version tokens through the backend."""
        if self.backend is None:
            self.add_error("No content backend configured")
            return False
        try:
            response = self.backend.load()
        except RemoteError as e:
            self.add_error(f"Network error: {e}")
            return False

        if not response.ok:
            self.add_error(response.error or "Failed to load content")
            return False

        try:
            document = ContentDocument.model_validate(response.body["content"])
            tokens = VersionTokens.model_validate(response.body["sha"])
        except (KeyError, ValueError) as e:
            self.add_error(f"Invalid load response: {e}")
            return False

        self.load(document, html=response.body.get("html"), version_tokens=tokens)
        logger.info("Content loaded")
        return True

    # ========== Edits & history ==========

    def update(self, document: ContentDocument) -> None:
        state = self.state
        state.history = state.history[: state.history_index + 1]
        state.history.append(document)
        state.history_index = len(state.history) - 1
        self._set_dirty(True)

    def update_section(self, section_id: str, partial: Dict[str, Any]) -> bool:
        current = self.current_document
        if current.get_section(section_id) is None:
            logger.warning(f"Cannot update unknown section: {section_id}")
            return False
        try:
            document = current.with_section(section_id, partial)
        except (KeyError, ValueError) as e:
            logger.warning(f"Cannot update section {section_id}: {e}")
            return False
        self.update(document)
        return True

    def undo(self) -> bool:
        if not self.can_undo:
            return False
        self.state.history_index -= 1
        self._set_dirty(self.state.history_index != 0)
        return True

    def redo(self) -> bool:
        if not self.can_redo:
            return False
        self.state.history_index += 1
        self._set_dirty(True)
        return True

    def revert(self) -> None:
        self.state.history = [self.state.original_document]
        self.state.history_index = 0
        self._set_dirty(False)
        logger.info("Changes reverted")

    # ========== Saving ==========

    def _write_local_draft(self) -> bool:
        if self.cache is None:
            return True
        state = self.state
        tokens = state.version_tokens.model_dump_json() if state.version_tokens is not None else None
        timestamp = self.cache.save_draft(self.current_document, html=state.original_html or None, sha=tokens)
        if timestamp is None:
            self.add_error("Failed to save draft locally")
            return False
        return True

    def _mark_saved(self, document: ContentDocument) -> None:
        self.state.original_document = document
        self.state.last_saved = datetime.now(timezone.utc)
        self._set_dirty(False)

    def save_draft(self) -> bool:
        """
        Cache the draft locally, then publish it when the page came from the
        remote store. Returns True on success.
        """
        state = self.state
        document = self.current_document
        state.is_saving = True
        try:
            if not self._write_local_draft():
                return False

            if state.version_tokens is None or not state.original_html:
                self._mark_saved(document)
                logger.info("Draft saved locally (remote store not configured)")
                return True

            if self.backend is None:
                self.add_error("No content backend configured")
                return False

            payload = {
                "content": document.to_dict(),
                "html": inject_content_into_html(state.original_html, document),
                "htmlSha": state.version_tokens.html,
                "contentSha": state.version_tokens.content,
            }
            logger.info(f"Publishing with html sha {state.version_tokens.html}")
            try:
                response = self.backend.save(payload)
            except RemoteConflictError:
                self.add_error(CONFLICT_MESSAGE)
                return False
            except RemoteError as e:
                self.add_error(f"Network error: {e}")
                return False

            if not response.ok:
                self.add_error(response.error or "Failed to save")
                return False

            self._refresh_after_save()
            self._mark_saved(document)
            logger.info("Content published")
            return True
        except Exception as e:
            logger.error(f"Error saving: {e}", exc_info=True)
            self.add_error(str(e) or "Failed to save")
            return False
        finally:
            state.is_saving = False

    def _refresh_after_save(self) -> None:
        """Pick up the new html and version tokens; keep the old ones if the reload fails."""
        try:
            response = self.backend.load()
        except RemoteError as e:
            logger.warning(f"Reload after save failed: {e}")
            return
        if not response.ok:
            logger.warning(f"Reload after save failed: {response.error}")
            return
        try:
            tokens = VersionTokens.model_validate(response.body["sha"])
        except (KeyError, ValueError) as e:
            logger.warning(f"Reload after save returned no version tokens: {e}")
            return
        self.state.original_html = response.body.get("html", self.state.original_html)
        self.state.version_tokens = tokens

    def restore_draft(self) -> bool:
        """Apply the locally cached draft as a new edit."""
        if self.cache is None:
            return False
        draft = self.cache.load_draft()
        if draft is None:
            return False
        document, html, timestamp = draft
        if html and not self.state.original_html:
            self.state.original_html = html
        if self.state.version_tokens is None:
            raw_sha = self.cache.get(DRAFT_SHA_KEY)
            if raw_sha:
                try:
                    self.state.version_tokens = VersionTokens.model_validate(json.loads(raw_sha))
                except ValueError as e:
                    logger.warning(f"Ignoring cached version tokens: {e}")
        self.update(document)
        logger.info(f"Restored draft from {timestamp}")
        return True

    # ========== UI state ==========

    def set_active_section(self, section_id: Optional[str]) -> None:
        self.state.active_section_id = section_id

    def set_preview_device(self, device: PreviewDevice) -> None:
        if device not in ("mobile", "tablet", "desktop"):
            raise ValueError(f"Unknown preview device: {device}")
        self.state.preview_device = device

    def toggle_editable_regions(self) -> None:
        self.state.show_editable_regions = not self.state.show_editable_regions

    def add_error(self, message: str) -> None:
        logger.error(message)
        self.state.errors.append(message)

    def clear_errors(self) -> None:
        self.state.errors = []

    # ========== Keyboard & unload ==========

    def handle_key(self, event: KeyEvent) -> bool:
        """Ctrl/Cmd+Z undo, Ctrl/Cmd+Shift+Z redo, Ctrl/Cmd+S save."""
        if not (event.ctrl or event.meta):
            return False
        key = event.key.lower()
        if key == "z":
            event.prevent_default()
            if event.shift:
                self.redo()
            else:
                self.undo()
            return True
        if key == "s":
            event.prevent_default()
            self.save_draft()
            return True
        return False

    def before_unload(self, event: UnloadEvent) -> UnloadEvent:
        if self.state.dirty:
            event.blocked = True
            event.message = UNSAVED_CHANGES_MESSAGE
        return event

    def attach(self, events: EventHub) -> None:
        self._subscriptions.append(events.subscribe(KEY_EVENT, self.handle_key))
        self._subscriptions.append(events.subscribe(UNLOAD_EVENT, self.before_unload))

    def dispose(self) -> None:
        self._cancel_autosave()
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions = []
