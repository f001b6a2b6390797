"""
Live preview: the injector applied to one persistent in-memory tree.

The page is parsed once; each `apply()` only touches the nodes whose values
changed, so re-rendering after every keystroke stays cheap.
"""

import logging
from typing import Callable, List, Optional

from bs4 import Tag

from content_sync.core.models import ContentDocument
from content_sync.state.scheduling import Debouncer, Scheduler
from content_sync.utils.html_modifier import ContentInjector, annotate_changes, strip_highlighting
from content_sync.utils.html_parser import HtmlDocument

logger = logging.getLogger(__name__)

PREVIEW_DEBOUNCE = 0.3


class LivePreview:
    def __init__(self, html: str, scheduler: Optional[Scheduler] = None, debounce: float = PREVIEW_DEBOUNCE):
        self.doc = HtmlDocument(html)
        self.injector = ContentInjector()
        self.last_changed: List[Tag] = []
        self._debouncer = Debouncer(scheduler, debounce) if scheduler is not None else None

    def apply(self, content: ContentDocument) -> List[Tag]:
        self.last_changed = self.injector.apply(self.doc, content)
        return self.last_changed

    def render(self) -> str:
        """Current markup, free of any highlighting left in the tree."""
        if strip_highlighting(self.doc):
            logger.warning("Removed highlighting artifacts from the live preview tree")
        return self.doc.serialize()

    def render_annotated(self) -> str:
        """Current markup with the nodes changed by the last `apply()` highlighted."""
        return annotate_changes(self.doc, self.last_changed)

    @property
    def warnings(self) -> List[str]:
        return self.injector.warnings

    def schedule(self, content: ContentDocument, on_render: Callable[[str], None]) -> None:
        """Apply and render after the debounce delay; a newer call replaces a pending one."""
        if self._debouncer is None:
            self.apply(content)
            on_render(self.render())
            return
        self._debouncer.call(self._apply_and_render, content, on_render)

    def _apply_and_render(self, content: ContentDocument, on_render: Callable[[str], None]) -> None:
        self.apply(content)
        on_render(self.render())

    def cancel(self) -> None:
        if self._debouncer is not None:
            self._debouncer.cancel()
