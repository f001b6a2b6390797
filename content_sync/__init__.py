"""
content_sync - structured page content kept in sync with a static HTML page

Main features:
1. Selector-addressed injection of content into existing markup (exact round trip when unchanged)
2. Extraction and change detection by selector
3. Edit-state manager with undo/redo, dirty tracking and debounced autosave
4. Optimistic-concurrency publishing to a GitHub repository
"""

from .core.models import ContentDocument, SelectorMapping, ValidationResult, VersionTokens
from .utils.html_parser import HtmlDocument, parse_html, serialize_html
from .utils.html_modifier import inject_content_into_html
from .utils.html_extractor import detect_changes, extract_content_from_html, extract_field
from .content.validator import suggest_selector_fixes, validate_html_structure, validate_selectors
from .state.manager import EditState, EditStateManager

__all__ = [
    "ContentDocument",
    "SelectorMapping",
    "ValidationResult",
    "VersionTokens",
    "HtmlDocument",
    "parse_html",
    "serialize_html",
    "inject_content_into_html",
    "detect_changes",
    "extract_content_from_html",
    "extract_field",
    "suggest_selector_fixes",
    "validate_html_structure",
    "validate_selectors",
    "EditState",
    "EditStateManager",
]
