"""
Read content back out of HTML.

- extract_field: one value by selector (text, inner markup or attribute)
- detect_changes: selectors whose markup differs between two snapshots
- extract_content_from_html: rebuild a ContentDocument through the mapping table
"""

import logging
import re
from typing import Any, Iterable, List, Optional, Union

from content_sync.content.mappings import CONTENT_MAPPINGS
from content_sync.core.errors import MalformedHtmlError
from content_sync.core.models import ContentDocument, SelectorMapping
from content_sync.utils.html_parser import HtmlDocument, inner_html

logger = logging.getLogger(__name__)

# `sections[hero]`, `paragraphs[2]`, `content`
PATH_TOKEN_RE = re.compile(r"([A-Za-z_][A-Za-z0-9_]*)(?:\[([^\]]+)\])?")


def _parse(html: str) -> Optional[HtmlDocument]:
    if not html:
        return None
    try:
        return HtmlDocument(html)
    except MalformedHtmlError as e:
        logger.warning(f"Cannot extract from HTML: {e}")
        return None


def _read(doc: HtmlDocument, selector: str, mode: str, attribute: Optional[str]) -> str:
    if mode == "text":
        return doc.get_text(selector)
    if mode == "html":
        return doc.get_inner_html(selector)
    if mode == "attribute":
        if not attribute:
            logger.warning(f"Attribute mode without attribute name for {selector}")
            return ""
        return doc.get_attribute(selector, attribute)
    logger.warning(f"Unknown extraction mode: {mode}")
    return ""


def extract_field(html: str, selector: str, mode: str = "text", attribute: Optional[str] = None) -> str:
    doc = _parse(html)
    if doc is None:
        return ""
    return _read(doc, selector, mode, attribute)


def detect_changes(original_html: str, current_html: str, selectors: Iterable[str]) -> List[str]:
    """Selectors whose first match has different inner markup in the two documents."""
    if not original_html or not current_html or original_html == current_html:
        return []
    original = _parse(original_html)
    current = _parse(current_html)
    if original is None or current is None:
        return []

    changed = []
    for selector in selectors:
        before = original.select_one(selector)
        after = current.select_one(selector)
        before_html = inner_html(before) if before is not None else ""
        after_html = inner_html(after) if after is not None else ""
        if before_html != after_html:
            changed.append(selector)
    return changed


# ============================================================================
# Path-addressed writes
# ============================================================================

def tokenize_path(path: str) -> List[Union[str, int]]:
    """
    Split a content path into keys and indexes.

    `sections[hero].content.paragraphs[0]` ->
    ['sections', ('id', 'hero'), 'content', 'paragraphs', 0]
    """
    tokens: List[Any] = []
    for part in path.split("."):
        match = PATH_TOKEN_RE.fullmatch(part)
        if not match:
            raise ValueError(f"Invalid content path segment: {part!r}")
        name, index = match.groups()
        tokens.append(name)
        if index is not None:
            tokens.append(int(index) if index.isdigit() else ("id", index))
    return tokens


def _step(node: Any, token: Any, create_next: Any) -> Any:
    if isinstance(token, tuple):
        for item in node:
            if isinstance(item, dict) and item.get("id") == token[1]:
                return item
        raise KeyError(f"No entry with id {token[1]!r}")
    if isinstance(token, int):
        while len(node) <= token:
            node.append(create_next())
        if node[token] is None:
            node[token] = create_next()
        return node[token]
    if node.get(token) is None:
        node[token] = create_next()
    return node[token]


def set_path(data: dict, path: str, value: Any) -> None:
    """Write `value` at `path` in a nested dict/list structure, creating containers."""
    tokens = tokenize_path(path)
    node: Any = data
    for position, token in enumerate(tokens[:-1]):
        following = tokens[position + 1]
        node = _step(node, token, list if isinstance(following, int) else dict)

    last = tokens[-1]
    if isinstance(last, int):
        while len(node) <= last:
            node.append(None)
        node[last] = value
    elif isinstance(last, tuple):
        raise ValueError(f"Path cannot end in an id selector: {path}")
    else:
        node[last] = value


def extract_content_from_html(
    html: str,
    template: ContentDocument,
    mappings: Iterable[SelectorMapping] = CONTENT_MAPPINGS,
) -> ContentDocument:
    """
    Rebuild content from markup: every mapping path that resolves in `html`
    overwrites the corresponding value of `template`.
    """
    doc = _parse(html)
    if doc is None:
        return template

    data = template.to_dict()
    for mapping in mappings:
        if not doc.selector_exists(mapping.selector):
            logger.warning(f"Skipping {mapping.path}: selector not found: {mapping.selector}")
            continue
        value = _read(doc, mapping.selector, mapping.mode, mapping.attribute)
        try:
            set_path(data, mapping.path, value)
        except (KeyError, ValueError, TypeError, AttributeError) as e:
            logger.warning(f"Skipping {mapping.path}: {e}")

    return ContentDocument.model_validate(data)
