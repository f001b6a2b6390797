import logging
import re
from typing import Iterable, List, Optional

from content_sync.content.mappings import CONTENT_MAPPINGS
from content_sync.core.errors import MalformedHtmlError
from content_sync.core.models import SelectorMapping, ValidationIssue, ValidationResult
from content_sync.utils.html_parser import HtmlDocument

logger = logging.getLogger(__name__)

NTH_OF_TYPE_RE = re.compile(r":nth-of-type\(\d+\)")


def _try_parse(html: str) -> Optional[HtmlDocument]:
    try:
        return HtmlDocument(html)
    except MalformedHtmlError as e:
        logger.warning(f"Cannot validate HTML: {e}")
        return None


def validate_selectors(html: str, mappings: Iterable[SelectorMapping] = CONTENT_MAPPINGS) -> ValidationResult:
    """Check that every mapped selector resolves in `html`."""
    doc = _try_parse(html)
    if doc is None:
        return ValidationResult(
            valid=False,
            errors=[ValidationIssue(path="", selector="", message="HTML could not be parsed")],
        )

    errors: List[ValidationIssue] = []
    for mapping in mappings:
        if not doc.selector_exists(mapping.selector):
            errors.append(
                ValidationIssue(
                    path=mapping.path,
                    selector=mapping.selector,
                    message=f'Selector "{mapping.selector}" not found in HTML',
                )
            )

    return ValidationResult(valid=not errors, errors=errors, warnings=[])


def suggest_selector_fixes(html: str, broken_selector: str) -> List[str]:
    """
    Propose selectors that do resolve, derived from a broken one:
    the last part of a descendant selector, and the selector without
    `:nth-of-type(n)` filters.
    """
    doc = _try_parse(html)
    if doc is None or not broken_selector:
        return []

    candidates = []
    parts = broken_selector.split()
    if len(parts) > 1:
        candidates.append(parts[-1])

    without_nth = NTH_OF_TYPE_RE.sub("", broken_selector)
    if without_nth != broken_selector and without_nth.strip():
        candidates.append(without_nth)

    suggestions = []
    for candidate in candidates:
        if candidate not in suggestions and doc.selector_exists(candidate):
            suggestions.append(candidate)
    return suggestions


def validate_html_structure(html: str) -> bool:
    """True when the document has html, head and body elements."""
    try:
        doc = HtmlDocument(html)
        return all(doc.soup.find(name) is not None for name in ("html", "head", "body"))
    except Exception as e:
        logger.warning(f"HTML structure check failed: {e}")
        return False
