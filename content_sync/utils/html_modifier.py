"""
Content injection: write a ContentDocument into an HTML page.

Features:
1. Metadata (title, description, keywords, Open Graph / Twitter tags)
2. One routine per section type, mutating only the nodes it owns
3. Repeated items (team members, events, FAQ entries, ...) matched to
   existing nodes by position; markup is never cloned or removed
4. Missing selectors and unknown section types are logged and skipped

Highlighting of changed nodes is a separate opt-in step (`annotate_changes`)
applied to a copy of the tree; `inject_content_into_html` never calls it.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Type

from bs4 import NavigableString, Tag

from content_sync.core.models import (
    BannerContent,
    BannerSection,
    ContactContent,
    ContactSection,
    ContentDocument,
    ContentMetadata,
    ContentSection,
    ContentSectionContent,
    EventsContent,
    EventsSection,
    FAQContent,
    FAQSection,
    FooterContent,
    FooterSection,
    FormContent,
    FormSection,
    HeroContent,
    HeroSection,
    InfoContent,
    InfoSection,
    SectionBase,
    TeamContent,
    TeamSection,
)
from content_sync.utils.html_parser import (
    HtmlDocument,
    has_class,
    new_tag,
    node_path,
    remove_node_attribute,
    set_node_attribute,
    set_node_multiline,
    set_node_text,
    set_style_property,
    toggle_class,
)

logger = logging.getLogger(__name__)

HIGHLIGHT_CLASS = "content-sync-changed"
HIGHLIGHT_STYLE_MARKER = "data-content-sync-highlight"

HIGHLIGHT_CSS = f"""
.{HIGHLIGHT_CLASS} {{
  outline: 3px solid #16a34a !important;
  outline-offset: 2px;
  background-color: rgba(34, 197, 94, 0.1) !important;
}}
"""

# Structural selectors for repeated items; each accepts the legacy class names
TEAM_GRID = ".facilitator-grid, .team-grid"
TEAM_ITEM = ".facilitator, .team-member"
EVENT_CARD = ".event-card, .bijeenkomst-card"
EVENT_DATE = ".event-date, .bijeenkomst-datum"
INFO_LIST = ".praktisch-grid, .info-list"
INFO_ITEM = ".info-item, .praktisch-item"
FAQ_ITEM = ".faq-item"
CONTACT_BUTTONS = ".contact-buttons"
CONTACT_BUTTON = "a.btn-contact, a.btn"

LEADING_SYMBOLS_RE = re.compile(r"^[^\w\d]*\s*", re.UNICODE)
WHITESPACE_RE = re.compile(r"\s+")


def collapse_whitespace(value: str) -> str:
    return WHITESPACE_RE.sub(" ", value).strip()


def preserve_leading_symbols(existing_text: str, next_value: str) -> str:
    """Keep a leading icon (e.g. a calendar emoji) of the existing text."""
    prefix = ""
    for char in existing_text:
        if char.isalnum():
            break
        prefix += char
    if not prefix.strip():
        return next_value
    normalized = next_value.lstrip()
    if normalized.startswith(prefix.strip()):
        return next_value
    return f"{prefix}{normalized}"


def strip_leading_symbols(value: str) -> str:
    return collapse_whitespace(LEADING_SYMBOLS_RE.sub("", value))


# ============================================================================
# Injection engine
# ============================================================================

class ContentInjector:
    """
    Applies a ContentDocument to an HtmlDocument in place.

    After `apply()`, `changed` holds the roots of every section or item that
    was modified and `warnings` the skipped selectors/sections.
    """

    def __init__(self):
        self.changed: List[Tag] = []
        self.warnings: List[str] = []
        self._handlers: Dict[Type[SectionBase], Callable] = {
            HeroSection: self._inject_hero,
            BannerSection: self._inject_banner,
            ContentSection: self._inject_content_section,
            TeamSection: self._inject_team,
            EventsSection: self._inject_events,
            FormSection: self._inject_form,
            InfoSection: self._inject_info,
            FAQSection: self._inject_faq,
            ContactSection: self._inject_contact,
            FooterSection: self._inject_footer,
        }

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    def _mark(self, tag: Optional[Tag]) -> None:
        if tag is not None and not any(tag is seen for seen in self.changed):
            self.changed.append(tag)

    def apply(self, doc: HtmlDocument, content: ContentDocument) -> List[Tag]:
        self.changed = []
        self.warnings = []

        self._update_metadata(doc, content.metadata)

        for section in content.sections:
            handler = self._handlers.get(type(section))
            if handler is None:
                self._warn(f"Unknown section type: {section.type}")
                continue

            root = doc.select_one(section.selector)
            if root is None:
                self._warn(f"Selector not found: {section.selector} for section {section.id}")
                continue

            try:
                if handler(doc, root, section.content, section.id):
                    self._mark(root)
            except Exception as e:
                logger.error(f"Error injecting section {section.id}: {e}", exc_info=True)

        return self.changed

    # ========== Metadata ==========

    def _update_metadata(self, doc: HtmlDocument, metadata: ContentMetadata) -> None:
        set_node_text(doc.select_one("title"), metadata.title)
        set_node_attribute(doc.select_one('meta[name="description"]'), "content", metadata.description)

        if metadata.keywords:
            set_node_attribute(doc.select_one('meta[name="keywords"]'), "content", metadata.keywords)

        social = [
            ('meta[property="og:title"]', metadata.og_title, metadata.title),
            ('meta[property="og:description"]', metadata.og_description, metadata.description),
            ('meta[name="twitter:title"]', metadata.twitter_title, metadata.title),
            ('meta[name="twitter:description"]', metadata.twitter_description, metadata.description),
        ]
        for selector, explicit, fallback in social:
            tag = doc.select_one(selector)
            if tag is None:
                continue
            value = explicit if explicit is not None else tag.get("content", fallback)
            set_node_attribute(tag, "content", value)

    # ========== Section routines ==========
    # Each returns True when anything inside the section root changed.

    def _inject_hero(self, doc: HtmlDocument, root: Tag, content: HeroContent, section_id: str) -> bool:
        changed = set_node_text(doc.select_one("h1", root), content.heading)

        subtitle = next(
            (p for p in doc.select("p", root) if not has_class(p, "urgency-text")),
            None,
        )
        changed = set_node_text(subtitle, content.subheading) or changed

        cta = doc.select_one(".btn-primary-large, .hero-cta a", root)
        changed = set_node_text(cta, content.cta_text) or changed
        changed = set_node_attribute(cta, "href", content.cta_url) or changed

        changed = set_node_text(doc.select_one(".urgency-text", root), content.urgency_text) or changed

        logo = doc.select_one("img.logo", root) or doc.select_one(".logo", root)
        changed = set_node_attribute(logo, "alt", content.logo_alt) or changed
        return changed

    def _inject_banner(self, doc: HtmlDocument, root: Tag, content: BannerContent, section_id: str) -> bool:
        changed = set_node_text(doc.select_one("strong, h2, h3", root), content.heading)
        subtitle = doc.select_one(".countdown", root) or doc.select_one("p", root)
        changed = set_node_text(subtitle, content.subtitle) or changed
        return changed

    def _inject_content_section(
        self, doc: HtmlDocument, root: Tag, content: ContentSectionContent, section_id: str
    ) -> bool:
        changed = set_node_text(doc.select_one("h2, h3", root), content.heading)

        paragraphs = doc.select("p", root)
        for index, text in enumerate(content.paragraphs):
            if index >= len(paragraphs):
                self._warn(f"Paragraph index {index} missing for section {section_id}")
                continue
            if set_node_text(paragraphs[index], text):
                self._mark(paragraphs[index])
                changed = True
        return changed

    def _inject_team(self, doc: HtmlDocument, root: Tag, content: TeamContent, section_id: str) -> bool:
        changed = set_node_text(doc.select_one("h2", root), content.heading)

        container = doc.select_one(TEAM_GRID, root) or root
        members = doc.select(TEAM_ITEM, container)
        for index, member in enumerate(content.members):
            if index >= len(members):
                self._warn(f"Team member index {index} missing for section {section_id}")
                continue
            item = members[index]
            photo = doc.select_one(".facilitator-photo, .member-photo", item)
            item_changed = set_node_attribute(photo, "src", member.photo)
            item_changed = set_node_attribute(photo, "alt", member.photo_alt) or item_changed
            item_changed = set_node_text(doc.select_one("h3", item), member.name) or item_changed
            item_changed = set_node_text(
                doc.select_one(".facilitator-role, .member-role", item), member.role
            ) or item_changed
            item_changed = set_node_text(
                doc.select_one(".facilitator-bio, .member-bio", item), member.bio
            ) or item_changed
            if item_changed:
                self._mark(item)
                changed = True
        return changed

    def _inject_events(self, doc: HtmlDocument, root: Tag, content: EventsContent, section_id: str) -> bool:
        changed = set_node_text(doc.select_one("h2", root), content.heading)

        cards = doc.select(EVENT_CARD, root)
        for index, event in enumerate(content.events):
            if index >= len(cards):
                self._warn(f"Event card index {index} missing for section {section_id}")
                continue
            card = cards[index]
            card_changed = set_node_text(doc.select_one("h3", card), event.title)

            date = doc.select_one(EVENT_DATE, card)
            if date is not None and event.date is not None:
                desired = preserve_leading_symbols(date.get_text(), event.date)
                card_changed = set_node_text(date, desired) or card_changed

            card_changed = set_node_text(doc.select_one(".availability", card), event.availability) or card_changed

            reserve = doc.select_one(".btn-reserve", card)
            if reserve is not None:
                if event.reserve_link:
                    card_changed = set_node_attribute(reserve, "href", event.reserve_link) or card_changed
                else:
                    # no link: drop the stale href, keep the button
                    card_changed = remove_node_attribute(reserve, "href") or card_changed
            elif event.reserve_link:
                self._warn(f"Reserve button missing for event {event.id or index}")

            if event.featured is not None:
                card_changed = toggle_class(card, "featured", event.featured) or card_changed
                badge = doc.select_one(".featured-badge", card)
                if badge is not None:
                    display = None if event.featured else "none"
                    card_changed = set_style_property(badge, "display", display) or card_changed

            if card_changed:
                self._mark(card)
                changed = True
        return changed

    def _inject_form(self, doc: HtmlDocument, root: Tag, content: FormContent, section_id: str) -> bool:
        changed = set_node_text(doc.select_one("h2", root), content.heading)
        changed = set_node_text(doc.select_one("p", root), content.description) or changed
        changed = set_node_text(doc.select_one("button", root), content.button_text) or changed
        changed = set_node_text(doc.select_one(".privacy-note", root), content.privacy_note) or changed
        return changed

    def _inject_info(self, doc: HtmlDocument, root: Tag, content: InfoContent, section_id: str) -> bool:
        changed = set_node_text(doc.select_one("h2", root), content.heading)

        container = doc.select_one(INFO_LIST, root) or root
        items = doc.select(INFO_ITEM, container)
        for index, info in enumerate(content.info_items):
            if index >= len(items):
                self._warn(f"Info item index {index} missing for section {section_id}")
                continue
            item = items[index]
            label = f"{info.icon} {info.label}".strip()
            item_changed = set_node_text(doc.select_one("strong", item), label)
            item_changed = set_node_multiline(doc.select_one("p", item), info.value) or item_changed
            if item_changed:
                self._mark(item)
                changed = True

        location = doc.select_one(".location-details h3", root)
        if set_node_text(location, content.location_heading):
            self._mark(location)
            changed = True

        changed = set_node_attribute(doc.select_one(".map-container iframe", root), "src", content.map_embed_url) or changed

        directions = doc.select_one(".directions", root)
        if directions is not None and self._set_directions(directions, content):
            self._mark(directions)
            changed = True
        return changed

    def _set_directions(self, directions: Tag, content: InfoContent) -> bool:
        if content.directions_label is None and content.directions_text is None:
            return False
        label = content.directions_label or ""
        text = content.directions_text or ""
        if collapse_whitespace(directions.get_text()) == collapse_whitespace(f"{label} {text}"):
            return False
        directions.clear()
        strong = new_tag("strong")
        strong.string = label
        directions.append(strong)
        directions.append(NavigableString(f" {text}"))
        return True

    def _inject_faq(self, doc: HtmlDocument, root: Tag, content: FAQContent, section_id: str) -> bool:
        changed = set_node_text(doc.select_one("h2", root), content.heading)

        items = doc.select(FAQ_ITEM, root)
        for index, faq in enumerate(content.items):
            if index >= len(items):
                self._warn(f"FAQ item index {index} missing for section {section_id}")
                continue
            item = items[index]
            item_changed = set_node_text(doc.select_one(".faq-question", item), faq.question)
            item_changed = set_node_text(doc.select_one(".faq-answer", item), faq.answer) or item_changed
            if item_changed:
                self._mark(item)
                changed = True
        return changed

    def _inject_contact(self, doc: HtmlDocument, root: Tag, content: ContactContent, section_id: str) -> bool:
        changed = set_node_text(doc.select_one("h2", root), content.heading)
        changed = set_node_text(doc.select_one("p", root), content.description) or changed

        container = doc.select_one(CONTACT_BUTTONS, root) or root
        buttons = doc.select(CONTACT_BUTTON, container)
        for index, config in enumerate(content.buttons):
            if index >= len(buttons):
                self._warn(f"Contact button index {index} missing for section {section_id}")
                continue
            button = buttons[index]
            button_changed = False
            # a leading icon in the markup is kept when only the label matches
            if config.text is not None and strip_leading_symbols(button.get_text()) != strip_leading_symbols(
                config.text
            ):
                button_changed = set_node_text(button, config.text)
            button_changed = set_node_attribute(button, "href", config.link) or button_changed
            if button_changed:
                self._mark(button)
                changed = True
        return changed

    def _inject_footer(self, doc: HtmlDocument, root: Tag, content: FooterContent, section_id: str) -> bool:
        paragraphs = doc.select("p", root)
        changed = False
        if len(paragraphs) > 0:
            changed = set_node_text(paragraphs[0], content.text)
        if len(paragraphs) > 1:
            changed = set_node_text(paragraphs[1], content.email) or changed
        return changed


# ============================================================================
# Highlighting (editor-only, opt-in)
# ============================================================================

def annotate_changes(doc: HtmlDocument, changed: List[Tag]) -> str:
    """
    Render `doc` with the `changed` nodes highlighted.

    Works on a copy: the document passed in is left untouched.
    """
    paths = [node_path(tag) for tag in changed]
    annotated = doc.copy()
    for path in paths:
        tag = annotated.resolve_path(path)
        if tag is not None:
            toggle_class(tag, HIGHLIGHT_CLASS, True)

    head = annotated.select_one("head")
    if head is not None and annotated.select_one(f"style[{HIGHLIGHT_STYLE_MARKER}]") is None:
        style = new_tag("style", **{HIGHLIGHT_STYLE_MARKER: "true"})
        style.string = HIGHLIGHT_CSS
        head.append(style)
    return annotated.serialize()


def strip_highlighting(doc: HtmlDocument) -> bool:
    """Remove highlight classes and style blocks. Returns True if any were found."""
    found = False
    for style in doc.select(f"style[{HIGHLIGHT_STYLE_MARKER}]"):
        style.decompose()
        found = True
    for tag in doc.select(f".{HIGHLIGHT_CLASS}"):
        toggle_class(tag, HIGHLIGHT_CLASS, False)
        found = True
    return found


# ============================================================================
# Exported functions
# ============================================================================

def inject_content_into_html(html: str, content: ContentDocument) -> str:
    """
    Write `content` into `html` and return the new markup.

    Raises MalformedHtmlError when `html` is not a string; selector and
    section-type problems are logged and skipped.
    """
    doc = HtmlDocument(html)
    ContentInjector().apply(doc, content)
    return doc.serialize()
