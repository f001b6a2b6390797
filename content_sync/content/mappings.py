"""
Selector mapping table: content paths bound to CSS selectors.

Used by the structure validator and by `extract_content_from_html`; the
injector relies on its own structural selectors and does not read this table.
Paths address sections by id: `sections[<id>].content.<field>[<n>].<field>`.
"""
from typing import List, Optional, Tuple

from content_sync.core.models import SelectorMapping


def _m(path: str, selector: str, mode: str = "text", attribute: Optional[str] = None) -> SelectorMapping:
    return SelectorMapping(path=path, selector=selector, mode=mode, attribute=attribute)


def _repeated(path: str, item_selector: str, count: int, fields) -> List[SelectorMapping]:
    """Expand per-item field selectors for `count` positional items."""
    entries = []
    for index in range(count):
        item = f"{item_selector}:nth-of-type({index + 1})"
        for field, child, mode, attribute in fields:
            entries.append(_m(f"{path}[{index}].{field}", f"{item} {child}", mode, attribute))
    return entries


CONTENT_MAPPINGS: Tuple[SelectorMapping, ...] = tuple(
    [
        # Metadata
        _m("metadata.title", "title"),
        _m("metadata.description", 'meta[name="description"]', "attribute", "content"),

        # Hero
        _m("sections[hero].content.heading", "header h1"),
        _m("sections[hero].content.subheading", "header > p"),
        _m("sections[hero].content.ctaText", "header .btn-primary-large"),
        _m("sections[hero].content.ctaUrl", "header .btn-primary-large", "attribute", "href"),
        _m("sections[hero].content.urgencyText", "header .urgency-text"),
        _m("sections[hero].content.logoAlt", "header .logo", "attribute", "alt"),

        # Next event banner
        _m("sections[next-event].content.heading", ".next-event-banner strong"),
        _m("sections[next-event].content.subtitle", ".next-event-banner .countdown"),

        # Intro
        _m("sections[intro].content.heading", ".intro h2"),
    ]
    + [
        _m(f"sections[intro].content.paragraphs[{i}]", f".intro p:nth-of-type({i + 1})")
        for i in range(3)
    ]
    + [
        # Team
        _m("sections[team].content.heading", ".team h2"),
    ]
    + _repeated(
        "sections[team].content.members",
        ".facilitator",
        2,
        [
            ("name", "h3", "text", None),
            ("role", ".facilitator-role", "text", None),
            ("bio", ".facilitator-bio", "text", None),
            ("photoAlt", ".facilitator-photo", "attribute", "alt"),
        ],
    )
    + [
        # Events
        _m("sections[events].content.heading", ".events h2"),
    ]
    + _repeated(
        "sections[events].content.events",
        ".event-card",
        3,
        [
            ("title", "h3", "text", None),
            ("date", ".event-date", "text", None),
            ("availability", ".availability", "text", None),
        ],
    )
    + [
        # Newsletter
        _m("sections[newsletter].content.heading", ".newsletter h2"),
        _m("sections[newsletter].content.description", ".newsletter > p"),
        _m("sections[newsletter].content.buttonText", ".newsletter-form button"),
        _m("sections[newsletter].content.privacyNote", ".newsletter .privacy-note"),

        # Practical info
        _m("sections[info].content.heading", ".info h2"),
    ]
    + _repeated(
        "sections[info].content.infoItems",
        ".info-item",
        3,
        [
            ("label", "strong", "text", None),
            ("value", "p", "html", None),
        ],
    )
    + [
        _m("sections[info].content.locationHeading", ".location-details h3"),
        _m("sections[info].content.mapEmbedUrl", ".map-container iframe", "attribute", "src"),
        _m("sections[info].content.directionsLabel", ".directions strong"),

        # FAQ
        _m("sections[faq].content.heading", ".faq h2"),
    ]
    + _repeated(
        "sections[faq].content.items",
        ".faq-item",
        3,
        [
            ("question", ".faq-question", "text", None),
            ("answer", ".faq-answer", "text", None),
        ],
    )
    + [
        # Contact
        _m("sections[contact].content.heading", ".contact h2"),
        _m("sections[contact].content.description", ".contact > p"),

        # Footer
        _m("sections[footer].content.text", "footer p:first-child"),
        _m("sections[footer].content.email", "footer p:last-child"),
    ]
)


def get_selector_for_path(path: str, mappings=CONTENT_MAPPINGS) -> Optional[SelectorMapping]:
    for mapping in mappings:
        if mapping.path == path:
            return mapping
    return None


def get_selectors_for_section(section_id: str, mappings=CONTENT_MAPPINGS) -> List[SelectorMapping]:
    token = f"sections[{section_id}]"
    return [m for m in mappings if token in m.path]
