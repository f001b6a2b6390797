import logging
import re
from dataclasses import dataclass, field
from html import unescape
from html.parser import HTMLParser
from typing import Dict, List, Optional, Tuple

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.builder import HTMLTreeBuilder
from bs4.dammit import EntitySubstitution
from bs4.formatter import HTMLFormatter
from soupsieve import SelectorSyntaxError

from content_sync.core.errors import MalformedHtmlError

logger = logging.getLogger(__name__)

DOCTYPE_RE = re.compile(r"^\s*<!DOCTYPE[^>]*>", re.IGNORECASE)
ATTRIBUTE_RE = re.compile(r"""([^\s"'>/=]+)(?:\s*=\s*("[^"]*"|'[^']*'|[^\s>]*))?""")
VOID_ELEMENTS = frozenset(HTMLTreeBuilder.empty_element_tags)


class SourceOrderFormatter(HTMLFormatter):
    """
    HTML formatter that stays close to hand-written markup:
    attributes keep their source order, void elements render as `<br>`,
    and only &, < and > are escaped.
    """

    def attributes(self, tag: Tag):
        if tag.attrs is None:
            return []
        return list(tag.attrs.items())


FORMATTER = SourceOrderFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)


def make_soup(markup: str) -> BeautifulSoup:
    # class stays a plain string so it is written back exactly as read
    return BeautifulSoup(markup, "html.parser", multi_valued_attributes=None)


_TAG_FACTORY = make_soup("")


def new_tag(name: str, **attrs) -> Tag:
    return _TAG_FACTORY.new_tag(name, attrs=attrs)


def split_doctype(html: str) -> Tuple[str, str]:
    """Split a leading doctype (and whitespace before it) from the markup."""
    match = DOCTYPE_RE.match(html)
    if not match:
        return "", html
    return match.group(0), html[match.end():]


def detect_newline(html: str) -> str:
    return "\r\n" if "\r\n" in html else "\n"


def normalize_newlines(html: str, newline: str) -> str:
    if newline == "\r\n":
        return re.sub(r"\r?\n", "\r\n", html)
    return html.replace("\r\n", "\n")


# ============================================================================
# Source positions
# ============================================================================

@dataclass
class SourceSpan:
    """Offsets of one element in the markup. End fields stay None when no end tag was seen."""
    start: int
    start_end: int
    end_start: Optional[int] = None
    end: Optional[int] = None


@dataclass
class _NodeOrigin:
    node: PageElement
    span: Optional[SourceSpan] = None
    name: Optional[str] = None
    attrs: List[Tuple[str, str]] = field(default_factory=list)
    children: List[PageElement] = field(default_factory=list)
    text: Optional[str] = None


class _SourceScanner(HTMLParser):
    """Records where each element's start and end tags sit in the markup, keyed like bs4's sourceline/sourcepos."""

    def __init__(self, markup: str):
        super().__init__(convert_charrefs=False)
        self.markup = markup
        self.spans: Dict[Tuple[int, int], SourceSpan] = {}
        self._open: List[Tuple[str, SourceSpan]] = []
        self._line_starts = [0] + [m.end() for m in re.finditer("\n", markup)]

    def _offset(self) -> int:
        line, column = self.getpos()
        return self._line_starts[line - 1] + column

    def handle_starttag(self, tag, attrs):
        start = self._offset()
        span = SourceSpan(start, start + len(self.get_starttag_text()))
        self.spans[self.getpos()] = span
        if tag in VOID_ELEMENTS:
            span.end = span.start_end
        else:
            self._open.append((tag, span))

    def handle_startendtag(self, tag, attrs):
        start = self._offset()
        end = start + len(self.get_starttag_text())
        self.spans[self.getpos()] = SourceSpan(start, end, end=end)

    def handle_endtag(self, tag):
        for index in range(len(self._open) - 1, -1, -1):
            name, span = self._open[index]
            if name != tag:
                continue
            del self._open[index:]
            span.end_start = self._offset()
            close = self.markup.find(">", span.end_start)
            span.end = close + 1 if close != -1 else len(self.markup)
            return


def _quote_attribute(value: str, quote: str) -> str:
    escaped = value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
    entity = "&quot;" if quote == '"' else "&#39;"
    return quote + escaped.replace(quote, entity) + quote


class HtmlDocument:
    """
    Mutable HTML tree addressed by CSS selectors.

    Nodes returned by `select`/`select_one` are bs4 Tags and stay valid
    handles for the lifetime of the document. Missing selectors never raise:
    getters return "" and setters return False after logging a warning.

    `serialize()` returns the source string unchanged unless a mutation took
    effect, so parse-then-serialize is an exact round trip. After a mutation
    only the changed elements are rendered again; everything else, entities,
    attribute quoting and boolean attributes included, is copied from the
    source.
    """

    def __init__(self, html: str):
        if not isinstance(html, str):
            raise MalformedHtmlError(f"Expected HTML string, got {type(html).__name__}")
        self.source = html
        self.newline = detect_newline(html)
        self.doctype, markup = split_doctype(html)
        try:
            self.soup = make_soup(markup)
        except Exception as e:
            raise MalformedHtmlError(f"Unable to parse HTML: {e}") from e
        self._markup = markup
        self._pristine = self._render()
        self._origins = self._index_source(markup)
        if self._origins and self._splice(reuse=False) != markup:
            logger.debug("Source positions do not line up with the parsed tree, falling back to full rendering")
            self._origins = {}

    # ========== Querying ==========

    def select(self, selector: str, root: Optional[Tag] = None) -> List[Tag]:
        scope = root if root is not None else self.soup
        try:
            return scope.select(selector)
        except (SelectorSyntaxError, ValueError, TypeError) as e:
            logger.warning(f"Invalid selector {selector!r}: {e}")
            return []

    def select_one(self, selector: str, root: Optional[Tag] = None) -> Optional[Tag]:
        matches = self.select(selector, root)
        return matches[0] if matches else None

    def _require(self, selector: str) -> List[Tag]:
        matches = self.select(selector)
        if not matches:
            logger.warning(f"Selector not found: {selector}")
        return matches

    def selector_exists(self, selector: str) -> bool:
        return len(self.select(selector)) > 0

    def count_matches(self, selector: str) -> int:
        return len(self.select(selector))

    # ========== Getters ==========

    def get_text(self, selector: str) -> str:
        matches = self._require(selector)
        return "".join(tag.get_text() for tag in matches).strip()

    def get_inner_html(self, selector: str) -> str:
        matches = self._require(selector)
        if not matches:
            return ""
        return inner_html(matches[0])

    def get_attribute(self, selector: str, attribute: str) -> str:
        matches = self._require(selector)
        if not matches:
            return ""
        value = matches[0].get(attribute)
        return value if value is not None else ""

    # ========== Setters ==========

    def set_text(self, selector: str, content: str) -> bool:
        matches = self._require(selector)
        for tag in matches:
            set_node_text(tag, content)
        return bool(matches)

    def set_inner_html(self, selector: str, content: str) -> bool:
        matches = self._require(selector)
        for tag in matches:
            set_node_inner_html(tag, content)
        return bool(matches)

    def set_attribute(self, selector: str, attribute: str, value: str) -> bool:
        matches = self._require(selector)
        for tag in matches:
            set_node_attribute(tag, attribute, value)
        return bool(matches)

    # ========== Serialization ==========

    def _render(self) -> str:
        return self.soup.decode(formatter=FORMATTER)

    @property
    def modified(self) -> bool:
        return self._render() != self._pristine

    def serialize(self) -> str:
        rendered = self._render()
        if rendered == self._pristine:
            return self.source
        if self._origins:
            return self.doctype + self._splice()
        return self.doctype + normalize_newlines(rendered, self.newline)

    # ========== Source splicing ==========

    def _index_source(self, markup: str) -> Dict[int, _NodeOrigin]:
        scanner = _SourceScanner(markup)
        scanner.feed(markup)
        scanner.close()

        origins: Dict[int, _NodeOrigin] = {}
        tags = self.soup.find_all(True)
        for tag in tags:
            span = scanner.spans.get((tag.sourceline, tag.sourcepos))
            if span is not None and not markup[span.start:span.start_end].lower().startswith("<" + tag.name):
                span = None
            origins[id(tag)] = _NodeOrigin(
                node=tag,
                span=span,
                name=tag.name,
                attrs=list(tag.attrs.items()),
                children=list(tag.contents),
            )

        def edge(node: PageElement, attribute: str) -> Optional[int]:
            origin = origins.get(id(node)) if isinstance(node, Tag) else None
            if origin is None or origin.span is None:
                return None
            return getattr(origin.span, attribute)

        for container in [self.soup] + tags:
            if container is self.soup:
                opened, closed = 0, len(markup)
            else:
                opened, closed = edge(container, "start_end"), edge(container, "end_start")
            contents = container.contents
            for index, child in enumerate(contents):
                if isinstance(child, Tag):
                    continue
                left = edge(contents[index - 1], "end") if index > 0 else opened
                right = edge(contents[index + 1], "start") if index + 1 < len(contents) else closed
                text = None
                if left is not None and right is not None:
                    text = markup[left:right]
                    if text != child and unescape(text) != child and text != child.output_ready(FORMATTER):
                        text = None
                origins[id(child)] = _NodeOrigin(node=child, text=text)
        return origins

    def _origin(self, node: PageElement) -> Optional[_NodeOrigin]:
        origin = self._origins.get(id(node))
        return origin if origin is not None and origin.node is node else None

    def _unchanged(self, node: PageElement, memo: Dict[int, bool]) -> bool:
        key = id(node)
        if key not in memo:
            origin = self._origin(node)
            if origin is None:
                memo[key] = False
            elif not isinstance(node, Tag):
                memo[key] = True
            else:
                memo[key] = (
                    node.name == origin.name
                    and list(node.attrs.items()) == origin.attrs
                    and len(node.contents) == len(origin.children)
                    and all(a is b for a, b in zip(node.contents, origin.children))
                    and all(self._unchanged(child, memo) for child in node.contents)
                )
        return memo[key]

    def _splice(self, reuse: bool = True) -> str:
        """Write the tree out, copying source text for every element the edits did not touch."""
        memo: Dict[int, bool] = {}
        return "".join(self._emit(child, memo, reuse) for child in self.soup.contents)

    def _emit(self, node: PageElement, memo: Dict[int, bool], reuse: bool) -> str:
        if isinstance(node, Tag):
            return self._emit_tag(node, memo, reuse)
        origin = self._origin(node)
        if origin is not None and origin.text is not None:
            return origin.text
        return normalize_newlines(node.output_ready(FORMATTER), self.newline)

    def _emit_tag(self, tag: Tag, memo: Dict[int, bool], reuse: bool) -> str:
        origin = self._origin(tag)
        span = origin.span if origin is not None else None
        if reuse and span is not None and span.end is not None and self._unchanged(tag, memo):
            return self._markup[span.start:span.end]

        same_name = span is not None and origin.name == tag.name
        self_closed = span is not None and span.end_start is None and span.end == span.start_end
        if same_name and list(tag.attrs.items()) == origin.attrs and not (self_closed and tag.contents):
            start = self._markup[span.start:span.start_end]
        else:
            start = self._rewrite_start_tag(tag, origin)

        body = "".join(self._emit(child, memo, reuse) for child in tag.contents)

        if same_name and span.end_start is not None:
            end = self._markup[span.end_start:span.end]
        elif tag.is_empty_element:
            end = ""
        elif same_name and span.end is None:
            # closed implicitly in the source
            end = ""
        else:
            end = f"</{tag.name}>"
        return start + body + end

    def _rewrite_start_tag(self, tag: Tag, origin: Optional[_NodeOrigin]) -> str:
        """Render a start tag, reusing the source text (and quote style) of attributes that survive."""
        raw = {}
        original = {}
        if origin is not None and origin.span is not None:
            text = self._markup[origin.span.start:origin.span.start_end]
            for match in ATTRIBUTE_RE.finditer(text, len(origin.name) + 1):
                raw[match.group(1).lower()] = match
            original = dict(origin.attrs)

        parts = []
        for key, value in tag.attrs.items():
            match = raw.get(key)
            if match is not None and key in original and original[key] == value:
                parts.append(match.group(0))
                continue
            quoted = match.group(2) if match is not None else None
            quote = "'" if quoted and quoted.startswith("'") else '"'
            parts.append(f"{key}={_quote_attribute(str(value), quote)}")
        rendered = "<" + tag.name + "".join(" " + part for part in parts) + ">"
        return normalize_newlines(rendered, self.newline)

    def copy(self) -> "HtmlDocument":
        """Independent document with the current (possibly modified) markup."""
        return HtmlDocument(self.serialize())

    def resolve_path(self, path: List[int]) -> Optional[Tag]:
        """Find the node at a `node_path()` taken from a structurally identical tree."""
        node = self.soup
        for index in path:
            contents = getattr(node, "contents", None)
            if contents is None or index >= len(contents):
                return None
            node = contents[index]
        return node if isinstance(node, Tag) else None


def parse_html(html: str) -> HtmlDocument:
    return HtmlDocument(html)


def serialize_html(document: HtmlDocument) -> str:
    return document.serialize()


# ============================================================================
# Node-level helpers (all return True only when the tree actually changed)
# ============================================================================

def inner_html(tag: Tag) -> str:
    return tag.decode_contents(formatter=FORMATTER)


def set_node_text(tag: Optional[Tag], value: Optional[str]) -> bool:
    if tag is None or value is None:
        return False
    if tag.get_text() == value:
        return False
    tag.string = value
    return True


def set_node_inner_html(tag: Optional[Tag], markup: Optional[str]) -> bool:
    if tag is None or markup is None:
        return False
    if inner_html(tag) == markup:
        return False
    fragment = make_soup(markup)
    tag.clear()
    for child in list(fragment.contents):
        tag.append(child.extract())
    return True


def set_node_attribute(tag: Optional[Tag], attribute: str, value: Optional[str]) -> bool:
    if tag is None or value is None:
        return False
    if tag.get(attribute) == value:
        return False
    tag[attribute] = value
    return True


def remove_node_attribute(tag: Optional[Tag], attribute: str) -> bool:
    if tag is None or attribute not in tag.attrs:
        return False
    del tag[attribute]
    return True


def set_node_multiline(tag: Optional[Tag], value: Optional[str]) -> bool:
    """Write `value` as text nodes separated by <br> elements."""
    if tag is None or value is None:
        return False
    current = "\n".join(
        str(child) for child in tag.children if isinstance(child, NavigableString)
    )
    if current == value and all(
        isinstance(child, NavigableString) or child.name == "br" for child in tag.children
    ):
        return False
    tag.clear()
    parts = value.split("\n")
    for index, part in enumerate(parts):
        tag.append(NavigableString(part))
        if index < len(parts) - 1:
            tag.append(new_tag("br"))
    return True


def get_classes(tag: Tag) -> List[str]:
    value = tag.get("class") or ""
    if isinstance(value, list):
        return value
    return value.split()


def has_class(tag: Tag, class_name: str) -> bool:
    return class_name in get_classes(tag)


def toggle_class(tag: Optional[Tag], class_name: str, enabled: bool) -> bool:
    if tag is None:
        return False
    classes = get_classes(tag)
    if (class_name in classes) == enabled:
        return False
    if enabled:
        classes.append(class_name)
    else:
        classes = [c for c in classes if c != class_name]
    if classes:
        tag["class"] = " ".join(classes)
    else:
        del tag["class"]
    return True


def set_style_property(tag: Optional[Tag], name: str, value: Optional[str]) -> bool:
    """Set (or with value None, drop) one inline style declaration."""
    if tag is None:
        return False
    declarations = []
    for chunk in (tag.get("style") or "").split(";"):
        if ":" not in chunk:
            continue
        key, val = chunk.split(":", 1)
        declarations.append((key.strip(), val.strip()))
    existing = dict(declarations)
    if existing.get(name) == value or (value is None and name not in existing):
        return False
    declarations = [(k, v) for k, v in declarations if k != name]
    if value is not None:
        declarations.append((name, value))
    if declarations:
        tag["style"] = "; ".join(f"{k}: {v}" for k, v in declarations)
    else:
        del tag["style"]
    return True


def node_path(tag: Tag) -> List[int]:
    """Child-index path from the document root down to `tag`."""
    path = []
    node = tag
    while node.parent is not None:
        siblings = node.parent.contents
        path.append(next(i for i, child in enumerate(siblings) if child is node))
        node = node.parent
    path.reverse()
    return path
