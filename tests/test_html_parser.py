import logging

import pytest

from content_sync.core.errors import MalformedHtmlError
from content_sync.utils.html_parser import (
    HtmlDocument,
    node_path,
    parse_html,
    serialize_html,
    set_node_multiline,
    set_style_property,
    toggle_class,
)

IRREGULAR_HTML = (
    "<!doctype html>\n"
    "<html><head><title>T &amp; C</title></head>\n"
    "<body class='main  wide'>\n"
    "  <img src=a.png alt=''/>\n"
    "  <p data-x=\"1\" id=\"p1\">Line<br/>break</p>\n"
    "  <!-- comment -->\n"
    "</body></html>\n"
)


def test_unmodified_round_trip_is_exact(sample_html):
    assert serialize_html(parse_html(sample_html)) == sample_html


def test_irregular_markup_round_trips_unchanged():
    assert parse_html(IRREGULAR_HTML).serialize() == IRREGULAR_HTML


def test_crlf_round_trip():
    html = "<html>\r\n<body>\r\n<p>x</p>\r\n</body>\r\n</html>\r\n"
    assert parse_html(html).serialize() == html


def test_crlf_is_kept_after_mutation():
    html = "<div>\r\n<p class=\"first\">a</p>\r\n<p>b</p>\r\n</div>\r\n"
    doc = parse_html(html)
    assert doc.set_text("p.first", "z")
    assert doc.serialize() == "<div>\r\n<p class=\"first\">z</p>\r\n<p>b</p>\r\n</div>\r\n"


def test_attribute_order_is_preserved_on_mutation():
    doc = parse_html('<a id="x" href="/old" class="btn" title="t">go</a>')
    doc.set_attribute("#x", "href", "/new")
    assert doc.serialize() == '<a id="x" href="/new" class="btn" title="t">go</a>'


def test_attribute_edit_keeps_quote_style_and_neighbours():
    html = "<p>&copy; 2025</p><a href='/old' class=\"btn\" disabled>go &amp; see</a>"
    doc = parse_html(html)
    assert doc.set_attribute("a", "href", "/new")
    assert doc.serialize() == "<p>&copy; 2025</p><a href='/new' class=\"btn\" disabled>go &amp; see</a>"


def test_text_edit_keeps_sibling_entities():
    html = "<div><h1>Old</h1>\n<p>Caf&eacute;&nbsp;open</p></div>"
    doc = parse_html(html)
    assert doc.set_text("h1", "New")
    assert doc.serialize() == "<div><h1>New</h1>\n<p>Caf&eacute;&nbsp;open</p></div>"


def test_getters(sample_html):
    doc = parse_html(sample_html)
    assert doc.get_text("header h1") == "Welcome to the meetups"
    assert doc.get_attribute("header .logo", "alt") == "Meetup logo"
    assert doc.get_inner_html(".info-item p") == "Main Street 1<br>Springfield"
    assert doc.count_matches(".event-card") == 3
    assert doc.selector_exists(".faq-item")


def test_missing_selector_is_a_warning_not_an_error(sample_html, caplog):
    doc = parse_html(sample_html)
    with caplog.at_level(logging.WARNING):
        assert doc.get_text(".nope") == ""
        assert doc.get_attribute(".nope", "href") == ""
        assert doc.set_text(".nope", "x") is False
        assert doc.set_attribute(".nope", "href", "x") is False
    assert "Selector not found: .nope" in caplog.text
    assert doc.serialize() == sample_html


def test_invalid_selector_does_not_raise(sample_html):
    doc = parse_html(sample_html)
    assert doc.select("div[") == []
    assert doc.selector_exists("::::") is False


def test_setters_apply_to_every_match():
    doc = parse_html("<ul><li>a</li><li>b</li></ul>")
    assert doc.set_text("li", "x")
    assert doc.serialize() == "<ul><li>x</li><li>x</li></ul>"


def test_set_inner_html():
    doc = parse_html("<div id=\"d\"><span>old</span></div>")
    assert doc.set_inner_html("#d", "<em>new</em> text")
    assert doc.get_inner_html("#d") == "<em>new</em> text"


def test_non_string_input_raises():
    with pytest.raises(MalformedHtmlError):
        HtmlDocument(None)


def test_multiline_writes_line_breaks():
    doc = parse_html("<p>old</p>")
    p = doc.select_one("p")
    assert set_node_multiline(p, "one\ntwo\nthree")
    assert doc.serialize() == "<p>one<br>two<br>three</p>"
    assert set_node_multiline(p, "one\ntwo\nthree") is False


def test_toggle_class_and_style():
    doc = parse_html('<div class="card"><span style="color: red; display: none">b</span></div>')
    card = doc.select_one(".card")
    span = doc.select_one("span")

    assert toggle_class(card, "featured", True)
    assert toggle_class(card, "featured", True) is False
    assert set_style_property(span, "display", None)
    assert doc.serialize() == '<div class="card featured"><span style="color: red">b</span></div>'

    assert toggle_class(card, "card", False)
    assert toggle_class(card, "featured", False)
    assert card.get("class") is None


def test_copy_is_independent_and_paths_resolve(sample_html):
    doc = parse_html(sample_html)
    h1 = doc.select_one("header h1")
    copy = doc.copy()
    twin = copy.resolve_path(node_path(h1))
    assert twin is not None and twin.get_text() == "Welcome to the meetups"

    twin.string = "changed"
    assert doc.get_text("header h1") == "Welcome to the meetups"
    assert not doc.modified
