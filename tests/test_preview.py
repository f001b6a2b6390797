from content_sync.preview import LivePreview
from content_sync.state.scheduling import ManualScheduler
from content_sync.utils.html_modifier import HIGHLIGHT_CLASS, HIGHLIGHT_STYLE_MARKER
from content_sync.utils.html_parser import toggle_class


def test_apply_then_render(sample_html, sample_content):
    preview = LivePreview(sample_html)
    assert preview.render() == sample_html

    changed = preview.apply(sample_content.with_section("hero", {"heading": "Live"}))
    html = preview.render()
    assert len(changed) == 1
    assert "<h1>Live</h1>" in html
    assert HIGHLIGHT_CLASS not in html


def test_successive_edits_reuse_the_tree(sample_html, sample_content):
    preview = LivePreview(sample_html)
    preview.apply(sample_content.with_section("hero", {"heading": "First"}))
    assert preview.apply(sample_content.with_section("hero", {"heading": "First"})) == []
    preview.apply(sample_content)
    assert preview.render() == sample_html


def test_annotated_render_leaves_tree_clean(sample_html, sample_content):
    preview = LivePreview(sample_html)
    preview.apply(sample_content.with_section("faq", {"heading": "FAQ"}))

    annotated = preview.render_annotated()
    assert HIGHLIGHT_CLASS in annotated
    assert HIGHLIGHT_STYLE_MARKER in annotated

    html = preview.render()
    assert HIGHLIGHT_CLASS not in html
    assert HIGHLIGHT_STYLE_MARKER not in html


def test_render_strips_stray_highlighting(sample_html):
    preview = LivePreview(sample_html)
    toggle_class(preview.doc.select_one("footer"), HIGHLIGHT_CLASS, True)
    assert preview.render() == sample_html


def test_debounced_schedule_renders_latest_only(sample_html, sample_content):
    scheduler = ManualScheduler()
    preview = LivePreview(sample_html, scheduler=scheduler)
    rendered = []

    preview.schedule(sample_content.with_section("hero", {"heading": "A"}), rendered.append)
    scheduler.advance(0.1)
    preview.schedule(sample_content.with_section("hero", {"heading": "B"}), rendered.append)
    scheduler.advance(1)

    assert len(rendered) == 1
    assert "<h1>B</h1>" in rendered[0]


def test_schedule_without_scheduler_renders_immediately(sample_html, sample_content):
    preview = LivePreview(sample_html)
    rendered = []
    preview.schedule(sample_content.with_section("hero", {"heading": "Now"}), rendered.append)
    assert "<h1>Now</h1>" in rendered[0]
