from lms_admin.core.models import Notice
from lms_admin.core.preview_renderer import PreviewRenderer

from conftest import make_exam


def test_fragment_escapes_raw_html():
    html = PreviewRenderer().render_fragment("<script>alert(1)</script> **bold**")
    assert "<script>" not in html
    assert "<strong>bold</strong>" in html


def test_empty_fragment_placeholder():
    assert PreviewRenderer().render_fragment("   ", empty_text="Nothing") == "<p><em>Nothing</em></p>"


def test_exam_preview_marks_correct_option_and_answer_key():
    html = PreviewRenderer().render_exam(make_exam())
    assert html.startswith("<!doctype html>")
    assert '<li class="correct">H₂O</li>' in html
    assert "Answer key: Au" in html
    assert "3 question(s)" in html


def test_notice_markup():
    html = PreviewRenderer().render_notice(Notice(id="n1", title="Fees", content="Due *Friday*", priority="low"))
    assert 'class="notice priority-low"' in html
    assert "<em>Friday</em>" in html
