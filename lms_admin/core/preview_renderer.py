"""Markdown rendering for exam previews and notice bodies.

Architecture note:
    Question text is stored already formatted (Unicode super/subscripts), so
    previews only need markdown for emphasis, lists and code. Notice content
    is authored as markdown too. Raw HTML in the source is escaped rather than
    passed through, since both kinds of text come from free-form input.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from html import escape

from markdown_it import MarkdownIt

from lms_admin.core.models import Exam, Notice, Question, QuestionType

_MATHJAX_SCRIPT = (
    "https://cdn.jsdelivr.net/npm/mathjax@3/es5/tex-mml-chtml.js"
)


@dataclass(slots=True)
class PreviewRenderer:
    """Converts markdown text into HTML fragments or full documents."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str, empty_text: str = "No content provided.") -> str:
        sanitized = markdown_text.strip()
        if not sanitized:
            return f"<p><em>{escape(empty_text)}</em></p>"
        return self._markdown.render(sanitized)

    def render_question(self, number: int, question: Question) -> str:
        body = self.render_fragment(question.text, empty_text="Untitled Question")
        parts = [f'<section class="question" data-type="{question.type.value}">', f"<h3>Question {number}</h3>", body]
        if question.type is QuestionType.SHORT_ANSWER:
            parts.append('<p class="answer-key">Answer key: ' + escape(question.correct_answer_text or "") + "</p>")
        else:
            parts.append("<ol class=\"options\">")
            for index, option in enumerate(question.options):
                marker = ' class="correct"' if index == question.correct_answer else ""
                parts.append(f"<li{marker}>{escape(option) or '<em>(empty)</em>'}</li>")
            parts.append("</ol>")
        parts.append("</section>")
        return "\n".join(parts)

    def render_exam(self, exam: Exam) -> str:
        header = (
            f"<h1>{escape(exam.title or 'Untitled Exam')}</h1>\n"
            f"{self.render_fragment(exam.description, empty_text='No description.')}\n"
            f"<p class=\"policy\">{exam.duration_minutes} min | {exam.total_marks} marks | "
            f"{escape(exam.difficulty)} | {exam.question_count} question(s)</p>"
        )
        questions = "\n".join(
            self.render_question(number, question) for number, question in enumerate(exam.questions, start=1)
        )
        return self.wrap_document(header + "\n" + questions, title=exam.title or "Exam Preview")

    def render_notice(self, notice: Notice) -> str:
        pinned = " pinned" if notice.is_pinned else ""
        return (
            f'<article class="notice priority-{escape(notice.priority)}{pinned}">\n'
            f"<h2>{escape(notice.title)}</h2>\n"
            f"{self.render_fragment(notice.content)}"
            "</article>"
        )

    def wrap_document(self, body_html: str, title: str = "Preview") -> str:
        """Wrap a fragment inside a minimal HTML document that loads MathJax."""

        return f"""<!doctype html>
<html lang=\"en\">
  <head>
    <meta charset=\"utf-8\" />
    <title>{escape(title)}</title>
    <meta name=\"viewport\" content=\"width=device-width, initial-scale=1\" />
    <style>
      body {{ font-family: 'Segoe UI', system-ui, sans-serif; margin: 0; padding: 1rem; }}
      .question {{ margin-bottom: 1.5rem; }}
      .options li.correct {{ font-weight: bold; color: #059669; }}
    </style>
    <script>
      window.MathJax = {{ tex: {{ inlineMath: [['$','$']], displayMath: [['$$','$$']] }} }};
    </script>
    <script defer src=\"{_MATHJAX_SCRIPT}\"></script>
  </head>
  <body>
{body_html}
  </body>
</html>"""


renderer = PreviewRenderer()
# Shared instance; MarkdownIt is safe for concurrent read-only renders.
