"""Deck renderers: reveal.js HTML, reportlab PDF and Markdown."""

from services.report.html_deck import HtmlDeckRenderer
from services.report.markdown_deck import MarkdownDeckRenderer
from services.report.pdf_deck import PdfDeckRenderer
from services.report.render_service import render_deck
from services.report.static_charts import figure_to_png

__all__ = [
    "HtmlDeckRenderer",
    "MarkdownDeckRenderer",
    "PdfDeckRenderer",
    "figure_to_png",
    "render_deck",
]
