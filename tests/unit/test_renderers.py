"""
Missing Data Deck - Unit Tests for deck rendering (HTML, PDF, Markdown)
"""

import json

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import plotly.graph_objects as go
import pytest

import services.report.static_charts as static_charts
from agents.presentation.slides import (
    BulletBlock,
    CitationBlock,
    Deck,
    FigureBlock,
    MathBlock,
    Slide,
    TableBlock,
    TextBlock,
)
from core.exceptions import RenderError
from services.report import (
    HtmlDeckRenderer,
    MarkdownDeckRenderer,
    PdfDeckRenderer,
    figure_to_png,
    render_deck,
)
from services.report.html_deck import inline_html
from services.report.markdown_deck import pipe_table
from services.report.render_service import normalize_formats
from services.report.tables import format_value, table_rows


@pytest.fixture
def histogram():
    rng = np.random.default_rng(0)
    fig = go.Figure(go.Histogram(x=rng.normal(size=200), name="observed"))
    fig.update_layout(title="Monthly income", xaxis_title="income")
    return fig


@pytest.fixture
def small_deck(histogram):
    deck = Deck("Missing Data", subtitle="Attrition", author="Analytics", date="2026-01-01")
    deck.add_slide(Slide("Missing Data", [TextBlock("Attrition")], kind="title"))
    deck.add_slide(Slide("MCAR", [
        TextBlock("Values are removed **completely at random**."),
        FigureBlock(histogram, caption="Observed income"),
        BulletBlock(["unbiased means", "smaller n"]),
    ], notes="Point at the overlap."))
    deck.add_slide(Slide("Results", [
        TableBlock(pd.DataFrame({"term": ["x", "y|z"], "estimate": [1.23456, 0.0001]}), caption="OLS"),
        MathBlock(r"\bar{Q} = \frac{1}{m}\sum_j \hat{Q}_j"),
    ]))
    deck.add_slide(Slide("References", [CitationBlock(["Rubin, D. B. (1976). Inference and missing data."])],
                         kind="references"))
    return deck


class TestFormatValue:

    @pytest.mark.parametrize("value, expected", [
        (None, ""),
        (float("nan"), ""),
        ("text", "text"),
        (True, "yes"),
        (1470, "1,470"),
        (np.int64(12), "12"),
        (1234.5678, "1,234.57"),
        (0.0001234, "0.00012"),
        (0.0, "0.00"),
    ])
    def test_cells(self, value, expected):
        assert format_value(value) == expected

    def test_table_rows_header_first(self):
        rows = table_rows(pd.DataFrame({"a": [1, 2], "b": [0.5, np.nan]}))
        assert rows == [["a", "b"], ["1", "0.50"], ["2", ""]]


class TestHtml:

    def test_inline_markup(self):
        assert inline_html("a **b** *c* `d` <e>") == (
            "a <strong>b</strong> <em>c</em> <code>d</code> &lt;e&gt;"
        )

    def test_document(self, small_deck):
        html = HtmlDeckRenderer(plotly_js="cdn").to_html(small_deck)
        assert html.startswith("<!DOCTYPE html>")
        assert html.count("<section") == len(small_deck)
        assert 'data-kind="references"' in html
        assert '<aside class="notes">' in html
        assert "deck-table" in html
        assert "<strong>completely at random</strong>" in html
        assert "reveal.js" in html

    def test_render_writes_file(self, small_deck, output_dir):
        path = HtmlDeckRenderer().render(small_deck, output_dir / "deck.html")
        assert path.exists()
        assert "MCAR" in path.read_text(encoding="utf-8")


class TestMarkdown:

    def test_pipe_table_escapes(self):
        table = pipe_table([["a", "b"], ["1", "x|y"]])
        assert table.splitlines() == ["| a | b |", "| --- | --- |", "| 1 | x\\|y |"]

    def test_render(self, small_deck, output_dir):
        path = MarkdownDeckRenderer().render(small_deck, output_dir / "deck.md")
        text = path.read_text(encoding="utf-8")

        assert text.startswith("---\ntitle: \"Missing Data\"")
        assert "# Missing Data" in text
        assert "## MCAR" in text
        assert text.count("\n\n---\n\n") == len(small_deck) - 1
        assert "| term | estimate |" in text
        assert "Note: Point at the overlap." in text
        assert "$$" in text

        asset = output_dir / "deck_assets" / "slide02_fig1.png"
        assert asset.exists()
        assert asset.read_bytes()[:4] == b"\x89PNG"
        assert "](deck_assets/slide02_fig1.png)" in text

    def test_front_matter_escapes_quotes(self, output_dir):
        deck = Deck('Missing "Data"', subtitle="C:\\decks", author="O'Neil", date="2026-01-01")
        text = MarkdownDeckRenderer(export_figures=False).to_markdown(deck, output_dir / "quoted.md")
        lines = text.split("---")[1].strip().splitlines()
        values = dict(line.split(": ", 1) for line in lines)
        assert values["title"] == r'"Missing \"Data\""'
        assert json.loads(values["title"]) == 'Missing "Data"'
        assert json.loads(values["subtitle"]) == "C:\\decks"
        assert json.loads(values["author"]) == "O'Neil"

    def test_without_figure_export(self, small_deck, output_dir):
        text = MarkdownDeckRenderer(export_figures=False).to_markdown(small_deck, output_dir / "plain.md")
        assert "[Figure: Observed income]" in text
        assert not (output_dir / "plain_assets").exists()


class TestPdf:

    def test_pdf_bytes(self, small_deck):
        pdf = PdfDeckRenderer().to_pdf(small_deck)
        assert pdf[:4] == b"%PDF"

    def test_render_writes_file(self, small_deck, output_dir):
        path = PdfDeckRenderer().render(small_deck, output_dir / "deck.pdf")
        assert path.stat().st_size > 0


class TestStaticCharts:

    def test_histogram_png(self, histogram):
        assert figure_to_png(histogram)[:4] == b"\x89PNG"

    def test_bar_png(self):
        fig = go.Figure(go.Bar(x=["a", "b"], y=[0.1, 0.3]))
        fig.update_layout(yaxis_tickformat=".0%")
        assert figure_to_png(fig)[:4] == b"\x89PNG"

    def test_scatter_with_line_png(self):
        fig = go.Figure([
            go.Scatter(x=[0, 1, 2], y=[0.2, 0.4, 0.1], mode="markers"),
            go.Scatter(x=[0, 2], y=[0.1, 0.5], mode="lines"),
        ])
        fig.add_vline(x=1.0, line_dash="dash")
        assert figure_to_png(fig)[:4] == b"\x89PNG"

    def test_figure_closed_when_drawing_fails(self, monkeypatch):
        def _broken(*args, **kwargs):
            raise ValueError("bad trace")

        monkeypatch.setattr(static_charts, "_draw_bar", _broken)
        before = set(plt.get_fignums())
        with pytest.raises(ValueError):
            figure_to_png(go.Figure(go.Bar(x=["a"], y=[1.0])))
        assert set(plt.get_fignums()) == before

    def test_figure_closed_after_success(self, histogram):
        before = set(plt.get_fignums())
        figure_to_png(histogram)
        assert set(plt.get_fignums()) == before


class TestRenderDeck:

    def test_formats_and_paths(self, small_deck, output_dir):
        paths = render_deck(small_deck, ["html", "md"], output_dir=output_dir, stem="talk")
        assert list(paths) == ["html", "markdown"]
        assert paths["html"].name == "talk.html"
        assert paths["markdown"].name == "talk.md"
        assert all(p.exists() for p in paths.values())

    def test_comma_separated(self):
        assert normalize_formats("pdf, html,pdf") == ["pdf", "html"]

    def test_unknown_format(self, small_deck, output_dir):
        with pytest.raises(RenderError):
            render_deck(small_deck, ["pptx"], output_dir=output_dir)

    def test_empty_format_list(self):
        with pytest.raises(RenderError):
            normalize_formats([])
