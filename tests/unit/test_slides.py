"""
Missing Data Deck - Unit Tests for the slide model
"""

import pandas as pd
import plotly.graph_objects as go
import pytest

from agents.presentation.slides import (
    BulletBlock,
    Deck,
    FigureBlock,
    Slide,
    TableBlock,
    TextBlock,
)
from config.theme import DeckTheme
from core.exceptions import DataValidationError


class TestSlide:

    @pytest.mark.parametrize("title", ["", "   "])
    def test_empty_title_rejected(self, title):
        with pytest.raises(DataValidationError):
            Slide(title)

    def test_add_keeps_order(self):
        slide = Slide("Listwise deletion")
        table = TableBlock(pd.DataFrame({"a": [1]}))
        figure = FigureBlock(go.Figure())
        returned = slide.add(TextBlock("intro"), figure, BulletBlock(["x", "y"]), table)

        assert returned is slide
        assert [type(b).__name__ for b in slide.blocks] == [
            "TextBlock", "FigureBlock", "BulletBlock", "TableBlock"
        ]
        assert slide.figures() == [figure]
        assert slide.tables() == [table]

    def test_defaults(self):
        slide = Slide("MCAR")
        assert slide.kind == "content"
        assert slide.notes == ""
        assert slide.blocks == []


class TestDeck:

    def test_slides_in_insertion_order(self):
        deck = Deck("Missing Data")
        deck.add_slide(Slide("Missing Data", kind="title"))
        deck.extend([Slide("MCAR"), Slide("MAR"), Slide("MNAR")])

        assert len(deck) == 4
        assert deck.titles() == ["Missing Data", "MCAR", "MAR", "MNAR"]
        assert [s.title for s in deck] == deck.titles()

    def test_default_theme_and_date(self):
        deck = Deck("Missing Data")
        assert isinstance(deck.theme, DeckTheme)
        assert len(deck.date) == 10
