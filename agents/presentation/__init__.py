"""Missing Data Deck - slide model and deck assembly."""

from agents.presentation.deck_builder import DeckBuilder, DeckConfig, build_deck
from agents.presentation.slides import (
    Block,
    BulletBlock,
    CitationBlock,
    Deck,
    FigureBlock,
    MathBlock,
    Slide,
    TableBlock,
    TextBlock,
)

__all__ = [
    "Block",
    "BulletBlock",
    "CitationBlock",
    "Deck",
    "DeckBuilder",
    "DeckConfig",
    "FigureBlock",
    "MathBlock",
    "Slide",
    "TableBlock",
    "TextBlock",
    "build_deck",
]
