# agents/presentation/slides.py
"""
Missing Data Deck - slide data model.

A `Deck` is an ordered list of `Slide`s; each slide is an ordered list of
content blocks. Renderers in `services.report` walk this structure, so
nothing here knows about HTML, PDF or Markdown.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Iterator, List, Literal, Optional, Sequence, Union

import pandas as pd
import plotly.graph_objects as go

from config.theme import DeckTheme
from core.exceptions import DataValidationError

SlideKind = Literal["title", "section", "content", "references"]


# ═══════════════════════════════════════════════════════════════════════════
# Blocks
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class TextBlock:
    """Paragraph of narrative text (inline **bold** and *italic* allowed)."""
    text: str


@dataclass
class BulletBlock:
    items: List[str]
    ordered: bool = False


@dataclass
class FigureBlock:
    """
    Plotly figure for interactive formats.
    `static_chart` is an optional pre-rendered PNG used instead of converting
    the figure for static formats (PDF, Markdown).
    """
    figure: go.Figure
    static_chart: Optional[bytes] = None
    caption: str = ""


@dataclass
class TableBlock:
    frame: pd.DataFrame
    caption: str = ""
    float_digits: int = 2


@dataclass
class CitationBlock:
    """Bibliography entries, rendered as a small-print list."""
    references: List[str]


@dataclass
class MathBlock:
    """Display formula in LaTeX (rendered by KaTeX in HTML, verbatim elsewhere)."""
    latex: str
    caption: str = ""


Block = Union[TextBlock, BulletBlock, FigureBlock, TableBlock, CitationBlock, MathBlock]


# ═══════════════════════════════════════════════════════════════════════════
# Slides and Deck
# ═══════════════════════════════════════════════════════════════════════════

@dataclass
class Slide:
    title: str
    blocks: List[Block] = field(default_factory=list)
    notes: str = ""
    kind: SlideKind = "content"

    def __post_init__(self) -> None:
        if not isinstance(self.title, str) or not self.title.strip():
            raise DataValidationError("Slide title must be a non-empty string", details={"kind": self.kind})

    def add(self, *blocks: Block) -> "Slide":
        self.blocks.extend(blocks)
        return self

    def figures(self) -> List[FigureBlock]:
        return [b for b in self.blocks if isinstance(b, FigureBlock)]

    def tables(self) -> List[TableBlock]:
        return [b for b in self.blocks if isinstance(b, TableBlock)]


@dataclass
class Deck:
    title: str
    subtitle: str = ""
    author: str = ""
    date: str = field(default_factory=lambda: date.today().isoformat())
    slides: List[Slide] = field(default_factory=list)
    theme: DeckTheme = field(default_factory=DeckTheme)

    def add_slide(self, slide: Slide) -> Slide:
        self.slides.append(slide)
        return slide

    def extend(self, slides: Sequence[Slide]) -> None:
        for slide in slides:
            self.add_slide(slide)

    def titles(self) -> List[str]:
        return [s.title for s in self.slides]

    def __iter__(self) -> Iterator[Slide]:
        return iter(self.slides)

    def __len__(self) -> int:
        return len(self.slides)
