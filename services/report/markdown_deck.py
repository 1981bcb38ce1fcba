"""Portable Markdown rendering of a Deck (`---` slide separators, pipe tables)."""
import json
from pathlib import Path
from typing import List, Union

from loguru import logger

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
from core.exceptions import RenderError, exception_context
from services.report.static_charts import block_png
from services.report.tables import table_rows

SLIDE_SEPARATOR = "\n\n---\n\n"


def yaml_string(value) -> str:
    """Double-quoted YAML scalar (JSON string syntax is a subset of it)."""
    return json.dumps(str(value), ensure_ascii=False)


def pipe_table(rows: List[List[str]]) -> str:
    """Pipe table from a header row and body rows."""
    def _cell(value: str) -> str:
        return str(value).replace("|", "\\|").replace("\n", " ")

    header, body = rows[0], rows[1:]
    lines = [
        "| " + " | ".join(_cell(h) for h in header) + " |",
        "|" + "|".join(" --- " for _ in header) + "|",
    ]
    lines += ["| " + " | ".join(_cell(v) for v in row) + " |" for row in body]
    return "\n".join(lines)


class MarkdownDeckRenderer:
    """Markdown deck with figures exported as PNGs next to the file (`<stem>_assets/`)."""

    def __init__(self, export_figures: bool = True, dpi: int = 110):
        self.export_figures = export_figures
        self.dpi = dpi

    def render(self, deck: Deck, path: Union[str, Path]) -> Path:
        path = Path(path)
        with exception_context(to=RenderError, message=f"Markdown rendering failed: {path}", context={"format": "markdown"}):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.to_markdown(deck, path), encoding="utf-8")
        logger.success(f"✓ Markdown deck written: {path}")
        return path

    def to_markdown(self, deck: Deck, path: Path) -> str:
        assets = path.parent / f"{path.stem}_assets"
        front_matter = "\n".join([
            "---",
            f"title: {yaml_string(deck.title)}",
            f"subtitle: {yaml_string(deck.subtitle)}",
            f"author: {yaml_string(deck.author)}",
            f"date: {yaml_string(deck.date)}",
            "---",
        ])
        slides = [self._slide(deck, slide, n, assets) for n, slide in enumerate(deck.slides, start=1)]
        return front_matter + "\n\n" + SLIDE_SEPARATOR.join(slides) + "\n"

    # ───────────────────────────────────────────────────────────────────

    def _slide(self, deck: Deck, slide: Slide, number: int, assets: Path) -> str:
        parts: List[str] = [f"# {slide.title}" if slide.kind == "title" else f"## {slide.title}"]
        n_fig = 0

        for block in slide.blocks:
            if isinstance(block, TextBlock):
                parts.append(block.text)
            elif isinstance(block, BulletBlock):
                parts.append("\n".join(
                    f"{i}. {item}" if block.ordered else f"- {item}"
                    for i, item in enumerate(block.items, start=1)
                ))
            elif isinstance(block, FigureBlock):
                n_fig += 1
                parts.append(self._figure(block, deck, assets, f"slide{number:02d}_fig{n_fig}.png"))
            elif isinstance(block, TableBlock):
                table = pipe_table(table_rows(block.frame, block.float_digits))
                parts.append(table + (f"\n\n*{block.caption}*" if block.caption else ""))
            elif isinstance(block, MathBlock):
                parts.append(f"$$\n{block.latex}\n$$" + (f"\n\n*{block.caption}*" if block.caption else ""))
            elif isinstance(block, CitationBlock):
                parts.append("\n".join(f"{i}. {ref}" for i, ref in enumerate(block.references, start=1)))

        if slide.kind == "title":
            parts.append(deck.date)
        if slide.notes:
            parts.append(f"Note: {slide.notes}")
        return "\n\n".join(parts)

    def _figure(self, block: FigureBlock, deck: Deck, assets: Path, filename: str) -> str:
        title = (block.figure.layout.title.text or "Figure") if block.figure.layout.title else "Figure"
        alt = block.caption or title
        if not self.export_figures:
            return f"*[Figure: {alt}]*"
        assets.mkdir(parents=True, exist_ok=True)
        (assets / filename).write_bytes(block_png(block, deck.theme, dpi=self.dpi))
        return f"![{alt}]({assets.name}/{filename})"
