"""reveal.js HTML rendering of a Deck."""
import html
import re
from pathlib import Path
from typing import List, Optional, Union

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
from config.settings import settings
from core.exceptions import RenderError, exception_context
from services.report.tables import display_frame

_BOLD = re.compile(r"\*\*(.+?)\*\*")
_ITALIC = re.compile(r"\*(.+?)\*")
_CODE = re.compile(r"`(.+?)`")


def inline_html(text: str) -> str:
    """Escape text and convert **bold**, *italic* and `code` spans."""
    out = html.escape(text)
    out = _CODE.sub(r"<code>\1</code>", out)
    out = _BOLD.sub(r"<strong>\1</strong>", out)
    return _ITALIC.sub(r"<em>\1</em>", out)


class HtmlDeckRenderer:
    """Single-file reveal.js deck; plotly figures stay interactive."""

    def __init__(self, reveal_cdn: Optional[str] = None, plotly_js: Optional[str] = None):
        self.reveal_cdn = (reveal_cdn or settings.REVEAL_JS_CDN).rstrip("/")
        self.plotly_js = plotly_js or settings.PLOTLY_JS_MODE
        self._plotly_included = False

    def render(self, deck: Deck, path: Union[str, Path]) -> Path:
        path = Path(path)
        with exception_context(to=RenderError, message=f"HTML rendering failed: {path}", context={"format": "html"}):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(self.to_html(deck), encoding="utf-8")
        logger.success(f"✓ HTML deck written: {path}")
        return path

    def to_html(self, deck: Deck) -> str:
        self._plotly_included = False
        sections = "\n".join(self._section(deck, slide) for slide in deck.slides)
        css_vars = "; ".join(f"{k}: {v}" for k, v in deck.theme.css_vars().items())
        cdn = self.reveal_cdn

        return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{html.escape(deck.title)}</title>
    <link rel="stylesheet" href="{cdn}/dist/reveal.css">
    <link rel="stylesheet" href="{cdn}/dist/theme/white.css">
    <style>
        :root {{ {css_vars}; }}
        .reveal {{ font-family: var(--deck-font); color: var(--deck-text); font-size: 28px; }}
        .reveal h1, .reveal h2 {{ font-family: var(--deck-heading-font); color: var(--deck-primary); text-transform: none; }}
        .reveal section[data-kind="title"] h1 {{ font-size: 2.4em; }}
        .reveal .subtitle {{ color: var(--deck-secondary); }}
        .reveal .muted, .reveal .caption {{ color: var(--deck-muted); font-size: 0.6em; }}
        .reveal ul, .reveal ol {{ font-size: 0.8em; }}
        .reveal .figures {{ display: flex; gap: 12px; justify-content: center; }}
        .reveal .figures > div {{ flex: 1 1 0; min-width: 0; }}
        .reveal table.deck-table {{ font-size: 0.45em; margin: 8px auto; border-collapse: collapse; }}
        .reveal table.deck-table th {{ background: var(--deck-surface); color: var(--deck-secondary); }}
        .reveal table.deck-table td, .reveal table.deck-table th {{ padding: 4px 10px; border-bottom: 1px solid #e5e7eb; }}
        .reveal .references {{ font-size: 0.5em; text-align: left; }}
    </style>
</head>
<body>
    <div class="reveal">
        <div class="slides">
{sections}
        </div>
    </div>
    <script src="{cdn}/dist/reveal.js"></script>
    <script src="{cdn}/plugin/notes/notes.js"></script>
    <script src="{cdn}/plugin/math/math.js"></script>
    <script>
        Reveal.initialize({{ hash: true, width: 1280, height: 800, plugins: [RevealNotes, RevealMath.KaTeX] }});
        Reveal.on('slidechanged', () => window.dispatchEvent(new Event('resize')));
    </script>
</body>
</html>
"""

    # ───────────────────────────────────────────────────────────────────

    def _section(self, deck: Deck, slide: Slide) -> str:
        if slide.kind == "title":
            parts = [f"<h1>{html.escape(slide.title)}</h1>"]
            parts += [f'<p class="subtitle">{inline_html(b.text)}</p>' for b in slide.blocks if isinstance(b, TextBlock)]
            parts.append(f'<p class="muted">{html.escape(deck.date)}</p>')
        else:
            parts = [f"<h2>{html.escape(slide.title)}</h2>"]
            parts += self._blocks(deck, slide)

        if slide.notes:
            parts.append(f'<aside class="notes">{inline_html(slide.notes)}</aside>')
        body = "\n".join(parts)
        return f'<section data-kind="{slide.kind}">\n{body}\n</section>'

    def _blocks(self, deck: Deck, slide: Slide) -> List[str]:
        out: List[str] = []
        figures: List[str] = []

        def flush() -> None:
            if figures:
                out.append('<div class="figures">' + "".join(figures) + "</div>")
                figures.clear()

        for block in slide.blocks:
            if isinstance(block, FigureBlock):
                figures.append(f"<div>{self._figure(block, n_figures=len(slide.figures()))}</div>")
                continue
            flush()
            if isinstance(block, TextBlock):
                out.append(f"<p>{inline_html(block.text)}</p>")
            elif isinstance(block, BulletBlock):
                tag = "ol" if block.ordered else "ul"
                items = "".join(f"<li>{inline_html(i)}</li>" for i in block.items)
                out.append(f"<{tag}>{items}</{tag}>")
            elif isinstance(block, TableBlock):
                out.append(self._table(block))
            elif isinstance(block, MathBlock):
                caption = f'<div class="caption">{html.escape(block.caption)}</div>' if block.caption else ""
                out.append(f'<div class="math">\\[{html.escape(block.latex)}\\]</div>{caption}')
            elif isinstance(block, CitationBlock):
                items = "".join(f"<li>{html.escape(r)}</li>" for r in block.references)
                out.append(f'<ol class="references">{items}</ol>')
        flush()
        return out

    def _figure(self, block: FigureBlock, n_figures: int) -> str:
        if self._plotly_included:
            include = False
        else:
            include = True if self.plotly_js == "inline" else "cdn"
            self._plotly_included = True

        height = "460px" if n_figures <= 1 else "360px"
        fig_html = block.figure.to_html(
            full_html=False,
            include_plotlyjs=include,
            default_width="100%",
            default_height=height,
            config={"displaylogo": False, "responsive": True},
        )
        caption = f'<div class="caption">{html.escape(block.caption)}</div>' if block.caption else ""
        return fig_html + caption

    @staticmethod
    def _table(block: TableBlock) -> str:
        table = display_frame(block.frame, block.float_digits).to_html(
            index=False, classes="deck-table", border=0, escape=True
        )
        caption = f'<div class="caption">{html.escape(block.caption)}</div>' if block.caption else ""
        return table + caption
