"""PDF rendering of a Deck (reportlab, one landscape page per slide)."""
import html
import io
from pathlib import Path
from typing import List, Union

from loguru import logger
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Image, PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

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
from services.report.html_deck import inline_html
from services.report.static_charts import block_png
from services.report.tables import table_rows

PAGE_SIZE = landscape(A4)
MARGIN = 0.5 * inch


def _inline(text: str) -> str:
    """reportlab Paragraph markup (subset of HTML)."""
    return (
        inline_html(text)
        .replace("<strong>", "<b>").replace("</strong>", "</b>")
        .replace("<em>", "<i>").replace("</em>", "</i>")
        .replace("<code>", '<font face="Courier">').replace("</code>", "</font>")
    )


class PdfDeckRenderer:
    """Landscape A4 PDF; figures as matplotlib PNGs, tables as reportlab Tables."""

    def __init__(self, figure_height: float = 3.2 * inch, dpi: int = 110):
        self.figure_height = figure_height
        self.dpi = dpi

    def render(self, deck: Deck, path: Union[str, Path]) -> Path:
        path = Path(path)
        with exception_context(to=RenderError, message=f"PDF rendering failed: {path}", context={"format": "pdf"}):
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(self.to_pdf(deck))
        logger.success(f"✓ PDF deck written: {path}")
        return path

    def to_pdf(self, deck: Deck) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=PAGE_SIZE,
            leftMargin=MARGIN, rightMargin=MARGIN, topMargin=MARGIN, bottomMargin=MARGIN,
            title=deck.title,
            author=deck.author,
        )
        styles = self._styles(deck)
        story: List = []

        for i, slide in enumerate(deck.slides):
            if i > 0:
                story.append(PageBreak())
            story.extend(self._slide(deck, slide, styles, doc.width))

        doc.build(story)
        pdf_bytes = buffer.getvalue()
        buffer.close()
        return pdf_bytes

    # ───────────────────────────────────────────────────────────────────

    @staticmethod
    def _styles(deck: Deck) -> dict:
        base = getSampleStyleSheet()
        theme = deck.theme
        return {
            "title": ParagraphStyle("DeckTitle", parent=base["Title"], fontSize=34, leading=40,
                                    textColor=colors.HexColor(theme.primary), alignment=TA_CENTER, spaceBefore=1.6 * inch),
            "subtitle": ParagraphStyle("DeckSubtitle", parent=base["Normal"], fontSize=18, leading=24,
                                       textColor=colors.HexColor(theme.secondary), alignment=TA_CENTER, spaceAfter=8),
            "heading": ParagraphStyle("SlideHeading", parent=base["Heading1"], fontSize=22,
                                      textColor=colors.HexColor(theme.primary), spaceAfter=10),
            "body": ParagraphStyle("SlideBody", parent=base["Normal"], fontSize=12, leading=16,
                                   textColor=colors.HexColor(theme.text), spaceAfter=6),
            "bullet": ParagraphStyle("SlideBullet", parent=base["Normal"], fontSize=12, leading=16,
                                     textColor=colors.HexColor(theme.text), leftIndent=18, bulletIndent=4, spaceAfter=3),
            "math": ParagraphStyle("SlideMath", parent=base["Code"], fontSize=10, leading=13,
                                   textColor=colors.HexColor(theme.text), alignment=TA_CENTER),
            "caption": ParagraphStyle("SlideCaption", parent=base["Normal"], fontSize=8, leading=10,
                                      textColor=colors.HexColor(theme.muted), alignment=TA_CENTER, spaceAfter=6),
            "reference": ParagraphStyle("SlideReference", parent=base["Normal"], fontSize=10, leading=13,
                                        textColor=colors.HexColor(theme.text), leftIndent=18, bulletIndent=0, spaceAfter=4),
            "cell": ParagraphStyle("TableCell", parent=base["Normal"], fontSize=7.5, leading=9),
        }

    def _slide(self, deck: Deck, slide: Slide, styles: dict, width: float) -> List:
        if slide.kind == "title":
            flow: List = [Paragraph(html.escape(slide.title), styles["title"])]
            flow += [Paragraph(_inline(b.text), styles["subtitle"]) for b in slide.blocks if isinstance(b, TextBlock)]
            flow.append(Paragraph(html.escape(deck.date), styles["caption"]))
            return flow

        flow = [Paragraph(html.escape(slide.title), styles["heading"])]
        figures = slide.figures()
        figure_row: List = []

        def flush() -> None:
            if figure_row:
                flow.append(Table([list(figure_row)], hAlign="CENTER"))
                flow.append(Spacer(1, 6))
                figure_row.clear()

        for block in slide.blocks:
            if isinstance(block, FigureBlock):
                figure_row.append(self._image(block, deck, width, len(figures)))
                continue
            flush()
            if isinstance(block, TextBlock):
                flow.append(Paragraph(_inline(block.text), styles["body"]))
            elif isinstance(block, BulletBlock):
                for n, item in enumerate(block.items, start=1):
                    flow.append(Paragraph(_inline(item), styles["bullet"], bulletText=f"{n}." if block.ordered else "•"))
            elif isinstance(block, TableBlock):
                flow.extend(self._table(block, deck, styles, width))
            elif isinstance(block, MathBlock):
                flow.append(Paragraph(html.escape(block.latex), styles["math"]))
                if block.caption:
                    flow.append(Paragraph(html.escape(block.caption), styles["caption"]))
            elif isinstance(block, CitationBlock):
                for n, ref in enumerate(block.references, start=1):
                    flow.append(Paragraph(html.escape(ref), styles["reference"], bulletText=f"[{n}]"))
        flush()

        if slide.notes:
            flow.append(Spacer(1, 4))
            flow.append(Paragraph(f"<i>Notes: {_inline(slide.notes)}</i>", styles["caption"]))
        return flow

    def _image(self, block: FigureBlock, deck: Deck, width: float, n_figures: int) -> Image:
        per_row = max(1, min(n_figures, 3))
        img_width = (width - 14 * per_row) / per_row
        img_height = min(self.figure_height, img_width * 0.56)
        png = block_png(block, deck.theme, width=img_width / 72.0 * 1.6, height=img_height / 72.0 * 1.6, dpi=self.dpi)
        return Image(io.BytesIO(png), width=img_width, height=img_height)

    @staticmethod
    def _table(block: TableBlock, deck: Deck, styles: dict, width: float) -> List:
        rows = table_rows(block.frame, block.float_digits)
        cells = [[Paragraph(html.escape(str(v)), styles["cell"]) for v in row] for row in rows]
        n_cols = max(1, len(rows[0]))
        table = Table(cells, colWidths=[width / n_cols] * n_cols, repeatRows=1, hAlign="CENTER")
        table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor(deck.theme.surface)),
            ("TEXTCOLOR", (0, 0), (-1, 0), colors.HexColor(deck.theme.secondary)),
            ("LINEBELOW", (0, 0), (-1, 0), 0.8, colors.HexColor(deck.theme.primary)),
            ("LINEBELOW", (0, 1), (-1, -1), 0.25, colors.HexColor("#e5e7eb")),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("TOPPADDING", (0, 0), (-1, -1), 2),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
        ]))
        flow: List = [table]
        if block.caption:
            flow.append(Paragraph(html.escape(block.caption), styles["caption"]))
        flow.append(Spacer(1, 6))
        return flow
