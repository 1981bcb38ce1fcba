"""Deck rendering dispatch: one file per requested format."""
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

from loguru import logger

from agents.presentation.slides import Deck
from config.logging_config import log_execution_time
from config.settings import SUPPORTED_DECK_FORMATS, settings
from core.exceptions import RenderError
from services.report.html_deck import HtmlDeckRenderer
from services.report.markdown_deck import MarkdownDeckRenderer
from services.report.pdf_deck import PdfDeckRenderer

RENDERERS = {
    "html": HtmlDeckRenderer,
    "pdf": PdfDeckRenderer,
    "markdown": MarkdownDeckRenderer,
}

EXTENSIONS = {
    "html": ".html",
    "pdf": ".pdf",
    "markdown": ".md",
}

ALIASES = {"md": "markdown", "htm": "html"}


def normalize_formats(formats: Union[str, Sequence[str], None]) -> list:
    """Ordered, de-duplicated format names; unknown names raise RenderError."""
    if formats is None:
        raw = settings.get_deck_formats()
    elif isinstance(formats, str):
        raw = formats.split(",")
    else:
        raw = list(formats)

    out = []
    for fmt in raw:
        name = ALIASES.get(str(fmt).strip().lower(), str(fmt).strip().lower())
        if not name:
            continue
        if name not in RENDERERS:
            raise RenderError(
                f"Unsupported deck format '{fmt}'",
                details={"supported": list(SUPPORTED_DECK_FORMATS)},
            )
        if name not in out:
            out.append(name)

    if not out:
        raise RenderError("No deck format requested", details={"supported": list(SUPPORTED_DECK_FORMATS)})
    return out


@log_execution_time
def render_deck(
    deck: Deck,
    formats: Union[str, Sequence[str], None] = None,
    output_dir: Optional[Union[str, Path]] = None,
    stem: Optional[str] = None,
) -> Dict[str, Path]:
    """
    Render `deck` to every format in `formats`.

    Returns:
        Dict[str, Path]: format name -> written file
    """
    names = normalize_formats(formats)
    out_dir = Path(output_dir) if output_dir is not None else settings.OUTPUT_PATH
    stem = stem or settings.DECK_FILE_STEM

    paths: Dict[str, Path] = {}
    for name in names:
        renderer = RENDERERS[name]()
        paths[name] = renderer.render(deck, out_dir / f"{stem}{EXTENSIONS[name]}")

    logger.info(f"Rendered {len(deck)} slides to {', '.join(names)} in {out_dir}")
    return paths
