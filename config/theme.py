"""
theme.py - Missing Data Deck
Static visual theme for the slides: brand presets, CSS variables, chart palette.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional


CSS_VAR_PREFIX = "--deck-"

_HEX_RE = re.compile(r"^#([A-Fa-f0-9]{6}|[A-Fa-f0-9]{3})$")


@dataclass(frozen=True)
class DeckTheme:
    """
    Theme of a rendered deck.
    - primary / secondary: heading and accent colours
    - palette: categorical colours for charts (observed, missing/imputed, ...)
    - plotly_template: base plotly template name
    """
    name: str = "violet"
    primary: str = "#667eea"
    secondary: str = "#764ba2"
    text: str = "#1f2937"
    muted: str = "#6b7280"
    background: str = "#ffffff"
    surface: str = "#f8f7ff"
    font_family: str = "'Source Sans Pro', Helvetica, Arial, sans-serif"
    heading_font: str = "'Source Sans Pro', Helvetica, Arial, sans-serif"
    palette: List[str] = field(default_factory=lambda: [
        "#2563EB", "#DC2626", "#059669", "#D97706", "#7C3AED",
        "#0EA5E9", "#F43F5E", "#10B981", "#9333EA", "#EF4444",
    ])
    plotly_template: str = "plotly_white"

    @property
    def observed_color(self) -> str:
        return self.palette[0]

    @property
    def missing_color(self) -> str:
        return self.palette[1]

    def css_vars(self) -> Dict[str, str]:
        """CSS custom properties consumed by the HTML renderer."""
        return {
            f"{CSS_VAR_PREFIX}primary": self.primary,
            f"{CSS_VAR_PREFIX}secondary": self.secondary,
            f"{CSS_VAR_PREFIX}text": self.text,
            f"{CSS_VAR_PREFIX}muted": self.muted,
            f"{CSS_VAR_PREFIX}bg": self.background,
            f"{CSS_VAR_PREFIX}surface": self.surface,
            f"{CSS_VAR_PREFIX}font": self.font_family,
            f"{CSS_VAR_PREFIX}heading-font": self.heading_font,
        }


# === Presets (light-first) ===

PRESETS: Dict[str, Dict[str, str]] = {
    "violet": {"primary": "#667eea", "secondary": "#764ba2", "surface": "#f8f7ff"},
    "ocean": {"primary": "#0ea5e9", "secondary": "#2563eb", "surface": "#f3f7fb"},
    "emerald": {"primary": "#10b981", "secondary": "#059669", "surface": "#f2fbf7"},
    "graphite": {"primary": "#64748b", "secondary": "#475569", "text": "#111827", "surface": "#f6f7f9"},
}


def _coerce_hex(value: str, default: str) -> str:
    if not isinstance(value, str):
        return default
    value = value.strip()
    return value if _HEX_RE.match(value) else default


def get_theme(name: str, overrides: Optional[Dict[str, str]] = None) -> DeckTheme:
    """
    Build a theme from a preset name and optional colour overrides.
    Unknown preset names raise KeyError; invalid hex overrides are ignored.
    """
    if name not in PRESETS:
        raise KeyError(f"Unknown theme '{name}'. Available: {', '.join(sorted(PRESETS))}")

    base = DeckTheme()
    values = {**PRESETS[name], **(overrides or {})}
    colours = {
        key: _coerce_hex(val, getattr(base, key))
        for key, val in values.items()
        if key in ("primary", "secondary", "text", "muted", "background", "surface")
    }
    return DeckTheme(name=name, **colours)


def available_themes() -> List[str]:
    return sorted(PRESETS)
