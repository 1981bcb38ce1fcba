# agents/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  Missing Data Deck - Agents Package                                        ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Lazy Import System (PEP 562)                                          ║
║  ✓ Missingness, Diagnosis, Imputation, Modeling, Presentation            ║
╚════════════════════════════════════════════════════════════════════════════╝

Agent Categories:
    • missingness:  MCAR / MAR / MNAR amputation
    • eda:          missing-data diagnosis and plotting
    • imputation:   deletion, single and multiple imputation
    • modeling:     analysis model and comparison tables
    • presentation: slide model and deck assembly

Usage:
```python
    from agents import DeckBuilder
    deck = DeckBuilder().build()
```
"""

from __future__ import annotations

from dataclasses import dataclass
from importlib import import_module
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class _LazySpec:
    """Specification for lazy-loaded symbol."""
    module: str
    symbol: str
    category: str = "other"


_LAZY_EXPORTS: Dict[str, _LazySpec] = {
    # Missingness
    "MissingnessAmputer": _LazySpec("agents.missingness.amputer", "MissingnessAmputer", "missingness"),
    "ampute": _LazySpec("agents.missingness.amputer", "ampute", "missingness"),

    # Diagnosis & plots
    "MissingDataAnalyzer": _LazySpec("agents.eda.missing_data_analyzer", "MissingDataAnalyzer", "eda"),

    # Imputation
    "DeletionAgent": _LazySpec("agents.imputation.deletion", "DeletionAgent", "imputation"),
    "SingleImputationAgent": _LazySpec("agents.imputation.single", "SingleImputationAgent", "imputation"),
    "MultipleImputer": _LazySpec("agents.imputation.multiple", "MultipleImputer", "imputation"),
    "pool_rubin": _LazySpec("agents.imputation.multiple", "pool_rubin", "imputation"),

    # Modeling
    "ModelSummaryAgent": _LazySpec("agents.modeling.model_summary", "ModelSummaryAgent", "modeling"),

    # Presentation
    "Deck": _LazySpec("agents.presentation.slides", "Deck", "presentation"),
    "Slide": _LazySpec("agents.presentation.slides", "Slide", "presentation"),
    "DeckBuilder": _LazySpec("agents.presentation.deck_builder", "DeckBuilder", "presentation"),
    "build_deck": _LazySpec("agents.presentation.deck_builder", "build_deck", "presentation"),
}

__all__ = tuple(_LAZY_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    spec = _LAZY_EXPORTS.get(name)
    if spec is None:
        raise AttributeError(f"module '{__name__}' has no attribute '{name}'")

    try:
        obj = getattr(import_module(spec.module), spec.symbol)
    except (ImportError, AttributeError) as e:
        raise AttributeError(f"Failed to load agent '{name}' from '{spec.module}': {e}") from e

    globals()[name] = obj
    return obj


def __dir__() -> List[str]:
    return sorted(set(list(globals().keys()) + list(_LAZY_EXPORTS.keys())))


def list_agents(category: Optional[str] = None) -> List[str]:
    """Public agent names, optionally filtered by category."""
    return [n for n, s in _LAZY_EXPORTS.items() if category is None or s.category == category]
