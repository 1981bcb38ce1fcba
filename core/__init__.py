# core/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  Missing Data Deck - Core Package                                          ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Lazy Module Loading                                                   ║
║  ✓ Agent Framework, Exceptions, Data Loader                              ║
╚════════════════════════════════════════════════════════════════════════════╝

Core Package Structure:
```
    core/
    ├── __init__.py          # Lazy exports (this file)
    ├── base_agent.py        # Agent framework
    ├── exceptions.py        # Exception hierarchy
    └── data_loader.py       # Attrition dataset loading/cleaning
```

Usage:
```python
    from core import BaseAgent, AgentResult, load_attrition
```
"""

from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from types import ModuleType
from typing import Any, Dict, List, Tuple

try:
    __version__ = _pkg_version("missing-data-deck")
except PackageNotFoundError:
    __version__ = "1.0.0-dev"


_LAZY_EXPORTS: Dict[str, Tuple[str, str]] = {
    # Agent framework
    "BaseAgent": ("core.base_agent", "BaseAgent"),
    "AgentResult": ("core.base_agent", "AgentResult"),
    "AgentStatus": ("core.base_agent", "AgentStatus"),

    # Data
    "AttritionDataLoader": ("core.data_loader", "AttritionDataLoader"),
    "load_attrition": ("core.data_loader", "load_attrition"),
    "clean_attrition": ("core.data_loader", "clean_attrition"),
    "generate_attrition_sample": ("core.data_loader", "generate_attrition_sample"),
}

__all__ = ("__version__", *_LAZY_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    """Lazy attribute resolution with caching in module globals."""
    if name in _LAZY_EXPORTS:
        module_name, symbol_name = _LAZY_EXPORTS[name]

        try:
            module: ModuleType = import_module(module_name)
            obj = getattr(module, symbol_name)
            globals()[name] = obj
            return obj

        except (ImportError, AttributeError) as e:
            raise AttributeError(
                f"Failed to load '{name}' from '{module_name}': {e}"
            ) from e

    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")


def __dir__() -> List[str]:
    return sorted(set(list(globals().keys()) + list(_LAZY_EXPORTS.keys())))
