# config/__init__.py
"""
╔════════════════════════════════════════════════════════════════════════════╗
║  Missing Data Deck - Configuration Package                                 ║
║  ─────────────────────────────────────────────────────────────────────────  ║
║  ✓ Lazy Module Loading                                                   ║
║  ✓ Settings, Theme Presets, Dataset Constants                            ║
║  ✓ Test Utilities                                                        ║
╚════════════════════════════════════════════════════════════════════════════╝

Architecture:
```
    config/
    ├── __init__.py          # Lazy exports (this file)
    ├── settings.py          # Application settings
    ├── logging_config.py    # Loguru sinks
    ├── theme.py             # Deck theme presets
    └── constants.py         # Column names, levels, references
```

Usage:
```python
    from config import settings, get_theme

    theme = get_theme(settings.DECK_THEME)

    from config import use_test_settings
    use_test_settings(MI_N_IMPUTATIONS=3)
```
"""

from __future__ import annotations

from importlib import import_module
from importlib.metadata import PackageNotFoundError, version as _pkg_version
from types import ModuleType
from typing import Any, Dict, List, Tuple

# ═══════════════════════════════════════════════════════════════════════════
# Package Metadata
# ═══════════════════════════════════════════════════════════════════════════

try:
    __version__ = _pkg_version("missing-data-deck")
except PackageNotFoundError:
    # Development mode / uninstalled package
    __version__ = "1.0.0-dev"


# ═══════════════════════════════════════════════════════════════════════════
# Lazy Export Definitions
# ═══════════════════════════════════════════════════════════════════════════

_LAZY_EXPORTS: Dict[str, Tuple[str, str]] = {
    "settings": ("config.settings", "settings"),
    "Settings": ("config.settings", "Settings"),
    "get_settings": ("config.settings", "get_settings"),
    "DeckTheme": ("config.theme", "DeckTheme"),
    "get_theme": ("config.theme", "get_theme"),
    "available_themes": ("config.theme", "available_themes"),
}

__all__ = (
    "__version__",
    "settings",
    "Settings",
    "get_settings",
    "DeckTheme",
    "get_theme",
    "available_themes",
    "use_test_settings",
    "get_config_info",
)


def __getattr__(name: str) -> Any:
    """Resolve lazy exports on first access and cache them in module globals."""
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


# ═══════════════════════════════════════════════════════════════════════════
# Test Utilities
# ═══════════════════════════════════════════════════════════════════════════

def use_test_settings(**overrides: Any) -> None:
    """
    🧪 **Override Settings for Tests**

    Changes are global and persist until process restart.
    """
    mod: ModuleType = import_module("config.settings")
    settings_instance = mod.settings

    for key, value in overrides.items():
        if not hasattr(settings_instance, key):
            raise AttributeError(f"Setting '{key}' does not exist in configuration")
        setattr(settings_instance, key, value)


# ═══════════════════════════════════════════════════════════════════════════
# Configuration Info
# ═══════════════════════════════════════════════════════════════════════════

def get_config_info() -> Dict[str, Any]:
    """
    📊 **Get Configuration Information**

    Summary of the settings that shape a deck build.
    """
    s = import_module("config.settings").settings

    return {
        "version": __version__,
        "app_name": s.APP_NAME,
        "environment": s.ENVIRONMENT,
        "data_file": str(s.ATTRITION_DATA_FILE) if s.ATTRITION_DATA_FILE else None,
        "sample_file": str(s.sample_file),
        "output_path": str(s.OUTPUT_PATH),
        "random_state": s.RANDOM_STATE,
        "missing_rate": s.MISSING_RATE,
        "mar_driver": s.MAR_DRIVER,
        "n_imputations": s.MI_N_IMPUTATIONS,
        "theme": s.DECK_THEME,
        "formats": s.get_deck_formats(),
    }
