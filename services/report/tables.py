"""Cell formatting shared by the deck renderers."""
from typing import Any, List

import numpy as np
import pandas as pd


def format_value(value: Any, digits: int = 2) -> str:
    """Readable table cell: thousands separators, fixed decimals, tiny values in g-format."""
    if value is None or value is pd.NA or value is pd.NaT:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, np.bool_)):
        return "yes" if value else "no"
    if isinstance(value, (int, np.integer)):
        return f"{int(value):,}"
    if isinstance(value, (float, np.floating)):
        if np.isnan(value):
            return ""
        if value != 0 and abs(value) < 10 ** -digits:
            return f"{value:.2g}"
        return f"{value:,.{digits}f}"
    return str(value)


def display_frame(frame: pd.DataFrame, digits: int = 2) -> pd.DataFrame:
    """String copy of `frame` with every cell formatted."""
    out = frame.copy()
    for col in out.columns:
        out[col] = [format_value(v, digits) for v in frame[col].tolist()]
    out.columns = [str(c) for c in out.columns]
    return out.reset_index(drop=True)


def table_rows(frame: pd.DataFrame, digits: int = 2) -> List[List[str]]:
    """Header row followed by formatted body rows."""
    shown = display_frame(frame, digits)
    return [list(shown.columns)] + shown.values.tolist()
