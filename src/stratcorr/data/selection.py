"""Column selection expressions.

A selection is ``None``, a single item, or a list of items. Items are applied
in order and the result keeps first-match order without duplicates:

- ``"disp"``: exact column name (must exist)
- ``"d*"``: glob pattern (``fnmatch``)
- ``"re:^q"``: regular expression, matched with ``re.search``
- ``"-wt"`` / ``"-d*"``: remove matching columns from the selection so far
- a callable ``f(name) -> bool``
"""

from __future__ import annotations

import fnmatch
import re
from typing import Callable, Iterable, List, Optional, Sequence, Union

import pandas as pd

from stratcorr.config import ColumnSelection, ConfigurationError

_GLOB_CHARS = set("*?[")


def _match(item: Union[str, Callable[[str], bool]], columns: Sequence[str], field_name: str) -> List[str]:
    if callable(item):
        return [c for c in columns if item(c)]

    if not isinstance(item, str) or not item:
        raise ConfigurationError(
            f"{field_name}: invalid selection item {item!r}", field=field_name, value=item
        )

    if item in columns:
        return [item]

    if item.startswith("re:"):
        try:
            pattern = re.compile(item[3:])
        except re.error as e:
            raise ConfigurationError(
                f"{field_name}: invalid regular expression {item[3:]!r}: {e}",
                field=field_name,
                value=item,
            ) from None
        return [c for c in columns if pattern.search(str(c))]

    if _GLOB_CHARS & set(item):
        return [c for c in columns if fnmatch.fnmatchcase(str(c), item)]

    raise ConfigurationError(
        f"{field_name}: column '{item}' not found. Available: {list(columns)[:10]}...",
        field=field_name,
        value=item,
    )


def resolve_columns(
    selection: Optional[ColumnSelection],
    columns: Iterable[str],
    exclude: Optional[Iterable[str]] = None,
    field_name: str = "columns",
) -> List[str]:
    """Resolve a selection expression to ordered, unique column names.

    Args:
        selection: Selection expression (None selects nothing)
        columns: Available column names, in dataset order
        exclude: Names removed from the result
        field_name: Name reported in errors

    Returns:
        Ordered list of column names
    """
    columns = list(columns)
    if selection is None:
        return []

    if isinstance(selection, str) or callable(selection):
        items = [selection]
    else:
        items = list(selection)

    selected: List[str] = []
    for item in items:
        if isinstance(item, str) and item.startswith("-") and len(item) > 1:
            dropped = set(_match(item[1:], columns, field_name))
            selected = [c for c in selected if c not in dropped]
            continue
        for name in _match(item, columns, field_name):
            if name not in selected:
                selected.append(name)

    excluded = set(exclude or [])
    return [c for c in selected if c not in excluded]


def numeric_columns(df: pd.DataFrame, exclude: Optional[Iterable[str]] = None) -> List[str]:
    """Numeric (non-boolean) columns of ``df`` in dataset order."""
    excluded = set(exclude or [])
    numeric = df.select_dtypes(include="number").columns.tolist()
    return [c for c in numeric if c not in excluded]
