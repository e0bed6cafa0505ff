# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20261018v1
# ---------------------------------------------------------------------------
"""
Tri-state table sorting for already-fetched ticket records.

A table header toggles through three orders on repeated clicks of the same
column: ascending → descending → default → ascending ...  Clicking a
different column always starts at ascending.  "Default" is the baseline
view, creation time descending, whatever column is selected.

Records are the serialised (camelCase) ticket dicts the API returns, or any
object exposing the same attributes.  Column names may be dotted paths into
nested records, e.g. ``employee.name``.

Comparison rules
----------------
* ``priority`` – ranked through PRIORITY_RANK, never lexically.
* ``createdAt`` / ``updatedAt`` – compared as instants; a value that cannot
  be parsed counts as the epoch and is logged at WARNING.
* two strings – accent- and case-insensitive first (NFKD with combining
  marks dropped), then by the exact text; missing values are "".
* anything else – numeric if both sides coerce to float, else as strings.

``sort_records`` is a pure, stable sort: records with equal keys keep their
input order in both directions.
"""

import locale
import unicodedata
from collections.abc import Mapping
from datetime import datetime, timezone
from functools import cmp_to_key
from typing import Any, Iterable, NamedTuple

from core.logger import logger

ASC = "asc"
DESC = "desc"
DEFAULT = "default"
DIRECTIONS = (ASC, DESC, DEFAULT)

DEFAULT_COLUMN = "createdAt"
PRIORITY_COLUMN = "priority"
DATE_COLUMNS = frozenset({"createdAt", "updatedAt"})

PRIORITY_RANK = {"low": 1, "med": 2, "medium": 2, "high": 3, "critical": 4}

_EPOCH = 0.0
_NEXT_DIRECTION = {ASC: DESC, DESC: DEFAULT, DEFAULT: ASC}


# ---------------------------------------------------------------------------
# Sort state machine
# ---------------------------------------------------------------------------


class SortState(NamedTuple):
    column: str
    direction: str


# A freshly loaded table shows creation time descending.
INITIAL_SORT_STATE = SortState(DEFAULT_COLUMN, DESC)


def next_sort_state(state: SortState, column: str) -> SortState:
    """Return the state after the user clicks *column*."""
    if state.column != column:
        return SortState(column, ASC)
    return SortState(column, _NEXT_DIRECTION[state.direction])


# ---------------------------------------------------------------------------
# Value extraction
# ---------------------------------------------------------------------------


def lookup(record: Any, path: str) -> Any:
    """Follow a dotted *path* through mappings and attributes; None if absent."""
    value = record
    for part in path.split("."):
        if value is None:
            return None
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            value = getattr(value, part, None)
    return value


def _to_instant(value: Any) -> float:
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.timestamp()
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            pass
        else:
            return _to_instant(parsed)
    logger.warning("unparseable date %r in sort, treating as epoch", value)
    return _EPOCH


def _sort_value(column: str, raw: Any) -> Any:
    if column == PRIORITY_COLUMN:
        return PRIORITY_RANK.get(str(raw).strip().lower(), 0) if raw is not None else 0
    if column in DATE_COLUMNS:
        return _to_instant(raw)
    return "" if raw is None else raw


# ---------------------------------------------------------------------------
# Comparison
# ---------------------------------------------------------------------------


def _cmp(a, b) -> int:
    return (a > b) - (a < b)


def _fold(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", text)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()


def _text_key(text: str) -> tuple:
    # "é" ties with "e" on the first element and follows it on the second
    return (locale.strxfrm(_fold(text)), text.casefold(), text)


def compare_values(a: Any, b: Any) -> int:
    """Three-way compare of two prepared sort values."""
    if isinstance(a, str) and isinstance(b, str):
        return _cmp(_text_key(a), _text_key(b))
    try:
        return _cmp(float(a), float(b))
    except (TypeError, ValueError):
        return _cmp(_text_key(str(a)), _text_key(str(b)))


def sort_records(records: Iterable[Any], column: str = DEFAULT_COLUMN, direction: str = DEFAULT) -> list:
    """
    Return a new list with *records* ordered by *column* in *direction*.

    ``direction="default"`` ignores *column* and orders by creation time,
    newest first.
    """
    if direction not in DIRECTIONS:
        raise ValueError(f"direction must be one of {DIRECTIONS}, got {direction!r}")
    if direction == DEFAULT:
        column, direction = DEFAULT_COLUMN, DESC

    # Each record's key is computed once, so a bad date warns once per record.
    decorated = [(_sort_value(column, lookup(r, column)), r) for r in records]
    decorated.sort(key=cmp_to_key(lambda x, y: compare_values(x[0], y[0])), reverse=(direction == DESC))
    return [r for _, r in decorated]
