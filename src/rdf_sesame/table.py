# Sesame RDF Client
# File: table.py
# Version: v2

"""Tabular results of tuple (select) queries.

A :class:`TableResult` holds the column names of a query and one row per
solution. Cell values are strings in N-Triples syntax (or stripped, see
:class:`~rdf_sesame.terms.StripPolicy`); a missing binding is ``None``.

Rows can be read three ways:

- sequentially through the shared cursor with :meth:`TableResult.next`,
  which wraps around after the last row;
- by position with ``table[i]`` / :meth:`TableResult.row`;
- by iterating over the table, which never touches the cursor.

Instances are not safe for concurrent use from several threads.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from .errors import DecodeError, ValidationError
from .response import Response
from .terms import StripPolicy, Term

Row = List[Optional[str]]
Column = Union[str, int]

_NUMERIC_MODES = {"numeric": True, "non-numeric": False}
_ORDERS = {"asc": False, "desc": True}


class TableResult:
    """Result table of a tuple query."""

    def __init__(
        self,
        header: Sequence[str],
        terms: Sequence[Sequence[Optional[Term]]],
        strip: Union[StripPolicy, str, None] = None,
    ) -> None:
        self.header: List[str] = list(header)
        self.strip = StripPolicy.coerce(strip)
        self.terms: List[List[Optional[Term]]] = [list(row) for row in terms]

        for index, row in enumerate(self.terms):
            if len(row) != len(self.header):
                raise DecodeError(
                    f"Result row {index} has {len(row)} values but the "
                    f"header has {len(self.header)} columns"
                )

        self.rows: List[Row] = [
            [t.render(self.strip) if t is not None else None for t in row]
            for row in self.terms
        ]
        self._cursor = 0

    @classmethod
    def from_response(
        cls,
        response: Response,
        strip: Union[StripPolicy, str, None] = None,
    ) -> "TableResult":
        """Build a table from a successful tuple-query response."""
        return cls(response.header, response.tuples, strip=strip)

    # ------------------------------------------------------------------
    # Size & random access
    # ------------------------------------------------------------------

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_count(self) -> int:
        return len(self.header)

    def has_rows(self) -> bool:
        return len(self.rows) > 0

    def __len__(self) -> int:
        return len(self.rows)

    def __bool__(self) -> bool:
        # A table is a successful result even when it has no rows; callers
        # tell it apart from the failed-select ``None`` by truthiness.
        return True

    def __getitem__(self, index: int) -> Row:
        return list(self.rows[index])

    def __iter__(self) -> Iterator[Row]:
        for row in self.rows:
            yield list(row)

    def row(self, index: int) -> Row:
        return list(self.rows[index])

    def col_index(self, column: Column) -> int:
        """Position of a column given by name or index.

        Raises KeyError for an unknown name, IndexError for a bad index.
        """
        if isinstance(column, int):
            if not -len(self.header) <= column < len(self.header):
                raise IndexError(f"No column at index {column}")
            return column % len(self.header)
        try:
            return self.header.index(column)
        except ValueError:
            raise KeyError(column) from None

    def column(self, column: Column) -> Row:
        index = self.col_index(column)
        return [row[index] for row in self.rows]

    def to_dicts(self) -> List[Dict[str, Optional[str]]]:
        """Rows as mappings from column name to value.

        With repeated column names the last column of that name wins.
        """
        return [dict(zip(self.header, row)) for row in self.rows]

    # ------------------------------------------------------------------
    # Sequential access
    # ------------------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self._cursor

    def next(self) -> Row:
        """Return the row under the cursor and advance.

        After the last row an empty list is returned and the cursor goes
        back to the start, so the following call returns the first row
        again::

            while row := table.next():
                print("\\t".join(v or "" for v in row))
        """
        if self._cursor >= len(self.rows):
            self._cursor = 0
            return []
        row = self.rows[self._cursor]
        self._cursor += 1
        return list(row)

    each = next

    def reset(self) -> None:
        """Rewind the cursor so that :meth:`next` starts from the first row."""
        self._cursor = 0

    reset_cursor = reset

    # ------------------------------------------------------------------
    # Sorting
    # ------------------------------------------------------------------

    def _sort_spec(self, key: Any) -> Tuple[int, bool, bool]:
        if isinstance(key, (str, int)):
            key = (key,)
        column, mode, order = (tuple(key) + (None, None))[:3]

        mode = mode or "non-numeric"
        order = order or "asc"
        if mode not in _NUMERIC_MODES:
            raise ValidationError("sort mode must be 'numeric' or 'non-numeric'")
        if order not in _ORDERS:
            raise ValidationError("sort order must be 'asc' or 'desc'")

        return self.col_index(column), _NUMERIC_MODES[mode], _ORDERS[order]

    def _numeric_key(self, term: Optional[Term]) -> Tuple[int, float]:
        if term is None:
            return (1, 0.0)
        try:
            value = float(term.value)
        except ValueError:
            return (1, 0.0)
        if math.isnan(value):
            return (1, 0.0)
        return (0, value)

    def sort(self, *keys: Any) -> "TableResult":
        """Reorder rows by one or more keys, most significant first.

        Each key is a column (name or index), or a tuple
        ``(column, mode, order)`` where ``mode`` is ``"numeric"`` or
        ``"non-numeric"`` (default) and ``order`` is ``"asc"`` (default) or
        ``"desc"``::

            table.sort(("age", "numeric", "desc"), "name")

        Numeric keys compare the lexical value of each cell; cells with no
        numeric value come after the numbers in ascending order. The sort
        is stable; the header and the shared cursor are not changed.
        """
        specs = [self._sort_spec(k) for k in keys]
        order = list(range(len(self.rows)))

        # Successive stable sorts, least significant key first.
        for index, numeric, descending in reversed(specs):
            if numeric:
                order.sort(
                    key=lambda i: self._numeric_key(self.terms[i][index]),
                    reverse=descending,
                )
            else:
                order.sort(
                    key=lambda i: self.rows[i][index] or "",
                    reverse=descending,
                )

        self.terms = [self.terms[i] for i in order]
        self.rows = [self.rows[i] for i in order]
        return self

    def __repr__(self) -> str:
        return (
            f"TableResult(columns={self.header!r}, rows={len(self.rows)}, "
            f"strip={self.strip.value!r})"
        )
