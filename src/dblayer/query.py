# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""Backend-agnostic query descriptor shared by every adapter.

A query accumulates filters, a single ordering, reversal, limit and offset,
then is consumed exactly once by :meth:`DocumentQuery.execute` or
:meth:`DocumentQuery.delete`. Adapters subclass :class:`DocumentQuery` and
supply ``_execute`` / ``_delete``.

Example::

    query = layer.create_query("employee")
    query.filter_equal("company", "c1").order("salary").limit(10)
    for key, employee in query.execute():
        ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, NamedTuple

from dblayer.kernel.exceptions import QueryStateError
from dblayer.table import TableDescriptor


class FilterOperator(StrEnum):
    """Comparison operators; values match the native operator strings."""

    EQUAL = "=="
    LESS_THAN = "<"
    GREATER_THAN = ">"


@dataclass(frozen=True)
class Filter:
    """A single ``column <operator> value`` predicate."""

    column: str
    operator: FilterOperator
    value: Any

    @property
    def is_equality(self) -> bool:
        return self.operator is FilterOperator.EQUAL


class ResultPair(NamedTuple):
    """One decoded query result."""

    key: str
    document: Any


class DocumentQuery(ABC):
    """Accumulates query criteria for one table; single use.

    Negative values passed to :meth:`limit` or :meth:`offset` mean "unset"
    and are stored as ``None``.
    """

    def __init__(self, table: TableDescriptor) -> None:
        self.table = table
        self.filters: list[Filter] = []
        self.order_by: str | None = None
        self.reversed = False
        self.limit_max: int | None = None
        self.limit_offset: int | None = None
        self._consumed = False

    # ------------------------------------------------------------------
    # Builder
    # ------------------------------------------------------------------

    def _add_filter(self, column: str, operator: FilterOperator, value: Any) -> DocumentQuery:
        self.filters.append(Filter(column=column, operator=operator, value=value))
        return self

    def filter_equal(self, column: str, value: Any) -> DocumentQuery:
        return self._add_filter(column, FilterOperator.EQUAL, value)

    def filter_greater(self, column: str, value: Any) -> DocumentQuery:
        return self._add_filter(column, FilterOperator.GREATER_THAN, value)

    def filter_less(self, column: str, value: Any) -> DocumentQuery:
        return self._add_filter(column, FilterOperator.LESS_THAN, value)

    def order(self, column: str) -> DocumentQuery:
        """Sort ascending by *column*, replacing any previous ordering."""
        self.order_by = column
        self.reversed = False
        return self

    def reverse_order(self, column: str) -> DocumentQuery:
        """Sort descending by *column*, replacing any previous ordering."""
        self.order_by = column
        self.reversed = True
        return self

    def limit(self, count: int) -> DocumentQuery:
        self.limit_max = count if count >= 0 else None
        return self

    def offset(self, count: int) -> DocumentQuery:
        self.limit_offset = count if count >= 0 else None
        return self

    @property
    def has_equality_filter(self) -> bool:
        return any(f.is_equality for f in self.filters)

    # ------------------------------------------------------------------
    # Consumption
    # ------------------------------------------------------------------

    def _consume(self) -> None:
        if self._consumed:
            raise QueryStateError(
                f"Query on table '{self.table.name}' has already been executed",
                context={"table": self.table.name},
            )
        self._consumed = True

    def execute(self) -> Iterator[ResultPair]:
        """Run the query and return an iterator over its results.

        All rows are fetched and decoded before the iterator is returned,
        so a decoding failure surfaces here rather than mid-iteration.
        """
        self._consume()
        return iter(self._execute())

    def delete(self) -> int:
        """Delete every document matching the filters.

        Ordering, limit and offset are ignored. Returns the number of
        documents removed.
        """
        self._consume()
        return self._delete()

    @abstractmethod
    def _execute(self) -> list[ResultPair]: ...

    @abstractmethod
    def _delete(self) -> int: ...

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(table={self.table.name!r}, filters={self.filters!r}, "
            f"order_by={self.order_by!r}, reversed={self.reversed}, "
            f"limit={self.limit_max}, offset={self.limit_offset})"
        )
