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
"""Firestore query planner — splits criteria between the server and the client.

Firestore cannot combine an equality filter with an ``order_by`` unless a
composite index exists, and a range filter (``<``, ``>``) needs the query
ordered by the range field first. :func:`plan_query` classifies a query
into one of four cases and decides, per case, which part runs natively:

==================== ==================================================
Case                 Native                     / Client
==================== ==================================================
EQUALITY_FILTERED    where filters              / sort, offset, limit
UNFILTERED_ORDERED   order_by, offset, limit    / nothing
RANGE_FILTERED       where, order_by(range col) / sort+slice if the
                     [+ offset, limit]            requested order differs
UNFILTERED           full collection scan       / nothing
==================== ==================================================

The planner is pure: it works on :class:`~dblayer.query.Filter` values and
never touches a client, so each case can be tested on its own.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from enum import StrEnum

from dblayer.query import Filter


class QueryPlanKind(StrEnum):
    EQUALITY_FILTERED = "equality_filtered"
    UNFILTERED_ORDERED = "unfiltered_ordered"
    RANGE_FILTERED = "range_filtered"
    UNFILTERED = "unfiltered"


@dataclass(frozen=True)
class QueryPlan:
    """How one query is split between Firestore and the client."""

    kind: QueryPlanKind
    filters: tuple[Filter, ...] = ()
    native_order: str | None = None
    native_descending: bool = False
    native_offset: int | None = None
    native_limit: int | None = None
    client_order: str | None = None
    client_descending: bool = False
    client_offset: int | None = None
    client_limit: int | None = None

    @property
    def slices_on_client(self) -> bool:
        return self.client_offset is not None or self.client_limit is not None


@dataclass(frozen=True)
class QueryCriteria:
    """The backend-agnostic inputs to planning."""

    filters: tuple[Filter, ...]
    order_by: str | None
    descending: bool
    limit: int | None
    offset: int | None
    key_field: str


def classify(criteria: QueryCriteria) -> QueryPlanKind:
    """Pick the planning case for *criteria*."""
    if any(f.is_equality for f in criteria.filters):
        return QueryPlanKind.EQUALITY_FILTERED
    if criteria.filters:
        return QueryPlanKind.RANGE_FILTERED
    if criteria.order_by is None and criteria.limit is None and criteria.offset is None:
        return QueryPlanKind.UNFILTERED
    return QueryPlanKind.UNFILTERED_ORDERED


def _plan_equality_filtered(criteria: QueryCriteria) -> QueryPlan:
    return QueryPlan(
        kind=QueryPlanKind.EQUALITY_FILTERED,
        filters=criteria.filters,
        client_order=criteria.order_by,
        client_descending=criteria.descending,
        client_offset=criteria.offset,
        client_limit=criteria.limit,
    )


def _plan_unfiltered_ordered(criteria: QueryCriteria) -> QueryPlan:
    return QueryPlan(
        kind=QueryPlanKind.UNFILTERED_ORDERED,
        native_order=criteria.order_by if criteria.order_by is not None else criteria.key_field,
        native_descending=criteria.descending,
        native_offset=criteria.offset,
        native_limit=criteria.limit,
    )


def _plan_range_filtered(criteria: QueryCriteria) -> QueryPlan:
    range_column = criteria.filters[0].column
    if criteria.order_by is None or criteria.order_by == range_column:
        return QueryPlan(
            kind=QueryPlanKind.RANGE_FILTERED,
            filters=criteria.filters,
            native_order=range_column,
            native_descending=criteria.descending if criteria.order_by is not None else False,
            native_offset=criteria.offset,
            native_limit=criteria.limit,
        )
    # Requested order is on another column: the native order only satisfies
    # the range filter, so sorting and slicing move to the client.
    return QueryPlan(
        kind=QueryPlanKind.RANGE_FILTERED,
        filters=criteria.filters,
        native_order=range_column,
        client_order=criteria.order_by,
        client_descending=criteria.descending,
        client_offset=criteria.offset,
        client_limit=criteria.limit,
    )


def _plan_unfiltered(criteria: QueryCriteria) -> QueryPlan:
    return QueryPlan(kind=QueryPlanKind.UNFILTERED)


_PLANNERS: dict[QueryPlanKind, Callable[[QueryCriteria], QueryPlan]] = {
    QueryPlanKind.EQUALITY_FILTERED: _plan_equality_filtered,
    QueryPlanKind.UNFILTERED_ORDERED: _plan_unfiltered_ordered,
    QueryPlanKind.RANGE_FILTERED: _plan_range_filtered,
    QueryPlanKind.UNFILTERED: _plan_unfiltered,
}


def plan_query(
    filters: Sequence[Filter],
    order_by: str | None = None,
    descending: bool = False,
    limit: int | None = None,
    offset: int | None = None,
    *,
    key_field: str = "id",
) -> QueryPlan:
    """Build the :class:`QueryPlan` for the given criteria.

    Args:
        filters: Filters in declaration order.
        order_by: Requested sort column, or ``None``.
        descending: Whether the requested sort is reversed.
        limit: Maximum number of results, or ``None``.
        offset: Number of leading results to skip, or ``None``.
        key_field: Column name callers use for the document key; it is
            the default native order for unfiltered paging.
    """
    criteria = QueryCriteria(
        filters=tuple(filters),
        order_by=order_by,
        descending=descending,
        limit=limit,
        offset=offset,
        key_field=key_field,
    )
    return _PLANNERS[classify(criteria)](criteria)
