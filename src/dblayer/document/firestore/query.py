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
"""Firestore query — runs a :class:`QueryPlan` against a collection."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from google.api_core.exceptions import Conflict, GoogleAPIError
from google.cloud.firestore_v1 import Query
from google.cloud.firestore_v1.base_query import FieldFilter
from google.cloud.firestore_v1.field_path import FieldPath

from dblayer.codec import decode_payload
from dblayer.document.firestore.planner import QueryPlan, plan_query
from dblayer.kernel.exceptions import BackendOperationError, DocumentConflictError
from dblayer.query import DocumentQuery, Filter, ResultPair
from dblayer.table import TableDescriptor

_logger = logging.getLogger(__name__)

# Firestore orders values of different types by type first.
_TYPE_RANKS: tuple[tuple[type | tuple[type, ...], int], ...] = (
    (bool, 1),
    ((int, float), 2),
    (datetime, 3),
    (str, 4),
    (bytes, 5),
    ((list, tuple), 8),
    (dict, 9),
)


def _type_rank(value: Any) -> int:
    if value is None:
        return 0
    for types, rank in _TYPE_RANKS:
        if isinstance(value, types):
            return rank
    # references and geo points
    return 7


SortKey = Callable[[Any], Any]
"""Key function over a decoded document, as used by :func:`sorted`.

A two-argument comparison function can be adapted with
:func:`functools.cmp_to_key`.
"""


@contextmanager
def translate_errors(operation: str, table: str, key: str | None = None) -> Iterator[None]:
    """Re-raise Google API errors as dblayer errors, chaining the original."""
    context: dict[str, Any] = {"operation": operation, "table": table}
    if key is not None:
        context["key"] = key
    try:
        yield
    except Conflict as exc:
        raise DocumentConflictError(
            f"{operation} on '{table}' conflicts with an existing document: {exc.message}",
            context=context,
            cause=exc,
        ) from exc
    except GoogleAPIError as exc:
        raise BackendOperationError(f"{operation} on '{table}' failed: {exc}", context=context, cause=exc) from exc


@dataclass(frozen=True)
class _Row:
    key: str
    document: Any
    data: dict[str, Any]


class FirestoreDocumentQuery(DocumentQuery):
    """Query over one Firestore collection.

    Criteria Firestore cannot express natively (see
    :mod:`dblayer.document.firestore.planner`) are applied after fetching.
    """

    def __init__(
        self,
        table: TableDescriptor,
        collection: Any,
        payload_attribute: str,
        key_field: str,
        sort_keys: Mapping[str, SortKey] | None = None,
    ) -> None:
        super().__init__(table)
        self._collection = collection
        self._payload_attribute = payload_attribute
        self._key_field = key_field
        self._sort_keys = dict(sort_keys or {})

    def plan(self) -> QueryPlan:
        return plan_query(
            self.filters,
            self.order_by,
            self.reversed,
            self.limit_max,
            self.limit_offset,
            key_field=self._key_field,
        )

    def _field(self, column: str) -> str:
        return FieldPath.document_id() if column == self._key_field else column

    def _value(self, f: Filter) -> Any:
        # Document-id filters compare against references, not strings.
        if f.column == self._key_field:
            return self._collection.document(str(f.value))
        return f.value

    def build_native_query(self, plan: QueryPlan) -> Any:
        """Translate the native half of *plan* into a Firestore query."""
        query = self._collection
        for f in plan.filters:
            query = query.where(filter=FieldFilter(self._field(f.column), f.operator.value, self._value(f)))
        if plan.native_order is not None:
            direction = Query.DESCENDING if plan.native_descending else Query.ASCENDING
            query = query.order_by(self._field(plan.native_order), direction=direction)
        if plan.native_offset is not None:
            query = query.offset(plan.native_offset)
        if plan.native_limit is not None:
            query = query.limit(plan.native_limit)
        return query

    def _sort_key(self, column: str) -> Callable[[_Row], Any]:
        custom = self._sort_keys.get(column)
        if custom is not None:
            return lambda row: custom(row.document)
        if column == self._key_field:
            return lambda row: row.key

        # Stored breakout value ranked by type; documents without one sort first.
        def _stored(row: _Row) -> tuple[int, Any]:
            value = row.data.get(column)
            return _type_rank(value), value

        return _stored

    def _decode(self, snapshot: Any) -> _Row | None:
        data = snapshot.to_dict() or {}
        payload = data.get(self._payload_attribute)
        if payload is None:
            _logger.debug(
                "Skipping '%s/%s': no '%s' attribute", self.table.name, snapshot.id, self._payload_attribute
            )
            return None
        return _Row(snapshot.id, decode_payload(self.table, snapshot.id, payload), data)

    def _execute(self) -> list[ResultPair]:
        plan = self.plan()
        _logger.debug("Executing %s query on '%s': %s", plan.kind, self.table.name, plan)
        with translate_errors("query", self.table.name):
            snapshots = list(self.build_native_query(plan).stream())

        rows = [row for row in map(self._decode, snapshots) if row is not None]

        if plan.client_order is not None:
            try:
                rows.sort(key=self._sort_key(plan.client_order), reverse=plan.client_descending)
            except TypeError as exc:
                raise BackendOperationError(
                    f"Cannot sort results of '{self.table.name}' by '{plan.client_order}': {exc}",
                    context={"operation": "query", "table": self.table.name, "column": plan.client_order},
                    cause=exc,
                ) from exc
        if plan.slices_on_client:
            start = plan.client_offset or 0
            stop = start + plan.client_limit if plan.client_limit is not None else None
            rows = rows[start:stop]

        return [ResultPair(row.key, row.document) for row in rows]

    def _delete(self) -> int:
        # Same translation path with filters only; ids first, then one delete each.
        plan = plan_query(self.filters, key_field=self._key_field)
        with translate_errors("delete query", self.table.name):
            references = [snapshot.reference for snapshot in self.build_native_query(plan).stream()]

        for reference in references:
            with translate_errors("delete", self.table.name, reference.id):
                reference.delete()
        _logger.debug("Deleted %d documents from '%s'", len(references), self.table.name)
        return len(references)
