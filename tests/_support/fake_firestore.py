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
"""In-memory stand-in for ``google.cloud.firestore.Client``.

Implements the slice of the client API the Firestore layer uses and
enforces the planner's assumptions about the real service:

* an equality filter cannot be combined with ``order_by``
* a range filter requires the query to be ordered by that field first

Violations raise ``FailedPrecondition`` like a missing composite index.
Every streamed query is appended to :attr:`FakeClient.executed`.
"""

from __future__ import annotations

import operator
from collections.abc import Iterator
from typing import Any

from google.api_core.exceptions import AlreadyExists, FailedPrecondition

DOCUMENT_ID = "__name__"
ASCENDING = "ASCENDING"
DESCENDING = "DESCENDING"

_OPS = {"==": operator.eq, "<": operator.lt, ">": operator.gt}


class FakeSnapshot:
    def __init__(self, reference: FakeDocumentReference, data: dict[str, Any] | None) -> None:
        self.reference = reference
        self.id = reference.id
        self._data = data

    @property
    def exists(self) -> bool:
        return self._data is not None

    def to_dict(self) -> dict[str, Any] | None:
        return dict(self._data) if self._data is not None else None


class FakeDocumentReference:
    def __init__(self, collection: FakeCollection, doc_id: str) -> None:
        self._collection = collection
        self.id = doc_id

    def get(self) -> FakeSnapshot:
        return FakeSnapshot(self, self._collection.store.get(self.id))

    def create(self, data: dict[str, Any]) -> None:
        if self.id in self._collection.store:
            raise AlreadyExists(f"Document already exists: {self._collection.name}/{self.id}")
        self._collection.store[self.id] = dict(data)

    def set(self, data: dict[str, Any]) -> None:
        self._collection.store[self.id] = dict(data)

    def delete(self) -> None:
        self._collection.store.pop(self.id, None)


class FakeQuery:
    def __init__(
        self,
        collection: FakeCollection,
        filters: tuple[Any, ...] = (),
        orders: tuple[tuple[str, str], ...] = (),
        offset_value: int | None = None,
        limit_value: int | None = None,
    ) -> None:
        self.collection = collection
        self.filters = filters
        self.orders = orders
        self.offset_value = offset_value
        self.limit_value = limit_value

    def _copy(self, **changes: Any) -> FakeQuery:
        state = {
            "filters": self.filters,
            "orders": self.orders,
            "offset_value": self.offset_value,
            "limit_value": self.limit_value,
        }
        state.update(changes)
        return FakeQuery(self.collection, **state)

    def where(self, *, filter: Any) -> FakeQuery:  # noqa: A002
        return self._copy(filters=(*self.filters, filter))

    def order_by(self, field_path: str, direction: str = ASCENDING) -> FakeQuery:
        return self._copy(orders=(*self.orders, (field_path, direction)))

    def offset(self, num_to_skip: int) -> FakeQuery:
        return self._copy(offset_value=num_to_skip)

    def limit(self, count: int) -> FakeQuery:
        return self._copy(limit_value=count)

    @property
    def filter_ops(self) -> list[tuple[str, str]]:
        return [(f.field_path, f.op_string) for f in self.filters]

    def _validate(self) -> None:
        if self.orders and any(f.op_string == "==" for f in self.filters):
            raise FailedPrecondition("The query requires an index for equality filters combined with order_by")
        ranges = [f for f in self.filters if f.op_string in ("<", ">")]
        if ranges and (not self.orders or self.orders[0][0] != ranges[0].field_path):
            raise FailedPrecondition("Inequality filter field must be the first order_by field")

    @staticmethod
    def _value(doc_id: str, data: dict[str, Any], field: str) -> Any:
        return doc_id if field == DOCUMENT_ID else data.get(field)

    def _matches(self, doc_id: str, data: dict[str, Any], flt: Any) -> bool:
        if flt.field_path == DOCUMENT_ID:
            left, right = doc_id, flt.value.id
        elif flt.field_path not in data:
            return False
        else:
            left, right = data[flt.field_path], flt.value
        try:
            return bool(_OPS[flt.op_string](left, right))
        except TypeError:
            return False

    def stream(self) -> Iterator[FakeSnapshot]:
        self._validate()
        self.collection.client.executed.append(self)

        docs = list(self.collection.store.items())
        for flt in self.filters:
            docs = [(i, d) for i, d in docs if self._matches(i, d, flt)]
        for field, direction in reversed(self.orders):
            docs = [(i, d) for i, d in docs if field == DOCUMENT_ID or field in d]
            docs.sort(key=lambda item, f=field: self._value(item[0], item[1], f), reverse=direction == DESCENDING)
        if not self.orders:
            docs.sort(key=lambda item: item[0])

        start = self.offset_value or 0
        stop = start + self.limit_value if self.limit_value is not None else None
        for doc_id, data in docs[start:stop]:
            yield FakeSnapshot(FakeDocumentReference(self.collection, doc_id), dict(data))


class FakeCollection(FakeQuery):
    def __init__(self, client: FakeClient, name: str) -> None:
        self.client = client
        self.name = name
        self.store: dict[str, dict[str, Any]] = {}
        super().__init__(self)

    def document(self, doc_id: str) -> FakeDocumentReference:
        return FakeDocumentReference(self, doc_id)


class FakeClient:
    def __init__(self) -> None:
        self._collections: dict[str, FakeCollection] = {}
        self.executed: list[FakeQuery] = []
        self.closed = False

    def collection(self, name: str) -> FakeCollection:
        if name not in self._collections:
            self._collections[name] = FakeCollection(self, name)
        return self._collections[name]

    def close(self) -> None:
        self.closed = True
