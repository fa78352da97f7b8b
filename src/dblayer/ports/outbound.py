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
"""Outbound ports: the table abstraction and query contracts.

Application code depends only on these protocols; the relational and
Firestore adapters both satisfy them.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Any, Protocol, runtime_checkable

from dblayer.query import ResultPair


@runtime_checkable
class DocumentQueryPort(Protocol):
    """Single-use query over one table."""

    def filter_equal(self, column: str, value: Any) -> DocumentQueryPort: ...

    def filter_greater(self, column: str, value: Any) -> DocumentQueryPort: ...

    def filter_less(self, column: str, value: Any) -> DocumentQueryPort: ...

    def order(self, column: str) -> DocumentQueryPort: ...

    def reverse_order(self, column: str) -> DocumentQueryPort: ...

    def limit(self, count: int) -> DocumentQueryPort: ...

    def offset(self, count: int) -> DocumentQueryPort: ...

    def execute(self) -> Iterator[ResultPair]: ...

    def delete(self) -> int: ...


@runtime_checkable
class DBLayerPort(Protocol):
    """Uniform document storage surface over named tables."""

    def create_query(self, table: str) -> DocumentQueryPort: ...

    def get_document(self, table: str, key: str) -> tuple[Any, bool]: ...

    def insert_document(self, table: str, key: str, document: Any) -> None: ...

    def insert_documents(self, table: str, pairs: Iterable[ResultPair | tuple[str, Any]]) -> None: ...

    def update_document(self, table: str, key: str, document: Any) -> None: ...

    def delete_document(self, table: str, key: str) -> None: ...

    def delete_documents(self, table: str, keys: Iterable[str]) -> None: ...

    def close(self) -> None: ...
