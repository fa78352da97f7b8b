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
"""Shared base for table layers.

Subclasses supply the single-document operations and ``_release``; batch
operations, table lookup and deterministic release are inherited.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from types import TracebackType
from typing import Any

from dblayer.kernel.exceptions import UnknownTableError
from dblayer.query import DocumentQuery, ResultPair
from dblayer.table import DBTable, TableDescriptor, normalize_tables

_logger = logging.getLogger(__name__)


class BaseDBLayer(ABC):
    """Common behaviour for every :class:`~dblayer.ports.outbound.DBLayerPort` adapter.

    Batch operations apply elements in order and stop at the first error;
    elements already applied stay applied.
    """

    def __init__(self, tables: Mapping[str, DBTable | TableDescriptor]) -> None:
        self._tables = normalize_tables(tables)
        self._closed = False

    @property
    def tables(self) -> dict[str, TableDescriptor]:
        return dict(self._tables)

    def _table(self, name: str) -> TableDescriptor:
        try:
            return self._tables[name]
        except KeyError:
            raise UnknownTableError(f"Table '{name}' is not declared", context={"table": name}) from None

    # ------------------------------------------------------------------
    # Single-document operations
    # ------------------------------------------------------------------

    @abstractmethod
    def create_query(self, table: str) -> DocumentQuery: ...

    @abstractmethod
    def get_document(self, table: str, key: str) -> tuple[Any, bool]: ...

    @abstractmethod
    def insert_document(self, table: str, key: str, document: Any) -> None: ...

    @abstractmethod
    def update_document(self, table: str, key: str, document: Any) -> None: ...

    @abstractmethod
    def delete_document(self, table: str, key: str) -> None: ...

    # ------------------------------------------------------------------
    # Batch operations
    # ------------------------------------------------------------------

    def insert_documents(self, table: str, pairs: Iterable[ResultPair | tuple[str, Any]]) -> None:
        """Insert each ``(key, document)`` pair in order; not atomic."""
        self._table(table)
        count = 0
        for key, document in pairs:
            self.insert_document(table, key, document)
            count += 1
        _logger.debug("Inserted %d documents into '%s'", count, table)

    def delete_documents(self, table: str, keys: Iterable[str]) -> None:
        """Delete each key in order; not atomic."""
        self._table(table)
        count = 0
        for key in keys:
            self.delete_document(table, key)
            count += 1
        _logger.debug("Deleted %d keys from '%s'", count, table)

    # ------------------------------------------------------------------
    # Release
    # ------------------------------------------------------------------

    @abstractmethod
    def _release(self) -> None:
        """Release the underlying engine or client."""

    def close(self) -> None:
        """Release the underlying connection; safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._release()
        _logger.debug("%s closed", type(self).__name__)

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> BaseDBLayer:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
