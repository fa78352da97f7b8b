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
"""Document table layer backed by Google Cloud Firestore."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from dblayer.codec import decode_payload, encode_document
from dblayer.document.firestore.query import FirestoreDocumentQuery, SortKey, translate_errors
from dblayer.kernel.exceptions import ConfigurationError
from dblayer.layer import BaseDBLayer
from dblayer.table import DBTable, TableDescriptor

_logger = logging.getLogger(__name__)


class FirestoreDBLayer(BaseDBLayer):
    """Document tables stored as Firestore collections.

    One collection per table, one Firestore document per key. Each stored
    document holds the breakout fields as native values plus the payload
    attribute with the full serialized document.

    Args:
        client: ``google.cloud.firestore.Client``; owned by the layer and
            closed on :meth:`close`.
        payload_attribute: Attribute holding the serialized document.
        tables: Table name -> :class:`~dblayer.table.DBTable` configuration.
        sort_keys: Per-table, per-column key functions used when results
            must be sorted client-side. Columns without one sort by their
            stored breakout value.
        key_field: Column name queries use to refer to the document id.

    Updates use ``set()`` and are atomic replacements. Delete-by-query and
    batch operations are not atomic.
    """

    def __init__(
        self,
        client: Any,
        payload_attribute: str = "payload",
        tables: Mapping[str, DBTable | TableDescriptor] | None = None,
        sort_keys: Mapping[str, Mapping[str, SortKey]] | None = None,
        *,
        key_field: str = "id",
    ) -> None:
        super().__init__(tables or {})
        for descriptor in self._tables.values():
            if payload_attribute in descriptor.breakouts:
                raise ConfigurationError(
                    f"Table '{descriptor.name}' declares a breakout named like the payload attribute "
                    f"'{payload_attribute}'",
                    context={"table": descriptor.name},
                )
        self._client = client
        self._payload_attribute = payload_attribute
        self._sort_keys = {table: dict(keys) for table, keys in (sort_keys or {}).items()}
        self._key_field = key_field

    @property
    def client(self) -> Any:
        return self._client

    def _collection(self, table: str) -> Any:
        self._table(table)
        return self._client.collection(table)

    def create_query(self, table: str) -> FirestoreDocumentQuery:
        return FirestoreDocumentQuery(
            self._table(table),
            self._collection(table),
            self._payload_attribute,
            self._key_field,
            self._sort_keys.get(table),
        )

    def get_document(self, table: str, key: str) -> tuple[Any, bool]:
        descriptor = self._table(table)
        with translate_errors("get", table, key):
            snapshot = self._collection(table).document(key).get()
        if not snapshot.exists:
            return None, False
        payload = (snapshot.to_dict() or {}).get(self._payload_attribute)
        if payload is None:
            _logger.warning("Document '%s/%s' has no '%s' attribute", table, key, self._payload_attribute)
            return None, False
        return decode_payload(descriptor, key, payload), True

    def _data(self, table: str, document: Any) -> dict[str, Any]:
        encoded = encode_document(document, self._table(table).breakouts)
        return {**encoded.breakouts, self._payload_attribute: encoded.payload}

    def insert_document(self, table: str, key: str, document: Any) -> None:
        data = self._data(table, document)
        with translate_errors("insert", table, key):
            self._collection(table).document(key).create(data)

    def update_document(self, table: str, key: str, document: Any) -> None:
        """Replace the stored document wholesale (creates it when absent)."""
        data = self._data(table, document)
        with translate_errors("update", table, key):
            self._collection(table).document(key).set(data)

    def delete_document(self, table: str, key: str) -> None:
        with translate_errors("delete", table, key):
            self._collection(table).document(key).delete()

    def _release(self) -> None:
        self._client.close()
