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
"""Relational table layer built on SQLAlchemy 2.0 Core."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Engine, MetaData, Table, select
from sqlalchemy.exc import SQLAlchemyError

from dblayer.codec import decode_payload, encode_document
from dblayer.kernel.exceptions import StoreConnectionError
from dblayer.layer import BaseDBLayer
from dblayer.relational.sqlalchemy.query import SqlAlchemyDocumentQuery
from dblayer.relational.sqlalchemy.schema import build_table, to_column_text, translate_errors
from dblayer.table import DBTable, TableDescriptor

_logger = logging.getLogger(__name__)


class SqlAlchemyDBLayer(BaseDBLayer):
    """Document tables stored in a relational database.

    On construction every declared table is created if missing (schema
    sync, not migration: an existing table with a different layout is left
    untouched). Each single-document operation runs in its own transaction.

    Args:
        engine: SQLAlchemy engine; owned by the layer and disposed on close.
        key_column: Name of the primary-key column.
        payload_column: Name of the column holding the serialized document.
        tables: Table name -> :class:`~dblayer.table.DBTable` configuration.

    Usage::

        engine = create_engine("sqlite:///app.db")
        with SqlAlchemyDBLayer(engine, "id", "payload", tables) as layer:
            layer.insert_document("company", "c0", Company(name="comco"))
    """

    def __init__(
        self,
        engine: Engine,
        key_column: str = "id",
        payload_column: str = "payload",
        tables: Mapping[str, DBTable | TableDescriptor] | None = None,
    ) -> None:
        super().__init__(tables or {})
        self._engine = engine
        self._key_column = key_column
        self._payload_column = payload_column
        self._metadata = MetaData()
        self._sql_tables: dict[str, Table] = {
            name: build_table(self._metadata, table, key_column, payload_column)
            for name, table in self._tables.items()
        }

        try:
            self._metadata.create_all(engine, checkfirst=True)
        except SQLAlchemyError as exc:
            raise StoreConnectionError(
                f"Cannot synchronize schema on {engine.url!r}: {exc}",
                context={"url": engine.url.render_as_string(hide_password=True)},
            ) from exc
        _logger.info("Relational schema synchronized (%d tables)", len(self._sql_tables))

    @property
    def engine(self) -> Engine:
        return self._engine

    def _sql_table(self, name: str) -> Table:
        self._table(name)
        return self._sql_tables[name]

    def create_query(self, table: str) -> SqlAlchemyDocumentQuery:
        return SqlAlchemyDocumentQuery(
            self._table(table),
            self._engine,
            self._sql_table(table),
            self._key_column,
            self._payload_column,
        )

    def get_document(self, table: str, key: str) -> tuple[Any, bool]:
        descriptor = self._table(table)
        sql_table = self._sql_table(table)
        stmt = select(sql_table.c[self._payload_column]).where(sql_table.c[self._key_column] == key)
        with translate_errors("get", table, key), self._engine.connect() as conn:
            row = conn.execute(stmt).first()
        if row is None:
            return None, False
        return decode_payload(descriptor, key, row[0]), True

    def _row(self, descriptor: TableDescriptor, key: str, document: Any) -> dict[str, Any]:
        encoded = encode_document(document, descriptor.breakouts)
        row: dict[str, Any] = {self._key_column: key}
        for name, value in encoded.breakouts.items():
            row[name] = to_column_text(value)
        row[self._payload_column] = encoded.payload
        return row

    def insert_document(self, table: str, key: str, document: Any) -> None:
        sql_table = self._sql_table(table)
        row = self._row(self._table(table), key, document)
        with translate_errors("insert", table, key), self._engine.begin() as conn:
            conn.execute(sql_table.insert().values(row))

    def update_document(self, table: str, key: str, document: Any) -> None:
        """Replace the stored document wholesale (creates it when absent).

        Delete and insert share one transaction, so readers never observe
        the key missing.
        """
        sql_table = self._sql_table(table)
        row = self._row(self._table(table), key, document)
        with translate_errors("update", table, key), self._engine.begin() as conn:
            conn.execute(sql_table.delete().where(sql_table.c[self._key_column] == key))
            conn.execute(sql_table.insert().values(row))

    def delete_document(self, table: str, key: str) -> None:
        sql_table = self._sql_table(table)
        with translate_errors("delete", table, key), self._engine.begin() as conn:
            conn.execute(sql_table.delete().where(sql_table.c[self._key_column] == key))

    def _release(self) -> None:
        self._engine.dispose()
