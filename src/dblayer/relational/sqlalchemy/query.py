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
"""SQLAlchemy query — compiles a :class:`DocumentQuery` into Core statements.

Translation rules:

* each filter becomes ``column <op> :param``; filters are AND-joined in
  declaration order and bound in the same order
* ordering defaults to the key column ascending; reversal flips to
  descending
* offset without limit is paired with :data:`UNBOUNDED_LIMIT`, since some
  dialects only accept OFFSET after a LIMIT
* delete-by-query is a single ``DELETE ... WHERE`` statement
"""

from __future__ import annotations

import logging
import operator
from collections.abc import Callable
from typing import Any

from sqlalchemy import ColumnElement, Delete, Engine, Select, Table, column, select

from dblayer.codec import decode_payload
from dblayer.query import DocumentQuery, FilterOperator, ResultPair
from dblayer.relational.sqlalchemy.schema import to_column_text, translate_errors
from dblayer.table import TableDescriptor

_logger = logging.getLogger(__name__)

UNBOUNDED_LIMIT = 1_000_000_000

_OPERATORS: dict[FilterOperator, Callable[[Any, Any], ColumnElement[bool]]] = {
    FilterOperator.EQUAL: operator.eq,
    FilterOperator.LESS_THAN: operator.lt,
    FilterOperator.GREATER_THAN: operator.gt,
}


class SqlAlchemyDocumentQuery(DocumentQuery):
    """Query over one relational table."""

    def __init__(
        self,
        table: TableDescriptor,
        engine: Engine,
        sql_table: Table,
        key_column: str,
        payload_column: str,
    ) -> None:
        super().__init__(table)
        self._engine = engine
        self._sql_table = sql_table
        self._key_column = key_column
        self._payload_column = payload_column

    def _column(self, name: str) -> Any:
        # Undeclared columns are passed through and rejected by the database.
        return self._sql_table.c.get(name, column(name))

    def _where(self) -> list[ColumnElement[bool]]:
        return [
            _OPERATORS[f.operator](self._column(f.column), to_column_text(f.value))
            for f in self.filters
        ]

    def build_select(self) -> Select[Any]:
        """Compile the accumulated criteria into a SELECT statement."""
        key = self._sql_table.c[self._key_column]
        payload = self._sql_table.c[self._payload_column]

        stmt = select(key, payload).select_from(self._sql_table)
        clauses = self._where()
        if clauses:
            stmt = stmt.where(*clauses)

        order_col = self._column(self.order_by) if self.order_by is not None else key
        stmt = stmt.order_by(order_col.desc() if self.reversed else order_col.asc())

        if self.limit_offset is not None:
            limit = self.limit_max if self.limit_max is not None else UNBOUNDED_LIMIT
            stmt = stmt.limit(limit).offset(self.limit_offset)
        elif self.limit_max is not None:
            stmt = stmt.limit(self.limit_max)
        return stmt

    def build_delete(self) -> Delete:
        """Compile the accumulated filters into a DELETE statement."""
        stmt = self._sql_table.delete()
        clauses = self._where()
        if clauses:
            stmt = stmt.where(*clauses)
        return stmt

    def _execute(self) -> list[ResultPair]:
        stmt = self.build_select()
        _logger.debug("Executing query on '%s': %s", self.table.name, stmt)
        with translate_errors("query", self.table.name), self._engine.connect() as conn:
            rows = conn.execute(stmt).all()

        # Decode everything before returning so a bad row fails the whole query.
        return [ResultPair(key, decode_payload(self.table, key, payload)) for key, payload in rows]

    def _delete(self) -> int:
        stmt = self.build_delete()
        _logger.debug("Executing delete on '%s': %s", self.table.name, stmt)
        with translate_errors("delete query", self.table.name), self._engine.begin() as conn:
            result = conn.execute(stmt)
        return result.rowcount
