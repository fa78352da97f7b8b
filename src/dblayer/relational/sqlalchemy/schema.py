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
"""Relational storage layout and driver-error translation.

Every logical table maps to one SQL table whose columns are all ``TEXT``:
the key (primary key), one column per breakout field, and the payload.
"""

from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from pydantic_core import PydanticSerializationError, to_jsonable_python
from sqlalchemy import Column, MetaData, Table, Text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from dblayer.kernel.exceptions import (
    BackendOperationError,
    ConfigurationError,
    DocumentConflictError,
    EncodingError,
)
from dblayer.table import TableDescriptor


def build_table(
    metadata: MetaData,
    table: TableDescriptor,
    key_column: str,
    payload_column: str,
) -> Table:
    """Declare the SQL table for *table* on *metadata*."""
    reserved = {key_column, payload_column}
    clashes = reserved.intersection(table.breakouts)
    if clashes:
        raise ConfigurationError(
            f"Table '{table.name}' declares breakouts that clash with the key/payload columns: {sorted(clashes)}",
            context={"table": table.name},
        )
    return Table(
        table.name,
        metadata,
        Column(key_column, Text, primary_key=True),
        *(Column(name, Text) for name in table.breakouts),
        Column(payload_column, Text),
    )


def to_column_text(value: Any) -> str | None:
    """Render a breakout or filter value the way it is stored in a ``TEXT`` column.

    Strings are kept as-is; other JSON values use their compact JSON text
    (``100000``, ``true``); ``None`` stays NULL.
    """
    if value is None or isinstance(value, str):
        return value
    try:
        return json.dumps(to_jsonable_python(value), separators=(",", ":"), sort_keys=True)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise EncodingError(f"Cannot render value of type {type(value).__name__} as column text: {exc}") from exc


@contextmanager
def translate_errors(operation: str, table: str, key: str | None = None) -> Iterator[None]:
    """Re-raise SQLAlchemy errors as dblayer errors, chaining the original."""
    context: dict[str, Any] = {"operation": operation, "table": table}
    if key is not None:
        context["key"] = key
    try:
        yield
    except IntegrityError as exc:
        raise DocumentConflictError(
            f"{operation} on '{table}' conflicts with an existing row: {exc.orig}",
            context=context,
            cause=exc,
        ) from exc
    except SQLAlchemyError as exc:
        raise BackendOperationError(f"{operation} on '{table}' failed: {exc}", context=context, cause=exc) from exc
