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
"""Table descriptors: breakout fields and per-table decoders.

Each table's document type is opaque to the layer. A table is known only by
its name, the ordered breakout fields promoted to queryable columns, and a
decoder turning a stored payload back into a document.

Usage::

    tables = {
        "employee": DBTable(breakouts=["name", "company", "salary"], decoder=model_decoder(Employee)),
        "company": DBTable(breakouts=["name", "product"], decoder=json_decoder),
    }
"""

from __future__ import annotations

import json
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import TypeAdapter

from dblayer.kernel.exceptions import ConfigurationError

T = TypeVar("T")

Decoder = Callable[[bytes], Any]


@dataclass(frozen=True)
class DBTable:
    """Configuration entry for one table, keyed by table name in a mapping."""

    breakouts: Iterable[str]
    decoder: Decoder


@dataclass(frozen=True)
class TableDescriptor:
    """Resolved, immutable description of one table."""

    name: str
    breakouts: tuple[str, ...]
    decoder: Decoder

    def decode(self, payload: bytes) -> Any:
        return self.decoder(payload)


def normalize_tables(tables: Mapping[str, DBTable | TableDescriptor]) -> dict[str, TableDescriptor]:
    """Resolve a table configuration mapping into :class:`TableDescriptor` values.

    Breakout names must be unique within a table; duplicates raise
    :class:`~dblayer.kernel.exceptions.ConfigurationError`.
    """
    resolved: dict[str, TableDescriptor] = {}
    for name, entry in tables.items():
        breakouts = tuple(entry.breakouts)
        if len(set(breakouts)) != len(breakouts):
            raise ConfigurationError(
                f"Table '{name}' declares duplicate breakout fields: {breakouts}",
                context={"table": name},
            )
        resolved[name] = TableDescriptor(name=name, breakouts=breakouts, decoder=entry.decoder)
    return resolved


def model_decoder(model: type[T]) -> Callable[[bytes], T]:
    """Build a decoder validating the JSON payload into *model*.

    Works with pydantic models, dataclasses, TypedDicts and anything else
    pydantic's ``TypeAdapter`` accepts.
    """
    adapter = TypeAdapter(model)

    def _decode(payload: bytes) -> T:
        return adapter.validate_json(payload)

    return _decode


def json_decoder(payload: bytes) -> Any:
    """Decoder returning the payload as plain JSON data (usually a dict)."""
    return json.loads(payload)
