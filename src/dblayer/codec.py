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
"""Document codec — canonical form, breakout extraction and payload decoding.

Documents are converted to a generic JSON-compatible map first; breakout
values are projected from that map, and the same map serialized as JSON is
the stored payload. Going through the generic map is what lets any
document type (pydantic model, dataclass, plain dict) expose its fields
without the layer knowing the type.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from pydantic_core import PydanticSerializationError, to_jsonable_python

from dblayer.kernel.exceptions import DecodingError, EncodingError
from dblayer.table import TableDescriptor


@dataclass(frozen=True)
class EncodedDocument:
    """A document ready to be written: breakout values plus the payload text."""

    breakouts: dict[str, Any]
    payload: str


def to_canonical(document: Any) -> dict[str, Any]:
    """Convert *document* to its generic JSON-compatible map.

    Raises:
        EncodingError: If the document cannot be serialized or does not
            serialize to a JSON object.
    """
    try:
        canonical = to_jsonable_python(document)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise EncodingError(
            f"Cannot serialize document of type {type(document).__name__}: {exc}",
            context={"type": type(document).__name__},
        ) from exc

    if not isinstance(canonical, dict):
        raise EncodingError(
            f"Document of type {type(document).__name__} must serialize to a JSON object",
            context={"type": type(document).__name__},
        )
    return canonical


def encode_document(document: Any, breakouts: tuple[str, ...]) -> EncodedDocument:
    """Extract breakout values and build the payload for *document*.

    Breakout fields absent from the document map to ``None``.
    """
    canonical = to_canonical(document)
    try:
        payload = json.dumps(canonical, separators=(",", ":"), sort_keys=True)
    except (TypeError, ValueError) as exc:
        raise EncodingError(f"Cannot encode document payload: {exc}") from exc
    return EncodedDocument(
        breakouts={name: canonical.get(name) for name in breakouts},
        payload=payload,
    )


def decode_payload(table: TableDescriptor, key: str, payload: str | bytes) -> Any:
    """Decode a stored payload with the table's decoder.

    Raises:
        DecodingError: Wrapping whatever the decoder raised.
    """
    raw = payload.encode() if isinstance(payload, str) else payload
    try:
        return table.decode(raw)
    except Exception as exc:
        raise DecodingError(
            f"Cannot decode payload for key '{key}' in table '{table.name}': {exc}",
            context={"table": table.name, "key": key},
        ) from exc
