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
"""Build the configured table layer from :class:`~dblayer.core.config.Config`.

``dblayer.store.backend`` selects the adapter:

* ``relational`` — :class:`~dblayer.relational.SqlAlchemyDBLayer` on
  ``create_engine(dblayer.relational.url)``
* ``firestore`` — :class:`~dblayer.document.FirestoreDBLayer` on
  ``firestore.Client(project, database)``
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from dblayer.config.properties import FirestoreProperties, RelationalProperties, StoreProperties
from dblayer.core.config import Config
from dblayer.document.firestore.query import SortKey
from dblayer.kernel.exceptions import ConfigurationError, StoreConnectionError
from dblayer.layer import BaseDBLayer
from dblayer.table import DBTable, TableDescriptor

_logger = logging.getLogger(__name__)

BACKENDS = ("relational", "firestore")


def create_layer(
    config: Config,
    tables: Mapping[str, DBTable | TableDescriptor],
    *,
    sort_keys: Mapping[str, Mapping[str, SortKey]] | None = None,
) -> BaseDBLayer:
    """Create the table layer selected by *config*.

    Args:
        config: Loaded configuration.
        tables: Table name -> :class:`~dblayer.table.DBTable` configuration.
        sort_keys: Client-side sort keys, used by the Firestore backend only.

    Raises:
        ConfigurationError: If the backend name is not supported.
        StoreConnectionError: If the engine or client cannot be created.
    """
    store = config.bind(StoreProperties)
    backend = store.backend.lower()
    _logger.info("Creating '%s' table layer for %d tables", backend, len(tables))

    if backend == "relational":
        return _create_relational(config.bind(RelationalProperties), store, tables)
    if backend == "firestore":
        return _create_firestore(config.bind(FirestoreProperties), store, tables, sort_keys)
    raise ConfigurationError(
        f"Unsupported store backend '{store.backend}'; expected one of {BACKENDS}",
        context={"backend": store.backend},
    )


def _create_relational(
    props: RelationalProperties,
    store: StoreProperties,
    tables: Mapping[str, DBTable | TableDescriptor],
) -> BaseDBLayer:
    from sqlalchemy import create_engine
    from sqlalchemy.exc import SQLAlchemyError

    from dblayer.relational.sqlalchemy.layer import SqlAlchemyDBLayer

    try:
        engine = create_engine(props.url, echo=props.echo)
    except SQLAlchemyError as exc:
        raise StoreConnectionError(f"Cannot create engine for '{props.url}': {exc}") from exc
    try:
        return SqlAlchemyDBLayer(engine, store.key_column, store.payload_column, tables)
    except Exception:
        engine.dispose()
        raise


def _create_firestore(
    props: FirestoreProperties,
    store: StoreProperties,
    tables: Mapping[str, DBTable | TableDescriptor],
    sort_keys: Mapping[str, Mapping[str, SortKey]] | None,
) -> BaseDBLayer:
    from google.api_core.exceptions import GoogleAPIError
    from google.auth.exceptions import GoogleAuthError
    from google.cloud import firestore

    from dblayer.document.firestore.layer import FirestoreDBLayer

    try:
        client = firestore.Client(project=props.project, database=props.database)
    except (GoogleAuthError, GoogleAPIError) as exc:
        raise StoreConnectionError(f"Cannot create Firestore client: {exc}", context={"project": props.project}) from exc
    try:
        return FirestoreDBLayer(
            client,
            store.payload_column,
            tables,
            sort_keys,
            key_field=store.key_column,
        )
    except Exception:
        client.close()
        raise
