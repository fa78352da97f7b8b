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
"""dblayer — one document-table contract over relational and cloud document stores.

Shared abstractions — DBLayerPort, DocumentQuery, TableDescriptor, the
document codec and the exception hierarchy — are exported here.

Adapters:
    - **Relational** (``dblayer.relational``) — SQLAlchemy Core, any dialect.
    - **Document** (``dblayer.document``) — Google Cloud Firestore.
"""

from dblayer.codec import EncodedDocument, encode_document, to_canonical
from dblayer.core.config import Config, config_properties
from dblayer.document import FirestoreDBLayer
from dblayer.factory import create_layer
from dblayer.kernel.exceptions import (
    BackendOperationError,
    ConfigurationError,
    DBLayerException,
    DecodingError,
    DocumentConflictError,
    EncodingError,
    QueryStateError,
    StoreConnectionError,
    UnknownTableError,
)
from dblayer.layer import BaseDBLayer
from dblayer.ports.outbound import DBLayerPort, DocumentQueryPort
from dblayer.query import DocumentQuery, Filter, FilterOperator, ResultPair
from dblayer.relational import SqlAlchemyDBLayer
from dblayer.table import DBTable, TableDescriptor, json_decoder, model_decoder

__all__ = [
    # Contract
    "BaseDBLayer",
    "DBLayerPort",
    "DocumentQuery",
    "DocumentQueryPort",
    "Filter",
    "FilterOperator",
    "ResultPair",
    # Tables and codec
    "DBTable",
    "EncodedDocument",
    "TableDescriptor",
    "encode_document",
    "json_decoder",
    "model_decoder",
    "to_canonical",
    # Adapters
    "FirestoreDBLayer",
    "SqlAlchemyDBLayer",
    "create_layer",
    # Configuration
    "Config",
    "config_properties",
    # Errors
    "BackendOperationError",
    "ConfigurationError",
    "DBLayerException",
    "DecodingError",
    "DocumentConflictError",
    "EncodingError",
    "QueryStateError",
    "StoreConnectionError",
    "UnknownTableError",
]
