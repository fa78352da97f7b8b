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
"""Shared fixtures: sample tables and both table layers."""

import pytest
from _support.fake_firestore import FakeClient
from _support.models import sample_tables
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from dblayer.document import FirestoreDBLayer
from dblayer.relational import SqlAlchemyDBLayer


@pytest.fixture
def tables():
    return sample_tables()


@pytest.fixture
def engine():
    # One shared in-memory connection so every transaction sees the same database.
    engine = create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})
    yield engine
    engine.dispose()


@pytest.fixture
def sql_layer(engine, tables):
    layer = SqlAlchemyDBLayer(engine, "id", "payload", tables)
    yield layer
    layer.close()


@pytest.fixture
def firestore_client():
    return FakeClient()


@pytest.fixture
def firestore_layer(firestore_client, tables):
    layer = FirestoreDBLayer(firestore_client, "payload", tables)
    yield layer
    layer.close()


@pytest.fixture(params=["relational", "firestore"])
def layer(request):
    """Each table layer in turn, for behaviour both adapters must share."""
    fixture = "sql_layer" if request.param == "relational" else "firestore_layer"
    return request.getfixturevalue(fixture)
