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
"""Tests for @config_properties dataclass binding per store component."""

from dblayer.config.properties import FirestoreProperties, RelationalProperties, StoreProperties
from dblayer.core.config import Config


class TestStoreProperties:
    def test_bind_defaults(self):
        props = Config({"dblayer": {"store": {}}}).bind(StoreProperties)
        assert props.backend == "relational"
        assert props.key_column == "id"
        assert props.payload_column == "payload"

    def test_bind_custom_values(self):
        config = Config({"dblayer": {"store": {"backend": "firestore", "key_column": "key", "payload_column": "doc"}}})
        props = config.bind(StoreProperties)
        assert props.backend == "firestore"
        assert props.key_column == "key"
        assert props.payload_column == "doc"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DBLAYER_STORE_BACKEND", "firestore")
        assert Config({}).bind(StoreProperties).backend == "firestore"


class TestRelationalProperties:
    def test_bind_packaged_defaults(self, tmp_path):
        props = Config.from_sources(tmp_path).bind(RelationalProperties)
        assert props.url == "sqlite:///dblayer.db"
        assert props.echo is False

    def test_bind_echo_from_env(self, monkeypatch):
        monkeypatch.setenv("DBLAYER_RELATIONAL_ECHO", "true")
        props = Config({"dblayer": {"relational": {"url": "postgresql://localhost/app"}}}).bind(RelationalProperties)
        assert props.url == "postgresql://localhost/app"
        assert props.echo is True


class TestFirestoreProperties:
    def test_bind_packaged_defaults(self, tmp_path):
        props = Config.from_sources(tmp_path).bind(FirestoreProperties)
        assert props.project is None
        assert props.database == "(default)"

    def test_bind_project(self):
        config = Config({"dblayer": {"firestore": {"project": "demo-project", "database": "orders"}}})
        props = config.bind(FirestoreProperties)
        assert props.project == "demo-project"
        assert props.database == "orders"
