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
"""Tests for Config loading, env overrides, placeholders and binding."""

from dataclasses import dataclass
from pathlib import Path

import pytest
from pydantic import BaseModel

from dblayer.core.config import Config, config_properties
from dblayer.kernel.exceptions import ConfigurationError


class TestConfig:
    def test_get_simple_value(self):
        config = Config({"store": {"backend": "firestore"}})
        assert config.get("store.backend") == "firestore"

    def test_get_with_default(self):
        assert Config({}).get("missing.key", "default") == "default"

    def test_get_through_scalar_returns_default(self):
        config = Config({"store": "flat"})
        assert config.get("store.backend", "x") == "x"

    def test_load_from_yaml_file(self, tmp_path: Path):
        config_file = tmp_path / "dblayer.yaml"
        config_file.write_text("dblayer:\n  relational:\n    url: sqlite:///app.db\n")
        config = Config.from_file(config_file, load_defaults=False)
        assert config.get("dblayer.relational.url") == "sqlite:///app.db"
        assert config.loaded_sources == [str(config_file)]

    def test_load_from_toml_file(self, tmp_path: Path):
        config_file = tmp_path / "dblayer.toml"
        config_file.write_text('[dblayer.store]\nbackend = "firestore"\n')
        config = Config.from_file(config_file)
        assert config.get("dblayer.store.backend") == "firestore"
        # packaged defaults still fill the gaps
        assert config.get("dblayer.store.payload_column") == "payload"

    def test_missing_file_keeps_defaults(self, tmp_path: Path):
        config = Config.from_file(tmp_path / "absent.yaml")
        assert config.get("dblayer.store.backend") == "relational"

    def test_env_var_override(self, monkeypatch):
        monkeypatch.setenv("DBLAYER_STORE_BACKEND", "firestore")
        config = Config({"dblayer": {"store": {"backend": "relational"}}})
        assert config.get("dblayer.store.backend") == "firestore"

    def test_env_key(self):
        assert Config.env_key("dblayer.store.key_column") == "DBLAYER_STORE_KEY_COLUMN"
        assert Config.env_key("app.cache-size") == "DBLAYER_APP_CACHE_SIZE"

    def test_get_section(self):
        config = Config({"dblayer": {"firestore": {"database": "(default)"}}})
        assert config.get_section("dblayer.firestore") == {"database": "(default)"}
        assert config.get_section("dblayer.missing") == {}


class TestPlaceholders:
    def test_env_placeholder(self, monkeypatch):
        monkeypatch.setenv("DB_HOST", "db.internal")
        config = Config({"dblayer": {"relational": {"url": "postgresql://${DB_HOST}/app"}}})
        assert config.get("dblayer.relational.url") == "postgresql://db.internal/app"

    def test_config_reference_placeholder(self):
        config = Config({"paths": {"data": "/var/data"}, "db": {"url": "sqlite:///${paths.data}/app.db"}})
        assert config.get("db.url") == "sqlite:////var/data/app.db"

    def test_placeholder_default(self):
        config = Config({"db": {"project": "${GCP_PROJECT_UNSET_FOR_TEST:demo}"}})
        assert config.get("db.project") == "demo"

    def test_unresolved_placeholder_raises(self):
        config = Config({"db": {"url": "${nowhere.to.be.found}"}})
        with pytest.raises(ConfigurationError, match="Cannot resolve placeholder"):
            config.get("db.url")

    def test_circular_placeholder_raises(self):
        config = Config({"a": "${b}", "b": "${a}"})
        with pytest.raises(ConfigurationError, match="Max recursion depth"):
            config.get("a")


class TestFromSources:
    def test_packaged_defaults_only(self, tmp_path: Path):
        config = Config.from_sources(tmp_path)
        assert config.get("dblayer.store.backend") == "relational"
        assert config.get("dblayer.relational.url") == "sqlite:///dblayer.db"
        assert config.loaded_sources == ["dblayer-defaults.yaml (packaged defaults)"]

    def test_root_file_overrides_config_dir(self, tmp_path: Path):
        (tmp_path / "config").mkdir()
        (tmp_path / "config" / "dblayer.yaml").write_text(
            "dblayer:\n  relational:\n    url: sqlite:///config.db\n    echo: true\n"
        )
        (tmp_path / "dblayer.yaml").write_text("dblayer:\n  relational:\n    url: sqlite:///root.db\n")
        config = Config.from_sources(tmp_path)
        assert config.get("dblayer.relational.url") == "sqlite:///root.db"
        assert config.get("dblayer.relational.echo") is True

    def test_profile_overlay(self, tmp_path: Path):
        (tmp_path / "dblayer.yaml").write_text("dblayer:\n  store:\n    backend: relational\n")
        (tmp_path / "dblayer-cloud.yaml").write_text("dblayer:\n  store:\n    backend: firestore\n")
        config = Config.from_sources(tmp_path, active_profiles=["cloud"])
        assert config.get("dblayer.store.backend") == "firestore"
        assert any("profile: cloud" in source for source in config.loaded_sources)

    def test_without_defaults(self, tmp_path: Path):
        config = Config.from_sources(tmp_path, load_defaults=False)
        assert config.to_dict() == {}


class TestProfileConfigMerging:
    def test_merge_profile_config(self, tmp_path):
        base = tmp_path / "dblayer.yaml"
        base.write_text("dblayer:\n  relational:\n    url: sqlite:///base.db\n    echo: false\n")
        (tmp_path / "dblayer-dev.yaml").write_text("dblayer:\n  relational:\n    echo: true\n")

        config = Config.from_file(base, active_profiles=["dev"], load_defaults=False)
        assert config.get("dblayer.relational.url") == "sqlite:///base.db"
        assert config.get("dblayer.relational.echo") is True

    def test_later_profile_wins(self, tmp_path):
        base = tmp_path / "dblayer.yaml"
        base.write_text("db:\n  url: base\n")
        (tmp_path / "dblayer-dev.yaml").write_text("db:\n  url: dev-url\n")
        (tmp_path / "dblayer-local.yaml").write_text("db:\n  url: local-url\n")

        config = Config.from_file(base, active_profiles=["dev", "local"])
        assert config.get("db.url") == "local-url"

    def test_env_vars_still_win(self, tmp_path, monkeypatch):
        base = tmp_path / "dblayer.yaml"
        base.write_text("app:\n  name: base\n")
        (tmp_path / "dblayer-dev.yaml").write_text("app:\n  name: dev\n")

        monkeypatch.setenv("DBLAYER_APP_NAME", "env-wins")
        config = Config.from_file(base, active_profiles=["dev"])
        assert config.get("app.name") == "env-wins"


class TestBind:
    def test_bind_to_dataclass(self):
        @config_properties(prefix="database")
        @dataclass
        class DatabaseConfig:
            url: str = "sqlite:///test.db"
            pool_size: int = 5

        config = Config({"database": {"url": "postgresql://localhost/mydb", "pool_size": 20}})
        db_config = config.bind(DatabaseConfig)
        assert db_config.url == "postgresql://localhost/mydb"
        assert db_config.pool_size == 20

    def test_bind_uses_defaults(self):
        @config_properties(prefix="database")
        @dataclass
        class DatabaseConfig:
            url: str = "sqlite:///default.db"
            pool_size: int = 5

        db_config = Config({}).bind(DatabaseConfig)
        assert db_config.url == "sqlite:///default.db"
        assert db_config.pool_size == 5

    def test_bind_coerces_env_strings(self, monkeypatch):
        @config_properties(prefix="dblayer.tuning")
        @dataclass
        class Tuning:
            batch: int = 1
            ratio: float = 0.5
            strict: bool = False

        monkeypatch.setenv("DBLAYER_TUNING_BATCH", "50")
        monkeypatch.setenv("DBLAYER_TUNING_RATIO", "0.25")
        monkeypatch.setenv("DBLAYER_TUNING_STRICT", "yes")
        tuning = Config({}).bind(Tuning)
        assert tuning.batch == 50
        assert tuning.ratio == 0.25
        assert tuning.strict is True

    def test_bind_pydantic_model(self, monkeypatch):
        @config_properties(prefix="dblayer.remote")
        class Remote(BaseModel):
            host: str
            port: int = 443

        monkeypatch.setenv("DBLAYER_REMOTE_PORT", "8443")
        remote = Config({"dblayer": {"remote": {"host": "example.org"}}}).bind(Remote)
        assert remote.host == "example.org"
        assert remote.port == 8443

    def test_bind_pydantic_validation_error(self):
        @config_properties(prefix="dblayer.remote")
        class Remote(BaseModel):
            host: str

        with pytest.raises(ConfigurationError, match="validation failed"):
            Config({}).bind(Remote)

    def test_bind_undecorated_class_raises(self):
        @dataclass
        class Plain:
            value: int = 1

        with pytest.raises(ConfigurationError, match="not decorated"):
            Config({}).bind(Plain)
