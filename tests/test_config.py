"""Tests for config/settings: nested YAML, flat UI form, PG* env fallbacks, validation."""

import pytest

from cellstatus.config.settings import (
    DEFAULT_PORT,
    DatabaseConfig,
    get_database_config,
    get_service_config,
    get_static_dir,
    read_config,
)
from cellstatus.core.errors import ConfigError

_PG_ENV = ("PGHOST", "PGPORT", "PGDATABASE", "PGUSER", "PGPASSWORD", "CELLSTATUS_CONFIG")


@pytest.fixture(autouse=True)
def clean_pg_env(monkeypatch):
    for name in _PG_ENV:
        monkeypatch.delenv(name, raising=False)


class TestServiceConfig:
    def test_nested_yaml_shape(self):
        cfg = {
            "database": {
                "host": "db.lan",
                "port": 5433,
                "database": "warehouse",
                "user": "reader",
                "password": "secret",
                "options": {"connect_timeout": 5},
                "table": "dbo.tb_Cells",
                "number_column": "Number",
                "status_column": "StatusId",
            },
            "server": {"port": 8080},
        }
        out = get_service_config(cfg)
        assert out.port == 8080
        assert out.database.host == "db.lan"
        assert out.database.port == 5433
        assert out.database.database == "warehouse"
        assert out.database.table == "dbo.tb_Cells"
        assert out.database.number_column == "Number"
        assert out.database.status_column == "StatusId"
        assert out.database.connect_params() == {
            "host": "db.lan",
            "port": 5433,
            "dbname": "warehouse",
            "user": "reader",
            "password": "secret",
            "connect_timeout": 5,
        }

    def test_flat_form_shape(self):
        """Desktop form: "server" is the DB host and "port" the HTTP port."""
        cfg = {"server": "10.0.0.2", "user": "sa", "password": "pw", "database": "cells", "port": 3100, "db_port": 5544}
        out = get_service_config(cfg)
        assert out.port == 3100
        assert out.database.host == "10.0.0.2"
        assert out.database.port == 5544
        assert out.database.user == "sa"
        assert out.database.database == "cells"

    def test_default_port(self):
        assert get_service_config({"database": {"host": "h"}}).port == DEFAULT_PORT == 3000
        assert get_service_config({"server": "h", "port": None}).port == 3000

    def test_example_file_parses(self, config):
        out = get_service_config(config)
        assert out.port == 3000
        assert out.database.table == "tb_cells"
        assert out.database.options["connect_timeout"] == 10

    @pytest.mark.parametrize("port", [-1, 65536, "abc"])
    def test_invalid_port(self, port):
        with pytest.raises(ConfigError):
            get_service_config({"database": {}, "server": {"port": port}})


class TestDatabaseConfig:
    def test_env_fallbacks(self, monkeypatch):
        monkeypatch.setenv("PGHOST", "env-host")
        monkeypatch.setenv("PGPORT", "6543")
        monkeypatch.setenv("PGDATABASE", "envdb")
        monkeypatch.setenv("PGUSER", "envuser")
        monkeypatch.setenv("PGPASSWORD", "envpw")
        out = get_database_config({})
        assert (out.host, out.port, out.database, out.user, out.password) == (
            "env-host",
            6543,
            "envdb",
            "envuser",
            "envpw",
        )

    def test_explicit_values_win_over_env(self, monkeypatch):
        monkeypatch.setenv("PGHOST", "env-host")
        assert get_database_config({"host": "cfg-host"}).host == "cfg-host"

    def test_database_key_variants(self):
        assert get_database_config({"Database": "A"}).database == "A"
        assert get_database_config({"db": "B"}).database == "B"

    def test_defaults(self):
        assert get_database_config(None) == DatabaseConfig()

    @pytest.mark.parametrize(
        "key,value",
        [
            ("table", "cells; DROP TABLE x"),
            ("table", "a.b.c"),
            ("number_column", "1abc"),
            ("status_column", "status id"),
        ],
    )
    def test_rejects_bad_identifiers(self, key, value):
        with pytest.raises(ConfigError):
            get_database_config({key: value})

    def test_rejects_bad_pool_size(self):
        with pytest.raises(ConfigError):
            get_database_config({"pool_min": 3, "pool_max": 2})

    @pytest.mark.parametrize(
        "section",
        [
            {"pool_min": "abc"},
            {"pool_max": "many"},
            {"pool_min": 0},
            {"pool_max": True},
            {"pool_min": [1]},
        ],
    )
    def test_rejects_bad_pool_values(self, section):
        with pytest.raises(ConfigError, match="pool"):
            get_database_config(section)

    def test_pool_values_from_strings(self):
        out = get_database_config({"pool_min": "2", "pool_max": "8"})
        assert (out.pool_min, out.pool_max) == (2, 8)

    @pytest.mark.parametrize("port", [0, "0", -5, 70000, "pg"])
    def test_rejects_bad_database_port(self, port):
        with pytest.raises(ConfigError, match="database.port"):
            get_database_config({"port": port})

    def test_rejects_zero_pgport(self, monkeypatch):
        monkeypatch.setenv("PGPORT", "0")
        with pytest.raises(ConfigError, match="database.port"):
            get_database_config({})

    def test_listen_port_zero_still_allowed(self):
        assert get_service_config({"database": {}, "server": {"port": 0}}).port == 0

    def test_rejects_non_mapping_options(self):
        with pytest.raises(ConfigError):
            get_database_config({"options": ["sslmode=require"]})


class TestReadConfig:
    def test_explicit_path(self, tmp_path):
        p = tmp_path / "c.yaml"
        p.write_text("server:\n  port: 3999\n", encoding="utf-8")
        cfg, resolved = read_config(str(p))
        assert cfg["server"]["port"] == 3999
        assert resolved == str(p.resolve())

    def test_env_path(self, tmp_path, monkeypatch):
        p = tmp_path / "env.yaml"
        p.write_text("database:\n  host: from-env-file\n", encoding="utf-8")
        monkeypatch.setenv("CELLSTATUS_CONFIG", str(p))
        cfg, _ = read_config()
        assert cfg["database"]["host"] == "from-env-file"

    def test_missing_explicit_path(self, tmp_path):
        with pytest.raises(ConfigError):
            read_config(str(tmp_path / "nope.yaml"))

    def test_falls_back_to_project_config(self):
        cfg, resolved = read_config()
        assert resolved.endswith(("config.yaml", "config.yaml.example"))
        assert "database" in cfg

    def test_empty_file_is_empty_config(self, tmp_path):
        p = tmp_path / "empty.yaml"
        p.write_text("", encoding="utf-8")
        assert read_config(str(p))[0] == {}


def test_get_static_dir():
    assert get_static_dir({"server": {"static_dir": "/srv/www"}}) == "/srv/www"
    assert get_static_dir({"server": {"static_dir": None}}) is None
    assert get_static_dir({"server": "db-host"}) is None
