"""Tests for connection parameter validation."""

import pytest
from psycopg.conninfo import conninfo_to_dict

from biodb.config import DBSpec, db_spec, load_config
from biodb.const import DEFAULT_DOMAIN, DEFAULT_PORT
from biodb.db import Database, connect
from biodb.exceptions import ConfigError


class TestDbSpec:

    def test_sqlite(self):
        spec = db_spec({"dbtype": "sqlite", "dbname": "seqs.db"})
        assert spec == DBSpec(dbname="seqs.db", dbtype="sqlite")
        assert spec.port == DEFAULT_PORT
        assert spec.domain == DEFAULT_DOMAIN

    def test_keyword_arguments(self):
        assert db_spec(dbtype="sqlite", dbname="x.db").dbname == "x.db"

    def test_leading_colon(self):
        assert db_spec(dbtype=":sqlite", dbname="x.db").dbtype == "sqlite"

    def test_postgres(self):
        spec = db_spec(dbtype="postgres", dbname="seqs", user="bio", password="pw", port=5433)
        assert spec.port == "5433"
        assert "dbname=seqs" in spec.conninfo
        assert "port=5433" in spec.conninfo
        assert "pw" not in repr(spec)

    @pytest.mark.parametrize("password", ["my secret", "it's", "pw host=evil", "back\\slash"])
    def test_conninfo_quotes_values(self, password):
        spec = db_spec(dbtype="postgres", dbname="my seqs", user="bio", password=password)
        parsed = conninfo_to_dict(spec.conninfo)
        assert parsed["password"] == password
        assert parsed["dbname"] == "my seqs"
        assert parsed["host"] == DEFAULT_DOMAIN

    def test_spec_passthrough(self):
        spec = db_spec(dbtype="sqlite", dbname="x.db")
        assert db_spec(spec) is spec

    @pytest.mark.parametrize(
        "params, message",
        [
            ({"dbname": "x.db"}, "dbtype"),
            ({"dbtype": "sqlite"}, "dbname"),
            ({"dbtype": "mysql", "dbname": "x"}, "mysql"),
            ({"dbtype": "sqlite", "dbname": ""}, "dbname"),
            ({"dbtype": "postgres", "dbname": "x", "user": "bio"}, "password"),
            ({"dbtype": "postgres", "dbname": "x", "password": "pw"}, "user"),
        ],
    )
    def test_invalid(self, params, message):
        with pytest.raises(ConfigError) as excinfo:
            db_spec(params)
        assert message in str(excinfo.value)

    def test_reports_every_problem(self):
        with pytest.raises(ConfigError) as excinfo:
            db_spec({"dbtype": "postgres"})
        text = str(excinfo.value)
        assert "dbname" in text and "user" in text and "password" in text

    def test_connect_validates(self):
        with pytest.raises(ConfigError):
            connect(dbtype="sqlite")

    def test_connect_sqlite(self, tmp_path):
        db = connect(dbtype="sqlite", dbname=str(tmp_path / "x.db"))
        assert isinstance(db, Database)
        assert db.dbtype == "sqlite"
        assert db.placeholder == "?"


class TestLoadConfig:

    def test_nested(self, tmp_path):
        path = tmp_path / "biodb.yaml"
        path.write_text("database:\n  dbtype: sqlite\n  dbname: seqs.db\n")
        assert load_config(path).dbname == "seqs.db"

    def test_top_level(self, tmp_path):
        path = tmp_path / "biodb.yaml"
        path.write_text("dbtype: postgres\ndbname: seqs\nuser: bio\npassword: pw\nport: 6543\n")
        spec = load_config(path)
        assert spec.dbtype == "postgres"
        assert spec.port == "6543"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("database: [unclosed\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- sqlite\n- seqs.db\n")
        with pytest.raises(ConfigError):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "biodb.yaml"
        path.write_text("database:\n  dbtype: postgres\n  dbname: seqs\n")
        with pytest.raises(ConfigError):
            load_config(path)
