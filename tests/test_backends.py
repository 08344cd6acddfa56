"""Tests for the backend strategies that don't need a running server."""

import os
import tempfile
from unittest import mock

import pytest

from biodb.backends import PostgresBackend, SqliteBackend, _copy_escape, make_backend
from biodb.config import db_spec


@pytest.fixture
def pg():
    """PostgresBackend without a connection pool."""
    return PostgresBackend.__new__(PostgresBackend)


class TestPostgresStaging:

    def test_create_staging(self, pg):
        conn = mock.MagicMock()
        pg.create_staging(conn, "stg")
        conn.execute.assert_called_once_with(
            "CREATE TEMP TABLE stg (accession text) ON COMMIT DROP"
        )

    def test_populate_copies_file_contents(self, pg):
        conn = mock.MagicMock()
        cur = conn.cursor.return_value.__enter__.return_value
        copy = cur.copy.return_value.__enter__.return_value

        real_mkstemp = tempfile.mkstemp
        created = []

        def fake_mkstemp(**kwargs):
            fd, path = real_mkstemp(**kwargs)
            created.append(path)
            return fd, path

        with mock.patch("biodb.backends.tempfile.mkstemp", side_effect=fake_mkstemp):
            pg.populate_staging(conn, "stg", {"A1", "A2", "tab\there"})

        cur.copy.assert_called_once_with("COPY stg (accession) FROM STDIN")
        data = b"".join(c.args[0] for c in copy.write.call_args_list)
        assert sorted(data.decode("utf-8").splitlines()) == ["A1", "A2", "tab\\there"]
        # temporary file is removed
        assert len(created) == 1
        assert not os.path.exists(created[0])

    def test_populate_removes_file_on_error(self, pg):
        conn = mock.MagicMock()
        conn.cursor.return_value.__enter__.return_value.copy.side_effect = RuntimeError("copy failed")

        real_mkstemp = tempfile.mkstemp
        created = []

        def fake_mkstemp(**kwargs):
            fd, path = real_mkstemp(**kwargs)
            created.append(path)
            return fd, path

        with mock.patch("biodb.backends.tempfile.mkstemp", side_effect=fake_mkstemp):
            with pytest.raises(RuntimeError):
                pg.populate_staging(conn, "stg", ["A1"])
        assert not os.path.exists(created[0])

    def test_drop_is_left_to_commit(self, pg):
        conn = mock.MagicMock()
        pg.drop_staging(conn, "stg")
        conn.execute.assert_not_called()


class TestPaging:

    @pytest.mark.parametrize(
        "offset, limit, clause, params",
        [
            (None, None, "", []),
            (5, None, " OFFSET %s", [5]),
            (None, 10, " LIMIT %s", [10]),
            (5, 10, " OFFSET %s LIMIT %s", [5, 10]),
        ],
    )
    def test_postgres(self, pg, offset, limit, clause, params):
        assert pg.paging(offset, limit) == (clause, params)

    @pytest.mark.parametrize(
        "offset, limit, clause, params",
        [
            (None, None, "", []),
            (5, None, " LIMIT ?, -1", [5]),
            (None, 10, " LIMIT ?", [10]),
            (5, 10, " LIMIT ?, ?", [5, 10]),
        ],
    )
    def test_sqlite(self, offset, limit, clause, params):
        backend = SqliteBackend(db_spec(dbtype="sqlite", dbname=":memory:"))
        assert backend.paging(offset, limit) == (clause, params)

    def test_offset_zero_is_bound(self, pg):
        assert pg.paging(0, None) == (" OFFSET %s", [0])


def test_postgres_bind(pg):
    assert pg.bind(()) is None
    assert pg.bind(["a", 1]) == ("a", 1)


def test_copy_escape():
    assert _copy_escape("a\\b\nc\rd\te") == "a\\\\b\\nc\\rd\\te"


def test_make_backend_sqlite():
    backend = make_backend(db_spec(dbtype="sqlite", dbname=":memory:"))
    assert isinstance(backend, SqliteBackend)
    assert backend.placeholder == "?"


def test_make_backend_postgres_uses_pool():
    spec = db_spec(dbtype="postgres", dbname="seqs", user="bio", password="pw")
    with mock.patch("biodb.backends.ConnectionPool") as pool_cls:
        backend = make_backend(spec)
    assert isinstance(backend, PostgresBackend)
    assert pool_cls.call_args[0][0] == spec.conninfo
    assert pool_cls.call_args[1]["kwargs"]["autocommit"] is True
    backend.close()
    pool_cls.return_value.close.assert_called_once_with()
