"""
Backend strategies for the two supported databases.

Each backend knows how to obtain and release a DB-API connection, run a
transaction, open plain and streaming cursors, render paging clauses and
create/populate/drop an accession staging table. Everything above this module
is backend agnostic.
"""
import logging
import os
import sqlite3
import tempfile
import uuid
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool

from biodb.config import DBSpec
from biodb.const import POOL_MAX_SIZE, POOL_MIN_SIZE, POSTGRES, SQLITE, STREAM_ITERSIZE
from biodb.exceptions import ConfigError

log = logging.getLogger("biodb")

COPY_BLOCK_SIZE = 64 * 1024


class Backend:
    """Interface shared by the sqlite and postgres backends."""
    dbtype: str = None
    placeholder: str = None
    driver_error = Exception

    def connect(self):
        raise NotImplementedError

    def release(self, conn):
        raise NotImplementedError

    def transaction(self, conn):
        raise NotImplementedError

    def cursor(self, conn, stream: bool = False):
        raise NotImplementedError

    def rows(self, cursor) -> Iterator[Dict[str, Any]]:
        raise NotImplementedError

    def bind(self, params) -> Any:
        """Adapt a parameter sequence for ``cursor.execute``."""
        return tuple(params)

    def paging(self, offset: Optional[int], limit: Optional[int]) -> Tuple[str, List[Any]]:
        """Return the paging clause and its parameters, offset bound before limit."""
        raise NotImplementedError

    def create_staging(self, conn, name: str) -> None:
        raise NotImplementedError

    def populate_staging(self, conn, name: str, accessions: Iterable[str]) -> None:
        raise NotImplementedError

    def drop_staging(self, conn, name: str) -> None:
        raise NotImplementedError

    def table_exists(self, conn, name: str) -> bool:
        raise NotImplementedError

    def close(self):
        pass


class SqliteBackend(Backend):
    """
    SQLite through the standard library driver.

    Every session opens its own connection in autocommit mode; transactions
    are explicit ``BEGIN``/``COMMIT``/``ROLLBACK``. Temp tables are per
    connection, so they never leak between sessions.
    """
    dbtype = SQLITE
    placeholder = "?"
    driver_error = sqlite3.Error

    def __init__(self, spec: DBSpec):
        self.path = spec.dbname

    def connect(self):
        conn = sqlite3.connect(self.path, isolation_level=None, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def release(self, conn):
        conn.close()

    @contextmanager
    def transaction(self, conn):
        conn.execute("BEGIN")
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        try:
            conn.execute("COMMIT")
        except sqlite3.Error:
            conn.execute("ROLLBACK")
            raise

    @contextmanager
    def cursor(self, conn, stream=False):
        # sqlite3 cursors step through results lazily either way
        cur = conn.cursor()
        try:
            yield cur
        finally:
            cur.close()

    def rows(self, cursor):
        for row in cursor:
            yield dict(row)

    def paging(self, offset, limit):
        # SQLite has no standalone OFFSET; "LIMIT <offset>, <count>" keeps the
        # offset parameter ahead of the limit parameter.
        if offset is not None and limit is not None:
            return " LIMIT ?, ?", [offset, limit]
        if offset is not None:
            return " LIMIT ?, -1", [offset]
        if limit is not None:
            return " LIMIT ?", [limit]
        return "", []

    def create_staging(self, conn, name):
        conn.execute(f"CREATE TEMP TABLE {name} (accession text)")

    def populate_staging(self, conn, name, accessions):
        conn.executemany(
            f"INSERT INTO {name} (accession) VALUES (?)",
            ((accession,) for accession in accessions),
        )

    def drop_staging(self, conn, name):
        conn.execute(f"DROP TABLE IF EXISTS temp.{name}")

    def table_exists(self, conn, name):
        row = conn.execute(
            "SELECT count(*) FROM ("
            "SELECT name FROM sqlite_master WHERE name = ? "
            "UNION ALL SELECT name FROM sqlite_temp_master WHERE name = ?)",
            (name, name),
        ).fetchone()
        return row[0] > 0


def _copy_escape(value: str) -> str:
    """Escape a value for the COPY text format."""
    return (
        str(value)
        .replace("\\", "\\\\")
        .replace("\t", "\\t")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


class PostgresBackend(Backend):
    """
    PostgreSQL through psycopg 3 and a psycopg_pool connection pool.

    Pooled connections run in autocommit mode; ``transaction`` wraps
    ``Connection.transaction()``. Streaming reads use named (server-side)
    cursors, which only live inside a transaction.
    """
    dbtype = POSTGRES
    placeholder = "%s"
    driver_error = psycopg.Error

    def __init__(self, spec: DBSpec):
        self.pool = ConnectionPool(
            spec.conninfo,
            min_size=POOL_MIN_SIZE,
            max_size=POOL_MAX_SIZE,
            kwargs={"row_factory": dict_row, "autocommit": True},
            open=True,
        )

    def connect(self):
        return self.pool.getconn()

    def release(self, conn):
        self.pool.putconn(conn)

    @contextmanager
    def transaction(self, conn):
        with conn.transaction():
            yield conn

    @contextmanager
    def cursor(self, conn, stream=False):
        if stream:
            cur = conn.cursor(name=f"biodb_cursor_{uuid.uuid4().hex}")
            cur.itersize = STREAM_ITERSIZE
        else:
            cur = conn.cursor()
        try:
            yield cur
        finally:
            cur.close()

    def rows(self, cursor):
        for row in cursor:
            yield row

    def bind(self, params):
        # psycopg only interprets '%' in the query text when parameters are
        # given, so raw queries without parameters may contain LIKE '%x%'.
        params = tuple(params)
        return params or None

    def paging(self, offset, limit):
        clause, params = "", []
        if offset is not None:
            clause += " OFFSET %s"
            params.append(offset)
        if limit is not None:
            clause += " LIMIT %s"
            params.append(limit)
        return clause, params

    def create_staging(self, conn, name):
        conn.execute(f"CREATE TEMP TABLE {name} (accession text) ON COMMIT DROP")

    def populate_staging(self, conn, name, accessions):
        """Write the accessions to a file, one per line, then COPY it in."""
        fd, path = tempfile.mkstemp(prefix="ids", suffix=".txt")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as w:
                for accession in accessions:
                    w.write(_copy_escape(accession) + "\n")
            with conn.cursor() as cur:
                with cur.copy(f"COPY {name} (accession) FROM STDIN") as copy:
                    with open(path, "rb") as f:
                        for block in iter(lambda: f.read(COPY_BLOCK_SIZE), b""):
                            copy.write(block)
        finally:
            os.unlink(path)

    def drop_staging(self, conn, name):
        # ON COMMIT DROP removes the table when the outermost transaction ends
        pass

    def table_exists(self, conn, name):
        row = conn.execute("SELECT to_regclass(%s) IS NOT NULL AS present", (name,)).fetchone()
        return bool(row["present"])

    def close(self):
        self.pool.close()


BACKENDS = {
    SQLITE: SqliteBackend,
    POSTGRES: PostgresBackend,
}


def make_backend(spec: DBSpec) -> Backend:
    try:
        backend_cls = BACKENDS[spec.dbtype]
    except KeyError:
        raise ConfigError(f"Unsupported database type '{spec.dbtype}'") from None
    log.debug("Using %s backend for database %s", spec.dbtype, spec.dbname)
    return backend_cls(spec)
