"""
Database and Session - the connection façade used by the writer and planner.

A :class:`Database` owns the backend (and, for postgres, the connection pool).
A :class:`Session` is bound to one connection. Both expose the same operations,
so library functions accept either::

    >>> db = connect(dbtype="sqlite", dbname="sequences.db")
    >>> db.execute_dml("DELETE FROM proteins WHERE accession = ?", ["P12345"])
    1
    >>> with db.transaction() as session:
    ...     insert_sequences(session, "proteins", "fasta", records)
    ...     do_command(session, "UPDATE proteins SET description = ''")

Operations on a Database check out a connection for the duration of the call.
Nested ``transaction()`` blocks join the outermost transaction.
"""
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from biodb.backends import Backend, make_backend
from biodb.config import DBSpec, db_spec
from biodb.exceptions import QueryError, WriteError

log = logging.getLogger("biodb")

Row = Dict[str, Any]


class Session:
    """One connection plus its transaction state."""

    def __init__(self, db: "Database", conn):
        self.db = db
        self.backend: Backend = db.backend
        self.conn = conn
        self._depth = 0

    @property
    def dbtype(self) -> str:
        return self.backend.dbtype

    @property
    def placeholder(self) -> str:
        return self.backend.placeholder

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @contextmanager
    def session(self) -> Iterator["Session"]:
        yield self

    @contextmanager
    def transaction(self, error_cls=QueryError) -> Iterator["Session"]:
        """
        Run the block in a transaction; commit on success, roll back on error.

        Driver errors from BEGIN or COMMIT are raised as ``error_cls``. Nested
        blocks join the outer transaction and its error class.
        """
        outer = self._depth == 0
        self._depth += 1
        try:
            if outer:
                try:
                    with self.backend.transaction(self.conn):
                        yield self
                except self.backend.driver_error as e:
                    raise error_cls(f"Transaction failed: {e}", operation="transaction") from e
                except BaseException as e:
                    log.warning("Rolled back transaction: %s", e)
                    raise
            else:
                yield self
        finally:
            self._depth -= 1

    def _execute(self, cur, stmt: str, params: Sequence[Any], error_cls, operation: str):
        log.debug("%s: %s [%d params]", operation, stmt, len(params))
        try:
            cur.execute(stmt, self.backend.bind(params))
        except self.backend.driver_error as e:
            raise error_cls(f"{e}", operation=operation) from e

    def _iter_rows(self, cur) -> Iterator[Row]:
        try:
            for row in self.backend.rows(cur):
                yield row
        except self.backend.driver_error as e:
            raise QueryError(f"Failed reading results: {e}", operation="query") from e

    def execute_ddl(self, stmt: str) -> None:
        with self.backend.cursor(self.conn) as cur:
            self._execute(cur, stmt, (), QueryError, "execute_ddl")

    def execute_dml(self, stmt: str, params: Sequence[Any] = ()) -> int:
        """Run a non-select statement and return the affected row count."""
        with self.backend.cursor(self.conn) as cur:
            self._execute(cur, stmt, list(params), WriteError, "execute_dml")
            return cur.rowcount

    def query(
        self,
        stmt: str,
        params: Sequence[Any] = (),
        row_fn: Optional[Callable[[Row], Any]] = None,
        result_set_fn: Optional[Callable[[Iterator[Any]], Any]] = None,
    ) -> Any:
        """
        Run a query and shape its rows.

        Args:
            stmt: Parameterized SQL.
            params: Positional parameters.
            row_fn: Applied to every row (a dict of column -> value).
            result_set_fn: If given, receives a lazy iterator over the mapped
                rows while the cursor is still open and its return value is
                returned. Rows are never collected into a list in this mode.

        Returns:
            List of mapped rows, or the result of ``result_set_fn``.
        """
        stream = result_set_fn is not None
        with self.transaction():
            with self.backend.cursor(self.conn, stream=stream) as cur:
                self._execute(cur, stmt, list(params), QueryError, "query")
                rows = self._iter_rows(cur)
                if row_fn is not None:
                    rows = map(row_fn, rows)
                if stream:
                    return result_set_fn(rows)
                return list(rows)

    def insert_multi(
        self, table: str, rows: Iterable[Row], return_rows: bool = False
    ) -> Union[int, List[Row]]:
        """
        Insert rows (dicts with identical keys) in one transaction.

        Returns:
            Number of rows inserted, or the rows themselves if ``return_rows``.
        """
        rows = list(rows)
        if not rows:
            return [] if return_rows else 0
        columns = list(rows[0])
        for i, row in enumerate(rows):
            if set(row) != set(columns):
                raise WriteError(
                    f"Row {i} has columns {sorted(row)}, expected {sorted(columns)}",
                    operation="insert_multi",
                    table=table,
                )
        placeholders = ", ".join([self.placeholder] * len(columns))
        stmt = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders})"
        log.debug("insert_multi: %s [%d rows]", stmt, len(rows))
        with self.transaction(error_cls=WriteError):
            with self.backend.cursor(self.conn) as cur:
                try:
                    cur.executemany(stmt, [tuple(row[c] for c in columns) for row in rows])
                except self.backend.driver_error as e:
                    raise WriteError(f"{e}", operation="insert_multi", table=table) from e
        return rows if return_rows else len(rows)

    def table_exists(self, name: str) -> bool:
        """Look ``name`` up in the backend catalog (temporary tables included)."""
        try:
            return self.backend.table_exists(self.conn, name)
        except self.backend.driver_error as e:
            raise QueryError(f"{e}", operation="table_exists", table=name) from e


class Database:
    """
    Entry point for a configured database.

    Args:
        spec: Validated connection parameters (see :func:`biodb.config.db_spec`).
    """

    def __init__(self, spec: DBSpec):
        self.spec = spec
        self.backend = make_backend(spec)

    @property
    def dbtype(self) -> str:
        return self.backend.dbtype

    @property
    def placeholder(self) -> str:
        return self.backend.placeholder

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Check out a connection for the duration of the block."""
        try:
            conn = self.backend.connect()
        except self.backend.driver_error as e:
            raise QueryError(
                f"Could not connect to {self.spec.dbtype} database '{self.spec.dbname}': {e}",
                operation="connect",
            ) from e
        try:
            yield Session(self, conn)
        finally:
            self.backend.release(conn)

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Perform multiple operations within one transaction."""
        with self.session() as session:
            with session.transaction():
                yield session

    def execute_ddl(self, stmt: str) -> None:
        with self.session() as session:
            session.execute_ddl(stmt)

    def execute_dml(self, stmt: str, params: Sequence[Any] = ()) -> int:
        with self.session() as session:
            return session.execute_dml(stmt, params)

    def query(self, stmt, params=(), row_fn=None, result_set_fn=None):
        with self.session() as session:
            return session.query(stmt, params, row_fn, result_set_fn)

    def insert_multi(self, table, rows, return_rows=False):
        with self.session() as session:
            return session.insert_multi(table, rows, return_rows)

    def table_exists(self, name: str) -> bool:
        with self.session() as session:
            return session.table_exists(name)

    def close(self):
        """Close the connection pool, if any."""
        self.backend.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __repr__(self):
        return f"Database(dbtype='{self.spec.dbtype}', dbname='{self.spec.dbname}')"


def connect(params: Union[DBSpec, Dict[str, Any], None] = None, **kwargs) -> Database:
    """
    Validate connection parameters and return a :class:`Database`.

    Example:
        >>> db = connect(dbtype="postgres", dbname="seqs", user="bio", password="secret")
    """
    return Database(db_spec(params, **kwargs))


def do_command(db, stmt: str, params: Sequence[Any] = ()) -> int:
    """Perform a general (non-select) SQL command; returns the affected row count."""
    return db.execute_dml(stmt, params)


__all__ = ["Database", "Session", "connect", "do_command"]
