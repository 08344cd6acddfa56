"""
Accession lookups and raw queries.

Small lookups bind every accession into an ``IN (...)`` list. Lookups with more
than ``LOOKUP_THRESHOLD`` accessions load the (deduplicated) accessions into a
temporary staging table and join against it, all inside one transaction.

Rows are always decoded through the codec of the requested record type. Pass
``apply_func`` to fold over a lazy iterator of decoded records instead of
getting a list back::

    >>> get_sequences(db, "proteins", "fasta", ["P1", "P2"])
    [{'accession': 'P1', ...}, {'accession': 'P2', ...}]
    >>> get_sequences(db, "proteins", "fasta", accessions,
    ...               apply_func=lambda recs: sum(len(r["sequence"]) for r in recs))
    184223

``join`` and ``where`` are spliced into the SQL as given. They are not
sanitized; only pass trusted text and put values in ``parameters``.
"""
import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

from biodb.codecs import Record, get_codec
from biodb.const import LOOKUP_THRESHOLD, STAGING_PREFIX
from biodb.exceptions import BiodbError, DecodeError, StagingError

log = logging.getLogger("biodb")

# Staging tables are joined through this alias so that "accession" stays
# unambiguous in caller supplied select, where and order text.
STAGED_COLUMN = "staged_accession"


@dataclass(frozen=True)
class QueryModifiers:
    """Optional clauses for :func:`get_sequences`. Every field defaults to no effect."""
    select: Optional[Sequence[str]] = None
    where: Optional[str] = None
    parameters: Sequence[Any] = ()
    join: Optional[str] = None
    order: Optional[Union[str, Sequence[str]]] = None
    offset: Optional[int] = None
    limit: Optional[int] = None
    apply_func: Optional[Callable[[Iterator[Record]], Any]] = None

    def projection(self) -> str:
        if not self.select:
            return "*"
        if isinstance(self.select, str):
            return self.select
        return ",".join(str(col) for col in self.select)

    def order_by(self) -> str:
        if not self.order:
            return ""
        if isinstance(self.order, str):
            return f" ORDER BY {self.order}"
        return " ORDER BY " + ",".join(str(col) for col in self.order)


def staging_name() -> str:
    """Generate a staging table name that cannot collide across sessions."""
    return f"{STAGING_PREFIX}{uuid.uuid4().hex}"


def _join(modifiers: QueryModifiers) -> str:
    return f" {modifiers.join}" if modifiers.join else ""


def build_direct_query(
    db, table: str, accessions: Sequence[str], modifiers: QueryModifiers
) -> Tuple[str, List[Any]]:
    """
    SQL and parameters for a lookup through an ``IN`` list.

    Parameters are bound as: accessions, where parameters, offset, limit.
    Duplicate accessions are kept.
    """
    ph = db.placeholder
    paging, paging_params = db.backend.paging(modifiers.offset, modifiers.limit)
    stmt = (
        f"SELECT {modifiers.projection()} FROM {table}{_join(modifiers)}"
        f" WHERE {table}.accession IN ({','.join([ph] * len(accessions))})"
        + (f" AND {modifiers.where}" if modifiers.where else "")
        + modifiers.order_by()
        + paging
    )
    params = list(accessions) + list(modifiers.parameters or ()) + paging_params
    return stmt, params


def build_staged_query(
    db, table: str, staging: str, modifiers: QueryModifiers
) -> Tuple[str, List[Any]]:
    """
    SQL and parameters for a lookup joined against a staging table.

    Parameters are bound as: where parameters, offset, limit. The staged
    column is exposed as ``STAGED_COLUMN`` and removed from rows before
    decoding.
    """
    paging, paging_params = db.backend.paging(modifiers.offset, modifiers.limit)
    stmt = (
        f"SELECT {modifiers.projection()} FROM {table}{_join(modifiers)}"
        f" INNER JOIN (SELECT accession AS {STAGED_COLUMN} FROM {staging}) AS {staging}"
        f" ON {table}.accession = {staging}.{STAGED_COLUMN}"
        + (f" WHERE {modifiers.where}" if modifiers.where else "")
        + modifiers.order_by()
        + paging
    )
    params = list(modifiers.parameters or ()) + paging_params
    return stmt, params


def _row_decoder(tag: str, table: Optional[str], drop: Optional[str] = None):
    codec = get_codec(tag)

    def decode(row):
        if drop is not None:
            row = {k: v for k, v in row.items() if k != drop}
        try:
            return codec.decode(row)
        except BiodbError as e:
            e.operation = e.operation or "decode"
            e.table = e.table or table
            raise
        except (KeyError, ValueError, TypeError) as e:
            raise DecodeError(
                f"Codec failed to decode row: {e!r}", operation="decode", table=table, tag=tag
            ) from e
    return decode


def _run(session, stmt, params, tag, table, apply_func, operation, drop=None):
    decode = _row_decoder(tag, table, drop)
    try:
        return session.query(stmt, params, row_fn=decode, result_set_fn=apply_func)
    except BiodbError as e:
        if e.operation in (None, "query"):
            e.operation = operation
        e.table = e.table or table
        e.tag = e.tag or tag
        raise


def _stage(session, name: str, accessions: Iterable[str], table: str, tag: str) -> int:
    unique = set(str(a) for a in accessions)
    backend = session.backend
    try:
        backend.create_staging(session.conn, name)
        backend.populate_staging(session.conn, name, unique)
    except (backend.driver_error, OSError) as e:
        raise StagingError(
            f"Could not stage {len(unique)} accessions in {name}: {e}",
            operation="get_sequences",
            table=table,
            tag=tag,
        ) from e
    return len(unique)


def get_sequences(
    db,
    table: str,
    tag: str,
    accessions: Iterable[str],
    modifiers: Optional[QueryModifiers] = None,
    **kwargs,
) -> Any:
    """
    Return the records of ``table`` whose accession is in ``accessions``.

    Args:
        db: Database or Session.
        table: Table name.
        tag: Record type tag; selects the decoder.
        accessions: Accessions to look up.
        modifiers: A :class:`QueryModifiers`, or pass its fields as keyword
            arguments (``select``, ``where``, ``parameters``, ``join``,
            ``order``, ``offset``, ``limit``, ``apply_func``).

    Returns:
        List of decoded records, or the result of ``apply_func`` applied to
        a lazy iterator of decoded records.

    Raises:
        UnknownTypeError: ``tag`` has no codec.
        QueryError: The backend rejected the generated SQL.
        StagingError: The staging table could not be created or filled.
        DecodeError: A row did not decode.
    """
    if modifiers is None:
        modifiers = QueryModifiers(**kwargs)
    elif kwargs:
        raise TypeError("Pass either a QueryModifiers instance or keyword modifiers, not both")
    table = str(table)
    accessions = list(accessions)
    get_codec(tag)

    if not accessions:
        # "IN ()" is not valid SQL everywhere; nothing can match anyway
        if modifiers.apply_func is not None:
            return modifiers.apply_func(iter(()))
        return []

    if len(accessions) <= LOOKUP_THRESHOLD:
        stmt, params = build_direct_query(db, table, accessions, modifiers)
        return _run(db, stmt, params, tag, table, modifiers.apply_func, "get_sequences")

    name = staging_name()
    with db.transaction() as session:
        staged = _stage(session, name, accessions, table, tag)
        log.info(
            "Staged %d unique accessions in %s for lookup on %s", staged, name, table
        )
        stmt, params = build_staged_query(session, table, name, modifiers)
        result = _run(
            session, stmt, params, tag, table, modifiers.apply_func, "get_sequences",
            drop=STAGED_COLUMN,
        )
        try:
            session.backend.drop_staging(session.conn, name)
        except session.backend.driver_error as e:
            raise StagingError(
                f"Could not drop {name}: {e}", operation="get_sequences", table=table, tag=tag
            ) from e
    return result


def query_sequences(
    db,
    stmt: str,
    tag: str,
    params: Sequence[Any] = (),
    apply_func: Optional[Callable[[Iterator[Record]], Any]] = None,
) -> Any:
    """
    Run a caller supplied parameterized query and decode its rows.

    The statement is executed verbatim. Use the backend's placeholder style
    (``?`` for sqlite, ``%s`` for postgres).

    Example:
        >>> query_sequences(db, "SELECT * FROM proteins WHERE src LIKE ?", "default",
        ...                 ["%kinase%"], apply_func=lambda recs: [r["accession"] for r in recs])
        ['P1', 'P7']
    """
    return _run(db, stmt, list(params), tag, None, apply_func, "query_sequences")
