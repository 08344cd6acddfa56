"""Turns codec schemas into backend specific DDL."""
import logging
from typing import List, Sequence

from biodb.codecs import BINARY, Column, get_codec
from biodb.const import POSTGRES, SQLITE
from biodb.exceptions import ConfigError, SchemaError

log = logging.getLogger("biodb")

BINARY_TYPES = {
    POSTGRES: "bytea",
    SQLITE: "blob",
}


def binary_type(dbtype: str) -> str:
    try:
        return BINARY_TYPES[dbtype]
    except KeyError:
        raise ConfigError(f"Unsupported database type '{dbtype}'") from None


def materialize(schema: Sequence[Column], dbtype: str) -> List[Column]:
    """Replace the ``binary`` placeholder type with the backend's binary type."""
    bin_type = binary_type(dbtype)
    return [
        col._replace(type=bin_type) if col.type == BINARY else Column(*col)
        for col in schema
    ]


def validate_schema(schema: Sequence[Column], tag: str = None) -> None:
    """Check that exactly one ``accession`` column exists and is the primary key."""
    accession_cols = [col for col in schema if col.name == "accession"]
    if len(accession_cols) != 1:
        raise SchemaError(
            f"Schema must define exactly one 'accession' column, found {len(accession_cols)}",
            tag=tag,
        )
    if "PRIMARY KEY" not in (accession_cols[0].constraints or "").upper():
        raise SchemaError("The 'accession' column must be the PRIMARY KEY", tag=tag)
    for col in schema:
        if "PRIMARY KEY" in (col.constraints or "").upper() and col.name != "accession":
            raise SchemaError(
                f"Only 'accession' may be the PRIMARY KEY, not '{col.name}'", tag=tag
            )


def create_table_ddl(table: str, columns: Sequence[Column], if_not_exists: bool = False) -> str:
    """Render a CREATE TABLE statement. Identical inputs give identical text."""
    body = ", ".join(
        " ".join(part for part in (col.name, col.type, col.constraints) if part)
        for col in columns
    )
    exists = "IF NOT EXISTS " if if_not_exists else ""
    return f"CREATE TABLE {exists}{table} ({body})"


def table_ddl(table: str, tag: str, dbtype: str, if_not_exists: bool = False) -> str:
    """Validated, materialized DDL for the codec registered under ``tag``."""
    schema = get_codec(tag).schema()
    validate_schema(schema, tag)
    return create_table_ddl(table, materialize(schema, dbtype), if_not_exists)


def create_table(db, table: str, tag: str, if_not_exists: bool = False) -> None:
    """
    Create ``table`` using the schema of the codec registered under ``tag``.

    Args:
        db: Database or Session.
        table: Table name.
        tag: Record type tag.
        if_not_exists: Emit ``CREATE TABLE IF NOT EXISTS``.
    """
    table = str(table)
    try:
        ddl = table_ddl(table, tag, db.dbtype, if_not_exists)
    except SchemaError as e:
        e.operation, e.table = "create_table", table
        raise
    log.info("Creating table %s for type %s", table, tag)
    db.execute_ddl(ddl)
