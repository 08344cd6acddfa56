"""Bulk insertion of record collections."""
import logging
from typing import Any, Dict, Iterable, List, Union

from biodb.codecs import get_codec
from biodb.exceptions import BiodbError, EncodeError

log = logging.getLogger("biodb")


def insert_sequences(
    db,
    table: str,
    tag: str,
    records: Iterable[Dict[str, Any]],
    return_rows: bool = False,
) -> Union[int, List[Dict[str, Any]]]:
    """
    Encode ``records`` with the codec for ``tag`` and insert them into ``table``.

    The whole batch is inserted in one transaction: either every row is
    committed or none is.

    Args:
        db: Database or Session.
        table: Target table (created with :func:`biodb.schema.create_table`).
        tag: Record type tag.
        records: Domain records; each needs an ``accession``.
        return_rows: Return the inserted rows instead of their count.

    Returns:
        Number of inserted rows, or the list of inserted rows.

    Raises:
        UnknownTypeError: ``tag`` has no codec.
        EncodeError: A record could not be encoded. Nothing is written.
        WriteError: The backend rejected the insert. Nothing is written.
    """
    table = str(table)
    codec = get_codec(tag)
    try:
        rows = list(codec.encode(records))
    except BiodbError as e:
        e.operation, e.table, e.tag = "insert_sequences", table, tag
        raise
    except (KeyError, ValueError, TypeError) as e:
        raise EncodeError(
            f"Codec failed to encode records: {e!r}",
            operation="insert_sequences",
            table=table,
            tag=tag,
        ) from e

    try:
        result = db.insert_multi(table, rows, return_rows=return_rows)
    except BiodbError as e:
        e.operation, e.table, e.tag = "insert_sequences", table, tag
        raise
    log.info("Inserted %d %s records into %s", len(rows), tag, table)
    return result
