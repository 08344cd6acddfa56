"""
Codec registry - per record type table schemas, row encoders and row decoders.

A codec is looked up by its record type tag on every insert and query. The
registry is process wide and is meant to be filled while the application
initialises (this module registers the ``default`` and ``fasta`` codecs on
import). Registering codecs while queries are running is not supported.

Example:
    >>> def schema():
    ...     return [Column("accession", "text", "PRIMARY KEY"),
    ...             Column("organism", "text"),
    ...             Column("src", "text", "NOT NULL")]
    >>> register("uniprot", schema, encode_uniprot, decode_uniprot)
    >>> get_codec("uniprot").schema()[0].name
    'accession'
"""
import gzip
import json
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, NamedTuple

from biodb.exceptions import DecodeError, EncodeError, UnknownTypeError

# Placeholder column type resolved per backend by biodb.schema.materialize.
BINARY = "binary"

DEFAULT_TYPE = "default"
FASTA_TYPE = "fasta"

Record = Dict[str, Any]
Row = Dict[str, Any]


class Column(NamedTuple):
    """One column of a table schema."""
    name: str
    type: str
    constraints: str = ""


@dataclass(frozen=True)
class Codec:
    """Schema function, encoder and decoder for one record type."""
    tag: str
    schema: Callable[[], List[Column]]
    encode: Callable[[Iterable[Record]], Iterable[Row]]
    decode: Callable[[Row], Record]


class CodecRegistry:
    """Maps record type tags to codecs."""

    def __init__(self):
        self._codecs: Dict[str, Codec] = {}

    def register(
        self,
        tag: str,
        schema_fn: Callable[[], List[Column]],
        encode_fn: Callable[[Iterable[Record]], Iterable[Row]],
        decode_fn: Callable[[Row], Record],
        replace: bool = False,
    ) -> Codec:
        """
        Register a codec for ``tag``.

        Args:
            tag: Record type tag used by callers.
            schema_fn: Returns the list of :class:`Column` for the table.
            encode_fn: Turns a collection of records into rows.
            decode_fn: Turns one row into a record; raises DecodeError on
                missing or malformed fields.
            replace: Allow overriding an existing registration.

        Raises:
            ValueError: If ``tag`` is already registered and ``replace`` is False.
        """
        if not tag:
            raise ValueError("Codec tag must be a non-empty string")
        if tag in self._codecs and not replace:
            raise ValueError(f"A codec is already registered for type '{tag}'")
        codec = Codec(tag=tag, schema=schema_fn, encode=encode_fn, decode=decode_fn)
        self._codecs[tag] = codec
        return codec

    def get(self, tag: str) -> Codec:
        try:
            return self._codecs[tag]
        except KeyError:
            raise UnknownTypeError(
                f"No codec registered for type '{tag}'. "
                f"Registered types: {sorted(self._codecs)}",
                tag=tag,
            ) from None

    def __contains__(self, tag):
        return tag in self._codecs

    def tags(self) -> List[str]:
        return sorted(self._codecs)


registry = CodecRegistry()


def register(tag, schema_fn, encode_fn, decode_fn, replace=False) -> Codec:
    """Register a codec in the process wide registry."""
    return registry.register(tag, schema_fn, encode_fn, decode_fn, replace=replace)


def get_codec(tag: str) -> Codec:
    """Return the codec for ``tag`` or raise UnknownTypeError."""
    return registry.get(tag)


def _accession(record: Mapping[str, Any], tag: str) -> str:
    try:
        accession = record["accession"]
    except (KeyError, TypeError):
        raise EncodeError("Record has no 'accession' field", tag=tag) from None
    if accession is None or accession == "":
        raise EncodeError("Record has an empty 'accession' field", tag=tag)
    return str(accession)


def _require(row: Mapping[str, Any], column: str, tag: str) -> Any:
    if column not in row or row[column] is None:
        raise DecodeError(f"Row is missing required column '{column}'", tag=tag)
    return row[column]


# === Default codec ===

def default_schema() -> List[Column]:
    return [
        Column("accession", "text", "PRIMARY KEY"),
        Column("src", "text", "NOT NULL"),
    ]


def default_encode(records: Iterable[Record]) -> Iterable[Row]:
    """Store the whole record as JSON text next to its accession."""
    for record in records:
        accession = _accession(record, DEFAULT_TYPE)
        try:
            src = json.dumps(record, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise EncodeError(
                f"Record '{accession}' is not JSON serializable: {e}",
                tag=DEFAULT_TYPE,
            ) from e
        yield {"accession": accession, "src": src}


def default_decode(row: Row) -> Record:
    src = _require(row, "src", DEFAULT_TYPE)
    try:
        record = json.loads(src)
    except (TypeError, ValueError) as e:
        raise DecodeError(f"Column 'src' does not hold valid JSON: {e}", tag=DEFAULT_TYPE) from e
    if not isinstance(record, dict):
        raise DecodeError("Column 'src' does not hold a JSON object", tag=DEFAULT_TYPE)
    return record


# === FASTA codec ===

def fasta_schema() -> List[Column]:
    return [
        Column("accession", "text", "PRIMARY KEY"),
        Column("description", "text"),
        Column("sequence", BINARY, "NOT NULL"),
    ]


def fasta_encode(records: Iterable[Record]) -> Iterable[Row]:
    """Compress sequences into the binary column."""
    for record in records:
        accession = _accession(record, FASTA_TYPE)
        sequence = record.get("sequence")
        if not isinstance(sequence, str) or not sequence:
            raise EncodeError(
                f"Record '{accession}' has no sequence string", tag=FASTA_TYPE
            )
        yield {
            "accession": accession,
            "description": record.get("description") or "",
            "sequence": gzip.compress(sequence.encode("utf-8")),
        }


def fasta_decode(row: Row) -> Record:
    accession = _require(row, "accession", FASTA_TYPE)
    blob = _require(row, "sequence", FASTA_TYPE)
    try:
        sequence = gzip.decompress(bytes(blob)).decode("utf-8")
    except (OSError, EOFError, TypeError, UnicodeDecodeError) as e:
        raise DecodeError(
            f"Sequence of '{accession}' is not a gzip compressed string: {e}",
            tag=FASTA_TYPE,
        ) from e
    return {
        "accession": accession,
        "description": row.get("description") or "",
        "sequence": sequence,
    }


register(DEFAULT_TYPE, default_schema, default_encode, default_decode)
register(FASTA_TYPE, fasta_schema, fasta_encode, fasta_decode)
