"""FASTA format input/output for ``fasta`` records."""
from pathlib import Path
from typing import IO, Any, Dict, Iterable, Iterator, List, Union


def _parse_fasta_header(header: str) -> tuple:
    """Split a header line into accession and description.

    Accepted forms:
    - >P12345
    - >P12345 Some protein description
    - >sp|P12345|KIN1_HUMAN Some description  (UniProt style, accession is the second field)
    """
    header = header.lstrip(">").strip()
    if not header:
        return "", ""

    parts = header.split(None, 1)
    ident = parts[0]
    description = parts[1].strip() if len(parts) > 1 else ""

    fields = ident.split("|")
    if len(fields) >= 3 and fields[0] in ("sp", "tr"):
        ident = fields[1]
    return ident, description


def iter_fasta(file_obj: IO) -> Iterator[Dict[str, Any]]:
    """Yield records from an open FASTA file, one at a time."""
    accession = None
    description = ""
    chunks = []
    count = 0

    def record():
        return {
            "accession": accession or f"sequence_{count + 1}",
            "description": description,
            "sequence": "".join(chunks),
        }

    for line in file_obj:
        line = line.strip()
        if not line:
            continue
        if line.startswith(">"):
            if chunks:
                yield record()
                count += 1
            accession, description = _parse_fasta_header(line)
            chunks = []
        elif line.startswith(";"):
            # comment line
            continue
        else:
            chunks.append(line)

    if chunks:
        yield record()


def load_fasta(file_path: Union[str, Path, IO]) -> List[Dict[str, Any]]:
    """Load records from a FASTA file.

    Each record is a dict with ``accession``, ``description`` and
    ``sequence``; wrapped (multi-line) sequences are joined. Entries without
    sequence lines are skipped.

    Args:
        file_path: Path to FASTA file (str, Path) or file-like object

    Returns:
        List of records

    Raises:
        FileNotFoundError: If file path doesn't exist
        ValueError: If the file holds no sequences

    Example:
        >>> records = load_fasta("uniprot_sprot.fasta")
        >>> records[0]["accession"]
        'Q6GZX4'
    """
    if isinstance(file_path, (str, Path)):
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"FASTA file not found: {file_path}")
        with open(file_path, "r", encoding="utf-8") as f:
            records = list(iter_fasta(f))
    else:
        records = list(iter_fasta(file_path))

    if not records:
        raise ValueError("No sequences found in FASTA file")
    return records


def to_fasta(
    records: Iterable[Dict[str, Any]],
    file_path: Union[str, Path, IO],
    width: int = 60,
) -> int:
    """Write records to a FASTA file.

    Args:
        records: Dicts with ``accession``, ``sequence`` and optional ``description``
        file_path: Output file path (str, Path) or file-like object
        width: Line width for wrapped sequences; 0 writes each sequence on one line

    Returns:
        Number of records written

    Raises:
        ValueError: If a record has no sequence string
    """
    if isinstance(file_path, (str, Path)):
        file_obj = open(Path(file_path), "w", encoding="utf-8")
        should_close = True
    else:
        file_obj = file_path
        should_close = False

    count = 0
    try:
        for i, item in enumerate(records):
            sequence = item.get("sequence")
            if not isinstance(sequence, str):
                raise ValueError(
                    f"Record {i}: sequence must be a string, got {type(sequence)}"
                )
            header = f">{item.get('accession') or f'sequence_{i + 1}'}"
            if item.get("description"):
                header += f" {item['description']}"
            file_obj.write(header + "\n")
            if width:
                for start in range(0, len(sequence), width):
                    file_obj.write(sequence[start:start + width] + "\n")
            else:
                file_obj.write(sequence + "\n")
            count += 1
    finally:
        if should_close:
            file_obj.close()
    return count
