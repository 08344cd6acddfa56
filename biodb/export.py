"""Export stored collections to pandas DataFrames and CSV."""
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Union

import pandas as pd

from biodb.query import query_sequences


def records_to_dataframe(records: Iterable[Dict[str, Any]]) -> pd.DataFrame:
    """Flatten decoded records into a DataFrame with ``accession`` first."""
    df = pd.DataFrame.from_records(list(records))
    if "accession" in df.columns:
        df = df[["accession"] + [c for c in df.columns if c != "accession"]]
    return df


def export_dataframe(
    db,
    table: str,
    tag: str,
    where: Optional[str] = None,
    parameters=(),
    order: Optional[str] = "accession",
) -> pd.DataFrame:
    """
    Decode every record of ``table`` into a DataFrame.

    Args:
        db: Database or Session.
        table: Table to export.
        tag: Record type tag of the table.
        where: Optional raw predicate (trusted text).
        parameters: Parameters for ``where``.
        order: Column to sort by.
    """
    stmt = f"SELECT * FROM {table}"
    if where:
        stmt += f" WHERE {where}"
    if order:
        stmt += f" ORDER BY {order}"
    return query_sequences(db, stmt, tag, parameters, apply_func=records_to_dataframe)


def export_to_csv(db, table: str, tag: str, output_path: Union[str, Path], **kwargs) -> int:
    """Export ``table`` to CSV; returns the number of records written."""
    df = export_dataframe(db, table, tag, **kwargs)
    df.to_csv(output_path, index=False)
    return len(df)
