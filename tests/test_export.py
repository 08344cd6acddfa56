"""Tests for DataFrame and CSV export."""
import pandas as pd
import pytest

from biodb import connect, create_table, insert_sequences
from biodb.exceptions import DecodeError
from biodb.export import export_dataframe, export_to_csv, records_to_dataframe


@pytest.fixture
def db(tmp_path):
    db = connect(dbtype="sqlite", dbname=str(tmp_path / "export.db"))
    create_table(db, "meta", "default")
    insert_sequences(db, "meta", "default", [
        {"accession": "B2", "organism": "E. coli", "length": 120},
        {"accession": "A1", "organism": "H. sapiens", "length": 141},
        {"accession": "C3", "organism": "H. sapiens", "length": 146},
    ])
    yield db
    db.close()


def test_records_to_dataframe_puts_accession_first():
    df = records_to_dataframe([{"score": 1.5, "accession": "P1"}, {"accession": "P2", "extra": "x"}])
    assert list(df.columns)[0] == "accession"
    assert set(df.columns) == {"accession", "score", "extra"}
    assert len(df) == 2


def test_records_to_dataframe_empty():
    assert records_to_dataframe(iter(())).empty


def test_export_dataframe(db):
    df = export_dataframe(db, "meta", "default")
    assert isinstance(df, pd.DataFrame)
    assert list(df["accession"]) == ["A1", "B2", "C3"]
    assert list(df["length"]) == [141, 120, 146]


def test_export_dataframe_where(db):
    df = export_dataframe(
        db, "meta", "default", where="accession <> ?", parameters=["B2"], order="accession DESC"
    )
    assert list(df["accession"]) == ["C3", "A1"]


def test_export_to_csv(db, tmp_path):
    output = tmp_path / "meta.csv"
    assert export_to_csv(db, "meta", "default", output) == 3

    df = pd.read_csv(output)
    assert list(df.columns) == ["accession", "length", "organism"]
    assert df.loc[df["accession"] == "C3", "organism"].item() == "H. sapiens"


def test_export_wrong_type(db):
    with pytest.raises(DecodeError):
        export_dataframe(db, "meta", "fasta")
