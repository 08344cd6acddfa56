"""Tests for the codec registry and built-in codecs."""

import gzip
import unittest

from biodb.codecs import (
    DEFAULT_TYPE,
    FASTA_TYPE,
    CodecRegistry,
    Column,
    default_decode,
    default_encode,
    fasta_decode,
    fasta_encode,
    get_codec,
    registry,
)
from biodb.exceptions import DecodeError, EncodeError, UnknownTypeError


def _schema():
    return [Column("accession", "text", "PRIMARY KEY")]


class TestRegistry(unittest.TestCase):

    def test_builtin_codecs_registered(self):
        self.assertIn(DEFAULT_TYPE, registry)
        self.assertIn(FASTA_TYPE, registry)
        self.assertIs(get_codec(DEFAULT_TYPE).decode, default_decode)

    def test_unknown_tag(self):
        with self.assertRaises(UnknownTypeError) as ctx:
            get_codec("uniprot-xml")
        self.assertEqual(ctx.exception.tag, "uniprot-xml")

    def test_register_and_get(self):
        reg = CodecRegistry()
        codec = reg.register("t", _schema, list, dict)
        self.assertIs(reg.get("t"), codec)
        self.assertEqual(reg.tags(), ["t"])

    def test_duplicate_registration(self):
        reg = CodecRegistry()
        reg.register("t", _schema, list, dict)
        with self.assertRaises(ValueError):
            reg.register("t", _schema, list, dict)
        replaced = reg.register("t", _schema, tuple, dict, replace=True)
        self.assertIs(reg.get("t").encode, tuple)
        self.assertIs(replaced, reg.get("t"))

    def test_empty_tag(self):
        with self.assertRaises(ValueError):
            CodecRegistry().register("", _schema, list, dict)


class TestDefaultCodec(unittest.TestCase):

    def test_encode(self):
        rows = list(default_encode([{"accession": "P1", "b": [1, 2], "a": "x"}]))
        self.assertEqual(rows, [{"accession": "P1", "src": '{"a": "x", "accession": "P1", "b": [1, 2]}'}])

    def test_round_trip(self):
        record = {"accession": "P1", "nested": {"k": [1, 2.5, None, True]}}
        row = next(iter(default_encode([record])))
        self.assertEqual(default_decode(row), record)

    def test_encode_missing_accession(self):
        with self.assertRaises(EncodeError):
            list(default_encode([{"name": "x"}]))
        with self.assertRaises(EncodeError):
            list(default_encode([{"accession": ""}]))

    def test_encode_not_serializable(self):
        with self.assertRaises(EncodeError):
            list(default_encode([{"accession": "P1", "tags": {"a", "b"}}]))

    def test_decode_missing_src(self):
        with self.assertRaises(DecodeError):
            default_decode({"accession": "P1"})

    def test_decode_malformed_src(self):
        with self.assertRaises(DecodeError):
            default_decode({"accession": "P1", "src": "{not json"})
        with self.assertRaises(DecodeError):
            default_decode({"accession": "P1", "src": "[1, 2]"})


class TestFastaCodec(unittest.TestCase):

    def test_round_trip(self):
        record = {"accession": "P1", "description": "test protein", "sequence": "MKTAYIAKQR"}
        row = next(iter(fasta_encode([record])))
        self.assertEqual(gzip.decompress(row["sequence"]), b"MKTAYIAKQR")
        self.assertEqual(fasta_decode(row), record)

    def test_decode_memoryview(self):
        row = {"accession": "P1", "description": None, "sequence": memoryview(gzip.compress(b"MK"))}
        self.assertEqual(fasta_decode(row), {"accession": "P1", "description": "", "sequence": "MK"})

    def test_encode_requires_sequence(self):
        with self.assertRaises(EncodeError):
            list(fasta_encode([{"accession": "P1"}]))

    def test_decode_bad_blob(self):
        with self.assertRaises(DecodeError):
            fasta_decode({"accession": "P1", "sequence": b"not gzip"})
        with self.assertRaises(DecodeError):
            fasta_decode({"accession": "P1"})


if __name__ == '__main__':
    unittest.main()
