"""Top-level package for biodb."""
__author__ = """biodb developers"""
__version__ = '0.3.0'

from biodb.codecs import (
    BINARY,
    DEFAULT_TYPE,
    FASTA_TYPE,
    Codec,
    Column,
    get_codec,
    register,
    registry,
)
from biodb.config import DBSpec, db_spec, load_config
from biodb.db import Database, Session, connect, do_command
from biodb.exceptions import (
    BiodbError,
    ConfigError,
    DecodeError,
    EncodeError,
    QueryError,
    SchemaError,
    StagingError,
    UnknownTypeError,
    WriteError,
)
from biodb.query import QueryModifiers, get_sequences, query_sequences
from biodb.schema import create_table, materialize
from biodb.writer import insert_sequences

__all__ = [
    # Connections
    'connect',
    'db_spec',
    'load_config',
    'Database',
    'Session',
    'DBSpec',
    # Tables and records
    'create_table',
    'insert_sequences',
    'get_sequences',
    'query_sequences',
    'do_command',
    'QueryModifiers',
    # Codecs
    'register',
    'get_codec',
    'registry',
    'materialize',
    'Codec',
    'Column',
    'BINARY',
    'DEFAULT_TYPE',
    'FASTA_TYPE',
    # Errors
    'BiodbError',
    'ConfigError',
    'UnknownTypeError',
    'SchemaError',
    'EncodeError',
    'DecodeError',
    'QueryError',
    'StagingError',
    'WriteError',
]
