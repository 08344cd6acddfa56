"""Exception hierarchy for biodb.

Every error raised by the library derives from :class:`BiodbError`. Errors that
originate in the database driver are re-raised as one of these classes with the
driver exception chained as ``__cause__``.
"""
from typing import Optional


class BiodbError(Exception):
    """Base class for biodb errors.

    Args:
        message: Human readable description.
        operation: Library operation that failed (e.g. ``"get_sequences"``).
        table: Table involved, if any.
        tag: Record type tag involved, if any.
    """

    def __init__(
        self,
        message: str,
        operation: Optional[str] = None,
        table: Optional[str] = None,
        tag: Optional[str] = None,
    ):
        self.message = message
        self.operation = operation
        self.table = table
        self.tag = tag
        super().__init__(message)

    def __str__(self):
        context = [
            f"{name}={value}"
            for name, value in (
                ("operation", self.operation),
                ("table", self.table),
                ("type", self.tag),
            )
            if value is not None
        ]
        if context:
            return f"{self.message} ({', '.join(context)})"
        return self.message


class ConfigError(BiodbError):
    """Missing or invalid connection parameters."""


class UnknownTypeError(BiodbError):
    """No codec is registered for the requested record type tag."""


class SchemaError(BiodbError):
    """A codec schema violates the table layout rules."""


class EncodeError(BiodbError):
    """A record could not be turned into a row."""


class DecodeError(BiodbError):
    """A row could not be turned back into a record."""


class QueryError(BiodbError):
    """The backend rejected a query or failed while reading its results."""


class StagingError(BiodbError):
    """Creating or populating a staging table failed."""


class WriteError(BiodbError):
    """A bulk insert or other write failed and was rolled back."""
