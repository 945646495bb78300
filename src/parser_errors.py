from typing import Optional


class BioparserError(Exception):
    """Base class for every error raised by the parsers."""


class SourceOpenError(BioparserError, OSError):
    """The input file could not be opened."""


class FormatError(BioparserError, ValueError):
    """
    A record is syntactically invalid.
    Fatal for the current parse call; objects from earlier calls stay valid.
    """

    def __init__(self, parser_name: str, reason: str, record_number: Optional[int] = None):
        self.parser_name = parser_name
        self.reason = reason
        self.record_number = record_number
        where = f" (record {record_number:,})" if record_number is not None else ""
        super().__init__(f"{parser_name} error: invalid file format{where}: {reason}")


class ChunkTooSmallError(BioparserError):
    """The byte budget ran out before a single record was completed."""

    def __init__(self, parser_name: str, max_bytes: int):
        self.parser_name = parser_name
        self.max_bytes = max_bytes
        super().__init__(
            f"{parser_name} error: too small chunk size ({max_bytes:,} bytes), "
            "no record fits into the budget"
        )


class StorageOverflowError(BioparserError, MemoryError):
    """A single field outgrew the largest storage size class."""

    def __init__(self, region: str, needed: int, largest: int):
        self.region = region
        self.needed = needed
        self.largest = largest
        super().__init__(
            f"field '{region}' needs {needed:,} bytes, "
            f"more than the largest storage size class ({largest:,} bytes)"
        )
