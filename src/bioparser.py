"""
Chunk-resumable parsers for FASTA, FASTQ, MHAP and PAF files.

Every parser exposes parse_objects(sink, max_bytes) and reset(). Parsing with a byte budget
stops at a record boundary and the next call resumes exactly there:

    with create_parser("reads.fastq") as parser:
        reads = []
        while parser.parse_objects(reads, 64 * 1024 * 1024):
            ...
"""

import logging
import os
from typing import Callable, Dict, Iterator, List, Optional, Union

from chunk_processor import BUFFER_SIZE, FileByteSource
from fasta_parser import FastaParser
from fastq_parser import FastqParser
from mhap_parser import MhapParser
from paf_parser import PafParser
from parser_errors import SourceOpenError
from parser_storage import DEFAULT_SIZE_CLASSES, SizeClasses

logger = logging.getLogger(__name__)

PARSERS: Dict[str, type] = {
    "fasta": FastaParser,
    "fa": FastaParser,
    "fastq": FastqParser,
    "fq": FastqParser,
    "mhap": MhapParser,
    "paf": PafParser,
}

EXTENSIONS: Dict[str, str] = {
    ".fasta": "fasta",
    ".fa": "fasta",
    ".fna": "fasta",
    ".fastq": "fastq",
    ".fq": "fastq",
    ".mhap": "mhap",
    ".paf": "paf",
}


def parser_type_from_path(path: str) -> str:
    """Guess the file format from the file extension"""
    extension = os.path.splitext(path)[1].lower()
    if extension not in EXTENSIONS:
        raise ValueError(
            f"Unable to infer file format of {path}, expected one of {', '.join(sorted(EXTENSIONS))}"
        )
    return EXTENSIONS[extension]


def resolve_parser(parser_type: Union[str, type]) -> type:
    if isinstance(parser_type, type):
        return parser_type
    try:
        return PARSERS[parser_type.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown parser type: {parser_type} (choose from {', '.join(PARSERS)})"
        ) from None


def create_parser(path: str, parser_type: Union[str, type, None] = None,
                  factory: Optional[Callable] = None, buffer_size: int = BUFFER_SIZE,
                  size_classes: SizeClasses = DEFAULT_SIZE_CLASSES):
    """
    Open path and build a parser for it. The parser owns the file and closes it on close().
    parser_type is a format name ("fasta", "fastq", "mhap", "paf"), a parser class, or None to
    infer the format from the file extension. factory builds one object per record.
    """
    if parser_type is None:
        parser_type = parser_type_from_path(path)
    parser_cls = resolve_parser(parser_type)

    try:
        handle = open(path, "rb")
    except OSError as e:
        raise SourceOpenError(f"{parser_cls.__name__} error: unable to open file {path}") from e

    logger.debug(f"Opened {path} with {parser_cls.__name__}")
    return parser_cls(FileByteSource(handle), factory=factory,
                      buffer_size=buffer_size, size_classes=size_classes)


def parse_chunks(parser, max_bytes: int) -> Iterator[List]:
    """
    Yield the objects of each bounded parse call as a fresh list.
    Objects of a call that fails are never yielded.
    """
    more = True
    while more:
        objects = []
        more = parser.parse_objects(objects, max_bytes)
        yield objects


def parse_all(parser) -> List:
    """Parse everything that is left in one unbounded call"""
    objects = []
    parser.parse_objects(objects, 0)
    return objects
