"""
FASTQ parser tests.
"""

import pytest

from conftest import make_parser, parse_in_chunks
from data_structures import SequenceRecord
from fastq_parser import FastqParser
from parser_errors import ChunkTooSmallError, FormatError
from parser_storage import SizeClasses


def as_tuples(records):
    return [(r.name, r.data, r.quality) for r in records]


class TestFastqParser:

    def test_single_record(self):
        parser = make_parser(FastqParser, b"@r1\nACGT\n+\n!!!!\n")
        reads = []
        assert parser.parse_objects(reads) is False
        assert reads == [SequenceRecord(b"r1", b"ACGT", b"!!!!")]

    def test_length_mismatch(self):
        parser = make_parser(FastqParser, b"@r1\nACGT\n+\n!!!\n")
        with pytest.raises(FormatError, match="differs from quality length"):
            parser.parse_objects([])

    def test_parse_whole(self, fastq_sample):
        data, expected = fastq_sample
        parser = make_parser(FastqParser, data)
        reads = []
        parser.parse_objects(reads, 0)

        assert len(reads) == 13
        assert as_tuples(reads) == expected
        assert sum(len(r.data) for r in reads) == sum(len(r.quality) for r in reads)

    @pytest.mark.parametrize("max_bytes", [64 * 1024, 30000, 100000])
    def test_parse_in_chunks(self, fastq_sample, max_bytes):
        data, expected = fastq_sample
        parser = make_parser(FastqParser, data)
        assert as_tuples(parse_in_chunks(parser, max_bytes)) == expected

    def test_parse_in_chunks_small_buffer(self, fastq_sample):
        data, expected = fastq_sample
        parser = make_parser(FastqParser, data, buffer_size=333)
        assert as_tuples(parse_in_chunks(parser, 30000)) == expected

    def test_chunk_too_small(self, fastq_sample):
        data, _ = fastq_sample
        parser = make_parser(FastqParser, data)
        reads = []
        with pytest.raises(ChunkTooSmallError):
            parser.parse_objects(reads, 1024)
        assert reads == []

    def test_parse_and_reset(self, fastq_sample):
        data, expected = fastq_sample
        parser = make_parser(FastqParser, data)
        first = parse_in_chunks(parser, 64 * 1024)
        parser.reset()
        second = []
        parser.parse_objects(second)
        assert as_tuples(first) == as_tuples(second) == expected

    def test_fasta_input_is_format_error(self, fasta_sample):
        data, _ = fasta_sample
        parser = make_parser(FastqParser, data)
        with pytest.raises(FormatError, match="FastqParser error: invalid file format"):
            parser.parse_objects([])

    def test_missing_final_newline(self):
        parser = make_parser(FastqParser, b"@a\nAC\n+\n##\n@b\nG\n+a comment\n#")
        reads = []
        parser.parse_objects(reads)
        assert as_tuples(reads) == [(b"a", b"AC", b"##"), (b"b", b"G", b"#")]

    def test_crlf(self):
        parser = make_parser(FastqParser, b"@a x\r\nAC\r\n+\r\n##\r\n")
        reads = []
        parser.parse_objects(reads)
        assert as_tuples(reads) == [(b"a x", b"AC", b"##")]

    @pytest.mark.parametrize("data, reason", [
        (b"r1\nACGT\n+\n!!!!\n", "does not start with '@'"),
        (b"@\nACGT\n+\n!!!!\n", "empty read name"),
        (b"@r1\n\n+\n!!!!\n", "empty sequence"),
        (b"@r1\nACGT\n+\n", "empty quality"),
        (b"@r1\nACGT\n", "empty quality"),
    ])
    def test_invalid_records(self, data, reason):
        parser = make_parser(FastqParser, data)
        with pytest.raises(FormatError, match=reason):
            parser.parse_objects([])

    def test_quality_grows_with_sequence(self):
        classes = SizeClasses(small=16, medium=64, large=512)
        sequence = b"A" * 300
        quality = b"I" * 300
        parser = make_parser(FastqParser, b"@long\n" + sequence + b"\n+\n" + quality + b"\n",
                             size_classes=classes, buffer_size=50)
        reads = []
        parser.parse_objects(reads)

        assert as_tuples(reads) == [(b"long", sequence, quality)]
        assert parser.storage.capacity("data") == 512
        assert parser.storage.capacity("quality") == 512
        assert parser.storage.offset("quality") >= parser.storage.offset("data") + 512
