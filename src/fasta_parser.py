from typing import Callable, Optional

import numpy as np

from chunk_processor import BUFFER_SIZE, ChunkReader, FileByteSource, ParseCursor
from data_structures import SequenceRecord
from line_scanning import CARRIAGE_RETURN, iter_line_segments, strip_bounds
from parser_errors import FormatError
from parser_storage import DEFAULT_SIZE_CLASSES, SizeClasses, WorkingStorage

NAME = "name"
DATA = "data"
MARKER = ord(">")


class FastaParser:
    """
    Incremental FASTA parser.

    The first line of a record is its name, every following line belongs to the sequence until a
    '>' opens the next record at the start of a line. Completed records are handed to
    factory(name, name_length, data, data_length).
    """

    def __init__(self, source: FileByteSource, factory: Optional[Callable] = None,
                 buffer_size: int = BUFFER_SIZE, size_classes: SizeClasses = DEFAULT_SIZE_CLASSES):
        self.factory = factory or SequenceRecord.from_fasta
        self.storage = WorkingStorage(
            {NAME: size_classes.small, DATA: size_classes.medium}, size_classes, fixed=(NAME,)
        )
        self.cursor = ParseCursor()
        self.records_parsed = 0
        self._reader = ChunkReader(source, buffer_size, name=type(self).__name__)
        self._at_line_start = True
        self._line_length = 0

    def parse_objects(self, sink, max_bytes: Optional[int] = 0) -> bool:
        """
        Append parsed sequences to sink, reading at most max_bytes (0 reads everything).
        Returns: True if the budget stopped parsing and input remains, False at end of input
        """
        return self._reader.run(self, sink, max_bytes)

    def reset(self):
        self._reader.reset()
        self.records_parsed = 0

    def close(self):
        self._reader.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def begin_call(self):
        self.cursor = ParseCursor()
        self.storage.clear()
        self._at_line_start = True
        self._line_length = 0

    def feed(self, chunk: np.ndarray, sink):
        cursor = self.cursor
        for begin, end, terminated in iter_line_segments(chunk):
            if self._at_line_start and end > begin and chunk[begin] == MARKER and cursor.line != 0:
                self._emit(sink)
                cursor.record_start = cursor.consumed + begin
                cursor.line = 0

            if cursor.line == 0:
                self.storage.append(NAME, chunk[begin:end])
            else:
                self.storage.append(DATA, chunk[begin:end])
                self._line_length += end - begin

            if terminated:
                # CRLF line endings
                if self._line_length and self.storage.last(DATA) == CARRIAGE_RETURN:
                    self.storage.drop_last(DATA)
                cursor.line += 1
                self._line_length = 0
                self._at_line_start = True
            elif end > begin:
                self._at_line_start = False

        cursor.consumed += chunk.shape[0]

    def boundary(self, next_byte: int, sink):
        """A '>' right after the fed bytes closes the pending record without feeding it"""
        cursor = self.cursor
        if self._at_line_start and cursor.line != 0 and next_byte == MARKER:
            self._emit(sink)
            cursor.record_start = cursor.consumed
            cursor.line = 0

    def finish(self, sink):
        if self.storage.has_content():
            self._emit(sink)
            self.cursor.record_start = self.cursor.consumed

    def _emit(self, sink):
        name = self.storage.view(NAME)
        begin, end = strip_bounds(name, 0, name.shape[0])
        if begin == end or name[begin] != MARKER:
            raise self._format_error("record does not start with '>'")
        begin, end = strip_bounds(name, begin + 1, end)
        if begin == end:
            raise self._format_error("empty sequence name")

        data = self.storage.view(DATA)
        data_begin, data_end = strip_bounds(data, 0, data.shape[0])
        if data_begin == data_end:
            raise self._format_error("empty sequence")

        sink.append(self.factory(
            name[begin:end].tobytes(), end - begin,
            data[data_begin:data_end].tobytes(), data_end - data_begin,
        ))

        self.cursor.emitted += 1
        self.records_parsed += 1
        self.storage.clear()

    def _format_error(self, reason: str) -> FormatError:
        return FormatError(type(self).__name__, reason, self.records_parsed + 1)
