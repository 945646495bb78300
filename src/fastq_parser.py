from typing import Callable, Optional

import numpy as np

from chunk_processor import BUFFER_SIZE, ChunkReader, FileByteSource, ParseCursor
from data_structures import SequenceRecord
from line_scanning import iter_line_segments, strip_bounds
from parser_errors import FormatError
from parser_storage import DEFAULT_SIZE_CLASSES, SizeClasses, WorkingStorage

NAME = "name"
DATA = "data"
QUALITY = "quality"
MARKER = ord("@")

# Line roles inside the 4 line record
NAME_LINE, DATA_LINE, SEPARATOR_LINE, QUALITY_LINE = range(4)


class FastqParser:
    """
    Incremental FASTQ parser for 4 line records (name, sequence, '+' separator, quality).
    Completed records are handed to factory(name, name_length, data, data_length, quality, quality_length).
    """

    def __init__(self, source: FileByteSource, factory: Optional[Callable] = None,
                 buffer_size: int = BUFFER_SIZE, size_classes: SizeClasses = DEFAULT_SIZE_CLASSES):
        self.factory = factory or SequenceRecord.from_fastq
        self.storage = WorkingStorage(
            {NAME: size_classes.small, DATA: size_classes.medium, QUALITY: size_classes.medium},
            size_classes,
            fixed=(NAME,),
        )
        self.cursor = ParseCursor()
        self.records_parsed = 0
        self._reader = ChunkReader(source, buffer_size, name=type(self).__name__)

    def parse_objects(self, sink, max_bytes: Optional[int] = 0) -> bool:
        """
        Append parsed reads to sink, reading at most max_bytes (0 reads everything).
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

    def feed(self, chunk: np.ndarray, sink):
        cursor = self.cursor
        for begin, end, terminated in iter_line_segments(chunk):
            if cursor.line == NAME_LINE:
                self.storage.append(NAME, chunk[begin:end])
            elif cursor.line == DATA_LINE:
                self.storage.append(DATA, chunk[begin:end])
            elif cursor.line == QUALITY_LINE:
                self.storage.append(QUALITY, chunk[begin:end])

            if terminated:
                cursor.line = (cursor.line + 1) % 4
                if cursor.line == NAME_LINE:
                    self._emit(sink)
                    cursor.record_start = cursor.consumed + end + 1

        cursor.consumed += chunk.shape[0]

    def boundary(self, next_byte: int, sink):
        pass

    def finish(self, sink):
        if self.storage.has_content():
            self._emit(sink)
            self.cursor.record_start = self.cursor.consumed

    def _emit(self, sink):
        name = self.storage.view(NAME)
        begin, end = strip_bounds(name, 0, name.shape[0])
        if begin == end or name[begin] != MARKER:
            raise self._format_error("record does not start with '@'")
        begin, end = strip_bounds(name, begin + 1, end)
        if begin == end:
            raise self._format_error("empty read name")

        data = self.storage.view(DATA)
        data_begin, data_end = strip_bounds(data, 0, data.shape[0])
        quality = self.storage.view(QUALITY)
        quality_begin, quality_end = strip_bounds(quality, 0, quality.shape[0])

        data_length = data_end - data_begin
        quality_length = quality_end - quality_begin
        if data_length == 0:
            raise self._format_error("empty sequence")
        if quality_length == 0:
            raise self._format_error("empty quality")
        if data_length != quality_length:
            raise self._format_error(
                f"sequence length {data_length:,} differs from quality length {quality_length:,}"
            )

        sink.append(self.factory(
            name[begin:end].tobytes(), end - begin,
            data[data_begin:data_end].tobytes(), data_length,
            quality[quality_begin:quality_end].tobytes(), quality_length,
        ))

        self.cursor.emitted += 1
        self.records_parsed += 1
        self.storage.clear()

    def _format_error(self, reason: str) -> FormatError:
        return FormatError(type(self).__name__, reason, self.records_parsed + 1)
