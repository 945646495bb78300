from typing import Callable, Optional

import numpy as np

from chunk_processor import BUFFER_SIZE, ChunkReader, FileByteSource, ParseCursor
from data_structures import Overlap
from line_scanning import TAB, iter_line_segments, parse_int, split_fields, strip_bounds
from parser_errors import FormatError
from parser_storage import DEFAULT_SIZE_CLASSES, SizeClasses, WorkingStorage

LINE = "line"
FIELD_COUNT = 12

A_NAME, A_LENGTH, A_BEGIN, A_END, ORIENTATION = range(5)
B_NAME, B_LENGTH, B_BEGIN, B_END, MATCHING_BASES, OVERLAP_LENGTH, MAPPING_QUALITY = range(5, 12)


class PafParser:
    """
    Incremental PAF parser, one tab separated alignment of 12 fields per line.
    Completed records are handed to factory(a_name, a_name_length, a_length, a_begin, a_end,
    orientation, b_name, b_name_length, b_length, b_begin, b_end, matching_bases,
    overlap_length, quality).
    """

    def __init__(self, source: FileByteSource, factory: Optional[Callable] = None,
                 buffer_size: int = BUFFER_SIZE, size_classes: SizeClasses = DEFAULT_SIZE_CLASSES):
        self.factory = factory or Overlap.from_paf
        self.storage = WorkingStorage({LINE: 3 * size_classes.small}, size_classes)
        self.cursor = ParseCursor()
        self.records_parsed = 0
        self._name_cap = size_classes.small
        self._bounds = np.zeros((FIELD_COUNT, 2), dtype=np.int64)
        self._reader = ChunkReader(source, buffer_size, name=type(self).__name__)

    def parse_objects(self, sink, max_bytes: Optional[int] = 0) -> bool:
        """
        Append parsed alignments to sink, reading at most max_bytes (0 reads everything).
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
            self.storage.append(LINE, chunk[begin:end])
            if terminated:
                self._emit(sink)
                cursor.record_start = cursor.consumed + end + 1

        cursor.consumed += chunk.shape[0]

    def boundary(self, next_byte: int, sink):
        pass

    def finish(self, sink):
        if self.storage.has_content():
            self._emit(sink)
            self.cursor.record_start = self.cursor.consumed

    def _name(self, line: np.ndarray, field: int) -> bytes:
        begin, end = strip_bounds(line, self._bounds[field, 0], self._bounds[field, 1])
        if begin == end:
            raise self._format_error(f"empty name in field {field + 1}")
        return line[begin:min(end, begin + self._name_cap)].tobytes()

    def _emit(self, sink):
        line = self.storage.view(LINE)
        begin, end = strip_bounds(line, 0, line.shape[0])
        if begin == end:
            # blank line
            self.storage.clear()
            return

        count = split_fields(line, begin, end, TAB, self._bounds)
        if count != FIELD_COUNT:
            raise self._format_error(f"expected {FIELD_COUNT} fields, found {count}")

        a_name = self._name(line, A_NAME)
        b_name = self._name(line, B_NAME)

        begin, end = strip_bounds(line, self._bounds[ORIENTATION, 0], self._bounds[ORIENTATION, 1])
        if end - begin != 1:
            raise self._format_error("orientation must be a single character")
        orientation = chr(line[begin])

        try:
            numbers = {
                field: parse_int(line[self._bounds[field, 0]:self._bounds[field, 1]].tobytes())
                for field in (A_LENGTH, A_BEGIN, A_END, B_LENGTH, B_BEGIN, B_END,
                              MATCHING_BASES, OVERLAP_LENGTH, MAPPING_QUALITY)
            }
        except ValueError as e:
            raise self._format_error(f"invalid numeric field ({e})") from e

        sink.append(self.factory(
            a_name, len(a_name), numbers[A_LENGTH], numbers[A_BEGIN], numbers[A_END],
            orientation,
            b_name, len(b_name), numbers[B_LENGTH], numbers[B_BEGIN], numbers[B_END],
            numbers[MATCHING_BASES], numbers[OVERLAP_LENGTH], numbers[MAPPING_QUALITY],
        ))

        self.cursor.emitted += 1
        self.records_parsed += 1
        self.storage.clear()

    def _format_error(self, reason: str) -> FormatError:
        return FormatError(type(self).__name__, reason, self.records_parsed + 1)
