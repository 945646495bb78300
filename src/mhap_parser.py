from typing import Callable, Optional

import numpy as np

from chunk_processor import BUFFER_SIZE, ChunkReader, FileByteSource, ParseCursor
from data_structures import Overlap
from line_scanning import SPACE, iter_line_segments, parse_float, parse_int, split_fields, strip_bounds
from parser_errors import FormatError
from parser_storage import DEFAULT_SIZE_CLASSES, SizeClasses, WorkingStorage

LINE = "line"
FIELD_COUNT = 12

# a_id b_id error minmers a_rc a_begin a_end a_length b_rc b_begin b_end b_length
FIELD_TYPES = (parse_int, parse_int, parse_float) + (parse_int,) * 9


class MhapParser:
    """
    Incremental MHAP parser, one space separated overlap of 12 fields per line.
    Completed records are handed to factory(a_id, b_id, error, minmers, a_rc, a_begin, a_end,
    a_length, b_rc, b_begin, b_end, b_length).
    """

    def __init__(self, source: FileByteSource, factory: Optional[Callable] = None,
                 buffer_size: int = BUFFER_SIZE, size_classes: SizeClasses = DEFAULT_SIZE_CLASSES):
        self.factory = factory or Overlap.from_mhap
        self.storage = WorkingStorage({LINE: size_classes.small}, size_classes)
        self.cursor = ParseCursor()
        self.records_parsed = 0
        self._bounds = np.zeros((FIELD_COUNT, 2), dtype=np.int64)
        self._reader = ChunkReader(source, buffer_size, name=type(self).__name__)

    def parse_objects(self, sink, max_bytes: Optional[int] = 0) -> bool:
        """
        Append parsed overlaps to sink, reading at most max_bytes (0 reads everything).
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

    def _emit(self, sink):
        line = self.storage.view(LINE)
        begin, end = strip_bounds(line, 0, line.shape[0])
        if begin == end:
            # blank line
            self.storage.clear()
            return

        count = split_fields(line, begin, end, SPACE, self._bounds)
        if count != FIELD_COUNT:
            raise self._format_error(f"expected {FIELD_COUNT} fields, found {count}")

        try:
            values = [
                convert(line[field_begin:field_end].tobytes())
                for convert, (field_begin, field_end) in zip(FIELD_TYPES, self._bounds)
            ]
        except ValueError as e:
            raise self._format_error(f"invalid numeric field ({e})") from e

        sink.append(self.factory(*values))

        self.cursor.emitted += 1
        self.records_parsed += 1
        self.storage.clear()

    def _format_error(self, reason: str) -> FormatError:
        return FormatError(type(self).__name__, reason, self.records_parsed + 1)
