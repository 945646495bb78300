import io
import logging
from dataclasses import dataclass
from typing import BinaryIO, Optional

import numpy as np

from parser_errors import ChunkTooSmallError

logger = logging.getLogger(__name__)

BUFFER_SIZE = 64 * 1024


class FileByteSource:
    """
    Seekable byte source over a binary file object.
    A short read marks the end of input, any seek clears the mark.
    """

    def __init__(self, handle: BinaryIO):
        self.handle = handle
        self._is_end = False

    def read(self, buffer: np.ndarray, max_len: int) -> int:
        """Fill buffer[:max_len] from the file. Returns: bytes read"""
        if max_len <= 0:
            return 0
        read_bytes = self.handle.readinto(memoryview(buffer)[:max_len]) or 0
        if read_bytes < max_len:
            self._is_end = True
        return read_bytes

    def end_of_input(self) -> bool:
        return self._is_end

    def seek_relative(self, offset: int):
        self.handle.seek(offset, io.SEEK_CUR)
        self._is_end = False

    def rewind(self):
        self.handle.seek(0, io.SEEK_SET)
        self._is_end = False

    def tell(self) -> int:
        return self.handle.tell()

    def close(self):
        self.handle.close()


class ChunkAccountant:
    """Tracks the bytes of one parse call against the caller's budget (0 means no limit)"""

    def __init__(self, max_bytes: Optional[int] = 0):
        if max_bytes is None:
            max_bytes = 0
        if max_bytes < 0:
            raise ValueError(f"max_bytes must be >= 0, got {max_bytes}")
        self.max_bytes = max_bytes
        self.read_bytes = 0
        self.fed_bytes = 0

    def admit(self, read_bytes: int) -> int:
        """
        Account for a refill.
        Returns: how many leading bytes of the refill still fit into the budget
        """
        self.read_bytes += read_bytes
        if self.max_bytes == 0:
            allowed = read_bytes
        else:
            allowed = max(0, min(read_bytes, self.max_bytes - self.fed_bytes))
        self.fed_bytes += allowed
        return allowed


@dataclass
class ParseCursor:
    """Per-call position of a state machine inside the bytes it was fed"""

    line: int = 0
    consumed: int = 0
    record_start: int = 0
    emitted: int = 0

    @property
    def pending_bytes(self) -> int:
        """Bytes of the in-progress record fed during this call"""
        return self.consumed - self.record_start


class ChunkReader:
    """
    Refill, feed, budget-check loop shared by every parser.

    The state machine passed to run() must provide:
        cursor          ParseCursor, reset by begin_call()
        begin_call()    drop any per-call state
        feed(chunk, sink)
        boundary(next_byte, sink)
                        peek at the first byte left out by the budget
        finish(sink)    flush a trailing record at end of input
    """

    def __init__(self, source: FileByteSource, buffer_size: int = BUFFER_SIZE, name: str = "Parser"):
        if buffer_size <= 0:
            raise ValueError(f"buffer_size must be positive, got {buffer_size}")
        self.source = source
        self.buffer = np.zeros(buffer_size, dtype=np.uint8)
        self.name = name

    def reset(self):
        self.source.rewind()

    def close(self):
        self.source.close()

    def run(self, machine, sink, max_bytes: Optional[int] = 0) -> bool:
        """
        Parse objects into sink until the budget is spent or the input ends.
        Returns: True if input remains (budget hit), False if the source is exhausted
        """
        accountant = ChunkAccountant(max_bytes)
        machine.begin_call()
        if self.source.end_of_input():
            return False

        while True:
            read_bytes = self.source.read(self.buffer, self.buffer.shape[0])
            is_end = self.source.end_of_input()

            allowed = accountant.admit(read_bytes)
            if allowed:
                machine.feed(self.buffer[:allowed], sink)

            if allowed < read_bytes:
                machine.boundary(int(self.buffer[allowed]), sink)
                cursor = machine.cursor
                if cursor.emitted == 0:
                    self.source.seek_relative(-accountant.read_bytes)
                    raise ChunkTooSmallError(self.name, accountant.max_bytes)

                rewind = cursor.pending_bytes + (read_bytes - allowed)
                self.source.seek_relative(-rewind)
                logger.debug(
                    f"{self.name}: budget of {accountant.max_bytes:,} bytes reached after "
                    f"{cursor.emitted:,} records, rewinding {rewind:,} bytes"
                )
                return True

            if is_end:
                machine.finish(sink)
                logger.debug(
                    f"{self.name}: end of input after {machine.cursor.emitted:,} records "
                    f"({accountant.read_bytes:,} bytes)"
                )
                return False
