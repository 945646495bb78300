import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

import numpy as np

from line_scanning import strip_bounds
from parser_errors import StorageOverflowError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SizeClasses:
    """Growth ladder of the working storage regions (small scratch, medium, large)"""

    small: int = 1024
    medium: int = 8 * 1024 * 1024
    large: int = 512 * 1024 * 1024

    def __post_init__(self):
        if not 0 < self.small < self.medium < self.large:
            raise ValueError(
                f"Size classes must satisfy 0 < small < medium < large, "
                f"got {self.small}, {self.medium}, {self.large}"
            )

    def ladder(self) -> Tuple[int, int, int]:
        return (self.small, self.medium, self.large)


DEFAULT_SIZE_CLASSES = SizeClasses()


class WorkingStorage:
    """
    One numpy arena split into named, disjoint regions.

    Regions are addressed by (offset, length) and laid out in layout order. A growable region
    that runs out of room moves to the next size class: the whole arena is reallocated, the
    bytes already written to every region are copied forward and all offsets recomputed.
    Fixed regions never grow, writes past their capacity are dropped.
    """

    def __init__(self, layout: Dict[str, int], size_classes: SizeClasses = DEFAULT_SIZE_CLASSES,
                 fixed: Iterable[str] = ()):
        self.size_classes = size_classes
        self._capacities = dict(layout)
        self._fixed = frozenset(fixed)
        self._lengths = {region: 0 for region in layout}
        self._offsets: Dict[str, int] = {}
        self._arena = np.zeros(0, dtype=np.uint8)
        self._allocate()

    def _allocate(self):
        offsets = {}
        total = 0
        for region, capacity in self._capacities.items():
            offsets[region] = total
            total += capacity

        arena = np.zeros(total, dtype=np.uint8)
        for region, length in self._lengths.items():
            if length:
                old = self._offsets[region]
                new = offsets[region]
                arena[new:new + length] = self._arena[old:old + length]

        self._arena = arena
        self._offsets = offsets

    def _grow(self, region: str, needed: int):
        capacity = self._capacities[region]
        for size in self.size_classes.ladder():
            if size > capacity and size >= needed:
                break
        else:
            raise StorageOverflowError(region, needed, self.size_classes.large)

        logger.info(f"Growing storage region '{region}' from {capacity:,} to {size:,} bytes")
        self._capacities[region] = size
        self._allocate()

    def append(self, region: str, data: np.ndarray) -> int:
        """
        Copy data to the end of a region, growing the arena when needed.
        Returns: number of bytes stored (less than len(data) only for fixed regions)
        """
        size = data.shape[0]
        if size == 0:
            return 0

        length = self._lengths[region]
        needed = length + size
        if needed > self._capacities[region]:
            if region in self._fixed:
                size = self._capacities[region] - length
                if size <= 0:
                    return 0
                data = data[:size]
                needed = length + size
            else:
                self._grow(region, needed)

        offset = self._offsets[region]
        self._arena[offset + length:offset + needed] = data
        self._lengths[region] = needed
        return size

    def view(self, region: str) -> np.ndarray:
        """View over the bytes written to a region. Invalidated by the next append."""
        offset = self._offsets[region]
        return self._arena[offset:offset + self._lengths[region]]

    def last(self, region: str) -> int:
        length = self._lengths[region]
        if length == 0:
            return -1
        return int(self._arena[self._offsets[region] + length - 1])

    def drop_last(self, region: str):
        if self._lengths[region]:
            self._lengths[region] -= 1

    def length(self, region: str) -> int:
        return self._lengths[region]

    def capacity(self, region: str) -> int:
        return self._capacities[region]

    def offset(self, region: str) -> int:
        return self._offsets[region]

    def has_content(self) -> bool:
        """True when any region holds a non-whitespace byte"""
        for region in self._lengths:
            data = self.view(region)
            begin, end = strip_bounds(data, 0, data.shape[0])
            if end > begin:
                return True
        return False

    def clear(self):
        for region in self._lengths:
            self._lengths[region] = 0
