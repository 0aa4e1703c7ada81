from __future__ import annotations
import logging
from collections.abc import Iterable, Iterator
from math import floor
from typing import Union, overload

import numpy as np

from . import span
from .span import LeafSpan, OSpan

logger = logging.getLogger(__name__)


def _zcs(ary) -> np.ndarray:
    """leading Zero Cumulative Summation"""
    return np.concatenate(([0.0], np.cumsum(ary, dtype=np.float64)))


def _runs_from_sizes(sizes: Iterable[float]) -> list[tuple[int, float]]:
    """Run-length encode a flat sequence of section sizes

    Negative sizes are clamped to 0
    """
    if not isinstance(sizes, np.ndarray):
        sizes = list(sizes)
    ary = np.maximum(np.asarray(sizes, dtype=np.float64).ravel(), 0.0)
    if ary.size == 0:
        return []

    # Each run starts wherever the size changes
    starts = np.concatenate(([0], np.flatnonzero(np.diff(ary)) + 1))
    counts = np.diff(np.concatenate((starts, [ary.size])))
    return [(int(c), float(ary[s])) for s, c in zip(starts, counts)]


class SectionList:
    """A collection of variable sized sections

    This is well suited to managing the row heights of a virtually scrolling
    view, where most rows share a height and a handful of them differ.
    Consecutive sections of the same size are stored as a single span, so
    most operations are `O(log n)` where `n` is the number of spans rather
    than the number of sections.

    None of the editing or query methods raise for out of range arguments.
    Indexes and counts are floored, and anything out of range is either
    clamped or reported with a sentinel return value.
    """

    def __init__(self, sizes: Iterable[float] = ()):
        runs = _runs_from_sizes(sizes)
        self._root: OSpan = span.build(runs)
        if runs:
            logger.debug("Built %d sections from %d runs", self.count, len(runs))

    @classmethod
    def from_runs(cls, runs: Iterable[tuple[float, float]]) -> SectionList:
        """Build a list from (count, section_size) pairs

        Counts are floored and sizes are clamped to 0. Pairs that end up
        with no sections are skipped.
        """
        ret = cls()
        ret._root = span.build(
            (floor(count), float(max(0, size))) for count, size in runs
        )
        return ret

    # ------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------

    @property
    def count(self) -> int:
        """The total number of sections in the list"""
        return self._root.count if self._root is not None else 0

    @property
    def size(self) -> float:
        """The total size of all sections in the list"""
        return self._root.size if self._root is not None else 0.0

    def index_of(self, offset: float) -> int:
        """Find the index of the section which covers the given offset

        Returns:
            int: The section index, or -1 if the offset is out of range
        """
        root = self._root
        # Written so that NaN falls outside the range too
        if root is None or not (0 <= offset < root.size):
            return -1
        return span.index_of(root, offset)

    def offset_of(self, index: float) -> float:
        """Find the offset where the section at the given index begins

        Returns:
            float: The offset, or -1 if the index is out of range
        """
        root = self._root
        if root is None:
            return -1
        i = floor(index)
        if i < 0 or i >= root.count:
            return -1
        return span.offset_of(root, i)

    def size_of(self, index: float) -> float:
        """Find the size of the section at the given index

        Returns:
            float: The size, or -1 if the index is out of range
        """
        root = self._root
        if root is None:
            return -1
        i = floor(index)
        if i < 0 or i >= root.count:
            return -1
        return span.size_of(root, i)

    # ------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------

    def insert(self, index: float, count: float, size: float) -> int:
        """Insert `count` new sections of `size` each

        Args:
            index: Where to insert the first section. Clamped to the list
            count: The number of sections to insert. Must be > 0
            size: The size of each new section. Clamped to >= 0

        Returns:
            int: The index of the first inserted section, or -1 if the
                count is <= 0
        """
        ct = floor(count)
        if ct <= 0:
            return -1
        each = float(max(0, size))
        if self._root is None:
            self._root = LeafSpan(ct, ct * each)
            return 0
        i = max(0, min(floor(index), self._root.count))
        self._root = span.insert(self._root, i, ct, each)
        return i

    def remove(self, index: float, count: float) -> int:
        """Remove up to `count` sections starting at `index`

        Any part of the range which is out of bounds is ignored.

        Returns:
            int: The number of sections actually removed
        """
        start, ct = self._clamp_range(index, count)
        if ct <= 0:
            return 0
        assert self._root is not None
        self._root = span.remove(self._root, start, ct)
        return ct

    def resize(self, index: float, count: float, size: float) -> int:
        """Set the size of up to `count` sections starting at `index`

        Any part of the range which is out of bounds is ignored. The size
        is clamped to >= 0.

        Returns:
            int: The number of sections actually resized
        """
        start, ct = self._clamp_range(index, count)
        if ct <= 0:
            return 0
        assert self._root is not None
        each = float(max(0, size))
        root = span.remove(self._root, start, ct)
        if root is None:
            self._root = LeafSpan(ct, ct * each)
        else:
            self._root = span.insert(root, start, ct, each)
        return ct

    def clear(self):
        """Remove every section"""
        self._root = None

    def _clamp_range(self, index: float, count: float) -> tuple[int, int]:
        """Get the in-bounds (start, count) of the requested range"""
        if self._root is None:
            return 0, 0
        ct = floor(count)
        if ct <= 0:
            return 0, 0
        first = floor(index)
        start = max(0, first)
        last = min(first + ct - 1, self._root.count - 1)
        return start, last - start + 1

    # ------------------------------------------------------------
    # Container protocol
    # ------------------------------------------------------------

    def __len__(self) -> int:
        return self.count

    def __iter__(self) -> Iterator[float]:
        for count, each in span.iter_runs(self._root):
            for _ in range(count):
                yield each

    @overload
    def __getitem__(self, key: int) -> float: ...

    @overload
    def __getitem__(self, key: slice) -> list[float]: ...

    def __getitem__(self, key: Union[int, slice]) -> Union[float, list[float]]:
        if isinstance(key, slice):
            start, stop, step = key.indices(len(self))
            if step != 1:
                raise ValueError("Slice step must be 1")
            return [self.size_of(i) for i in range(start, stop)]

        if key < 0:
            key += len(self)
        if key < 0 or key >= len(self):
            raise IndexError("Index out of range")
        return self.size_of(key)

    def __repr__(self):
        return (
            f"<SectionList count: {self.count} size: {self.size} "
            f"spans: {self.span_count}>"
        )

    # ------------------------------------------------------------
    # Bulk access
    # ------------------------------------------------------------

    @property
    def span_count(self) -> int:
        """The number of distinct-size runs stored in the list"""
        return sum(1 for _ in span.iter_runs(self._root))

    def runs(self) -> list[tuple[int, float]]:
        """Get the (count, section_size) of every run in order"""
        return list(span.iter_runs(self._root))

    def to_array(self) -> np.ndarray:
        """Get the size of every section as a flat array"""
        runs = self.runs()
        if not runs:
            return np.zeros(0, dtype=np.float64)
        counts, sizes = zip(*runs)
        return np.repeat(np.array(sizes, dtype=np.float64), counts)

    def offsets(self) -> np.ndarray:
        """Get the start offset of every section, plus the total size

        The returned array has `count + 1` entries, beginning with 0
        """
        return _zcs(self.to_array())
