from __future__ import annotations
import logging
from math import floor
from typing import Optional

from Qt.QtCore import QObject, Signal, Slot

from .section_list import SectionList
from .section_options import SectionOptions

logger = logging.getLogger(__name__)


class TrackedSections(QObject):
    """A SectionList that tells connected views when its sections change

    Every signal carries the first affected index and the number of
    sections affected. Nothing is emitted for edits that are no-ops.

    Sections that still have the default size follow it when the
    `default_size` option changes, the same way a header view's default
    section size works. Runs are matched by size alone, so a run that was
    resized explicitly to the old default follows the new default as well.
    """

    sectionsInserted = Signal(int, int)  # index, count
    sectionsRemoved = Signal(int, int)  # index, count
    sectionsResized = Signal(int, int)  # index, count

    def __init__(
        self,
        options: Optional[SectionOptions] = None,
        sections: Optional[SectionList] = None,
        parent: Optional[QObject] = None,
    ):
        super().__init__(parent)
        self.options: SectionOptions = SectionOptions() if options is None else options
        self._sections: SectionList = SectionList() if sections is None else sections
        self._default_size: float = self.options.default_size
        self.options.optionsUpdated.connect(self._on_options_updated)

    @property
    def sections(self) -> SectionList:
        return self._sections

    @property
    def count(self) -> int:
        return self._sections.count

    @property
    def size(self) -> float:
        return self._sections.size

    def index_of(self, offset: float) -> int:
        return self._sections.index_of(offset)

    def offset_of(self, index: float) -> float:
        return self._sections.offset_of(index)

    def size_of(self, index: float) -> float:
        return self._sections.size_of(index)

    def insert(self, index: float, count: float, size: Optional[float] = None) -> int:
        """Insert sections, using the default size if none is given"""
        if size is None:
            size = self._default_size
        start = self._sections.insert(index, count, size)
        if start < 0:
            return start
        logger.debug("Inserted %d sections at %d", floor(count), start)
        self.sectionsInserted.emit(start, floor(count))
        return start

    def remove(self, index: float, count: float) -> int:
        start = max(0, floor(index))
        removed = self._sections.remove(index, count)
        if removed:
            logger.debug("Removed %d sections at %d", removed, start)
            self.sectionsRemoved.emit(start, removed)
        return removed

    def resize(self, index: float, count: float, size: Optional[float] = None) -> int:
        """Resize sections, using the default size if none is given"""
        if size is None:
            size = self._default_size
        start = max(0, floor(index))
        resized = self._sections.resize(index, count, size)
        if resized:
            logger.debug("Resized %d sections at %d", resized, start)
            self.sectionsResized.emit(start, resized)
        return resized

    @Slot(list)
    def _on_options_updated(self, keys: list):
        if "default_size" not in keys:
            return

        old_size = self._default_size
        new_size = self.options.default_size
        self._default_size = new_size
        if old_size == new_size:
            return

        # Collect first, resizing can merge the runs being walked
        ranges: list[tuple[int, int]] = []
        index = 0
        for count, each in self._sections.runs():
            if each == old_size:
                ranges.append((index, count))
            index += count

        logger.debug(
            "Default size %s -> %s affects %d runs", old_size, new_size, len(ranges)
        )
        for start, count in ranges:
            self.resize(start, count, new_size)
