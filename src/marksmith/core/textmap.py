"""Offset bookkeeping across chained text rewrites.

Each rewriting pass produces `ChangeRecord` entries expressed in the
coordinates of the text it ran on. `TextPositionMap` folds those batches into
a table of replaced regions so that any offset of the current text can be
traced back to the original source.

Usage Example
:
    >>> text_map = TextPositionMap()
    >>> text_map.apply_changes([ChangeRecord(0, 6, "")])
    >>> text_map.map_offset(0)
    6
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass


__all__ = ["ChangeRecord", "MappedRegion", "TextPositionMap"]


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    """One substitution: ``length`` characters at ``start`` became ``replacement``."""

    start: int
    length: int
    replacement: str

    @property
    def end(self) -> int:
        return self.start + self.length

    @property
    def delta(self) -> int:
        return len(self.replacement) - self.length


@dataclass(frozen=True, slots=True)
class MappedRegion:
    """Span of the current text that replaced a span of the original text."""

    start: int
    length: int
    original_start: int
    original_length: int

    @property
    def end(self) -> int:
        return self.start + self.length

    @property
    def original_end(self) -> int:
        return self.original_start + self.original_length

    def touches(self, start: int, end: int) -> bool:
        # Empty spans on either side merge with anything they border.
        if self.length == 0 or start == end:
            return self.start <= end and start <= self.end
        return self.start < end and start < self.end


class TextPositionMap:
    """Translate offsets of rewritten text back to the original source."""

    def __init__(self) -> None:
        self._regions: list[MappedRegion] = []

    @property
    def regions(self) -> tuple[MappedRegion, ...]:
        return tuple(self._regions)

    @property
    def is_identity(self) -> bool:
        return not self._regions

    def apply_changes(self, changes: Iterable[ChangeRecord]) -> None:
        """Fold one batch of non-overlapping changes into the map.

        The batch must be expressed in the coordinates of the current text.
        Changes are applied from last to first so earlier offsets stay valid.
        """
        batch = sorted(changes, key=lambda change: change.start)
        _ensure_disjoint(batch)
        for change in reversed(batch):
            self._apply(change)

    def map_offset(self, pos: int) -> int:
        """Return the original offset for ``pos`` in the current text.

        Offsets inside a replacement map to the start of the text it replaced.
        """
        delta = 0
        for region in self._regions:
            if region.start > pos:
                break
            if region.start <= pos < region.end:
                return region.original_start
            delta += region.length - region.original_length
        return max(pos - delta, 0)

    def map_span(self, start: int, end: int) -> tuple[int, int]:
        """Return the original span covering ``[start, end)``."""
        return self.map_offset(start), self._map_end(end)

    def _map_end(self, pos: int) -> int:
        delta = 0
        for region in self._regions:
            if region.start >= pos:
                break
            if region.start < pos < region.end:
                return region.original_end
            delta += region.length - region.original_length
        return max(pos - delta, 0)

    def _apply(self, change: ChangeRecord) -> None:
        start, end = change.start, change.end
        before: list[MappedRegion] = []
        touched: list[MappedRegion] = []
        after: list[MappedRegion] = []
        for region in self._regions:
            if region.touches(start, end):
                touched.append(region)
            elif region.end <= start:
                before.append(region)
            else:
                after.append(region)

        original_start = min([self.map_offset(start), *(r.original_start for r in touched)])
        original_end = max([self._map_end(end), *(r.original_end for r in touched)])
        merged_start = min([start, *(r.start for r in touched)])
        merged_end = max([end, *(r.end for r in touched)]) + change.delta

        merged = MappedRegion(
            start=merged_start,
            length=merged_end - merged_start,
            original_start=original_start,
            original_length=original_end - original_start,
        )
        shifted = [
            MappedRegion(
                start=region.start + change.delta,
                length=region.length,
                original_start=region.original_start,
                original_length=region.original_length,
            )
            for region in after
        ]
        self._regions = [*before, merged, *shifted]


def _ensure_disjoint(batch: Sequence[ChangeRecord]) -> None:
    for previous, current in zip(batch, batch[1:]):
        if current.start < previous.end:
            raise ValueError(
                f"Overlapping change records at offsets {previous.start} and {current.start}."
            )
