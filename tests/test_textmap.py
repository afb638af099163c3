from __future__ import annotations

import pytest

from marksmith.core.textmap import ChangeRecord, TextPositionMap


def test_identity_map_returns_offsets_unchanged() -> None:
    text_map = TextPositionMap()

    assert text_map.is_identity
    assert text_map.map_offset(0) == 0
    assert text_map.map_offset(42) == 42


def test_stripped_header_maps_to_original_positions() -> None:
    source = "Title: Demo\n\nBody text"
    text_map = TextPositionMap()
    text_map.apply_changes([ChangeRecord(0, 13, "")])
    stripped = "Body text"

    for offset in range(len(stripped)):
        assert source[text_map.map_offset(offset)] == stripped[offset]


def test_offsets_inside_replacement_map_to_replaced_start() -> None:
    text_map = TextPositionMap()
    text_map.apply_changes([ChangeRecord(4, 6, "Planet Earth")])

    assert text_map.map_offset(3) == 3
    assert text_map.map_offset(4) == 4
    assert text_map.map_offset(10) == 4
    assert text_map.map_offset(15) == 4
    assert text_map.map_offset(16) == 10


def test_batch_changes_are_applied_in_their_own_coordinates() -> None:
    source = "a\r\nb\r\nc"
    text_map = TextPositionMap()
    text_map.apply_changes([ChangeRecord(1, 2, "\n"), ChangeRecord(4, 2, "\n")])
    current = "a\nb\nc"

    assert text_map.map_offset(current.index("b")) == source.index("b")
    assert text_map.map_offset(current.index("c")) == source.index("c")


def test_chained_passes_compose() -> None:
    source = "Title: Demo\r\n\r\nHi %name% there"
    text_map = TextPositionMap()
    # Line endings, then header removal, then variable expansion.
    text_map.apply_changes([ChangeRecord(11, 2, "\n"), ChangeRecord(13, 2, "\n")])
    text_map.apply_changes([ChangeRecord(0, 13, "")])
    text_map.apply_changes([ChangeRecord(3, 6, "World")])
    current = "Hi World there"

    assert text_map.map_offset(0) == source.index("Hi")
    assert text_map.map_offset(current.index("World")) == source.index("%name%")
    assert text_map.map_offset(current.index("there")) == source.index("there")
    assert len(text_map.regions) == 2


def test_change_inside_earlier_replacement_merges_regions() -> None:
    text_map = TextPositionMap()
    text_map.apply_changes([ChangeRecord(0, 2, "xyz")])
    text_map.apply_changes([ChangeRecord(1, 1, "")])

    assert len(text_map.regions) == 1
    region = text_map.regions[0]
    assert (region.start, region.length) == (0, 2)
    assert (region.original_start, region.original_length) == (0, 2)
    assert text_map.map_offset(2) == 2


def test_map_span_covers_replaced_regions() -> None:
    text_map = TextPositionMap()
    text_map.apply_changes([ChangeRecord(2, 3, "a")])

    assert text_map.map_span(0, 2) == (0, 2)
    assert text_map.map_span(2, 3) == (2, 5)
    assert text_map.map_span(3, 4) == (5, 6)


def test_overlapping_batch_is_rejected() -> None:
    text_map = TextPositionMap()

    with pytest.raises(ValueError, match="Overlapping"):
        text_map.apply_changes([ChangeRecord(0, 4, ""), ChangeRecord(2, 1, "x")])
