"""
Unit Tests for the allocation policy
Tests for: bed capacity, room status, block/gender matching, allocation status
"""
import pytest

from farmportal.models import AllocationStatus, Gender, RoomStatus
from farmportal.services.allocation_policy import (
    block_matches_gender,
    derive_allocation_status,
    derive_room_status,
    is_occupied_status,
    normalize_block,
    resolve_bed_capacity,
    room_key,
)


class TestResolveBedCapacity:

    @pytest.mark.parametrize("bed_space,expected", [
        ("1", 1),
        ("2", 2),
        ("6", 6),
        ("4 beds", 4),
        ("single", 1),
        ("Double", 2),
        (3, 3),
    ])
    def test_known_labels(self, bed_space, expected):
        assert resolve_bed_capacity(bed_space) == expected

    @pytest.mark.parametrize("bed_space", [None, "", "dormitory", "0", 0, -2])
    def test_unknown_or_non_positive_defaults_to_one(self, bed_space):
        assert resolve_bed_capacity(bed_space) == 1


class TestDeriveRoomStatus:

    def test_single_bed_room(self):
        assert derive_room_status(1, 0) == RoomStatus.AVAILABLE
        assert derive_room_status(1, 1) == RoomStatus.OCCUPIED

    def test_shared_room_fills_up(self):
        assert derive_room_status(2, 0) == RoomStatus.AVAILABLE
        assert derive_room_status(2, 1) == RoomStatus.PARTIALLY_OCCUPIED
        assert derive_room_status(2, 2) == RoomStatus.OCCUPIED

    def test_over_capacity_is_occupied(self):
        assert derive_room_status(4, 5) == RoomStatus.OCCUPIED

    def test_legacy_fully_occupied_counts_as_occupied(self):
        assert is_occupied_status(RoomStatus.FULLY_OCCUPIED)
        assert is_occupied_status(RoomStatus.OCCUPIED)
        assert not is_occupied_status(RoomStatus.PARTIALLY_OCCUPIED)


class TestBlocks:

    @pytest.mark.parametrize("raw", ["A", "a", "BlockA", "Block A", "block-a", " Block_A "])
    def test_normalize_block(self, raw):
        assert normalize_block(raw) == "A"

    def test_normalize_empty(self):
        assert normalize_block(None) == ""
        assert normalize_block("") == ""

    def test_male_blocks(self):
        assert block_matches_gender("BlockA", Gender.MALE)
        assert block_matches_gender("B", "male")
        assert not block_matches_gender("BlockC", Gender.MALE)

    def test_female_blocks(self):
        assert block_matches_gender("Block C", Gender.FEMALE)
        assert block_matches_gender("D", "female")
        assert not block_matches_gender("A", Gender.FEMALE)

    def test_unknown_gender_matches_nothing(self):
        assert not block_matches_gender("A", None)
        assert not block_matches_gender("A", "other")

    def test_room_key_is_exact(self):
        assert room_key("BlockA", "Room-01") == ("BlockA", "Room-01")
        assert room_key("BlockA", "Room-01") != room_key("A", "Room-01")


class TestDeriveAllocationStatus:

    def test_every_combination(self):
        assert derive_allocation_status(True, True) == AllocationStatus.ALLOCATED
        assert derive_allocation_status(True, False) == AllocationStatus.NO_TAGS
        assert derive_allocation_status(False, True) == AllocationStatus.NO_ROOMS
        assert derive_allocation_status(False, False) == AllocationStatus.PENDING
