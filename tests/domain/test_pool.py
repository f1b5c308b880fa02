"""Tests for LockerPool — capacity administration and occupancy."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from lockerctl.domain.errors import (
    InsufficientCapacity,
    LockerNotOccupied,
    LockerOccupied,
    NoLockerAvailable,
    SystemNotEmpty,
    UnknownLocker,
    UnknownSystem,
    ValidationError,
)
from lockerctl.domain.ids import SequenceCounter
from lockerctl.domain.models import Locker
from lockerctl.domain.pool import LockerPool
from lockerctl.domain.types import LockerStatus, SizeClass


@pytest.fixture
def pool() -> LockerPool:
    return LockerPool(1, SequenceCounter().next)


class TestAddLockers:
    def test_adds_available_lockers(self, pool: LockerPool) -> None:
        created = pool.add_lockers(3, "small")
        assert [lk.id for lk in created] == [1, 2, 3]
        assert all(lk.status is LockerStatus.AVAILABLE for lk in created)
        counts = pool.counts()
        assert counts.small == 3
        assert counts.total == 3
        assert counts.available == 3
        assert counts.occupied == 0

    def test_ids_continue_across_sizes(self, pool: LockerPool) -> None:
        pool.add_lockers(2, SizeClass.SMALL)
        created = pool.add_lockers(2, SizeClass.LARGE)
        assert [lk.id for lk in created] == [3, 4]

    @pytest.mark.parametrize("count", [0, -1])
    def test_rejects_non_positive_count(self, pool: LockerPool, count: int) -> None:
        with pytest.raises(ValidationError):
            pool.add_lockers(count, "small")
        assert len(pool) == 0

    def test_rejects_unknown_size(self, pool: LockerPool) -> None:
        with pytest.raises(ValidationError):
            pool.add_lockers(1, "huge")

    def test_grid_layout(self, pool: LockerPool) -> None:
        created = pool.add_lockers(5, "medium", columns=2)
        positions = [(lk.position.row, lk.position.column) for lk in created if lk.position]
        assert positions == [(1, 1), (1, 2), (2, 1), (2, 2), (3, 1)]

    def test_second_grid_starts_below_first(self, pool: LockerPool) -> None:
        pool.add_lockers(2, "small", columns=2)
        created = pool.add_lockers(2, "large", columns=2)
        assert {lk.position.row for lk in created if lk.position} == {2}


class TestRemoveLockers:
    def test_removes_highest_ids_first(self, pool: LockerPool) -> None:
        pool.add_lockers(4, "small")
        assert pool.remove_lockers(2, "small") == [4, 3]
        assert [lk.id for lk in pool.list_lockers()] == [1, 2]

    def test_all_or_nothing(self, pool: LockerPool) -> None:
        pool.add_lockers(3, "small")
        pool.reserve("small")
        with pytest.raises(InsufficientCapacity) as excinfo:
            pool.remove_lockers(3, "small")
        assert excinfo.value.detail["requested"] == 3
        assert excinfo.value.detail["available"] == 2
        assert pool.counts().small == 3

    def test_never_removes_occupied(self, pool: LockerPool) -> None:
        pool.add_lockers(3, "small")
        occupied = pool.reserve("small")
        removed = pool.remove_lockers(2, "small")
        assert occupied not in removed
        assert pool.get(occupied).status is LockerStatus.OCCUPIED

    def test_only_matching_size(self, pool: LockerPool) -> None:
        pool.add_lockers(2, "small")
        pool.add_lockers(2, "large")
        with pytest.raises(InsufficientCapacity):
            pool.remove_lockers(3, "small")
        pool.remove_lockers(2, "large")
        assert pool.counts().large == 0
        assert pool.counts().small == 2


class TestRemoveSingleLocker:
    def test_removes_available(self, pool: LockerPool) -> None:
        pool.add_lockers(2, "small")
        removed = pool.remove_single_locker(1)
        assert removed.id == 1
        assert 1 not in pool
        assert pool.reserve("small") == 2

    def test_refuses_occupied(self, pool: LockerPool) -> None:
        pool.add_lockers(1, "small")
        locker_id = pool.reserve("small")
        with pytest.raises(LockerOccupied):
            pool.remove_single_locker(locker_id)
        assert locker_id in pool

    def test_unknown(self, pool: LockerPool) -> None:
        with pytest.raises(UnknownLocker):
            pool.remove_single_locker(99)


class TestOccupancy:
    def test_reserve_lowest_id(self, pool: LockerPool) -> None:
        pool.add_lockers(3, "medium")
        assert pool.reserve("medium") == 1
        assert pool.reserve("medium") == 2

    def test_release_makes_locker_reusable(self, pool: LockerPool) -> None:
        pool.add_lockers(2, "medium")
        first = pool.reserve("medium")
        pool.reserve("medium")
        pool.release(first)
        assert pool.reserve("medium") == first

    def test_no_size_substitution(self, pool: LockerPool) -> None:
        pool.add_lockers(2, "large")
        with pytest.raises(NoLockerAvailable):
            pool.reserve("small")

    def test_exhaustion(self, pool: LockerPool) -> None:
        pool.add_lockers(1, "small")
        pool.reserve("small")
        with pytest.raises(NoLockerAvailable):
            pool.reserve("small")

    def test_release_available_locker_fails(self, pool: LockerPool) -> None:
        pool.add_lockers(1, "small")
        with pytest.raises(LockerNotOccupied):
            pool.release(1)

    def test_release_unknown_locker_fails(self, pool: LockerPool) -> None:
        with pytest.raises(LockerNotOccupied):
            pool.release(42)

    def test_counts_stay_consistent(self, pool: LockerPool) -> None:
        pool.add_lockers(3, "small")
        pool.add_lockers(2, "large")
        pool.reserve("small")
        pool.reserve("large")
        counts = pool.counts()
        assert counts.total == counts.small + counts.medium + counts.large == 5
        assert counts.available + counts.occupied == counts.total
        assert counts.available_by_size == {"small": 2, "medium": 0, "large": 1}

    def test_concurrent_reservations_are_distinct(self, pool: LockerPool) -> None:
        pool.add_lockers(50, "small")

        def attempt(_: int) -> int | None:
            try:
                return pool.reserve("small")
            except NoLockerAvailable:
                return None

        with ThreadPoolExecutor(max_workers=8) as executor:
            results = list(executor.map(attempt, range(60)))

        won = [r for r in results if r is not None]
        assert len(won) == 50
        assert len(set(won)) == 50
        assert pool.counts().available == 0


class TestFilters:
    def test_list_by_size_and_status(self, pool: LockerPool) -> None:
        pool.add_lockers(2, "small")
        pool.add_lockers(2, "large")
        pool.reserve("large")
        available_large = pool.list_lockers(size_class="large", status=LockerStatus.AVAILABLE)
        assert [lk.id for lk in available_large] == [4]


class TestRestoreAndRetire:
    def test_restore_keeps_status(self, pool: LockerPool) -> None:
        pool.restore(
            Locker(id=7, system_id=1, size_class=SizeClass.SMALL, status=LockerStatus.OCCUPIED)
        )
        counts = pool.counts()
        assert counts.occupied == 1
        assert counts.available == 0

    def test_restore_wrong_system(self, pool: LockerPool) -> None:
        with pytest.raises(ValidationError):
            pool.restore(Locker(id=7, system_id=2, size_class=SizeClass.SMALL))

    def test_restore_duplicate(self, pool: LockerPool) -> None:
        pool.add_lockers(1, "small")
        with pytest.raises(ValidationError):
            pool.restore(Locker(id=1, system_id=1, size_class=SizeClass.SMALL))

    def test_retire_requires_empty_pool(self, pool: LockerPool) -> None:
        pool.add_lockers(1, "small")
        with pytest.raises(SystemNotEmpty):
            pool.retire()

    def test_retired_pool_rejects_work(self, pool: LockerPool) -> None:
        pool.retire()
        with pytest.raises(UnknownSystem):
            pool.add_lockers(1, "small")
        with pytest.raises(UnknownSystem):
            pool.reserve("small")
