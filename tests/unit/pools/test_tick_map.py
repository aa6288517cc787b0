"""Tests for the sparse tick map."""

import pytest

from amm_engine.errors import InvalidPoolStateError, TickOutOfRangeError
from amm_engine.math.tick_math import MAX_TICK, MIN_TICK
from amm_engine.pools.concentrated import Tick, TickMap


@pytest.fixture
def tick_map() -> TickMap:
    """Two overlapping positions: [-600, 600) with 100 and [0, 1200) with 50."""
    return TickMap.from_positions([(-600, 600, 100), (0, 1200, 50)])


class TestTickMapConstruction:
    """Validation of tick deltas."""

    def test_from_positions(self, tick_map):
        assert list(tick_map) == [
            Tick(-600, 100),
            Tick(0, 50),
            Tick(600, -100),
            Tick(1200, -50),
        ]
        assert len(tick_map) == 4

    def test_unsorted_input_is_sorted(self):
        ticks = TickMap([Tick(10, -5), Tick(-10, 5)])
        assert [t.index for t in ticks] == [-10, 10]

    def test_empty(self):
        ticks = TickMap()
        assert len(ticks) == 0
        assert ticks.active_liquidity_at(0) == 0
        assert ticks.next_tick_above(0) is None
        assert ticks.next_tick_below_or_at(0) is None

    def test_cancelling_positions_leave_tick_uninitialized(self):
        ticks = TickMap.from_positions([(-100, 0, 7), (0, 100, 7)])
        assert [t.index for t in ticks] == [-100, 100]

    def test_duplicate_index_rejected(self):
        with pytest.raises(InvalidPoolStateError):
            TickMap([Tick(0, 5), Tick(0, -5)])

    def test_non_zero_sum_rejected(self):
        with pytest.raises(InvalidPoolStateError):
            TickMap([Tick(0, 5), Tick(10, -4)])

    def test_negative_liquidity_rejected(self):
        with pytest.raises(InvalidPoolStateError):
            TickMap([Tick(0, -5), Tick(10, 5)])

    def test_out_of_range_rejected(self):
        with pytest.raises(TickOutOfRangeError):
            TickMap([Tick(MIN_TICK - 1, 5), Tick(0, -5)])
        with pytest.raises(TickOutOfRangeError):
            TickMap.from_positions([(0, MAX_TICK + 1, 5)])

    @pytest.mark.parametrize("position", [(10, 10, 5), (10, 0, 5), (0, 10, 0), (0, 10, -3)])
    def test_invalid_position_rejected(self, position):
        with pytest.raises(InvalidPoolStateError):
            TickMap.from_positions([position])


class TestTickMapLookups:
    """Binary-search lookups."""

    def test_next_tick_below_or_at(self, tick_map):
        assert tick_map.next_tick_below_or_at(0) == Tick(0, 50)
        assert tick_map.next_tick_below_or_at(-1) == Tick(-600, 100)
        assert tick_map.next_tick_below_or_at(5000) == Tick(1200, -50)
        assert tick_map.next_tick_below_or_at(-601) is None

    def test_next_tick_above(self, tick_map):
        assert tick_map.next_tick_above(0) == Tick(600, -100)
        assert tick_map.next_tick_above(-1) == Tick(0, 50)
        assert tick_map.next_tick_above(-10_000) == Tick(-600, 100)
        assert tick_map.next_tick_above(1200) is None

    def test_liquidity_delta(self, tick_map):
        assert tick_map.liquidity_delta(600) == -100
        assert tick_map.liquidity_delta(601) == 0
        assert tick_map.liquidity_delta(-5000) == 0

    @pytest.mark.parametrize(
        ("tick", "expected"),
        [(-601, 0), (-600, 100), (-1, 100), (0, 150), (599, 150), (600, 50), (1199, 50), (1200, 0)],
    )
    def test_active_liquidity_at(self, tick_map, tick, expected):
        assert tick_map.active_liquidity_at(tick) == expected
