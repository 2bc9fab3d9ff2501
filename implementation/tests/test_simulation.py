"""Tests for the frame tick."""
from decimal import Decimal

import pytest

from conftest import NOW, make_config, make_generator
from spectrum.config import Balance
from spectrum.economics import production
from spectrum.simulation import advance, update_generators
from spectrum.types import GameState


def test_tick_of_one_fill_time_completes_one_cycle():
    gen = make_generator(level=3)
    state = GameState(generators=[gen])
    earned = update_generators(state.generators, 1000, state)
    assert earned == production(gen)
    assert state.currency == production(gen)
    assert state.stats.lifetime_earnings == production(gen)
    assert gen.fill_progress == pytest.approx(0.0)


def test_partial_progress_carries_over():
    gen = make_generator(level=1)
    state = GameState(generators=[gen])
    update_generators(state.generators, 600, state)
    assert state.currency == 0
    assert gen.fill_progress == pytest.approx(0.6)
    update_generators(state.generators, 600, state)
    assert state.currency == production(gen)
    assert gen.fill_progress == pytest.approx(0.2)


def test_multiple_cycles_in_one_tick():
    gen = make_generator(level=2, speed_bonus=4.0)
    state = GameState(generators=[gen])
    update_generators(state.generators, 900, state)
    # 900 ms at 250 ms per cycle
    assert state.currency == production(gen) * 3
    assert gen.fill_progress == pytest.approx(0.6)


def test_locked_and_empty_generators_do_nothing():
    locked = make_generator(level=5)
    locked.unlocked = False
    empty = make_generator(make_config(id=2), level=0)
    state = GameState(generators=[locked, empty])
    update_generators(state.generators, 5000, state)
    assert state.currency == 0
    assert locked.fill_progress == 0
    assert empty.fill_progress == 0
    assert state.stats.income_per_second == 0


def test_income_per_second_is_steady_state_rate():
    fast = make_generator(level=10)
    slow = make_generator(make_config(id=2, base_production=10.0, fill_time=2000.0), level=1)
    state = GameState(generators=[fast, slow])
    update_generators(state.generators, 10, state)
    expected = production(fast) * 1 + production(slow) * Decimal("0.5")
    assert float(state.stats.income_per_second) == pytest.approx(float(expected))


def test_advance_caps_long_frames():
    gen = make_generator(level=1)
    state = GameState(generators=[gen])
    state.timestamps.last_prestige = NOW
    advance(state, 60_000, Balance(), now=NOW)
    assert state.currency == production(gen)
    assert state.stats.time_played_ms == 1000
    assert state.timestamps.last_tick == NOW


def test_advance_refreshes_idle_multiplier():
    state = GameState(generators=[make_generator(level=1)])
    state.timestamps.last_prestige = NOW - 12 * 3600 * 1000
    advance(state, 16, Balance(), now=NOW)
    assert state.prestige.current_idle_multiplier == pytest.approx(1.5)
