"""Tests for idle/offline accrual."""
import pytest

from conftest import NOW
from spectrum.config import Balance
from spectrum.idle import MS_PER_HOUR, apply_offline_progress, idle_multiplier, update_idle_multiplier
from spectrum.types import GameState


def test_flat_rate_reaches_double_at_cap():
    assert idle_multiplier(0) == 1.0
    assert idle_multiplier(6 * MS_PER_HOUR) == pytest.approx(1.25)
    assert idle_multiplier(24 * MS_PER_HOUR) == pytest.approx(2.0)
    assert idle_multiplier(100 * MS_PER_HOUR) == pytest.approx(2.0)


def test_power_rate_scales_with_idle_power():
    balance = Balance(idle_rate_mode="power")
    assert idle_multiplier(2 * MS_PER_HOUR, 0.0, balance) == pytest.approx(2.0)
    assert idle_multiplier(2 * MS_PER_HOUR, 1.0, balance) == pytest.approx(2.6)
    assert idle_multiplier(48 * MS_PER_HOUR, 0.0, balance) == pytest.approx(13.0)


def test_negative_elapsed_is_treated_as_zero():
    assert idle_multiplier(-5000) == 1.0


def test_update_overwrites_instead_of_accumulating():
    state = GameState()
    state.timestamps.last_prestige = NOW - 12 * MS_PER_HOUR
    update_idle_multiplier(state, Balance(), now=NOW)
    update_idle_multiplier(state, Balance(), now=NOW)
    assert state.prestige.current_idle_multiplier == pytest.approx(1.5)


def test_offline_gap_below_threshold_keeps_saved_multiplier():
    state = GameState()
    state.prestige.current_idle_multiplier = 1.7
    assert apply_offline_progress(state, NOW - 1000, Balance(), now=NOW) is False
    assert state.prestige.current_idle_multiplier == 1.7


def test_offline_gap_sets_multiplier():
    state = GameState()
    assert apply_offline_progress(state, NOW - 3 * MS_PER_HOUR, Balance(), now=NOW) is True
    assert state.prestige.current_idle_multiplier == pytest.approx(1.125)
