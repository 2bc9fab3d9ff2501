"""Tests for the prestige engine."""
import random
import sys
from decimal import Decimal

import pytest

from conftest import NOW
from spectrum.config import Balance
from spectrum.economics import cost, purchase_quote
from spectrum.prestige import (
    apply_bonus,
    apply_prestige,
    bonus_magnitude,
    grant_selectables,
    prestige_value,
    roll_bonus_type,
)
from spectrum.simulation import advance
from spectrum.types import BonusType, PrestigeRecord


def test_prestige_value_from_lifetime_earnings(state, balance):
    state.stats.lifetime_earnings = Decimal(100_000_000)
    assert prestige_value(state, balance) == 10
    state.prestige.current_idle_multiplier = 1.55
    assert prestige_value(state, balance) == 15


def test_prestige_value_below_divisor_is_zero(state, balance):
    state.stats.lifetime_earnings = Decimal(9_999_999)
    assert prestige_value(state, balance) == 0


def test_prestige_value_with_pow(state, balance):
    state.stats.lifetime_earnings = Decimal(100_000_000)
    state.global_.pow = 2.0
    # 10 ** 2 + (2 - 1) * 20
    assert prestige_value(state, balance) == 120


def test_prestige_value_with_pow_and_nothing_earned(state, balance):
    state.global_.pow = 1.5
    assert prestige_value(state, balance) == 0


def test_bonus_magnitude():
    assert bonus_magnitude(Decimal(50)) == Decimal("1.5")


def test_bonus_weights_follow_configuration():
    rng = random.Random(1234)
    balance = Balance()
    draws = [roll_bonus_type(rng, balance) for _ in range(20_000)]
    earn = draws.count(BonusType.EARN) / len(draws)
    speed = draws.count(BonusType.SPEED) / len(draws)
    assert earn == pytest.approx(0.4, abs=0.02)
    assert speed == pytest.approx(0.3, abs=0.02)


def test_speed_bonus_compounds(state):
    gen = state.generators[0]
    apply_bonus(gen, BonusType.SPEED, Decimal("1.5"))
    apply_bonus(gen, BonusType.SPEED, Decimal("1.5"))
    assert gen.speed_bonus == pytest.approx(2.25)


def test_prestige_refused_without_value(state, balance):
    state.currency = Decimal(500)
    result = apply_prestige(state, balance=balance, now=NOW)
    assert result.success is False
    assert state.currency == 500
    assert state.prestige.total_prestiges == 0


def test_random_prestige_resets_run_and_keeps_buffs(state, balance):
    state.stats.lifetime_earnings = Decimal(5_000_000_000)  # value 500
    state.currency = Decimal(123456)
    for gen in state.generators[:3]:
        gen.unlocked = True
        gen.level = 40
        gen.fill_progress = 0.5
    state.prestige.current_idle_multiplier = 1.0

    result = apply_prestige(state, balance=balance, rng=random.Random(7), now=NOW + 5)

    assert result.success is True
    assert result.value == 500
    assert result.magnitude == 6
    assert result.generator_id in {1, 2, 3}
    target = state.generator(result.generator_id)
    if result.bonus is BonusType.EARN:
        assert target.earn_bonus == 6
    elif result.bonus is BonusType.SPEED:
        assert target.speed_bonus == pytest.approx(6.0)
    else:
        assert target.cost_reduction == pytest.approx(6.0)

    assert state.currency == Decimal(10)
    assert all(g.level == 0 and g.fill_progress == 0 for g in state.generators)
    assert state.generators[0].unlocked is True
    assert not any(g.unlocked for g in state.generators[1:])
    assert state.stats.lifetime_earnings == 0
    assert state.prestige.total_prestiges == 1
    assert state.prestige.current_idle_multiplier == 1.0
    assert state.timestamps.last_prestige == NOW + 5
    assert state.prestige.history[0] == result.record
    assert result.record.amount == "6.00×"


def test_random_prestige_only_targets_unlocked(state, balance):
    state.stats.lifetime_earnings = Decimal(100_000_000)
    for _ in range(10):
        result = apply_prestige(state, balance=balance, rng=random.Random(), now=NOW)
        assert result.generator_id == 1
        state.stats.lifetime_earnings = Decimal(100_000_000)


def test_random_prestige_with_nothing_unlocked(state, balance):
    state.stats.lifetime_earnings = Decimal(100_000_000)
    for gen in state.generators:
        gen.unlocked = False
    result = apply_prestige(state, balance=balance, now=NOW)
    assert result.success is False
    assert state.prestige.total_prestiges == 0


def test_selectable_prestige_requires_choice(state, balance):
    state.stats.lifetime_earnings = Decimal(100_000_000)
    grant_selectables(state, 2)
    assert apply_prestige(state, balance=balance, now=NOW).success is False
    assert apply_prestige(state, 4, None, balance=balance, now=NOW).success is False
    assert apply_prestige(state, 999, BonusType.EARN, balance=balance, now=NOW).success is False
    assert state.prestige.selectables_remaining == 2
    assert state.prestige.total_prestiges == 0


def test_selectable_prestige_applies_chosen_buff(state, balance):
    state.stats.lifetime_earnings = Decimal(100_000_000)
    grant_selectables(state, 1)
    result = apply_prestige(state, 4, "cost", balance=balance, now=NOW)
    assert result.success is True
    assert state.generator(4).cost_reduction == pytest.approx(1.1)
    assert state.prestige.selectables_remaining == 0
    assert state.prestige.history[0].bonus == "Cost Reduction"
    assert state.prestige.history[0].generator == "Yellow"


def test_selectable_locked_target_follows_balance(state):
    balance = Balance(allow_locked_targets=False)
    state.stats.lifetime_earnings = Decimal(100_000_000)
    grant_selectables(state, 1)
    assert apply_prestige(state, 4, BonusType.EARN, balance=balance, now=NOW).success is False
    assert apply_prestige(state, 1, BonusType.EARN, balance=balance, now=NOW).success is True


def test_history_is_capped_most_recent_first(state, balance):
    state.prestige.history = [
        PrestigeRecord(generator="Red", bonus="Earn", amount="1.10×", timestamp=i) for i in range(10)
    ]
    state.stats.lifetime_earnings = Decimal(100_000_000)
    result = apply_prestige(state, balance=balance, rng=random.Random(3), now=NOW)
    assert len(state.prestige.history) == 10
    assert state.prestige.history[0] is result.record
    assert state.prestige.history[-1].timestamp == 8


def test_keep_unlocks_when_relock_disabled(state):
    balance = Balance(relock_on_prestige=False, starting_currency=0)
    state.stats.lifetime_earnings = Decimal(100_000_000)
    state.generators[1].unlocked = True
    apply_prestige(state, balance=balance, rng=random.Random(1), now=NOW)
    assert state.generators[1].unlocked is True
    assert state.currency == 0


def test_huge_buffs_saturate_instead_of_overflowing(state):
    gen = state.generators[0]
    apply_bonus(gen, BonusType.SPEED, Decimal("1e320"))
    apply_bonus(gen, BonusType.COST, Decimal("1e320"))
    apply_bonus(gen, BonusType.SPEED, Decimal("1e320"))
    assert gen.speed_bonus == sys.float_info.max
    assert gen.cost_reduction == sys.float_info.max
    assert gen.effective_fill_time > 0


def test_game_keeps_running_after_late_game_prestiges(state, balance):
    grant_selectables(state, 2)
    state.stats.lifetime_earnings = Decimal("1e320")
    assert apply_prestige(state, 1, BonusType.SPEED, balance=balance, now=NOW).success is True
    state.stats.lifetime_earnings = Decimal("1e320")
    assert apply_prestige(state, 1, BonusType.COST, balance=balance, now=NOW).success is True

    gen = state.generators[0]
    gen.level = 5
    advance(state, 16, balance, now=NOW + 16)
    assert state.currency > 10
    assert state.stats.income_per_second > 0
    assert 0 < cost(gen) < 1
    assert purchase_quote(gen, state).affordable is True
