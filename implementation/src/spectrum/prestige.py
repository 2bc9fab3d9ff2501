"""Prestige: trade a run's lifetime earnings for a permanent generator buff.

Prestige value:
    base  = floor(lifetime_earnings / prestige_divisor) * idle_multiplier
    value = floor(base)                              when pow <= 1
    value = floor(base ** pow + (pow - 1) * 20)      when pow > 1 (0 if base <= 0)

The buff magnitude is ``1 + value / 100`` and multiplies one of the target
generator's earn bonus, speed bonus or cost reduction, so repeated buffs
compound.

Two run states: normal (random target and random bonus type) and
selectable-pending (``selectables_remaining > 0``; the caller picks both).
Applying a selectable prestige consumes one selectable.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from spectrum.bignum import ZERO, big_floor, big_math, to_big
from spectrum.config import Balance
from spectrum.types import BonusType, GameState, Generator, PrestigeRecord, cap_buff, now_ms


@dataclass(frozen=True)
class PrestigeResult:
    success: bool
    value: Decimal = ZERO
    generator_id: Optional[int] = None
    bonus: Optional[BonusType] = None
    magnitude: Decimal = ZERO
    record: Optional[PrestigeRecord] = None
    reason: str = ""


@big_math
def prestige_value(state: GameState, balance: Optional[Balance] = None) -> Decimal:
    if balance is None:
        balance = Balance()
    base = big_floor(state.stats.lifetime_earnings / to_big(balance.prestige_divisor))
    scaled = base * to_big(state.prestige.current_idle_multiplier)
    pow_ = state.global_.pow
    if pow_ > 1.0:
        if scaled <= 0:
            return ZERO
        powered = scaled ** to_big(pow_) + to_big((pow_ - 1.0) * balance.pow_bonus_per_step)
        return big_floor(powered)
    return max(ZERO, big_floor(scaled))


@big_math
def bonus_magnitude(value: Decimal, balance: Optional[Balance] = None) -> Decimal:
    if balance is None:
        balance = Balance()
    return 1 + to_big(value) / to_big(balance.bonus_divisor)


def roll_bonus_type(rng: random.Random, balance: Balance) -> BonusType:
    """Weighted draw; defaults are 40% earn, 30% speed, 30% cost."""
    types = [BonusType(name) for name in balance.bonus_weights]
    weights = [balance.bonus_weights[t.value] for t in types]
    return rng.choices(types, weights=weights, k=1)[0]


@big_math
def apply_bonus(generator: Generator, bonus: BonusType, magnitude: Decimal) -> None:
    if bonus is BonusType.EARN:
        generator.earn_bonus = generator.earn_bonus * magnitude
    elif bonus is BonusType.SPEED:
        generator.speed_bonus = cap_buff(generator.speed_bonus * float(magnitude))
    else:
        generator.cost_reduction = cap_buff(generator.cost_reduction * float(magnitude))


def _eligible(generator: Generator, balance: Balance) -> bool:
    return generator.unlocked or balance.allow_locked_targets


def apply_prestige(
    state: GameState,
    target_id: Optional[int] = None,
    bonus: Union[BonusType, str, None] = None,
    balance: Optional[Balance] = None,
    rng: Optional[random.Random] = None,
    now: Optional[int] = None,
) -> PrestigeResult:
    """Apply a prestige buff and reset the run.

    Rejections (nothing to gain, missing or unknown target, no unlocked
    generator for a random roll) leave the state untouched.
    """
    if balance is None:
        balance = Balance()
    if rng is None:
        rng = random.Random()
    if now is None:
        now = now_ms()

    value = prestige_value(state, balance)
    if value <= 0:
        return PrestigeResult(False, reason="no prestige value")

    selectable = state.prestige.selectable_pending
    if selectable:
        if target_id is None or bonus is None:
            return PrestigeResult(False, value, reason="target and bonus required")
        try:
            bonus = BonusType(bonus)
        except ValueError:
            return PrestigeResult(False, value, reason=f"unknown bonus {bonus!r}")
        target = state.generator(target_id)
        if target is None or not _eligible(target, balance):
            return PrestigeResult(False, value, reason=f"invalid target {target_id!r}")
    else:
        candidates = state.unlocked_generators()
        if not candidates:
            return PrestigeResult(False, value, reason="no unlocked generators")
        target = rng.choice(candidates)
        bonus = roll_bonus_type(rng, balance)

    magnitude = bonus_magnitude(value, balance)
    apply_bonus(target, bonus, magnitude)

    record = PrestigeRecord(
        generator=target.name,
        bonus=bonus.label,
        amount=f"{magnitude:.2f}×",
        timestamp=now,
    )
    history = state.prestige.history
    history.insert(0, record)
    del history[balance.history_capacity:]

    _reset_run(state, balance)
    state.prestige.total_prestiges += 1
    state.prestige.current_idle_multiplier = 1.0
    state.timestamps.last_prestige = now
    if selectable:
        state.prestige.selectables_remaining -= 1

    return PrestigeResult(
        True,
        value,
        generator_id=target.id,
        bonus=bonus,
        magnitude=magnitude,
        record=record,
    )


def _reset_run(state: GameState, balance: Balance) -> None:
    """Zero run progress. Buffs are kept."""
    state.currency = to_big(balance.starting_currency)
    for index, gen in enumerate(state.generators):
        gen.level = 0
        gen.fill_progress = 0.0
        if balance.relock_on_prestige:
            gen.unlocked = index == 0
    if balance.reset_lifetime_on_prestige:
        state.stats.lifetime_earnings = ZERO


def grant_selectables(state: GameState, count: int = 1) -> int:
    if count > 0:
        state.prestige.selectables_remaining += count
    return state.prestige.selectables_remaining
