"""Per-frame simulation: fill cycles, production payout and income snapshot.

This is the only place currency grows. Buying, unlocking and prestige only
spend or reset it.
"""
from __future__ import annotations

import math
from decimal import Decimal
from typing import Iterable, Optional

from spectrum.bignum import ZERO, big_math
from spectrum.config import Balance
from spectrum.economics import MILESTONES, income_per_second, production
from spectrum.idle import update_idle_multiplier
from spectrum.types import GameState, Generator, now_ms


@big_math
def update_generators(
    generators: Iterable[Generator],
    delta_ms: float,
    state: GameState,
    milestones=MILESTONES,
) -> Decimal:
    """Advance fill cycles by ``delta_ms`` and pay out completed cycles.

    Fractional progress carries into the next cycle. Returns the currency
    earned during this call.
    """
    generators = list(generators)
    earned = ZERO
    for gen in generators:
        if not gen.producing:
            continue
        gen.fill_progress += delta_ms / gen.effective_fill_time
        if gen.fill_progress >= 1.0:
            cycles = math.floor(gen.fill_progress)
            gen.fill_progress -= cycles
            payout = production(gen, milestones) * cycles
            earned += payout

    if earned > 0:
        state.currency += earned
        state.stats.lifetime_earnings += earned

    # Steady-state rate for display, whether or not a cycle completed.
    state.stats.income_per_second = sum(
        (income_per_second(gen, milestones) for gen in generators), ZERO
    )
    return earned


def advance(
    state: GameState,
    delta_ms: float,
    balance: Balance,
    now: Optional[int] = None,
) -> Decimal:
    """One frame: tick generators, refresh the idle multiplier, book time played.

    Frames longer than ``balance.max_tick_ms`` are clamped; long absences are
    credited through the idle multiplier instead.
    """
    if now is None:
        now = now_ms()
    delta_ms = min(max(0.0, delta_ms), balance.max_tick_ms)
    earned = update_generators(state.generators, delta_ms, state, balance.milestones)
    update_idle_multiplier(state, balance, now)
    state.stats.time_played_ms += delta_ms
    state.timestamps.last_tick = now
    return earned
