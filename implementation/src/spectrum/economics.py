"""Generator economics: cost curves, production, milestones and purchases.

Costs grow geometrically per level:
    cost(level) = base_cost * growth_rate ** level / cost_reduction
so a bulk purchase is a geometric series with a closed form, and the
largest affordable amount is its log inverse.

buy() and unlock() are the only functions here that mutate state. Both are
all-or-nothing: a rejected call returns False and leaves currency, level and
unlock flags untouched.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Sequence, Tuple

from spectrum.bignum import ZERO, big_floor, big_math, to_big
from spectrum.config import Balance
from spectrum.types import BuyMode, GameState, Generator

MILESTONES: Tuple[int, ...] = Balance().milestones


def _rate(generator: Generator) -> Decimal:
    return to_big(generator.config.growth_rate)


@big_math
def cost(generator: Generator, level: Optional[int] = None) -> Decimal:
    """Price of the single level bought when owning ``level`` (default: current)."""
    lvl = generator.level if level is None else level
    raw = to_big(generator.config.base_cost) * _rate(generator) ** lvl
    return raw / to_big(generator.cost_reduction)


@big_math
def bulk_cost(generator: Generator, owned: int, amount: int) -> Decimal:
    """Total price of ``amount`` consecutive levels starting at ``owned``."""
    if amount <= 0:
        return ZERO
    if amount == 1:
        return cost(generator, owned)
    r = _rate(generator)
    raw = to_big(generator.config.base_cost) * r ** owned * (r ** amount - 1) / (r - 1)
    return raw / to_big(generator.cost_reduction)


def upgrade_cost(generator: Generator, amount: int = 1) -> Decimal:
    return bulk_cost(generator, generator.level, amount)


@big_math
def max_affordable(currency: Decimal, generator: Generator) -> int:
    """Largest n with bulk_cost(level, n) <= currency.

    Closed form: n = floor(ln(c * (r - 1) * cr / (b * r**k) + 1) / ln(r)).
    The estimate is nudged by at most a step or two so rounding in the logs
    can never report an unaffordable amount.
    """
    currency = to_big(currency)
    owned = generator.level
    if currency < cost(generator, owned):
        return 0
    r = _rate(generator)
    first = to_big(generator.config.base_cost) * r ** owned
    ratio = currency * (r - 1) * to_big(generator.cost_reduction) / first + 1
    n = max(0, int(big_floor(ratio.ln() / r.ln())))
    while n > 0 and bulk_cost(generator, owned, n) > currency:
        n -= 1
    while bulk_cost(generator, owned, n + 1) <= currency:
        n += 1
    return n


def milestone_multiplier(level: int, milestones: Sequence[int] = MILESTONES, factor: int = 2) -> int:
    multiplier = 1
    for milestone in milestones:
        if level >= milestone:
            multiplier *= factor
    return multiplier


def next_milestone(level: int, milestones: Sequence[int] = MILESTONES) -> Optional[int]:
    for milestone in milestones:
        if level < milestone:
            return milestone
    return None


def milestone_progress(level: int, milestones: Sequence[int] = MILESTONES) -> Tuple[float, Optional[int]]:
    """(fraction toward the next milestone, next milestone); (1.0, None) when maxed."""
    upcoming = next_milestone(level, milestones)
    if upcoming is None:
        return 1.0, None
    previous = 0
    for milestone in milestones:
        if milestone <= level:
            previous = milestone
    progress = (level - previous) / (upcoming - previous)
    return min(1.0, max(0.0, progress)), upcoming


@big_math
def production(generator: Generator, milestones: Sequence[int] = MILESTONES) -> Decimal:
    """Currency granted per completed fill cycle."""
    if generator.level == 0:
        return ZERO
    return (
        to_big(generator.config.base_production)
        * generator.level
        * milestone_multiplier(generator.level, milestones)
        * generator.earn_bonus
    )


@big_math
def income_per_second(generator: Generator, milestones: Sequence[int] = MILESTONES) -> Decimal:
    if not generator.producing:
        return ZERO
    return production(generator, milestones) * to_big(1000.0 / generator.effective_fill_time)


@big_math
def unlock(generator: Generator, state: GameState) -> bool:
    if generator.unlocked:
        return False
    price = to_big(generator.config.unlock_cost)
    if state.currency < price:
        return False
    state.currency -= price
    generator.unlocked = True
    return True


@big_math
def buy(generator: Generator, amount: int, state: GameState) -> bool:
    """Buy ``amount`` levels, or as many as affordable for BuyMode.MAX."""
    if not generator.unlocked:
        return False
    if amount == BuyMode.MAX:
        amount = max_affordable(state.currency, generator)
        if amount == 0:
            return False
    if amount <= 0:
        return False
    price = upgrade_cost(generator, amount)
    if state.currency < price:
        return False
    state.currency -= price
    generator.level += amount
    return True


def resolve_buy_amount(
    generator: Generator,
    state: GameState,
    mode: int,
    milestones: Sequence[int] = MILESTONES,
) -> int:
    """Concrete level count for a buy mode; 0 means nothing to buy."""
    if mode == BuyMode.MAX:
        return max_affordable(state.currency, generator)
    if mode == BuyMode.NEXT:
        upcoming = next_milestone(generator.level, milestones)
        if upcoming is None:
            return 0
        return upcoming - generator.level
    return max(0, int(mode))


@dataclass(frozen=True)
class PurchaseQuote:
    amount: int
    cost: Decimal
    affordable: bool


def purchase_quote(
    generator: Generator,
    state: GameState,
    mode: Optional[int] = None,
    milestones: Sequence[int] = MILESTONES,
) -> PurchaseQuote:
    if mode is None:
        mode = state.settings.buy_mode
    amount = resolve_buy_amount(generator, state, mode, milestones)
    price = upgrade_cost(generator, amount)
    affordable = amount > 0 and generator.unlocked and state.currency >= price
    return PurchaseQuote(amount=amount, cost=price, affordable=affordable)


def buy_with_mode(
    generator: Generator,
    state: GameState,
    mode: Optional[int] = None,
    milestones: Sequence[int] = MILESTONES,
) -> bool:
    """Buy using the settings' buy mode (or an explicit one)."""
    if mode is None:
        mode = state.settings.buy_mode
    if mode == BuyMode.MAX:
        return buy(generator, BuyMode.MAX, state)
    amount = resolve_buy_amount(generator, state, mode, milestones)
    if amount == 0:
        return False
    return buy(generator, amount, state)
