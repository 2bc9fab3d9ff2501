"""Read-only snapshots for the presentation layer.

Everything here is recomputed from GameState on each call; nothing is
cached.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import List, Optional, Tuple

from spectrum.config import Balance
from spectrum.economics import PurchaseQuote, milestone_multiplier, milestone_progress, production, purchase_quote
from spectrum.prestige import prestige_value
from spectrum.types import GameState, Generator, PrestigeRecord


@dataclass(frozen=True)
class GeneratorView:
    id: int
    name: str
    color: str
    level: int
    unlocked: bool
    unlock_cost: float
    production: Decimal
    next_cost: Decimal
    milestone_multiplier: int
    milestone_progress: float
    next_milestone: Optional[int]
    fill_progress: float
    earn_bonus: Decimal
    speed_bonus: float
    cost_reduction: float
    quote: PurchaseQuote

    @property
    def maxed(self) -> bool:
        return self.next_milestone is None


@dataclass(frozen=True)
class GameView:
    currency: Decimal
    income_per_second: Decimal
    lifetime_earnings: Decimal
    time_played_ms: float
    prestige_value: Decimal
    idle_multiplier: float
    selectables_remaining: int
    total_prestiges: int
    history: Tuple[PrestigeRecord, ...]
    generators: Tuple[GeneratorView, ...]


def generator_view(gen: Generator, state: GameState, balance: Balance) -> GeneratorView:
    progress, upcoming = milestone_progress(gen.level, balance.milestones)
    return GeneratorView(
        id=gen.id,
        name=gen.name,
        color=gen.config.color,
        level=gen.level,
        unlocked=gen.unlocked,
        unlock_cost=gen.config.unlock_cost,
        production=production(gen, balance.milestones),
        next_cost=purchase_quote(gen, state, 1, balance.milestones).cost,
        milestone_multiplier=milestone_multiplier(gen.level, balance.milestones),
        milestone_progress=progress,
        next_milestone=upcoming,
        fill_progress=min(1.0, gen.fill_progress),
        earn_bonus=gen.earn_bonus,
        speed_bonus=gen.speed_bonus,
        cost_reduction=gen.cost_reduction,
        quote=purchase_quote(gen, state, None, balance.milestones),
    )


def game_view(state: GameState, balance: Balance) -> GameView:
    views: List[GeneratorView] = [generator_view(g, state, balance) for g in state.generators]
    return GameView(
        currency=state.currency,
        income_per_second=state.stats.income_per_second,
        lifetime_earnings=state.stats.lifetime_earnings,
        time_played_ms=state.stats.time_played_ms,
        prestige_value=prestige_value(state, balance),
        idle_multiplier=state.prestige.current_idle_multiplier,
        selectables_remaining=state.prestige.selectables_remaining,
        total_prestiges=state.prestige.total_prestiges,
        history=tuple(state.prestige.history),
        generators=tuple(views),
    )
