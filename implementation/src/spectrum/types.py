from __future__ import annotations

import math
import sys
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum, IntEnum
from typing import Iterable, List, Optional

from spectrum.bignum import ONE, ZERO, to_big
from spectrum.config import Balance, GeneratorConfig


def now_ms() -> int:
    return int(time.time() * 1000)


# Float buffs saturate here instead of overflowing to inf.
MAX_BUFF = sys.float_info.max
MIN_FILL_TIME_MS = 1e-300


def cap_buff(value: float) -> float:
    if math.isnan(value):
        return 1.0
    return min(value, MAX_BUFF)


class BuyMode(IntEnum):
    ONE = 1
    TEN = 10
    MAX = -1
    NEXT = -2  # up to the next milestone


class BonusType(str, Enum):
    EARN = "earn"
    SPEED = "speed"
    COST = "cost"

    @property
    def label(self) -> str:
        return _BONUS_LABELS[self]


_BONUS_LABELS = {
    BonusType.EARN: "Earn",
    BonusType.SPEED: "Speed",
    BonusType.COST: "Cost Reduction",
}

THEMES = ("purple", "green", "pastel", "nostalgia")


@dataclass
class Generator:
    config: GeneratorConfig
    level: int = 0
    fill_progress: float = 0.0
    unlocked: bool = False

    # Prestige buffs: survive run resets, only ever multiplied upward.
    earn_bonus: Decimal = ONE
    speed_bonus: float = 1.0
    cost_reduction: float = 1.0

    @property
    def id(self) -> int:
        return self.config.id

    @property
    def name(self) -> str:
        return self.config.name

    @property
    def effective_fill_time(self) -> float:
        return max(self.config.fill_time / self.speed_bonus, MIN_FILL_TIME_MS)

    @property
    def producing(self) -> bool:
        return self.unlocked and self.level > 0


@dataclass
class PrestigeRecord:
    generator: str
    bonus: str
    amount: str  # e.g. "1.50×"
    timestamp: int


@dataclass
class PrestigeState:
    total_prestiges: int = 0
    current_idle_multiplier: float = 1.0
    selectables_remaining: int = 0
    history: List[PrestigeRecord] = field(default_factory=list)  # most recent first

    @property
    def selectable_pending(self) -> bool:
        return self.selectables_remaining > 0


@dataclass
class GameStats:
    lifetime_earnings: Decimal = ZERO
    income_per_second: Decimal = ZERO
    time_played_ms: float = 0.0


@dataclass
class GlobalState:
    pow: float = 1.0
    idle_power: float = 0.0
    worlds_completed: int = 0


@dataclass
class Timestamps:
    last_save: int = 0
    last_tick: int = 0
    session_start: int = 0
    last_prestige: int = 0

    @classmethod
    def at(cls, now: int) -> "Timestamps":
        return cls(last_save=now, last_tick=now, session_start=now, last_prestige=now)


@dataclass
class GameSettings:
    sound_enabled: bool = True
    buy_mode: int = BuyMode.ONE
    buy_mode_sticky: bool = False
    theme: str = "nostalgia"


@dataclass
class GameState:
    currency: Decimal = ZERO
    generators: List[Generator] = field(default_factory=list)
    prestige: PrestigeState = field(default_factory=PrestigeState)
    stats: GameStats = field(default_factory=GameStats)
    global_: GlobalState = field(default_factory=GlobalState)
    timestamps: Timestamps = field(default_factory=Timestamps)
    settings: GameSettings = field(default_factory=GameSettings)

    def generator(self, generator_id: int) -> Optional[Generator]:
        for gen in self.generators:
            if gen.id == generator_id:
                return gen
        return None

    def unlocked_generators(self) -> List[Generator]:
        return [gen for gen in self.generators if gen.unlocked]


def fresh_generator(config: GeneratorConfig, first: bool = False) -> Generator:
    """Level 0, buffs at identity; the roster's first entry starts unlocked."""
    return Generator(config=config, unlocked=first or config.unlocked)


def new_game(
    roster: Iterable[GeneratorConfig],
    balance: Optional[Balance] = None,
    now: Optional[int] = None,
) -> GameState:
    if balance is None:
        balance = Balance()
    if now is None:
        now = now_ms()
    configs = sorted(roster, key=lambda c: c.id)
    return GameState(
        currency=to_big(balance.starting_currency),
        generators=[fresh_generator(c, first=(i == 0)) for i, c in enumerate(configs)],
        timestamps=Timestamps.at(now),
    )
