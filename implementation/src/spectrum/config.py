"""Static game configuration: generator roster and balance constants.

The roster ships as ``generator_data.json`` next to this module. Balance
constants default to the values below and can be overridden from a JSON
file with the same field names.
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class GeneratorConfig:
    id: int
    name: str
    color: str
    base_cost: float
    growth_rate: float
    base_production: float
    fill_time: float  # ms per cycle at 1.0x speed
    unlock_cost: float
    unlocked: bool = False


# Used when the roster file is missing; the game is still playable with one generator.
FALLBACK_ROSTER = (
    GeneratorConfig(
        id=1,
        name="Red",
        color="#EF4444",
        base_cost=10.0,
        growth_rate=1.07,
        base_production=1.0,
        fill_time=1000.0,
        unlock_cost=0.0,
        unlocked=True,
    ),
)


def default_roster_path() -> Path:
    return Path(__file__).resolve().parent / "generator_data.json"


def load_roster(path: Optional[Path] = None) -> List[GeneratorConfig]:
    """Read the generator roster, sorted by id.

    Keys use the camelCase names of the data file (``baseCost``,
    ``fillTime`` ...).
    """
    if path is None:
        path = default_roster_path()
    if not path.exists():
        print(f"[config] Roster file {path} not found, using fallback roster")
        return list(FALLBACK_ROSTER)
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        roster = [
            GeneratorConfig(
                id=int(entry["id"]),
                name=entry["name"],
                color=entry.get("color", "#FFFFFF"),
                base_cost=float(entry["baseCost"]),
                growth_rate=float(entry["growthRate"]),
                base_production=float(entry["baseProduction"]),
                fill_time=float(entry["fillTime"]),
                unlock_cost=float(entry.get("unlockCost", 0.0)),
                unlocked=bool(entry.get("unlocked", False)),
            )
            for entry in raw.get("generators", [])
        ]
    except (OSError, json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
        print(f"[config] Error reading roster {path}: {e}")
        return list(FALLBACK_ROSTER)
    if not roster:
        return list(FALLBACK_ROSTER)
    return sorted(roster, key=lambda g: g.id)


@dataclass
class Balance:
    milestones: Tuple[int, ...] = (25, 50, 100, 200, 400)

    # 1 prestige point per 10M lifetime currency
    prestige_divisor: float = 10_000_000
    pow_bonus_per_step: float = 20.0
    bonus_divisor: float = 100.0
    bonus_weights: Dict[str, float] = field(
        default_factory=lambda: {"earn": 0.4, "speed": 0.3, "cost": 0.3}
    )
    history_capacity: int = 10

    # Run reset
    starting_currency: float = 10.0
    relock_on_prestige: bool = True
    reset_lifetime_on_prestige: bool = True
    allow_locked_targets: bool = True

    # Idle accrual: "flat" grows by idle_flat_rate per hour, "power" by
    # idle_base_rate + idlePower * idle_power_rate per hour.
    idle_rate_mode: str = "flat"
    idle_flat_rate: float = 1.0 / 24.0
    idle_base_rate: float = 0.5
    idle_power_rate: float = 0.3
    idle_cap_hours: float = 24.0
    offline_threshold_ms: int = 36_000

    max_tick_ms: float = 1000.0
    autosave_interval_ms: int = 10_000

    save_key: str = "idleGameSave"
    save_version: str = "1.0.0"

    def __post_init__(self) -> None:
        self.milestones = tuple(sorted(int(m) for m in self.milestones))


def load_balance(path: Optional[Path] = None) -> Balance:
    if path is None or not path.exists():
        return Balance()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        print(f"[config] Error reading balance {path}: {e}")
        return Balance()
    known = {f.name for f in fields(Balance)}
    unknown = set(data) - known
    if unknown:
        print(f"[config] Ignoring unknown balance keys: {sorted(unknown)}")
    try:
        return Balance(**{k: v for k, v in data.items() if k in known})
    except (TypeError, ValueError) as e:
        print(f"[config] Invalid balance values in {path}: {e}")
        return Balance()
