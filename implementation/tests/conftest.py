from __future__ import annotations

import pytest

from spectrum.config import Balance, GeneratorConfig, load_roster
from spectrum.types import GameState, Generator, new_game

NOW = 1_700_000_000_000


def make_config(**overrides) -> GeneratorConfig:
    values = dict(
        id=1,
        name="Red",
        color="#EF4444",
        base_cost=10.0,
        growth_rate=1.07,
        base_production=1.0,
        fill_time=1000.0,
        unlock_cost=0.0,
        unlocked=True,
    )
    values.update(overrides)
    return GeneratorConfig(**values)


def make_generator(config: GeneratorConfig | None = None, **overrides) -> Generator:
    gen = Generator(config=config or make_config(), unlocked=True)
    for key, value in overrides.items():
        setattr(gen, key, value)
    return gen


@pytest.fixture
def roster():
    return load_roster()


@pytest.fixture
def balance():
    return Balance()


@pytest.fixture
def state(roster, balance) -> GameState:
    return new_game(roster, balance, now=NOW)
