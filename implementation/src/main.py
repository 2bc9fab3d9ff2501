"""Headless driver: runs the game loop in a terminal and prints a status line.

Usage: python main.py [seconds]

Buys with the current buy mode whenever the cheapest generator is
affordable, so a run shows progress without a UI. The save lives next to
this file.
"""
from __future__ import annotations

import asyncio
import sys
from pathlib import Path

from spectrum.bignum import format_number
from spectrum.session import GameSession
from spectrum.storage import FileStore
from spectrum.types import GameState
from spectrum.views import game_view

STATUS_INTERVAL_MS = 5000


def _autoplay(session: GameSession) -> None:
    state = session.state
    for gen in state.generators:
        if not gen.unlocked and state.currency >= gen.config.unlock_cost:
            session.unlock(gen.id)
    for gen in sorted(state.unlocked_generators(), key=lambda g: g.config.base_cost):
        session.buy(gen.id)


def _status_line(session: GameSession) -> str:
    view = game_view(session.state, session.balance)
    owned = sum(1 for g in view.generators if g.level > 0)
    return (
        f"currency {format_number(view.currency)} | "
        f"{format_number(view.income_per_second)}/s | "
        f"generators {owned}/{len(view.generators)} | "
        f"prestige {format_number(view.prestige_value)} "
        f"(idle x{view.idle_multiplier:.2f})"
    )


async def main(duration_s: float | None = None) -> None:
    store = FileStore(Path(__file__).resolve().parent / "saves")
    session = GameSession(store)
    if session.load():
        print("[session] Save loaded")
    else:
        print("[session] New game")

    started = session.clock()
    last_status = started

    def on_change(event: str, state: GameState) -> None:
        nonlocal last_status
        if event != "tick":
            return
        _autoplay(session)
        now = session.clock()
        if now - last_status >= STATUS_INTERVAL_MS:
            last_status = now
            print(_status_line(session))

    session.subscribe(on_change)

    def should_stop() -> bool:
        if duration_s is None:
            return False
        return session.clock() - started >= duration_s * 1000

    try:
        await session.run(should_stop=should_stop)
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    print(_status_line(session))


if __name__ == "__main__":
    seconds = float(sys.argv[1]) if len(sys.argv) > 1 else None
    try:
        asyncio.run(main(seconds))
    except KeyboardInterrupt:
        pass
