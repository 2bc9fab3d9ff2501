"""A running game: owns the state, the store and the frame loop.

The presentation layer keeps a reference to a GameSession, calls ``step``
once per frame (or awaits ``run``), issues player actions through the
session, and subscribes to change notifications instead of watching the
state object.
"""
from __future__ import annotations

import asyncio
import random
from typing import Callable, List, Optional, Sequence

from spectrum import economics
from spectrum.config import Balance, GeneratorConfig, load_roster
from spectrum.prestige import PrestigeResult, apply_prestige
from spectrum.save import clear_save, load_game, save_game
from spectrum.simulation import advance
from spectrum.storage import KeyValueStore
from spectrum.types import BonusType, BuyMode, GameState, new_game, now_ms

Listener = Callable[[str, GameState], None]


class GameSession:
    def __init__(
        self,
        store: KeyValueStore,
        roster: Optional[Sequence[GeneratorConfig]] = None,
        balance: Optional[Balance] = None,
        clock: Callable[[], int] = now_ms,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.store = store
        self.roster = list(roster) if roster is not None else load_roster()
        self.balance = balance if balance is not None else Balance()
        self.clock = clock
        self.rng = rng if rng is not None else random.Random()
        self.state: GameState = new_game(self.roster, self.balance, self.clock())
        self.loaded = False
        self._listeners: List[Listener] = []
        self._last_frame: Optional[int] = None
        self._last_autosave = self.clock()

    # ── Notifications ────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event, self.state)

    # ── Lifecycle ────────────────────────────────────────────────────

    def load(self) -> bool:
        """Replace the state with the saved game, if there is one."""
        now = self.clock()
        result = load_game(self.store, self.roster, self.balance, now)
        if result.success and result.state is not None:
            self.state = result.state
            self.loaded = True
        else:
            self.state = new_game(self.roster, self.balance, now)
            self.loaded = False
        self._last_frame = None
        self._last_autosave = now
        self._notify("load")
        return self.loaded

    def save(self) -> bool:
        result = save_game(self.state, self.store, self.balance, self.clock())
        if result.success:
            self._notify("save")
        return result.success

    def restart(self) -> None:
        """Discard everything, buffs included, and delete the save."""
        clear_save(self.store, self.balance)
        self.state = new_game(self.roster, self.balance, self.clock())
        self._last_frame = None
        self._notify("restart")

    def close(self) -> bool:
        """Final save before teardown."""
        return self.save()

    # ── Frame loop ───────────────────────────────────────────────────

    def step(self, delta_ms: Optional[float] = None) -> None:
        """Advance one frame; with no delta, measure it from the clock."""
        now = self.clock()
        if delta_ms is None:
            delta_ms = 0.0 if self._last_frame is None else now - self._last_frame
        self._last_frame = now
        advance(self.state, delta_ms, self.balance, now)
        self._notify("tick")
        if now - self._last_autosave >= self.balance.autosave_interval_ms:
            self._last_autosave = now
            if not self.save():
                print("[session] Auto-save failed")

    async def run(self, frame_ms: float = 16.0, should_stop: Optional[Callable[[], bool]] = None) -> None:
        try:
            while should_stop is None or not should_stop():
                self.step()
                await asyncio.sleep(frame_ms / 1000.0)
        finally:
            self.close()

    # ── Player actions ───────────────────────────────────────────────

    def buy(self, generator_id: int, amount: Optional[int] = None) -> bool:
        gen = self.state.generator(generator_id)
        if gen is None:
            return False
        if amount is None:
            ok = economics.buy_with_mode(gen, self.state, None, self.balance.milestones)
        else:
            ok = economics.buy(gen, amount, self.state)
        if ok:
            self._notify("buy")
        return ok

    def unlock(self, generator_id: int) -> bool:
        gen = self.state.generator(generator_id)
        if gen is None:
            return False
        ok = economics.unlock(gen, self.state)
        if ok:
            self._notify("unlock")
        return ok

    def set_buy_mode(self, mode: int) -> None:
        self.state.settings.buy_mode = BuyMode(mode)
        self._notify("settings")

    def prestige(self, target_id: Optional[int] = None, bonus: Optional[BonusType] = None) -> PrestigeResult:
        result = apply_prestige(
            self.state, target_id, bonus, self.balance, self.rng, self.clock()
        )
        if result.success:
            self._notify("prestige")
        return result
