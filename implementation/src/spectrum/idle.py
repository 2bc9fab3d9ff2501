"""Idle multiplier: prestige value grows with real time spent in a run.

One formula serves both callers. The frame loop passes the time since the
last prestige. The loader passes the time since the save was written.

    multiplier = 1 + min(hours, cap_hours) * rate

``rate`` is 1/24 per hour in "flat" mode (so the cap is a 2x ceiling), or
``idle_base_rate + idlePower * idle_power_rate`` in "power" mode.
"""
from __future__ import annotations

from typing import Optional

from spectrum.config import Balance
from spectrum.types import GameState, now_ms

MS_PER_HOUR = 1000 * 60 * 60


def idle_rate(idle_power: float, balance: Balance) -> float:
    if balance.idle_rate_mode == "power":
        return balance.idle_base_rate + idle_power * balance.idle_power_rate
    return balance.idle_flat_rate


def idle_multiplier(elapsed_ms: float, idle_power: float = 0.0, balance: Optional[Balance] = None) -> float:
    if balance is None:
        balance = Balance()
    hours = max(0.0, elapsed_ms) / MS_PER_HOUR
    capped = min(hours, balance.idle_cap_hours)
    return 1.0 + capped * idle_rate(idle_power, balance)


def update_idle_multiplier(state: GameState, balance: Balance, now: Optional[int] = None) -> float:
    """Overwrite the multiplier from the time elapsed since the last prestige."""
    if now is None:
        now = now_ms()
    anchor = state.timestamps.last_prestige or state.timestamps.session_start
    value = idle_multiplier(now - anchor, state.global_.idle_power, balance)
    state.prestige.current_idle_multiplier = value
    return value


def apply_offline_progress(
    state: GameState,
    saved_at: int,
    balance: Balance,
    now: Optional[int] = None,
) -> bool:
    """Credit the gap between a save and now. Gaps under the threshold are ignored."""
    if now is None:
        now = now_ms()
    offline_ms = now - saved_at
    if offline_ms <= balance.offline_threshold_ms:
        return False
    state.prestige.current_idle_multiplier = idle_multiplier(
        offline_ms, state.global_.idle_power, balance
    )
    return True
