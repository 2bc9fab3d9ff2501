"""Save/load of the full game state.

Blob layout (JSON, then zlib, then base64):

    {"version": "1.0.0", "timestamp": <epoch ms>,
     "state": {"currency": "1.234E+50", "generators": [...], "prestige": {...},
               "stats": {...}, "global": {...}, "timestamps": {...},
               "settings": {...}}}

Big numbers are stored as decimal strings. Loading accepts compressed
blobs, plain base64-JSON and raw JSON, so older or hand-edited saves still
read. Generators are matched by id against the current roster: ids missing
from the save start fresh, ids no longer in the roster are dropped.
"""
from __future__ import annotations

import base64
import binascii
import json
import zlib
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import InvalidOperation
from typing import Any, Dict, Iterable, Optional

from spectrum.bignum import big_to_str, to_big
from spectrum.config import Balance, GeneratorConfig
from spectrum.idle import apply_offline_progress
from spectrum.storage import KeyValueStore
from spectrum.types import (
    THEMES,
    BuyMode,
    GameSettings,
    GameState,
    GameStats,
    Generator,
    GlobalState,
    PrestigeRecord,
    PrestigeState,
    Timestamps,
    cap_buff,
    fresh_generator,
    now_ms,
)

REQUIRED_SECTIONS = ("currency", "generators", "prestige", "stats", "global", "timestamps", "settings")

_RESTORE_ERRORS = (KeyError, TypeError, ValueError, AttributeError, InvalidOperation)


@dataclass
class SaveResult:
    success: bool
    data: Optional[dict] = None


@dataclass
class LoadResult:
    success: bool
    state: Optional[GameState] = None
    offline_applied: bool = False


# ── Encoding ─────────────────────────────────────────────────────────

def build_save_dict(state: GameState, balance: Optional[Balance] = None, now: Optional[int] = None) -> dict:
    """JSON-ready snapshot of ``state``; big numbers become strings."""
    if balance is None:
        balance = Balance()
    if now is None:
        now = now_ms()
    return {
        "version": balance.save_version,
        "timestamp": now,
        "state": {
            "currency": big_to_str(state.currency),
            "generators": [
                {
                    "id": g.id,
                    "level": g.level,
                    "fillProgress": g.fill_progress,
                    "unlocked": g.unlocked,
                    "earnBonus": big_to_str(g.earn_bonus),
                    "speedBonus": g.speed_bonus,
                    "costReduction": g.cost_reduction,
                }
                for g in state.generators
            ],
            "prestige": {
                "totalPrestiges": state.prestige.total_prestiges,
                "currentIdleMultiplier": state.prestige.current_idle_multiplier,
                "selectablesRemaining": state.prestige.selectables_remaining,
                "history": [
                    {
                        "generator": h.generator,
                        "bonus": h.bonus,
                        "amount": h.amount,
                        "timestamp": h.timestamp,
                    }
                    for h in state.prestige.history
                ],
            },
            "stats": {
                "lifetimeEarnings": big_to_str(state.stats.lifetime_earnings),
                "incomePerSecond": big_to_str(state.stats.income_per_second),
                "timePlayedMs": state.stats.time_played_ms,
            },
            "global": {
                "pow": state.global_.pow,
                "idlePower": state.global_.idle_power,
                "worldsCompleted": state.global_.worlds_completed,
            },
            "timestamps": {
                "lastSave": now,
                "lastTick": state.timestamps.last_tick,
                "sessionStart": state.timestamps.session_start,
                "lastPrestige": state.timestamps.last_prestige,
            },
            "settings": {
                "soundEnabled": state.settings.sound_enabled,
                "buyMode": int(state.settings.buy_mode),
                "buyModeSticky": state.settings.buy_mode_sticky,
                "theme": state.settings.theme,
            },
        },
    }


def encode_blob(data: dict) -> str:
    json_str = json.dumps(data, separators=(",", ":"))
    compressed = zlib.compress(json_str.encode("utf-8"), 9)
    return base64.b64encode(compressed).decode("ascii")


def decode_blob(text: str) -> Optional[dict]:
    """Parse a stored blob. Returns None if no known format matches.

    1. raw JSON
    2. base64 -> zlib -> JSON (current format)
    3. base64 -> JSON (uncompressed fallback)
    """
    text = text.strip()
    if not text:
        return None

    try:
        data = json.loads(text)
        if isinstance(data, dict) and "state" in data:
            return data
    except (json.JSONDecodeError, ValueError):
        pass

    try:
        raw = base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError):
        return None

    try:
        raw = zlib.decompress(raw)
    except zlib.error:
        pass

    try:
        data = json.loads(raw.decode("utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None
    if isinstance(data, dict) and "state" in data:
        return data
    return None


# ── Decoding ─────────────────────────────────────────────────────────

def _restore_generator(config: GeneratorConfig, first: bool, saved: Optional[dict]) -> Generator:
    gen = fresh_generator(config, first=first)
    if saved is None:
        return gen
    gen.level = max(0, int(saved.get("level") or 0))
    gen.fill_progress = float(saved.get("fillProgress") or 0.0)
    if saved.get("unlocked") is not None:
        gen.unlocked = bool(saved["unlocked"])
    gen.earn_bonus = to_big(saved.get("earnBonus") or "1")
    gen.speed_bonus = cap_buff(float(saved.get("speedBonus") or 1.0))
    gen.cost_reduction = cap_buff(float(saved.get("costReduction") or 1.0))
    return gen


def _restore_settings(saved: dict) -> GameSettings:
    settings = GameSettings()
    if saved.get("soundEnabled") is not None:
        settings.sound_enabled = bool(saved["soundEnabled"])
    try:
        settings.buy_mode = BuyMode(int(saved.get("buyMode", BuyMode.ONE)))
    except (TypeError, ValueError):
        settings.buy_mode = BuyMode.ONE
    settings.buy_mode_sticky = bool(saved.get("buyModeSticky", False))
    theme = saved.get("theme")
    settings.theme = theme if theme in THEMES else GameSettings.theme
    return settings


def restore_state(
    data: dict,
    roster: Iterable[GeneratorConfig],
    balance: Optional[Balance] = None,
    now: Optional[int] = None,
) -> GameState:
    """Rebuild a GameState from a decoded blob (no offline credit).

    Raises KeyError/TypeError/ValueError/InvalidOperation on malformed data.
    """
    if balance is None:
        balance = Balance()
    if now is None:
        now = now_ms()
    saved = data["state"]
    saved_at = int(data.get("timestamp") or now)

    saved_gens = {int(g["id"]): g for g in saved.get("generators") or []}
    configs = sorted(roster, key=lambda c: c.id)
    generators = [
        _restore_generator(config, i == 0, saved_gens.get(config.id))
        for i, config in enumerate(configs)
    ]

    prestige_data = saved.get("prestige") or {}
    prestige = PrestigeState(
        total_prestiges=int(prestige_data.get("totalPrestiges") or 0),
        current_idle_multiplier=float(prestige_data.get("currentIdleMultiplier") or 1.0),
        selectables_remaining=int(prestige_data.get("selectablesRemaining") or 0),
        history=[
            PrestigeRecord(
                generator=h["generator"],
                bonus=h["bonus"],
                amount=h["amount"],
                timestamp=int(h.get("timestamp") or 0),
            )
            for h in (prestige_data.get("history") or [])[: balance.history_capacity]
        ],
    )

    stats_data = saved.get("stats") or {}
    stats = GameStats(
        lifetime_earnings=to_big(stats_data.get("lifetimeEarnings") or "0"),
        income_per_second=to_big(stats_data.get("incomePerSecond") or "0"),
        time_played_ms=float(stats_data.get("timePlayedMs") or 0.0),
    )

    global_data = saved.get("global") or {}
    global_state = GlobalState(
        pow=float(global_data.get("pow") or 1.0),
        idle_power=float(global_data.get("idlePower") or 0.0),
        worlds_completed=int(global_data.get("worldsCompleted") or 0),
    )

    ts_data = saved.get("timestamps") or {}
    timestamps = Timestamps(
        last_save=int(ts_data.get("lastSave") or saved_at),
        last_tick=now,
        session_start=now,
        last_prestige=int(ts_data.get("lastPrestige") or saved_at),
    )

    return GameState(
        currency=to_big(saved.get("currency") or "0"),
        generators=generators,
        prestige=prestige,
        stats=stats,
        global_=global_state,
        timestamps=timestamps,
        settings=_restore_settings(saved.get("settings") or {}),
    )


# ── Store-backed operations ──────────────────────────────────────────

def save_game(
    state: GameState,
    store: KeyValueStore,
    balance: Optional[Balance] = None,
    now: Optional[int] = None,
) -> SaveResult:
    if balance is None:
        balance = Balance()
    if now is None:
        now = now_ms()
    try:
        data = build_save_dict(state, balance, now)
        blob = encode_blob(data)
    except (TypeError, ValueError) as e:
        print(f"[save] Error encoding save data: {e}")
        return SaveResult(False)
    if not store.set(balance.save_key, blob):
        print("[save] Error writing save data")
        return SaveResult(False)
    state.timestamps.last_save = now
    return SaveResult(True, data)


def load_game(
    store: KeyValueStore,
    roster: Iterable[GeneratorConfig],
    balance: Optional[Balance] = None,
    now: Optional[int] = None,
) -> LoadResult:
    """Read, decode and rebuild the saved game, then credit offline time.

    A missing slot and a corrupt blob both return ``LoadResult(False)``.
    """
    if balance is None:
        balance = Balance()
    if now is None:
        now = now_ms()
    text = store.get(balance.save_key)
    if text is None:
        return LoadResult(False)
    data = decode_blob(text)
    if data is None:
        print("[save] Could not decode save data")
        return LoadResult(False)
    if data.get("version") != balance.save_version:
        print(f"[save] Save version mismatch: {data.get('version')} vs {balance.save_version}")
    try:
        state = restore_state(data, roster, balance, now)
    except _RESTORE_ERRORS as e:
        print(f"[save] Error restoring save data: {e}")
        return LoadResult(False)

    offline = False
    if data.get("timestamp"):
        offline = apply_offline_progress(state, int(data["timestamp"]), balance, now)
    return LoadResult(True, state, offline)


def clear_save(store: KeyValueStore, balance: Optional[Balance] = None) -> bool:
    if balance is None:
        balance = Balance()
    return store.remove(balance.save_key)


def export_save_data(store: KeyValueStore, balance: Optional[Balance] = None) -> Optional[dict]:
    """Decoded blob as stored, for backups and migration."""
    if balance is None:
        balance = Balance()
    text = store.get(balance.save_key)
    if text is None:
        return None
    return decode_blob(text)


def validate_save_data(data: Any) -> bool:
    if not isinstance(data, dict):
        return False
    if not data.get("version") or not data.get("timestamp"):
        return False
    state = data.get("state")
    if not isinstance(state, dict):
        return False
    return all(section in state for section in REQUIRED_SECTIONS)


def save_data_size(data: dict) -> int:
    return len(json.dumps(data, separators=(",", ":")))


# ── Flat row conversion (database storage) ───────────────────────────

def _iso(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


def _ms(iso: str) -> int:
    return int(round(datetime.fromisoformat(iso).timestamp() * 1000))


def to_row(data: dict, user_id: Optional[str] = None, now: Optional[int] = None) -> Dict[str, Any]:
    """Flatten a blob into one table row; nested sections become JSON text."""
    if now is None:
        now = now_ms()
    state = data["state"]
    ts = state["timestamps"]
    return {
        "user_id": user_id,
        "version": data["version"],
        "saved_at": _iso(data["timestamp"]),
        "currency": state["currency"],
        "generators": json.dumps(state["generators"]),
        "prestige": json.dumps(state["prestige"]),
        "lifetime_earnings": state["stats"]["lifetimeEarnings"],
        "income_per_second": state["stats"]["incomePerSecond"],
        "time_played_ms": state["stats"]["timePlayedMs"],
        "global_state": json.dumps(state["global"]),
        "last_save": _iso(ts["lastSave"]),
        "last_tick": _iso(ts["lastTick"]),
        "session_start": _iso(ts["sessionStart"]),
        "last_prestige": _iso(ts.get("lastPrestige") or ts["lastSave"]),
        "settings": json.dumps(state["settings"]),
        "created_at": _iso(now),
        "updated_at": _iso(now),
    }


def from_row(row: Dict[str, Any]) -> dict:
    saved_at = _ms(row["saved_at"])
    last_save = _ms(row["last_save"]) if row.get("last_save") else saved_at
    return {
        "version": row.get("version") or "1.0.0",
        "timestamp": saved_at,
        "state": {
            "currency": row.get("currency") or "0",
            "generators": json.loads(row.get("generators") or "[]"),
            "prestige": json.loads(row.get("prestige") or "{}"),
            "stats": {
                "lifetimeEarnings": row.get("lifetime_earnings") or "0",
                "incomePerSecond": row.get("income_per_second") or "0",
                "timePlayedMs": row.get("time_played_ms") or 0,
            },
            "global": json.loads(row.get("global_state") or "{}"),
            "timestamps": {
                "lastSave": last_save,
                "lastTick": _ms(row["last_tick"]) if row.get("last_tick") else last_save,
                "sessionStart": _ms(row["session_start"]) if row.get("session_start") else last_save,
                "lastPrestige": _ms(row["last_prestige"]) if row.get("last_prestige") else last_save,
            },
            "settings": json.loads(row.get("settings") or "{}"),
        },
    }
