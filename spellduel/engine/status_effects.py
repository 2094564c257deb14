"""Player status effects — poison, immobilize, protection, silence.

Effects are plain fields on the Player with absolute end timestamps.
``update`` runs once per tick and compares them with the clock; only
poison has a periodic side effect, and it runs on a fixed 1000 ms
cadence anchored at application time so the frame rate never changes
how many ticks land.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from spellduel.config import DuelConfig
    from spellduel.core.models import Player
    from spellduel.engine.damage import DamageResolver
    from spellduel.systems.clock import SimClock
    from spellduel.utils.event_log import EventSink

logger = logging.getLogger(__name__)

POISON_INTERVAL_MS = 1000.0


class StatusEffects:
    """Applies and expires player buffs and debuffs."""

    __slots__ = ("_config", "_clock", "_damage", "_emit")

    def __init__(
        self,
        config: DuelConfig,
        clock: SimClock,
        damage: DamageResolver,
        emit: EventSink,
    ) -> None:
        self._config = config
        self._clock = clock
        self._damage = damage
        self._emit = emit

    # -- application --

    def poison(self, player: Player, damage_per_sec: int, duration_ms: float) -> None:
        now = self._clock.now()
        player.is_poisoned = True
        player.poison_damage = damage_per_sec
        player.poison_end_time = now + duration_ms
        player.last_poison_tick = now
        self._emit("status", f"Player poisoned ({damage_per_sec}/s for {duration_ms / 1000:g}s)",
                   metadata={"effect": "poison", "duration_ms": duration_ms})

    def immobilize(self, player: Player, duration_ms: float) -> None:
        player.is_immobilized = True
        player.immobilized_end_time = self._clock.now() + duration_ms
        self._emit("status", f"Player immobilized for {duration_ms / 1000:g}s",
                   metadata={"effect": "immobilize", "duration_ms": duration_ms})

    def release(self, player: Player) -> None:
        """Cancel immobilization early."""
        player.is_immobilized = False
        player.immobilized_end_time = 0.0

    def protect(self, player: Player, duration_ms: float) -> None:
        player.is_protected = True
        player.protection_end_time = self._clock.now() + duration_ms
        self._emit("status", f"Player protected for {duration_ms / 1000:g}s",
                   metadata={"effect": "protect", "duration_ms": duration_ms})

    def silence(self, player: Player, duration_ms: float) -> None:
        player.is_silenced = True
        player.silence_end_time = self._clock.now() + duration_ms
        self._emit("status", f"Player silenced for {duration_ms / 1000:g}s",
                   metadata={"effect": "silence", "duration_ms": duration_ms})

    # -- per tick --

    def update(self, player: Player) -> None:
        """Evaluate every effect against the current time."""
        now = self._clock.now()

        if player.is_poisoned:
            self._tick_poison(player, now)

        if player.is_immobilized and now >= player.immobilized_end_time:
            player.is_immobilized = False
            logger.debug("Immobilization ended")

        if player.is_protected and now >= player.protection_end_time:
            player.is_protected = False
            logger.debug("Protection ended")

        if player.is_silenced and now >= player.silence_end_time:
            player.is_silenced = False
            player.silence_end_time = 0.0
            logger.debug("Silence ended")

    def _tick_poison(self, player: Player, now: float) -> None:
        # Catch up on every whole interval that fell inside the poison window.
        while player.is_poisoned and player.alive:
            due = player.last_poison_tick + POISON_INTERVAL_MS
            if due > now or due >= player.poison_end_time:
                break
            player.last_poison_tick = due
            self._damage.damage_player(player, player.poison_damage)

        if player.is_poisoned and now >= player.poison_end_time:
            player.is_poisoned = False
            player.poison_damage = 0
            logger.debug("Poison ended")
