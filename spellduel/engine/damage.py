"""Damage & defeat resolution.

Two defeat policies coexist:

- **Health threshold** — any opponent whose health is driven to 0 dies.
- **Cumulative damage** — troll and final boss also die once the damage
  that actually *landed* reaches their threshold.  The final boss only
  takes damage while stunned; the troll takes it in any state.

Every landed hit opens a short colour-flash window through the
TimerRegistry.  The revert checks liveness first: a dead opponent keeps
its hit colour.

The defeat callback is delivered at most once per opponent, guarded by
``Opponent.defeat_handled``.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from spellduel.core.enums import OpponentState, Skill
from spellduel.core.models import FinalBoss, ThresholdOpponent

if TYPE_CHECKING:
    from spellduel.config import DuelConfig
    from spellduel.core.models import Opponent, Player
    from spellduel.engine.timers import TimerRegistry
    from spellduel.systems.clock import SimClock
    from spellduel.utils.event_log import EventSink

logger = logging.getLogger(__name__)


def _noop_player_defeated() -> None:
    return None


def _noop_opponent_defeated(opponent: Opponent) -> None:
    return None


def is_defeated(opponent: Opponent) -> bool:
    """True when either defeat criterion holds for *opponent*."""
    if opponent.current_health <= 0:
        return True
    return isinstance(opponent, ThresholdOpponent) and opponent.threshold_reached


class DamageResolver:
    """Applies damage and healing, and turns lethal hits into defeats."""

    __slots__ = (
        "_config",
        "_clock",
        "_timers",
        "_emit",
        "on_player_defeated",
        "on_opponent_defeated",
    )

    def __init__(
        self,
        config: DuelConfig,
        clock: SimClock,
        timers: TimerRegistry,
        emit: EventSink,
    ) -> None:
        self._config = config
        self._clock = clock
        self._timers = timers
        self._emit = emit
        self.on_player_defeated: Callable[[], None] = _noop_player_defeated
        self.on_opponent_defeated: Callable[[Opponent], None] = _noop_opponent_defeated

    # ------------------------------------------------------------------
    # Player
    # ------------------------------------------------------------------

    def damage_player(self, player: Player, amount: int, *, pierce_protection: bool = False) -> int:
        """Deal *amount* to the player and return the health actually lost.

        An open protection window blocks the hit entirely (no flash)
        unless *pierce_protection* is set by the caller.
        """
        if amount <= 0 or not player.alive:
            return 0
        if not pierce_protection and player.protected_at(self._clock.now()):
            logger.debug("Protection absorbed %d damage", amount)
            return 0

        before = player.current_health
        player.current_health = max(0, before - amount)
        lost = before - player.current_health
        self._flash_player(player)
        self._emit("damage", f"Player takes {lost} damage",
                   metadata={"target": "player", "amount": lost, "health": player.current_health})

        if player.current_health <= 0:
            self.on_player_defeated()
        return lost

    def _flash_player(self, player: Player) -> None:
        player.color = self._config.hit_color

        def revert() -> None:
            if player.current_health > 0:
                player.color = player.original_color

        self._timers.schedule(self._config.hit_flash_ms, revert, "player-flash")

    # ------------------------------------------------------------------
    # Opponents
    # ------------------------------------------------------------------

    def damage_opponent(self, opponent: Opponent, amount: int, source: str = "") -> int:
        """Apply *amount* to *opponent*.  Returns the damage that landed."""
        if amount <= 0 or not opponent.alive:
            return 0
        if isinstance(opponent, FinalBoss) and opponent.state is not OpponentState.STUNNED:
            logger.debug("%s #%d evaded %d damage (not stunned)", opponent.kind.value, opponent.id, amount)
            return 0

        opponent.current_health = max(0, opponent.current_health - amount)
        if isinstance(opponent, ThresholdOpponent):
            opponent.total_damage_received += amount

        metadata = {"target": opponent.kind.value, "amount": amount,
                    "health": opponent.current_health, "source": source}
        if isinstance(opponent, ThresholdOpponent):
            metadata["total_damage"] = opponent.total_damage_received
        self._emit("damage", f"{opponent.kind.value} takes {amount} damage",
                   opponent_id=opponent.id, metadata=metadata)

        if is_defeated(opponent):
            self.defeat(opponent, source or "damage")
        self._flash_opponent(opponent)
        return amount

    def heal_opponent(self, opponent: Opponent, amount: int) -> int:
        """Restore up to *amount* health.  Returns what was actually healed."""
        if amount <= 0 or not opponent.alive:
            return 0
        before = opponent.current_health
        opponent.current_health = min(opponent.max_health, before + amount)
        return opponent.current_health - before

    def defeat(self, opponent: Opponent, cause: str) -> None:
        """Transition to DEAD and deliver the defeat callback exactly once."""
        if opponent.state is not OpponentState.DEAD:
            logger.info("%s #%d defeated (%s)", opponent.kind.value, opponent.id, cause)
            opponent.state = OpponentState.DEAD
            opponent.current_skill = Skill.NONE
        if opponent.defeat_handled:
            return
        opponent.defeat_handled = True
        self.on_opponent_defeated(opponent)

    def kill(self, opponent: Opponent, cause: str) -> None:
        """Force-kill: satisfy every defeat criterion, then defeat.

        Used for skips, the ultimate spell and burn-out, so they are
        indistinguishable from an organic defeat downstream.
        """
        opponent.current_health = 0
        if isinstance(opponent, ThresholdOpponent):
            opponent.total_damage_received = max(opponent.total_damage_received, opponent.damage_threshold)
        self.defeat(opponent, cause)

    def _flash_opponent(self, opponent: Opponent) -> None:
        opponent.color = self._config.hit_color

        def revert() -> None:
            if opponent.state is not OpponentState.DEAD:
                opponent.color = opponent.original_color

        self._timers.schedule(self._config.hit_flash_ms, revert, f"{opponent.kind.value}-flash")
