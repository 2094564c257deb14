"""Encounter — the authoritative per-tick duel engine.

Owns the player, the single active opponent, the timer registry and the
progression spider -> troll -> final boss -> victory.

Tick order:
  1. Delayed actions — fire everything due in the TimerRegistry
  2. Status effects — poison ticks, expiry of player buffs/debuffs
  3. Opponent AI — timed states, cast completion, skill selection
  4. Defeat detection — catch defeats no damage path reported
  5. Force-kill safety net — reconcile health <= 0 with a live state

Once the encounter is over (game over or won) steps 2-5 are skipped.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

from spellduel.config import DuelConfig
from spellduel.core.enums import EncounterStep, OpponentState, Skill, Spell, SpellOutcome
from spellduel.core.models import FinalBoss, Player, Spider, Troll
from spellduel.core.snapshot import OpponentView, PlayerView, Snapshot
from spellduel.engine.damage import DamageResolver, is_defeated
from spellduel.engine.skills import SkillScheduler
from spellduel.engine.spells import SpellResolver
from spellduel.engine.status_effects import StatusEffects
from spellduel.engine.timers import TimerRegistry
from spellduel.systems.clock import SimClock
from spellduel.systems.rng import DeterministicRNG
from spellduel.utils.event_log import DuelEvent

if TYPE_CHECKING:
    from spellduel.core.models import Opponent

logger = logging.getLogger(__name__)

NEXT_STEP: dict[EncounterStep, EncounterStep] = {
    EncounterStep.SPIDER: EncounterStep.TROLL,
    EncounterStep.TROLL: EncounterStep.FINAL_BOSS,
    EncounterStep.FINAL_BOSS: EncounterStep.NONE,
}

OPPONENT_X = 900.0


class Encounter:
    """One full run from the first opponent to victory or game over."""

    __slots__ = (
        "_config",
        "_clock",
        "_rng",
        "_original_player",
        "_next_opponent_id",
        "_events",
        "player",
        "timers",
        "damage",
        "status",
        "skills",
        "spells",
        "step",
        "opponent",
        "game_over",
        "game_won",
        "tick_count",
        "last_spell",
        "spells_cast",
        "on_enemy_defeated",
        "on_game_over",
        "on_victory",
    )

    def __init__(
        self,
        config: DuelConfig | None = None,
        clock: SimClock | None = None,
        rng: DeterministicRNG | None = None,
        on_enemy_defeated: Callable[[Opponent], None] | None = None,
        on_game_over: Callable[[], None] | None = None,
        on_victory: Callable[[], None] | None = None,
    ) -> None:
        cfg = config or DuelConfig()
        self._config = cfg
        self._clock = clock or SimClock()
        self._rng = rng or DeterministicRNG(cfg.seed)
        self._events: list[DuelEvent] = []
        self._next_opponent_id = 1

        self.on_enemy_defeated = on_enemy_defeated
        self.on_game_over = on_game_over
        self.on_victory = on_victory

        self.player = Player(
            max_health=cfg.player_max_health,
            current_health=cfg.player_max_health,
            max_magic=cfg.player_max_magic,
            current_magic=cfg.player_start_magic,
        )
        self._original_player = self.player.copy()

        self.timers = TimerRegistry(self._clock)
        self.damage = DamageResolver(cfg, self._clock, self.timers, self._emit)
        self.damage.on_player_defeated = self._handle_player_defeated
        self.damage.on_opponent_defeated = self._handle_opponent_defeated
        self.status = StatusEffects(cfg, self._clock, self.damage, self._emit)
        self.skills = SkillScheduler(
            cfg, self._clock, self._rng, self.timers, self.damage, self.status, self._emit,
            is_live=self.is_active_opponent,
        )
        self.spells = SpellResolver(cfg, self._clock, self.damage, self.status, self._emit)

        self.step = EncounterStep.SPIDER
        self.opponent: Opponent | None = None
        self.game_over = False
        self.game_won = False
        self.tick_count = 0
        self.last_spell: Spell | None = None
        self.spells_cast = 0

        self._spawn(self.step)

    # -- public properties --

    @property
    def config(self) -> DuelConfig:
        return self._config

    @property
    def clock(self) -> SimClock:
        return self._clock

    @property
    def now(self) -> float:
        return self._clock.now()

    @property
    def is_over(self) -> bool:
        return self.game_over or self.game_won

    def is_active_opponent(self, opponent: Opponent) -> bool:
        """True while *opponent* is the live, current target of a running encounter."""
        return opponent is self.opponent and opponent.alive and not self.is_over

    # ------------------------------------------------------------------
    # Time
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """Run one simulation tick at the clock's current time."""
        self.timers.run_due()

        if not self.is_over:
            self.status.update(self.player)

        opponent = self.opponent
        if opponent is not None and not self.is_over:
            self.skills.update(opponent, self.player)
            self._detect_defeat(opponent)
            self._force_kill_safety_net(opponent)

        self.tick_count += 1

    def advance(self, delta_ms: float) -> None:
        """Move the clock forward by *delta_ms* and tick once."""
        self._clock.advance(delta_ms)
        self.tick()

    def run_for(self, duration_ms: float, frame_ms: float | None = None) -> int:
        """Simulate *duration_ms* in fixed frames.  Returns ticks executed."""
        frame = frame_ms if frame_ms is not None else self._config.frame_ms
        if frame <= 0:
            raise ValueError(f"frame must be positive, got {frame}")
        elapsed = 0.0
        ticks = 0
        while elapsed < duration_ms:
            delta = min(frame, duration_ms - elapsed)
            self.advance(delta)
            elapsed += delta
            ticks += 1
        return ticks

    def _detect_defeat(self, opponent: Opponent) -> None:
        if opponent.defeat_handled:
            return
        if opponent.state is OpponentState.DEAD or is_defeated(opponent):
            self.damage.defeat(opponent, "detected")

    def _force_kill_safety_net(self, opponent: Opponent) -> None:
        if opponent.current_health > 0 or opponent.state is OpponentState.DEAD:
            return
        logger.warning("%s #%d at %d health but %s; forcing dead",
                       opponent.kind.value, opponent.id, opponent.current_health, opponent.state.value)
        opponent.state = OpponentState.DEAD
        opponent.current_skill = Skill.NONE
        if not opponent.defeat_handled:
            self.damage.defeat(opponent, "safety net")

    # ------------------------------------------------------------------
    # Inbound spell events
    # ------------------------------------------------------------------

    def cast_spell(self, spell_name: str | Spell, confidence: float = 1.0) -> SpellOutcome:
        """Gate and resolve one recognised spell."""
        spell = spell_name if isinstance(spell_name, Spell) else Spell.parse(spell_name)
        if spell is None:
            logger.debug("Ignoring unknown spell %r", spell_name)
            return SpellOutcome.IGNORED
        if self.is_over:
            return SpellOutcome.IGNORED

        now = self._clock.now()
        player = self.player
        if player.silenced_at(now):
            self._emit("spell", f"Silenced! {spell.value} fizzles",
                       metadata={"spell": spell.value, "outcome": SpellOutcome.SILENCED.value})
            return SpellOutcome.SILENCED
        if player.immobilized_at(now) and spell is not Spell.PROTEGO:
            self._emit("spell", "Immobilized! Only protego can be cast",
                       metadata={"spell": spell.value, "outcome": SpellOutcome.IMMOBILIZED.value})
            return SpellOutcome.IMMOBILIZED
        if spell is Spell.AVADA_KEDAVRA and not player.magic_full:
            self._emit("spell", "Not enough magic for avada kedavra",
                       metadata={"spell": spell.value, "magic": player.current_magic,
                                 "outcome": SpellOutcome.INSUFFICIENT_MAGIC.value})
            return SpellOutcome.INSUFFICIENT_MAGIC

        opponent = self.opponent
        if spell is not Spell.PROTEGO and (opponent is None or not opponent.alive):
            return SpellOutcome.IGNORED

        confidence = max(0.0, min(1.0, float(confidence)))
        self.last_spell = spell
        self.spells_cast += 1
        self._emit("spell", f"Player casts {spell.value}",
                   opponent_id=opponent.id if opponent is not None else None,
                   metadata={"spell": spell.value, "confidence": round(confidence, 3)})

        if self.spells.resolve(spell, confidence, opponent, player):
            player.gain_magic(self._config.magic_per_hit)
        return SpellOutcome.CAST

    # ------------------------------------------------------------------
    # Operational controls
    # ------------------------------------------------------------------

    def skip_current_enemy(self) -> bool:
        """Force-kill the active opponent through the normal defeat path."""
        opponent = self.opponent
        if opponent is None or self.is_over:
            return False
        self._emit("control", f"Skipping {opponent.kind.value}", opponent_id=opponent.id)
        self.damage.kill(opponent, "skipped")
        return True

    def reset(self) -> None:
        """Back to the spider with a restored player and no pending actions."""
        cancelled = self.timers.cancel_all()
        self.game_over = False
        self.game_won = False
        self.step = EncounterStep.SPIDER
        self.player.restore(self._original_player)
        self._next_opponent_id = 1
        self.opponent = None
        self.tick_count = 0
        self.last_spell = None
        self.spells_cast = 0
        self._events.clear()
        logger.info("Encounter reset (%d pending action(s) cancelled)", cancelled)
        self._emit("control", "Encounter reset", metadata={"cancelled_timers": cancelled})
        self._spawn(self.step)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def snapshot(self) -> Snapshot:
        now = self._clock.now()
        return Snapshot(
            time_ms=now,
            tick=self.tick_count,
            step=self.step.value,
            game_over=self.game_over,
            game_won=self.game_won,
            player=PlayerView.from_player(self.player, now),
            opponent=OpponentView.from_opponent(self.opponent, now) if self.opponent else None,
            pending_timers=self.timers.pending,
            last_spell=self.last_spell.value if self.last_spell else None,
            spells_cast=self.spells_cast,
        )

    def drain_events(self) -> list[DuelEvent]:
        """Hand over every event emitted since the last drain."""
        events = self._events
        self._events = []
        return events

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _emit(
        self,
        category: str,
        message: str,
        opponent_id: int | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._events.append(DuelEvent(
            time_ms=self._clock.now(),
            category=category,
            message=message,
            opponent_id=opponent_id,
            metadata=metadata,
        ))

    def _spawn(self, step: EncounterStep) -> None:
        cfg = self._config
        opponent_id = self._next_opponent_id
        self._next_opponent_id += 1

        opponent: Opponent
        match step:
            case EncounterStep.SPIDER:
                opponent = Spider(id=opponent_id, max_health=cfg.spider_max_health,
                                  current_health=cfg.spider_max_health, x=OPPONENT_X)
            case EncounterStep.TROLL:
                opponent = Troll(id=opponent_id, max_health=cfg.troll_max_health,
                                 current_health=cfg.troll_max_health, x=OPPONENT_X,
                                 damage_threshold=cfg.troll_damage_threshold)
            case EncounterStep.FINAL_BOSS:
                opponent = FinalBoss(id=opponent_id, max_health=cfg.boss_max_health,
                                     current_health=cfg.boss_max_health, x=OPPONENT_X,
                                     damage_threshold=cfg.boss_damage_threshold)
            case _:
                raise ValueError(f"no opponent for step {step!r}")

        opponent.next_skill_time = self.skills.initial_skill_time(opponent)
        self.opponent = opponent
        logger.info("%s #%d enters the duel (%d hp)", opponent.kind.value, opponent.id, opponent.max_health)
        self._emit("progress", f"A {opponent.kind.value} appears", opponent_id=opponent.id,
                   metadata={"step": step.value, "health": opponent.max_health})

    def _handle_opponent_defeated(self, opponent: Opponent) -> None:
        if opponent is not self.opponent:
            logger.debug("Ignoring defeat of stale %s #%d", opponent.kind.value, opponent.id)
            return
        self._emit("defeat", f"{opponent.kind.value} defeated", opponent_id=opponent.id,
                   metadata={"step": self.step.value})
        if self.on_enemy_defeated is not None:
            self.on_enemy_defeated(opponent)
        if self.game_over:
            return
        self._advance()

    def _advance(self) -> None:
        self.step = NEXT_STEP[self.step]
        if self.step is not EncounterStep.NONE:
            self._emit("progress", f"Advancing to {self.step.value}", metadata={"step": self.step.value})
            self._spawn(self.step)
            return

        self.opponent = None
        self.game_won = True
        logger.info("Victory at %.0f ms", self._clock.now())
        self._emit("victory", "Every opponent defeated")
        if self.on_victory is not None:
            self.on_victory()

    def _handle_player_defeated(self) -> None:
        if self.is_over:
            return
        self.game_over = True
        logger.info("Game over at %.0f ms", self._clock.now())
        self._emit("game_over", "The player has fallen")
        if self.on_game_over is not None:
            self.on_game_over()
