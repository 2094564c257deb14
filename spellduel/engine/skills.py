"""Skill-cast scheduler — opponent AI.

Per tick, for the active opponent:

  1. expire timed states (stun / levitate / shadow phase), armor, burn
  2. if casting and the cast window has elapsed, execute the skill once
     and return to idle with a fresh cooldown
  3. if idle and off cooldown, select the next skill and start casting

Skill selection and execution dispatch on the opponent kind.  A cast
that was interrupted is no longer in CASTING, so step 2 can never fire
for it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from spellduel.core.enums import Domain, OpponentKind, OpponentState, Skill
from spellduel.core.models import FinalBoss, Spider, Troll
from spellduel.engine import state_machine

if TYPE_CHECKING:
    from spellduel.config import DuelConfig
    from spellduel.core.models import Opponent, Player
    from spellduel.engine.damage import DamageResolver
    from spellduel.engine.status_effects import StatusEffects
    from spellduel.engine.timers import TimerRegistry
    from spellduel.systems.clock import SimClock
    from spellduel.systems.rng import DeterministicRNG
    from spellduel.utils.event_log import EventSink

logger = logging.getLogger(__name__)

SKILL_POOLS: dict[OpponentKind, tuple[Skill, ...]] = {
    OpponentKind.SPIDER: (Skill.WEB, Skill.VENOM),
    OpponentKind.TROLL: (Skill.CHUNK_ARMOR, Skill.ROCK_THROW, Skill.STOMP),
    OpponentKind.FINAL_BOSS: (Skill.SOUL_DRAIN, Skill.SILENCE_SHRIEK),
}


def _always_live(opponent: Opponent) -> bool:
    return opponent.alive


class SkillScheduler:
    """Selects, times and executes opponent skills."""

    __slots__ = (
        "_config",
        "_clock",
        "_rng",
        "_timers",
        "_damage",
        "_status",
        "_emit",
        "_is_live",
        "_cast_durations",
    )

    def __init__(
        self,
        config: DuelConfig,
        clock: SimClock,
        rng: DeterministicRNG,
        timers: TimerRegistry,
        damage: DamageResolver,
        status: StatusEffects,
        emit: EventSink,
        is_live: Callable[[Opponent], bool] = _always_live,
    ) -> None:
        self._config = config
        self._clock = clock
        self._rng = rng
        self._timers = timers
        self._damage = damage
        self._status = status
        self._emit = emit
        self._is_live = is_live
        self._cast_durations: dict[Skill, float] = {
            Skill.WEB: config.web_cast_ms,
            Skill.VENOM: config.venom_cast_ms,
            Skill.ROCK_THROW: config.rockthrow_cast_ms,
            Skill.CHUNK_ARMOR: config.chunkarmor_cast_ms,
            Skill.STOMP: config.stomp_cast_ms,
            Skill.SOUL_DRAIN: config.souldrain_cast_ms,
            Skill.SILENCE_SHRIEK: config.silenceshriek_cast_ms,
        }

    def cast_duration(self, skill: Skill) -> float:
        return self._cast_durations[skill]

    # ------------------------------------------------------------------
    # Timing
    # ------------------------------------------------------------------

    def initial_skill_time(self, opponent: Opponent) -> float:
        """First cast time for a freshly spawned opponent."""
        cfg = self._config
        jitter = self._rng.next_float(Domain.SPAWN, opponent.id, opponent.next_roll())
        return self._clock.now() + cfg.initial_skill_delay_ms + jitter * cfg.initial_skill_jitter_ms

    def _cooldown(self, opponent: Opponent) -> float:
        cfg = self._config
        jitter = self._rng.next_float(Domain.COOLDOWN, opponent.id, opponent.next_roll())
        return cfg.skill_cooldown_ms + jitter * cfg.skill_cooldown_jitter_ms

    def _next_skill_delay(self, opponent: Opponent, executed: Skill) -> float:
        if isinstance(opponent, Spider) and executed is Skill.WEB and opponent.last_web_hit:
            return self._config.spider_combo_delay_ms
        return self._cooldown(opponent)

    # ------------------------------------------------------------------
    # Per-tick update
    # ------------------------------------------------------------------

    def update(self, opponent: Opponent, player: Player) -> None:
        if not opponent.alive:
            return
        now = self._clock.now()

        expired = state_machine.expire_timed_states(opponent, now)
        if expired is not None:
            self._emit("status", f"{opponent.kind.value} is no longer {expired.value}",
                       opponent_id=opponent.id)

        if isinstance(opponent, Troll) and opponent.has_chunk_armor and now >= opponent.chunk_armor_end_time:
            opponent.has_chunk_armor = False
            self._emit("status", "Troll armor crumbles", opponent_id=opponent.id)

        if isinstance(opponent, Spider) and opponent.is_on_fire:
            self._update_burn(opponent, now)
            if not opponent.alive:
                return

        if opponent.state is OpponentState.CASTING:
            if state_machine.cast_complete(opponent, now):
                self._complete_cast(opponent, player, now)
            return

        if state_machine.can_start_cast(opponent, now):
            skill = self.select_skill(opponent)
            state_machine.begin_cast(opponent, skill, self.cast_duration(skill), now)
            if isinstance(opponent, Troll):
                opponent.is_rock_throw_reflected = False
            self._emit("skill", f"{opponent.kind.value} begins casting {skill.value}",
                       opponent_id=opponent.id, metadata={"skill": skill.value,
                                                          "duration_ms": opponent.skill_cast_duration})

    def _update_burn(self, spider: Spider, now: float) -> None:
        cfg = self._config
        if now >= spider.fire_end_time:
            spider.is_on_fire = False
            self._emit("status", "Spider stops burning", opponent_id=spider.id)
            if spider.current_health > 0:
                def burn_out() -> None:
                    if self._is_live(spider):
                        self._damage.kill(spider, "burn-out")

                self._timers.schedule(cfg.spider_burnout_kill_ms, burn_out, "spider-burn-out")
        elif now >= spider.fire_damage_time:
            spider.fire_damage_time += cfg.spider_burn_interval_ms
            self._damage.damage_opponent(spider, cfg.spider_burn_damage, source="burn")

    def _complete_cast(self, opponent: Opponent, player: Player, now: float) -> None:
        skill = opponent.current_skill
        self.execute_skill(opponent, player, skill)
        # The skill itself may have killed its caster (reflected rock).
        if state_machine.finish_cast(opponent):
            opponent.next_skill_time = now + self._next_skill_delay(opponent, skill)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_skill(self, opponent: Opponent) -> Skill:
        if isinstance(opponent, Spider):
            return Skill.VENOM if opponent.can_cast_venom else Skill.WEB
        if isinstance(opponent, Troll):
            cfg = self._config
            if not opponent.has_chunk_armor and self._roll(opponent) < cfg.troll_armor_chance:
                return Skill.CHUNK_ARMOR
            if self._roll(opponent) < cfg.troll_rockthrow_chance:
                return Skill.ROCK_THROW
            return Skill.STOMP
        pool = SKILL_POOLS[opponent.kind]
        index = self._rng.next_int(Domain.SKILL_SELECT, opponent.id, opponent.next_roll(), 0, len(pool) - 1)
        return pool[index]

    def _roll(self, opponent: Opponent) -> float:
        return self._rng.next_float(Domain.SKILL_SELECT, opponent.id, opponent.next_roll())

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def execute_skill(self, opponent: Opponent, player: Player, skill: Skill) -> None:
        logger.debug("%s #%d executes %s", opponent.kind.value, opponent.id, skill.value)
        match skill:
            case Skill.WEB:
                self._web(opponent, player)
            case Skill.VENOM:
                self._venom(opponent, player)
            case Skill.ROCK_THROW:
                self._rock_throw(opponent, player)
            case Skill.CHUNK_ARMOR:
                self._chunk_armor(opponent)
            case Skill.STOMP:
                self._stomp(opponent, player)
            case Skill.SOUL_DRAIN:
                self._soul_drain(opponent, player)
            case Skill.SILENCE_SHRIEK:
                self._silence_shriek(opponent, player)

    def _blocked(self, opponent: Opponent, skill: Skill, player: Player) -> bool:
        if player.protected_at(self._clock.now()):
            self._emit("skill", f"{skill.value} blocked by protego", opponent_id=opponent.id,
                       metadata={"skill": skill.value, "blocked": True})
            return True
        return False

    def _web(self, spider: Spider, player: Player) -> None:
        if self._blocked(spider, Skill.WEB, player):
            spider.last_web_hit = False
            spider.can_cast_venom = False
            return
        self._status.immobilize(player, self._config.web_immobilize_ms)
        spider.last_web_hit = True
        spider.can_cast_venom = True

    def _venom(self, spider: Spider, player: Player) -> None:
        if not self._blocked(spider, Skill.VENOM, player):
            cfg = self._config
            self._status.poison(player, cfg.venom_damage_per_sec, cfg.venom_duration_ms)
            self._status.release(player)
        spider.can_cast_venom = False
        spider.last_web_hit = False

    def _rock_throw(self, troll: Troll, player: Player) -> None:
        damage = self._config.rockthrow_damage
        if troll.is_rock_throw_reflected:
            troll.is_rock_throw_reflected = False
            self._emit("skill", "Reflected rock strikes the troll", opponent_id=troll.id,
                       metadata={"skill": Skill.ROCK_THROW.value, "reflected": True})
            self._damage.damage_opponent(troll, damage, source="reflected rockthrow")
        elif not self._blocked(troll, Skill.ROCK_THROW, player):
            self._damage.damage_player(player, damage)

    def _chunk_armor(self, troll: Troll) -> None:
        troll.has_chunk_armor = True
        troll.chunk_armor_end_time = self._clock.now() + self._config.chunkarmor_duration_ms
        self._emit("skill", "Troll hardens into chunk armor", opponent_id=troll.id,
                   metadata={"skill": Skill.CHUNK_ARMOR.value})

    def _stomp(self, troll: Troll, player: Player) -> None:
        # Protection halves a stomp instead of blocking it.
        cfg = self._config
        protected = player.protected_at(self._clock.now())
        damage = cfg.stomp_protected_damage if protected else cfg.stomp_damage
        self._damage.damage_player(player, damage, pierce_protection=True)

    def _soul_drain(self, boss: FinalBoss, player: Player) -> None:
        if self._blocked(boss, Skill.SOUL_DRAIN, player):
            return
        cfg = self._config
        self._status.immobilize(player, cfg.souldrain_immobilize_ms)

        def drain() -> None:
            if not self._is_live(boss):
                return
            self._damage.damage_player(player, cfg.souldrain_damage)
            self._damage.heal_opponent(boss, cfg.souldrain_heal)

        for i in range(cfg.souldrain_ticks):
            self._timers.schedule((i + 1) * cfg.souldrain_interval_ms, drain, "soul-drain")

    def _silence_shriek(self, boss: FinalBoss, player: Player) -> None:
        if not self._blocked(boss, Skill.SILENCE_SHRIEK, player):
            self._status.silence(player, self._config.silenceshriek_duration_ms)
