"""Spell-interaction resolver.

Maps an accepted ``(spell, confidence)`` onto the active opponent: a
state transition, a damage call, or nothing.  Gating (silence,
immobilize, magic, dead target) happens upstream in the encounter; this
module assumes every call is a permitted cast.

``resolve`` returns True when the spell *landed*, meaning it stunned
the opponent or dealt damage to it.  Landed spells charge the player's
magic.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from spellduel.core.enums import OpponentState, Skill, Spell
from spellduel.core.models import FinalBoss, Spider, Troll
from spellduel.engine import state_machine

if TYPE_CHECKING:
    from spellduel.config import DuelConfig
    from spellduel.core.models import Opponent, Player
    from spellduel.engine.damage import DamageResolver
    from spellduel.engine.status_effects import StatusEffects
    from spellduel.systems.clock import SimClock
    from spellduel.utils.event_log import EventSink

logger = logging.getLogger(__name__)

DAMAGE_SPELLS = frozenset({Spell.GLACIUS, Spell.INCENDIO, Spell.BOMBARDA, Spell.DEPULSO})


class SpellResolver:
    """Resolves player spells against the three opponent kinds."""

    __slots__ = ("_config", "_clock", "_damage", "_status", "_emit")

    def __init__(
        self,
        config: DuelConfig,
        clock: SimClock,
        damage: DamageResolver,
        status: StatusEffects,
        emit: EventSink,
    ) -> None:
        self._config = config
        self._clock = clock
        self._damage = damage
        self._status = status
        self._emit = emit

    def multiplier(self, confidence: float) -> float:
        """Confidence power scaling, capped."""
        cfg = self._config
        return min(confidence * cfg.confidence_scale, cfg.confidence_cap)

    def resolve(self, spell: Spell, confidence: float, opponent: Opponent | None, player: Player) -> bool:
        if spell is Spell.PROTEGO:
            self._status.protect(player, self._config.protego_duration_ms)
            return False
        if opponent is None or not opponent.alive:
            return False
        if spell is Spell.AVADA_KEDAVRA:
            player.drain_magic()
            self._say(opponent, "Avada Kedavra strikes", spell)
            self._damage.kill(opponent, "avada kedavra")
            return False

        if isinstance(opponent, Spider):
            return self._on_spider(spell, opponent)
        if isinstance(opponent, Troll):
            return self._on_troll(spell, confidence, opponent)
        return self._on_final_boss(spell, confidence, opponent)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _say(self, opponent: Opponent, message: str, spell: Spell, **extra: object) -> None:
        metadata: dict[str, object] = {"spell": spell.value}
        metadata.update(extra)
        self._emit("spell", message, opponent_id=opponent.id, metadata=metadata)

    def _hit(self, opponent: Opponent, amount: int, spell: Spell) -> bool:
        return self._damage.damage_opponent(opponent, amount, source=spell.value) > 0

    def _stun(self, opponent: Opponent, duration_ms: float, spell: Spell) -> bool:
        was_casting = opponent.state is OpponentState.CASTING
        if not state_machine.stun(opponent, self._clock.now(), duration_ms):
            return False
        verb = "interrupted and stunned" if was_casting else "stunned"
        self._say(opponent, f"{opponent.kind.value} {verb} for {duration_ms / 1000:g}s", spell)
        return True

    def _levitate(self, opponent: Opponent, spell: Spell) -> None:
        if opponent.state is OpponentState.LEVITATING:
            self._say(opponent, f"{opponent.kind.value} is already levitating", spell, effect="none")
            return
        if state_machine.levitate(opponent, self._clock.now(), self._config.levitate_ms):
            self._say(opponent, f"{opponent.kind.value} levitated", spell)

    # ------------------------------------------------------------------
    # Spider
    # ------------------------------------------------------------------

    def _on_spider(self, spell: Spell, spider: Spider) -> bool:
        cfg = self._config
        match spell:
            case Spell.EXPELLIARMUS:
                if spider.state is OpponentState.STUNNED:
                    return False
                airborne = spider.state is OpponentState.LEVITATING
                landed = self._stun(spider, cfg.spider_stun_ms, spell)
                if airborne:
                    self._hit(spider, cfg.spider_airborne_knock_damage, spell)
                return landed
            case Spell.LEVICORPUS:
                self._levitate(spider, spell)
                return False
            case Spell.GLACIUS:
                return self._hit(spider, cfg.spider_glacius_damage, spell)
            case Spell.INCENDIO:
                self.ignite(spider)
                return self._hit(spider, cfg.spider_incendio_damage, spell)
            case Spell.BOMBARDA:
                return self._hit(spider, cfg.spider_bombarda_damage, spell)
            case Spell.DEPULSO:
                return self._hit(spider, cfg.spider_depulso_damage, spell)
        return False

    def ignite(self, spider: Spider) -> None:
        """Set *spider* burning; damage ticks start one interval from now."""
        cfg = self._config
        now = self._clock.now()
        spider.is_on_fire = True
        spider.fire_end_time = now + cfg.spider_burn_ms
        spider.fire_damage_time = now + cfg.spider_burn_interval_ms
        self._emit("status", "Spider is on fire", opponent_id=spider.id,
                   metadata={"effect": "burn", "duration_ms": cfg.spider_burn_ms})

    # ------------------------------------------------------------------
    # Troll
    # ------------------------------------------------------------------

    def _on_troll(self, spell: Spell, confidence: float, troll: Troll) -> bool:
        cfg = self._config
        if troll.has_chunk_armor:
            if spell in (Spell.INCENDIO, Spell.BOMBARDA):
                troll.has_chunk_armor = False
                troll.chunk_armor_end_time = 0.0
                self._say(troll, f"{spell.value.capitalize()} shatters the chunk armor", spell,
                          effect="armor_broken")
            else:
                self._say(troll, f"Chunk armor blocks {spell.value}", spell, effect="blocked")
            return False

        match spell:
            case Spell.EXPELLIARMUS:
                if troll.state is OpponentState.STUNNED:
                    return False
                return self._stun(troll, cfg.troll_stun_ms, spell)
            case Spell.LEVICORPUS:
                self._levitate(troll, spell)
                return False
            case Spell.GLACIUS:
                return self._hit(troll, cfg.troll_glacius_damage, spell)
            case Spell.INCENDIO:
                return self._hit(troll, cfg.troll_incendio_damage, spell)
            case Spell.BOMBARDA:
                return self._hit(troll, cfg.troll_bombarda_damage, spell)
            case Spell.DEPULSO:
                if troll.state is OpponentState.CASTING and troll.current_skill is Skill.ROCK_THROW:
                    troll.is_rock_throw_reflected = True
                    self._say(troll, "Depulso will send the rock back", spell, effect="reflect")
                    return False
                return self._hit(troll, int(cfg.troll_depulso_damage * self.multiplier(confidence)), spell)
        return False

    # ------------------------------------------------------------------
    # Final boss
    # ------------------------------------------------------------------

    def _on_final_boss(self, spell: Spell, confidence: float, boss: FinalBoss) -> bool:
        cfg = self._config
        if spell is Spell.EXPELLIARMUS:
            if boss.state not in (OpponentState.IDLE, OpponentState.CASTING):
                return False
            return self._stun(boss, cfg.boss_stun_ms, spell)
        if spell is Spell.LEVICORPUS:
            self._say(boss, f"Levicorpus has no effect on the {boss.kind.value}", spell, effect="none")
            return False
        if spell not in DAMAGE_SPELLS:
            return False

        if boss.state is not OpponentState.STUNNED:
            if state_machine.enter_shadow_phase(boss, self._clock.now(), cfg.shadow_phase_ms):
                self._say(boss, f"{boss.kind.value} dodges {spell.value} in shadow phase", spell,
                          effect="dodged")
            return False

        mult = self.multiplier(confidence)
        match spell:
            case Spell.GLACIUS:
                amount = cfg.boss_glacius_damage
            case Spell.INCENDIO:
                amount = int(cfg.boss_incendio_damage * mult)
            case Spell.BOMBARDA:
                amount = cfg.boss_bombarda_damage
            case _:
                amount = int(cfg.boss_depulso_damage * mult)
        return self._hit(boss, amount, spell)
