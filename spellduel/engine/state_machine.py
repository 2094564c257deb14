"""Opponent state machine.

    idle -> casting -> idle                    (cast completes)
    idle|casting -> stunned -> idle            (interrupt, timed)
    idle|casting -> levitating -> idle         (timed)
    idle|casting -> shadowphase -> idle        (final boss evasion, timed)
    * -> dead                                  (terminal)

Which incoming event causes which transition is decided by the spell
resolver; the timed returns to idle are uniform and polled every tick
against the stored end timestamps.  Nothing here touches a dead
opponent.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from spellduel.core.enums import OpponentState, Skill
from spellduel.core.models import Spider

if TYPE_CHECKING:
    from spellduel.core.models import Opponent

logger = logging.getLogger(__name__)

# state -> attribute holding the absolute time the state ends
_TIMED_STATES: dict[OpponentState, str] = {
    OpponentState.STUNNED: "stun_end_time",
    OpponentState.LEVITATING: "levitate_end_time",
    OpponentState.SHADOW_PHASE: "shadow_phase_end_time",
}


def _transition(opponent: Opponent, new_state: OpponentState) -> bool:
    if opponent.state is OpponentState.DEAD:
        return False
    if opponent.state is not new_state:
        logger.debug("%s #%d: %s -> %s", opponent.kind.value, opponent.id,
                     opponent.state.value, new_state.value)
    opponent.state = new_state
    return True


def expire_timed_states(opponent: Opponent, now: float) -> OpponentState | None:
    """Return to idle if the current timed state has run out.

    Returns the state that expired, or None.
    """
    attr = _TIMED_STATES.get(opponent.state)
    if attr is None or now < getattr(opponent, attr):
        return None
    expired = opponent.state
    _transition(opponent, OpponentState.IDLE)
    return expired


def can_start_cast(opponent: Opponent, now: float) -> bool:
    return opponent.state is OpponentState.IDLE and now >= opponent.next_skill_time


def cast_complete(opponent: Opponent, now: float) -> bool:
    return (
        opponent.state is OpponentState.CASTING
        and now >= opponent.skill_cast_start_time + opponent.skill_cast_duration
    )


def begin_cast(opponent: Opponent, skill: Skill, duration_ms: float, now: float) -> bool:
    if not _transition(opponent, OpponentState.CASTING):
        return False
    opponent.current_skill = skill
    opponent.skill_cast_start_time = now
    opponent.skill_cast_duration = duration_ms
    return True


def finish_cast(opponent: Opponent) -> bool:
    """Return to idle after a cast resolved.  No-op if the cast was diverted."""
    if opponent.state is not OpponentState.CASTING:
        return False
    opponent.current_skill = Skill.NONE
    return _transition(opponent, OpponentState.IDLE)


def interrupt_cast(opponent: Opponent) -> Skill:
    """Drop the cast in progress, if any.  Returns the cancelled skill.

    An interrupted spider also loses its web/venom combo.
    """
    if opponent.state is not OpponentState.CASTING:
        return Skill.NONE
    cancelled = opponent.current_skill
    opponent.current_skill = Skill.NONE
    if isinstance(opponent, Spider):
        opponent.can_cast_venom = False
        opponent.last_web_hit = False
    logger.debug("%s #%d: %s cast interrupted", opponent.kind.value, opponent.id, cancelled.value)
    return cancelled


def stun(opponent: Opponent, now: float, duration_ms: float) -> bool:
    if opponent.state is OpponentState.DEAD:
        return False
    interrupt_cast(opponent)
    opponent.stun_end_time = now + duration_ms
    return _transition(opponent, OpponentState.STUNNED)


def levitate(opponent: Opponent, now: float, duration_ms: float) -> bool:
    if opponent.state in (OpponentState.DEAD, OpponentState.LEVITATING):
        return False
    interrupt_cast(opponent)
    opponent.levitate_end_time = now + duration_ms
    return _transition(opponent, OpponentState.LEVITATING)


def enter_shadow_phase(opponent: Opponent, now: float, duration_ms: float) -> bool:
    """Evade into shadow phase.  A stunned opponent cannot evade."""
    if opponent.state in (OpponentState.DEAD, OpponentState.STUNNED):
        return False
    interrupt_cast(opponent)
    opponent.shadow_phase_end_time = now + duration_ms
    return _transition(opponent, OpponentState.SHADOW_PHASE)
