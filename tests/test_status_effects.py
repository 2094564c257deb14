"""Tests for player status effects: poison cadence, immobilize, protection, silence."""

import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from tests.helpers.duel_arena import DuelArena


def _quiet_arena(**overrides) -> DuelArena:
    """Arena whose spider never casts, so only the effect under test acts."""
    arena = DuelArena(**overrides)
    arena.hold_skills()
    return arena


class TestPoison:

    def test_3500ms_yields_exactly_three_ticks(self):
        arena = _quiet_arena()
        arena.encounter.status.poison(arena.player, 5, 4000)
        arena.run(3500)
        assert arena.player.current_health == 85

    def test_cadence_independent_of_frame_rate(self):
        for frame in (1000 / 30, 50.0, 500.0, 3500.0):
            arena = _quiet_arena()
            arena.encounter.status.poison(arena.player, 5, 4000)
            arena.run(3500, frame_ms=frame)
            assert arena.player.current_health == 85, f"frame={frame}"

    def test_full_duration_then_expires(self):
        arena = _quiet_arena()
        arena.encounter.status.poison(arena.player, 5, 4000)
        arena.run(6000)
        assert arena.player.current_health == 85
        assert not arena.player.is_poisoned
        assert arena.player.poison_damage == 0

    def test_poison_kill_fires_game_over_once(self):
        arena = _quiet_arena()
        arena.player.current_health = 10
        arena.encounter.status.poison(arena.player, 5, 4000)
        arena.run(4000)
        assert arena.player.current_health == 0
        assert arena.encounter.game_over
        assert arena.game_overs == 1

    def test_protection_absorbs_poison_ticks(self):
        arena = _quiet_arena()
        arena.encounter.status.protect(arena.player, 5000)
        arena.encounter.status.poison(arena.player, 5, 4000)
        arena.run(3500)
        assert arena.player.current_health == 100


class TestTimedFlags:

    def test_immobilize_expires(self):
        arena = _quiet_arena()
        arena.encounter.status.immobilize(arena.player, 3000)
        arena.run(2950)
        assert arena.player.is_immobilized
        arena.run(50)
        assert not arena.player.is_immobilized

    def test_release_cancels_immobilize(self):
        arena = _quiet_arena()
        status = arena.encounter.status
        status.immobilize(arena.player, 3000)
        status.release(arena.player)
        assert not arena.player.immobilized_at(arena.now)

    def test_protection_expires(self):
        arena = _quiet_arena()
        arena.encounter.status.protect(arena.player, 5000)
        arena.run(5000)
        assert not arena.player.is_protected
        assert not arena.player.protected_at(arena.now)

    def test_silence_expires_and_clears_timestamp(self):
        arena = _quiet_arena()
        arena.encounter.status.silence(arena.player, 3000)
        arena.run(1000)
        assert arena.player.silenced_at(arena.now)
        arena.run(2000)
        assert not arena.player.is_silenced
        assert arena.player.silence_end_time == 0.0

    def test_window_check_beats_stale_flag(self):
        """Between ticks an expired window already stops counting."""
        arena = _quiet_arena()
        arena.encounter.status.protect(arena.player, 100)
        arena.clock.advance(200)   # no tick: flag still set
        assert arena.player.is_protected
        assert not arena.player.protected_at(arena.now)

    def test_status_events_emitted(self):
        arena = _quiet_arena()
        arena.encounter.status.silence(arena.player, 3000)
        arena.tick()
        effects = [e.metadata["effect"] for e in arena.events_of("status") if e.metadata]
        assert "silence" in effects
