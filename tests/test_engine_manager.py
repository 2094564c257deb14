"""Tests for the EngineManager host loop and the REST route handlers."""

import os
import sys
import unittest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from pydantic import ValidationError

from spellduel.api import dependencies
from spellduel.api.app import create_app
from spellduel.api.engine_manager import EngineManager
from spellduel.api.routes.config import get_config
from spellduel.api.routes.control import ControlAction, control, set_speed
from spellduel.api.routes.spells import cast_spell
from spellduel.api.routes.state import get_events, get_state
from spellduel.api.schemas import SpellCastRequest
from spellduel.config import DuelConfig


def _build_manager(**overrides):
    return EngineManager(DuelConfig(**overrides))


class TestManagerTicking(unittest.TestCase):
    """Driving the encounter by hand through tick_once."""

    def setUp(self):
        self.mgr = _build_manager()

    def test_initial_snapshot_published(self):
        snap = self.mgr.get_snapshot()
        self.assertIsNotNone(snap)
        self.assertEqual(snap.tick, 0)
        self.assertEqual(snap.step, "spider")
        self.assertEqual(snap.opponent.kind, "spider")
        self.assertEqual(snap.opponent.id, 1)

    def test_tick_once_advances_clock(self):
        self.assertTrue(self.mgr.tick_once(50.0))
        snap = self.mgr.get_snapshot()
        self.assertEqual(snap.time_ms, 50.0)
        self.assertEqual(snap.tick, 1)

    def test_spell_applied_on_next_tick(self):
        self.mgr.submit_spell("bombarda", 1.0)
        # Still queued, nothing resolved yet
        self.assertEqual(self.mgr.get_snapshot().opponent.current_health, 40)
        self.mgr.tick_once(50.0)
        snap = self.mgr.get_snapshot()
        self.assertEqual(snap.opponent.current_health, 20)
        self.assertEqual(snap.last_spell, "bombarda")
        self.assertEqual(snap.spells_cast, 1)

    def test_events_reach_log(self):
        self.mgr.submit_spell("glacius", 0.8)
        self.mgr.tick_once(50.0)
        categories = [ev.category for ev in self.mgr.event_log.since(0.0)]
        self.assertIn("progress", categories)
        self.assertIn("spell", categories)
        self.assertIn("damage", categories)

    def test_skip_advances_to_troll(self):
        self.mgr.request_skip()
        self.mgr.tick_once(50.0)
        snap = self.mgr.get_snapshot()
        self.assertEqual(snap.step, "troll")
        self.assertEqual(snap.opponent.kind, "troll")
        self.assertEqual(snap.opponent.id, 2)

    def test_tick_once_reports_end(self):
        for _ in range(3):
            self.mgr.request_skip()
        self.assertFalse(self.mgr.tick_once(50.0))
        self.assertTrue(self.mgr.get_snapshot().game_won)

    def test_reset_restores_spider(self):
        self.mgr.submit_spell("bombarda", 1.0)
        self.mgr.request_skip()
        self.mgr.tick_once(50.0)
        self.mgr.reset()
        snap = self.mgr.get_snapshot()
        self.assertEqual(snap.tick, 0)
        self.assertEqual(snap.step, "spider")
        self.assertEqual(snap.opponent.id, 1)
        self.assertEqual(snap.opponent.current_health, 40)
        self.assertEqual(snap.spells_cast, 0)
        self.assertTrue(all(ev.category == "control" or ev.category == "progress"
                            for ev in self.mgr.event_log.since(0.0)))

    def test_reset_discards_queued_commands(self):
        self.mgr.submit_spell("bombarda", 1.0)
        self.mgr.reset()
        self.mgr.tick_once(50.0)
        self.assertEqual(self.mgr.get_snapshot().opponent.current_health, 40)

    def test_tick_rate_clamped(self):
        self.mgr.tick_rate = 10.0
        self.assertEqual(self.mgr.tick_rate, 2.0)
        self.mgr.tick_rate = 0.0
        self.assertEqual(self.mgr.tick_rate, 0.005)


class TestManagerLifecycle(unittest.TestCase):
    """Background thread start / pause / resume / stop."""

    def setUp(self):
        self.mgr = _build_manager(tick_rate_hz=100.0)

    def tearDown(self):
        self.mgr.stop()

    def test_start_pause_resume_stop(self):
        self.mgr.start()
        self.assertTrue(self.mgr.running)
        self.mgr.pause()
        self.assertTrue(self.mgr.paused)
        self.mgr.resume()
        self.assertFalse(self.mgr.paused)
        self.mgr.stop()
        self.assertFalse(self.mgr.running)

    def test_start_twice_is_noop(self):
        self.mgr.start()
        self.assertEqual(control(ControlAction.start, manager=self.mgr).status, "noop")

    def test_pause_requires_running(self):
        self.assertEqual(control(ControlAction.pause, manager=self.mgr).status, "error")
        self.assertEqual(control(ControlAction.resume, manager=self.mgr).status, "error")


class TestRoutes(unittest.TestCase):
    """Route handlers called directly with an explicit manager."""

    def setUp(self):
        self.mgr = _build_manager()

    def test_state_payload(self):
        self.mgr.tick_once(50.0)
        state = get_state(since_ms=0.0, manager=self.mgr)
        self.assertEqual(state.step, "spider")
        self.assertFalse(state.running)
        self.assertEqual(state.player.current_health, 100)
        self.assertEqual(state.opponent.current_health, 40)
        self.assertIsNone(state.opponent.damage_threshold)
        self.assertEqual(state.events[0].category, "progress")

    def test_state_filters_events_by_time(self):
        self.mgr.tick_once(50.0)
        self.mgr.submit_spell("glacius", 1.0)
        self.mgr.tick_once(50.0)
        events = get_events(since=50.0, manager=self.mgr)
        self.assertTrue(events)
        self.assertTrue(all(ev.time_ms >= 50.0 for ev in events))
        self.assertNotIn("progress", [ev.category for ev in events])

    def test_cast_spell_queues(self):
        resp = cast_spell(SpellCastRequest(spell="incendio", confidence=0.7), manager=self.mgr)
        self.assertEqual(resp.status, "queued")
        self.assertEqual(resp.spell, "incendio")
        self.mgr.tick_once(50.0)
        state = get_state(since_ms=0.0, manager=self.mgr)
        self.assertEqual(state.opponent.current_health, 25)
        self.assertTrue(state.opponent.is_on_fire)

    def test_spell_request_validation(self):
        with self.assertRaises(ValidationError):
            SpellCastRequest(spell="", confidence=0.5)
        with self.assertRaises(ValidationError):
            SpellCastRequest(spell="glacius", confidence=1.5)
        self.assertEqual(SpellCastRequest(spell="glacius").confidence, 1.0)

    def test_control_skip(self):
        resp = control(ControlAction.skip, manager=self.mgr)
        self.assertEqual(resp.status, "ok")
        self.mgr.tick_once(50.0)
        self.assertEqual(get_state(since_ms=0.0, manager=self.mgr).step, "troll")

    def test_control_skip_after_victory(self):
        for _ in range(3):
            self.mgr.request_skip()
        self.mgr.tick_once(50.0)
        resp = control(ControlAction.skip, manager=self.mgr)
        self.assertEqual(resp.status, "noop")

    def test_control_reset(self):
        self.mgr.request_skip()
        self.mgr.tick_once(50.0)
        resp = control(ControlAction.reset, manager=self.mgr)
        self.assertEqual(resp.status, "ok")
        self.assertEqual(resp.tick, 0)
        self.assertEqual(get_state(since_ms=0.0, manager=self.mgr).step, "spider")

    def test_config(self):
        cfg = get_config(manager=self.mgr)
        self.assertEqual(cfg.seed, 42)
        self.assertEqual(cfg.spider_max_health, 40)
        self.assertEqual(cfg.boss_damage_threshold, 150)
        self.assertAlmostEqual(cfg.tick_rate, 1.0 / 30.0)

    def test_set_speed(self):
        resp = set_speed(tps=60.0, manager=self.mgr)
        self.assertEqual(resp.status, "ok")
        self.assertAlmostEqual(self.mgr.tick_rate, 1.0 / 60.0)


class TestAppFactory(unittest.TestCase):

    def test_routes_mounted(self):
        app = create_app(DuelConfig(seed=3))
        paths = {route.path for route in app.routes}
        for path in ("/api/v1/state", "/api/v1/events", "/api/v1/spells",
                     "/api/v1/control/{action}", "/api/v1/speed", "/api/v1/config"):
            self.assertIn(path, paths)
        self.assertEqual(app.title, "Spell Duel Engine")


class TestDependencies(unittest.TestCase):

    def test_unset_manager_raises(self):
        previous = dependencies._engine_manager
        dependencies._engine_manager = None
        try:
            with self.assertRaises(RuntimeError):
                dependencies.get_engine_manager()
        finally:
            dependencies._engine_manager = previous

    def test_set_manager(self):
        previous = dependencies._engine_manager
        mgr = _build_manager()
        try:
            dependencies.set_engine_manager(mgr)
            self.assertIs(dependencies.get_engine_manager(), mgr)
        finally:
            dependencies._engine_manager = previous


if __name__ == "__main__":
    unittest.main()
