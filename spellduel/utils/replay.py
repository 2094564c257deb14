"""Replay serialization — records tick-by-tick duel state for deterministic replay."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from spellduel.core.snapshot import Snapshot
    from spellduel.utils.event_log import DuelEvent

logger = logging.getLogger(__name__)


class ReplayRecorder:
    """Accumulates per-tick snapshots and events, flushes to a JSON replay file.

    Only ticks that produced events are recorded in full; the rest are
    skipped to keep replays small.
    """

    __slots__ = ("_path", "_ticks", "_seed", "_spells")

    def __init__(self, path: str | Path, seed: int) -> None:
        self._path = Path(path)
        self._seed = seed
        self._ticks: list[dict[str, Any]] = []
        self._spells: list[dict[str, Any]] = []

    @property
    def recorded_ticks(self) -> int:
        return len(self._ticks)

    def record_spell(self, time_ms: float, spell: str, confidence: float, outcome: str) -> None:
        self._spells.append({
            "time_ms": time_ms,
            "spell": spell,
            "confidence": confidence,
            "outcome": outcome,
        })

    def record_tick(self, snapshot: Snapshot, events: list[DuelEvent]) -> None:
        if not events:
            return
        self._ticks.append({
            "tick": snapshot.tick,
            "time_ms": snapshot.time_ms,
            "events": [
                {
                    "category": ev.category,
                    "message": ev.message,
                    "opponent_id": ev.opponent_id,
                    "metadata": ev.metadata,
                }
                for ev in events
            ],
            "state": asdict(snapshot),
        })

    def to_dict(self, final: Snapshot | None = None) -> dict[str, Any]:
        return {
            "version": "1.0",
            "seed": self._seed,
            "total_ticks": final.tick if final else len(self._ticks),
            "spells": self._spells,
            "ticks": self._ticks,
            "final": asdict(final) if final else None,
        }

    def flush(self, final: Snapshot | None = None) -> Path:
        """Write accumulated data to disk."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(json.dumps(self.to_dict(final), indent=2), encoding="utf-8")
        logger.info("Replay saved to %s (%d ticks)", self._path, len(self._ticks))
        return self._path
