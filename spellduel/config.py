"""Duel configuration with sensible defaults.

Every balancing number lives here so engine code only carries rules.
All durations are milliseconds of simulation time.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class DuelConfig:
    """Immutable configuration for one duel run."""

    # Run
    seed: int = 42
    tick_rate_hz: float = 30.0
    max_frame_ms: float = 250.0          # Clamp on real-time frame deltas (host loop)

    # Player
    player_max_health: int = 100
    player_max_magic: int = 100
    player_start_magic: int = 0
    magic_per_hit: int = 10              # Granted for every landed stun / damage spell

    # Opponent roster
    spider_max_health: int = 40
    troll_max_health: int = 100
    troll_damage_threshold: int = 100
    boss_max_health: int = 150
    boss_damage_threshold: int = 150

    # Skill timing
    initial_skill_delay_ms: float = 2000.0
    initial_skill_jitter_ms: float = 3000.0
    skill_cooldown_ms: float = 3000.0
    skill_cooldown_jitter_ms: float = 4000.0
    spider_combo_delay_ms: float = 1000.0

    # Cast durations
    web_cast_ms: float = 3000.0
    venom_cast_ms: float = 2000.0
    rockthrow_cast_ms: float = 4000.0
    chunkarmor_cast_ms: float = 1000.0
    stomp_cast_ms: float = 5000.0
    souldrain_cast_ms: float = 4000.0
    silenceshriek_cast_ms: float = 4000.0

    # Troll skill selection
    troll_armor_chance: float = 0.3
    troll_rockthrow_chance: float = 0.4

    # Skill effects
    web_immobilize_ms: float = 3000.0
    venom_damage_per_sec: int = 5
    venom_duration_ms: float = 4000.0
    rockthrow_damage: int = 30
    chunkarmor_duration_ms: float = 15000.0
    stomp_damage: int = 40
    stomp_protected_damage: int = 20
    souldrain_immobilize_ms: float = 4000.0
    souldrain_ticks: int = 4
    souldrain_interval_ms: float = 1000.0
    souldrain_damage: int = 15
    souldrain_heal: int = 15
    silenceshriek_duration_ms: float = 3000.0

    # Player spells
    protego_duration_ms: float = 5000.0
    confidence_scale: float = 1.5
    confidence_cap: float = 1.5

    # Opponent state windows
    spider_stun_ms: float = 2000.0
    troll_stun_ms: float = 2000.0
    boss_stun_ms: float = 4000.0
    levitate_ms: float = 2000.0
    shadow_phase_ms: float = 1000.0

    # Spell damage: spider
    spider_glacius_damage: int = 10
    spider_incendio_damage: int = 15
    spider_bombarda_damage: int = 20
    spider_depulso_damage: int = 15
    spider_airborne_knock_damage: int = 5
    spider_burn_ms: float = 5000.0
    spider_burn_damage: int = 10
    spider_burn_interval_ms: float = 1000.0
    spider_burnout_kill_ms: float = 2000.0

    # Spell damage: troll
    troll_glacius_damage: int = 10
    troll_incendio_damage: int = 10
    troll_bombarda_damage: int = 20
    troll_depulso_damage: int = 20

    # Spell damage: final boss (lands only while stunned)
    boss_glacius_damage: int = 30
    boss_incendio_damage: int = 25
    boss_bombarda_damage: int = 15
    boss_depulso_damage: int = 20

    # Feedback
    hit_flash_ms: float = 300.0
    hit_color: str = "#ff0000"

    # Logging / output
    log_level: str = "INFO"
    replay_file: str = "replay.json"

    def __post_init__(self) -> None:
        if self.tick_rate_hz <= 0:
            raise ValueError(f"tick_rate_hz must be positive, got {self.tick_rate_hz}")
        for name in ("player_max_health", "spider_max_health", "troll_max_health", "boss_max_health"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive")

    @property
    def frame_ms(self) -> float:
        """Length of one fixed simulation frame."""
        return 1000.0 / self.tick_rate_hz
