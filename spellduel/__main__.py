"""Entry point: ``python -m spellduel``.

Supports two modes:
  - ``python -m spellduel``        → Launch the FastAPI duel server
  - ``python -m spellduel cli``    → Headless duel with a scripted spell feed
"""

from __future__ import annotations

import argparse
import logging

logger = logging.getLogger(__name__)


def parse_script(script: str) -> list[tuple[float, str, float]]:
    """Parse ``"ms:spell[:confidence],..."`` into a time-ordered spell feed."""
    feed: list[tuple[float, str, float]] = []
    for item in filter(None, (part.strip() for part in script.split(","))):
        parts = item.split(":")
        if len(parts) not in (2, 3):
            raise ValueError(f"bad script entry {item!r}, expected ms:spell[:confidence]")
        at_ms = float(parts[0])
        confidence = float(parts[2]) if len(parts) == 3 else 1.0
        feed.append((at_ms, parts[1].strip(), confidence))
    feed.sort(key=lambda entry: entry[0])
    return feed


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Real-time spell duel engine")
    sub = parser.add_subparsers(dest="command")

    # --- Server mode (default) ---
    srv = sub.add_parser("serve", help="Start the FastAPI duel server (default)")
    srv.add_argument("--host", type=str, default="127.0.0.1")
    srv.add_argument("--port", type=int, default=8000)
    srv.add_argument("--seed", type=int, default=42)
    srv.add_argument("--tick-rate", type=float, default=30.0)
    srv.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    # --- Headless CLI mode ---
    cli = sub.add_parser("cli", help="Run a headless scripted duel")
    cli.add_argument("--seed", type=int, default=42)
    cli.add_argument("--seconds", type=float, default=60.0)
    cli.add_argument("--tick-rate", type=float, default=30.0)
    cli.add_argument("--script", type=str, default="", help='Spell feed, e.g. "2500:bombarda:0.9,4000:protego"')
    cli.add_argument("--replay", type=str, default="replay.json")
    cli.add_argument("--log-level", type=str, default="INFO", choices=["DEBUG", "INFO", "WARNING"])

    return parser


def _run_server(args: argparse.Namespace) -> None:
    import uvicorn

    from spellduel.api.app import create_app
    from spellduel.config import DuelConfig

    config = DuelConfig(seed=args.seed, tick_rate_hz=args.tick_rate, log_level=args.log_level)
    app = create_app(config)
    uvicorn.run(app, host=args.host, port=args.port, log_level=args.log_level.lower())


def _run_cli(args: argparse.Namespace) -> None:
    from spellduel.api.engine_manager import EngineManager
    from spellduel.config import DuelConfig
    from spellduel.utils.logging import setup_logging
    from spellduel.utils.replay import ReplayRecorder

    config = DuelConfig(
        seed=args.seed,
        tick_rate_hz=args.tick_rate,
        replay_file=args.replay,
        log_level=args.log_level,
    )
    setup_logging(config.log_level)
    feed = parse_script(args.script)

    recorder = ReplayRecorder(config.replay_file, config.seed)
    manager = EngineManager(config, recorder=recorder)
    duration_ms = args.seconds * 1000.0
    logger.info("=== Duel started (seed=%d, %d scripted spell(s)) ===", config.seed, len(feed))

    encounter = manager.encounter
    cursor = 0
    while encounter.now < duration_ms:
        while cursor < len(feed) and feed[cursor][0] <= encounter.now:
            _, spell, confidence = feed[cursor]
            manager.submit_spell(spell, confidence)
            cursor += 1
        if not manager.tick_once(config.frame_ms):
            break

    final = manager.get_snapshot()
    if final is not None:
        outcome = "victory" if final.game_won else "defeat" if final.game_over else "unfinished"
        logger.info("=== Duel finished at %.0f ms: %s (player %d hp, step %s) ===",
                    final.time_ms, outcome, final.player.current_health, final.step)
    recorder.flush(final)
    logger.info("Done. Replay written to %s", config.replay_file)


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    # Default to serve mode if no subcommand given
    if args.command is None or args.command == "serve":
        if args.command is None:
            args = parser.parse_args(["serve"])
        _run_server(args)
    elif args.command == "cli":
        _run_cli(args)


if __name__ == "__main__":
    main()
