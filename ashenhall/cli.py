"""v1.0: CLI entry point – play / simulate / replay subcommands."""

from __future__ import annotations

import argparse
import glob
import logging
import sys
import time
from pathlib import Path

from ashenhall.config import GameConfig, TelemetryConfig
from ashenhall.display import render_board, render_log, render_result, render_stats
from ashenhall.engine import execute_full_game, run_to_completion
from ashenhall.loader import load_cards, load_deck
from ashenhall.replay import (
    initial_state_from_log, read_action_log, reconstruct_state_at_sequence,
    write_action_log,
)
from ashenhall.simulation import aggregate, load_logs, run_batch

DEFAULT_CARDS = Path(__file__).resolve().parent.parent / "data" / "cards.json"


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(prog="ashenhall", description="Ashenhall battle simulator v1.0")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command")

    # --- play ---
    p_play = sub.add_parser("play", help="Play a single seeded match")
    p_play.add_argument("--deck-a", required=True, help="Path to player1's deck JSON")
    p_play.add_argument("--deck-b", required=True, help="Path to player2's deck JSON")
    p_play.add_argument("--seed", default="42")
    p_play.add_argument("--game-id", default="game-1")
    p_play.add_argument("--cards", default=str(DEFAULT_CARDS), help="Path to cards.json")
    p_play.add_argument("--config", default=None, help="Path to a rules JSON file")
    p_play.add_argument("--max-turns", type=int, default=None, help="Override max_turns")
    p_play.add_argument("--log", default=None, help="Write the action log as JSONL")
    p_play.add_argument("--show-log", type=int, default=0,
                        help="Print the last N action log entries")
    p_play.add_argument("--wall-clock", action="store_true",
                        help="Stamp the log from the current time instead of 0")

    # --- simulate ---
    p_sim = sub.add_parser("simulate", help="Run batch simulation")
    p_sim.add_argument("--decks", nargs="+", required=True, help="Deck JSON files (glob supported)")
    p_sim.add_argument("--matches", type=int, default=10, help="Matches per pair")
    p_sim.add_argument("--seed", type=int, default=42)
    p_sim.add_argument("--output", default=None, help="Output directory")
    p_sim.add_argument("--cards", default=str(DEFAULT_CARDS), help="Path to cards.json")
    p_sim.add_argument("--config", default=None, help="Path to a rules JSON file")
    p_sim.add_argument("--telemetry", choices=["on", "off"], default="off",
                       help="Enable match telemetry collection")

    # --- stats ---
    p_stats = sub.add_parser("stats", help="Show stats from match logs")
    p_stats.add_argument("--logs", required=True, help="Path to match_logs.json")

    # --- replay ---
    p_rep = sub.add_parser("replay", help="Reconstruct a logged game at a sequence number")
    p_rep.add_argument("--log", required=True, help="JSONL action log written by 'play --log'")
    p_rep.add_argument("--sequence", type=int, default=None,
                       help="Target sequence (default: end of game)")
    p_rep.add_argument("--cards", default=str(DEFAULT_CARDS), help="Path to cards.json")
    p_rep.add_argument("--show-log", type=int, default=0,
                       help="Print the last N action log entries")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    if args.command == "play":
        _cmd_play(args)
    elif args.command == "simulate":
        _cmd_simulate(args)
    elif args.command == "stats":
        _cmd_stats(args)
    elif args.command == "replay":
        _cmd_replay(args)


def _load_config(path: str | None, **overrides: int | None) -> GameConfig:
    if path is None:
        return GameConfig.from_dict({}, **overrides)
    return GameConfig.from_json(path, **overrides)


def _cmd_play(args: argparse.Namespace) -> None:
    config = _load_config(args.config, max_turns=args.max_turns)
    catalog = load_cards(args.cards)
    deck_a = load_deck(args.deck_a, catalog, config)
    deck_b = load_deck(args.deck_b, catalog, config)

    gs = execute_full_game(
        args.game_id,
        deck_a.build(catalog, "p1"),
        deck_b.build(catalog, "p2"),
        deck_a.faction,
        deck_b.faction,
        deck_a.tactics,
        deck_b.tactics,
        args.seed,
        config=config,
        start_time=int(time.time() * 1000) if args.wall_clock else 0,
    )

    render_board(gs)
    render_result(gs)
    if args.show_log:
        print(f"\nLast {args.show_log} actions:")
        render_log(gs, args.show_log)
    if args.log:
        path = write_action_log(args.log, gs)
        print(f"Action log written to: {path}")


def _cmd_simulate(args: argparse.Namespace) -> None:
    config = _load_config(args.config)
    catalog = load_cards(args.cards)

    # Expand globs
    deck_paths: list[str] = []
    for pattern in args.decks:
        expanded = glob.glob(pattern)
        if expanded:
            deck_paths.extend(expanded)
        else:
            deck_paths.append(pattern)

    decks = [load_deck(p, catalog, config) for p in sorted(set(deck_paths))]
    print(f"Loaded {len(decks)} decks: {[d.deck_id for d in decks]}")

    telemetry = TelemetryConfig(
        enabled=args.telemetry == "on",
        save_match_summaries=args.telemetry == "on" and args.output is not None,
    )
    logs = run_batch(catalog, decks, args.matches, args.seed, args.output,
                     config=config, telemetry=telemetry)
    render_stats(aggregate(logs))

    if args.output is not None:
        print(f"Logs written to: {Path(args.output) / 'match_logs.json'}")


def _cmd_stats(args: argparse.Namespace) -> None:
    render_stats(aggregate(load_logs(args.logs)))


def _cmd_replay(args: argparse.Namespace) -> None:
    catalog = load_cards(args.cards)
    events = read_action_log(args.log)
    initial = initial_state_from_log(events, catalog)

    if args.sequence is None:
        gs = run_to_completion(initial)
    else:
        gs = reconstruct_state_at_sequence(initial, args.sequence)

    # one meta line, then one line per action
    logged = len(events) - 1
    print(f"Reconstructed {gs.game_id} at sequence {len(gs.action_log)} "
          f"({logged} actions logged)")
    render_board(gs)
    render_result(gs)
    if args.show_log:
        render_log(gs, args.show_log)


if __name__ == "__main__":
    main()
