"""v1.0: CLI display – board state, game result, action log and stats."""

from __future__ import annotations

from typing import Any

from ashenhall.action_log import action_to_dict
from ashenhall.models import PLAYER_IDS, FieldCard, GameState


def _creature(c: FieldCard) -> str:
    flags = ""
    if c.keywords:
        flags += " " + ",".join(c.keywords)
    if c.status_effects:
        flags += " (" + ",".join(s.type for s in c.status_effects) + ")"
    return f"[{c.card.name} {c.total_attack}/{c.current_health}{flags}]"


def render_board(gs: GameState) -> None:
    print(f"\n{'='*60}")
    print(f"  Turn {gs.turn_number}  |  Active: {gs.current_player}  |  Phase: {gs.phase}")
    print(f"{'='*60}")

    for pid in PLAYER_IDS:
        p = gs.players[pid]
        marker = " <<" if pid == gs.current_player else ""
        print(f"  {pid} ({p.faction}/{p.tactics_type}): Life={p.life}  "
              f"Energy={p.energy}/{p.max_energy}  Hand={len(p.hand)}  "
              f"Deck={len(p.deck)}  Grave={len(p.graveyard)}{marker}")
        if p.field:
            print(f"      Field: {'  '.join(_creature(c) for c in p.field)}")
        else:
            print(f"      Field: (empty)")
    print()


def render_result(gs: GameState) -> None:
    result = gs.result
    if result is None:
        print("  Game in progress")
        return
    print(f"  Winner: {result.winner or 'draw'} (reason: {result.reason})")
    print(f"  Turns: {result.total_turns}  Actions: {len(gs.action_log)}")
    lives = "  ".join(f"{pid}={gs.players[pid].life}" for pid in PLAYER_IDS)
    print(f"  Final life: {lives}")


def render_log(gs: GameState, limit: int | None = None) -> None:
    actions = gs.action_log if limit is None else gs.action_log[-limit:]
    for action in actions:
        d = action_to_dict(action)
        print(f"  #{d['sequence']:4d} {d['player_id']:8s} {d['type']:18s} {d['data']}")


def render_stats(stats: dict[str, Any]) -> None:
    print(f"\n{'='*60}")
    print(f"  Simulation Results  ({stats['total_matches']} matches)")
    print(f"{'='*60}")

    for did, ds in stats["decks"].items():
        print(f"  {did:20s}  W={ds['wins']:4d}  L={ds['losses']:4d}  "
              f"D={ds['draws']:4d}  WR={ds['win_rate']:5.1f}%")

    print("\n  By tactics:")
    for tactics, ts in stats["tactics"].items():
        print(f"  {tactics:20s}  W={ts['wins']:4d}  L={ts['losses']:4d}  "
              f"D={ts['draws']:4d}  WR={ts['win_rate']:5.1f}%")

    print(f"\n  Seat 1 wins: {stats['seat_1_wins']}  |  "
          f"Seat 2 wins: {stats['seat_2_wins']}  |  "
          f"Draws: {stats['draws']}  |  "
          f"Mean turns: {stats['mean_turns']}")
    print()
