"""v1.0: Batch simulation and aggregation."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from itertools import combinations
from pathlib import Path
from typing import Any

from ashenhall.config import DEFAULT_CONFIG, GameConfig, TelemetryConfig
from ashenhall.engine import execute_full_game
from ashenhall.loader import CardCatalog, DeckDef
from ashenhall.metrics import aggregate_match_summaries
from ashenhall.replay import ReplayWriter
from ashenhall.telemetry import MatchTelemetry

logger = logging.getLogger(__name__)


@dataclass
class MatchLog:
    game_id: str
    seed: str
    deck_ids: tuple[str, str]           # (player1, player2)
    tactics: tuple[str, str]
    winner: str | None                  # player id, None for a draw
    reason: str
    turns: int
    final_life: tuple[int, int]
    summary: dict[str, Any] | None = None

    @property
    def winning_seat(self) -> int | None:
        if self.winner is None:
            return None
        return 0 if self.winner == "player1" else 1


def play_match(
    catalog: CardCatalog,
    deck_a: DeckDef,
    deck_b: DeckDef,
    seed: str,
    game_id: str,
    config: GameConfig = DEFAULT_CONFIG,
    telemetry_enabled: bool = False,
) -> MatchLog:
    """One seeded game with ``deck_a`` as player1 and ``deck_b`` as player2."""
    state = execute_full_game(
        game_id,
        deck_a.build(catalog, "p1"),
        deck_b.build(catalog, "p2"),
        deck_a.faction,
        deck_b.faction,
        deck_a.tactics,
        deck_b.tactics,
        seed,
        config=config,
    )
    result = state.result
    summary = None
    if telemetry_enabled:
        summary = MatchTelemetry.from_game(state).to_summary()
        summary["p1_deck"] = deck_a.deck_id
        summary["p2_deck"] = deck_b.deck_id
    return MatchLog(
        game_id=game_id,
        seed=seed,
        deck_ids=(deck_a.deck_id, deck_b.deck_id),
        tactics=(deck_a.tactics, deck_b.tactics),
        winner=result.winner,
        reason=result.reason,
        turns=result.total_turns,
        final_life=(state.players["player1"].life, state.players["player2"].life),
        summary=summary,
    )


def run_batch(
    catalog: CardCatalog,
    decks: list[DeckDef],
    n_matches: int,
    base_seed: int,
    output_dir: str | Path | None = None,
    config: GameConfig = DEFAULT_CONFIG,
    telemetry: TelemetryConfig | None = None,
) -> list[MatchLog]:
    """Run round-robin matches between all deck pairs, alternating seats."""
    if telemetry is None:
        telemetry = TelemetryConfig(enabled=False)
    logs: list[MatchLog] = []
    pairs = list(combinations(range(len(decks)), 2))
    logger.info(f"Simulating {len(pairs)} pair(s) x {n_matches} match(es)")

    match_id = 0
    for i, j in pairs:
        for m in range(n_matches):
            first, second = (decks[i], decks[j]) if m % 2 == 0 else (decks[j], decks[i])
            log = play_match(
                catalog, first, second,
                seed=f"{base_seed}-{match_id}",
                game_id=f"match-{match_id}",
                config=config,
                telemetry_enabled=telemetry.enabled,
            )
            logs.append(log)
            match_id += 1
        logger.debug(f"Finished {decks[i].deck_id} vs {decks[j].deck_id}")

    if output_dir is not None:
        out = Path(output_dir)
        out.mkdir(parents=True, exist_ok=True)
        _write_logs(logs, out / "match_logs.json")
        logger.info(f"Match logs written to {out / 'match_logs.json'}")

    if telemetry.enabled and telemetry.save_match_summaries:
        path = Path(telemetry.output_path or Path(output_dir or ".") / "match_summaries.jsonl")
        with ReplayWriter(path) as writer:
            for log in logs:
                writer.write(log.summary)
        logger.info(f"Match summaries written to {path}")

    return logs


def _write_logs(logs: list[MatchLog], path: Path) -> None:
    data = []
    for log in logs:
        entry = asdict(log)
        entry.pop("summary")
        data.append(entry)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)


def load_logs(path: str | Path) -> list[MatchLog]:
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return [
        MatchLog(
            game_id=e["game_id"],
            seed=e["seed"],
            deck_ids=tuple(e["deck_ids"]),
            tactics=tuple(e["tactics"]),
            winner=e["winner"],
            reason=e["reason"],
            turns=e["turns"],
            final_life=tuple(e["final_life"]),
        )
        for e in raw
    ]


def _record() -> dict[str, int]:
    return {"wins": 0, "losses": 0, "draws": 0, "games": 0}


def _rates(table: dict[str, dict[str, int]]) -> dict[str, dict[str, Any]]:
    out: dict[str, dict[str, Any]] = {}
    for key, stats in sorted(table.items()):
        games = stats["games"]
        out[key] = {
            **stats,
            "win_rate": round(stats["wins"] / games * 100, 1) if games else 0,
        }
    return out


def aggregate(logs: list[MatchLog]) -> dict[str, Any]:
    """Compute per-deck and per-tactics win rates and seat stats."""
    deck_stats: dict[str, dict[str, int]] = {}
    tactics_stats: dict[str, dict[str, int]] = {}
    seat_wins = [0, 0]
    draws = 0

    for log in logs:
        for table, keys in ((deck_stats, log.deck_ids), (tactics_stats, log.tactics)):
            for seat, key in enumerate(keys):
                rec = table.setdefault(key, _record())
                rec["games"] += 1
                if log.winning_seat is None:
                    rec["draws"] += 1
                elif log.winning_seat == seat:
                    rec["wins"] += 1
                else:
                    rec["losses"] += 1

        if log.winning_seat is None:
            draws += 1
        else:
            seat_wins[log.winning_seat] += 1

    result: dict[str, Any] = {
        "total_matches": len(logs),
        "draws": draws,
        "decks": _rates(deck_stats),
        "tactics": _rates(tactics_stats),
        "seat_1_wins": seat_wins[0],
        "seat_2_wins": seat_wins[1],
        "mean_turns": round(sum(l.turns for l in logs) / len(logs), 2) if logs else 0,
    }

    summaries = [log.summary for log in logs if log.summary is not None]
    if summaries:
        result["telemetry"] = aggregate_match_summaries(summaries, ["p1_deck"])
    return result
