"""v1.0: Replay – state reconstruction, JSONL log writer, snapshots."""

from __future__ import annotations

import json
from dataclasses import asdict, replace
from pathlib import Path
from typing import Any, Iterator, TYPE_CHECKING

from ashenhall.action_log import action_to_dict
from ashenhall.config import GameConfig
from ashenhall.engine import create_initial_game_state, process_game_step

if TYPE_CHECKING:
    from ashenhall.loader import CardCatalog
    from ashenhall.models import FieldCard, GameState, PlayerState


# ---------------------------------------------------------------------------
# Reconstruction
# ---------------------------------------------------------------------------

def reconstruct_initial_state(state: "GameState") -> "GameState":
    """Rebuild the state a game started from, using its stored inputs."""
    p1 = state.players["player1"]
    p2 = state.players["player2"]
    return create_initial_game_state(
        state.game_id,
        state.initial_decks["player1"],
        state.initial_decks["player2"],
        p1.faction,
        p2.faction,
        p1.tactics_type,
        p2.tactics_type,
        state.random_seed,
        config=state.config,
        start_time=state.start_time,
    )


def iter_states(state: "GameState") -> Iterator["GameState"]:
    """Yield every step-boundary state of a game, initial state first."""
    current = reconstruct_initial_state(state)
    yield current
    for _ in range(state.config.max_steps):
        if current.result is not None:
            return
        current = process_game_step(current)
        yield current


def reconstruct_state_at_sequence(state: "GameState", target_sequence: int) -> "GameState":
    """Replay from the initial state to the first step whose log reaches ``target_sequence``.

    Step boundaries are the only points at which a state is observable, so
    the result is the earliest boundary holding at least ``target_sequence``
    log entries (or the final state).
    """
    if target_sequence < 0:
        raise ValueError(f"target_sequence must be >= 0, got {target_sequence}")
    current = None
    for current in iter_states(state):
        if len(current.action_log) >= target_sequence:
            return current
    return current


# ---------------------------------------------------------------------------
# Snapshots
# ---------------------------------------------------------------------------

def snapshot_field(field_cards: "list[FieldCard]") -> list[dict]:
    """Snapshot a field as a list of dicts."""
    return [
        {
            "id": c.id,
            "template_id": c.template_id,
            "attack": c.total_attack,
            "health": c.current_health,
            "max_health": c.max_health,
            "position": c.position,
            "statuses": [s.type for s in c.status_effects],
        }
        for c in field_cards
    ]


def snapshot_player(player: "PlayerState") -> dict:
    """Snapshot a player's state."""
    return {
        "life": player.life,
        "energy": player.energy,
        "max_energy": player.max_energy,
        "hand_count": len(player.hand),
        "deck_count": len(player.deck),
        "graveyard_count": len(player.graveyard),
        "banished_count": len(player.banished_cards),
        "field": snapshot_field(player.field),
    }


def _meta(state: "GameState") -> dict[str, Any]:
    meta: dict[str, Any] = {
        "type": "meta",
        "game_id": state.game_id,
        "seed": state.random_seed,
        "start_time": state.start_time,
        "config": asdict(state.config),
        "initial_decks": {
            pid: [{"id": c.id, "template_id": c.template_id} for c in cards]
            for pid, cards in state.initial_decks.items()
        },
        "players": {
            pid: {"faction": p.faction, "tactics": p.tactics_type}
            for pid, p in state.players.items()
        },
    }
    if state.result is not None:
        meta["result"] = {
            "winner": state.result.winner,
            "reason": state.result.reason,
            "total_turns": state.result.total_turns,
        }
    return meta


# ---------------------------------------------------------------------------
# JSONL writer
# ---------------------------------------------------------------------------

class ReplayWriter:
    """Writes replay events as JSONL to a file."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._file = open(self._path, "w", encoding="utf-8")
        self._closed = False

    def write(self, event: dict) -> None:
        if self._closed:
            raise RuntimeError("ReplayWriter is closed")
        self._file.write(json.dumps(event, ensure_ascii=False) + "\n")

    def write_game(self, state: "GameState") -> None:
        self.write(_meta(state))
        for action in state.action_log:
            self.write(action_to_dict(action))

    def close(self) -> None:
        if not self._closed:
            self._file.close()
            self._closed = True

    @property
    def path(self) -> Path:
        return self._path

    def __enter__(self) -> "ReplayWriter":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


def write_action_log(path: str | Path, state: "GameState") -> Path:
    """Write a finished (or partial) game as a JSONL file."""
    with ReplayWriter(Path(path)) as writer:
        writer.write_game(state)
    return writer.path


def read_action_log(path: str | Path) -> list[dict]:
    events: list[dict] = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line:
                events.append(json.loads(line))
    return events


def initial_state_from_log(events: list[dict], catalog: "CardCatalog") -> "GameState":
    """Rebuild a game's initial state from the meta line of a JSONL log."""
    if not events or events[0].get("type") != "meta":
        raise ValueError("Replay log must start with a meta line")
    meta = events[0]

    decks = {}
    for pid, entries in meta["initial_decks"].items():
        cards = []
        for entry in entries:
            template = catalog.get_card_by_id(entry["template_id"])
            if template is None:
                raise ValueError(f"Replay log references unknown card '{entry['template_id']}'")
            cards.append(replace(template, id=entry["id"]))
        decks[pid] = cards

    players = meta["players"]
    return create_initial_game_state(
        meta["game_id"],
        decks["player1"],
        decks["player2"],
        players["player1"]["faction"],
        players["player2"]["faction"],
        players["player1"]["tactics"],
        players["player2"]["tactics"],
        meta["seed"],
        config=GameConfig.from_dict(meta.get("config", {})),
        start_time=meta.get("start_time", 0),
    )
