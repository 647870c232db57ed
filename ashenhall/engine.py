"""v1.0: Game engine – initial state, win check, step function, full game."""

from __future__ import annotations

import logging
from typing import Sequence

from ashenhall.action_log import PhaseChangeData, add_action
from ashenhall.config import DEFAULT_CONFIG, FACTIONS, TACTICS, GameConfig
from ashenhall.models import Card, GameResult, GameState, PlayerState
from ashenhall.phases import PHASE_PROCESSORS
from ashenhall.rng import make_rng, shuffled

logger = logging.getLogger(__name__)


def create_initial_game_state(
    game_id: str,
    deck1: Sequence[Card],
    deck2: Sequence[Card],
    faction1: str,
    faction2: str,
    tactics1: str,
    tactics2: str,
    seed: str,
    config: GameConfig = DEFAULT_CONFIG,
    start_time: int = 0,
) -> GameState:
    for faction in (faction1, faction2):
        if faction not in FACTIONS:
            raise ValueError(f"Unknown faction: {faction}")
    for tactics in (tactics1, tactics2):
        if tactics not in TACTICS:
            raise ValueError(f"Unknown tactics: {tactics}")
    ids = [c.id for c in deck1] + [c.id for c in deck2]
    if len(set(ids)) != len(ids):
        raise ValueError("Card instance ids must be unique across both decks")

    rng = make_rng(seed)
    cards1 = shuffled(rng, deck1)
    cards2 = shuffled(rng, deck2)
    n = config.initial_hand_size

    def _player(pid: str, faction: str, tactics: str, cards: list[Card]) -> PlayerState:
        return PlayerState(
            id=pid,
            faction=faction,
            tactics_type=tactics,
            life=config.initial_life,
            energy=config.initial_energy,
            max_energy=config.initial_max_energy,
            deck=cards[n:],
            hand=cards[:n],
        )

    first = "player1" if rng.random() < 0.5 else "player2"
    state = GameState(
        game_id=game_id,
        turn_number=1,
        current_player=first,
        phase="draw",
        players={
            "player1": _player("player1", faction1, tactics1, cards1),
            "player2": _player("player2", faction2, tactics2, cards2),
        },
        action_log=[],
        random_seed=seed,
        start_time=start_time,
        config=config,
        initial_decks={"player1": list(deck1), "player2": list(deck2)},
    )
    add_action(state, first, PhaseChangeData("draw", "draw"))
    return state


def _make_result(state: GameState, winner: str | None, reason: str) -> GameResult:
    end_time = state.action_log[-1].timestamp if state.action_log else state.start_time
    return GameResult(
        winner=winner,
        reason=reason,
        total_turns=state.turn_number,
        duration_seconds=(end_time - state.start_time) // 1000,
        end_time=end_time,
    )


def check_game_end(state: GameState) -> GameResult | None:
    life1 = state.players["player1"].life
    life2 = state.players["player2"].life
    if life1 <= 0 and life2 <= 0:
        return _make_result(state, None, "life_zero")
    if life1 <= 0:
        return _make_result(state, "player2", "life_zero")
    if life2 <= 0:
        return _make_result(state, "player1", "life_zero")

    if state.turn_number > state.config.max_turns:
        if life1 > life2:
            return _make_result(state, "player1", "timeout")
        if life2 > life1:
            return _make_result(state, "player2", "timeout")
        return _make_result(state, None, "timeout")
    return None


def process_game_step(state: GameState) -> GameState:
    """Advance exactly one phase on a copy; finished games pass through."""
    if state.result is not None:
        return state

    new_state = state.clone()
    result = check_game_end(new_state)
    if result is not None:
        new_state.result = result
        logger.info(
            f"Game {new_state.game_id} ended on turn {result.total_turns}: "
            f"winner={result.winner} reason={result.reason}"
        )
        return new_state

    processor = PHASE_PROCESSORS.get(new_state.phase)
    if processor is None:
        raise ValueError(f"Unknown phase: {new_state.phase}")
    processor(new_state)
    return new_state


def run_to_completion(state: GameState) -> GameState:
    """Step until a result is set, forcing a timeout after ``max_steps``."""
    for _ in range(state.config.max_steps):
        if state.result is not None:
            return state
        state = process_game_step(state)
    if state.result is None:
        logger.warning(f"Game {state.game_id} hit the step limit; forcing a timeout")
        state = state.clone()
        state.result = _make_result(state, None, "timeout")
    return state


def execute_full_game(
    game_id: str,
    deck1: Sequence[Card],
    deck2: Sequence[Card],
    faction1: str,
    faction2: str,
    tactics1: str,
    tactics2: str,
    seed: str,
    config: GameConfig = DEFAULT_CONFIG,
    start_time: int = 0,
) -> GameState:
    state = create_initial_game_state(
        game_id, deck1, deck2, faction1, faction2, tactics1, tactics2, seed,
        config=config, start_time=start_time,
    )
    logger.info(
        f"Game {game_id}: {faction1}/{tactics1} vs {faction2}/{tactics2}, "
        f"seed={seed!r}, first={state.current_player}"
    )
    return run_to_completion(state)
