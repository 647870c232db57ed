"""Tests for game setup, the step function and full games."""

import os
import unittest

from ashenhall.config import GameConfig
from ashenhall.engine import (
    check_game_end, create_initial_game_state, execute_full_game,
    process_game_step, run_to_completion,
)
from ashenhall.loader import load_cards, load_deck
from ashenhall.models import other_player

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")
CATALOG = load_cards(os.path.join(DATA_DIR, "cards.json"))


def _deck(name):
    return load_deck(os.path.join(DATA_DIR, "decks", f"{name}.json"), CATALOG)


def _game_args(seed="seed-1"):
    a = _deck("knight_formation")
    b = _deck("berserker_rush")
    return (
        "game-1", a.build(CATALOG, "p1"), b.build(CATALOG, "p2"),
        a.faction, b.faction, a.tactics, b.tactics, seed,
    )


class TestInitialState(unittest.TestCase):
    def test_opening_hands(self):
        state = create_initial_game_state(*_game_args())
        for player in state.players.values():
            self.assertEqual(len(player.hand), 3)
            self.assertEqual(len(player.deck), 17)
            self.assertEqual(player.life, 15)
            self.assertEqual(player.max_energy, 0)
        self.assertEqual(state.turn_number, 1)
        self.assertEqual(state.phase, "draw")
        self.assertEqual(len(state.action_log), 1)
        self.assertEqual(state.action_log[0].type, "phase_change")
        self.assertEqual(state.action_log[0].player_id, state.current_player)

    def test_same_seed_same_shuffle(self):
        s1 = create_initial_game_state(*_game_args("x"))
        s2 = create_initial_game_state(*_game_args("x"))
        self.assertEqual([c.id for c in s1.players["player1"].deck],
                         [c.id for c in s2.players["player1"].deck])
        self.assertEqual(s1.current_player, s2.current_player)

    def test_rejects_bad_inputs(self):
        args = list(_game_args())
        with self.assertRaises(ValueError):
            create_initial_game_state(*args[:3], "pirate", *args[4:])
        with self.assertRaises(ValueError):
            create_initial_game_state(*args[:5], "reckless", *args[6:])

    def test_rejects_duplicate_instance_ids(self):
        a = _deck("knight_formation")
        cards = a.build(CATALOG, "p1")
        with self.assertRaises(ValueError):
            create_initial_game_state("g", cards, cards, "knight", "knight",
                                      "defensive", "defensive", "s")


class TestCheckGameEnd(unittest.TestCase):
    def setUp(self):
        self.state = create_initial_game_state(*_game_args())

    def test_ongoing(self):
        self.assertIsNone(check_game_end(self.state))

    def test_life_zero(self):
        self.state.players["player2"].life = 0
        result = check_game_end(self.state)
        self.assertEqual((result.winner, result.reason), ("player1", "life_zero"))

    def test_both_dead_is_a_draw(self):
        self.state.players["player1"].life = 0
        self.state.players["player2"].life = -1
        result = check_game_end(self.state)
        self.assertIsNone(result.winner)
        self.assertEqual(result.reason, "life_zero")

    def test_timeout_compares_life(self):
        self.state.turn_number = 31
        self.state.players["player1"].life = 4
        self.state.players["player2"].life = 9
        self.assertEqual(check_game_end(self.state).winner, "player2")
        self.state.players["player1"].life = 9
        result = check_game_end(self.state)
        self.assertIsNone(result.winner)
        self.assertEqual(result.reason, "timeout")


class TestStep(unittest.TestCase):
    def test_step_does_not_touch_input(self):
        state = create_initial_game_state(*_game_args())
        log_len = len(state.action_log)
        hand = list(state.active().hand)
        new_state = process_game_step(state)
        self.assertIsNot(new_state, state)
        self.assertEqual(len(state.action_log), log_len)
        self.assertEqual(state.active().hand, hand)
        self.assertEqual(new_state.phase, "energy")

    def test_finished_game_passes_through(self):
        state = execute_full_game(*_game_args())
        self.assertIs(process_game_step(state), state)

    def test_unknown_phase_raises(self):
        state = create_initial_game_state(*_game_args())
        state.phase = "upkeep"
        with self.assertRaises(ValueError):
            process_game_step(state)

    def test_log_grows_append_only(self):
        state = create_initial_game_state(*_game_args())
        for _ in range(60):
            new_state = process_game_step(state)
            self.assertEqual(new_state.action_log[:len(state.action_log)], state.action_log)
            state = new_state


class TestFullGame(unittest.TestCase):
    def test_timeout_with_short_limit(self):
        config = GameConfig(max_turns=2)
        state = execute_full_game(*_game_args(), config=config)
        self.assertEqual(state.result.reason, "timeout")
        self.assertEqual(state.result.total_turns, 3)

    def test_empty_decks_end_by_fatigue(self):
        state = create_initial_game_state("empty", [], [], "mage", "knight",
                                          "tempo", "defensive", "fatigue")
        first = state.current_player
        final = run_to_completion(state)
        self.assertEqual(final.result.reason, "life_zero")
        self.assertEqual(final.result.winner, other_player(first))
        self.assertEqual(final.result.total_turns, 29)
        self.assertEqual(final.players[first].life, 0)
        self.assertEqual(final.players[other_player(first)].life, 1)

    def test_determinism(self):
        s1 = execute_full_game(*_game_args("repeat"))
        s2 = execute_full_game(*_game_args("repeat"))
        self.assertEqual(s1.action_log, s2.action_log)
        self.assertEqual(s1.result, s2.result)

    def test_log_sequence_and_timestamps(self):
        state = execute_full_game(*_game_args(), start_time=1000)
        for i, action in enumerate(state.action_log):
            self.assertEqual(action.sequence, i)
            self.assertEqual(action.timestamp, 1000 + i)
        self.assertEqual(state.result.end_time, state.action_log[-1].timestamp)

    def test_every_deck_pair_finishes(self):
        names = ["necromancer_graveyard", "berserker_rush", "mage_spellweave",
                 "knight_formation", "inquisitor_judgment"]
        for name in names:
            a = _deck(name)
            b = _deck("inquisitor_judgment")
            state = execute_full_game(
                f"{name}-vs-inq", a.build(CATALOG, "p1"), b.build(CATALOG, "p2"),
                a.faction, b.faction, a.tactics, b.tactics, name,
            )
            self.assertIsNotNone(state.result)
            self.assertLessEqual(state.result.total_turns, 31)


if __name__ == "__main__":
    unittest.main()
