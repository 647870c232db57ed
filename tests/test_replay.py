"""Tests for replay reconstruction and JSONL action logs."""

import os
import tempfile
import unittest
from pathlib import Path

from ashenhall.engine import create_initial_game_state, execute_full_game, process_game_step
from ashenhall.loader import load_cards, load_deck
from ashenhall.replay import (
    ReplayWriter, initial_state_from_log, iter_states, read_action_log,
    reconstruct_initial_state, reconstruct_state_at_sequence, snapshot_player,
    write_action_log,
)

DATA_DIR = os.path.join(os.path.dirname(__file__), "..", "data")
CATALOG = load_cards(os.path.join(DATA_DIR, "cards.json"))


def _game(seed="replay-seed"):
    a = load_deck(os.path.join(DATA_DIR, "decks", "necromancer_graveyard.json"), CATALOG)
    b = load_deck(os.path.join(DATA_DIR, "decks", "mage_spellweave.json"), CATALOG)
    return execute_full_game(
        "replay-1", a.build(CATALOG, "p1"), b.build(CATALOG, "p2"),
        a.faction, b.faction, a.tactics, b.tactics, seed,
    )


class TestReconstruction(unittest.TestCase):
    def setUp(self):
        self.game = _game()

    def test_initial_state_matches(self):
        initial = reconstruct_initial_state(self.game)
        self.assertEqual(initial.action_log, self.game.action_log[:1])
        self.assertEqual(initial.current_player, self.game.action_log[0].player_id)

    def test_full_replay_reproduces_log(self):
        final = None
        for final in iter_states(self.game):
            pass
        self.assertEqual(final.action_log, self.game.action_log)
        self.assertEqual(final.result, self.game.result)

    def test_state_at_step_boundary(self):
        initial = reconstruct_initial_state(self.game)
        expected = initial
        for _ in range(40):
            expected = process_game_step(expected)
        target = len(expected.action_log)

        state = reconstruct_state_at_sequence(self.game, target)
        self.assertEqual(state.action_log, self.game.action_log[:len(state.action_log)])
        self.assertGreaterEqual(len(state.action_log), target)
        for pid in ("player1", "player2"):
            self.assertEqual(snapshot_player(state.players[pid]),
                             snapshot_player(expected.players[pid]))

    def test_past_end_returns_final_state(self):
        state = reconstruct_state_at_sequence(self.game, len(self.game.action_log) + 100)
        self.assertEqual(state.result, self.game.result)

    def test_negative_sequence_rejected(self):
        with self.assertRaises(ValueError):
            reconstruct_state_at_sequence(self.game, -1)


class TestActionLogFile(unittest.TestCase):
    def test_write_and_read(self):
        game = _game()
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_action_log(Path(tmpdir) / "logs" / "game.jsonl", game)
            events = read_action_log(path)

        self.assertEqual(len(events), 1 + len(game.action_log))
        meta = events[0]
        self.assertEqual(meta["type"], "meta")
        self.assertEqual(meta["seed"], "replay-seed")
        self.assertEqual(meta["result"]["reason"], game.result.reason)
        self.assertEqual(events[1]["sequence"], 0)
        self.assertEqual(events[-1]["sequence"], len(game.action_log) - 1)

    def test_initial_state_from_log_replays_same_game(self):
        game = _game()
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_action_log(os.path.join(tmpdir, "game.jsonl"), game)
            events = read_action_log(path)

        initial = initial_state_from_log(events, CATALOG)
        self.assertEqual(initial.random_seed, game.random_seed)
        state = reconstruct_state_at_sequence(initial, len(game.action_log) + 1)
        self.assertEqual(state.action_log, game.action_log)

    def test_log_without_meta_rejected(self):
        with self.assertRaises(ValueError):
            initial_state_from_log([], CATALOG)
        with self.assertRaises(ValueError):
            initial_state_from_log([{"type": "phase_change"}], CATALOG)

    def test_unknown_template_rejected(self):
        state = create_initial_game_state("g", [], [], "mage", "knight", "tempo", "balanced", "s")
        with tempfile.TemporaryDirectory() as tmpdir:
            path = write_action_log(os.path.join(tmpdir, "g.jsonl"), state)
            events = read_action_log(path)
        events[0]["initial_decks"]["player1"] = [{"id": "p1-dragon-1", "template_id": "dragon"}]
        with self.assertRaises(ValueError):
            initial_state_from_log(events, CATALOG)

    def test_closed_writer_raises(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            writer = ReplayWriter(Path(tmpdir) / "out.jsonl")
            writer.write({"type": "meta"})
            writer.close()
            writer.close()
            with self.assertRaises(RuntimeError):
                writer.write({"type": "meta"})


if __name__ == "__main__":
    unittest.main()
