"""Tests for the phase processors."""

import unittest

from ashenhall.action_log import actions_of_type
from ashenhall.models import (
    PLAYER_IDS, Card, FieldCard, GameState, PlayerState, PoisonStatus, StunStatus,
)
from ashenhall.phases import (
    advance_phase, can_play_card, play_card_to_field, process_deploy_phase,
    process_draw_phase, process_end_phase, process_energy_phase,
)


def _card(cid, attack=2, health=2, cost=2, card_type="creature", template_id=None):
    return Card(id=cid, template_id=template_id or cid, name=cid, card_type=card_type,
                faction="knight", cost=cost, attack=attack, health=health)


def _state(phase="draw", turn=2, current="player1"):
    players = {pid: PlayerState(id=pid, faction="knight", tactics_type="balanced") for pid in PLAYER_IDS}
    return GameState(
        game_id="g", turn_number=turn, current_player=current, phase=phase,
        players=players, action_log=[], random_seed="s", start_time=0,
    )


def _summon(state, pid, card):
    field = state.players[pid].field
    fc = FieldCard.from_card(card, pid, 1, len(field))
    field.append(fc)
    return fc


class TestAdvancePhase(unittest.TestCase):
    def test_within_turn(self):
        state = _state("deploy")
        advance_phase(state)
        self.assertEqual(state.phase, "battle")
        self.assertEqual(state.turn_number, 2)
        self.assertEqual(state.action_log[0].data.to_phase, "battle")

    def test_end_wraps_to_next_player(self):
        state = _state("end")
        advance_phase(state)
        self.assertEqual((state.phase, state.current_player, state.turn_number), ("draw", "player2", 3))
        self.assertEqual(state.action_log[0].player_id, "player2")


class TestDrawPhase(unittest.TestCase):
    def test_draws_from_deck_top(self):
        state = _state()
        player = state.players["player1"]
        player.deck = [_card("bottom"), _card("top")]
        process_draw_phase(state)
        self.assertEqual([c.id for c in player.hand], ["top"])
        self.assertEqual(state.phase, "energy")

    def test_full_hand_skips_draw(self):
        state = _state()
        player = state.players["player1"]
        player.hand = [_card(f"h{i}") for i in range(7)]
        player.deck = [_card("top")]
        process_draw_phase(state)
        self.assertEqual(len(player.hand), 7)
        self.assertEqual(len(player.deck), 1)

    def test_empty_deck_deals_fatigue(self):
        state = _state()
        process_draw_phase(state)
        self.assertEqual(state.players["player1"].life, 14)
        fatigue = actions_of_type(state.action_log, "effect_trigger")[0].data
        self.assertEqual(fatigue.source_card_id, "deck_empty")
        self.assertEqual(fatigue.targets["player1"].life, (15, 14))


class TestEnergyPhase(unittest.TestCase):
    def test_gains_and_refills(self):
        state = _state("energy")
        process_energy_phase(state)
        player = state.players["player1"]
        self.assertEqual((player.energy, player.max_energy), (1, 1))
        self.assertEqual(len(actions_of_type(state.action_log, "energy_update")), 1)

    def test_cap_logs_nothing(self):
        state = _state("energy")
        player = state.players["player1"]
        player.max_energy = 8
        player.energy = 2
        process_energy_phase(state)
        self.assertEqual((player.energy, player.max_energy), (8, 8))
        self.assertEqual(actions_of_type(state.action_log, "energy_update"), [])


class TestDeployPhase(unittest.TestCase):
    def test_illegal_play_is_rejected(self):
        state = _state("deploy")
        player = state.players["player1"]
        player.hand = [_card("pricey", cost=5)]
        player.energy = 2
        self.assertFalse(play_card_to_field(state, "player1", "pricey"))
        self.assertFalse(play_card_to_field(state, "player1", "missing"))
        self.assertEqual(len(player.hand), 1)
        self.assertEqual(state.action_log, [])

    def test_full_field_blocks_creatures(self):
        state = _state("deploy")
        for i in range(5):
            _summon(state, "player1", _card(f"f{i}"))
        state.players["player1"].energy = 5
        self.assertFalse(can_play_card(_card("c", cost=1), state, "player1"))
        self.assertTrue(can_play_card(_card("s", cost=1, card_type="spell"), state, "player1"))

    def test_creature_play_logs_and_positions(self):
        state = _state("deploy")
        player = state.players["player1"]
        player.hand = [_card("c", cost=2)]
        player.energy = 3
        self.assertTrue(play_card_to_field(state, "player1", "c"))
        play = actions_of_type(state.action_log, "card_play")[0].data
        self.assertEqual(play.position, 0)
        self.assertEqual(play.player_energy, (3, 1))
        self.assertEqual(player.field[0].summon_turn, 2)

    def test_spell_goes_to_graveyard(self):
        state = _state("deploy")
        player = state.players["player1"]
        player.hand = [_card("s", card_type="spell", cost=1)]
        player.energy = 1
        play_card_to_field(state, "player1", "s")
        self.assertEqual([c.id for c in player.graveyard], ["s"])
        self.assertEqual(actions_of_type(state.action_log, "card_play")[0].data.position, -1)

    def test_tie_break_keeps_hand_order(self):
        state = _state("deploy")
        player = state.players["player1"]
        player.hand = [
            _card("p1-kni_squire-2", template_id="kni_squire"),
            _card("p1-kni_squire-1", template_id="kni_squire"),
        ]
        player.energy = 2
        process_deploy_phase(state)
        self.assertEqual([c.id for c in player.field], ["p1-kni_squire-2"])
        self.assertEqual(state.phase, "battle")

    def test_deploys_until_out_of_energy(self):
        state = _state("deploy")
        player = state.players["player1"]
        player.hand = [_card("a", cost=1), _card("b", cost=1), _card("c", cost=3)]
        player.energy = 2
        process_deploy_phase(state)
        self.assertEqual(sorted(c.id for c in player.field), ["a", "b"])
        self.assertEqual(player.energy, 0)


class TestEndPhase(unittest.TestCase):
    def test_poison_ticks_on_both_fields(self):
        state = _state("end")
        mine = _summon(state, "player1", _card("mine", health=3))
        theirs = _summon(state, "player2", _card("theirs", health=3))
        for fc in (mine, theirs):
            fc.status_effects.append(PoisonStatus(duration=2, damage=1))
        process_end_phase(state)
        self.assertEqual((mine.current_health, theirs.current_health), (2, 2))
        ticks = [a for a in actions_of_type(state.action_log, "effect_trigger")
                 if a.data.source_card_id == "poison_effect"]
        self.assertEqual(len(ticks), 2)

    def test_poison_kill_goes_to_graveyard(self):
        state = _state("end")
        victim = _summon(state, "player2", _card("victim", health=1))
        victim.status_effects.append(PoisonStatus(duration=2, damage=1))
        process_end_phase(state)
        self.assertEqual(state.players["player2"].field, [])
        self.assertEqual(actions_of_type(state.action_log, "creature_destroyed")[0].data.source, "effect")

    def test_stun_counts_down_at_every_end_phase(self):
        state = _state("end", current="player1")
        short = _summon(state, "player2", _card("short"))
        short.status_effects.append(StunStatus(duration=1))
        long = _summon(state, "player1", _card("long"))
        long.status_effects.append(StunStatus(duration=2))
        process_end_phase(state)
        self.assertFalse(short.has_status("stun"))
        self.assertTrue(long.has_status("stun"))

        state.phase = "end"
        process_end_phase(state)
        self.assertFalse(long.has_status("stun"))

    def test_resets_attack_flags(self):
        state = _state("end")
        fc = _summon(state, "player1", _card("a"))
        fc.has_attacked = True
        fc.readied_this_turn = True
        process_end_phase(state)
        self.assertFalse(fc.has_attacked)
        self.assertFalse(fc.readied_this_turn)
        self.assertEqual(state.current_player, "player2")


if __name__ == "__main__":
    unittest.main()
