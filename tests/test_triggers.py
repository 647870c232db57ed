"""Tests for trigger dispatch, death handling and passive effects."""

import unittest

from ashenhall.action_log import actions_of_type
from ashenhall.models import (
    PLAYER_IDS, Card, CardEffect, FieldCard, GameState, PlayerState,
)
from ashenhall.triggers import (
    apply_passive_effects, handle_creature_death, process_effect_trigger,
    sweep_dead_creatures,
)


def _card(cid, attack=2, health=2, card_type="creature", effects=()):
    return Card(id=cid, template_id=cid, name=cid, card_type=card_type,
                faction="knight", cost=1, attack=attack, health=health,
                effects=tuple(effects))


def _state(p1_field=(), p2_field=()):
    players = {pid: PlayerState(id=pid, faction="knight", tactics_type="balanced") for pid in PLAYER_IDS}
    state = GameState(
        game_id="g", turn_number=2, current_player="player1", phase="battle",
        players=players, action_log=[], random_seed="s", start_time=0,
    )
    for pid, cards in (("player1", p1_field), ("player2", p2_field)):
        for c in cards:
            players[pid].field.append(FieldCard.from_card(c, pid, 1, len(players[pid].field)))
    return state


HEAL_SELF_AT = {
    trigger: CardEffect(trigger=trigger, target="player", action="heal", value=1)
    for trigger in ("turn_start", "turn_end", "on_spell_play")
}


class TestDeath(unittest.TestCase):
    def test_on_death_then_on_ally_death(self):
        zombie = _card("zombie", effects=[
            CardEffect(trigger="on_death", target="ally_all", action="buff_attack", value=1),
        ])
        harvester = _card("harvester", effects=[
            CardEffect(trigger="on_ally_death", target="self", action="buff_attack", value=1),
        ])
        state = _state(p1_field=[zombie, harvester])
        dead = state.players["player1"].field[0]
        dead.current_health = 0

        handle_creature_death(state, dead, "combat")

        field = state.players["player1"].field
        self.assertEqual([c.id for c in field], ["harvester"])
        self.assertEqual(field[0].position, 0)
        self.assertEqual(field[0].attack_modifier, 2)
        self.assertEqual([c.id for c in state.players["player1"].graveyard], ["zombie"])
        self.assertEqual(state.action_log[0].type, "creature_destroyed")

    def test_death_is_processed_once(self):
        state = _state(p2_field=[_card("victim")])
        victim = state.players["player2"].field[0]
        victim.current_health = 0
        handle_creature_death(state, victim, "effect")
        handle_creature_death(state, victim, "effect")
        self.assertEqual(len(actions_of_type(state.action_log, "creature_destroyed")), 1)
        self.assertEqual(len(state.players["player2"].graveyard), 1)

    def test_sweep_counts_deaths_on_both_fields(self):
        state = _state(p1_field=[_card("a"), _card("b")], p2_field=[_card("c")])
        state.players["player1"].field[1].current_health = 0
        state.players["player2"].field[0].current_health = -1
        self.assertEqual(sweep_dead_creatures(state, "combat"), 2)
        self.assertEqual([c.id for c in state.players["player1"].field], ["a"])
        self.assertEqual(state.players["player2"].field, [])
        self.assertEqual(sweep_dead_creatures(state, "combat"), 0)


class TestDispatch(unittest.TestCase):
    def _lives(self, state):
        return [state.players[pid].life for pid in PLAYER_IDS]

    def _both_sides(self, trigger):
        state = _state(
            p1_field=[_card("mine", effects=[HEAL_SELF_AT[trigger]])],
            p2_field=[_card("theirs", effects=[HEAL_SELF_AT[trigger]])],
        )
        for pid in PLAYER_IDS:
            state.players[pid].life = 10
        return state

    def test_turn_start_fires_for_active_player_only(self):
        state = self._both_sides("turn_start")
        process_effect_trigger(state, "turn_start")
        self.assertEqual(self._lives(state), [11, 10])

    def test_turn_end_fires_on_both_fields(self):
        state = self._both_sides("turn_end")
        process_effect_trigger(state, "turn_end")
        self.assertEqual(self._lives(state), [11, 11])
        events = actions_of_type(state.action_log, "trigger_event")
        self.assertEqual([e.data.source_card_id for e in events], ["mine", "theirs"])

    def test_silenced_card_does_not_fire(self):
        state = self._both_sides("turn_start")
        state.players["player1"].field[0].is_silenced = True
        process_effect_trigger(state, "turn_start")
        self.assertEqual(self._lives(state), [10, 10])
        self.assertEqual(state.action_log, [])

    def test_spell_play_scans_caster_field(self):
        state = self._both_sides("on_spell_play")
        spell = _card("bolt", card_type="spell")
        process_effect_trigger(state, "on_spell_play", None, "player1", spell)
        self.assertEqual(self._lives(state), [11, 10])
        event = actions_of_type(state.action_log, "trigger_event")[0]
        self.assertEqual(event.data.target_card_id, "bolt")

    def test_card_without_matching_effect_logs_nothing(self):
        state = _state(p1_field=[_card("plain")])
        process_effect_trigger(state, "on_attack", state.players["player1"].field[0])
        self.assertEqual(state.action_log, [])

    def test_unknown_trigger_raises(self):
        with self.assertRaises(ValueError):
            process_effect_trigger(_state(), "on_sunrise")


class TestPassiveEffects(unittest.TestCase):
    def _board(self):
        banneret = _card("banneret", attack=2, health=3, effects=[
            CardEffect(trigger="passive", target="ally_all", action="buff_attack", value=1),
        ])
        golem = _card("golem", attack=2, health=2, effects=[
            CardEffect(trigger="passive", target="ally_all", action="buff_health", value=1),
        ])
        return _state(p1_field=[banneret, golem, _card("plain", 2, 2)], p2_field=[_card("enemy")])

    def test_recompute_is_idempotent(self):
        state = self._board()
        apply_passive_effects(state)
        apply_passive_effects(state)

        plain = state.players["player1"].field[2]
        self.assertEqual(plain.passive_attack_modifier, 1)
        self.assertEqual(plain.passive_health_modifier, 1)
        self.assertEqual(plain.total_attack, 3)
        self.assertEqual(plain.current_health, 3)
        enemy = state.players["player2"].field[0]
        self.assertEqual((enemy.total_attack, enemy.current_health), (2, 2))
        self.assertEqual(state.action_log, [])

    def test_aura_ends_when_source_leaves(self):
        state = self._board()
        apply_passive_effects(state)
        golem = state.players["player1"].field[1]
        golem.current_health = 0
        handle_creature_death(state, golem, "combat")
        apply_passive_effects(state)

        plain = state.players["player1"].field[1]
        self.assertEqual(plain.id, "plain")
        self.assertEqual(plain.passive_health_modifier, 0)
        self.assertEqual(plain.current_health, 2)
        self.assertEqual(plain.total_attack, 3)

    def test_silenced_source_gives_no_aura(self):
        state = self._board()
        state.players["player1"].field[0].is_silenced = True
        apply_passive_effects(state)
        self.assertEqual(state.players["player1"].field[2].total_attack, 2)


if __name__ == "__main__":
    unittest.main()
