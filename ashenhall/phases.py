"""v1.0: Phase processors – draw, energy, deploy, battle, end."""

from __future__ import annotations

import logging
from typing import Callable, TYPE_CHECKING

from ashenhall.action_log import (
    CardPlayData, EffectTriggerData, EnergyUpdateData, PhaseChangeData, ValueChange,
    add_action,
)
from ashenhall.ai import evaluate_card_for_play
from ashenhall.combat import resolve_battle
from ashenhall.conditions import check_play_conditions
from ashenhall.models import PHASES, Card, FieldCard, PoisonStatus, StunStatus, other_player
from ashenhall.rng import phase_rng
from ashenhall.triggers import (
    apply_passive_effects, handle_creature_death, process_effect_trigger,
    sweep_dead_creatures,
)

if TYPE_CHECKING:
    from ashenhall.models import GameState, PlayerState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Phase advance
# ---------------------------------------------------------------------------

def advance_phase(state: "GameState") -> None:
    next_phase = PHASES[(PHASES.index(state.phase) + 1) % len(PHASES)]
    if next_phase == PHASES[0]:
        next_player = other_player(state.current_player)
        add_action(state, next_player, PhaseChangeData(state.phase, next_phase))
        state.current_player = next_player
        state.turn_number += 1
    else:
        add_action(state, state.current_player, PhaseChangeData(state.phase, next_phase))
    state.phase = next_phase


# ---------------------------------------------------------------------------
# Playing cards
# ---------------------------------------------------------------------------

def can_play_card(card: Card, state: "GameState", player_id: str) -> bool:
    player = state.players[player_id]
    if card.cost > player.energy:
        return False
    if card.is_creature and len(player.field) >= state.config.field_limit:
        return False
    return check_play_conditions(state, card, player_id)


def play_card_to_field(state: "GameState", player_id: str, card_id: str) -> bool:
    """Pay for and play a card from hand. Illegal plays return False untouched."""
    player = state.players[player_id]
    card = next((c for c in player.hand if c.id == card_id), None)
    if card is None or not can_play_card(card, state, player_id):
        return False

    energy_before = player.energy
    player.energy -= card.cost
    player.hand.remove(card)

    if card.is_creature:
        fc = FieldCard.from_card(card, player_id, state.turn_number, len(player.field))
        player.field.append(fc)
        add_action(state, player_id, CardPlayData(
            card_id=card.id,
            position=fc.position,
            player_energy=(energy_before, player.energy),
            initial_stats={"attack": card.attack, "health": card.health},
        ))
        process_effect_trigger(state, "on_play", fc, player_id)
    else:
        player.graveyard.append(card)
        add_action(state, player_id, CardPlayData(
            card_id=card.id,
            position=-1,
            player_energy=(energy_before, player.energy),
        ))
        process_effect_trigger(state, "on_play", card, player_id)
        process_effect_trigger(state, "on_spell_play", None, player_id, card)
    return True


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------

def process_draw_phase(state: "GameState") -> None:
    process_effect_trigger(state, "turn_start")

    player = state.active()
    if len(player.hand) < state.config.hand_limit:
        if player.deck:
            player.hand.append(player.deck.pop())
        else:
            before = player.life
            player.life -= 1
            add_action(state, player.id, EffectTriggerData(
                source_card_id="deck_empty",
                effect_type="damage",
                effect_value=1,
                targets={player.id: ValueChange(life=(before, player.life))},
            ))
    advance_phase(state)


def process_energy_phase(state: "GameState") -> None:
    player = state.active()
    before = player.max_energy
    player.max_energy = min(player.max_energy + 1, state.config.energy_limit)
    player.energy = player.max_energy
    if player.max_energy != before:
        add_action(state, player.id, EnergyUpdateData(before, player.max_energy))
    advance_phase(state)


def process_deploy_phase(state: "GameState") -> None:
    apply_passive_effects(state)
    player = state.active()

    for _ in range(state.config.max_deployment_attempts):
        playable = [c for c in player.hand if can_play_card(c, state, player.id)]
        if not playable:
            break
        # max() keeps the first of equal scores, i.e. hand order
        best = max(playable, key=lambda c: evaluate_card_for_play(c, state, player.id))
        if not play_card_to_field(state, player.id, best.id):
            break
        logger.debug(f"Turn {state.turn_number}: {player.id} deploys {best.template_id}")
    advance_phase(state)


def process_battle_phase(state: "GameState") -> None:
    apply_passive_effects(state)
    resolve_battle(state, phase_rng(state, "battle"))
    advance_phase(state)


def _tick_statuses(state: "GameState", player: "PlayerState") -> None:
    poisoned: list[FieldCard] = []
    for card in player.field:
        for status in card.status_effects:
            if isinstance(status, PoisonStatus):
                before = card.current_health
                card.current_health -= status.damage
                add_action(state, player.id, EffectTriggerData(
                    source_card_id="poison_effect",
                    effect_type="damage",
                    effect_value=status.damage,
                    targets={card.id: ValueChange(health=(before, card.current_health))},
                ))
                if card.current_health <= 0:
                    poisoned.append(card)
                status.duration -= 1
            elif isinstance(status, StunStatus):
                status.duration -= 1

        card.is_stealthed = False
        card.has_attacked = False
        card.readied_this_turn = False
        card.status_effects = [
            s for s in card.status_effects if getattr(s, "duration", 1) > 0
        ]

    for card in poisoned:
        handle_creature_death(state, card, "effect", "poison_effect")


def process_end_phase(state: "GameState") -> None:
    for pid in (state.current_player, other_player(state.current_player)):
        _tick_statuses(state, state.players[pid])
    process_effect_trigger(state, "turn_end")
    sweep_dead_creatures(state, "effect")
    advance_phase(state)


PHASE_PROCESSORS: dict[str, Callable[["GameState"], None]] = {
    "draw": process_draw_phase,
    "energy": process_energy_phase,
    "deploy": process_deploy_phase,
    "battle": process_battle_phase,
    "end": process_end_phase,
}
