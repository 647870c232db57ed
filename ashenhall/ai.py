"""v1.0: AI tactics – card scoring for deployment and attack-target choice."""

from __future__ import annotations

import random
from dataclasses import dataclass
from typing import Callable, TYPE_CHECKING

from ashenhall.config import DEFAULT_WEIGHTS, AIWeights
from ashenhall.models import Card, FieldCard, PlayerState, other_player
from ashenhall.rng import choice_or_none
from ashenhall.targeting import ally_pool, enemy_pool

if TYPE_CHECKING:
    from ashenhall.models import CardEffect, GameState


@dataclass(frozen=True)
class AttackTarget:
    card: FieldCard | None = None
    player: str | None = None


# ---------------------------------------------------------------------------
# Base score by tactics
# ---------------------------------------------------------------------------

def _aggressive(card: Card) -> float:
    return card.attack * 2 + card.health * 1 - card.cost


def _defensive(card: Card) -> float:
    return card.health * 2 + card.attack * 1 - card.cost


def _tempo(card: Card) -> float:
    return (card.attack + card.health) / max(card.cost, 1) * 3 - card.cost * 2


def _balanced(card: Card) -> float:
    return (card.attack + card.health) / max(card.cost, 1)


TACTICS_SCORERS: dict[str, Callable[[Card], float]] = {
    "aggressive": _aggressive,
    "defensive": _defensive,
    "tempo": _tempo,
    "balanced": _balanced,
}


def base_score(card: Card, tactics: str, weights: AIWeights = DEFAULT_WEIGHTS) -> float:
    if not card.is_creature:
        return card.cost * weights.spell_cost_multiplier
    return TACTICS_SCORERS.get(tactics, _balanced)(card)


# ---------------------------------------------------------------------------
# Faction bonus
# ---------------------------------------------------------------------------

def _necromancer(card: Card, me: PlayerState, opp: PlayerState, w: AIWeights, initial_life: int) -> float:
    bonus = 0.0
    if "echo" in card.keywords:
        bonus += len(me.graveyard) * w.echo_per_graveyard
    if any(e.trigger == "on_death" for e in card.effects):
        bonus += w.on_death_bonus
    return bonus


def _knight(card: Card, me: PlayerState, opp: PlayerState, w: AIWeights, initial_life: int) -> float:
    bonus = 0.0
    if "formation" in card.keywords:
        bonus += len(me.field) * w.formation_per_ally
    if "guard" in card.keywords:
        bonus += w.guard_bonus
    return bonus


def _berserker(card: Card, me: PlayerState, opp: PlayerState, w: AIWeights, initial_life: int) -> float:
    bonus = 0.0
    deficit = initial_life - me.life
    if deficit > 0:
        bonus += deficit * w.life_deficit_multiplier
    if card.is_creature and card.attack > card.health:
        bonus += card.attack * w.glass_cannon_multiplier
    return bonus


def _mage(card: Card, me: PlayerState, opp: PlayerState, w: AIWeights, initial_life: int) -> float:
    bonus = 0.0
    is_spell = not card.is_creature
    if is_spell:
        bonus += w.spell_bonus
    if any(e.trigger == "on_spell_play" for e in card.effects):
        bonus += w.spell_trigger_bonus

    hand_advantage = len(me.hand) - len(opp.hand)
    if is_spell and hand_advantage > 0:
        bonus += hand_advantage * w.hand_advantage_multiplier
    if any(e.action == "draw_card" for e in card.effects):
        bonus += w.draw_bonus

    synergy = sum(1 for c in me.field if any(e.trigger == "on_spell_play" for e in c.effects))
    if is_spell and synergy:
        bonus += synergy * w.spell_synergy_per_ally

    aoe = any(
        e.target == "enemy_all" and (e.action == "damage" or "debuff" in e.action)
        for e in card.effects
    )
    if aoe and len(opp.field) >= 2:
        bonus += len(opp.field) * w.aoe_per_enemy
    return bonus


def _inquisitor(card: Card, me: PlayerState, opp: PlayerState, w: AIWeights, initial_life: int) -> float:
    bonus = 0.0
    if any("debuff" in e.action or "destroy" in e.action for e in card.effects):
        bonus += len(opp.field) * w.debuff_per_enemy
    if any(e.action in ("silence", "stun") for e in card.effects):
        bonus += w.lockdown_bonus
    return bonus


FACTION_SCORERS = {
    "necromancer": _necromancer,
    "knight": _knight,
    "berserker": _berserker,
    "mage": _mage,
    "inquisitor": _inquisitor,
}


def faction_bonus(
    card: Card, state: "GameState", player_id: str, weights: AIWeights = DEFAULT_WEIGHTS,
) -> float:
    me = state.players[player_id]
    opp = state.players[other_player(player_id)]
    scorer = FACTION_SCORERS.get(me.faction)
    if scorer is None:
        return 0.0
    return scorer(card, me, opp, weights, state.config.initial_life)


# ---------------------------------------------------------------------------
# Evaluation
# ---------------------------------------------------------------------------

def _effect_has_targets(effect: "CardEffect", state: "GameState", player_id: str) -> bool:
    if effect.target.startswith("ally_"):
        return bool(ally_pool(state, player_id))
    if effect.target.startswith("enemy_"):
        return bool(enemy_pool(state, player_id))
    return True


def can_effect_find_valid_targets(card: Card, state: "GameState", player_id: str) -> bool:
    """False when some board-targeted effect of a spell would whiff."""
    if card.is_creature or not card.effects:
        return True
    return all(_effect_has_targets(e, state, player_id) for e in card.effects)


def evaluate_card_for_play(
    card: Card, state: "GameState", player_id: str, weights: AIWeights = DEFAULT_WEIGHTS,
) -> float:
    if not can_effect_find_valid_targets(card, state, player_id):
        return weights.no_target_penalty
    tactics = state.players[player_id].tactics_type
    return base_score(card, tactics, weights) + faction_bonus(card, state, player_id, weights)


# ---------------------------------------------------------------------------
# Attack targets
# ---------------------------------------------------------------------------

def _threat(card: FieldCard) -> int:
    return card.total_attack + card.current_health + (5 if card.keywords else 0)


def choose_attack_target(
    attacker: FieldCard,
    state: "GameState",
    rng: random.Random,
    weights: AIWeights = DEFAULT_WEIGHTS,
) -> AttackTarget:
    """Guards absorb every attack; otherwise face or the biggest threat."""
    opp_id = other_player(attacker.owner)
    opponent = state.players[opp_id]

    guards = [
        c for c in opponent.field
        if c.current_health > 0 and "guard" in c.keywords and not c.is_silenced
    ]
    if guards:
        return AttackTarget(card=choice_or_none(rng, guards))

    candidates = [c for c in opponent.field if c.current_health > 0 and not c.is_stealthed]
    if not candidates:
        return AttackTarget(player=opp_id)

    tactics = state.players[attacker.owner].tactics_type
    if rng.random() < weights.attack_player_probability.get(tactics, 0.4):
        return AttackTarget(player=opp_id)
    return AttackTarget(card=max(candidates, key=_threat))
