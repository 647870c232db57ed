"""v1.0: Combat – eligible attackers, attack resolution, post-combat sweep."""

from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING

from ashenhall.action_log import CardAttackData, KeywordTriggerData, add_action
from ashenhall.ai import choose_attack_target
from ashenhall.card_hooks import can_attack_by_card_rule
from ashenhall.models import FieldCard, PoisonStatus
from ashenhall.triggers import process_effect_trigger, sweep_dead_creatures

if TYPE_CHECKING:
    from ashenhall.models import GameState

logger = logging.getLogger(__name__)

POISON_DURATION = 2
POISON_DAMAGE = 1


def can_attack(card: FieldCard, state: "GameState") -> bool:
    if card.current_health <= 0 or card.has_attacked:
        return False
    if card.has_status("stun"):
        return False
    if card.summon_turn >= state.turn_number and not card.has_keyword("rush"):
        return False
    return can_attack_by_card_rule(state, card)


def eligible_attackers(state: "GameState") -> list[FieldCard]:
    return [c for c in state.active().field if can_attack(c, state)]


def _keyword(state: "GameState", keyword: str, source: FieldCard, target_id: str, value: int) -> None:
    add_action(state, source.owner, KeywordTriggerData(
        keyword=keyword, source_card_id=source.id, target_id=target_id, value=value,
    ))


def _attack_creature(
    state: "GameState", attacker: FieldCard, target: FieldCard, damage: int,
) -> None:
    if attacker.has_keyword("poison"):
        target.status_effects.append(PoisonStatus(duration=POISON_DURATION, damage=POISON_DAMAGE))
        _keyword(state, "poison", attacker, target.id, POISON_DAMAGE)

    excess = damage - target.current_health
    target_before = target.current_health
    target.current_health -= damage
    process_effect_trigger(state, "on_damage_taken", target, target.owner, attacker)

    # only a surviving target strikes back
    attacker_before = attacker.current_health
    counter = 0
    bonus = 0
    if target.current_health > 0:
        counter = max(0, target.total_attack)
        if target.has_keyword("retaliate") and counter > 0:
            bonus = math.ceil(counter / 2)

    add_action(state, attacker.owner, CardAttackData(
        attacker_card_id=attacker.id,
        target_id=target.id,
        damage=damage,
        attacker_health=(attacker_before, attacker_before - counter - bonus),
        target_health=(target_before, target.current_health),
    ))
    if bonus:
        _keyword(state, "retaliate", target, attacker.id, bonus)
        counter += bonus

    if counter > 0:
        attacker.current_health -= counter
        process_effect_trigger(state, "on_damage_taken", attacker, attacker.owner, target)

    if excess > 0 and attacker.has_keyword("trample"):
        opp = state.players[target.owner]
        before = opp.life
        opp.life = max(0, opp.life - excess)
        _keyword(state, "trample", attacker, target.owner, before - opp.life)


def _attack_player(state: "GameState", attacker: FieldCard, player_id: str, damage: int) -> None:
    player = state.players[player_id]
    before = player.life
    player.life = max(0, before - damage)
    add_action(state, attacker.owner, CardAttackData(
        attacker_card_id=attacker.id,
        target_id=player_id,
        damage=damage,
        target_player_life=(before, player.life),
    ))


def resolve_attack(state: "GameState", attacker: FieldCard, rng: random.Random) -> None:
    """One attacker's full action. ``ready`` fired from on_attack clears the flag again."""
    attacker.has_attacked = True
    process_effect_trigger(state, "on_attack", attacker, attacker.owner)
    if attacker.current_health <= 0:
        return

    target = choose_attack_target(attacker, state, rng)
    damage = max(0, attacker.total_attack)
    attacker.is_stealthed = False

    if attacker.has_keyword("lifesteal") and damage > 0:
        owner = state.players[attacker.owner]
        owner.life += damage
        _keyword(state, "lifesteal", attacker, attacker.owner, damage)

    if target.card is not None:
        _attack_creature(state, attacker, target.card, damage)
    elif target.player is not None:
        _attack_player(state, attacker, target.player, damage)


def resolve_battle(state: "GameState", rng: random.Random) -> None:
    """Creatures eligible at the start of battle act in field order.

    Deaths are swept once at the end.
    """
    attackers = eligible_attackers(state)
    for attacker in attackers:
        # an earlier attack or trigger may have removed it
        if attacker.current_health > 0 and any(c is attacker for c in state.active().field):
            resolve_attack(state, attacker, rng)

    died = sweep_dead_creatures(state, "combat")
    if died:
        logger.debug(f"Turn {state.turn_number}: {died} creature(s) destroyed in combat")
