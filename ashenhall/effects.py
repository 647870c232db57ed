"""v1.0: Effect actions – decorator-based registry.

Each handler receives the state being mutated and an ``EffectContext``
holding the resolved targets and value. Handlers append their own
``effect_trigger`` entries and hand any deaths they cause to
``triggers.handle_creature_death``.
"""

from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Callable, Iterable, TYPE_CHECKING

from ashenhall.action_log import EffectTriggerData, ValueChange, add_action
from ashenhall.conditions import add_brand
from ashenhall.models import Card, FieldCard, PoisonStatus, StunStatus, other_player
from ashenhall.rng import choice_or_none
from ashenhall.targeting import apply_rules

if TYPE_CHECKING:
    from ashenhall.models import CardEffect, GameState


@dataclass(frozen=True)
class EffectContext:
    effect: "CardEffect"
    source: Card
    player_id: str
    rng: random.Random
    targets: list[FieldCard]
    value: int


EffectHandler = Callable[["GameState", EffectContext], None]

EFFECT_REGISTRY: dict[str, EffectHandler] = {}


def register_effect(name: str):
    """Decorator to register an effect handler."""
    def decorator(fn: EffectHandler) -> EffectHandler:
        EFFECT_REGISTRY[name] = fn
        return fn
    return decorator


# ---------------------------------------------------------------------------
# Shared primitives
# ---------------------------------------------------------------------------

def log_effect(
    state: "GameState",
    player_id: str,
    source_id: str,
    action: str,
    value: int,
    changes: dict[str, ValueChange],
) -> None:
    add_action(state, player_id, EffectTriggerData(
        source_card_id=source_id,
        effect_type=action,
        effect_value=value,
        targets=changes,
    ))


def resolve_deaths(state: "GameState", cards: Iterable[FieldCard], source_id: str) -> None:
    from ashenhall.triggers import handle_creature_death

    for card in list(cards):
        if card.current_health <= 0:
            handle_creature_death(state, card, "effect", source_id)


def reindex(field_cards: list[FieldCard]) -> None:
    for i, card in enumerate(field_cards):
        card.position = i


def apply_damage(
    state: "GameState",
    targets: list[FieldCard],
    target_player: str | None,
    amount: int,
    source_id: str,
    player_id: str,
) -> None:
    changes: dict[str, ValueChange] = {}
    for target in targets:
        before = target.current_health
        target.current_health = max(0, before - amount)
        changes[target.id] = ValueChange(health=(before, target.current_health))
    if target_player is not None:
        p = state.players[target_player]
        before = p.life
        p.life = max(0, before - amount)
        changes[target_player] = ValueChange(life=(before, p.life))

    log_effect(state, player_id, source_id, "damage", amount, changes)
    resolve_deaths(state, targets, source_id)


def apply_heal(
    state: "GameState",
    targets: list[FieldCard],
    target_player: str | None,
    amount: int,
    source_id: str,
    player_id: str,
) -> None:
    changes: dict[str, ValueChange] = {}
    for target in targets:
        before = target.current_health
        target.current_health = min(target.max_health, before + amount)
        changes[target.id] = ValueChange(health=(before, target.current_health))
    if target_player is not None:
        p = state.players[target_player]
        before = p.life
        p.life += amount
        changes[target_player] = ValueChange(life=(before, p.life))

    log_effect(state, player_id, source_id, "heal", amount, changes)


def summon_token(
    state: "GameState",
    player_id: str,
    source_id: str,
    attack: int = 1,
    health: int = 1,
    name: str = "Token",
) -> FieldCard | None:
    """Put a token on the field. A full field blocks the summon silently."""
    player = state.players[player_id]
    if len(player.field) >= state.config.field_limit:
        return None

    token_card = Card(
        id=f"token-{state.turn_number}-{len(state.action_log)}",
        template_id="token",
        name=name,
        card_type="creature",
        faction=player.faction,
        cost=0,
        attack=attack,
        health=health,
    )
    token = FieldCard.from_card(token_card, player_id, state.turn_number, len(player.field))
    player.field.append(token)
    log_effect(state, player_id, source_id, "summon", 1, {token.id: ValueChange()})
    return token


def resurrect_card(
    state: "GameState", player_id: str, card: Card, source_id: str,
) -> FieldCard | None:
    """Return a creature from the graveyard. It cannot attack this turn."""
    player = state.players[player_id]
    if len(player.field) >= state.config.field_limit:
        return None
    if card not in player.graveyard or not card.is_creature:
        return None

    player.graveyard.remove(card)
    revived = FieldCard.from_card(card, player_id, state.turn_number, len(player.field))
    revived.has_attacked = True
    revived.is_stealthed = False
    player.field.append(revived)
    log_effect(state, player_id, source_id, "resurrect", 1,
               {revived.id: ValueChange(health=(0, revived.current_health))})
    return revived


def draw_cards(state: "GameState", player_id: str, count: int) -> tuple[int, int]:
    """Draw up to ``count`` cards. Returns (cards drawn, fatigue taken)."""
    player = state.players[player_id]
    drawn = fatigue = 0
    for _ in range(count):
        if len(player.hand) >= state.config.hand_limit:
            break
        if not player.deck:
            player.life -= 1
            fatigue += 1
            continue
        player.hand.append(player.deck.pop())
        drawn += 1
    return drawn, fatigue


# ---------------------------------------------------------------------------
# Damage / heal
# ---------------------------------------------------------------------------

@register_effect("damage")
def _damage(state: "GameState", ctx: EffectContext) -> None:
    if ctx.effect.target == "player":
        apply_damage(state, [], other_player(ctx.player_id), ctx.value, ctx.source.id, ctx.player_id)
    else:
        apply_damage(state, ctx.targets, None, ctx.value, ctx.source.id, ctx.player_id)


@register_effect("heal")
def _heal(state: "GameState", ctx: EffectContext) -> None:
    if ctx.effect.target == "player":
        apply_heal(state, [], ctx.player_id, ctx.value, ctx.source.id, ctx.player_id)
    else:
        apply_heal(state, ctx.targets, None, ctx.value, ctx.source.id, ctx.player_id)


# ---------------------------------------------------------------------------
# Modifiers
# ---------------------------------------------------------------------------

@register_effect("buff_attack")
def _buff_attack(state: "GameState", ctx: EffectContext) -> None:
    if ctx.effect.trigger == "passive":
        for target in ctx.targets:
            target.passive_attack_modifier += ctx.value
        return

    changes: dict[str, ValueChange] = {}
    for target in ctx.targets:
        before = target.total_attack
        target.attack_modifier += ctx.value
        changes[target.id] = ValueChange(attack=(before, target.total_attack))
    log_effect(state, ctx.player_id, ctx.source.id, "buff_attack", ctx.value, changes)


@register_effect("buff_health")
def _buff_health(state: "GameState", ctx: EffectContext) -> None:
    if ctx.effect.trigger == "passive":
        for target in ctx.targets:
            target.passive_health_modifier += ctx.value
            target.current_health += ctx.value
        return

    changes: dict[str, ValueChange] = {}
    for target in ctx.targets:
        before = target.current_health
        target.health_modifier += ctx.value
        target.current_health += ctx.value
        changes[target.id] = ValueChange(health=(before, target.current_health))
    log_effect(state, ctx.player_id, ctx.source.id, "buff_health", ctx.value, changes)


@register_effect("debuff_attack")
def _debuff_attack(state: "GameState", ctx: EffectContext) -> None:
    changes: dict[str, ValueChange] = {}
    for target in ctx.targets:
        before = target.total_attack
        target.attack_modifier = max(-target.card.attack, target.attack_modifier - ctx.value)
        changes[target.id] = ValueChange(attack=(before, target.total_attack))
    log_effect(state, ctx.player_id, ctx.source.id, "debuff_attack", ctx.value, changes)


@register_effect("debuff_health")
def _debuff_health(state: "GameState", ctx: EffectContext) -> None:
    changes: dict[str, ValueChange] = {}
    for target in ctx.targets:
        before = target.current_health
        target.health_modifier -= ctx.value
        target.current_health = min(target.current_health, target.max_health)
        changes[target.id] = ValueChange(health=(before, target.current_health))
    log_effect(state, ctx.player_id, ctx.source.id, "debuff_health", ctx.value, changes)
    resolve_deaths(state, ctx.targets, ctx.source.id)


@register_effect("swap_attack_health")
def _swap_attack_health(state: "GameState", ctx: EffectContext) -> None:
    changes: dict[str, ValueChange] = {}
    for target in ctx.targets:
        old_attack = target.total_attack
        old_max = target.max_health
        old_current = target.current_health

        target.passive_attack_modifier = 0
        target.passive_health_modifier = 0
        target.attack_modifier = old_max - target.card.attack
        target.health_modifier = old_attack - target.card.health
        ratio = old_current / old_max if old_max > 0 else 0
        target.current_health = math.ceil(target.max_health * ratio)

        changes[target.id] = ValueChange(
            attack=(old_attack, target.total_attack),
            health=(old_current, target.current_health),
        )
    log_effect(state, ctx.player_id, ctx.source.id, "swap_attack_health", 1, changes)
    resolve_deaths(state, ctx.targets, ctx.source.id)


# ---------------------------------------------------------------------------
# Board
# ---------------------------------------------------------------------------

@register_effect("summon")
def _summon(state: "GameState", ctx: EffectContext) -> None:
    summon_token(state, ctx.player_id, ctx.source.id)


@register_effect("resurrect")
def _resurrect(state: "GameState", ctx: EffectContext) -> None:
    graveyard = state.players[ctx.player_id].graveyard
    chosen = choice_or_none(ctx.rng, [c for c in graveyard if c.is_creature])
    if chosen is not None:
        resurrect_card(state, ctx.player_id, chosen, ctx.source.id)


@register_effect("destroy_all_creatures")
def _destroy_all_creatures(state: "GameState", ctx: EffectContext) -> None:
    victims: list[FieldCard] = []
    changes: dict[str, ValueChange] = {}
    for pid in (ctx.player_id, other_player(ctx.player_id)):
        for target in state.players[pid].field:
            changes[target.id] = ValueChange(health=(target.current_health, 0))
            target.current_health = 0
            victims.append(target)
    log_effect(state, ctx.player_id, ctx.source.id, "destroy_all_creatures", 1, changes)
    resolve_deaths(state, victims, ctx.source.id)


@register_effect("banish")
def _banish(state: "GameState", ctx: EffectContext) -> None:
    """Remove creatures from the game; no death triggers fire."""
    changes: dict[str, ValueChange] = {}
    for target in ctx.targets:
        owner = state.players[target.owner]
        if target not in owner.field:
            continue
        owner.field.remove(target)
        owner.banished_cards.append(target.card)
        reindex(owner.field)
        changes[target.id] = ValueChange(health=(target.current_health, 0))
    if changes:
        log_effect(state, ctx.player_id, ctx.source.id, "banish", ctx.value, changes)


# ---------------------------------------------------------------------------
# Status
# ---------------------------------------------------------------------------

@register_effect("silence")
def _silence(state: "GameState", ctx: EffectContext) -> None:
    for target in ctx.targets:
        target.is_silenced = True
    log_effect(state, ctx.player_id, ctx.source.id, "silence", ctx.value,
               {t.id: ValueChange() for t in ctx.targets})


@register_effect("stun")
def _stun(state: "GameState", ctx: EffectContext) -> None:
    for target in ctx.targets:
        existing = next((s for s in target.status_effects if isinstance(s, StunStatus)), None)
        if existing is not None:
            existing.duration = max(existing.duration, ctx.value)
        else:
            target.status_effects.append(StunStatus(duration=ctx.value))
    log_effect(state, ctx.player_id, ctx.source.id, "stun", ctx.value,
               {t.id: ValueChange() for t in ctx.targets})


@register_effect("poison")
def _poison(state: "GameState", ctx: EffectContext) -> None:
    for target in ctx.targets:
        target.status_effects.append(PoisonStatus(duration=2, damage=ctx.value))
    log_effect(state, ctx.player_id, ctx.source.id, "poison", ctx.value,
               {t.id: ValueChange() for t in ctx.targets})


@register_effect("apply_brand")
def _apply_brand(state: "GameState", ctx: EffectContext) -> None:
    branded = [t for t in ctx.targets if add_brand(t)]
    if branded:
        log_effect(state, ctx.player_id, ctx.source.id, "apply_brand", ctx.value,
                   {t.id: ValueChange() for t in branded})


@register_effect("ready")
def _ready(state: "GameState", ctx: EffectContext) -> None:
    """Let a creature attack again; works once per turn."""
    readied = [t for t in ctx.targets if not t.readied_this_turn]
    for target in readied:
        target.has_attacked = False
        target.readied_this_turn = True
    if readied:
        log_effect(state, ctx.player_id, ctx.source.id, "ready", ctx.value,
                   {t.id: ValueChange() for t in readied})


# ---------------------------------------------------------------------------
# Cards in hand / deck
# ---------------------------------------------------------------------------

@register_effect("draw_card")
def _draw_card(state: "GameState", ctx: EffectContext) -> None:
    player = state.players[ctx.player_id]
    life_before = player.life
    drawn, fatigue = draw_cards(state, ctx.player_id, ctx.value)
    if not drawn and not fatigue:
        return
    change = ValueChange(life=(life_before, player.life)) if fatigue else ValueChange()
    log_effect(state, ctx.player_id, ctx.source.id, "draw_card", drawn, {ctx.player_id: change})


@register_effect("destroy_deck_top")
def _destroy_deck_top(state: "GameState", ctx: EffectContext) -> None:
    opp_id = other_player(ctx.player_id)
    opp = state.players[opp_id]
    if not opp.deck or opp.deck[-1].cost < ctx.value:
        return
    destroyed = opp.deck.pop()
    opp.graveyard.append(destroyed)
    log_effect(state, ctx.player_id, ctx.source.id, "destroy_deck_top", destroyed.cost,
               {opp_id: ValueChange()})


@register_effect("hand_discard")
def _hand_discard(state: "GameState", ctx: EffectContext) -> None:
    opp_id = other_player(ctx.player_id)
    opp = state.players[opp_id]
    for _ in range(ctx.value):
        candidates = apply_rules(opp.hand, ctx.effect.target_filter)
        victim = choice_or_none(ctx.rng, candidates)
        if victim is None:
            return
        opp.hand.remove(victim)
        opp.graveyard.append(victim)
        log_effect(state, ctx.player_id, ctx.source.id, "hand_discard", 1, {opp_id: ValueChange()})


@register_effect("deck_search")
def _deck_search(state: "GameState", ctx: EffectContext) -> None:
    player = state.players[ctx.player_id]
    if len(player.hand) >= state.config.hand_limit:
        return
    # search from the top of the deck down
    for card in reversed(player.deck):
        if apply_rules([card], ctx.effect.selection_filter):
            player.deck.remove(card)
            player.hand.append(card)
            log_effect(state, ctx.player_id, ctx.source.id, "deck_search", 1,
                       {ctx.player_id: ValueChange()})
            return
