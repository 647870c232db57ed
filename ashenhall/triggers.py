"""v1.0: Trigger dispatch, death handling and passive recomputation."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import ashenhall.special_cards  # noqa: F401  (registers per-card hooks)
from ashenhall.action_log import CreatureDestroyedData, TriggerEventData, add_action
from ashenhall.card_hooks import CARD_ACTIONS, SPECIAL_HANDLERS, resolve_effect_value
from ashenhall.conditions import check_condition
from ashenhall.effects import EFFECT_REGISTRY, EffectContext, EffectHandler, reindex
from ashenhall.models import Card, FieldCard, other_player
from ashenhall.rng import phase_rng
from ashenhall.targeting import select_targets

if TYPE_CHECKING:
    from ashenhall.models import CardEffect, GameState

logger = logging.getLogger(__name__)

CARD_TRIGGERS = ("on_play", "on_death", "on_damage_taken", "on_attack")
PLAYER_TRIGGERS = ("on_spell_play", "on_ally_death")
GLOBAL_TRIGGERS = ("turn_start", "turn_end")
TRIGGERS = CARD_TRIGGERS + PLAYER_TRIGGERS + GLOBAL_TRIGGERS + ("passive",)


def _as_card(source: Card | FieldCard) -> Card:
    return source.card if isinstance(source, FieldCard) else source


def _handler_for(effect: "CardEffect", card: Card) -> EffectHandler:
    if effect.special_handler is not None:
        handler = SPECIAL_HANDLERS.get(effect.special_handler)
        if handler is None:
            raise ValueError(f"Unknown special handler: {effect.special_handler}")
        return handler
    handler = CARD_ACTIONS.get((card.template_id, effect.action)) or EFFECT_REGISTRY.get(effect.action)
    if handler is None:
        raise ValueError(f"Unknown effect action: {effect.action}")
    return handler


def _build_context(
    state: "GameState", effect: "CardEffect", card: Card, player_id: str,
) -> EffectContext:
    rng = phase_rng(state, card.template_id)
    return EffectContext(
        effect=effect,
        source=card,
        player_id=player_id,
        rng=rng,
        targets=select_targets(state, effect, card, player_id, rng),
        value=resolve_effect_value(state, effect, card, player_id),
    )


def execute_card_effect(
    state: "GameState", effect: "CardEffect", source: Card | FieldCard, player_id: str,
) -> bool:
    """Run one effect if its condition holds. Returns whether it ran."""
    if not check_condition(state, player_id, effect.condition):
        return False
    card = _as_card(source)
    handler = _handler_for(effect, card)
    handler(state, _build_context(state, effect, card, player_id))
    return True


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def _fire(
    state: "GameState",
    trigger: str,
    source: Card | FieldCard,
    player_id: str,
    event_card: Card | FieldCard | None,
) -> None:
    if isinstance(source, FieldCard) and source.is_silenced:
        return
    matching = [e for e in source.effects if e.trigger == trigger]
    if not matching:
        return
    add_action(state, player_id, TriggerEventData(
        trigger_type=trigger,
        source_card_id=source.id,
        target_card_id=event_card.id if event_card is not None else None,
    ))
    for effect in matching:
        execute_card_effect(state, effect, source, player_id)


def process_effect_trigger(
    state: "GameState",
    trigger: str,
    source_card: Card | FieldCard | None = None,
    player_id: str | None = None,
    event_card: Card | FieldCard | None = None,
) -> None:
    """Fire ``trigger`` on the cards it concerns.

    Card triggers run the source card's own effects. Player triggers scan
    that player's surviving field. ``turn_start`` scans the active player's
    field and ``turn_end`` both fields, active player first.
    """
    if trigger in CARD_TRIGGERS:
        if source_card is None:
            return
        owner = player_id or getattr(source_card, "owner", state.current_player)
        _fire(state, trigger, source_card, owner, event_card)

    elif trigger in PLAYER_TRIGGERS:
        pid = player_id or state.current_player
        exclude = event_card.id if event_card is not None else None
        for card in list(state.players[pid].field):
            if card.current_health > 0 and card.id != exclude:
                _fire(state, trigger, card, pid, event_card)

    elif trigger in GLOBAL_TRIGGERS:
        if trigger == "turn_start":
            pids = [state.current_player]
        else:
            pids = [state.current_player, other_player(state.current_player)]
        for pid in pids:
            for card in list(state.players[pid].field):
                if card.current_health > 0:
                    _fire(state, trigger, card, pid, None)

    else:
        raise ValueError(f"Unknown trigger: {trigger}")


# ---------------------------------------------------------------------------
# Death
# ---------------------------------------------------------------------------

def handle_creature_death(
    state: "GameState", dead: FieldCard, source: str, source_card_id: str | None = None,
) -> None:
    """Destroy a creature: log, on_death, on_ally_death, then to graveyard.

    The card leaves the field before its triggers run so nested effects
    can never process the same death twice.
    """
    owner = state.players[dead.owner]
    if not any(c is dead for c in owner.field):
        return

    add_action(state, dead.owner, CreatureDestroyedData(
        destroyed_card_id=dead.id,
        source=source,
        source_card_id=source_card_id,
    ))
    owner.field = [c for c in owner.field if c is not dead]
    reindex(owner.field)

    process_effect_trigger(state, "on_death", dead, dead.owner, dead)
    process_effect_trigger(state, "on_ally_death", None, dead.owner, dead)
    owner.graveyard.append(dead.card)


def sweep_dead_creatures(
    state: "GameState", source: str, source_card_id: str | None = None,
) -> int:
    """Single pass over both fields; returns how many creatures died."""
    dead: list[FieldCard] = []
    for pid in (state.current_player, other_player(state.current_player)):
        dead.extend(c for c in state.players[pid].field if c.current_health <= 0)
    for card in dead:
        handle_creature_death(state, card, source, source_card_id)
    return len(dead)


# ---------------------------------------------------------------------------
# Passive (aura) effects
# ---------------------------------------------------------------------------

def apply_passive_effects(state: "GameState") -> None:
    """Recompute every passive modifier from scratch.

    Targets and values are resolved against the board as it stands, then
    all passive modifiers are cleared and re-applied, so calling this twice
    on an unchanged board leaves every creature exactly as after one call.
    """
    plans: list[tuple[EffectHandler, EffectContext]] = []
    for pid in (state.current_player, other_player(state.current_player)):
        for card in state.players[pid].field:
            if card.current_health <= 0 or card.is_silenced:
                continue
            for effect in card.effects:
                if effect.trigger != "passive":
                    continue
                if not check_condition(state, pid, effect.condition):
                    continue
                plans.append((
                    _handler_for(effect, card.card),
                    _build_context(state, effect, card.card, pid),
                ))

    for pid in (state.current_player, other_player(state.current_player)):
        for card in state.players[pid].field:
            if card.passive_health_modifier > 0:
                card.current_health = max(0, card.current_health - card.passive_health_modifier)
            card.passive_attack_modifier = 0
            card.passive_health_modifier = 0

    for handler, ctx in plans:
        handler(state, ctx)

    died = sweep_dead_creatures(state, "effect")
    if died:
        logger.debug(f"{died} creature(s) died when passive effects were recomputed")
