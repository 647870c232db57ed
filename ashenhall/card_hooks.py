"""v1.0: Per-card behavior hooks keyed by template id.

The generic engine never compares template ids itself. Cards whose
behavior departs from their declared effect data register a hook here:

- dynamic values: recompute an effect's magnitude from the board
- attack gates: extra condition a creature must satisfy to attack
- card actions: replace the generic handler for one (template, action) pair
- special handlers: named handlers referenced by ``CardEffect.special_handler``
"""

from __future__ import annotations

from typing import Any, Callable, TYPE_CHECKING

from ashenhall.conditions import branded_enemies
from ashenhall.models import other_player

if TYPE_CHECKING:
    from ashenhall.models import Card, CardEffect, DynamicValue, FieldCard, GameState

DynamicResolver = Callable[["GameState", "Card", str], int]
AttackGate = Callable[["GameState", "FieldCard"], bool]

DYNAMIC_VALUES: dict[tuple[str, str], DynamicResolver] = {}
ATTACK_GATES: dict[str, AttackGate] = {}
CARD_ACTIONS: dict[tuple[str, str], Callable[..., None]] = {}
SPECIAL_HANDLERS: dict[str, Callable[..., None]] = {}


def register_dynamic_value(template_id: str, action: str):
    """Decorator to register a value resolver for one card's action."""
    def decorator(fn: DynamicResolver) -> DynamicResolver:
        DYNAMIC_VALUES[(template_id, action)] = fn
        return fn
    return decorator


def register_attack_gate(template_id: str):
    def decorator(fn: AttackGate) -> AttackGate:
        ATTACK_GATES[template_id] = fn
        return fn
    return decorator


def register_card_action(template_id: str, action: str):
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        CARD_ACTIONS[(template_id, action)] = fn
        return fn
    return decorator


def register_special_handler(name: str):
    def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
        SPECIAL_HANDLERS[name] = fn
        return fn
    return decorator


# ---------------------------------------------------------------------------
# Lookup
# ---------------------------------------------------------------------------

def _describe(descriptor: "DynamicValue", state: "GameState", source: "Card", player_id: str) -> int:
    me = state.players[player_id]
    opp = state.players[other_player(player_id)]
    match descriptor.source:
        case "graveyard":
            if descriptor.filter == "creatures":
                n = sum(1 for c in me.graveyard if c.is_creature)
            elif descriptor.filter == "exclude_self":
                n = sum(1 for c in me.graveyard if c.id != source.id)
            else:
                n = len(me.graveyard)
        case "field":
            if descriptor.filter == "alive":
                n = len(me.alive_field())
            elif descriptor.filter == "exclude_self":
                n = sum(1 for c in me.field if c.id != source.id)
            else:
                n = len(me.field)
        case "enemy_field":
            if descriptor.filter == "has_brand":
                n = len(branded_enemies(state, player_id))
            else:
                n = len(opp.field)
        case _:
            raise ValueError(f"Unknown dynamic value source: {descriptor.source}")
    return n * descriptor.multiplier + descriptor.base_value


def resolve_effect_value(
    state: "GameState", effect: "CardEffect", source: "Card", player_id: str,
) -> int:
    """Effect magnitude at execution time; ordinary cards pass through."""
    if effect.dynamic_value is not None:
        return _describe(effect.dynamic_value, state, source, player_id)
    resolver = DYNAMIC_VALUES.get((source.template_id, effect.action))
    if resolver is None:
        return effect.value
    return resolver(state, source, player_id)


def can_attack_by_card_rule(state: "GameState", card: "FieldCard") -> bool:
    gate = ATTACK_GATES.get(card.template_id)
    return gate is None or gate(state, card)


# ---------------------------------------------------------------------------
# Registered cards
# ---------------------------------------------------------------------------

@register_dynamic_value("necro_grave_giant", "buff_attack")
def _grave_giant(state: "GameState", source: "Card", player_id: str) -> int:
    return sum(1 for c in state.players[player_id].graveyard if c.is_creature)


@register_dynamic_value("kni_sanctuary_prayer", "heal")
def _sanctuary_prayer(state: "GameState", source: "Card", player_id: str) -> int:
    return len(state.players[player_id].alive_field())


@register_dynamic_value("necro_soul_vortex", "summon")
def _soul_vortex(state: "GameState", source: "Card", player_id: str) -> int:
    return sum(1 for c in state.players[player_id].graveyard if c.id != source.id)


@register_dynamic_value("kni_galleon", "buff_attack")
def _galleon(state: "GameState", source: "Card", player_id: str) -> int:
    return sum(1 for c in state.players[player_id].field if c.id != source.id)


@register_dynamic_value("inq_collective_confession", "heal")
def _collective_confession(state: "GameState", source: "Card", player_id: str) -> int:
    return len(branded_enemies(state, player_id)) + 2


@register_attack_gate("ber_desperate_berserker")
def _desperate_berserker(state: "GameState", card: "FieldCard") -> bool:
    """Attacks only while its controller trails in life."""
    me = state.players[card.owner]
    opp = state.players[other_player(card.owner)]
    return me.life < opp.life
