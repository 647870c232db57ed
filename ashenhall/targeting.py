"""v1.0: Target resolution and filter rules."""

from __future__ import annotations

import random
from typing import Any, Iterable, TYPE_CHECKING

from ashenhall.conditions import has_brand
from ashenhall.models import Card, FieldCard, FilterRule, other_player
from ashenhall.rng import choice_or_none

if TYPE_CHECKING:
    from ashenhall.models import CardEffect, GameState


TARGET_KINDS = ("self", "ally_all", "ally_random", "enemy_all", "enemy_random", "player")

_PROPERTY_ALIASES = {"type": "card_type"}


# ---------------------------------------------------------------------------
# Filter rules
# ---------------------------------------------------------------------------

def _in_range(value: int, rule: FilterRule) -> bool:
    if rule.operator == "range":
        return ((rule.min_value is None or value >= rule.min_value)
                and (rule.max_value is None or value <= rule.max_value))
    if rule.operator == "gte":
        return value >= rule.value
    if rule.operator == "lte":
        return value <= rule.value
    if rule.operator == "eq":
        return value == rule.value
    return value != rule.value


def _property(target: Card | FieldCard, name: str) -> Any:
    name = _PROPERTY_ALIASES.get(name, name)
    if isinstance(target, FieldCard) and hasattr(target, name):
        return getattr(target, name)
    card = target.card if isinstance(target, FieldCard) else target
    return getattr(card, name, None)


def matches_rule(target: Card | FieldCard, rule: FilterRule, source_id: str | None = None) -> bool:
    card = target.card if isinstance(target, FieldCard) else target
    match rule.type:
        case "exclude_self":
            return source_id is None or card.id != source_id
        case "brand":
            branded = isinstance(target, FieldCard) and has_brand(target)
            return branded if rule.operator == "has" else not branded
        case "keyword":
            present = rule.value in card.keywords
            return present if rule.operator == "has" else not present
        case "cost":
            return _in_range(card.cost, rule)
        case "health":
            health = target.current_health if isinstance(target, FieldCard) else card.health
            return _in_range(health, rule)
        case "property":
            return _property(target, rule.property or "") == rule.value
        case _:
            raise ValueError(f"Unknown filter rule type: {rule.type}")


def apply_rules(
    targets: Iterable[Any], rules: Iterable[FilterRule], source_id: str | None = None,
) -> list[Any]:
    rules = tuple(rules)
    return [t for t in targets if all(matches_rule(t, r, source_id) for r in rules)]


# ---------------------------------------------------------------------------
# Candidate pools
# ---------------------------------------------------------------------------

def is_targetable_by_enemy(card: FieldCard) -> bool:
    return (card.current_health > 0
            and not card.is_stealthed
            and not card.has_keyword("untargetable"))


def ally_pool(state: "GameState", player_id: str) -> list[FieldCard]:
    return state.players[player_id].alive_field()


def enemy_pool(state: "GameState", player_id: str) -> list[FieldCard]:
    opponent = state.players[other_player(player_id)]
    return [c for c in opponent.field if is_targetable_by_enemy(c)]


def select_targets(
    state: "GameState",
    effect: "CardEffect",
    source_card: Card,
    player_id: str,
    rng: random.Random,
) -> list[FieldCard]:
    """Expand a declared target kind to concrete field cards.

    ``player`` resolves to an empty card list; handlers that act on life
    pick the player themselves. A random kind picks its card first; the
    selection filter then narrows what was picked, so a filtered random
    effect can come up empty.
    """
    match effect.target:
        case "self":
            fc = state.find_field_card(source_card.id)
            pool = [fc] if fc is not None and fc.current_health > 0 else []
        case "ally_all" | "ally_random":
            pool = ally_pool(state, player_id)
        case "enemy_all" | "enemy_random":
            pool = enemy_pool(state, player_id)
        case "player":
            return []
        case _:
            raise ValueError(f"Unknown effect target: {effect.target}")

    if effect.target.endswith("_random"):
        picked = choice_or_none(rng, pool)
        pool = [picked] if picked is not None else []

    if effect.selection_filter:
        pool = apply_rules(pool, effect.selection_filter, source_card.id)
    return pool
