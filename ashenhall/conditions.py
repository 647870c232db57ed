"""v1.0: Activation conditions, play conditions and brand helpers."""

from __future__ import annotations

from typing import Callable, TYPE_CHECKING

from ashenhall.models import BrandedStatus, EffectCondition, FieldCard, other_player

if TYPE_CHECKING:
    from ashenhall.models import Card, GameState


# ---------------------------------------------------------------------------
# Brand
# ---------------------------------------------------------------------------

def has_brand(card: FieldCard) -> bool:
    return card.has_status("branded")


def add_brand(card: FieldCard) -> bool:
    """Brand a creature. Returns False if it already carried a brand."""
    if has_brand(card):
        return False
    card.status_effects.append(BrandedStatus())
    return True


def branded_enemies(state: "GameState", player_id: str) -> list[FieldCard]:
    opponent = state.players[other_player(player_id)]
    return [c for c in opponent.field if c.current_health > 0 and has_brand(c)]


# ---------------------------------------------------------------------------
# Conditions
# ---------------------------------------------------------------------------

SUBJECTS: dict[str, Callable[["GameState", str], int]] = {
    "graveyard": lambda s, pid: len(s.players[pid].graveyard),
    "allyCount": lambda s, pid: len(s.players[pid].field),
    "playerLife": lambda s, pid: s.players[pid].life,
    "opponentLife": lambda s, pid: s.players[other_player(pid)].life,
    "brandedEnemyCount": lambda s, pid: len(branded_enemies(s, pid)),
    "hasBrandedEnemy": lambda s, pid: 1 if branded_enemies(s, pid) else 0,
    "enemyCreatureCount": lambda s, pid: len(s.players[other_player(pid)].alive_field()),
}

OPERATORS: dict[str, Callable[[int, int], bool]] = {
    "gte": lambda a, b: a >= b,
    "lte": lambda a, b: a <= b,
    "lt": lambda a, b: a < b,
    "gt": lambda a, b: a > b,
    "eq": lambda a, b: a == b,
}


def check_condition(
    state: "GameState", player_id: str, condition: EffectCondition | None,
) -> bool:
    if condition is None:
        return True
    subject = SUBJECTS.get(condition.subject)
    if subject is None:
        raise ValueError(f"Unknown condition subject: {condition.subject}")
    op = OPERATORS.get(condition.operator)
    if op is None:
        raise ValueError(f"Unknown condition operator: {condition.operator}")

    compare = condition.value
    if compare == "opponentLife":
        compare = state.players[other_player(player_id)].life
    return op(subject(state, player_id), int(compare))


def check_play_conditions(state: "GameState", card: "Card", player_id: str) -> bool:
    return all(check_condition(state, player_id, c) for c in card.play_conditions)
