"""v1.0: JSON data loading and validation – card catalog and decks."""

from __future__ import annotations

import json
import warnings
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterator

import ashenhall.special_cards  # noqa: F401  (registers per-card hooks)
from ashenhall.card_hooks import CARD_ACTIONS, SPECIAL_HANDLERS
from ashenhall.conditions import OPERATORS, SUBJECTS
from ashenhall.config import DEFAULT_CONFIG, FACTIONS, TACTICS, GameConfig
from ashenhall.effects import EFFECT_REGISTRY
from ashenhall.models import (
    Card, CardEffect, DynamicValue, EffectCondition, FilterRule,
)
from ashenhall.targeting import TARGET_KINDS
from ashenhall.triggers import TRIGGERS

KEYWORDS = (
    "guard", "rush", "stealth", "lifesteal", "retaliate", "poison",
    "trample", "untargetable", "echo", "formation",
)
CARD_TYPES = ("creature", "spell")
PASSIVE_ACTIONS = ("buff_attack", "buff_health")
DYNAMIC_SOURCES = ("graveyard", "field", "enemy_field")


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _condition(raw: dict[str, Any] | None) -> EffectCondition | None:
    if raw is None:
        return None
    return EffectCondition(subject=raw["subject"], operator=raw["operator"], value=raw["value"])


def _rules(raw: list[dict[str, Any]] | None) -> tuple[FilterRule, ...]:
    return tuple(
        FilterRule(
            type=r["type"],
            operator=r.get("operator", "eq"),
            value=r.get("value"),
            min_value=r.get("min_value"),
            max_value=r.get("max_value"),
            property=r.get("property"),
        )
        for r in raw or ()
    )


def _effect(raw: dict[str, Any]) -> CardEffect:
    dyn = raw.get("dynamic_value")
    return CardEffect(
        trigger=raw["trigger"],
        target=raw["target"],
        action=raw["action"],
        value=raw.get("value", 0),
        condition=_condition(raw.get("condition")),
        selection_filter=_rules(raw.get("selection_filter")),
        target_filter=_rules(raw.get("target_filter")),
        dynamic_value=DynamicValue(
            source=dyn["source"],
            filter=dyn.get("filter"),
            multiplier=dyn.get("multiplier", 1),
            base_value=dyn.get("base_value", 0),
        ) if dyn else None,
        special_handler=raw.get("special_handler"),
    )


def parse_card(entry: dict[str, Any]) -> Card:
    """Build and validate a template card from its JSON entry."""
    card = Card(
        id=entry["id"],
        template_id=entry["id"],
        name=entry["name"],
        card_type=entry["type"],
        faction=entry["faction"],
        cost=entry["cost"],
        attack=entry.get("attack", 0),
        health=entry.get("health", 0),
        keywords=tuple(entry.get("keywords", ())),
        effects=tuple(_effect(e) for e in entry.get("effects", ())),
        play_conditions=tuple(
            _condition(c) for c in entry.get("play_conditions", ())
        ),
        flavor=entry.get("flavor", ""),
    )
    _validate_card(card)
    return card


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _validate_condition(card: Card, cond: EffectCondition) -> None:
    if cond.subject not in SUBJECTS:
        raise ValueError(f"Card {card.id}: unknown condition subject '{cond.subject}'")
    if cond.operator not in OPERATORS:
        raise ValueError(f"Card {card.id}: unknown condition operator '{cond.operator}'")
    if not isinstance(cond.value, int) and cond.value != "opponentLife":
        raise ValueError(f"Card {card.id}: invalid condition value {cond.value!r}")


def _validate_effect(card: Card, effect: CardEffect) -> None:
    if effect.trigger not in TRIGGERS:
        raise ValueError(f"Card {card.id}: unknown trigger '{effect.trigger}'")
    if effect.target not in TARGET_KINDS:
        raise ValueError(f"Card {card.id}: unknown target '{effect.target}'")
    if effect.special_handler is not None:
        if effect.special_handler not in SPECIAL_HANDLERS:
            raise ValueError(f"Card {card.id}: unknown special handler '{effect.special_handler}'")
    elif (effect.action not in EFFECT_REGISTRY
          and (card.template_id, effect.action) not in CARD_ACTIONS):
        raise ValueError(f"Card {card.id}: unknown action '{effect.action}'")
    if effect.trigger == "passive" and effect.action not in PASSIVE_ACTIONS:
        raise ValueError(
            f"Card {card.id}: passive effects must be one of {PASSIVE_ACTIONS}, "
            f"got '{effect.action}'"
        )
    if effect.condition is not None:
        _validate_condition(card, effect.condition)
    if effect.dynamic_value is not None and effect.dynamic_value.source not in DYNAMIC_SOURCES:
        raise ValueError(
            f"Card {card.id}: unknown dynamic value source '{effect.dynamic_value.source}'"
        )


def _validate_card(card: Card) -> None:
    if card.card_type not in CARD_TYPES:
        raise ValueError(f"Card {card.id}: invalid type '{card.card_type}'")
    if card.faction not in FACTIONS:
        raise ValueError(f"Card {card.id}: unknown faction '{card.faction}'")
    if card.cost < 0:
        raise ValueError(f"Card {card.id}: negative cost {card.cost}")
    if card.is_creature and card.health <= 0:
        raise ValueError(f"Card {card.id}: creature must have positive health")
    if card.is_creature and card.attack < 0:
        raise ValueError(f"Card {card.id}: creature attack {card.attack} is negative")
    for kw in card.keywords:
        if kw not in KEYWORDS:
            raise ValueError(f"Card {card.id}: unknown keyword '{kw}'")
    for effect in card.effects:
        _validate_effect(card, effect)
    for cond in card.play_conditions:
        _validate_condition(card, cond)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class CardCatalog:
    """Read-only template lookup by template id."""

    def __init__(self, cards: dict[str, Card]) -> None:
        self._cards = dict(cards)

    def get_card_by_id(self, template_id: str) -> Card | None:
        return self._cards.get(template_id)

    def by_faction(self, faction: str) -> list[Card]:
        return [c for c in self._cards.values() if c.faction == faction]

    def __contains__(self, template_id: object) -> bool:
        return template_id in self._cards

    def __len__(self) -> int:
        return len(self._cards)

    def __iter__(self) -> Iterator[Card]:
        return iter(self._cards.values())


def load_cards(path: str | Path) -> CardCatalog:
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)

    cards: dict[str, Card] = {}
    for entry in raw:
        card = parse_card(entry)
        if card.id in cards:
            raise ValueError(f"Duplicate card id '{card.id}'")
        cards[card.id] = card
    return CardCatalog(cards)


# ---------------------------------------------------------------------------
# Decks
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DeckEntry:
    card_id: str
    count: int


@dataclass(frozen=True)
class DeckDef:
    deck_id: str
    faction: str
    tactics: str
    entries: tuple[DeckEntry, ...]

    def build(self, catalog: CardCatalog, owner_tag: str) -> list[Card]:
        """Expand into card instances with ids unique to ``owner_tag``."""
        cards: list[Card] = []
        for entry in self.entries:
            template = catalog.get_card_by_id(entry.card_id)
            if template is None:
                raise ValueError(f"Deck {self.deck_id}: unknown card_id '{entry.card_id}'")
            for n in range(entry.count):
                cards.append(replace(template, id=f"{owner_tag}-{entry.card_id}-{n + 1}"))
        return cards


def validate_deck(
    deck: DeckDef, catalog: CardCatalog, config: GameConfig = DEFAULT_CONFIG,
) -> None:
    if deck.faction not in FACTIONS:
        raise ValueError(f"Deck {deck.deck_id}: unknown faction '{deck.faction}'")
    if deck.tactics not in TACTICS:
        raise ValueError(f"Deck {deck.deck_id}: unknown tactics '{deck.tactics}'")

    total = 0
    off_faction: list[str] = []
    for e in deck.entries:
        card = catalog.get_card_by_id(e.card_id)
        if card is None:
            raise ValueError(f"Deck {deck.deck_id}: unknown card_id '{e.card_id}'")
        if e.count < 1 or e.count > config.card_copy_limit:
            raise ValueError(
                f"Deck {deck.deck_id}: card '{e.card_id}' count {e.count} "
                f"not in [1,{config.card_copy_limit}]"
            )
        if card.faction != deck.faction:
            off_faction.append(e.card_id)
        total += e.count

    if total != config.deck_size:
        raise ValueError(f"Deck {deck.deck_id}: total cards {total}, expected {config.deck_size}")
    if off_faction:
        warnings.warn(
            f"Deck {deck.deck_id}: cards from another faction: {', '.join(off_faction)}",
            stacklevel=2,
        )


def load_deck(
    path: str | Path, catalog: CardCatalog, config: GameConfig = DEFAULT_CONFIG,
) -> DeckDef:
    path = Path(path)
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)

    deck = DeckDef(
        deck_id=raw["deck_id"],
        faction=raw["faction"],
        tactics=raw.get("tactics", "balanced"),
        entries=tuple(DeckEntry(card_id=e["card_id"], count=e["count"]) for e in raw["entries"]),
    )
    validate_deck(deck, catalog, config)
    return deck


def load_decks(
    directory: str | Path, catalog: CardCatalog, config: GameConfig = DEFAULT_CONFIG,
) -> list[DeckDef]:
    return [load_deck(p, catalog, config) for p in sorted(Path(directory).glob("*.json"))]
