"""v1.0: Data models for the battle simulation."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import Any, Union

from ashenhall.config import DEFAULT_CONFIG, GameConfig


PLAYER_IDS = ("player1", "player2")
PHASES = ("draw", "energy", "deploy", "battle", "end")


def other_player(player_id: str) -> str:
    return "player2" if player_id == "player1" else "player1"


# ---------------------------------------------------------------------------
# Card definition (immutable)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class EffectCondition:
    subject: str            # graveyard / allyCount / playerLife / ...
    operator: str           # gte / lte / lt / gt / eq
    value: int | str        # int, or "opponentLife"


@dataclass(frozen=True)
class FilterRule:
    type: str               # exclude_self / brand / keyword / cost / health / property
    operator: str = "eq"    # eq / has / not_has / gte / lte / range
    value: Any = None
    min_value: int | None = None
    max_value: int | None = None
    property: str | None = None


@dataclass(frozen=True)
class DynamicValue:
    source: str             # graveyard / field / enemy_field
    filter: str | None = None
    multiplier: int = 1
    base_value: int = 0


@dataclass(frozen=True)
class CardEffect:
    trigger: str
    target: str
    action: str
    value: int
    condition: EffectCondition | None = None
    selection_filter: tuple[FilterRule, ...] = ()
    target_filter: tuple[FilterRule, ...] = ()
    dynamic_value: DynamicValue | None = None
    special_handler: str | None = None


@dataclass(frozen=True)
class Card:
    id: str                 # instance id
    template_id: str        # catalog id shared by every copy
    name: str
    card_type: str          # "creature" or "spell"
    faction: str
    cost: int
    attack: int = 0
    health: int = 0
    keywords: tuple[str, ...] = ()
    effects: tuple[CardEffect, ...] = ()
    play_conditions: tuple[EffectCondition, ...] = ()
    flavor: str = ""

    @property
    def is_creature(self) -> bool:
        return self.card_type == "creature"

    def __deepcopy__(self, memo: dict) -> "Card":
        return self


# ---------------------------------------------------------------------------
# Status effects
# ---------------------------------------------------------------------------

@dataclass
class PoisonStatus:
    duration: int
    damage: int
    type: str = field(default="poison", init=False)


@dataclass
class StunStatus:
    duration: int
    type: str = field(default="stun", init=False)


@dataclass
class BrandedStatus:
    type: str = field(default="branded", init=False)


StatusEffect = Union[PoisonStatus, StunStatus, BrandedStatus]


# ---------------------------------------------------------------------------
# In-play instances
# ---------------------------------------------------------------------------

@dataclass
class FieldCard:
    card: Card
    owner: str
    current_health: int
    summon_turn: int
    position: int
    attack_modifier: int = 0
    health_modifier: int = 0
    passive_attack_modifier: int = 0
    passive_health_modifier: int = 0
    has_attacked: bool = False
    is_stealthed: bool = False
    is_silenced: bool = False
    readied_this_turn: bool = False
    status_effects: list[StatusEffect] = field(default_factory=list)

    @classmethod
    def from_card(cls, card: Card, owner: str, turn: int, position: int) -> "FieldCard":
        return cls(
            card=card,
            owner=owner,
            current_health=card.health,
            summon_turn=turn,
            position=position,
            is_stealthed="stealth" in card.keywords,
        )

    # convenience
    @property
    def id(self) -> str:
        return self.card.id

    @property
    def template_id(self) -> str:
        return self.card.template_id

    @property
    def keywords(self) -> tuple[str, ...]:
        return self.card.keywords

    @property
    def effects(self) -> tuple[CardEffect, ...]:
        return self.card.effects

    @property
    def total_attack(self) -> int:
        return self.card.attack + self.attack_modifier + self.passive_attack_modifier

    @property
    def max_health(self) -> int:
        return self.card.health + self.health_modifier + self.passive_health_modifier

    @property
    def is_alive(self) -> bool:
        return self.current_health > 0

    def has_keyword(self, keyword: str) -> bool:
        """Keywords stop working while the creature is silenced."""
        return keyword in self.card.keywords and not self.is_silenced

    def has_status(self, status_type: str) -> bool:
        return any(s.type == status_type for s in self.status_effects)


@dataclass
class PlayerState:
    id: str
    faction: str
    tactics_type: str
    life: int = DEFAULT_CONFIG.initial_life
    energy: int = DEFAULT_CONFIG.initial_energy
    max_energy: int = DEFAULT_CONFIG.initial_max_energy
    deck: list[Card] = field(default_factory=list)          # top of deck is the tail
    hand: list[Card] = field(default_factory=list)
    graveyard: list[Card] = field(default_factory=list)
    banished_cards: list[Card] = field(default_factory=list)
    # declared last: the name shadows dataclasses.field in the class body
    field: list[FieldCard] = field(default_factory=list)

    def alive_field(self) -> list[FieldCard]:
        return [c for c in self.field if c.current_health > 0]


# ---------------------------------------------------------------------------
# Game result
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GameResult:
    winner: str | None
    reason: str             # "life_zero" or "timeout"
    total_turns: int
    duration_seconds: int
    end_time: int


# ---------------------------------------------------------------------------
# Game state (one value per step; each step works on a deep copy)
# ---------------------------------------------------------------------------

@dataclass
class GameState:
    game_id: str
    turn_number: int
    current_player: str
    phase: str
    players: dict[str, PlayerState]
    action_log: list[Any]
    random_seed: str
    start_time: int
    config: GameConfig = DEFAULT_CONFIG
    initial_decks: dict[str, list[Card]] = field(default_factory=dict)
    result: GameResult | None = None

    def active(self) -> PlayerState:
        return self.players[self.current_player]

    def opponent(self) -> PlayerState:
        return self.players[other_player(self.current_player)]

    def clone(self) -> "GameState":
        return copy.deepcopy(self)

    def find_field_card(self, card_id: str) -> FieldCard | None:
        for pid in PLAYER_IDS:
            for fc in self.players[pid].field:
                if fc.id == card_id:
                    return fc
        return None
