"""v1.0: Append-only action log – one frozen payload type per event kind."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from ashenhall.models import GameState


# ---------------------------------------------------------------------------
# Before/after values
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValueChange:
    attack: tuple[int, int] | None = None
    health: tuple[int, int] | None = None
    life: tuple[int, int] | None = None
    energy: tuple[int, int] | None = None


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CardPlayData:
    card_id: str
    position: int                               # -1 for spells
    player_energy: tuple[int, int]
    initial_stats: dict[str, int] | None = None


@dataclass(frozen=True)
class CardAttackData:
    attacker_card_id: str
    target_id: str                              # card id or player id
    damage: int
    attacker_health: tuple[int, int] | None = None
    target_health: tuple[int, int] | None = None
    target_player_life: tuple[int, int] | None = None


@dataclass(frozen=True)
class CreatureDestroyedData:
    destroyed_card_id: str
    source: str                                 # "combat" or "effect"
    source_card_id: str | None = None


@dataclass(frozen=True)
class EffectTriggerData:
    source_card_id: str
    effect_type: str
    effect_value: int
    targets: dict[str, ValueChange] = field(default_factory=dict)


@dataclass(frozen=True)
class PhaseChangeData:
    from_phase: str
    to_phase: str


@dataclass(frozen=True)
class TriggerEventData:
    trigger_type: str
    source_card_id: str | None = None
    target_card_id: str | None = None


@dataclass(frozen=True)
class EnergyUpdateData:
    max_energy_before: int
    max_energy_after: int


@dataclass(frozen=True)
class KeywordTriggerData:
    keyword: str
    source_card_id: str
    target_id: str
    value: int


ActionData = Union[
    CardPlayData, CardAttackData, CreatureDestroyedData, EffectTriggerData,
    PhaseChangeData, TriggerEventData, EnergyUpdateData, KeywordTriggerData,
]


def action_type(data: ActionData) -> str:
    match data:
        case CardPlayData():
            return "card_play"
        case CardAttackData():
            return "card_attack"
        case CreatureDestroyedData():
            return "creature_destroyed"
        case EffectTriggerData():
            return "effect_trigger"
        case PhaseChangeData():
            return "phase_change"
        case TriggerEventData():
            return "trigger_event"
        case EnergyUpdateData():
            return "energy_update"
        case KeywordTriggerData():
            return "keyword_trigger"
        case _:
            raise ValueError(f"Unknown action payload: {data!r}")


@dataclass(frozen=True)
class GameAction:
    sequence: int
    player_id: str
    data: ActionData
    timestamp: int

    @property
    def type(self) -> str:
        return action_type(self.data)

    def __deepcopy__(self, memo: dict) -> "GameAction":
        return self


# ---------------------------------------------------------------------------
# Append / export
# ---------------------------------------------------------------------------

def add_action(state: "GameState", player_id: str, data: ActionData) -> GameAction:
    """Append an action; sequence is the log position, timestamp is logical."""
    sequence = len(state.action_log)
    action = GameAction(
        sequence=sequence,
        player_id=player_id,
        data=data,
        timestamp=state.start_time + sequence,
    )
    state.action_log.append(action)
    return action


def _strip_none(value: Any) -> Any:
    if isinstance(value, dict):
        return {k: _strip_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, tuple):
        return list(value)
    return value


def action_to_dict(action: GameAction) -> dict[str, Any]:
    return {
        "sequence": action.sequence,
        "player_id": action.player_id,
        "type": action.type,
        "timestamp": action.timestamp,
        "data": _strip_none(asdict(action.data)),
    }


def actions_of_type(log: list[GameAction], kind: str) -> list[GameAction]:
    return [a for a in log if a.type == kind]
