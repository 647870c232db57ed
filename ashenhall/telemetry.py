"""v1.0: Match telemetry – per-game counters derived from the action log."""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from ashenhall.action_log import (
    CardAttackData, CardPlayData, CreatureDestroyedData, EffectTriggerData,
    KeywordTriggerData,
)
from ashenhall.models import PLAYER_IDS, other_player

if TYPE_CHECKING:
    from ashenhall.models import GameState

PER_PLAYER_FIELDS = (
    "cards_played", "energy_spent", "creatures_summoned", "spells_cast",
    "damage_to_player", "attacks_declared", "creatures_lost",
    "fatigue_damage", "keyword_triggers",
)


def _zeros() -> dict[str, int]:
    return {pid: 0 for pid in PLAYER_IDS}


class MatchTelemetry:
    """Per-game statistics, read back from a finished game's action log.

    All counters are dicts keyed by player id.
    """

    def __init__(self) -> None:
        self.cards_played = _zeros()
        self.energy_spent = _zeros()
        self.creatures_summoned = _zeros()
        self.spells_cast = _zeros()
        self.damage_to_player = _zeros()
        self.attacks_declared = _zeros()
        self.creatures_lost = _zeros()
        self.fatigue_damage = _zeros()
        self.keyword_triggers = _zeros()
        self._game_id: str = ""
        self._total_turns: int = 0
        self._winner: str | None = None
        self._reason: str = ""

    @classmethod
    def from_game(cls, state: "GameState") -> "MatchTelemetry":
        tel = cls()
        tel._game_id = state.game_id
        for action in state.action_log:
            tel._record(action.player_id, action.data)
        if state.result is not None:
            tel._total_turns = state.result.total_turns
            tel._winner = state.result.winner
            tel._reason = state.result.reason
        else:
            tel._total_turns = state.turn_number
        return tel

    def _record(self, pid: str, data: Any) -> None:
        match data:
            case CardPlayData(position=position, player_energy=(before, after)):
                self.cards_played[pid] += 1
                self.energy_spent[pid] += before - after
                if position >= 0:
                    self.creatures_summoned[pid] += 1
                else:
                    self.spells_cast[pid] += 1
            case CardAttackData(target_player_life=life):
                self.attacks_declared[pid] += 1
                if life is not None:
                    self.damage_to_player[pid] += life[0] - life[1]
            case CreatureDestroyedData():
                # logged under the owner of the destroyed creature
                self.creatures_lost[pid] += 1
            case (EffectTriggerData(source_card_id="deck_empty", targets=targets)
                  | EffectTriggerData(effect_type="draw_card", targets=targets)):
                for change in targets.values():
                    if change.life is not None:
                        self.fatigue_damage[pid] += change.life[0] - change.life[1]
            case EffectTriggerData(effect_type="damage", targets=targets):
                opp = other_player(pid)
                change = targets.get(opp)
                if change is not None and change.life is not None:
                    self.damage_to_player[pid] += change.life[0] - change.life[1]
            case KeywordTriggerData(keyword=keyword, target_id=target_id, value=value):
                self.keyword_triggers[pid] += 1
                if keyword == "trample" and target_id in PLAYER_IDS:
                    self.damage_to_player[pid] += value

    # ------------------------------------------------------------------
    # Summary export
    # ------------------------------------------------------------------

    def to_summary(self) -> dict[str, Any]:
        """Return a flat dict summarizing this match's telemetry."""
        summary: dict[str, Any] = {
            "game_id": self._game_id,
            "total_turns": self._total_turns,
            "winner": self._winner or "draw",
            "reason": self._reason,
        }
        # Per-player fields as p1_*/p2_* keys
        for fname in PER_PLAYER_FIELDS:
            vals = getattr(self, fname)
            for n, pid in enumerate(PLAYER_IDS, start=1):
                summary[f"p{n}_{fname}"] = vals[pid]
        return summary

