"""v1.0: Rule constants, AI weights and telemetry settings."""

from __future__ import annotations

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any


FACTIONS = ("necromancer", "berserker", "mage", "knight", "inquisitor")
TACTICS = ("aggressive", "defensive", "tempo", "balanced")


# ---------------------------------------------------------------------------
# Game rules
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class GameConfig:
    deck_size: int = 20
    initial_life: int = 15
    initial_hand_size: int = 3
    initial_energy: int = 0
    initial_max_energy: int = 0
    hand_limit: int = 7
    field_limit: int = 5
    energy_limit: int = 8
    card_copy_limit: int = 2
    max_turns: int = 30
    max_steps: int = 1000
    max_deployment_attempts: int = 10

    @classmethod
    def from_dict(cls, raw: dict[str, Any], **overrides: Any) -> "GameConfig":
        known = {f.name for f in fields(cls)}
        merged = dict(raw)
        merged.update({k: v for k, v in overrides.items() if v is not None})
        unknown = sorted(set(merged) - known)
        if unknown:
            raise ValueError(f"Unknown GameConfig keys: {unknown}")
        return cls(**merged)

    @classmethod
    def from_json(cls, path: str | Path, **overrides: Any) -> "GameConfig":
        """Load rules from a JSON file with optional keyword overrides."""
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            raw = json.load(f)
        return cls.from_dict(raw, **overrides)


DEFAULT_CONFIG = GameConfig()


# ---------------------------------------------------------------------------
# AI scoring weights
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class AIWeights:
    spell_cost_multiplier: float = 1.5
    no_target_penalty: float = -1000.0
    # necromancer
    echo_per_graveyard: float = 3.0
    on_death_bonus: float = 5.0
    # knight
    formation_per_ally: float = 4.0
    guard_bonus: float = 6.0
    # berserker
    life_deficit_multiplier: float = 1.5
    glass_cannon_multiplier: float = 2.0
    # mage
    spell_bonus: float = 15.0
    spell_trigger_bonus: float = 10.0
    hand_advantage_multiplier: float = 2.0
    draw_bonus: float = 8.0
    spell_synergy_per_ally: float = 5.0
    aoe_per_enemy: float = 4.0
    # inquisitor
    debuff_per_enemy: float = 3.0
    lockdown_bonus: float = 8.0
    attack_player_probability: dict[str, float] = field(
        default_factory=lambda: {
            "aggressive": 0.6,
            "defensive": 0.2,
            "balanced": 0.4,
            "tempo": 0.5,
        }
    )


DEFAULT_WEIGHTS = AIWeights()


# ---------------------------------------------------------------------------
# Telemetry
# ---------------------------------------------------------------------------

@dataclass
class TelemetryConfig:
    enabled: bool = True
    save_match_summaries: bool = False
    output_path: str | None = None
