"""v1.0: Action hooks for cards whose behavior is not expressible as data."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ashenhall.card_hooks import register_card_action, register_special_handler
from ashenhall.conditions import branded_enemies, has_brand
from ashenhall.effects import (
    EffectContext, apply_damage, resolve_deaths, resurrect_card, summon_token,
)
from ashenhall.models import other_player
from ashenhall.rng import choice_or_none
from ashenhall.targeting import enemy_pool

if TYPE_CHECKING:
    from ashenhall.models import GameState

CHAIN_DAMAGE = 2
EXECUTION_DAMAGE = 99


@register_card_action("mag_arcane_lightning", "damage")
def _arcane_lightning(state: "GameState", ctx: EffectContext) -> None:
    """Strike a random enemy; if it dies, arc to another random enemy."""
    first = choice_or_none(ctx.rng, enemy_pool(state, ctx.player_id))
    if first is None:
        return
    health_before = first.current_health
    apply_damage(state, [first], None, ctx.value, ctx.source.id, ctx.player_id)
    if first.current_health > 0 or health_before <= 0:
        return
    others = [c for c in enemy_pool(state, ctx.player_id) if c.id != first.id]
    second = choice_or_none(ctx.rng, others)
    if second is not None:
        apply_damage(state, [second], None, CHAIN_DAMAGE, ctx.source.id, ctx.player_id)


@register_card_action("necro_soul_vortex", "summon")
def _soul_vortex(state: "GameState", ctx: EffectContext) -> None:
    """Consume the graveyard into a single aggregate token."""
    player = state.players[ctx.player_id]
    size = ctx.value
    player.graveyard.clear()
    summon_token(state, ctx.player_id, ctx.source.id,
                 attack=size, health=size, name="Soul Aggregate")


@register_card_action("necro_soul_offering", "resurrect")
def _soul_offering(state: "GameState", ctx: EffectContext) -> None:
    """Sacrifice a random ally, then revive a creature costing at most ``value``."""
    player = state.players[ctx.player_id]
    sacrifice = choice_or_none(ctx.rng, player.alive_field())
    if sacrifice is not None:
        sacrifice.current_health = 0
        resolve_deaths(state, [sacrifice], ctx.source.id)

    candidates = [c for c in player.graveyard if c.is_creature and c.cost <= ctx.value]
    chosen = choice_or_none(ctx.rng, candidates)
    if chosen is not None:
        resurrect_card(state, ctx.player_id, chosen, ctx.source.id)


@register_special_handler("judgment_angel_execution")
def _judgment_angel_execution(state: "GameState", ctx: EffectContext) -> None:
    """Execute every branded enemy, plus one random unbranded enemy."""
    branded = branded_enemies(state, ctx.player_id)
    if branded:
        apply_damage(state, branded, None, EXECUTION_DAMAGE, ctx.source.id, ctx.player_id)

    opponent = state.players[other_player(ctx.player_id)]
    unbranded = [c for c in opponent.field if c.current_health > 0 and not has_brand(c)]
    victim = choice_or_none(ctx.rng, unbranded)
    if victim is not None:
        apply_damage(state, [victim], None, EXECUTION_DAMAGE, ctx.source.id, ctx.player_id)
