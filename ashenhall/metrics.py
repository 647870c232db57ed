"""v1.0: Roll-ups of per-match telemetry summaries, overall and per group."""

from __future__ import annotations

from itertools import groupby
from typing import Any

from ashenhall.models import PLAYER_IDS
from ashenhall.telemetry import PER_PLAYER_FIELDS

# Summary keys that carry counts; deck ids, winner and reason are labels.
SUMMED_FIELDS: tuple[str, ...] = ("total_turns",) + tuple(
    f"p{n}_{name}"
    for name in PER_PLAYER_FIELDS
    for n in range(1, len(PLAYER_IDS) + 1)
)


def _column_stats(rows: list[dict[str, Any]]) -> dict[str, dict[str, float]]:
    stats: dict[str, dict[str, float]] = {}
    for field in sorted(SUMMED_FIELDS):
        values = [float(row[field]) for row in rows if field in row]
        if not values:
            continue
        total = sum(values)
        stats[field] = {
            "sum": total,
            "mean": round(total / len(values), 4),
            "count": len(values),
        }
    return stats


def aggregate_match_summaries(
    summaries: list[dict[str, Any]],
    group_keys: list[str] | None = None,
) -> dict[str, Any]:
    """Sum and average every counter in ``summaries``.

    ``overall`` covers all rows. With ``group_keys``, ``by_group`` repeats
    the roll-up per distinct value of those keys, joined with ``|``.
    """
    rollup: dict[str, Any] = {
        "overall": _column_stats(summaries),
        "count": len(summaries),
    }
    if not group_keys:
        return rollup

    def label(row: dict[str, Any]) -> str:
        return "|".join(str(row.get(key, "unknown")) for key in group_keys)

    ordered = sorted(summaries, key=label)
    rollup["by_group"] = {
        name: _column_stats(list(rows)) for name, rows in groupby(ordered, key=label)
    }
    return rollup
