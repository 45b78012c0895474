"""Helper functions for computing the weekly student ranking."""

from __future__ import annotations

import numbers
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Mapping

import pandas as pd

from activity_records import RankedStudent, normalize_activity_frame, records_to_frame
from config import UNKNOWN_STUDENT_NAME

RANKING_COLUMNS = [
    "Rank",
    "StudentId",
    "Name",
    "Metric",
    "CompletedCount",
    "LastCompletion",
]


class RankingPolicy(str, Enum):
    AVERAGE = "average"
    POINTS = "points"


class InvalidRankingArgument(ValueError):
    """Raised when the caller passes a bad limit or policy."""


def _coerce_policy(policy: RankingPolicy | str) -> RankingPolicy:
    try:
        return RankingPolicy(policy)
    except ValueError:
        raise InvalidRankingArgument(f"Unknown ranking policy: {policy!r}") from None


def _check_limit(limit: int) -> int:
    if isinstance(limit, bool) or not isinstance(limit, numbers.Integral):
        raise InvalidRankingArgument(f"limit must be an int, got {type(limit).__name__}")
    if limit <= 0:
        raise InvalidRankingArgument(f"limit must be positive, got {limit}")
    return int(limit)


def _round_half_up(value: float) -> float:
    """Round to one decimal, halves away from zero."""
    return float(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _activity_frame(records) -> pd.DataFrame:
    if isinstance(records, pd.DataFrame):
        return normalize_activity_frame(records)
    return records_to_frame(records)


def _aggregate(df: pd.DataFrame, policy: RankingPolicy) -> pd.DataFrame:
    """Collapse *df* to one row per student, keeping first-encounter order."""
    agg = (
        df.groupby("StudentId", sort=False)
        .agg(
            CompletedCount=("CompletedAt", "size"),
            AverageScore=("Score", "mean"),
            LastCompletion=("CompletedAt", "max"),
        )
        .reset_index()
    )
    agg["_Order"] = range(len(agg))

    if policy is RankingPolicy.AVERAGE:
        # mean() skips missing scores; a student with none averages 0
        agg["Metric"] = agg["AverageScore"].fillna(0.0).map(_round_half_up).astype(float)
        return agg.sort_values(["Metric", "LastCompletion", "_Order"], ascending=[False, True, True])

    agg["Metric"] = agg["CompletedCount"].astype(int)
    return agg.sort_values(["Metric", "_Order"], ascending=[False, True])


def compute_ranking_frame(
    records,
    name_lookup: Mapping[str, str] | None,
    limit: int,
    policy: RankingPolicy | str = RankingPolicy.AVERAGE,
) -> pd.DataFrame:
    """Rank students from already-windowed *records* and return the leaderboard table."""
    limit = _check_limit(limit)
    policy = _coerce_policy(policy)
    name_lookup = name_lookup or {}

    df = _activity_frame(records)
    if df.empty:
        return pd.DataFrame(columns=RANKING_COLUMNS)

    ranked = _aggregate(df, policy).head(limit).reset_index(drop=True)
    ranked.insert(0, "Rank", ranked.index + 1)
    ranked["Name"] = ranked["StudentId"].map(lambda sid: name_lookup.get(sid) or UNKNOWN_STUDENT_NAME)
    return ranked[RANKING_COLUMNS]


def compute_ranking(
    records,
    name_lookup: Mapping[str, str] | None,
    limit: int,
    policy: RankingPolicy | str = RankingPolicy.AVERAGE,
) -> list[RankedStudent]:
    """Return the capped, ranked leaderboard as :class:`RankedStudent` rows.

    ``records`` must already be restricted to the ranking window and to
    completed activities; nothing is re-filtered here. ``policy`` selects
    between the mean score (ties go to the earlier last completion) and a
    plain count of completed activities.
    """
    policy = _coerce_policy(policy)
    table = compute_ranking_frame(records, name_lookup, limit, policy)
    to_metric = float if policy is RankingPolicy.AVERAGE else int

    return [
        RankedStudent(
            id=row.StudentId,
            name=row.Name,
            metric=to_metric(row.Metric),
            completed_count=int(row.CompletedCount),
            last_completion_at=None if pd.isna(row.LastCompletion) else row.LastCompletion,
            rank=int(row.Rank),
        )
        for row in table.itertuples(index=False)
    ]
