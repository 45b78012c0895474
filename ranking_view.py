"""Presentation helpers for leaderboard tables.

These functions only reshape an already computed ranking; the viewer's own
student id is always passed in by the page.
"""

from __future__ import annotations

import pandas as pd

from ranking_logic import RankingPolicy

RANK_BADGES = {1: "🏆", 2: "🥈", 3: "🥉"}

YOU_SUFFIX = " (You)"


def rank_badge(rank: int) -> str:
    return RANK_BADGES.get(int(rank), str(int(rank)))


def metric_label(policy: RankingPolicy | str) -> str:
    return "Points" if RankingPolicy(policy) is RankingPolicy.POINTS else "Average"


def format_metric(value, policy: RankingPolicy | str) -> str:
    if RankingPolicy(policy) is RankingPolicy.POINTS:
        return str(int(value))
    return f"{float(value):.1f}"


def build_display_table(
    ranking_df: pd.DataFrame,
    policy: RankingPolicy | str,
    current_student_id: str | None = None,
) -> pd.DataFrame:
    """Turn a ranking table into the columns shown on the leaderboard pages."""
    label = metric_label(policy)
    columns = ["Rank", "Student", label, "Lessons", "You"]
    if ranking_df is None or ranking_df.empty:
        return pd.DataFrame(columns=columns)

    if current_student_id:
        is_you = ranking_df["StudentId"] == current_student_id
    else:
        is_you = pd.Series(False, index=ranking_df.index)
    out = pd.DataFrame(
        {
            "Rank": ranking_df["Rank"].map(rank_badge),
            "Student": ranking_df["Name"],
            label: ranking_df["Metric"].map(lambda v: format_metric(v, policy)),
            "Lessons": ranking_df["CompletedCount"].astype(int),
            "You": is_you,
        }
    )
    out.loc[out["You"], "Student"] = out.loc[out["You"], "Student"] + YOU_SUFFIX
    return out[columns].reset_index(drop=True)


def split_podium(ranking_df: pd.DataFrame) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Return ``(top_three, rest)``."""
    return ranking_df.head(3).reset_index(drop=True), ranking_df.iloc[3:].reset_index(drop=True)


def find_viewer_row(ranking_df: pd.DataFrame, current_student_id: str | None) -> dict | None:
    if not current_student_id or ranking_df is None or ranking_df.empty:
        return None
    match = ranking_df[ranking_df["StudentId"] == current_student_id]
    if match.empty:
        return None
    return match.iloc[0].to_dict()
