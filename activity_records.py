"""Typed records for the weekly ranking and the parse step that produces them."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Mapping

import pandas as pd

ACTIVITY_COLUMNS = ["StudentId", "Score", "CompletedAt"]

_ID_ALIASES = ("student_id", "studentid", "studentcode")
_SCORE_ALIASES = ("score",)
_DATE_ALIASES = ("completed_at", "completedat", "assigned_at", "date")
_NAME_ID_ALIASES = ("id", "student_id", "studentid", "studentcode")


@dataclass(frozen=True)
class CompletedActivityRecord:
    student_id: str
    score: float | None
    completed_at: datetime


@dataclass(frozen=True)
class StudentIdentity:
    student_id: str
    display_name: str


@dataclass(frozen=True)
class RankedStudent:
    """One leaderboard row.

    ``metric`` is the rounded average score or the point count, depending on
    the policy the ranking was computed with.
    """

    id: str
    name: str
    metric: float
    completed_count: int
    last_completion_at: pd.Timestamp | None
    rank: int


def _pick(columns: Mapping[str, str], aliases: Iterable[str]) -> str | None:
    for alias in aliases:
        if alias in columns:
            return columns[alias]
    return None


def _clean_id(value) -> str:
    if value is None or pd.isna(value):
        return ""
    # pandas reads numeric id columns with gaps as float
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def clean_ids(values: pd.Series) -> pd.Series:
    """Turn an id column into stripped strings; missing ids become ``""``."""
    return values.map(_clean_id).astype(object)


def empty_activity_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "StudentId": pd.Series(dtype="object"),
            "Score": pd.Series(dtype="float64"),
            "CompletedAt": pd.Series(dtype="datetime64[ns, UTC]"),
        }
    )


def normalize_activity_frame(raw: pd.DataFrame) -> pd.DataFrame:
    """Return *raw* with canonical ``StudentId``, ``Score`` and ``CompletedAt`` columns.

    Missing or unparseable scores are kept as ``NaN`` so that they do not
    count towards an average. Rows without a student id or a parseable
    timestamp are dropped.
    """
    if raw is None or raw.empty:
        return empty_activity_frame()

    cols = {str(c).lower().strip(): c for c in raw.columns}
    id_col = _pick(cols, _ID_ALIASES)
    date_col = _pick(cols, _DATE_ALIASES)
    score_col = _pick(cols, _SCORE_ALIASES)

    if id_col is None or date_col is None:
        raise ValueError(
            "Activity records need a student id column and a completion date column; "
            f"got {list(raw.columns)}"
        )

    df = pd.DataFrame(index=raw.index)
    df["StudentId"] = clean_ids(raw[id_col])
    if score_col is not None:
        df["Score"] = pd.to_numeric(raw[score_col], errors="coerce").astype(float)
    else:
        df["Score"] = float("nan")
    df["CompletedAt"] = pd.to_datetime(raw[date_col], utc=True, errors="coerce", format="mixed")

    keep = (df["StudentId"].str.len() > 0) & df["CompletedAt"].notna()
    dropped = int((~keep).sum())
    if dropped:
        logging.warning("Dropped %d activity rows without a student id or completion date", dropped)

    return df[keep].reset_index(drop=True)[ACTIVITY_COLUMNS]


def records_to_frame(records) -> pd.DataFrame:
    """Build the canonical activity frame from records or plain mappings."""
    rows = []
    for record in records:
        if isinstance(record, CompletedActivityRecord):
            rows.append(
                {
                    "student_id": record.student_id,
                    "score": record.score,
                    "completed_at": record.completed_at,
                }
            )
        else:
            rows.append(dict(record))
    if not rows:
        return empty_activity_frame()
    return normalize_activity_frame(pd.DataFrame(rows))


def name_lookup_from_frame(df: pd.DataFrame) -> dict[str, str]:
    """Map student ids to display names from a profiles table."""
    if df is None or df.empty:
        return {}

    cols = {str(c).lower().strip(): c for c in df.columns}
    id_col = _pick(cols, _NAME_ID_ALIASES)
    name_col = cols.get("name")
    if id_col is None or name_col is None:
        raise ValueError(f"Profiles need an id column and a name column; got {list(df.columns)}")

    lookup = {}
    for student_id, name in zip(clean_ids(df[id_col]), df[name_col]):
        if not student_id or pd.isna(name):
            continue
        name = str(name).strip()
        if name:
            lookup[student_id] = name
    return lookup


def identities_to_lookup(identities: Iterable[StudentIdentity]) -> dict[str, str]:
    return {i.student_id: i.display_name for i in identities}
