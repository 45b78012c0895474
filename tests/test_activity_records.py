import sys
from datetime import datetime, timezone
from pathlib import Path

import pandas as pd
import pytest

# Ensure repository root is on sys.path for module imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from activity_records import (
    ACTIVITY_COLUMNS,
    CompletedActivityRecord,
    StudentIdentity,
    identities_to_lookup,
    name_lookup_from_frame,
    normalize_activity_frame,
    records_to_frame,
)


def test_normalize_renames_and_coerces_columns():
    raw = pd.DataFrame(
        {
            " Student_ID ": [" s1 ", "s2"],
            "SCORE": ["9.5", "abc"],
            "Completed_At": ["2024-01-02T08:00:00Z", "2024-01-03T08:00:00+02:00"],
        }
    )

    df = normalize_activity_frame(raw)

    assert list(df.columns) == ACTIVITY_COLUMNS
    assert df["StudentId"].tolist() == ["s1", "s2"]
    assert df.loc[0, "Score"] == 9.5
    assert pd.isna(df.loc[1, "Score"])
    assert df.loc[1, "CompletedAt"] == pd.Timestamp("2024-01-03T06:00:00Z")


def test_normalize_drops_rows_without_id_or_date():
    raw = pd.DataFrame(
        {
            "studentcode": ["s1", "", None, "s4"],
            "score": [1, 2, 3, 4],
            "date": ["2024-01-01", "2024-01-01", "2024-01-01", "not a date"],
        }
    )

    df = normalize_activity_frame(raw)

    assert df["StudentId"].tolist() == ["s1"]


def test_normalize_without_score_column_marks_scores_missing():
    raw = pd.DataFrame({"student_id": ["s1"], "completed_at": ["2024-01-01"]})

    df = normalize_activity_frame(raw)

    assert df["Score"].isna().all()


def test_normalize_requires_id_and_date_columns():
    with pytest.raises(ValueError):
        normalize_activity_frame(pd.DataFrame({"student_id": ["s1"], "score": [3]}))


def test_empty_input_gives_canonical_empty_frame():
    df = normalize_activity_frame(pd.DataFrame())

    assert df.empty
    assert list(df.columns) == ACTIVITY_COLUMNS


def test_records_to_frame_accepts_records_and_mappings():
    when = datetime(2024, 1, 5, 12, tzinfo=timezone.utc)
    df = records_to_frame(
        [
            CompletedActivityRecord("s1", None, when),
            {"student_id": "s2", "score": 6, "completed_at": when, "completed": True},
        ]
    )

    assert df["StudentId"].tolist() == ["s1", "s2"]
    assert pd.isna(df.loc[0, "Score"])
    assert df.loc[1, "Score"] == 6.0
    assert (df["CompletedAt"] == pd.Timestamp(when)).all()


def test_name_lookup_skips_blank_names():
    profiles = pd.DataFrame({"id": ["s1", "s2", "s3"], "Name": [" Alice ", "", None]})

    assert name_lookup_from_frame(profiles) == {"s1": "Alice"}


def test_name_lookup_requires_name_column():
    with pytest.raises(ValueError):
        name_lookup_from_frame(pd.DataFrame({"id": ["s1"]}))


def test_identities_to_lookup():
    lookup = identities_to_lookup([StudentIdentity("s1", "Alice"), StudentIdentity("s2", "Bob")])

    assert lookup == {"s1": "Alice", "s2": "Bob"}


def test_numeric_ids_with_gaps_match_profile_ids():
    raw = pd.DataFrame(
        {
            "student_id": [1, None, 22],
            "score": [5, 6, 7],
            "completed_at": ["2024-01-01", "2024-01-01", "2024-01-02"],
        }
    )
    profiles = pd.DataFrame({"id": [1, 22, None], "name": ["Ann", "Ben", "Cid"]})

    df = normalize_activity_frame(raw)
    lookup = name_lookup_from_frame(profiles)

    assert df["StudentId"].tolist() == ["1", "22"]
    assert lookup == {"1": "Ann", "22": "Ben"}
