# ranking_loading.py
from __future__ import annotations

import io
import logging
from datetime import datetime, timedelta
from typing import Iterable, Optional

import firebase_admin
import pandas as pd
import requests
import streamlit as st
from firebase_admin import credentials, firestore

from activity_records import (
    StudentIdentity,
    empty_activity_frame,
    identities_to_lookup,
    name_lookup_from_frame,
    normalize_activity_frame,
    records_to_frame,
)
from config import (
    DEFAULT_ACTIVITY_COLLECTION,
    DEFAULT_PROFILES_COLLECTION,
    UNKNOWN_STUDENT_NAME,
    WINDOW_DAYS,
)
from ranking_logic import RankingPolicy, compute_ranking_frame

_HEADERS = {
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
    "User-Agent": "Mozilla/5.0 (compatible; weekly-ranking/1.0; +streamlit)",
}

_db = None


def _get_db():
    """Initialize and cache the Firestore client."""
    global _db
    if _db is None:
        if not firebase_admin._apps:
            try:
                cred = credentials.Certificate(dict(st.secrets["firebase"]))
            except Exception:
                # no secrets file; fall back to application default credentials
                firebase_admin.initialize_app()
            else:
                firebase_admin.initialize_app(cred)
        _db = firestore.client()
    return _db


def _utc(value: datetime | pd.Timestamp) -> pd.Timestamp:
    # naive values are taken as UTC
    ts = pd.Timestamp(value)
    return ts.tz_localize("UTC") if ts.tzinfo is None else ts.tz_convert("UTC")


def window_start(now: datetime | pd.Timestamp, days: int = WINDOW_DAYS) -> pd.Timestamp:
    """Return the lower bound of the trailing *days* window ending at *now*, in UTC."""
    return _utc(now) - timedelta(days=days)


def fetch_completed_activity(
    since: datetime | pd.Timestamp,
    *,
    collection: str = DEFAULT_ACTIVITY_COLLECTION,
    date_field: str = "completed_at",
) -> pd.DataFrame:
    """Load completed lessons with ``date_field >= since`` from Firestore."""
    db = _get_db()
    since_dt = _utc(since).to_pydatetime()
    try:
        docs = (
            db.collection(collection)
            .where("completed", "==", True)
            .where(date_field, ">=", since_dt)
            .stream()
        )
        rows = [doc.to_dict() or {} for doc in docs]
    except Exception:
        logging.exception("Failed to load completed activity from %s", collection)
        raise

    logging.info("Fetched %d completed activity records since %s", len(rows), since_dt.isoformat())
    return records_to_frame(rows)


def fetch_student_names(
    student_ids: Iterable[str],
    *,
    collection: str = DEFAULT_PROFILES_COLLECTION,
) -> dict[str, str]:
    """Return a (possibly partial) ``student_id -> name`` mapping for *student_ids*."""
    ids = sorted({str(i) for i in student_ids})
    if not ids:
        return {}

    db = _get_db()
    coll = db.collection(collection)
    try:
        snapshots = db.get_all([coll.document(i) for i in ids])
        identities = []
        for snap in snapshots:
            if not snap.exists:
                continue
            name = ((snap.to_dict() or {}).get("name") or "").strip()
            if name:
                identities.append(StudentIdentity(student_id=snap.id, display_name=name))
    except Exception:
        logging.exception("Failed to load student names from %s", collection)
        raise

    missing = len(ids) - len(identities)
    if missing:
        logging.info("%d students have no profile name; showing %r", missing, UNKNOWN_STUDENT_NAME)
    return identities_to_lookup(identities)


def _read_csv(source: str) -> pd.DataFrame:
    source = str(source)
    if not source.lower().startswith(("http://", "https://")):
        return pd.read_csv(source)

    resp = requests.get(source, timeout=12, headers=_HEADERS)
    resp.raise_for_status()
    txt = resp.text
    if "<html" in txt[:512].lower():
        raise ValueError(
            "Expected CSV but received HTML. Ensure the sheet/tab is shared: "
            "Anyone with the link (Viewer), or publish the tab."
        )
    return pd.read_csv(io.StringIO(txt))


def _truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y"}
    if pd.isna(value):
        return False
    return bool(value)


def load_activity_csv(source: str, since: datetime | pd.Timestamp) -> pd.DataFrame:
    """Load activity rows from a CSV file or URL, keeping completed rows inside the window."""
    try:
        raw = _read_csv(source)
    except Exception:
        logging.exception("Failed to load activity CSV from %s", source)
        raise

    if raw.empty:
        return empty_activity_frame()

    completed_col = next((c for c in raw.columns if str(c).lower().strip() == "completed"), None)
    if completed_col is not None:
        raw = raw[raw[completed_col].map(_truthy)]

    df = normalize_activity_frame(raw)
    df = df[df["CompletedAt"] >= _utc(since)].reset_index(drop=True)
    logging.info("Loaded %d completed activity records from CSV", len(df))
    return df


def load_names_csv(source: str) -> dict[str, str]:
    try:
        return name_lookup_from_frame(_read_csv(source))
    except Exception:
        logging.exception("Failed to load student names from %s", source)
        raise


def load_weekly_ranking(
    *,
    now: datetime | pd.Timestamp,
    limit: int,
    policy: RankingPolicy | str = RankingPolicy.AVERAGE,
    activity_csv: Optional[str] = None,
    names_csv: Optional[str] = None,
    activity_collection: Optional[str] = None,
    profiles_collection: Optional[str] = None,
) -> pd.DataFrame:
    """Fetch the last week of completed activity and rank it.

    Exactly one of ``activity_csv`` or ``activity_collection`` must be
    provided. Names come from ``names_csv`` when given, otherwise from the
    Firestore profiles collection.

    Returns
    -------
    ``pandas.DataFrame`` with the columns of
    :data:`ranking_logic.RANKING_COLUMNS`.
    """
    if bool(activity_csv) == bool(activity_collection):
        raise ValueError("Specify exactly one of activity_csv or activity_collection")

    since = window_start(now)
    if activity_csv:
        records = load_activity_csv(activity_csv, since)
    else:
        records = fetch_completed_activity(since, collection=activity_collection)

    if records.empty:
        logging.info("No completed activity since %s", since.isoformat())
        # still validates limit and policy
        return compute_ranking_frame(records, {}, limit, policy)

    student_ids = records["StudentId"].unique().tolist()
    if names_csv:
        names = load_names_csv(names_csv)
    else:
        names = fetch_student_names(
            student_ids, collection=profiles_collection or DEFAULT_PROFILES_COLLECTION
        )

    return compute_ranking_frame(records, names, limit, policy)
