"""Settings shared by the ranking loaders and pages."""

import os

import streamlit as st

WIDGET_LIMIT = 10
FULL_PAGE_LIMIT = 100
WINDOW_DAYS = 7

UNKNOWN_STUDENT_NAME = "Unknown Student"
DEFAULT_POLICY = "average"

DEFAULT_ACTIVITY_COLLECTION = "student_lessons"
DEFAULT_PROFILES_COLLECTION = "user_profile"


def load_ranking_config():
    """Load data source settings from Streamlit secrets or environment variables."""
    config = {
        "ACTIVITY_COLLECTION": None,
        "PROFILES_COLLECTION": None,
        "ACTIVITY_CSV": None,
        "NAMES_CSV": None,
    }

    try:
        ranking = st.secrets["ranking"]
        config["ACTIVITY_COLLECTION"] = ranking.get("activity_collection")
        config["PROFILES_COLLECTION"] = ranking.get("profiles_collection")
        config["ACTIVITY_CSV"] = ranking.get("activity_csv")
        config["NAMES_CSV"] = ranking.get("names_csv")
    except Exception:
        config["ACTIVITY_COLLECTION"] = os.environ.get("RANKING_ACTIVITY_COLLECTION")
        config["PROFILES_COLLECTION"] = os.environ.get("RANKING_PROFILES_COLLECTION")
        config["ACTIVITY_CSV"] = os.environ.get("RANKING_ACTIVITY_CSV")
        config["NAMES_CSV"] = os.environ.get("RANKING_NAMES_CSV")

    # A CSV source replaces Firestore for activity records
    if not config["ACTIVITY_CSV"]:
        config["ACTIVITY_CSV"] = None
        config["ACTIVITY_COLLECTION"] = config["ACTIVITY_COLLECTION"] or DEFAULT_ACTIVITY_COLLECTION
    else:
        config["ACTIVITY_COLLECTION"] = None
    config["PROFILES_COLLECTION"] = config["PROFILES_COLLECTION"] or DEFAULT_PROFILES_COLLECTION
    config["NAMES_CSV"] = config["NAMES_CSV"] or None

    return config
