import os
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

# Ensure repository root is on sys.path for module imports
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import config


def test_defaults_to_firestore_collections():
    with patch.object(config, "st", MagicMock(secrets={})), patch.dict(os.environ, {}, clear=True):
        cfg = config.load_ranking_config()

    assert cfg == {
        "ACTIVITY_COLLECTION": "student_lessons",
        "PROFILES_COLLECTION": "user_profile",
        "ACTIVITY_CSV": None,
        "NAMES_CSV": None,
    }


def test_environment_fallback_when_secrets_missing():
    env = {
        "RANKING_ACTIVITY_CSV": "activity.csv",
        "RANKING_NAMES_CSV": "profiles.csv",
        "RANKING_PROFILES_COLLECTION": "profiles",
    }
    with patch.object(config, "st", MagicMock(secrets={})), patch.dict(os.environ, env, clear=True):
        cfg = config.load_ranking_config()

    assert cfg["ACTIVITY_CSV"] == "activity.csv"
    assert cfg["ACTIVITY_COLLECTION"] is None
    assert cfg["NAMES_CSV"] == "profiles.csv"
    assert cfg["PROFILES_COLLECTION"] == "profiles"


def test_secrets_take_precedence():
    secrets = {"ranking": {"activity_collection": "lessons_done"}}
    env = {"RANKING_ACTIVITY_COLLECTION": "ignored"}
    with patch.object(config, "st", MagicMock(secrets=secrets)), patch.dict(os.environ, env, clear=True):
        cfg = config.load_ranking_config()

    assert cfg["ACTIVITY_COLLECTION"] == "lessons_done"
    assert cfg["PROFILES_COLLECTION"] == "user_profile"
