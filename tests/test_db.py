"""Tests for the Supabase-backed store, using an in-memory client."""

import json

import pytest

import db
from calc import CalendarConfig


class TestConfig:
    def test_default_created_when_missing(self, fake_supabase, monkeypatch):
        monkeypatch.delenv("DEFAULT_COUNTRY", raising=False)
        config = db.get_config("u1")
        assert config == CalendarConfig(hours_per_day=8, work_days=[1, 2, 3, 4, 5], country="INDIA")
        rows = fake_supabase.tables["calendar_config"]
        assert rows == [{"user_id": "u1", "hours_per_day": 8, "work_days_json": "[1, 2, 3, 4, 5]", "country": "INDIA"}]

    def test_stored_config_is_read(self, fake_supabase):
        fake_supabase.tables["calendar_config"] = [
            {"user_id": "u1", "hours_per_day": 7.5, "work_days_json": json.dumps([0, 1, 2, 3, 4]), "country": "Israel"},
        ]
        config = db.get_config("u1")
        assert config.hours_per_day == 7.5
        assert config.work_days == [0, 1, 2, 3, 4]
        assert config.country == "Israel"

    def test_upsert_inserts_then_updates(self, fake_supabase):
        db.upsert_config("u1", CalendarConfig(hours_per_day=6))
        db.upsert_config("u1", CalendarConfig(hours_per_day=9, work_days=[1, 2, 3]))
        rows = fake_supabase.tables["calendar_config"]
        assert len(rows) == 1
        assert rows[0]["hours_per_day"] == 9
        assert json.loads(rows[0]["work_days_json"]) == [1, 2, 3]

    def test_error_falls_back_to_default(self, monkeypatch):
        class BrokenClient:
            def table(self, name):
                raise ConnectionError("down")

        monkeypatch.setattr(db, "get_supabase_client", lambda: BrokenClient())
        assert db.get_config("u1").work_days == [1, 2, 3, 4, 5]


class TestOverrides:
    def test_get_overrides_splits_maps(self, fake_supabase):
        fake_supabase.tables["day_overrides"] = [
            {"user_id": "u1", "date": "2024-02-14", "holiday_name": "Founders Day", "note": None},
            {"user_id": "u1", "date": "2024-02-05T00:00:00", "holiday_name": None, "note": "Planning"},
            {"user_id": "u1", "date": "garbage", "holiday_name": "Bad", "note": None},
            {"user_id": "u1", "date": "2024-W07-3", "holiday_name": "Week date", "note": None},
            {"user_id": "u2", "date": "2024-02-20", "holiday_name": "Other user", "note": None},
        ]
        holidays, notes = db.get_overrides("u1")
        assert holidays == {"2024-02-14": "Founders Day"}
        assert notes == {"2024-02-05": "Planning"}

    def test_save_day_lifecycle(self, fake_supabase):
        db.save_day("u1", "2024-02-14", "Founders Day", None)
        db.save_day("u1", "2024-02-14", "Founders Day", "cake")
        rows = fake_supabase.tables["day_overrides"]
        assert rows == [{"user_id": "u1", "date": "2024-02-14", "holiday_name": "Founders Day", "note": "cake"}]

        db.save_day("u1", "2024-02-14", None, None)
        assert fake_supabase.tables["day_overrides"] == []

    def test_save_overrides_writes_only_changes(self, fake_supabase, monkeypatch):
        written = []
        monkeypatch.setattr(db, "save_day", lambda *args: written.append(args))
        old = ({"2024-02-14": "A", "2024-02-15": "B"}, {"2024-02-05": "n"})
        new = ({"2024-02-14": "A", "2024-02-19": "C"}, {"2024-02-05": "n2"})
        assert db.save_overrides("u1", old, new) == 3
        assert written == [
            ("u1", "2024-02-05", None, "n2"),
            ("u1", "2024-02-15", None, None),
            ("u1", "2024-02-19", "C", None),
        ]

    def test_clear_overrides_only_for_user(self, fake_supabase):
        fake_supabase.tables["day_overrides"] = [
            {"user_id": "u1", "date": "2024-02-14", "holiday_name": "A", "note": None},
            {"user_id": "u2", "date": "2024-02-14", "holiday_name": "B", "note": None},
        ]
        db.clear_overrides("u1")
        assert [r["user_id"] for r in fake_supabase.tables["day_overrides"]] == ["u2"]


class TestSecrets:
    def test_env_fallback(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_USER_ID", "alex")
        assert db.get_current_user_id() == "alex"

    def test_missing_supabase_credentials(self, monkeypatch):
        monkeypatch.delenv("SUPABASE_URL", raising=False)
        monkeypatch.delenv("SUPABASE_SERVICE_KEY", raising=False)
        with pytest.raises(RuntimeError):
            db.get_supabase_client()
