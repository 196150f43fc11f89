"""Shared fixtures for the test suite."""

from datetime import date
from types import SimpleNamespace

import pytest

import db
from calc import CalendarConfig


class FakeQuery:
    """In-memory stand-in for a supabase table query builder."""

    def __init__(self, rows):
        self.rows = rows
        self.op = "select"
        self.payload = None
        self.filters = []

    def select(self, *_args):
        self.op = "select"
        return self

    def update(self, fields):
        self.op, self.payload = "update", fields
        return self

    def insert(self, fields):
        self.op, self.payload = "insert", fields
        return self

    def delete(self):
        self.op = "delete"
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def execute(self):
        matched = [r for r in self.rows if all(r.get(c) == v for c, v in self.filters)]
        if self.op == "select":
            return SimpleNamespace(data=[dict(r) for r in matched])
        if self.op == "update":
            for r in matched:
                r.update(self.payload)
            return SimpleNamespace(data=matched)
        if self.op == "insert":
            new = self.payload if isinstance(self.payload, list) else [self.payload]
            self.rows.extend(dict(r) for r in new)
            return SimpleNamespace(data=new)
        for r in matched:
            self.rows.remove(r)
        return SimpleNamespace(data=matched)


class FakeSupabase:
    def __init__(self):
        self.tables = {}

    def table(self, name):
        return FakeQuery(self.tables.setdefault(name, []))


@pytest.fixture
def fake_supabase(monkeypatch):
    client = FakeSupabase()
    monkeypatch.setattr(db, "get_supabase_client", lambda: client)
    return client


@pytest.fixture
def config():
    """Mon-Fri, 8 hours, INDIA."""
    return CalendarConfig(hours_per_day=8, work_days=[1, 2, 3, 4, 5], country="INDIA")


@pytest.fixture
def mid_feb():
    return date(2024, 2, 15)
