import asyncio
import copy
import itertools
from collections import defaultdict

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from padel_ladder.main import app
from padel_ladder.store import Store, StoreError, UniqueViolation, get_store

UNIQUE_KEYS = {
    "players": [("name",), ("email",)],
    "elo_changes": [("match_id", "player_id")],
}


def _key(row, columns):
    return tuple(str(row.get(c)).lower() for c in columns)


class MemoryStore(Store):
    """In-process stand-in for the remote store.

    ``fail(table, op)`` makes calls raise ``StoreError``; ``delay`` makes them
    slow; ``on_update`` runs a hook right before each update is applied.
    """

    def __init__(self):
        self.tables = defaultdict(list)
        self._ids = defaultdict(lambda: itertools.count(1))
        self._failures = {}
        self._delays = {}
        self.on_update = None
        self.calls = []

    def fail(self, table, op, times=None):
        self._failures[(table, op)] = times

    def delay(self, table, op, seconds):
        self._delays[(table, op)] = seconds

    def seed(self, table, **row):
        row.setdefault("id", next(self._ids[table]))
        self.tables[table].append(row)
        return copy.deepcopy(row)

    def seed_player(self, name, rating=1000, matches=0, wins=0, email=None):
        return self.seed(
            "players",
            name=name,
            email=email or f"{name.lower()}@example.com",
            rating=rating,
            matches=matches,
            wins=wins,
        )

    def row(self, table, id):
        return next(r for r in self.tables[table] if r["id"] == id)

    async def _enter(self, table, op):
        self.calls.append((table, op))
        await asyncio.sleep(self._delays.get((table, op), 0))
        if (table, op) in self._failures:
            remaining = self._failures[(table, op)]
            if remaining is None or remaining > 0:
                if remaining is not None:
                    self._failures[(table, op)] = remaining - 1
                raise StoreError(f"injected {op} failure on {table}", code="XX000", details="boom")

    async def select(self, table, where=None, order_by=None, descending=False):
        await self._enter(table, "select")
        rows = [r for r in self.tables[table] if all(f.matches(r) for f in where or ())]
        if order_by:
            rows = sorted(rows, key=lambda r: r[order_by], reverse=descending)
        return copy.deepcopy(rows)

    async def insert(self, table, rows):
        await self._enter(table, "insert")
        for columns in UNIQUE_KEYS.get(table, []):
            taken = {_key(r, columns) for r in self.tables[table]}
            for row in rows:
                if _key(row, columns) in taken:
                    raise UniqueViolation(f"duplicate key on {table}{columns}")
                taken.add(_key(row, columns))
        stored = []
        for row in rows:
            row = dict(row, id=next(self._ids[table]))
            self.tables[table].append(row)
            stored.append(copy.deepcopy(row))
        return stored

    async def update(self, table, values, where):
        await self._enter(table, "update")
        if self.on_update:
            self.on_update(table, values, where)
        updated = []
        for row in self.tables[table]:
            if all(f.matches(row) for f in where):
                row.update(values)
                updated.append(copy.deepcopy(row))
        return updated


@pytest.fixture
def store():
    return MemoryStore()


@pytest_asyncio.fixture
async def client(store):
    app.dependency_overrides[get_store] = lambda: store
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
