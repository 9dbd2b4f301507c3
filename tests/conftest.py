import os

# Must be set before app.config builds its settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

import pytest
import pytest_asyncio

from app.core.errors import WriteError
from app.core.record_store import RecordStore
from app.database import build_engine, build_session_factory
from app.init_db import create_all

USERS = [
    {"id": "alice", "display_name": "Alice Rao", "email": "alice@example.com", "phone": "+91 90000 00001"},
    {"id": "bob", "display_name": "Bob Sen", "email": "bob@example.com", "phone": "+91 90000 00002"},
    {"id": "carol", "display_name": "Carol Das", "email": "carol@example.com", "phone": "+91 90000 00003"},
]


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'sos.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def store(engine):
    return RecordStore(build_session_factory(engine))


@pytest_asyncio.fixture
async def seeded_store(store):
    """Three registered users, each with a profile keyed by their user id."""
    for user in USERS:
        await store.create("users", user)
        await store.create("profiles", {
            "id": user["id"],
            "user_id": user["id"],
            "full_name": user["display_name"],
            "email": user["email"],
            "phone": user["phone"],
        })
    return store


class RejectingStore(RecordStore):
    """Store that refuses writes to the given tables, or inserts owned by the given users, as a row-level policy would."""

    def __init__(self, session_factory, rejected_tables, rejected_users=()):
        super().__init__(session_factory)
        self.rejected_tables = set(rejected_tables)
        self.rejected_users = set(rejected_users)

    async def create_many(self, table, rows):
        rows = list(rows)
        if table in self.rejected_tables or any(row.get("user_id") in self.rejected_users for row in rows):
            raise WriteError(f"Could not save to {table}")
        return await super().create_many(table, rows)

    async def _update(self, table, filter, patch):
        if table in self.rejected_tables:
            raise WriteError(f"Could not update {table}")
        return await super()._update(table, filter, patch)


@pytest.fixture
def rejecting_store(engine):
    def _make(*tables, users=()):
        return RejectingStore(build_session_factory(engine), tables, users)
    return _make
