"""
Shared fixtures.

The database URL is fixed before phone_orders is imported: the engine is
created at import time from get_settings().
"""
import os
import tempfile
from pathlib import Path

_DB_DIR = tempfile.mkdtemp(prefix="phone-orders-tests-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{Path(_DB_DIR) / 'orders.db'}"
os.environ["OPENAI_API_KEY"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["MEDIA_STREAM_URL"] = ""
os.environ["STATUS_TRANSITION_POLICY"] = "any"

import asyncio
import json

import pytest
import pytest_asyncio
from starlette.websockets import WebSocketState

from phone_orders.core.config import get_settings
from phone_orders.db.database import AsyncSessionLocal, Base, engine
from phone_orders.db.seed import menu_item_from_record, read_menu_file, seed_menu
from phone_orders.models import menu, order  # noqa: F401  register tables
from phone_orders.services.catalog import MenuCatalog, MenuEntry

settings = get_settings()


class FakeSocket:
    """Minimal display client: records frames, optionally fails or stalls."""

    def __init__(self, fail: bool = False, stall: float = 0.0):
        self.application_state = WebSocketState.CONNECTING
        self.fail = fail
        self.stall = stall
        self.sent: list[str] = []
        self.close_code: int | None = None

    async def accept(self):
        self.application_state = WebSocketState.CONNECTED

    async def send_text(self, text: str):
        if self.stall:
            await asyncio.sleep(self.stall)
        if self.fail:
            raise ConnectionResetError("client went away")
        self.sent.append(text)

    async def close(self, code: int = 1000):
        self.close_code = code
        self.application_state = WebSocketState.DISCONNECTED

    def frames(self) -> list[dict]:
        return [json.loads(t) for t in self.sent]


class RecordingHub:
    """Stands in for BroadcastHub and keeps what would have been pushed."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.new_orders: list[dict] = []
        self.status_updates: list[tuple] = []

    def __len__(self) -> int:
        return 0

    def publish_new_order(self, payload: dict) -> None:
        if self.fail:
            raise RuntimeError("display socket exploded")
        self.new_orders.append(payload)

    def publish_status_update(self, order_number: str, status: str, updated_at: str) -> None:
        self.status_updates.append((order_number, status, updated_at))


async def _reset_database() -> None:
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)
    async with AsyncSessionLocal() as db:
        await seed_menu(db, settings.MENU_SEED_FILE)


@pytest.fixture(scope="session")
def menu_catalog() -> MenuCatalog:
    """Catalog built straight from the seed file, ids in file order."""
    entries = []
    for idx, record in enumerate(read_menu_file(settings.MENU_SEED_FILE), start=1):
        row = menu_item_from_record(record)
        row.id = idx
        entries.append(MenuEntry.from_row(row))
    return MenuCatalog(entries)


@pytest_asyncio.fixture
async def db_ready():
    await _reset_database()
    yield AsyncSessionLocal


@pytest_asyncio.fixture
async def db(db_ready):
    async with db_ready() as session:
        yield session


@pytest.fixture
def fresh_db():
    """Synchronous reset for TestClient-based tests."""
    asyncio.run(_reset_database())
