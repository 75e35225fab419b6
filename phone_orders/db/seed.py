"""
Phone Orders — Menu seeding

Loads data/menu.json into menu_items when the table is empty. Existing rows
are never touched, so a hand-edited menu survives restarts.
"""
import json
import logging
from decimal import Decimal
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from phone_orders.models.menu import MenuItem

logger = logging.getLogger(__name__)


def _money(value) -> Decimal | None:
    if value is None:
        return None
    return Decimal(str(value))


def read_menu_file(path: Path) -> list[dict]:
    with open(path, encoding="utf-8") as fh:
        records = json.load(fh)
    if not isinstance(records, list):
        raise ValueError(f"Menu file {path} must contain a JSON array")
    return records


def menu_item_from_record(record: dict) -> MenuItem:
    table = record.get("price_table")
    return MenuItem(
        item_code=record.get("item_code"),
        name=record["name"],
        description=record.get("description"),
        category=record.get("category") or "Other",
        included=record.get("included"),
        is_spicy=bool(record.get("is_spicy", False)),
        price=_money(record.get("price")),
        price_small=_money(record.get("price_small")),
        price_large=_money(record.get("price_large")),
        # JSON column: keep plain floats
        price_table={k: float(v) for k, v in table.items()} if table else None,
    )


async def seed_menu(db: AsyncSession, path: Path) -> int:
    """Insert the menu file in file order. Returns the number of rows added."""
    existing = (await db.execute(select(func.count()).select_from(MenuItem))).scalar_one()
    if existing:
        logger.info("Menu already seeded (%d items), skipping", existing)
        return 0

    records = read_menu_file(path)
    db.add_all(menu_item_from_record(r) for r in records)
    await db.commit()
    logger.info("Seeded %d menu items from %s", len(records), path)
    return len(records)
