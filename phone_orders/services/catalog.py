"""
Phone Orders — Menu catalog

Immutable in-memory view of the menu_items table, loaded once at startup.
Item names from the dialogue agent are free text, so lookups are
case-insensitive substring matches against the catalog name.
"""
import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from phone_orders.models.menu import MenuItem

logger = logging.getLogger(__name__)

SMALL_SIZES = {"pt", "pint", "small", "sm", "s"}
LARGE_SIZES = {"qt", "quart", "large", "lg", "l"}


@dataclass(frozen=True)
class MenuEntry:
    id: int
    name: str
    category: str
    item_code: str | None = None
    is_spicy: bool = False
    included: str | None = None
    price: Decimal | None = None
    price_small: Decimal | None = None
    price_large: Decimal | None = None
    price_table: dict[str, Decimal] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: MenuItem) -> "MenuEntry":
        table = {str(k): Decimal(str(v)) for k, v in (row.price_table or {}).items() if v is not None}
        return cls(
            id=row.id,
            name=row.name,
            category=row.category,
            item_code=row.item_code,
            is_spicy=bool(row.is_spicy),
            included=row.included,
            price=row.price,
            price_small=row.price_small,
            price_large=row.price_large,
            price_table=table,
        )

    @property
    def is_multi_tier(self) -> bool:
        """True when a size is needed to pick a price."""
        return self.price is None and (
            len(self.price_table) > 1
            or (self.price_small is not None and self.price_large is not None)
        )

    def has_price(self) -> bool:
        return any(p is not None for p in (self.price, self.price_small, self.price_large)) or bool(self.price_table)

    def price_for(self, size: str | None) -> Decimal | None:
        """Catalog price for a size token, or None if it cannot be decided."""
        if self.price is not None:
            return self.price

        if size is None:
            if self.price_small is not None and self.price_large is None:
                return self.price_small
            if self.price_large is not None and self.price_small is None:
                return self.price_large
            if len(self.price_table) == 1:
                return next(iter(self.price_table.values()))
            return None

        token = size.strip().casefold()
        if token in SMALL_SIZES and self.price_small is not None:
            return self.price_small
        if token in LARGE_SIZES and self.price_large is not None:
            return self.price_large

        for key, value in self.price_table.items():
            if key.casefold() == token:
                return value
        for key, value in self.price_table.items():
            if token and token in key.casefold():
                return value
        return None

    def price_label(self) -> str:
        if self.price is not None:
            return f"{self.price:.2f}"
        if self.price_small is not None or self.price_large is not None:
            parts = []
            if self.price_small is not None:
                parts.append(f"(Pt) {self.price_small:.2f}")
            if self.price_large is not None:
                parts.append(f"(Qt) {self.price_large:.2f}")
            return " / ".join(parts)
        return " / ".join(f"{k} {v:.2f}" for k, v in self.price_table.items())


class MenuCatalog:
    """Ordered, read-only collection of MenuEntry."""

    def __init__(self, entries: Iterable[MenuEntry]):
        self._entries: tuple[MenuEntry, ...] = tuple(entries)
        self._by_id = {e.id: e for e in self._entries}

    @classmethod
    async def load(cls, db: AsyncSession) -> "MenuCatalog":
        result = await db.execute(select(MenuItem).order_by(MenuItem.id))
        entries = []
        for row in result.scalars().all():
            entry = MenuEntry.from_row(row)
            if not entry.has_price():
                logger.warning("Menu item %s (%s) has no price and is skipped", row.id, row.name)
                continue
            entries.append(entry)
        logger.info("Menu catalog loaded with %d items", len(entries))
        return cls(entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def get(self, menu_item_id: int | None) -> MenuEntry | None:
        if menu_item_id is None:
            return None
        return self._by_id.get(menu_item_id)

    def find_best_match(self, name: str | None) -> MenuEntry | None:
        """
        Resolve a spoken item name to a catalog entry.

        An exact case-insensitive name match wins; otherwise the first entry
        (in catalog order) whose name contains the requested text. No match
        returns None.
        """
        if not name or not name.strip():
            return None
        needle = name.strip().casefold()

        first_partial = None
        for entry in self._entries:
            candidate = entry.name.casefold()
            if candidate == needle:
                return entry
            if first_partial is None and needle in candidate:
                first_partial = entry
        return first_partial

    def render(self) -> str:
        """Plain-text menu grouped by category, in catalog order."""
        lines: list[str] = []
        current = None
        for entry in self._entries:
            if entry.category != current:
                current = entry.category
                lines.append("")
                lines.append(current.upper())
            code = f"{entry.item_code}. " if entry.item_code else ""
            spicy = " (spicy)" if entry.is_spicy else ""
            included = f" [w. {entry.included}]" if entry.included else ""
            lines.append(f"  {code}{entry.name}{spicy}{included} .... {entry.price_label()}")
        return "\n".join(lines).strip()
