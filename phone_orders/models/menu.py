"""
Phone Orders — Menu DB model

[CONFIG DATA] — seeded once, read-only while the service runs.
"""
from decimal import Decimal
from sqlalchemy import JSON, Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column
from phone_orders.db.database import Base


class MenuItem(Base):
    """
    One sellable item. Exactly one of the price shapes is normally filled:
    a single price, a (small, large) pair, or a size-keyed price table.
    """
    __tablename__ = "menu_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    item_code: Mapped[str | None] = mapped_column(String(16), nullable=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, default="Other")
    included: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_spicy: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    price_small: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    price_large: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    price_table: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    def __repr__(self) -> str:
        return f"<MenuItem {self.item_code} {self.name!r}>"
