"""
Phone Orders — Pricing resolver

The dialogue agent quotes its own unit prices (substitutions and add-ons are
worked out in conversation), so the resolver does not reprice from the menu.
It links each line to a catalog entry where it can and makes the line total
an exact product of quantity and unit price.
"""
import logging
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal

from phone_orders.services.catalog import MenuCatalog

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

ADD_ON_DELTAS: dict[str, Decimal] = {
    "Extra Chicken": Decimal("2.00"),
    "Extra Beef": Decimal("3.00"),
    "Extra Vegetable": Decimal("0.00"),
}

FLAG_UNMATCHED = "unmatched"
FLAG_NON_POSITIVE_PRICE = "non_positive_price"
FLAG_SIZE_UNSPECIFIED = "size_unspecified"
FLAG_DIFFERS_FROM_CATALOG = "differs_from_catalog"


def to_money(value) -> Decimal:
    """Quantize any numeric value to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def substitution_price(base: Decimal, substitute: Decimal, original: Decimal) -> Decimal:
    """
    Price of a dish after swapping one included component for another menu item:
    base * (substitute / original).
    """
    if original == 0:
        raise ValueError("original component price must be non-zero")
    return to_money(Decimal(base) * (Decimal(substitute) / Decimal(original)))


@dataclass(frozen=True)
class PricedLine:
    menu_item_id: int | None
    unit_price: Decimal
    line_total: Decimal
    catalog_price: Decimal | None = None
    flags: frozenset[str] = field(default_factory=frozenset)


class PricingResolver:
    def __init__(self, catalog: MenuCatalog):
        self.catalog = catalog

    def price_line(
        self,
        requested_name: str,
        size: str | None,
        quantity: int,
        agent_price,
    ) -> PricedLine:
        flags: set[str] = set()
        unit_price = to_money(agent_price)
        line_total = to_money(unit_price * quantity)

        entry = self.catalog.find_best_match(requested_name)
        catalog_price = None
        if entry is None:
            flags.add(FLAG_UNMATCHED)
            logger.info("No menu match for %r, recording as free text", requested_name)
        else:
            if size is None and entry.is_multi_tier:
                flags.add(FLAG_SIZE_UNSPECIFIED)
                logger.info("Item %r has several sizes but none was given", entry.name)
            catalog_price = entry.price_for(size)
            if catalog_price is not None and catalog_price != unit_price:
                flags.add(FLAG_DIFFERS_FROM_CATALOG)
                logger.debug(
                    "Quoted %s for %r (%s), menu says %s",
                    unit_price, entry.name, size, catalog_price,
                )

        if unit_price <= 0:
            flags.add(FLAG_NON_POSITIVE_PRICE)
            logger.warning("Line %r priced at %s, accepted as complimentary", requested_name, unit_price)

        return PricedLine(
            menu_item_id=entry.id if entry else None,
            unit_price=unit_price,
            line_total=line_total,
            catalog_price=catalog_price,
            flags=frozenset(flags),
        )
