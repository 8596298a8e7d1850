"""
Cart lines — what the user selected for checkout.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from cartpay._types import Money


# ═══════════════════════════════════════════════════════════════════════════════
# Item Type
# ═══════════════════════════════════════════════════════════════════════════════


class ItemType(Enum):
    FOOD = "Food"
    COMBO = "Combo"


# ═══════════════════════════════════════════════════════════════════════════════
# Availability
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class Availability:
    """
    Stock flags of the underlying item.

    Note: out_of_stock only blocks FOOD items; combos are assembled to order.
    """

    discontinued: bool = False
    out_of_stock: bool = False


# ═══════════════════════════════════════════════════════════════════════════════
# Cart Line
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class CartLine:
    """
    A selected cart line.

    Example:
        line = CartLine(
            line_id="c1",
            item_id="pho-bo",
            item_type=ItemType.FOOD,
            quantity=2,
            unit_price=45_000,
            name="Phở bò",
        )
        line.line_total  # 90_000
    """

    line_id: str
    item_id: str
    item_type: ItemType
    quantity: int
    unit_price: Money
    name: str = ""
    size_ref: str | None = None
    availability: Availability = Availability()

    @property
    def is_discontinued(self) -> bool:
        return self.availability.discontinued

    @property
    def is_out_of_stock(self) -> bool:
        return self.item_type is ItemType.FOOD and self.availability.out_of_stock

    @property
    def selectable(self) -> bool:
        """Whether the line may be purchased at all."""
        return not self.is_discontinued and not self.is_out_of_stock

    @property
    def line_total(self) -> Money:
        return self.unit_price * self.quantity


__all__ = ("ItemType", "Availability", "CartLine")
