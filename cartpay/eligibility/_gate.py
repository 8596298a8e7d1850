"""
EligibilityGate — may this checkout proceed?

Pure and synchronous over data that is already fetched. No I/O.

    gate = EligibilityGate(max_distance_m=10_000)

    match gate.check(profile, lines, shipping, voucher):
        case Ok(eligibility):
            ...
        case Error(block):
            show(block.message)
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum, auto

from kungfu import Error, Ok, Result

from cartpay.domain import CartLine, UserProfile, Voucher
from cartpay.shipping import ShippingState


# ═══════════════════════════════════════════════════════════════════════════════
# Line Classification
# ═══════════════════════════════════════════════════════════════════════════════

DISCONTINUED_LABEL = "Discontinued"
OUT_OF_STOCK_LABEL = "Out of Stock"


@dataclass(frozen=True, slots=True)
class BlockedLine:
    """A line that stays in the cart but cannot be bought now."""

    line: CartLine
    label: str


def block_label(line: CartLine) -> str | None:
    if line.is_discontinued:
        return DISCONTINUED_LABEL
    if line.is_out_of_stock:
        return OUT_OF_STOCK_LABEL
    return None


@dataclass(frozen=True, slots=True)
class Eligibility:
    purchasable: tuple[CartLine, ...]
    blocked: tuple[BlockedLine, ...]
    too_far: bool

    @property
    def purchasable_count(self) -> int:
        return len(self.purchasable)


# ═══════════════════════════════════════════════════════════════════════════════
# Blocks — one specific reason per failed precondition
# ═══════════════════════════════════════════════════════════════════════════════


class BlockKind(Enum):
    MISSING_PHONE = auto()
    NO_PURCHASABLE_LINES = auto()
    SHIPPING_NOT_READY = auto()
    TOO_FAR = auto()


MISSING_PHONE_MESSAGE = "Please add a phone number before checkout."
NO_PURCHASABLE_MESSAGE = "Selected items are unavailable. Please modify your cart."
QUOTE_NOT_PREPARED_MESSAGE = "Delivery is not ready. Please wait for quotation to be prepared."
FEE_CALCULATING_MESSAGE = "Calculating shipping fee, please wait a moment."
TOO_FAR_FALLBACK_MESSAGE = "Your address exceeds the maximum allowed distance."


@dataclass(frozen=True, slots=True)
class Block:
    kind: BlockKind
    message: str


def _too_far_message(distance_m: float | None, max_distance_m: float) -> str:
    if not distance_m:
        return TOO_FAR_FALLBACK_MESSAGE
    return (
        f"Your address is too far away ({distance_m / 1000:.1f} km > "
        f"{max_distance_m / 1000:.0f} km). Please select a closer location."
    )


# ═══════════════════════════════════════════════════════════════════════════════
# Gate
# ═══════════════════════════════════════════════════════════════════════════════


@dataclass(frozen=True, slots=True)
class EligibilityGate:
    """
    Checkout preconditions.

    Order is fixed: phone → purchasable lines → shipping ready → distance.
    The first failure wins.
    """

    max_distance_m: float = 10_000

    def evaluate(self, lines: Iterable[CartLine], distance_m: float | None) -> Eligibility:
        purchasable: list[CartLine] = []
        blocked: list[BlockedLine] = []
        for line in lines:
            label = block_label(line)
            if label is None:
                purchasable.append(line)
            else:
                blocked.append(BlockedLine(line=line, label=label))

        return Eligibility(
            purchasable=tuple(purchasable),
            blocked=tuple(blocked),
            too_far=self.is_too_far(distance_m),
        )

    def is_too_far(self, distance_m: float | None) -> bool:
        return distance_m is not None and distance_m > self.max_distance_m

    @staticmethod
    def shipping_ready(shipping: ShippingState, voucher: Voucher | None) -> bool:
        """Quote resolved (or shipping is free) and the route has both ends."""
        free = voucher is not None and voucher.is_free_shipping
        return (
            not shipping.calculating
            and shipping.quotation_id is not None
            and shipping.stop_count >= 2
            and (free or shipping.fee > 0)
        )

    def check(
        self,
        profile: UserProfile | None,
        lines: Iterable[CartLine],
        shipping: ShippingState,
        voucher: Voucher | None,
    ) -> Result[Eligibility, Block]:
        """First failing precondition, or the eligibility it was checked against."""
        eligibility = self.evaluate(lines, shipping.distance_meters)

        if profile is None or not profile.has_phone:
            return Error(Block(BlockKind.MISSING_PHONE, MISSING_PHONE_MESSAGE))

        if not eligibility.purchasable:
            return Error(Block(BlockKind.NO_PURCHASABLE_LINES, NO_PURCHASABLE_MESSAGE))

        if not self.shipping_ready(shipping, voucher):
            prepared = shipping.quotation_id is not None and shipping.stop_count >= 2
            message = FEE_CALCULATING_MESSAGE if prepared else QUOTE_NOT_PREPARED_MESSAGE
            return Error(Block(BlockKind.SHIPPING_NOT_READY, message))

        if eligibility.too_far:
            return Error(
                Block(
                    BlockKind.TOO_FAR,
                    _too_far_message(shipping.distance_meters, self.max_distance_m),
                )
            )

        return Ok(eligibility)


__all__ = (
    "DISCONTINUED_LABEL",
    "OUT_OF_STOCK_LABEL",
    "BlockedLine",
    "block_label",
    "Eligibility",
    "BlockKind",
    "Block",
    "MISSING_PHONE_MESSAGE",
    "NO_PURCHASABLE_MESSAGE",
    "QUOTE_NOT_PREPARED_MESSAGE",
    "FEE_CALCULATING_MESSAGE",
    "TOO_FAR_FALLBACK_MESSAGE",
    "EligibilityGate",
)
