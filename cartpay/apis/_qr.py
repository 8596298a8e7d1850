"""
VietQrProvider — static VietQR images for bank-transfer payments.

No network call: the image URL encodes bank, account, amount and memo.

    qr = VietQrProvider.from_settings(settings)
    session = await qr.create(450_000, "Order 42")
    session.qr_url  # https://img.vietqr.io/image/970422-000000000-compact.png?amount=450000&addInfo=Order+42
"""

from __future__ import annotations

import time
from collections.abc import Callable

import httpx

from cartpay._types import Money
from cartpay.config import CheckoutSettings
from cartpay.ports import QrSession

VIETQR_IMAGE_BASE = "https://img.vietqr.io/image"
DEFAULT_MEMO = "Payment"


class VietQrProvider:
    def __init__(
        self,
        bank_bin: str,
        account_no: str,
        *,
        template: str = "compact",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._bank_bin = bank_bin
        self._account_no = account_no
        self._template = template
        self._clock = clock

    @classmethod
    def from_settings(
        cls,
        settings: CheckoutSettings,
        *,
        clock: Callable[[], float] = time.time,
    ) -> VietQrProvider:
        return cls(
            settings.vietqr_bank_bin,
            settings.vietqr_account_no,
            template=settings.vietqr_template,
            clock=clock,
        )

    def image_url(self, amount: Money, description: str) -> str:
        url = httpx.URL(
            f"{VIETQR_IMAGE_BASE}/{self._bank_bin}-{self._account_no}-{self._template}.png",
            params={"amount": amount, "addInfo": description or DEFAULT_MEMO},
        )
        return str(url)

    async def create(self, amount: Money, description: str) -> QrSession:
        session_id = f"vietqr_{int(self._clock() * 1000)}"
        return QrSession(session_id=session_id, qr_url=self.image_url(amount, description))


__all__ = ("VIETQR_IMAGE_BASE", "VietQrProvider")
