"""
VoucherApi — voucher listing and server-side validation.
"""

from __future__ import annotations

from cartpay._types import Money
from cartpay.apis._client import ApiClient
from cartpay.apis._wire import WireVoucher, parse
from cartpay.domain import Voucher
from cartpay.ports import VoucherCheck


class VoucherApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def validate(
        self, voucher_id: str, order_amount: Money, *, validate_only: bool = True
    ) -> VoucherCheck:
        """
        Ask the server whether the voucher applies to this amount.

        Note: a rejection is a normal envelope with success=false, not an error.
        """
        envelope = await self._client.post(
            "/vouchers/apply",
            json={
                "idVoucher": voucher_id,
                "totalOrderAmount": order_amount,
                "validateOnly": validate_only,
            },
        )
        return VoucherCheck(success=envelope.success, message=envelope.message)

    async def list_vouchers(self) -> list[Voucher]:
        envelope = await self._client.get("/vouchers")
        return [parse(WireVoucher, item).to_domain() for item in envelope.require() or []]


__all__ = ("VoucherApi",)
