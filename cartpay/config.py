"""
Checkout settings.

Every tunable of the checkout flow lives here: transport, distance cap,
polling cadence, quote cache sizing, pickup point and QR parameters.

    from cartpay.config import CheckoutSettings

    settings = CheckoutSettings()                      # env / .env
    settings = CheckoutSettings(poll_interval_s=0.0)   # tests
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from cartpay.domain import Stop


class CheckoutSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="CARTPAY_",
        env_file=".env",
        env_ignore_empty=True,
        extra="ignore",
        populate_by_name=True,
    )

    # --- API ---
    api_base_url: str = Field(
        default="http://localhost:3000/api",
        validation_alias=AliasChoices("CARTPAY_API_BASE_URL", "API_BASE_URL"),
    )
    api_timeout_s: float = Field(default=15.0, gt=0)

    # --- Eligibility ---
    max_distance_m: float = Field(default=10_000, gt=0)

    # --- Wallet polling ---
    poll_interval_s: float = Field(default=2.0, ge=0)
    poll_max_attempts: int = Field(default=60, ge=1)
    payment_description: str = "Single payment item"

    # --- Shipping quotes ---
    quote_cache_size: int = Field(default=32, ge=1)
    # Quotes carry an expiry; stale ones are re-fetched instead of reused.
    honor_quote_expiry: bool = True
    pickup_lat: str = "21.035093"
    pickup_lng: str = "105.747132"
    pickup_address: str = (
        "Trường Cao đẳng FPT Polytechnic, Trịnh Văn Bô, Nam Từ Liêm, Hà Nội"
    )

    # --- VietQR ---
    vietqr_bank_bin: str = "970422"
    vietqr_account_no: str = "000000000"
    vietqr_template: str = "compact"

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/")

    @property
    def pickup_stop(self) -> Stop:
        return Stop(
            stop_id=None,
            lat=self.pickup_lat,
            lng=self.pickup_lng,
            address=self.pickup_address,
        )


__all__ = ("CheckoutSettings",)
