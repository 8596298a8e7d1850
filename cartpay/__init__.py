"""
cartpay — checkout orchestration for a food storefront.

    from cartpay import domain as D       # Cart, vouchers, invoices, intents
    from cartpay import pricing as P      # Discounts and totals
    from cartpay import shipping as S     # Delivery quotes, single-flight cache
    from cartpay import eligibility as E  # Checkout preconditions
    from cartpay import payment as Pay    # Wallet intent polling
    from cartpay import checkout as C     # The coordinator
    from cartpay import apis              # HTTP adapters
"""

from cartpay import domain
from cartpay import pricing
from cartpay import shipping
from cartpay import eligibility
from cartpay import attempts
from cartpay import payment
from cartpay import checkout
from cartpay import apis
from cartpay.config import CheckoutSettings
from cartpay._types import (
    Lazy,
    Pure,
    Money,
    LCR,
    NoError,
)

__version__ = "0.1.0"

__all__ = (
    "domain",
    "pricing",
    "shipping",
    "eligibility",
    "attempts",
    "payment",
    "checkout",
    "apis",
    "CheckoutSettings",
    "Lazy",
    "Pure",
    "Money",
    "LCR",
    "NoError",
)
