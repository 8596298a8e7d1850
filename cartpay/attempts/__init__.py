"""
Attempts — single-flight guard for user-triggered operations.

    from cartpay import attempts as A

    guard = A.AttemptGuard()
    result = await guard.run("checkout", place_order)
"""

from __future__ import annotations

from cartpay.attempts._types import AttemptErrorKind, AttemptError
from cartpay.attempts._guard import AttemptGuard, Operation

__all__ = (
    "AttemptErrorKind",
    "AttemptError",
    "AttemptGuard",
    "Operation",
)
