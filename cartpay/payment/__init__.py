"""
Payment — wallet intents, focus-scoped polling, return-URL handling.

    from cartpay import payment as Pay

    scope = Pay.FocusScope("payment")
    orchestrator.watch(intent_id, scope, on_outcome=handle)
    scope.release()
"""

from __future__ import annotations

from cartpay.payment._types import (
    STILL_PENDING_MESSAGE,
    NO_REDIRECT_MESSAGE,
    CANCELED_MESSAGE,
    EXPIRED_MESSAGE,
    PollOutcome,
    PaymentErrorKind,
    PaymentError,
)
from cartpay.payment._scope import FocusScope, ScopeReleasedError
from cartpay.payment._redirect import (
    STATUS_KEYS,
    FLAG_KEYS,
    ReturnKind,
    pick_redirect_target,
    classify_return_url,
)
from cartpay.payment._orchestrator import PaymentIntentOrchestrator, OutcomeCallback

__all__ = (
    # Types
    "STILL_PENDING_MESSAGE",
    "NO_REDIRECT_MESSAGE",
    "CANCELED_MESSAGE",
    "EXPIRED_MESSAGE",
    "PollOutcome",
    "PaymentErrorKind",
    "PaymentError",
    # Scope
    "FocusScope",
    "ScopeReleasedError",
    # Redirect
    "STATUS_KEYS",
    "FLAG_KEYS",
    "ReturnKind",
    "pick_redirect_target",
    "classify_return_url",
    # Orchestrator
    "PaymentIntentOrchestrator",
    "OutcomeCallback",
)
