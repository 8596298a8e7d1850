"""
Attempt types.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class AttemptErrorKind(Enum):
    IN_PROGRESS = auto()  # same key already running
    EXECUTION = auto()  # the operation returned Error


@dataclass(frozen=True, slots=True)
class AttemptError[E]:
    """original_error is the operation's own error (EXECUTION only)."""

    kind: AttemptErrorKind
    message: str
    key: str
    original_error: E | None = None


__all__ = ("AttemptErrorKind", "AttemptError")
