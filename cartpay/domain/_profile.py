"""
User profile — the parts checkout needs.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Address:
    address_detail: str
    latitude: float
    longitude: float
    label: str = ""
    is_default: bool = False


@dataclass(frozen=True, slots=True)
class UserProfile:
    phone_number: str | None = None
    addresses: tuple[Address, ...] = ()
    is_loyal_customer: bool = False

    @property
    def has_phone(self) -> bool:
        return bool(self.phone_number and self.phone_number.strip())

    @property
    def default_address(self) -> Address | None:
        """The address marked default, else the first one."""
        for address in self.addresses:
            if address.is_default:
                return address
        return self.addresses[0] if self.addresses else None


__all__ = ("Address", "UserProfile")
