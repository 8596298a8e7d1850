"""
ProfileApi — the signed-in user's profile.
"""

from __future__ import annotations

from cartpay.apis._client import ApiClient
from cartpay.apis._wire import WireProfile, parse
from cartpay.domain import UserProfile


class ProfileApi:
    def __init__(self, client: ApiClient) -> None:
        self._client = client

    async def get_profile(self) -> UserProfile:
        envelope = await self._client.get("/users/profile")
        return parse(WireProfile, envelope.require()).to_domain()


__all__ = ("ProfileApi",)
