"""
ApiClient — the storefront backend over httpx.

Every endpoint answers with an envelope: {"success", "message", "data", ...}.
Failures are raised as ApiError carrying the server's own message.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict

from cartpay.config import CheckoutSettings

logger = logging.getLogger(__name__)

NO_RESPONSE_MESSAGE = "No response from server. Check your network."
GENERIC_MESSAGE = "Something went wrong."

type TokenProvider = Callable[[], str | None]


class ApiError(Exception):
    """A failed backend call. str(error) is safe to show to the user."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        payload: Any = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload

    def __str__(self) -> str:
        return self.message


def error_message(payload: Any) -> str | None:
    """
    Server message from an error body.

    Precedence: message → error → errors[].msg|message (joined) → plain-text body.
    """
    if isinstance(payload, dict):
        for key in ("message", "error"):
            value = payload.get(key)
            if isinstance(value, str) and value:
                return value
        errors = payload.get("errors")
        if isinstance(errors, list) and errors:
            parts = []
            for item in errors:
                if isinstance(item, dict):
                    parts.append(str(item.get("msg") or item.get("message") or item))
                else:
                    parts.append(str(item))
            return ", ".join(parts)
        return None
    if isinstance(payload, str) and payload.strip():
        return payload.strip()
    return None


class Envelope(BaseModel):
    """Response envelope. Extra top-level keys (e.g. cancelPolicy) are kept."""

    model_config = ConfigDict(extra="allow")

    success: bool = True
    message: str | None = None
    data: Any = None

    def extra(self, key: str) -> Any:
        return (self.model_extra or {}).get(key)

    def require(self) -> Any:
        """data of a successful envelope; raises ApiError otherwise."""
        if not self.success:
            raise ApiError(self.message or GENERIC_MESSAGE, payload=self.model_dump())
        return self.data


def _body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class ApiClient:
    """
    Async client for the storefront backend.

    Example:
        async with ApiClient.from_settings(settings, token_provider=session.token) as client:
            envelope = await client.get("/vouchers")
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 15.0,
        token_provider: TokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token_provider = token_provider
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_settings(
        cls,
        settings: CheckoutSettings,
        *,
        token_provider: TokenProvider | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> ApiClient:
        return cls(
            settings.api_base_url,
            timeout=settings.api_timeout_s,
            token_provider=token_provider,
            transport=transport,
        )

    def _headers(self) -> dict[str, str]:
        token = self._token_provider() if self._token_provider else None
        return {"Authorization": f"Bearer {token}"} if token else {}

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Envelope:
        try:
            response = await self._http.request(
                method,
                path,
                json=json,
                params=params,
                headers=self._headers(),
            )
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(NO_RESPONSE_MESSAGE) from exc

        payload = _body(response)
        if response.is_error:
            message = error_message(payload) or response.reason_phrase or GENERIC_MESSAGE
            logger.warning("%s %s → %d: %s", method, path, response.status_code, message)
            raise ApiError(message, status_code=response.status_code, payload=payload)

        logger.debug("%s %s → %d", method, path, response.status_code)
        if isinstance(payload, dict) and ("data" in payload or "success" in payload):
            return Envelope.model_validate(payload)
        return Envelope(data=payload)

    async def get(self, path: str, *, params: dict[str, Any] | None = None) -> Envelope:
        return await self.request("GET", path, params=params)

    async def post(self, path: str, *, json: Any = None) -> Envelope:
        return await self.request("POST", path, json=json)

    async def patch(self, path: str, *, json: Any = None) -> Envelope:
        return await self.request("PATCH", path, json=json)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> ApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()


__all__ = (
    "NO_RESPONSE_MESSAGE",
    "GENERIC_MESSAGE",
    "TokenProvider",
    "ApiError",
    "error_message",
    "Envelope",
    "ApiClient",
)
