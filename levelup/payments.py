"""
Mercado Pago integration: checkout preferences and account diagnostics.

Talks to the provider's REST API with httpx; only the documented
request/response contracts of `/checkout/preferences` and `/users/me` are used.
"""

from __future__ import annotations

import json
import logging
import time
from typing import Any, Dict, List, Optional

import httpx

from .core import PreferenceIn

logger = logging.getLogger(__name__)

STATEMENT_DESCRIPTOR = "LEVELUPPC"
PRODUCTION_TOKEN_PREFIX = "APP_USR-"
WHOAMI_FIELDS = ("id", "nickname", "email", "site_id", "default_currency_id", "status")


class PaymentProviderError(Exception):
    def __init__(self, status: int, message: str, details: Any = None) -> None:
        super().__init__(message)
        self.status = status
        self.message = message
        self.details = details


def looks_like_production_token(token: str) -> bool:
    return token.startswith(PRODUCTION_TOKEN_PREFIX)


def mask_token(token: str) -> str:
    if len(token) <= 16:
        return "***"
    return f"{token[:10]}...{token[-6:]}"


def build_line_items(req: PreferenceIn) -> List[Dict[str, Any]]:
    if req.items:
        return [
            {"title": str(it.title or "Item"), "unit_price": float(it.price), "quantity": int(it.quantity)}
            for it in req.items
        ]
    return [{"title": req.title, "unit_price": float(req.price), "quantity": int(req.quantity)}]


def make_external_reference() -> str:
    return f"ORDER-{int(time.time() * 1000)}"


def build_preference_payload(req: PreferenceIn, base_url: str) -> Dict[str, Any]:
    base_url = base_url.rstrip("/")
    payload: Dict[str, Any] = {
        "items": build_line_items(req),
        "statement_descriptor": STATEMENT_DESCRIPTOR,
        "external_reference": make_external_reference(),
        "back_urls": {
            "success": f"{base_url}/success.html",
            "failure": f"{base_url}/failure.html",
            "pending": f"{base_url}/pending.html",
        },
    }
    if req.payer_email:
        payload["payer"] = {"email": req.payer_email}
    return payload


def extract_init_point(result: Any) -> Optional[str]:
    """Read the redirect URL from either a flat or a wrapped (`body`/`response`) result."""
    if not isinstance(result, dict):
        return None
    if result.get("init_point"):
        return result["init_point"]
    for key in ("body", "response"):
        nested = result.get(key)
        if isinstance(nested, dict) and nested.get("init_point"):
            return nested["init_point"]
    return None


def _error_message(data: Any, default: str) -> str:
    if isinstance(data, dict):
        for key in ("message", "error"):
            if data.get(key):
                return str(data[key])
    return default


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (json.JSONDecodeError, ValueError):
        return response.text


class MercadoPagoClient:
    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.mercadopago.com",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers={"Authorization": f"Bearer {self.access_token}"},
            transport=self.transport,
        )

    async def create_preference(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            async with self._client() as client:
                r = await client.post("/checkout/preferences", json=payload)
        except httpx.HTTPError as e:
            raise PaymentProviderError(500, f"Could not reach the payment provider: {e}") from e
        data = _json_or_text(r)
        if r.is_error:
            raise PaymentProviderError(r.status_code, _error_message(data, "Error creating the payment preference"), data)
        return data if isinstance(data, dict) else {"body": data}

    async def whoami(self) -> Dict[str, Any]:
        logger.info("Querying users/me with token %s", mask_token(self.access_token))
        try:
            async with self._client() as client:
                r = await client.get("/users/me")
        except httpx.HTTPError as e:
            raise PaymentProviderError(500, "Failed to query users/me") from e
        data = _json_or_text(r)
        if r.is_error:
            raise PaymentProviderError(r.status_code, _error_message(data, "Error querying users/me"), data)
        if not isinstance(data, dict):
            raise PaymentProviderError(500, "Unexpected users/me response")
        return {k: data.get(k) for k in WHOAMI_FIELDS}
