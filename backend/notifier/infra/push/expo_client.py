"""Expo push gateway client."""
import logging
import re
from typing import Any, Optional, Sequence

import httpx

from notifier.domain.notifications.models import PushMessage, PushReceipt, PushTicket
from notifier.settings import settings

logger = logging.getLogger(__name__)

_BRACKETED_TOKEN = re.compile(r"^(ExponentPushToken|ExpoPushToken)\[.+\]$")
_UUID_TOKEN = re.compile(r"^[a-z\d]{8}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{4}-[a-z\d]{12}$", re.IGNORECASE)


class PushGatewayError(Exception):
    """Transport failure or a request-level error from the push gateway."""

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[list] = None):
        self.message = message
        self.status_code = status_code
        self.errors = errors or []
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "status_code": self.status_code, "errors": self.errors}


def is_expo_push_token(token: Any) -> bool:
    """Expo token format: ExponentPushToken[...] / ExpoPushToken[...] or a bare UUID."""
    if not isinstance(token, str):
        return False
    return bool(_BRACKETED_TOKEN.match(token) or _UUID_TOKEN.match(token))


def _chunk(items: Sequence, size: int) -> list[list]:
    if size <= 0:
        raise ValueError("chunk size must be positive")
    return [list(items[i:i + size]) for i in range(0, len(items), size)]


class ExpoPushClient:
    """Client for the Expo push API (send + getReceipts)."""

    def __init__(
        self,
        push_url: Optional[str] = None,
        receipts_url: Optional[str] = None,
        access_token: Optional[str] = None,
        timeout: Optional[float] = None,
        send_chunk_size: Optional[int] = None,
        receipt_chunk_size: Optional[int] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.push_url = push_url or settings.expo_push_url
        self.receipts_url = receipts_url or settings.expo_receipts_url
        self.access_token = access_token if access_token is not None else settings.expo_access_token
        self.timeout = timeout or settings.push_request_timeout_seconds
        self.send_chunk_size = send_chunk_size or settings.push_send_chunk_size
        self.receipt_chunk_size = receipt_chunk_size or settings.push_receipt_chunk_size
        self._http_client = http_client

    def _headers(self) -> dict[str, str]:
        headers = {
            "accept": "application/json",
            "accept-encoding": "gzip, deflate",
            "content-type": "application/json",
        }
        if self.access_token:
            headers["authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _post(self, url: str, payload: Any) -> dict[str, Any]:
        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, json=payload, headers=self._headers())
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, json=payload, headers=self._headers())
        except httpx.HTTPError as e:
            logger.error("Push gateway request to %s failed: %s", url, e)
            raise PushGatewayError(f"Push gateway request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if response.status_code >= 400:
            raise PushGatewayError(
                f"Push gateway returned HTTP {response.status_code}",
                status_code=response.status_code,
                errors=body.get("errors") if isinstance(body, dict) else None,
            )
        if not isinstance(body, dict):
            raise PushGatewayError("Push gateway returned a non-object body", status_code=response.status_code)
        if body.get("errors") and body.get("data") is None:
            raise PushGatewayError(
                "Push gateway rejected the request",
                status_code=response.status_code,
                errors=body["errors"],
            )
        return body

    def is_valid_token(self, token: str) -> bool:
        return is_expo_push_token(token)

    def chunk_messages(self, messages: Sequence[PushMessage]) -> list[list[PushMessage]]:
        """Split messages into request-sized chunks."""
        return _chunk(messages, self.send_chunk_size)

    def chunk_receipt_ids(self, receipt_ids: Sequence[str]) -> list[list[str]]:
        return _chunk(receipt_ids, self.receipt_chunk_size)

    async def send_chunk(self, chunk: Sequence[PushMessage]) -> list[PushTicket]:
        """
        Send one chunk. Returns one ticket per message, in message order.

        Raises:
            PushGatewayError: transport failure, HTTP error, or a ticket count that
                does not match the chunk.
        """
        body = await self._post(self.push_url, [m.to_gateway() for m in chunk])
        data = body.get("data")
        if not isinstance(data, list) or len(data) != len(chunk):
            raise PushGatewayError(
                f"Expected {len(chunk)} push tickets, got "
                f"{len(data) if isinstance(data, list) else type(data).__name__}",
                errors=body.get("errors"),
            )
        tickets = [PushTicket.model_validate(t) for t in data]
        logger.info(
            "Sent %d push messages (%d errors)",
            len(chunk),
            sum(1 for t in tickets if t.is_error),
        )
        return tickets

    async def get_receipts(self, receipt_ids: Sequence[str]) -> dict[str, PushReceipt]:
        """Fetch receipts for up to receipt_chunk_size ids. Ids not yet ready are absent."""
        body = await self._post(self.receipts_url, {"ids": list(receipt_ids)})
        data = body.get("data") or {}
        if not isinstance(data, dict):
            raise PushGatewayError("Push gateway returned malformed receipts")
        return {rid: PushReceipt.model_validate(r) for rid, r in data.items()}

    async def ping(self) -> bool:
        """Reachability check for readiness: an empty receipts query."""
        await self._post(self.receipts_url, {"ids": []})
        return True
