"""
Registry Guardian — Webhook Notifier

Outbound sink for consistency alerts, consistency reports, and committed
write events. Delivery is fire-and-forget: a failed delivery is logged and
reported as ``False``, never raised. Retry mechanics belong to the receiving
side.

Payload envelope:
  {"event": "<type>", "data": {...}, "timestamp": "<iso8601>"}
Signed with HMAC-SHA256 over the exact body when a secret is configured,
sent in the ``X-Registry-Signature`` header.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any, Protocol

import httpx
import structlog

from registry_guardian.primitives.common import utc_now

logger = structlog.get_logger()

ALERT_EVENT = "registry.consistency.alert"
REPORT_EVENT = "registry.consistency.report"
SIGNATURE_HEADER = "X-Registry-Signature"


class Notifier(Protocol):
    async def send(self, event: str, data: dict[str, Any]) -> bool: ...


def build_envelope(event: str, data: dict[str, Any]) -> dict[str, Any]:
    return {"event": event, "data": data, "timestamp": utc_now().isoformat()}


def sign_payload(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class LogNotifier:
    """Notifier used when no webhook URL is configured. Logs every event."""

    def __init__(self) -> None:
        self._logger = logger.bind(component="log_notifier")

    async def send(self, event: str, data: dict[str, Any]) -> bool:
        self._logger.info("notification", notification_event=event, keys=sorted(data))
        return True


class WebhookNotifier:
    """POSTs signed JSON envelopes to a single subscriber URL."""

    def __init__(
        self,
        url: str,
        secret: str = "",
        timeout_s: float = 5.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._secret = secret
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_s, connect=min(timeout_s, 5.0)))
        self._log = logger.bind(component="webhook_notifier", url=url)
        self._delivered = 0
        self._failed = 0

    async def send(self, event: str, data: dict[str, Any]) -> bool:
        body = json.dumps(build_envelope(event, data), default=str).encode()
        headers = {"Content-Type": "application/json"}
        if self._secret:
            headers[SIGNATURE_HEADER] = sign_payload(body, self._secret)

        try:
            response = await self._client.post(self._url, content=body, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            self._failed += 1
            self._log.warning("webhook_delivery_failed", webhook_event=event, error=str(exc))
            return False

        self._delivered += 1
        self._log.debug("webhook_delivered", webhook_event=event, status=response.status_code)
        return True

    @property
    def stats(self) -> dict[str, int]:
        return {"delivered": self._delivered, "failed": self._failed}

    async def close(self) -> None:
        await self._client.aclose()
