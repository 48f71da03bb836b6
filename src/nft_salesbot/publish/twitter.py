"""X/Twitter API v2 publisher (OAuth 1.0a user context)."""

from __future__ import annotations

import json
import logging

import httpx
from oauthlib.oauth1 import Client as OAuth1Client

from nft_salesbot.models.records import FailureKind, PublishResult

log = logging.getLogger(__name__)


def classify_response(status_code: int, body: str = "") -> PublishResult:
    """Map an HTTP response from POST /2/tweets to a PublishResult.

    2xx is success, 429 is a rate limit, 408 and 5xx are transient, and
    every other 4xx (401/403 auth and permission errors included) is
    permanent.
    """
    if 200 <= status_code < 300:
        post_id = None
        try:
            data = json.loads(body or "{}")
        except ValueError:
            data = {}
        if isinstance(data, dict) and isinstance(data.get("data"), dict):
            post_id = data["data"].get("id")
        return PublishResult(success=True, post_id=post_id, status_code=status_code)

    error = (body or "")[:300] or f"HTTP {status_code}"
    if status_code == 429:
        kind = FailureKind.RATE_LIMITED
    elif status_code == 408 or status_code >= 500:
        kind = FailureKind.TRANSIENT
    else:
        kind = FailureKind.PERMANENT
    return PublishResult(success=False, failure=kind, error=error, status_code=status_code)


class TwitterPublisher:
    """Posts text through `POST /2/tweets`, signed with OAuth 1.0a."""

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        access_token: str,
        access_secret: str,
        base_url: str = "https://api.twitter.com",
        timeout: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._oauth = OAuth1Client(
            consumer_key,
            client_secret=consumer_secret,
            resource_owner_key=access_token,
            resource_owner_secret=access_secret,
        )
        self._url = base_url.rstrip("/") + "/2/tweets"
        self._timeout = timeout
        self._transport = transport

    def _signed_headers(self) -> dict[str, str]:
        # JSON bodies are not part of the OAuth 1.0a signature base string
        _, headers, _ = self._oauth.sign(
            self._url, http_method="POST", headers={"Content-Type": "application/json"},
        )
        return dict(headers)

    async def publish(self, text: str) -> PublishResult:
        payload = json.dumps({"text": text})
        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self._timeout, connect=10),
                transport=self._transport,
            ) as client:
                resp = await client.post(self._url, content=payload, headers=self._signed_headers())
        except httpx.HTTPError as exc:
            log.warning("Publish request failed: %s", exc)
            return PublishResult(success=False, failure=FailureKind.TRANSIENT, error=str(exc))

        result = classify_response(resp.status_code, resp.text)
        if not result.success:
            log.warning("Publish failed [%d] (%s): %s",
                        resp.status_code, result.failure.value, result.error)
        return result
