"""Percy REST API client: approves baseline builds.

API: POST https://api.percy.io/v1/builds/<id>/approve
Auth: ``Authorization: Token <PERCY_API_TOKEN>`` (a full-access token, not the
project token used by ``percy exec``).

Approval is a side effect of a comparison run, so ``approve_build`` never
raises: every failure is logged and returned as an ``ApprovalResult``.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from vacu_vrt.models.run import ApprovalResult

logger = logging.getLogger(__name__)

DEFAULT_API_URL = "https://api.percy.io/v1"
DEFAULT_TIMEOUT = 30.0


def _web_url(payload: Any) -> Optional[str]:
    if not isinstance(payload, dict):
        return None
    build = payload.get("build")
    if isinstance(build, dict):
        url = build.get("web-url")
        if isinstance(url, str) and url:
            return url
    # JSON:API responses nest the URL under data.attributes
    data = payload.get("data")
    if isinstance(data, dict):
        url = (data.get("attributes") or {}).get("web-url")
        if isinstance(url, str) and url:
            return url
    return None


class PercyClient:
    """Thin async wrapper around the Percy builds API."""

    def __init__(
        self,
        api_token: Optional[str],
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_token = api_token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Token {self.api_token}",
            "Content-Type": "application/json",
        }

    async def approve_build(self, build_id: str) -> ApprovalResult:
        """Approve all snapshots of a build so it becomes the branch baseline."""
        if not self.api_token:
            logger.warning("PERCY_API_TOKEN not set, skipping approval of build %s", build_id)
            return ApprovalResult(
                build_id=build_id,
                skipped=True,
                error="PERCY_API_TOKEN not set",
            )

        url = f"{self.api_url}/builds/{build_id}/approve"
        logger.debug("POST %s", url)
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport,
            ) as client:
                resp = await client.post(url, headers=self._headers())
        except httpx.TimeoutException:
            logger.warning("Percy approval timed out for build %s (%.1fs)", build_id, self.timeout)
            return ApprovalResult(build_id=build_id, error="Request timed out")
        except httpx.HTTPError as exc:
            logger.warning("Percy approval HTTP error for build %s: %s", build_id, exc)
            return ApprovalResult(build_id=build_id, error=str(exc))

        if not resp.is_success:
            body = resp.text
            logger.warning("Percy approval failed for build %s: %d %s",
                           build_id, resp.status_code, body[:500])
            return ApprovalResult(
                build_id=build_id,
                status_code=resp.status_code,
                error=body or resp.reason_phrase,
            )

        try:
            payload = resp.json()
        except ValueError:
            payload = {}
        web_url = _web_url(payload)
        logger.info("Approved Percy build %s", build_id)
        return ApprovalResult(
            build_id=build_id,
            success=True,
            status_code=resp.status_code,
            web_url=web_url,
        )
