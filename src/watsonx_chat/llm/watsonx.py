"""watsonx.ai-backed client implementation."""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from watsonx_chat.config import WatsonxSettings
from watsonx_chat.errors import WatsonxError

logger = logging.getLogger(__name__)

_IAM_GRANT_TYPE = "urn:ibm:params:oauth:grant-type:apikey"
# Refresh the IAM token this many seconds before it expires.
_TOKEN_SKEW_S = 60


class WatsonxClient:
    def __init__(
        self,
        *,
        settings: WatsonxSettings | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        resolved = settings or WatsonxSettings.from_env()
        if not resolved.api_key:
            raise ValueError("WATSONX_AI_API_KEY is required for WatsonxClient.")
        self._settings = resolved
        self._client = httpx.AsyncClient(
            base_url=resolved.base_url,
            timeout=resolved.timeout_s,
            transport=transport,
        )
        self._iam_client = httpx.AsyncClient(
            base_url=resolved.iam_url,
            timeout=resolved.timeout_s,
            transport=transport,
        )
        self._token: str | None = None
        self._token_expires_at = 0.0

    async def chat(self, body: dict[str, Any]) -> tuple[dict[str, Any], str | None]:
        token = await self._access_token()
        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        logger.debug("POST /ml/v1/text/chat model_id=%s", body.get("model_id"))
        response = await self._client.post(
            "/ml/v1/text/chat",
            params={"version": self._settings.api_version},
            json=body,
            headers=headers,
        )
        request_id = _extract_request_id(response.headers)
        if response.status_code < 200 or response.status_code >= 300:
            raise WatsonxError(
                status_code=response.status_code,
                response_text=response.text,
                request_id=request_id,
                request=_sanitize_request(body, headers),
            )
        return response.json(), request_id

    async def _access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        response = await self._iam_client.post(
            "/identity/token",
            data={"grant_type": _IAM_GRANT_TYPE, "apikey": self._settings.api_key},
            headers={"Accept": "application/json"},
        )
        if response.status_code < 200 or response.status_code >= 300:
            raise WatsonxError(
                status_code=response.status_code,
                response_text=response.text,
                request_id=_extract_request_id(response.headers),
                request={"endpoint": "/identity/token"},
            )
        data = response.json()
        self._token = data["access_token"]
        expires_in = int(data.get("expires_in", 3600))
        self._token_expires_at = time.monotonic() + max(0, expires_in - _TOKEN_SKEW_S)
        logger.debug("Obtained IAM token valid for %ss", expires_in)
        return self._token

    async def aclose(self) -> None:
        await self._client.aclose()
        await self._iam_client.aclose()

    async def __aenter__(self) -> "WatsonxClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()


def _extract_request_id(headers: httpx.Headers) -> str | None:
    return headers.get("x-request-id") or headers.get("x-global-transaction-id")


def _sanitize_request(body: dict[str, Any], headers: dict[str, str]) -> dict[str, Any]:
    scrubbed_headers = {key: value for key, value in headers.items() if key.lower() != "authorization"}
    return {
        "body": body,
        "headers": scrubbed_headers,
    }
