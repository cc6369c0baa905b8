"""Image-provider clients.

Processing flow (`FalAIClient.generate`):
    1. Build the JSON payload from the request (`service.build_provider_payload`).
    2. POST it to the provider endpoint with the configured API key.
    3. Read the first image reference from the response body.
    4. Download the referenced image and return its bytes.

Attempt semantics:
    One `generate` call is exactly one attempt. Failures are raised as
    `ProviderError` subclasses (or `ImageProcessingFailed` when a successful
    response holds no image) and are retried by `voicesketch.image.retry`.

Error handling strategy:
    - Timeouts -> `ProviderNetworkError(timed_out=True)`
    - Other transport failures -> `ProviderNetworkError`
    - Non-2xx status -> `ProviderHTTPError(status_code)`
    - Undecodable body -> `MalformedProviderResponse`

Security considerations:
    The API key is sent only in the `Authorization` header and never logged.
"""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Any, Protocol

import httpx

from voicesketch.core.errors import (
    APIError,
    ImageProcessingFailed,
    MalformedProviderResponse,
    ProviderHTTPError,
    ProviderNetworkError,
)
from voicesketch.core.models import AIProvider, GenerationRequest, ImageQuality
from voicesketch.image import provider_config
from voicesketch.image.service import build_provider_payload


logger = logging.getLogger(__name__)


class GenerationClient(Protocol):
    """Minimal async interface the orchestration engine needs from a provider."""

    async def generate(self, request: GenerationRequest) -> bytes:
        """Run one generation attempt and return image bytes."""
        ...

    async def is_available(self) -> bool:
        """Return whether the provider can currently be called."""
        ...

    def estimated_cost(self, quality: ImageQuality) -> Decimal:
        """Return the estimated price of one generation at `quality`."""
        ...


class FalAIClient:
    """fal.ai fast LCM diffusion client over `httpx.AsyncClient`."""

    def __init__(
        self,
        api_key: str | None,
        endpoint: str | None = None,
        timeout_seconds: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key or ""
        self.endpoint = endpoint or provider_config.IMAGE_PROVIDERS[AIProvider.FAL_AI]["url"]
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def is_available(self) -> bool:
        return bool(self.api_key)

    def estimated_cost(self, quality: ImageQuality) -> Decimal:
        return provider_config.estimated_cost(AIProvider.FAL_AI, quality)

    async def generate(self, request: GenerationRequest) -> bytes:
        if not self.api_key:
            raise APIError(detail="fal.ai API key not configured")

        payload = build_provider_payload(request)
        headers = {
            "Authorization": f"Key {self.api_key}",
            "Content-Type": "application/json",
        }

        logger.info("Submitting fal.ai generation (quality=%s)", request.quality.value)

        async with httpx.AsyncClient(
            timeout=self.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await self._send(client, "POST", self.endpoint, json=payload, headers=headers)
            image_url = self._first_image_url(self._decode_json(response))
            image_response = await self._send(client, "GET", image_url)

        return image_response.content

    async def _send(self, client: httpx.AsyncClient, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as exc:
            raise ProviderNetworkError(f"Request timed out: {url}", timed_out=True) from exc
        except httpx.RequestError as exc:
            raise ProviderNetworkError(f"Request failed: {exc}") from exc

        if not 200 <= response.status_code < 300:
            raise ProviderHTTPError(response.status_code, response.text)
        return response

    @staticmethod
    def _decode_json(response: httpx.Response) -> dict[str, Any]:
        try:
            data = response.json()
        except ValueError as exc:
            raise MalformedProviderResponse("Provider returned a non-JSON body") from exc
        if not isinstance(data, dict):
            raise MalformedProviderResponse("Provider returned an unexpected JSON shape")
        return data

    @staticmethod
    def _first_image_url(data: dict[str, Any]) -> str:
        images = data.get("images") or []
        if images and isinstance(images[0], dict):
            url = images[0].get("url")
            if isinstance(url, str) and url:
                return url
        raise ImageProcessingFailed("Provider response contained no image reference")


class UnsupportedClient:
    """Placeholder for providers without a client implementation or credential."""

    def __init__(self, provider: AIProvider) -> None:
        self.provider = provider

    async def is_available(self) -> bool:
        return False

    def estimated_cost(self, quality: ImageQuality) -> Decimal:
        return Decimal("0")

    async def generate(self, request: GenerationRequest) -> bytes:
        raise APIError(
            detail=(
                f"{self.provider.display_name} requires an API key. "
                "Configure it in Settings > AI Providers."
            )
        )
