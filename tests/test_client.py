"""Tests for the fal.ai client and the client factory."""

import json
from decimal import Decimal

import httpx
import pytest

from voicesketch.core.errors import (
    APIError,
    ImageProcessingFailed,
    MalformedProviderResponse,
    ProviderHTTPError,
    ProviderNetworkError,
)
from voicesketch.core.models import AIProvider, ImageQuality
from voicesketch.core.styles import ArtStyle
from voicesketch.image.client import FalAIClient, UnsupportedClient
from voicesketch.image.factory import ClientFactory
from voicesketch.image.service import build_generation_request
from voicesketch.storage.key_store import KeyStore


ENDPOINT = "https://fal.test/fal-ai/fast-lcm-diffusion"
IMAGE_URL = "https://cdn.fal.test/out/1.png"


def make_transport(seen, generate_response=None):
    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        if request.method == "POST":
            if generate_response is not None:
                return generate_response
            return httpx.Response(200, json={"images": [{"url": IMAGE_URL}]})
        return httpx.Response(200, content=b"png-bytes")

    return httpx.MockTransport(handler)


@pytest.fixture
def generation_request():
    return build_generation_request("red dragon", style=ArtStyle.ANIME, quality=ImageQuality.STANDARD, seed=11)


class TestFalAIClient:

    async def test_generate_downloads_first_image(self, generation_request):
        seen = []
        client = FalAIClient("secret", endpoint=ENDPOINT, transport=make_transport(seen))

        data = await client.generate(generation_request)

        assert data == b"png-bytes"
        post, get = seen
        assert str(post.url) == ENDPOINT
        assert post.headers["Authorization"] == "Key secret"
        body = json.loads(post.content)
        assert body["prompt"] == generation_request.enhanced_prompt
        assert body["image_size"] == {"width": 512, "height": 512}
        assert body["num_inference_steps"] == 4
        assert body["seed"] == 11
        assert str(get.url) == IMAGE_URL

    async def test_http_error(self, generation_request):
        transport = make_transport([], httpx.Response(429, text="slow down"))
        client = FalAIClient("secret", endpoint=ENDPOINT, transport=transport)

        with pytest.raises(ProviderHTTPError) as info:
            await client.generate(generation_request)

        assert info.value.status_code == 429

    async def test_response_without_images(self, generation_request):
        transport = make_transport([], httpx.Response(200, json={"images": []}))
        client = FalAIClient("secret", endpoint=ENDPOINT, transport=transport)

        with pytest.raises(ImageProcessingFailed):
            await client.generate(generation_request)

    async def test_non_json_body(self, generation_request):
        transport = make_transport([], httpx.Response(200, text="<html>"))
        client = FalAIClient("secret", endpoint=ENDPOINT, transport=transport)

        with pytest.raises(MalformedProviderResponse):
            await client.generate(generation_request)

    async def test_timeout(self, generation_request):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = FalAIClient("secret", endpoint=ENDPOINT, transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderNetworkError) as info:
            await client.generate(generation_request)

        assert info.value.timed_out is True

    async def test_connect_error(self, generation_request):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = FalAIClient("secret", endpoint=ENDPOINT, transport=httpx.MockTransport(handler))

        with pytest.raises(ProviderNetworkError) as info:
            await client.generate(generation_request)

        assert info.value.timed_out is False

    async def test_missing_key(self, generation_request):
        client = FalAIClient(None, endpoint=ENDPOINT)

        assert await client.is_available() is False
        with pytest.raises(APIError):
            await client.generate(generation_request)

    def test_cost_table(self):
        client = FalAIClient("secret")

        assert client.estimated_cost(ImageQuality.STANDARD) == Decimal("0.001")
        assert client.estimated_cost(ImageQuality.ULTRA) == Decimal("0.003")


class TestUnsupportedClient:

    async def test_generate_points_to_settings(self, generation_request):
        client = UnsupportedClient(AIProvider.DALLE)

        assert await client.is_available() is False
        with pytest.raises(APIError) as info:
            await client.generate(generation_request)

        assert info.value.detail == "DALL-E requires an API key. Configure it in Settings > AI Providers."


class TestClientFactory:

    def test_prefers_fal_when_configured(self, tmp_path, monkeypatch):
        for name in ("FAL_API_KEY", "OPENAI_API_KEY", "STABILITY_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        store = KeyStore(tmp_path)
        store.set("fal.ai", "fal-secret")
        store.set("dalle", "openai-secret")

        factory = ClientFactory(key_store=store)

        assert factory.select_best_provider() is AIProvider.FAL_AI
        client = factory.create_client(AIProvider.FAL_AI)
        assert isinstance(client, FalAIClient)
        assert client.api_key == "fal-secret"

    def test_falls_back_to_next_configured_provider(self, tmp_path, monkeypatch):
        for name in ("FAL_API_KEY", "OPENAI_API_KEY", "STABILITY_API_KEY"):
            monkeypatch.delenv(name, raising=False)
        monkeypatch.setenv("STABILITY_API_KEY", "stable-secret")

        factory = ClientFactory(key_store=KeyStore(tmp_path))

        assert factory.select_best_provider() is AIProvider.STABLE
        assert isinstance(factory.create_client(AIProvider.STABLE), UnsupportedClient)

    def test_defaults_to_fal_without_credentials(self, tmp_path, monkeypatch):
        for name in ("FAL_API_KEY", "OPENAI_API_KEY", "STABILITY_API_KEY"):
            monkeypatch.delenv(name, raising=False)

        factory = ClientFactory(key_store=KeyStore(tmp_path))

        assert factory.select_best_provider() is AIProvider.FAL_AI
