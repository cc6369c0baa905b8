"""Tests for the image cache, artwork store and key store."""

import io
import json
import os
import stat
from datetime import datetime, timezone

import pytest
from PIL import Image

from voicesketch.core.errors import SaveFailed
from voicesketch.core.models import Artwork, GenerationMetadata, AIProvider
from voicesketch.core.styles import ArtStyle
from voicesketch.storage.artwork_store import JsonArtworkStore
from voicesketch.storage.image_cache import ImageCache, render_thumbnail
from voicesketch.storage.key_store import KeyStore

from tests.conftest import png_bytes


class TestImageCache:

    async def test_save_returns_stable_locator(self, tmp_path):
        cache = ImageCache(tmp_path / "cache")

        locator = await cache.save(b"abc")

        assert os.path.isfile(locator)
        assert await cache.read(locator) == b"abc"

    async def test_read_is_idempotent(self, tmp_path):
        cache = ImageCache(tmp_path / "cache")
        data = png_bytes()
        locator = await cache.save(data)

        first = await cache.read(locator)
        cache.clear_memory()
        second = await cache.read(locator)
        third = await cache.read(locator)

        assert first == second == third == data

    async def test_read_missing_locator(self, tmp_path):
        cache = ImageCache(tmp_path / "cache")

        assert await cache.read(str(tmp_path / "nope.png")) is None

    async def test_memory_limit_evicts_oldest(self, tmp_path):
        cache = ImageCache(tmp_path / "cache", memory_limit=2)
        first = await cache.save(b"1")
        await cache.save(b"2")
        await cache.save(b"3")

        assert cache._recall(first) is None
        assert await cache.read(first) == b"1"

    async def test_thumbnail_fits_target(self, tmp_path):
        cache = ImageCache(tmp_path / "cache")
        locator = await cache.save(png_bytes((600, 300)))

        thumb = await cache.thumbnail(locator, (300, 300))

        with Image.open(io.BytesIO(thumb)) as image:
            assert image.size == (300, 300)
            assert image.mode == "RGBA"
            # letterboxed rows stay transparent
            assert image.getpixel((150, 10))[3] == 0
            assert image.getpixel((150, 150))[3] == 255

    async def test_thumbnail_of_non_image(self, tmp_path):
        cache = ImageCache(tmp_path / "cache")
        locator = await cache.save(b"not an image")

        assert await cache.thumbnail(locator) is None

    async def test_total_size_and_clear(self, tmp_path):
        cache = ImageCache(tmp_path / "cache")
        await cache.save(b"12345")
        await cache.save(b"678")

        assert await cache.total_size() == 8

        await cache.clear()

        assert await cache.total_size() == 0

    def test_render_thumbnail_directly(self):
        thumb = render_thumbnail(png_bytes((20, 40)), (10, 10))

        with Image.open(io.BytesIO(thumb)) as image:
            assert image.size == (10, 10)


def make_artwork(**overrides) -> Artwork:
    values = {"prompt": "red dragon", "image_url": "/tmp/x.png", "style": ArtStyle.ANIME}
    values.update(overrides)
    return Artwork(**values)


class TestJsonArtworkStore:

    def test_insert_is_staged_until_save(self, tmp_path):
        path = tmp_path / "artworks.json"
        store = JsonArtworkStore(path)
        artwork = make_artwork()

        store.insert(artwork)

        assert store.get(artwork.id) is artwork
        assert not path.exists()

        store.save()

        document = json.loads(path.read_text(encoding="utf-8"))
        assert document["version"] == 1
        assert [item["id"] for item in document["artworks"]] == [artwork.id]

    def test_reload_round_trip(self, tmp_path):
        path = tmp_path / "artworks.json"
        store = JsonArtworkStore(path)
        artwork = make_artwork(thumbnail_data=b"\x89PNG", tags=["dragon"])
        artwork.metadata = GenerationMetadata(
            provider=AIProvider.FAL_AI,
            model="fast-lcm-diffusion",
            generation_time_ms=120,
            seed=5,
        )
        artwork.record_edit("add a tree", "/tmp/y.png")
        store.insert(artwork)
        store.save()

        loaded = JsonArtworkStore(path).get(artwork.id)

        assert loaded.prompt == "red dragon"
        assert loaded.image_url == "/tmp/y.png"
        assert loaded.thumbnail_data == b"\x89PNG"
        assert loaded.edit_history[0].previous_image_url == "/tmp/x.png"
        assert loaded.metadata.seed == 5
        assert loaded.created_at == artwork.created_at

        record = loaded.edit_history[0]
        assert record.previous_prompt == "red dragon"
        assert record.previous_style is ArtStyle.ANIME
        assert record.previous_thumbnail_data == b"\x89PNG"
        assert record.previous_metadata_json == artwork.metadata_json

    def test_loads_edit_records_without_snapshot(self, tmp_path):
        path = tmp_path / "artworks.json"
        artwork = make_artwork()
        document = {"version": 1, "artworks": [artwork.to_dict()]}
        document["artworks"][0]["edit_history"] = [{
            "timestamp": "2025-01-01T00:00:00+00:00",
            "voice_command": "add a tree",
            "previous_image_url": "/tmp/w.png",
        }]
        path.write_text(json.dumps(document), encoding="utf-8")

        record = JsonArtworkStore(path).get(artwork.id).edit_history[0]

        assert record.previous_image_url == "/tmp/w.png"
        assert record.previous_prompt is None
        assert record.previous_style is None
        assert record.previous_thumbnail_data is None

    def test_delete(self, tmp_path):
        path = tmp_path / "artworks.json"
        store = JsonArtworkStore(path)
        artwork = make_artwork()
        store.insert(artwork)
        store.save()

        store.delete(artwork.id)
        store.save()

        assert JsonArtworkStore(path).all() == []

    def test_save_failure_keeps_pending(self, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("file, not a directory")
        store = JsonArtworkStore(blocker / "artworks.json")
        artwork = make_artwork()
        store.insert(artwork)

        with pytest.raises(SaveFailed):
            store.save()

        assert store.get(artwork.id) is artwork

    def test_all_newest_first(self, tmp_path):
        store = JsonArtworkStore(tmp_path / "artworks.json")
        older = make_artwork(prompt="older", created_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        newer = make_artwork(prompt="newer", created_at=datetime(2024, 6, 1, tzinfo=timezone.utc))
        store.insert(older)
        store.insert(newer)

        assert [a.prompt for a in store.all()] == ["newer", "older"]


class TestKeyStore:

    def test_set_get_delete(self, tmp_path):
        store = KeyStore(tmp_path / "keys")

        store.set("fal.ai", "  secret \n")

        assert store.get("fal.ai") == "secret"
        mode = stat.S_IMODE(os.stat(tmp_path / "keys" / "fal.ai.key").st_mode)
        assert mode == 0o600

        store.delete("fal.ai")

        assert store.get("fal.ai") is None

    def test_missing_key(self, tmp_path):
        store = KeyStore(tmp_path)

        assert store.get("dalle") is None
        store.delete("dalle")

    def test_key_id_cannot_escape_directory(self, tmp_path):
        store = KeyStore(tmp_path / "keys")

        store.set("../outside", "x")

        assert (tmp_path / "keys" / "___outside.key").exists()
        assert not (tmp_path / "outside.key").exists()
