"""
Tests for the image store adapters.
Local storage is exercised against a temporary directory and Cloudinary through a mocked transport.
"""

import base64
import hashlib
import json
from pathlib import Path
from urllib.parse import parse_qs

import httpx
import pytest

from listing_api.config import ImageStoreSettings
from listing_api.services.image_store import (
    CloudinaryImageStore,
    LocalImageStore,
    build_image_store,
    parse_data_uri,
)
from listing_api.utils.exceptions import UploadError
from tests.conftest import make_image_data_uri


@pytest.fixture
def local_settings(tmp_path) -> ImageStoreSettings:
    return ImageStoreSettings(
        backend="local",
        upload_dir=str(tmp_path / "uploads"),
        public_base_url="http://test/uploads",
    )


@pytest.fixture
def cloudinary_settings() -> ImageStoreSettings:
    return ImageStoreSettings(
        backend="cloudinary",
        cloud_name="demo",
        api_key="123456",
        api_secret="s3cret",
        api_base_url="https://api.cloudinary.test",
    )


def _cloudinary_store(settings: ImageStoreSettings, handler) -> CloudinaryImageStore:
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return CloudinaryImageStore(settings, client=client)


class TestParseDataUri:
    """Test data URI decoding."""

    def test_parse_valid_data_uri(self):
        mime_type, content = parse_data_uri("data:image/PNG;base64," + base64.b64encode(b"abc").decode())

        assert mime_type == "image/png"
        assert content == b"abc"

    def test_parse_rejects_urls(self):
        with pytest.raises(UploadError, match="base64 data URI"):
            parse_data_uri("https://example.com/photo.jpg")

    def test_parse_rejects_unencoded_data(self):
        with pytest.raises(UploadError, match="base64 encoded"):
            parse_data_uri("data:image/png,rawbytes")

    def test_parse_rejects_invalid_base64(self):
        with pytest.raises(UploadError, match="Invalid base64"):
            parse_data_uri("data:image/png;base64,!!not-base64!!")


class TestLocalImageStore:
    """Test storing photos on local disk."""

    @pytest.mark.asyncio
    async def test_upload_png(self, local_settings: ImageStoreSettings):
        store = LocalImageStore(local_settings)

        url = await store.upload(make_image_data_uri())

        assert url.startswith("http://test/uploads/properties/")
        assert url.endswith(".png")
        stored = Path(local_settings.upload_dir) / "properties" / url.rsplit("/", 1)[1]
        assert stored.exists()

    @pytest.mark.asyncio
    async def test_upload_jpeg(self, local_settings: ImageStoreSettings):
        store = LocalImageStore(local_settings)

        url = await store.upload(make_image_data_uri("JPEG", "image/jpeg"))

        assert url.endswith(".jpg")

    @pytest.mark.asyncio
    async def test_upload_each_photo_gets_own_file(self, local_settings: ImageStoreSettings):
        store = LocalImageStore(local_settings)
        payload = make_image_data_uri()

        first = await store.upload(payload)
        second = await store.upload(payload)

        assert first != second

    @pytest.mark.asyncio
    async def test_upload_empty_payload(self, local_settings: ImageStoreSettings):
        store = LocalImageStore(local_settings)

        with pytest.raises(UploadError, match="No photo provided"):
            await store.upload("")

    @pytest.mark.asyncio
    async def test_upload_disallowed_type(self, local_settings: ImageStoreSettings):
        store = LocalImageStore(local_settings)

        with pytest.raises(UploadError, match="not allowed"):
            await store.upload(make_image_data_uri("GIF", "image/gif"))

    @pytest.mark.asyncio
    async def test_upload_content_type_mismatch(self, local_settings: ImageStoreSettings):
        store = LocalImageStore(local_settings)

        with pytest.raises(UploadError, match="doesn't match"):
            await store.upload(make_image_data_uri("PNG", "image/jpeg"))

    @pytest.mark.asyncio
    async def test_upload_not_an_image(self, local_settings: ImageStoreSettings):
        store = LocalImageStore(local_settings)
        payload = "data:image/png;base64," + base64.b64encode(b"definitely not a png").decode()

        with pytest.raises(UploadError, match="Invalid image file"):
            await store.upload(payload)

    @pytest.mark.asyncio
    async def test_upload_too_large(self, tmp_path):
        store = LocalImageStore(ImageStoreSettings(upload_dir=str(tmp_path), max_file_size=16))

        with pytest.raises(UploadError, match="exceeds maximum allowed size"):
            await store.upload(make_image_data_uri())

    @pytest.mark.asyncio
    async def test_failed_upload_message_prefix(self, local_settings: ImageStoreSettings):
        store = LocalImageStore(local_settings)

        with pytest.raises(UploadError) as exc_info:
            await store.upload("https://example.com/photo.jpg")

        assert str(exc_info.value).startswith("Image upload failed: ")
        assert exc_info.value.status_code == 500


class TestCloudinaryImageStore:
    """Test the Cloudinary upload adapter."""

    def test_requires_credentials(self):
        with pytest.raises(ValueError, match="required"):
            CloudinaryImageStore(ImageStoreSettings(backend="cloudinary", cloud_name="demo"))

    @pytest.mark.asyncio
    async def test_upload_signs_request(self, cloudinary_settings: ImageStoreSettings):
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["url"] = str(request.url)
            captured["form"] = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            return httpx.Response(200, json={
                "public_id": "abc123",
                "url": "http://res.cloudinary.test/demo/abc123.jpg",
                "secure_url": "https://res.cloudinary.test/demo/abc123.jpg",
            })

        store = _cloudinary_store(cloudinary_settings, handler)
        url = await store.upload("data:image/png;base64,iVBORw0KGgo=")

        assert url == "https://res.cloudinary.test/demo/abc123.jpg"
        assert captured["url"] == "https://api.cloudinary.test/v1_1/demo/image/upload"

        form = captured["form"]
        assert form["api_key"] == "123456"
        assert form["file"] == "data:image/png;base64,iVBORw0KGgo="
        expected = hashlib.sha1(f"timestamp={form['timestamp']}s3cret".encode()).hexdigest()
        assert form["signature"] == expected

    @pytest.mark.asyncio
    async def test_upload_signs_folder(self, cloudinary_settings: ImageStoreSettings):
        settings = cloudinary_settings.model_copy(update={"folder": "properties"})
        captured = {}

        def handler(request: httpx.Request) -> httpx.Response:
            captured["form"] = {k: v[0] for k, v in parse_qs(request.content.decode()).items()}
            return httpx.Response(200, json={"secure_url": "https://res.cloudinary.test/x.jpg"})

        store = _cloudinary_store(settings, handler)
        await store.upload("https://example.com/photo.jpg")

        form = captured["form"]
        assert form["folder"] == "properties"
        to_sign = f"folder=properties&timestamp={form['timestamp']}s3cret"
        assert form["signature"] == hashlib.sha1(to_sign.encode()).hexdigest()

    @pytest.mark.asyncio
    async def test_upload_insecure_url(self, cloudinary_settings: ImageStoreSettings):
        settings = cloudinary_settings.model_copy(update={"secure": False})

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={
                "url": "http://res.cloudinary.test/x.jpg",
                "secure_url": "https://res.cloudinary.test/x.jpg",
            })

        store = _cloudinary_store(settings, handler)

        assert await store.upload("data:image/png;base64,AA==") == "http://res.cloudinary.test/x.jpg"

    @pytest.mark.asyncio
    async def test_upload_rejected(self, cloudinary_settings: ImageStoreSettings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(400, json={"error": {"message": "Invalid image file"}})

        store = _cloudinary_store(cloudinary_settings, handler)

        with pytest.raises(UploadError) as exc_info:
            await store.upload("data:image/png;base64,AA==")

        assert str(exc_info.value) == "Image upload failed: Invalid image file"

    @pytest.mark.asyncio
    async def test_upload_rejected_without_json(self, cloudinary_settings: ImageStoreSettings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(502, text="Bad Gateway")

        store = _cloudinary_store(cloudinary_settings, handler)

        with pytest.raises(UploadError, match="HTTP 502"):
            await store.upload("data:image/png;base64,AA==")

    @pytest.mark.asyncio
    async def test_upload_transport_error(self, cloudinary_settings: ImageStoreSettings):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        store = _cloudinary_store(cloudinary_settings, handler)

        with pytest.raises(UploadError, match="connection refused"):
            await store.upload("data:image/png;base64,AA==")

    @pytest.mark.asyncio
    async def test_upload_response_without_url(self, cloudinary_settings: ImageStoreSettings):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=json.dumps({"public_id": "x"}))

        store = _cloudinary_store(cloudinary_settings, handler)

        with pytest.raises(UploadError, match="returned no URL"):
            await store.upload("data:image/png;base64,AA==")

    @pytest.mark.asyncio
    async def test_aclose_keeps_injected_client(self, cloudinary_settings: ImageStoreSettings):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(200)))
        store = CloudinaryImageStore(cloudinary_settings, client=client)

        await store.aclose()

        assert not client.is_closed
        await client.aclose()


class TestBuildImageStore:
    """Test adapter selection from configuration."""

    @pytest.mark.asyncio
    async def test_build_local(self, local_settings: ImageStoreSettings):
        store = build_image_store(local_settings)

        assert isinstance(store, LocalImageStore)
        await store.aclose()

    @pytest.mark.asyncio
    async def test_build_cloudinary(self, cloudinary_settings: ImageStoreSettings):
        store = build_image_store(cloudinary_settings)

        assert isinstance(store, CloudinaryImageStore)
        await store.aclose()
        assert store.client.is_closed
