"""Tests for cover image validation and upload."""

import re
from unittest.mock import MagicMock

import pytest
from azure.core.exceptions import HttpResponseError

from folio.errors import BadRequest, PayloadTooLarge
from folio.services.blob_storage import MAX_IMAGE_SIZE, build_blob_name, validate_image

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


class TestValidateImage:
    def test_sanitizes_filename(self):
        assert validate_image("my photo (1).png", "image/png", 100) == "my_photo__1_.png"

    def test_rejects_unsupported_type(self):
        with pytest.raises(BadRequest, match="Invalid file type"):
            validate_image("doc.pdf", "application/pdf", 100)

    def test_rejects_extension_mismatch(self):
        with pytest.raises(BadRequest, match="does not match"):
            validate_image("photo.png", "image/jpeg", 100)

    def test_missing_extension_assumed_jpg(self):
        assert validate_image("photo", "image/jpeg", 100) == "photo"
        with pytest.raises(BadRequest):
            validate_image("photo", "image/png", 100)

    def test_size_limit(self):
        assert validate_image("a.gif", "image/gif", MAX_IMAGE_SIZE)
        with pytest.raises(PayloadTooLarge):
            validate_image("a.gif", "image/gif", MAX_IMAGE_SIZE + 1)


def test_blob_name_format():
    name = build_blob_name("cover.webp", now=1_700_000_000.5)
    assert re.fullmatch(r"1700000000500-[a-z0-9]{6}-cover\.webp", name)


@pytest.fixture
def mock_container(mocker):
    container = MagicMock()
    blob = container.get_blob_client.return_value
    blob.url = "https://teststorage.blob.core.windows.net/test-images/cover.png"
    mocker.patch(
        "folio.services.blob_storage._get_container_client", return_value=container
    )
    return container


class TestUploadEndpoint:
    async def test_requires_admin(self, client):
        response = await client.post(
            "/api/upload", files={"file": ("cover.png", PNG_BYTES, "image/png")}
        )
        assert response.status_code == 401

    async def test_uploads_and_returns_url(self, client, admin_headers, mock_container):
        response = await client.post(
            "/api/upload",
            files={"file": ("cover.png", PNG_BYTES, "image/png")},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert response.json()["url"].endswith("/cover.png")
        blob_name = mock_container.get_blob_client.call_args.args[0]
        assert blob_name.endswith("-cover.png")
        blob = mock_container.get_blob_client.return_value
        assert blob.upload_blob.call_args.args[0] == PNG_BYTES

    async def test_oversized_file(self, client, admin_headers, mock_container):
        response = await client.post(
            "/api/upload",
            files={"file": ("big.png", b"0" * (MAX_IMAGE_SIZE + 1), "image/png")},
            headers=admin_headers,
        )

        assert response.status_code == 413
        mock_container.get_blob_client.assert_not_called()

    async def test_wrong_type(self, client, admin_headers, mock_container):
        response = await client.post(
            "/api/upload",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=admin_headers,
        )
        assert response.status_code == 400

    async def test_storage_not_configured(self, client, admin_headers, mock_settings):
        mock_settings.azure_storage_account = ""

        response = await client.post(
            "/api/upload",
            files={"file": ("cover.png", PNG_BYTES, "image/png")},
            headers=admin_headers,
        )

        assert response.status_code == 500
        assert response.json()["message"] == "Storage service not configured"

    async def test_azure_failure(self, client, admin_headers, mock_container):
        blob = mock_container.get_blob_client.return_value
        blob.upload_blob.side_effect = HttpResponseError(message="boom")

        response = await client.post(
            "/api/upload",
            files={"file": ("cover.png", PNG_BYTES, "image/png")},
            headers=admin_headers,
        )

        assert response.status_code == 500
        assert response.json()["message"] == "File upload failed"

    async def test_missing_file_field(self, client, admin_headers):
        response = await client.post("/api/upload", headers=admin_headers)
        assert response.status_code == 400

    async def test_describes_limits(self, client):
        body = (await client.get("/api/upload")).json()

        assert body["maxSize"] == MAX_IMAGE_SIZE
        assert "image/webp" in body["allowedTypes"]
