import asyncio
import io
from unittest.mock import MagicMock

import pytest
from cloudinary.exceptions import Error as CloudinaryError
from fastapi import UploadFile
from starlette.datastructures import Headers
from urllib3.exceptions import MaxRetryError

from startupteam.core.exceptions import UploadFailed, ValidationFailed
from startupteam.services.upload_service import AVATAR_PRESET, ImageStore, public_id_from_url
from startupteam.utils.file_upload import MAX_FILE_SIZE_BYTES, read_image_upload

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


def _upload(filename, content, content_type="image/png"):
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


@pytest.fixture
def uploader():
    uploader = MagicMock()
    uploader.upload.return_value = {
        "secure_url": "https://res.cloudinary.com/demo/image/upload/v1712/startupteam/avatars/abc.png",
        "public_id": "startupteam/avatars/abc",
    }
    uploader.destroy.return_value = {"result": "ok"}
    return uploader


@pytest.mark.parametrize("url,expected", [
    ("https://res.cloudinary.com/demo/image/upload/v1712/startupteam/logos/abc.png", "startupteam/logos/abc"),
    ("https://res.cloudinary.com/demo/image/upload/startupteam/avatars/x.jpg", "startupteam/avatars/x"),
    ("https://res.cloudinary.com/demo/image/upload/v1/plain.webp?x=1", "plain"),
    ("https://example.com/avatar.png", None),
    (None, None),
])
def test_public_id_from_url(url, expected):
    assert public_id_from_url(url) == expected


def test_store(uploader):
    image = ImageStore(uploader=uploader).store(PNG_BYTES, AVATAR_PRESET)

    assert image.public_id == "startupteam/avatars/abc"
    assert image.url.startswith("https://")
    kwargs = uploader.upload.call_args.kwargs
    assert kwargs["folder"] == "startupteam/avatars"
    assert kwargs["resource_type"] == "image"


def test_store_failure(uploader):
    uploader.upload.side_effect = CloudinaryError("Invalid image file")
    with pytest.raises(UploadFailed):
        ImageStore(uploader=uploader).store(PNG_BYTES, AVATAR_PRESET)


@pytest.mark.parametrize("error", [
    MaxRetryError(None, "https://api.cloudinary.com/v1_1/demo/image/upload"),
    ConnectionResetError("connection reset by peer"),
    TimeoutError("read timed out"),
])
def test_store_transport_failure(uploader, error):
    uploader.upload.side_effect = error
    with pytest.raises(UploadFailed):
        ImageStore(uploader=uploader).store(PNG_BYTES, AVATAR_PRESET)


def test_delete_transport_failure(uploader):
    uploader.destroy.side_effect = MaxRetryError(None, "https://api.cloudinary.com/v1_1/demo/image/destroy")
    assert ImageStore(uploader=uploader).delete("startupteam/avatars/old") is False


def test_replace_deletes_previous_image(uploader):
    old = "https://res.cloudinary.com/demo/image/upload/v1/startupteam/avatars/old.png"
    ImageStore(uploader=uploader).replace(PNG_BYTES, AVATAR_PRESET, old)
    uploader.destroy.assert_called_once_with("startupteam/avatars/old")


def test_replace_ignores_delete_failure(uploader):
    uploader.destroy.side_effect = CloudinaryError("not found")
    old = "https://res.cloudinary.com/demo/image/upload/v1/startupteam/avatars/old.png"

    image = ImageStore(uploader=uploader).replace(PNG_BYTES, AVATAR_PRESET, old)
    assert image.public_id == "startupteam/avatars/abc"


def test_replace_without_previous_image(uploader):
    ImageStore(uploader=uploader).replace(PNG_BYTES, AVATAR_PRESET, None)
    uploader.destroy.assert_not_called()


def test_read_image_upload():
    content, filename = asyncio.run(read_image_upload(_upload("me.PNG", PNG_BYTES)))
    assert content == PNG_BYTES
    assert filename == "me.PNG"


@pytest.mark.parametrize("filename,content,content_type", [
    ("resume.pdf", b"%PDF-1.4", "application/pdf"),
    ("noextension", PNG_BYTES, "image/png"),
    ("sneaky.png", b"#!/bin/sh", "text/x-shellscript"),
    ("empty.png", b"", "image/png"),
    ("huge.jpg", b"\x00" * (MAX_FILE_SIZE_BYTES + 1), "image/jpeg"),
])
def test_read_image_upload_rejects(filename, content, content_type):
    with pytest.raises(ValidationFailed):
        asyncio.run(read_image_upload(_upload(filename, content, content_type)))
