import asyncio
import re

import aiohttp
import pytest
from aiohttp import web

from utils.uploads import (
    CAPTION_TOO_LONG,
    NO_VALID_ATTACHMENT,
    UploadFetchError,
    UploadRejected,
    build_upload_name,
    caption_length,
    fetch_attachment,
    is_accepted_image,
    sanitize_filename,
    validate_upload,
)


@pytest.mark.parametrize("name", ["a.png", "B.JPG", "c.jpeg", "d.Gif", "my photo.PnG"])
def test_accepted_extensions(name):
    assert is_accepted_image(name)


@pytest.mark.parametrize("name", ["pic.bmp", "archive.zip", "png", "noext", "", None])
def test_rejected_extensions(name):
    assert not is_accepted_image(name)
    with pytest.raises(UploadRejected) as exc:
        validate_upload(name)
    assert exc.value.reason == NO_VALID_ATTACHMENT


def test_caption_length_limit():
    validate_upload("a.png", "x" * 200)
    with pytest.raises(UploadRejected) as exc:
        validate_upload("a.png", "x" * 201)
    assert exc.value.reason == CAPTION_TOO_LONG


def test_sanitize_replaces_unsafe_characters():
    assert sanitize_filename("my cat (1).png") == "my_cat__1_.png"
    assert sanitize_filename("../../etc/passwd.png") == ".._.._etc_passwd.png"
    assert sanitize_filename("ok-name_1.2.gif") == "ok-name_1.2.gif"
    assert sanitize_filename("猫.jpg") == "_.jpg"


def test_upload_name_format():
    assert build_upload_name("my pic.png", now_ms=1700000000123) == "user_upload_1700000000123_my_pic.png"
    assert re.fullmatch(r"user_upload_\d{13}_a\.png", build_upload_name("a.png"))


async def _image(request):
    return web.Response(body=b"GIF89a", content_type="image/gif")


async def _slow(request):
    await asyncio.sleep(1)
    return web.Response(body=b"late")


@pytest.fixture
async def image_server(aiohttp_server):
    app = web.Application()
    app.add_routes([web.get("/img.gif", _image), web.get("/slow.gif", _slow)])
    return await aiohttp_server(app)


async def test_fetch_attachment_returns_body(image_server):
    async with aiohttp.ClientSession() as session:
        data = await fetch_attachment(session, str(image_server.make_url("/img.gif")))
    assert data == b"GIF89a"


async def test_fetch_attachment_http_error(image_server):
    async with aiohttp.ClientSession() as session:
        with pytest.raises(UploadFetchError):
            await fetch_attachment(session, str(image_server.make_url("/missing.gif")))


async def test_fetch_attachment_timeout(image_server):
    async with aiohttp.ClientSession() as session:
        with pytest.raises(UploadFetchError):
            await fetch_attachment(session, str(image_server.make_url("/slow.gif")), timeout=0.05)


def test_caption_length_counts_utf16_units():
    assert caption_length("é" * 200) == 200
    assert caption_length("😀") == 2
    validate_upload("a.png", "😀" * 100)
    with pytest.raises(UploadRejected) as exc:
        validate_upload("a.png", "😀" * 100 + "!")
    assert exc.value.reason == CAPTION_TOO_LONG
