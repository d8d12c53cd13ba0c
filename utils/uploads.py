# utils/uploads.py
import asyncio
import os
import re
import time
from typing import Optional

import aiohttp


ACCEPTED_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif")
MAX_CAPTION_LENGTH = 200
UPLOAD_PREFIX = "user_upload_"

NO_VALID_ATTACHMENT = "no_valid_attachment"
CAPTION_TOO_LONG = "caption_too_long"

_UNSAFE_CHARS = re.compile(r"[^a-zA-Z0-9._-]")


class UploadError(Exception):
    """Base class for anything that stops an upload from being stored."""


class UploadRejected(UploadError):
    def __init__(self, reason: str, message: str = ""):
        super().__init__(message or reason)
        self.reason = reason


class UploadFetchError(UploadError):
    pass


class UploadSaveError(UploadError):
    pass


def is_accepted_image(name: Optional[str]) -> bool:
    """Checks the extension against the accepted image types (case-insensitive)."""
    return os.path.splitext(name or "")[1].lower() in ACCEPTED_EXTENSIONS


def caption_length(caption: str) -> int:
    # UTF-16 code units: characters outside the BMP count as two
    return len((caption or "").encode("utf-16-le")) // 2


def validate_upload(original_name: Optional[str], caption: str = ""):
    if not is_accepted_image(original_name):
        raise UploadRejected(NO_VALID_ATTACHMENT, f"unsupported attachment: {original_name!r}")
    length = caption_length(caption)
    if length > MAX_CAPTION_LENGTH:
        raise UploadRejected(CAPTION_TOO_LONG, f"caption is {length} characters")


def sanitize_filename(name: str) -> str:
    return _UNSAFE_CHARS.sub("_", name)


def build_upload_name(original_name: str, now_ms: Optional[int] = None) -> str:
    if now_ms is None:
        now_ms = int(time.time() * 1000)
    return f"{UPLOAD_PREFIX}{now_ms}_{sanitize_filename(original_name)}"


async def fetch_attachment(session: aiohttp.ClientSession, url: str, timeout: float = 10) -> bytes:
    """
    Download the attachment body. Any network problem, non-2xx status or
    timeout becomes an UploadFetchError.
    """
    try:
        async with session.get(url, timeout=aiohttp.ClientTimeout(total=timeout)) as resp:
            resp.raise_for_status()
            return await resp.read()
    except asyncio.TimeoutError as e:
        raise UploadFetchError(f"timed out after {timeout}s fetching {url}") from e
    except aiohttp.ClientError as e:
        raise UploadFetchError(f"failed to fetch {url}: {e}") from e
