# utils/events.py
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Union

import discord

from utils.image_store import ImageStore
from utils.uploads import (
    CAPTION_TOO_LONG,
    UploadFetchError,
    UploadRejected,
    UploadSaveError,
    is_accepted_image,
    validate_upload,
)

logger = logging.getLogger("events")

YOSHITO_COMMAND = "yoshito"
HELP_COMMAND = "help"

MSG_HISTORY_RESET = "Image history has been reset. Run `/yoshito` again."
MSG_SEND_FAILED = "Failed to send an image."
MSG_NO_VALID_ATTACHMENT = "Please attach a PNG, JPG, JPEG or GIF image."
MSG_CAPTION_TOO_LONG = "Please keep the text within 200 characters."
MSG_FETCH_FAILED = "Failed to download the image."
MSG_SAVE_FAILED = "An error occurred while saving the image."

_MENTION = re.compile(r"<@!?[0-9]+>")


def strip_mentions(content: str) -> str:
    return _MENTION.sub("", content or "").strip()


# --- Inbound events ---

@dataclass
class SlashCommand:
    name: str


@dataclass
class PlainMessage:
    content: str


@dataclass
class AttachmentRef:
    name: str
    url: str


@dataclass
class MentionWithAttachment:
    attachments: List[AttachmentRef]
    caption: str = ""
    # best-effort removal of the message that carried the upload
    delete_origin: Optional[Callable[[], Awaitable[None]]] = None


Event = Union[SlashCommand, PlainMessage, MentionWithAttachment]


@dataclass
class Reply:
    content: Optional[str] = None
    file_path: Optional[Path] = None
    embed: Optional[discord.Embed] = field(default=None, repr=False)

    def to_file(self) -> Optional[discord.File]:
        if self.file_path is None:
            return None
        return discord.File(fp=str(self.file_path), filename=self.file_path.name)


class Dispatcher:
    """Routes inbound events to the image store and decides what to send back."""

    def __init__(
        self,
        store: ImageStore,
        fetcher: Callable[[str], Awaitable[bytes]],
        help_embed: Callable[[], discord.Embed],
    ):
        self.store = store
        self.fetcher = fetcher
        self.help_embed = help_embed

    async def dispatch(self, event: Event) -> Optional[Reply]:
        if isinstance(event, SlashCommand):
            if event.name == YOSHITO_COMMAND:
                return await self.send_random_image()
            if event.name == HELP_COMMAND:
                return Reply(embed=self.help_embed())
            logger.warning("Unknown slash command: %s", event.name)
            return None
        if isinstance(event, PlainMessage):
            if event.content.strip() == f"/{YOSHITO_COMMAND}":
                return await self.send_random_image()
            return None
        if isinstance(event, MentionWithAttachment):
            return await self.accept_upload(event)
        raise TypeError(f"unsupported event: {event!r}")

    async def send_random_image(self) -> Reply:
        try:
            chosen = await self.store.pick()
        except OSError:
            logger.exception("Reading the image folder failed")
            return Reply(content=MSG_SEND_FAILED)
        if chosen is None:
            return Reply(content=MSG_HISTORY_RESET)
        return Reply(file_path=self.store.path_for(chosen))

    async def accept_upload(self, event: MentionWithAttachment) -> Reply:
        attachment = next((a for a in event.attachments if is_accepted_image(a.name)), None)
        try:
            validate_upload(attachment.name if attachment else None, event.caption)
        except UploadRejected as e:
            logger.info("Upload rejected: %s", e)
            if e.reason == CAPTION_TOO_LONG:
                return Reply(content=MSG_CAPTION_TOO_LONG)
            return Reply(content=MSG_NO_VALID_ATTACHMENT)

        try:
            data = await self.fetcher(attachment.url)
        except UploadFetchError:
            logger.exception("Downloading %s failed", attachment.name)
            return Reply(content=MSG_FETCH_FAILED)

        if event.delete_origin is not None:
            try:
                await event.delete_origin()
            except Exception as e:
                logger.debug("Could not delete the original message: %s", e)

        try:
            filename = await self.store.ingest(data, attachment.name, event.caption)
        except UploadSaveError:
            logger.exception("Saving %s failed", attachment.name)
            return Reply(content=MSG_SAVE_FAILED)

        return Reply(content=event.caption or None, file_path=self.store.path_for(filename))
