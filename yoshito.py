import asyncio
import logging
import signal
import sys
from functools import partial

import aiohttp
import discord
from discord.ext import commands, tasks

from cmds import build_help_embed
from config import ConfigError, Settings, check_image_folder, load_settings
from utils.events import Dispatcher
from utils.image_store import ImageStore
from utils.uploads import fetch_attachment
from utils.webserver import create_app, start_webserver

logger = logging.getLogger("yoshito")

EXTENSIONS = ["cmds", "cogs.images"]


class YoshitoBot(commands.Bot):
    def __init__(self, settings: Settings):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.messages = True

        super().__init__(command_prefix='!', intents=intents, help_command=None)

        self.settings = settings
        self.image_store = ImageStore(settings.image_folder, history_size=settings.history_size)
        self.dispatcher = Dispatcher(self.image_store, self.fetch_attachment, self.help_embed)
        self.http_session = None
        self.web_runner = None
        self.close_task = None

    def help_embed(self) -> discord.Embed:
        icon_url = self.user.display_avatar.url if self.user else None
        return build_help_embed(self.settings.history_size, icon_url)

    async def fetch_attachment(self, url: str) -> bytes:
        return await fetch_attachment(self.http_session, url, timeout=self.settings.fetch_timeout)

    async def setup_hook(self):
        self.http_session = aiohttp.ClientSession()
        self.web_runner = await start_webserver(
            create_app(self, self.image_store, self.settings), port=self.settings.port
        )
        for extension in EXTENSIONS:
            await self.load_extension(extension)
            logger.info("Loaded extension: %s", extension)
        self.heartbeat.start()

    async def on_ready(self):
        logger.info("Logged in as %s (%s)", self.user, self.user.id)
        try:
            synced = await self.tree.sync()
            logger.info("Synced %d slash commands globally", len(synced))
        except discord.HTTPException as e:
            logger.error("Failed to sync slash commands: %s", e)

    async def on_error(self, event_method, *args, **kwargs):
        logger.exception("Unhandled error in %s", event_method)

    @tasks.loop(minutes=1)
    async def heartbeat(self):
        logger.info("Process alive: %d images in history", len(self.image_store.history))

    async def close(self):
        logger.info("Shutting down...")
        if self.heartbeat.is_running():
            self.heartbeat.cancel()
        if self.web_runner is not None:
            runner, self.web_runner = self.web_runner, None
            await runner.cleanup()
            logger.info("Webserver stopped")
        if self.http_session is not None:
            session, self.http_session = self.http_session, None
            await session.close()
        await super().close()


async def run(settings: Settings):
    bot = YoshitoBot(settings)
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, partial(_schedule_close, bot, sig))
        except NotImplementedError:
            # add_signal_handler is unavailable on Windows event loops
            pass
    async with bot:
        await bot.start(settings.bot_token)


def _schedule_close(bot: YoshitoBot, sig):
    logger.info("Received signal %s", sig.name)
    if bot.close_task is None:
        bot.close_task = asyncio.get_running_loop().create_task(bot.close())


def main():
    try:
        settings = load_settings()
    except ConfigError as e:
        discord.utils.setup_logging()
        logger.critical("%s", e)
        sys.exit(1)

    discord.utils.setup_logging(level=getattr(logging, settings.log_level, logging.INFO), root=True)

    try:
        check_image_folder(settings.image_folder)
    except ConfigError as e:
        logger.critical("%s", e)
        sys.exit(1)
    logger.info("Image folder: %s", settings.image_folder)

    try:
        asyncio.run(run(settings))
    except discord.LoginFailure as e:
        logger.critical("Login failed, check BOT_TOKEN: %s", e)
        sys.exit(1)
    except discord.PrivilegedIntentsRequired as e:
        logger.critical("Message content intent is not enabled for this bot: %s", e)
        sys.exit(1)


if __name__ == "__main__":
    main()
