# cogs/images.py
import discord
from discord.ext import commands
from discord import app_commands
import logging

from utils.events import (
    AttachmentRef,
    MSG_SEND_FAILED,
    MentionWithAttachment,
    PlainMessage,
    SlashCommand,
    YOSHITO_COMMAND,
    strip_mentions,
)
from utils.interaction_helpers import reply_kwargs, safe_respond

logger = logging.getLogger("images")


class ImageCog(commands.Cog, name="ImageCog"):
    """Random image command and mention uploads."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @app_commands.command(name="yoshito", description="Sends a random image.")
    async def yoshito(self, interaction: discord.Interaction):
        await interaction.response.defer()
        try:
            reply = await self.bot.dispatcher.dispatch(SlashCommand(YOSHITO_COMMAND))
        except Exception:
            logger.exception("/yoshito failed")
            await interaction.followup.send(MSG_SEND_FAILED)
            return
        await safe_respond(interaction, reply)

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message):
        if message.author.bot:
            return

        if self.bot.user and self.bot.user in message.mentions and message.attachments:
            event = MentionWithAttachment(
                attachments=[AttachmentRef(name=a.filename, url=a.url) for a in message.attachments],
                caption=strip_mentions(message.content),
                delete_origin=message.delete,
            )
        else:
            event = PlainMessage(message.content)

        reply = await self.bot.dispatcher.dispatch(event)
        if reply is None:
            return
        try:
            await message.channel.send(**reply_kwargs(reply))
        except discord.HTTPException as e:
            logger.exception("Failed to send reply in #%s: %s", getattr(message.channel, "name", "?"), e)


async def setup(bot: commands.Bot):
    await bot.add_cog(ImageCog(bot))
