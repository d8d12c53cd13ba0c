# utils/interaction_helpers.py
import discord
import logging

from utils.events import MSG_SEND_FAILED, Reply

logger = logging.getLogger("interaction_helpers")


def reply_kwargs(reply: Reply) -> dict:
    """
    Build send() arguments. The image is opened here, so a file removed or
    unreadable since it was picked turns into the send-failed message.
    """
    try:
        file = reply.to_file()
    except OSError:
        logger.exception("Could not open %s", reply.file_path)
        return {'content': MSG_SEND_FAILED}

    kwargs = {}
    if reply.content:
        kwargs['content'] = reply.content
    if reply.embed:
        kwargs['embed'] = reply.embed
    if file:
        kwargs['file'] = file
    return kwargs


async def safe_defer(interaction: discord.Interaction, ephemeral: bool = False):
    try:
        if not interaction.response.is_done():
            await interaction.response.defer(ephemeral=ephemeral)
    except discord.HTTPException as e:
        logger.debug("Defer failed or already deferred: %s", e)


async def safe_respond(interaction: discord.Interaction, reply: Reply, ephemeral: bool = False):
    """
    Defer, then followup safely. Use for long-running operations or when building files.
    """
    await safe_defer(interaction, ephemeral=ephemeral)

    try:
        await interaction.followup.send(**reply_kwargs(reply), ephemeral=ephemeral)
    except discord.NotFound:
        # interaction expired, fall back to a plain channel send
        try:
            if interaction.channel:
                await interaction.channel.send(**reply_kwargs(reply))
        except discord.HTTPException as e:
            logger.exception("Fallback send failed: %s", e)
    except discord.HTTPException as e:
        logger.exception("Failed to send followup: %s", e)
