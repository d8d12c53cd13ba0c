import discord
from discord import app_commands, Embed
from discord.ext import commands

from utils.events import SlashCommand, HELP_COMMAND
from utils.interaction_helpers import reply_kwargs

HELP_COLOR = 0x00BFFF


def build_help_embed(history_size: int, icon_url: str = None) -> Embed:
    embed = Embed(
        title="📌 How to use this bot",
        description="Here is what I can do:",
        color=HELP_COLOR,
    )
    embed.add_field(name="/yoshito",
                    value=f"Sends a random image from the image folder. No repeats within the last {history_size} images.",
                    inline=False)
    embed.add_field(name="Mention + image",
                    value="Mention me while uploading an image and I'll save it and post it back, "
                          "along with any text you wrote (up to 200 characters).",
                    inline=False)
    embed.set_footer(text="Yoshito Bot", icon_url=icon_url)
    return embed


class HelpCommand(commands.Cog):
    """Contains the help command."""

    def __init__(self, bot):
        self.bot = bot

    @app_commands.command(name="help", description="Shows what this bot can do.")
    async def help_command(self, interaction: discord.Interaction):
        reply = await self.bot.dispatcher.dispatch(SlashCommand(HELP_COMMAND))
        await interaction.response.send_message(**reply_kwargs(reply))


async def setup(bot):
    await bot.add_cog(HelpCommand(bot))
