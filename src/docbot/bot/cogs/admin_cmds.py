"""
Administrative and informational commands.

- /reload: rebuild the documentation index (bot owner only)
- /repository: link to the bot's own source repository
- /version: the running bot version
"""

import discord
from discord.ext import commands

from docbot import __version__
from docbot.datatypes.github_datatypes import GITHUB_WEB
from docbot.documentation.documentation_index import DocumentationIndex
from docbot.util.logger import get_logger

logger = get_logger("admin_cog")

OWNER_ONLY_MESSAGE = "Only the bot owner can reload the documentation."


class AdminCog(commands.Cog):
    def __init__(self, discord_bot_instance, index: DocumentationIndex, repository: str):
        self.bot = discord_bot_instance
        self.index = index
        self.repository = repository
        logger.info("Admin cog loaded")

    async def _is_owner(self, ctx: discord.ApplicationContext) -> bool:
        user = ctx.user
        return user is not None and await self.bot.is_owner(user)

    @commands.slash_command(name="reload", description="Reload the bot documentation.")
    async def reload(self, application_context: discord.ApplicationContext):
        """Rebuild the documentation index and report how many members it holds."""
        if not await self._is_owner(application_context):
            await application_context.respond(OWNER_ONLY_MESSAGE, ephemeral=True)
            return

        await application_context.defer(ephemeral=True)
        logger.info("[RELOAD] Documentation reload requested by %s", application_context.user)
        if await self.index.reload():
            await application_context.send_followup(f"Documentation reloaded: {len(self.index)} members indexed.")
        else:
            await application_context.send_followup(
                f"Documentation reload failed; still serving the previous {len(self.index)} members. Check the logs for details."
            )

    @commands.slash_command(name="repository", description="Get the repository link.")
    async def repository_link(self, application_context: discord.ApplicationContext):
        await application_context.respond(f"{GITHUB_WEB}/{self.repository}")

    @commands.slash_command(name="version", description="Get the version of the bot.")
    async def version(self, application_context: discord.ApplicationContext):
        await application_context.respond(f"Version: {__version__}")


def setup(discord_bot_instance, index: DocumentationIndex, repository: str) -> None:
    """Add the admin cog to the supplied Discord bot instance."""
    discord_bot_instance.add_cog(AdminCog(discord_bot_instance, index, repository))
