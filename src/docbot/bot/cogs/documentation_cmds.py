"""
Documentation cog: look up members of the loaded documentation index.

Exposes ``/documentation query`` with autocomplete. Autocomplete values are
member ids, so a picked suggestion always resolves to exactly one member; a
typed query is matched by name and may produce a paginated result.
"""

from collections import Counter
from typing import List

import discord
from discord.ext import commands

from docbot.documentation.documentation_index import DocumentationIndex
from docbot.documentation.member_renderer import DEFAULT_MAX_LENGTH, truncate
from docbot.ui.documentation_paginator import DocumentationPaginator, build_member_embed
from docbot.util.logger import get_logger

logger = get_logger("documentation_cog")

NOT_FOUND_MESSAGE = "No documentation found."
TOO_MANY_MESSAGE = "Too many matches, please refine your search."
EMPTY_QUERY_MESSAGE = "Please provide a type or member to look up."
CHOICE_NAME_LIMIT = 100


async def member_autocomplete(ctx: discord.AutocompleteContext) -> List[discord.OptionChoice]:
    """Suggest members for the ``query`` option; values are member ids."""
    cog = ctx.cog
    if not isinstance(cog, DocumentationCog):
        return []
    members = cog.index.autocomplete(ctx.value or "")
    # Members sharing a display name are told apart by their full name
    shown = Counter(member.display_name for member in members)
    return [
        discord.OptionChoice(
            name=truncate(member.display_name if shown[member.display_name] == 1 else member.full_name, CHOICE_NAME_LIMIT),
            value=str(member.id),
        )
        for member in members
    ]


class DocumentationCog(commands.Cog):
    """Slash commands serving the documentation index."""

    documentation = discord.SlashCommandGroup("documentation", "Look up API documentation")

    def __init__(self, discord_bot_instance, index: DocumentationIndex, *, max_length: int = DEFAULT_MAX_LENGTH):
        self.bot = discord_bot_instance
        self.index = index
        self.max_length = max_length
        logger.info("Documentation cog loaded")

    @documentation.command(name="query", description="Retrieve documentation for a type or member.")
    @discord.option("query", str, description="The type or member to retrieve documentation for.", autocomplete=member_autocomplete)
    async def query(self, application_context: discord.ApplicationContext, query: str):
        if not query or not query.strip():
            await application_context.respond(EMPTY_QUERY_MESSAGE, ephemeral=True)
            return

        result = self.index.find_fuzzy(query)
        if result.too_many:
            logger.debug("[DOCUMENTATION] Query %r matched %d members", query, result.match_count)
            await application_context.respond(TOO_MANY_MESSAGE, ephemeral=True)
            return
        if not result.members:
            await application_context.respond(NOT_FOUND_MESSAGE, ephemeral=True)
            return

        await application_context.defer()
        if len(result.members) == 1:
            embed = await build_member_embed(result.members[0], max_length=self.max_length)
            await application_context.send_followup(embed=embed)
            return

        invoker_id = getattr(application_context.user, "id", None)
        view = DocumentationPaginator(result.members, invoker_id, max_length=self.max_length)
        message = await application_context.send_followup(embed=await view.build_embed(), view=view)
        view.message = message


def setup(discord_bot_instance, index: DocumentationIndex, *, max_length: int = DEFAULT_MAX_LENGTH) -> None:
    """Add the documentation cog to the supplied Discord bot instance."""
    discord_bot_instance.add_cog(DocumentationCog(discord_bot_instance, index, max_length=max_length))
