from typing import Optional, Sequence

import discord

from docbot.datatypes.documentation_datatypes import DocumentationMember
from docbot.documentation.member_renderer import DEFAULT_MAX_LENGTH, render_member
from docbot.util.logger import get_logger

logger = get_logger("documentation_paginator")


async def build_member_embed(
    member: DocumentationMember,
    *,
    max_length: int = DEFAULT_MAX_LENGTH,
    footer: Optional[str] = None,
) -> discord.Embed:
    """Resolve the member's source link and render it into an embed."""
    link = await member.source_link.get()
    embed = discord.Embed(
        description=render_member(member, link, max_length),
        color=discord.Color.blurple(),
    )
    if footer:
        embed.set_footer(text=footer)
    return embed


class DocumentationPaginator(discord.ui.View):
    """Page through several matching members, one member per page."""

    def __init__(
        self,
        members: Sequence[DocumentationMember],
        invoker_id: Optional[int],
        *,
        max_length: int = DEFAULT_MAX_LENGTH,
        timeout_seconds: int = 300,
    ):
        super().__init__(timeout=timeout_seconds)
        if not members:
            raise ValueError("DocumentationPaginator needs at least one member")
        self.members = list(members)
        self.invoker_id = invoker_id
        self.max_length = max_length
        self.page = 0
        self._message: Optional[discord.Message] = None
        self.refresh_items()

    @property
    def message(self) -> Optional[discord.Message]:
        return self._message

    @message.setter
    def message(self, value: Optional[discord.Message]) -> None:
        self._message = value

    @property
    def current(self) -> DocumentationMember:
        return self.members[self.page]

    @property
    def page_count(self) -> int:
        return len(self.members)

    def refresh_items(self) -> None:
        """Rebuild the navigation buttons for the current page."""
        self.clear_items()
        self.add_item(PreviousPageButton(disabled=self.page == 0))
        self.add_item(NextPageButton(disabled=self.page >= self.page_count - 1))

    def go_to(self, page: int) -> None:
        self.page = max(0, min(page, self.page_count - 1))
        self.refresh_items()

    async def build_embed(self) -> discord.Embed:
        footer = f"Result {self.page + 1} of {self.page_count}"
        return await build_member_embed(self.current, max_length=self.max_length, footer=footer)

    async def show_page(self, interaction: discord.Interaction, page: int) -> None:
        self.go_to(page)
        # Link lookups can outlast the interaction deadline
        await interaction.response.defer()
        embed = await self.build_embed()
        try:
            await interaction.edit_original_response(embed=embed, view=self)
        except discord.HTTPException as exc:
            logger.warning("[PAGINATOR] Failed to update documentation page: %s", exc)

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        user = interaction.user
        if self.invoker_id is None or (user is not None and user.id == self.invoker_id):
            return True
        await interaction.response.send_message("Only the person who ran this search can change pages.", ephemeral=True)
        return False

    async def on_timeout(self) -> None:  # pragma: no cover - relies on Discord timers
        for child in self.children:
            if isinstance(child, discord.ui.Button):
                child.disabled = True
        if self._message is not None:
            try:
                await self._message.edit(view=self)
            except discord.HTTPException as exc:
                logger.debug("[PAGINATOR] Could not disable buttons after timeout: %s", exc)


class PreviousPageButton(discord.ui.Button):
    def __init__(self, *, disabled: bool = False):
        super().__init__(label="Previous", emoji="◀️", style=discord.ButtonStyle.secondary, disabled=disabled)

    async def callback(self, interaction: discord.Interaction) -> None:
        view: DocumentationPaginator = self.view  # type: ignore[assignment]
        await view.show_page(interaction, view.page - 1)


class NextPageButton(discord.ui.Button):
    def __init__(self, *, disabled: bool = False):
        super().__init__(label="Next", emoji="▶️", style=discord.ButtonStyle.secondary, disabled=disabled)

    async def callback(self, interaction: discord.Interaction) -> None:
        view: DocumentationPaginator = self.view  # type: ignore[assignment]
        await view.show_page(interaction, view.page + 1)
