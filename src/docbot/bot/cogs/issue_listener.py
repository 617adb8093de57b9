"""Issue listener cog: reply to ``##<number>`` mentions with links to GitHub issues and pull requests."""

import re
from typing import Any, Dict, List, Mapping, Optional

import discord
from discord.ext import commands

from docbot.github.github_client import GitHubClient
from docbot.util.logger import get_logger

logger = get_logger("issue_listener_cog")

ISSUE_PATTERN = re.compile(r"##(\d+)")
MESSAGE_LIMIT = 2000


def format_issue_link(number: int, issue: Mapping[str, Any]) -> Optional[str]:
    """Describe an issue payload as one markdown line, or None when fields are missing."""
    url = issue.get("html_url")
    title = issue.get("title")
    login = (issue.get("user") or {}).get("login")
    if not url or not title or not login:
        return None
    label = "Pull Request" if "pull_request" in issue else "Issue"
    return f"{label} #{number}: [{title}](<{url}>) - {login}"


def chunk_links(links: List[str], limit: int = MESSAGE_LIMIT) -> List[str]:
    """Pack links into bulleted messages no longer than ``limit`` characters."""
    if len(links) == 1:
        return [links[0][:limit]]

    messages: List[str] = []
    current = ""
    for link in links:
        line = f"\\- {link}\n"
        if current and len(current) + len(line) > limit:
            messages.append(current)
            current = ""
        current += line[:limit]
    if current:
        messages.append(current)
    return messages


class IssueListenerCog(commands.Cog):
    def __init__(self, discord_bot_instance, github: GitHubClient, repository: str):
        self.bot = discord_bot_instance
        self.github = github
        self.repository = repository
        self._cache: Dict[int, str] = {}
        logger.info("Issue listener cog loaded")

    async def resolve_issue(self, number: int) -> Optional[str]:
        if number in self._cache:
            return self._cache[number]
        issue = await self.github.fetch_issue(self.repository, number)
        if issue is None:
            return None
        link = format_issue_link(number, issue)
        if link is not None:
            self._cache[number] = link
        return link

    @commands.Cog.listener()
    async def on_message(self, message: discord.Message) -> None:
        if message.author.bot:
            return

        links: List[str] = []
        for match in ISSUE_PATTERN.finditer(message.content or ""):
            number = int(match.group(1))
            if number == 0:
                continue
            link = await self.resolve_issue(number)
            if link is not None and link not in links:
                links.append(link)

        if not links:
            return
        for chunk in chunk_links(links):
            try:
                await message.reply(chunk, mention_author=False)
            except discord.HTTPException as exc:
                logger.warning("[ISSUE LINKS] Failed to reply in channel %s: %s", message.channel.id, exc)
                return


def setup(discord_bot_instance, github: GitHubClient, repository: str) -> None:
    """Add the issue listener cog to the supplied Discord bot instance."""
    discord_bot_instance.add_cog(IssueListenerCog(discord_bot_instance, github, repository))
