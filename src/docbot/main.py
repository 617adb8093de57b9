"""
DocBot
======

A Discord bot that indexes the public API of Python distributions and answers
documentation lookups through slash commands, linking each member to its
source on GitHub.
"""

import os
import sys
from pathlib import Path

def resolve_base_dir() -> Path:
    """Determine the base directory of the project. Designed for compiled/bundled execution.
    Resolution order:
    1. DOCBOT_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("DOCBOT_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
import discord
from dotenv import load_dotenv

from docbot import __version__
from docbot.configuration.app_configuration import AppConfig, app_config
from docbot.documentation.documentation_index import DocumentationIndex
from docbot.github.github_client import GitHubClient
from docbot.github.rate_limiter import RateLimiter
from docbot.providers import PROVIDER_REGISTRY, UnknownProviderError, create_provider
from docbot.ui.console import ConsoleControl, close_bot_instance, console_session
from docbot.util.logger import configure_levels, get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Returns
    -------
    str
        Discord bot token extracted from the loaded environment.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents required for DocBot runtime features.

    Message content is needed to spot ``##<number>`` issue mentions.
    """
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    return intents


def create_github_client(config: AppConfig) -> GitHubClient:
    """Build the rate-limited GitHub client from the ``github`` settings."""
    settings = config.github
    limiter = RateLimiter(
        hosts=settings.rate_limited_hosts,
        max_retries=settings.max_retries,
        timeout=settings.request_timeout,
    )
    if not settings.token:
        logger.warning("No GitHub token configured; documentation will be served without source links.")
    return GitHubClient(
        limiter,
        settings.token,
        language=settings.search_language,
        user_agent=f"DocBot/{__version__}",
    )


def create_index(config: AppConfig, github: GitHubClient) -> DocumentationIndex:
    """Build the documentation index over the configured provider.

    Raises
    ------
    UnknownProviderError
        If ``documentation.provider`` names no registered provider.
    ValueError
        If the provider's settings are incomplete.
    """
    settings = config.documentation
    provider = create_provider(settings.provider, config)
    return DocumentationIndex(
        provider,
        github,
        max_results=settings.max_results,
        autocomplete_limit=settings.autocomplete_limit,
    )


def load_cogs(discord_bot_instance: discord.Bot, index: DocumentationIndex, github: GitHubClient, config: AppConfig) -> None:
    """Register all operational cogs with the provided Discord bot instance."""
    from docbot.bot.cogs import admin_cmds, documentation_cmds, issue_listener

    repository = config.discord.repository
    documentation_cmds.setup(discord_bot_instance, index, max_length=config.documentation.max_length)
    admin_cmds.setup(discord_bot_instance, index, repository)
    issue_listener.setup(discord_bot_instance, github, repository)

    logger.info("All cogs loaded successfully.")


def create_bot(index: DocumentationIndex, github: GitHubClient, config: AppConfig) -> discord.Bot:
    """Instantiate the Discord bot and register all cogs."""
    debug_guild_id = config.discord.debug_guild_id
    bot = discord.Bot(
        intents=build_intents(),
        debug_guilds=[debug_guild_id] if debug_guild_id else None,
    )
    load_cogs(bot, index, github, config)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection."""
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(bot: discord.Bot | None = None, github: GitHubClient | None = None) -> None:
    """Gracefully stop the Discord bot and release the GitHub HTTP session."""
    await close_bot_instance(bot, log_close=True)

    if github is not None:
        try:
            github.close()
        except Exception as exc:
            logger.exception("Error while closing GitHub session: %s", exc)

    logger.info("Shutdown complete.")


async def run_bot_session(bot: discord.Bot, token: str, control: ConsoleControl) -> int:
    """Run the bot alongside the console, returning an exit code."""
    control.set_bot(bot)
    exit_code = 0

    try:
        async with console_session(control):
            try:
                await start_bot(bot, token)
            except asyncio.CancelledError:
                logger.info("Bot start cancelled; proceeding to shutdown")
            except Exception as exc:
                logger.critical("Discord bot runtime error: %s", exc)
                exit_code = 1
    finally:
        control.set_bot(None)

    return exit_code


async def async_main() -> int:
    """Bootstrap the index, bot and console, returning an exit code.

    Returns
    -------
    int
        Process exit code reflecting success or failure of initialization.
    """
    token = load_environment()
    configure_levels(app_config.logging.level, app_config.logging.overrides)

    github = create_github_client(app_config)
    try:
        index = create_index(app_config, github)
    except UnknownProviderError:
        logger.critical(
            "Unknown documentation provider '%s'. Available providers: %s",
            app_config.documentation.provider,
            ", ".join(sorted(PROVIDER_REGISTRY)),
        )
        await shutdown_runtime(None, github)
        return 1
    except ValueError as exc:
        logger.critical("Invalid provider configuration: %s", exc)
        await shutdown_runtime(None, github)
        return 1

    try:
        bot = create_bot(index, github, app_config)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await shutdown_runtime(None, github)
        return 1

    if not await index.reload():
        logger.warning("Initial documentation load failed; starting with an empty index.")

    control = ConsoleControl(index)
    try:
        exit_code = await run_bot_session(bot, token, control)
    finally:
        await shutdown_runtime(bot, github)

    if control.is_restart_requested():
        logger.info("Restart requested, returning exit code 42 to trigger restart")
        return 42

    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code.

    Returns
    -------
    int
        Exit code propagated to the operating system. Returns 42 to trigger a restart.
    """
    logger.info("Starting DocBot %s…", __version__)
    try:
        exit_code = asyncio.run(async_main())

        if exit_code == 42:
            logger.info("Restart requested; replacing current process with new instance.")
            # execv keeps stdin/stdout/stderr so the console survives the restart
            os.execv(sys.executable, [sys.executable] + sys.argv)
            return 0  # pragma: no cover

        return exit_code
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        if code is None:
            return 1
        try:
            return int(code)
        except (ValueError, TypeError):
            logger.warning("SystemExit.code is not an int (%r); defaulting to 1", code)
            return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.excepthook = handle_exception
    sys.exit(main())
