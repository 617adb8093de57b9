"""
DocBot - API Documentation Discord Bot

DocBot indexes the public API of Python distributions and serves it on Discord
through slash commands, with links to the exact source lines on GitHub.

Core Components:

- **Providers**: Produce wheels to document from a directory of wheels, from
  local ``pyproject.toml`` projects built with pip, or from a git checkout
- **Extraction**: Parses each wheel's modules with ``ast`` (nothing is
  imported) and emits one member per public class, function, method,
  property and attribute
- **Documentation Index**: Immutable, atomically reloaded index with exact,
  fuzzy and autocomplete lookups
- **GitHub Integration**: Rate-limited client that pins source links to the
  commit a wheel was built from and links ``##123`` issue mentions
- **Interactive Console**: Live bot administration interface for status
  checks, documentation reloads and graceful restart/shutdown

Usage:
    from docbot.main import main
    main()  # Starts the bot with console interface
"""

__version__ = "0.1.0"
