"""
Utility functions and helpers for DocBot.

- **logger.py**: Centralized logging configuration with colored console output,
  rotating file handlers and per-session log files. Suppresses noise from
  verbose libraries (urllib3, Discord internals) and applies the configured
  per-logger levels. Uses prompt_toolkit for console output that does not
  clobber the interactive prompt.
"""
