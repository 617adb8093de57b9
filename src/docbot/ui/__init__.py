"""
User interface components for DocBot.

- **console.py**: Interactive developer console for live bot management:
  status, documentation reload and search, log clearing, and graceful
  shutdown/restart with process replacement. Uses prompt_toolkit for
  non-blocking I/O that doesn't interfere with Discord event handling.

- **documentation_paginator.py**: Embed rendering for documentation members
  and a button-driven view for paging through several matches.
"""
