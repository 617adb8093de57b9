"""
Discord bot cogs and event handlers for DocBot.

- **documentation_cmds.py**: ``/documentation query`` with member autocomplete;
  renders a single match or pages through several.

- **admin_cmds.py**: ``/reload`` (bot owner only), ``/repository`` and
  ``/version``.

- **issue_listener.py**: Replies to ``##<number>`` mentions in chat with links
  to the matching GitHub issue or pull request.
"""
