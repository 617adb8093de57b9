"""
Configuration management for DocBot.

- **app_configuration.py**: File-locked YAML loader for ``config/app_config.yml``.
  Falls back to an empty mapping on a missing or malformed file so every
  setting keeps its default.

- **settings.py**: Typed section helpers (documentation, providers, GitHub,
  Discord, logging) with the defaults used when a key is absent.
"""
