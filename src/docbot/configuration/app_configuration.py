from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from docbot.configuration.settings import (
    DiscordSettings,
    DocumentationSettings,
    GitHubSettings,
    LoggingSettings,
    ProviderSettings,
)
from docbot.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes
    dictionary-like access plus typed section helpers. Uses fcntl file locks
    for safe concurrent access across processes.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Acquire a shared lock for reading
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)

                # Release the lock
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                if not isinstance(data, dict):
                    logger.warning("[APP CONFIGURATION] Config %s is not a mapping; ignoring it.", self.config_path)
                    return {}
                return data
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping.

        The returned dict is the internal cache (shallow reference). Callers
        should not mutate it.
        """
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # High-level shortcuts
    # --------------------------
    @property
    def documentation(self) -> DocumentationSettings:
        return DocumentationSettings(self._section("documentation"))

    def provider_settings(self, name: str) -> ProviderSettings:
        """Return the ``providers.<name>`` section wrapped in a ProviderSettings helper."""
        providers = self._section("providers")
        section = providers.get(name, {})
        return ProviderSettings(section if isinstance(section, dict) else {})

    @property
    def github(self) -> GitHubSettings:
        """Return the GitHub settings.

        ``GITHUB_TOKEN`` from the environment takes precedence over the token
        stored in the YAML file so secrets can stay in ``.env``.
        """
        section = dict(self._section("github"))
        if env_token := os.getenv("GITHUB_TOKEN"):
            section["token"] = env_token
        return GitHubSettings(section)

    @property
    def discord(self) -> DiscordSettings:
        return DiscordSettings(self._section("discord"))

    @property
    def logging(self) -> LoggingSettings:
        return LoggingSettings(self._section("logging"))


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)
