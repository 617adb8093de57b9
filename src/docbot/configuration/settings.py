from typing import Any, Dict, List


class SettingsSection:
    """Helper exposing typed accessors over one mapping of the YAML configuration.

    Subclasses add convenience properties for the keys they know about; `get`
    and `as_dict` remain available for anything else.
    """

    def __init__(self, data: Dict[str, Any] | None = None) -> None:
        self.data: Dict[str, Any] = data if isinstance(data, dict) else {}

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for `key` or `default` if missing."""
        return self.data.get(key, default)

    def as_dict(self) -> Dict[str, Any]:
        """Return the underlying mapping (shallow copy recommended by callers)."""
        return self.data

    def _int(self, key: str, default: int) -> int:
        try:
            return int(self.data.get(key, default))
        except (TypeError, ValueError):
            return default

    def _float(self, key: str, default: float) -> float:
        try:
            return float(self.data.get(key, default))
        except (TypeError, ValueError):
            return default

    def _str_list(self, key: str) -> List[str]:
        value = self.data.get(key) or []
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value] if isinstance(value, list) else []


class DocumentationSettings(SettingsSection):
    @property
    def provider(self) -> str:
        return str(self.data.get("provider") or "local_file")

    @property
    def max_length(self) -> int:
        return self._int("max_length", 2048)

    @property
    def max_results(self) -> int:
        return self._int("max_results", 25)

    @property
    def autocomplete_limit(self) -> int:
        return self._int("autocomplete_limit", 10)


class ProviderSettings(SettingsSection):
    """Settings for one source provider (``providers.<name>`` in the YAML file)."""

    @property
    def path(self) -> str | None:
        val = self.data.get("path")
        return str(val) if val else None

    @property
    def url(self) -> str | None:
        val = self.data.get("url")
        return str(val) if val else None

    @property
    def pattern(self) -> str:
        return str(self.data.get("pattern") or "*.whl")

    @property
    def ignore_globs(self) -> List[str]:
        return self._str_list("ignore_globs")

    @property
    def build_timeout(self) -> float:
        return self._float("build_timeout", 120.0)

    @property
    def output_dir(self) -> str | None:
        val = self.data.get("output_dir")
        return str(val) if val else None


class GitHubSettings(SettingsSection):
    @property
    def token(self) -> str | None:
        val = self.data.get("token")
        return str(val) if val else None

    @property
    def rate_limited_hosts(self) -> List[str]:
        return self._str_list("rate_limited_hosts") or ["api.github.com"]

    @property
    def max_retries(self) -> int:
        return self._int("max_retries", 3)

    @property
    def search_language(self) -> str:
        return str(self.data.get("search_language") or "python")

    @property
    def request_timeout(self) -> float:
        return self._float("request_timeout", 10.0)


class DiscordSettings(SettingsSection):
    @property
    def repository(self) -> str:
        return str(self.data.get("repository") or "docbot/docbot")

    @property
    def debug_guild_id(self) -> int | None:
        val = self.data.get("debug_guild_id")
        try:
            return int(val) if val else None
        except (TypeError, ValueError):
            return None


class LoggingSettings(SettingsSection):
    @property
    def level(self) -> str:
        return str(self.data.get("level") or "DEBUG")

    @property
    def overrides(self) -> Dict[str, str]:
        val = self.data.get("overrides", {})
        return {str(k): str(v) for k, v in val.items()} if isinstance(val, dict) else {}
