"""Datatypes used by the GitHub client and its rate limiter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from urllib.parse import quote

GITHUB_API = "https://api.github.com"
GITHUB_WEB = "https://github.com"


@dataclass
class RateLimitState:
    """Quota of one rate-limited host as reported by its response headers.

    ``remaining`` is ``None`` until the host has answered at least once.
    """

    remaining: Optional[int] = None
    reset_at: float = 0.0

    def is_exhausted(self, now: float) -> bool:
        return self.remaining == 0 and now < self.reset_at

    def seconds_until_reset(self, now: float) -> float:
        return max(0.0, self.reset_at - now)


@dataclass(frozen=True)
class RepositoryContext:
    """Where the sources of one unit live on GitHub.

    Attributes:
        slug: ``owner/name`` of the repository.
        commit: Commit SHA (or tag) that links are pinned to.
        language: Language qualifier used for code search.
    """

    slug: str
    commit: str
    language: str = "python"

    @property
    def search_url_template(self) -> str:
        return f"{GITHUB_API}/search/code?q={{query}}+language:{self.language}+repo:{self.slug}"

    @property
    def source_url(self) -> str:
        return f"{GITHUB_WEB}/{self.slug}/blob/{self.commit}"

    def search_url(self, query: str) -> str:
        return self.search_url_template.format(query=quote(query, safe=""))

    def blob_url(self, path: str, line: int = 0) -> str:
        url = f"{self.source_url}/{path.lstrip('/')}"
        return f"{url}#L{line}" if line > 0 else url
