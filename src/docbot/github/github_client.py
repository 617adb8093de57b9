"""
GitHub REST client used to pin source links and look up issues.

Every call goes through the shared :class:`RateLimiter`. Lookups that only
enrich the output (repository context, code search, issues) log their failures
and return ``None`` instead of raising.
"""

from __future__ import annotations

import re
from functools import partial
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import requests

from docbot.datatypes.documentation_datatypes import MemberKind, SourceLink
from docbot.datatypes.github_datatypes import GITHUB_API, RepositoryContext
from docbot.datatypes.unit_datatypes import PackageUnit
from docbot.github.rate_limiter import RateLimiter
from docbot.util.logger import get_logger

logger = get_logger("github_client")

# PEP 440 local labels carrying a commit: ``1.2.0+3f2a9c1`` or setuptools-scm's ``1.2.0.dev4+g3f2a9c1.d20240101``
COMMIT_LABEL = re.compile(r"g?([0-9a-f]{7,40})")


class GitHubRequestError(RuntimeError):
    """Raised when the GitHub API answers with an error status or an unreadable body."""

    def __init__(self, url: str, status: Optional[int] = None, message: str = "") -> None:
        self.url = url
        self.status = status
        super().__init__(message or f"GitHub request to {url} failed with HTTP {status}")


def parse_repository_slug(url: Optional[str]) -> Optional[str]:
    """Return ``owner/name`` for a github.com URL, or None for anything else."""
    if not url:
        return None
    parsed = urlparse(url.strip())
    if (parsed.hostname or "").lower() not in ("github.com", "www.github.com"):
        return None
    parts = [part for part in parsed.path.split("/") if part]
    if len(parts) < 2:
        return None
    name = parts[1][:-4] if parts[1].endswith(".git") else parts[1]
    return f"{parts[0]}/{name}" if name else None


def commit_from_version(version: Optional[str]) -> Optional[str]:
    """Return the commit hash embedded in a version's local label, if any."""
    if not version:
        return None
    _, sep, local = version.partition("+")
    if not sep:
        return None
    match = COMMIT_LABEL.fullmatch(local.split(".")[0].lower())
    return match.group(1) if match else None


def path_matches_module(path: str, module_path: str) -> bool:
    """True when a repository path is the file a member's module was built from."""
    if not module_path:
        return False
    return path == module_path or path.endswith("/" + module_path)


class GitHubClient:
    """Thin async wrapper over the GitHub REST endpoints the bot needs."""

    def __init__(
        self,
        limiter: RateLimiter,
        token: Optional[str] = None,
        *,
        language: str = "python",
        user_agent: str = "DocBot",
    ) -> None:
        self._limiter = limiter
        self._token = token
        self.language = language
        self.user_agent = user_agent

    @property
    def has_token(self) -> bool:
        return bool(self._token)

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": self.user_agent,
        }
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def _get_json(self, url: str) -> Any:
        response = await self._limiter.get(url, headers=self._headers())
        if not response.ok:
            raise GitHubRequestError(url, response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubRequestError(url, response.status_code, f"Invalid JSON from {url}: {exc}") from exc

    # --------------------------
    # Repository context
    # --------------------------
    async def match_tag_to_release(self, slug: str, version: Optional[str]) -> Optional[str]:
        """Pick the release tag for ``version``: the tag ending with it, else the newest release."""
        releases = await self._get_json(f"{GITHUB_API}/repos/{slug}/releases")
        if not isinstance(releases, list) or not releases:
            return None
        tags = [str(release.get("tag_name")) for release in releases if release.get("tag_name")]
        if version:
            for tag in tags:
                if tag.endswith(version):
                    return tag
        return tags[0] if tags else None

    async def get_commit_from_tag(self, slug: str, tag: str) -> Optional[str]:
        """Resolve a tag to the commit it points at, peeling annotated tags."""
        ref = await self._get_json(f"{GITHUB_API}/repos/{slug}/git/refs/tags/{tag}")
        target = ref.get("object") if isinstance(ref, dict) else None
        if not isinstance(target, dict):
            return None
        if target.get("type") == "tag" and target.get("url"):
            tag_object = await self._get_json(str(target["url"]))
            target = tag_object.get("object") if isinstance(tag_object, dict) else None
            if not isinstance(target, dict):
                return None
        sha = target.get("sha")
        return str(sha) if sha else None

    async def resolve_repository_context(self, unit: PackageUnit) -> Optional[RepositoryContext]:
        """Find the repository and commit the unit's sources live at.

        Returns None when the unit has no GitHub repository or the lookup fails.
        """
        slug = parse_repository_slug(unit.repository_url)
        if slug is None:
            logger.debug("[GITHUB] %s has no GitHub repository URL; source links disabled.", unit)
            return None

        commit = commit_from_version(unit.version)
        if commit is not None:
            return RepositoryContext(slug, commit, self.language)

        try:
            tag = await self.match_tag_to_release(slug, unit.version)
        except (GitHubRequestError, requests.RequestException) as exc:
            logger.warning("[GITHUB] Failed to list releases of %s for %s: %s", slug, unit, exc)
            return None
        if tag is None:
            logger.warning("[GITHUB] No release found for %s in %s.", unit, slug)
            return None

        try:
            commit = await self.get_commit_from_tag(slug, tag)
        except (GitHubRequestError, requests.RequestException) as exc:
            logger.warning("[GITHUB] Could not resolve tag %s of %s; pinning links to the tag: %s", tag, slug, exc)
            commit = None

        return RepositoryContext(slug, commit or tag, self.language)

    # --------------------------
    # Code search
    # --------------------------
    async def search_member(
        self,
        name: str,
        kind: MemberKind,
        module_path: str,
        line: int,
        context: RepositoryContext,
    ) -> Optional[str]:
        """Search the repository for ``name`` and return a pinned link to its definition.

        Classes only accept a hit in the member's own module. Other members
        fall back to the first hit, linked without a line anchor.
        """
        if not self._token:
            logger.error("[GITHUB] Code search requires a GitHub token; skipping lookup of %s.", name)
            return None

        try:
            data = await self._get_json(context.search_url(name))
        except (GitHubRequestError, requests.RequestException) as exc:
            logger.warning("[GITHUB] Code search for %s in %s failed: %s", name, context.slug, exc)
            return None

        items = [item for item in (data.get("items") or []) if item.get("path")] if isinstance(data, dict) else []
        match = next((item for item in items if path_matches_module(str(item["path"]), module_path)), None)
        if match is not None:
            return context.blob_url(str(match["path"]), line)
        if kind.is_type or not items:
            logger.debug("[GITHUB] No search hit for %s in %s.", name, context.slug)
            return None
        return context.blob_url(str(items[0]["path"]))

    def link_builder(self, context: RepositoryContext):
        """Return a callable creating memoized :class:`SourceLink` objects bound to ``context``."""

        def build(name: str, kind: MemberKind, module_path: str, line: int) -> SourceLink:
            return SourceLink(partial(self.search_member, name, kind, module_path, line, context))

        return build

    # --------------------------
    # Issues
    # --------------------------
    async def fetch_issue(self, slug: str, number: int) -> Optional[Dict[str, Any]]:
        """Return the issue or pull request ``number`` of ``slug``, or None when unavailable."""
        try:
            data = await self._get_json(f"{GITHUB_API}/repos/{slug}/issues/{number}")
        except (GitHubRequestError, requests.RequestException) as exc:
            logger.warning("[GITHUB] Failed to fetch issue #%d of %s: %s", number, slug, exc)
            return None
        return data if isinstance(data, dict) else None

    def close(self) -> None:
        self._limiter.close()
