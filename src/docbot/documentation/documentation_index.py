"""
In-memory documentation index with atomic reloads.

The published snapshot is an immutable mapping replaced by a single attribute
assignment, so lookups never lock and never observe a half-built index. Reloads
are serialized; a reload that cannot enumerate its units keeps serving the
previous snapshot.
"""

from __future__ import annotations

import asyncio
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple, Union

from docbot.datatypes.documentation_datatypes import DocumentationMember, MemberID
from docbot.datatypes.unit_datatypes import PackageUnit
from docbot.extraction.member_extractor import MemberExtractor
from docbot.github.github_client import GitHubClient
from docbot.providers.base import SourceProvider
from docbot.util.logger import get_logger

logger = get_logger("documentation_index")

DEFAULT_MAX_RESULTS = 25
DEFAULT_AUTOCOMPLETE_LIMIT = 10


@dataclass(frozen=True)
class DocumentationSnapshot:
    """One published generation of the index."""

    members: Mapping[MemberID, DocumentationMember] = field(default_factory=lambda: MappingProxyType({}))
    loaded_at: Optional[datetime] = None
    unit_count: int = 0

    def __len__(self) -> int:
        return len(self.members)


@dataclass(frozen=True)
class FuzzyResult:
    """Outcome of a fuzzy lookup.

    ``too_many`` is set, with no members, when more matches were found than
    the index is willing to return.
    """

    members: Tuple[DocumentationMember, ...] = ()
    too_many: bool = False
    match_count: int = 0

    @property
    def empty(self) -> bool:
        return not self.members and not self.too_many


class DocumentationIndex:
    def __init__(
        self,
        provider: SourceProvider,
        github: Optional[GitHubClient] = None,
        *,
        max_results: int = DEFAULT_MAX_RESULTS,
        autocomplete_limit: int = DEFAULT_AUTOCOMPLETE_LIMIT,
        extractor: Optional[MemberExtractor] = None,
    ) -> None:
        self.provider = provider
        self.github = github
        self.max_results = max_results
        self.autocomplete_limit = autocomplete_limit
        self._extractor = extractor or MemberExtractor()
        self._snapshot = DocumentationSnapshot()
        self._reload_lock = asyncio.Lock()

    @property
    def snapshot(self) -> DocumentationSnapshot:
        return self._snapshot

    @property
    def members(self) -> Mapping[MemberID, DocumentationMember]:
        return self._snapshot.members

    @property
    def is_reloading(self) -> bool:
        return self._reload_lock.locked()

    def __len__(self) -> int:
        return len(self._snapshot)

    # --------------------------
    # Reload
    # --------------------------
    async def _extract_unit(self, unit: PackageUnit) -> deque:
        sink: deque = deque()
        link_builder = None
        # Code search requires a token; without one there are no links to resolve
        if self.github is not None and self.github.has_token:
            try:
                context = await self.github.resolve_repository_context(unit)
            except Exception as exc:
                logger.warning("[DOCUMENTATION INDEX] Source links disabled for %s: %s", unit, exc)
                context = None
            if context is not None:
                link_builder = self.github.link_builder(context)
        try:
            await asyncio.to_thread(self._extractor.extract_unit, unit, sink, link_builder)
        except Exception as exc:
            logger.error("[DOCUMENTATION INDEX] Failed to extract %s: %s", unit, exc)
        return sink

    async def reload(self) -> bool:
        """Rebuild the index from the provider and publish it.

        Returns False, leaving the current snapshot in place, when the
        provider fails to enumerate its units.
        """
        async with self._reload_lock:
            logger.info("[DOCUMENTATION INDEX] Reloading documentation from provider '%s'...", self.provider.name)
            try:
                units = await self.provider.get_units()
            except Exception as exc:
                logger.error("[DOCUMENTATION INDEX] Reload aborted, keeping %d members: %s", len(self._snapshot), exc)
                return False

            batches = await asyncio.gather(*(self._extract_unit(unit) for unit in units))
            collected = [member for batch in batches for member in batch]

            # Stable sort: among equal full names the earlier unit wins
            ordered: Dict[MemberID, DocumentationMember] = {}
            for member in sorted(collected, key=lambda m: m.full_name):
                if member.id in ordered:
                    logger.debug("[DOCUMENTATION INDEX] Duplicate member %s ignored.", member.full_name)
                    continue
                ordered[member.id] = member

            self._snapshot = DocumentationSnapshot(
                members=MappingProxyType(ordered),
                loaded_at=datetime.now(timezone.utc),
                unit_count=len(units),
            )
            logger.info("[DOCUMENTATION INDEX] Loaded %d members from %d units.", len(ordered), len(units))
            return True

    # --------------------------
    # Lookups
    # --------------------------
    @staticmethod
    def _lookup(members: Mapping[MemberID, DocumentationMember], key: str) -> Optional[DocumentationMember]:
        if not key or not key.strip():
            return None
        return members.get(MemberID(key))

    def find_exact(self, key: Union[str, MemberID]) -> Optional[DocumentationMember]:
        """Return the member whose id is ``key``, if it is in the published snapshot."""
        return self._lookup(self._snapshot.members, str(key))

    def find_fuzzy(self, query: str) -> FuzzyResult:
        """Look a member up by id, exact name or name fragment.

        An exact id or name match returns that member alone. Otherwise every
        member whose display or full name contains ``query`` (ignoring case) is
        returned in index order.
        """
        query = (query or "").strip()
        if not query:
            return FuzzyResult()

        members = self._snapshot.members
        exact = self._lookup(members, query)
        if exact is not None:
            return FuzzyResult((exact,), match_count=1)

        for member in members.values():
            if query in (member.full_name, member.display_name):
                return FuzzyResult((member,), match_count=1)

        lowered = query.lower()
        for member in members.values():
            if lowered in (member.full_name.lower(), member.display_name.lower()):
                return FuzzyResult((member,), match_count=1)

        matches = [
            member for member in members.values()
            if lowered in member.display_name.lower() or lowered in member.full_name.lower()
        ]
        if len(matches) > self.max_results:
            return FuzzyResult(too_many=True, match_count=len(matches))
        return FuzzyResult(tuple(matches), match_count=len(matches))

    def autocomplete(self, partial: str) -> List[DocumentationMember]:
        """Suggest members whose display name contains ``partial``.

        Ranked by exact match, then prefix match, then suffix match, then
        shortest name; ties keep index order.
        """
        lowered = (partial or "").strip().lower()

        ranked = []
        for position, member in enumerate(self._snapshot.members.values()):
            name = member.display_name.lower()
            if lowered not in name:
                continue
            key = (
                name != lowered,
                not name.startswith(lowered),
                not name.endswith(lowered),
                len(name),
                position,
            )
            ranked.append((key, member))

        ranked.sort(key=lambda item: item[0])
        return [member for _, member in ranked[: self.autocomplete_limit]]
