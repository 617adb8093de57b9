"""Core documentation datatypes shared by extraction, indexing and the Discord UI."""

from __future__ import annotations

import asyncio
import hashlib
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Optional, Union

from docbot.util.logger import get_logger

logger = get_logger("documentation_datatypes")

MEMBER_ID_LENGTH = 16


class MemberID:
    """
    Type-safe wrapper for documentation member identities.

    An id is the first 16 hex characters of the SHA3-512 digest of the
    member's fully-qualified name, so the same symbol keeps the same id across
    reloads and process restarts. Ids are used as Discord autocomplete values
    and component custom ids.

    Example:
        >>> member_id = MemberID.from_full_name("docbot.index.DocumentationIndex")
        >>> len(str(member_id))
        16
    """

    __slots__ = ("_value",)

    def __init__(self, value: Union[str, "MemberID"]) -> None:
        """
        Initialize a MemberID from a string or another MemberID.

        Raises:
            ValueError: If the value is empty or not a string.
        """
        if isinstance(value, MemberID):
            self._value = value._value
        elif isinstance(value, str):
            member_id = value.strip()
            if not member_id:
                raise ValueError("MemberID cannot be empty")
            self._value = member_id
        else:
            raise ValueError(f"Cannot create MemberID from {type(value).__name__}: {value}")

    @classmethod
    def from_full_name(cls, full_name: str) -> "MemberID":
        """Derive the stable id of a member from its fully-qualified name."""
        digest = hashlib.sha3_512(full_name.encode("utf-8")).hexdigest()
        return cls(digest[:MEMBER_ID_LENGTH])

    def to_string(self) -> str:
        return self._value

    def __str__(self) -> str:
        return self._value

    def __repr__(self) -> str:
        return f"MemberID({self._value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MemberID):
            return self._value == other._value
        if isinstance(other, str):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: "MemberID") -> bool:
        return self._value < str(other)

    def __hash__(self) -> int:
        return hash(self._value)


class MemberKind(Enum):
    """Kind of a documentable program element."""

    CLASS = "class"
    FUNCTION = "function"
    METHOD = "method"
    PROPERTY = "property"
    ATTRIBUTE = "attribute"

    @property
    def is_type(self) -> bool:
        return self is MemberKind.CLASS


@dataclass(frozen=True)
class SymbolDescription:
    """
    Language-agnostic description of a symbol's declaration.

    Produced by the extractor and consumed by the declaration formatter.
    Parameters are stored already rendered (``"name: int = 0"``), with the
    positional-only ``/`` and keyword-only ``*`` markers as their own entries.
    """

    kind: MemberKind
    name: str
    modifiers: tuple[str, ...] = ()
    decorators: tuple[str, ...] = ()
    type_params: tuple[str, ...] = ()
    parameters: tuple[str, ...] = ()
    returns: Optional[str] = None
    bases: tuple[str, ...] = ()
    annotation: Optional[str] = None
    value: Optional[str] = None


LinkFactory = Callable[[], Awaitable[Optional[str]]]


class SourceLink:
    """
    Lazily resolved, memoized source URL of a member.

    The first call to :meth:`get` starts the lookup as a task; concurrent and
    later callers await the same task, so the lookup runs at most once. A
    failing lookup is logged and memoized as ``None``.
    """

    __slots__ = ("_factory", "_task")

    def __init__(self, factory: Optional[LinkFactory] = None) -> None:
        self._factory = factory
        self._task: Optional[asyncio.Task[Optional[str]]] = None

    @property
    def started(self) -> bool:
        return self._task is not None

    @property
    def resolved(self) -> bool:
        return self._factory is None or (self._task is not None and self._task.done())

    def peek(self) -> Optional[str]:
        """Return the resolved link without starting a lookup."""
        if self._task is None or not self._task.done() or self._task.cancelled():
            return None
        return self._task.result()

    async def get(self) -> Optional[str]:
        if self._factory is None:
            return None
        if self._task is None:
            self._task = asyncio.ensure_future(self._resolve())
        return await asyncio.shield(self._task)

    async def _resolve(self) -> Optional[str]:
        assert self._factory is not None
        try:
            return await self._factory()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("[SOURCE LINK] Lookup failed: %s", exc)
            return None


@dataclass(frozen=True)
class DocumentationMember:
    """
    One documented program element of a loaded unit.

    Instances are immutable; the rendered text is produced on demand by
    :func:`docbot.documentation.member_renderer.render_member` and the source
    link is resolved through :attr:`source_link`.
    """

    id: MemberID
    full_name: str
    display_name: str
    kind: MemberKind
    summary: Optional[str]
    remarks: Optional[str]
    declaration: str
    module_path: str = ""
    line: int = 0
    source_link: SourceLink = field(default_factory=SourceLink, compare=False, repr=False)

    @classmethod
    def create(
        cls,
        full_name: str,
        kind: MemberKind,
        *,
        summary: Optional[str] = None,
        remarks: Optional[str] = None,
        declaration: str = "",
        module_path: str = "",
        line: int = 0,
        display_name: Optional[str] = None,
        source_link: Optional[SourceLink] = None,
    ) -> "DocumentationMember":
        """Build a member whose id is derived from ``full_name``."""
        return cls(
            id=MemberID.from_full_name(full_name),
            full_name=full_name,
            display_name=display_name or full_name,
            kind=kind,
            summary=summary,
            remarks=remarks,
            declaration=declaration,
            module_path=module_path,
            line=line,
            source_link=source_link or SourceLink(),
        )

    @property
    def name(self) -> str:
        """Bare name of the member (last dotted segment)."""
        return self.full_name.rsplit(".", 1)[-1]
