"""Shared contract of the source providers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from docbot.datatypes.unit_datatypes import PackageUnit


class SourceProviderError(RuntimeError):
    """Raised when a provider cannot produce any units (missing path, failed clone or pull)."""


class SourceProvider(ABC):
    """Produces the loadable units documented by a reload.

    Implementations log and skip units that fail individually; only failures
    that prevent enumeration as a whole raise :class:`SourceProviderError`.
    """

    name: str = ""

    @abstractmethod
    async def get_units(self) -> List[PackageUnit]:
        raise NotImplementedError
