"""Datatypes describing loadable units produced by the source providers."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


@dataclass(frozen=True)
class ModuleSource:
    """A parsed module of a unit.

    Attributes:
        name: Dotted module name (``docbot.util.logger``); packages use the
            package name rather than ``__init__``.
        path: Path of the file inside the unit (``docbot/util/logger.py``).
        tree: Parsed syntax tree of the module.
    """

    name: str
    path: str
    tree: ast.Module


@dataclass
class PackageUnit:
    """A loadable unit: one Python distribution parsed from a wheel.

    Units are owned by a single reload pass and discarded after extraction.
    """

    name: str
    version: Optional[str]
    repository_url: Optional[str]
    origin: Path
    modules: List[ModuleSource] = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.name} {self.version or '(unversioned)'}"
