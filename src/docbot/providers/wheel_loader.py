"""
Load a wheel archive into a :class:`PackageUnit` without importing it.

Every ``.py`` file of the wheel is decoded and parsed with :mod:`ast`; a module
with a syntax error is logged and left out. Metadata (name, version and
repository URL) comes from the ``*.dist-info/METADATA`` file.
"""

from __future__ import annotations

import ast
import zipfile
from email.parser import HeaderParser
from pathlib import Path, PurePosixPath
from typing import List, Optional
from urllib.parse import urlparse

from docbot.datatypes.unit_datatypes import ModuleSource, PackageUnit
from docbot.util.logger import get_logger

logger = get_logger("wheel_loader")

# Project-URL labels checked in order when looking for the source repository
REPOSITORY_URL_LABELS = ("source", "source code", "repository", "code", "github", "homepage", "home")


def find_repository_url(metadata) -> Optional[str]:
    """Pick the repository URL from parsed wheel metadata.

    GitHub URLs are preferred over any other host; within a host the
    ``Project-URL`` labels are ranked by :data:`REPOSITORY_URL_LABELS`.
    """
    candidates: List[tuple[str, str]] = []
    for entry in metadata.get_all("Project-URL") or []:
        label, _, url = entry.partition(",")
        if url.strip():
            candidates.append((label.strip().lower(), url.strip()))
    if home_page := metadata.get("Home-page"):
        candidates.append(("homepage", home_page.strip()))

    def rank(candidate: tuple[str, str]) -> tuple[int, int]:
        label, url = candidate
        host_rank = 0 if urlparse(url).netloc.lower() in ("github.com", "www.github.com") else 1
        label_rank = REPOSITORY_URL_LABELS.index(label) if label in REPOSITORY_URL_LABELS else len(REPOSITORY_URL_LABELS)
        return host_rank, label_rank

    if not candidates:
        return None
    return sorted(candidates, key=rank)[0][1]


def module_name_from_path(path: str) -> str:
    """Translate ``pkg/sub/__init__.py`` into ``pkg.sub`` and ``pkg/mod.py`` into ``pkg.mod``."""
    parts = list(PurePosixPath(path).with_suffix("").parts)
    if parts and parts[-1] == "__init__":
        parts.pop()
    return ".".join(parts)


def _is_module_file(name: str) -> bool:
    if not name.endswith(".py"):
        return False
    top = name.split("/", 1)[0]
    return not (top.endswith(".dist-info") or top.endswith(".data"))


def load_wheel(path: Path) -> PackageUnit:
    """Parse ``path`` into a unit.

    Raises:
        zipfile.BadZipFile: If the file is not a zip archive.
        ValueError: If the archive has no ``METADATA`` file.
    """
    with zipfile.ZipFile(path) as archive:
        names = archive.namelist()
        metadata_name = next((n for n in names if n.count("/") == 1 and n.endswith(".dist-info/METADATA")), None)
        if metadata_name is None:
            raise ValueError(f"{path.name} has no dist-info METADATA")

        metadata = HeaderParser().parsestr(archive.read(metadata_name).decode("utf-8", errors="replace"))
        unit = PackageUnit(
            name=metadata.get("Name") or path.stem.split("-", 1)[0],
            version=metadata.get("Version"),
            repository_url=find_repository_url(metadata),
            origin=path,
        )

        for name in sorted(n for n in names if _is_module_file(n)):
            try:
                source = archive.read(name).decode("utf-8")
                tree = ast.parse(source, filename=name)
            except (SyntaxError, UnicodeDecodeError, ValueError) as exc:
                logger.warning("[WHEEL] Skipping module %s of %s: %s", name, path.name, exc)
                continue
            unit.modules.append(ModuleSource(name=module_name_from_path(name), path=name, tree=tree))

    logger.debug("[WHEEL] Loaded %s with %d modules", unit, len(unit.modules))
    return unit
