from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Iterable, List, Optional

from docbot.datatypes.unit_datatypes import PackageUnit
from docbot.providers.base import SourceProvider, SourceProviderError
from docbot.providers.wheel_loader import load_wheel
from docbot.util.logger import get_logger

logger = get_logger("local_file_provider")


class LocalFileProvider(SourceProvider):
    """Load every wheel found in a directory.

    Each wheel is loaded on its own; one that fails to load is logged and
    skipped without affecting the rest of the batch.
    """

    name = "local_file"

    def __init__(self, path: Path | str, pattern: str = "*.whl", *, files: Optional[Iterable[Path]] = None) -> None:
        self.path = Path(path)
        self.pattern = pattern
        self._files = list(files) if files is not None else None

    @classmethod
    def from_files(cls, files: Iterable[Path]) -> "LocalFileProvider":
        """Build a provider over an explicit list of wheels instead of a directory glob."""
        file_list = list(files)
        base = file_list[0].parent if file_list else Path(".")
        return cls(base, files=file_list)

    def _discover(self) -> List[Path]:
        if self._files is not None:
            return self._files
        if not self.path.is_dir():
            raise SourceProviderError(f"Package directory {self.path} does not exist.")
        return sorted(p for p in self.path.glob(self.pattern) if p.is_file())

    async def get_units(self) -> List[PackageUnit]:
        files = self._discover()
        if not files:
            logger.warning("[LOCAL FILE] No files matching %s in %s", self.pattern, self.path)

        units: List[PackageUnit] = []
        for file in files:
            try:
                units.append(await asyncio.to_thread(load_wheel, file))
            except Exception as exc:
                logger.error("[LOCAL FILE] Failed to load %s: %s", file, exc)
        logger.info("[LOCAL FILE] Loaded %d of %d units from %s", len(units), len(files), self.path)
        return units
