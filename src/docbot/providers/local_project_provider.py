"""
Build every library project under a directory and document the resulting wheels.

Projects are discovered through their ``pyproject.toml`` files. Each one is
built with ``pip wheel`` under a timeout; a build that times out is killed and
retried once, and a project that still fails is logged and skipped.
"""

from __future__ import annotations

import asyncio
import shutil
import sys
import tomllib
from fnmatch import fnmatch
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, Sequence

from docbot.datatypes.unit_datatypes import PackageUnit
from docbot.providers.base import SourceProvider, SourceProviderError
from docbot.providers.local_file_provider import LocalFileProvider
from docbot.providers.process_runner import ProcessResult, run_process
from docbot.util.logger import get_logger

logger = get_logger("local_project_provider")

BUILD_ATTEMPTS = 2

ProcessRunner = Callable[..., Awaitable[ProcessResult]]


def is_library_project(pyproject: Path) -> bool:
    """Return False for projects that should not be documented.

    A project is skipped when it has no ``[project]`` name (it cannot be built
    into a distribution) or opts out with ``[tool.docbot] skip = true``.
    """
    try:
        data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
    except (OSError, tomllib.TOMLDecodeError) as exc:
        logger.warning("[LOCAL PROJECT] Cannot read %s: %s", pyproject, exc)
        return False

    project = data.get("project", {})
    if not isinstance(project, dict) or not project.get("name"):
        return False
    tool_settings = data.get("tool", {}).get("docbot", {})
    return not (isinstance(tool_settings, dict) and tool_settings.get("skip"))


class LocalProjectProvider(SourceProvider):
    name = "local_project"

    def __init__(
        self,
        path: Path | str,
        *,
        ignore_globs: Sequence[str] = (),
        build_timeout: float = 120.0,
        output_dir: Optional[Path | str] = None,
        runner: ProcessRunner = run_process,
    ) -> None:
        self.path = Path(path)
        self.ignore_globs = list(ignore_globs)
        self.build_timeout = build_timeout
        self.output_dir = Path(output_dir) if output_dir else self.path / "build" / "docbot-wheels"
        self._runner = runner

    def discover_projects(self) -> List[Path]:
        """Return the buildable ``pyproject.toml`` files, shallowest first."""
        projects: List[Path] = []
        candidates = sorted(self.path.rglob("pyproject.toml"), key=lambda p: (len(p.relative_to(self.path).parts), str(p)))
        for pyproject in candidates:
            relative = pyproject.relative_to(self.path).as_posix()
            if self.output_dir in pyproject.parents:
                continue
            if any(fnmatch(relative, glob) for glob in self.ignore_globs):
                logger.debug("[LOCAL PROJECT] Ignoring %s (matches ignore glob)", relative)
                continue
            if not is_library_project(pyproject):
                logger.debug("[LOCAL PROJECT] Skipping %s because it is not a library project.", relative)
                continue
            projects.append(pyproject)
        return projects

    async def build_project(self, pyproject: Path) -> Optional[Path]:
        """Build one project into a wheel and return the wheel path, or None on failure."""
        project_dir = pyproject.parent
        slot = project_dir.relative_to(self.path).as_posix().replace("/", "_").strip("._")
        wheel_dir = self.output_dir / (slot or "root")
        shutil.rmtree(wheel_dir, ignore_errors=True)
        wheel_dir.mkdir(parents=True, exist_ok=True)

        command = (sys.executable, "-m", "pip", "wheel", "--no-deps", "--wheel-dir", str(wheel_dir), str(project_dir))
        result: Optional[ProcessResult] = None
        for attempt in range(1, BUILD_ATTEMPTS + 1):
            try:
                result = await self._runner(*command, cwd=project_dir, timeout=self.build_timeout)
                break
            except asyncio.TimeoutError:
                logger.warning(
                    "[LOCAL PROJECT] Build of %s did not finish within %.0f seconds (attempt %d/%d).",
                    project_dir, self.build_timeout, attempt, BUILD_ATTEMPTS,
                )
            except OSError as exc:
                logger.error("[LOCAL PROJECT] Could not start build for %s: %s", project_dir, exc)
                return None

        if result is None:
            logger.error("[LOCAL PROJECT] Giving up on %s after %d timed out builds.", project_dir, BUILD_ATTEMPTS)
            return None
        if not result.ok:
            logger.error("[LOCAL PROJECT] Failed to build %s: %s", project_dir, result.stderr.strip())
            return None

        wheels = sorted(wheel_dir.glob("*.whl"), key=lambda p: p.stat().st_mtime, reverse=True)
        if not wheels:
            logger.error("[LOCAL PROJECT] Build of %s produced no wheel.", project_dir)
            return None

        logger.info("[LOCAL PROJECT] Successfully built %s", project_dir)
        return wheels[0]

    async def get_units(self) -> List[PackageUnit]:
        if not self.path.is_dir():
            raise SourceProviderError(f"Project directory {self.path} does not exist.")

        wheels: List[Path] = []
        for pyproject in self.discover_projects():
            logger.debug("[LOCAL PROJECT] Building project %s", pyproject.parent)
            wheel = await self.build_project(pyproject)
            if wheel is not None:
                wheels.append(wheel)

        if not wheels:
            logger.warning("[LOCAL PROJECT] No projects under %s produced a wheel.", self.path)
            return []
        return await LocalFileProvider.from_files(wheels).get_units()
