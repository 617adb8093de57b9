from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

from docbot.datatypes.unit_datatypes import PackageUnit
from docbot.providers.base import SourceProvider, SourceProviderError
from docbot.providers.local_project_provider import LocalProjectProvider, ProcessRunner
from docbot.providers.process_runner import run_process
from docbot.util.logger import get_logger

logger = get_logger("git_repository_provider")

GIT_TIMEOUT_SECONDS = 300.0


class GitRepositoryProvider(SourceProvider):
    """Clone (or pull) a repository, then build its projects like :class:`LocalProjectProvider`.

    A failed clone or pull aborts the reload: the previously published
    documentation stays in place.
    """

    name = "git"

    def __init__(
        self,
        url: str | None,
        path: Path | str = "repository",
        *,
        ignore_globs: Sequence[str] = (),
        build_timeout: float = 120.0,
        output_dir: Path | str | None = None,
        runner: ProcessRunner = run_process,
    ) -> None:
        if not url or not url.strip():
            raise ValueError("Repository URL is required.")
        self.url = url.strip()
        self.path = Path(path)
        self._runner = runner
        self._local_projects = LocalProjectProvider(
            self.path,
            ignore_globs=ignore_globs,
            build_timeout=build_timeout,
            output_dir=output_dir,
            runner=runner,
        )

    async def _git(self, *args: str, cwd: Path | None, action: str) -> None:
        try:
            result = await self._runner("git", *args, cwd=cwd, timeout=GIT_TIMEOUT_SECONDS)
        except Exception as exc:
            logger.critical("[GIT] Failed to %s repository %s: %s", action, self.url, exc)
            raise SourceProviderError(f"Failed to {action} repository.") from exc

        if not result.ok:
            logger.critical("[GIT] Failed to %s repository %s: %s", action, self.url, result.stderr.strip())
            raise SourceProviderError(f"Failed to {action} repository.")

    async def update_checkout(self) -> None:
        """Clone the repository if absent, otherwise pull the latest changes."""
        if not self.path.exists():
            logger.info("[GIT] Cloning repository %s to %s.", self.url, self.path)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            await self._git("clone", self.url, str(self.path), cwd=None, action="clone")
        else:
            logger.info("[GIT] Pulling repository %s in %s.", self.url, self.path)
            await self._git("pull", cwd=self.path, action="pull")

    async def get_units(self) -> List[PackageUnit]:
        await self.update_checkout()
        return await self._local_projects.get_units()
