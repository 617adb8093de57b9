"""Spawn-and-wait helper for the external tools used by the providers (git, pip)."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from docbot.util.logger import get_logger

logger = get_logger("process_runner")


@dataclass(frozen=True)
class ProcessResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


async def run_process(*args: str, cwd: Optional[Path] = None, timeout: Optional[float] = None) -> ProcessResult:
    """Run a command to completion and capture its output.

    Raises:
        asyncio.TimeoutError: If the process does not exit within ``timeout``
            seconds. The process is killed before the error propagates.
        OSError: If the executable cannot be started.
    """
    logger.debug("[PROCESS] Running %s (cwd=%s)", " ".join(args), cwd)
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=str(cwd) if cwd else None,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise

    return ProcessResult(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
