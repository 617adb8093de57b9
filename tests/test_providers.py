"""Tests for the source providers and the provider registry."""

import asyncio
from pathlib import Path

import pytest

from docbot.configuration.app_configuration import AppConfig
from docbot.providers import (
    GitRepositoryProvider,
    LocalFileProvider,
    LocalProjectProvider,
    SourceProviderError,
    UnknownProviderError,
    create_provider,
)
from docbot.providers.local_project_provider import is_library_project
from docbot.providers.process_runner import ProcessResult


def write_project(directory: Path, name: str, *, extra: str = "") -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    pyproject = directory / "pyproject.toml"
    pyproject.write_text(f'[project]\nname = "{name}"\nversion = "1.0.0"\n{extra}', encoding="utf-8")
    return pyproject


class FakeRunner:
    """Stands in for run_process: answers git commands and fakes ``pip wheel`` builds."""

    def __init__(self, wheel_builder, *, timeouts: int = 0, failing=(), git_error: bool = False):
        self.wheel_builder = wheel_builder
        self.timeouts = timeouts
        self.failing = set(failing)
        self.git_error = git_error
        self.calls = []

    async def __call__(self, *args, cwd=None, timeout=None):
        self.calls.append(args)
        if args[0] == "git":
            if self.git_error:
                return ProcessResult(128, "", "fatal: repository not found")
            if args[1] == "clone":
                write_project(Path(args[3]) / "alpha", "alpha")
            return ProcessResult(0, "", "")

        if self.timeouts > 0:
            self.timeouts -= 1
            raise asyncio.TimeoutError()
        project_dir = Path(args[-1])
        wheel_dir = Path(args[args.index("--wheel-dir") + 1])
        if project_dir.name in self.failing:
            return ProcessResult(1, "", "error: build failed")
        self.wheel_builder(wheel_dir, project_dir.name, "1.0.0", {f"{project_dir.name}/__init__.py": "def hello():\n    pass\n"})
        return ProcessResult(0, "", "")

    @property
    def build_calls(self):
        return [call for call in self.calls if call[0] != "git"]


# --------------------------
# local_file
# --------------------------
@pytest.mark.asyncio
async def test_local_file_missing_directory_raises(tmp_path: Path):
    with pytest.raises(SourceProviderError):
        await LocalFileProvider(tmp_path / "missing").get_units()


@pytest.mark.asyncio
async def test_local_file_skips_unloadable_wheels(tmp_path: Path, make_wheel):
    make_wheel("good", "1.0.0", {"good/__init__.py": "def ok():\n    pass\n"})
    (tmp_path / "broken-1.0.0-py3-none-any.whl").write_bytes(b"not a zip archive")

    units = await LocalFileProvider(tmp_path).get_units()

    assert [unit.name for unit in units] == ["good"]


@pytest.mark.asyncio
async def test_local_file_empty_directory_returns_no_units(tmp_path: Path):
    assert await LocalFileProvider(tmp_path).get_units() == []


# --------------------------
# local_project
# --------------------------
def test_is_library_project(tmp_path: Path):
    assert is_library_project(write_project(tmp_path / "lib", "lib"))
    assert not is_library_project(write_project(tmp_path / "opted_out", "opted", extra="\n[tool.docbot]\nskip = true\n"))

    nameless = tmp_path / "app" / "pyproject.toml"
    nameless.parent.mkdir()
    nameless.write_text("[tool.black]\nline-length = 100\n", encoding="utf-8")
    assert not is_library_project(nameless)

    broken = tmp_path / "broken" / "pyproject.toml"
    broken.parent.mkdir()
    broken.write_text("[project\n", encoding="utf-8")
    assert not is_library_project(broken)


def test_discover_projects_applies_ignore_globs(tmp_path: Path, wheel_builder):
    write_project(tmp_path / "alpha", "alpha")
    write_project(tmp_path / "tests" / "fixture_project", "fixture_project")
    write_project(tmp_path / "beta", "beta", extra="\n[tool.docbot]\nskip = true\n")

    provider = LocalProjectProvider(tmp_path, ignore_globs=["tests/*"], runner=FakeRunner(wheel_builder))

    assert provider.discover_projects() == [tmp_path / "alpha" / "pyproject.toml"]


@pytest.mark.asyncio
async def test_local_project_builds_each_project(tmp_path: Path, wheel_builder):
    write_project(tmp_path / "alpha", "alpha")
    write_project(tmp_path / "beta", "beta")
    runner = FakeRunner(wheel_builder)

    units = await LocalProjectProvider(tmp_path, runner=runner).get_units()

    assert sorted(unit.name for unit in units) == ["alpha", "beta"]
    assert all(call[1:4] == ("-m", "pip", "wheel") for call in runner.build_calls)


@pytest.mark.asyncio
async def test_local_project_failed_build_is_skipped(tmp_path: Path, wheel_builder):
    write_project(tmp_path / "alpha", "alpha")
    write_project(tmp_path / "beta", "beta")

    units = await LocalProjectProvider(tmp_path, runner=FakeRunner(wheel_builder, failing={"alpha"})).get_units()

    assert [unit.name for unit in units] == ["beta"]


@pytest.mark.asyncio
async def test_local_project_timeout_is_retried_once(tmp_path: Path, wheel_builder):
    write_project(tmp_path / "alpha", "alpha")
    runner = FakeRunner(wheel_builder, timeouts=1)

    units = await LocalProjectProvider(tmp_path, build_timeout=0.1, runner=runner).get_units()

    assert [unit.name for unit in units] == ["alpha"]
    assert len(runner.build_calls) == 2


@pytest.mark.asyncio
async def test_local_project_gives_up_after_second_timeout(tmp_path: Path, wheel_builder):
    write_project(tmp_path / "alpha", "alpha")
    runner = FakeRunner(wheel_builder, timeouts=5)

    units = await LocalProjectProvider(tmp_path, build_timeout=0.1, runner=runner).get_units()

    assert units == []
    assert len(runner.build_calls) == 2


@pytest.mark.asyncio
async def test_local_project_missing_directory_raises(tmp_path: Path, wheel_builder):
    with pytest.raises(SourceProviderError):
        await LocalProjectProvider(tmp_path / "missing", runner=FakeRunner(wheel_builder)).get_units()


# --------------------------
# git
# --------------------------
def test_git_requires_url():
    with pytest.raises(ValueError, match="Repository URL is required."):
        GitRepositoryProvider(None)
    with pytest.raises(ValueError):
        GitRepositoryProvider("   ")


@pytest.mark.asyncio
async def test_git_clones_missing_checkout_then_builds(tmp_path: Path, wheel_builder):
    runner = FakeRunner(wheel_builder)
    checkout = tmp_path / "checkout"

    units = await GitRepositoryProvider("https://github.com/owner/lib.git", checkout, runner=runner).get_units()

    assert runner.calls[0] == ("git", "clone", "https://github.com/owner/lib.git", str(checkout))
    assert [unit.name for unit in units] == ["alpha"]


@pytest.mark.asyncio
async def test_git_pulls_existing_checkout(tmp_path: Path, wheel_builder):
    write_project(tmp_path / "alpha", "alpha")
    runner = FakeRunner(wheel_builder)

    await GitRepositoryProvider("https://github.com/owner/lib.git", tmp_path, runner=runner).get_units()

    assert runner.calls[0] == ("git", "pull")


@pytest.mark.asyncio
async def test_git_failure_aborts_reload(tmp_path: Path, wheel_builder):
    runner = FakeRunner(wheel_builder, git_error=True)
    provider = GitRepositoryProvider("https://github.com/owner/missing.git", tmp_path / "checkout", runner=runner)

    with pytest.raises(SourceProviderError, match="Failed to clone repository."):
        await provider.get_units()
    assert runner.build_calls == []


# --------------------------
# registry
# --------------------------
def _config(tmp_path: Path, text: str) -> AppConfig:
    path = tmp_path / "app_config.yml"
    path.write_text(text, encoding="utf-8")
    return AppConfig(path)


def test_create_provider_builds_registered_provider(tmp_path: Path):
    config = _config(tmp_path, "providers:\n  local_file:\n    path: wheels\n    pattern: 'docbot-*.whl'\n")

    provider = create_provider(" Local_File ", config)

    assert isinstance(provider, LocalFileProvider)
    assert provider.path == Path("wheels")
    assert provider.pattern == "docbot-*.whl"


def test_create_provider_unknown_name(tmp_path: Path):
    with pytest.raises(UnknownProviderError):
        create_provider("ftp", _config(tmp_path, "{}\n"))


def test_create_git_provider_without_url(tmp_path: Path):
    with pytest.raises(ValueError):
        create_provider("git", _config(tmp_path, "providers:\n  git:\n    path: repository\n"))
