"""
Source providers for DocBot.

Providers turn configuration into loadable units (parsed wheels):

- **local_file**: wheels found in a directory.
- **local_project**: ``pyproject.toml`` projects built into wheels with pip.
- **git**: a repository cloned or pulled, then handled like ``local_project``.

The registry below maps the configured provider name to a constructor; it is
built explicitly rather than discovered.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict

from docbot.configuration.app_configuration import AppConfig
from docbot.providers.base import SourceProvider, SourceProviderError
from docbot.providers.git_repository_provider import GitRepositoryProvider
from docbot.providers.local_file_provider import LocalFileProvider
from docbot.providers.local_project_provider import LocalProjectProvider


class UnknownProviderError(KeyError):
    """Raised when the configured provider name has no registered constructor."""


def _local_file(config: AppConfig) -> SourceProvider:
    settings = config.provider_settings(LocalFileProvider.name)
    return LocalFileProvider(Path(settings.path or "packages"), settings.pattern)


def _local_project(config: AppConfig) -> SourceProvider:
    settings = config.provider_settings(LocalProjectProvider.name)
    return LocalProjectProvider(
        Path(settings.path or "src"),
        ignore_globs=settings.ignore_globs,
        build_timeout=settings.build_timeout,
        output_dir=settings.output_dir,
    )


def _git(config: AppConfig) -> SourceProvider:
    settings = config.provider_settings(GitRepositoryProvider.name)
    return GitRepositoryProvider(
        settings.url,
        Path(settings.path or "repository"),
        ignore_globs=settings.ignore_globs,
        build_timeout=settings.build_timeout,
        output_dir=settings.output_dir,
    )


PROVIDER_REGISTRY: Dict[str, Callable[[AppConfig], SourceProvider]] = {
    LocalFileProvider.name: _local_file,
    LocalProjectProvider.name: _local_project,
    GitRepositoryProvider.name: _git,
}


def create_provider(name: str, config: AppConfig) -> SourceProvider:
    """Construct the provider registered under ``name``.

    Raises:
        UnknownProviderError: If no provider is registered under ``name``.
        ValueError: If the provider's settings are incomplete.
    """
    factory = PROVIDER_REGISTRY.get(name.strip().lower())
    if factory is None:
        raise UnknownProviderError(name)
    return factory(config)


__all__ = [
    "PROVIDER_REGISTRY",
    "GitRepositoryProvider",
    "LocalFileProvider",
    "LocalProjectProvider",
    "SourceProvider",
    "SourceProviderError",
    "UnknownProviderError",
    "create_provider",
]
