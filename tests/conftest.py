"""
Pytest configuration and fixtures for DocBot tests.
"""

import sys
import textwrap
import zipfile
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))


def build_wheel(
    directory: Path,
    name: str,
    version: str,
    modules: Dict[str, str],
    *,
    project_urls: Optional[Dict[str, str]] = None,
    home_page: Optional[str] = None,
) -> Path:
    """Write a minimal wheel containing ``modules`` (path -> source) into ``directory``."""
    dist_info = f"{name.replace('-', '_')}-{version}.dist-info"
    metadata = ["Metadata-Version: 2.1", f"Name: {name}", f"Version: {version}"]
    if home_page:
        metadata.append(f"Home-page: {home_page}")
    for label, url in (project_urls or {}).items():
        metadata.append(f"Project-URL: {label}, {url}")

    wheel_path = directory / f"{name.replace('-', '_')}-{version}-py3-none-any.whl"
    with zipfile.ZipFile(wheel_path, "w") as archive:
        for path, source in modules.items():
            archive.writestr(path, textwrap.dedent(source))
        archive.writestr(f"{dist_info}/METADATA", "\n".join(metadata) + "\n")
        archive.writestr(f"{dist_info}/WHEEL", "Wheel-Version: 1.0\n")
    return wheel_path


@pytest.fixture()
def make_wheel(tmp_path: Path) -> Callable[..., Path]:
    """Factory fixture building wheels inside the test's temporary directory."""

    def factory(name: str = "sample", version: str = "1.0.0", modules: Optional[Dict[str, str]] = None, **kwargs) -> Path:
        return build_wheel(tmp_path, name, version, modules or {}, **kwargs)

    return factory


@pytest.fixture()
def wheel_builder() -> Callable[..., Path]:
    """Expose :func:`build_wheel` for tests writing wheels outside ``tmp_path``."""
    return build_wheel
