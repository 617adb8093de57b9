"""Tests for wheel_loader.py module."""

import zipfile
from email.parser import HeaderParser

import pytest

from docbot.providers.wheel_loader import find_repository_url, load_wheel, module_name_from_path


def _metadata(text: str):
    return HeaderParser().parsestr(text)


def test_module_name_from_path():
    assert module_name_from_path("pkg/__init__.py") == "pkg"
    assert module_name_from_path("pkg/sub/mod.py") == "pkg.sub.mod"
    assert module_name_from_path("single.py") == "single"


def test_find_repository_url_prefers_github():
    metadata = _metadata(
        "Name: sample\n"
        "Project-URL: Documentation, https://sample.readthedocs.io\n"
        "Project-URL: Homepage, https://sample.example.com\n"
        "Project-URL: Source, https://github.com/owner/sample\n"
    )
    assert find_repository_url(metadata) == "https://github.com/owner/sample"


def test_find_repository_url_ranks_labels_on_same_host():
    metadata = _metadata(
        "Name: sample\n"
        "Project-URL: Homepage, https://gitlab.com/owner/home\n"
        "Project-URL: Repository, https://gitlab.com/owner/sample\n"
    )
    assert find_repository_url(metadata) == "https://gitlab.com/owner/sample"


def test_find_repository_url_falls_back_to_home_page():
    metadata = _metadata("Name: sample\nHome-page: https://github.com/owner/sample\n")
    assert find_repository_url(metadata) == "https://github.com/owner/sample"


def test_find_repository_url_none():
    assert find_repository_url(_metadata("Name: sample\n")) is None


def test_load_wheel_reads_metadata_and_modules(make_wheel):
    wheel = make_wheel(
        "sample",
        "1.2.0",
        {
            "sample/__init__.py": '"""Sample package."""\n',
            "sample/core.py": "def run():\n    pass\n",
        },
        project_urls={"Source": "https://github.com/owner/sample"},
    )

    unit = load_wheel(wheel)

    assert unit.name == "sample"
    assert unit.version == "1.2.0"
    assert unit.repository_url == "https://github.com/owner/sample"
    assert unit.origin == wheel
    assert [m.name for m in unit.modules] == ["sample", "sample.core"]
    assert unit.modules[1].path == "sample/core.py"


def test_load_wheel_skips_module_with_syntax_error(make_wheel):
    wheel = make_wheel(
        "broken",
        "0.1",
        {
            "broken/good.py": "X = 1\n",
            "broken/bad.py": "def oops(:\n",
        },
    )

    unit = load_wheel(wheel)

    assert [m.name for m in unit.modules] == ["broken.good"]


def test_load_wheel_ignores_dist_info_and_data_files(make_wheel):
    wheel = make_wheel(
        "extras",
        "0.1",
        {
            "extras/mod.py": "X = 1\n",
            "extras-0.1.data/scripts/tool.py": "print('hi')\n",
        },
    )

    unit = load_wheel(wheel)

    assert [m.name for m in unit.modules] == ["extras.mod"]


def test_load_wheel_without_metadata_raises(tmp_path):
    wheel = tmp_path / "nometa-0.1-py3-none-any.whl"
    with zipfile.ZipFile(wheel, "w") as archive:
        archive.writestr("nometa/__init__.py", "")

    with pytest.raises(ValueError):
        load_wheel(wheel)


def test_load_wheel_not_a_zip(tmp_path):
    wheel = tmp_path / "garbage-0.1-py3-none-any.whl"
    wheel.write_text("not a zip")

    with pytest.raises(zipfile.BadZipFile):
        load_wheel(wheel)
