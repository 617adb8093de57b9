"""Tests for documentation_index.py module."""

import ast
import asyncio
import textwrap
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from docbot.datatypes.documentation_datatypes import SourceLink
from docbot.datatypes.github_datatypes import RepositoryContext
from docbot.datatypes.unit_datatypes import ModuleSource, PackageUnit
from docbot.documentation.documentation_index import DocumentationIndex
from docbot.documentation.member_renderer import render_member
from docbot.providers.base import SourceProvider, SourceProviderError


def _unit(name: str, modules: dict) -> PackageUnit:
    sources = [
        ModuleSource(name=module, path=module.replace(".", "/") + ".py", tree=ast.parse(textwrap.dedent(source)))
        for module, source in modules.items()
    ]
    return PackageUnit(name=name, version="1.0", repository_url=None, origin=Path(f"{name}.whl"), modules=sources)


FOO_SOURCE = """
class Foo:
    def Bar(self):
        pass

    def Baz(self):
        pass
"""


class FakeProvider(SourceProvider):
    name = "fake"

    def __init__(self, units=None, error=None):
        self.units = units or []
        self.error = error
        self.calls = 0
        self.active = 0
        self.max_active = 0

    async def get_units(self):
        self.calls += 1
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            if self.error is not None:
                raise self.error
            return list(self.units)
        finally:
            self.active -= 1


async def _loaded_index(modules: dict, **kwargs) -> DocumentationIndex:
    index = DocumentationIndex(FakeProvider([_unit("lib", modules)]), **kwargs)
    assert await index.reload() is True
    return index


@pytest.mark.asyncio
async def test_reload_is_deterministic():
    provider = FakeProvider([_unit("b", {"b.mod": "def zeta():\n    pass\n"}), _unit("a", {"a.mod": FOO_SOURCE})])
    index = DocumentationIndex(provider)

    await index.reload()
    first = list(index.members.values())
    await index.reload()
    second = list(index.members.values())

    assert [m.id for m in first] == [m.id for m in second]
    for before, after in zip(first, second, strict=True):
        assert after.display_name == before.display_name
        assert render_member(after) == render_member(before)
    assert [m.full_name for m in index.members.values()] == [
        "a.mod.Foo",
        "a.mod.Foo.Bar",
        "a.mod.Foo.Baz",
        "b.mod.zeta",
    ]


@pytest.mark.asyncio
async def test_find_exact_returns_member_iff_present():
    index = await _loaded_index({"lib": FOO_SOURCE})

    for member_id, member in index.members.items():
        assert index.find_exact(str(member_id)) is member
        assert index.find_exact(member_id) is member
    assert index.find_exact("0000000000000000") is None
    assert index.find_exact("") is None


@pytest.mark.asyncio
async def test_find_fuzzy_prefix_returns_all_matches_in_order():
    index = await _loaded_index({"lib": FOO_SOURCE})

    result = index.find_fuzzy("Foo.Ba")

    assert not result.too_many
    assert [m.display_name for m in result.members] == ["Foo.Bar", "Foo.Baz"]


@pytest.mark.asyncio
async def test_find_fuzzy_exact_match_is_singleton():
    index = await _loaded_index({"lib": FOO_SOURCE})

    assert [m.display_name for m in index.find_fuzzy("Foo.Bar").members] == ["Foo.Bar"]
    assert [m.display_name for m in index.find_fuzzy("foo.bar").members] == ["Foo.Bar"]
    assert [m.display_name for m in index.find_fuzzy("lib.Foo").members] == ["Foo"]


@pytest.mark.asyncio
async def test_find_fuzzy_by_member_id():
    index = await _loaded_index({"lib": FOO_SOURCE})
    member = next(iter(index.members.values()))

    assert index.find_fuzzy(str(member.id)).members == (member,)


@pytest.mark.asyncio
async def test_find_fuzzy_too_many_matches():
    source = "\n".join(f"def a{number}():\n    pass\n" for number in range(30))
    index = await _loaded_index({"lib": source})

    result = index.find_fuzzy("a")

    assert result.too_many
    assert result.members == ()
    assert result.match_count == 30


@pytest.mark.asyncio
async def test_find_fuzzy_no_match_and_empty_query():
    index = await _loaded_index({"lib": FOO_SOURCE})

    assert index.find_fuzzy("Quux").empty
    assert index.find_fuzzy("   ").empty


@pytest.mark.asyncio
async def test_failed_reload_keeps_previous_snapshot():
    provider = FakeProvider([_unit("lib", {"lib": FOO_SOURCE})])
    index = DocumentationIndex(provider)
    await index.reload()
    before = index.snapshot

    provider.error = SourceProviderError("Failed to pull repository.")
    assert await index.reload() is False

    assert index.snapshot is before
    assert len(index) == 3


@pytest.mark.asyncio
async def test_concurrent_reloads_are_serialized():
    provider = FakeProvider([_unit("lib", {"lib": FOO_SOURCE})])
    index = DocumentationIndex(provider)

    results = await asyncio.gather(index.reload(), index.reload(), index.reload())

    assert results == [True, True, True]
    assert provider.calls == 3
    assert provider.max_active == 1


@pytest.mark.asyncio
async def test_duplicate_members_across_units_are_indexed_once():
    provider = FakeProvider([
        _unit("one", {"dup": 'def f():\n    """From one."""\n'}),
        _unit("two", {"dup": 'def f():\n    """From two."""\n'}),
    ])
    index = DocumentationIndex(provider)

    await index.reload()

    assert [m.full_name for m in index.members.values()] == ["dup.f"]
    assert next(iter(index.members.values())).summary == "From one."


@pytest.mark.asyncio
async def test_autocomplete_ranking():
    source = """
    class HttpClient:
        pass

    class ClientSession:
        pass

    def client_factory():
        pass

    class Client:
        pass

    class Server:
        pass
    """
    index = await _loaded_index({"net": source})

    names = [m.display_name for m in index.autocomplete("client")]

    assert names == ["Client", "ClientSession", "client_factory", "HttpClient"]


@pytest.mark.asyncio
async def test_autocomplete_is_capped():
    source = "\n".join(f"def item_{number:02d}():\n    pass\n" for number in range(15))
    index = await _loaded_index({"lib": source})

    suggestions = index.autocomplete("item")

    assert len(suggestions) == 10
    assert [m.display_name for m in suggestions] == [f"item_{number:02d}" for number in range(10)]


@pytest.mark.asyncio
async def test_reload_attaches_source_links_from_github():
    context = RepositoryContext("owner/lib", "abc123")
    github = MagicMock()
    github.resolve_repository_context = AsyncMock(return_value=context)

    def link_builder(ctx):
        async def resolve_for(name):
            return f"https://github.com/{ctx.slug}/blob/{ctx.commit}/{name}"

        return lambda name, kind, module_path, line: SourceLink(lambda: resolve_for(name))

    github.link_builder.side_effect = link_builder
    provider = FakeProvider([_unit("lib", {"lib": "def run():\n    pass\n"})])
    index = DocumentationIndex(provider, github)

    await index.reload()
    member = next(iter(index.members.values()))

    assert await member.source_link.get() == "https://github.com/owner/lib/blob/abc123/run"
    github.link_builder.assert_called_once_with(context)


@pytest.mark.asyncio
async def test_reload_without_repository_context_has_no_links():
    github = MagicMock()
    github.resolve_repository_context = AsyncMock(return_value=None)
    provider = FakeProvider([_unit("lib", {"lib": "def run():\n    pass\n"})])
    index = DocumentationIndex(provider, github)

    await index.reload()
    member = next(iter(index.members.values()))

    assert await member.source_link.get() is None
    github.link_builder.assert_not_called()


@pytest.mark.asyncio
async def test_repository_context_failure_keeps_members_without_links():
    github = MagicMock()
    github.has_token = True
    github.resolve_repository_context = AsyncMock(side_effect=KeyError("object"))
    provider = FakeProvider([_unit("lib", {"lib": "def run():\n    pass\n"})])
    index = DocumentationIndex(provider, github)

    assert await index.reload() is True
    member = next(iter(index.members.values()))

    assert member.full_name == "lib.run"
    assert await member.source_link.get() is None
    github.link_builder.assert_not_called()


@pytest.mark.asyncio
async def test_repository_context_skipped_without_token():
    github = MagicMock()
    github.has_token = False
    github.resolve_repository_context = AsyncMock()
    provider = FakeProvider([_unit("lib", {"lib": "def run():\n    pass\n"})])
    index = DocumentationIndex(provider, github)

    assert await index.reload() is True

    github.resolve_repository_context.assert_not_awaited()
    assert len(index) == 1
