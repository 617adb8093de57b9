"""
Walk the public surface of a parsed unit and emit documentation members.

The extractor only reads syntax trees; nothing from a unit is imported or
executed. Definitions nested in module or class level if/try/with blocks are
included. Names a public module re-exports from a private module are documented
under the public module and linked to the defining file.

Members are appended to a caller supplied sink (a ``collections.deque``, whose
``append`` is thread safe) so several units can be extracted from worker
threads at once.
"""

from __future__ import annotations

import ast
import inspect
from collections import deque
from dataclasses import dataclass
from itertools import chain
from typing import Callable, Iterator, List, Mapping, Optional

from docbot.datatypes.documentation_datatypes import (
    DocumentationMember,
    MemberKind,
    SourceLink,
    SymbolDescription,
)
from docbot.datatypes.unit_datatypes import ModuleSource, PackageUnit
from docbot.extraction.declaration_formatter import format_declaration
from docbot.util.logger import get_logger

logger = get_logger("member_extractor")

PROPERTY_DECORATORS = frozenset({"property", "cached_property", "functools.cached_property", "abc.abstractproperty"})
OVERLOAD_DECORATORS = frozenset({"overload", "typing.overload", "typing_extensions.overload"})
ACCESSOR_SUFFIXES = (".setter", ".deleter")

# (bare name, kind, module path inside the unit, line) -> link for that member
LinkBuilder = Callable[[str, MemberKind, str, int], SourceLink]


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------

def is_public_name(name: str) -> bool:
    return not name.startswith("_")


def is_public_module(module: ModuleSource) -> bool:
    """A module is public when no segment of its dotted name starts with an underscore."""
    if not module.name:
        return False
    return all(is_public_name(part) for part in module.name.split("."))


def is_generated_member(node: ast.AST) -> bool:
    """Return True for members that exist only as compiler/runtime plumbing.

    Covers dunder methods, property setters/deleters and ``@overload`` stubs.
    """
    name = getattr(node, "name", "")
    if name.startswith("__") and name.endswith("__"):
        return True
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        decorators = [ast.unparse(d) for d in node.decorator_list]
        if any(d.endswith(ACCESSOR_SUFFIXES) for d in decorators):
            return True
        if any(d in OVERLOAD_DECORATORS for d in decorators):
            return True
    return False


def read_dunder_all(tree: ast.Module) -> Optional[set[str]]:
    """Return the literal ``__all__`` of a module, or None when it has none."""
    exported: Optional[set[str]] = None
    for node in tree.body:
        if isinstance(node, ast.Assign):
            targets = [t.id for t in node.targets if isinstance(t, ast.Name)]
            value = node.value
        elif isinstance(node, (ast.AnnAssign, ast.AugAssign)) and isinstance(node.target, ast.Name):
            targets = [node.target.id]
            value = node.value
        else:
            continue
        if "__all__" not in targets or not isinstance(value, (ast.List, ast.Tuple)):
            continue
        names = {elt.value for elt in value.elts if isinstance(elt, ast.Constant) and isinstance(elt.value, str)}
        exported = names if exported is None or not isinstance(node, ast.AugAssign) else exported | names
    return exported


# ---------------------------------------------------------------------------
# Docstrings
# ---------------------------------------------------------------------------

def split_docstring(docstring: Optional[str]) -> tuple[Optional[str], Optional[str]]:
    """Split a cleaned docstring into its summary (first paragraph) and remarks (the rest)."""
    if not docstring or not docstring.strip():
        return None, None
    paragraphs = docstring.strip().split("\n\n", 1)
    summary = " ".join(line.strip() for line in paragraphs[0].splitlines()).strip()
    remarks = paragraphs[1].strip() if len(paragraphs) > 1 else ""
    return summary or None, remarks or None


def attribute_docstring(body: List[ast.stmt], index: int) -> Optional[str]:
    """Return the string literal that directly follows the assignment at ``body[index]``."""
    if index + 1 >= len(body):
        return None
    following = body[index + 1]
    if isinstance(following, ast.Expr) and isinstance(following.value, ast.Constant) and isinstance(following.value.value, str):
        return inspect.cleandoc(following.value.value)
    return None


# ---------------------------------------------------------------------------
# Symbol descriptions
# ---------------------------------------------------------------------------

def _type_params(node: ast.AST) -> tuple[str, ...]:
    return tuple(ast.unparse(p) for p in getattr(node, "type_params", None) or [])


def _parameter(arg: ast.arg, default: Optional[ast.expr], prefix: str = "") -> str:
    text = prefix + arg.arg
    if arg.annotation is not None:
        text += f": {ast.unparse(arg.annotation)}"
        if default is not None:
            text += f" = {ast.unparse(default)}"
    elif default is not None:
        text += f"={ast.unparse(default)}"
    return text


def describe_parameters(arguments: ast.arguments) -> tuple[str, ...]:
    positional = arguments.posonlyargs + arguments.args
    defaults: List[Optional[ast.expr]] = [None] * (len(positional) - len(arguments.defaults)) + list(arguments.defaults)

    parameters: List[str] = []
    for index, arg in enumerate(positional):
        parameters.append(_parameter(arg, defaults[index]))
        if arguments.posonlyargs and index == len(arguments.posonlyargs) - 1:
            parameters.append("/")

    if arguments.vararg is not None:
        parameters.append(_parameter(arguments.vararg, None, "*"))
    elif arguments.kwonlyargs:
        parameters.append("*")

    for arg, default in zip(arguments.kwonlyargs, arguments.kw_defaults):
        parameters.append(_parameter(arg, default))

    if arguments.kwarg is not None:
        parameters.append(_parameter(arguments.kwarg, None, "**"))
    return tuple(parameters)


def describe_function(node: ast.FunctionDef | ast.AsyncFunctionDef, kind: MemberKind) -> SymbolDescription:
    return SymbolDescription(
        kind=kind,
        name=node.name,
        modifiers=("async",) if isinstance(node, ast.AsyncFunctionDef) else (),
        decorators=tuple(ast.unparse(d) for d in node.decorator_list),
        type_params=_type_params(node),
        parameters=describe_parameters(node.args),
        returns=ast.unparse(node.returns) if node.returns is not None else None,
    )


def describe_class(node: ast.ClassDef) -> SymbolDescription:
    bases = [ast.unparse(b) for b in node.bases]
    bases += [f"{k.arg}={ast.unparse(k.value)}" if k.arg else f"**{ast.unparse(k.value)}" for k in node.keywords]
    return SymbolDescription(
        kind=MemberKind.CLASS,
        name=node.name,
        decorators=tuple(ast.unparse(d) for d in node.decorator_list),
        type_params=_type_params(node),
        bases=tuple(bases),
    )


def describe_attribute(name: str, node: ast.Assign | ast.AnnAssign) -> SymbolDescription:
    annotation = ast.unparse(node.annotation) if isinstance(node, ast.AnnAssign) else None
    value = ast.unparse(node.value) if node.value is not None else None
    return SymbolDescription(kind=MemberKind.ATTRIBUTE, name=name, annotation=annotation, value=value)


def assignment_targets(node: ast.stmt) -> List[str]:
    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
        return [node.target.id]
    if isinstance(node, ast.Assign):
        return [t.id for t in node.targets if isinstance(t, ast.Name)]
    return []


def defined_names(node: ast.stmt) -> List[str]:
    """Names a statement defines that may be documented."""
    if isinstance(node, (ast.ClassDef, ast.FunctionDef, ast.AsyncFunctionDef)):
        return [] if is_generated_member(node) else [node.name]
    return [name for name in assignment_targets(node) if not name.startswith("__")]


def iter_statements(body: List[ast.stmt]) -> Iterator[tuple[List[ast.stmt], int, ast.stmt]]:
    """Yield ``(block, index, statement)`` for ``body``, descending into if/try/with blocks."""
    for index, node in enumerate(body):
        if isinstance(node, ast.If):
            blocks = [node.body, node.orelse]
        elif isinstance(node, (ast.Try, ast.TryStar)):
            blocks = [node.body, *(handler.body for handler in node.handlers), node.orelse, node.finalbody]
        elif isinstance(node, (ast.With, ast.AsyncWith)):
            blocks = [node.body]
        else:
            yield body, index, node
            continue
        for block in blocks:
            yield from iter_statements(block)


def resolve_import(module: ModuleSource, node: ast.ImportFrom) -> Optional[str]:
    """Return the absolute module name a ``from ... import`` statement reads from."""
    if not node.level:
        return node.module
    package = module.name.split(".")
    if not module.path.endswith("__init__.py"):
        package = package[:-1]
    drop = node.level - 1
    if drop > len(package):
        return None
    parts = package[: len(package) - drop] + (node.module.split(".") if node.module else [])
    return ".".join(parts) or None


@dataclass(frozen=True)
class Definition:
    """Where a re-exported name is actually defined."""

    module: ModuleSource
    node: ast.stmt
    block: List[ast.stmt]
    index: int


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

class MemberExtractor:
    """Emit :class:`DocumentationMember` objects for the public surface of units."""

    def __init__(self, link_builder: Optional[LinkBuilder] = None) -> None:
        self._link_builder = link_builder

    def _member(
        self,
        module_name: str,
        module_path: str,
        qualname: str,
        symbol: SymbolDescription,
        docstring: Optional[str],
        line: int,
        link_builder: Optional[LinkBuilder],
    ) -> DocumentationMember:
        summary, remarks = split_docstring(docstring)
        builder = link_builder or self._link_builder
        link = builder(symbol.name, symbol.kind, module_path, line) if builder else SourceLink()
        return DocumentationMember.create(
            f"{module_name}.{qualname}",
            symbol.kind,
            display_name=qualname,
            summary=summary,
            remarks=remarks,
            declaration=format_declaration(symbol),
            module_path=module_path,
            line=line,
            source_link=link,
        )

    def _emit(
        self,
        module_name: str,
        module_path: str,
        block: List[ast.stmt],
        index: int,
        name: str,
        qualname: str,
        in_class: bool,
        link_builder: Optional[LinkBuilder],
    ) -> Iterator[DocumentationMember]:
        node = block[index]
        if isinstance(node, ast.ClassDef):
            yield self._member(module_name, module_path, qualname, describe_class(node), ast.get_docstring(node), node.lineno, link_builder)
            yield from self._walk_body(module_name, module_path, node.body, f"{qualname}.", None, link_builder)

        elif isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
            decorators = {ast.unparse(d) for d in node.decorator_list}
            if in_class and decorators & PROPERTY_DECORATORS:
                kind = MemberKind.PROPERTY
            else:
                kind = MemberKind.METHOD if in_class else MemberKind.FUNCTION
            yield self._member(module_name, module_path, qualname, describe_function(node, kind), ast.get_docstring(node), node.lineno, link_builder)

        else:
            assert isinstance(node, (ast.Assign, ast.AnnAssign))
            yield self._member(
                module_name, module_path, qualname, describe_attribute(name, node), attribute_docstring(block, index), node.lineno, link_builder
            )

    def _walk_body(
        self,
        module_name: str,
        module_path: str,
        body: List[ast.stmt],
        scope: str,
        exported: Optional[set[str]],
        link_builder: Optional[LinkBuilder],
    ) -> Iterator[DocumentationMember]:
        for block, index, node in iter_statements(body):
            for name in defined_names(node):
                if self._is_visible(name, exported):
                    yield from self._emit(module_name, module_path, block, index, name, f"{scope}{name}", bool(scope), link_builder)

    @staticmethod
    def _is_visible(name: str, exported: Optional[set[str]]) -> bool:
        if exported is not None:
            return name in exported
        return is_public_name(name)

    # --------------------------
    # Re-exports
    # --------------------------
    def find_definition(
        self,
        modules: Mapping[str, ModuleSource],
        module_name: str,
        name: str,
        visited: Optional[set[tuple[str, str]]] = None,
    ) -> Optional[Definition]:
        """Follow ``name`` from ``module_name`` through ``from ... import`` chains to its definition."""
        visited = set() if visited is None else visited
        module = modules.get(module_name)
        if module is None or (module_name, name) in visited:
            return None
        visited.add((module_name, name))

        statements = list(iter_statements(module.tree.body))
        for block, index, node in statements:
            if name in defined_names(node):
                return Definition(module, node, block, index)
        for _, _, node in statements:
            if not isinstance(node, ast.ImportFrom):
                continue
            for alias in node.names:
                if alias.name == "*" or (alias.asname or alias.name) != name:
                    continue
                source = resolve_import(module, node)
                found = self.find_definition(modules, source, alias.name, visited) if source else None
                if found is not None:
                    return found
        return None

    def extract_reexports(
        self,
        module: ModuleSource,
        modules: Mapping[str, ModuleSource],
        exported: Optional[set[str]],
        link_builder: Optional[LinkBuilder] = None,
    ) -> Iterator[DocumentationMember]:
        """Document names a public module imports from private modules of the same unit.

        Members are named after the public module; their location stays in
        the defining file.
        """
        for _, _, node in iter_statements(module.tree.body):
            if not isinstance(node, ast.ImportFrom):
                continue
            source = resolve_import(module, node)
            if source is None:
                continue
            for alias in node.names:
                public_name = alias.asname or alias.name
                if alias.name == "*" or not self._is_visible(public_name, exported):
                    continue
                definition = self.find_definition(modules, source, alias.name)
                # Public defining modules document the name themselves
                if definition is None or is_public_module(definition.module):
                    continue
                yield from self._emit(
                    module.name,
                    definition.module.path,
                    definition.block,
                    definition.index,
                    alias.name,
                    public_name,
                    False,
                    link_builder,
                )

    def extract_module(
        self,
        module: ModuleSource,
        link_builder: Optional[LinkBuilder] = None,
        modules: Optional[Mapping[str, ModuleSource]] = None,
    ) -> List[DocumentationMember]:
        """Return the members of one module.

        With ``modules`` (every module of the unit, by name) the names the
        module re-exports from private modules are documented too.
        """
        exported = read_dunder_all(module.tree)
        found = self._walk_body(module.name, module.path, module.tree.body, "", exported, link_builder)
        if modules is not None:
            found = chain(found, self.extract_reexports(module, modules, exported, link_builder))

        members: List[DocumentationMember] = []
        seen: set[str] = set()
        for member in found:
            # Conditional redefinitions share a name; the first definition wins
            if member.full_name in seen:
                continue
            seen.add(member.full_name)
            members.append(member)
        return members

    def extract_unit(
        self,
        unit: PackageUnit,
        sink: deque,
        link_builder: Optional[LinkBuilder] = None,
    ) -> int:
        """Append the members of every public module of ``unit`` to ``sink``.

        Private modules are only read through the names public modules
        re-export from them. A module that fails to extract is logged and
        skipped. Returns the number of members appended.
        """
        modules = {module.name: module for module in unit.modules}
        count = 0
        for module in unit.modules:
            if not is_public_module(module):
                continue
            try:
                members = self.extract_module(module, link_builder, modules=modules)
            except Exception as exc:
                logger.error("[EXTRACTOR] Failed to extract %s from %s: %s", module.name, unit, exc)
                continue
            sink.extend(members)
            count += len(members)
        logger.debug("[EXTRACTOR] Extracted %d members from %s", count, unit)
        return count
