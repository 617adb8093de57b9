"""Pure functions turning a :class:`SymbolDescription` into Python declaration text."""

from __future__ import annotations

from docbot.datatypes.documentation_datatypes import MemberKind, SymbolDescription

MAX_LINE_WIDTH = 88
MAX_VALUE_WIDTH = 80
INDENT = "    "


def shorten_value(value: str, width: int = MAX_VALUE_WIDTH) -> str:
    """Collapse a long default or assigned value to ``...``."""
    single_line = " ".join(value.split())
    return single_line if len(single_line) <= width else "..."


def format_type_params(symbol: SymbolDescription) -> str:
    return f"[{', '.join(symbol.type_params)}]" if symbol.type_params else ""


def format_parameters(prefix: str, parameters: tuple[str, ...], suffix: str) -> str:
    """Lay out a parameter list on one line, or one parameter per line when too wide."""
    one_line = f"{prefix}({', '.join(parameters)}){suffix}"
    if len(one_line) <= MAX_LINE_WIDTH or not parameters:
        return one_line
    body = "".join(f"{INDENT}{parameter},\n" for parameter in parameters)
    return f"{prefix}(\n{body}){suffix}"


def format_class(symbol: SymbolDescription) -> str:
    prefix = f"class {symbol.name}{format_type_params(symbol)}"
    if not symbol.bases:
        return f"{prefix}: ..."
    return format_parameters(prefix, symbol.bases, ": ...")


def format_function(symbol: SymbolDescription) -> str:
    keyword = "async def" if "async" in symbol.modifiers else "def"
    prefix = f"{keyword} {symbol.name}{format_type_params(symbol)}"
    suffix = f" -> {symbol.returns}: ..." if symbol.returns else ": ..."
    return format_parameters(prefix, symbol.parameters, suffix)


def format_attribute(symbol: SymbolDescription) -> str:
    text = symbol.name
    if symbol.annotation:
        text += f": {symbol.annotation}"
    if symbol.value is not None:
        text += f" = {shorten_value(symbol.value)}"
    return text


def format_declaration(symbol: SymbolDescription) -> str:
    """Render ``symbol`` as the declaration a reader would see in the source."""
    lines = [f"@{decorator}" for decorator in symbol.decorators]
    if symbol.kind is MemberKind.CLASS:
        lines.append(format_class(symbol))
    elif symbol.kind is MemberKind.ATTRIBUTE:
        lines.append(format_attribute(symbol))
    else:
        lines.append(format_function(symbol))
    return "\n".join(lines)
