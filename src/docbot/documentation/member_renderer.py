"""Render documentation members into Discord markdown."""

from __future__ import annotations

from typing import Optional

from docbot.datatypes.documentation_datatypes import DocumentationMember

DEFAULT_MAX_LENGTH = 2048
ELLIPSIS = "…"
NO_SUMMARY = "No summary provided."


def truncate(text: str, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Cap ``text`` at ``max_length`` characters.

    Longer text keeps its first ``max_length - 1`` characters and ends in an
    ellipsis, so the result is exactly ``max_length`` long. Slicing a ``str``
    counts code points, which keeps multi-byte characters whole.
    """
    if max_length < 1:
        raise ValueError("max_length must be positive")
    if len(text) <= max_length:
        return text
    return text[: max_length - 1] + ELLIPSIS


def render_member(member: DocumentationMember, link: Optional[str] = None, max_length: int = DEFAULT_MAX_LENGTH) -> str:
    """Build the markdown block shown for ``member``.

    The output depends only on the arguments; the resolved ``link`` is passed
    in at response time instead of being stored on the member.
    """
    sections = [
        f"## {member.full_name}",
        "### Summary",
        member.summary or NO_SUMMARY,
    ]
    if member.remarks:
        sections += ["### Remarks", member.remarks]
    sections += ["### Declaration", f"```py\n{member.declaration}\n```"]
    if link:
        sections.append(f"[View source]({link})")
    return truncate("\n".join(sections), max_length)
