"""Tool name derivation: skill display names to MCP tool identifiers."""
from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_DISALLOWED_RE = re.compile(r"[^a-z0-9-]")


def derive_tool_name(display_name: str) -> str:
    """Turn a skill display name into a canonical tool identifier.

    Lowercases, replaces each whitespace run with a single hyphen and
    drops every character outside ``[a-z0-9-]``.  No length limit.

    >>> derive_tool_name("Text Tool")
    'text-tool'
    >>> derive_tool_name("Up/Down!!")
    'updown'

    Distinct display names may collapse to the same identifier
    (``"Foo!"`` and ``"Foo?"``); see :class:`ToolNameAllocator`.
    """
    name = _WHITESPACE_RE.sub("-", display_name.lower())
    return _DISALLOWED_RE.sub("", name)


class ToolNameAllocator:
    """Assigns stable tool identifiers to skill ids for the process lifetime.

    The first skill id to claim a derived name owns it.  A different
    skill id deriving the same name later gets ``<name>-<skill_id>``;
    a name that derives to nothing becomes ``skill-<skill_id>``.
    Ownership never changes once assigned.
    """

    def __init__(self) -> None:
        self._owners: dict[str, int] = {}

    def allocate(self, display_name: str, skill_id: int) -> str:
        base = derive_tool_name(display_name) or f"skill-{skill_id}"
        owner = self._owners.setdefault(base, skill_id)
        if owner == skill_id:
            return base

        fallback = f"{base}-{skill_id}"
        owner = self._owners.setdefault(fallback, skill_id)
        if owner != skill_id:
            # Only reachable if some display name literally derives to the fallback.
            fallback = f"skill-{skill_id}"
            self._owners.setdefault(fallback, skill_id)
        return fallback

    def owner_of(self, tool_name: str) -> int | None:
        return self._owners.get(tool_name)
