"""Value types shared by the SkillForge bridge."""
from __future__ import annotations

from dataclasses import dataclass

DEFAULT_DESCRIPTION = "No description available"
DEFAULT_CATEGORY = "General"


@dataclass(frozen=True, slots=True)
class EnrichedSkill:
    """A registry entry joined with its resolved off-chain metadata.

    Immutable: every sync pass builds new values, and each registered
    tool handler is bound to the value current when it was registered.
    Numeric fields are plain ``int`` so identifiers, prices (smallest
    currency unit) and counters never lose precision.
    """

    skill_id: int
    creator: str
    price_per_use: int
    metadata_uri: str
    is_active: bool
    total_calls: int
    name: str
    description: str = DEFAULT_DESCRIPTION
    category: str = DEFAULT_CATEGORY
    image: str | None = None
    tags: tuple[str, ...] = ()

    @property
    def cache_key(self) -> str:
        return str(self.skill_id)


@dataclass(frozen=True, slots=True)
class SyncReport:
    """Outcome of one synchronization pass."""

    registered_count: int
    active_count: int
    new_tools: tuple[str, ...] = ()
    skipped: bool = False
    error: str | None = None
