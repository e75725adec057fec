"""Skill enrichment: joins registry entries with cached off-chain metadata."""
from __future__ import annotations

import asyncio
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any

from skillforge_core.logging import get_logger

from skillforge_mcp.types import DEFAULT_CATEGORY, DEFAULT_DESCRIPTION, EnrichedSkill

if TYPE_CHECKING:
    from skillforge_mcp.metadata import MetadataFetcher

logger = get_logger("mcp.enrichment")

# Positional layout of a registry tuple as returned by getAllSkills().
_FIELDS = (
    "skillId",
    "creator",
    "pricePerUse",
    "metadataURI",
    "isActive",
    "totalCalls",
)

# Other spellings accepted for records that arrive as mappings.
_ALIASES = {
    "metadataURI": ("metadataPointer",),
}

_TRUE = frozenset({"true", "1", "yes"})
_FALSE = frozenset({"false", "0", "no", ""})


def _field(raw: Any, index: int) -> Any:
    """Read a registry field by name, falling back to its tuple position.

    Returns None for a field the record does not carry.
    """
    name = _FIELDS[index]
    names = (name, *_ALIASES.get(name, ()))
    if isinstance(raw, Mapping):
        for key in names:
            if key in raw:
                return raw[key]
        return raw.get(index)
    for key in names:
        value = getattr(raw, key, None)
        if value is not None:
            return value
    if isinstance(raw, Sequence) and not isinstance(raw, (str, bytes)):
        return raw[index] if index < len(raw) else None
    msg = f"Unrecognized registry record shape: {type(raw).__name__}"
    raise TypeError(msg)


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        text = value.strip()
        return int(text, 16) if text.lower().startswith("0x") else int(text)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    msg = f"Expected an integer, got {value!r}"
    raise TypeError(msg)


def _to_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    msg = f"Expected a boolean, got {value!r}"
    raise TypeError(msg)


def _count(value: Any) -> int:
    return 0 if value is None else _to_int(value)


def skill_id_of(raw: Any) -> int:
    return _to_int(_field(raw, 0))


def base_skill(raw: Any) -> EnrichedSkill:
    """Build an EnrichedSkill carrying only registry fields and defaults.

    Missing price and call counters read as 0.  A record without a
    decodable ``skillId`` raises TypeError or ValueError.
    """
    skill_id = skill_id_of(raw)
    metadata_uri = _field(raw, 3)
    return EnrichedSkill(
        skill_id=skill_id,
        creator=str(_field(raw, 1) or ""),
        price_per_use=_count(_field(raw, 2)),
        metadata_uri=str(metadata_uri or ""),
        is_active=_to_bool(_field(raw, 4)),
        total_calls=_count(_field(raw, 5)),
        name=f"Skill #{skill_id}",
    )


def apply_metadata(skill: EnrichedSkill, metadata: Mapping[str, Any]) -> EnrichedSkill:
    """Overlay fetched metadata onto a skill; missing or empty fields keep defaults."""
    tags = metadata.get("tags")
    image = metadata.get("image")
    return EnrichedSkill(
        skill_id=skill.skill_id,
        creator=skill.creator,
        price_per_use=skill.price_per_use,
        metadata_uri=skill.metadata_uri,
        is_active=skill.is_active,
        total_calls=skill.total_calls,
        name=str(metadata.get("name") or skill.name),
        description=str(metadata.get("description") or DEFAULT_DESCRIPTION),
        category=str(metadata.get("category") or DEFAULT_CATEGORY),
        image=str(image) if image else None,
        tags=tuple(str(t) for t in tags) if isinstance(tags, list) else (),
    )


class SkillEnrichmentCache:
    """Memoizes enriched skills by skill id.

    A hit is served as-is, even if the registry's counters have moved
    on since it was cached; read fresh counters from the raw records.
    Entries are only ever dropped by :meth:`clear`.
    """

    def __init__(
        self,
        fetcher: MetadataFetcher,
        max_concurrent_fetches: int = 8,
    ) -> None:
        self._fetcher = fetcher
        self._entries: dict[str, EnrichedSkill] = {}
        self._fetch_slots = asyncio.Semaphore(max_concurrent_fetches)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, skill_id: object) -> bool:
        return str(skill_id) in self._entries

    def get(self, skill_id: int | str) -> EnrichedSkill | None:
        return self._entries.get(str(skill_id))

    def clear(self) -> None:
        self._entries.clear()

    async def enrich(self, raw: Any) -> EnrichedSkill:
        skill = base_skill(raw)
        cached = self._entries.get(skill.cache_key)
        if cached is not None:
            return cached

        if skill.metadata_uri:
            async with self._fetch_slots:
                metadata = await self._fetcher.fetch(skill.metadata_uri)
            if metadata is not None:
                skill = apply_metadata(skill, metadata)
            else:
                logger.debug(
                    "Could not fetch metadata for skill %d; using defaults",
                    skill.skill_id,
                )

        # A concurrent enrich() of the same id may have finished first.
        return self._entries.setdefault(skill.cache_key, skill)

    async def enrich_all(self, raws: Sequence[Any]) -> list[EnrichedSkill]:
        """Enrich concurrently; results keep the input order.

        Records that cannot be decoded are logged and left out, so one
        bad entry never costs the rest of the registry.
        """
        results = await asyncio.gather(*(self._enrich_or_skip(r) for r in raws))
        return [skill for skill in results if skill is not None]

    async def _enrich_or_skip(self, raw: Any) -> EnrichedSkill | None:
        try:
            return await self.enrich(raw)
        except (TypeError, ValueError) as exc:
            logger.warning("Skipping malformed registry record %r: %s", raw, exc)
            return None
