"""Registry-to-tool synchronization and its periodic scheduler."""
from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from skillforge_core.logging import get_logger

from skillforge_mcp.naming import ToolNameAllocator
from skillforge_mcp.types import SyncReport

if TYPE_CHECKING:
    from skillforge_mcp.chain import SkillRegistryReader
    from skillforge_mcp.enrichment import SkillEnrichmentCache
    from skillforge_mcp.invocation import InvocationResult
    from skillforge_mcp.types import EnrichedSkill

logger = get_logger("mcp.sync")

Invoker = Callable[[str], Awaitable["InvocationResult"]]


@runtime_checkable
class ToolRegistrar(Protocol):
    """Where synchronized tools are published.

    ``register`` must be idempotent by name: registering an existing
    name rebinds it to the new invoker.
    """

    def register(self, name: str, description: str, invoker: Invoker) -> None: ...


def tool_description(skill: EnrichedSkill) -> str:
    return f"{skill.description}\n(SkillForge ID: {skill.skill_id})"


class SyncReconciler:
    """Keeps the published tool set in step with the on-chain registry.

    Each pass clears the enrichment cache (when ``clear_cache_each_pass``
    is set), re-reads the registry, enriches every record, and
    (re-)registers each active skill under its tool name with a fresh
    invoker bound to this pass's snapshot.  Tools are never
    unregistered: a skill that disappears or turns inactive keeps its
    last handler.  At most one pass runs at a time; overlapping calls
    return immediately with ``skipped=True``.
    """

    def __init__(
        self,
        reader: SkillRegistryReader,
        cache: SkillEnrichmentCache,
        registrar: ToolRegistrar,
        invoker_factory: Callable[[EnrichedSkill], Invoker],
        *,
        clear_cache_each_pass: bool = True,
        allocator: ToolNameAllocator | None = None,
    ) -> None:
        self._reader = reader
        self._cache = cache
        self._registrar = registrar
        self._invoker_factory = invoker_factory
        self._clear_cache = clear_cache_each_pass
        self._names = allocator or ToolNameAllocator()
        self._known: set[str] = set()
        self._active: tuple[EnrichedSkill, ...] = ()
        self._lock = asyncio.Lock()
        self._passes = 0

    @property
    def known_tools(self) -> frozenset[str]:
        return frozenset(self._known)

    @property
    def active_skills(self) -> tuple[EnrichedSkill, ...]:
        """Active skills from the last pass that read the registry."""
        return self._active

    @property
    def in_progress(self) -> bool:
        return self._lock.locked()

    @property
    def passes(self) -> int:
        return self._passes

    async def sync(self) -> SyncReport:
        """Run one pass.  Never raises; failures end only this pass."""
        if self._lock.locked():
            logger.warning("Sync pass already in progress; skipping")
            return SyncReport(
                registered_count=len(self._known),
                active_count=len(self._active),
                skipped=True,
            )

        async with self._lock:
            self._passes += 1
            try:
                return await self._run_pass()
            except Exception as exc:
                logger.exception("Sync pass %d failed", self._passes)
                return SyncReport(
                    registered_count=len(self._known),
                    active_count=0,
                    error=str(exc) or repr(exc),
                )

    async def _run_pass(self) -> SyncReport:
        if self._clear_cache:
            self._cache.clear()

        try:
            raws = await self._reader.read_all()
        except Exception as exc:
            logger.error("Failed to list skills from blockchain: %s", exc)
            return SyncReport(
                registered_count=len(self._known),
                active_count=0,
                error=str(exc) or repr(exc),
            )

        skills = await self._cache.enrich_all(raws)
        active = tuple(s for s in skills if s.is_active)

        new_tools: list[str] = []
        for skill in active:
            name = self._names.allocate(skill.name, skill.skill_id)
            try:
                self._registrar.register(
                    name, tool_description(skill), self._invoker_factory(skill)
                )
            except Exception:
                logger.exception(
                    "Could not register tool %s (skill #%d)", name, skill.skill_id
                )
                continue
            if name not in self._known:
                self._known.add(name)
                new_tools.append(name)
                logger.info("Registered new tool: %s (skill #%d)", name, skill.skill_id)

        self._active = active
        logger.info("%d active skills available", len(active))
        return SyncReport(
            registered_count=len(self._known),
            active_count=len(active),
            new_tools=tuple(new_tools),
        )


class SyncScheduler:
    """Re-runs a reconciler on a fixed interval until stopped.

    The first tick happens one interval after :meth:`start`; the
    startup pass is expected to be run explicitly before serving.
    """

    def __init__(
        self, reconciler: SyncReconciler, interval_seconds: float = 300.0
    ) -> None:
        if interval_seconds <= 0:
            msg = f"interval_seconds must be positive, got {interval_seconds}"
            raise ValueError(msg)
        self._reconciler = reconciler
        self._interval = interval_seconds
        self._task: asyncio.Task[None] | None = None
        self._stopped = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Spawn the background sync loop."""
        if self.running:
            logger.warning("Sync scheduler already running")
            return
        self._stopped.clear()
        self._task = asyncio.get_running_loop().create_task(self._loop())
        logger.info("Sync scheduler started (every %.0fs)", self._interval)

    async def stop(self) -> None:
        """Stop the loop, cancelling a pass that is still in flight."""
        self._stopped.set()
        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        logger.info("Sync scheduler stopped")

    async def _loop(self) -> None:
        while not self._stopped.is_set():
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._stopped.wait(), timeout=self._interval)
            if self._stopped.is_set():
                break
            report = await self._reconciler.sync()
            logger.debug(
                "Scheduled sync: %d active, %d known tools",
                report.active_count,
                report.registered_count,
            )
