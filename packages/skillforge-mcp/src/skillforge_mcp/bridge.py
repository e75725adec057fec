"""Bridge assembly: wires fetcher, cache, ledger, invokers and the reconciler."""
from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from skillforge_core.logging import get_logger

from skillforge_mcp.chain import ChainSkillClient
from skillforge_mcp.enrichment import SkillEnrichmentCache
from skillforge_mcp.invocation import InvokerFactory
from skillforge_mcp.metadata import MetadataFetcher
from skillforge_mcp.sync import SyncReconciler, SyncScheduler

if TYPE_CHECKING:
    import httpx
    from skillforge_core.config import BridgeConfig

    from skillforge_mcp.chain import SkillPurchaser, SkillRegistryReader
    from skillforge_mcp.sync import ToolRegistrar
    from skillforge_mcp.types import SyncReport

logger = get_logger("mcp.bridge")


class SkillBridge:
    """One running bridge instance and everything it owns.

    All registration state lives on the reconciler, so independent
    bridges never share tools or cache entries.
    """

    def __init__(
        self,
        reconciler: SyncReconciler,
        scheduler: SyncScheduler,
        cache: SkillEnrichmentCache,
        closers: list[Callable[[], Awaitable[None]]] | None = None,
    ) -> None:
        self.reconciler = reconciler
        self.scheduler = scheduler
        self.cache = cache
        self._closers = closers or []

    async def start(self) -> SyncReport:
        """Run the startup pass, then hand over to the periodic scheduler."""
        report = await self.reconciler.sync()
        logger.info(
            "Registered %d skills as tools (%d active)",
            report.registered_count,
            report.active_count,
        )
        self.scheduler.start()
        return report

    async def stop(self) -> None:
        await self.scheduler.stop()
        for close in self._closers:
            try:
                await close()
            except Exception:
                logger.exception("Error while closing bridge resources")


def build_bridge(
    config: BridgeConfig,
    registrar: ToolRegistrar,
    *,
    reader: SkillRegistryReader | None = None,
    purchaser: SkillPurchaser | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> SkillBridge:
    """Assemble a bridge from config.

    Without an explicit ``reader`` a :class:`ChainSkillClient` is built,
    which raises ``ConfigError`` when the signing key is missing.
    ``http_client`` is shared by metadata fetches and backend calls
    when given; otherwise each owns (and closes) its own.
    """
    if reader is None:
        chain = ChainSkillClient(config.chain)
        reader = chain
        purchaser = purchaser or chain

    fetcher = MetadataFetcher(
        config.metadata.gateways,
        config.metadata.timeout_seconds,
        client=http_client,
    )
    cache = SkillEnrichmentCache(fetcher, config.metadata.max_concurrent_fetches)
    invokers = InvokerFactory(
        config.backend,
        buyer=reader.account_address,
        client=http_client,
        purchaser=purchaser if config.pay_per_call else None,
    )
    reconciler = SyncReconciler(
        reader,
        cache,
        registrar,
        invokers,
        clear_cache_each_pass=config.sync.clear_cache_each_pass,
    )
    scheduler = SyncScheduler(reconciler, config.sync.interval_seconds)
    return SkillBridge(
        reconciler,
        scheduler,
        cache,
        closers=[fetcher.aclose, invokers.aclose],
    )
