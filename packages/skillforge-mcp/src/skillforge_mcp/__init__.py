"""SkillForge MCP: on-chain skills exposed as MCP tools."""
from __future__ import annotations

from skillforge_mcp.bridge import SkillBridge, build_bridge
from skillforge_mcp.chain import (
    ChainSkillClient,
    SkillPurchaser,
    SkillRegistryReader,
)
from skillforge_mcp.enrichment import SkillEnrichmentCache
from skillforge_mcp.invocation import InvocationResult, InvokerFactory, SkillInvoker
from skillforge_mcp.metadata import MetadataFetcher, normalize_pointer
from skillforge_mcp.naming import ToolNameAllocator, derive_tool_name
from skillforge_mcp.sync import (
    SyncReconciler,
    SyncScheduler,
    ToolRegistrar,
    tool_description,
)
from skillforge_mcp.types import EnrichedSkill, SyncReport

__all__ = [
    "ChainSkillClient",
    "EnrichedSkill",
    "InvocationResult",
    "InvokerFactory",
    "MetadataFetcher",
    "SkillBridge",
    "SkillEnrichmentCache",
    "SkillInvoker",
    "SkillPurchaser",
    "SkillRegistryReader",
    "SyncReconciler",
    "SyncReport",
    "SyncScheduler",
    "ToolNameAllocator",
    "ToolRegistrar",
    "build_bridge",
    "derive_tool_name",
    "normalize_pointer",
    "tool_description",
]
