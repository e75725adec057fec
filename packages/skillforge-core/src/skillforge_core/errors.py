from __future__ import annotations


class SkillforgeError(Exception):
    """Base exception for all SkillForge bridge errors."""


# ── Config Errors ────────────────────────────────────────────────────

class ConfigError(SkillforgeError):
    """Invalid or missing configuration."""


# ── Ledger Errors ────────────────────────────────────────────────────

class ChainError(SkillforgeError):
    """Base for ledger-related errors."""


class RegistryError(ChainError):
    """Reading the on-chain skill registry failed."""


class PaymentError(ChainError):
    """An on-chain skill purchase failed or could not be confirmed."""


# ── Backend Errors ───────────────────────────────────────────────────

class BackendError(SkillforgeError):
    """Error from the skill execution backend."""


class BackendUnavailableError(BackendError):
    """Execution backend is not reachable."""
