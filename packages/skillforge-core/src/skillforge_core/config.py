from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from skillforge_core.errors import ConfigError

DEFAULT_RPC_URL = "https://testnet-rpc.monad.xyz"
DEFAULT_API_URL = "http://localhost:3000"
DEFAULT_GATEWAYS: tuple[str, ...] = (
    "https://gateway.pinata.cloud/ipfs/",
    "https://ipfs.io/ipfs/",
    "https://dweb.link/ipfs/",
)


# ── Env helpers ──────────────────────────────────────────────────────

def _env_str(env: Mapping[str, str], name: str, default: str = "") -> str:
    raw = env.get(name)
    if raw is None:
        return default
    return raw.strip() or default


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        msg = f"{name} must be an integer, got {raw!r}"
        raise ConfigError(msg) from None


def _env_float(env: Mapping[str, str], name: str, default: float) -> float:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        msg = f"{name} must be a number, got {raw!r}"
        raise ConfigError(msg) from None


def _env_flag(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() not in {"0", "false", "no", "off"}


def _env_list(
    env: Mapping[str, str], name: str, default: tuple[str, ...]
) -> tuple[str, ...]:
    raw = env.get(name)
    if raw is None:
        return default
    items = tuple(p.strip() for p in raw.split(",") if p.strip())
    return items or default


# ── Sections ─────────────────────────────────────────────────────────

@dataclass(frozen=True, slots=True)
class ChainConfig:
    registry_address: str = ""
    payment_address: str = ""
    rpc_url: str = DEFAULT_RPC_URL
    private_key: str | None = field(default=None, repr=False)

    def require_private_key(self) -> str:
        """Return the signing key or fail; a bridge cannot run without one."""
        if not self.private_key:
            msg = "PRIVATE_KEY environment variable is required"
            raise ConfigError(msg)
        return self.private_key


@dataclass(frozen=True, slots=True)
class BackendConfig:
    api_url: str = DEFAULT_API_URL
    execute_path: str = "/api/agent"
    timeout_seconds: float = 60.0

    @property
    def execute_url(self) -> str:
        path = self.execute_path if self.execute_path.startswith("/") else f"/{self.execute_path}"
        return f"{self.api_url.rstrip('/')}{path}"


@dataclass(frozen=True, slots=True)
class MetadataConfig:
    gateways: tuple[str, ...] = DEFAULT_GATEWAYS
    timeout_seconds: float = 2.0
    max_concurrent_fetches: int = 8


@dataclass(frozen=True, slots=True)
class SyncConfig:
    interval_seconds: float = 300.0
    clear_cache_each_pass: bool = True


@dataclass(frozen=True, slots=True)
class ServerConfig:
    name: str = "skillforge-mcp"
    host: str = "0.0.0.0"
    port: int = 3001
    log_level: str = "INFO"
    json_logs: bool = False


@dataclass(frozen=True, slots=True)
class BridgeConfig:
    """Top-level configuration, read once from the environment at startup."""
    chain: ChainConfig = field(default_factory=ChainConfig)
    backend: BackendConfig = field(default_factory=BackendConfig)
    metadata: MetadataConfig = field(default_factory=MetadataConfig)
    sync: SyncConfig = field(default_factory=SyncConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    pay_per_call: bool = False

    @classmethod
    def from_env(
        cls,
        env_file: Path | str | None = None,
        environ: Mapping[str, str] | None = None,
    ) -> BridgeConfig:
        """Load config from the process environment.

        A ``.env`` file (``env_file`` or ``./.env``) is loaded first
        without overriding variables that are already set.  Passing
        ``environ`` skips the ``.env`` file and reads only that mapping.
        """
        if environ is None:
            path = Path(env_file) if env_file is not None else Path.cwd() / ".env"
            if path.exists():
                load_dotenv(dotenv_path=path, override=False)
            environ = os.environ
        return cls._from_env(environ)

    @classmethod
    def _from_env(cls, env: Mapping[str, str]) -> BridgeConfig:
        interval_ms = _env_int(env, "SKILLFORGE_SYNC_INTERVAL_MS", 300_000)
        if interval_ms <= 0:
            msg = f"SKILLFORGE_SYNC_INTERVAL_MS must be positive, got {interval_ms}"
            raise ConfigError(msg)
        max_fetches = _env_int(env, "SKILLFORGE_MAX_METADATA_FETCHES", 8)
        if max_fetches <= 0:
            msg = f"SKILLFORGE_MAX_METADATA_FETCHES must be positive, got {max_fetches}"
            raise ConfigError(msg)

        return cls(
            chain=ChainConfig(
                registry_address=_env_str(
                    env, "NEXT_PUBLIC_SKILL_REGISTRY_ADDRESS"
                ).lower(),
                payment_address=_env_str(
                    env, "NEXT_PUBLIC_PAYMENT_CONTRACT_ADDRESS"
                ).lower(),
                rpc_url=_env_str(env, "MONAD_RPC_URL", DEFAULT_RPC_URL),
                private_key=_env_str(env, "PRIVATE_KEY") or None,
            ),
            backend=BackendConfig(
                api_url=_env_str(env, "SKILLFORGE_API_URL", DEFAULT_API_URL),
                execute_path=_env_str(
                    env, "SKILLFORGE_EXECUTE_PATH", "/api/agent"
                ),
                timeout_seconds=_env_float(
                    env, "SKILLFORGE_BACKEND_TIMEOUT", 60.0
                ),
            ),
            metadata=MetadataConfig(
                gateways=_env_list(
                    env, "SKILLFORGE_IPFS_GATEWAYS", DEFAULT_GATEWAYS
                ),
                timeout_seconds=_env_float(
                    env, "SKILLFORGE_METADATA_TIMEOUT", 2.0
                ),
                max_concurrent_fetches=max_fetches,
            ),
            sync=SyncConfig(interval_seconds=interval_ms / 1000),
            server=ServerConfig(
                host=_env_str(env, "HOST", "0.0.0.0"),
                port=_env_int(env, "PORT", 3001),
                log_level=_env_str(env, "LOG_LEVEL", "INFO"),
                json_logs=_env_flag(env, "LOG_JSON"),
            ),
            pay_per_call=_env_flag(env, "SKILLFORGE_PAY_PER_CALL"),
        )
