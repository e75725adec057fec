"""Ledger access: the on-chain SkillRegistry and SkillPayment contracts."""
from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

from eth_account import Account
from skillforge_core.errors import ConfigError, PaymentError, RegistryError
from skillforge_core.logging import get_logger
from web3 import AsyncHTTPProvider, AsyncWeb3
from web3.logs import DISCARD

if TYPE_CHECKING:
    from skillforge_core.config import ChainConfig

logger = get_logger("mcp.chain")

_SKILL_TUPLE: list[dict[str, str]] = [
    {"name": "skillId", "type": "uint256"},
    {"name": "creator", "type": "address"},
    {"name": "pricePerUse", "type": "uint256"},
    {"name": "metadataURI", "type": "string"},
    {"name": "isActive", "type": "bool"},
    {"name": "totalCalls", "type": "uint256"},
]

SKILL_REGISTRY_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "getAllSkills",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [
            {"name": "", "type": "tuple[]", "components": _SKILL_TUPLE},
        ],
    },
    {
        "type": "function",
        "name": "getSkill",
        "stateMutability": "view",
        "inputs": [{"name": "skillId", "type": "uint256"}],
        "outputs": _SKILL_TUPLE,
    },
    {
        "type": "function",
        "name": "getTotalSkills",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

SKILL_PAYMENT_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "purchaseSkill",
        "stateMutability": "payable",
        "inputs": [{"name": "skillId", "type": "uint256"}],
        "outputs": [{"name": "", "type": "bytes32"}],
    },
    {
        "type": "event",
        "name": "SkillPurchased",
        "anonymous": False,
        "inputs": [
            {"name": "transactionId", "type": "bytes32", "indexed": True},
            {"name": "skillId", "type": "uint256", "indexed": True},
            {"name": "buyer", "type": "address", "indexed": True},
            {"name": "amount", "type": "uint256", "indexed": False},
        ],
    },
]


@runtime_checkable
class SkillRegistryReader(Protocol):
    """Read-only view of the skill registry."""

    @property
    def account_address(self) -> str: ...
    async def read_all(self) -> list[Any]: ...


@runtime_checkable
class SkillPurchaser(Protocol):
    """Pays for a single skill call on-chain."""

    async def purchase_skill(self, skill_id: int, price: int) -> str: ...


class ChainSkillClient:
    """web3-backed registry reader and skill purchaser.

    Raises:
        ConfigError: At construction, if the signing key or registry
            address is missing or the key is malformed.
    """

    def __init__(self, config: ChainConfig) -> None:
        private_key = config.require_private_key()
        if not config.registry_address:
            msg = "NEXT_PUBLIC_SKILL_REGISTRY_ADDRESS environment variable is required"
            raise ConfigError(msg)

        try:
            self._account = Account.from_key(private_key)
        except (ValueError, TypeError) as exc:
            msg = f"PRIVATE_KEY is not a valid signing key: {exc}"
            raise ConfigError(msg) from None

        self._w3 = AsyncWeb3(AsyncHTTPProvider(config.rpc_url))
        self._registry = self._w3.eth.contract(
            address=AsyncWeb3.to_checksum_address(config.registry_address),
            abi=SKILL_REGISTRY_ABI,
        )
        self._payment = (
            self._w3.eth.contract(
                address=AsyncWeb3.to_checksum_address(config.payment_address),
                abi=SKILL_PAYMENT_ABI,
            )
            if config.payment_address
            else None
        )

        logger.debug(
            "ChainSkillClient initialized. Registry: %s, Payment: %s, Account: %s",
            config.registry_address,
            config.payment_address or "(none)",
            self._account.address,
        )

    @property
    def account_address(self) -> str:
        return self._account.address

    async def read_all(self) -> list[Any]:
        """Return every registry record as decoded positional tuples."""
        logger.debug("Fetching all skills from blockchain...")
        try:
            raw = await self._registry.functions.getAllSkills().call()
        except Exception as exc:
            msg = f"getAllSkills failed: {exc}"
            raise RegistryError(msg) from exc

        if not isinstance(raw, (list, tuple)):
            msg = "getAllSkills did not return an array"
            raise RegistryError(msg)

        logger.info("Found %d skills on blockchain", len(raw))
        return list(raw)

    async def get_skill(self, skill_id: int) -> Any:
        try:
            return await self._registry.functions.getSkill(skill_id).call()
        except Exception as exc:
            msg = f"getSkill({skill_id}) failed: {exc}"
            raise RegistryError(msg) from exc

    async def total_skills(self) -> int:
        try:
            return int(await self._registry.functions.getTotalSkills().call())
        except Exception as exc:
            msg = f"getTotalSkills failed: {exc}"
            raise RegistryError(msg) from exc

    async def purchase_skill(self, skill_id: int, price: int) -> str:
        """Buy one call of a skill and return the on-chain transaction id.

        Sends ``purchaseSkill`` with ``price`` attached, waits for the
        receipt and reads the ``SkillPurchased`` event.  Not retried.
        """
        if self._payment is None:
            msg = "NEXT_PUBLIC_PAYMENT_CONTRACT_ADDRESS is not configured"
            raise PaymentError(msg)

        address = self._account.address
        logger.info(
            "Purchasing skill #%d for %d wei from %s...", skill_id, price, address
        )
        try:
            nonce = await self._w3.eth.get_transaction_count(address)
            tx = await self._payment.functions.purchaseSkill(skill_id).build_transaction(
                {"from": address, "value": price, "nonce": nonce}
            )
            signed = self._account.sign_transaction(tx)
            tx_hash = await self._w3.eth.send_raw_transaction(signed.raw_transaction)
            logger.info(
                "Transaction sent: %s. Waiting for confirmation...",
                AsyncWeb3.to_hex(tx_hash),
            )
            receipt = await self._w3.eth.wait_for_transaction_receipt(tx_hash)
        except Exception as exc:
            logger.error("Failed to purchase skill: %s", exc)
            msg = f"Purchase of skill #{skill_id} failed: {exc}"
            raise PaymentError(msg) from exc

        if receipt["status"] != 1:
            msg = f"Transaction failed: {AsyncWeb3.to_hex(tx_hash)}"
            raise PaymentError(msg)

        events = self._payment.events.SkillPurchased().process_receipt(
            receipt, errors=DISCARD
        )
        if not events:
            msg = "SkillPurchased event not found in transaction logs"
            raise PaymentError(msg)

        transaction_id = AsyncWeb3.to_hex(events[0]["args"]["transactionId"])
        logger.info("Skill purchased successfully. Transaction ID: %s", transaction_id)
        return transaction_id
