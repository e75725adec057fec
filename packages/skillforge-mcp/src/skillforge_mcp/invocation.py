"""Skill invocation: forwards tool calls to the SkillForge execution backend."""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
from skillforge_core.errors import BackendError, BackendUnavailableError, PaymentError
from skillforge_core.logging import get_logger

if TYPE_CHECKING:
    from skillforge_core.config import BackendConfig

    from skillforge_mcp.chain import SkillPurchaser
    from skillforge_mcp.types import EnrichedSkill

logger = get_logger("mcp.invocation")


@dataclass(frozen=True, slots=True)
class InvocationResult:
    """Text result of a tool call, flagged when it reports a failure."""

    text: str
    is_error: bool = False

    def to_envelope(self) -> dict[str, Any]:
        envelope: dict[str, Any] = {
            "content": [{"type": "text", "text": self.text}],
        }
        if self.is_error:
            envelope["isError"] = True
        return envelope


def _status_message(exc: httpx.HTTPStatusError) -> str:
    """Prefer the backend's own ``{"error": ...}`` text over the HTTP status."""
    try:
        body = exc.response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return str(exc)


class SkillInvoker:
    """Executes one skill, bound at registration time.

    The bound :class:`EnrichedSkill` is a snapshot: a call that starts
    just before a sync pass replaces this invoker still uses the
    previous pass's price and description.
    """

    def __init__(
        self,
        skill: EnrichedSkill,
        *,
        backend: BackendConfig,
        buyer: str,
        client: httpx.AsyncClient,
        purchaser: SkillPurchaser | None = None,
    ) -> None:
        self.skill = skill
        self._backend = backend
        self._buyer = buyer
        self._client = client
        self._purchaser = purchaser

    async def __call__(self, input: str) -> InvocationResult:  # noqa: A002
        skill = self.skill
        logger.info(
            "Requested execution of skill: %s (%d)", skill.name, skill.skill_id
        )
        try:
            result = await self._execute(input)
        except Exception as exc:
            logger.error("Execution error for skill %d: %s", skill.skill_id, exc)
            message = str(exc) or repr(exc)
            return InvocationResult(
                text=f'Error executing skill "{skill.name}": {message}',
                is_error=True,
            )

        return InvocationResult(
            text=(
                "Skill executed successfully!\nResult:\n"
                f"{json.dumps(result, indent=2)}"
            ),
        )

    async def _execute(self, input: str) -> Any:  # noqa: A002
        payload: dict[str, Any] = {
            "skillId": self.skill.skill_id,
            "input": input,
            "buyer": self._buyer,
        }
        if self._purchaser is not None and self.skill.price_per_use > 0:
            payload["transactionId"] = await self._purchase(self._purchaser)

        logger.debug("Calling API %s", self._backend.execute_url)
        try:
            response = await self._client.post(
                self._backend.execute_url,
                json=payload,
                timeout=self._backend.timeout_seconds,
            )
            response.raise_for_status()
        except httpx.ConnectError as exc:
            msg = (
                f"Backend server unreachable at {self._backend.api_url}. "
                "Ensure the SkillForge app is running."
            )
            raise BackendUnavailableError(msg) from exc
        except httpx.HTTPStatusError as exc:
            raise BackendError(_status_message(exc)) from exc
        return response.json()

    async def _purchase(self, purchaser: SkillPurchaser) -> str:
        try:
            return await purchaser.purchase_skill(
                self.skill.skill_id, self.skill.price_per_use
            )
        except PaymentError:
            raise
        except Exception as exc:
            msg = f"Payment for skill #{self.skill.skill_id} failed: {exc}"
            raise PaymentError(msg) from exc


class InvokerFactory:
    """Builds invokers that share one backend client and config."""

    def __init__(
        self,
        backend: BackendConfig,
        buyer: str,
        client: httpx.AsyncClient | None = None,
        purchaser: SkillPurchaser | None = None,
    ) -> None:
        self._backend = backend
        self._buyer = buyer
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None
        self._purchaser = purchaser

    def __call__(self, skill: EnrichedSkill) -> SkillInvoker:
        return SkillInvoker(
            skill,
            backend=self._backend,
            buyer=self._buyer,
            client=self._client,
            purchaser=self._purchaser,
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
