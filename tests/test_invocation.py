from __future__ import annotations

import json

import httpx
import pytest
from skillforge_core.config import BackendConfig
from skillforge_core.errors import BackendError, BackendUnavailableError, PaymentError
from skillforge_mcp.invocation import InvocationResult, InvokerFactory, SkillInvoker
from skillforge_mcp.types import EnrichedSkill

from fakes import BUYER, mock_client

BACKEND = BackendConfig(api_url="http://localhost:3000")


def _skill(**overrides) -> EnrichedSkill:
    fields = {
        "skill_id": 7,
        "creator": "0xcreator",
        "price_per_use": 0,
        "metadata_uri": "",
        "is_active": True,
        "total_calls": 0,
        "name": "Uppercase Text",
    }
    fields.update(overrides)
    return EnrichedSkill(**fields)


def _invoker(handler, skill: EnrichedSkill | None = None, purchaser=None) -> SkillInvoker:
    return SkillInvoker(
        skill or _skill(),
        backend=BACKEND,
        buyer=BUYER,
        client=mock_client(handler),
        purchaser=purchaser,
    )


class TestInvocationResult:
    def test_success_envelope_has_no_error_flag(self):
        assert InvocationResult("ok").to_envelope() == {
            "content": [{"type": "text", "text": "ok"}],
        }

    def test_error_envelope(self):
        envelope = InvocationResult("boom", is_error=True).to_envelope()
        assert envelope["isError"] is True
        assert envelope["content"][0]["text"] == "boom"


class TestSkillInvoker:
    async def test_posts_payload_and_wraps_result(self):
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(200, json={"output": "MONAD IS FAST"})

        result = await _invoker(handler)("monad is fast")

        assert not result.is_error
        assert "MONAD IS FAST" in result.text
        assert result.text.startswith("Skill executed successfully!")
        assert str(requests[0].url) == "http://localhost:3000/api/agent"
        assert json.loads(requests[0].content) == {
            "skillId": 7,
            "input": "monad is fast",
            "buyer": BUYER,
        }

    async def test_connection_refused_names_backend(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

        result = await _invoker(handler)("hi")

        assert result.is_error
        assert "unreachable" in result.text
        assert "localhost:3000" in result.text
        assert result.to_envelope()["isError"] is True

    async def test_structured_backend_error_is_surfaced(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(402, json={"error": "Payment required"})

        result = await _invoker(handler)("hi")

        assert result.is_error
        assert result.text == 'Error executing skill "Uppercase Text": Payment required'

    async def test_unstructured_backend_error_uses_message(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, text="Internal Server Error")

        result = await _invoker(handler)("hi")

        assert result.is_error
        assert "500" in result.text

    async def test_non_json_success_body_becomes_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="plain text")

        result = await _invoker(handler)("hi")
        assert result.is_error

    async def test_connect_failure_is_backend_unavailable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(BackendUnavailableError, match="localhost:3000"):
            await _invoker(handler)._execute("hi")

    async def test_error_status_is_backend_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(503, json={"error": "Agent busy"})

        with pytest.raises(BackendError, match="Agent busy") as excinfo:
            await _invoker(handler)._execute("hi")
        assert not isinstance(excinfo.value, BackendUnavailableError)

    async def test_read_timeout_is_not_reported_as_unreachable(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        result = await _invoker(handler)("hi")

        assert result.is_error
        assert "unreachable" not in result.text
        assert "timed out" in result.text

    async def test_bound_snapshot_is_used(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={})

        factory = InvokerFactory(BACKEND, buyer=BUYER, client=mock_client(handler))
        old = factory(_skill(skill_id=7))
        new = factory(_skill(skill_id=8))
        await old("a")
        await new("b")

        assert [b["skillId"] for b in bodies] == [7, 8]


class _Purchaser:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error
        self.calls: list[tuple[int, int]] = []

    async def purchase_skill(self, skill_id: int, price: int) -> str:
        self.calls.append((skill_id, price))
        if self.error is not None:
            raise self.error
        return "0xfeed"


class TestPayPerCall:
    async def test_paid_skill_is_purchased_first(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={"output": "done"})

        purchaser = _Purchaser()
        result = await _invoker(handler, _skill(price_per_use=500), purchaser)("x")

        assert not result.is_error
        assert purchaser.calls == [(7, 500)]
        assert bodies[0]["transactionId"] == "0xfeed"

    async def test_free_skill_is_not_purchased(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={})

        purchaser = _Purchaser()
        await _invoker(handler, _skill(price_per_use=0), purchaser)("x")
        assert purchaser.calls == []

    async def test_payment_failure_is_an_error_result(self):
        backend_calls: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            backend_calls.append(request)
            return httpx.Response(200, json={})

        purchaser = _Purchaser(PaymentError("insufficient funds"))
        result = await _invoker(handler, _skill(price_per_use=500), purchaser)("x")

        assert result.is_error
        assert "insufficient funds" in result.text
        assert backend_calls == []

    async def test_paid_skill_without_purchaser_is_not_purchased(self):
        bodies: list[dict] = []

        def handler(request: httpx.Request) -> httpx.Response:
            bodies.append(json.loads(request.content))
            return httpx.Response(200, json={})

        result = await _invoker(handler, _skill(price_per_use=500))("x")

        assert not result.is_error
        assert "transactionId" not in bodies[0]
