from __future__ import annotations

from types import SimpleNamespace

import pytest
from skillforge_core.config import ChainConfig
from skillforge_core.errors import ConfigError, PaymentError, RegistryError
from skillforge_mcp.chain import ChainSkillClient, SkillRegistryReader

from fakes import BUYER

REGISTRY = "0x" + "11" * 20
KEY_ONE = "0x" + "00" * 31 + "01"


def _client(**overrides) -> ChainSkillClient:
    fields = {
        "registry_address": REGISTRY,
        "rpc_url": "http://127.0.0.1:1",
        "private_key": KEY_ONE,
    }
    fields.update(overrides)
    return ChainSkillClient(ChainConfig(**fields))


def _contract_returning(call):
    function = SimpleNamespace(call=call)
    return SimpleNamespace(
        functions=SimpleNamespace(getAllSkills=lambda: function)
    )


class TestChainSkillClient:
    def test_missing_private_key_fails_at_construction(self):
        with pytest.raises(ConfigError, match="PRIVATE_KEY"):
            _client(private_key=None)

    def test_malformed_private_key(self):
        with pytest.raises(ConfigError, match="PRIVATE_KEY"):
            _client(private_key="not-a-key")

    def test_missing_registry_address(self):
        with pytest.raises(ConfigError, match="REGISTRY"):
            _client(registry_address="")

    def test_account_address_from_key(self):
        client = _client()
        assert client.account_address == BUYER
        assert isinstance(client, SkillRegistryReader)

    async def test_read_all_returns_records(self):
        rows = ((1, "0xabc", 10, "ipfs://x", True, 0),)

        async def call():
            return rows

        client = _client()
        client._registry = _contract_returning(call)
        assert await client.read_all() == list(rows)

    async def test_read_failure_is_registry_error(self):
        async def call():
            raise ConnectionError("rpc unreachable")

        client = _client()
        client._registry = _contract_returning(call)
        with pytest.raises(RegistryError, match="rpc unreachable"):
            await client.read_all()

    async def test_purchase_without_payment_contract(self):
        with pytest.raises(PaymentError, match="PAYMENT_CONTRACT"):
            await _client().purchase_skill(1, 100)

    async def test_total_skills(self):
        async def call():
            return 3

        client = _client()
        function = SimpleNamespace(call=call)
        client._registry = SimpleNamespace(
            functions=SimpleNamespace(getTotalSkills=lambda: function)
        )
        assert await client.total_skills() == 3

    async def test_get_skill_passes_id(self):
        requested: list[int] = []

        def get_skill(skill_id):
            requested.append(skill_id)

            async def call():
                return (skill_id, "0xabc", 0, "", True, 0)

            return SimpleNamespace(call=call)

        client = _client()
        client._registry = SimpleNamespace(functions=SimpleNamespace(getSkill=get_skill))

        assert (await client.get_skill(7))[0] == 7
        assert requested == [7]

    async def test_get_skill_failure_is_registry_error(self):
        def get_skill(skill_id):
            async def call():
                raise ValueError("execution reverted: Skill does not exist")

            return SimpleNamespace(call=call)

        client = _client()
        client._registry = SimpleNamespace(functions=SimpleNamespace(getSkill=get_skill))
        with pytest.raises(RegistryError, match="getSkill\\(99\\)"):
            await client.get_skill(99)
