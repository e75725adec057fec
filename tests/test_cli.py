from __future__ import annotations

import pytest
from skillforge_cli import main
from skillforge_cli.main import app
from typer.testing import CliRunner

from fakes import record

runner = CliRunner()


class _FakeChainClient:
    records = [
        record(1),
        record(2, active=False),
        {"skillId": 7, "isActive": True, "pricePerUse": 5},
    ]

    def __init__(self, config):
        self.config = config

    async def read_all(self):
        return list(self.records)

    async def total_skills(self):
        return len(self.records)

    async def get_skill(self, skill_id):
        return record(skill_id, price=42)


@pytest.fixture
def fake_chain(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("skillforge_mcp.chain.ChainSkillClient", _FakeChainClient)
    monkeypatch.setattr(main.console, "width", 200)


class TestCli:
    def test_tool_name(self):
        result = runner.invoke(app, ["tool-name", "Uppercase Text"])
        assert result.exit_code == 0
        assert result.output.strip() == "uppercase-text"

    def test_skills_without_private_key_exits_nonzero(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("PRIVATE_KEY", raising=False)
        monkeypatch.setenv("NEXT_PUBLIC_SKILL_REGISTRY_ADDRESS", "0x" + "11" * 20)

        result = runner.invoke(app, ["skills"])

        assert result.exit_code == 1
        assert "PRIVATE_KEY" in result.output

    def test_serve_rejects_bad_interval(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        result = runner.invoke(app, ["serve", "--interval-ms", "0"])
        assert result.exit_code == 1

    def test_skills_lists_active_with_chain_total(self, fake_chain):
        result = runner.invoke(app, ["skills"])

        assert result.exit_code == 0
        assert "skill-1" in result.output
        assert "skill-7" in result.output
        assert "skill-2" not in result.output
        assert "2 skill(s) listed, 3 registered on chain" in result.output

    def test_skills_all_includes_inactive(self, fake_chain):
        result = runner.invoke(app, ["skills", "--all"])

        assert result.exit_code == 0
        assert "Skill #2" in result.output

    def test_skill_shows_one_record(self, fake_chain):
        result = runner.invoke(app, ["skill", "9"])

        assert result.exit_code == 0
        assert "Skill #9" in result.output
        assert "skill-9" in result.output
        assert "42" in result.output
