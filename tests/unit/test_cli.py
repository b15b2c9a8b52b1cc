"""Unit tests for the REPL startup path. No real API calls."""

from __future__ import annotations

import argparse

import pytest

from aura import cli


@pytest.fixture
def startup(monkeypatch: pytest.MonkeyPatch, config_factory):
    built: list[str] = []

    def install(**llm: str) -> list[str]:
        config = config_factory(llm=llm)
        monkeypatch.setattr(cli, "load_config", lambda path: config)
        monkeypatch.setattr(cli, "setup_logging", lambda *a, **kw: None)
        monkeypatch.setattr(cli, "create_storage", lambda cfg: built.append("storage"))
        return built

    return install


def _args() -> argparse.Namespace:
    return argparse.Namespace(config="unused.yaml", conversation="default")


class TestStartup:
    async def test_missing_key_exits_before_building_anything(self, startup, capsys) -> None:
        built = startup(provider="gemini", api_key="")
        assert await cli._repl(_args()) == 2
        assert "API key" in capsys.readouterr().err
        assert built == []

    async def test_unknown_provider_exits(self, startup, capsys) -> None:
        built = startup(provider="carrier-pigeon")
        assert await cli._repl(_args()) == 2
        assert "[config error]" in capsys.readouterr().err
        assert built == []

    def test_parse_args_defaults(self) -> None:
        args = cli._parse_args([])
        assert args.config == "config/default.yaml"
        assert args.conversation == "default"
