from unittest.mock import AsyncMock, patch

import pytest

import main


@pytest.fixture
def env(monkeypatch, tmp_path):
    monkeypatch.setenv("EDEN_CONF_FILE", str(tmp_path / "absent.conf"))
    monkeypatch.delenv("IRC_NICKNAME", raising=False)
    return monkeypatch


def test_health_check_passes_with_valid_environment(env):
    env.setenv("IRC_NICKNAME", "eden")
    env.setenv("IRC_SERVERS", "irc.test")
    assert main.health_check() == 0


def test_health_check_fails_without_nickname(env):
    assert main.health_check() == 1


@pytest.mark.asyncio
async def test_main_runs_bots(env):
    env.setenv("IRC_NICKNAME", "eden")
    with patch("main.run_bots", new=AsyncMock()) as mock_run:
        await main.main()
    config, config_file = mock_run.await_args.args
    assert config.irc_nickname == "eden"
    assert config_file.endswith("absent.conf")


@pytest.mark.asyncio
async def test_main_exits_on_config_error(env):
    with pytest.raises(SystemExit) as exc:
        await main.main()
    assert exc.value.code == 1
