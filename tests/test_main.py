"""Tests for the console script entry point."""

from unittest.mock import AsyncMock, patch

import pytest

from relaybot import main as main_module
from relaybot.exceptions import ConfigurationError, IRCConnectionError


@pytest.mark.parametrize("error", [
    ConfigurationError("bad", setting_name="main.server"),
    IRCConnectionError("Could not connect", network="relay"),
])
def test_run_reports_startup_errors_and_exits(monkeypatch, capsys, error):
    monkeypatch.setattr("sys.argv", ["relaybot"])
    with patch.object(main_module, "main", new=AsyncMock(side_effect=error)):
        with pytest.raises(SystemExit) as exc_info:
            main_module.run()
    assert exc_info.value.code == 2
    assert capsys.readouterr().err.startswith("relaybot: ")


def test_run_passes_config_dir(monkeypatch, tmp_path):
    monkeypatch.setattr("sys.argv", ["relaybot", str(tmp_path)])
    with patch.object(main_module, "main", new=AsyncMock()) as fake_main:
        main_module.run()
    fake_main.assert_awaited_once_with(tmp_path)
