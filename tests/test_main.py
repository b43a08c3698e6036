"""Tests for the console entry point."""

from __future__ import annotations

from unittest.mock import patch

from maedic.config import Settings, ThresholdPolicy
from maedic.main import _enabled_checks, main


class TestEnabledChecks:
    def test_none(self) -> None:
        assert _enabled_checks(Settings()) == "none"

    def test_lists_enabled(self, policy: ThresholdPolicy) -> None:
        assert _enabled_checks(Settings(limits=policy)) == (
            "hi_queue, spool, service[HIService.exe], cpu, ram"
        )


class TestMain:
    def test_starts_uvicorn_with_configured_bind(self) -> None:
        settings = Settings(application={"host": "0.0.0.0", "port": 8123, "log_level": "WARNING"})
        with patch("maedic.main.get_configuration", return_value=settings) as get_config, \
                patch("maedic.main.uvicorn.run") as run, \
                patch("sys.argv", ["maedic", "--environment", "production"]):
            main()

        get_config.assert_called_once_with("production")
        kwargs = run.call_args.kwargs
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 8123
        assert kwargs["log_level"] == "warning"
        assert run.call_args.args[0].state.settings is settings
