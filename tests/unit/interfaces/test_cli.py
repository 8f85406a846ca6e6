"""Tests for the hublinks CLI entrypoint."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

from hublinks.interfaces.cli.cli import _parse_args, build_cli_overrides, start


class TestBuildCliOverrides:
    def test_empty(self) -> None:
        assert build_cli_overrides(_parse_args([])) == {}

    def test_all_flags(self) -> None:
        args = _parse_args(
            [
                "--api-key", "a",
                "--api-key", "b",
                "--resolve-timeout", "30",
                "--log-level", "DEBUG",
                "--log-format", "json",
            ]
        )
        assert build_cli_overrides(args) == {
            "api_keys": ["a", "b"],
            "resolve_timeout_seconds": 30.0,
            "log_level": "DEBUG",
            "log_format": "json",
        }


class TestStart:
    def test_runs_uvicorn_with_loaded_config(self, monkeypatch) -> None:
        monkeypatch.delenv("HOST", raising=False)
        monkeypatch.delenv("PORT", raising=False)

        with (
            patch("hublinks.interfaces.cli.cli.uvicorn") as mock_uvicorn,
            patch(
                "hublinks.interfaces.cli.cli.configure_logging",
                MagicMock(return_value={"version": 1}),
            ),
        ):
            start(["--port", "9000", "--resolve-timeout", "12"])

        mock_uvicorn.run.assert_called_once()
        app = mock_uvicorn.run.call_args.args[0]
        kwargs = mock_uvicorn.run.call_args.kwargs
        assert kwargs["host"] == "0.0.0.0"
        assert kwargs["port"] == 9000
        assert kwargs["log_config"] == {"version": 1}
        assert app.state.config.resolver.resolve_timeout_seconds == 12.0
