"""Unit tests for the command-line entry point."""

from pathlib import Path

import pytest

from learnquest_client.__main__ import EXIT_FAILURE, build_session_store, main, parse_arguments
from learnquest_client.api.session import FileSessionStore, InMemorySessionStore
from learnquest_client.core.config import MainConfig, SessionConfig


class TestParseArguments:
    """Test argument parsing."""

    def test_probe(self) -> None:
        args = parse_arguments(["probe"])

        assert args.command == "probe"
        assert args.config is None
        assert args.log_level is None

    def test_global_options(self) -> None:
        args = parse_arguments(["--config", "lq.yaml", "--log-level", "DEBUG", "logout"])

        assert args.config == Path("lq.yaml")
        assert args.log_level == "DEBUG"
        assert args.command == "logout"

    def test_signin(self) -> None:
        args = parse_arguments(["signin", "--email", "a@b.com", "--remember-me"])

        assert args.email == "a@b.com"
        assert args.password is None
        assert args.remember_me is True

    def test_watch_duration(self) -> None:
        assert parse_arguments(["watch", "--duration", "2.5"]).duration == 2.5
        assert parse_arguments(["watch"]).duration is None

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            _ = parse_arguments([])

    def test_invalid_log_level(self) -> None:
        with pytest.raises(SystemExit):
            _ = parse_arguments(["--log-level", "LOUD", "probe"])


class TestBuildSessionStore:
    """Test session store selection from configuration."""

    def test_in_memory_by_default(self) -> None:
        assert type(build_session_store(MainConfig())) is InMemorySessionStore

    def test_file_store_when_path_configured(self, session_file: Path) -> None:
        config = MainConfig(session=SessionConfig(storage_path=session_file))

        store = build_session_store(config)

        assert isinstance(store, FileSessionStore)
        assert store.path == session_file


class TestMain:
    """Test exit codes of the entry point."""

    def test_missing_config_exits_with_failure(self, tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(tmp_path / "absent.yaml"), "probe"])

        assert exc_info.value.code == EXIT_FAILURE
        assert "Configuration error" in capsys.readouterr().err
