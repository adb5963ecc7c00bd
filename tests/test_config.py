"""Settings and command-line parsing tests."""

from pathlib import Path

import pytest

from reloadhub.__main__ import load_settings
from reloadhub.config import Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Keep real RELOAD_* variables and .env files out of these tests."""
    for name in (
        "RELOAD_PORT",
        "RELOAD_WATCH_DIR",
        "RELOAD_VERBOSE",
        "RELOAD_IGNORE_RAW",
        "RELOAD_ALLOWED_ORIGINS_RAW",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults() -> None:
    """Defaults watch the current directory on port 8080."""
    settings = Settings()
    assert settings.port == 8080
    assert settings.watch_dir == "."
    assert settings.ws_path == "/ws"
    assert settings.ignore_list == []
    assert settings.allowed_origins == []
    assert settings.debounce_ms == 0
    assert not settings.watch_new_dirs


def test_environment_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    """RELOAD_* variables configure the server."""
    monkeypatch.setenv("RELOAD_PORT", "9000")
    monkeypatch.setenv("RELOAD_IGNORE_RAW", "node_modules, .git ,,dist")
    monkeypatch.setenv("RELOAD_VERBOSE", "true")

    settings = Settings()

    assert settings.port == 9000
    assert settings.verbose
    assert settings.ignore_list == ["node_modules", ".git", "dist"]


def test_dotenv_file(tmp_path: Path) -> None:
    """A .env file in the working directory is read."""
    with open(".env", "w", encoding="utf-8") as f:
        f.write("RELOAD_WATCH_DIR=site\n")
    assert Settings().watch_dir == "site"


def test_flags_override_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Command-line flags win over environment variables."""
    monkeypatch.setenv("RELOAD_PORT", "9000")
    monkeypatch.setenv("RELOAD_IGNORE_RAW", "dist")

    settings = load_settings(
        ["-p", "7000", "-w", "site", "-v", "-i", "node_modules,.git", "--ignore", "tmp"]
    )

    assert settings.port == 7000
    assert settings.watch_dir == "site"
    assert settings.verbose
    assert settings.ignore_list == ["node_modules", ".git", "tmp"]


def test_unset_flags_keep_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Flags that are not given fall back to the environment."""
    monkeypatch.setenv("RELOAD_PORT", "9000")
    monkeypatch.setenv("RELOAD_IGNORE_RAW", "dist")

    settings = load_settings([])

    assert settings.port == 9000
    assert settings.ignore_list == ["dist"]
    assert not settings.verbose
