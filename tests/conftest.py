"""Shared pytest fixtures for lockerctl tests."""

from __future__ import annotations

import logging
from collections.abc import Generator, Iterator
from pathlib import Path

import pytest
from click.testing import CliRunner
from sqlalchemy.engine import Engine

from lockerctl.config.settings import LockerSettings
from lockerctl.infrastructure.community import Community
from lockerctl.infrastructure.database.engine import init_database
from lockerctl.services.telemetry import disable_telemetry


@pytest.fixture(autouse=True)
def _no_config_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep a developer's LOCKERCTL_* environment out of the tests."""
    monkeypatch.delenv("LOCKERCTL_CONFIG", raising=False)


@pytest.fixture(autouse=True)
def _restore_process_state() -> Generator[None]:
    """Undo what AppContext does to logging and telemetry on each CLI run."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)
    logging.getLogger("lockerctl").setLevel(logging.NOTSET)
    disable_telemetry()


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db_engine(tmp_path: Path) -> Iterator[Engine]:
    """Initialized SQLite engine with all tables created."""
    engine = init_database(tmp_path)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def community(tmp_path: Path) -> Iterator[Community]:
    """In-memory community: no database, fully concurrent."""
    settings = LockerSettings.from_cli(
        site_root=tmp_path,
        storage={"persist": False},
    )
    c = Community(settings)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture
def persistent_settings(tmp_path: Path) -> LockerSettings:
    return LockerSettings.from_cli(site_root=tmp_path)


@pytest.fixture
def persistent_community(persistent_settings: LockerSettings) -> Iterator[Community]:
    """Community backed by SQLite under ``tmp_path/.lockerctl``."""
    c = Community(persistent_settings)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture
def _isolated_site(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Run CLI tests from an empty temp directory.

    Use via ``@pytest.mark.usefixtures("_isolated_site")``.
    """
    monkeypatch.chdir(tmp_path)


@pytest.fixture(params=["memory", "sqlite"])
def any_community(request: pytest.FixtureRequest) -> Community:
    """Each test runs once in memory and once against SQLite."""
    name = "community" if request.param == "memory" else "persistent_community"
    return request.getfixturevalue(name)
