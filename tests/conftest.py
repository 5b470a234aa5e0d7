"""Shared fixtures for obsctl tests."""

import tempfile
from pathlib import Path
from typing import Generator

import pytest
from fakes import FakeSession

from obsctl.store import ContextStore


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir)


@pytest.fixture
def config_file(temp_dir: Path) -> Path:
    """Path of a config file that does not exist yet."""
    return temp_dir / "obsctl" / "config.json"


@pytest.fixture
def store(config_file: Path) -> ContextStore:
    """A context store pinned to a temporary config file."""
    return ContextStore(path=config_file)


@pytest.fixture
def oidc_session() -> FakeSession:
    """A fake session serving a discovery document and a token endpoint."""
    session = FakeSession()
    session.add_oidc_provider()
    return session
