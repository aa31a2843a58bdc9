"""Pytest configuration and shared fixtures for ccprov tests."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

import pytest

from ccprov.config.config import ENV_MAPPINGS
from ccprov.storage.provenance import ProvenanceStore


def pytest_configure(config):
    """Register all project markers to avoid warnings when ini isn't loaded."""
    markers = [
        ("unit", "marks tests as unit tests"),
        ("storage", "marks tests as provenance storage tests"),
        ("config", "marks tests as configuration tests"),
        ("cli", "marks tests as CLI tests"),
        ("slow", "marks tests that wait on real timers"),
    ]
    for name, desc in markers:
        config.addinivalue_line("markers", f"{name}: {desc}")


@pytest.fixture(autouse=True)
def _isolate_ccprov_env(monkeypatch, tmp_path):
    """Keep tests away from the user's environment and config files."""
    for env_name in ENV_MAPPINGS:
        monkeypatch.delenv(env_name, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path / "home"))


@pytest.fixture(autouse=True)
def cleanup_logging():
    """Clean up logging handlers after each test to prevent closed file errors."""
    yield
    for logger_name in list(logging.Logger.manager.loggerDict.keys()):
        logger = logging.getLogger(logger_name)
        for handler in logger.handlers[:]:
            handler.close()
            logger.removeHandler(handler)

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)


@pytest.fixture
def download_dir(tmp_path) -> Path:
    """Download directory holding one unrelated file so it is never empty."""
    path = tmp_path / "downloads"
    path.mkdir()
    (path / "keep.bin").write_bytes(b"keep")
    return path


@pytest.fixture
def state_dir(tmp_path) -> Path:
    """Private directory for the persisted store file."""
    path = tmp_path / "state"
    path.mkdir()
    return path


@pytest.fixture
def store_file(state_dir) -> Path:
    """Path of the persisted store file."""
    return state_dir / "origins.txt"


@pytest.fixture
def make_store(download_dir, store_file) -> Callable[..., ProvenanceStore]:
    """Factory creating ready stores that are closed after the test."""
    stores: list[ProvenanceStore] = []

    def _make(save_delay: float = 0.05, **kwargs) -> ProvenanceStore:
        store = ProvenanceStore(
            kwargs.pop("download_dir", download_dir),
            kwargs.pop("store_file", store_file),
            save_delay=save_delay,
            **kwargs,
        )
        assert store.wait_ready(5.0)
        stores.append(store)
        return store

    yield _make

    for store in stores:
        store.close()


@pytest.fixture
def wait_for() -> Callable[..., bool]:
    """Return a poller that waits until a predicate holds or times out."""

    def _wait_for(predicate: Callable[[], bool], timeout: float = 3.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.01)
        return predicate()

    return _wait_for
