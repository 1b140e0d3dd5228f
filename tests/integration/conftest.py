"""
Integration test fixtures — a project directory with tasklist.yaml and a log directory.

The hosted backend is still the in-memory FakeBackend from tests/conftest.py;
these tests exercise config loading, the service stack and the JSONL
diagnostic channel together.

Run: pytest tests/integration/ -v -m integration
"""

from __future__ import annotations

import pytest


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: cross-module workflow tests")


@pytest.fixture
def integration_project(tmp_path):
    """Project tree with tasklist.yaml pointing at the fake backend."""
    root = tmp_path / "project"
    root.mkdir()
    logs = root / ".tasklist" / "logs"
    (root / "tasklist.yaml").write_text(
        "app:\n"
        "  name: IntegrationTasks\n"
        "  environment: dev\n"
        "  backend:\n"
        "    url: https://backend.test\n"
        "    anon_key: anon-key-123\n"
        "  logging:\n"
        "    directory: " + str(logs) + "\n"
        "    async_queue:\n"
        "      flush_interval_ms: 10\n",
        encoding="utf-8",
    )
    return root
