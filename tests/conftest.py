"""Pytest configuration and fixtures."""

from __future__ import annotations

import os

from typing import Any

import pytest

from dtbridge.config import clear_settings
from tests.helpers import dt_column


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Run every test with built-in defaults only.

    Moves into an empty directory (no pyproject.toml / dtbridge.toml),
    points HOME there and drops any DTBRIDGE_* environment variables.
    """
    for key in list(os.environ):
        if key.startswith("DTBRIDGE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.setenv("APPDATA", str(tmp_path))
    clear_settings()
    yield tmp_path
    clear_settings()


@pytest.fixture
def articles() -> list[dict[str, Any]]:
    """Small in-memory data source."""
    return [
        {"id": 1, "title": "Alpha", "author": "Zoe", "views": 10},
        {"id": 2, "title": "beta", "author": "Adam", "views": 30},
        {"id": 3, "title": "Gamma", "author": "Zoe", "views": 20},
        {"id": 4, "title": "delta", "author": None, "views": 5},
        {"id": 5, "title": "Epsilon", "author": "Adam", "views": 30},
    ]


@pytest.fixture
def request_data() -> dict[str, Any]:
    """Nested DataTables request over the ``articles`` fixture columns."""
    return {
        "draw": "3",
        "start": "0",
        "length": "10",
        "columns": [
            dt_column("id"),
            dt_column("title"),
            dt_column("author"),
            dt_column("actions", orderable="false", searchable="false"),
        ],
        "order": [{"column": "1", "dir": "asc"}],
        "search": {"value": "", "regex": "false"},
    }
