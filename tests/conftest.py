"""Shared test fixtures for llm-describe."""

from pathlib import Path

import pytest

from llmdescribe.config import reset_config
from llmdescribe.sink import MemorySink
from llmdescribe.tree import DescribeTree

FIXTURES = Path(__file__).parent / "fixtures"

ENV_VARS = [
    "LLM_DESCRIBE_MARKER",
    "LLM_DESCRIBE_WRAPPER",
    "LLM_DESCRIBE_IMPORT_SOURCE",
    "LLM_DESCRIBE_STATE_KEY",
    "LLM_DESCRIBE_INDENT",
]


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep the user's config file and environment out of every test."""
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    for var in ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def sink():
    return MemorySink()


@pytest.fixture
def tree(sink):
    return DescribeTree(sink=sink)
