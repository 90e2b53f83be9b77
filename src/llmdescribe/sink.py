"""
External state sinks.

The tree publishes its outline into host-owned state it does not otherwise
understand. A sink offers two calls:

- read() -> dict: the current state ({} when there is none)
- write(state): replace the whole state

merge_state() does the read-modify-write that sets one reserved key and keeps
every other key as it was read.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class SinkError(ValueError):
    """Raised when a sink holds something other than a state object."""


class StateSink(Protocol):
    def read(self) -> dict: ...

    def write(self, state: dict) -> None: ...


class MemorySink:
    """Keeps the state in memory; every write is recorded in ``history``."""

    def __init__(self, state: dict | None = None):
        self._state: dict = dict(state or {})
        self.history: list[dict] = []

    def read(self) -> dict:
        return dict(self._state)

    def write(self, state: dict) -> None:
        self._state = dict(state)
        self.history.append(dict(state))


class JsonFileSink:
    """Keeps the state as a JSON object in a file."""

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def read(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise SinkError(f"{self.path} is not valid JSON: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise SinkError(f"{self.path} must hold a JSON object, got {type(data).__name__}")
        return data

    def write(self, state: dict) -> None:
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(state, f, indent=2)
            f.write("\n")


def merge_state(sink: StateSink, key: str, value: Any) -> dict:
    """Set ``key`` to ``value`` in the sink's state, leaving other keys alone."""
    state = sink.read()
    merged = {**state, key: value}
    sink.write(merged)
    logger.debug("Published %s (%d chars) to %s", key, len(str(value)), type(sink).__name__)
    return merged
