"""
Description tree store.

One DescribeNode per mounted wrapper. The store is an ordinary object: the
application creates one and hands it to every wrapper, tests create a fresh
one each. Every register/unregister re-renders the outline and merges it into
the sink under the reserved state key.

Unregistering a node does not remove its descendants. They stay registered
with a parent id that no longer exists and drop out of the outline until
they unregister themselves.
"""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Any

from .config import get_config
from .outline import render_outline
from .sink import StateSink, merge_state

logger = logging.getLogger(__name__)


class NodeFormatError(ValueError):
    """Raised when a serialized node does not have the expected fields."""


@dataclass(frozen=True)
class DescribeNode:
    """A registered description. ``content`` None means structural only."""
    id: str
    parent_id: str | None = None
    content: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> DescribeNode:
        """Build from the JSON shape ``{"id", "parentId", "content"}``."""
        if not isinstance(data, dict):
            raise NodeFormatError(f"Node must be an object, got {type(data).__name__}")
        node_id = data.get("id")
        if not isinstance(node_id, str) or not node_id:
            raise NodeFormatError(f"Node id must be a non-empty string, got {node_id!r}")
        parent_id = data.get("parentId")
        if parent_id is not None and not isinstance(parent_id, str):
            raise NodeFormatError(f"Node {node_id}: parentId must be a string or null")
        content = data.get("content")
        if content is not None and not isinstance(content, str):
            raise NodeFormatError(f"Node {node_id}: content must be a string or null")
        return cls(id=node_id, parent_id=parent_id, content=content)

    def to_dict(self) -> dict:
        return {"id": self.id, "parentId": self.parent_id, "content": self.content}


class DescribeTree:
    """The live set of description nodes, published to a sink on every change."""

    def __init__(
        self,
        sink: StateSink | None = None,
        state_key: str | None = None,
        indent: str | None = None,
    ):
        cfg = get_config().registry
        self.sink = sink
        self.state_key = state_key or cfg.state_key
        self.indent = indent if indent is not None else cfg.indent
        self.description = ""
        self._nodes: dict[str, DescribeNode] = {}
        self._ids = itertools.count()
        # Re-entrant: a sink may read the tree back while it is being published
        self._lock = threading.RLock()

    def new_id(self) -> str:
        """Allocate an id no wrapper of this store has had before."""
        with self._lock:
            return f"llm-{next(self._ids):06d}"

    def register(self, node: DescribeNode) -> None:
        """
        Insert or overwrite ``node.id``, then publish.

        If publishing fails the store is put back as it was and the error
        propagates, so a failed register leaves nothing behind.
        """
        with self._lock:
            previous = self._nodes.get(node.id)
            self._nodes[node.id] = node
            try:
                self.publish()
            except BaseException:
                if previous is None:
                    del self._nodes[node.id]
                else:
                    self._nodes[node.id] = previous
                self.description = self.describe()
                raise
            logger.debug("Registered %s (parent %s)", node.id, node.parent_id)

    def unregister(self, node_id: str) -> None:
        """Remove ``node_id`` if present (children stay), then publish."""
        with self._lock:
            if self._nodes.pop(node_id, None) is not None:
                logger.debug("Unregistered %s", node_id)
            self.publish()

    def nodes(self) -> list[DescribeNode]:
        """Snapshot of the registered nodes."""
        with self._lock:
            return list(self._nodes.values())

    def get(self, node_id: str) -> DescribeNode | None:
        with self._lock:
            return self._nodes.get(node_id)

    def describe(self) -> str:
        """Render the current outline."""
        return render_outline(self.nodes(), self.indent)

    def publish(self) -> str:
        """Re-render the outline and merge it into the sink."""
        with self._lock:
            self.description = self.describe()
            if self.sink is not None:
                merge_state(self.sink, self.state_key, self.description)
            return self.description

    def __len__(self) -> int:
        with self._lock:
            return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        with self._lock:
            return node_id in self._nodes
