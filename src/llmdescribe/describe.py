"""
Wrapper lifecycle.

Describe is the runtime side of the generated ``<LLMDescribe content=...>``
element. It takes its id from the store when created, registers on attach and
unregisters on detach. As a context manager it detaches on every exit path:

    with Describe(tree, "Piano") as piano:
        with piano.child("Key C4") as key:
            key.update("Key C4, pressed")
"""

from __future__ import annotations

from .tree import DescribeNode, DescribeTree


class Describe:
    """One mounted wrapper instance."""

    def __init__(self, tree: DescribeTree, content: str | None = None, parent: Describe | None = None):
        if parent is not None and parent.tree is not tree:
            raise ValueError("Parent wrapper belongs to a different tree")
        self.tree = tree
        self.parent = parent
        self.content = content
        self.id = tree.new_id()
        self.attached = False

    @property
    def parent_id(self) -> str | None:
        return self.parent.id if self.parent is not None else None

    def node(self) -> DescribeNode:
        return DescribeNode(id=self.id, parent_id=self.parent_id, content=self.content)

    def attach(self) -> Describe:
        """Register this wrapper. Attaching twice does nothing."""
        if not self.attached:
            self.tree.register(self.node())
            self.attached = True
        return self

    def detach(self) -> None:
        """Unregister this wrapper. Detaching twice does nothing."""
        if self.attached:
            self.attached = False
            self.tree.unregister(self.id)

    def update(self, content: str | None) -> None:
        """Change the content in place; same id, same parent."""
        if content == self.content:
            return
        previous, self.content = self.content, content
        if self.attached:
            try:
                self.tree.register(self.node())
            except BaseException:
                self.content = previous
                raise

    def child(self, content: str | None = None) -> Describe:
        """A wrapper nested directly inside this one (not yet attached)."""
        return Describe(self.tree, content, parent=self)

    def __enter__(self) -> Describe:
        return self.attach()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.detach()

    def __repr__(self) -> str:
        return f"Describe(id={self.id!r}, parent_id={self.parent_id!r}, content={self.content!r})"
