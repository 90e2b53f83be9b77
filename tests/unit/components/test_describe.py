"""
Unit tests for the wrapper lifecycle (attach, detach, nesting, updates).
"""

import pytest

from llmdescribe.describe import Describe
from llmdescribe.sink import MemorySink, SinkError
from llmdescribe.tree import DescribeTree


class TestAttachDetach:
    def test_not_registered_until_attached(self, tree):
        wrapper = Describe(tree, "Piano")
        assert wrapper.id not in tree
        wrapper.attach()
        assert wrapper.id in tree

    def test_detach_unregisters(self, tree):
        wrapper = Describe(tree, "Piano").attach()
        wrapper.detach()
        assert wrapper.id not in tree
        assert tree.describe() == ""

    def test_attach_twice_registers_once(self, tree, sink):
        wrapper = Describe(tree, "Piano")
        wrapper.attach()
        wrapper.attach()
        assert len(sink.history) == 1

    def test_detach_twice_is_harmless(self, tree, sink):
        wrapper = Describe(tree, "Piano").attach()
        wrapper.detach()
        wrapper.detach()
        assert len(sink.history) == 2

    def test_detach_without_attach_does_nothing(self, tree, sink):
        Describe(tree, "Piano").detach()
        assert sink.history == []


class TestContextManager:
    def test_registered_inside_block(self, tree):
        with Describe(tree, "Piano") as piano:
            assert tree.describe() == "- Piano"
            assert piano.attached
        assert tree.describe() == ""

    def test_detaches_on_exception(self, tree):
        with pytest.raises(RuntimeError):
            with Describe(tree, "Piano"):
                raise RuntimeError("render failed")
        assert len(tree) == 0

    def test_exception_is_not_swallowed(self, tree):
        with pytest.raises(KeyError):
            with Describe(tree, "Piano"):
                raise KeyError("x")


class TestNesting:
    def test_child_uses_parent_id(self, tree):
        piano = Describe(tree, "Piano")
        key = piano.child("Key C4")
        assert key.parent_id == piano.id
        assert piano.parent_id is None

    def test_nested_blocks_render_hierarchy(self, tree):
        with Describe(tree, "Piano") as piano:
            with piano.child("Key C4"), piano.child("Key D4"):
                assert tree.describe() == "- Piano\n  - Key C4\n  - Key D4"
            assert tree.describe() == "- Piano"

    def test_structural_wrapper_keeps_depth(self, tree):
        with Describe(tree) as layout:
            with layout.child("Toolbar"):
                assert tree.describe() == "  - Toolbar"

    def test_children_mount_before_parent(self, tree):
        piano = Describe(tree, "Piano")
        key = piano.child("Key C4").attach()
        assert tree.describe() == ""
        piano.attach()
        assert tree.describe() == "- Piano\n  - Key C4"
        key.detach()
        piano.detach()

    def test_parent_detached_first_orphans_child(self, tree):
        piano = Describe(tree, "Piano").attach()
        key = piano.child("Key C4").attach()
        piano.detach()
        assert key.id in tree
        assert tree.describe() == ""

    def test_parent_from_other_tree_rejected(self, tree):
        other = Describe(DescribeTree(), "elsewhere")
        with pytest.raises(ValueError, match="different tree"):
            Describe(tree, "here", parent=other)

    def test_sibling_order_follows_mount_order(self, tree):
        with Describe(tree, "List") as items:
            first = items.child("first")
            second = items.child("second")
            second.attach()
            first.attach()
            assert tree.describe() == "- List\n  - first\n  - second"
            first.detach()
            second.detach()


class TestUpdate:
    def test_update_keeps_id_and_parent(self, tree):
        with Describe(tree, "Piano") as piano:
            with piano.child("Key C4") as key:
                old_id = key.id
                key.update("Key C4, pressed")
                node = tree.get(old_id)
                assert node.content == "Key C4, pressed"
                assert node.parent_id == piano.id
                assert len(tree) == 2

    def test_update_publishes(self, tree, sink):
        with Describe(tree, "idle") as status:
            status.update("playing")
            assert sink.read()["__widget_context"] == "- playing"

    def test_update_same_content_does_not_publish(self, tree, sink):
        with Describe(tree, "idle") as status:
            status.update("idle")
            assert len(sink.history) == 1

    def test_update_before_attach_only_changes_content(self, tree, sink):
        status = Describe(tree, "idle")
        status.update("playing")
        assert sink.history == []
        with status:
            assert tree.describe() == "- playing"

    def test_update_to_none_makes_node_structural(self, tree):
        with Describe(tree, "Piano") as piano:
            with piano.child("Key C4"):
                piano.update(None)
                assert tree.describe() == "  - Key C4"


class UnreadableSink(MemorySink):
    def __init__(self):
        super().__init__()
        self.broken = False

    def read(self):
        if self.broken:
            raise SinkError("state.json is not valid JSON")
        return super().read()


class TestFailedPublish:
    def test_failed_enter_leaves_nothing_registered(self):
        sink = UnreadableSink()
        sink.broken = True
        tree = DescribeTree(sink=sink)
        with pytest.raises(SinkError):
            with Describe(tree, "Piano"):
                pass
        assert tree.nodes() == []

    def test_failed_attach_can_be_retried(self):
        sink = UnreadableSink()
        sink.broken = True
        tree = DescribeTree(sink=sink)
        piano = Describe(tree, "Piano")
        with pytest.raises(SinkError):
            piano.attach()
        assert not piano.attached
        sink.broken = False
        with piano:
            assert tree.describe() == "- Piano"
        assert len(tree) == 0

    def test_failed_update_keeps_old_content(self):
        sink = UnreadableSink()
        tree = DescribeTree(sink=sink)
        with Describe(tree, "idle") as status:
            sink.broken = True
            with pytest.raises(SinkError):
                status.update("playing")
            assert status.content == "idle"
            assert tree.get(status.id).content == "idle"
            sink.broken = False
