"""Tests for emitting a work tree as a weighted profile."""

import pytest

from worktrack.exceptions import ProfileBuildError
from worktrack.filtering import apply_filters
from worktrack.models import FilterSettings
from worktrack.tree import CallTreeProfileBuilder, FrameInfo, build_tree, emit_profile


class RecordingBuilder:
    """Profile builder that records every call."""

    def __init__(self):
        self.events = []
        self.name = None

    def enter_frame(self, frame, weight_offset):
        self.events.append(("enter", frame.name, weight_offset))

    def leave_frame(self, frame, weight_offset):
        self.events.append(("leave", frame.name, weight_offset))

    def set_name(self, name):
        self.name = name

    def build(self):
        return self.events


def tree_for(work, **settings):
    settings = FilterSettings(**settings)
    return build_tree(apply_filters(work, settings), settings)


class TestEmitProfile:
    """Tests for the depth-first traversal."""

    def test_event_order(self, work):
        """Test children are visited by name and leaves advance the offset."""
        builder = RecordingBuilder()
        final = emit_profile(tree_for(work), builder)

        assert builder.events == [
            ("enter", "Root", 0),
            ("enter", "fbcode", 0),
            ("enter", "a", 0),
            ("enter", "b", 0),
            ("enter", "f.cpp", 0),
            ("leave", "f.cpp", 1.5),
            ("enter", "g.h", 1.5),
            ("leave", "g.h", 2.0),
            ("leave", "b", 2.0),
            ("leave", "a", 2.0),
            ("leave", "fbcode", 2.0),
            ("enter", "www", 2.0),
            ("enter", "lib", 2.0),
            ("enter", "x.py", 2.0),
            ("leave", "x.py", 3.0),
            ("leave", "lib", 3.0),
            ("leave", "www", 3.0),
            ("leave", "Root", 3.0),
        ]
        assert final == 3.0

    def test_offsets_never_decrease(self, work):
        """Test weight offsets are non-decreasing across all events."""
        builder = RecordingBuilder()
        emit_profile(tree_for(work, weight_stat="editCount"), builder)
        offsets = [offset for _, _, offset in builder.events]

        assert offsets == sorted(offsets)

    def test_final_offset_is_total_weight(self, work):
        """Test the final offset equals the tree's total weight."""
        tree = tree_for(work, weight_stat="ploc")

        assert emit_profile(tree, RecordingBuilder()) == tree.total_weight

    def test_nothing_matched(self, work):
        """Test an empty tree becomes one placeholder frame of weight 1."""
        builder = RecordingBuilder()
        final = emit_profile(tree_for(work, authors_include="nobody"), builder)

        assert builder.events == [
            ("enter", "Nothing matched filters!", 0),
            ("leave", "Nothing matched filters!", 1),
        ]
        assert final == 1

    def test_children_sorted_by_code_point(self):
        """Test uppercase names sort before lowercase ones."""
        from worktrack.tree import FileEntry, WorkTree

        root = FileEntry(key=100, name="Root")
        for key, name in enumerate(["b", "B", "a"], start=101):
            root.children[name] = FileEntry(key=key, name=name, parent=root, stats={"weight": 1})
        builder = RecordingBuilder()
        emit_profile(WorkTree(root=root), builder)

        entered = [name for kind, name, _ in builder.events if kind == "enter"]
        assert entered == ["Root", "B", "a", "b"]


class TestCallTreeProfileBuilder:
    """Tests for the in-memory profile builder."""

    def test_builds_nested_profile(self, work):
        """Test frames nest and record their weight interval."""
        tree = tree_for(work)
        builder = CallTreeProfileBuilder(tree.total_weight)
        builder.set_name("Work sample")
        emit_profile(tree, builder)
        profile = builder.build()

        assert profile.name == "Work sample"
        assert profile.total_weight == 3.0
        root = profile.roots[0]
        assert (root.name, root.start, root.end) == ("Root", 0, 3.0)
        assert [child.name for child in root.children] == ["fbcode", "www"]
        assert root.children[0].weight == 2.0

    def test_frames_keep_node_and_render_hooks(self, work):
        """Test frame data exposes the node and lazily calls the renderer."""
        calls = []

        def renderer(node, target):
            calls.append((node.name, target))
            return f"{target}:{node.name}"

        tree = tree_for(work)
        builder = CallTreeProfileBuilder(tree.total_weight)
        emit_profile(tree, builder, renderer)

        assert calls == []
        frame = builder.frames[tree.root.key]
        assert frame.data["node"] is tree.root
        assert frame.data["render_tooltip"]() == "tooltip:Root"
        assert frame.data["render_details"]() == "details:Root"
        assert calls == [("Root", "tooltip"), ("Root", "details")]

    def test_no_renderer_no_hooks(self, work):
        """Test frames carry no render hooks without a renderer."""
        tree = tree_for(work)
        builder = CallTreeProfileBuilder()
        emit_profile(tree, builder)

        assert "render_tooltip" not in builder.frames[tree.root.key].data

    def test_backwards_offset_rejected(self):
        """Test a decreasing offset raises."""
        builder = CallTreeProfileBuilder()
        frame = FrameInfo(key=1, name="a")
        builder.enter_frame(frame, 5)

        with pytest.raises(ProfileBuildError):
            builder.leave_frame(frame, 3)

    def test_leaving_wrong_frame_rejected(self):
        """Test leaving a frame that is not innermost raises."""
        builder = CallTreeProfileBuilder()
        outer, inner = FrameInfo(key=1, name="outer"), FrameInfo(key=2, name="inner")
        builder.enter_frame(outer, 0)
        builder.enter_frame(inner, 0)

        with pytest.raises(ProfileBuildError):
            builder.leave_frame(outer, 1)

    def test_unclosed_frames_rejected(self):
        """Test building with open frames raises."""
        builder = CallTreeProfileBuilder()
        builder.enter_frame(FrameInfo(key=1, name="a"), 0)

        with pytest.raises(ProfileBuildError):
            builder.build()
