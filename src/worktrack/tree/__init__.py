"""Path tree construction and profile emission."""

from worktrack.tree.bubble import bubble_up, insert_diff
from worktrack.tree.builder import TreeBuilder, build_tree
from worktrack.tree.nodes import (
    FileEntry,
    WorkTree,
    accumulate_stats,
    add_managers,
    get_managers,
    get_path,
)
from worktrack.tree.profile import (
    CallTreeProfileBuilder,
    FrameInfo,
    Profile,
    ProfileBuilder,
    ProfileGroup,
    ProfileNode,
    Renderer,
    RenderTarget,
    emit_profile,
)

__all__ = [
    "FileEntry",
    "WorkTree",
    "TreeBuilder",
    "build_tree",
    "accumulate_stats",
    "add_managers",
    "get_managers",
    "get_path",
    "insert_diff",
    "bubble_up",
    "CallTreeProfileBuilder",
    "FrameInfo",
    "Profile",
    "ProfileBuilder",
    "ProfileGroup",
    "ProfileNode",
    "Renderer",
    "RenderTarget",
    "emit_profile",
]
