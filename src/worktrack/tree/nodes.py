"""Path tree nodes and helpers for annotating them."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from worktrack.models.records import ChangeRecord, Datas, ParsedFileEntry, Stats

ROOT_NAME = "Root"
NOTHING_MATCHED_NAME = "Nothing matched filters!"
FIRST_KEY = 100


@dataclass(eq=False)
class FileEntry:
    """One path segment in the work tree.

    ``stats`` is the sum over every contributing file below the node;
    ``datas`` is only set on leaves. ``diffs`` holds the most recent
    changes below the node, newest first, capped by the builder.
    """

    key: int
    name: str
    stats: Stats = field(default_factory=dict)
    datas: Datas = field(default_factory=dict)
    managers_by_path: List[List[str]] = field(default_factory=list)
    managers_by_diff: List[List[str]] = field(default_factory=list)
    children: Dict[str, "FileEntry"] = field(default_factory=dict, repr=False)
    parent: Optional["FileEntry"] = field(default=None, repr=False)
    diffs: List[ChangeRecord] = field(default_factory=list, repr=False)
    parsed_file: Optional[ParsedFileEntry] = field(default=None, repr=False)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def sorted_children(self) -> List["FileEntry"]:
        """Children ordered by name, comparing code points (not locale)."""
        return [self.children[name] for name in sorted(self.children)]


@dataclass
class WorkTree:
    """Result of one tree build."""

    root: FileEntry
    total_weight: float = 0
    leaves: Dict[int, FileEntry] = field(default_factory=dict)

    def leaf_for(self, file: ParsedFileEntry) -> Optional[FileEntry]:
        """Leaf node a parsed file resolved to in this build, if it survived."""
        return self.leaves.get(file.index)

    def walk(self):
        """Yield every node, parents before children."""
        stack = [self.root]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.sorted_children()))


def accumulate_stats(node: FileEntry, stats: Stats) -> None:
    """Add stats into a node elementwise; missing keys count as 0."""
    for name, value in stats.items():
        node.stats[name] = value + node.stats.get(name, 0)


def add_managers(levels: List[List[str]], managers: List[str]) -> None:
    """Merge a manager chain into per-level label lists without duplicates."""
    for depth, manager in enumerate(managers):
        if len(levels) <= depth:
            levels.append([])
        if manager not in levels[depth]:
            levels[depth].append(manager)


def get_managers(levels: List[List[str]]) -> str:
    """Format per-level manager labels, e.g. ``vp::[dir1,dir2]::mgr``."""
    formatted = []
    for level in levels:
        if len(level) == 1:
            formatted.append(level[0])
        else:
            formatted.append("[" + ",".join(sorted(level)) + "]")
    return "::".join(formatted)


def get_path_from_parsed_file(file: ParsedFileEntry) -> str:
    return ROOT_NAME + file.path_raw[:-1]


def get_path(node: FileEntry) -> str:
    """Slash-joined path from the root, e.g. ``Root/fbcode/a/b``."""
    if node.parsed_file is not None:
        return get_path_from_parsed_file(node.parsed_file)
    parts = []
    current: Optional[FileEntry] = node
    while current is not None:
        parts.append(current.name)
        current = current.parent
    return "/".join(reversed(parts))
