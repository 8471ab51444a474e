"""Builds the path tree from filtered files."""

from typing import Iterable, List

import structlog

from worktrack.filtering.passes import FilteredFile, FilterResult
from worktrack.filtering.text_filter import to_number_or_zero
from worktrack.models.config import FilterSettings
from worktrack.tree.bubble import bubble_up
from worktrack.tree.nodes import (
    FIRST_KEY,
    ROOT_NAME,
    FileEntry,
    WorkTree,
    accumulate_stats,
    add_managers,
)

logger = structlog.get_logger(__name__)

# Top levels of every manager chain are the same few executives; skip them.
MANAGER_LEVEL_OFFSET = 3


def _strip_manager_chain(managers_raw: str) -> List[str]:
    return managers_raw.split("/")[MANAGER_LEVEL_OFFSET:]


class TreeBuilder:
    """Accumulates filtered files into a :class:`WorkTree`.

    Each file walks its path from the root, creating nodes as needed and
    adding its stats and manager chains into every node it passes. New
    leaves then bubble their changes up to their ancestors.
    """

    def __init__(self, settings: FilterSettings) -> None:
        """Initialize the builder.

        Args:
            settings: Filter settings providing the weight stat, weight cap
                and per-node change count
        """
        self.settings = settings
        self.cap = settings.max_diff_peek + 1
        self._next_key = FIRST_KEY
        self.tree = WorkTree(root=self._new_node(ROOT_NAME))

    def _new_node(self, name: str) -> FileEntry:
        node = FileEntry(key=self._next_key, name=name)
        self._next_key += 1
        return node

    def add_file(self, filtered: FilteredFile, result: FilterResult) -> None:
        """Add one surviving file to the tree.

        Args:
            filtered: File and its matched changes
            result: Filter overlay with per-change surviving file counts
        """
        file = filtered.file
        stats = dict(filtered.stats)
        stats["fileUpdatesWeighed"] = sum(
            1 / result.filtered_file_count(change) for change in filtered.changes
        )
        base_weight = to_number_or_zero(stats.get(self.settings.weight_stat))
        stats["weight"] = min(base_weight, to_number_or_zero(self.settings.weight_cap))
        self.tree.total_weight += stats["weight"]

        managers_by_path = _strip_manager_chain(file.managers_raw)
        managers_by_diff = _strip_manager_chain(filtered.diff_managers_raw)

        node = self.tree.root
        accumulate_stats(node, stats)
        add_managers(node.managers_by_diff, managers_by_diff)
        add_managers(node.managers_by_path, managers_by_path)

        leaf = None
        last = len(file.path_parts) - 1
        for depth, part in enumerate(file.path_parts):
            child = node.children.get(part)
            if child is None:
                child = self._new_node(part)
                child.stats = dict(stats)
                child.parent = node
                node.children[part] = child
                if depth == last:
                    child.datas = dict(filtered.datas)
                    child.diffs = filtered.changes[: self.cap]
                    child.parsed_file = file
                    leaf = child
            else:
                accumulate_stats(child, stats)
            add_managers(child.managers_by_diff, managers_by_diff)
            add_managers(child.managers_by_path, managers_by_path)
            node = child

        if leaf is None:
            logger.debug("duplicate_file_path", path=file.path_raw)
            return
        self.tree.leaves[file.index] = leaf
        bubble_up(leaf, self.cap)

    def add_files(self, files: Iterable[FilteredFile], result: FilterResult) -> WorkTree:
        for filtered in files:
            self.add_file(filtered, result)
        return self.tree


def build_tree(result: FilterResult, settings: FilterSettings) -> WorkTree:
    """Build a fresh tree from one filter pass.

    Args:
        result: Filter overlay with surviving files
        settings: Filter settings (weight stat, weight cap, change peek)

    Returns:
        WorkTree rooted at a node named ``Root``
    """
    tree = TreeBuilder(settings).add_files(result.files, result)
    logger.debug("tree_built", leaves=len(tree.leaves), total_weight=tree.total_weight)
    return tree
