"""Tests for building the path tree from filtered files."""

from export_samples import FILE_ROWS, build_export
from worktrack.filtering import apply_filters
from worktrack.models import FilterSettings
from worktrack.parsing import TextFileContent
from worktrack.tree import build_tree, get_managers, get_path


def build(work, **settings):
    settings = FilterSettings(**settings)
    return build_tree(apply_filters(work, settings), settings)


def node_at(tree, *names):
    node = tree.root
    for name in names:
        node = node.children[name]
    return node


# ============================================================================
# Shape and stats
# ============================================================================


class TestTreeShape:
    """Tests for node creation along file paths."""

    def test_paths(self, work):
        """Test nodes follow the prefixed path components."""
        tree = build(work)

        assert tree.root.name == "Root"
        assert list(tree.root.children) == ["fbcode", "www"]
        assert sorted(node_at(tree, "fbcode", "a", "b").children) == ["f.cpp", "g.h"]
        assert node_at(tree, "www", "lib", "x.py").is_leaf

    def test_keys_increase_in_creation_order(self, work):
        """Test keys are handed out from 100 as nodes are created."""
        tree = build(work)

        assert [node.key for node in tree.walk()] == list(range(100, 109))

    def test_parents_linked(self, work):
        """Test every child points at its parent."""
        tree = build(work)
        leaf = node_at(tree, "fbcode", "a", "b", "f.cpp")

        assert leaf.parent is node_at(tree, "fbcode", "a", "b")
        assert tree.root.parent is None

    def test_leaves_registered_by_file(self, work):
        """Test the build maps each surviving file to its leaf."""
        tree = build(work)

        assert [tree.leaf_for(file).name for file in work.files] == ["f.cpp", "g.h", "x.py"]
        assert tree.leaf_for(work.files[0]).parsed_file is work.files[0]

    def test_leaf_for_filtered_out_file(self, work):
        """Test a file dropped by the filters has no leaf."""
        tree = build(work, path_include="www")

        assert tree.leaf_for(work.files[0]) is None

    def test_paths_helper(self, work):
        """Test slash-joined paths for leaves and interior nodes."""
        tree = build(work)

        assert get_path(node_at(tree, "fbcode", "a", "b", "f.cpp")) == "Root/fbcode/a/b/f.cpp"
        assert get_path(node_at(tree, "fbcode", "a", "b")) == "Root/fbcode/a/b"


class TestStats:
    """Tests for stat accumulation and weights."""

    def test_root_sums_every_file(self, work):
        """Test the root holds the elementwise sum of all files."""
        stats = build(work).root.stats

        assert stats["editCount"] == 6
        assert stats["fileCount"] == 3
        assert stats["ploc"] == 190

    def test_interior_sums_subtree(self, work):
        """Test an interior node only sums the files below it."""
        tree = build(work)

        assert node_at(tree, "fbcode", "a", "b").stats["editCount"] == 4
        assert node_at(tree, "www").stats["editCount"] == 2

    def test_leaf_keeps_file_stats(self, work):
        """Test leaves carry the file's own stats and datas."""
        leaf = node_at(build(work), "fbcode", "a", "b", "f.cpp")

        assert leaf.stats["editCount"] == 3
        assert leaf.stats["fileUpdates"] == 2
        assert leaf.datas["authors"] == 2
        assert "fileUpdates" not in work.files[0].stats

    def test_file_updates_weighed(self, work):
        """Test each change's weight is split over its surviving files."""
        tree = build(work)

        assert node_at(tree, "fbcode", "a", "b", "f.cpp").stats["fileUpdatesWeighed"] == 1.5
        assert node_at(tree, "fbcode", "a", "b", "g.h").stats["fileUpdatesWeighed"] == 0.5
        assert node_at(tree, "www", "lib", "x.py").stats["fileUpdatesWeighed"] == 1.0
        assert tree.total_weight == 3.0

    def test_weight_redistributed_after_filtering(self, work):
        """Test weights are split over the files that survived, not all files."""
        tree = build(work, authors_include="alice")

        assert node_at(tree, "fbcode", "a", "b", "f.cpp").stats["weight"] == 0.5
        assert node_at(tree, "fbcode", "a", "b", "g.h").stats["weight"] == 0.5
        assert tree.total_weight == 1.0

    def test_custom_weight_stat(self, work):
        """Test another stat can be used as the weight."""
        assert build(work, weight_stat="editCount").total_weight == 6

    def test_weight_cap(self, work):
        """Test a single file's weight is capped."""
        tree = build(work, weight_stat="editCount", weight_cap="2")

        assert node_at(tree, "fbcode", "a", "b", "f.cpp").stats["weight"] == 2
        assert tree.total_weight == 5

    def test_unknown_weight_stat(self, work):
        """Test a stat no file has gives zero weight."""
        assert build(work, weight_stat="nope").total_weight == 0

    def test_file_order_does_not_change_sums(self):
        """Test reordering file rows gives the same root stats."""
        forward = TextFileContent(build_export()).work_content()
        backward = TextFileContent(build_export(files=list(reversed(FILE_ROWS)))).work_content()

        assert build(backward).root.stats == build(forward).root.stats

    def test_duplicate_path_accumulates(self):
        """Test a repeated path adds stats but creates no second leaf."""
        files = [FILE_ROWS[0], FILE_ROWS[0]]
        work = TextFileContent(build_export(files=files)).work_content()
        tree = build(work)

        assert len(tree.leaves) == 1
        assert node_at(tree, "fbcode", "a", "b", "f.cpp").stats["editCount"] == 6


# ============================================================================
# Managers and changes
# ============================================================================


class TestManagers:
    """Tests for per-level manager labels."""

    def test_root_levels(self, work):
        """Test manager chains are merged per level below the top three."""
        root = build(work).root

        assert root.managers_by_path == [["mgrA", "mgrB"], ["ownerA", "ownerB"]]
        assert root.managers_by_diff == [["mgr1", "mgr2"]]

    def test_subtree_levels(self, work):
        """Test interior nodes only see chains from their subtree."""
        www = node_at(build(work), "www")

        assert www.managers_by_path == [["mgrB"], ["ownerB"]]
        assert www.managers_by_diff == [["mgr2"]]

    def test_formatting(self, work):
        """Test single labels print plain and multiple labels in brackets."""
        tree = build(work)

        assert get_managers(tree.root.managers_by_path) == "[mgrA,mgrB]::[ownerA,ownerB]"
        assert get_managers(node_at(tree, "www").managers_by_path) == "mgrB::ownerB"
        assert get_managers([]) == ""


class TestRecentChanges:
    """Tests for the per-node recent change lists."""

    def test_root_newest_first(self, work):
        """Test the root collects every change, newest first."""
        root = build(work).root

        assert [diff.fbid for diff in root.diffs] == ["D2", "D1", "D3"]

    def test_shared_change_once(self, work):
        """Test a change touching two sibling files appears once in the parent."""
        b = node_at(build(work), "fbcode", "a", "b")

        assert [diff.fbid for diff in b.diffs] == ["D1", "D3"]

    def test_cap(self, work):
        """Test every node keeps at most max_diff_peek + 1 changes."""
        tree = build(work, max_diff_peek=0)

        assert [diff.fbid for diff in tree.root.diffs] == ["D2"]
        assert all(len(node.diffs) <= 1 for node in tree.walk())

    def test_every_node_sorted_unique_and_capped(self):
        """Test recent change lists across a tree with more changes than the cap."""
        changes = [
            f"{i},D{i},{1700000000 + (i % 4) * 1000},1,1,u{i % 3},0,0,0,0,0,Change {i},1,py,0,,"
            f"ceo/vp/dir/m{i % 2}/u{i % 3},,"
            for i in range(1, 13)
        ]
        files = [
            "ceo/vp/dir/mA/oA,"
            + "/".join(f"D{i}" for i in range(1, 13) if i % 6 == j or (i + 1) % 6 == j)
            + f",repo,d{j % 2}/sub{j % 3}/f{j}.py,1,1,1,1,1,1"
            for j in range(6)
        ]
        work = TextFileContent(build_export(changes=changes, tasks=[], files=files)).work_content()
        tree = build(work, max_diff_peek=2)

        for node in tree.walk():
            dates = [diff.date_closed for diff in node.diffs]
            fbids = [diff.fbid for diff in node.diffs]
            assert dates == sorted(dates, reverse=True), get_path(node)
            assert len(set(fbids)) == len(fbids), get_path(node)
            assert len(node.diffs) <= 3, get_path(node)
        assert [diff.date_closed for diff in tree.root.diffs] == [1700003000] * 3

    def test_only_matched_changes(self, work):
        """Test filtered-out changes never reach the tree."""
        tree = build(work, authors_exclude="carol")

        assert [diff.fbid for diff in tree.root.diffs] == ["D2", "D1"]
