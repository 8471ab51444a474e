"""Bounded propagation of recent changes from leaves to their ancestors.

Every node keeps at most ``cap`` changes, newest first, without duplicates.
A leaf's changes are offered to each ancestor in turn, newest first, with
two early exits that rely on that ordering:

* If an ancestor rejects a change, every ancestor above it already holds
  ``cap`` changes at least as recent (or the change itself), so the change
  is not offered further up.
* If a change is rejected by the leaf's parent, every older change of the
  same leaf would be rejected too, so the leaf is done.

Together they bound the work per leaf by the depth at which changes stop
fitting instead of ``depth * len(changes)``.
"""

from typing import List

from worktrack.models.records import ChangeRecord
from worktrack.tree.nodes import FileEntry


def insert_diff(diffs: List[ChangeRecord], cap: int, diff: ChangeRecord) -> bool:
    """Insert a change into a capped, newest-first list.

    Args:
        diffs: List sorted descending by ``date_closed``; modified in place
        cap: Maximum list length
        diff: Change to insert

    Returns:
        True if inserted, False if it would land past the cap or is
        already present
    """
    target = min(len(diffs), cap)
    # Walk back from the end past every strictly older change.
    while target > 0:
        previous = diffs[target - 1]
        if previous.date_closed == diff.date_closed and diff in diffs:
            # Distinct changes may share a timestamp; the same one may not.
            return False
        if previous.date_closed >= diff.date_closed:
            break
        target -= 1

    if target >= cap:
        return False

    diffs.insert(target, diff)
    if len(diffs) > cap:
        diffs.pop()
    return True


def bubble_up(leaf: FileEntry, cap: int) -> None:
    """Offer a leaf's changes to all of its ancestors.

    Args:
        leaf: Leaf whose ``diffs`` are sorted newest first
        cap: Per-node change cap
    """
    for diff in leaf.diffs:
        inserted = False
        ancestor = leaf.parent
        while ancestor is not None:
            if not insert_diff(ancestor.diffs, cap, diff):
                break
            inserted = True
            ancestor = ancestor.parent
        if not inserted:
            break
