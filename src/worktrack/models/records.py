"""Records parsed from a work-tracking export.

Change, task and file records reference each other, so they are plain
dataclasses compared by identity rather than pydantic models.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Set

Stats = Dict[str, float]
Datas = Dict[str, float]

SEV_TAG = "SEV Task"
LAUNCH_BLOCKING_TAG = "launch-blocking"

PRIORITY_NAMES = {
    0: "none",
    1: "ubn",
    2: "high",
    3: "mid",
    4: "low",
    5: "wish",
}


@dataclass(eq=False)
class TaskRecord:
    """A tracked work item linked from one or more changes."""

    id: int
    title: str
    priority: int
    task_type: int
    tags: Set[str] = field(default_factory=set)
    is_sla: bool = False
    sla_start: float = 0
    sla_completion: float = 0
    sla_deadline: float = 0


@dataclass(eq=False)
class ChangeRecord:
    """One reviewed code submission ("diff").

    ``tasks`` and ``files`` are filled in by the cross-referencer after the
    whole export has been read.
    """

    id: int
    fbid: str
    date_closed: float
    line_count: float = 0
    substantial_line_count: float = 0
    author: str = ""
    cloc_delta: float = 0
    lloc_delta: float = 0
    ploc_delta: float = 0
    is_code_mod: bool = False
    is_bot: bool = False
    title: str = ""
    file_count: float = 0
    extensions: List[str] = field(default_factory=list)
    task_ids: List[int] = field(default_factory=list)
    reviewers: List[str] = field(default_factory=list)
    commenters: List[str] = field(default_factory=list)
    acceptors: List[str] = field(default_factory=list)
    managers_raw: str = ""
    tasks: List[TaskRecord] = field(default_factory=list, repr=False)
    files: List["ParsedFileEntry"] = field(default_factory=list, repr=False)


@dataclass(eq=False)
class ParsedFileEntry:
    """File-level activity row with its resolved changes.

    ``changes`` is sorted descending by ``date_closed``. ``index`` is the
    position of the entry in the parsed file list.
    """

    index: int
    managers_raw: str
    path_raw: str
    path_parts: List[str]
    changes: List[ChangeRecord] = field(default_factory=list, repr=False)
    stats: Stats = field(default_factory=dict)
    datas: Datas = field(default_factory=dict)


@dataclass
class WorkContent:
    """Cross-referenced result of parsing one export."""

    changes: Dict[str, ChangeRecord] = field(default_factory=dict)
    tasks: Dict[int, TaskRecord] = field(default_factory=dict)
    files: List[ParsedFileEntry] = field(default_factory=list)


def is_sla_task(task: TaskRecord) -> bool:
    return task.is_sla


def is_sev_task(task: TaskRecord) -> bool:
    return SEV_TAG in task.tags


def is_launch_blocking_task(task: TaskRecord) -> bool:
    return LAUNCH_BLOCKING_TAG in task.tags


def task_priority_name(priority: int) -> str:
    """Short display name for a task priority code."""
    return PRIORITY_NAMES.get(priority, "unknown")


def compare_task_priority(a: int, b: int) -> int:
    """Compare two priority codes by severity.

    Code 0 ("none") is the least severe; among 1-5 a lower code is more
    severe (1 is ubn, 5 is wish).

    Returns:
        Negative if ``a`` is less severe than ``b``, positive if more
        severe, 0 if equal.
    """
    if a == b:
        return 0
    if a == 0:
        return -1
    if b == 0:
        return 1
    if a > b:
        return -1
    return 1
