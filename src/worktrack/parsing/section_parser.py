"""Tolerant parser for three-section work-tracking exports.

An export is one comma-separated text with three sections in fixed order:

1. Changes ("diffs"), preceded by a header line.
2. Tasks, starting at a line beginning with ``task_number,title,priority``.
3. Files, starting at a line beginning with ``manager_chain,diff_fbids,``.

Malformed rows are logged and skipped; parsing never raises on bad data.
"""

import math
from typing import Iterable, Iterator, List, Optional, Set

import structlog

from worktrack.models.records import ChangeRecord, ParsedFileEntry, TaskRecord, WorkContent

logger = structlog.get_logger(__name__)

TASK_SECTION_PREFIX = "task_number,title,priority"
FILE_SECTION_PREFIX = "manager_chain,diff_fbids,"

# Required leading columns per section; the rest are optional.
CHANGE_REQUIRED_FIELDS = 15
CHANGE_MAX_FIELDS = 19
TASK_REQUIRED_FIELDS = 5
TASK_MAX_FIELDS = 9
FILE_FIELDS = 10


def to_number(text: str) -> float:
    """Convert a CSV cell to a number, treating blanks, junk and non-finite values as 0."""
    text = text.strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return 0
    if not math.isfinite(number):
        return 0
    return number


def _split_list(text: str, sep: str = "/") -> List[str]:
    return [part for part in text.split(sep) if part]


class _RowChecker:
    """Tracks the field count of the last accepted row in a section."""

    def __init__(self, section: str, required: int, maximum: int) -> None:
        self.section = section
        self.required = required
        self.maximum = maximum
        self.field_count = 0

    def accept(self, fields: List[str], line_number: int, line: str) -> bool:
        if self.field_count and len(fields) != self.field_count:
            logger.warning(
                "bad_line",
                section=self.section,
                line_number=line_number,
                line=line,
                expected_fields=self.field_count,
                actual_fields=len(fields),
            )
            return False
        if len(fields) < self.required:
            logger.warning(
                "short_line",
                section=self.section,
                line_number=line_number,
                line=line,
                required_fields=self.required,
                actual_fields=len(fields),
            )
            return False
        # Later rows must carry as many fields as this one consumed.
        self.field_count = min(len(fields), self.maximum)
        return True


class SectionParser:
    """Parses one export into change, task and file records.

    The line sequence is consumed once, front to back. File rows are
    resolved against the changes seen in the first section; cross-linking
    the other direction is left to :func:`worktrack.parsing.crossref.cross_reference`.
    """

    def __init__(self, manager_anchor: Optional[str] = None) -> None:
        """Initialize the parser.

        Args:
            manager_anchor: If set, a file's manager chain is cut to start at
                the first occurrence of this marker
        """
        self.manager_anchor = manager_anchor
        self._line_number = 0

    def parse(self, lines: Iterable[str]) -> WorkContent:
        """Parse all three sections.

        Args:
            lines: Export lines, header first

        Returns:
            WorkContent with changes, tasks and files (not yet cross-referenced)
        """
        content = WorkContent()
        self._line_number = 0
        line_iter = iter(lines)

        # Skip the header line.
        if next(line_iter, None) is None:
            return content
        self._line_number = 1

        # The three phases share one iterator; each stops after its sentinel.
        self._parse_changes(line_iter, content)
        self._parse_tasks(line_iter, content)
        self._parse_files(line_iter, content)

        logger.debug(
            "parsed_work_content",
            changes=len(content.changes),
            tasks=len(content.tasks),
            files=len(content.files),
        )
        return content

    def _parse_changes(self, line_iter: Iterator[str], content: WorkContent) -> None:
        checker = _RowChecker("changes", CHANGE_REQUIRED_FIELDS, CHANGE_MAX_FIELDS)
        for line in line_iter:
            self._line_number += 1
            if line.startswith(TASK_SECTION_PREFIX):
                return
            fields = line.rstrip().split(",")
            if not line.strip() or not checker.accept(fields, self._line_number, line):
                continue
            change = self._change_from_fields(fields)
            content.changes[change.fbid] = change

    def _parse_tasks(self, line_iter: Iterator[str], content: WorkContent) -> None:
        checker = _RowChecker("tasks", TASK_REQUIRED_FIELDS, TASK_MAX_FIELDS)
        for line in line_iter:
            self._line_number += 1
            if line.startswith(FILE_SECTION_PREFIX):
                return
            fields = line.rstrip().split(",")
            if not line.strip() or not checker.accept(fields, self._line_number, line):
                continue
            task = self._task_from_fields(fields)
            content.tasks[task.id] = task

    def _parse_files(self, line_iter: Iterator[str], content: WorkContent) -> None:
        checker = _RowChecker("files", FILE_FIELDS, FILE_FIELDS)
        for line in line_iter:
            self._line_number += 1
            fields = line.rstrip().split(",")
            if not line.strip() or not checker.accept(fields, self._line_number, line):
                continue
            entry = self._file_from_fields(fields, content)
            if entry is not None:
                content.files.append(entry)

    @staticmethod
    def _change_from_fields(fields: List[str]) -> ChangeRecord:
        def optional(index: int) -> str:
            return fields[index] if index < len(fields) else ""

        # The last link of the chain is the author, who is not a manager.
        managers_raw = "/".join(optional(16).split("/")[:-1])
        return ChangeRecord(
            id=int(to_number(fields[0])),
            fbid=fields[1],
            date_closed=to_number(fields[2]),
            line_count=to_number(fields[3]),
            substantial_line_count=to_number(fields[4]),
            author=fields[5],
            cloc_delta=to_number(fields[6]),
            lloc_delta=to_number(fields[7]),
            ploc_delta=to_number(fields[8]),
            is_code_mod=bool(to_number(fields[9])),
            is_bot=bool(to_number(fields[10])),
            title=fields[11],
            file_count=to_number(fields[12]),
            extensions=_split_list(fields[13]),
            task_ids=[
                int(task_id)
                for task_id in (to_number(part) for part in fields[14].split("/"))
                if task_id != 0
            ],
            reviewers=_split_list(optional(15)),
            managers_raw=managers_raw,
            commenters=_split_list(optional(17)),
            acceptors=_split_list(optional(18)),
        )

    @staticmethod
    def _task_from_fields(fields: List[str]) -> TaskRecord:
        def optional(index: int) -> float:
            return to_number(fields[index]) if index < len(fields) else 0

        return TaskRecord(
            id=int(to_number(fields[0])),
            title=fields[1],
            priority=int(to_number(fields[2])),
            task_type=int(to_number(fields[3])),
            tags=set(_split_list(fields[4], ":::")),
            is_sla=bool(optional(5)),
            sla_start=optional(6),
            sla_completion=optional(7),
            sla_deadline=optional(8),
        )

    def _file_from_fields(
        self, fields: List[str], content: WorkContent
    ) -> Optional[ParsedFileEntry]:
        managers_raw = fields[0]
        if self.manager_anchor:
            anchor_at = managers_raw.find(self.manager_anchor)
            if anchor_at >= 0:
                managers_raw = managers_raw[anchor_at:]

        diff_fbids = fields[1].split("/")
        repo = fields[2]
        path = fields[3]
        repo_prefix = repo + "/"
        if not path.startswith(repo_prefix):
            path = repo_prefix + path

        authors: Set[str] = set()
        changes: List[ChangeRecord] = []
        for fbid in diff_fbids:
            change = content.changes.get(fbid)
            if change is not None:
                changes.append(change)
                authors.add(change.author)

        if not changes:
            logger.warning("file_without_diffs", path=path, diff_fbids=fields[1])
            return None

        changes.sort(key=lambda change: change.date_closed, reverse=True)

        return ParsedFileEntry(
            index=len(content.files),
            managers_raw=managers_raw,
            path_raw="/" + path + "/",
            path_parts=path.split("/"),
            changes=changes,
            stats={
                "fileCount": 1,
                "editCount": to_number(fields[8]),
                "ploc": to_number(fields[9]),
                "rawFileUpdates": len(changes),
            },
            datas={
                "rawAuthors": len(authors),
                "logicalComplexity": to_number(fields[4]),
                "codeCoveragePercent": to_number(fields[5]),
                "userActiveCgtDaysL180": to_number(fields[6]),
                "userActivePreDiffCgtDaysL180": to_number(fields[7]),
            },
        )


def parse_sections(lines: Iterable[str], manager_anchor: Optional[str] = None) -> WorkContent:
    """Parse an export without cross-referencing it.

    Args:
        lines: Export lines
        manager_anchor: Optional marker a file's manager chain is cut to

    Returns:
        WorkContent whose changes do not yet link back to files or tasks
    """
    return SectionParser(manager_anchor=manager_anchor).parse(lines)
