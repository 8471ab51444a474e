"""Raw export content and its memoized parse."""

import threading
from pathlib import Path
from typing import List, Optional

from worktrack.models.records import WorkContent
from worktrack.parsing.crossref import cross_reference
from worktrack.parsing.section_parser import parse_sections


class TextFileContent:
    """Text of one export plus the cross-referenced records parsed from it.

    The parse is done at most once per instance and reused by every filter
    pass. Concurrent first callers race on a lock; the first one parses and
    the rest read its result.
    """

    def __init__(self, text: str, manager_anchor: Optional[str] = None) -> None:
        """Initialize content.

        Args:
            text: Full export text
            manager_anchor: Marker a file's manager chain is cut to, if any
        """
        self._text = text
        self.manager_anchor = manager_anchor
        self._work_content: Optional[WorkContent] = None
        self._lock = threading.Lock()

    @classmethod
    def from_path(cls, path: Path, manager_anchor: Optional[str] = None) -> "TextFileContent":
        """Read an export file from disk."""
        return cls(Path(path).read_text(encoding="utf-8"), manager_anchor=manager_anchor)

    def split_lines(self) -> List[str]:
        """Split the text into lines. Safe to call repeatedly."""
        return self._text.splitlines()

    @property
    def is_parsed(self) -> bool:
        return self._work_content is not None

    def work_content(self) -> WorkContent:
        """Get the cross-referenced records, parsing on first use.

        Returns:
            Cached WorkContent shared by all callers
        """
        cached = self._work_content
        if cached is not None:
            return cached
        with self._lock:
            if self._work_content is None:
                parsed = parse_sections(self.split_lines(), manager_anchor=self.manager_anchor)
                self._work_content = cross_reference(parsed)
            return self._work_content

    def invalidate(self) -> None:
        """Drop the cached parse so the next access re-reads the text."""
        with self._lock:
            self._work_content = None
