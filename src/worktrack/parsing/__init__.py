"""Parsing of three-section work-tracking exports."""

from worktrack.parsing.content import TextFileContent
from worktrack.parsing.crossref import cross_reference
from worktrack.parsing.section_parser import (
    FILE_SECTION_PREFIX,
    TASK_SECTION_PREFIX,
    SectionParser,
    parse_sections,
    to_number,
)

__all__ = [
    "TextFileContent",
    "SectionParser",
    "parse_sections",
    "cross_reference",
    "to_number",
    "TASK_SECTION_PREFIX",
    "FILE_SECTION_PREFIX",
]
