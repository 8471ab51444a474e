"""Include/exclude text filters, priority filters and date bounds."""

import math
import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Iterable, List, Optional, Pattern, Set, Tuple

import structlog

from worktrack.models.config import FilterSettings

logger = structlog.get_logger(__name__)


@dataclass
class TextFilter:
    """Compiled include/exclude patterns.

    Literal patterns are stored lower-cased and matched as substrings of the
    lower-cased value; regex patterns are compiled case-insensitive.
    """

    includes: List[str] = field(default_factory=list)
    includes_regex: List[Pattern[str]] = field(default_factory=list)
    excludes: List[str] = field(default_factory=list)
    excludes_regex: List[Pattern[str]] = field(default_factory=list)

    @property
    def has_includes(self) -> bool:
        return bool(self.includes or self.includes_regex)

    @property
    def is_empty(self) -> bool:
        return not (self.has_includes or self.excludes or self.excludes_regex)


def is_alphanumeric(text: str) -> bool:
    """True if text is made of ASCII letters and digits only."""
    return text.isascii() and text.isalnum()


def _input_to_patterns(text: Optional[str]) -> Tuple[List[str], List[Pattern[str]]]:
    if not text:
        return [], []
    literals: List[str] = []
    regexes: List[Pattern[str]] = []
    for token in text.split(" "):
        if not token:
            continue
        if is_alphanumeric(token):
            literals.append(token.lower())
            continue
        try:
            regexes.append(re.compile(token, re.IGNORECASE))
        except re.error as e:
            logger.error("bad_filter_pattern", pattern=token, error=str(e))
    return literals, regexes


def build_text_filter(include: Optional[str], exclude: Optional[str]) -> TextFilter:
    """Build a filter from space-separated include and exclude patterns.

    Args:
        include: Patterns a value must match at least one of (None = any)
        exclude: Patterns a value must match none of

    Returns:
        TextFilter; patterns that fail to compile are left out
    """
    includes, includes_regex = _input_to_patterns(include)
    excludes, excludes_regex = _input_to_patterns(exclude)
    return TextFilter(
        includes=includes,
        includes_regex=includes_regex,
        excludes=excludes,
        excludes_regex=excludes_regex,
    )


def _matches_any(value: str, literals: List[str], regexes: List[Pattern[str]]) -> bool:
    if any(literal in value for literal in literals):
        return True
    return any(regex.search(value) for regex in regexes)


def match_text_filter(value: str, text_filter: TextFilter) -> bool:
    """Check a value against a text filter.

    With includes present the value must match at least one of them; it
    must then match none of the excludes.
    """
    value = value.lower()
    if text_filter.has_includes:
        if not _matches_any(value, text_filter.includes, text_filter.includes_regex):
            return False
    return not _matches_any(value, text_filter.excludes, text_filter.excludes_regex)


def match_array_to_text_filter(values: Iterable[str], text_filter: TextFilter) -> bool:
    """Match several values joined as ``/a/b/c/``.

    An empty filter matches anything, including an empty collection.
    """
    if text_filter.is_empty:
        return True
    return match_text_filter("/" + "/".join(values) + "/", text_filter)


def match_set_to_text_filter(values: Set[str], text_filter: TextFilter) -> bool:
    if text_filter.is_empty:
        return True
    return match_array_to_text_filter(sorted(values), text_filter)


# Settings flag per priority code: 0=none, 1=ubn, 2=high, 3=mid, 4=low, 5=wish.
_PRIORITY_FLAGS = (
    (0, "task_pri_none"),
    (1, "task_pri_ubn"),
    (2, "task_pri_high"),
    (3, "task_pri_mid"),
    (4, "task_pri_low"),
    (5, "task_pri_wish"),
)


def build_priority_filter(settings: FilterSettings) -> Set[int]:
    """Collect the accepted task priority codes from the settings flags."""
    accepted: Set[int] = set()
    for code, flag in _PRIORITY_FLAGS:
        if getattr(settings, flag) or settings.task_pri_any:
            accepted.add(code)
    return accepted


def match_priority_filter(priorities: Set[int], accepted: Set[int]) -> bool:
    """True if any priority is accepted, or nothing is filtered.

    With a non-empty accepted set a change without tasks never matches.
    """
    if not accepted:
        return True
    return not priorities.isdisjoint(accepted)


def date_filter_to_epoch(date_text: Optional[str], seconds_to_add: int) -> Optional[float]:
    """Convert a ``YY/MM/DD`` local date to epoch seconds.

    Args:
        date_text: Date string, e.g. ``24/01/31``
        seconds_to_add: Offset from local midnight

    Returns:
        Epoch seconds, or None if the date is missing or invalid
    """
    if not date_text:
        return None
    fields = date_text.split("/")
    if len(fields) != 3:
        return None
    try:
        date = datetime(2000 + int(fields[0]), int(fields[1]), int(fields[2]))
    except ValueError:
        logger.warning("bad_date_filter", date=date_text)
        return None
    return (date + timedelta(seconds=seconds_to_add)).timestamp()


def to_number_or_zero(value: Any) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(number):
        return 0
    return number
