"""Filtering passes over cross-referenced work content.

The passes never modify the parsed records. Which changes matched and how
many surviving files each touches are returned in a :class:`FilterResult`
overlay, so the cached content can be filtered again with other settings.
"""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

import structlog

from worktrack.filtering.expression import Predicate, build_eval_filter
from worktrack.filtering.text_filter import (
    TextFilter,
    build_priority_filter,
    build_text_filter,
    date_filter_to_epoch,
    match_array_to_text_filter,
    match_priority_filter,
    match_set_to_text_filter,
    match_text_filter,
)
from worktrack.models.config import FilterSettings, TrustedLead
from worktrack.models.records import (
    ChangeRecord,
    Datas,
    ParsedFileEntry,
    Stats,
    WorkContent,
    is_launch_blocking_task,
    is_sev_task,
    is_sla_task,
)

logger = structlog.get_logger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass
class CompiledFilters:
    """Filters built once from settings and reused for every record."""

    settings: FilterSettings
    path: TextFilter
    diff_managers: TextFilter
    ca_managers: TextFilter
    authors: TextFilter
    reviewers: TextFilter
    title: TextFilter
    task_title: TextFilter
    tags: TextFilter
    priorities: Set[int]
    date_min: Optional[float]
    date_max: Optional[float]
    file_predicate: Optional[Predicate]
    trusted_leads: Dict[str, TrustedLead]

    @classmethod
    def from_settings(cls, settings: FilterSettings) -> "CompiledFilters":
        return cls(
            settings=settings,
            path=build_text_filter(settings.path_include, settings.path_exclude),
            diff_managers=build_text_filter(
                settings.diff_managers_include, settings.diff_managers_exclude
            ),
            ca_managers=build_text_filter(settings.ca_managers_include, settings.ca_managers_exclude),
            authors=build_text_filter(settings.authors_include, settings.authors_exclude),
            reviewers=build_text_filter(settings.reviewers_include, settings.reviewers_exclude),
            title=build_text_filter(settings.title_include, settings.title_exclude),
            task_title=build_text_filter(settings.task_title_include, settings.task_title_exclude),
            tags=build_text_filter(settings.tags_include, settings.tags_exclude),
            priorities=build_priority_filter(settings),
            date_min=date_filter_to_epoch(settings.diff_date_min, 0),
            date_max=date_filter_to_epoch(settings.diff_date_max, SECONDS_PER_DAY),
            file_predicate=build_eval_filter(settings.file_eval_filter),
            trusted_leads=active_trusted_leads(settings),
        )


@dataclass
class FilteredFile:
    """A file that survived filtering, with the matched subset of its changes."""

    file: ParsedFileEntry
    changes: List[ChangeRecord]
    stats: Stats
    datas: Datas
    diff_managers_raw: str


@dataclass
class FilterResult:
    """Overlay produced by one filter pass."""

    matched: Set[str] = field(default_factory=set)
    filtered_file_counts: Dict[str, int] = field(default_factory=dict)
    files: List[FilteredFile] = field(default_factory=list)

    def is_matched(self, change: ChangeRecord) -> bool:
        return change.fbid in self.matched

    def filtered_file_count(self, change: ChangeRecord) -> int:
        return self.filtered_file_counts.get(change.fbid, 0)


def active_trusted_leads(settings: FilterSettings) -> Dict[str, TrustedLead]:
    """Trusted leads whose tags pass the TL tag filter, keyed by unixname."""
    leads: Dict[str, TrustedLead] = {}
    if not settings.tls:
        return leads
    tag_filter = build_text_filter(settings.tl_tag_include, settings.tl_tag_exclude)
    for lead in settings.tls:
        if match_text_filter("/" + lead.tags + "/", tag_filter):
            leads[lead.unixname] = lead
    return leads


def _matches_trusted_leads(change: ChangeRecord, filters: CompiledFilters) -> bool:
    settings = filters.settings
    leads = filters.trusted_leads
    landed = change.author in leads
    approved = any(acceptor in leads for acceptor in change.acceptors)
    commented = any(
        commenter != change.author and commenter in leads for commenter in change.commenters
    )

    if settings.has_positive_tl_filter:
        matched = (
            (settings.tl_landed and landed)
            or (settings.tl_approved and approved)
            or (settings.tl_commented and commented)
        )
        if not matched:
            return False

    if settings.has_negative_tl_filter:
        if settings.not_tl_landed and landed:
            return False
        if settings.not_tl_approved and approved:
            return False
        if settings.not_tl_commented and commented:
            return False

    return True


def change_matches(change: ChangeRecord, filters: CompiledFilters) -> bool:
    """Decide whether a change passes every change-level filter.

    Args:
        change: Change to check
        filters: Compiled filters

    Returns:
        True if the change should contribute to the tree
    """
    settings = filters.settings
    if filters.date_min and change.date_closed < filters.date_min:
        return False
    if filters.date_max and change.date_closed >= filters.date_max:
        return False
    if not match_text_filter(change.author, filters.authors):
        return False
    if not match_array_to_text_filter(change.reviewers, filters.reviewers):
        return False
    if not match_text_filter(change.title, filters.title):
        return False

    tags: Set[str] = set()
    priorities: Set[int] = set()
    task_titles: List[str] = []
    sev = sla = launch_blocking = False
    for task in change.tasks:
        task_titles.append(task.title)
        sev = sev or is_sev_task(task)
        sla = sla or is_sla_task(task)
        launch_blocking = launch_blocking or is_launch_blocking_task(task)
        priorities.add(task.priority)
        tags.update(task.tags)

    if not match_array_to_text_filter(task_titles, filters.task_title):
        return False
    if not match_set_to_text_filter(tags, filters.tags):
        return False
    if not match_priority_filter(priorities, filters.priorities):
        return False

    # With any category selected, at least one selected category must hold.
    if settings.has_category_filter:
        if not (
            (settings.task_sev and sev)
            or (settings.task_sla and sla)
            or (settings.task_launch_blocking and launch_blocking)
        ):
            return False

    if settings.has_tl_filter and not _matches_trusted_leads(change, filters):
        return False

    return True


def match_changes(content: WorkContent, filters: CompiledFilters) -> Set[str]:
    """Pass A: the fbids of every change that passes the change filters."""
    return {fbid for fbid, change in content.changes.items() if change_matches(change, filters)}


def dominant_manager_chain(file: ParsedFileEntry) -> str:
    """Most frequent non-empty manager chain among a file's changes.

    Ties go to the chain seen first in the file's (time-ordered) changes.
    """
    counts = Counter(change.managers_raw for change in file.changes if change.managers_raw)
    if not counts:
        return ""
    return counts.most_common(1)[0][0]


def filter_files(
    content: WorkContent, matched: Set[str], filters: CompiledFilters
) -> FilterResult:
    """Pass B: keep files with at least one matched change.

    Args:
        content: Cross-referenced content
        matched: fbids from pass A
        filters: Compiled filters

    Returns:
        FilterResult with surviving files and per-change surviving file counts
    """
    result = FilterResult(matched=set(matched))

    for file in content.files:
        if not match_text_filter(file.path_raw, filters.path):
            continue
        diff_managers_raw = dominant_manager_chain(file)
        if not match_text_filter("/" + diff_managers_raw + "/", filters.diff_managers):
            continue
        if not match_text_filter("/" + file.managers_raw + "/", filters.ca_managers):
            continue

        changes = [change for change in file.changes if change.fbid in matched]
        if not changes:
            continue

        stats = dict(file.stats)
        stats["fileUpdates"] = len(changes)
        datas = dict(file.datas)
        datas["authors"] = len({change.author for change in changes})

        if filters.file_predicate is not None and not filters.file_predicate(stats, datas):
            continue

        for change in changes:
            result.filtered_file_counts[change.fbid] = (
                result.filtered_file_counts.get(change.fbid, 0) + 1
            )
        result.files.append(
            FilteredFile(
                file=file,
                changes=changes,
                stats=stats,
                datas=datas,
                diff_managers_raw=diff_managers_raw,
            )
        )

    return result


def apply_filters(content: WorkContent, settings: FilterSettings) -> FilterResult:
    """Run both filtering passes.

    Args:
        content: Cross-referenced content (not modified)
        settings: Filter settings

    Returns:
        FilterResult overlay for building the tree
    """
    filters = CompiledFilters.from_settings(settings)
    matched = match_changes(content, filters)
    result = filter_files(content, matched, filters)
    logger.info(
        "filters_applied",
        changes=len(content.changes),
        matched_changes=len(matched),
        files=len(content.files),
        matched_files=len(result.files),
    )
    return result
