"""Record filtering: text patterns, priorities, predicates and filter passes."""

from worktrack.filtering.expression import build_eval_filter, compile_predicate
from worktrack.filtering.passes import (
    CompiledFilters,
    FilteredFile,
    FilterResult,
    apply_filters,
    change_matches,
    dominant_manager_chain,
)
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

__all__ = [
    "TextFilter",
    "build_text_filter",
    "match_text_filter",
    "match_array_to_text_filter",
    "match_set_to_text_filter",
    "build_priority_filter",
    "match_priority_filter",
    "date_filter_to_epoch",
    "build_eval_filter",
    "compile_predicate",
    "CompiledFilters",
    "FilteredFile",
    "FilterResult",
    "apply_filters",
    "change_matches",
    "dominant_manager_chain",
]
