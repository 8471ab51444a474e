"""Pipeline from raw export text to a weighted call-tree profile."""

from dataclasses import dataclass
from typing import Callable, Optional

import structlog

from worktrack.filtering.passes import FilterResult, apply_filters
from worktrack.models.config import FilterSettings
from worktrack.parsing.content import TextFileContent
from worktrack.tree.builder import build_tree
from worktrack.tree.nodes import WorkTree
from worktrack.tree.profile import (
    CallTreeProfileBuilder,
    ProfileBuilder,
    ProfileGroup,
    Renderer,
    emit_profile,
)

logger = structlog.get_logger(__name__)

ProfileBuilderFactory = Callable[[float], ProfileBuilder]


@dataclass
class WorkTrackImport:
    """Everything one import produced."""

    tree: WorkTree
    filter_result: FilterResult
    group: ProfileGroup


def build_work_tree(content: TextFileContent, settings: FilterSettings) -> WorkTree:
    """Parse (once), filter and build the tree without emitting a profile.

    Args:
        content: Export content; its parse is cached on the object
        settings: Filter settings

    Returns:
        Freshly built WorkTree
    """
    work_content = content.work_content()
    return build_tree(apply_filters(work_content, settings), settings)


def import_work_track(
    content: TextFileContent,
    file_name: str,
    settings: Optional[FilterSettings] = None,
    renderer: Optional[Renderer] = None,
    builder_factory: ProfileBuilderFactory = CallTreeProfileBuilder,
) -> WorkTrackImport:
    """Import an export as a profile group.

    Args:
        content: Export content; parsed on first use and cached
        file_name: Name shown in the group title
        settings: Filter settings (defaults to FilterSettings())
        renderer: Optional render hook attached to every frame
        builder_factory: Creates the profile builder from the total weight

    Returns:
        WorkTrackImport with the tree, the filter overlay and the group
    """
    settings = settings or FilterSettings()
    work_content = content.work_content()
    filter_result = apply_filters(work_content, settings)
    tree = build_tree(filter_result, settings)

    builder = builder_factory(tree.total_weight)
    group_name = "Work " + file_name
    builder.set_name(group_name)
    emit_profile(tree, builder, renderer)
    profile = builder.build()

    logger.info(
        "work_track_imported",
        file_name=file_name,
        leaves=len(tree.leaves),
        total_weight=tree.total_weight,
    )
    return WorkTrackImport(
        tree=tree,
        filter_result=filter_result,
        group=ProfileGroup(name=group_name, index_to_view=0, profiles=[profile]),
    )
