"""Cross-referencing of parsed export records."""

import structlog

from worktrack.models.records import WorkContent

logger = structlog.get_logger(__name__)


def cross_reference(content: WorkContent) -> WorkContent:
    """Link changes to their files and tasks and derive per-file weights.

    Mutates ``content`` in place: every change gets its ``files`` (sorted by
    raw path) and resolved ``tasks``; every file gets the
    ``rawFileUpdatesWeighed`` stat, the sum over its changes of
    ``1 / number of files the change touches``.

    Args:
        content: Freshly parsed content

    Returns:
        The same content object
    """
    for file in content.files:
        for change in file.changes:
            change.files.append(file)

    for change in content.changes.values():
        change.files.sort(key=lambda file: file.path_raw)
        change.tasks = []
        for task_id in change.task_ids:
            task = content.tasks.get(task_id)
            if task is None:
                logger.warning("missing_task", task_id=task_id, change_id=change.id)
                continue
            change.tasks.append(task)

    for file in content.files:
        file.stats["rawFileUpdatesWeighed"] = sum(
            1 / len(change.files) for change in file.changes
        )

    return content
