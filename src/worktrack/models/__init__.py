"""Data models for work-tracking exports."""

from worktrack.models.config import FilterSettings, Settings, TrustedLead
from worktrack.models.records import (
    ChangeRecord,
    Datas,
    ParsedFileEntry,
    Stats,
    TaskRecord,
    WorkContent,
    compare_task_priority,
    is_launch_blocking_task,
    is_sev_task,
    is_sla_task,
    task_priority_name,
)

__all__ = [
    "ChangeRecord",
    "TaskRecord",
    "ParsedFileEntry",
    "WorkContent",
    "Stats",
    "Datas",
    "FilterSettings",
    "Settings",
    "TrustedLead",
    "compare_task_priority",
    "is_launch_blocking_task",
    "is_sev_task",
    "is_sla_task",
    "task_priority_name",
]
