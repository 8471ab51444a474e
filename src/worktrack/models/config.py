"""Configuration models."""

import json
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class TrustedLead(BaseModel):
    """A reviewer-group member whose involvement can be filtered on."""

    unixname: str = Field(..., description="Login name as it appears in the export")
    tags: str = Field("", description="Free-form tags, matched by the TL tag filter")


class FilterSettings(BaseSettings):
    """Filter configuration applied to a parsed export.

    Settings can be loaded from environment variables or .env file.
    All settings are prefixed with WORKTRACK_ (e.g., WORKTRACK_PATH_INCLUDE).
    Include/exclude fields take space-separated patterns; a pattern made of
    letters and digits only is a substring match, anything else is a
    case-insensitive regular expression.
    """

    model_config = SettingsConfigDict(
        env_prefix="WORKTRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Text filters
    diff_managers_include: Optional[str] = None
    diff_managers_exclude: Optional[str] = None
    ca_managers_include: Optional[str] = None
    ca_managers_exclude: Optional[str] = None
    path_include: Optional[str] = None
    path_exclude: Optional[str] = None
    tags_include: Optional[str] = None
    tags_exclude: Optional[str] = None
    authors_include: Optional[str] = None
    authors_exclude: Optional[str] = None
    reviewers_include: Optional[str] = None
    reviewers_exclude: Optional[str] = None
    title_include: Optional[str] = None
    title_exclude: Optional[str] = None
    task_title_include: Optional[str] = None
    task_title_exclude: Optional[str] = None

    # Date range, YY/MM/DD in local time
    diff_date_min: Optional[str] = None
    diff_date_max: Optional[str] = None

    # Task categories
    task_sev: bool = False
    task_sla: bool = False
    task_launch_blocking: bool = False

    # Task priorities
    task_pri_ubn: bool = False
    task_pri_high: bool = False
    task_pri_mid: bool = False
    task_pri_low: bool = False
    task_pri_wish: bool = False
    task_pri_none: bool = False
    task_pri_any: bool = False

    # Predicate over a file's stats/datas, e.g. "stats.ploc > 100 and datas.authors >= 2"
    file_eval_filter: Optional[str] = None

    # Trusted leads
    tls: List[TrustedLead] = Field(default_factory=list)
    tl_tag_include: Optional[str] = None
    tl_tag_exclude: Optional[str] = None
    tl_landed: bool = False
    tl_approved: bool = False
    tl_commented: bool = False
    not_tl_landed: bool = False
    not_tl_approved: bool = False
    not_tl_commented: bool = False

    # Weighting
    weight_stat: str = Field(
        default="fileUpdatesWeighed",
        description="Stat used as the interval weight of each file",
    )
    weight_cap: str = Field(
        default="1000",
        description="Upper bound for a single file's weight",
    )
    max_diff_peek: int = Field(
        default=5,
        description="Number of representative changes shown per tree node",
    )

    @property
    def has_category_filter(self) -> bool:
        return self.task_sev or self.task_sla or self.task_launch_blocking

    @property
    def has_tl_filter(self) -> bool:
        return self.has_positive_tl_filter or self.has_negative_tl_filter

    @property
    def has_positive_tl_filter(self) -> bool:
        return self.tl_landed or self.tl_approved or self.tl_commented

    @property
    def has_negative_tl_filter(self) -> bool:
        return self.not_tl_landed or self.not_tl_approved or self.not_tl_commented

    @classmethod
    def from_json_file(cls, path: Path) -> "FilterSettings":
        """Load filter settings from a JSON object file.

        Args:
            path: Path to a JSON file with snake_case setting keys

        Returns:
            FilterSettings with the file's values over the defaults
        """
        with open(path, "r") as f:
            data = json.load(f)
        return cls(**data)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="WORKTRACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"
    log_json: bool = False
