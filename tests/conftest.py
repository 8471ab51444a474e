"""Shared fixtures: a small three-section export."""

import pytest

from export_samples import build_export
from worktrack.parsing import TextFileContent


@pytest.fixture
def export_text() -> str:
    return build_export()


@pytest.fixture
def content(export_text) -> TextFileContent:
    return TextFileContent(export_text)


@pytest.fixture
def work(content):
    return content.work_content()
