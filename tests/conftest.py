"""Test configuration for pytest."""

import pytest

from config import Config
from section_capture.processor import SectionScreenshotProcessor


class FastSettings(Config):
    """Application settings without real waits."""
    SCROLL_INTERVAL_MS = 0
    SCROLL_SETTLE_MS = 0


@pytest.fixture
def settings():
    return FastSettings


@pytest.fixture
def processor(settings):
    return SectionScreenshotProcessor(settings=settings)


@pytest.fixture
def run_dir(tmp_path):
    path = tmp_path / "example_com_run"
    path.mkdir()
    return path
