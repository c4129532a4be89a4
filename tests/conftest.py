import logging
import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path for CI environments where
# Python might not automatically include it.
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.config_loader import ConfigLoader
from helpers.arc_renderer import load_font


@pytest.fixture(autouse=True)
def reset_config_loader(monkeypatch):
    """Ensure ConfigLoader state does not leak between tests."""
    monkeypatch.delenv("CONFIG_PATH", raising=False)
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture
def default_font():
    """Pillow's bundled scalable font at a test-friendly size."""
    return load_font(None, 32)


@pytest.fixture
def uniform_measure():
    """Width function giving every glyph 20px, like a monospace font."""

    def measure(ch: str) -> float:
        return 20.0

    return measure


@pytest.fixture
def restore_root_logging():
    """Undo setup_logging() side effects on the root logger after a test."""
    from utils.logging import shutdown_logging

    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    yield root
    shutdown_logging()
    for handler in list(root.handlers):
        if handler not in saved_handlers:
            root.removeHandler(handler)
    for handler in saved_handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(saved_level)
