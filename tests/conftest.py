"""Shared pytest fixtures for cascade_edit tests.

This module provides common fixtures for the file-layer tests. Fixtures are
automatically available in every test module.
"""
from pathlib import Path

import pytest

from cascade_edit.code_editor import CodeEditor
from cascade_edit.edit_events import EventBus
from cascade_edit.file_tracker import FileTracker


# ============================================================================
# Temporary Directory Fixtures
# ============================================================================

@pytest.fixture
def temp_workspace(tmp_path: Path) -> Path:
    """Create a temporary workspace directory for file operations."""
    workspace = tmp_path / "workspace"
    workspace.mkdir()
    return workspace


@pytest.fixture
def sample_files(temp_workspace: Path) -> dict[str, Path]:
    """Create sample files for testing edits."""
    files = {}

    py_file = temp_workspace / "sample.py"
    py_file.write_text(
        "def greet(name):\n"
        "    msg = f'Hello, {name}!'\n"
        "    print(msg)\n"
        "    return msg\n"
        "\n"
        "def farewell(name):\n"
        "    msg = f'Goodbye, {name}!'\n"
        "    print(msg)\n"
        "    return msg\n",
        encoding="utf-8",
    )
    files["python"] = py_file

    text_file = temp_workspace / "notes.txt"
    text_file.write_text("alpha\nbeta\ngamma\n", encoding="utf-8")
    files["text"] = text_file

    nested = temp_workspace / "pkg"
    nested.mkdir()
    nested_file = nested / "module.py"
    nested_file.write_text("VALUE = 1\n", encoding="utf-8")
    files["nested"] = nested_file

    return files


# ============================================================================
# Editor Fixtures
# ============================================================================

@pytest.fixture
def tracker() -> FileTracker:
    """A FileTracker independent of the process singleton."""
    return FileTracker()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def applied_events(event_bus: EventBus) -> list:
    """Collects every event emitted on ``event_bus``."""
    received = []
    event_bus.subscribe(received.append)
    return received


@pytest.fixture
def editor(temp_workspace: Path, tracker: FileTracker, event_bus: EventBus) -> CodeEditor:
    """A CodeEditor rooted at the temporary workspace."""
    return CodeEditor(work_dir=temp_workspace, tracker=tracker, event_bus=event_bus)
