"""Centralized configuration for cascade_edit.

Reads from environment variables with sensible defaults.
"""

from __future__ import annotations

import os
from pathlib import Path


# Context-aware matching: a middle line "agrees" when its similarity ratio
# reaches the threshold; a candidate block passes when the share of agreeing
# middle lines reaches the ratio.
CONTEXT_SIMILARITY_THRESHOLD: float = float(
    os.environ.get("CASCADE_EDIT_CONTEXT_SIMILARITY", "0.5")
)
CONTEXT_MIDDLE_RATIO: float = float(
    os.environ.get("CASCADE_EDIT_CONTEXT_MIDDLE_RATIO", "0.5")
)

# Failure diagnostics
FAILURE_PREVIEW_LINES: int = int(os.environ.get("CASCADE_EDIT_PREVIEW_LINES", "5"))
SUGGESTION_LIMIT: int = int(os.environ.get("CASCADE_EDIT_SUGGESTION_LIMIT", "3"))

# Corruption guard: number of distinct raw instruction tags that marks a
# replacement as malformed proposer output.
CORRUPTION_MARKER_THRESHOLD: int = int(
    os.environ.get("CASCADE_EDIT_CORRUPTION_MARKERS", "3")
)

# Workspace used by the LLM-facing tools for relative paths
WORKSPACE_PATH: Path = Path(os.environ.get("CASCADE_EDIT_WORKSPACE", os.getcwd()))

# Directory name (under the workspace or the home directory) that new files
# may never be created in.
PROTECTED_DIR_NAME: str = os.environ.get("CASCADE_EDIT_PROTECTED_DIR", ".cascade-edit")
