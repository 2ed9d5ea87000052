"""LLM-facing edit tools for cascade_edit.

Exposes the file-layer editor as LangChain tools. ``edit_file`` applies one
search/replace block; ``multi_edit`` applies N blocks to a single file in one
call, each seeing the result of the previous one. Both use the fuzzy cascade
for tolerant matching and never leave a file half-edited.

Usage:
    from cascade_edit.edit_tools import get_edit_tools

    tools = get_edit_tools()
"""

from __future__ import annotations

import logging
from typing import Any

from langchain_core.tools import tool

from cascade_edit.code_editor import CodeEditor, EditResult, SearchReplaceBlock

logger = logging.getLogger("cascade_edit.edit_tools")

_editor: CodeEditor | None = None


def get_code_editor() -> CodeEditor:
    """Get the shared CodeEditor used by the tools (workspace from config)."""
    global _editor
    if _editor is None:
        _editor = CodeEditor()
    return _editor


def _with_edit_counts(result: EditResult, applied: int, total: int) -> dict[str, Any]:
    data = result.to_dict()
    data["edits_applied"] = applied
    data["edits_total"] = total
    return data


@tool
def edit_file(
    file_path: str,
    old_string: str,
    new_string: str,
    replace_all: bool = False,
) -> dict[str, Any]:
    """Replace a block of text in a file.

    The old_string does not have to match byte for byte: differences in
    indentation, trailing whitespace, escaped newlines and small typos in the
    middle of a block are tolerated. The match must still be unambiguous
    unless replace_all is set.

    Args:
        file_path: Absolute or workspace-relative path to the file to edit.
        old_string: The text to find.
        new_string: The replacement text.
        replace_all: Replace every occurrence instead of requiring a unique one.

    Returns:
        Dictionary with success, status, path, message and the strategies
        used; on failure also error_code and, when available, suggestions.
    """
    result = get_code_editor().edit_file(file_path, old_string, new_string, replace_all)
    return result.to_dict()


@tool
def multi_edit(
    file_path: str,
    edits: list[dict[str, Any]],
) -> dict[str, Any]:
    """Apply multiple sequential edits to a single file.

    Each edit is applied in order, and each subsequent edit sees the result
    of the previous one. If any edit fails, processing stops and the file is
    NOT modified.

    Args:
        file_path: Absolute or workspace-relative path to the file to edit.
        edits: List of edit operations, each a dict with:
            - old_string: The text to find and replace
            - new_string: The replacement text
            - replace_all: Optional, replace every occurrence

    Returns:
        Dictionary with success, status, message, strategies (one per applied
        edit), edits_applied and edits_total.

    Examples:
        multi_edit(
            file_path="/workspace/app.py",
            edits=[
                {"old_string": "user_name: str", "new_string": "username: str"},
                {"old_string": "print(user_name)", "new_string": "print(username)"},
            ]
        )
    """
    blocks = [
        SearchReplaceBlock(
            search=edit.get("old_string", ""),
            replace=edit.get("new_string", ""),
            replace_all=bool(edit.get("replace_all", False)),
        )
        for edit in edits
    ]

    result = get_code_editor().apply_search_replace(file_path, blocks)

    if result.success:
        logger.info("multi_edit: %d edit(s) processed for %s", len(blocks), file_path)
        return _with_edit_counts(result, len(blocks), len(blocks))

    # Nothing was written, even for blocks that resolved before the failure
    return _with_edit_counts(result, 0, len(blocks))


def get_edit_tools() -> list:
    """Get the edit tools for the agent.

    Returns:
        List of LangChain tools: edit_file and multi_edit
    """
    return [edit_file, multi_edit]
