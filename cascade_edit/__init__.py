"""
cascade_edit - cascading fuzzy search/replace for proposed code edits

Resolves a search block against file content through an ordered cascade of
increasingly tolerant strategies:
- Exact, line-trimmed and block-anchor matching
- Whitespace, indentation and escape normalization
- Context-aware disambiguation and a final multi-occurrence fallback

Around the pure resolver sit a corruption guard, a snapshot store with
per-file write locks, a change notification bus, a file-layer editor and
LangChain tools.

Usage:
    from cascade_edit import fuzzy_replace

    result = fuzzy_replace(content, search_block, replace_block)
    if result.ok:
        new_content = result.content
"""

from .code_editor import CodeEditor, EditResult, EditStatus, SearchReplaceBlock
from .content_guard import GuardResult, check_new_file, check_replacement
from .edit_events import EDIT_APPLIED, Event, EventBus
from .errors import EditError, ErrorRegistry, get_error_registry
from .file_tracker import FileTracker
from .fuzzy_edit import (
    EditRequest,
    ReplaceFailure,
    ReplaceResult,
    StrategyName,
    fuzzy_replace,
    resolve,
)
from .text_utils import levenshtein

__all__ = [
    # Resolver
    "EditRequest",
    "ReplaceFailure",
    "ReplaceResult",
    "StrategyName",
    "fuzzy_replace",
    "resolve",
    "levenshtein",
    # File layer
    "CodeEditor",
    "EditResult",
    "EditStatus",
    "SearchReplaceBlock",
    "FileTracker",
    # Guard
    "GuardResult",
    "check_new_file",
    "check_replacement",
    # Events
    "EDIT_APPLIED",
    "Event",
    "EventBus",
    # Errors
    "EditError",
    "ErrorRegistry",
    "get_error_registry",
]
