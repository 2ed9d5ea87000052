"""File-layer editor built on the fuzzy resolver.

CodeEditor reads the current content of a file, runs each proposed
search/replace block through the cascade and writes the result back. It is
the only part of cascade_edit that touches the filesystem:

- Proposed replacements are screened by the corruption guard first
- Multi-block edits are atomic: every block must resolve before anything
  is written
- Writes happen under a per-file lock and refresh the stored snapshot
- Each write is announced on the event bus as ``edit:applied``

Usage:
    from cascade_edit.code_editor import CodeEditor

    editor = CodeEditor(work_dir="/workspace")
    result = editor.edit_file("app.py", "x = 1", "x = 2")
    if not result.success:
        print(result.message)
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Sequence

from cascade_edit import edit_config
from cascade_edit.content_guard import check_new_file, check_replacement
from cascade_edit.edit_events import EventBus, create_edit_applied_event
from cascade_edit.errors import EditError, get_error_registry
from cascade_edit.file_tracker import FileTracker
from cascade_edit.fuzzy_edit import fuzzy_replace

logger = logging.getLogger("cascade_edit.code_editor")


class EditStatus(str, Enum):
    """Outcome of an edit as reported to the caller."""

    APPLIED = "applied"
    ALREADY_APPLIED = "already_applied"
    NOT_FOUND = "not_found"  # the file does not exist
    NO_MATCH = "no_match"  # the search block was not found in the file
    ERROR = "error"

    def __str__(self) -> str:
        return self.value


_STATUS_BY_CODE = {
    "ED-FILE-001": EditStatus.NOT_FOUND,
    "ED-EDIT-001": EditStatus.NO_MATCH,
}


@dataclass(frozen=True)
class SearchReplaceBlock:
    """One search/replace pair of a multi-block edit."""

    search: str
    replace: str
    replace_all: bool = False


@dataclass
class EditResult:
    success: bool
    status: EditStatus
    path: str
    message: str = ""
    strategies: list[str] = field(default_factory=list)
    error_code: str | None = None
    suggestions: list[str] = field(default_factory=list)
    failed_block: int | None = None  # index of the block that stopped a multi-block edit
    retryable: bool = False
    changed_on_disk: bool = False  # file differed from the last content this editor saw

    def to_dict(self) -> dict[str, Any]:
        """Convert to the dictionary returned by the LLM-facing tools."""
        data: dict[str, Any] = {
            "success": self.success,
            "status": self.status.value,
            "path": self.path,
            "message": self.message,
            "strategies": list(self.strategies),
        }
        if self.error_code:
            data["error_code"] = self.error_code
            data["retryable"] = self.retryable
        if self.suggestions:
            data["suggestions"] = list(self.suggestions)
        if self.failed_block is not None:
            data["failed_block"] = self.failed_block
        if self.changed_on_disk:
            data["changed_on_disk"] = True
        return data


class CodeEditor:
    """Applies search/replace edits and creates files inside a workspace."""

    def __init__(
        self,
        work_dir: str | Path | None = None,
        tracker: FileTracker | None = None,
        event_bus: EventBus | None = None,
    ) -> None:
        self.work_dir = Path(work_dir) if work_dir is not None else edit_config.WORKSPACE_PATH
        self.tracker = tracker if tracker is not None else FileTracker.get_instance()
        self.event_bus = event_bus if event_bus is not None else EventBus()
        self._errors = get_error_registry()

    # ------------------------------------------------------------------
    # Paths and snapshots
    # ------------------------------------------------------------------

    def resolve_path(self, path: str | Path) -> Path:
        """Expand ``~`` and anchor relative paths at the working directory."""
        resolved = Path(path).expanduser()
        if resolved.is_absolute():
            return resolved
        return self.work_dir / resolved

    def read_file(self, path: str | Path) -> str | None:
        """Read *path* as UTF-8 and store a snapshot.

        Returns None when the file is missing or unreadable.
        """
        resolved = self.resolve_path(path)
        if not resolved.is_file():
            return None
        try:
            content = resolved.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Failed to read %s: %s", resolved, e)
            return None
        self.tracker.record_read(str(resolved), content)
        return content

    def get_snapshot(self, path: str | Path) -> str | None:
        return self.tracker.get_snapshot(str(self.resolve_path(path)))

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def edit_file(
        self,
        path: str | Path,
        search: str,
        replace: str,
        replace_all: bool = False,
    ) -> EditResult:
        """Apply a single search/replace block to *path*."""
        return self.apply_search_replace(
            path, [SearchReplaceBlock(search=search, replace=replace, replace_all=replace_all)]
        )

    def apply_search_replace(
        self,
        path: str | Path,
        blocks: Sequence[SearchReplaceBlock],
    ) -> EditResult:
        """Apply *blocks* to *path* in order, all or nothing.

        Each block is resolved against the content produced by the previous
        one. If any block fails, the file is left untouched and the result
        names the failing block.

        Args:
            path: Absolute or work_dir-relative path of an existing file.
            blocks: Search/replace blocks to apply sequentially.

        Returns:
            EditResult with ``applied``, ``already_applied`` or a failure status.
        """
        display_path = str(path)
        if not blocks:
            return self._failure(display_path, self._errors.create_error("ED-EDIT-004"))

        resolved = self.resolve_path(path)
        try:
            with self.tracker.acquire_write_lock(str(resolved)):
                before, changed = self._load(resolved, display_path)
                after, strategies = self._resolve_blocks(display_path, before, blocks)

                if after == before:
                    logger.info("Edit already applied: %s", display_path)
                    return EditResult(
                        success=True,
                        status=EditStatus.ALREADY_APPLIED,
                        path=display_path,
                        message="Edit already applied (no change needed)",
                        strategies=strategies,
                        changed_on_disk=changed,
                    )

                self._store(resolved, display_path, after)
        except EditError as e:
            return self._failure(display_path, e)

        self.event_bus.emit(create_edit_applied_event(str(resolved), before, after))
        logger.info(
            "Applied %d edit block(s) to %s via %s",
            len(blocks), display_path, ", ".join(strategies),
        )
        return EditResult(
            success=True,
            status=EditStatus.APPLIED,
            path=display_path,
            message=f"Applied {len(blocks)} edit(s) to {display_path}",
            strategies=strategies,
            changed_on_disk=changed,
        )

    def create_file(self, path: str | Path, content: str) -> EditResult:
        """Write *content* to *path*, creating parent directories.

        Refuses paths inside the protected directory and content that the
        corruption guard rejects.
        """
        display_path = str(path)
        resolved = self.resolve_path(path)
        try:
            if self._is_protected(resolved):
                raise self._errors.create_error(
                    "ED-FILE-005",
                    details={"path": str(resolved)},
                    message=f"{display_path}: path is inside a protected directory",
                )

            guard = check_new_file(content)
            if not guard.is_safe:
                logger.warning("Blocked corrupted write to %s: %s", display_path, guard.reason)
                raise self._errors.create_error(
                    "ED-EDIT-002",
                    details={"reason": guard.reason},
                    message=f"{display_path}: content rejected, {guard.reason}",
                )

            with self.tracker.acquire_write_lock(str(resolved)):
                before = ""
                if resolved.is_file():
                    before, _ = self._load(resolved, display_path)
                try:
                    resolved.parent.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    raise self._errors.create_error(
                        "ED-FILE-004",
                        details={"path": str(resolved)},
                        message=f"{display_path}: failed to create directory: {e}",
                    ) from e
                self._store(resolved, display_path, content)
        except EditError as e:
            return self._failure(display_path, e)

        self.event_bus.emit(create_edit_applied_event(str(resolved), before, content))
        logger.info("Created %s (%d chars)", display_path, len(content))
        return EditResult(
            success=True,
            status=EditStatus.APPLIED,
            path=display_path,
            message=f"Wrote {display_path}",
        )

    def find_similar_patterns(
        self,
        content: str,
        search: str,
        limit: int | None = None,
    ) -> list[str]:
        """Suggest regions of *content* that look like *search*.

        A content line is a candidate when it contains at least half of the
        significant words (longer than 3 chars) of the first search line. Each
        suggestion spans as many lines as the search block.
        """
        if limit is None:
            limit = edit_config.SUGGESTION_LIMIT

        search_lines = search.split("\n")
        first = search_lines[0].strip()
        if len(first) < 5:
            return []

        keywords = [word for word in first.split() if len(word) > 3]
        if not keywords:
            return []
        needed = math.ceil(len(keywords) * 0.5)

        lines = content.split("\n")
        suggestions: list[str] = []
        for i, line in enumerate(lines):
            if len(suggestions) >= limit:
                break
            if sum(1 for kw in keywords if kw in line) < needed:
                continue
            context = "\n".join(lines[i : i + len(search_lines)])
            if context not in suggestions:
                suggestions.append(context)
        return suggestions

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_blocks(
        self,
        display_path: str,
        content: str,
        blocks: Sequence[SearchReplaceBlock],
    ) -> tuple[str, list[str]]:
        strategies: list[str] = []
        for index, block in enumerate(blocks):
            if not block.search:
                raise self._errors.create_error(
                    "ED-EDIT-003",
                    details={"block_index": index},
                    message=f"{display_path}: edit block {index} has an empty search block",
                )

            guard = check_replacement(block.replace)
            if not guard.is_safe:
                logger.warning("Blocked corrupted edit to %s: %s", display_path, guard.reason)
                raise self._errors.create_error(
                    "ED-EDIT-002",
                    details={"block_index": index, "reason": guard.reason},
                    message=f"{display_path}: edit rejected, {guard.reason}",
                )

            outcome = fuzzy_replace(content, block.search, block.replace, block.replace_all)
            if not outcome.ok:
                suggestions = self.find_similar_patterns(content, block.search)
                message = f"{display_path}: {outcome.message}"
                if suggestions:
                    message += "\nDid you mean:\n" + "\n---\n".join(suggestions)
                raise self._errors.create_error(
                    "ED-EDIT-001",
                    details={"block_index": index, "suggestions": suggestions},
                    message=message,
                )

            logger.debug(
                "Block %d/%d resolved via %s (%d occurrence(s))",
                index + 1, len(blocks), outcome.strategy, outcome.occurrences,
            )
            content = outcome.content
            strategies.append(str(outcome.strategy))
        return content, strategies

    def _load(self, resolved: Path, display_path: str) -> tuple[str, bool]:
        """Read *resolved* and refresh its snapshot.

        Returns the content and whether it differs from the previous snapshot.
        """
        if not resolved.exists():
            raise self._errors.create_error(
                "ED-FILE-001",
                details={"path": str(resolved)},
                message=f"File not found: {display_path}",
            )
        if not resolved.is_file():
            raise self._errors.create_error(
                "ED-FILE-002",
                details={"path": str(resolved)},
                message=f"Not a file: {display_path}",
            )
        try:
            content = resolved.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise self._errors.create_error(
                "ED-FILE-003",
                details={"path": str(resolved)},
                message=f"Failed to read file {display_path}: {e}",
            ) from e

        changed = self.tracker.has_changed_since_read(str(resolved), content)
        if changed:
            logger.warning("%s changed on disk since it was last read", display_path)
        self.tracker.record_read(str(resolved), content)
        return content, changed

    def _store(self, resolved: Path, display_path: str, content: str) -> None:
        try:
            resolved.write_text(content, encoding="utf-8")
        except OSError as e:
            raise self._errors.create_error(
                "ED-FILE-004",
                details={"path": str(resolved)},
                message=f"Failed to write file {display_path}: {e}",
            ) from e
        self.tracker.record_write(str(resolved), content)

    def _is_protected(self, resolved: Path) -> bool:
        target = resolved.resolve()
        for root in (self.work_dir, Path.home()):
            protected = (root / edit_config.PROTECTED_DIR_NAME).resolve()
            if target == protected or protected in target.parents:
                return True
        return False

    def _failure(self, display_path: str, error: EditError) -> EditResult:
        logger.warning("Edit failed [%s]: %s", error.code, error)
        return EditResult(
            success=False,
            status=_STATUS_BY_CODE.get(error.code, EditStatus.ERROR),
            path=display_path,
            message=str(error),
            error_code=error.code,
            suggestions=list(error.details.get("suggestions", [])),
            failed_block=error.details.get("block_index"),
            retryable=self._errors.is_retryable(error.code),
        )
