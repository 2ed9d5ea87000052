"""Cascading fuzzy search/replace resolver.

Applies a ``(search_block, replace_block)`` pair to the current text of a
file even when the proposer got whitespace, indentation, escaping or a few
words wrong. Strategies run in a fixed order; the first one that matches
wins. A strategy that finds nothing, or finds more than one candidate where
it needs exactly one, bails and the next strategy runs. When all nine bail
the caller gets a :class:`ReplaceFailure` and its content back untouched.

Strategy cascade
----------------
1. **exact** -- literal substring, must be unique unless ``replace_all``.
2. **line-trimmed** -- per-line ``strip()`` comparison, blank edge lines of
   the search block ignored; the original lines are replaced.
3. **block-anchor** -- 3+ lines; first and last lines (trimmed) anchor a
   block of the same height, the interior may differ arbitrarily.
4. **whitespace-normalized** -- runs of spaces/tabs collapsed inside lines.
5. **indentation-flexible** -- leading whitespace ignored, trailing kept.
6. **escape-normalized** -- literal ``\\n``/``\\t``/... decoded in both the
   search and the replace block.
7. **trimmed-boundary** -- whole block stripped, matched as a substring.
8. **context-aware** -- anchors plus Levenshtein similarity of the interior
   lines; picks the one anchored block that is similar enough.
9. **multi-occurrence** -- every exact occurrence is replaced.

The resolver is pure: no I/O and no state between calls.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from cascade_edit import edit_config
from cascade_edit.text_utils import (
    collapse_internal_whitespace,
    decode_escapes,
    has_escape_sequences,
    leading_whitespace,
    similarity,
    split_lines,
    strip_leading_indent,
    trim_block,
    trimmed_line_list,
)

logger = logging.getLogger("cascade_edit.fuzzy_edit")

NOT_FOUND_MESSAGE = "Search block not found"


# ---------------------------------------------------------------------------
# Data model
# ---------------------------------------------------------------------------


class StrategyName(str, Enum):
    """Name of the strategy that produced a :class:`ReplaceResult`."""

    EXACT = "exact"
    LINE_TRIMMED = "line-trimmed"
    BLOCK_ANCHOR = "block-anchor"
    WHITESPACE_NORMALIZED = "whitespace-normalized"
    INDENTATION_FLEXIBLE = "indentation-flexible"
    ESCAPE_NORMALIZED = "escape-normalized"
    TRIMMED_BOUNDARY = "trimmed-boundary"
    CONTEXT_AWARE = "context-aware"
    MULTI_OCCURRENCE = "multi-occurrence"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class EditRequest:
    """One proposed edit against the current content of a file."""

    content: str
    search_block: str
    replace_block: str
    replace_all: bool = False


@dataclass(frozen=True)
class MatchSpan:
    """Half-open ``[start, end)`` character range into the content."""

    start: int
    end: int


@dataclass(frozen=True)
class StrategyMatch:
    """What a strategy hands back when it matched."""

    spans: tuple[MatchSpan, ...]
    replacement: str


@dataclass(frozen=True)
class ReplaceResult:
    content: str
    strategy: StrategyName
    occurrences: int = 1

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class ReplaceFailure:
    message: str
    content: str

    @property
    def ok(self) -> bool:
        return False


Strategy = Callable[[EditRequest], "StrategyMatch | None"]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _find_all(content: str, needle: str) -> list[MatchSpan]:
    """Return every non-overlapping occurrence of *needle*, left to right."""
    spans: list[MatchSpan] = []
    if not needle:
        return spans
    start = 0
    while True:
        idx = content.find(needle, start)
        if idx == -1:
            break
        spans.append(MatchSpan(idx, idx + len(needle)))
        start = idx + len(needle)
    return spans


def _count_starts(content: str, needle: str) -> int:
    """Count every position *needle* starts at, overlapping ones included."""
    count = 0
    start = 0
    while True:
        idx = content.find(needle, start)
        if idx == -1:
            return count
        count += 1
        start = idx + 1


def _search_lines(search_block: str) -> list[str]:
    """Split a search block into lines, dropping the empty line left behind
    by a trailing newline."""
    lines = split_lines(search_block)
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    return lines


def _line_starts(lines: list[str]) -> list[int]:
    starts: list[int] = []
    offset = 0
    for line in lines:
        starts.append(offset)
        offset += len(line) + 1  # +1 for '\n'
    return starts


def _window_span(lines: list[str], starts: list[int], index: int, height: int) -> MatchSpan:
    """Span of ``lines[index:index + height]`` without the last terminator."""
    last = index + height - 1
    return MatchSpan(starts[index], starts[last] + len(lines[last]))


def _matching_windows(haystack: list[str], needle: list[str]) -> list[int]:
    height = len(needle)
    if height == 0 or height > len(haystack):
        return []
    return [
        i
        for i in range(len(haystack) - height + 1)
        if haystack[i : i + height] == needle
    ]


def _non_overlapping(indices: list[int], height: int) -> list[int]:
    kept: list[int] = []
    next_free = 0
    for i in indices:
        if i >= next_free:
            kept.append(i)
            next_free = i + height
    return kept


def _select(candidates: list[int], height: int, replace_all: bool) -> list[int]:
    """Uniqueness rule shared by the line-sequence strategies."""
    if replace_all:
        return _non_overlapping(candidates, height)
    if len(candidates) == 1:
        return candidates
    return []


def _select_substring(content: str, needle: str, replace_all: bool) -> list[MatchSpan]:
    """Uniqueness rule shared by the substring strategies.

    ``"}\\n}"`` starts twice in ``"}\\n}\\n}"`` even though only one
    non-overlapping span fits, so overlaps count as ambiguity.
    """
    spans = _find_all(content, needle)
    if replace_all:
        return spans
    if len(spans) == 1 and _count_starts(content, needle) == 1:
        return spans
    return []


def _common_indent(lines: list[str]) -> str:
    indents = [leading_whitespace(line) for line in lines if line.strip()]
    if not indents:
        return ""
    return os.path.commonprefix(indents)


def _reindent(
    replace_block: str, search_lines: list[str], matched_lines: list[str]
) -> str:
    """Move the replacement from the search block's base indent to the
    matched lines' base indent.

    Nested lines keep their indentation relative to the base. A replacement
    whose base indent differs from the search block's is kept verbatim.
    """
    replace_lines = split_lines(replace_block)
    search_base = _common_indent(search_lines)
    if _common_indent(replace_lines) != search_base:
        return replace_block
    target = _common_indent(matched_lines)
    if target == search_base:
        return replace_block
    cut = len(search_base)
    return "\n".join(
        target + line[cut:] if line.strip() else line for line in replace_lines
    )


def _line_sequence_match(
    request: EditRequest,
    normalize: Callable[[str], str],
    reindent: bool = False,
) -> StrategyMatch | None:
    """Compare normalized content lines with normalized search lines."""
    search_lines = _search_lines(request.search_block)
    if all(not line.strip() for line in search_lines):
        return None

    content_lines = split_lines(request.content)
    needle = [normalize(line) for line in search_lines]
    haystack = [normalize(line) for line in content_lines]

    height = len(needle)
    chosen = _select(_matching_windows(haystack, needle), height, request.replace_all)
    if not chosen:
        return None

    starts = _line_starts(content_lines)
    replacement = request.replace_block
    if reindent:
        # All matches share the same normalized text, so the first one
        # decides the indentation.
        first = chosen[0]
        replacement = _reindent(
            replacement, search_lines, content_lines[first : first + height]
        )
    return StrategyMatch(
        spans=tuple(_window_span(content_lines, starts, i, height) for i in chosen),
        replacement=replacement,
    )


def _anchored_candidates(
    content_lines: list[str], search_lines: list[str]
) -> list[int]:
    """Start indices of blocks whose trimmed first/last lines equal the
    search block's and whose height is the same."""
    first = search_lines[0].strip()
    last = search_lines[-1].strip()
    if not first or not last:
        return []

    height = len(search_lines)
    trimmed = [line.strip() for line in content_lines]
    return [
        i
        for i in range(len(trimmed) - height + 1)
        if trimmed[i] == first and trimmed[i + height - 1] == last
    ]


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def exact_match(request: EditRequest) -> StrategyMatch | None:
    spans = _select_substring(request.content, request.search_block, request.replace_all)
    if not spans:
        return None
    return StrategyMatch(spans=tuple(spans), replacement=request.replace_block)


def line_trimmed_match(request: EditRequest) -> StrategyMatch | None:
    search_lines = trimmed_line_list(request.search_block)
    if not search_lines:
        return None

    content_lines = split_lines(request.content)
    trimmed_content = [line.strip() for line in content_lines]
    height = len(search_lines)
    chosen = _select(
        _matching_windows(trimmed_content, search_lines), height, request.replace_all
    )
    if not chosen:
        return None

    starts = _line_starts(content_lines)
    first = chosen[0]
    replacement = _reindent(
        request.replace_block,
        split_lines(request.search_block),
        content_lines[first : first + height],
    )
    return StrategyMatch(
        spans=tuple(_window_span(content_lines, starts, i, height) for i in chosen),
        replacement=replacement,
    )


def block_anchor_match(request: EditRequest) -> StrategyMatch | None:
    search_lines = _search_lines(request.search_block)
    if len(search_lines) < 3:
        return None

    content_lines = split_lines(request.content)
    candidates = _anchored_candidates(content_lines, search_lines)
    if len(candidates) != 1:
        return None

    starts = _line_starts(content_lines)
    span = _window_span(content_lines, starts, candidates[0], len(search_lines))
    return StrategyMatch(spans=(span,), replacement=request.replace_block)


def whitespace_normalized_match(request: EditRequest) -> StrategyMatch | None:
    return _line_sequence_match(request, collapse_internal_whitespace)


def indentation_flexible_match(request: EditRequest) -> StrategyMatch | None:
    return _line_sequence_match(request, strip_leading_indent, reindent=True)


def escape_normalized_match(request: EditRequest) -> StrategyMatch | None:
    if not has_escape_sequences(request.search_block):
        return None

    decoded = decode_escapes(request.search_block)
    if not decoded or decoded == request.search_block:
        return None

    spans = _select_substring(request.content, decoded, request.replace_all)
    if not spans:
        return None
    return StrategyMatch(spans=tuple(spans), replacement=decode_escapes(request.replace_block))


def trimmed_boundary_match(request: EditRequest) -> StrategyMatch | None:
    trimmed = trim_block(request.search_block)
    if not trimmed or trimmed == request.search_block:
        return None

    spans = _select_substring(request.content, trimmed, request.replace_all)
    if not spans:
        return None
    return StrategyMatch(spans=tuple(spans), replacement=request.replace_block)


def _interior_agrees(block: list[str], search_lines: list[str]) -> bool:
    threshold = edit_config.CONTEXT_SIMILARITY_THRESHOLD
    compared = 0
    agreeing = 0
    for actual, wanted in zip(block[1:-1], search_lines[1:-1]):
        actual = actual.strip()
        wanted = wanted.strip()
        if not actual and not wanted:
            continue
        compared += 1
        if similarity(actual, wanted) >= threshold:
            agreeing += 1

    if compared == 0:
        return True
    return agreeing / compared >= edit_config.CONTEXT_MIDDLE_RATIO


def context_aware_match(request: EditRequest) -> StrategyMatch | None:
    search_lines = _search_lines(request.search_block)
    if len(search_lines) < 2:
        return None

    content_lines = split_lines(request.content)
    height = len(search_lines)
    accepted = [
        i
        for i in _anchored_candidates(content_lines, search_lines)
        if _interior_agrees(content_lines[i : i + height], search_lines)
    ]
    if len(accepted) != 1:
        return None

    starts = _line_starts(content_lines)
    span = _window_span(content_lines, starts, accepted[0], height)
    return StrategyMatch(spans=(span,), replacement=request.replace_block)


def multi_occurrence_match(request: EditRequest) -> StrategyMatch | None:
    spans = _find_all(request.content, request.search_block)
    if not spans:
        return None
    return StrategyMatch(spans=tuple(spans), replacement=request.replace_block)


# ---------------------------------------------------------------------------
# Strategy cascade
# ---------------------------------------------------------------------------

STRATEGIES: tuple[tuple[StrategyName, Strategy], ...] = (
    (StrategyName.EXACT, exact_match),
    (StrategyName.LINE_TRIMMED, line_trimmed_match),
    (StrategyName.BLOCK_ANCHOR, block_anchor_match),
    (StrategyName.WHITESPACE_NORMALIZED, whitespace_normalized_match),
    (StrategyName.INDENTATION_FLEXIBLE, indentation_flexible_match),
    (StrategyName.ESCAPE_NORMALIZED, escape_normalized_match),
    (StrategyName.TRIMMED_BOUNDARY, trimmed_boundary_match),
    (StrategyName.CONTEXT_AWARE, context_aware_match),
    (StrategyName.MULTI_OCCURRENCE, multi_occurrence_match),
)


def apply_spans(content: str, spans: tuple[MatchSpan, ...], replacement: str) -> str:
    """Replace every span with *replacement*, back to front so earlier
    offsets stay valid."""
    for span in sorted(spans, key=lambda s: s.start, reverse=True):
        content = content[: span.start] + replacement + content[span.end :]
    return content


def format_not_found(search_block: str, preview_lines: int | None = None) -> str:
    """Failure message with a preview of the first lines of the search block."""
    if preview_lines is None:
        preview_lines = edit_config.FAILURE_PREVIEW_LINES
    lines = split_lines(search_block)
    shown = lines[:preview_lines]
    message = NOT_FOUND_MESSAGE + ". First lines of the search block:\n"
    message += "\n".join(f"  | {line}" for line in shown)
    hidden = len(lines) - len(shown)
    if hidden > 0:
        message += f"\n  ... ({hidden} more lines)"
    return message


def resolve(request: EditRequest) -> ReplaceResult | ReplaceFailure:
    """Run the cascade for *request* and return the first success.

    Never raises for a missing or ambiguous match; those come back as a
    :class:`ReplaceFailure` carrying the original content.
    """
    if request.search_block:
        for name, strategy in STRATEGIES:
            match = strategy(request)
            if match is None:
                logger.debug("Strategy %s bailed", name.value)
                continue

            if name is not StrategyName.EXACT:
                logger.info(
                    "Exact match failed; applied edit via %s (%d occurrence(s)).",
                    name.value,
                    len(match.spans),
                )
            return ReplaceResult(
                content=apply_spans(request.content, match.spans, match.replacement),
                strategy=name,
                occurrences=len(match.spans),
            )

    logger.warning("No strategy matched the search block (%d chars)", len(request.search_block))
    return ReplaceFailure(
        message=format_not_found(request.search_block),
        content=request.content,
    )


def fuzzy_replace(
    content: str,
    search_block: str,
    replace_block: str,
    replace_all: bool = False,
) -> ReplaceResult | ReplaceFailure:
    """Apply *search_block* -> *replace_block* to *content*.

    Parameters
    ----------
    content:
        The full file content to operate on.
    search_block:
        The text to find (may be matched fuzzily).
    replace_block:
        The replacement text.
    replace_all:
        If ``True``, replace every match instead of requiring a unique one.

    Returns
    -------
    ReplaceResult
        New content plus the strategy that fired.
    ReplaceFailure
        Diagnostic message; ``content`` is the input, unchanged.
    """
    return resolve(
        EditRequest(
            content=content,
            search_block=search_block,
            replace_block=replace_block,
            replace_all=replace_all,
        )
    )
