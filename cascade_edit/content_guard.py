"""Corruption guard for proposed edit content.

Runs before the fuzzy resolver to reject replacement text that shows the
proposer malfunctioned:
- Raw instruction tags (``<edit path=...>``, ``</edit>``, ``<bash>``, ...)
  leaking into the content
- Literal ``\\n`` sequences used as real line breaks in new files

This is a pre-check only. The resolver never inspects content for
corruption itself.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from cascade_edit import edit_config

# Raw instruction tags that should never appear in file content
ACTION_TAG_PATTERNS: list[tuple[str, str]] = [
    (r"<edit\s+path\s*=", "Opening edit tag"),
    (r"</edit>", "Closing edit tag"),
    (r"<end>", "End tag"),
    (r"<bash>", "Bash tag"),
    (r"<say>", "Say tag"),
]

_COMPILED_TAGS = [(re.compile(p, re.IGNORECASE), reason) for p, reason in ACTION_TAG_PATTERNS]

_ESCAPED_NEWLINE_WITH_INDENT_RE = re.compile(r"\\n[ \t]{2,}[^\s]")
_CHAINED_ESCAPED_NEWLINES_RE = re.compile(r"(?:\\n[ \t]*){3,}")
_ESCAPED_NEWLINE_BEFORE_KEYWORD_RE = re.compile(
    r"\\n[ \t]*(?:const|let|var|if|for|while|return|function|class|import|export|def)\b"
)


@dataclass(frozen=True)
class GuardResult:
    """Result of a corruption check."""

    is_safe: bool
    reason: str = ""

    @classmethod
    def safe(cls) -> "GuardResult":
        return cls(is_safe=True)

    @classmethod
    def unsafe(cls, reason: str) -> "GuardResult":
        return cls(is_safe=False, reason=reason)


def count_action_tags(text: str) -> int:
    """Number of distinct raw instruction tags present in *text*."""
    return sum(1 for pattern, _ in _COMPILED_TAGS if pattern.search(text))


def has_action_tag_corruption(text: str, threshold: int | None = None) -> bool:
    if threshold is None:
        threshold = edit_config.CORRUPTION_MARKER_THRESHOLD
    return count_action_tags(text) >= threshold


def strip_literals_and_comments(text: str) -> str:
    """Blank out string literals and comments, keeping newlines in place.

    Structural checks then only see code, so an escaped newline inside a
    string literal is never flagged.
    """
    out: list[str] = []
    state = "code"
    quote = ""
    i = 0
    n = len(text)

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if state == "code":
            if ch in "'\"`":
                state = "string"
                quote = ch
                out.append(" ")
                i += 1
            elif ch == "/" and nxt == "/":
                state = "line_comment"
                out.append("  ")
                i += 2
            elif ch == "/" and nxt == "*":
                state = "block_comment"
                out.append("  ")
                i += 2
            else:
                out.append(ch)
                i += 1
            continue

        if state == "string":
            if ch == "\\":
                out.append("  ")
                i += 2
            elif ch == quote:
                state = "code"
                out.append(" ")
                i += 1
            else:
                out.append("\n" if ch == "\n" else " ")
                i += 1
            continue

        if state == "line_comment":
            if ch == "\n":
                state = "code"
                out.append("\n")
            else:
                out.append(" ")
            i += 1
            continue

        # block comment
        if ch == "*" and nxt == "/":
            state = "code"
            out.append("  ")
            i += 2
            continue
        out.append("\n" if ch == "\n" else " ")
        i += 1

    return "".join(out)


def detect_escaped_newline_corruption(text: str) -> str | None:
    """Return a reason if literal ``\\n`` is used as structure, else None."""
    if "\\n" not in text:
        return None

    structural = strip_literals_and_comments(text)

    if len(_ESCAPED_NEWLINE_WITH_INDENT_RE.findall(structural)) >= 2:
        return 'literal "\\n" used for structural line breaks/indentation'

    if _CHAINED_ESCAPED_NEWLINES_RE.search(structural):
        return 'multiple chained literal "\\n" sequences detected'

    if len(_ESCAPED_NEWLINE_BEFORE_KEYWORD_RE.findall(structural)) >= 2:
        return 'literal "\\n" used between code statements'

    return None


def check_replacement(text: str) -> GuardResult:
    """Validate a replace block before it is handed to the resolver.

    Escaped newlines are allowed here: the escape-normalized strategy decodes
    them on purpose.
    """
    if has_action_tag_corruption(text):
        return GuardResult.unsafe(
            "content is corrupted with raw action tags "
            "(nested <edit>/<end>/<bash>/<say> detected)"
        )
    return GuardResult.safe()


def check_new_file(text: str) -> GuardResult:
    """Validate the full content of a file about to be created."""
    result = check_replacement(text)
    if not result.is_safe:
        return result

    reason = detect_escaped_newline_corruption(text)
    if reason is not None:
        return GuardResult.unsafe(reason)
    return GuardResult.safe()
