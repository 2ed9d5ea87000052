"""Similarity and normalization helpers for the fuzzy edit cascade.

Every function here is pure: the strategies in :mod:`cascade_edit.fuzzy_edit`
apply the same normalizer to both the file content and the search block and
then compare the results.
"""

from __future__ import annotations

import re

_HORIZONTAL_WS_RE = re.compile(r"[ \t]+")

# Backslash escapes understood by decode_escapes(), decoded in one pass so
# that an escaped backslash followed by "n" stays a backslash and an "n".
_ESCAPE_RE = re.compile(r"\\([ntr\\\"'`])")
_ESCAPES = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "\\": "\\",
    '"': '"',
    "'": "'",
    "`": "`",
}


# ---------------------------------------------------------------------------
# Similarity
# ---------------------------------------------------------------------------


def levenshtein(a: str, b: str) -> int:
    """Return the edit distance between *a* and *b*.

    Insertions, deletions and substitutions all cost 1. Only two rows of the
    dynamic-programming table are kept.
    """
    if not a or not b:
        return max(len(a), len(b))

    # Iterate over the longer string so the rows stay short.
    if len(a) < len(b):
        a, b = b, a

    previous = list(range(len(b) + 1))
    for i, char_a in enumerate(a, start=1):
        current = [i]
        for j, char_b in enumerate(b, start=1):
            cost = 0 if char_a == char_b else 1
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + cost,
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """Return ``1 - distance / max(len(a), len(b), 1)``, a ratio in [0, 1]."""
    return 1.0 - levenshtein(a, b) / max(len(a), len(b), 1)


# ---------------------------------------------------------------------------
# Normalizers
# ---------------------------------------------------------------------------


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` only, keeping ``"\\n".join()`` a lossless inverse."""
    return text.split("\n")


def trim_lines(text: str) -> str:
    """Trim every line and drop blank lines at both ends of the block."""
    return "\n".join(trimmed_line_list(text))


def trimmed_line_list(text: str) -> list[str]:
    lines = [line.strip() for line in split_lines(text)]
    start = 0
    end = len(lines)
    while start < end and not lines[start]:
        start += 1
    while end > start and not lines[end - 1]:
        end -= 1
    return lines[start:end]


def collapse_internal_whitespace(line: str) -> str:
    """Collapse each run of spaces/tabs in *line* to a single space."""
    return _HORIZONTAL_WS_RE.sub(" ", line)


def strip_leading_indent(line: str) -> str:
    """Remove leading whitespace only; trailing whitespace is kept."""
    return line.lstrip()


def has_escape_sequences(text: str) -> bool:
    """Return True if *text* holds backslash escapes written out as text."""
    return _ESCAPE_RE.search(text) is not None


def decode_escapes(text: str) -> str:
    """Turn literal ``\\n``, ``\\t``, ``\\r``, ``\\\\`` and escaped quotes into
    the characters they stand for."""
    return _ESCAPE_RE.sub(lambda m: _ESCAPES[m.group(1)], text)


def trim_block(text: str) -> str:
    """Strip whitespace and newlines around the whole block, not per line."""
    return text.strip()


def leading_whitespace(line: str) -> str:
    return line[: len(line) - len(line.lstrip())]
