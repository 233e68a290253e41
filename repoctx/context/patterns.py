"""Glob matching and ignore rules shared by scoring and traversal."""

from __future__ import annotations

import re
from functools import lru_cache

from repoctx.heuristics import IGNORED_NAMES


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a glob into a case-insensitive, unanchored regex.

    ``**`` matches across directories, ``*`` within one segment, ``?`` a
    single character, and ``[...]`` / ``[!...]`` character classes.
    Everything else is literal. Backslashes are treated as separators.
    """
    pattern = pattern.replace("\\", "/")
    out: list[str] = []
    i = 0
    while i < len(pattern):
        ch = pattern[i]
        if ch == "*":
            if pattern.startswith("**", i):
                out.append(".*")
                i += 2
                continue
            out.append("[^/]*")
        elif ch == "?":
            out.append(".")
        elif ch == "[":
            end = pattern.find("]", i + 1)
            if end == -1:
                out.append(re.escape(ch))
            else:
                body = pattern[i + 1:end]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = end
        else:
            out.append(re.escape(ch))
        i += 1
    return re.compile("".join(out), re.IGNORECASE)


def matches_pattern(path: str, pattern: str) -> bool:
    """Whether the glob matches anywhere in the '/'-normalized path."""
    return glob_to_regex(pattern).search(path.replace("\\", "/")) is not None


def matches_any(path: str, patterns: list[str] | tuple[str, ...]) -> bool:
    return any(matches_pattern(path, p) for p in patterns)


def is_ignored_name(name: str) -> bool:
    """Built-in ignored directory names plus any dot-prefixed entry."""
    return name in IGNORED_NAMES or name.startswith(".")


def extension(name: str) -> str:
    """Lower-cased final suffix including the dot, or '' if none."""
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    dot = base.rfind(".")
    if dot <= 0:
        return ""
    return base[dot:].lower()
