"""Token estimators.

Two estimators are kept on purpose. estimate_tokens_fast() is a plain
character ratio used while walking a tree, where many candidates are
costed and speed matters. estimate_tokens() classifies words and
punctuation and is used once content is already in hand. Neither is a
real tokenizer; both are deterministic.
"""

from __future__ import annotations

import math
import re

CHARS_PER_TOKEN = 4

_WHITESPACE_RE = re.compile(r"\s+")
_CODE_CHARS_RE = re.compile(r"[_${}()\[\]<>]")
_ALL_CAPS_RE = re.compile(r"^[A-Z_]+$")
_PUNCTUATION_RE = re.compile(r"""[.,;:!?()\[\]{}"'`]""")


def estimate_tokens_fast(content: str) -> int:
    """ceil(len / 4). Used for budget admission during traversal."""
    return math.ceil(len(content) / CHARS_PER_TOKEN)


def is_code_token(word: str) -> bool:
    """Identifiers, calls, and constants tokenize more densely than prose."""
    return bool(_CODE_CHARS_RE.search(word) or _ALL_CAPS_RE.match(word))


def estimate_tokens(content: str) -> int:
    """Word-class aware estimate used on loaded content.

    Code-like words cost ceil(len / 3), short words (<= 4 chars) cost 1,
    other words ceil(len / 4). Punctuation adds ceil(count * 0.3).
    """
    count = 0
    for word in _WHITESPACE_RE.split(content):
        if not word:
            continue
        if is_code_token(word):
            count += math.ceil(len(word) / 3)
        elif len(word) <= 4:
            count += 1
        else:
            count += math.ceil(len(word) / CHARS_PER_TOKEN)

    punctuation = len(_PUNCTUATION_RE.findall(content))
    count += math.ceil(punctuation * 0.3)
    return count
