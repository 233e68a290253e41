"""Section splitting and lightweight content classification.

A section is the text between header or horizontal-rule lines. Lines
inside fenced code blocks never start a new section, so a fenced block
always stays whole.
"""

from __future__ import annotations

import re

FENCE = "```"

_HEADER_RE = re.compile(r"^#{1,6}\s")
_RULE_RE = re.compile(r"^(={3,}|-{3,})$")
_INDENTED_RE = re.compile(r"^\s{4,}")
_COMMENT_RE = re.compile(r"^(\s*//|\s*/\*|\s*#)")
_DOCUMENTATION_RE = re.compile(r"^(\s*\*\s|#{1,6}\s|>\s|\s*@param|\s*@returns)")
_CONTAINS_CODE_RE = re.compile(
    r"```|^\s{4,}|export\s|import\s|function\s|class\s|const\s|let\s|var\s"
)
_CONTAINS_DOCS_RE = re.compile(r"^#{1,6}\s|^\*\s|^>\s|@param|@returns|@throws")
_FENCE_LANG_RE = re.compile(r"```(\w+)")

_LANGUAGE_HINTS: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("javascript", re.compile(r"\bimport\s.*from\s|export\s|const\s.*=\s.*require")),
    ("typescript", re.compile(r"\binterface\s|type\s.*=|:\s*(string|number|boolean)")),
    ("python", re.compile(r"\bdef\s|from\s.*import")),
    ("go", re.compile(r"\bpackage\s|func\s|var\s.*string")),
)


def is_section_marker(line: str) -> bool:
    return bool(_HEADER_RE.match(line) or _RULE_RE.match(line))


def split_into_sections(content: str) -> list[str]:
    """Split content at headers and rules that sit outside fenced blocks.

    Sections are stripped; whitespace-only sections are dropped.
    """
    sections: list[str] = []
    current: list[str] = []
    in_fence = False

    for line in content.split("\n"):
        if line.startswith(FENCE):
            in_fence = not in_fence

        if not in_fence and is_section_marker(line):
            text = "\n".join(current).strip()
            if text:
                sections.append(text)
            current = [line]
        else:
            current.append(line)

    text = "\n".join(current).strip()
    if text:
        sections.append(text)
    return sections


def is_code_block(section: str) -> bool:
    return FENCE in section or bool(_INDENTED_RE.match(section))


def is_comment(section: str) -> bool:
    return bool(_COMMENT_RE.match(section))


def is_documentation(section: str) -> bool:
    return bool(_DOCUMENTATION_RE.match(section))


def contains_code(content: str) -> bool:
    return bool(_CONTAINS_CODE_RE.search(content))


def contains_documentation(content: str) -> bool:
    return bool(_CONTAINS_DOCS_RE.search(content))


def detect_language(content: str) -> str:
    """Fence info string if present, otherwise a keyword guess."""
    fence = _FENCE_LANG_RE.search(content)
    if fence:
        return fence.group(1)
    for language, pattern in _LANGUAGE_HINTS:
        if pattern.search(content):
            return language
    return "unknown"

