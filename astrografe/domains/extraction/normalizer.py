"""
Text Normalizer - Deterministic repair of line-wrapped extracted text.

PDF and email extraction break sentences at arbitrary column widths and
hyphenate words across lines. The normalizer undoes that:

1. unify line endings
2. trim every line
3. collapse runs of blank lines to one
4. remove soft hyphenation ("plas-" + break + "tificação")
5. join lines broken mid-sentence
6. trim the result

Step 5 classifies every line once (how it ends, whether it opens with a
capital) and then merges in a single pass over those tags.
"""

from __future__ import annotations

import re
import unicodedata
from enum import Enum
from typing import NamedTuple

__all__ = ["LineEnding", "LineShape", "classify_line", "normalize_text", "strip_accents"]

SENTENCE_ENDERS = frozenset(".;:?!")
UPPERCASE_START = re.compile(r"^[A-ZÁÀÃÂÉÊÍÓÔÕÚÇ]")
ENDS_MID_WORD = re.compile(r"[a-záàãâéêíóôõúç]$", re.IGNORECASE)

_LINE_BREAKS = re.compile(r"\r\n?")
_BLANK_RUN = re.compile(r"\n{3,}")
_SOFT_HYPHEN = "-\n"


class LineEnding(str, Enum):
    """How a line ends, as far as joining is concerned."""

    BLANK = "blank"
    CONTINUES = "continues"  # letter or comma: sentence goes on
    TERMINAL = "terminal"  # . ; : ? !
    OTHER = "other"  # digits, symbols, closing brackets...


class LineShape(NamedTuple):
    """Classification of a single trimmed line."""

    ending: LineEnding
    opens_upper: bool


def classify_line(line: str) -> LineShape:
    """Tag a trimmed line for the join pass."""
    if not line:
        return LineShape(LineEnding.BLANK, False)

    opens_upper = UPPERCASE_START.match(line) is not None
    last = line[-1]
    if last in SENTENCE_ENDERS:
        ending = LineEnding.TERMINAL
    elif last == "," or ENDS_MID_WORD.search(line):
        ending = LineEnding.CONTINUES
    else:
        ending = LineEnding.OTHER
    return LineShape(ending, opens_upper)


def _can_join(current: LineShape, following: LineShape) -> bool:
    return (
        current.ending is LineEnding.CONTINUES
        and following.ending is not LineEnding.BLANK
        and not following.opens_upper
    )


def _collapse_blank_lines(lines: list[str]) -> list[str]:
    collapsed: list[str] = []
    for line in lines:
        if line or not collapsed or collapsed[-1]:
            collapsed.append(line)
    return collapsed


def _join_broken_sentences(lines: list[str]) -> list[str]:
    shapes = [classify_line(line) for line in lines]
    joined: list[str] = []
    i = 0
    while i < len(lines):
        current = lines[i]
        shape = shapes[i]
        # The merged line ends where its last absorbed line ends, so the
        # tag of that line decides whether the next one joins too.
        while i + 1 < len(lines) and _can_join(shape, shapes[i + 1]):
            i += 1
            current = f"{current} {lines[i]}"
            shape = shapes[i]
        joined.append(current)
        i += 1
    return joined


def normalize_text(raw: str) -> str:
    """
    Repair line breaks and hyphenation in extracted document text.

    Args:
        raw: Decoded text as produced by a PDF/TXT/email reader

    Returns:
        Normalized text: no carriage returns, at most one blank line in a row

    Example:
        >>> normalize_text("Este produto é fabricado em\\nplástico rígido.")
        'Este produto é fabricado em plástico rígido.'
    """
    text = _LINE_BREAKS.sub("\n", raw)
    lines = _collapse_blank_lines([line.strip() for line in text.split("\n")])

    text = "\n".join(lines)
    while _SOFT_HYPHEN in text:
        text = text.replace(_SOFT_HYPHEN, "")
    # Dropping a hyphen-only line can bring two blank lines together again
    text = _BLANK_RUN.sub("\n\n", text)

    return "\n".join(_join_broken_sentences(text.split("\n"))).strip()


def strip_accents(text: str) -> str:
    """Drop combining marks: "Descrição" -> "Descricao"."""
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(c for c in decomposed if not unicodedata.combining(c))
