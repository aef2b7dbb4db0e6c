"""
JAsm Source Normalizer + Line Splitter.

normalize() turns raw source into the line stream every later stage
addresses: comment-only and blank lines are dropped, leading indentation is
removed, order is kept. Position i (1-based) in the result is line i of the
program — comments and blank lines never consume an address.

parse_line() splits one normalized line into label / mnemonic / operands:

    loop: ADD A0 A0 1   // bump
    ^^^^  ^^^ ^^^^^^^^  ^^^^^^^
    label mnem operands (comment, dropped)
"""

from __future__ import annotations
from typing import Iterable, List, Optional, Tuple, Union
from dataclasses import dataclass, field
import logging

from .config import COMMENT_DELIMITER, LABEL_SUFFIX

__all__ = ['normalize', 'strip_comment', 'split_comment', 'AsmLine', 'parse_line']

log = logging.getLogger(__name__)


def split_comment(text: str) -> Tuple[str, str]:
    """Split text at the first comment delimiter → (code, comment).

    The comment keeps its delimiter; it is '' when the line has none.
    """
    pos = text.find(COMMENT_DELIMITER)
    if pos < 0:
        return text, ""
    return text[:pos], text[pos:]


def strip_comment(text: str) -> str:
    """Remove a trailing (or whole-line) comment."""
    return split_comment(text)[0]


def normalize(source: Union[str, Iterable[str]]) -> List[str]:
    """Drop comment-only and blank lines, strip leading spaces/tabs."""
    raw_lines = source.splitlines() if isinstance(source, str) else list(source)

    lines = []
    for raw in raw_lines:
        text = raw.rstrip('\r\n').lstrip(' \t')
        if not text.strip():
            continue
        if text.startswith(COMMENT_DELIMITER):
            continue
        lines.append(text)

    log.debug("normalized %d raw line(s) to %d addressable line(s)",
              len(raw_lines), len(lines))
    return lines


# ──────────────────────────────────────────────
# Line splitting
# ──────────────────────────────────────────────

@dataclass
class AsmLine:
    """One normalized line split into its parts."""
    label: Optional[str] = None
    mnemonic: Optional[str] = None
    operands: List[str] = field(default_factory=list)
    line_num: int = 0
    raw: str = ""

    @property
    def tokens(self) -> List[str]:
        """Mnemonic followed by operands (label excluded)."""
        if self.mnemonic is None:
            return []
        return [self.mnemonic] + self.operands


def parse_line(line: str, line_num: int = 0) -> AsmLine:
    """Split a line into label, mnemonic and operand tokens.

    A first token containing ':' defines a label (text before the colon).
    Anything glued after the colon ("end:JMP") belongs to the instruction.
    """
    result = AsmLine(line_num=line_num, raw=line)

    tokens = strip_comment(line).split()
    if not tokens:
        return result

    if LABEL_SUFFIX in tokens[0]:
        label, _, rest = tokens[0].partition(LABEL_SUFFIX)
        result.label = label
        tokens = ([rest] if rest else []) + tokens[1:]

    if tokens:
        result.mnemonic = tokens[0]
        result.operands = tokens[1:]
    return result
