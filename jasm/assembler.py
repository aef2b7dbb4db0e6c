"""
JAsm Label Resolver ("assembler").

Input:  JAsm source text (or an iterable of raw lines)
Output: Program — normalized, label-free, decoded, immutable

How the passes work:
  Pass 1: Walk the normalized lines. A first token containing ':' binds the
          label before the colon to the current 1-based line number.
          Redefinition is an error, never an overwrite.
  Pass 2: Walk the lines again. For every control-flow mnemonic, the operand
          at a fixed position (LABEL_OPERAND_INDEX) is replaced with the
          literal line number bound to it. Numeric operands are already
          resolved and pass through, so resolving a resolved program is a
          no-op.
  Pass 3: Decode every line into an Instruction (see decoder.py).

Addresses are absolute line numbers in the normalized stream, so a jump in
the machine is just an assignment to the program counter:

  source                      normalized / resolved
  ------------------------    ---------------------
  // count down                1  PUT A0 3
  PUT A0 3                     2  loop: DEC A0
                               3  JNZ A0 2
  loop: DEC A0
  JNZ A0 loop
"""

from __future__ import annotations
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union
from dataclasses import dataclass
from types import MappingProxyType
import logging
import re

from .errors import AssemblerError, DuplicateLabelError, UndefinedLabelError
from .normalizer import normalize, parse_line, split_comment
from .decoder import Instruction, decode_program

__all__ = ['Assembler', 'AssemblerError', 'DuplicateLabelError', 'UndefinedLabelError',
           'Program', 'LABEL_OPERAND_INDEX', 'assemble']

log = logging.getLogger(__name__)


# Position (1-based, after the mnemonic) of the label operand of every
# control-flow instruction.
LABEL_OPERAND_INDEX: Dict[str, int] = {
    'JMP':  1,
    'JZ':   2,
    'JNZ':  2,
    'JE':   3,
    'JNE':  3,
    'JG':   3,
    'JL':   3,
    'JGE':  3,
    'JLE':  3,
    'CALL': 1,
}

_LINE_NUMBER_RE = re.compile(r'^[0-9]+$')


@dataclass(frozen=True)
class Program:
    """Resolved program, addressed 1..N."""
    lines: Tuple[str, ...]
    labels: Mapping[str, int]
    instructions: Tuple[Instruction, ...]

    def __len__(self) -> int:
        return len(self.lines)

    def line(self, line_num: int) -> str:
        return self.lines[line_num - 1]

    def instruction(self, line_num: int) -> Instruction:
        return self.instructions[line_num - 1]

    def label_at(self, line_num: int) -> Optional[str]:
        """Name of the label bound to line_num, if any."""
        for name, bound in self.labels.items():
            if bound == line_num:
                return name
        return None

    def to_text(self) -> str:
        """Resolved artifact text: one line per instruction."""
        if not self.lines:
            return ""
        return "\n".join(self.lines) + "\n"


class Assembler:
    """Two-pass label resolver followed by a decode pass.

    Usage:
        asm = Assembler()
        program = asm.assemble(source_text)
        program.line(1), program.labels['loop']
    """

    def __init__(self):
        self.symbols: Dict[str, int] = {}   # label -> 1-based line number
        self.lines: List[str] = []           # normalized, then resolved, lines
        self.rewrites: int = 0               # jump operands replaced in pass 2

    def assemble(self, source: Union[str, Iterable[str]]) -> Program:
        self.symbols = {}
        self.rewrites = 0
        self.lines = normalize(source)

        self._pass1()
        self._pass2()
        instructions = decode_program(self.lines)

        log.info("resolved %d line(s), %d label(s), %d jump operand(s)",
                 len(self.lines), len(self.symbols), self.rewrites)
        return Program(tuple(self.lines), MappingProxyType(dict(self.symbols)),
                       instructions)

    def _pass1(self):
        """Pass 1: build the label table."""
        for line_num, line in enumerate(self.lines, 1):
            label = parse_line(line, line_num).label
            if label is None:
                continue
            if not label:
                raise AssemblerError("Empty label name", line_num, line)
            if _LINE_NUMBER_RE.match(label):
                raise AssemblerError(f"Label name cannot be a number: '{label}'",
                                     line_num, line)
            if label in self.symbols:
                raise DuplicateLabelError(label, self.symbols[label], line_num, line)
            self.symbols[label] = line_num
            log.debug("label %s -> line %d", label, line_num)

    def _pass2(self):
        """Pass 2: replace every label operand with its line number."""
        for index, line in enumerate(self.lines):
            self.lines[index] = self._pass2_line(line, index + 1)

    def _pass2_line(self, line: str, line_num: int) -> str:
        asm = parse_line(line, line_num)
        position = LABEL_OPERAND_INDEX.get(asm.mnemonic)
        # Missing operands are reported by the decoder as an operand count error
        if position is None or position > len(asm.operands):
            return line

        name = asm.operands[position - 1]
        if _LINE_NUMBER_RE.match(name):
            return line
        if name not in self.symbols:
            raise UndefinedLabelError(name, line_num, line)

        operands = list(asm.operands)
        operands[position - 1] = str(self.symbols[name])
        self.rewrites += 1
        log.debug("line %d: %s %s -> %d", line_num, asm.mnemonic, name, self.symbols[name])

        text = " ".join([asm.mnemonic] + operands)
        if asm.label is not None:
            text = f"{asm.label}: {text}"
        comment = split_comment(line)[1]
        if comment:
            text = f"{text} {comment}"
        return text


# ──────────────────────────────────────────────
# Convenience functions
# ──────────────────────────────────────────────

def assemble(source: Union[str, Iterable[str]]) -> Program:
    """Resolve source text into a Program."""
    return Assembler().assemble(source)
