"""
JAsm Instruction Decoder.

Turns resolved text lines into Instruction records once, before execution,
so the machine never re-parses strings in its loop.

Operand kinds:
  REG   register only                         e.g. COPY A0 B3
  VAL   register or decimal literal           e.g. ADD A0 A1 5
  LINE  jump target — literal line number     e.g. JMP 12 (after resolution)

Range headers (ITER_THROUGH / ITER_FOR) have their own syntax and are
decoded by dedicated helpers:
  ITER_THROUGH |A0:A3| -> Z0 (
  ITER_FOR |C0:5| (
Each header is paired with the line holding its closing ')'.

Errors raised here are ExecutionErrors annotated with the offending line.
"""

from __future__ import annotations
from typing import Dict, List, Optional, Sequence, Tuple
from dataclasses import dataclass, replace
from enum import Enum
import logging
import re

from .config import (BLOCK_OPEN, BLOCK_CLOSE, RANGE_FENCE, RANGE_SEPARATOR,
                     RANGE_ARROW)
from .errors import (ExecutionError, InvalidRegisterError, InvalidOperandLiteralError,
                     UnknownMnemonicError, OperandCountError, MalformedRangeError)
from .normalizer import parse_line
from .vm.alu import INT_MIN, INT_MAX
from .vm.regs import RegisterFile, register_slot

__all__ = ['Opcode', 'Operand', 'Instruction', 'OPERANDS', 'MNEMONICS',
           'REG', 'VAL', 'LINE', 'parse_literal', 'decode_line', 'decode_program']

log = logging.getLogger(__name__)


class Opcode(Enum):
    # ── Data movement ──
    PUT = 'PUT'
    COPY = 'COPY'
    SWAP = 'SWAP'
    FREE = 'FREE'
    # ── Arithmetic ──
    ADD = 'ADD'
    SUB = 'SUB'
    MUL = 'MUL'
    DIV = 'DIV'
    MOD = 'MOD'
    INC = 'INC'
    DEC = 'DEC'
    # ── Control flow ──
    JMP = 'JMP'
    JZ = 'JZ'
    JNZ = 'JNZ'
    JE = 'JE'
    JNE = 'JNE'
    JG = 'JG'
    JL = 'JL'
    JGE = 'JGE'
    JLE = 'JLE'
    CALL = 'CALL'
    RET = 'RET'
    # ── Range blocks ──
    ITER_THROUGH = 'ITER_THROUGH'
    ITER_FOR = 'ITER_FOR'
    END_BLOCK = BLOCK_CLOSE
    # ── Output ──
    SHOW = '_SHOW'
    ASCII = '_ASCII'
    HEX = '_HEX'
    CLS = '_CLS'
    NEWL = '_NEWL'
    TAB = '_TAB'
    # Label-only line; never written in source
    LABEL = ':'


# ──────────────────────────────────────────────
# Operand table
# ──────────────────────────────────────────────
# Format: { Opcode: (kind, kind, ...) }, one kind per operand, in order.

REG = 'REG'
VAL = 'VAL'
LINE = 'LINE'

OPERANDS: Dict[Opcode, Tuple[str, ...]] = {}


def _op(opcode: Opcode, *kinds: str):
    """Register the operand layout of an opcode."""
    OPERANDS[opcode] = kinds


_op(Opcode.PUT,  REG, VAL)
_op(Opcode.COPY, REG, REG)
_op(Opcode.SWAP, REG, REG)
_op(Opcode.FREE, REG)

for _arith in (Opcode.ADD, Opcode.SUB, Opcode.MUL, Opcode.DIV, Opcode.MOD):
    _op(_arith, REG, VAL, VAL)
_op(Opcode.INC, REG)
_op(Opcode.DEC, REG)

_op(Opcode.JMP, LINE)
_op(Opcode.JZ,  REG, LINE)
_op(Opcode.JNZ, REG, LINE)
for _cmp in (Opcode.JE, Opcode.JNE, Opcode.JG, Opcode.JL, Opcode.JGE, Opcode.JLE):
    _op(_cmp, REG, VAL, LINE)
_op(Opcode.CALL, LINE)
_op(Opcode.RET)

_op(Opcode.END_BLOCK)

for _reg_out in (Opcode.SHOW, Opcode.ASCII, Opcode.HEX):
    _op(_reg_out, REG)
for _plain_out in (Opcode.CLS, Opcode.NEWL, Opcode.TAB):
    _op(_plain_out)

# Source spelling → opcode (LABEL has no spelling)
MNEMONICS: Dict[str, Opcode] = {op.value: op for op in Opcode if op is not Opcode.LABEL}

BLOCK_HEADERS = (Opcode.ITER_THROUGH, Opcode.ITER_FOR)


@dataclass(frozen=True)
class Operand:
    """Decoded operand: a register slot or an integer value."""
    text: str
    slot: Optional[int] = None
    value: Optional[int] = None

    @property
    def is_register(self) -> bool:
        return self.slot is not None


@dataclass(frozen=True)
class Instruction:
    """One decoded program line."""
    opcode: Opcode
    operands: Tuple[Operand, ...] = ()
    line_num: int = 0
    text: str = ""
    block_end: Optional[int] = None   # ITER_*: line number of the matching ')'


# ──────────────────────────────────────────────
# Operand decoding
# ──────────────────────────────────────────────

_LITERAL_RE = re.compile(r'^[+-]?[0-9]+$')
_NUMERIC_LOOKING = re.compile(r'^[+-]?[0-9]')


def parse_literal(text: str) -> int:
    """Parse a signed 32-bit decimal literal."""
    if not _LITERAL_RE.match(text):
        raise InvalidOperandLiteralError(text)
    value = int(text)
    if not INT_MIN <= value <= INT_MAX:
        raise InvalidOperandLiteralError(text)
    return value


def _register(text: str) -> Operand:
    slot = register_slot(text)
    if slot is None:
        raise InvalidRegisterError(text)
    return Operand(text, slot=slot)


def _decode_operand(kind: str, text: str, num_lines: int) -> Operand:
    if kind == REG:
        return _register(text)

    if kind == VAL:
        slot = register_slot(text)
        if slot is not None:
            return Operand(text, slot=slot)
        if _NUMERIC_LOOKING.match(text):
            return Operand(text, value=parse_literal(text))
        raise InvalidRegisterError(text)

    if kind == LINE:
        target = parse_literal(text)
        # num_lines + 1 is the address just past the end: jumping there halts
        if not 1 <= target <= num_lines + 1:
            raise InvalidOperandLiteralError(text)
        return Operand(text, value=target)

    raise ValueError(f"Unknown operand kind: {kind}")


def _split_range(token: str, mnemonic: str) -> Tuple[str, str]:
    """'|A0:A9|' → ('A0', 'A9')."""
    if (len(token) < 2 or not token.startswith(RANGE_FENCE)
            or not token.endswith(RANGE_FENCE)):
        raise MalformedRangeError(f"{mnemonic}: expected |x:y| range, got '{token}'")
    parts = token[1:-1].split(RANGE_SEPARATOR)
    if len(parts) != 2 or not all(parts):
        raise MalformedRangeError(f"{mnemonic}: expected |x:y| range, got '{token}'")
    return parts[0], parts[1]


def _decode_iter_through(operands: List[str]) -> Tuple[Operand, ...]:
    # ITER_THROUGH |r1:r2| -> rd (
    if len(operands) != 4 or operands[1] != RANGE_ARROW or operands[3] != BLOCK_OPEN:
        raise MalformedRangeError(
            f"ITER_THROUGH: expected '|r1:r2| {RANGE_ARROW} rd {BLOCK_OPEN}', "
            f"got '{' '.join(operands)}'")
    first, last = _split_range(operands[0], 'ITER_THROUGH')
    first_op, last_op, dest_op = _register(first), _register(last), _register(operands[2])
    if not RegisterFile.are_same_type(first, last):
        raise MalformedRangeError(
            f"ITER_THROUGH: registers of different type: {first}, {last}")
    if not RegisterFile.comes_first(first, last):
        raise MalformedRangeError(
            f"ITER_THROUGH: {first} must come before {last}")
    return (first_op, last_op, dest_op)


def _decode_iter_for(operands: List[str]) -> Tuple[Operand, ...]:
    # ITER_FOR |r:n| (
    if len(operands) != 2 or operands[1] != BLOCK_OPEN:
        raise MalformedRangeError(
            f"ITER_FOR: expected '|r:n| {BLOCK_OPEN}', got '{' '.join(operands)}'")
    reg, count = _split_range(operands[0], 'ITER_FOR')
    reg_op = _register(reg)
    n = parse_literal(count)
    if n < 0:
        raise MalformedRangeError(f"ITER_FOR: count must be non-negative, got {n}")
    return (reg_op, Operand(count, value=n))


# ──────────────────────────────────────────────
# Line / program decoding
# ──────────────────────────────────────────────

def decode_line(line: str, line_num: int, num_lines: int) -> Instruction:
    """Decode one resolved line. num_lines bounds jump targets."""
    asm = parse_line(line, line_num)
    try:
        if asm.mnemonic is None:
            return Instruction(Opcode.LABEL, (), line_num, line)

        opcode = MNEMONICS.get(asm.mnemonic)
        if opcode is None:
            raise UnknownMnemonicError(asm.mnemonic)

        if opcode is Opcode.ITER_THROUGH:
            operands = _decode_iter_through(asm.operands)
        elif opcode is Opcode.ITER_FOR:
            operands = _decode_iter_for(asm.operands)
        else:
            kinds = OPERANDS[opcode]
            if len(asm.operands) != len(kinds):
                raise OperandCountError(asm.mnemonic, len(kinds), len(asm.operands))
            operands = tuple(_decode_operand(kind, text, num_lines)
                             for kind, text in zip(kinds, asm.operands))
    except ExecutionError as e:
        raise e.at(line_num, line)

    return Instruction(opcode, operands, line_num, line)


def decode_program(lines: Sequence[str]) -> Tuple[Instruction, ...]:
    """Decode every line and pair each ITER_* header with its ')'."""
    num_lines = len(lines)
    instructions = [decode_line(line, i, num_lines) for i, line in enumerate(lines, 1)]

    open_blocks: List[int] = []   # indices of headers awaiting their ')'
    for index, instr in enumerate(instructions):
        if instr.opcode in BLOCK_HEADERS:
            open_blocks.append(index)
        elif instr.opcode is Opcode.END_BLOCK:
            if not open_blocks:
                raise MalformedRangeError(
                    f"'{BLOCK_CLOSE}' without an open ITER block").at(instr.line_num, instr.text)
            header = open_blocks.pop()
            instructions[header] = replace(instructions[header], block_end=instr.line_num)

    if open_blocks:
        header = instructions[open_blocks[-1]]
        raise MalformedRangeError(
            f"{header.opcode.value} block is never closed with '{BLOCK_CLOSE}'"
        ).at(header.line_num, header.text)

    log.debug("decoded %d instruction(s)", len(instructions))
    return tuple(instructions)
