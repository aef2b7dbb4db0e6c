"""
JAsm Machine — Execution Engine

Integrates:
  - Register file (regs.py)
  - ALU operations (alu.py)
  - Call stack (stack.py)
  - A decoded Program (assembler.py / decoder.py)

Execution model:
  1. Fetch the instruction at PC (1-based line number)
  2. Advance PC to the next line
  3. Execute the handler — jumps overwrite PC, so a jump always lands on
     its target and nothing advances past it afterwards
  4. Settle the active loops against the new PC
  5. Stop when PC > N

ITER_THROUGH / ITER_FOR push a LoopFrame and run their body
(header+1 .. close-1) once per induction value. Frames live in a list owned
by the machine, so nesting depth is bounded by memory, not by Python's
recursion limit. Inside a body:
  - falling through to the ')' line ends the iteration
  - a jump to the ')' line also ends the iteration (continue)
  - a jump anywhere else outside the body leaves the loop
  - CALL may run code outside the body; RET brings control back

Termination reasons:
  - DONE:     PC ran past the last line
  - TIMEOUT:  max_steps instructions executed
Everything else is an ExecutionError raised to the caller.
"""

from __future__ import annotations
from collections import deque
from dataclasses import dataclass
from typing import Callable, Deque, Dict, Iterator, List, Optional, TextIO
from enum import Enum
import logging
import operator
import sys

from ..config import DEFAULT_VALUE, TRACE_LIMIT, REPLACEMENT_CHAR
from ..decoder import Instruction, Opcode, Operand
from ..errors import ExecutionError, DivisionByZeroError
from .regs import RegisterFile
from .stack import CallStack
from . import alu

__all__ = ['Machine', 'StopReason', 'LoopFrame']

log = logging.getLogger(__name__)


class StopReason(Enum):
    DONE = 'DONE'
    TIMEOUT = 'TIMEOUT'


@dataclass
class LoopFrame:
    """One running ITER_* block."""
    header: int               # line of the ITER_* header
    close: int                # line of the matching ')'
    slot: int                 # induction register
    values: Iterator[int]
    depth: int                # call stack depth when the loop started

    @property
    def body(self) -> int:
        return self.header + 1

    def holds(self, pc: int, stack_depth: int) -> bool:
        """PC is inside the body, or a CALL made from the body is active."""
        return self.body <= pc < self.close or stack_depth > self.depth


_ARITHMETIC: Dict[Opcode, Callable[[int, int], int]] = {
    Opcode.ADD: alu.add32,
    Opcode.SUB: alu.sub32,
    Opcode.MUL: alu.mul32,
    Opcode.DIV: alu.div32,
    Opcode.MOD: alu.mod32,
}

_COMPARISONS: Dict[Opcode, Callable[[int, int], bool]] = {
    Opcode.JE:  operator.eq,
    Opcode.JNE: operator.ne,
    Opcode.JG:  operator.gt,
    Opcode.JL:  operator.lt,
    Opcode.JGE: operator.ge,
    Opcode.JLE: operator.le,
}

CLEAR_SCREEN = "\033[H\033[2J"


class Machine:
    """JAsm register machine.

    Usage:
        m = Machine()
        m.load(assemble(source))
        reason = m.run()
        m.regs.get('A0')
    """

    def __init__(self, out: Optional[TextIO] = None, trace: bool = False,
                 trace_limit: int = TRACE_LIMIT):
        self.regs = RegisterFile()
        self.stack = CallStack()
        self.program = None
        self.pc: int = 1
        self.steps: int = 0
        self.out = out if out is not None else sys.stdout
        self.loops: List[LoopFrame] = []

        self._trace = trace
        self.trace_output: Deque[str] = deque(maxlen=trace_limit)

        self._dispatch = self._build_dispatch()

    # ══════════════════════════════════════════════
    # Loading
    # ══════════════════════════════════════════════

    def load(self, program):
        """Attach a resolved Program and reset all machine state."""
        self.program = program
        self.reset()

    def reset(self):
        self.regs.reset()
        self.stack.clear()
        self.loops.clear()
        self.pc = 1
        self.steps = 0
        self.trace_output.clear()

    @property
    def halted(self) -> bool:
        return self.program is None or self.pc > len(self.program)

    # ══════════════════════════════════════════════
    # Execution
    # ══════════════════════════════════════════════

    def step(self) -> Optional[StopReason]:
        """Execute the instruction at PC. Returns DONE once PC passes the end.

        An ITER_* header only starts its loop; body lines are separate steps.
        """
        if self.halted:
            return StopReason.DONE
        self._execute_current()
        self._settle_loops()
        return StopReason.DONE if self.halted else None

    def run(self, max_steps: Optional[int] = None) -> StopReason:
        """Run until PC passes the last line, or max_steps instructions ran."""
        if self.program is None:
            raise ValueError("No program loaded")

        log.info("run: %d line(s), max_steps=%s", len(self.program), max_steps)
        reason = StopReason.DONE
        while not self.halted:
            if max_steps is not None and self.steps >= max_steps:
                reason = StopReason.TIMEOUT
                break
            self._execute_current()
            self._settle_loops()

        log.info("stopped: %s after %d step(s) at line %d", reason.value, self.steps, self.pc)
        return reason

    def _execute_current(self):
        instr = self.program.instruction(self.pc)
        self.steps += 1

        if self._trace:
            entry = f"{instr.line_num:4d}: {instr.text}"
            self.trace_output.append(entry)
            log.debug(entry)

        self.pc = instr.line_num + 1
        try:
            self._dispatch[instr.opcode](instr)
        except ExecutionError as e:
            raise e.at(instr.line_num, instr.text)

    def _settle_loops(self):
        """Advance or drop loop frames that PC has left, innermost first."""
        end = len(self.program)
        while self.loops:
            frame = self.loops[-1]
            if 1 <= self.pc <= end and frame.holds(self.pc, len(self.stack)):
                return
            if self.pc == frame.close:
                if self._next_iteration(frame):
                    return
                self.pc = frame.close + 1
            # Finished, or a jump (or RET) left the body
            self.loops.pop()

    def _next_iteration(self, frame: LoopFrame) -> bool:
        """Store the next induction value and jump to the body start."""
        value = next(frame.values, None)
        if value is None:
            return False
        self.regs.write(frame.slot, value)
        self.pc = frame.body
        return True

    def _value(self, op: Operand) -> int:
        """Register contents or literal value."""
        if op.is_register:
            return self.regs.read(op.slot)
        return op.value

    # ══════════════════════════════════════════════
    # Instruction handlers
    # ══════════════════════════════════════════════
    # Handler signature: handler(instr)
    # Operand layouts are fixed by decoder.OPERANDS.

    def _build_dispatch(self) -> dict:
        """Build opcode → handler dispatch table."""
        return {
            # ── Data movement ──
            Opcode.PUT:  self._op_put,
            Opcode.COPY: self._op_copy,
            Opcode.SWAP: self._op_swap,
            Opcode.FREE: self._op_free,

            # ── Arithmetic ──
            Opcode.ADD:  self._op_arith,
            Opcode.SUB:  self._op_arith,
            Opcode.MUL:  self._op_arith,
            Opcode.DIV:  self._op_arith,
            Opcode.MOD:  self._op_arith,
            Opcode.INC:  self._op_inc,
            Opcode.DEC:  self._op_dec,

            # ── Jump/Call ──
            Opcode.JMP:  self._op_jmp,
            Opcode.JZ:   self._op_jz,
            Opcode.JNZ:  self._op_jnz,
            Opcode.JE:   self._op_compare,
            Opcode.JNE:  self._op_compare,
            Opcode.JG:   self._op_compare,
            Opcode.JL:   self._op_compare,
            Opcode.JGE:  self._op_compare,
            Opcode.JLE:  self._op_compare,
            Opcode.CALL: self._op_call,
            Opcode.RET:  self._op_ret,

            # ── Range blocks ──
            Opcode.ITER_THROUGH: self._op_iter_through,
            Opcode.ITER_FOR:     self._op_iter_for,
            Opcode.END_BLOCK:    self._op_nop,

            # ── Output ──
            Opcode.SHOW:  self._op_show,
            Opcode.ASCII: self._op_ascii,
            Opcode.HEX:   self._op_hex,
            Opcode.CLS:   self._op_cls,
            Opcode.NEWL:  self._op_newl,
            Opcode.TAB:   self._op_tab,

            Opcode.LABEL: self._op_nop,
        }

    def _op_nop(self, instr: Instruction):
        pass

    # ── Data movement ──

    def _op_put(self, instr):
        dest, src = instr.operands
        self.regs.write(dest.slot, self._value(src))

    def _op_copy(self, instr):
        dest, src = instr.operands
        self.regs.write(dest.slot, self.regs.read(src.slot))

    def _op_swap(self, instr):
        r1, r2 = instr.operands
        v1, v2 = self.regs.read(r1.slot), self.regs.read(r2.slot)
        self.regs.write(r1.slot, v2)
        self.regs.write(r2.slot, v1)

    def _op_free(self, instr):
        self.regs.write(instr.operands[0].slot, DEFAULT_VALUE)

    # ── Arithmetic ──

    def _op_arith(self, instr):
        dest, a, b = instr.operands
        lhs, rhs = self._value(a), self._value(b)
        if rhs == 0 and instr.opcode in (Opcode.DIV, Opcode.MOD):
            raise DivisionByZeroError()
        self.regs.write(dest.slot, _ARITHMETIC[instr.opcode](lhs, rhs))

    def _op_inc(self, instr):
        slot = instr.operands[0].slot
        self.regs.write(slot, alu.add32(self.regs.read(slot), 1))

    def _op_dec(self, instr):
        slot = instr.operands[0].slot
        self.regs.write(slot, alu.sub32(self.regs.read(slot), 1))

    # ── Jump/Call ──

    def _op_jmp(self, instr):
        self.pc = instr.operands[0].value

    def _op_jz(self, instr):
        reg, target = instr.operands
        if self.regs.read(reg.slot) == 0:
            self.pc = target.value

    def _op_jnz(self, instr):
        reg, target = instr.operands
        if self.regs.read(reg.slot) != 0:
            self.pc = target.value

    def _op_compare(self, instr):
        a, b, target = instr.operands
        if _COMPARISONS[instr.opcode](self._value(a), self._value(b)):
            self.pc = target.value

    def _op_call(self, instr):
        target = instr.operands[0].value
        name = self.program.label_at(target) or str(target)
        self.stack.push(name, instr.line_num)
        self.pc = target

    def _op_ret(self, instr):
        entry = self.stack.pop()
        self.pc = entry.line_num + 1

    # ── Range blocks ──

    def _op_iter_through(self, instr):
        first, last, dest = instr.operands
        # Values are read as each iteration starts, so the body sees its own writes
        values = (self.regs.read(slot) for slot in range(first.slot, last.slot + 1))
        self._start_loop(instr, dest.slot, values)

    def _op_iter_for(self, instr):
        reg, count = instr.operands
        self._start_loop(instr, reg.slot, iter(range(count.value)))

    def _start_loop(self, instr: Instruction, slot: int, values: Iterator[int]):
        frame = LoopFrame(instr.line_num, instr.block_end, slot, values, len(self.stack))
        if self._next_iteration(frame):
            self.loops.append(frame)
        else:
            self.pc = frame.close + 1

    # ── Output ──

    def _op_show(self, instr):
        self.out.write(f"{self.regs.read(instr.operands[0].slot)}\n")

    def _op_ascii(self, instr):
        code = self.regs.read(instr.operands[0].slot) & 0xFFFF
        # Lone surrogates cannot be encoded by any text stream
        self.out.write(REPLACEMENT_CHAR if 0xD800 <= code <= 0xDFFF else chr(code))

    def _op_hex(self, instr):
        self.out.write(alu.hex32(self.regs.read(instr.operands[0].slot)))

    def _op_cls(self, instr):
        self.out.write(CLEAR_SCREEN)
        self.out.flush()

    def _op_newl(self, instr):
        self.out.write("\n")

    def _op_tab(self, instr):
        self.out.write("\t")
