"""
JAsm — a minimal assembly language and register machine
=======================================================

Architecture:
    ┌───────────┐    ┌────────────┐    ┌────────────────┐    ┌─────────┐    ┌─────────┐
    │ .jasm src │───>│ Normalizer │───>│ Label Resolver │───>│ Decoder │───>│ Machine │
    │  (text)   │    │  (lines)   │    │ (line numbers) │    │ (instr) │    │ (run)   │
    └───────────┘    └────────────┘    └────────────────┘    └─────────┘    └─────────┘

    - normalizer.py: drops comment/blank lines, strips indentation
    - assembler.py:  label table + jump operand rewrite → Program
    - decoder.py:    tagged Instruction records, decoded once
    - vm/regs.py:    60 × int32 register file (A-E, Z × 0-9)
    - vm/emu.py:     fetch / dispatch loop, ITER blocks, CALL/RET
    - artifact.py:   .jasm sources and resolved .jasm~ files
"""

__version__ = "0.4.0"

from typing import Optional, TextIO

from .errors import *
from .normalizer import normalize, parse_line
from .assembler import Assembler, Program, assemble
from .decoder import Opcode, Instruction, Operand
from .vm.regs import RegisterFile
from .vm.stack import CallStack, StackEntry
from .vm.emu import Machine, StopReason


def run_source(source: str, *, out: Optional[TextIO] = None,
               max_steps: Optional[int] = None, trace: bool = False) -> Machine:
    """Resolve and run source text; returns the machine in its final state.

    Full pipeline: normalize -> resolve labels -> decode -> execute.
    """
    machine = Machine(out=out, trace=trace)
    machine.load(assemble(source))
    machine.run(max_steps=max_steps)
    return machine
