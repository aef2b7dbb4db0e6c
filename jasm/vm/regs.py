"""
JAsm Machine — Register File

Register model:
  Six type letters × ten digits = 60 cells, named letter + digit:

      A0 … A9   B0 … B9   C0 … C9   D0 … D9   E0 … E9   Z0 … Z9

  Every cell is a 32-bit signed integer, 0 at construction. There is no
  aliasing between names.

Storage is a flat list indexed by an encoded (letter, digit) pair:

      slot = type_index * REGISTER_COUNT + digit

so A0 → 0, A9 → 9, B0 → 10, …, Z9 → 59. The decoder resolves register
operands to slots once; the machine then reads and writes slots directly.
"""

from __future__ import annotations
from typing import Dict, Iterator, Optional

from ..config import REGISTER_TYPES, REGISTER_COUNT, DEFAULT_VALUE
from ..errors import InvalidRegisterError
from .alu import wrap32

__all__ = ['RegisterFile', 'register_slot', 'register_name', 'NUM_REGISTERS']

NUM_REGISTERS = len(REGISTER_TYPES) * REGISTER_COUNT

_DIGITS = '0123456789'[:REGISTER_COUNT]


def register_slot(name: str) -> Optional[int]:
    """Encode a register name into its slot, or None if it names no register."""
    if len(name) != 2:
        return None
    type_index = REGISTER_TYPES.find(name[0])
    digit = _DIGITS.find(name[1])
    if type_index < 0 or digit < 0:
        return None
    return type_index * REGISTER_COUNT + digit


def register_name(slot: int) -> str:
    """Decode a slot back into its register name."""
    type_index, digit = divmod(slot, REGISTER_COUNT)
    return f"{REGISTER_TYPES[type_index]}{digit}"


class RegisterFile:
    """Fixed namespace of 32-bit signed cells, owned by one machine."""

    __slots__ = ('_cells',)

    def __init__(self):
        self._cells = [DEFAULT_VALUE] * NUM_REGISTERS

    # --- Name-level access ---

    @staticmethod
    def is_valid_register(name: str) -> bool:
        return register_slot(name) is not None

    @staticmethod
    def slot(name: str) -> int:
        """Slot for name; raises InvalidRegisterError if name is no register."""
        slot = register_slot(name)
        if slot is None:
            raise InvalidRegisterError(name)
        return slot

    def get(self, name: str) -> int:
        return self._cells[self.slot(name)]

    def put(self, name: str, value: int):
        self._cells[self.slot(name)] = wrap32(value)

    # --- Slot-level access (decoded programs) ---

    def read(self, slot: int) -> int:
        return self._cells[slot]

    def write(self, slot: int, value: int):
        self._cells[slot] = wrap32(value)

    # --- Range validation helpers ---

    @staticmethod
    def are_same_type(name1: str, name2: str) -> bool:
        """Both names share a type letter."""
        return name1[:1] == name2[:1]

    @staticmethod
    def comes_first(name1: str, name2: str) -> bool:
        """name1's index is strictly lower than name2's.

        Compares the digit characters, which is only correct because indices
        are single digits.
        """
        return name1[1:2] < name2[1:2]

    # --- Whole-file operations ---

    def reset(self):
        self._cells = [DEFAULT_VALUE] * NUM_REGISTERS

    def names(self) -> Iterator[str]:
        """All register names in slot order (A0…A9, B0…, Z9)."""
        return (register_name(slot) for slot in range(NUM_REGISTERS))

    def snapshot(self) -> Dict[str, int]:
        """Ordered copy of every cell: {name: value}."""
        return {register_name(slot): value for slot, value in enumerate(self._cells)}

    def display(self) -> str:
        """Register table: one row per index, one column per type letter."""
        rows = ["----------------- Registers -----------------"]
        for digit in range(REGISTER_COUNT):
            cells = []
            for type_index, letter in enumerate(REGISTER_TYPES):
                value = self._cells[type_index * REGISTER_COUNT + digit]
                cells.append(f"{letter}{digit}: {value}")
            rows.append("\t".join(cells))
        rows.append("-------------------- END --------------------")
        return "\n".join(rows)
