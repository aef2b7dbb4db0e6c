"""
JAsm Machine — Call Stack

Holds (label, line) pairs for CALL/RET:
  CALL sub   → push ("sub", line of the CALL), jump to sub
  RET        → pop, continue at popped line + 1

Owned by one machine and mutated only by those two instructions.
"""

from __future__ import annotations
from typing import List, NamedTuple, Optional

from ..errors import CallStackUnderflowError

__all__ = ['StackEntry', 'CallStack']


class StackEntry(NamedTuple):
    label: str
    line_num: int


class CallStack:
    """LIFO of StackEntry, top at the end of the list."""

    def __init__(self):
        self._entries: List[StackEntry] = []

    def push(self, label: str, line_num: int):
        self._entries.append(StackEntry(label, line_num))

    def pop(self) -> StackEntry:
        if not self._entries:
            raise CallStackUnderflowError()
        return self._entries.pop()

    def peek(self) -> Optional[StackEntry]:
        return self._entries[-1] if self._entries else None

    def is_empty(self) -> bool:
        return not self._entries

    def clear(self):
        self._entries.clear()

    def entries(self) -> List[StackEntry]:
        """Copy of the entries, top first."""
        return list(reversed(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def display(self) -> str:
        rows = ["------------------- Stack -------------------"]
        if self.is_empty():
            rows.append("\t\t\t\tStack is empty.")
        for entry in self.entries():
            rows.append(f"\t\t\t\t{entry.label}: {entry.line_num}")
        rows.append("-------------------- END --------------------")
        return "\n".join(rows)
