"""
JAsm error taxonomy.

    JasmError
    ├── AssemblerError            resolution (label table / operand rewrite)
    │   ├── DuplicateLabelError
    │   └── UndefinedLabelError
    ├── ExecutionError            decoding and running a program
    │   ├── InvalidRegisterError
    │   ├── InvalidOperandLiteralError
    │   ├── UnknownMnemonicError
    │   ├── OperandCountError
    │   ├── MalformedRangeError
    │   ├── DivisionByZeroError
    │   └── CallStackUnderflowError
    └── ArtifactError             reading sources / writing resolved files
        ├── SourceExtensionError
        └── ArtifactExistsError

All of them are fatal for the compilation or run that raised them.
"""

from __future__ import annotations

__all__ = [
    'JasmError',
    'AssemblerError', 'DuplicateLabelError', 'UndefinedLabelError',
    'ExecutionError', 'InvalidRegisterError', 'InvalidOperandLiteralError',
    'UnknownMnemonicError', 'OperandCountError', 'MalformedRangeError',
    'DivisionByZeroError', 'CallStackUnderflowError',
    'ArtifactError', 'SourceExtensionError', 'ArtifactExistsError',
]


class JasmError(Exception):
    """Base error. Carries the offending line when one is known."""
    def __init__(self, message: str, line_num: int = 0, line_text: str = ""):
        self.message = message
        self.line_num = line_num
        self.line_text = line_text
        super().__init__(message)

    def at(self, line_num: int, line_text: str = "") -> "JasmError":
        """Attach a source line if none is recorded yet; returns self."""
        if not self.line_num:
            self.line_num = line_num
            self.line_text = line_text
        return self

    def __str__(self) -> str:
        if self.line_num:
            return f"Line {self.line_num}: {self.message}"
        return self.message


# ──────────────────────────────────────────────
# Resolution
# ──────────────────────────────────────────────

class AssemblerError(JasmError):
    """Raised when the label resolver cannot produce a program."""


class DuplicateLabelError(AssemblerError):
    def __init__(self, name: str, first_line: int, line_num: int = 0, line_text: str = ""):
        self.name = name
        self.first_line = first_line
        super().__init__(f"Label '{name}' already defined at line {first_line}",
                         line_num, line_text)


class UndefinedLabelError(AssemblerError):
    def __init__(self, name: str, line_num: int = 0, line_text: str = ""):
        self.name = name
        super().__init__(f"Label '{name}' was not defined", line_num, line_text)


# ──────────────────────────────────────────────
# Execution
# ──────────────────────────────────────────────

class ExecutionError(JasmError):
    """Raised when a program cannot be decoded or an instruction cannot run."""


class InvalidRegisterError(ExecutionError):
    def __init__(self, identifier: str, line_num: int = 0, line_text: str = ""):
        self.identifier = identifier
        super().__init__(f"Invalid register: '{identifier}'", line_num, line_text)


class InvalidOperandLiteralError(ExecutionError):
    def __init__(self, text: str, line_num: int = 0, line_text: str = ""):
        self.text = text
        super().__init__(f"Invalid literal operand: '{text}'", line_num, line_text)


class UnknownMnemonicError(ExecutionError):
    def __init__(self, token: str, line_num: int = 0, line_text: str = ""):
        self.token = token
        super().__init__(f"Unexpected instruction value: '{token}'", line_num, line_text)


class OperandCountError(ExecutionError):
    def __init__(self, mnemonic: str, expected: int, got: int,
                 line_num: int = 0, line_text: str = ""):
        self.mnemonic = mnemonic
        self.expected = expected
        self.got = got
        super().__init__(f"{mnemonic}: expected {expected} operand(s), got {got}",
                         line_num, line_text)


class MalformedRangeError(ExecutionError):
    """Bad ITER_THROUGH / ITER_FOR header or an unbalanced block."""


class DivisionByZeroError(ExecutionError):
    def __init__(self, line_num: int = 0, line_text: str = ""):
        super().__init__("Division by zero", line_num, line_text)


class CallStackUnderflowError(ExecutionError):
    def __init__(self, line_num: int = 0, line_text: str = ""):
        super().__init__("RET with an empty call stack", line_num, line_text)


# ──────────────────────────────────────────────
# Artifacts
# ──────────────────────────────────────────────

class ArtifactError(JasmError):
    """Raised by source / resolved-artifact file handling."""


class SourceExtensionError(ArtifactError):
    def __init__(self, path: str, expected: str):
        self.path = path
        super().__init__(f"File extension not supported: '{path}' (expected {expected})")


class ArtifactExistsError(ArtifactError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Output file exists: '{path}' (use --force to overwrite)")
