"""
Label resolver tests.

Covers the label table, jump operand rewriting, error reporting and
idempotence of resolution on already-resolved text.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from jasm.assembler import Assembler, LABEL_OPERAND_INDEX, assemble
from jasm.errors import AssemblerError, DuplicateLabelError, UndefinedLabelError


# ─── Label table ──────────────────────────

class TestLabelTable:
    def test_labels_use_normalized_line_numbers(self):
        src = "// intro\n\nPUT A0 3\n\nloop: DEC A0\n// c\nJNZ A0 loop\n"
        program = assemble(src)
        assert program.labels == {"loop": 2}
        assert program.lines == ("PUT A0 3", "loop: DEC A0", "JNZ A0 2")

    def test_label_only_line_is_addressable(self):
        program = assemble("JMP end\nPUT A0 1\nend:")
        assert program.labels["end"] == 3
        assert program.line(1) == "JMP 3"

    def test_label_table_is_read_only(self):
        program = assemble("a: INC A0")
        with pytest.raises(TypeError):
            program.labels["b"] = 2

    def test_label_at(self):
        program = assemble("PUT A0 1\nsub: INC A0\nRET")
        assert program.label_at(2) == "sub"
        assert program.label_at(1) is None

    def test_duplicate_label(self):
        src = "loop: INC A0\nPUT A1 1\nloop: DEC A0"
        with pytest.raises(DuplicateLabelError) as exc:
            assemble(src)
        assert exc.value.name == "loop"
        assert exc.value.first_line == 1
        assert exc.value.line_num == 3
        assert "already defined at line 1" in str(exc.value)

    def test_numeric_label_rejected(self):
        with pytest.raises(AssemblerError):
            assemble("12: INC A0")

    def test_empty_label_rejected(self):
        with pytest.raises(AssemblerError):
            assemble(": INC A0")

    def test_assembler_state_after_run(self):
        asm = Assembler()
        asm.assemble("JMP b\na: INC A0\nb: JMP a")
        assert asm.symbols == {"a": 2, "b": 3}
        assert asm.rewrites == 2


# ─── Operand rewriting ────────────────────

class TestRewrite:
    def test_forward_reference(self):
        program = assemble("JMP end\nPUT A0 1\nend: PUT A0 2")
        assert program.line(1) == "JMP 3"

    def test_backward_reference(self):
        program = assemble("top: INC A0\nJL A0 5 top")
        assert program.line(2) == "JL A0 5 1"

    def test_operand_positions(self):
        src = "\n".join([
            "t: FREE A0",
            "JMP t",
            "JZ A0 t",
            "JNZ A0 t",
            "JE A0 1 t",
            "JNE A0 1 t",
            "JG A0 1 t",
            "JL A0 1 t",
            "JGE A0 1 t",
            "JLE A0 1 t",
            "CALL t",
        ])
        program = assemble(src)
        assert program.lines[1:] == (
            "JMP 1", "JZ A0 1", "JNZ A0 1",
            "JE A0 1 1", "JNE A0 1 1", "JG A0 1 1", "JL A0 1 1",
            "JGE A0 1 1", "JLE A0 1 1", "CALL 1",
        )
        assert set(LABEL_OPERAND_INDEX) == {
            "JMP", "JZ", "JNZ", "JE", "JNE", "JG", "JL", "JGE", "JLE", "CALL"}

    def test_only_label_position_is_rewritten(self):
        # A register operand spelled like the label stays a register
        program = assemble("A0: PUT A0 1\nJE A0 1 A0")
        assert program.line(2) == "JE A0 1 1"

    def test_jump_on_labelled_line(self):
        program = assemble("PUT A0 1\nspin: JMP done\ndone:")
        assert program.line(2) == "spin: JMP 3"

    def test_comment_kept(self):
        program = assemble("JMP end // skip\nend: INC A0")
        assert program.line(1) == "JMP 2 // skip"

    def test_non_jump_lines_untouched(self):
        program = assemble("PUT A0 1   // spaced")
        assert program.line(1) == "PUT A0 1   // spaced"

    def test_undefined_label(self):
        with pytest.raises(UndefinedLabelError) as exc:
            assemble("PUT A0 1\nJMP missing")
        assert exc.value.name == "missing"
        assert exc.value.line_num == 2

    def test_numeric_operand_passes_through(self):
        program = assemble("JMP 2\nINC A0")
        assert program.line(1) == "JMP 2"


# ─── Idempotence / artifact text ──────────

class TestResolvedText:
    SRC = """
    // countdown
    PUT A0 3
    loop: DEC A0
        JNZ A0 loop
    JMP end
    PUT A1 9
    end:
    """

    def test_resolving_resolved_text_is_noop(self):
        once = assemble(self.SRC)
        twice = assemble(once.to_text())
        assert twice.lines == once.lines
        assert dict(twice.labels) == dict(once.labels)
        assert twice.instructions == once.instructions

    def test_to_text(self):
        program = assemble("a: INC A0\nJMP a")
        assert program.to_text() == "a: INC A0\nJMP 1\n"

    def test_empty_program(self):
        program = assemble("// nothing\n")
        assert len(program) == 0
        assert program.to_text() == ""
