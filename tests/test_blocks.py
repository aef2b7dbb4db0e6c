"""
Range block tests: ITER_THROUGH / ITER_FOR bodies, nesting, and how jumps
and calls interact with a running loop.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io

from jasm import run_source
from jasm.assembler import assemble
from jasm.vm.emu import Machine


def _run(src: str, **kwargs) -> Machine:
    return run_source(src, out=io.StringIO(), **kwargs)


# ─── ITER_THROUGH ─────────────────────────

class TestIterThrough:
    def test_sum_of_range(self):
        src = """
        PUT D0 10
        PUT D1 20
        PUT D2 30
        PUT D3 40
        ITER_THROUGH |D0:D3| -> Z0 (
            ADD E0 E0 Z0
        )
        """
        m = _run(src)
        assert m.regs.get("E0") == 100
        assert m.regs.get("Z0") == 40

    def test_values_read_as_each_iteration_starts(self):
        src = """
        PUT A0 1
        PUT A1 1
        ITER_THROUGH |A0:A1| -> Z0 (
            ADD A1 A1 10
            ADD E0 E0 Z0
        )
        """
        m = _run(src)
        assert m.regs.get("E0") == 12
        assert m.regs.get("A1") == 21

    def test_destination_inside_range(self):
        m = _run("PUT A0 3\nPUT A1 4\nITER_THROUGH |A0:A1| -> A1 (\nADD B0 B0 A1\n)")
        assert m.regs.get("B0") == 6


# ─── ITER_FOR ─────────────────────────────

class TestIterFor:
    def test_counts_from_zero(self):
        m = _run("ITER_FOR |C0:4| (\n_SHOW C0\nINC B0\n)")
        assert m.regs.get("B0") == 4
        assert m.regs.get("C0") == 3
        assert m.out.getvalue() == "0\n1\n2\n3\n"

    def test_zero_count_skips_body(self):
        m = _run("PUT C0 7\nITER_FOR |C0:0| (\nINC B0\n)\nPUT A0 1")
        assert m.regs.get("B0") == 0
        assert m.regs.get("C0") == 7
        assert m.regs.get("A0") == 1

    def test_body_write_to_counter_is_overwritten(self):
        m = _run("ITER_FOR |C0:3| (\nPUT C0 100\nINC B0\n)")
        assert m.regs.get("B0") == 3

    def test_execution_continues_after_block(self):
        m = _run("ITER_FOR |C0:2| (\nINC B0\n)\nPUT A0 9")
        assert m.regs.get("A0") == 9


# ─── Nesting and jumps ────────────────────

class TestBlockControl:
    def test_nested(self):
        src = """
        ITER_FOR |C0:3| (
            ITER_FOR |C1:4| (
                INC B0
            )
        )
        """
        assert _run(src).regs.get("B0") == 12

    def test_nested_through_and_for(self):
        src = """
        PUT A0 1
        PUT A1 2
        ITER_THROUGH |A0:A1| -> Z0 (
            ITER_FOR |C0:3| (
                ADD B0 B0 Z0
            )
        )
        """
        assert _run(src).regs.get("B0") == 9

    def test_jump_to_close_continues(self):
        src = """
        ITER_FOR |C0:5| (
            JG C0 1 next
            INC B0
        next: )
        """
        m = _run(src)
        assert m.regs.get("B0") == 2
        assert m.regs.get("C0") == 4

    def test_jump_out_breaks(self):
        src = """
        ITER_FOR |C0:10| (
            JE C0 3 done
            INC B0
        )
        PUT A1 1
        done: PUT A0 1
        """
        m = _run(src)
        assert m.regs.get("B0") == 3
        assert m.regs.get("C0") == 3
        assert m.regs.get("A0") == 1
        assert m.regs.get("A1") == 0

    def test_break_from_inner_loop_only(self):
        src = """
        ITER_FOR |C0:2| (
            ITER_FOR |C1:5| (
                JE C1 2 inner_done
                INC B0
            )
        inner_done: INC B1
        )
        """
        m = _run(src)
        assert m.regs.get("B0") == 4
        assert m.regs.get("B1") == 2

    def test_call_from_body(self):
        src = """
        ITER_FOR |C0:3| (
            CALL bump
        )
        JMP end
        bump: INC B0
            RET
        end:
        """
        m = _run(src)
        assert m.regs.get("B0") == 3
        assert m.stack.is_empty()

    def test_jump_into_body_runs_sequentially(self):
        src = """
        JMP inside
        ITER_FOR |C0:3| (
        inside: INC B0
        )
        PUT A0 1
        """
        m = _run(src)
        assert m.regs.get("B0") == 1
        assert m.regs.get("A0") == 1

    def test_header_starts_loop(self):
        m = Machine(out=io.StringIO())
        m.load(assemble("ITER_FOR |C0:3| (\nINC B0\n)\nPUT A0 1"))
        m.step()
        assert m.pc == 2
        assert m.regs.get("B0") == 0
        assert len(m.loops) == 1
        m.step()
        m.step()
        assert m.pc == 2
        assert m.regs.get("C0") == 2
        assert m.regs.get("B0") == 2
        m.run()
        assert m.regs.get("B0") == 3
        assert m.loops == []

    def test_deep_call_through_loop_body(self):
        src = """
        PUT A0 2000
        CALL f
        JMP end
        f: JZ A0 done
            DEC A0
            ITER_FOR |C0:1| (
                CALL f
            )
        done: RET
        end:
        """
        m = _run(src)
        assert m.regs.get("A0") == 0
        assert m.stack.is_empty()
        assert m.loops == []

    def test_halt_jump_inside_nested_body(self):
        m = _run("ITER_FOR |C0:3| (\nITER_FOR |C1:3| (\nINC B0\nJMP 7\n)\n)\n")
        assert m.regs.get("B0") == 1
        assert m.halted
        assert m.loops == []
