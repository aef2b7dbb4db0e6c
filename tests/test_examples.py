"""
Every program under examples/ resolves and runs to its expected output.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import io

import pytest
from jasm.artifact import read_source
from jasm.assembler import assemble
from jasm.vm.emu import Machine, StopReason

EXAMPLES_DIR = os.path.join(os.path.dirname(__file__), "..", "examples")

EXPECTED = {
    "countdown.jasm": "5\n4\n3\n2\n1\n0\n",
    "nested_loop.jasm": "1\t2\t3\t\n2\t4\t6\t\n3\t6\t9\t\n36\n",
    "subroutines.jasm": "120\n6\n",
    "iter_blocks.jasm": "100\n0\n1\n2\n",
    "hello.jasm": "Hi\nff\n",
}


def _example_files():
    return sorted(f for f in os.listdir(EXAMPLES_DIR) if f.endswith(".jasm"))


def test_every_example_has_an_expectation():
    assert set(_example_files()) == set(EXPECTED)


@pytest.mark.parametrize("name", sorted(EXPECTED))
def test_example_output(name):
    program = assemble(read_source(os.path.join(EXAMPLES_DIR, name)))
    machine = Machine(out=io.StringIO())
    machine.load(program)
    assert machine.run(max_steps=100_000) is StopReason.DONE
    assert machine.out.getvalue() == EXPECTED[name]
    assert machine.stack.is_empty()
