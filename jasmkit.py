#!/usr/bin/env python3
"""
jasmkit — JAsm toolkit
======================

One CLI for everything:
    jasmkit compile  — Resolve labels and write the .jasm~ artifact
    jasmkit run      — Resolve and execute a .jasm source
    jasmkit exec     — Execute an already-resolved .jasm~ artifact
    jasmkit labels   — Show the label table of a source

Usage:
    python jasmkit.py <command> [options]
    python jasmkit.py <command> --help

Examples:
    python jasmkit.py compile examples/countdown.jasm
    python jasmkit.py run examples/nested_loop.jasm --dump
    python jasmkit.py run examples/hello.jasm --emit --force
    python jasmkit.py exec examples/countdown.jasm~ --trace -vv
    python jasmkit.py labels examples/subroutines.jasm
"""

import argparse
import logging
import sys

from jasm import __version__
from jasm.assembler import assemble
from jasm.artifact import read_source, write_resolved, load_resolved
from jasm.errors import JasmError
from jasm.log_setup import setup_logging, verbosity_to_level
from jasm.vm.emu import Machine, StopReason

log = logging.getLogger("jasm.cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jasmkit",
        description="JAsm toolkit — resolve, run and inspect JAsm programs",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""commands:
  compile    Resolve labels and write the .jasm~ artifact
  run        Resolve and execute a .jasm source
  exec       Execute an already-resolved .jasm~ artifact
  labels     Show the label table of a source
""",
    )
    parser.add_argument("--version", action="version", version=f"jasmkit {__version__}")
    parser.add_argument("-v", "--verbose", action="count", default=0,
                        help="Increase log verbosity (-v, -vv)")
    parser.add_argument("-q", "--quiet", action="store_true",
                        help="Only log errors")
    parser.add_argument("--log-file", help="Also write a DEBUG log to this file")
    sub = parser.add_subparsers(dest="command", metavar="command")

    # ── compile ──────────────────────────────────────────────────────────
    p_cc = sub.add_parser("compile", help="Resolve labels and write the .jasm~ artifact")
    p_cc.add_argument("input", help="Input .jasm file")
    p_cc.add_argument("-o", "--output", help="Output file (default: <input>~)")
    p_cc.add_argument("--force", action="store_true", help="Overwrite an existing artifact")

    # ── run ──────────────────────────────────────────────────────────────
    p_run = sub.add_parser("run", help="Resolve and execute a .jasm source")
    p_run.add_argument("input", help="Input .jasm file")
    p_run.add_argument("--emit", action="store_true",
                       help="Also write the resolved .jasm~ artifact")
    p_run.add_argument("--force", action="store_true",
                       help="Overwrite an existing artifact (with --emit)")
    _add_run_options(p_run)

    # ── exec ─────────────────────────────────────────────────────────────
    p_exec = sub.add_parser("exec", help="Execute an already-resolved .jasm~ artifact")
    p_exec.add_argument("input", help="Input .jasm~ file")
    _add_run_options(p_exec)

    # ── labels ───────────────────────────────────────────────────────────
    p_lab = sub.add_parser("labels", help="Show the label table of a source")
    p_lab.add_argument("input", help="Input .jasm file")

    return parser


def _add_run_options(p):
    p.add_argument("--max-steps", type=int, default=None,
                   help="Stop after this many instructions (default: unlimited)")
    p.add_argument("--trace", action="store_true",
                   help="Log every executed line (visible with -vv)")
    p.add_argument("--dump", action="store_true",
                   help="Print registers and call stack after the run")


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        return 0

    setup_logging(console_level=verbosity_to_level(args.verbose, args.quiet),
                  log_file=args.log_file)

    try:
        return COMMANDS[args.command](args)
    except JasmError as e:
        log.error("%s", e)
        return 1
    except FileNotFoundError as e:
        log.error("%s", e)
        return 1
    except Exception as e:
        log.error("Internal error: %s", e, exc_info=args.verbose > 0)
        return 2


# ═════════════════════════════════════════════════════════════════════════════
# COMMAND IMPLEMENTATIONS
# ═════════════════════════════════════════════════════════════════════════════

# ── compile ──────────────────────────────────────────────────────────────
def cmd_compile(args):
    program = assemble(read_source(args.input))
    out = write_resolved(args.input, program, output=args.output, force=args.force)
    print(f"Resolved {len(program)} line(s) -> {out}")
    return 0


# ── run ──────────────────────────────────────────────────────────────────
def cmd_run(args):
    program = assemble(read_source(args.input))
    if args.emit:
        write_resolved(args.input, program, force=args.force)
    return _execute(program, args)


# ── exec ─────────────────────────────────────────────────────────────────
def cmd_exec(args):
    return _execute(load_resolved(args.input), args)


def _execute(program, args):
    machine = Machine(trace=args.trace)
    machine.load(program)
    reason = machine.run(max_steps=args.max_steps)
    sys.stdout.flush()

    if args.dump:
        _dump(machine)
    if reason is StopReason.TIMEOUT:
        log.warning("Stopped after %d step(s) (--max-steps) at line %d",
                    machine.steps, machine.pc)
        return 3
    return 0


# ── labels ───────────────────────────────────────────────────────────────
def cmd_labels(args):
    program = assemble(read_source(args.input))
    if not program.labels:
        print(f"No labels in {args.input}")
        return 0

    width = max(len(name) for name in program.labels)
    print(f"{'Label':<{width}}  {'Line':>5}  Instruction")
    for name, line_num in sorted(program.labels.items(), key=lambda item: item[1]):
        print(f"{name:<{width}}  {line_num:>5}  {program.line(line_num)}")
    return 0


def _dump(machine):
    """Register table and call stack, after a run."""
    print()
    print(machine.regs.display())
    print(machine.stack.display())


COMMANDS = {
    "compile": cmd_compile,
    "run": cmd_run,
    "exec": cmd_exec,
    "labels": cmd_labels,
}


if __name__ == "__main__":
    sys.exit(main())
