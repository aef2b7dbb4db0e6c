"""
JAsm source and resolved-artifact files.

  prog.jasm    raw source (extension checked)
  prog.jasm~   resolved artifact: same grammar, every jump operand a line
               number, one instruction per line, no comment/blank lines

An existing artifact is never overwritten silently: write_resolved() raises
ArtifactExistsError unless force=True.
"""

from __future__ import annotations
from pathlib import Path
from typing import Optional, Union
import logging

from .config import SOURCE_EXTENSION, COMPILED_SUFFIX, FILE_ENCODING
from .errors import SourceExtensionError, ArtifactExistsError
from .assembler import Program, assemble

__all__ = ['read_source', 'artifact_path', 'write_resolved', 'load_resolved']

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


def read_source(path: PathLike) -> str:
    """Read a raw .jasm source file."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    if not path.name.endswith(SOURCE_EXTENSION):
        raise SourceExtensionError(str(path), SOURCE_EXTENSION)
    return path.read_text(encoding=FILE_ENCODING)


def artifact_path(source_path: PathLike) -> Path:
    """prog.jasm → prog.jasm~"""
    return Path(str(source_path) + COMPILED_SUFFIX)


def write_resolved(source_path: PathLike, program: Program,
                   output: Optional[PathLike] = None, force: bool = False) -> Path:
    """Write the resolved program next to its source (or to output)."""
    out = Path(output) if output is not None else artifact_path(source_path)
    if out.exists() and not force:
        raise ArtifactExistsError(str(out))

    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(program.to_text(), encoding=FILE_ENCODING)
    log.info("wrote %d resolved line(s) to %s", len(program), out)
    return out


def load_resolved(path: PathLike) -> Program:
    """Read a resolved artifact back into a Program."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    program = assemble(path.read_text(encoding=FILE_ENCODING))
    log.info("loaded %d resolved line(s) from %s", len(program), path)
    return program
