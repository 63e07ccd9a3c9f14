"""Extract project settings from a STM32CubeMX generated Makefile.

Only the plain variable assignments CubeMX writes are understood
(``=``, ``:=``, ``?=`` and ``+=``, with ``\\`` line continuations). Nothing is
expanded or evaluated.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional

_ASSIGN_RE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*)\s*(\+=|:=|\?=|=)\s*(.*)$")


@dataclass
class MakefileInfo:
    """Settings read from the Makefile.

    Attributes:
        target: Value of TARGET (the project name)
        asm_sources: Entries of ASM_SOURCES
        includes: Include directories from C_INCLUDES, without ``-I``
        defines: Macros from C_DEFS, without ``-D``
        ldscript: Value of LDSCRIPT
    """

    target: Optional[str] = None
    asm_sources: List[str] = field(default_factory=list)
    includes: List[str] = field(default_factory=list)
    defines: List[str] = field(default_factory=list)
    ldscript: Optional[str] = None


def _logical_lines(text: str) -> List[str]:
    lines: List[str] = []
    pending = ""
    for raw in text.splitlines():
        line = raw.rstrip()
        if line.endswith("\\"):
            pending += line[:-1] + " "
            continue
        lines.append(pending + line)
        pending = ""
    if pending:
        lines.append(pending)
    return lines


def read_variables(text: str) -> Dict[str, List[str]]:
    """Collect variable assignments as whitespace separated words.

    Later ``=``, ``:=`` and ``?=`` assignments replace earlier ones (``?=``
    only when unset); ``+=`` extends.
    """
    variables: Dict[str, List[str]] = {}
    for line in _logical_lines(text):
        if line.startswith(("\t", "#")):
            continue
        match = _ASSIGN_RE.match(line.strip())
        if not match:
            continue
        name, op, value = match.groups()
        words = value.split("#", 1)[0].split()
        if op == "+=":
            variables.setdefault(name, []).extend(words)
        elif op == "?=":
            variables.setdefault(name, words)
        else:
            variables[name] = words
    return variables


def _strip_flag(words: List[str], flag: str) -> List[str]:
    return [word[len(flag):] for word in words if word.startswith(flag) and len(word) > len(flag)]


def _single(words: Optional[List[str]]) -> Optional[str]:
    if not words:
        return None
    return " ".join(words)


def parse_makefile(text: str) -> MakefileInfo:
    """Parse the Makefile text STM32CubeMX generates.

    Example:
        >>> info = parse_makefile("TARGET = demo\\nC_DEFS = -DUSE_HAL_DRIVER\\n")
        >>> info.target, info.defines
        ('demo', ['USE_HAL_DRIVER'])
    """
    variables = read_variables(text)
    return MakefileInfo(
        target=_single(variables.get("TARGET")),
        asm_sources=list(variables.get("ASM_SOURCES", [])),
        includes=_strip_flag(variables.get("C_INCLUDES", []), "-I"),
        defines=_strip_flag(variables.get("C_DEFS", []), "-D"),
        ldscript=_single(variables.get("LDSCRIPT")),
    )
