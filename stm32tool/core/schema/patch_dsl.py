"""Patch DSL for idempotent text edits.

This module defines the four patch variants the patch engine understands.
A patch names one target file and carries the data needed for exactly one
textual transformation. Patches are plain values: they are built right
before use, applied once and thrown away.

Declarative Format
------------------

Patches can also be described as mappings with a ``mode`` discriminator,
which is how patch files and the gitignore configs spell them:

Example::

    {"mode": "append", "file": "Makefile",
     "after": "CFLAGS += $(MCU)",
     "insert": "CFLAGS += -include UserCode/app/app.h",
     "marker": "UserCode/app/app.h"}

Valid modes are ``append``, ``replace``, ``regex_replace`` and
``uncomment_block``.
"""

import re
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, Mapping, Tuple, Type, Union

from stm32tool.core.errors import InvalidPatternError, PatchConfigError


@dataclass(frozen=True)
class Append:
    """Insert text after every line that contains an anchor.

    Attributes:
        file: Target path, relative to the working directory
        after: Anchor substring searched for in each line
        insert: Text emitted on its own line(s) after each anchor line
        marker: Substring whose presence anywhere means "already applied"
    """

    mode: ClassVar[str] = "append"

    file: str
    after: str
    insert: str
    marker: str


@dataclass(frozen=True)
class Replace:
    """Replace every literal occurrence of ``find`` with ``insert``.

    Attributes:
        file: Target path, relative to the working directory
        find: Literal substring to replace
        insert: Replacement text; its presence means "already applied"
    """

    mode: ClassVar[str] = "replace"

    file: str
    find: str
    insert: str


@dataclass(frozen=True)
class RegexReplace:
    """Replace every match of a regular expression.

    The pattern is compiled when the patch is constructed, so a malformed
    pattern fails before any file is touched.

    ``insert`` may reference capture groups with ``$1``, ``${1}``, ``$name``
    or ``${name}``; ``$$`` produces a literal dollar sign. Backslashes are
    not special.

    Attributes:
        file: Target path, relative to the working directory
        pattern: Regular expression source
        insert: Replacement template
    """

    mode: ClassVar[str] = "regex_replace"

    file: str
    pattern: str
    insert: str
    regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        try:
            compiled = re.compile(self.pattern)
        except re.error as e:
            raise InvalidPatternError(
                f"Invalid regular expression {self.pattern!r}: {e}", pattern=self.pattern
            ) from e
        object.__setattr__(self, "regex", compiled)


@dataclass(frozen=True)
class UncommentBlock:
    """Uncomment the ``#`` lines that directly follow a marker line.

    The block has no end marker: it stops at the first line that does not
    start with ``#`` (a blank line included).

    Attributes:
        file: Target path, relative to the working directory
        marker: Substring identifying the block header line
    """

    mode: ClassVar[str] = "uncomment_block"

    file: str
    marker: str


Patch = Union[Append, Replace, RegexReplace, UncommentBlock]

PATCH_MODES: Dict[str, Type[Any]] = {
    cls.mode: cls for cls in (Append, Replace, RegexReplace, UncommentBlock)
}


def _init_field_names(cls: Type[Any]) -> Tuple[str, ...]:
    return tuple(f.name for f in fields(cls) if f.init)


def patch_from_dict(data: Mapping[str, Any]) -> Patch:
    """Build a Patch from a mapping with a ``mode`` discriminator.

    Args:
        data: Mapping such as ``{"mode": "replace", "file": ..., "find": ...,
              "insert": ...}``

    Returns:
        The matching Patch variant

    Raises:
        PatchConfigError: If the mode is unknown, a field is missing or
            unexpected, or a field value is not a string
        InvalidPatternError: If a regex_replace pattern does not compile

    Example:
        >>> patch_from_dict({"mode": "uncomment_block", "file": "a.txt", "marker": "#x"})
        UncommentBlock(file='a.txt', marker='#x')
    """
    if not isinstance(data, Mapping):
        raise PatchConfigError(f"Patch entry must be a mapping, got {type(data).__name__}")

    mode = data.get("mode")
    if not isinstance(mode, str) or mode not in PATCH_MODES:
        raise PatchConfigError(
            f"Unknown patch mode: {mode!r}. Valid: {sorted(PATCH_MODES)}"
        )

    cls = PATCH_MODES[mode]
    expected = _init_field_names(cls)
    given = {key: value for key, value in data.items() if key != "mode"}

    missing = [name for name in expected if name not in given]
    if missing:
        raise PatchConfigError(f"{mode} patch is missing field(s): {', '.join(missing)}")

    unexpected = sorted(set(given) - set(expected))
    if unexpected:
        raise PatchConfigError(f"{mode} patch has unexpected field(s): {', '.join(unexpected)}")

    for name in expected:
        if not isinstance(given[name], str):
            raise PatchConfigError(
                f"{mode} patch field '{name}' must be a string, got {type(given[name]).__name__}"
            )

    return cls(**{name: str(given[name]) for name in expected})
