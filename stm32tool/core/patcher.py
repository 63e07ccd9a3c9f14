"""Patch executor: apply text patches to files on disk.

Each apply is a synchronous read, transform, write on a single file. There
is no locking, so only one sequential pipeline may patch a given project at
a time.

The transformation itself lives in :func:`transform`, a pure function of the
current file content. :class:`PatchExecutor` wraps it with the file I/O and
reports what happened through a :class:`PatchObserver`.
"""

import enum
import logging
import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Protocol, Union

from stm32tool.core.errors import PatchApplyError
from stm32tool.core.schema.patch_dsl import (
    Append,
    Patch,
    RegexReplace,
    Replace,
    UncommentBlock,
)

logger = logging.getLogger(__name__)

COMMENT_PREFIX = "#"

_GROUP_NAME_RE = re.compile(r"[_0-9A-Za-z]+")


class PatchOutcome(enum.Enum):
    """Result of a single apply.

    Only ``WRITTEN`` touches the file. ``TARGET_ABSENT`` and
    ``TARGET_UNREADABLE`` are both silent successes for callers but stay
    distinct so they can be told apart in logs and tests.
    """

    WRITTEN = "written"
    ALREADY_APPLIED = "already_applied"
    TARGET_ABSENT = "target_absent"
    TARGET_UNREADABLE = "target_unreadable"


class PatchObserver(Protocol):
    """Receives events from the executor."""

    def on_applied(self, patch: Patch) -> None:
        ...

    def on_skipped(
        self, patch: Patch, outcome: PatchOutcome, error: Optional[BaseException] = None
    ) -> None:
        ...


class LoggingObserver:
    """Observer that reports patch events through ``logging``."""

    def __init__(self, log: Optional[logging.Logger] = None):
        self.log = log or logger

    def on_applied(self, patch: Patch) -> None:
        self.log.info(f"Patched {patch.file} ({patch.mode})")

    def on_skipped(
        self, patch: Patch, outcome: PatchOutcome, error: Optional[BaseException] = None
    ) -> None:
        if outcome is PatchOutcome.TARGET_UNREADABLE:
            self.log.warning(f"Skip {patch.mode} patch, cannot read {patch.file}: {error}")
        elif outcome is PatchOutcome.TARGET_ABSENT:
            self.log.debug(f"Skip {patch.mode} patch, {patch.file} does not exist")
        else:
            self.log.debug(f"Skip {patch.mode} patch, already applied to {patch.file}")


class NullObserver:
    """Observer that ignores every event."""

    def on_applied(self, patch: Patch) -> None:
        pass

    def on_skipped(
        self, patch: Patch, outcome: PatchOutcome, error: Optional[BaseException] = None
    ) -> None:
        pass


def split_lines(content: str) -> List[str]:
    """Split text into lines the way the patch operations see them.

    Lines end at ``\\n``; a trailing ``\\r`` is dropped from each line, and a
    final newline does not produce an extra empty line.

    Example:
        >>> split_lines("A\\r\\nB\\n")
        ['A', 'B']
    """
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def expand_replacement(match: re.Match, template: str) -> str:
    """Expand ``$`` group references in a replacement template.

    Supported forms are ``$1``, ``${1}``, ``$name`` and ``${name}``; ``$$``
    is a literal ``$``. An unbraced reference takes the longest run of
    ``[_0-9A-Za-z]``, so ``$1a`` names the group ``1a``. References to
    groups that do not exist or did not participate expand to ``""``. A
    ``$`` that starts no valid reference is kept literally.

    Example:
        >>> m = re.search(r"(\\w+)=(\\d+)", "HSE=25")
        >>> expand_replacement(m, "$1=${2}0 costs $$")
        'HSE=250 costs $'
    """
    out: List[str] = []
    i = 0
    length = len(template)
    while i < length:
        ch = template[i]
        if ch != "$" or i + 1 >= length:
            out.append(ch)
            i += 1
            continue

        nxt = template[i + 1]
        if nxt == "$":
            out.append("$")
            i += 2
            continue

        if nxt == "{":
            end = template.find("}", i + 2)
            if end == -1 or end == i + 2:
                out.append(ch)
                i += 1
                continue
            name = template[i + 2:end]
            i = end + 1
        else:
            name_match = _GROUP_NAME_RE.match(template, i + 1)
            if name_match is None:
                out.append(ch)
                i += 1
                continue
            name = name_match.group(0)
            i = name_match.end()

        out.append(_group_text(match, name))
    return "".join(out)


def _group_text(match: re.Match, name: str) -> str:
    key: Union[int, str] = int(name) if name.isdigit() else name
    try:
        value = match.group(key)
    except IndexError:
        return ""
    return value or ""


def _transform_append(patch: Append, content: str) -> Optional[str]:
    if patch.marker in content:
        return None
    out: List[str] = []
    for line in split_lines(content):
        out.append(line)
        if patch.after in line:
            out.append(patch.insert)
    return "\n".join(out) + "\n"


def _transform_replace(patch: Replace, content: str) -> Optional[str]:
    if patch.insert in content:
        return None
    return content.replace(patch.find, patch.insert)


def _transform_regex_replace(patch: RegexReplace, content: str) -> Optional[str]:
    # Both conditions: a short insert may already exist in a file that never
    # had the pattern.
    if patch.regex.search(content) and patch.insert in content:
        return None
    return patch.regex.sub(lambda m: expand_replacement(m, patch.insert), content)


def _uncomment(line: str) -> str:
    stripped = line[len(COMMENT_PREFIX):]
    if stripped[:1].isspace():
        stripped = stripped[1:]
    return stripped


def _transform_uncomment_block(patch: UncommentBlock, content: str) -> Optional[str]:
    lines = split_lines(content)
    in_block = False
    for i, line in enumerate(lines):
        if patch.marker in line:
            in_block = True
            continue
        if not in_block:
            continue
        if line.startswith(COMMENT_PREFIX):
            lines[i] = _uncomment(line)
        else:
            break
    return "\n".join(lines) + "\n"


_TRANSFORMS: Dict[type, Callable[..., Optional[str]]] = {
    Append: _transform_append,
    Replace: _transform_replace,
    RegexReplace: _transform_regex_replace,
    UncommentBlock: _transform_uncomment_block,
}


def transform(patch: Patch, content: str) -> Optional[str]:
    """Compute the patched content for one file.

    Args:
        patch: Patch to apply
        content: Current file content

    Returns:
        New content, or None when the patch is already applied

    Raises:
        TypeError: If ``patch`` is not one of the four patch variants

    Example:
        >>> transform(Append("f", after="B", insert="X", marker="X"), "A\\nB\\nC")
        'A\\nB\\nX\\nC\\n'
    """
    try:
        handler = _TRANSFORMS[type(patch)]
    except KeyError:
        raise TypeError(f"Unknown patch type: {type(patch).__name__}") from None
    return handler(patch, content)


class PatchExecutor:
    """Apply patches to files below a root directory.

    Example:
        >>> executor = PatchExecutor(root="build-dir")
        >>> executor.apply(Replace("CMakeLists.txt", find="a", insert="b"))
        <PatchOutcome.TARGET_ABSENT: 'target_absent'>
    """

    def __init__(
        self,
        root: Optional[Union[str, Path]] = None,
        observer: Optional[PatchObserver] = None,
    ):
        """Initialize executor.

        Args:
            root: Directory patch paths are resolved against (None means the
                  current working directory at apply time)
            observer: Event sink (default: LoggingObserver)
        """
        self.root = Path(root) if root is not None else None
        self.observer = observer if observer is not None else LoggingObserver()

    def resolve(self, patch: Patch) -> Path:
        path = Path(patch.file)
        if self.root is None or path.is_absolute():
            return path
        return self.root / path

    def apply(self, patch: Patch) -> PatchOutcome:
        """Apply one patch to its target file.

        Args:
            patch: Patch to apply

        Returns:
            PatchOutcome describing what happened

        Raises:
            PatchApplyError: If the new content cannot be written
        """
        path = self.resolve(patch)

        try:
            with open(path, "r", encoding="utf-8", newline="") as f:
                content = f.read()
        except FileNotFoundError:
            self.observer.on_skipped(patch, PatchOutcome.TARGET_ABSENT)
            return PatchOutcome.TARGET_ABSENT
        except (OSError, UnicodeDecodeError) as e:
            self.observer.on_skipped(patch, PatchOutcome.TARGET_UNREADABLE, e)
            return PatchOutcome.TARGET_UNREADABLE

        new_content = transform(patch, content)
        if new_content is None:
            self.observer.on_skipped(patch, PatchOutcome.ALREADY_APPLIED)
            return PatchOutcome.ALREADY_APPLIED

        try:
            with open(path, "w", encoding="utf-8", newline="") as f:
                f.write(new_content)
        except OSError as e:
            raise PatchApplyError(f"Failed to write {path}: {e}", patch=patch) from e

        self.observer.on_applied(patch)
        return PatchOutcome.WRITTEN


def apply_patch(
    patch: Patch,
    observer: Optional[PatchObserver] = None,
    root: Optional[Union[str, Path]] = None,
) -> PatchOutcome:
    """Apply a single patch relative to ``root`` (default: working directory).

    Args:
        patch: Patch to apply
        observer: Optional event sink (default: LoggingObserver)
        root: Optional base directory for the patch's file

    Returns:
        PatchOutcome describing what happened

    Raises:
        PatchApplyError: If the new content cannot be written
    """
    return PatchExecutor(root=root, observer=observer).apply(patch)
