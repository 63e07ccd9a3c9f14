"""Exceptions raised by the patch engine and the scaffolding workflows."""

from typing import Any, Optional


class PatchError(Exception):
    """Base class for every patch engine failure."""


class InvalidPatternError(PatchError, ValueError):
    """Raised when a RegexReplace pattern does not compile.

    This is a programming or configuration error and is raised at
    construction time, before any file is read or written.

    Attributes:
        pattern: The pattern string that failed to compile
    """

    def __init__(self, message: str, pattern: Optional[str] = None) -> None:
        super().__init__(message)
        self.pattern = pattern


class PatchConfigError(PatchError, ValueError):
    """Raised when a declarative patch entry cannot be turned into a Patch.

    Covers unknown ``mode`` values, missing fields, unexpected fields and
    non-string field values.
    """


class PatchApplyError(PatchError):
    """Raised when a patched file cannot be written back.

    Read failures never raise (they are reported as a skipped outcome); only
    the write half of an apply surfaces to the caller. The original
    ``OSError`` is chained as ``__cause__``.

    Attributes:
        message: Description of the failure
        patch: The Patch that failed (optional)
    """

    def __init__(self, message: str, patch: Optional[Any] = None) -> None:
        """Initialize PatchApplyError exception.

        Args:
            message: Error message describing the failure
            patch: The Patch that failed (optional)
        """
        super().__init__(message)
        self.patch = patch


class CubeMXError(RuntimeError):
    """Raised when STM32CubeMX cannot be launched or its script fails."""


class ProjectError(RuntimeError):
    """Raised when a scaffolding step cannot proceed.

    Examples are an aborted ``create`` or an EIDE initialization without a
    Makefile.
    """
