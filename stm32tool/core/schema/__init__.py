"""
Schema definitions for text patches.

Patches are the only data the patch engine consumes: a closed set of four
frozen dataclasses, one per text mutation.
"""

from stm32tool.core.schema.patch_dsl import (
    PATCH_MODES,
    Append,
    Patch,
    RegexReplace,
    Replace,
    UncommentBlock,
    patch_from_dict,
)

__all__ = [
    "PATCH_MODES",
    "Append",
    "Patch",
    "RegexReplace",
    "Replace",
    "UncommentBlock",
    "patch_from_dict",
]
