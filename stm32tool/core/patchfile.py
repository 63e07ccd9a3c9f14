"""Declarative patch files.

A patch file is YAML, either a top-level list of patch entries or a mapping
with a ``patches`` list. Each entry uses the ``mode`` discriminator described
in :mod:`stm32tool.core.schema.patch_dsl`::

    patches:
      - mode: regex_replace
        file: demo.ioc
        pattern: 'RCC\\.HSE_VALUE=(\\d+)'
        insert: RCC.HSE_VALUE=8000000
      - mode: uncomment_block
        file: CMakeLists_template.txt
        marker: "#Uncomment for hardware floating point"
"""

import logging
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from stm32tool.core.errors import PatchConfigError, PatchError
from stm32tool.core.patcher import PatchExecutor, PatchObserver, PatchOutcome
from stm32tool.core.schema.patch_dsl import Patch, patch_from_dict

logger = logging.getLogger(__name__)


def _create_yaml_instance() -> YAML:
    yaml = YAML(typ="safe")
    yaml.allow_unicode = True
    return yaml


def parse_patches(data: Any, source: str = "<data>") -> List[Patch]:
    """Turn loaded YAML data into Patch values.

    Args:
        data: Either a list of entries or a mapping with a ``patches`` list
        source: Name used in error messages

    Returns:
        Patches in file order

    Raises:
        PatchConfigError: If the document shape or any entry is invalid
    """
    if isinstance(data, dict):
        if "patches" not in data:
            raise PatchConfigError(f"{source}: expected a 'patches' list")
        data = data["patches"]

    if data is None:
        return []
    if not isinstance(data, list):
        raise PatchConfigError(f"{source}: patches must be a list, got {type(data).__name__}")

    patches = []
    for index, entry in enumerate(data):
        try:
            patches.append(patch_from_dict(entry))
        except PatchError as e:
            raise type(e)(f"{source}: patch #{index}: {e}") from e
    return patches


def load_patches(path: Union[str, Path]) -> List[Patch]:
    """Load patches from a YAML file.

    Args:
        path: Path to the patch file

    Returns:
        Patches in file order

    Raises:
        PatchConfigError: If the file is not valid YAML or an entry is invalid
        InvalidPatternError: If a regex_replace pattern does not compile
        OSError: If the file cannot be read
    """
    path = Path(path)
    yaml = _create_yaml_instance()
    try:
        data = yaml.load(path.read_text(encoding="utf-8"))
    except YAMLError as e:
        raise PatchConfigError(f"{path}: invalid YAML: {e}") from e
    return parse_patches(data, source=str(path))


def apply_patches(
    patches: Iterable[Patch],
    keep_going: bool = False,
    observer: Optional[PatchObserver] = None,
    root: Optional[Union[str, Path]] = None,
) -> List[PatchOutcome]:
    """Apply patches one at a time, in order.

    There is no rollback: patches applied before a failure stay applied.

    Args:
        patches: Patches to apply
        keep_going: Log failures as warnings and continue instead of raising
        observer: Optional event sink passed to the executor
        root: Optional base directory for patch paths

    Returns:
        Outcome of every patch that completed

    Raises:
        PatchApplyError: On the first write failure, unless keep_going
    """
    executor = PatchExecutor(root=root, observer=observer)
    outcomes = []
    for patch in patches:
        try:
            outcomes.append(executor.apply(patch))
        except PatchError as e:
            if not keep_going:
                raise
            logger.warning(f"Patch on {patch.file} failed, continuing: {e}")
    return outcomes
