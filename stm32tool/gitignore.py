"""Generate .gitignore from TOML fragments.

Each ``*.toml`` file in the config directory describes one block of the
generated .gitignore::

    name = "CLion"
    description = "JetBrains CLion project files"
    enabled = true
    ignore = ["cmake-build-*/"]

    [sections.workspace]
    enabled = true
    files = [".idea/workspace.xml"]

    [sections.whole_idea_dir]
    enabled = false
    files = [".idea/"]
    files_disabled = ["!.idea/runConfigurations/"]

    [[patches]]
    mode = "append"
    file = ".gitignore"
    after = "### CLion ###"
    insert = "# keep shared run configurations"
    marker = "# keep shared run configurations"

Disabled configs are skipped entirely. A disabled section contributes its
``files_disabled`` entries when it has any. ``patches`` use the patch DSL
``mode`` discriminator and are applied after .gitignore has been written.
"""

import logging
import tomllib
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, TextIO, Union

from stm32tool.core.errors import PatchError
from stm32tool.core.patchfile import apply_patches, parse_patches
from stm32tool.core.schema.patch_dsl import Patch

logger = logging.getLogger(__name__)

GITIGNORE_PATH = ".gitignore"

DEFAULT_CONFIG_DIR = Path(__file__).parent / "configs" / "gitignore"


@dataclass
class SubSection:
    """Optional group of entries inside a gitignore config."""

    enabled: bool
    files: Optional[List[str]] = None
    files_disabled: Optional[List[str]] = None


@dataclass
class GitignoreConfig:
    """One block of the generated .gitignore."""

    name: str
    description: str
    enabled: bool
    ignore: Optional[List[str]] = None
    sections: Dict[str, SubSection] = field(default_factory=dict)
    patches: List[Patch] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GitignoreConfig":
        """Build a config from parsed TOML.

        Raises:
            KeyError: If a required key is missing
            TypeError: If a section has unexpected keys
            PatchError: If a patch entry is invalid
        """
        sections = {
            name: SubSection(**section)
            for name, section in (data.get("sections") or {}).items()
        }
        return cls(
            name=data["name"],
            description=data["description"],
            enabled=data["enabled"],
            ignore=data.get("ignore"),
            sections=sections,
            patches=parse_patches(data.get("patches"), source=data["name"]),
        )


def iter_gitignore_configs(config_dir: Optional[Union[str, Path]] = None) -> Iterator[GitignoreConfig]:
    """Yield configs from ``config_dir`` (default: bundled configs), by filename.

    Files that fail to parse are logged and skipped.

    Raises:
        FileNotFoundError: If ``config_dir`` does not exist
    """
    directory = Path(config_dir) if config_dir is not None else DEFAULT_CONFIG_DIR
    if not directory.is_dir():
        raise FileNotFoundError(f"Gitignore config directory not found: {directory}")

    for path in sorted(directory.glob("*.toml")):
        try:
            with open(path, "rb") as f:
                data = tomllib.load(f)
            yield GitignoreConfig.from_dict(data)
        except (tomllib.TOMLDecodeError, KeyError, TypeError, PatchError) as e:
            logger.warning(f"Skip invalid gitignore config {path.name}: {e}")


def write_config(out: TextIO, config: GitignoreConfig) -> None:
    out.write(f"### {config.name} ###\n")
    out.write(f"# {config.description}\n")

    for line in config.ignore or []:
        out.write(f"{line}\n")

    for sec_name, sec in config.sections.items():
        if sec.enabled:
            out.write(f"# section: {sec_name}\n")
            if sec.files is not None:
                for entry in sec.files:
                    out.write(f"{entry}\n")
            else:
                logger.error(f"{sec_name} is enabled, but `files` is None")
        elif sec.files_disabled is not None:
            out.write(f"# section: {sec_name}\n")
            for entry in sec.files_disabled:
                out.write(f"{entry}\n")

    out.write("\n")


def generate_gitignore(
    config_dir: Optional[Union[str, Path]] = None,
    force: bool = False,
    path: Union[str, Path] = GITIGNORE_PATH,
) -> bool:
    """Write .gitignore from the gitignore configs.

    Args:
        config_dir: External config directory (default: bundled configs)
        force: Overwrite an existing .gitignore
        path: Output path (default: ".gitignore" in the working directory)

    Returns:
        True if the file was written, False if an existing file was kept
    """
    path = Path(path)
    if path.exists() and not force:
        logger.warning(f"Skip existing {path}")
        return False

    configs = list(iter_gitignore_configs(config_dir))
    with open(path, "w", encoding="utf-8") as out:
        out.write(f"# generated on {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}\n")
        for config in configs:
            if not config.enabled:
                continue
            write_config(out, config)

    logger.info(f"Wrote {path}")

    for config in configs:
        if config.enabled and config.patches:
            apply_patches(config.patches, keep_going=True, root=path.parent)
    return True
