"""Base types for MCU project creators."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from stm32tool.core.errors import CubeMXError
from stm32tool.core.patcher import apply_patch
from stm32tool.core.schema.patch_dsl import Patch, RegexReplace
from stm32tool.cubemx import Toolchain, run_script
from stm32tool.render import render_string
from stm32tool.templates import CREATE_SCRIPT_1_TEMPLATE, CREATE_SCRIPT_2_TEMPLATE

logger = logging.getLogger(__name__)

HSE_PATTERN = r"RCC\.HSE_VALUE=(\d+)"
DEFAULT_HSE_VALUE = 8000000


@dataclass(frozen=True)
class CreateContext:
    """Everything the create scripts need to know about the new project.

    Attributes:
        project_name: Name of the project (and of its directory)
        project_dir: Absolute path of the project directory
        ioc_file_path: Absolute path of ``<project_name>.ioc``
        toolchain: Toolchain STM32CubeMX generates for
        generate_under_root: Generate sources in the project root
    """

    project_name: str
    project_dir: str
    ioc_file_path: str
    toolchain: Toolchain
    generate_under_root: bool

    @property
    def ioc_file(self) -> str:
        """The .ioc file name, relative to the project directory."""
        return f"{self.project_name}.ioc"

    def template_context(self, mcu: str) -> Dict[str, Any]:
        return {
            "mcu": mcu,
            "project_name": self.project_name,
            "project_dir": self.project_dir,
            "ioc_file_path": self.ioc_file_path,
            "toolchain": self.toolchain.display_name,
            "generate_under_root_flag": 1 if self.generate_under_root else 0,
        }


class ProjectCreator:
    """Creates a STM32CubeMX project for one MCU.

    The creation runs in the project directory:

    1. a first CubeMX script selects the MCU and saves the .ioc file
    2. :meth:`ioc_patches` are applied to the .ioc file
    3. a second script loads the patched .ioc and generates code
    """

    name: str = ""

    def ioc_patches(self, ctx: CreateContext) -> List[Patch]:
        """Patches applied to the .ioc file between the two scripts."""
        return [
            RegexReplace(
                file=ctx.ioc_file,
                pattern=HSE_PATTERN,
                insert=f"RCC.HSE_VALUE={DEFAULT_HSE_VALUE}",
            )
        ]

    def run(self, ctx: CreateContext, config: Optional[Dict[str, Any]] = None) -> None:
        """Create the project.

        Args:
            ctx: Project being created
            config: Configuration dict forwarded to STM32CubeMX (None means
                    stm32tool.json in the working directory)

        Raises:
            CubeMXError: If either script fails
            PatchApplyError: If the .ioc file cannot be written
        """
        template_ctx = ctx.template_context(self.name)

        logger.info("Running first script")
        self._run_step("first", render_string(CREATE_SCRIPT_1_TEMPLATE, template_ctx), config)

        logger.info("Patching .ioc file")
        for patch in self.ioc_patches(ctx):
            apply_patch(patch)

        logger.info("Running second script")
        self._run_step("second", render_string(CREATE_SCRIPT_2_TEMPLATE, template_ctx), config)

    def _run_step(self, step: str, script: str, config: Optional[Dict[str, Any]]) -> None:
        try:
            run_script(script, config=config)
        except CubeMXError as e:
            logger.error(f"Failed to run {step} script: {e}")
            raise CubeMXError(f"Failed to run {step} script: {e}") from e
