"""CLion initializer (toolchain: STM32CubeIDE).

CLion builds STM32CubeIDE projects from ``CMakeLists_template.txt``, which
STM32CubeMX expands into ``CMakeLists.txt`` on every generation. Patching the
template therefore survives regeneration.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from stm32tool.core.errors import CubeMXError
from stm32tool.core.patcher import apply_patch
from stm32tool.core.schema.patch_dsl import Replace, UncommentBlock
from stm32tool.cubemx import Toolchain, generate_code
from stm32tool.ide.base import FPUType, IdeInitArgs, IdeInitializer
from stm32tool.render import write_file
from stm32tool.templates import CLION_CMAKELISTS_TEMPLATE_FILE

logger = logging.getLogger(__name__)

CMAKELISTS_TEMPLATE = "CMakeLists_template.txt"

FPU_BLOCK_MARKERS = {
    FPUType.HARD: "#Uncomment for hardware floating point",
    FPUType.SOFT: "#Uncomment for software floating point",
}


class CLion(IdeInitializer):
    key = "clion"
    name = "CLion (toolchain: STM32CubeIDE)"

    def init(
        self, args: IdeInitArgs, force: bool = False, config: Optional[Dict[str, Any]] = None
    ) -> None:
        logger.info("Initializing CLion project...")

        template_exists = Path(CMAKELISTS_TEMPLATE).exists()
        if not template_exists:
            write_file(CMAKELISTS_TEMPLATE, CLION_CMAKELISTS_TEMPLATE_FILE, force=True)

        apply_patch(Replace(
            file=CMAKELISTS_TEMPLATE,
            find="include_directories(${includes})",
            insert="include_directories(${includes} UserCode)",
        ))
        apply_patch(Replace(
            file=CMAKELISTS_TEMPLATE,
            find="file(GLOB_RECURSE SOURCES ${sources})",
            insert='file(GLOB_RECURSE SOURCES ${sources} "UserCode/*.*")',
        ))
        apply_patch(UncommentBlock(file=CMAKELISTS_TEMPLATE, marker=FPU_BLOCK_MARKERS[args.fpu]))

        if template_exists:
            # An existing template means CubeMX already generated for CLion
            logger.info("Try to regenerate code(using STM32CubeMX)...")
            try:
                generate_code(Toolchain.STM32CUBEIDE, config=config)
            except CubeMXError:
                logger.warning("Regenerate code failed, please regenerate code manually!")
            else:
                logger.info("Regenerate code successfully!")
