"""CMake initializer (toolchain: CMake).

Works with the CMakeLists.txt STM32CubeMX writes for its CMake toolchain,
which is usable from CLion and from VSCode with the ST extension. CubeMX
leaves its "user" comment anchors in place on regeneration, so every edit
here is an Append keyed on one of them.
"""

import logging
from typing import Any, Dict, Optional

from stm32tool.core.patcher import apply_patch
from stm32tool.core.schema.patch_dsl import Append
from stm32tool.ide.base import FPUType, IdeInitArgs, IdeInitializer

logger = logging.getLogger(__name__)

CMAKELISTS = "CMakeLists.txt"

COMPILER_SETTINGS_ANCHOR = "set(CMAKE_C_EXTENSIONS ON)"

HARD_FPU_MARKER = "#Uncomment for hardware floating point"
SOFT_FPU_MARKER = "#Uncomment for software floating point"

HARD_FPU_BLOCK = f"""
{HARD_FPU_MARKER}
add_compile_definitions(ARM_MATH_CM4;ARM_MATH_MATRIX_CHECK;ARM_MATH_ROUNDING)
add_compile_options(-mfloat-abi=hard -mfpu=fpv4-sp-d16)
add_link_options(-mfloat-abi=hard -mfpu=fpv4-sp-d16)

add_compile_options(-ffunction-sections -fdata-sections -fno-common -fmessage-length=0)
"""

SOFT_FPU_BLOCK = f"""
{SOFT_FPU_MARKER}
add_compile_options(-mfloat-abi=soft)

add_compile_options(-ffunction-sections -fdata-sections -fno-common -fmessage-length=0)
"""

USER_SOURCES_GLOB = 'file(GLOB_RECURSE SOURCES "UserCode/*.*")'

DEPENDENCIES_MARKER = "# Add dependence from library"

DEPENDENCIES_BLOCK = f"""
{DEPENDENCIES_MARKER}
# ===================== DEPENDENCIES =====================
# e.g.
#add_subdirectory(library/motor_drivers/UserCode)

set(USER_LIBRARIES "")

# =======================================================

# every library will depend on stm32cubemx
foreach (LIBRARY IN LISTS USER_LIBRARIES)
    target_link_libraries(${{LIBRARY}} PRIVATE stm32cubemx)
endforeach ()"""


class CMake(IdeInitializer):
    key = "cmake"
    name = "CMake (toolchain: CMake) Compatible with CLion and VSCode (official ST plugin)"

    def init(
        self, args: IdeInitArgs, force: bool = False, config: Optional[Dict[str, Any]] = None
    ) -> None:
        logger.info("Initializing CMake project...")

        if args.fpu is FPUType.HARD:
            fpu_block, fpu_marker = HARD_FPU_BLOCK, HARD_FPU_MARKER
        else:
            fpu_block, fpu_marker = SOFT_FPU_BLOCK, SOFT_FPU_MARKER

        for patch in (
            Append(file=CMAKELISTS, after=COMPILER_SETTINGS_ANCHOR, insert=fpu_block, marker=fpu_marker),
            Append(
                file=CMAKELISTS,
                after="# Add sources to executable",
                insert=USER_SOURCES_GLOB,
                marker=USER_SOURCES_GLOB,
            ),
            Append(
                file=CMAKELISTS,
                after="# Add user sources here",
                insert="    ${SOURCES}",
                marker="${SOURCES}",
            ),
            Append(
                file=CMAKELISTS,
                after="# Add include paths",
                insert="include_directories(UserCode)",
                marker="include_directories(UserCode)",
            ),
            Append(
                file=CMAKELISTS,
                after="list(REMOVE_ITEM CMAKE_C_IMPLICIT_LINK_LIBRARIES ob)",
                insert=DEPENDENCIES_BLOCK,
                marker=DEPENDENCIES_MARKER,
            ),
            Append(
                file=CMAKELISTS,
                after="# Add user defined libraries",
                insert="    ${USER_LIBRARIES}",
                marker="${USER_LIBRARIES}",
            ),
        ):
            apply_patch(patch)
