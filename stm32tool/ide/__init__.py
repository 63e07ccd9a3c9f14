"""IDE initializers.

Each initializer adapts a freshly generated STM32CubeMX project to one
IDE/toolchain combination, mostly through the patch engine:
- CLion: patches CMakeLists_template.txt (STM32CubeIDE toolchain)
- CMake: patches CMakeLists.txt (CMake toolchain)
- EIDE: writes VSCode + EIDE project files from the Makefile
"""

from typing import Dict, List

from stm32tool.ide.base import FPUType, IdeInitArgs, IdeInitializer
from stm32tool.ide.clion import CLion
from stm32tool.ide.cmake import CMake
from stm32tool.ide.eide import EIDE


def all_initializers() -> List[IdeInitializer]:
    """Return one instance of every initializer, in menu order."""
    return [CLion(), CMake(), EIDE()]


def initializers_by_key() -> Dict[str, IdeInitializer]:
    return {initializer.key: initializer for initializer in all_initializers()}


__all__ = [
    "CLion",
    "CMake",
    "EIDE",
    "FPUType",
    "IdeInitArgs",
    "IdeInitializer",
    "all_initializers",
    "initializers_by_key",
]
