"""
stm32-project-tool: STM32 project helper

Scaffolds STM32 firmware projects by driving STM32CubeMX and then applies
small, idempotent text patches to the generated build files (CMake, Makefile,
IDE configs).
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
