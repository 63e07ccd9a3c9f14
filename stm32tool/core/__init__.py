"""
Core components for stm32-project-tool.

This package contains the patch DSL, the patch executor, error types and
configuration loading. Nothing in here knows about STM32CubeMX or IDEs.
"""

__all__ = []
