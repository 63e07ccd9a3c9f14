"""Project creators, one per supported MCU."""

from typing import Dict, List

from stm32tool.creators.base import CreateContext, ProjectCreator
from stm32tool.creators.stm32f407vetx import STM32F407VETx
from stm32tool.creators.stm32h723vetx import STM32H723VETx


def all_creators() -> List[ProjectCreator]:
    return [STM32F407VETx(), STM32H723VETx()]


def creators_by_name() -> Dict[str, ProjectCreator]:
    return {creator.name: creator for creator in all_creators()}


__all__ = [
    "CreateContext",
    "ProjectCreator",
    "STM32F407VETx",
    "STM32H723VETx",
    "all_creators",
    "creators_by_name",
]
