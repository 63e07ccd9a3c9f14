from stm32tool.creators.base import ProjectCreator


class STM32F407VETx(ProjectCreator):
    name = "STM32F407VETx"
