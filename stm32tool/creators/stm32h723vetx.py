from typing import List

from stm32tool.core.schema.patch_dsl import Patch, RegexReplace
from stm32tool.creators.base import CreateContext, ProjectCreator
from stm32tool.templates import H723_DEFAULT_MMT_FILE

MMT_PATTERN = r"(MMT.+\n)+"


class STM32H723VETx(ProjectCreator):
    """STM32H723VETx: also resets the Memory Management Tool section."""

    name = "STM32H723VETx"

    def ioc_patches(self, ctx: CreateContext) -> List[Patch]:
        return super().ioc_patches(ctx) + [
            RegexReplace(file=ctx.ioc_file, pattern=MMT_PATTERN, insert=H723_DEFAULT_MMT_FILE),
        ]
