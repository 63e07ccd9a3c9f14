"""Base types shared by the IDE initializers."""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol


class FPUType(enum.Enum):
    """Floating point ABI to configure."""

    HARD = "hard"
    SOFT = "soft"


@dataclass(frozen=True)
class IdeInitArgs:
    """Options forwarded to every IDE initializer."""

    fpu: FPUType = FPUType.HARD


class IdeInitializer(Protocol):
    """Prepares the project for one IDE/toolchain combination.

    Implementations set :attr:`key` (the CLI name) and :attr:`name` (the
    label shown when choosing interactively).

    Example:
        class Keil:
            key = "keil"
            name = "Keil MDK (toolchain: MDK-ARM)"

            def init(self, args, force=False, config=None):
                ...
    """

    key: str
    name: str

    def init(
        self, args: IdeInitArgs, force: bool = False, config: Optional[Dict[str, Any]] = None
    ) -> None:
        """Initialize the project in the working directory.

        Args:
            args: IDE options
            force: Overwrite generated files that already exist
            config: Configuration dict (None means stm32tool.json in the
                    working directory)

        Raises:
            ProjectError: If the project is not in a state this IDE supports
        """
        ...
