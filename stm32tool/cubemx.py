"""STM32CubeMX driver.

STM32CubeMX is driven through its script mode: a temporary script file is
written to the working directory and the generator is started with
``-s <script> -q``. The generator's own output is discarded.
"""

import enum
import logging
import os
import random
import string
import subprocess
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from stm32tool.core.config import get_config_value
from stm32tool.core.errors import CubeMXError

logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "stm32cubemx"
LEGACY_DIR_ENV = "STM32CubeMX_dir"


class Toolchain(enum.Enum):
    """Toolchains STM32CubeMX can generate for.

    The value is the name used on the command line; :attr:`display_name` is
    the string STM32CubeMX expects in ``project toolchain``.
    """

    EWARM_V832 = "ewarm-v832"
    EWARM_V800 = "ewarm-v800"
    EWARM_V700 = "ewarm-v700"
    MDK_ARM_V532 = "mdk-arm-v532"
    MDK_ARM_V527 = "mdk-arm-v527"
    MDK_ARM_V500 = "mdk-arm-v500"
    MDK_ARM_V400 = "mdk-arm-v400"
    STM32CUBEIDE = "stm32cubeide"
    MAKEFILE = "makefile"
    CMAKE = "cmake"

    @property
    def display_name(self) -> str:
        return TOOLCHAIN_NAMES[self]


TOOLCHAIN_NAMES: Dict[Toolchain, str] = {
    Toolchain.EWARM_V832: "EWARM V8.32",
    Toolchain.EWARM_V800: "EWARM V8",
    Toolchain.EWARM_V700: "EWARM V7",
    Toolchain.MDK_ARM_V532: "MDK-ARM V5.32",
    Toolchain.MDK_ARM_V527: "MDK-ARM V5.27",
    Toolchain.MDK_ARM_V500: "MDK-ARM V5",
    Toolchain.MDK_ARM_V400: "MDK-ARM V4",
    Toolchain.STM32CUBEIDE: "STM32CubeIDE",
    Toolchain.MAKEFILE: "Makefile",
    Toolchain.CMAKE: "CMake",
}


def _random_suffix(length: int = 8) -> str:
    return "".join(random.choices(string.ascii_letters + string.digits, k=length))


def find_ioc_files(directory: Optional[Union[str, Path]] = None) -> List[Path]:
    """List ``*.ioc`` files directly inside ``directory`` (default: cwd)."""
    base = Path(directory) if directory is not None else Path.cwd()
    return sorted(p for p in base.iterdir() if p.is_file() and p.suffix == ".ioc")


def build_generate_script(ioc_file: Union[str, Path], toolchain: Optional[Toolchain] = None) -> str:
    """Build the script that regenerates code from an existing .ioc file.

    Args:
        ioc_file: Path to the .ioc file
        toolchain: Optional toolchain to switch to before generating

    Returns:
        Script text for STM32CubeMX
    """
    lines = [f"config load {ioc_file}"]
    if toolchain is not None:
        lines.append(f'project toolchain "{toolchain.display_name}"')
        if toolchain is Toolchain.STM32CUBEIDE:
            lines.append("project generateunderroot 1")
    # one .c/.h pair per peripheral
    lines.append("project couplefilesbyip 1")
    lines.append("project generate")
    lines.append("exit")
    return "\n".join(lines)


def generate_code(toolchain: Optional[Toolchain] = None, config: Optional[Dict[str, Any]] = None) -> None:
    """Regenerate code for the single .ioc file in the working directory.

    Raises:
        CubeMXError: If there is not exactly one .ioc file or the run fails
    """
    ioc_files = find_ioc_files()
    if len(ioc_files) != 1:
        logger.warning("No ioc file is provided or multiple ioc files are provided.")
        raise CubeMXError("No ioc file is provided or multiple ioc files are provided.")
    run_script(build_generate_script(ioc_files[0], toolchain), config=config)


def build_command(script_path: str, config: Optional[Dict[str, Any]] = None) -> List[str]:
    """Build the command line that runs a CubeMX script.

    Raises:
        CubeMXError: On Windows when the CubeMX install directory is unknown
    """
    if sys.platform == "win32":
        install_dir = get_config_value(["cubemx", "dir"], config=config, env=[LEGACY_DIR_ENV])
        if not install_dir:
            logger.error(
                "Environment variable STM32CubeMX_dir is not set. "
                "Please configure the STM32CubeMX installation path."
            )
            raise CubeMXError(f"Missing environment variable: {LEGACY_DIR_ENV}")
        java = os.path.join(install_dir, "jre", "bin", "java.exe")
        jar = os.path.join(install_dir, "STM32CubeMX.exe")
        return [java, "-jar", jar, "-s", script_path, "-q"]

    executable = get_config_value(["cubemx", "executable"], default=DEFAULT_EXECUTABLE, config=config)
    return [executable, "-s", script_path, "-q"]


def run_script(script: str, config: Optional[Dict[str, Any]] = None) -> None:
    """Run a STM32CubeMX script.

    The script is written to ``tmp-script-<random>`` in the working directory
    and removed afterwards, whatever the outcome.

    Args:
        script: Script text
        config: Optional configuration dict (default: stm32tool.json)

    Raises:
        CubeMXError: If CubeMX cannot be started or exits with non-zero status
    """
    script_path = f"./tmp-script-{_random_suffix()}"
    with open(script_path, "x", encoding="utf-8") as f:
        f.write(script)

    try:
        command = build_command(script_path, config)
        logger.debug(f"Running {' '.join(command)}")
        result = subprocess.run(
            command, stdout=subprocess.DEVNULL, stderr=subprocess.DEVNULL, check=False
        )
    except OSError as e:
        logger.error(f"Failed to execute stm32cubemx: {e}")
        raise CubeMXError(f"Failed to execute stm32cubemx: {e}") from e
    finally:
        os.remove(script_path)

    if result.returncode != 0:
        logger.error(f"Run script failed with status: {result.returncode}")
        raise CubeMXError(f"Run script failed with status: {result.returncode}")
