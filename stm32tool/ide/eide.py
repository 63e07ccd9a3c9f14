"""VSCode + EIDE initializer (toolchain: Makefile).

Reads the project settings out of the CubeMX Makefile and writes an EIDE
project (``.eide/eide.json``) plus a VSCode workspace file.
"""

import json
import logging
import uuid
from pathlib import Path
from typing import Any, Dict, List, Optional

from stm32tool.core.errors import ProjectError
from stm32tool.ide.base import FPUType, IdeInitArgs, IdeInitializer
from stm32tool.ide.makefile import MakefileInfo, parse_makefile
from stm32tool.render import write_file

logger = logging.getLogger(__name__)

EIDE_CONFIG_PATH = ".eide/eide.json"

FLOATING_POINT_HARDWARE = {FPUType.HARD: "single", FPUType.SOFT: "none"}


def list_source_dirs(root: Path) -> List[str]:
    """Top-level directories of the project, hidden ones excluded."""
    return sorted(
        entry.name for entry in root.iterdir() if entry.is_dir() and not entry.name.startswith(".")
    )


def build_eide_config(
    info: MakefileInfo, src_dirs: List[str], fpu: FPUType
) -> Dict[str, Any]:
    """Build the content of ``.eide/eide.json``."""
    project_name = info.target or ""
    return {
        "name": project_name,
        "type": "ARM",
        "dependenceList": [],
        "srcDirs": src_dirs,
        "virtualFolder": {
            "name": "<virtual_root>",
            "files": [{"path": source} for source in info.asm_sources],
            "folders": [],
        },
        "outDir": "build",
        "deviceName": None,
        "packDir": None,
        "miscInfo": {"uid": uuid.uuid4().hex},
        "targets": {
            "Debug": {
                "excludeList": [],
                "toolchain": "GCC",
                "compileConfig": {
                    "cpuType": "Cortex-M4",
                    "floatingPointHardware": FLOATING_POINT_HARDWARE[fpu],
                    "scatterFilePath": info.ldscript or "",
                    "useCustomScatterFile": True,
                    "storageLayout": {"RAM": [], "ROM": []},
                    "options": "null",
                },
                "uploader": "OpenOCD",
                "uploadConfig": {
                    "bin": "",
                    "target": "${workspaceFolderBasename}",
                    "interface": "stlink",
                    "baseAddr": "0x08000000",
                },
                "uploadConfigMap": {},
                "custom_dep": {
                    "name": "default",
                    "incList": info.includes + ["UserCode"],
                    "libList": [],
                    "defineList": info.defines,
                },
                "builderOptions": {
                    "GCC": {
                        "version": 5,
                        "beforeBuildTasks": [],
                        "afterBuildTasks": [],
                        "global": {
                            "$float-abi-type": fpu.value,
                            "output-debug-info": "enable",
                            "misc-control": "--specs=nosys.specs --specs=nano.specs",
                        },
                        "c/cpp-compiler": {
                            "language-c": "c11",
                            "language-cpp": "c++11",
                            "optimization": "level-debug",
                            "warnings": "all-warnings",
                            "one-elf-section-per-function": True,
                            "one-elf-section-per-data": True,
                        },
                        "asm-compiler": {},
                        "linker": {
                            "output-format": "elf",
                            "remove-unused-input-sections": True,
                            "LIB_FLAGS": "-lm",
                        },
                    }
                },
            }
        },
        "version": "3.5",
    }


def build_workspace(project_name: str) -> Dict[str, Any]:
    """Build the content of ``<project>.code-workspace``."""
    return {
        "folders": [{"path": "."}],
        "settings": {
            "files.autoGuessEncoding": True,
            "C_Cpp.default.configurationProvider": "cl.eide",
            "C_Cpp.errorSquiggles": "disabled",
            "files.associations": {".eideignore": "ignore", "*.a51": "a51", "*.h": "c", "*.c": "c"},
        },
        "extensions": {"recommendations": ["cl.eide", "keroc.hex-fmt", "marus25.cortex-debug"]},
        "name": project_name,
    }


class EIDE(IdeInitializer):
    key = "eide"
    name = "VSCode + EIDE (toolchain: Makefile)"

    def init(
        self, args: IdeInitArgs, force: bool = False, config: Optional[Dict[str, Any]] = None
    ) -> None:
        makefile = Path("Makefile")
        if not makefile.exists():
            logger.error("Makefile is not exists, initialization failed")
            raise ProjectError("Makefile is not exists, initialization failed")

        info = parse_makefile(makefile.read_text(encoding="utf-8"))
        project_name = info.target or ""

        config = build_eide_config(info, list_source_dirs(Path(".")), args.fpu)

        logger.info("Generating EIDE config file...")
        write_file(EIDE_CONFIG_PATH, json.dumps(config, indent=4) + "\n", force)
        logger.info("Generating EIDE workspace file...")
        write_file(
            f"{project_name}.code-workspace",
            json.dumps(build_workspace(project_name), indent=4) + "\n",
            force,
        )
