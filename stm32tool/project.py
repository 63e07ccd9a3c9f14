"""The ``init`` and ``create`` workflows.

Both run in the process working directory: ``create`` changes into the new
project directory before doing anything else, like the generator expects.
"""

import logging
import os
import shutil
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from stm32tool.core.config import get_config_value, load_config
from stm32tool.core.errors import CubeMXError, PatchError, ProjectError
from stm32tool.core.patcher import apply_patch
from stm32tool.core.schema.patch_dsl import Append
from stm32tool.creators import CreateContext, creators_by_name
from stm32tool.cubemx import Toolchain
from stm32tool.gitignore import generate_gitignore
from stm32tool.ide import IdeInitArgs, IdeInitializer
from stm32tool.render import render_file
from stm32tool import templates, vcs

logger = logging.getLogger(__name__)

USER_CODE_DIRS = [
    "UserCode/bsp",
    "UserCode/drivers",
    "UserCode/third_party",
    "UserCode/libs",
    "UserCode/interfaces",
    "UserCode/controllers",
    "UserCode/app",
]

APP_HEADER = "UserCode/app/app.h"

NON_INTRUSIVE_HEADER_PATCHES = [
    Append(
        file="CMakeLists_template.txt",
        after="add_executable",
        insert=(
            "\n# Force-include the user application header\n"
            "target_compile_options(${PROJECT_NAME}.elf PRIVATE "
            "-include ${CMAKE_SOURCE_DIR}/UserCode/app/app.h)\n"
        ),
        marker=APP_HEADER,
    ),
    Append(
        file="Makefile",
        after="CFLAGS += $(MCU)",
        insert="\n# Force-include the user application header\nCFLAGS += -include UserCode/app/app.h\n",
        marker=APP_HEADER,
    ),
]


@dataclass
class InitOptions:
    """Options of the ``init`` workflow."""

    skip_generate_user_code: bool = False
    skip_generate_clang_format: bool = False
    skip_non_intrusive_headers: bool = False
    force: bool = False
    ide_args: IdeInitArgs = field(default_factory=IdeInitArgs)


@dataclass
class CreateOptions:
    """Options of the ``create`` workflow."""

    project_name: str
    toolchain: Toolchain = Toolchain.STM32CUBEIDE
    mcu: str = "STM32F407VETx"
    run_init: bool = False
    init_options: InitOptions = field(default_factory=InitOptions)


def build_render_context(config: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    """Values available to the init templates: author, date and year."""
    author = get_config_value(["project", "author"], config=config) or vcs.get_author()
    now = datetime.now()
    return {
        "author": author,
        "date": now.strftime("%Y-%m-%d"),
        "year": now.strftime("%Y"),
    }


def resolve_config_paths(config: Dict[str, Any], base: Path) -> Dict[str, Any]:
    """Return ``config`` with a relative ``gitignore.config_dir`` made absolute against ``base``."""
    config_dir = get_config_value(["gitignore", "config_dir"], config=config)
    if not config_dir or Path(config_dir).is_absolute():
        return config
    section = config.get("gitignore")
    section = dict(section) if isinstance(section, dict) else {}
    section["config_dir"] = str(base / config_dir)
    return {**config, "gitignore": section}


def generate_user_code(ctx: Dict[str, str], force: bool = False) -> None:
    logger.info("Generating user code directories...")
    for directory in USER_CODE_DIRS:
        Path(directory).mkdir(parents=True, exist_ok=True)
        logger.info(f"Created dir {directory}")
    render_file(APP_HEADER, templates.APP_H_TEMPLATE, ctx, force)
    render_file("UserCode/app/app.c", templates.APP_C_TEMPLATE, ctx, force)
    render_file("UserCode/README.md", templates.USER_CODE_README_TEMPLATE, ctx, force)


def run_init(
    options: InitOptions,
    initializers: List[IdeInitializer],
    config: Optional[Dict[str, Any]] = None,
) -> None:
    """Initialize the STM32 project in the working directory.

    IDE initializer failures are logged and skipped; every other failure
    propagates.

    Args:
        options: Init options
        initializers: IDE initializers to run, in order
        config: Optional configuration dict (default: stm32tool.json)
    """
    if config is None:
        config = load_config()
    ctx = build_render_context(config)

    vcs.init_repository()

    logger.info("Generating .gitignore file...")
    generate_gitignore(get_config_value(["gitignore", "config_dir"], config=config), options.force)

    if not options.skip_generate_clang_format:
        logger.info("Generating .clang-format file")
        render_file(".clang-format", templates.CLANG_FORMAT_TEMPLATE, ctx, options.force)

    if not options.skip_generate_user_code:
        generate_user_code(ctx, options.force)

    for initializer in initializers:
        try:
            initializer.init(options.ide_args, options.force, config)
        except (ProjectError, CubeMXError, PatchError, OSError) as e:
            logger.warning(f"{initializer.name} initialization failed: {e}")

    if not options.skip_non_intrusive_headers:
        if options.skip_generate_user_code:
            logger.info("Skipping non-intrusive headers due to skip_generate_user_code")
        else:
            logger.info("Generating non-intrusive headers")
            for patch in NON_INTRUSIVE_HEADER_PATCHES:
                apply_patch(patch)

    vcs.initial_commit()
    logger.info("STM32 project initialized!")


def run_create(
    options: CreateOptions,
    confirm: Callable[[str], bool],
    initializers: Optional[List[IdeInitializer]] = None,
    config: Optional[Dict[str, Any]] = None,
) -> Path:
    """Create a new project directory and generate the project into it.

    Args:
        options: Create options
        confirm: Asked before an existing project directory is deleted
        initializers: IDE initializers for the optional init step
        config: Optional configuration dict (default: stm32tool.json in the
                directory create is started from)

    Returns:
        Absolute path of the project directory

    Raises:
        ProjectError: If the user declines to replace an existing directory
            or the MCU is unknown
        CubeMXError: If STM32CubeMX fails
    """
    creators = creators_by_name()
    if options.mcu not in creators:
        raise ProjectError(f"Unknown MCU: {options.mcu}. Valid: {sorted(creators)}")
    creator = creators[options.mcu]

    # read before changing into the new project directory
    if config is None:
        config = load_config()
    config = resolve_config_paths(config, Path.cwd())

    path = Path(options.project_name)
    if path.exists():
        if not confirm("Project already exists. Regenerate? This will delete all existing content."):
            logger.info("Creation aborted!")
            raise ProjectError("Creation aborted!")
        shutil.rmtree(path)

    path.mkdir(parents=True)
    os.chdir(path)
    current_dir = Path.cwd()

    ctx = CreateContext(
        project_name=options.project_name,
        project_dir=str(current_dir),
        ioc_file_path=str(current_dir / f"{options.project_name}.ioc"),
        toolchain=options.toolchain,
        generate_under_root=options.toolchain is Toolchain.STM32CUBEIDE,
    )
    logger.info(f"Using toolchain {options.toolchain.display_name}")

    creator.run(ctx, config)

    if options.run_init:
        logger.info("Running init process")
        run_init(options.init_options, initializers or [], config)
    return current_dir
