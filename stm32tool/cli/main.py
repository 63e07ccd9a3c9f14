"""stm32tool CLI - Command-line interface for STM32 project scaffolding.

This module provides the main CLI entrypoint, allowing users to create and
initialize STM32CubeMX projects and to apply declarative patch files from
the command line.
"""

import argparse
import logging
import sys
from typing import List, Optional

from stm32tool.core.errors import CubeMXError, PatchError, ProjectError
from stm32tool.core.patchfile import apply_patches, load_patches
from stm32tool.core.patcher import PatchOutcome
from stm32tool.creators import creators_by_name
from stm32tool.cubemx import Toolchain
from stm32tool.gitignore import generate_gitignore
from stm32tool.ide import FPUType, IdeInitArgs, IdeInitializer, all_initializers, initializers_by_key
from stm32tool.project import CreateOptions, InitOptions, run_create, run_init

logger = logging.getLogger(__name__)


def _add_init_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--skip-generate-user-code",
        action="store_true",
        help="Skip generating the UserCode directory structure"
    )
    parser.add_argument(
        "--skip-generate-clang-format",
        action="store_true",
        help="Skip generating .clang-format"
    )
    parser.add_argument(
        "--skip-non-intrusive-headers",
        action="store_true",
        help="Skip force-including UserCode/app/app.h (implied by --skip-generate-user-code)"
    )
    parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite generated files that already exist"
    )
    parser.add_argument(
        "-f", "--fpu",
        choices=[fpu.value for fpu in FPUType],
        default=FPUType.HARD.value,
        help="Floating point ABI (default: hard)"
    )
    parser.add_argument(
        "--ide",
        action="append",
        choices=sorted(initializers_by_key()),
        help="IDE to initialize (repeatable). Asked interactively when omitted"
    )


def _add_verbose_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stm32tool",
        description="STM32 project helper tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create a project and initialize it for CLion
  stm32tool create blinky --mcu STM32F407VETx --run-init --ide clion

  # Initialize an existing CubeMX project, software FPU
  stm32tool init --ide eide --fpu soft

  # Apply a YAML patch file, keep going on failures
  stm32tool patch patches.yaml --keep-going -v

Note:
  Settings are read from stm32tool.json in the working directory. Set
  {"cubemx": {"dir": "C:\\\\ST\\\\STM32CubeMX"}} on Windows.
"""
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    init_parser = subparsers.add_parser(
        "init",
        help="Initialize the STM32 project in the current directory"
    )
    _add_init_arguments(init_parser)
    _add_verbose_argument(init_parser)

    create_parser = subparsers.add_parser(
        "create",
        help="Create a new STM32CubeMX project"
    )
    create_parser.add_argument(
        "project_name",
        help="Project name (also the directory created)"
    )
    create_parser.add_argument(
        "-t", "--toolchain",
        choices=[toolchain.value for toolchain in Toolchain],
        default=Toolchain.STM32CUBEIDE.value,
        help="Toolchain to generate for (default: stm32cubeide)"
    )
    create_parser.add_argument(
        "--mcu",
        choices=sorted(creators_by_name()),
        default="STM32F407VETx",
        help="Target MCU (default: STM32F407VETx)"
    )
    create_parser.add_argument(
        "--run-init",
        action="store_true",
        help="Run init right after creating the project"
    )
    create_parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Replace an existing project directory without asking"
    )
    _add_init_arguments(create_parser)
    _add_verbose_argument(create_parser)

    patch_parser = subparsers.add_parser(
        "patch",
        help="Apply a YAML patch file"
    )
    patch_parser.add_argument(
        "patch_file",
        help="Path to the YAML patch file"
    )
    patch_parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Continue with the next patch when one fails"
    )
    _add_verbose_argument(patch_parser)

    gitignore_parser = subparsers.add_parser(
        "gitignore",
        help="Generate .gitignore"
    )
    gitignore_parser.add_argument(
        "--config-dir",
        help="Directory of gitignore TOML configs (default: bundled configs)"
    )
    gitignore_parser.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing .gitignore"
    )
    _add_verbose_argument(gitignore_parser)

    return parser


def ask_confirm(prompt: str) -> bool:
    """Ask a yes/no question on stdin, defaulting to no."""
    try:
        answer = input(f"{prompt} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def ask_initializers(initializers: List[IdeInitializer]) -> List[IdeInitializer]:
    """Let the user pick initializers by number (comma separated)."""
    print("Select IDEs to initialize:")
    for index, initializer in enumerate(initializers, start=1):
        print(f"  {index}) {initializer.name}")
    try:
        answer = input("Numbers (comma separated, empty for none): ")
    except EOFError:
        return []

    chosen = []
    for token in answer.replace(",", " ").split():
        if not token.isdigit() or not 1 <= int(token) <= len(initializers):
            logger.warning(f"Ignoring invalid selection: {token}")
            continue
        initializer = initializers[int(token) - 1]
        if initializer not in chosen:
            chosen.append(initializer)
    return chosen


def select_initializers(keys: Optional[List[str]]) -> List[IdeInitializer]:
    if keys is None:
        return ask_initializers(all_initializers())
    by_key = initializers_by_key()
    seen = []
    for key in keys:
        if key not in seen:
            seen.append(key)
    return [by_key[key] for key in seen]


def init_options_from_args(args: argparse.Namespace) -> InitOptions:
    return InitOptions(
        skip_generate_user_code=args.skip_generate_user_code,
        skip_generate_clang_format=args.skip_generate_clang_format,
        skip_non_intrusive_headers=args.skip_non_intrusive_headers,
        force=args.force,
        ide_args=IdeInitArgs(fpu=FPUType(args.fpu)),
    )


def cmd_init(args: argparse.Namespace) -> int:
    """Handle init command."""
    run_init(init_options_from_args(args), select_initializers(args.ide))
    return 0


def cmd_create(args: argparse.Namespace) -> int:
    """Handle create command."""
    options = CreateOptions(
        project_name=args.project_name,
        toolchain=Toolchain(args.toolchain),
        mcu=args.mcu,
        run_init=args.run_init,
        init_options=init_options_from_args(args),
    )
    initializers = select_initializers(args.ide) if args.run_init else []
    confirm = (lambda prompt: True) if args.yes else ask_confirm
    project_dir = run_create(options, confirm, initializers)
    print(f"Created project in {project_dir}")
    return 0


def cmd_patch(args: argparse.Namespace) -> int:
    """Handle patch command."""
    patches = load_patches(args.patch_file)
    outcomes = apply_patches(patches, keep_going=args.keep_going)

    written = sum(1 for outcome in outcomes if outcome is PatchOutcome.WRITTEN)
    print(f"Applied {len(outcomes)}/{len(patches)} patches ({written} files written)")
    return 0 if len(outcomes) == len(patches) else 1


def cmd_gitignore(args: argparse.Namespace) -> int:
    """Handle gitignore command."""
    if generate_gitignore(args.config_dir, args.force):
        print("Generated .gitignore")
    else:
        print(".gitignore already exists, use --force to overwrite")
    return 0


COMMANDS = {
    "init": cmd_init,
    "create": cmd_create,
    "patch": cmd_patch,
    "gitignore": cmd_gitignore,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint for stm32tool."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    if getattr(args, "verbose", False):
        logging.basicConfig(level=logging.INFO, format="%(levelname)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING, format="%(levelname)s: %(message)s")

    handler = COMMANDS.get(args.command)
    if handler is None:
        parser.print_help()
        return 1

    try:
        return handler(args)
    except (PatchError, CubeMXError, ProjectError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        logger.debug(f"{args.command} failed", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
