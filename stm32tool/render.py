"""Template rendering and non-destructive file output."""

import logging
from pathlib import Path
from typing import Any, Mapping, Union

logger = logging.getLogger(__name__)


def render_string(template: str, ctx: Mapping[str, Any]) -> str:
    """Render a ``str.format`` template.

    Args:
        template: Template text; literal braces must be doubled
        ctx: Values for the template fields

    Returns:
        Rendered text

    Raises:
        KeyError: If the template references a field missing from ``ctx``
    """
    return template.format_map(ctx)


def write_file(path: Union[str, Path], content: str, force: bool = False) -> bool:
    """Write a file unless it already exists.

    Parent directories are created as needed.

    Args:
        path: Destination path
        content: Text to write (UTF-8)
        force: Overwrite an existing file

    Returns:
        True if the file was written, False if it was skipped
    """
    path = Path(path)
    if path.exists() and not force:
        logger.warning(f"Skip existing {path}")
        return False

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(content)
    logger.info(f"Wrote {path}")
    return True


def render_file(
    path: Union[str, Path], template: str, ctx: Mapping[str, Any], force: bool = False
) -> bool:
    """Render a template into a file unless it already exists."""
    return write_file(path, render_string(template, ctx), force)
