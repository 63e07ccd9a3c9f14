"""Minimal git helpers used by ``init``.

Failures are logged, never raised: a project without git is still a usable
project.
"""

import logging
import subprocess
from typing import Optional

logger = logging.getLogger(__name__)

UNKNOWN_AUTHOR = "unknown"


def _git(*args: str, quiet: bool = False) -> Optional[subprocess.CompletedProcess]:
    """Run a git command, returning None when git cannot be executed."""
    output = subprocess.DEVNULL if quiet else None
    try:
        return subprocess.run(["git", *args], stdout=output, stderr=output, check=False)
    except OSError as e:
        logger.error(f"Failed to execute git: {e}")
        return None


def get_author() -> str:
    """Return ``git config user.name``, or "unknown" if it is not available."""
    try:
        result = subprocess.run(
            ["git", "config", "user.name"], capture_output=True, text=True, check=False
        )
    except OSError:
        return UNKNOWN_AUTHOR
    author = result.stdout.strip() if result.returncode == 0 else ""
    return author or UNKNOWN_AUTHOR


def init_repository() -> bool:
    """Run ``git init`` in the working directory."""
    logger.info("Initializing git repository...")
    result = _git("init", quiet=True)
    if result is None:
        return False
    if result.returncode != 0:
        logger.error(f"Git init failed with status: {result.returncode}")
        return False
    logger.info("Git repository initialized successfully!")
    return True


def initial_commit(message: str = "Initial commit") -> bool:
    """Stage everything and commit it."""
    result = _git("add", ".")
    if result is None or result.returncode != 0:
        logger.error("Git first commit failed")
        return False
    result = _git("commit", "-m", message)
    if result is None or result.returncode != 0:
        logger.error("Git first commit failed")
        return False
    return True
