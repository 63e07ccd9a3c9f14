"""Settings for stm32-project-tool.

Settings come from ``stm32tool.json`` in the directory the tool runs in. Each
key can also be given as an environment variable named after its path, which
is how STM32CubeMX is usually located on CI machines.

Example stm32tool.json::

    {
      "cubemx": {"executable": "stm32cubemx", "dir": "C:\\\\ST\\\\STM32CubeMX"},
      "gitignore": {"config_dir": "my-gitignore"},
      "project": {"author": "Jane Doe"}
    }
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

CONFIG_FILENAME = "stm32tool.json"


def load_config(config_path: str = CONFIG_FILENAME) -> Dict[str, Any]:
    """Read the tool settings, usually ``stm32tool.json`` in the working directory.

    The settings file is optional. A missing file, unreadable JSON or a
    top-level value that is not an object all yield ``{}``, so every
    lookup falls through to environment variables and built-in defaults.

    Args:
        config_path: Settings file to read

    Returns:
        The top-level JSON object
    """
    path = Path(config_path)
    if not path.is_file():
        return {}

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, OSError):
        return {}

    return data if isinstance(data, dict) else {}


def get_config_value(
    keys: List[str],
    default: Any = None,
    config: Optional[Dict[str, Any]] = None,
    env: Optional[List[str]] = None,
) -> Any:
    """Look up one setting by its key path.

    ``["cubemx", "dir"]`` reads ``config["cubemx"]["dir"]``. When that is
    unset, ``CUBEMX_DIR`` is tried, then each name in ``env`` in order.

    Args:
        keys: List of keys to traverse (e.g., ["cubemx", "executable"])
        default: Default value if key not found
        config: Optional config dict (uses load_config() if not provided)
        env: Extra environment variable names to try after the derived one

    Returns:
        Configuration value, or default if not found
    """
    if config is None:
        config = load_config()

    value: Any = config
    for key in keys:
        if isinstance(value, dict):
            value = value.get(key)
            if value is None:
                break
        else:
            value = None
            break

    if value is not None:
        return value

    env_keys = ["_".join(k.upper() for k in keys)] + list(env or [])
    for env_key in env_keys:
        env_value = os.environ.get(env_key)
        if env_value is not None:
            return env_value

    return default
