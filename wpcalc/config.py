"""Project-level configuration via .wpcalcrc.yml.

Loads configuration from .wpcalcrc.yml (or .wpcalcrc.yaml, .wpcalcrc.json)
found in the working directory or any parent.

Example .wpcalcrc.yml:
    show_steps: true        # print the derivation log
    format: json            # "text" or "json"
    log_level: DEBUG
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from wpcalc.errors import ConfigError, Diagnostic, ErrorKind


@dataclass
class WPConfig:
    """Calculator configuration."""
    show_steps: bool = True
    # Output: "text", "json"
    format: str = "text"
    log_level: str = "WARNING"


_FORMATS = ("text", "json")

# ---------------------------------------------------------------------------
# Config file names (in priority order)
# ---------------------------------------------------------------------------

_CONFIG_FILES = [
    ".wpcalcrc.yml",
    ".wpcalcrc.yaml",
    ".wpcalcrc.json",
]


def _config_error(path: str, message: str) -> ConfigError:
    return ConfigError(Diagnostic(
        kind=ErrorKind.CONFIG_ERROR,
        message=f"{path}: {message}",
        details={"path": path},
    ))


def find_config(start_dir: str = ".") -> Optional[str]:
    """Find the nearest config file by walking up from start_dir."""
    current = os.path.abspath(start_dir)
    while True:
        for name in _CONFIG_FILES:
            path = os.path.join(current, name)
            if os.path.isfile(path):
                return path
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Optional[str] = None, start_dir: str = ".") -> WPConfig:
    """Load configuration from a file.

    If no path is given, searches for a config file starting from start_dir.
    If no config file is found, returns defaults.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return WPConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise _config_error(path, f"cannot read file ({e.strerror})") from e

    try:
        if path.endswith(".json"):
            data = json.loads(content) if content.strip() else {}
        else:
            data = yaml.safe_load(content) or {}
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise _config_error(path, f"malformed configuration ({e})") from e

    if not isinstance(data, dict):
        raise _config_error(path, "top-level document must be a mapping")

    return _dict_to_config(data, path)


def _dict_to_config(data: Dict[str, Any], path: str = "<config>") -> WPConfig:
    """Convert a parsed dict to WPConfig."""
    config = WPConfig()

    if "show_steps" in data:
        config.show_steps = bool(data["show_steps"])
    if "format" in data:
        fmt = str(data["format"]).lower()
        if fmt not in _FORMATS:
            raise _config_error(path, f"unknown format '{fmt}', expected one of {list(_FORMATS)}")
        config.format = fmt
    if "log_level" in data:
        config.log_level = str(data["log_level"]).upper()

    return config
