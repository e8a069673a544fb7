"""
Common configuration settings used throughout the application.

This module contains globally shared constants (logging format, defaults for
timeouts and scratch directories) and the loader for the optional
`config.user.yaml` file. User configuration allows pointing the converter at
tool installations outside the system PATH, or at a RAM disk for scratch
files, without modifying the source code.
"""
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

import yaml
from loguru import logger

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
USER_CONFIG_PATH = PROJECT_ROOT / "config.user.yaml"


# --- Logging Configuration ---

# The format string for the Loguru logger.
LOGGER_FORMAT = (
    "<green>{time:MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# Format used by the LoguruSink when echoing transcript lines to the terminal.
# Transcript lines are already human-readable, so no source location is shown.
TRANSCRIPT_LOGGER_FORMAT = "<green>{time:HH:mm:ss}</green> | <level>{message}</level>"

# Plain-text file in the output directory receiving failed batch transcripts.
ERROR_LOG_FILE_NAME = "conversion_error.txt"

# YAML file in the output directory receiving one entry per converted file.
SUCCESS_LOG_FILE_NAME = "conversion_log.yaml"


# --- Process Execution ---

# Upper bound for a single external tool invocation. Remuxing a full-length
# UHD movie on slow storage can take well over an hour, so the bound is
# generous; it exists to turn a hung tool into a reported failure.
DEFAULT_TIMEOUT_SECONDS = 4 * 60 * 60

# How often a running child process is checked for cancellation.
CANCEL_POLL_INTERVAL_SECONDS = 0.5

# Prefix for the unique per-run scratch directories.
SCRATCH_DIR_PREFIX = "dv_convert_"


@dataclass
class ConverterSettings:
    """
    Effective settings for one converter run.

    Values come from (in increasing priority) the built-in defaults, the user
    YAML configuration and command-line flags.

    Attributes:
        tools_dir: Directory holding the external executables. None means the
                   system PATH is searched.
        tool_overrides: Per-tool command names or absolute paths, keyed by the
                        logical tool name (e.g. "mp4box").
        scratch_dir: Parent directory for per-run scratch directories. None
                     means the OS temporary directory.
        timeout_seconds: Bound for each external invocation; None disables it.
        use_shell: Route commands through the platform shell. Off by default.
    """

    tools_dir: Optional[Path] = None
    tool_overrides: Dict[str, str] = field(default_factory=dict)
    scratch_dir: Optional[Path] = None
    timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS
    use_shell: bool = False

    @property
    def scratch_parent(self) -> Path:
        return self.scratch_dir if self.scratch_dir else Path(tempfile.gettempdir())


def _parse_timeout(value) -> Optional[float]:
    timeout = float(value)
    if timeout < 0:
        raise ValueError(f"timeout_seconds must not be negative, got {value}")
    # 0 disables the bound
    return timeout or None


def load_settings(config_path: Optional[Path] = None) -> ConverterSettings:
    """
    Loads converter settings from a user YAML file.

    A missing file is not an error: the defaults are returned. A file that
    cannot be read or parsed is reported as a warning and the defaults are
    used, matching the way the tool paths were always treated as optional.

    Args:
        config_path: The YAML file to read. Defaults to `config.user.yaml` at
                     the project root.

    Returns:
        The populated `ConverterSettings`.
    """
    path = config_path or USER_CONFIG_PATH
    settings = ConverterSettings()

    if not path.is_file():
        logger.debug(f"User config '{path}' not found. Relying on system PATH for executables.")
        return settings

    try:
        with path.open("r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
        if not isinstance(user_config, dict):
            raise ValueError("top-level YAML value must be a mapping")

        paths_config = user_config.get("paths") or {}
        tools_dir_str = paths_config.get("tools_dir")
        scratch_dir_str = paths_config.get("scratch_dir")
        if tools_dir_str:
            settings.tools_dir = Path(tools_dir_str)
        if scratch_dir_str:
            settings.scratch_dir = Path(scratch_dir_str)

        tools_config = user_config.get("tools") or {}
        settings.tool_overrides = {
            str(name).lower(): str(command) for name, command in tools_config.items() if command
        }

        if "timeout_seconds" in user_config and user_config["timeout_seconds"] is not None:
            settings.timeout_seconds = _parse_timeout(user_config["timeout_seconds"])
        if "use_shell" in user_config:
            settings.use_shell = bool(user_config["use_shell"])
    except Exception as e:
        logger.warning(f"Could not load or parse '{path}': {e}")
        return ConverterSettings()

    logger.debug(f"Loaded user config from '{path}': {settings}")
    return settings
