"""
This module provides the ToolLocator class, which decides which executable is
run for each external tool and verifies that the tools are installed.
"""
import shutil
import sys
from pathlib import Path
from typing import Dict, Iterable, Optional

from loguru import logger

from ..config.common import ConverterSettings
from ..config.tools import DEFAULT_EXECUTABLES, PIPELINE_TOOLS


class ToolLocator:
    """
    Maps logical tool names (e.g. "mp4box") to the command that is executed.

    Resolution order for a tool:
    1. An explicit override from the user configuration (`tools:` section).
    2. The executable inside the configured `tools_dir`, if it exists there
       (with `.exe` appended on Windows).
    3. The bare executable name, which relies on the system PATH.
    """

    def __init__(self, settings: Optional[ConverterSettings] = None):
        self.settings = settings or ConverterSettings()

    def resolve(self, tool: str) -> str:
        """
        Returns the command to run for `tool`.

        Args:
            tool: A logical tool name from `config.tools`.

        Returns:
            An executable name or an absolute path.
        """
        override = self.settings.tool_overrides.get(tool.lower())
        if override:
            return override

        exe_name = DEFAULT_EXECUTABLES.get(tool.lower(), tool)
        tools_dir = self.settings.tools_dir
        if tools_dir and tools_dir.is_dir():
            if sys.platform == "win32" and not exe_name.lower().endswith(".exe"):
                exe_name_on_disk = f"{exe_name}.exe"
            else:
                exe_name_on_disk = exe_name
            configured_path = tools_dir / exe_name_on_disk
            if configured_path.is_file():
                return str(configured_path)
            logger.warning(
                f"`tools_dir` is configured, but '{exe_name_on_disk}' was not found in '{tools_dir}'. "
                f"Falling back to system PATH."
            )
        return exe_name

    def locate(self, tool: str) -> Optional[str]:
        """Returns the full path of the resolved executable, or None if it cannot be found."""
        command = self.resolve(tool)
        if Path(command).is_file():
            return command
        return shutil.which(command)

    def verify_all(self, tools: Iterable[str] = PIPELINE_TOOLS) -> Dict[str, Optional[str]]:
        """
        Checks that every tool in `tools` can be found.

        Missing tools are logged as errors. Nothing is raised: a missing tool
        surfaces again as a launch failure when a stage tries to run it.

        Returns:
            A mapping of tool name to its located path (None if missing).
        """
        found: Dict[str, Optional[str]] = {}
        for tool in tools:
            location = self.locate(tool)
            found[tool] = location
            if location:
                logger.info(f"Found {tool}: {location}")
            else:
                logger.error(
                    f"{tool} not found (looked for '{self.resolve(tool)}'). "
                    f"Add it to your system's PATH or configure it in 'config.user.yaml'."
                )
        return found
