"""
This module provides classes for persisting conversion results next to the
converted files.

It separates logging concerns into specific classes for failures (ErrorLog)
and successes (SuccessLog). Success logs are written in a machine-readable
YAML format, one entry per converted file, while error logs are plain text
holding the failure reason and the full transcript, so the failing command
and its stderr can be read without rerunning the batch.

Writing these files never affects the outcome of a conversion: errors while
writing are reported through loguru and otherwise ignored.
"""

from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Union

import yaml
from loguru import logger

from ..config.common import ERROR_LOG_FILE_NAME, SUCCESS_LOG_FILE_NAME


class Log:
    """
    A base class for persisted logs.

    Handles the setup of the log file path and ensures that the log directory
    exists.
    """

    # A separator line used in text-based logs for better readability.
    linesep_marker: str = "=" * 50

    def __init__(self, log_dir: Path, filename: str):
        self.log_dir: Path = log_dir.resolve()
        self.log_file_path: Path = self.log_dir / filename

    def _ensure_dir(self) -> bool:
        try:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            return True
        except OSError as e:
            logger.error(f"Cannot create log directory {self.log_dir}: {e}")
            return False

    def write(self, log_content: Union[dict, list, str]):
        raise NotImplementedError("Subclasses must implement the write() method.")


class ErrorLog(Log):
    """
    Appends failure reports to a plain text file.

    Each report is the timestamped reason followed by the transcript lines and
    a separator, so the file reads as a chronological record of failed runs.
    """

    def __init__(self, error_log_dir: Path, filename: str = ERROR_LOG_FILE_NAME):
        super().__init__(error_log_dir, filename)

    def write(self, *error_messages: str):
        """
        Appends the given messages, one per line, followed by a separator.
        """
        if not error_messages:
            return
        if not self._ensure_dir():
            return

        content_to_write = "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"
        try:
            with self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            # Fall back to the console so the report is not lost.
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")

    def write_failure(self, reason: str, transcript: Iterable[str]):
        """Appends a failure reason and the transcript that led to it."""
        timestamp = datetime.now().isoformat(timespec="seconds")
        self.write(f"[{timestamp}] {reason}", *transcript)


class SuccessLog(Log):
    """
    Keeps a YAML list of successfully converted files.

    To keep the file a valid YAML list, each write reads the existing entries,
    appends the new one with the next index, and writes the whole list back.
    """

    def __init__(self, success_log_dir: Path, filename: str = SUCCESS_LOG_FILE_NAME):
        super().__init__(success_log_dir, filename)
        self.log_entries: List[Dict] = []

    def read_entries(self) -> List[Dict]:
        if not self.log_file_path.is_file():
            return []
        try:
            with self.log_file_path.open("r", encoding="utf-8") as f:
                loaded_entries = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error reading/parsing success log {self.log_file_path}: {e}. Starting a new log.")
            return []
        if isinstance(loaded_entries, list):
            return loaded_entries
        if loaded_entries is not None:
            logger.warning(f"Success log {self.log_file_path} contained unexpected data. Starting a new log.")
        return []

    def write(self, new_log_entry: dict):
        """
        Appends one structured entry.

        Args:
            new_log_entry: Data describing the converted file. An `index` key
                           is assigned here.
        """
        if not isinstance(new_log_entry, dict):
            logger.error("SuccessLog.write expects a dictionary as a log entry.")
            return
        if not self._ensure_dir():
            return

        self.log_entries = self.read_entries()
        current_max_index = max(
            (
                entry["index"]
                for entry in self.log_entries
                if isinstance(entry, dict) and isinstance(entry.get("index"), int)
            ),
            default=0,
        )
        entry = {"index": current_max_index + 1}
        entry.update(new_log_entry)
        self.log_entries.append(entry)

        try:
            with self.log_file_path.open("w", encoding="utf-8") as f:
                yaml.dump(
                    self.log_entries,
                    f,
                    default_flow_style=False,
                    sort_keys=False,
                    allow_unicode=True,
                    indent=4,
                    width=220,
                )
        except OSError as e:
            logger.error(f"Failed to write to success log {self.log_file_path}: {e}")
