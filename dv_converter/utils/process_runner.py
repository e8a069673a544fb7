"""
This module provides the Process Invoker: it runs one external tool, waits for
it, and reports the result as data together with a transcript of the
invocation. Nothing that goes wrong while running a tool is raised from here.
"""

import os
import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from ..config.common import CANCEL_POLL_INTERVAL_SECONDS, DEFAULT_TIMEOUT_SECONDS
from ..domain.transcript import LogTranscript
from .cancellation import CancellationToken
from .format_utils import format_command

SUCCESS_MARKER = "✓ Command completed successfully"


@dataclass(frozen=True)
class ProcessOutcome:
    """
    Result of one external invocation.

    Attributes:
        exited_successfully: True only if the process started and exited with 0.
        captured_stderr: Everything the process wrote to standard error.
        return_code: The exit status, None if the process never started.
        launch_error: Why the process could not be started, if it could not.
        interruption: Why a started process was killed before it finished.
        timed_out: The process was killed after exceeding the timeout.
        cancelled: The process was killed because the token fired.
    """

    exited_successfully: bool
    captured_stderr: str = ""
    return_code: Optional[int] = None
    launch_error: Optional[str] = None
    interruption: Optional[str] = None
    timed_out: bool = False
    cancelled: bool = False

    @property
    def launched(self) -> bool:
        return self.launch_error is None

    @property
    def error_text(self) -> str:
        """The most useful description of a failure, stripped."""
        if self.launch_error:
            return self.launch_error
        if self.interruption:
            return self.interruption
        return self.captured_stderr.strip()


class ProcessInvoker:
    """
    Runs external commands with an argument vector and captures stderr.

    By default the command and its arguments are passed to the OS as a
    discrete vector, so no shell interprets them on any platform. The
    `use_shell` flag is an explicit escape hatch: the vector is joined into
    one command line (quoted for the platform) and run through the shell.

    Every invocation is bounded by `timeout_seconds` (None disables the bound)
    and can be interrupted through a `CancellationToken`. Either case kills
    the child and is reported as a failed outcome.
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = DEFAULT_TIMEOUT_SECONDS,
        use_shell: bool = False,
        cancel_token: Optional[CancellationToken] = None,
        poll_interval: float = CANCEL_POLL_INTERVAL_SECONDS,
    ):
        self.timeout_seconds = timeout_seconds
        self.use_shell = use_shell
        self.cancel_token = cancel_token
        self.poll_interval = poll_interval

    def run(self, command: str, args: Sequence[str]) -> Tuple[ProcessOutcome, LogTranscript]:
        """
        Runs `command` with `args` and waits for it to finish.

        Args:
            command: The executable name or path.
            args: The fully resolved argument list.

        Returns:
            The outcome and a transcript. The transcript starts with the echoed
            command and ends with the success marker or an error line; the
            error line is omitted when a failed process wrote nothing to stderr.
        """
        args = [str(arg) for arg in args]
        transcript = LogTranscript()
        transcript.append(format_command(command, args))

        outcome = self._execute(command, args)

        if outcome.exited_successfully:
            transcript.append(SUCCESS_MARKER)
        elif outcome.error_text:
            transcript.append(f"Error: {outcome.error_text}")
        return outcome, transcript

    def _spawn(self, cmd_list: List[str]) -> subprocess.Popen:
        popen_kwargs = dict(
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
        if self.use_shell:
            if os.name == "nt":
                cmd_line = subprocess.list2cmdline(cmd_list)
            else:
                cmd_line = shlex.join(cmd_list)
            logger.debug(f"Running through shell: {cmd_line}")
            return subprocess.Popen(cmd_line, shell=True, **popen_kwargs)
        return subprocess.Popen(cmd_list, shell=False, **popen_kwargs)

    def _execute(self, command: str, args: List[str]) -> ProcessOutcome:
        cmd_list = [command] + args
        logger.debug(f"Executing command list: {cmd_list}")

        if self.cancel_token is not None and self.cancel_token.is_cancelled:
            return ProcessOutcome(False, cancelled=True, interruption="Command cancelled")

        try:
            process = self._spawn(cmd_list)
        except FileNotFoundError as e:
            logger.error(
                f"Command not found: '{command}'. Ensure it's in your system's PATH or configured correctly."
            )
            return ProcessOutcome(False, launch_error=f"Failed to execute command {command}: {e}")
        except (OSError, ValueError) as e:
            logger.error(f"Could not start '{command}': {e}")
            return ProcessOutcome(False, launch_error=f"Failed to execute command {command}: {e}")

        deadline = time.monotonic() + self.timeout_seconds if self.timeout_seconds else None
        stderr = ""
        while True:
            wait = self.poll_interval
            if deadline is not None:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    stderr = self._kill(process)
                    logger.error(f"'{command}' timed out after {self.timeout_seconds:g} seconds and was killed.")
                    return ProcessOutcome(
                        False,
                        captured_stderr=stderr,
                        return_code=process.returncode,
                        interruption=f"Command timed out after {self.timeout_seconds:g} seconds",
                        timed_out=True,
                    )
                wait = min(wait, remaining)
            try:
                _, stderr = process.communicate(timeout=wait)
                break
            except subprocess.TimeoutExpired:
                if self.cancel_token is not None and self.cancel_token.is_cancelled:
                    stderr = self._kill(process)
                    logger.warning(f"'{command}' was cancelled and killed.")
                    return ProcessOutcome(
                        False,
                        captured_stderr=stderr,
                        return_code=process.returncode,
                        interruption="Command cancelled",
                        cancelled=True,
                    )

        stderr = stderr or ""
        if process.returncode != 0:
            logger.debug(f"Command stderr (error, rc={process.returncode}): {stderr}")
        elif stderr:
            logger.trace(f"Command stderr (non-error, rc={process.returncode}): {stderr}")
        return ProcessOutcome(
            process.returncode == 0,
            captured_stderr=stderr,
            return_code=process.returncode,
        )

    @staticmethod
    def _kill(process: subprocess.Popen) -> str:
        process.kill()
        _, stderr = process.communicate()
        return stderr or ""
