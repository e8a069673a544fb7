"""
Utilities Package for the Dolby Vision converter.

This package contains helper modules that support the pipeline without being
part of the conversion domain itself.

Modules:
    - process_runner.py: The Process Invoker that runs one external tool and
      turns its exit status and stderr into data plus a transcript.
    - cancellation.py: The token used to stop a running conversion.
    - tool_locator.py: Resolves and verifies the external executables.
    - format_utils.py: Formatting helpers for log lines and reports.
"""
