"""
Defines custom exception types for the Dolby Vision converter.

These exceptions drive control flow inside the single-item pipeline: a stage
that fails hard raises `StageFailedException`, and the pipeline turns it into
a failed `PipelineOutcome`. None of them escape the public `convert` and
batch `run` operations.

All custom exceptions inherit from the base `DVConverterException`.
"""


class DVConverterException(Exception):
    """Base class for all custom exceptions in the converter."""

    pass


class StageFailedException(DVConverterException):
    """
    Raised when a required stage fails.

    The message is the stage's diagnostic text (e.g. "MP4 muxing failed: ...")
    and becomes the item's failure reason unchanged.
    """

    def __init__(self, stage_name: str, reason: str):
        super().__init__(reason)
        self.stage_name = stage_name
        self.reason = reason


class LocalFailureException(DVConverterException):
    """
    Raised for failures that are not caused by an external tool.

    Examples are an input path without a file stem, an input file that does
    not exist, or an output or scratch directory that cannot be created.
    They are reported exactly like a failed tool.
    """

    pass


class ConversionCancelledException(DVConverterException):
    """Raised when the cancellation token fires between stages."""

    pass


class MediaProbeException(DVConverterException):
    """
    Raised when the optional preflight probe of an input file fails or finds
    the file unusable (no video or no audio stream).
    """

    pass
