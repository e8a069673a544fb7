"""
Per-run scratch directory for intermediate artifacts.
"""
import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

from loguru import logger

from ..config.common import SCRATCH_DIR_PREFIX


class ScratchSpace:
    """
    A unique scratch directory owned by one pipeline invocation.

    Each conversion gets its own directory, so two conversions of files with
    the same name (from different folders, or run concurrently) never write
    to the same scratch path. Removal is best-effort: errors are logged and
    swallowed, never escalated.

    Usage:
        with ScratchSpace(parent) as scratch:
            video = scratch.path_for("movie_DV.hevc")
    """

    def __init__(self, parent: Optional[Path] = None, prefix: str = SCRATCH_DIR_PREFIX):
        self.parent = parent
        self.prefix = prefix
        self.path: Optional[Path] = None
        self.artifacts: List[Path] = []

    def create(self) -> Path:
        if self.parent is not None:
            self.parent.mkdir(parents=True, exist_ok=True)
        self.path = Path(
            tempfile.mkdtemp(prefix=self.prefix, dir=str(self.parent) if self.parent else None)
        )
        logger.debug(f"Created scratch directory {self.path}")
        return self.path

    def path_for(self, filename: str) -> Path:
        """Returns a path inside the scratch directory and records it as an artifact."""
        if self.path is None:
            self.create()
        artifact = self.path / filename
        self.artifacts.append(artifact)
        return artifact

    def cleanup(self):
        """Deletes every recorded artifact and the directory itself."""
        if self.path is None:
            return
        for artifact in self.artifacts:
            try:
                artifact.unlink()
            except FileNotFoundError:
                pass
            except OSError as e:
                logger.debug(f"Could not delete scratch artifact {artifact}: {e}")
        shutil.rmtree(self.path, ignore_errors=True)
        if self.path.exists():
            logger.debug(f"Scratch directory {self.path} could not be fully removed.")
        else:
            logger.debug(f"Removed scratch directory {self.path}")

    def __enter__(self) -> "ScratchSpace":
        self.create()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cleanup()
        return False
