"""Running the external static-analysis command.

The collaborator is any command that prints an analysis payload as JSON on
stdout. It runs in a child process so callers stay responsive; a task can be
waited on with a time limit or cancelled, and in both cases the child is
killed and its partial output discarded.
"""

import logging
import shutil
import subprocess
import threading
from pathlib import Path
from typing import Optional, Sequence

from wirework.errors import CollaboratorCancelled, CollaboratorError, CollaboratorTimeout
from wirework.payload import AnalysisPayload, load_payload

__all__ = ["AnalysisTask", "run_collaborator"]

LOGGER = logging.getLogger(__name__)


def _normalize_args(args: Sequence[str]) -> list[str]:
    if not args:
        raise CollaboratorError("No collaborator command configured")

    head, *rest = args
    if Path(head).is_absolute():
        return [head, *rest]

    resolved = shutil.which(head)
    if resolved is None:
        raise CollaboratorError(f"Executable '{head}' was not found on PATH")
    return [resolved, *rest]


class AnalysisTask:
    """A running collaborator process.

    Example:
        >>> task = AnalysisTask(["analyse-layers", "--json"])
        >>> payload = task.result(timeout=30)
    """

    def __init__(self, command: Sequence[str], cwd: Optional[Path] = None):
        self._command = _normalize_args(command)
        self._lock = threading.Lock()
        self._cancelled = False
        LOGGER.debug("Starting collaborator %s in %s", self._command, cwd or Path.cwd())
        self._process = subprocess.Popen(
            self._command,
            cwd=str(cwd) if cwd is not None else None,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
        )

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def cancel(self):
        """Kill the collaborator; any later :meth:`result` call raises."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
        if self._process.poll() is None:
            LOGGER.debug("Cancelling collaborator %s", self._command)
            self._process.kill()

    def result(self, timeout: Optional[float] = None) -> AnalysisPayload:
        """Wait for the collaborator and parse its payload.

        Args:
            timeout: Seconds to wait; None waits indefinitely.

        Returns:
            The validated :class:`AnalysisPayload`.

        Raises:
            CollaboratorTimeout: If the command did not finish in time. The
                process is killed.
            CollaboratorCancelled: If the task was cancelled.
            CollaboratorError: If the command exited with a non-zero status.
            PayloadError: If its output is not a valid payload.
        """
        if self.cancelled:
            raise CollaboratorCancelled(f"Collaborator {self._command} was cancelled")

        try:
            stdout, stderr = self._process.communicate(timeout=timeout)
        except subprocess.TimeoutExpired as exc:
            self._process.kill()
            self._process.communicate()
            LOGGER.warning("Collaborator %s timed out after %ss", self._command, timeout)
            raise CollaboratorTimeout(
                f"Collaborator {self._command} did not finish within {timeout}s"
            ) from exc

        if self.cancelled:
            raise CollaboratorCancelled(f"Collaborator {self._command} was cancelled")
        if self._process.returncode != 0:
            raise CollaboratorError(
                f"Collaborator {self._command} exited with status "
                f"{self._process.returncode}: {stderr.strip()}"
            )

        LOGGER.debug("Collaborator %s produced %d bytes", self._command, len(stdout))
        return load_payload(stdout)


def run_collaborator(
    command: Sequence[str], timeout: Optional[float] = None, cwd: Optional[Path] = None
) -> AnalysisPayload:
    """Run the collaborator to completion and return its payload."""
    return AnalysisTask(command, cwd).result(timeout)
