import logging
import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Exit code and combined stdout/stderr of an external command."""

    returncode: int
    output: str


ProcessRunner = Callable[[Sequence[str], Optional[float]], ProcessResult]


class ProcessTimeout(Exception):
    """The command did not finish within its timeout and was killed."""

    def __init__(self, args: Sequence[str], timeout: float, output: str = ""):
        self.args_ = list(args)
        self.timeout = timeout
        self.output = output
        super().__init__(f"{args[0]} timed out after {timeout:g}s")


def run_command(args: Sequence[str], timeout: Optional[float] = None) -> ProcessResult:
    """Run args, capturing stdout and stderr into one string. Raises ProcessTimeout when timeout elapses; OSError if the binary cannot be started.
    Why available: Default ProcessRunner for ffmpeg and the recognizer container; tests swap in fakes with the same signature."""
    logger.debug("running %s", " ".join(args))
    try:
        p = subprocess.run(
            list(args),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except subprocess.TimeoutExpired as e:
        out = e.output or ""
        if isinstance(out, bytes):
            out = out.decode("utf-8", errors="replace")
        raise ProcessTimeout(args, timeout or 0, out) from e
    return ProcessResult(returncode=p.returncode, output=p.stdout or "")
