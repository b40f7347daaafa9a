"""
Utilities for running external tools and verifying binary availability.

The pipeline talks to mediainfo, comskip and the transcoder only through
``ProcessRunner``, whose small surface (``start``, ``subscribe``, ``wait`` and
the synchronous ``run``) lets tests replace every collaborator with a fake
that replays scripted output without spawning processes.

Functions:
    - run_cmd: Executes a command and returns its exit code with its output.
    - which_or_die: Exits the process if a required binary is not on PATH.
"""
import shutil
import subprocess
import sys
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, List, Tuple

from tivoplex.utils.logger import safe_print

TAIL_LINES = 20


def run_cmd(cmd: List[str]) -> Tuple[int, str, str]:
    """Run a command and return (code, stdout, stderr)."""
    p = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True, errors="replace")
    return p.returncode, p.stdout, p.stderr


def which_or_die(binary: str):
    """Check if a binary exists on PATH, exit if not found."""
    if shutil.which(binary) is None:
        safe_print(f"ERROR: '{binary}' not found on PATH. Install it first.", file=sys.stderr)
        sys.exit(2)


@dataclass
class ProcessHandle:
    """A started collaborator process and the last lines it printed."""
    cmd: List[str]
    process: subprocess.Popen | None = None
    tail: Deque[str] = field(default_factory=lambda: deque(maxlen=TAIL_LINES))

    @property
    def output_tail(self) -> str:
        return "\n".join(self.tail)


class ProcessRunner:
    """Starts long-running collaborators and streams their output line by line."""

    def run(self, cmd: List[str]) -> Tuple[int, str, str]:
        return run_cmd(cmd)

    def start(self, cmd: List[str]) -> ProcessHandle:
        # stderr is folded into stdout: comskip reports progress on stderr,
        # the transcoder on stdout, and a single pipe cannot fill up unread.
        process = subprocess.Popen(
            cmd,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            stdin=subprocess.DEVNULL,
            text=True,
            errors="replace",
        )
        return ProcessHandle(cmd=cmd, process=process)

    def subscribe(self, handle: ProcessHandle, on_line: Callable[[str], None]) -> None:
        """Feed every output line to ``on_line`` until the process closes its output."""
        # Universal newlines turn comskip's carriage-return updates into lines.
        for line in handle.process.stdout:
            line = line.rstrip("\n")
            if not line:
                continue
            handle.tail.append(line)
            on_line(line)

    def wait(self, handle: ProcessHandle) -> int:
        code = handle.process.wait()
        handle.process.stdout.close()
        return code
