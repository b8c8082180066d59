"""Command Runner.

This module runs the external tools the build drives (git, fetch, gclient,
gn, ninja, ar, strip, lib.exe, apt-get) via subprocess.

Design:
    - One place that spawns processes, so tests can replace it with a mock
    - Every command runs with the tool environment built by BuildConfig
    - Non-zero exit codes are returned, not raised; callers decide which
      stage error they map to
    - A missing executable or an expired timeout raises CommandError
"""

import logging
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional, Sequence, Union

logger = logging.getLogger(__name__)

CommandArg = Union[str, Path]


class CommandError(Exception):
    """Raised when a command cannot be started or does not finish in time."""
    pass


@dataclass
class CommandResult:
    """Outcome of a finished command."""

    args: List[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner:
    """Runs external commands with a fixed environment.

    Output is streamed to the terminal unless ``capture`` is requested, since
    fetch/sync/ninja runs take a long time and their progress matters to the
    user.
    """

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        """Initialize command runner.

        Args:
            env: Environment passed to every subprocess (None inherits ours)
        """
        self.env = dict(env) if env is not None else None

    def which(self, program: str) -> Optional[str]:
        """Find a program on the tool PATH, or None."""
        search_path = self.env.get("PATH") if self.env else None
        return shutil.which(program, path=search_path)

    def resolve(self, program: str) -> str:
        """Resolve a program name against the tool PATH.

        Needed on Windows where depot_tools entry points are .bat files that
        CreateProcess only runs when given their full path.
        """
        return self.which(program) or program

    def run(
        self,
        cmd: Sequence[CommandArg],
        cwd: Optional[Path] = None,
        capture: bool = False,
        input_text: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> CommandResult:
        """Run a command to completion.

        Args:
            cmd: Program and arguments
            cwd: Working directory
            capture: Capture stdout/stderr instead of streaming them
            input_text: Text written to the command's stdin
            timeout: Seconds before the command is abandoned (None waits forever)

        Returns:
            CommandResult with the exit code (and output when captured)

        Raises:
            CommandError: If the program is missing or the timeout expired
        """
        args = [str(arg) for arg in cmd]
        if not args:
            raise CommandError("Empty command")
        args[0] = self.resolve(args[0])

        logger.debug("Running: %s (cwd=%s)", " ".join(args), cwd or ".")

        try:
            result = subprocess.run(
                args,
                cwd=str(cwd) if cwd else None,
                env=self.env,
                input=input_text,
                capture_output=capture,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise CommandError(f"Command not found: {cmd[0]}") from e
        except subprocess.TimeoutExpired as e:
            raise CommandError(
                f"Command timed out after {timeout}s: {' '.join(args)}"
            ) from e

        if result.returncode != 0:
            logger.debug("Exit code %d: %s", result.returncode, " ".join(args))

        return CommandResult(
            args=args,
            returncode=result.returncode,
            stdout=result.stdout or "",
            stderr=result.stderr or "",
        )
