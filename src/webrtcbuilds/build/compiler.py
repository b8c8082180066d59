"""WebRTC compiler.

Runs ``gn gen`` and ``ninja`` for each output directory of a target. The
build graph itself belongs to WebRTC; this module only drives the tools.
"""

import logging
from pathlib import Path
from typing import List

from ..command_runner import CommandError, CommandRunner
from ..config.build_config import BuildTarget
from ..config.workspace import Workspace
from .gn_args import OutputConfig, build_gn_args, output_configs

logger = logging.getLogger(__name__)


class CompilationError(Exception):
    """Raised when gn or ninja fails."""
    pass


class WebRTCCompiler:
    """Generates and builds gn output directories."""

    def __init__(
        self,
        runner: CommandRunner,
        workspace: Workspace,
        host_platform: str,
        enable_bitcode: bool = False,
    ):
        """Initialize compiler.

        Args:
            runner: Command runner
            workspace: Workspace layout
            host_platform: 'linux', 'mac' or 'win'
            enable_bitcode: Embed bitcode (iOS only)
        """
        self.runner = runner
        self.workspace = workspace
        self.host_platform = host_platform
        self.enable_bitcode = enable_bitcode

    def compile(self, target: BuildTarget) -> List[Path]:
        """Build every output directory for a target.

        Returns:
            Output directories, in build order

        Raises:
            CompilationError: If gn or ninja fails
        """
        if not self.workspace.src_dir.is_dir():
            raise CompilationError(f"Source tree not found: {self.workspace.src_dir}")

        output_dirs = []
        for output in output_configs(self.host_platform, target):
            output_dirs.append(self.compile_output(target, output))
        return output_dirs

    def compile_output(self, target: BuildTarget, output: OutputConfig) -> Path:
        """Run gn gen and ninja for one output directory."""
        gn_args = build_gn_args(target, output.target_cpu, self.enable_bitcode)
        relative_dir = Path("out") / output.name
        output_dir = self.workspace.get_output_dir(output.name)

        print(f"Generating project files with: {' '.join(gn_args)}")
        self._check(
            ["gn", "gen", relative_dir.as_posix(), f"--args={' '.join(gn_args)}"],
            f"gn gen {relative_dir.as_posix()}",
        )

        print(f"Compiling {relative_dir.as_posix()}")
        self._check(["ninja", "-C", relative_dir.as_posix()], f"ninja -C {relative_dir.as_posix()}")

        return output_dir

    def _check(self, cmd: List[str], description: str) -> None:
        try:
            result = self.runner.run(cmd, cwd=self.workspace.src_dir)
        except CommandError as e:
            raise CompilationError(f"{description} failed: {e}") from e
        if not result.ok:
            raise CompilationError(f"{description} failed (exit code {result.returncode})")
