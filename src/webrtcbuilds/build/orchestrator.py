"""
Build orchestrator for WebRTC static libraries.

This module coordinates the entire build process, from resolving the revision
to packaging the combined library.

Stages, in order (the first failure ends the run):
    dependencies  host tools and depot_tools
    resolve       branch / revision / latest -> sha (+ revision number)
    checkout      fetch and sync the WebRTC tree, or nothing if cached
    webrtc-deps   WebRTC's own dependency installers        (not with -s, -w)
    patch         source patches                            (not with -s)
    compile       gn gen + ninja per output directory       (not with -s)
    combine       one static library per output directory   (not with -s)
    package       headers + libraries (+ zip)               (only with -p)
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from ..command_runner import CommandError, CommandRunner
from ..config.build_config import BuildConfig
from ..packages.dependencies import DependencyChecker
from ..packages.depot_tools import DepotTools
from ..packages.package import PackageError
from ..packages.platform_utils import PlatformDetector
from ..release.packager import PackagingAssembler, PackagingError, package_label
from ..source.checkout import CheckoutCoordinator, CheckoutError, CheckoutStatus
from ..source.patcher import PatchApplier, PatchError, default_patches
from ..source.revision import ResolutionError, RevisionResolver, RevisionSpec
from .combiner import CombinedLibrary, CombineError, ObjectCombiner
from .compiler import CompilationError, WebRTCCompiler
from .object_collector import ExclusionPolicy
from .stripper import StripToolSelector

logger = logging.getLogger(__name__)

STAGE_ERRORS = (
    PackageError,
    ResolutionError,
    CheckoutError,
    PatchError,
    CompilationError,
    CombineError,
    PackagingError,
    CommandError,
)


@dataclass
class BuildResult:
    """Result of a build operation."""

    success: bool
    message: str
    build_time: float = 0.0
    stage: Optional[str] = None
    revision: Optional[RevisionSpec] = None
    checkout_status: Optional[CheckoutStatus] = None
    libraries: List[CombinedLibrary] = field(default_factory=list)
    package_dir: Optional[Path] = None
    package_path: Optional[Path] = None


class BuildOrchestrator:
    """Runs the build stages for one BuildConfig."""

    def __init__(
        self,
        config: BuildConfig,
        runner: Optional[CommandRunner] = None,
        resolver: Optional[RevisionResolver] = None,
        checkout: Optional[CheckoutCoordinator] = None,
    ):
        """Initialize orchestrator.

        Args:
            config: Build configuration
            runner: Command runner (default runs with config.tool_env)
            resolver: Revision resolver (default queries config.repo_url)
            checkout: Checkout coordinator (default uses config.workspace)
        """
        self.config = config
        self.runner = runner or CommandRunner(env=config.tool_env)
        self.resolver = resolver or RevisionResolver(
            self.runner, config.repo_url, timeout=config.remote_timeout
        )
        self.checkout = checkout or CheckoutCoordinator(self.runner, config.workspace)
        self.dependencies = DependencyChecker(
            self.runner, config.host_platform, vs_tools_dir=config.vs_tools_dir
        )
        self.depot_tools = DepotTools(
            self.runner,
            config.workspace.depot_tools_dir,
            config.depot_tools_url,
            config.host_platform,
        )
        self._stage = "setup"

    def build(self) -> BuildResult:
        """Run every stage.

        Returns:
            BuildResult; on failure ``stage`` names the stage that failed
        """
        start_time = time.time()
        result = BuildResult(success=False, message="")

        try:
            self._run_stages(result)
        except STAGE_ERRORS as e:
            result.stage = self._stage
            result.message = f"{self._stage} failed: {e}"
            result.build_time = time.time() - start_time
            logger.debug("Stage %s failed", self._stage, exc_info=True)
            return result

        result.success = True
        result.message = "Build successful"
        result.build_time = time.time() - start_time
        return result

    def _run_stages(self, result: BuildResult) -> None:
        config = self.config
        target = config.target

        print(f"Host OS: {config.host_platform}")
        print(f"Target OS: {target.target_os}")
        print(f"Target CPU: {target.target_cpu}")
        logger.debug("Platform info: %s", PlatformDetector.get_platform_info())

        self._stage = "dependencies"
        config.workspace.ensure_work_dir()
        print("Checking webrtcbuilds dependencies")
        self.dependencies.check_host()
        print("Checking depot-tools")
        self.depot_tools.ensure_package()
        logger.debug("depot_tools: %s", self.depot_tools.get_package_info())

        self._stage = "resolve"
        result.revision = self.resolve_revision()

        self._stage = "checkout"
        print(f"Checking out WebRTC revision (this will take awhile): {result.revision.sha}")
        result.checkout_status = self.checkout.checkout(target.target_os, result.revision.sha)

        if config.skip_build:
            print("Skipping build...")
        else:
            if not config.skip_webrtc_deps:
                self._stage = "webrtc-deps"
                print("Checking WebRTC dependencies")
                self.dependencies.check_webrtc(config.workspace.src_dir, target.target_os)

            self._stage = "patch"
            print("Patching WebRTC source")
            PatchApplier(config.workspace.src_dir).apply_all(
                default_patches(config.enable_rtti, target.target_os)
            )

            self._stage = "compile"
            print(f"Compiling WebRTC of type {target.build_type}")
            compiler = WebRTCCompiler(
                self.runner,
                config.workspace,
                config.host_platform,
                enable_bitcode=config.enable_bitcode,
            )
            output_dirs = compiler.compile(target)

            self._stage = "combine"
            result.libraries = self.combine(output_dirs)

        if config.package:
            self._stage = "package"
            print("Packaging WebRTC")
            label = package_label(config.project_name, result.revision, target)
            assembler = PackagingAssembler(config.workspace, config.host_platform)
            package = assembler.assemble(label, zip_output=config.zip_output)
            result.package_dir = package.package_dir
            result.package_path = package.archive_path

    def resolve_revision(self) -> RevisionSpec:
        """Resolve the requested revision and, best effort, its number.

        The number is only required when packaging a non-branch build, whose
        label contains it.
        """
        config = self.config
        revision = self.resolver.resolve(branch=config.branch, revision=config.revision)
        if revision.branch:
            print(f"Building branch: {revision.branch}")
            print(f"Associated branch number: {revision.branch_number}")

        try:
            revision = revision.with_number(self.resolver.lookup_revision_number(revision.sha))
        except ResolutionError as e:
            if config.package and not revision.branch:
                raise
            logger.warning("Could not get revision number: %s", e)

        print(f"Building revision: {revision.sha}")
        print(f"Associated revision number: {revision.number if revision.number is not None else 'unknown'}")
        return revision

    def combine(self, output_dirs: List[Path]) -> List[CombinedLibrary]:
        """Combine every output directory into libwebrtc_full."""
        config = self.config
        target = config.target
        policy = ExclusionPolicy.for_target(target.target_os, config.blacklist)
        strip_tool = StripToolSelector(
            self.runner, config.workspace.src_dir, config.host_platform
        ).select(target.target_cpu)
        combiner = ObjectCombiner(
            self.runner,
            windows=config.is_windows_host,
            lib_path=self._librarian(),
            strip_path=strip_tool,
        )

        libraries = []
        for output_dir in output_dirs:
            print(f"Combining WebRTC library in {output_dir}")
            libraries.append(combiner.combine(output_dir, policy, strip=target.is_release))
        return libraries

    def _librarian(self) -> Optional[str]:
        """lib.exe of the configured Visual Studio, if any."""
        vs_tools = self.config.vs_tools_dir
        if not self.config.is_windows_host or vs_tools is None:
            return None
        return str(Path(vs_tools) / ".." / ".." / "VC" / "bin" / "lib")
