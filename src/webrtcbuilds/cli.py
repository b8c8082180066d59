"""
Command-line interface for webrtcbuilds.

This module provides the `webrtcbuilds` CLI tool for building standalone
WebRTC static libraries.
"""

import argparse
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from webrtcbuilds import __version__
from webrtcbuilds.build import BuildOrchestrator
from webrtcbuilds.cli_utils import ErrorFormatter, PathValidator, configure_logging
from webrtcbuilds.config import (
    DEFAULT_BRANCH,
    TARGET_CPUS,
    TARGET_OSES,
    BuildConfig,
    ConfigError,
)
from webrtcbuilds.packages import PlatformError


@dataclass
class BuildArgs:
    """Arguments for a build."""

    output_dir: Path
    branch: str = DEFAULT_BRANCH
    revision: Optional[str] = None
    target_os: Optional[str] = None
    target_cpu: str = "none"
    blacklist: Optional[str] = None
    debug: bool = False
    package: bool = False
    enable_rtti: bool = False
    enable_bitcode: bool = False
    skip_build: bool = False
    zip_output: bool = False
    skip_webrtc_deps: bool = False
    verbose: bool = False


def build_command(args: BuildArgs) -> None:
    """Fetch, build and optionally package WebRTC.

    Examples:
        webrtcbuilds                          # Latest revision for the host
        webrtcbuilds -b branch-heads/72 -p    # Package a release branch
        webrtcbuilds -t android -c arm64      # Cross-compile for Android
        webrtcbuilds -r <sha> -d -o build     # Debug build of a revision
    """
    print(f"webrtcbuilds v{__version__}")
    print()

    try:
        config = BuildConfig.from_environment(
            work_dir=args.output_dir,
            target_os=args.target_os,
            target_cpu=args.target_cpu,
            build_type="Debug" if args.debug else "Release",
            branch=args.branch,
            revision=args.revision,
            blacklist=args.blacklist,
            enable_rtti=args.enable_rtti,
            enable_bitcode=args.enable_bitcode,
            package=args.package,
            skip_build=args.skip_build,
            zip_output=args.zip_output,
            skip_webrtc_deps=args.skip_webrtc_deps,
            verbose=args.verbose,
        )
    except (ConfigError, PlatformError) as e:
        ErrorFormatter.print_error("Invalid configuration", str(e))
        sys.exit(1)

    try:
        orchestrator = BuildOrchestrator(config)
        result = orchestrator.build()

        if result.success:
            ErrorFormatter.print_success("Build successful")
            print()
            for library in result.libraries:
                print(f"Library: {library.path} ({library.object_count} objects)")
            if result.package_dir:
                print(f"Package: {result.package_dir}")
            if result.package_path:
                print(f"Archive: {result.package_path}")
            print(f"Build time: {result.build_time:.2f}s")
            sys.exit(0)
        else:
            ErrorFormatter.print_error("Build failed!", result.message)
            sys.exit(1)

    except PermissionError as e:
        ErrorFormatter.handle_permission_error(e)
    except KeyboardInterrupt:
        ErrorFormatter.handle_keyboard_interrupt()
    except Exception as e:
        ErrorFormatter.handle_unexpected_error(e, args.verbose)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webrtcbuilds",
        description="WebRTC build script.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"webrtcbuilds {__version__}",
    )
    parser.add_argument(
        "-o",
        dest="output_dir",
        type=Path,
        default=Path("out"),
        metavar="OUTDIR",
        help="Output directory (default: out)",
    )
    parser.add_argument(
        "-b",
        dest="branch",
        default=DEFAULT_BRANCH,
        metavar="BRANCH",
        help="Latest revision on git branch. Overrides -r. Common branch names are "
        + "'branch-heads/nn', where 'nn' is the release number.",
    )
    parser.add_argument(
        "-r",
        dest="revision",
        default=None,
        metavar="REVISION",
        help="Git SHA revision (default: latest revision)",
    )
    parser.add_argument(
        "-t",
        dest="target_os",
        default=None,
        choices=TARGET_OSES,
        metavar="TARGET_OS",
        help="The target os for cross-compilation (default: the host OS). "
        + f"One of: {', '.join(TARGET_OSES)}",
    )
    parser.add_argument(
        "-c",
        dest="target_cpu",
        default="none",
        choices=TARGET_CPUS + ("x86_64",),
        metavar="TARGET_CPU",
        help=f"The target cpu for cross-compilation (default: none). One of: {', '.join(TARGET_CPUS)}",
    )
    parser.add_argument(
        "-l",
        dest="blacklist",
        default=None,
        metavar="BLACKLIST",
        help="Regex of *.o objects to exclude from the static library",
    )
    parser.add_argument("-d", dest="debug", action="store_true", help="Build debug version of WebRTC")
    parser.add_argument("-p", dest="package", action="store_true", help="Package for release")
    parser.add_argument("-e", dest="enable_rtti", action="store_true", help="Compile WebRTC with RTTI enabled")
    parser.add_argument(
        "-n",
        dest="enable_bitcode",
        action="store_true",
        help="Compile WebRTC with Bitcode enabled (iOS only)",
    )
    parser.add_argument("-s", dest="skip_build", action="store_true", help="Skip building")
    parser.add_argument("-z", dest="zip_output", action="store_true", help="Zip the output")
    parser.add_argument(
        "-w",
        dest="skip_webrtc_deps",
        action="store_true",
        help="Skip WebRTC dependencies check",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show debug logging")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """webrtcbuilds - standalone WebRTC static library builds."""
    parser = create_parser()
    parsed_args = parser.parse_args(argv)

    configure_logging(parsed_args.verbose)
    PathValidator.validate_work_dir(parsed_args.output_dir)

    build_args = BuildArgs(
        output_dir=parsed_args.output_dir,
        branch=parsed_args.branch,
        revision=parsed_args.revision,
        target_os=parsed_args.target_os,
        target_cpu=parsed_args.target_cpu,
        blacklist=parsed_args.blacklist,
        debug=parsed_args.debug,
        package=parsed_args.package,
        enable_rtti=parsed_args.enable_rtti,
        enable_bitcode=parsed_args.enable_bitcode,
        skip_build=parsed_args.skip_build,
        zip_output=parsed_args.zip_output,
        skip_webrtc_deps=parsed_args.skip_webrtc_deps,
        verbose=parsed_args.verbose,
    )
    build_command(build_args)


if __name__ == "__main__":
    main()
