"""GN argument construction.

Notes on the common arguments:
    rtc_include_tests=false
        Unit tests are not part of the combined library.
    enable_iterator_debugging=false
        Debug builds otherwise enable libstdc++ debug containers, which breaks
        linking for every consumer that does not define _GLIBCXX_DEBUG=1
        (undefined references to thunks such as
        cricket::VideoCapturer::AddOrUpdateSink).
    is_component_build=false
        Static objects only.
"""

from dataclasses import dataclass
from typing import List

from ..config.build_config import BuildTarget

COMMON_ARGS = [
    "rtc_include_tests=false",
    "enable_iterator_debugging=false",
    "is_component_build=false",
]

IOS_ARGS = [
    "use_xcode_clang=true",
    "enable_ios_bitcode=true",
    "ios_enable_code_signing=false",
    'ios_deployment_target="8.0"',
]


@dataclass(frozen=True)
class OutputConfig:
    """One gn output directory and the CPU it is generated for."""

    name: str
    target_cpu: str


def output_configs(host_platform: str, target: BuildTarget) -> List[OutputConfig]:
    """Output directories to build for a target.

    A Windows host without an explicit CPU builds both a 32-bit
    (out/<type>) and a 64-bit (out/<type>_x64) library. Everything else
    builds out/<type>_<cpu>.
    """
    if host_platform == "win" and target.target_cpu == "none":
        return [
            OutputConfig(name=target.build_type, target_cpu="x86"),
            OutputConfig(name=f"{target.build_type}_x64", target_cpu="x64"),
        ]
    return [OutputConfig(name=f"{target.build_type}_{target.target_cpu}", target_cpu=target.target_cpu)]


def build_gn_args(target: BuildTarget, target_cpu: str, enable_bitcode: bool = False) -> List[str]:
    """Build the gn --args list for one output directory.

    Args:
        target: Build target
        target_cpu: CPU for this output directory ('none' leaves gn's default)
        enable_bitcode: Embed bitcode (iOS only)

    Returns:
        List of 'key=value' strings
    """
    args = list(COMMON_ARGS)
    if target.is_release:
        args.append("is_debug=false")

    args.append(f'target_os="{target.target_os}"')
    if target_cpu != "none":
        args.append(f'target_cpu="{target_cpu}"')

    if target.target_os == "ios":
        args.extend(IOS_ARGS)
        if enable_bitcode:
            args.append("rtc_ios_enable_bitcode=true")

    return args
