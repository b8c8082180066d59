"""
Unit tests for gn argument construction and output directory selection.
"""

import pytest

from webrtcbuilds.build.gn_args import COMMON_ARGS, OutputConfig, build_gn_args, output_configs
from webrtcbuilds.config import BuildTarget


class TestOutputConfigs:
    def test_windows_without_cpu_builds_both(self):
        target = BuildTarget(target_os="win", build_type="Release")
        assert output_configs("win", target) == [
            OutputConfig(name="Release", target_cpu="x86"),
            OutputConfig(name="Release_x64", target_cpu="x64"),
        ]

    def test_windows_with_cpu(self):
        target = BuildTarget(target_os="win", target_cpu="x64", build_type="Debug")
        assert output_configs("win", target) == [OutputConfig(name="Debug_x64", target_cpu="x64")]

    @pytest.mark.parametrize(
        "host,target_os,cpu,name",
        [
            ("linux", "linux", "none", "Release_none"),
            ("linux", "android", "arm64", "Release_arm64"),
            ("mac", "ios", "arm", "Release_arm"),
        ],
    )
    def test_single_output(self, host, target_os, cpu, name):
        target = BuildTarget(target_os=target_os, target_cpu=cpu)
        assert output_configs(host, target) == [OutputConfig(name=name, target_cpu=cpu)]


class TestBuildGnArgs:
    def test_release(self):
        target = BuildTarget(target_os="linux", target_cpu="x64")
        assert build_gn_args(target, "x64") == COMMON_ARGS + [
            "is_debug=false",
            'target_os="linux"',
            'target_cpu="x64"',
        ]

    def test_debug_without_cpu(self):
        target = BuildTarget(target_os="linux", build_type="Debug")
        args = build_gn_args(target, "none")

        assert "is_debug=false" not in args
        assert 'target_os="linux"' in args
        assert not any(arg.startswith("target_cpu") for arg in args)

    def test_tests_and_iterator_debugging_disabled(self):
        args = build_gn_args(BuildTarget(target_os="android", target_cpu="arm"), "arm")
        assert "rtc_include_tests=false" in args
        assert "enable_iterator_debugging=false" in args

    def test_ios(self):
        args = build_gn_args(BuildTarget(target_os="ios", target_cpu="arm64"), "arm64")
        assert "ios_enable_code_signing=false" in args
        assert "rtc_ios_enable_bitcode=true" not in args

    def test_ios_bitcode(self):
        args = build_gn_args(BuildTarget(target_os="ios", target_cpu="arm64"), "arm64", enable_bitcode=True)
        assert args[-1] == "rtc_ios_enable_bitcode=true"

    def test_bitcode_ignored_off_ios(self):
        args = build_gn_args(BuildTarget(target_os="mac", target_cpu="x64"), "x64", enable_bitcode=True)
        assert "rtc_ios_enable_bitcode=true" not in args
