"""
Unit tests for ArchiveCreator.
"""

from pathlib import Path
from unittest.mock import Mock

import pytest

from webrtcbuilds.command_runner import CommandError, CommandResult, CommandRunner
from webrtcbuilds.build.archive_creator import ArchiveCreator, ArchiveError


def fake_archiver(cmd, cwd=None, capture=False, **kwargs):
    """Append the member names to the archive named in the command."""
    if cmd[0] == "ar":
        archive = Path(cmd[2])
        members = cmd[3:]
    else:
        archive = Path(cmd[1][len("/OUT:"):])
        members = Path(cmd[2][1:]).read_text().split()
    with open(archive, "a") as f:
        f.write("".join(f"{m}\n" for m in members))
    return CommandResult(args=list(cmd), returncode=0)


@pytest.fixture
def runner():
    runner = Mock(spec=CommandRunner)
    runner.run.side_effect = fake_archiver
    return runner


@pytest.fixture
def output_dir(tmp_path):
    out = tmp_path / "out" / "Release"
    out.mkdir(parents=True)
    return out


class TestArchiveCreator:
    """Test suite for ArchiveCreator."""

    def test_create_archive_with_ar(self, runner, output_dir):
        creator = ArchiveCreator(runner, show_progress=False)
        archive = output_dir / "libwebrtc_full.a"

        result = creator.create_archive(output_dir, archive, ["obj/a.o", "obj/b.o"])

        assert result == archive
        assert archive.read_text() == "obj/a.o\nobj/b.o\n"
        assert (output_dir / "libwebrtc_full.list").read_text() == "obj/a.o\nobj/b.o\n"
        cmd = runner.run.call_args.args[0]
        assert cmd[:2] == ["ar", "-crs"]
        assert cmd[2].endswith(".libwebrtc_full.a.partial")
        assert runner.run.call_args.kwargs["cwd"] == output_dir
        assert not list(output_dir.glob("*.partial"))

    def test_batches_large_object_lists(self, runner, output_dir):
        creator = ArchiveCreator(runner, show_progress=False)
        creator.AR_BATCH_SIZE = 3
        objects = [f"obj/{i}.o" for i in range(7)]

        creator.create_archive(output_dir, output_dir / "libwebrtc_full.a", objects)

        assert runner.run.call_count == 3
        assert (output_dir / "libwebrtc_full.a").read_text().split() == objects

    def test_custom_list_path(self, runner, output_dir):
        creator = ArchiveCreator(runner, show_progress=False)
        list_path = output_dir / "libwebrtc_full.list"

        creator.create_archive(
            output_dir, output_dir / "libwebrtc_full_unstripped.a", ["obj/a.o"], list_path=list_path
        )

        assert list_path.read_text() == "obj/a.o\n"

    def test_create_archive_with_lib_exe(self, runner, output_dir):
        creator = ArchiveCreator(runner, windows=True, lib_path="C:/VC/bin/lib", show_progress=False)
        archive = output_dir / "libwebrtc_full.lib"

        creator.create_archive(output_dir, archive, ["obj/a.obj", "obj/b.obj"])

        cmd = runner.run.call_args.args[0]
        assert cmd[0] == "C:/VC/bin/lib"
        assert cmd[1].startswith("/OUT:")
        assert cmd[2] == f"@{output_dir / 'libwebrtc_full.list'}"
        assert archive.read_text() == "obj/a.obj\nobj/b.obj\n"

    def test_no_objects(self, runner, output_dir):
        creator = ArchiveCreator(runner, show_progress=False)

        with pytest.raises(ArchiveError, match="No object files"):
            creator.create_archive(output_dir, output_dir / "libwebrtc_full.a", [])

        runner.run.assert_not_called()

    def test_failure_keeps_previous_archive(self, runner, output_dir):
        archive = output_dir / "libwebrtc_full.a"
        archive.write_text("previous\n")

        def failing_ar(cmd, **kwargs):
            Path(cmd[2]).write_text("half written")
            return CommandResult(args=list(cmd), returncode=1, stderr="ar: obj/a.o: No such file")

        runner.run.side_effect = failing_ar
        creator = ArchiveCreator(runner, show_progress=False)

        with pytest.raises(ArchiveError, match="No such file"):
            creator.create_archive(output_dir, archive, ["obj/a.o"])

        assert archive.read_text() == "previous\n"
        assert not list(output_dir.glob(".*.partial"))

    def test_missing_archiver(self, runner, output_dir):
        runner.run.side_effect = CommandError("Command not found: ar")
        creator = ArchiveCreator(runner, show_progress=False)

        with pytest.raises(ArchiveError, match="Command not found"):
            creator.create_archive(output_dir, output_dir / "libwebrtc_full.a", ["obj/a.o"])

    def test_archiver_creates_nothing(self, runner, output_dir):
        runner.run.side_effect = lambda cmd, **kwargs: CommandResult(args=list(cmd), returncode=0)
        creator = ArchiveCreator(runner, show_progress=False)

        with pytest.raises(ArchiveError, match="not created"):
            creator.create_archive(output_dir, output_dir / "libwebrtc_full.a", ["obj/a.o"])
