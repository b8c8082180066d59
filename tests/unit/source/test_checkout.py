"""
Unit tests for CheckoutCoordinator.

Tests the checkout caching state machine:
- Classification of requests against the cached state
- Fetch config selection per target OS
- Tree deletion on target OS / revision changes
- The one-shot repair and retry of gclient sync
- State persistence only after a successful checkout
"""

from unittest.mock import Mock

import pytest

from webrtcbuilds.command_runner import CommandError, CommandResult, CommandRunner
from webrtcbuilds.config import Workspace
from webrtcbuilds.source.checkout import (
    CheckoutCoordinator,
    CheckoutError,
    CheckoutState,
    CheckoutStateStore,
    CheckoutStatus,
    SyncPhase,
)


def ok(*args, **kwargs):
    return CommandResult(args=[], returncode=0)


def failed(*args, **kwargs):
    return CommandResult(args=[], returncode=1)


def commands(runner):
    """Command lists passed to runner.run, in call order."""
    return [call.args[0] for call in runner.run.call_args_list]


@pytest.fixture
def workspace(tmp_path):
    return Workspace(tmp_path / "out")


@pytest.fixture
def runner():
    runner = Mock(spec=CommandRunner)
    runner.run.side_effect = ok
    return runner


@pytest.fixture
def store(workspace):
    workspace.ensure_work_dir()
    return CheckoutStateStore(workspace)


@pytest.fixture
def coordinator(runner, workspace, store):
    return CheckoutCoordinator(runner, workspace, store, python_executable="python3")


def make_checkout(workspace, store, target_os, revision):
    """Simulate a previous successful checkout."""
    workspace.src_dir.mkdir(parents=True)
    (workspace.src_dir / "BUILD.gn").write_text("# gn\n")
    (workspace.work_dir / ".gclient").write_text("solutions = []\n")
    (workspace.work_dir / ".gclient_entries").write_text("entries = {}\n")
    store.save(CheckoutState(target_os=target_os, revision=revision))


class TestCheckoutStateStore:
    """Test suite for the marker file store."""

    def test_load_without_files(self, store):
        state = store.load()
        assert state.target_os is None
        assert state.revision is None
        assert state.is_empty

    def test_save_and_load(self, store, workspace):
        store.save(CheckoutState(target_os="linux", revision="abc123"))

        assert workspace.target_os_file.read_text() == "linux\n"
        assert workspace.revision_file.read_text() == "abc123\n"
        assert store.load() == CheckoutState(target_os="linux", revision="abc123")

    def test_blank_file_reads_as_absent(self, store, workspace):
        workspace.target_os_file.write_text("\n")
        workspace.revision_file.write_text("abc123\n")

        state = store.load()
        assert state.target_os is None
        assert state.revision == "abc123"
        assert not state.is_empty

    def test_clear(self, store, workspace):
        store.save(CheckoutState(target_os="linux", revision="abc123"))
        store.clear()

        assert not workspace.target_os_file.exists()
        assert not workspace.revision_file.exists()
        store.clear()  # clearing twice is fine


class TestEvaluate:
    """Test suite for request classification."""

    def test_no_state(self, coordinator):
        assert coordinator.evaluate("linux", "abc123") is CheckoutStatus.NO_LOCAL_CHECKOUT

    def test_up_to_date(self, coordinator, workspace, store):
        make_checkout(workspace, store, "linux", "abc123")
        assert coordinator.evaluate("linux", "abc123") is CheckoutStatus.UP_TO_DATE

    def test_stale_os(self, coordinator, workspace, store):
        make_checkout(workspace, store, "linux", "abc123")
        assert coordinator.evaluate("android", "abc123") is CheckoutStatus.STALE_OS

    def test_os_change_wins_over_revision_change(self, coordinator, workspace, store):
        make_checkout(workspace, store, "linux", "abc123")
        assert coordinator.evaluate("ios", "def456") is CheckoutStatus.STALE_OS

    def test_stale_revision(self, coordinator, workspace, store):
        make_checkout(workspace, store, "linux", "abc123")
        assert coordinator.evaluate("linux", "def456") is CheckoutStatus.STALE_REVISION

    def test_missing_tree_with_state(self, coordinator, store):
        store.save(CheckoutState(target_os="linux", revision="abc123"))
        assert coordinator.evaluate("linux", "abc123") is CheckoutStatus.NO_LOCAL_CHECKOUT


class TestFetchConfig:
    """Test suite for fetch config selection."""

    @pytest.mark.parametrize(
        "target_os,config",
        [
            ("android", "webrtc_android"),
            ("ios", "webrtc_ios"),
            ("linux", "webrtc"),
            ("mac", "webrtc"),
            ("win", "webrtc"),
        ],
    )
    def test_fetch_config_for(self, target_os, config):
        assert CheckoutCoordinator.fetch_config_for(target_os) == config


class TestCheckout:
    """Test suite for the checkout transitions."""

    def test_first_checkout(self, coordinator, runner, store, workspace):
        """No state: fetch once, sync to the revision, record the state."""
        status = coordinator.checkout("linux", "abc123")

        assert status is CheckoutStatus.NO_LOCAL_CHECKOUT
        assert commands(runner) == [
            ["fetch", "--nohooks", "webrtc"],
            ["gclient", "sync", "--force", "--revision", "abc123"],
        ]
        for call in runner.run.call_args_list:
            assert call.kwargs["cwd"] == workspace.work_dir
        assert store.load() == CheckoutState(target_os="linux", revision="abc123")

    def test_up_to_date_runs_nothing(self, coordinator, runner, workspace, store):
        make_checkout(workspace, store, "linux", "abc123")

        status = coordinator.checkout("linux", "abc123")

        assert status is CheckoutStatus.UP_TO_DATE
        runner.run.assert_not_called()
        assert (workspace.src_dir / "BUILD.gn").exists()

    def test_target_os_change_refetches(self, coordinator, runner, workspace, store):
        """Old tree is gone before fetch runs, then the android config is fetched."""
        make_checkout(workspace, store, "linux", "abc123")
        seen_at_fetch = {}

        def run(cmd, **kwargs):
            if cmd[0] == "fetch":
                seen_at_fetch["src"] = workspace.src_dir.exists()
                seen_at_fetch["gclient"] = workspace.gclient_files()
                seen_at_fetch["state"] = store.load()
            return ok()

        runner.run.side_effect = run

        status = coordinator.checkout("android", "abc123")

        assert status is CheckoutStatus.STALE_OS
        assert seen_at_fetch == {"src": False, "gclient": [], "state": CheckoutState()}
        assert commands(runner) == [
            ["fetch", "--nohooks", "webrtc_android"],
            ["gclient", "sync", "--force", "--revision", "abc123"],
        ]
        assert store.load() == CheckoutState(target_os="android", revision="abc123")

    def test_android_fetch_answers_license_prompts(self, coordinator, runner):
        coordinator.checkout("android", "abc123")

        fetch_call = runner.run.call_args_list[0]
        answers = fetch_call.kwargs["input_text"].splitlines()
        assert set(answers) == {"y"}
        assert len(answers) == coordinator.LICENSE_PROMPT_LIMIT

    def test_desktop_fetch_has_no_input(self, coordinator, runner):
        coordinator.checkout("linux", "abc123")

        assert runner.run.call_args_list[0].kwargs["input_text"] is None

    def test_revision_change_refetches(self, coordinator, runner, workspace, store):
        make_checkout(workspace, store, "linux", "abc123")

        status = coordinator.checkout("linux", "def456")

        assert status is CheckoutStatus.STALE_REVISION
        assert not (workspace.src_dir / "BUILD.gn").exists()
        assert commands(runner) == [
            ["fetch", "--nohooks", "webrtc"],
            ["gclient", "sync", "--force", "--revision", "def456"],
        ]
        assert store.load().revision == "def456"

    def test_leftover_tree_without_state_is_removed(self, coordinator, workspace):
        """A run that died before recording state leaves a tree fetch would refuse."""
        workspace.src_dir.mkdir(parents=True)
        (workspace.src_dir / "partial.txt").write_text("x")
        (workspace.work_dir / ".gclient").write_text("")

        coordinator.checkout("linux", "abc123")

        assert not (workspace.src_dir / "partial.txt").exists()
        assert not (workspace.work_dir / ".gclient").exists()

    def test_fetch_failure_keeps_state_absent(self, coordinator, runner, store):
        runner.run.side_effect = failed

        with pytest.raises(CheckoutError, match="fetch --nohooks webrtc failed"):
            coordinator.checkout("linux", "abc123")

        assert store.load().is_empty
        assert len(runner.run.call_args_list) == 1

    def test_fetch_missing_tool(self, coordinator, runner, store):
        runner.run.side_effect = CommandError("Command not found: fetch")

        with pytest.raises(CheckoutError, match="Command not found"):
            coordinator.checkout("linux", "abc123")

        assert store.load().is_empty

    def test_failed_checkout_after_stale_state_does_not_restore_state(
        self, coordinator, runner, workspace, store
    ):
        make_checkout(workspace, store, "linux", "abc123")
        runner.run.side_effect = failed

        with pytest.raises(CheckoutError):
            coordinator.checkout("linux", "def456")

        assert store.load().is_empty


class TestSyncRepair:
    """Test suite for the sync repair-and-retry transitions."""

    @staticmethod
    def install_repair_script(workspace):
        def run(cmd, **kwargs):
            if cmd[0] == "fetch":
                workspace.src_dir.mkdir(parents=True, exist_ok=True)
                (workspace.src_dir / "setup_links.py").write_text("# repair\n")
            return ok()

        return run

    def test_sync_succeeds_first_time(self, coordinator):
        coordinator.checkout("linux", "abc123")
        assert coordinator.sync_history == [SyncPhase.SYNC]

    def test_repair_then_retry_succeeds(self, coordinator, runner, workspace, store):
        fetch_and_install = self.install_repair_script(workspace)
        sync_results = iter([1, 0])

        def run(cmd, **kwargs):
            if cmd[0] == "gclient":
                return CommandResult(args=cmd, returncode=next(sync_results))
            return fetch_and_install(cmd, **kwargs)

        runner.run.side_effect = run

        coordinator.checkout("linux", "abc123")

        repair_script = str(workspace.src_dir / "setup_links.py")
        assert commands(runner) == [
            ["fetch", "--nohooks", "webrtc"],
            ["gclient", "sync", "--force", "--revision", "abc123"],
            ["python3", repair_script, "--force"],
            ["gclient", "sync", "--force", "--revision", "abc123"],
        ]
        assert coordinator.sync_history == [
            SyncPhase.SYNC,
            SyncPhase.REPAIR_ATTEMPTED,
            SyncPhase.SYNC_RETRY,
        ]
        assert store.load() == CheckoutState(target_os="linux", revision="abc123")

    def test_retry_failure_is_fatal(self, coordinator, runner, workspace, store):
        fetch_and_install = self.install_repair_script(workspace)

        def run(cmd, **kwargs):
            if cmd[0] == "gclient":
                return failed()
            return fetch_and_install(cmd, **kwargs)

        runner.run.side_effect = run

        with pytest.raises(CheckoutError, match="sync -> repair_attempted -> sync_retry -> failed"):
            coordinator.checkout("linux", "abc123")

        sync_calls = [cmd for cmd in commands(runner) if cmd[0] == "gclient"]
        repair_calls = [cmd for cmd in commands(runner) if cmd[0] == "python3"]
        assert len(sync_calls) == 2
        assert len(repair_calls) == 1
        assert store.load().is_empty

    def test_sync_failure_without_repair_script(self, coordinator, runner, store):
        def run(cmd, **kwargs):
            return failed() if cmd[0] == "gclient" else ok()

        runner.run.side_effect = run

        with pytest.raises(CheckoutError, match="sync -> failed"):
            coordinator.checkout("linux", "abc123")

        assert len([cmd for cmd in commands(runner) if cmd[0] == "gclient"]) == 1
        assert store.load().is_empty

    def test_repair_script_failure(self, coordinator, runner, workspace, store):
        fetch_and_install = self.install_repair_script(workspace)

        def run(cmd, **kwargs):
            if cmd[0] in ("gclient", "python3"):
                return failed()
            return fetch_and_install(cmd, **kwargs)

        runner.run.side_effect = run

        with pytest.raises(CheckoutError, match="setup_links.py failed"):
            coordinator.checkout("linux", "abc123")

        assert store.load().is_empty
