"""WebRTC checkout management.

Fetching WebRTC takes tens of minutes and several gigabytes, so the last
successful checkout is remembered in two marker files in the work directory
(target OS and revision). Each run compares the request against them and
either does nothing, or wipes the tree and fetches again.

States:
    NO_LOCAL_CHECKOUT  nothing recorded (or the tree is gone): fetch + sync
    STALE_OS           recorded target OS differs: wipe, fetch + sync
    STALE_REVISION     same OS, different revision: wipe, fetch + sync
    UP_TO_DATE         OS and revision match: no-op

A revision change is never synced in place: gclient runs hooks that download
toolchains and sysroots for the old revision, and those do not reliably get
replaced.

Sync phases:
    SYNC -> REPAIR_ATTEMPTED -> SYNC_RETRY -> FAILED
    The repair script runs at most once, and the sync is retried at most once.
"""

import logging
import shutil
import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from ..command_runner import CommandError, CommandRunner
from ..config.workspace import Workspace

logger = logging.getLogger(__name__)


class CheckoutError(Exception):
    """Raised when fetching or syncing the source tree fails."""

    pass


class CheckoutStatus(Enum):
    NO_LOCAL_CHECKOUT = "no_local_checkout"
    STALE_OS = "stale_os"
    STALE_REVISION = "stale_revision"
    UP_TO_DATE = "up_to_date"


class SyncPhase(Enum):
    SYNC = "sync"
    REPAIR_ATTEMPTED = "repair_attempted"
    SYNC_RETRY = "sync_retry"
    FAILED = "failed"


@dataclass(frozen=True)
class CheckoutState:
    """The last successfully completed checkout."""

    target_os: Optional[str] = None
    revision: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.target_os is None and self.revision is None


class CheckoutStateStore:
    """Reads and writes the checkout marker files."""

    def __init__(self, workspace: Workspace):
        self.workspace = workspace

    def load(self) -> CheckoutState:
        return CheckoutState(
            target_os=self._read(self.workspace.target_os_file),
            revision=self._read(self.workspace.revision_file),
        )

    def save(self, state: CheckoutState) -> None:
        self.workspace.target_os_file.write_text(f"{state.target_os}\n")
        self.workspace.revision_file.write_text(f"{state.revision}\n")

    def clear(self) -> None:
        for path in (self.workspace.target_os_file, self.workspace.revision_file):
            if path.exists():
                path.unlink()

    @staticmethod
    def _read(path: Path) -> Optional[str]:
        try:
            value = path.read_text().strip()
        except FileNotFoundError:
            return None
        return value or None


class CheckoutCoordinator:
    """Decides between fetch, sync and no-op, and performs the checkout."""

    # fetch configs from depot_tools/fetch_configs
    FETCH_CONFIGS: Dict[str, str] = {
        "android": "webrtc_android",
        "ios": "webrtc_ios",
    }
    DEFAULT_FETCH_CONFIG = "webrtc"

    REPAIR_SCRIPT = "setup_links.py"

    # Answers for the Android SDK licence prompts. Unlike `yes`, the supply is
    # finite: prompts past LICENSE_PROMPT_LIMIT read EOF.
    LICENSE_PROMPT_LIMIT = 1024
    LICENSE_ANSWERS = "y\n" * LICENSE_PROMPT_LIMIT

    def __init__(
        self,
        runner: CommandRunner,
        workspace: Workspace,
        state_store: Optional[CheckoutStateStore] = None,
        python_executable: str = sys.executable,
    ):
        """Initialize checkout coordinator.

        Args:
            runner: Command runner for fetch/gclient
            workspace: Workspace layout
            state_store: Marker file store (defaults to the workspace's)
            python_executable: Interpreter used to run the repair script
        """
        self.runner = runner
        self.workspace = workspace
        self.state_store = state_store or CheckoutStateStore(workspace)
        self.python_executable = python_executable
        self.sync_history: List[SyncPhase] = []

    @classmethod
    def fetch_config_for(cls, target_os: str) -> str:
        return cls.FETCH_CONFIGS.get(target_os, cls.DEFAULT_FETCH_CONFIG)

    def evaluate(self, target_os: str, revision: str) -> CheckoutStatus:
        """Classify a request against the persisted checkout state."""
        state = self.state_store.load()

        if state.is_empty:
            return CheckoutStatus.NO_LOCAL_CHECKOUT
        if state.target_os != target_os:
            return CheckoutStatus.STALE_OS
        if state.revision != revision:
            return CheckoutStatus.STALE_REVISION
        if not self.workspace.src_dir.is_dir():
            return CheckoutStatus.NO_LOCAL_CHECKOUT
        return CheckoutStatus.UP_TO_DATE

    def checkout(self, target_os: str, revision: str) -> CheckoutStatus:
        """Make the work directory hold ``revision`` fetched for ``target_os``.

        Returns:
            The status the request was classified as

        Raises:
            CheckoutError: If fetch fails, or sync fails after the one repair
        """
        status = self.evaluate(target_os, revision)

        if status is CheckoutStatus.UP_TO_DATE:
            print(f"Checkout is up to date: {revision} ({target_os})")
            return status

        if status is CheckoutStatus.STALE_OS:
            print("The target OS has changed. Refetching sources for the new target OS")
        elif status is CheckoutStatus.STALE_REVISION:
            print("The revision has changed. Refetching sources for the new revision")

        # Also removes leftovers of a run that died before recording its state
        self.clean()

        self.workspace.ensure_work_dir()
        self._fetch(target_os)
        self._sync(revision)

        self.state_store.save(CheckoutState(target_os=target_os, revision=revision))
        return status

    def clean(self) -> None:
        """Delete the source tree, gclient files and the persisted state."""
        self.state_store.clear()

        src_dir = self.workspace.src_dir
        if src_dir.exists():
            logger.info("Deleting %s", src_dir)
            shutil.rmtree(src_dir)

        for path in self.workspace.gclient_files():
            if path.is_dir():
                shutil.rmtree(path)
            else:
                path.unlink()

    def _fetch(self, target_os: str) -> None:
        config = self.fetch_config_for(target_os)
        print(f"Fetching WebRTC sources ({config})")

        input_text = self.LICENSE_ANSWERS if target_os == "android" else None
        try:
            result = self.runner.run(
                ["fetch", "--nohooks", config],
                cwd=self.workspace.work_dir,
                input_text=input_text,
            )
        except CommandError as e:
            raise CheckoutError(f"fetch failed: {e}") from e

        if not result.ok:
            raise CheckoutError(f"fetch --nohooks {config} failed (exit code {result.returncode})")

    def _sync(self, revision: str) -> SyncPhase:
        """Sync to ``revision``, with one repair-and-retry on failure.

        Returns:
            SYNC if the first sync succeeded, SYNC_RETRY if the retry did

        Raises:
            CheckoutError: When the phases end in FAILED
        """
        self.sync_history = []
        phase = SyncPhase.SYNC

        while True:
            self.sync_history.append(phase)

            if phase in (SyncPhase.SYNC, SyncPhase.SYNC_RETRY):
                if self._run_sync(revision):
                    return phase
                if phase is SyncPhase.SYNC and self._repair_script().exists():
                    phase = SyncPhase.REPAIR_ATTEMPTED
                else:
                    phase = SyncPhase.FAILED

            elif phase is SyncPhase.REPAIR_ATTEMPTED:
                print(f"gclient sync failed, running {self.REPAIR_SCRIPT} and retrying once")
                self._run_repair()
                phase = SyncPhase.SYNC_RETRY

            else:
                raise CheckoutError(
                    f"gclient sync to {revision} failed "
                    + f"(phases: {' -> '.join(p.value for p in self.sync_history)})"
                )

    def _run_sync(self, revision: str) -> bool:
        print(f"Syncing to revision {revision}")
        try:
            result = self.runner.run(
                ["gclient", "sync", "--force", "--revision", revision],
                cwd=self.workspace.work_dir,
            )
        except CommandError as e:
            raise CheckoutError(f"gclient sync failed: {e}") from e
        return result.ok

    def _repair_script(self) -> Path:
        return self.workspace.src_dir / self.REPAIR_SCRIPT

    def _run_repair(self) -> None:
        try:
            result = self.runner.run(
                [self.python_executable, str(self._repair_script()), "--force"],
                cwd=self.workspace.work_dir,
                input_text="y\n",
            )
        except CommandError as e:
            raise CheckoutError(f"{self.REPAIR_SCRIPT} failed: {e}") from e
        if not result.ok:
            raise CheckoutError(f"{self.REPAIR_SCRIPT} failed (exit code {result.returncode})")
