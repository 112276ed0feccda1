"""
Sync engine: mirrors memory documents through a shared git repository.

Lets several machines share the same memory:
- SessionStart → pull (repo → local memory directory)
- Stop / PreCompact / SessionEnd → push (local memory directory → repo)

Whole-file byte comparison decides every copy, so identical documents never
produce a copy, a staged change or a commit. There is no cross-machine lock;
the last writer wins per document and the rebase-pull before every push only
narrows the race.
"""

from __future__ import annotations

import hashlib
import logging
import os
import socket
import subprocess
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from .config import MemoryConfig, is_tracked_document
from .document_store import atomic_write_bytes, atomic_write_text
from .exceptions import SyncError
from .hook_schema import SyncState
from .result import FailureKind, Outcome, StepResult

logger = logging.getLogger(__name__)

SYNC_STATE_FILE = ".sync-state.json"

PULL_TIMEOUT = 15
PUSH_TIMEOUT = 15
COMMIT_TIMEOUT = 10
INDEX_TIMEOUT = 5


@dataclass
class SyncReport:
    """Outcome of one pull or push."""

    direction: str  # "pull" or "push"
    pulled: bool = False
    copied_to_local: list[str] = field(default_factory=list)
    copied_to_repo: list[str] = field(default_factory=list)
    committed: bool = False
    pushed: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def copied(self) -> int:
        return len(self.copied_to_local) + len(self.copied_to_repo)


@dataclass
class SyncedFile:
    """A tracked document in the repository, for status output."""

    name: str
    age_minutes: int


@dataclass
class SyncStatus:
    """Repository summary for the status command."""

    repo_path: Path
    recent_commits: list[str] = field(default_factory=list)
    files: list[SyncedFile] = field(default_factory=list)
    error: str | None = None


def run_git(
    repo_path: Path,
    args: list[str],
    timeout: float = PULL_TIMEOUT,
    check: bool = True,
) -> subprocess.CompletedProcess[str]:
    """
    Run a git command inside ``repo_path``.

    Raises:
        SyncError: On a non-zero exit (when ``check``), timeout, or missing git
    """
    env = dict(os.environ)
    # Never block a hook on a credential prompt
    env["GIT_TERMINAL_PROMPT"] = "0"
    cmd = ["git", "-C", str(repo_path), *args]
    try:
        proc = subprocess.run(
            cmd,
            check=False,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
        )
    except subprocess.TimeoutExpired as e:
        raise SyncError(f"{' '.join(cmd)} timed out after {timeout}s") from e
    except OSError as e:
        raise SyncError(f"could not run git: {e}") from e

    if check and proc.returncode != 0:
        msg = f"{' '.join(cmd)} failed (exit {proc.returncode})"
        err = (proc.stderr or "").strip()
        if err:
            msg += f"\nstderr:\n{err}"
        raise SyncError(msg, returncode=proc.returncode)
    return proc


def find_repo(config: MemoryConfig | None = None) -> Path | None:
    """
    Locate the shared memory repository.

    An explicit ``repo_path`` (or SESSION_MEMORY_REPO) is used when it exists;
    otherwise the first configured candidate containing a .git directory.
    """
    config = config or MemoryConfig.load()

    if config.repo_path:
        explicit = Path(config.repo_path).expanduser()
        if explicit.exists():
            return explicit

    for candidate in config.repo_candidates:
        path = Path(candidate).expanduser()
        if (path / ".git").exists():
            return path

    return None


def tracked_files(directory: Path) -> list[str]:
    """Names of tracked documents present in ``directory``."""
    if not directory.is_dir():
        return []
    return sorted(
        p.name for p in directory.iterdir() if p.is_file() and is_tracked_document(p.name)
    )


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def copy_if_different(src: Path, dst: Path) -> bool:
    """
    Copy ``src`` over ``dst`` unless their bytes already match.

    Returns:
        True if a copy happened
    """
    if not src.exists():
        return False
    data = src.read_bytes()
    if dst.exists() and dst.read_bytes() == data:
        return False
    atomic_write_bytes(dst, data)
    return True


class SyncEngine:
    """Pull/push between one local memory directory and the shared repo."""

    def __init__(
        self,
        repo_path: Path | str,
        memory_dir: Path | str,
        hostname: str | None = None,
    ):
        self.repo_path = Path(repo_path)
        self.memory_dir = Path(memory_dir)
        self.hostname = hostname or socket.gethostname()

    # ------------------------------------------------------------------
    # Git
    # ------------------------------------------------------------------

    def rebase_in_progress(self) -> bool:
        git_dir = self.repo_path / ".git"
        return (git_dir / "rebase-merge").exists() or (git_dir / "rebase-apply").exists()

    def merge_in_progress(self) -> bool:
        proc = run_git(
            self.repo_path,
            ["rev-parse", "-q", "--verify", "MERGE_HEAD"],
            timeout=INDEX_TIMEOUT,
            check=False,
        )
        return proc.returncode == 0

    def unmerged_paths(self) -> list[str]:
        proc = run_git(
            self.repo_path,
            ["diff", "--name-only", "--diff-filter=U"],
            timeout=INDEX_TIMEOUT,
            check=False,
        )
        return [line.strip() for line in (proc.stdout or "").splitlines() if line.strip()]

    def is_settled(self) -> bool:
        """No rebase or merge in progress and no conflicted paths."""
        return not (self.rebase_in_progress() or self.merge_in_progress() or self.unmerged_paths())

    def abort_interrupted(self) -> bool:
        """
        Abort a rebase or merge left in progress.

        Returns:
            True if something was aborted
        """
        aborted = False
        if self.rebase_in_progress():
            run_git(self.repo_path, ["rebase", "--abort"], timeout=INDEX_TIMEOUT, check=False)
            aborted = True
        if self.merge_in_progress():
            run_git(self.repo_path, ["merge", "--abort"], timeout=INDEX_TIMEOUT, check=False)
            aborted = True
        return aborted

    def git_pull(self) -> tuple[bool, bool]:
        """
        Rebase-pull the repository. Failure is logged, never raised.

        A pull that stops on a conflict is aborted, leaving the working copy
        as it was before the pull.

        Returns:
            (pulled, conflicted)
        """
        try:
            if self.abort_interrupted():
                logger.debug("aborted a rebase left over from an earlier sync")
            run_git(
                self.repo_path,
                ["pull", "--rebase", "--autostash", "--quiet"],
                timeout=PULL_TIMEOUT,
            )
            return True, False
        except SyncError as e:
            logger.debug("git pull failed: %s", e)

        try:
            conflicted = self.abort_interrupted() or bool(self.unmerged_paths())
        except SyncError as e:
            logger.debug("could not inspect working copy: %s", e)
            return False, True
        if conflicted:
            logger.debug("pull stopped on a conflict and was aborted")
        return False, conflicted

    def reset_to_upstream(self) -> None:
        """
        Drop unpublished mirror commits and match the remote branch.

        The local memory directory holds the content those commits carried,
        so a push copies it back over the shared state.

        Raises:
            SyncError: If the reset fails
        """
        run_git(self.repo_path, ["reset", "--hard", "--quiet", "@{u}"], timeout=INDEX_TIMEOUT)

    def has_staged_changes(self) -> bool:
        proc = run_git(
            self.repo_path,
            ["diff", "--cached", "--quiet"],
            timeout=INDEX_TIMEOUT,
            check=False,
        )
        if proc.returncode not in (0, 1):
            raise SyncError(f"git diff --cached failed (exit {proc.returncode})", proc.returncode)
        return proc.returncode == 1

    def commit_message(self) -> str:
        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        return f"sync: {self.hostname} @ {timestamp}"

    def commit_and_push(self) -> tuple[bool, bool]:
        """
        Stage everything and, only if something changed, commit and push.

        Returns:
            (committed, pushed)

        Raises:
            SyncError: If staging, committing or pushing fails
        """
        run_git(self.repo_path, ["add", "-A"], timeout=INDEX_TIMEOUT)
        if not self.has_staged_changes():
            return False, False

        run_git(self.repo_path, ["commit", "-m", self.commit_message()], timeout=COMMIT_TIMEOUT)
        run_git(self.repo_path, ["push", "--quiet"], timeout=PUSH_TIMEOUT)
        return True, True

    # ------------------------------------------------------------------
    # Divergence bookkeeping
    # ------------------------------------------------------------------

    @property
    def state_path(self) -> Path:
        return self.memory_dir / SYNC_STATE_FILE

    def load_state(self) -> SyncState:
        if not self.state_path.exists():
            return SyncState()
        try:
            return SyncState.model_validate_json(self.state_path.read_text(encoding="utf-8"))
        except (ValueError, OSError):
            # pydantic.ValidationError is a ValueError
            return SyncState()

    def save_state(self, state: SyncState) -> None:
        state.updated_at = time.time()
        atomic_write_text(self.state_path, state.model_dump_json(indent=2))

    def _diverged(self, name: str, state: SyncState) -> bool:
        """Both copies moved away from the content recorded at the last sync."""
        base = state.hashes.get(name)
        local = self.memory_dir / name
        remote = self.repo_path / name
        if base is None or not local.exists() or not remote.exists():
            return False
        local_hash = content_hash(local.read_bytes())
        remote_hash = content_hash(remote.read_bytes())
        return local_hash != remote_hash and local_hash != base and remote_hash != base

    def _record_synced(self, state: SyncState) -> None:
        for name in tracked_files(self.memory_dir):
            local = self.memory_dir / name
            remote = self.repo_path / name
            if remote.exists():
                data = local.read_bytes()
                if data == remote.read_bytes():
                    state.hashes[name] = content_hash(data)
        self.save_state(state)

    # ------------------------------------------------------------------
    # Pull / push
    # ------------------------------------------------------------------

    def pull(self) -> StepResult[SyncReport]:
        """
        Bring repository documents into the local memory directory.

        The git pull is best effort; the copy step runs against whatever the
        working copy holds, unless the pull stopped on a conflict, in which
        case local documents are left untouched.
        """
        report = SyncReport(direction="pull")
        report.pulled, conflicted = self.git_pull()

        try:
            settled = not conflicted and self.is_settled()
        except SyncError as e:
            settled = False
            logger.debug("could not inspect working copy: %s", e)
        if not settled:
            return StepResult(
                Outcome.FAILED,
                value=report,
                failure=FailureKind.VERSION_CONTROL,
                detail="pull stopped on a conflict; local documents left unchanged",
            )

        try:
            self.memory_dir.mkdir(parents=True, exist_ok=True)
            state = self.load_state()
            for name in tracked_files(self.repo_path):
                if self._diverged(name, state):
                    report.warnings.append(
                        f"{name} changed both here and on another machine; the shared copy wins"
                    )
                if copy_if_different(self.repo_path / name, self.memory_dir / name):
                    report.copied_to_local.append(name)
            self._record_synced(state)
        except OSError as e:
            return StepResult.failed(FailureKind.FILESYSTEM, str(e))

        logger.debug("pull: %d documents updated locally", len(report.copied_to_local))
        return StepResult.ok(report)

    def push(self) -> StepResult[SyncReport]:
        """
        Publish local documents to the repository.

        Local documents that differ are copied into the repo, documents that
        only exist in the repo are copied down, and a commit is made only if
        the staged diff is non-empty.

        When the pull conflicts with unpublished mirror commits, the mirror
        is reset to the remote branch and the local documents are published
        over it.
        """
        if not self.memory_dir.is_dir():
            return StepResult.empty("no local memory directory")

        report = SyncReport(direction="push")
        report.pulled, conflicted = self.git_pull()

        try:
            if conflicted:
                self.reset_to_upstream()
                report.warnings.append(
                    "pull conflicted with unpublished commits; republishing local documents"
                )
            if not self.is_settled():
                raise SyncError("working copy has an unfinished rebase or merge")
        except SyncError as e:
            logger.debug("push abandoned: %s", e)
            return StepResult(
                Outcome.FAILED,
                value=report,
                failure=FailureKind.VERSION_CONTROL,
                detail=str(e),
            )

        try:
            state = self.load_state()
            local_files = tracked_files(self.memory_dir)
            for name in local_files:
                if self._diverged(name, state):
                    report.warnings.append(
                        f"{name} changed both here and on another machine; this copy wins"
                    )
                if copy_if_different(self.memory_dir / name, self.repo_path / name):
                    report.copied_to_repo.append(name)

            for name in tracked_files(self.repo_path):
                if name not in local_files:
                    if copy_if_different(self.repo_path / name, self.memory_dir / name):
                        report.copied_to_local.append(name)
        except OSError as e:
            return StepResult.failed(FailureKind.FILESYSTEM, str(e))

        try:
            report.committed, report.pushed = self.commit_and_push()
        except SyncError as e:
            logger.debug("push abandoned: %s", e)
            return StepResult(
                Outcome.FAILED,
                value=report,
                failure=FailureKind.VERSION_CONTROL,
                detail=str(e),
            )

        try:
            self._record_synced(state)
        except OSError as e:
            logger.debug("could not record sync state: %s", e)

        if not report.committed:
            return StepResult.empty("nothing to commit", value=report)
        return StepResult.ok(report)

    def status(self, now: float | None = None) -> SyncStatus:
        """Recent sync commits and tracked documents with their age."""
        now = now if now is not None else time.time()
        status = SyncStatus(repo_path=self.repo_path)

        try:
            log = run_git(self.repo_path, ["log", "--oneline", "-5"], timeout=INDEX_TIMEOUT)
            status.recent_commits = [line for line in log.stdout.strip().split("\n") if line]
        except SyncError as e:
            status.error = str(e)

        for name in tracked_files(self.repo_path):
            mtime = (self.repo_path / name).stat().st_mtime
            status.files.append(SyncedFile(name=name, age_minutes=int((now - mtime) // 60)))
        return status


def format_age(minutes: int) -> str:
    return f"{minutes}m ago" if minutes < 60 else f"{minutes // 60}h ago"


__all__ = [
    "SYNC_STATE_FILE",
    "SyncEngine",
    "SyncReport",
    "SyncStatus",
    "SyncedFile",
    "content_hash",
    "copy_if_different",
    "find_repo",
    "format_age",
    "run_git",
    "tracked_files",
]
