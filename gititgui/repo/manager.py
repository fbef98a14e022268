# -*- coding: utf-8 -*-
"""
Repository lifecycle manager.

Owns the open repository handle (through the git adapter), the cached
Git-LFS flag and author signature, and the refresh state machine.
Failures are logged and reported as bool/Result values; nothing raises
out of the public operations. Fatal LFS failures are reported as an
LFS_FATAL result and handed to the on_fatal hook, which the embedding
application uses to shut down.
"""

from __future__ import annotations

import os
import subprocess
import threading
from concurrent.futures import Future
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

from gititgui.core import log, shell
from gititgui.core.result import AppError, ErrorCode, Result
from gititgui.core.settings import AppSettings
from gititgui.git.client import GitClient, SCOPE_GLOBAL, SCOPE_LOCAL
from gititgui.repo.events import RepoEvents
from gititgui.repo.probe import RepoProbe
from gititgui.repo.state import BranchState, ChangeState


class GitCommandError(Exception):
    """An adapter call reported failure; message is git's last error."""


@dataclass
class Signature:
    """Author identity used for commits."""

    name: str = ""
    email: str = ""

    @property
    def is_complete(self) -> bool:
        return bool(self.name) and bool(self.email)


class RepoManager:
    """
    Lifecycle manager for a single working copy.

    Operations other than refresh() are synchronous and must not be called
    concurrently on one instance.
    """

    def __init__(
        self,
        client: Optional[GitClient] = None,
        settings: Optional[AppSettings] = None,
        branch_refresher: Optional[Callable[[bool], bool]] = None,
        change_refresher: Optional[Callable[[], bool]] = None,
        on_fatal: Optional[Callable[[AppError], None]] = None,
        settings_saver: Optional[Callable[[AppSettings], object]] = None,
    ):
        self.client = client if client is not None else GitClient()
        self.settings = settings if settings is not None else AppSettings()
        self.events = RepoEvents()
        self.branches = BranchState(self.client)
        self.changes = ChangeState(self.client)
        self._branch_refresher = branch_refresher or self.branches.refresh
        self._change_refresher = change_refresher or self.changes.refresh
        self._on_fatal = on_fatal
        self._settings_saver = settings_saver

        self.lfs_enabled = False
        self.signature = Signature()
        # why the last bool-returning operation failed
        self.last_error: Optional[AppError] = None

        self._refresh_lock = threading.Lock()
        self._is_refreshing = False

    # --- State ---

    @property
    def repo_path(self) -> Optional[str]:
        return self.client.repo_path

    @property
    def is_open(self) -> bool:
        return self.client.repo_path is not None

    @property
    def is_refreshing(self) -> bool:
        with self._refresh_lock:
            return self._is_refreshing

    def _probe(self, repo_root: Optional[str] = None) -> RepoProbe:
        return RepoProbe(repo_root or self.client.repo_path)

    def _require_repo(self, action: str) -> bool:
        if self.is_open:
            return True
        log.warning(f"Cannot {action}: no repository open")
        return False

    def _same_repo(self, path: str) -> bool:
        current = self.client.repo_path
        if not current:
            return False
        # the adapter stores git's toplevel, which has symlinks resolved
        return _canonical(path) == _canonical(current)

    def _record_error(self, code: str, message: str, details: str = "") -> None:
        self.last_error = AppError(
            code=code,
            message=message,
            details=details,
            meta={"repo_path": self.client.repo_path},
        )

    # --- Open / close ---

    def open_repo(self, path: Optional[str], check_for_setting_errors: bool = False) -> bool:
        """
        Open the repository at path, or close the current one if path is empty.

        Re-opening the current path is a refresh: the handle is re-read, but
        .gitignore creation, history and signature loading are skipped.

        Args:
            path: Repository root, or empty/None to close
            check_for_setting_errors: Warn when the local signature is unset

        Returns:
            bool: True if the repository is open and refreshed
        """
        if not path:
            self.dispose()
            self.last_error = None
            return True

        if not self.settings.merge_diff_tool_installed():
            log.error(
                "Merge/Diff tool is not installed!\n"
                "Go to app settings and make sure your selected diff tool "
                "is installed.",
                alert=True,
            )
            self._record_error(
                ErrorCode.CONFIGURATION, "Merge/Diff tool is not installed"
            )
            return False

        refresh_mode = self._same_repo(path)

        try:
            if refresh_mode:
                self.client.close()
            if not self.client.open(path):
                raise GitCommandError(self.client.last_error)

            self.lfs_enabled = self.is_lfs_repo(repair_mode=False)

            if not refresh_mode:
                probe = self._probe()
                if probe.ensure_gitignore():
                    log.warning(
                        "No '.gitignore' file exists.\nAuto creating one!",
                        alert=True,
                    )

                self._add_to_history(self.client.repo_path)

                name, email = self.client.get_signature(SCOPE_LOCAL)
                self.signature = Signature(name, email)
                if check_for_setting_errors and not self.signature.is_complete:
                    log.warning(
                        "Credentials not set, please go to the settings tab!",
                        alert=True,
                    )
        except (GitCommandError, OSError, subprocess.SubprocessError) as e:
            log.error(f"Failed to open repository {path}: {e}")
            self.dispose()
            self._record_error(
                ErrorCode.OPEN_FAILED, f"Failed to open repository {path}", str(e)
            )
            return False

        self.last_error = None
        return self._refresh_internal(refresh_mode)

    def close(self) -> bool:
        return self.open_repo(None)

    def dispose(self) -> None:
        """Tear down the repository handle; safe to call repeatedly."""
        self.client.close()
        self.lfs_enabled = False
        self.signature = Signature()
        self.branches.clear()
        self.changes.clear()

    def _add_to_history(self, repo_root: str) -> None:
        self.settings.add_repo_to_history(repo_root)
        if self._settings_saver is not None:
            self._settings_saver(self.settings)

    # --- Refresh ---

    def _try_begin_refresh(self) -> bool:
        with self._refresh_lock:
            if self._is_refreshing:
                return False
            self._is_refreshing = True
            return True

    def _end_refresh(self) -> None:
        with self._refresh_lock:
            self._is_refreshing = False

    def refresh(self, use_new_thread: bool = False) -> Optional[Union[bool, Future]]:
        """
        Re-open the current repository to pick up on-disk changes.

        A call made while another refresh is in flight does nothing.

        Args:
            use_new_thread: Run on a worker thread and fire refreshing(True/False)

        Returns:
            Synchronous: bool result, or None if skipped.
            Threaded: Future resolving to the bool result (None if the
            worker found another refresh running), or None if skipped.
        """
        if self.is_refreshing:
            return None

        if not self._require_repo("refresh"):
            return None

        path = self.client.repo_path

        if use_new_thread:
            future = Future()
            # a running future reports cancel() as False
            future.set_running_or_notify_cancel()
            worker = threading.Thread(
                target=self._refresh_worker,
                args=(path, future),
                name="gititgui-refresh",
                daemon=True,
            )
            worker.start()
            return future

        if not self._try_begin_refresh():
            return None
        try:
            return self.open_repo(path)
        finally:
            self._end_refresh()

    def _refresh_worker(self, path: str, future: Future) -> None:
        # a second dispatch may have raced us here
        if not self._try_begin_refresh():
            future.set_result(None)
            return

        self.events.emit_refreshing(True)
        result = False
        try:
            result = self.open_repo(path)
        except Exception as e:
            log.error(f"Background refresh failed: {e}")
        finally:
            self._end_refresh()
            self.events.emit_refreshing(False)
            future.set_result(result)

    def _refresh_internal(self, refresh_mode: bool) -> bool:
        if not self._branch_refresher(refresh_mode):
            return False
        if not self._change_refresher():
            return False
        self.events.emit_refreshed()
        return True

    # --- Clone ---

    def clone(
        self,
        url: str,
        destination: str,
        write_username: Optional[Callable] = None,
        write_password: Optional[Callable] = None,
    ) -> Result[str]:
        """
        Clone url into a new folder under destination.

        The callbacks receive a writable stream and are only called if git
        prompts for credentials.

        Returns:
            Result whose value is the cloned repository path
        """
        try:
            result = self.client.clone(url, destination, write_username, write_password)
            if not result.ok:
                raise GitCommandError(self.client.last_error)
            if not result.value:
                raise GitCommandError(f"git did not report a clone folder for {url}")
            repo_path = os.path.join(destination, result.value)
            self.lfs_enabled = self._detect_lfs(repo_path, repair_mode=True)
        except (GitCommandError, OSError, subprocess.SubprocessError) as e:
            log.error(f"Clone error: {e}", alert=True)
            return Result.failure(ErrorCode.CLONE_FAILED, "Clone failed", details=str(e))

        return Result.success(repo_path)

    # --- Signature ---

    def update_signature(self, name: str, email: str) -> bool:
        """Write the global author identity and cache it on success."""
        try:
            result = self.client.set_signature(SCOPE_GLOBAL, name, email)
            if not result.ok:
                raise GitCommandError(self.client.last_error)
        except (GitCommandError, OSError, subprocess.SubprocessError) as e:
            log.error(f"Update Signature: {e}", alert=True)
            self._record_error(
                ErrorCode.SIGNATURE_FAILED, "Failed to update signature", str(e)
            )
            return False

        self.signature = Signature(name, email)
        self.last_error = None
        return True

    # --- Git LFS ---

    def is_lfs_repo(self, repair_mode: bool = False) -> bool:
        """
        Classify the open repository as LFS-enabled or not.

        Args:
            repair_mode: Accept a .gitattributes LFS directive alone, for
                fresh clones whose hooks are not installed yet

        Returns:
            bool: True if LFS is enabled
        """
        if not self.is_open:
            return False
        return self._detect_lfs(self.client.repo_path, repair_mode)

    def _detect_lfs(self, repo_root: str, repair_mode: bool) -> bool:
        probe = self._probe(repo_root)
        has_attributes = probe.has_attributes()

        if repair_mode and has_attributes:
            return probe.attributes_declare_lfs()

        if has_attributes and probe.has_lfs_dir() and probe.has_pre_push_hook():
            if probe.hook_has_lfs_marker():
                self.lfs_enabled = True
                return True
            # hook was replaced by something else; cached flag is stale
            self.lfs_enabled = False

        return False

    def add_lfs_support(self, add_default_extensions: bool = True) -> Result:
        """
        Install Git-LFS into the open repository.

        Args:
            add_default_extensions: Track the configured default patterns

        Returns:
            Result; failure code LFS_FATAL means the repository may be left
            half-configured
        """
        if not self._require_repo("add Git-LFS support"):
            return Result.failure(ErrorCode.NO_REPO, "No repository open")

        if self.lfs_enabled:
            log.warning("Git LFS already enabled on repo", alert=True)
            return Result.failure(
                ErrorCode.LFS_ALREADY_ENABLED, "Git LFS already enabled on repo"
            )

        probe = self._probe()
        try:
            if not probe.has_lfs_dir():
                if not self.client.lfs_install().ok:
                    raise GitCommandError(self.client.last_error)
                if not probe.has_lfs_dir():
                    raise GitCommandError("Git-LFS install failed! (Try manually)")

            probe.ensure_attributes()

            if add_default_extensions:
                for pattern in self.settings.default_lfs_extensions:
                    if not self.client.lfs_track(pattern).ok:
                        raise GitCommandError(self.client.last_error)
        except (GitCommandError, OSError, subprocess.SubprocessError) as e:
            return self._fatal("Add Git-LFS Error", e)

        self.lfs_enabled = True
        log.info(f"Git LFS enabled for {self.client.repo_path}")
        return Result.success(True)

    def remove_lfs_support(self, rebase: bool = False) -> Result:
        """
        Untrack every LFS pattern and uninstall Git-LFS from the open repository.

        Args:
            rebase: Reserved. History is never rewritten; LFS pointer files
                already committed stay as they are.

        Returns:
            Result; failure code LFS_FATAL means the repository may be left
            half-configured
        """
        if not self._require_repo("remove Git-LFS support"):
            return Result.failure(ErrorCode.NO_REPO, "No repository open")

        if not self.lfs_enabled:
            log.warning("Git LFS is not enabled on repo", alert=True)
            return Result.failure(
                ErrorCode.LFS_NOT_ENABLED, "Git LFS is not enabled on repo"
            )

        probe = self._probe()
        try:
            for pattern in probe.lfs_patterns():
                if not self.client.lfs_untrack(pattern).ok:
                    raise GitCommandError(self.client.last_error)

            if not self.client.lfs_uninstall().ok:
                raise GitCommandError(self.client.last_error)
            probe.remove_lfs_artifacts()
        except (GitCommandError, OSError, subprocess.SubprocessError) as e:
            return self._fatal("Remove Git-LFS Error", e)

        if rebase:
            log.warning("Rewriting history to drop LFS pointers is not supported")

        self.lfs_enabled = False
        log.info(f"Git LFS removed from {self.client.repo_path}")
        return Result.success(True)

    def _fatal(self, message: str, exc: Exception) -> Result:
        log.error(f"{message}: {exc}", alert=True)
        result = Result.failure(
            ErrorCode.LFS_FATAL,
            message,
            details=str(exc),
            meta={"repo_path": self.client.repo_path},
        )
        if self._on_fatal is not None:
            self._on_fatal(result.error)
        return result

    # --- Maintenance ---

    def unpacked_object_count(self) -> Tuple[int, Optional[str]]:
        """
        Loose object count and their size.

        Returns:
            tuple: (count, human readable size), or (-1, None) on failure
        """
        if not self._require_repo("count objects"):
            return -1, None
        result = self.client.unpacked_object_count()
        if not result.ok:
            log.warning(f"Failed to count objects: {self.client.last_error}", alert=True)
            return -1, None
        return result.value

    def optimize(self) -> bool:
        """Run git gc; failure is only a warning."""
        if not self._require_repo("optimize"):
            return False
        if not self.client.garbage_collect().ok:
            log.warning(f"Failed to optimize: {self.client.last_error}", alert=True)
            return False
        return True

    # --- External tools ---

    def open_history_tool(self) -> bool:
        """
        Launch the history viewer, wait for it to exit, then refresh.

        Returns:
            bool: True if the tool ran
        """
        if not self._require_repo("open history tool"):
            return False

        command = shell.history_tool_command(self.settings.history_tool)
        if command is None:
            log.warning(
                f"History tool '{self.settings.history_tool}' is not available "
                f"on {shell.platform_name()}",
                alert=True,
            )
            return False

        try:
            subprocess.run(command, cwd=self.client.repo_path, check=False)
        except OSError as e:
            log.error(f"Failed to start history tool: {e}", alert=True)
            return False

        # the tool may have changed refs
        self.refresh()
        return True

    def open_file(self, file_path: str) -> bool:
        return self._launch(shell.open_file_command(file_path), "open file")

    def open_file_location(self, file_path: str) -> bool:
        return self._launch(
            shell.open_location_command(file_path), "open folder location"
        )

    def _launch(self, command, action: str) -> bool:
        if command is None:
            log.warning(
                f"Failed to {action}: unsupported platform {shell.platform_name()}",
                alert=True,
            )
            return False
        try:
            subprocess.Popen(command)
        except OSError as e:
            log.error(f"Failed to {action}: {e}", alert=True)
            return False
        return True


def _canonical(path: str) -> str:
    return os.path.normcase(os.path.realpath(os.path.abspath(path)))
