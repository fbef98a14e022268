# -*- coding: utf-8 -*-
"""
GitItGUI Git Client Module
Process-invocation adapter over git and git-lfs using subprocess.

Every mutating call returns a CmdResult; the most recent failure message
is also kept in ``GitClient.last_error`` for callers that only track a
boolean outcome.
"""

import glob
import os
import re
import subprocess
from dataclasses import dataclass
from typing import List, Optional
from gititgui.core import log


# Config scopes understood by get_signature/set_signature
SCOPE_LOCAL = "local"
SCOPE_GLOBAL = "global"
SCOPE_SYSTEM = "system"
_SCOPES = (SCOPE_LOCAL, SCOPE_GLOBAL, SCOPE_SYSTEM)

# Status kinds for porcelain parsing
STATUS_MODIFIED = "MODIFIED"
STATUS_ADDED = "ADDED"
STATUS_DELETED = "DELETED"
STATUS_RENAMED = "RENAMED"
STATUS_COPIED = "COPIED"
STATUS_UNTRACKED = "UNTRACKED"
STATUS_CONFLICT = "CONFLICT"
STATUS_UNKNOWN = "UNKNOWN"

_CLONING_INTO_RE = re.compile(r"Cloning into '(?P<name>[^']+)'")
_COUNT_OBJECTS_RE = re.compile(r"(?P<count>\d+)\s+objects?,\s*(?P<size>.+)")


@dataclass
class FileStatus:
    """Structured representation of a porcelain status entry."""

    path: str
    x: str
    y: str
    kind: str
    is_staged: bool
    is_untracked: bool


@dataclass
class CmdResult:
    """Simple command result wrapper. `value` carries parsed output."""

    ok: bool
    stdout: str
    stderr: str
    error_code: Optional[str] = None
    value: Optional[object] = None


def _find_git_executable():
    """
    Find git executable, checking common Windows locations.

    Returns:
        str: Path to git.exe, 'git' if on PATH, or None
    """
    common_paths = [
        r"C:\Program Files\Git\cmd\git.exe",
        r"C:\Program Files (x86)\Git\cmd\git.exe",
        os.path.expandvars(r"%LOCALAPPDATA%\Programs\Git\cmd\git.exe"),
        os.path.expandvars(
            r"%LOCALAPPDATA%\GitHubDesktop\app-*\resources\app"
            r"\git\cmd\git.exe"
        ),
    ]

    for path in common_paths:
        if "*" in path:
            matches = glob.glob(path)
            if matches:
                path = matches[0]
        if os.path.isfile(path):
            log.info(f"Found git at: {path}")
            return path

    # Fallback to PATH
    try:
        result = subprocess.run(
            ["git", "--version"],
            capture_output=True,
            text=True,
            timeout=2
        )
        if result.returncode == 0:
            return "git"
    except (FileNotFoundError, subprocess.TimeoutExpired):
        pass
    return None


def _humanish_name(url):
    """Directory name git derives from a clone URL."""
    name = (url or "").rstrip("/\\")
    if name.endswith(".git"):
        name = name[:-4]
    name = re.split(r"[/\\:]", name)[-1]
    return name or None


class GitClient:
    """
    Git adapter holding at most one open repository.

    The open repository is identified by its absolute root path.
    """

    def __init__(self):
        """Initialize GitClient"""
        self._git_available = None
        self._git_version = None
        self._git_exe = None
        self.repo_path = None
        self.last_error = ""

    def _get_git_command(self):
        """
        Get the git command to use.

        Returns:
            str: Git command/path
        """
        if self._git_exe is None:
            self._git_exe = _find_git_executable()
        return self._git_exe if self._git_exe else "git"

    def is_git_available(self):
        """
        Check whether git is available on PATH

        Returns:
            bool: True if git command is available
        """
        if self._git_available is not None:
            return self._git_available

        git_cmd = self._get_git_command()

        try:
            result = subprocess.run(
                [git_cmd, "--version"],
                capture_output=True,
                text=True,
                timeout=10
            )
            self._git_available = result.returncode == 0
            if self._git_available:
                self._git_version = result.stdout.strip()
                log.info(f"Git available: {self._git_version}")
        except (FileNotFoundError, subprocess.TimeoutExpired):
            self._git_available = False
            log.warning("Git not found on PATH or common locations")

        return self._git_available

    def git_version(self):
        """
        Get git version string

        Returns:
            str | None: e.g. "git version 2.35.1", or None without git
        """
        if not self.is_git_available():
            return None
        return self._git_version

    def is_open(self):
        return self.repo_path is not None

    # --- Repository handle ---

    def get_repo_root(self, path):
        """
        Get the root directory of a git repository.
        Returns None if path is not inside a git repo.

        Args:
            path: Directory path to check (string)

        Returns:
            str | None: Repository root path or None if not a git repo
        """
        if not self.is_git_available():
            self.last_error = "Git not available"
            log.warning("Git not available for repo root check")
            return None

        if not path or not os.path.isdir(path):
            self.last_error = f"Path does not exist: {path}"
            log.warning(f"Invalid path for repo check: {path}")
            return None

        result = self._run_command(
            [self._get_git_command(), "-C", path, "rev-parse", "--show-toplevel"],
            timeout=15,
        )
        if result.ok and result.stdout:
            # git returns forward slashes on Windows
            repo_root = os.path.normpath(result.stdout)
            log.debug(f"Found repo root: {repo_root}")
            return repo_root

        self.last_error = result.stderr or f"Not a git repository: {path}"
        return None

    def open(self, path):
        """
        Open the repository containing path, replacing any open one.

        Returns:
            bool: True if a repository handle is now open
        """
        repo_root = self.get_repo_root(path)
        if repo_root is None:
            self.repo_path = None
            return False
        self.repo_path = repo_root
        self.last_error = ""
        log.debug(f"Opened repository: {repo_root}")
        return True

    def close(self):
        """Drop the open repository handle (no-op when none is open)."""
        if self.repo_path is not None:
            log.debug(f"Closed repository: {self.repo_path}")
        self.repo_path = None

    def clone(self, url, destination, write_username=None,
              write_password=None, timeout=1800):
        """
        Clone url into a new subdirectory of destination.

        Credential callbacks are only invoked if git prompts for them.
        On success `value` holds the subdirectory name git reported.

        Args:
            url: Remote URL
            destination: Existing parent directory
            write_username: callable(stream) writing the username
            write_password: callable(stream) writing the password

        Returns:
            CmdResult
        """
        if not self.is_git_available():
            return self._fail("Git not available", "NO_GIT")

        url = (url or "").strip()
        destination = (destination or "").strip()
        if not url or not destination:
            return self._fail("Missing clone URL or destination", "BAD_ARGS")

        dest_abs = os.path.abspath(destination)
        try:
            os.makedirs(dest_abs, exist_ok=True)
        except OSError as e:
            return self._fail(str(e), "OS_ERROR")

        args = [self._get_git_command(), "-C", dest_abs, "clone", "--progress", url]

        if write_username is None and write_password is None:
            env = dict(os.environ, GIT_TERMINAL_PROMPT="0")
            result = self._run_command(args, timeout=timeout, env=env)
        else:
            from gititgui.git.askpass import AskPassServer

            with AskPassServer(write_username, write_password) as askpass:
                result = self._run_command(
                    args, timeout=timeout, env=askpass.environ()
                )

        if not result.ok:
            stderr_safe = result.stderr.replace(url, "<repo>")
            log.error(f"Git clone failed: {stderr_safe}")
            return self._fail(stderr_safe, result.error_code or "CLONE_FAILED")

        match = _CLONING_INTO_RE.search(result.stderr)
        name = match.group("name") if match else _humanish_name(url)
        log.info(f"Repository cloned to: {os.path.join(dest_abs, name or '')}")
        result.value = name
        return result

    # --- Signature ---

    def get_signature(self, scope=SCOPE_LOCAL):
        """
        Read user.name and user.email from the given config scope.

        Unset keys come back as empty strings.

        Returns:
            tuple[str, str]: (name, email)
        """
        name = self._get_config("user.name", scope)
        email = self._get_config("user.email", scope)
        return name, email

    def set_signature(self, scope, name, email):
        """Write user.name and user.email to the given config scope."""
        result = self._set_config("user.name", name or "", scope)
        if not result.ok:
            return result
        return self._set_config("user.email", email or "", scope)

    def _config_args(self, scope):
        if scope not in _SCOPES:
            raise ValueError(f"Unknown config scope: {scope}")
        args = [self._get_git_command()]
        if self.repo_path:
            args += ["-C", self.repo_path]
        return args + ["config", f"--{scope}"]

    def _get_config(self, key, scope):
        if scope == SCOPE_LOCAL and not self.repo_path:
            return ""
        result = self._run_command(self._config_args(scope) + ["--get", key], timeout=10)
        # exit 1 means the key is unset
        return result.stdout if result.ok else ""

    def _set_config(self, key, value, scope):
        if scope == SCOPE_LOCAL and not self.repo_path:
            return self._fail("No repository open", "NO_REPO")
        result = self._run_command(self._config_args(scope) + [key, value], timeout=10)
        if not result.ok:
            return self._fail(result.stderr or f"git config {key} failed", "CONFIG_FAILED")
        return result

    # --- Git LFS ---

    def lfs_install(self):
        """Install LFS hooks and filters into the open repository."""
        return self._run_repo_command(["lfs", "install", "--local"], timeout=60)

    def lfs_uninstall(self):
        """Remove LFS hooks and filters from the open repository."""
        return self._run_repo_command(["lfs", "uninstall", "--local"], timeout=60)

    def lfs_track(self, pattern):
        return self._run_repo_command(["lfs", "track", pattern], timeout=30)

    def lfs_untrack(self, pattern):
        return self._run_repo_command(["lfs", "untrack", pattern], timeout=30)

    # --- Maintenance ---

    def garbage_collect(self):
        return self._run_repo_command(["gc"], timeout=600)

    def unpacked_object_count(self):
        """
        Count loose objects with `git count-objects -H`.

        Returns:
            CmdResult: `value` is (count: int, size: str) on success
        """
        result = self._run_repo_command(["count-objects", "-H"], timeout=60)
        if not result.ok:
            return result
        match = _COUNT_OBJECTS_RE.search(result.stdout)
        if match is None:
            return self._fail(
                f"Unexpected count-objects output: {result.stdout}", "PARSE_ERROR"
            )
        result.value = (int(match.group("count")), match.group("size").strip())
        return result

    # --- Branches and status ---

    def current_branch(self):
        """
        Get the current branch name.
        If HEAD is detached, returns "(detached SHA)".

        Returns:
            str: Branch name, "(detached SHA)" or "(unknown)"
        """
        result = self._run_repo_command(["branch", "--show-current"], timeout=15)
        if result.ok and result.stdout:
            return result.stdout

        result = self._run_repo_command(["rev-parse", "--short", "HEAD"], timeout=15)
        if result.ok and result.stdout:
            return f"(detached {result.stdout})"

        return "(unknown)"

    def list_branches(self):
        """
        List local branch names.

        Returns:
            CmdResult: `value` is list[str]
        """
        result = self._run_repo_command(
            ["for-each-ref", "--format=%(refname:short)", "refs/heads/"],
            timeout=15,
        )
        if result.ok:
            result.value = [b for b in result.stdout.splitlines() if b.strip()]
        return result

    def _classify_status_kind(self, x_code, y_code):
        """Classify porcelain XY codes into a status kind."""
        if x_code == "?" and y_code == "?":
            return STATUS_UNTRACKED

        if "U" in (x_code, y_code):
            return STATUS_CONFLICT

        if (x_code == "A" and y_code == "D") or (
            x_code == "D" and y_code == "A"
        ):
            return STATUS_CONFLICT

        if "R" in (x_code, y_code):
            return STATUS_RENAMED

        if "C" in (x_code, y_code):
            return STATUS_COPIED

        if "D" in (x_code, y_code):
            return STATUS_DELETED

        if "A" in (x_code, y_code):
            return STATUS_ADDED

        if "M" in (x_code, y_code) or "T" in (x_code, y_code):
            return STATUS_MODIFIED

        return STATUS_UNKNOWN

    def status_porcelain(self):
        """
        Return working tree status of the open repository.

        Returns:
            CmdResult: `value` is list[FileStatus]
        """
        # porcelain output is whitespace-significant, so no strip here
        result = self._run_repo_command(
            ["status", "--porcelain=v1", "-z"], timeout=20, strip=False
        )
        if not result.ok:
            return result

        entries: List[FileStatus] = []
        tokens = [t for t in result.stdout.split("\0") if t]
        idx = 0

        while idx < len(tokens):
            token = tokens[idx]
            idx += 1

            if len(token) < 3:
                continue

            x_code = token[0]
            y_code = token[1]
            path_part = token[3:] if len(token) > 3 else ""

            rename_target = None
            if (x_code in ("R", "C") or y_code in ("R", "C")) and (
                idx < len(tokens)
            ):
                rename_target = tokens[idx]
                idx += 1

            display_path = path_part
            if rename_target:
                display_path = f"{path_part} -> {rename_target}"

            entries.append(FileStatus(
                path=display_path,
                x=x_code,
                y=y_code,
                kind=self._classify_status_kind(x_code, y_code),
                is_staged=x_code not in (" ", "?"),
                is_untracked=(x_code == "?" and y_code == "?"),
            ))

        result.value = entries
        return result

    # --- Process plumbing ---

    def _fail(self, message, error_code):
        self.last_error = message
        return CmdResult(False, "", message, error_code=error_code)

    def _run_repo_command(self, git_args, timeout=60, strip=True):
        """Run a git subcommand against the open repository."""
        if not self.repo_path:
            return self._fail("No repository open", "NO_REPO")
        if not self.is_git_available():
            return self._fail("Git not available", "NO_GIT")

        args = [self._get_git_command(), "-C", self.repo_path] + list(git_args)
        result = self._run_command(args, timeout=timeout, strip=strip)
        if not result.ok:
            self.last_error = (
                result.stderr.strip()
                or f"git {' '.join(git_args[:2])} failed"
            )
            if result.error_code is None:
                result.error_code = "GIT_ERROR"
        return result

    def _run_command(self, args, timeout=60, env=None, strip=True):
        """Run a git command and wrap result."""
        cmd_result = CmdResult(
            ok=False,
            stdout="",
            stderr="",
            error_code=None,
        )

        try:
            proc = subprocess.run(
                args,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=env,
            )
            stdout = proc.stdout or ""
            cmd_result.stdout = stdout.strip() if strip else stdout
            cmd_result.stderr = (proc.stderr or "").strip()
            cmd_result.ok = proc.returncode == 0
        except subprocess.TimeoutExpired:
            cmd_result.stderr = "Command timed out"
            cmd_result.error_code = "TIMEOUT"
        except OSError as e:
            cmd_result.stderr = str(e)
            cmd_result.error_code = "OS_ERROR"

        return cmd_result
