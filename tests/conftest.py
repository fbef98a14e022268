# -*- coding: utf-8 -*-
"""
Pytest configuration and fixtures for GitItGUI tests
"""

import os
import pytest

from gititgui.core import log
from gititgui.core.settings import AppSettings
from gititgui.git.client import CmdResult, FileStatus, STATUS_MODIFIED


class FakeGitClient:
    """
    In-memory stand-in for GitClient.

    Mimics the on-disk effects of git-lfs (hook, lfs dir, .gitattributes
    rules) so the manager's filesystem probing sees realistic state.
    """

    def __init__(self):
        self.repo_path = None
        self.last_error = ""
        self.calls = []
        self.fail = set()
        self.local_signature = ("", "")
        self.global_signature = ("", "")
        self.install_creates_lfs_dir = True
        self.clone_dir_name = "cloned"
        self.clone_attributes = None

    def _result(self, op, value=None):
        self.calls.append(op)
        if op in self.fail:
            self.last_error = f"{op} failed"
            return CmdResult(False, "", self.last_error, error_code="GIT_ERROR")
        return CmdResult(True, "", "", value=value)

    def is_open(self):
        return self.repo_path is not None

    def open(self, path):
        self.calls.append("open")
        if "open" in self.fail or not os.path.isdir(os.path.join(path, ".git")):
            self.last_error = f"Not a git repository: {path}"
            self.repo_path = None
            return False
        # git reports the toplevel with symlinks resolved
        self.repo_path = os.path.realpath(os.path.abspath(path))
        return True

    def close(self):
        self.calls.append("close")
        self.repo_path = None

    def clone(self, url, destination, write_username=None, write_password=None):
        result = self._result("clone", value=self.clone_dir_name)
        if result.ok:
            repo = os.path.join(destination, self.clone_dir_name)
            os.makedirs(os.path.join(repo, ".git"), exist_ok=True)
            if self.clone_attributes is not None:
                with open(os.path.join(repo, ".gitattributes"), "w") as f:
                    f.write(self.clone_attributes)
        return result

    def get_signature(self, scope="local"):
        self.calls.append(f"get_signature:{scope}")
        if scope == "global":
            return self.global_signature
        return self.local_signature

    def set_signature(self, scope, name, email):
        result = self._result(f"set_signature:{scope}")
        if result.ok:
            self.global_signature = (name, email)
        return result

    def _git_path(self, *parts):
        return os.path.join(self.repo_path, ".git", *parts)

    def _attributes_path(self):
        return os.path.join(self.repo_path, ".gitattributes")

    def lfs_install(self):
        result = self._result("lfs_install")
        if result.ok and self.install_creates_lfs_dir:
            os.makedirs(self._git_path("lfs"), exist_ok=True)
            os.makedirs(self._git_path("hooks"), exist_ok=True)
            with open(self._git_path("hooks", "pre-push"), "w") as f:
                f.write("#!/bin/sh\ngit lfs pre-push \"$@\"\n# git-lfs\n")
        return result

    def lfs_uninstall(self):
        return self._result("lfs_uninstall")

    def lfs_track(self, pattern):
        result = self._result(f"lfs_track:{pattern}")
        if result.ok:
            with open(self._attributes_path(), "a") as f:
                f.write(f"{pattern} filter=lfs diff=lfs merge=lfs -text\n")
        return result

    def lfs_untrack(self, pattern):
        result = self._result(f"lfs_untrack:{pattern}")
        if result.ok:
            with open(self._attributes_path()) as f:
                lines = f.readlines()
            with open(self._attributes_path(), "w") as f:
                f.writelines(l for l in lines if not l.startswith(pattern + " "))
        return result

    def garbage_collect(self):
        return self._result("gc")

    def unpacked_object_count(self):
        return self._result("count_objects", value=(12, "48.00 KiB"))

    def list_branches(self):
        return self._result("list_branches", value=["main", "feature"])

    def current_branch(self):
        return "main"

    def status_porcelain(self):
        return self._result(
            "status",
            value=[FileStatus("a.txt", " ", "M", STATUS_MODIFIED, False, False)],
        )


@pytest.fixture
def fake_client():
    return FakeGitClient()


@pytest.fixture
def diff_tool(tmp_path):
    """A file standing in for an installed merge/diff tool."""
    tool = tmp_path / "tools" / "meld"
    tool.parent.mkdir()
    tool.write_text("")
    return tool


@pytest.fixture
def settings(diff_tool):
    return AppSettings(
        merge_diff_tool_path=str(diff_tool),
        default_lfs_extensions=["*.psd", "*.png"],
    )


@pytest.fixture
def temp_repo(tmp_path):
    """Create a directory that looks like a git working copy"""
    repo_path = tmp_path / "test_repo"
    (repo_path / ".git" / "hooks").mkdir(parents=True)
    return repo_path


@pytest.fixture
def log_records():
    """Capture (level, message, alert) tuples emitted through core.log"""
    records = []

    def listener(level, message, alert):
        records.append((level, message, alert))

    log.add_listener(listener)
    yield records
    log.remove_listener(listener)
