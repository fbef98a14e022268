# -*- coding: utf-8 -*-
"""
Tests for repo.probe module - marker file classification
"""

from pathlib import Path
from unittest.mock import patch

from gititgui.repo.probe import RepoProbe


def test_empty_repo(temp_repo):
    probe = RepoProbe(temp_repo)

    assert not probe.has_gitignore()
    assert not probe.has_attributes()
    assert not probe.has_lfs_dir()
    assert not probe.has_pre_push_hook()
    assert not probe.hook_has_lfs_marker()
    assert not probe.attributes_declare_lfs()
    assert probe.lfs_patterns() == []


def test_ensure_files_only_create_once(temp_repo):
    probe = RepoProbe(str(temp_repo))
    (temp_repo / ".gitattributes").write_text("*.txt text\n")

    assert probe.ensure_gitignore() is True
    assert probe.ensure_gitignore() is False
    assert probe.ensure_attributes() is False
    assert (temp_repo / ".gitattributes").read_text() == "*.txt text\n"


def test_lfs_patterns(temp_repo):
    (temp_repo / ".gitattributes").write_text(
        "*.psd filter=lfs diff=lfs merge=lfs -text\n"
        "*.txt text eol=lf\n"
        "  Art/*.png   filter=lfs diff=lfs merge=lfs -text\n"
        "*.psd filter=lfs diff=lfs merge=lfs -text\n"
    )
    probe = RepoProbe(temp_repo)

    assert probe.attributes_declare_lfs()
    assert probe.lfs_patterns() == ["*.psd", "Art/*.png"]


def test_hook_marker(temp_repo):
    hook = temp_repo / ".git" / "hooks" / "pre-push"
    hook.write_text("#!/bin/sh\ncommand -v git-lfs >/dev/null\n")
    probe = RepoProbe(temp_repo)

    assert probe.has_pre_push_hook()
    assert probe.hook_has_lfs_marker()

    hook.write_text("#!/bin/sh\nexec run-tests\n")
    assert not probe.hook_has_lfs_marker()


def test_unreadable_files_count_as_empty(temp_repo, log_records):
    (temp_repo / ".gitattributes").write_text("*.bin filter=lfs diff=lfs merge=lfs -text\n")
    (temp_repo / ".git" / "hooks" / "pre-push").write_text("git-lfs")
    probe = RepoProbe(temp_repo)

    with patch.object(Path, "read_text", side_effect=PermissionError("denied")):
        assert probe.attributes_declare_lfs() is False
        assert probe.hook_has_lfs_marker() is False
        assert probe.lfs_patterns() == []

    assert any(r[0] == "WARNING" and "denied" in r[1] for r in log_records)


def test_remove_lfs_artifacts(temp_repo):
    lfs_dir = temp_repo / ".git" / "lfs" / "objects"
    lfs_dir.mkdir(parents=True)
    (lfs_dir / "blob").write_text("x")
    (temp_repo / ".git" / "hooks" / "pre-push").write_text("git-lfs")
    probe = RepoProbe(temp_repo)

    probe.remove_lfs_artifacts()
    probe.remove_lfs_artifacts()

    assert not probe.has_lfs_dir()
    assert not probe.has_pre_push_hook()
