"""
Filesystem probe for repository marker files.

Classifies a working copy by the files git and git-lfs leave behind:
the ignore file, the attributes file, the LFS object directory and the
pre-push hook git-lfs installs.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path
from typing import List

from gititgui.core import log

GITIGNORE = ".gitignore"
GITATTRIBUTES = ".gitattributes"
LFS_DIRECTIVE = "filter=lfs diff=lfs merge=lfs"
LFS_HOOK_MARKER = "git-lfs"

# "<glob>? filter=lfs diff=lfs merge=lfs", one rule per line
_LFS_RULE_RE = re.compile(
    r"^[ \t]*(?P<pattern>\S+)?[ \t]+filter=lfs diff=lfs merge=lfs\b",
    re.MULTILINE,
)


class RepoProbe:
    """Marker-file checks for one repository root."""

    def __init__(self, repo_root: Path | str):
        self.repo_root = Path(repo_root)

    @property
    def gitignore_path(self) -> Path:
        return self.repo_root / GITIGNORE

    @property
    def attributes_path(self) -> Path:
        return self.repo_root / GITATTRIBUTES

    @property
    def lfs_dir(self) -> Path:
        return self.repo_root / ".git" / "lfs"

    @property
    def pre_push_hook(self) -> Path:
        return self.repo_root / ".git" / "hooks" / "pre-push"

    def has_gitignore(self) -> bool:
        return self.gitignore_path.is_file()

    def has_attributes(self) -> bool:
        return self.attributes_path.is_file()

    def has_lfs_dir(self) -> bool:
        return self.lfs_dir.is_dir()

    def has_pre_push_hook(self) -> bool:
        return self.pre_push_hook.is_file()

    def hook_has_lfs_marker(self) -> bool:
        """True if the pre-push hook exists and mentions git-lfs."""
        return LFS_HOOK_MARKER in _read_text(self.pre_push_hook)

    def attributes_declare_lfs(self) -> bool:
        return LFS_DIRECTIVE in _read_text(self.attributes_path)

    def lfs_patterns(self) -> List[str]:
        """
        Globs routed through the LFS filter in .gitattributes.

        Rules without a glob are skipped; there is nothing to untrack.
        """
        text = _read_text(self.attributes_path)
        patterns = []
        for match in _LFS_RULE_RE.finditer(text):
            pattern = match.group("pattern")
            if pattern and pattern not in patterns:
                patterns.append(pattern)
        return patterns

    def ensure_gitignore(self) -> bool:
        """
        Create an empty .gitignore if missing.

        Returns:
            bool: True if the file was created
        """
        if self.has_gitignore():
            return False
        self.gitignore_path.write_text("", encoding="utf-8")
        return True

    def ensure_attributes(self) -> bool:
        """Create an empty .gitattributes if missing; True if created."""
        if self.has_attributes():
            return False
        self.attributes_path.write_text("", encoding="utf-8")
        return True

    def remove_lfs_artifacts(self) -> None:
        """Delete the pre-push hook and the LFS directory when present."""
        if self.pre_push_hook.is_file():
            self.pre_push_hook.unlink()
            log.debug(f"Removed {self.pre_push_hook}")
        if self.lfs_dir.is_dir():
            shutil.rmtree(self.lfs_dir)
            log.debug(f"Removed {self.lfs_dir}")


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except FileNotFoundError:
        return ""
    except OSError as e:
        log.warning(f"Cannot read {path}: {e}")
        return ""
