"""
Derived repository state re-read on every refresh.

BranchState and ChangeState are the default refresh steps the manager
runs after (re)opening a repository. Observers read them after the
refreshed() notification.
"""

from __future__ import annotations

from typing import List

from gititgui.core import log
from gititgui.git.client import FileStatus


class BranchState:
    """Current branch and local branch names."""

    def __init__(self, client):
        self._client = client
        self.current = ""
        self.branches: List[str] = []

    def refresh(self, refresh_mode: bool) -> bool:
        result = self._client.list_branches()
        if not result.ok:
            log.error(f"Failed to read branches: {self._client.last_error}")
            return False
        self.branches = result.value or []
        self.current = self._client.current_branch()
        if not refresh_mode:
            log.info(f"On branch {self.current} ({len(self.branches)} local)")
        return True

    def clear(self) -> None:
        self.current = ""
        self.branches = []


class ChangeState:
    """Working tree changes from git status."""

    def __init__(self, client):
        self._client = client
        self.changes: List[FileStatus] = []

    @property
    def staged(self) -> List[FileStatus]:
        return [c for c in self.changes if c.is_staged]

    @property
    def unstaged(self) -> List[FileStatus]:
        return [c for c in self.changes if not c.is_staged]

    def refresh(self) -> bool:
        result = self._client.status_porcelain()
        if not result.ok:
            log.error(f"Failed to read changes: {self._client.last_error}")
            return False
        self.changes = result.value or []
        return True

    def clear(self) -> None:
        self.changes = []
