# -*- coding: utf-8 -*-
"""
Tests for repo.events and repo.state modules
"""

from gititgui.repo.events import RepoEvents
from gititgui.repo.state import BranchState, ChangeState


class TestRepoEvents:
    """Observer lists"""

    def test_delivery_and_unsubscribe(self):
        events = RepoEvents()
        seen = []

        def on_refreshing(start):
            seen.append(("refreshing", start))

        def on_refreshed():
            seen.append(("refreshed",))

        events.subscribe_refreshing(on_refreshing)
        events.subscribe_refreshing(on_refreshing)
        events.subscribe_refreshed(on_refreshed)

        events.emit_refreshing(True)
        events.emit_refreshed()
        events.unsubscribe_refreshing(on_refreshing)
        events.unsubscribe_refreshed(on_refreshed)
        events.emit_refreshing(False)
        events.emit_refreshed()

        assert seen == [("refreshing", True), ("refreshed",)]

    def test_failing_observer_is_logged(self, log_records):
        events = RepoEvents()
        seen = []

        def broken():
            raise RuntimeError("observer bug")

        events.subscribe_refreshed(broken)
        events.subscribe_refreshed(lambda: seen.append(1))
        events.emit_refreshed()

        assert seen == [1]
        assert any("observer bug" in r[1] for r in log_records if r[0] == "ERROR")


class TestBranchState:
    """Branch refresh step"""

    def test_refresh(self, fake_client):
        state = BranchState(fake_client)

        assert state.refresh(False) is True
        assert state.current == "main"
        assert state.branches == ["main", "feature"]

        state.clear()
        assert state.current == ""
        assert state.branches == []

    def test_refresh_failure(self, fake_client, log_records):
        fake_client.fail.add("list_branches")

        assert BranchState(fake_client).refresh(True) is False
        assert any("Failed to read branches" in r[1] for r in log_records)

    def test_refresh_mode_is_quiet(self, fake_client, log_records):
        BranchState(fake_client).refresh(True)
        assert not any("On branch" in r[1] for r in log_records)


class TestChangeState:
    """Change refresh step"""

    def test_refresh_splits_staged(self, fake_client):
        state = ChangeState(fake_client)

        assert state.refresh() is True
        assert [c.path for c in state.unstaged] == ["a.txt"]
        assert state.staged == []

    def test_refresh_failure(self, fake_client):
        fake_client.fail.add("status")
        assert ChangeState(fake_client).refresh() is False
