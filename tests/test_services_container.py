import pytest
from unittest.mock import patch

from gititgui.core import services
from gititgui.core.result import AppError, ErrorCode
from gititgui.core.services import ServiceContainer, exit_on_fatal
from gititgui.repo.manager import RepoManager


def test_repo_manager_uses_client_factory(fake_client, settings):
    container = ServiceContainer(
        settings=settings, git_client_factory=lambda: fake_client, persist_settings=False
    )

    manager = container.repo_manager()

    assert isinstance(manager, RepoManager)
    assert manager.client is fake_client
    assert manager.settings is settings


def test_default_git_client():
    from gititgui.git.client import GitClient

    container = ServiceContainer(settings=None)
    assert isinstance(container.git_client(), GitClient)


def test_history_is_saved_when_persisting(fake_client, settings, temp_repo):
    saved = []
    container = ServiceContainer(settings=settings, git_client_factory=lambda: fake_client)

    with patch.object(services, "save_settings", side_effect=saved.append):
        manager = container.repo_manager()

    assert manager.open_repo(str(temp_repo)) is True
    assert saved == [settings]


def test_fatal_hook_is_wired(fake_client, settings, temp_repo):
    fatal = []
    container = ServiceContainer(
        settings=settings,
        git_client_factory=lambda: fake_client,
        on_fatal=fatal.append,
        persist_settings=False,
    )
    manager = container.repo_manager()
    manager.open_repo(str(temp_repo))
    fake_client.fail.add("lfs_install")

    result = manager.add_lfs_support()

    assert fatal == [result.error]


def test_exit_on_fatal_exits():
    error = AppError(code=ErrorCode.LFS_FATAL, message="Add Git-LFS Error")
    with pytest.raises(SystemExit) as exc:
        exit_on_fatal(error)
    assert exc.value.code == 1


def test_get_services_is_cached(monkeypatch, tmp_path):
    monkeypatch.setenv("GITITGUI_CONFIG_DIR", str(tmp_path))
    monkeypatch.setattr(services, "_singleton", None)

    first = services.get_services()

    assert first is services.get_services()
    assert first.settings.merge_diff_tool == "meld"
