def test_core_modules_import_without_qt():
    # These imports should work in plain CPython without a GUI.
    import gititgui.core.log  # noqa: F401
    import gititgui.core.settings  # noqa: F401
    import gititgui.core.services  # noqa: F401
    import gititgui.core.jobs  # noqa: F401


def test_git_modules_import():
    import gititgui.git.client  # noqa: F401
    import gititgui.git.askpass  # noqa: F401


def test_repo_modules_import():
    import gititgui.repo.manager  # noqa: F401
    import gititgui.repo.probe  # noqa: F401
