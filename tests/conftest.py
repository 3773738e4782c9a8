"""
Shared pytest fixtures for news consolidator tests.
"""
import pytest
import sys
from PySide6.QtCore import QCoreApplication


@pytest.fixture(scope='session')
def qt_app():
    """Create a QCoreApplication instance for tests."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv)
    yield app
    # Don't quit - causes issues with pytest


@pytest.fixture
def settings_manager(tmp_path):
    """SettingsManager backed by a throwaway INI file."""
    from core.settings import SettingsManager
    manager = SettingsManager(settings_path=tmp_path / "settings.ini")
    yield manager
    manager.clear()


@pytest.fixture
def thread_manager():
    """Create ThreadManager instance for testing."""
    from core.threading.manager import ThreadManager
    manager = ThreadManager()
    yield manager
    manager.shutdown(wait=True)


@pytest.fixture
def png_bytes(qt_app):
    """Small valid PNG payload."""
    from tests._news_test_utils import make_png_bytes
    return make_png_bytes()


@pytest.fixture
def image_cache_dir(tmp_path):
    path = tmp_path / "ImageCache"
    path.mkdir()
    return path
