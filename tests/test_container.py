"""
Tests for ServiceContainer wiring and shutdown.
"""
import pytest

from core.container import ServiceContainer
from core.settings import storage_paths


@pytest.fixture
def services(tmp_path, monkeypatch, qt_app):
    storage_paths.reset_module_cache()
    monkeypatch.setattr(storage_paths, "_appdata_root", lambda: tmp_path / "data")
    monkeypatch.setattr(storage_paths, "_cache_root", lambda: tmp_path / "cache")
    container = ServiceContainer.create_default(
        profile="TestProfile", settings_path=tmp_path / "settings.ini"
    )
    yield container
    if not container.thread_manager.is_shutdown:
        container.shutdown()
    storage_paths.reset_module_cache()


class TestServiceContainer:
    def test_services_share_thread_manager(self, services):
        assert services.fetcher._thread_manager is services.thread_manager
        assert services.news._thread_manager is services.thread_manager

    def test_image_cache_under_profile(self, services, tmp_path):
        expected = tmp_path / "cache" / "TestProfile" / storage_paths.IMAGE_CACHE_DIR_NAME
        assert services.images.disk.cache_dir == expected

    def test_offline_load_is_empty(self, services):
        assert services.news.load_from_store() == []

    def test_shutdown_stops_everything(self, services):
        services.news.start_auto_refresh()
        services.shutdown()

        assert services.thread_manager.is_shutdown
        assert not services.news.is_auto_refresh_running
