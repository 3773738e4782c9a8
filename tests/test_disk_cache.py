"""
Tests for the disk image tier and cache key derivation.
"""
import base64

from images.disk_cache import DiskImageCache, cache_key


class TestCacheKey:
    def test_deterministic(self):
        url = "https://img.example.com/a.png?w=100"
        assert cache_key(url) == cache_key(url)

    def test_distinct_urls_distinct_keys(self):
        assert cache_key("https://x/a.png") != cache_key("https://x/b.png")

    def test_filesystem_safe(self):
        key = cache_key("https://img.example.com/path/with spaces?q=1&r=2#frag")
        assert "/" not in key
        assert "\\" not in key
        assert "=" not in key
        assert "+" not in key

    def test_reversible_base64_for_short_urls(self):
        url = "https://img.example.com/a.png"
        key = cache_key(url)
        padded = key + "=" * (-len(key) % 4)
        assert base64.urlsafe_b64decode(padded).decode("utf-8") == url

    def test_long_url_hashed(self):
        key = cache_key("https://img.example.com/" + "x" * 500)
        assert key.startswith("h_")
        assert len(key) == 2 + 64


class TestDiskImageCache:
    def test_read_missing(self, tmp_path):
        assert DiskImageCache(tmp_path / "c").read("nope") is None

    def test_write_then_read(self, tmp_path):
        disk = DiskImageCache(tmp_path / "c")
        disk.write("k", b"bytes")
        assert disk.read("k") == b"bytes"
        assert disk.size_on_disk() == 5

    def test_write_leaves_no_temp_file(self, tmp_path):
        disk = DiskImageCache(tmp_path / "c")
        disk.write("k", b"bytes")
        assert [p.name for p in disk.cache_dir.iterdir()] == ["k"]

    def test_size_ignores_temp_files(self, tmp_path):
        disk = DiskImageCache(tmp_path / "c")
        disk.write("k", b"abc")
        (disk.cache_dir / ".tmp.other").write_bytes(b"partial data")
        assert disk.size_on_disk() == 3

    def test_remove(self, tmp_path):
        disk = DiskImageCache(tmp_path / "c")
        disk.write("k", b"abc")
        disk.remove("k")
        disk.remove("k")
        assert disk.read("k") is None

    def test_clear(self, tmp_path):
        disk = DiskImageCache(tmp_path / "c")
        disk.write("a", b"1")
        disk.write("b", b"22")
        assert disk.clear() == 2
        assert disk.size_on_disk() == 0
        assert disk.cache_dir.exists()

    def test_clear_recreates_missing_dir(self, tmp_path):
        disk = DiskImageCache(tmp_path / "c")
        disk.cache_dir.rmdir()
        assert disk.clear() == 0
        assert disk.cache_dir.exists()
