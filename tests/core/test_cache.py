"""
Tests for the artifact cache.
"""

import hashlib
import pytest
import responses

from darwincross.core.cache import ArtifactCache
from darwincross.core.exceptions import ChecksumError, DownloadError

URL = "https://example.com/cctools-port.tar.gz"
KEY = "cctools-port-test.tar.gz"


def _entries(cache_dir):
    return sorted(p.name for p in cache_dir.iterdir())


@pytest.fixture
def cache(tmp_path):
    return ArtifactCache(tmp_path / "cache")


class TestPathFor:
    def test_plain_key(self, cache, tmp_path):
        assert cache.path_for(KEY) == tmp_path / "cache" / KEY

    @pytest.mark.parametrize("key", ["", ".", "..", "a/b", "a\\b"])
    def test_invalid_keys(self, cache, key):
        with pytest.raises(ValueError, match="Invalid cache key"):
            cache.path_for(key)


class TestFetch:
    @responses.activate
    def test_downloads_once_and_reuses(self, cache):
        responses.add(responses.GET, URL, body=b"archive")

        first = cache.fetch(URL, KEY)
        second = cache.fetch(URL, KEY)

        assert first == second == cache.path_for(KEY)
        assert first.read_bytes() == b"archive"
        assert len(responses.calls) == 1
        assert _entries(cache.cache_dir) == [KEY]

    @responses.activate
    def test_existing_entry_skips_network(self, cache):
        # No response registered: any request would fail
        entry = cache.path_for(KEY)
        entry.parent.mkdir(parents=True)
        entry.write_bytes(b"already here")

        assert cache.fetch(URL, KEY) == entry
        assert len(responses.calls) == 0

    @responses.activate
    def test_existing_entry_is_not_revalidated(self, cache):
        entry = cache.path_for(KEY)
        entry.parent.mkdir(parents=True)
        entry.write_bytes(b"already here")

        assert cache.fetch(URL, KEY, expected_sha256="0" * 64) == entry
        assert entry.read_bytes() == b"already here"

    @responses.activate
    def test_failed_download_leaves_no_entry(self, cache):
        responses.add(responses.GET, URL, status=404)

        with pytest.raises(DownloadError):
            cache.fetch(URL, KEY)

        assert _entries(cache.cache_dir) == []

    @responses.activate
    def test_checksum_mismatch_leaves_no_entry(self, cache):
        responses.add(responses.GET, URL, body=b"tampered")

        with pytest.raises(ChecksumError):
            cache.fetch(URL, KEY, expected_sha256="0" * 64)

        assert _entries(cache.cache_dir) == []

    @responses.activate
    def test_checksum_match(self, cache):
        responses.add(responses.GET, URL, body=b"archive")

        entry = cache.fetch(
            URL, KEY, expected_sha256=hashlib.sha256(b"archive").hexdigest()
        )

        assert cache.path_for(KEY).is_file()
        assert entry.read_bytes() == b"archive"

    @responses.activate
    def test_retry_after_failure(self, cache):
        responses.add(responses.GET, URL, status=503)
        responses.add(responses.GET, URL, body=b"archive")

        with pytest.raises(DownloadError):
            cache.fetch(URL, KEY)
        entry = cache.fetch(URL, KEY)

        assert entry.read_bytes() == b"archive"

    @responses.activate
    def test_lock_kept_outside_cache_dir(self, cache, tmp_path):
        responses.add(responses.GET, URL, body=b"archive")

        cache.fetch(URL, KEY)

        assert cache.lock_path.parent == tmp_path
        assert not cache.lock_path.is_relative_to(cache.cache_dir)
        assert _entries(cache.cache_dir) == [KEY]
