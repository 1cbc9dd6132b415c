import stat

import pytest

from clusterlens.cache import (
    CacheProvider,
    FileBasedCache,
    GCSCacheConfiguration,
    S3CacheConfiguration,
    new_cache,
    parse_cache_configuration,
)


def test_store_and_load_round_trip(tmp_path):
    cache = FileBasedCache(tmp_path)
    cache.store("result-1", "some analysis")
    assert cache.load("result-1") == "some analysis"
    assert cache.exists("result-1")


def test_stored_file_is_private(tmp_path):
    cache = FileBasedCache(tmp_path)
    cache.store("key", "data")
    mode = stat.S_IMODE((tmp_path / "key").stat().st_mode)
    assert mode & 0o077 == 0


def test_store_overwrites(tmp_path):
    cache = FileBasedCache(tmp_path)
    cache.store("key", "first value that is long")
    cache.store("key", "second")
    assert cache.load("key") == "second"


def test_remove_and_missing_keys(tmp_path):
    cache = FileBasedCache(tmp_path)
    cache.store("key", "data")
    cache.remove("key")
    assert not cache.exists("key")
    with pytest.raises(FileNotFoundError):
        cache.load("key")
    with pytest.raises(FileNotFoundError):
        cache.remove("key")


def test_list_returns_stored_names(tmp_path):
    cache = FileBasedCache(tmp_path / "store")
    cache.store("b", "2")
    cache.store("a", "1")
    entries = cache.list()
    assert [e.name for e in entries] == ["a", "b"]
    assert all(e.updated_at.tzinfo is not None for e in entries)


def test_list_missing_directory_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        FileBasedCache(tmp_path / "absent").list()


def test_disable_cache_and_name(tmp_path):
    cache = FileBasedCache(tmp_path)
    assert cache.is_cache_disabled() is False
    cache.disable_cache()
    assert cache.is_cache_disabled() is True
    assert cache.name() == "file"


def test_new_cache_falls_back_to_file(tmp_path):
    cache = new_cache("whatever", tmp_path)
    assert cache.name() == "file"
    assert cache.directory == tmp_path


@pytest.mark.parametrize("backend", ["azure", "gcs", "s3"])
def test_new_cache_remote_backends_rejected(backend, tmp_path):
    with pytest.raises(ValueError, match=backend):
        new_cache(backend, tmp_path)


def test_parse_cache_configuration_reads_sections():
    provider = parse_cache_configuration({
        "cache": {
            "gcs": {"projectid": "proj", "region": "eu", "bucketname": "bkt"},
            "s3": {"bucketname": "b3", "region": "us-east-1", "endpoint": "http://localhost:9000", "insecure": True},
        }
    })
    assert provider.gcs == GCSCacheConfiguration(project_id="proj", region="eu", bucket_name="bkt")
    assert provider.s3 == S3CacheConfiguration(
        region="us-east-1", bucket_name="b3", endpoint="http://localhost:9000", insecure_skip_verify=True
    )
    assert provider.azure.container_name == ""


def test_parse_cache_configuration_empty():
    assert parse_cache_configuration({}) == CacheProvider()


def test_parse_cache_configuration_rejects_non_mapping():
    with pytest.raises(TypeError):
        parse_cache_configuration({"cache": "file"})