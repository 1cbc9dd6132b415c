"""Cache configuration and a file-backed cache of analysis results."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import platformdirs

_REMOTE_BACKENDS = frozenset({"azure", "gcs", "s3"})


@dataclass(frozen=True)
class GCSCacheConfiguration:
    project_id: str = ""
    region: str = ""
    bucket_name: str = ""


@dataclass(frozen=True)
class AzureCacheConfiguration:
    storage_account: str = ""
    container_name: str = ""


@dataclass(frozen=True)
class S3CacheConfiguration:
    region: str = ""
    bucket_name: str = ""
    endpoint: str = ""
    insecure_skip_verify: bool = False


@dataclass(frozen=True)
class CacheProvider:
    """Settings for every remote cache backend; empty ones are unset."""

    gcs: GCSCacheConfiguration = field(default_factory=GCSCacheConfiguration)
    azure: AzureCacheConfiguration = field(default_factory=AzureCacheConfiguration)
    s3: S3CacheConfiguration = field(default_factory=S3CacheConfiguration)


@dataclass(frozen=True)
class CacheObjectDetails:
    name: str
    updated_at: datetime


class FileBasedCache:
    """A cache keeping one file per key in a directory."""

    def __init__(self, directory: str | os.PathLike[str] | None = None) -> None:
        if directory is None:
            directory = platformdirs.user_cache_dir("clusterlens")
        self.directory = Path(directory)
        self._disabled = False

    def _path(self, key: str) -> Path:
        path = self.directory / key
        path.parent.mkdir(parents=True, exist_ok=True)
        return path

    def configure(self, cache_info: CacheProvider) -> None:
        """Prepare the cache directory; remote settings are not used."""
        if not isinstance(cache_info, CacheProvider):
            raise TypeError("cache_info must be a CacheProvider")
        self.directory.mkdir(parents=True, exist_ok=True)

    def store(self, key: str, data: str) -> None:
        fd = os.open(self._path(key), os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)

    def load(self, key: str) -> str:
        return self._path(key).read_text(encoding="utf-8")

    def list(self) -> list[CacheObjectDetails]:
        return [
            CacheObjectDetails(
                name=entry.name,
                updated_at=datetime.fromtimestamp(entry.stat().st_mtime, tz=timezone.utc),
            )
            for entry in sorted(self.directory.iterdir(), key=lambda p: p.name)
        ]

    def remove(self, key: str) -> None:
        self._path(key).unlink()

    def exists(self, key: str) -> bool:
        try:
            return self._path(key).exists()
        except OSError as exc:
            print("warning: error while testing if cache key exists:", exc, file=sys.stderr)
            return False

    def is_cache_disabled(self) -> bool:
        return self._disabled

    def name(self) -> str:
        return "file"

    def disable_cache(self) -> None:
        self._disabled = True


def new_cache(cache_type: str, directory: str | os.PathLike[str] | None = None) -> FileBasedCache:
    """The cache for ``cache_type``; unknown types fall back to the file cache."""
    if cache_type in _REMOTE_BACKENDS:
        raise ValueError(f"remote cache backend {cache_type!r} is not supported")
    return FileBasedCache(directory)


def _section(parent: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = parent.get(key) or {}
    if not isinstance(value, Mapping):
        raise TypeError(f"{key} configuration must be a mapping")
    return value


def parse_cache_configuration(config: Mapping[str, Any]) -> CacheProvider:
    """Read the ``cache`` section of a configuration mapping."""
    section = _section(config, "cache")
    gcs = _section(section, "gcs")
    azure = _section(section, "azure")
    s3 = _section(section, "s3")
    return CacheProvider(
        gcs=GCSCacheConfiguration(
            project_id=str(gcs.get("projectid", "")),
            region=str(gcs.get("region", "")),
            bucket_name=str(gcs.get("bucketname", "")),
        ),
        azure=AzureCacheConfiguration(
            storage_account=str(azure.get("storageaccount", "")),
            container_name=str(azure.get("container", "")),
        ),
        s3=S3CacheConfiguration(
            region=str(s3.get("region", "")),
            bucket_name=str(s3.get("bucketname", "")),
            endpoint=str(s3.get("endpoint", "")),
            insecure_skip_verify=bool(s3.get("insecure", False)),
        ),
    )