"""Serve source artifacts from the local filesystem instead of a cluster."""

from __future__ import annotations

import logging
import os
import shutil
import stat
from typing import Any, Mapping, MutableMapping, Optional
from urllib.parse import urlsplit

_SUPPORTED_SOURCES = frozenset(
    {
        ("source.toolkit.fluxcd.io/v1beta2", "GitRepository"),
        ("source.toolkit.fluxcd.io/v1", "GitRepository"),
        ("source.toolkit.fluxcd.io/v1beta2", "OCIRepository"),
    }
)


class UnsupportedObjectError(Exception):
    """Raised when an object cannot be served from the local filesystem."""


def copy_file(dst: str, src: str) -> None:
    """Copy the contents and permission bits of src to dst."""
    shutil.copyfile(src, dst)
    shutil.copymode(src, dst)


def _copy_entry(path: str, target: str) -> None:
    info = os.lstat(path)
    if stat.S_ISDIR(info.st_mode):
        try:
            os.mkdir(target, 0o755)
        except FileExistsError:
            pass
        for child in sorted(os.listdir(path)):
            _copy_entry(os.path.join(path, child), os.path.join(target, child))
    elif stat.S_ISLNK(info.st_mode):
        os.symlink(os.readlink(path), target)
    else:
        copy_file(target, path)


def copy_tree(dst: str, src: str) -> None:
    """Recursively copy src to dst, recreating symlinks rather than following them."""
    _copy_entry(src, dst)


def _describe(obj: Any) -> str:
    if isinstance(obj, Mapping):
        api_version = obj.get("apiVersion")
        kind = obj.get("kind")
        parts = [str(part) for part in (api_version, kind) if part]
        if parts:
            return " ".join(parts)
    return type(obj).__name__


class LocalFetcher:
    """Archive fetcher that copies a local directory named by a file URL."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def fetch(self, archive_url: str, checksum: str, directory: str) -> None:
        """Copy the directory at the path of archive_url into directory."""
        path = urlsplit(archive_url).path
        self.logger.info("setting up archive archiveURL=%s", archive_url)
        copy_tree(directory, path)


class LocalObjectReader:
    """Object reader that points source artifacts at local directories."""

    def __init__(
        self, repository_root: str, logger: Optional[logging.Logger] = None
    ) -> None:
        self.repository_root = repository_root
        self.logger = logger or logging.getLogger(__name__)

    def get(
        self, name: str, namespace: str, obj: MutableMapping[str, Any]
    ) -> MutableMapping[str, Any]:
        """Fill in the artifact URL of a source object and return it."""
        base = os.path.abspath(self.repository_root)
        self.logger.info("reading from local filesystem base=%s", base)

        source = (obj.get("apiVersion"), obj.get("kind"))
        if source not in _SUPPORTED_SOURCES:
            raise UnsupportedObjectError(
                f"filesystem access for {source[0]} {source[1]} is not supported"
            )

        status = obj.setdefault("status", {})
        status["artifact"] = {
            "url": "file://" + os.path.normpath(os.path.join(base, name))
        }
        return obj

    def list(self, obj_list: Any) -> None:
        """Reject a list request; the local filesystem holds no object lists."""
        description = _describe(obj_list)
        self.logger.info(
            "refusing to list from local filesystem kind=%s", description
        )
        raise UnsupportedObjectError(
            f"listing {description} is not supported by the local object reader"
        )