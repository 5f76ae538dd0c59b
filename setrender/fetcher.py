"""Fetch source artifacts through a cluster service proxy and unpack them."""

from __future__ import annotations

import os
import shutil
import tarfile
import tempfile
from dataclasses import dataclass
from typing import BinaryIO, Optional, Protocol
from urllib.parse import urlsplit


class ArtifactURLError(ValueError):
    """Raised when an artifact URL does not point at an in-cluster service."""


@dataclass(frozen=True)
class ServiceRef:
    """The parts of an artifact URL needed to reach it through a service proxy."""

    scheme: str
    namespace: str
    name: str
    path: str
    port: str


class ServiceProxyClient(Protocol):
    """A client able to issue a GET through a cluster service proxy."""

    def proxy_get(
        self, *, scheme: str, namespace: str, name: str, port: str, path: str
    ) -> bytes: ...


def parse_artifact_url(artifact_url: str) -> ServiceRef:
    """Split an in-cluster artifact URL into the service it is served by."""
    try:
        parts = urlsplit(artifact_url)
        port = parts.port
    except ValueError as err:
        raise ArtifactURLError(f"invalid artifact URL {artifact_url}: {err}") from err

    host = (parts.hostname or "").split(".")
    if len(host) != 6 or host[2] != "svc" or parts.path == "/":
        raise ArtifactURLError(f"invalid artifact URL {artifact_url}")

    return ServiceRef(
        scheme=parts.scheme,
        namespace=host[1],
        name=host[0],
        path=parts.path,
        port=str(port) if port is not None else "80",
    )


def _secure_join(root: str, name: str) -> str:
    """Join an archive member name to root, clamping it inside root."""
    parts: list[str] = []
    for part in name.replace("\\", "/").split("/"):
        if part in ("", "."):
            continue
        if part == "..":
            if parts:
                parts.pop()
            continue
        parts.append(part)
    return os.path.join(root, *parts)


def extract_archive(
    fileobj: BinaryIO, directory: str, max_size: Optional[int] = None
) -> None:
    """Unpack a (possibly compressed) tar stream into directory.

    Only directories and regular files are written. When max_size is given,
    the total size of the regular files may not exceed it.
    """
    root = os.path.realpath(directory)
    total = 0
    try:
        with tarfile.open(fileobj=fileobj, mode="r:*") as archive:
            for member in archive:
                target = _secure_join(root, member.name)
                if member.isdir():
                    os.makedirs(target, exist_ok=True)
                elif member.isfile():
                    total += member.size
                    if max_size is not None and total > max_size:
                        raise ValueError(
                            f"tar {member.name!r} exceeds the maximum size of {max_size} bytes"
                        )
                    os.makedirs(os.path.dirname(target), exist_ok=True)
                    source = archive.extractfile(member)
                    if source is None:
                        continue
                    with source, open(target, "wb") as dest:
                        shutil.copyfileobj(source, dest)
                    os.chmod(target, member.mode & 0o777)
    except tarfile.TarError as err:
        raise ValueError(f"failed to read archive: {err}") from err


class ProxyArchiveFetcher:
    """Fetches archives by proxying requests through cluster services."""

    def __init__(
        self, client: ServiceProxyClient, max_untar_size: Optional[int] = None
    ) -> None:
        self.client = client
        self.max_untar_size = max_untar_size

    def fetch(self, archive_url: str, checksum: str, directory: str) -> None:
        """Download the archive at archive_url and unpack it into directory."""
        ref = parse_artifact_url(archive_url)
        payload = self.client.proxy_get(
            scheme=ref.scheme,
            namespace=ref.namespace,
            name=ref.name,
            port=ref.port,
            path=ref.path,
        )

        with tempfile.TemporaryFile(prefix="fetch.", suffix=".tmp") as scratch:
            scratch.write(payload)
            scratch.seek(0)
            try:
                extract_archive(scratch, directory, self.max_untar_size)
            except ValueError as err:
                raise ValueError(
                    "failed to extract archive (check whether file size exceeds "
                    f"max download size): {err}"
                ) from err