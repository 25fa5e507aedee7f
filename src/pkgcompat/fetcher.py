"""Registry index fetching for package archives."""

import logging
from collections.abc import Callable
from enum import Enum
from os import utime
from pathlib import Path
from typing import Any
from urllib.parse import urljoin, urlparse

import httpx

from pkgcompat.constants import ARCHIVE_CONTENTS, CACHE_DIR
from pkgcompat.errors import UnrecognizedFormat
from pkgcompat.sources import load_snapshot
from pkgcompat.utils import http_date_timestamp

logger = logging.getLogger(__name__)


def url_to_local_path(url: str, cache_dir: Path = CACHE_DIR) -> Path:
    """Map an archive URL onto its place in the local cache.

    Examples:
        >>> url_to_local_path("https://elpa.example.org/packages/archive-contents.json", Path("cache"))
        PosixPath('cache/elpa.example.org/packages/archive-contents.json')
    """
    parsed = urlparse(url)
    return cache_dir / parsed.netloc / parsed.path.lstrip("/")


class SkipMode(str, Enum):
    """When to reuse a cached download instead of fetching again.

    FAST: Reuse any cached copy.
    CHECK: Reuse the cached copy if the remote Last-Modified (or, failing
        that, Content-Length) says it is unchanged.
    NONE: Always download.
    """

    FAST = "fast"
    CHECK = "check"
    NONE = "none"


async def _cache_is_current(client: httpx.AsyncClient, url: str, cached: Path) -> bool:
    try:
        response = await client.head(url)
        response.raise_for_status()
    except httpx.HTTPError as e:
        logger.warning(f"Unable to check {url} for changes: {e}")
        return False

    stat = cached.stat()
    if (remote_ts := http_date_timestamp(response.headers.get("last-modified"))) is not None:
        # allow a second for fs granularity
        return remote_ts <= stat.st_mtime + 1
    remote_size = response.headers.get("content-length", "")
    return remote_size.isdigit() and int(remote_size) == stat.st_size


async def download_file(
    url: str,
    output_path: Path,
    skip_mode: SkipMode = SkipMode.CHECK,
    transport: httpx.AsyncBaseTransport | None = None,
    validate: Callable[[Path], Any] | None = None,
) -> bool:
    """Download url to output_path, replacing any cached copy only once it is complete.

    The response body goes to a hidden sibling of output_path first. If
    validate is given it is called with that file, and anything it raises
    propagates with the cached copy left untouched.

    Args:
        url: The URL to download from
        output_path: Where to keep the downloaded file
        skip_mode: When an existing output_path may be reused
        transport: Optional httpx transport, used instead of the network
        validate: Optional check run on the downloaded file before it replaces output_path

    Returns:
        True if output_path holds a usable copy, False if the download failed
    """
    cached = output_path.is_file()
    if cached and skip_mode == SkipMode.FAST:
        logger.debug(f"Reusing cached {output_path}")
        return True

    partial = output_path.with_name(f".part-{output_path.name}")
    try:
        async with httpx.AsyncClient(follow_redirects=True, timeout=30.0, transport=transport) as client:
            if cached and skip_mode == SkipMode.CHECK and await _cache_is_current(client, url, output_path):
                logger.debug(f"Cached {output_path} is up to date")
                return True
            response = await client.get(url)
            response.raise_for_status()

        output_path.parent.mkdir(parents=True, exist_ok=True)
        partial.write_bytes(response.content)
        if (remote_ts := http_date_timestamp(response.headers.get("last-modified"))) is not None:
            utime(partial, (remote_ts, remote_ts))
        if validate is not None:
            validate(partial)
        partial.replace(output_path)

    except httpx.HTTPStatusError as e:
        msg = f"Failed to download {url}: {e}"
        if e.response.status_code == 404:
            logger.debug(msg)
        else:
            logger.warning(msg)
        return False
    except (httpx.HTTPError, OSError) as e:
        logger.warning(f"Failed to download {url}: {e}")
        return False
    finally:
        partial.unlink(missing_ok=True)

    logger.debug(f"Downloaded {url} to {output_path}")
    return True


def build_archive_contents_url(archive_url: str) -> str:
    """Construct the registry index URL for an archive."""
    archive_prefix = archive_url if archive_url.endswith("/") else f"{archive_url}/"
    return urljoin(archive_prefix, ARCHIVE_CONTENTS)


async def fetch_archive_contents(
    archive_url: str,
    skip_mode: SkipMode = SkipMode.CHECK,
    cache_dir: Path = CACHE_DIR,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[Path | None, dict | None]:
    """Download and load the available-package snapshot of an archive.

    A downloaded index that does not parse as a snapshot is discarded, so an
    earlier cached copy survives a bad response.

    Args:
        archive_url: Base URL of the archive
        skip_mode: When a cached copy of the index may be reused
        cache_dir: Root of the local mirror
        transport: Optional httpx transport, used instead of the network

    Returns:
        Tuple of (local_path, snapshot). (None, None) if the download failed or
        the downloaded index was unusable; (local_path, None) if a reused cached
        copy does not parse.
    """
    contents_url = build_archive_contents_url(archive_url)
    local_path = url_to_local_path(contents_url, cache_dir)

    try:
        success = await download_file(
            contents_url, local_path, skip_mode=skip_mode, transport=transport, validate=load_snapshot
        )
    except UnrecognizedFormat as e:
        logger.error(f"Discarding unusable {ARCHIVE_CONTENTS} from {archive_url}: {e}")
        return None, None
    if not success:
        return None, None

    try:
        snapshot = load_snapshot(local_path)
    except UnrecognizedFormat as e:
        logger.error(f"Cached {ARCHIVE_CONTENTS} for {archive_url} is unusable: {e}")
        return local_path, None

    logger.info(f"Loaded {len(snapshot)} packages from {archive_url}")
    return local_path, snapshot
