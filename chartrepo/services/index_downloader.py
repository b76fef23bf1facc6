"""
Download a chart repository's index.yaml into a local cache file.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Union

import httpx

from chartrepo.core.errors import TransportError
from chartrepo.data.index_loader import load_index
from chartrepo.domain.chart_utils import index_url
from chartrepo.domain.index import IndexFile

logger = logging.getLogger(__name__)


def fetch_index_bytes(repo_url: str, client: Optional[httpx.Client] = None) -> bytes:
    """GET ``<repo_url>/index.yaml`` and return the raw body."""
    url = index_url(repo_url)
    logger.debug(f"Downloading index from {url}")
    owns_client = client is None
    if owns_client:
        client = httpx.Client(follow_redirects=True, timeout=60.0)
    try:
        response = client.get(url)
        response.raise_for_status()
        return response.content
    except httpx.HTTPError as e:
        raise TransportError(f"failed to fetch {url}: {e}") from e
    finally:
        if owns_client:
            client.close()


def download_index_file(
    repo_name: str,
    repo_url: str,
    index_file_path: Union[str, Path],
    client: Optional[httpx.Client] = None,
) -> IndexFile:
    """
    Fetch a repository's index and store it at ``index_file_path``.

    The document is parsed before anything is written, so an invalid index
    never replaces a cached one.
    """
    data = fetch_index_bytes(repo_url, client=client)
    index = load_index(data)

    path = Path(index_file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    # Write to a temp file first so a partial write never replaces the cache.
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        tmp_path.write_bytes(data)
        tmp_path.replace(path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise TransportError(f"cannot write index file {path}: {e}") from e

    logger.info(f"Downloaded index for {repo_name} ({len(index.entries)} charts) to {path}")
    return index
