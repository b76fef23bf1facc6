"""
Live chart repository handles backed by a storage service.
"""
from __future__ import annotations

import fnmatch
import logging
from abc import ABC, abstractmethod
from typing import List, Optional
from urllib.parse import quote

import httpx

from chartrepo.core.errors import RepositoryError, TransportError
from chartrepo.data.chart_loader import Chart, load_chart_bytes
from chartrepo.domain.chart_utils import CHART_ARCHIVE_EXTENSION
from chartrepo.domain.locator import GCS_HTTP_PREFIX, GCS_SCHEME

logger = logging.getLogger(__name__)

GCS_API_BASE = "https://storage.googleapis.com"


class ChartRepo(ABC):
    """
    A resolved repository: its display name, base URL and the HTTP client
    used to reach it.
    """

    def __init__(self, name: str, url: str, credential_name: Optional[str], client: httpx.Client):
        if not name:
            raise RepositoryError("repository name must not be empty")
        if not url:
            raise RepositoryError(f"repository {name} has no URL")
        self.name = name
        self.url = url
        self.credential_name = credential_name
        self.client = client

    @abstractmethod
    def get_chart(self, name: str) -> Chart:
        """Fetch and load the chart archive ``name``."""
        pass

    @abstractmethod
    def list_charts(self, pattern: str = "*") -> List[str]:
        """List archive names matching the glob ``pattern``."""
        pass

    def close(self) -> None:
        self.client.close()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, url={self.url!r})"


class GCSRepo(ChartRepo):
    """Chart repository stored in a Google Cloud Storage bucket."""

    def __init__(
        self,
        name: str,
        url: str,
        credential_name: Optional[str],
        client: httpx.Client,
        api_base: str = GCS_API_BASE,
    ):
        super().__init__(name, url, credential_name, client)
        self.bucket, self.prefix = split_gcs_url(url)
        self.api_base = api_base.rstrip("/")

    def object_url(self, object_name: str) -> str:
        path = f"{self.prefix}/{object_name}" if self.prefix else object_name
        return f"{self.api_base}/{quote(self.bucket)}/{quote(path)}"

    def get_chart(self, name: str) -> Chart:
        """Fetch and load the archive ``name`` from the repository directory."""
        url = self.object_url(name)
        logger.debug(f"Fetching chart {name} from {url}")
        try:
            response = self.client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise TransportError(f"failed to fetch chart {name} from repository {self.name}: {e}") from e
        return load_chart_bytes(response.content, source=url)

    def list_charts(self, pattern: str = "*") -> List[str]:
        """
        List chart archive names in the repository directory that match the
        glob ``pattern``.
        """
        url = f"{self.api_base}/storage/v1/b/{quote(self.bucket)}/o"
        params = {"delimiter": "/"}
        if self.prefix:
            params["prefix"] = self.prefix + "/"

        names: List[str] = []
        while True:
            try:
                response = self.client.get(url, params=params)
                response.raise_for_status()
                payload = response.json()
            except (httpx.HTTPError, ValueError) as e:
                raise TransportError(f"failed to list charts in repository {self.name}: {e}") from e

            for item in payload.get("items", []):
                object_name = item.get("name", "")
                if self.prefix:
                    object_name = object_name[len(self.prefix) + 1:]
                if object_name.endswith(CHART_ARCHIVE_EXTENSION) and fnmatch.fnmatch(object_name, pattern):
                    names.append(object_name)

            token = payload.get("nextPageToken")
            if not token:
                break
            params["pageToken"] = token
        return names


def split_gcs_url(url: str):
    """Split ``gs://bucket/prefix`` into ``(bucket, prefix)``."""
    if url.startswith(GCS_SCHEME):
        rest = url[len(GCS_SCHEME):]
    elif url.startswith(GCS_HTTP_PREFIX):
        rest = url[len(GCS_HTTP_PREFIX):]
    else:
        raise RepositoryError(f"invalid GCS repository URL: {url}")
    bucket, _, prefix = rest.strip("/").partition("/")
    if not bucket:
        raise RepositoryError(f"invalid GCS repository URL: {url}")
    return bucket, prefix.strip("/")
