"""Tests for downloading remote index files."""

from pathlib import Path

import httpx
import pytest

from chartrepo.core.errors import IndexParseError, TransportError
from chartrepo.data.index_loader import load_index_file
from chartrepo.services.index_downloader import download_index_file

INDEX = b"""apiVersion: v1
entries:
  nginx:
    - name: nginx
      version: 0.1.0
      urls: [https://charts.example.com/nginx-0.1.0.tgz]
"""


def _client(handler):
    return httpx.Client(transport=httpx.MockTransport(handler))


def test_download_index_file(tmp_path: Path):
    requested = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, content=INDEX)

    target = tmp_path / "cache" / "stable-index.yaml"
    with _client(handler) as client:
        index = download_index_file("stable", "https://charts.example.com/", target, client=client)

    assert requested == ["https://charts.example.com/index.yaml"]
    assert index.has("nginx", "0.1.0")
    assert target.read_bytes() == INDEX
    assert load_index_file(target).has("nginx", "0.1.0")


def test_invalid_index_is_not_written(tmp_path: Path):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"- not\n- an index\n")

    target = tmp_path / "index.yaml"
    target.write_bytes(INDEX)

    with _client(handler) as client:
        with pytest.raises(IndexParseError):
            download_index_file("stable", "https://charts.example.com", target, client=client)

    assert target.read_bytes() == INDEX


def test_http_error_is_transport_error(tmp_path: Path):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404)

    target = tmp_path / "index.yaml"
    with _client(handler) as client:
        with pytest.raises(TransportError):
            download_index_file("stable", "https://charts.example.com", target, client=client)

    assert not target.exists()
