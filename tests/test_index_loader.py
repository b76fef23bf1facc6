"""Tests for loading, writing and building index files."""

from pathlib import Path

import pytest

from chartrepo.core.errors import DigestError, IndexParseError, NoAPIVersionError, TransportError
from chartrepo.data import index_loader
from chartrepo.data.index_loader import (
    IndexFormat,
    index_directory,
    load_index,
    load_index_file,
    parse_index,
    write_index_file,
)

CURRENT_INDEX = """
apiVersion: v1
generated: 2016-10-06T16:23:20.499029981-06:00
entries:
  nginx:
    - name: nginx
      version: 0.2.0
      description: string
      home: https://github.com/something
      digest: sha256:1234567890
      urls:
        - https://kubernetes-charts.storage.googleapis.com/nginx-0.2.0.tgz
      created: 2016-10-06T16:23:20.499814565-06:00
    - name: nginx
      version: 0.1.0
      urls:
        - https://kubernetes-charts.storage.googleapis.com/nginx-0.1.0.tgz
  alpine:
    - name: alpine
      version: 1.0.0
      keywords: [linux, alpine, small]
      urls:
        - https://kubernetes-charts.storage.googleapis.com/alpine-1.0.0.tgz
        - http://storage2.googleapis.com/kubernetes-charts/alpine-1.0.0.tgz
"""

LEGACY_INDEX = """
foo-1.2.3:
  checksum: abc123
  url: https://example.com/charts/foo-1.2.3.tgz
nginx-0.1.0:
  checksum: def456
  url: https://example.com/charts/nginx-0.1.0.tgz
  chartfile:
    name: nginx
    version: 0.1.0
    description: web server
bare.tgz:
  url: https://example.com/charts/bare.tgz
"""


def test_parse_current_index():
    parsed = parse_index(CURRENT_INDEX)

    assert parsed.format is IndexFormat.CURRENT
    index = parsed.index
    assert index.api_version == "v1"
    assert len(index.entries["nginx"]) == 2
    assert index.get("nginx", "0.2.0").digest == "sha256:1234567890"
    assert index.get("alpine").urls[1] == "http://storage2.googleapis.com/kubernetes-charts/alpine-1.0.0.tgz"
    assert index.get("alpine").keywords == ["linux", "alpine", "small"]


def test_parse_current_index_with_no_entries():
    parsed = parse_index("apiVersion: v1\nentries:\n")
    assert parsed.format is IndexFormat.CURRENT
    assert parsed.index.entries == {}


def test_parse_legacy_index():
    parsed = parse_index(LEGACY_INDEX)

    assert parsed.format is IndexFormat.LEGACY
    index = parsed.index
    assert index.api_version == "v1"

    foo = index.get("foo", "1.2.3")
    assert foo.urls == ["https://example.com/charts/foo-1.2.3.tgz"]
    assert foo.digest == "abc123"

    nginx = index.get("nginx", "0.1.0")
    assert nginx.description == "web server"
    assert nginx.digest == "def456"

    assert index.get("bare.tgz").version == ""


def test_legacy_key_strips_archive_extension():
    index = load_index("foo-1.2.3.tgz:\n  url: foo.tgz\n")
    assert index.has("foo", "1.2.3")


def test_load_index_warns_on_legacy_format(caplog):
    with caplog.at_level("WARNING"):
        load_index(LEGACY_INDEX)
    assert "Deprecated index file format" in caplog.text


def test_empty_document_has_no_api_version():
    with pytest.raises(NoAPIVersionError):
        parse_index(b"")
    with pytest.raises(NoAPIVersionError):
        parse_index(b"{}")


def test_malformed_documents_are_parse_errors():
    with pytest.raises(IndexParseError):
        parse_index(b"entries: [unterminated")
    with pytest.raises(IndexParseError):
        parse_index(b"- just\n- a list\n")
    with pytest.raises(IndexParseError):
        parse_index(b"apiVersion: v1\nentries: not-a-map\n")
    with pytest.raises(IndexParseError):
        parse_index(b"generated: 2016-10-06\n")


def test_load_index_file_missing_is_transport_error(tmp_path: Path):
    with pytest.raises(TransportError):
        load_index_file(tmp_path / "nope.yaml")


def test_write_and_load_index_file(tmp_path: Path):
    index = load_index(CURRENT_INDEX)
    path = tmp_path / "out" / "index.yaml"

    write_index_file(index, path)
    loaded = load_index_file(path)

    assert set(loaded.entries) == {"nginx", "alpine"}
    assert [r.version for r in loaded.entries["nginx"]] == ["0.2.0", "0.1.0"]


def test_index_directory(tmp_path: Path, make_chart):
    repo_dir = tmp_path / "repo"
    make_chart("frobnitz", "1.2.3", directory=repo_dir)
    make_chart("frobnitz", "1.3.0", directory=repo_dir)
    make_chart("zarthal", "0.1.0", directory=repo_dir, description="a chart")
    (repo_dir / "broken-0.0.1.tgz").write_bytes(b"this is not a tarball")
    (repo_dir / "README.md").write_text("ignored")
    make_chart("nested", "1.0.0", directory=repo_dir / "sub")

    index = index_directory(repo_dir, "http://localhost:8080")

    assert set(index.entries) == {"frobnitz", "zarthal"}
    assert len(index.entries["frobnitz"]) == 2
    record = index.get("zarthal", "0.1.0")
    assert record.urls == ["http://localhost:8080/zarthal-0.1.0.tgz"]
    assert len(record.digest) == 64
    assert record.description == "a chart"


def test_index_directory_digest_failure_returns_partial_index(tmp_path: Path, make_chart, monkeypatch):
    make_chart("a", "1.0.0")
    make_chart("b", "1.0.0")

    real_digest = index_loader.digest_file

    def failing_digest(path):
        if Path(path).name.startswith("b-"):
            raise DigestError(f"cannot compute digest of {path}")
        return real_digest(path)

    monkeypatch.setattr(index_loader, "digest_file", failing_digest)

    with pytest.raises(DigestError) as exc_info:
        index_directory(tmp_path, "")

    partial = exc_info.value.index
    assert partial is not None
    assert partial.has("a", "1.0.0")
    assert not partial.has("b", "1.0.0")
