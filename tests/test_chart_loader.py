"""Tests for chart archive loading and digests."""

import hashlib
import io
import tarfile
from pathlib import Path

import pytest

from chartrepo.core.errors import ChartLoadError, DigestError
from chartrepo.data.chart_loader import digest_file, load_chart, load_chart_bytes


def _tarball(files: dict) -> bytes:
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as archive:
        for name, content in files.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            archive.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def test_load_chart(make_chart):
    path = make_chart("nginx", "1.2.3", description="web server", appVersion="1.25")

    chart = load_chart(path)

    assert chart.metadata.name == "nginx"
    assert chart.metadata.version == "1.2.3"
    assert chart.metadata.description == "web server"
    assert chart.metadata.model_dump()["appVersion"] == "1.25"
    assert chart.files["values.yaml"] == b"replicas: 1\n"


def test_numeric_version_is_read_as_string():
    data = _tarball({"demo/Chart.yaml": b"name: demo\nversion: 1.0\n"})
    assert load_chart_bytes(data).metadata.version == "1.0"


def test_not_a_tarball():
    with pytest.raises(ChartLoadError):
        load_chart_bytes(b"plain text")


def test_missing_chart_file():
    data = _tarball({"demo/values.yaml": b"a: 1\n"})
    with pytest.raises(ChartLoadError):
        load_chart_bytes(data)


def test_chart_file_without_name():
    data = _tarball({"demo/Chart.yaml": b"version: 1.0.0\n"})
    with pytest.raises(ChartLoadError):
        load_chart_bytes(data)


def test_missing_archive(tmp_path: Path):
    with pytest.raises(ChartLoadError):
        load_chart(tmp_path / "missing.tgz")


def test_digest_file(tmp_path: Path):
    path = tmp_path / "blob"
    path.write_bytes(b"chart bytes")
    assert digest_file(path) == hashlib.sha256(b"chart bytes").hexdigest()


def test_digest_missing_file(tmp_path: Path):
    with pytest.raises(DigestError):
        digest_file(tmp_path / "missing")
