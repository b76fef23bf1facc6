"""Shared fixtures for chartrepo tests."""

import io
import tarfile
from pathlib import Path

import pytest
import yaml


def build_chart_archive(name: str, version: str, **chartfile) -> bytes:
    """Return the bytes of a packaged chart with the given Chart.yaml fields."""
    metadata = {"name": name, "version": version, **chartfile}
    files = {
        f"{name}/Chart.yaml": yaml.safe_dump(metadata).encode("utf-8"),
        f"{name}/values.yaml": b"replicas: 1\n",
    }
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as archive:
        for member_name, content in files.items():
            info = tarfile.TarInfo(member_name)
            info.size = len(content)
            archive.addfile(info, io.BytesIO(content))
    return buf.getvalue()


@pytest.fixture
def make_chart(tmp_path: Path):
    """Write a chart archive into a directory and return its path."""

    def _make(name: str, version: str, directory: Path = tmp_path, **chartfile) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / f"{name}-{version}.tgz"
        path.write_bytes(build_chart_archive(name, version, **chartfile))
        return path

    return _make


@pytest.fixture
def chart_bytes():
    return build_chart_archive
