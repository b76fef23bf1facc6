"""
Load packaged charts (gzip tarballs with a Chart.yaml) and compute digests.
"""
from __future__ import annotations

import hashlib
import io
import logging
import tarfile
from pathlib import Path
from typing import Dict, Union

import yaml
from pydantic import BaseModel, Field, ValidationError

from chartrepo.core.errors import ChartLoadError, DigestError
from chartrepo.domain.models import ChartMetadata

logger = logging.getLogger(__name__)

CHART_FILE = "Chart.yaml"


class Chart(BaseModel):
    """A loaded chart archive."""

    metadata: ChartMetadata
    files: Dict[str, bytes] = Field(
        default_factory=dict,
        description="Archive contents keyed by path relative to the chart directory.",
    )


def load_chart(path: Union[str, Path]) -> Chart:
    """Load a chart archive from disk."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as e:
        raise ChartLoadError(f"cannot read chart archive {path}: {e}") from e
    return load_chart_bytes(data, source=str(path))


def load_chart_bytes(data: bytes, source: str = "<bytes>") -> Chart:
    """
    Load a chart archive from bytes.

    Expected layout is ``<chart-dir>/Chart.yaml`` plus the rest of the chart
    files under the same top-level directory.
    """
    files: Dict[str, bytes] = {}
    try:
        with tarfile.open(fileobj=io.BytesIO(data), mode="r:gz") as archive:
            for member in archive.getmembers():
                if not member.isfile():
                    continue
                name = member.name[2:] if member.name.startswith("./") else member.name
                parts = name.split("/", 1)
                if len(parts) != 2:
                    continue
                extracted = archive.extractfile(member)
                if extracted is None:
                    continue
                files[parts[1]] = extracted.read()
    except (tarfile.TarError, OSError, EOFError) as e:
        raise ChartLoadError(f"{source} is not a chart archive: {e}") from e

    raw_chartfile = files.get(CHART_FILE)
    if raw_chartfile is None:
        raise ChartLoadError(f"{source} has no {CHART_FILE}")

    try:
        raw = yaml.safe_load(raw_chartfile) or {}
    except yaml.YAMLError as e:
        raise ChartLoadError(f"invalid {CHART_FILE} in {source}: {e}") from e
    if not isinstance(raw, dict):
        raise ChartLoadError(f"invalid {CHART_FILE} in {source}: not a mapping")

    try:
        metadata = ChartMetadata.model_validate(raw)
    except ValidationError as e:
        raise ChartLoadError(f"invalid {CHART_FILE} in {source}: {e}") from e
    if not metadata.name:
        raise ChartLoadError(f"{CHART_FILE} in {source} has no name")

    logger.debug(f"Loaded chart {metadata.name}-{metadata.version} from {source}")
    return Chart(metadata=metadata, files=files)


def digest_file(path: Union[str, Path]) -> str:
    """SHA-256 hex digest of a file, read in chunks."""
    h = hashlib.sha256()
    try:
        with Path(path).open("rb") as f:
            for chunk in iter(lambda: f.read(8192), b""):
                h.update(chunk)
    except OSError as e:
        raise DigestError(f"cannot compute digest of {path}: {e}") from e
    return h.hexdigest()
