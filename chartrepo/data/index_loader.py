"""
Reading, writing and building chart repository index files.
"""
from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import NamedTuple, Union

import yaml
from pydantic import ValidationError

from chartrepo.core.errors import (
    ChartLoadError,
    DigestError,
    IndexParseError,
    NoAPIVersionError,
    TransportError,
)
from chartrepo.data.chart_loader import digest_file, load_chart
from chartrepo.domain.chart_utils import CHART_ARCHIVE_EXTENSION
from chartrepo.domain.index import IndexFile
from chartrepo.domain.models import ChartMetadata

logger = logging.getLogger(__name__)


class IndexFormat(str, Enum):
    CURRENT = "current"
    LEGACY = "legacy"


class ParsedIndex(NamedTuple):
    index: IndexFile
    format: IndexFormat


def parse_index(data: Union[bytes, str]) -> ParsedIndex:
    """
    Parse index bytes, trying the current format first and then the
    deprecated unversioned one.

    Raises IndexParseError for malformed documents and NoAPIVersionError
    for documents that are neither format.
    """
    try:
        raw = yaml.safe_load(data)
    except yaml.YAMLError as e:
        raise IndexParseError(f"invalid index document: {e}") from e

    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise IndexParseError(f"invalid index document: expected a mapping, got {type(raw).__name__}")

    if raw.get("apiVersion"):
        try:
            return ParsedIndex(IndexFile.model_validate(raw), IndexFormat.CURRENT)
        except ValidationError as e:
            raise IndexParseError(f"invalid index document: {e}") from e

    return ParsedIndex(_parse_legacy_index(raw), IndexFormat.LEGACY)


def _parse_legacy_index(raw: dict) -> IndexFile:
    """
    Convert a pre-apiVersion index: a flat mapping of ``name-version`` keys
    to ``{checksum, url, chartfile}`` records.
    """
    if not raw:
        raise NoAPIVersionError()

    index = IndexFile.new()
    for key, item in raw.items():
        if item is None:
            item = {}
        if not isinstance(item, dict):
            raise IndexParseError(f"invalid legacy index entry {key!r}: expected a mapping")

        chartfile = item.get("chartfile")
        metadata = None
        if isinstance(chartfile, dict):
            try:
                metadata = ChartMetadata.model_validate(chartfile)
            except ValidationError as e:
                raise IndexParseError(f"invalid legacy index entry {key!r}: {e}") from e
        elif chartfile is not None:
            raise IndexParseError(f"invalid legacy index entry {key!r}: chartfile is not a mapping")

        if metadata is None or not metadata.name:
            parts = str(key).split("-")
            version = ""
            if len(parts) > 1:
                version = parts[1]
                if version.endswith(CHART_ARCHIVE_EXTENSION):
                    version = version[: -len(CHART_ARCHIVE_EXTENSION)]
            metadata = ChartMetadata(name=parts[0], version=version)

        index.add(metadata, str(item.get("url") or ""), "", str(item.get("checksum") or ""))
    return index


def load_index(data: Union[bytes, str]) -> IndexFile:
    """Parse index bytes, warning when the deprecated format was used."""
    parsed = parse_index(data)
    if parsed.format is IndexFormat.LEGACY:
        logger.warning("Deprecated index file format. Try updating the repository index.")
    return parsed.index


def load_index_file(path: Union[str, Path]) -> IndexFile:
    try:
        data = Path(path).read_bytes()
    except OSError as e:
        raise TransportError(f"cannot read index file {path}: {e}") from e
    return load_index(data)


def write_index_file(index: IndexFile, path: Union[str, Path]) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(index.to_yaml(), encoding="utf-8")
    logger.debug(f"Wrote index with {len(index.entries)} charts to {path}")


def index_directory(directory: Union[str, Path], base_url: str) -> IndexFile:
    """
    Build an index from the chart archives directly inside ``directory``.

    Files that do not load as charts are skipped. If a digest cannot be
    computed the scan stops and a DigestError carrying the partial index
    is raised.
    """
    directory = Path(directory)
    index = IndexFile.new()
    for archive in sorted(directory.glob(f"*{CHART_ARCHIVE_EXTENSION}")):
        if not archive.is_file():
            continue
        try:
            chart = load_chart(archive)
        except ChartLoadError as e:
            logger.debug(f"Skipping {archive.name}: {e}")
            continue

        try:
            digest = digest_file(archive)
        except DigestError as e:
            e.index = index
            raise

        index.add(chart.metadata, archive.name, base_url, digest)
    logger.info(f"Indexed {sum(len(v) for v in index.entries.values())} chart versions in {directory}")
    return index
