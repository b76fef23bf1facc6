"""
In-memory chart repository index.

An ``IndexFile`` maps chart names to the list of published versions of that
chart. Index 0 of each list is the "current" version for tooling that does
not parse versions, which only holds after ``sort_entries``.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from chartrepo.core.errors import (
    ChartNameNotFoundError,
    ChartVersionListEmptyError,
    ChartVersionNotFoundError,
)
from chartrepo.domain.chart_utils import chart_url
from chartrepo.domain.models import ChartMetadata, ChartVersion, utcnow
from chartrepo.domain.versions import sort_versions

logger = logging.getLogger(__name__)

API_VERSION_V1 = "v1"


class IndexFile(BaseModel):
    """The index document of a chart repository."""

    model_config = ConfigDict(populate_by_name=True)

    api_version: str = Field(default="", alias="apiVersion")
    generated: Optional[datetime] = None
    entries: Dict[str, List[ChartVersion]] = Field(default_factory=dict)
    public_keys: List[str] = Field(default_factory=list, alias="publicKeys")

    @field_validator("entries", "public_keys", mode="before")
    @classmethod
    def _null_as_empty(cls, value, info):
        if value is None:
            return {} if info.field_name == "entries" else []
        if info.field_name == "entries" and isinstance(value, dict):
            # a bare "name:" key holds no versions
            return {name: (versions if versions is not None else []) for name, versions in value.items()}
        return value

    @classmethod
    def new(cls) -> "IndexFile":
        return cls(api_version=API_VERSION_V1, generated=utcnow())

    def add(self, metadata: ChartMetadata, filename: str, base_url: str, digest: str) -> ChartVersion:
        """
        Add a chart archive to the index.

        The record's URL is ``filename`` joined onto ``base_url``, or
        ``filename`` as given when there is no base URL. Duplicate versions
        are not checked for.
        """
        url = filename
        if base_url:
            url = chart_url(base_url, filename)

        data = metadata.model_dump()
        data.update(urls=[url], digest=digest, created=utcnow(), removed=False)
        record = ChartVersion.model_validate(data)
        self.entries.setdefault(metadata.name, []).append(record)
        return record

    def get(self, name: str, version: str = "") -> ChartVersion:
        """
        Return the record for ``name`` at exactly ``version``.

        With an empty version, returns the first record in the name's list.
        That is the highest version only if ``sort_entries`` was called after
        the last ``add`` or ``merge``.
        """
        versions = self.entries.get(name)
        if versions is None:
            raise ChartNameNotFoundError(name)
        if not versions:
            raise ChartVersionListEmptyError(name)
        if not version:
            return versions[0]
        for record in versions:
            if record.version == version:
                return record
        raise ChartVersionNotFoundError(name, version)

    def has(self, name: str, version: str = "") -> bool:
        try:
            self.get(name, version)
        except LookupError:
            return False
        return True

    def sort_entries(self) -> None:
        """Sort every version list so the highest version is first."""
        for versions in self.entries.values():
            sort_versions(versions)

    def merge(self, other: "IndexFile") -> None:
        """
        Merge another index into this one.

        Records whose name and version are already present here are left
        untouched; only missing ones are appended. The result is not
        re-sorted.
        """
        for versions in list(other.entries.values()):
            for record in list(versions):
                if not self.has(record.name, record.version):
                    self.entries.setdefault(record.name, []).append(record)

    def chart_names(self) -> List[str]:
        return sorted(self.entries)

    def to_document(self) -> dict:
        doc = {
            "apiVersion": self.api_version,
            "generated": self.generated.isoformat() if self.generated else None,
            "entries": {
                name: [record.to_document() for record in versions]
                for name, versions in self.entries.items()
            },
        }
        if self.public_keys:
            doc["publicKeys"] = list(self.public_keys)
        return doc

    def to_yaml(self) -> str:
        return yaml.safe_dump(self.to_document(), default_flow_style=False)
