"""
Pydantic models for the chart repository.

This module defines the data models shared across the application:
- Chart metadata as read from an archive's Chart.yaml
- Versioned index records
- Repository descriptors and credentials used to resolve backing stores

Index serialization lives in ``chartrepo.domain.index``.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Chart Metadata Models
# ---------------------------------------------------------------------------


class Maintainer(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    email: Optional[str] = None


class ChartMetadata(BaseModel):
    """
    Descriptor fields of a chart, as found in its Chart.yaml.

    Only ``name`` and ``version`` are interpreted by the index. Every other
    field, including unknown ones, is passed through unchanged.
    """

    model_config = ConfigDict(extra="allow")

    name: str = Field(default="", description="Chart name.")
    version: str = Field(
        default="",
        description="Chart version. Expected, but not required, to be a semantic version.",
    )
    description: Optional[str] = None
    home: Optional[str] = None
    keywords: Optional[List[str]] = None
    sources: Optional[List[str]] = None
    maintainers: Optional[List[Maintainer]] = None
    engine: Optional[str] = None
    icon: Optional[str] = None

    @field_validator("version", mode="before")
    @classmethod
    def _version_as_string(cls, value):
        # YAML reads versions like 1.0 as floats
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if value is None:
            return ""
        return value


class ChartVersion(ChartMetadata):
    """
    One published version of a named chart in an index.

    The chart's metadata fields sit at the top level of the record, next to
    the retrieval URLs and bookkeeping fields.
    """

    urls: List[str] = Field(
        default_factory=list,
        description="Retrieval URLs. The first one is canonical.",
    )
    created: Optional[datetime] = Field(
        default=None,
        description="When this version was first indexed.",
    )
    removed: bool = Field(
        default=False,
        description="Tombstone flag for a withdrawn version.",
    )
    digest: str = Field(
        default="",
        description="Opaque integrity string, empty if unknown.",
    )

    @property
    def metadata(self) -> ChartMetadata:
        data = self.model_dump(exclude={"urls", "created", "removed", "digest"})
        return ChartMetadata.model_validate(data)

    def to_document(self) -> dict:
        """Serializable mapping, omitting unset optional fields."""
        doc = self.model_dump(mode="json", exclude_none=True)
        if not self.removed:
            doc.pop("removed", None)
        if not self.digest:
            doc.pop("digest", None)
        return doc


# ---------------------------------------------------------------------------
# Repository Models
# ---------------------------------------------------------------------------


GCS_REPO_TYPE = "gcs"
FILESYSTEM_REPO_FORMAT = "flat"


class RepoDescriptor(BaseModel):
    """
    Metadata identifying a chart repository, independent of any live
    connection to it.
    """

    name: str = Field(description="Display name, unique per provider.")
    url: str = Field(description="Base URL of the repository, e.g. gs://bucket/charts.")
    type: str = Field(default=GCS_REPO_TYPE, description="Backing store kind.")
    format: str = Field(default=FILESYSTEM_REPO_FORMAT, description="Layout of the repository.")
    credential_name: Optional[str] = Field(
        default=None,
        description="Name of the credential used to access the repository, if any.",
    )


class BasicAuthCredential(BaseModel):
    username: str
    password: str


class RepoCredential(BaseModel):
    """
    Secret bundle for accessing a repository.

    At most one of the fields is normally set.
    """

    api_token: Optional[str] = None
    basic_auth: Optional[BasicAuthCredential] = None
    service_account: Optional[str] = Field(
        default=None,
        description="Service account key, as the JSON string downloaded from the cloud console.",
    )
