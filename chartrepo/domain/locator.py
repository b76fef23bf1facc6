"""
Parsing of chart references into repository location, name and version.

Supported forms:

    gs://<bucket>[/<path>]/<name>-<version>.tgz
    https://storage.googleapis.com/<bucket>[/<path>]/<name>-<version>.tgz
"""
from __future__ import annotations

import re
from typing import Optional

from pydantic import BaseModel

from chartrepo.core.errors import InvalidReferenceError
from chartrepo.domain.chart_utils import archive_name

GCS_SCHEME = "gs://"
GCS_HTTP_PREFIX = "https://storage.googleapis.com/"

_ARCHIVE_RE = re.compile(r"^(?P<name>[^/]+?)-(?P<version>v?\d[^/]*)\.tgz$")


class ChartLocator(BaseModel):
    bucket: str
    path: str = ""
    name: str
    version: str

    @classmethod
    def parse(cls, reference: str) -> "ChartLocator":
        if not isinstance(reference, str) or not reference.strip():
            raise InvalidReferenceError("empty chart reference")
        reference = reference.strip()

        if reference.startswith(GCS_SCHEME):
            rest = reference[len(GCS_SCHEME):]
        elif reference.startswith(GCS_HTTP_PREFIX):
            rest = reference[len(GCS_HTTP_PREFIX):]
        else:
            raise InvalidReferenceError(f"cannot parse chart reference {reference}: unsupported scheme")

        segments = [s for s in rest.split("/") if s]
        if len(segments) < 2:
            raise InvalidReferenceError(f"cannot parse chart reference {reference}: missing bucket or archive")

        match = _ARCHIVE_RE.match(segments[-1])
        if match is None:
            raise InvalidReferenceError(
                f"chart reference {reference} does not name a <name>-<version>.tgz archive"
            )

        return cls(
            bucket=segments[0],
            path="/".join(segments[1:-1]),
            name=match.group("name"),
            version=match.group("version"),
        )

    @property
    def archive_name(self) -> str:
        return archive_name(self.name, self.version)

    def repo_url(self) -> str:
        """URL of the directory holding the archive, in gs:// form."""
        url = f"{GCS_SCHEME}{self.bucket}"
        if self.path:
            url += f"/{self.path}"
        return url

    def long_url(self) -> str:
        """Fully qualified archive URL, in gs:// form."""
        return f"{self.repo_url()}/{self.archive_name}"


def parse_chart_reference(reference: str) -> ChartLocator:
    return ChartLocator.parse(reference)


def is_gcs_chart_reference(reference: Optional[str]) -> bool:
    try:
        ChartLocator.parse(reference)
    except InvalidReferenceError:
        return False
    return True
