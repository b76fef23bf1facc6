"""
Exception hierarchy for the chart repository index and repository provider.

Callers can catch ``ChartRepoError`` for everything raised by this package, or
one of the narrower categories (index parsing, chart lookup, repository
resolution, transport) when they need to react differently.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from chartrepo.domain.index import IndexFile


class ChartRepoError(Exception):
    """Base exception for all chart repository failures."""


# ---------------------------------------------------------------------------
# Index documents
# ---------------------------------------------------------------------------


class IndexParseError(ChartRepoError):
    """Raised when index bytes cannot be parsed into an index."""


class NoAPIVersionError(IndexParseError):
    """Raised when a document is neither a versioned index nor a legacy one."""

    def __init__(self, message: str = "no API version specified") -> None:
        super().__init__(message)


# ---------------------------------------------------------------------------
# Chart lookups
# ---------------------------------------------------------------------------


class ChartNotFoundError(ChartRepoError, LookupError):
    """Base class for index lookup misses."""


class ChartNameNotFoundError(ChartNotFoundError):
    def __init__(self, name: str) -> None:
        super().__init__(f"no chart name found: {name}")
        self.name = name


class ChartVersionListEmptyError(ChartNotFoundError):
    def __init__(self, name: str) -> None:
        super().__init__(f"no chart version found for {name}")
        self.name = name


class ChartVersionNotFoundError(ChartNotFoundError):
    def __init__(self, name: str, version: str) -> None:
        super().__init__(f"no chart version found for {name}-{version}")
        self.name = name
        self.version = version


# ---------------------------------------------------------------------------
# Archives and digests
# ---------------------------------------------------------------------------


class ChartLoadError(ChartRepoError):
    """Raised when a file is not a loadable chart archive."""


class DigestError(ChartRepoError):
    """
    Raised when a chart archive digest cannot be computed.

    During a directory scan this aborts the scan; ``index`` then holds the
    entries that were indexed before the failure.
    """

    def __init__(self, message: str, index: Optional["IndexFile"] = None) -> None:
        super().__init__(message)
        self.index = index


class TransportError(ChartRepoError):
    """Raised when bytes cannot be fetched from a URL or read from a path."""


# ---------------------------------------------------------------------------
# Repository resolution
# ---------------------------------------------------------------------------


class RepositoryError(ChartRepoError):
    """Base class for repository resolution failures."""


class RepoNotFoundError(RepositoryError, LookupError):
    """Raised by a repository service when no descriptor matches."""


class UnknownRepoTypeError(RepositoryError):
    def __init__(self, repo_type: str) -> None:
        super().__init__(f"unknown repository type: {repo_type}")
        self.repo_type = repo_type


class DuplicateRepositoryError(RepositoryError):
    def __init__(self, name: str) -> None:
        super().__init__(f"repository named {name} already exists")
        self.name = name


class InvalidReferenceError(ChartRepoError, ValueError):
    """Raised when a chart reference cannot be parsed."""


class CredentialError(ChartRepoError):
    """Raised when a credential exists but cannot be turned into a client."""


class CredentialNotFoundError(CredentialError, LookupError):
    def __init__(self, name: str) -> None:
        super().__init__(f"credential named {name} not found")
        self.name = name
