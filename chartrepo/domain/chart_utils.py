import os
import posixpath
from urllib.parse import urlsplit, urlunsplit

INDEX_FILENAME = "index.yaml"
CHART_ARCHIVE_EXTENSION = ".tgz"


def url_join(base_url: str, *paths: str) -> str:
    """
    Join a base URL and path components with "/" semantics.

    Like os.path.join for URLs; a path-ish base URL is joined too. Raises
    ValueError if the base URL cannot be parsed.
    """
    parts = urlsplit(base_url)
    joined = posixpath.normpath(posixpath.join(parts.path, *paths))
    if joined == ".":
        joined = ""
    return urlunsplit((parts.scheme, parts.netloc, joined, parts.query, parts.fragment))


def chart_url(base_url: str, filename: str) -> str:
    """
    URL for an archive served under base_url.

    Only the base name of ``filename`` is used. Falls back to a filesystem
    join when the base URL is unparsable.
    """
    file = os.path.basename(filename)
    try:
        return url_join(base_url, file)
    except ValueError:
        return os.path.join(base_url, file)


def index_url(repo_url: str) -> str:
    """Location of a repository's index document."""
    return repo_url.rstrip("/") + "/" + INDEX_FILENAME


def archive_name(name: str, version: str) -> str:
    """File name of a chart archive, e.g. ``nginx-1.2.3.tgz``."""
    return f"{name}-{version}{CHART_ARCHIVE_EXTENSION}"
