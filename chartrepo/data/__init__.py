"""
Loading and persisting chart repository data.

This package is responsible for:
* Reading packaged chart archives and computing their digests.
* Parsing index documents, including the deprecated unversioned format.
* Writing index files and building an index from a directory of archives.
"""
