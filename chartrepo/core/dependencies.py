import logging
from pathlib import Path
from threading import Lock
from typing import Optional

from chartrepo.core.config import Settings, get_data_dir, load_settings, resolve_path
from chartrepo.data.index_loader import index_directory
from chartrepo.domain.index import IndexFile
from chartrepo.services.repo_provider import RepoProvider
from chartrepo.storage.credentials import (
    CredentialProvider,
    FileCredentialProvider,
    InmemCredentialProvider,
)
from chartrepo.storage.repo_service import InmemRepoService

logger = logging.getLogger(__name__)

_settings: Optional[Settings] = None
_chart_index: Optional[IndexFile] = None
_repo_provider: Optional[RepoProvider] = None
_index_lock = Lock()
_provider_lock = Lock()


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = load_settings(get_data_dir())
    return _settings


def get_chart_dir() -> Path:
    d = resolve_path(get_data_dir(), get_settings().chart_dir)
    d.mkdir(parents=True, exist_ok=True)
    return d


def rebuild_chart_index() -> IndexFile:
    """Re-scan the chart directory and replace the served index."""
    global _chart_index
    settings = get_settings()
    index = index_directory(get_chart_dir(), settings.base_url)
    index.sort_entries()
    with _index_lock:
        _chart_index = index
    return index


def get_chart_index() -> IndexFile:
    if _chart_index is None:
        return rebuild_chart_index()
    return _chart_index


def _build_credential_provider(settings: Settings) -> CredentialProvider:
    if settings.credentials_file:
        return FileCredentialProvider(resolve_path(get_data_dir(), settings.credentials_file))
    return InmemCredentialProvider()


def get_repo_provider() -> RepoProvider:
    global _repo_provider
    with _provider_lock:
        if _repo_provider is None:
            settings = get_settings()
            _repo_provider = RepoProvider(
                repo_service=InmemRepoService(settings.repositories),
                credential_provider=_build_credential_provider(settings),
            )
        return _repo_provider


def reset() -> None:
    """Drop all process-wide state; the next accessor call rebuilds it."""
    global _settings, _chart_index, _repo_provider
    with _provider_lock:
        if _repo_provider is not None:
            _repo_provider.close()
        _repo_provider = None
    with _index_lock:
        _chart_index = None
    _settings = None
