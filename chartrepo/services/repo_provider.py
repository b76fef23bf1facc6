"""
Resolution of repository names, URLs and chart references to live
repository handles.

A ``RepoProvider`` owns the handles it has created. It is meant to be
constructed once per process and shared; all resolution goes through a single
lock so that concurrent callers asking for the same repository end up with
one handle.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from threading import Lock
from typing import Callable, Dict, List, Optional, Tuple

import httpx

from chartrepo.core.errors import (
    CredentialError,
    DuplicateRepositoryError,
    UnknownRepoTypeError,
)
from chartrepo.data.chart_loader import Chart
from chartrepo.domain.locator import ChartLocator
from chartrepo.domain.models import GCS_REPO_TYPE, RepoCredential, RepoDescriptor
from chartrepo.services.chart_repo import GCS_API_BASE, ChartRepo, GCSRepo
from chartrepo.storage.credentials import CredentialProvider, InmemCredentialProvider
from chartrepo.storage.repo_service import InmemRepoService, RepoService

logger = logging.getLogger(__name__)

GCS_READ_ONLY_SCOPE = "https://www.googleapis.com/auth/devstorage.read_only"

# (service account JSON, scope) -> bearer token
TokenSource = Callable[[str, str], str]


# ---------------------------------------------------------------------------
# HTTP clients
# ---------------------------------------------------------------------------


class HTTPClientBuilder:
    """
    Build ``httpx.Client`` instances authorized with a repository credential.

    API tokens and basic auth are used as-is. Service account keys are
    exchanged for a bearer token through ``token_source``, which must be
    supplied by the caller.
    """

    def __init__(self, token_source: Optional[TokenSource] = None, timeout: float = 60.0):
        self.token_source = token_source
        self.timeout = timeout

    def __call__(self, credential: Optional[RepoCredential], scope: str) -> httpx.Client:
        if credential is None:
            return httpx.Client(follow_redirects=True, timeout=self.timeout)

        if credential.api_token:
            return self._bearer_client(credential.api_token)

        if credential.basic_auth is not None:
            return httpx.Client(
                auth=httpx.BasicAuth(credential.basic_auth.username, credential.basic_auth.password),
                follow_redirects=True,
                timeout=self.timeout,
            )

        if credential.service_account:
            if self.token_source is None:
                raise CredentialError("service account credentials require a token source")
            return self._bearer_client(self.token_source(credential.service_account, scope))

        raise CredentialError("credential has no api_token, basic_auth or service_account")

    def _bearer_client(self, token: str) -> httpx.Client:
        return httpx.Client(
            headers={"Authorization": f"Bearer {token}"},
            follow_redirects=True,
            timeout=self.timeout,
        )


ClientBuilder = Callable[[Optional[RepoCredential], str], httpx.Client]


# ---------------------------------------------------------------------------
# Backing store factories
# ---------------------------------------------------------------------------


class BackingStoreFactory(ABC):
    """
    Builds live repository handles for one kind of backing store.
    """

    @abstractmethod
    def create_repo(self, descriptor: RepoDescriptor) -> ChartRepo:
        """Construct a handle bound to the descriptor's name and URL."""
        pass


class GCSRepoProvider(BackingStoreFactory):
    """
    Factory for Google Cloud Storage repositories.

    If the descriptor names a credential that cannot be resolved, the
    repository is opened with an unauthenticated client instead.
    """

    def __init__(
        self,
        credential_provider: Optional[CredentialProvider] = None,
        client_builder: Optional[ClientBuilder] = None,
        api_base: str = GCS_API_BASE,
    ):
        self.credential_provider = credential_provider or InmemCredentialProvider()
        self.client_builder = client_builder or HTTPClientBuilder()
        self.api_base = api_base

    def create_repo(self, descriptor: RepoDescriptor) -> ChartRepo:
        client = self.create_client(descriptor.credential_name)
        return GCSRepo(
            descriptor.name,
            descriptor.url,
            descriptor.credential_name,
            client,
            api_base=self.api_base,
        )

    def create_client(self, credential_name: Optional[str]) -> httpx.Client:
        if not credential_name:
            return self.client_builder(None, GCS_READ_ONLY_SCOPE)

        try:
            credential = self.credential_provider.get_credential(credential_name)
        except CredentialError as e:
            logger.warning(f"credential named {credential_name} not found: {e}")
            logger.warning("falling back to the default client")
            return self.client_builder(None, GCS_READ_ONLY_SCOPE)

        return self.client_builder(credential, GCS_READ_ONLY_SCOPE)


# ---------------------------------------------------------------------------
# Repository provider
# ---------------------------------------------------------------------------


class RepoProvider:
    """
    Registry of resolved repositories.

    Handles are keyed by repository name. Lookup, construction and
    registration all happen under one lock, so resolutions are serialized
    and a name is only ever bound to one handle.
    """

    def __init__(
        self,
        repo_service: Optional[RepoService] = None,
        credential_provider: Optional[CredentialProvider] = None,
        gcs_provider: Optional[BackingStoreFactory] = None,
    ):
        self.repo_service = repo_service or InmemRepoService()
        self.credential_provider = credential_provider or InmemCredentialProvider()
        self.gcs_provider = gcs_provider or GCSRepoProvider(self.credential_provider)

        self._lock = Lock()
        self._repos: Dict[str, ChartRepo] = {}
        self._factories: Dict[str, BackingStoreFactory] = {GCS_REPO_TYPE: self.gcs_provider}

    def register_factory(self, repo_type: str, factory: BackingStoreFactory) -> None:
        with self._lock:
            self._factories[repo_type] = factory

    @property
    def repos(self) -> List[ChartRepo]:
        with self._lock:
            return list(self._repos.values())

    def get_repo_by_name(self, repo_name: str) -> ChartRepo:
        with self._lock:
            repo = self._repos.get(repo_name)
            if repo is not None:
                return repo

            descriptor = self.repo_service.get(repo_name)
            return self._create_repo_by_type(descriptor)

    def get_repo_by_url(self, url: str) -> ChartRepo:
        """
        Return the repository whose URL is the longest prefix of ``url``,
        resolving it through the repository service if no cached handle
        matches.
        """
        with self._lock:
            repo = self._find_repo_by_url(url)
            if repo is not None:
                return repo

            descriptor = self.repo_service.get_by_url(url)
            return self._create_repo_by_type(descriptor)

    def get_chart_by_reference(self, reference: str) -> Tuple[Chart, ChartRepo]:
        """
        Resolve a chart reference to its repository and fetch the chart.
        """
        locator = ChartLocator.parse(reference)
        repo = self.get_repo_by_url(locator.long_url())
        chart = repo.get_chart(locator.archive_name)
        return chart, repo

    def close(self) -> None:
        with self._lock:
            repos = list(self._repos.values())
            self._repos.clear()
        for repo in repos:
            repo.close()

    def _create_repo_by_type(self, descriptor: RepoDescriptor) -> ChartRepo:
        factory = self._factories.get(descriptor.type)
        if factory is None:
            raise UnknownRepoTypeError(descriptor.type)

        repo = factory.create_repo(descriptor)
        try:
            self._register(repo)
        except DuplicateRepositoryError:
            repo.close()
            raise
        logger.info(f"Resolved repository {repo.name} at {repo.url}")
        return repo

    def _register(self, repo: ChartRepo) -> None:
        if repo.name in self._repos:
            raise DuplicateRepositoryError(repo.name)
        self._repos[repo.name] = repo

    def _find_repo_by_url(self, url: str) -> Optional[ChartRepo]:
        found: Optional[ChartRepo] = None
        for repo in self._repos.values():
            if url.startswith(repo.url) and (found is None or len(repo.url) > len(found.url)):
                found = repo
        return found
