from abc import ABC, abstractmethod
from threading import Lock
from typing import Dict, Iterable, List, Optional

from chartrepo.core.errors import RepoNotFoundError, RepositoryError
from chartrepo.domain.models import RepoDescriptor


class RepoService(ABC):
    """
    Abstract store of repository descriptors.
    """

    @abstractmethod
    def list(self) -> List[RepoDescriptor]:
        """List all known repositories."""
        pass

    @abstractmethod
    def create(self, repo: RepoDescriptor) -> None:
        """Register a repository descriptor."""
        pass

    @abstractmethod
    def get(self, name: str) -> RepoDescriptor:
        """Return the descriptor with the given name."""
        pass

    @abstractmethod
    def get_by_url(self, url: str) -> RepoDescriptor:
        """
        Return the descriptor whose URL is the longest prefix of ``url``.
        """
        pass

    @abstractmethod
    def delete(self, name: str) -> None:
        """Remove the descriptor with the given name."""
        pass


class InmemRepoService(RepoService):
    def __init__(self, repos: Optional[Iterable[RepoDescriptor]] = None):
        self._lock = Lock()
        self._repos: Dict[str, RepoDescriptor] = {}
        for repo in repos or []:
            self.create(repo)

    def list(self) -> List[RepoDescriptor]:
        with self._lock:
            return list(self._repos.values())

    def create(self, repo: RepoDescriptor) -> None:
        with self._lock:
            if repo.name in self._repos:
                raise RepositoryError(f"repository named {repo.name} already exists")
            self._repos[repo.name] = repo

    def get(self, name: str) -> RepoDescriptor:
        with self._lock:
            repo = self._repos.get(name)
        if repo is None:
            raise RepoNotFoundError(f"repository named {name} not found")
        return repo

    def get_by_url(self, url: str) -> RepoDescriptor:
        found: Optional[RepoDescriptor] = None
        with self._lock:
            for repo in self._repos.values():
                if url.startswith(repo.url) and (found is None or len(repo.url) > len(found.url)):
                    found = repo
        if found is None:
            raise RepoNotFoundError(f"repository with URL {url} not found")
        return found

    def delete(self, name: str) -> None:
        with self._lock:
            if self._repos.pop(name, None) is None:
                raise RepoNotFoundError(f"repository named {name} not found")
