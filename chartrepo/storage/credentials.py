from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Dict, Optional, Union
import logging

import yaml
from pydantic import ValidationError

from chartrepo.core.errors import CredentialError, CredentialNotFoundError
from chartrepo.domain.models import RepoCredential

logger = logging.getLogger(__name__)


class CredentialProvider(ABC):
    """
    Abstract source of repository credentials.
    """

    @abstractmethod
    def get_credential(self, name: str) -> RepoCredential:
        """Return the named credential, or raise CredentialNotFoundError."""
        pass

    @abstractmethod
    def set_credential(self, name: str, credential: RepoCredential) -> None:
        """Create or replace the named credential."""
        pass


class InmemCredentialProvider(CredentialProvider):
    def __init__(self, credentials: Optional[Dict[str, RepoCredential]] = None):
        self._lock = Lock()
        self._credentials: Dict[str, RepoCredential] = dict(credentials or {})

    def get_credential(self, name: str) -> RepoCredential:
        with self._lock:
            credential = self._credentials.get(name)
        if credential is None:
            raise CredentialNotFoundError(name)
        return credential

    def set_credential(self, name: str, credential: RepoCredential) -> None:
        with self._lock:
            self._credentials[name] = credential


class FileCredentialProvider(InmemCredentialProvider):
    """
    Credentials read once from a YAML file of the form::

        my-credential:
          api_token: "..."
        other:
          basic_auth: {username: "...", password: "..."}

    ``set_credential`` only changes the in-memory copy.
    """

    def __init__(self, path: Union[str, Path]):
        super().__init__()
        self._path = Path(path)
        for name, credential in self._read_file().items():
            self.set_credential(name, credential)

    def _read_file(self) -> Dict[str, RepoCredential]:
        if not self._path.exists():
            logger.warning(f"Credentials file not found: {self._path}")
            return {}
        try:
            raw = yaml.safe_load(self._path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise CredentialError(f"cannot read credentials file {self._path}: {e}") from e
        if not isinstance(raw, dict):
            raise CredentialError(f"credentials file {self._path} must contain a mapping")

        credentials: Dict[str, RepoCredential] = {}
        for name, value in raw.items():
            try:
                credentials[str(name)] = RepoCredential.model_validate(value or {})
            except ValidationError as e:
                raise CredentialError(f"invalid credential {name!r} in {self._path}: {e}") from e
        logger.debug(f"Loaded {len(credentials)} credentials from {self._path}")
        return credentials
