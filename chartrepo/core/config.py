from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError

from chartrepo.domain.models import RepoDescriptor

logger = logging.getLogger(__name__)

DATA_ROOT_ENV_VAR = "CHARTREPO_DATA_DIR"
BASE_URL_ENV_VAR = "CHARTREPO_BASE_URL"
CONFIG_FILENAME = "repository.json"

# Resolve repository root (project root, not the Python package root)
_REPO_ROOT = Path(__file__).resolve().parents[2]
_DEFAULT_DATA_DIR = _REPO_ROOT / "data"


class Settings(BaseModel):
    """
    Top-level configuration of a chart repository server.
    Persisted at: <DATA_DIR>/repository.json
    """

    display_name: str = Field(
        default="Local chart repository",
        description="Human-friendly name for this repository.",
    )
    base_url: str = Field(
        default="http://localhost:8000/charts",
        description="URL under which chart archives are served; used for index entry URLs.",
    )
    chart_dir: str = Field(
        default="charts",
        description="Directory holding chart archives, relative to the data directory.",
    )
    cache_dir: str = Field(
        default="cache",
        description="Directory for downloaded remote indexes, relative to the data directory.",
    )
    credentials_file: Optional[str] = Field(
        default=None,
        description="Optional YAML file of repository credentials, relative to the data directory.",
    )
    repositories: List[RepoDescriptor] = Field(
        default_factory=list,
        description="Remote repositories known to the repository provider.",
    )


def get_data_dir() -> Path:
    """
    Determine the data directory path.

    Priority:
    1. Environment variable CHARTREPO_DATA_DIR
    2. '<project root>/data'
    """
    env_path = os.environ.get(DATA_ROOT_ENV_VAR)
    if env_path:
        data_dir = Path(env_path).expanduser()
    else:
        data_dir = _DEFAULT_DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def load_settings(data_dir: Path) -> Settings:
    """
    Load repository.json, filling in defaults for any missing fields, and
    write it back so new fields are persisted.

    CHARTREPO_BASE_URL overrides the stored base URL without being persisted.
    """
    path = data_dir / CONFIG_FILENAME
    settings = Settings()
    if path.exists():
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
            settings = Settings(**raw)
        except (OSError, ValueError, TypeError, ValidationError) as e:
            # Broken config: fall back to defaults and overwrite the file.
            logger.warning(f"Ignoring unreadable {path}: {e}")

    path.write_text(settings.model_dump_json(indent=2), encoding="utf-8")

    base_url = os.environ.get(BASE_URL_ENV_VAR)
    if base_url:
        settings = settings.model_copy(update={"base_url": base_url})
    return settings


def resolve_path(data_dir: Path, value: str) -> Path:
    path = Path(value).expanduser()
    return path if path.is_absolute() else data_dir / path
