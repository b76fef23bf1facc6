"""
HTTP endpoints that serve a chart directory as a chart repository.

Clients fetch ``/index.yaml`` and then download archives through the URLs
recorded in it (``<base_url>/<archive>``, served by ``/charts/{filename}``).
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import FileResponse

from chartrepo.core.dependencies import get_chart_dir, get_chart_index
from chartrepo.core.errors import ChartNotFoundError
from chartrepo.domain.chart_utils import CHART_ARCHIVE_EXTENSION, INDEX_FILENAME
from chartrepo.domain.index import IndexFile

logger = logging.getLogger(__name__)
router = APIRouter()


# ---------------------------------------------------------------------------
# 1. GET /index.yaml
# ---------------------------------------------------------------------------

@router.get(f"/{INDEX_FILENAME}")
async def get_index(index: IndexFile = Depends(get_chart_index)) -> Response:
    return Response(content=index.to_yaml(), media_type="application/x-yaml")


# ---------------------------------------------------------------------------
# 2. GET /charts/{filename}
# ---------------------------------------------------------------------------

@router.get("/charts/{filename}")
async def download_chart(filename: str, chart_dir: Path = Depends(get_chart_dir)) -> FileResponse:
    """
    Serve a chart archive from the chart directory.
    Only plain archive file names are accepted.
    """
    if Path(filename).name != filename or not filename.endswith(CHART_ARCHIVE_EXTENSION):
        raise HTTPException(status_code=404, detail="Chart archive not found")

    path = chart_dir / filename
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Chart archive not found")

    return FileResponse(
        path=str(path),
        filename=filename,
        media_type="application/gzip",
    )


# ---------------------------------------------------------------------------
# 3. Chart lookups
# ---------------------------------------------------------------------------

@router.get("/api/charts")
async def list_charts(index: IndexFile = Depends(get_chart_index)) -> List[str]:
    return index.chart_names()


@router.get("/api/charts/{name}")
async def get_chart_versions(name: str, index: IndexFile = Depends(get_chart_index)) -> List[dict]:
    versions = index.entries.get(name)
    if versions is None:
        raise HTTPException(status_code=404, detail="Chart not found")
    return [record.to_document() for record in versions]


@router.get("/api/charts/{name}/{version}")
async def get_chart_version(name: str, version: str, index: IndexFile = Depends(get_chart_index)) -> dict:
    try:
        record = index.get(name, version)
    except ChartNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return record.to_document()
