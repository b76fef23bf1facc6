import logging

from fastapi import FastAPI

from chartrepo.api.charts import router as charts_router
from chartrepo.core.dependencies import get_settings, rebuild_chart_index, reset

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


app = FastAPI(
    title="Chart Repository",
    version="0.1.0",
    description="Serves a directory of packaged charts as a chart repository.",
)


@app.on_event("startup")
async def startup_event() -> None:
    """
    Load settings and build the index of the chart directory.
    """
    settings = get_settings()
    index = rebuild_chart_index()
    logger.info(f"Serving {len(index.entries)} charts as {settings.display_name}")


@app.on_event("shutdown")
async def shutdown_event() -> None:
    reset()


@app.get("/health")
async def health() -> dict:
    """
    Lightweight health check endpoint.
    """
    return {"status": "ok"}


app.include_router(charts_router, tags=["charts"])


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "chartrepo.main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
