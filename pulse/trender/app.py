"""Pulse FastAPI application: manual triggers, health and status."""

from datetime import datetime, timezone
from functools import lru_cache
from typing import Any, Dict

import uvicorn
from fastapi import Depends, FastAPI, HTTPException
from fastapi.responses import JSONResponse, PlainTextResponse

from pulse.core.logging import get_logger, setup_logging
from pulse.core.settings import Settings, get_settings
from pulse.rewriter.llm_provider import OpenAISummaryProvider
from pulse.trender.pipeline import NewsPipeline, build_pipeline
from pulse.trender.scheduler import create_scheduler

# Setup logging
setup_logging("pulse")
logger = get_logger(__name__)

app = FastAPI(title="Pulse", version="0.1.0", description="Trend detection and news card generation API")


@lru_cache()
def get_pipeline() -> NewsPipeline:
    """Process-wide pipeline; the summarizer keeps its detected model."""
    return build_pipeline()


def check_manual_run_enabled(settings: Settings = Depends(get_settings)):
    """Check if manual runs are enabled via environment flag."""
    if not settings.allow_manual_run:
        raise HTTPException(
            status_code=403,
            detail="Manual runs are disabled. Set ALLOW_MANUAL_RUN=true to enable."
        )
    return True


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error(message: str, error: Exception) -> JSONResponse:
    return JSONResponse(status_code=500, content={"success": False, "message": message, "error": str(error)})


@app.get("/", response_class=PlainTextResponse)
async def root():
    """Root endpoint."""
    return "Pulse backend is alive"


@app.get("/healthz")
async def health_check():
    """Health check endpoint."""
    return {"status": "ok", "service": "pulse"}


@app.get("/health")
async def health(settings: Settings = Depends(get_settings),
                 pipeline: NewsPipeline = Depends(get_pipeline)):
    """Health with environment and detected model."""
    model_status = pipeline.summarizer.status()
    return {
        "status": "healthy",
        "timestamp": _now(),
        "environment": settings.environment,
        "model": model_status.get("active_model") or "not_detected",
    }


@app.get("/status")
async def status(settings: Settings = Depends(get_settings),
                 pipeline: NewsPipeline = Depends(get_pipeline)):
    """Which collaborators are configured, plus model status."""
    config = {
        "news_api_key": bool(settings.news_api_key),
        "openai_api_key": bool(settings.openai_api_key),
        "database": bool(settings.db_url),
    }
    return {
        "configured": all(config.values()),
        "config": config,
        "model": pipeline.summarizer.status(),
        "timestamp": _now(),
    }


@app.post("/generate")
async def generate(_: bool = Depends(check_manual_run_enabled),
                   pipeline: NewsPipeline = Depends(get_pipeline)):
    """Manually run the single-trend workflow."""
    logger.info("Manual news generation requested")
    try:
        card = await pipeline.generate_news_article()
    except Exception as e:
        logger.error(f"Manual generation failed: {e}", exc_info=True)
        return _error("Error generating news article", e)

    if card is None:
        return {"success": False, "message": "No suitable news article could be generated"}
    return {"success": True, "message": "News article generated successfully", "data": card}


@app.post("/detect-model")
async def detect_model(_: bool = Depends(check_manual_run_enabled),
                       pipeline: NewsPipeline = Depends(get_pipeline)):
    """Re-run OpenAI model detection."""
    logger.info("Manual model detection requested")
    summarizer = pipeline.summarizer
    if not isinstance(summarizer, OpenAISummaryProvider):
        raise HTTPException(status_code=400, detail="Model detection requires the OpenAI provider")

    try:
        detected = await summarizer.detect_model()
    except Exception as e:
        logger.error(f"Model detection failed: {e}", exc_info=True)
        return _error("Error during model detection", e)

    return {
        "success": True,
        "message": "Model detection completed",
        "detected_model": detected,
        "model_status": summarizer.status(),
    }


@app.post("/autonomous-process")
async def autonomous_process(_: bool = Depends(check_manual_run_enabled),
                             pipeline: NewsPipeline = Depends(get_pipeline)):
    """Manually run one autonomous cycle."""
    logger.info("Manual autonomous processing requested")
    try:
        result = await pipeline.run_autonomous_processing()
    except Exception as e:
        logger.error(f"Autonomous processing failed: {e}", exc_info=True)
        return _error("Error during autonomous processing", e)

    return {"success": True, "message": "Autonomous processing completed", "results": result.to_dict()}


@app.get("/autonomous-status")
async def autonomous_status(settings: Settings = Depends(get_settings)) -> Dict[str, Any]:
    """Autonomous cycle configuration."""
    return {
        "status": "active" if settings.scheduler_enabled else "manual_only",
        "configuration": {
            "cron_schedule": settings.autonomous_cron,
            "legacy_cron_schedule": settings.cron_schedule,
            "min_articles": settings.min_articles,
            "max_articles_per_fetch": settings.max_articles_per_fetch,
            "trend_threshold": settings.autonomous_trend_threshold,
            "min_unique_sources": settings.autonomous_min_sources,
            "max_topics_per_cycle": settings.max_topics_per_cycle,
            "time_window_hours": settings.time_window_hours,
        },
        "timestamp": _now(),
    }


@app.on_event("startup")
async def startup_event():
    """Startup event handler."""
    settings = get_settings()
    logger.info(
        "Starting pulse service",
        extra={
            "service": "pulse",
            "version": "0.1.0",
            "manual_runs_enabled": settings.allow_manual_run,
            "scheduler_enabled": settings.scheduler_enabled,
        }
    )
    if settings.scheduler_enabled:
        app.state.scheduler = create_scheduler(get_pipeline, settings)
        app.state.scheduler.start()
        logger.info("Scheduler started")


@app.on_event("shutdown")
async def shutdown_event():
    """Shutdown event handler."""
    scheduler = getattr(app.state, "scheduler", None)
    if scheduler is not None and scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler shut down")
    if get_pipeline.cache_info().currsize:
        await get_pipeline().aclose()
        get_pipeline.cache_clear()
    logger.info("Shutting down pulse service")


def main():
    """Run the API server with uvicorn."""
    settings = get_settings()
    logger.info("Starting pulse service via uvicorn")
    uvicorn.run(
        "pulse.trender.app:app",
        host=settings.service_host,
        port=settings.service_port or 3000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
