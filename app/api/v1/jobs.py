import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request, status

from app.core.config import settings
from app.core.rate_limit import rate_limit
from app.integrations.adzuna import AdzunaClient
from app.schemas.analysis import JobSearchRequest, JobSearchResponse
from app.schemas.market import JobCompatibility, JobCompatibilityRequest
from app.services.llm import LLMError
from app.services.market_service import assess_job_compatibility

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/jobs/search", response_model=JobSearchResponse)
@rate_limit()
async def jobs_search(request: Request, payload: JobSearchRequest):
    _ = request
    client = AdzunaClient()
    return await asyncio.to_thread(client.search_jobs, payload.title, payload.location, payload.page)


@router.post("/jobs/compatibility", response_model=JobCompatibility)
@rate_limit(settings.analyze_rate_limit)
async def jobs_compatibility(request: Request, payload: JobCompatibilityRequest):
    _ = request
    try:
        return await asyncio.to_thread(assess_job_compatibility, payload)
    except LLMError as exc:
        logger.warning("job_compatibility_failed code=%s: %s", exc.code, exc)
        code = status.HTTP_503_SERVICE_UNAVAILABLE if exc.code == "llm_disabled" else status.HTTP_502_BAD_GATEWAY
        raise HTTPException(status_code=code, detail=str(exc)) from exc
