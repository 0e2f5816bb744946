import asyncio

from fastapi import APIRouter, Request

from app.core.rate_limit import rate_limit
from app.schemas.search import DeepSearchRequest, DeepSearchResults
from app.search.deep_search import deep_search

router = APIRouter()


@router.post("/search/deep", response_model=DeepSearchResults)
@rate_limit()
async def search_deep(request: Request, payload: DeepSearchRequest):
    _ = request
    return await asyncio.to_thread(deep_search, payload.name, payload.context)
