import asyncio

from fastapi import APIRouter, Request

from app.core.rate_limit import rate_limit
from app.schemas.market import SalaryEstimate, SalaryEstimateRequest
from app.services.market_service import estimate_salary

router = APIRouter()


@router.post("/salary/estimate", response_model=SalaryEstimate)
@rate_limit()
async def salary_estimate(request: Request, payload: SalaryEstimateRequest):
    _ = request
    return await asyncio.to_thread(estimate_salary, payload)
