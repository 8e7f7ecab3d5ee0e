from functools import lru_cache
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException

from jobhub.config import get_settings
from jobhub.jobs.gateway import DocumentGateway, RetrievalGateway
from jobhub.jobs.query import build_query
from jobhub.models.schema import JobsResponse, RetrievalFailure
from jobhub.store.documents import JobStore


router = APIRouter(prefix="/api")


@lru_cache(maxsize=1)
def get_gateway() -> RetrievalGateway:
    settings = get_settings()
    return DocumentGateway(JobStore(settings.jobs_data_path))


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/jobs", response_model=JobsResponse)
async def list_jobs(
    page: Optional[str] = "1",
    limit: Optional[str] = None,
    location: Optional[str] = None,
    experience: Optional[str] = None,
    gateway: RetrievalGateway = Depends(get_gateway),
):
    settings = get_settings()
    query = build_query(
        location_text=location,
        experience_bracket=experience,
        page_number=page,
        page_size_or_all=limit if limit is not None else settings.page_size,
        default_page_size=settings.page_size,
    )
    outcome = await gateway.execute(query)
    if isinstance(outcome, RetrievalFailure):
        raise HTTPException(status_code=503, detail=outcome.message or "Job store unavailable")
    return JobsResponse(data=[job.to_wire() for job in outcome.records], total=outcome.total)
