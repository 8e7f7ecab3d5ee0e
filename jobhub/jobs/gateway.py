import logging
import math
from datetime import datetime, timezone
from typing import List, Optional, Protocol

from jobhub.models.schema import (
    ExperienceBracket,
    FailureKind,
    JobPosting,
    PageSize,
    PAGE_SIZE_ALL,
    QueryDescriptor,
    RetrievalFailure,
    RetrievalOutcome,
    RetrievalSuccess,
)
from jobhub.store.documents import JobStore, StoreError


logger = logging.getLogger(__name__)

# Stand-in for a missing upper experience bound.
UNBOUNDED_EXPERIENCE = 10**6
_OLDEST = datetime.min.replace(tzinfo=timezone.utc)


class RetrievalGateway(Protocol):
    async def execute(self, query: QueryDescriptor) -> RetrievalOutcome:
        ...


def matches_location(job: JobPosting, location: Optional[str]) -> bool:
    if not location:
        return True
    if not job.location:
        return False
    return location.lower() in job.location.lower()


def matches_experience(job: JobPosting, bracket: Optional[ExperienceBracket]) -> bool:
    if bracket is None:
        return True
    low, high = bracket
    job_min = job.min_experience_years if job.min_experience_years is not None else 0
    job_max = job.max_experience_years if job.max_experience_years is not None else UNBOUNDED_EXPERIENCE
    if job_min < low:
        return False
    return high is None or job_max <= high


def sort_newest_first(jobs: List[JobPosting]) -> List[JobPosting]:
    # Two stable passes: id ascending, then date descending with undated last.
    ordered = sorted(jobs, key=lambda j: j.id)
    return sorted(ordered, key=lambda j: j.posted_at or _OLDEST, reverse=True)


def paginate(jobs: List[JobPosting], query: QueryDescriptor) -> List[JobPosting]:
    if query.unbounded:
        return list(jobs)
    start = (query.page - 1) * query.page_size
    return jobs[start:start + query.page_size]


def total_pages(total: int, page_size: PageSize) -> int:
    if page_size == PAGE_SIZE_ALL:
        return 1 if total else 0
    return math.ceil(total / page_size)


def run_query(jobs: List[JobPosting], query: QueryDescriptor) -> RetrievalSuccess:
    filtered = [
        j for j in jobs
        if matches_location(j, query.location) and matches_experience(j, query.experience)
    ]
    ordered = sort_newest_first(filtered)
    page = paginate(ordered, query)
    return RetrievalSuccess(records=page, total=len(ordered))


class DocumentGateway:
    """Evaluates queries against the local document store."""

    def __init__(self, store: JobStore) -> None:
        self.store = store

    async def execute(self, query: QueryDescriptor) -> RetrievalOutcome:
        try:
            jobs = self.store.all()
        except StoreError as e:
            logger.error("[jobs] %s", e)
            return RetrievalFailure(kind=FailureKind.SERVER_ERROR, message=str(e))

        result = run_query(jobs, query)
        logger.debug(
            "[jobs] page=%s limit=%s location=%r experience=%s -> %d/%d",
            query.page, query.page_size, query.location, query.experience,
            len(result.records), result.total,
        )
        return result
