from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel

from jobhub.jobs.normalize import default_logo_url
from jobhub.models.schema import FailureKind, JobPosting


RECENT_LABEL = "Recently"
RECENTLY_POSTED_LABEL = "Recently posted"
NO_EXPERIENCE_LABEL = "Not specified"
NO_LOCATION_LABEL = "Location not specified"


class JobView(BaseModel):
    id: str
    title: str
    company: str
    location: str
    employment_type: str
    experience: str
    posted_relative: str
    posted_on: str
    logo_url: str
    fallback_logo_url: str
    apply_url: Optional[str] = None
    can_apply: bool = False


def _days_since(posted_at: datetime, now: datetime) -> int:
    if posted_at.tzinfo is None:
        posted_at = posted_at.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return (now - posted_at).days


def relative_time(posted_at: Optional[datetime], now: Optional[datetime] = None) -> str:
    if posted_at is None:
        return RECENT_LABEL
    days = max(_days_since(posted_at, now or datetime.now(timezone.utc)), 0)
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    if days < 30:
        return f"{days} days ago"
    if days < 365:
        months = days // 30
        return f"{months} {'month' if months == 1 else 'months'} ago"
    return f"{days // 365} year(s) ago"


def format_posted_date(posted_at: Optional[datetime]) -> str:
    if posted_at is None:
        return RECENTLY_POSTED_LABEL
    return f"{posted_at:%B} {posted_at.day}, {posted_at.year}"


def experience_text(
    min_years: Optional[int],
    max_years: Optional[int],
    note: Optional[str] = None,
) -> str:
    if min_years is not None and max_years is not None:
        if min_years == max_years:
            return f"{min_years} years"
        return f"{min_years}-{max_years} years"
    if min_years is not None:
        return f"{min_years}+ years"
    if max_years is not None:
        return f"Up to {max_years} years"
    return note or NO_EXPERIENCE_LABEL


def project(job: JobPosting, now: Optional[datetime] = None) -> JobView:
    return JobView(
        id=job.id,
        title=job.title,
        company=job.company,
        location=job.location or NO_LOCATION_LABEL,
        employment_type=job.employment_type,
        experience=experience_text(job.min_experience_years, job.max_experience_years, job.experience_note),
        posted_relative=relative_time(job.posted_at, now),
        posted_on=format_posted_date(job.posted_at),
        logo_url=job.logo_url,
        fallback_logo_url=default_logo_url(job.company),
        apply_url=job.application_link,
        can_apply=bool(job.application_link),
    )


FAILURE_MESSAGES = {
    FailureKind.OFFLINE: "You appear to be offline. Check your internet connection.",
    FailureKind.CONNECT_FAILED: "Could not connect to the job server.",
    FailureKind.TIMEOUT: "The job server took too long to respond.",
    FailureKind.SERVER_ERROR: "The job server returned an error. Please try again later.",
    FailureKind.UNKNOWN: "Something went wrong while loading jobs.",
}


def describe_failure(
    kind: FailureKind,
    attempts: int = 0,
    max_retries: int = 3,
    given_up: bool = False,
) -> str:
    message = FAILURE_MESSAGES.get(kind, FAILURE_MESSAGES[FailureKind.UNKNOWN])
    if given_up:
        return f"{message} Gave up after {attempts} retries."
    if kind.network_class and attempts:
        return f"{message} Retrying ({attempts}/{max_retries})..."
    return message
