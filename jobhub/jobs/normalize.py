import hashlib
import re
from datetime import date, datetime, timezone
from typing import Any, Dict, Optional
from urllib.parse import quote

from jobhub.models.schema import JobPosting


DEFAULT_TITLE = "Untitled Position"
DEFAULT_COMPANY = "Unknown Company"
DEFAULT_EMPLOYMENT_TYPE = "Full-time"
LOGO_PLACEHOLDER_URL = "https://ui-avatars.com/api/?name={name}&background=random&color=fff"

EMPLOYMENT_TYPE_FIELDS = ("employmentType", "employment_type")


def parse_int(text: Any) -> Optional[int]:
    if text is None or isinstance(text, bool):
        return None
    if isinstance(text, int):
        return text
    if isinstance(text, float):
        try:
            return int(text)
        except (OverflowError, ValueError):
            return None
    m = re.search(r"(-?\d+)", str(text).replace(",", ""))
    return int(m.group(1)) if m else None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def default_logo_url(company: Optional[str]) -> str:
    return LOGO_PLACEHOLDER_URL.format(name=quote(company or "Company", safe=""))


def parse_posted_at(value: Any) -> Optional[datetime]:
    """Lenient date parsing. Returns None for anything unusable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, dict):
        return parse_posted_at(value.get("$date"))
    if isinstance(value, (int, float)):
        try:
            ts = float(value)
            # epoch milliseconds
            if ts > 1e12:
                ts /= 1000.0
            return datetime.fromtimestamp(ts, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            try:
                parsed = datetime.fromisoformat(text[:10])
            except ValueError:
                return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _resolve_id(raw: Dict[str, Any], title: str, company: str, link: Optional[str]) -> str:
    value = raw.get("_id")
    if isinstance(value, dict):
        value = value.get("$oid")
    value = _text(value) or _text(raw.get("id"))
    if value:
        return value
    joined = "|".join([title, company, link or ""])
    return hashlib.sha256(joined.encode("utf-8")).hexdigest()


def _resolve_posted_at(raw: Dict[str, Any]) -> Optional[datetime]:
    posted = parse_posted_at(raw.get("postedDate"))
    if posted is None:
        posted = parse_posted_at(raw.get("postedDateTime"))
    return posted


def _experience_bound(value: Any) -> Optional[int]:
    years = parse_int(value)
    if years is None or years < 0:
        return None
    return years


def normalize_record(raw: Dict[str, Any]) -> JobPosting:
    """Map a stored document (or an API payload item) onto a JobPosting.

    Each field has a fixed fallback order. Malformed values fall back to the
    defaults instead of raising.
    """
    if not isinstance(raw, dict):
        raw = {}

    title = _text(raw.get("title")) or DEFAULT_TITLE
    company = _text(raw.get("company")) or DEFAULT_COMPANY
    link = _text(raw.get("job_link"))

    employment_type = DEFAULT_EMPLOYMENT_TYPE
    for field in EMPLOYMENT_TYPE_FIELDS:
        value = _text(raw.get(field))
        if value:
            employment_type = value
            break

    return JobPosting(
        id=_resolve_id(raw, title, company, link),
        title=title,
        company=company,
        location=_text(raw.get("location")),
        min_experience_years=_experience_bound(raw.get("min_exp")),
        max_experience_years=_experience_bound(raw.get("max_exp")),
        employment_type=employment_type,
        posted_at=_resolve_posted_at(raw),
        application_link=link,
        logo_url=_text(raw.get("companyImageUrl")) or default_logo_url(company),
        experience_note=_text(raw.get("experience")),
    )
