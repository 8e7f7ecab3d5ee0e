import re
from typing import Any, List, Optional, Tuple

from jobhub.models.schema import PAGE_SIZE_ALL, ExperienceBracket, PageSize, QueryDescriptor


DEFAULT_PAGE_SIZE = 20

# Choices offered by the browsing UI, label -> bracket.
EXPERIENCE_BRACKETS: List[Tuple[str, Optional[ExperienceBracket]]] = [
    ("All experience levels", None),
    ("0-1 years", (0, 1)),
    ("1-3 years", (1, 3)),
    ("3-5 years", (3, 5)),
    ("5-10 years", (5, 10)),
    ("10+ years", (10, None)),
]

BRACKET_RE = re.compile(r"^\s*(\d+)\s*(?:(\+)|-\s*(\d+))?\s*$")


def _non_negative(value: Any) -> Optional[int]:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return max(number, 0)


def parse_experience_bracket(value: Any) -> Optional[ExperienceBracket]:
    """Accepts None/"all", a (min, max) pair, or text like "3-5" / "10+"."""
    if value is None:
        return None
    if isinstance(value, str):
        if value.strip().lower() in ("", "all"):
            return None
        m = BRACKET_RE.match(value)
        if not m:
            return None
        low = int(m.group(1))
        high = int(m.group(3)) if m.group(3) is not None else None
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        low = _non_negative(value[0])
        high = _non_negative(value[1]) if value[1] is not None else None
        if low is None:
            low = 0
    else:
        return None

    if high is not None and low > high:
        low, high = high, low
    return (low, high)


def parse_page_size(value: Any, default: int = DEFAULT_PAGE_SIZE) -> PageSize:
    if isinstance(value, str) and value.strip().lower() == PAGE_SIZE_ALL:
        return PAGE_SIZE_ALL
    if isinstance(value, bool):
        return default
    try:
        size = int(value)
    except (TypeError, ValueError):
        return default
    return size if size > 0 else default


def parse_page_number(value: Any) -> int:
    if isinstance(value, bool):
        return 1
    try:
        page = int(value)
    except (TypeError, ValueError):
        return 1
    return page if page > 0 else 1


def build_query(
    location_text: Optional[str] = None,
    experience_bracket: Any = None,
    page_number: Any = 1,
    page_size_or_all: Any = DEFAULT_PAGE_SIZE,
    default_page_size: int = DEFAULT_PAGE_SIZE,
) -> QueryDescriptor:
    """Sanitize raw search inputs into a QueryDescriptor. Never raises."""
    location = (location_text or "").strip() if isinstance(location_text, str) else ""
    return QueryDescriptor(
        page=parse_page_number(page_number),
        page_size=parse_page_size(page_size_or_all, default_page_size),
        location=location or None,
        experience=parse_experience_bracket(experience_bracket),
    )
