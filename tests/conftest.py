import json
from pathlib import Path

import pytest


RAW_JOBS = [
    {
        "_id": "a1",
        "title": "Backend Engineer",
        "company": "Acme",
        "location": "New York, NY",
        "min_exp": 2,
        "max_exp": 5,
        "employmentType": "Full-time",
        "postedDate": "2024-03-10T09:00:00Z",
        "job_link": "https://jobs.example.com/a1",
        "companyImageUrl": "https://cdn.example.com/acme.png",
    },
    {
        "_id": {"$oid": "b2"},
        "title": "Data Analyst",
        "company": "Globex",
        "location": "Remote",
        "min_exp": 0,
        "max_exp": 1,
        "employment_type": "Contract",
        "postedDateTime": {"$date": "2024-03-12T12:00:00Z"},
    },
    {
        "_id": "c3",
        "title": "Staff Engineer",
        "company": "Initech",
        "location": "new york city",
        "min_exp": 8,
        "max_exp": 12,
        "postedDate": "2024-03-11",
    },
    {
        "_id": "d4",
        "company": "Hooli",
        "location": "San Francisco",
        "min_exp": 3,
        "max_exp": 3,
    },
    {
        "_id": "e5",
        "title": "QA Engineer",
        "location": "Remote - US",
        "postedDate": "2024-03-12T12:00:00Z",
    },
]


@pytest.fixture
def raw_jobs():
    return [dict(job) for job in RAW_JOBS]


@pytest.fixture
def jobs_file(tmp_path: Path) -> Path:
    path = tmp_path / "jobs.jsonl"
    with path.open("w", encoding="utf-8") as f:
        for job in RAW_JOBS:
            f.write(json.dumps(job))
            f.write("\n")
    return path
