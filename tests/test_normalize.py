from datetime import datetime, timezone

from jobhub.jobs.normalize import default_logo_url, normalize_record, parse_int, parse_posted_at


def test_full_record_maps_legacy_names(raw_jobs):
    job = normalize_record(raw_jobs[0])
    assert job.id == "a1"
    assert job.title == "Backend Engineer"
    assert job.company == "Acme"
    assert job.min_experience_years == 2
    assert job.max_experience_years == 5
    assert job.posted_at == datetime(2024, 3, 10, 9, 0, tzinfo=timezone.utc)
    assert job.application_link == "https://jobs.example.com/a1"
    assert job.logo_url == "https://cdn.example.com/acme.png"


def test_oid_and_wrapped_date_and_alternate_employment_type(raw_jobs):
    job = normalize_record(raw_jobs[1])
    assert job.id == "b2"
    assert job.employment_type == "Contract"
    assert job.posted_at == datetime(2024, 3, 12, 12, 0, tzinfo=timezone.utc)


def test_missing_fields_fall_back_to_defaults(raw_jobs):
    job = normalize_record(raw_jobs[3])
    assert job.title == "Untitled Position"
    assert job.employment_type == "Full-time"
    assert job.posted_at is None
    assert job.application_link is None
    assert job.logo_url == default_logo_url("Hooli")

    job = normalize_record(raw_jobs[4])
    assert job.company == "Unknown Company"
    assert job.logo_url == default_logo_url("Unknown Company")


def test_employment_type_prefers_camel_case_field():
    job = normalize_record({"_id": "x", "employmentType": "Part-time", "employment_type": "Contract"})
    assert job.employment_type == "Part-time"


def test_malformed_values_never_raise():
    job = normalize_record({
        "_id": "bad",
        "title": "   ",
        "postedDate": "not a date",
        "postedDateTime": {"$date": None},
        "min_exp": "n/a",
        "max_exp": -4,
    })
    assert job.title == "Untitled Position"
    assert job.posted_at is None
    assert job.min_experience_years is None
    assert job.max_experience_years is None


def test_non_dict_input_still_yields_a_record():
    job = normalize_record(None)
    assert job.title == "Untitled Position"
    assert job.id


def test_id_is_stable_when_missing():
    raw = {"title": "Engineer", "company": "Acme", "job_link": "https://x.example/1"}
    assert normalize_record(raw).id == normalize_record(dict(raw)).id


def test_posted_date_falls_back_to_wrapped_field():
    job = normalize_record({"_id": "x", "postedDate": "", "postedDateTime": {"$date": "2023-05-15T00:00:00Z"}})
    assert job.posted_at == datetime(2023, 5, 15, tzinfo=timezone.utc)


def test_parse_posted_at_variants():
    assert parse_posted_at("2023-05-15") == datetime(2023, 5, 15, tzinfo=timezone.utc)
    assert parse_posted_at(1684108800000) == datetime(2023, 5, 15, tzinfo=timezone.utc)
    assert parse_posted_at(1684108800) == datetime(2023, 5, 15, tzinfo=timezone.utc)
    assert parse_posted_at({"$date": "2023-05-15T00:00:00Z"}) == datetime(2023, 5, 15, tzinfo=timezone.utc)
    assert parse_posted_at("yesterday") is None
    assert parse_posted_at([]) is None


def test_out_of_range_numeric_dates_are_dropped():
    assert parse_posted_at(10**400) is None
    assert parse_posted_at(float("inf")) is None
    assert parse_posted_at(float("nan")) is None
    job = normalize_record({"_id": "x", "postedDate": 10**400})
    assert job.id == "x"
    assert job.posted_at is None


def test_parse_int():
    assert parse_int("3 years") == 3
    assert parse_int("1,200") == 1200
    assert parse_int(4.0) == 4
    assert parse_int(None) is None
    assert parse_int(True) is None


def test_default_logo_url_is_deterministic():
    url = default_logo_url("Acme & Sons")
    assert url == default_logo_url("Acme & Sons")
    assert "name=Acme%20%26%20Sons" in url
    assert "name=Company" in default_logo_url(None)


def test_wire_shape_normalizes_back_to_same_record(raw_jobs):
    job = normalize_record(raw_jobs[0])
    assert normalize_record(job.to_wire()) == job
