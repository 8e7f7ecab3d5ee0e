from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


PAGE_SIZE_ALL = "all"
PageSize = Union[int, Literal["all"]]
ExperienceBracket = Tuple[int, Optional[int]]


class JobPosting(BaseModel):
    # Serialized with the legacy field names used by stored documents and the API.
    model_config = ConfigDict(populate_by_name=True, frozen=True)

    id: str = Field(alias="_id")
    title: str = "Untitled Position"
    company: str = "Unknown Company"
    location: Optional[str] = None
    min_experience_years: Optional[int] = Field(default=None, alias="min_exp")
    max_experience_years: Optional[int] = Field(default=None, alias="max_exp")
    employment_type: str = Field(default="Full-time", alias="employmentType")
    posted_at: Optional[datetime] = Field(default=None, alias="postedDate")
    application_link: Optional[str] = Field(default=None, alias="job_link")
    logo_url: str = Field(alias="companyImageUrl")
    experience_note: Optional[str] = Field(default=None, alias="experience")

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class QueryDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    page: int = 1
    page_size: PageSize = 20
    location: Optional[str] = None
    experience: Optional[ExperienceBracket] = None

    @property
    def unbounded(self) -> bool:
        return self.page_size == PAGE_SIZE_ALL

    def to_params(self) -> dict:
        params: dict = {"page": self.page, "limit": self.page_size}
        if self.location:
            params["location"] = self.location
        if self.experience is not None:
            low, high = self.experience
            params["experience"] = f"{low}-{high}" if high is not None else f"{low}+"
        return params


class FailureKind(str, Enum):
    OFFLINE = "offline"
    CONNECT_FAILED = "connect_failed"
    TIMEOUT = "timeout"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"

    @property
    def network_class(self) -> bool:
        return self in (FailureKind.OFFLINE, FailureKind.CONNECT_FAILED, FailureKind.TIMEOUT)


class RetrievalSuccess(BaseModel):
    ok: Literal[True] = True
    records: List[JobPosting] = Field(default_factory=list)
    total: int = 0


class RetrievalFailure(BaseModel):
    ok: Literal[False] = False
    kind: FailureKind = FailureKind.UNKNOWN
    message: str = ""
    status_code: Optional[int] = None


RetrievalOutcome = Union[RetrievalSuccess, RetrievalFailure]


class JobsResponse(BaseModel):
    data: List[dict] = Field(default_factory=list)
    total: int = 0
