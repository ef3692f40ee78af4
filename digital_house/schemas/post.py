from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

from digital_house.models.post import JobStatus, PostType


class PostCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    post_type: PostType
    title: str = Field(min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    media_url: HttpUrl | None = None
    pinned: bool = False
    urgent: bool = False
    meetup_at: datetime | None = None
    job_status: JobStatus | None = None


class PostUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, max_length=5000)
    media_url: HttpUrl | None = None
    pinned: bool | None = None
    urgent: bool | None = None
    meetup_at: datetime | None = None
    job_status: JobStatus | None = None


class CommentCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    body: str = Field(min_length=1, max_length=2000)


class ReportCreate(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    reason: str = Field(min_length=1, max_length=1000)
