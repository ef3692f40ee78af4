from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SectionName(str, Enum):
    basic = "basic"
    community = "community"
    personal = "personal"
    matrimony = "matrimony"
    business = "business"
    family = "family"


class ActivityTab(str, Enum):
    my = "my"
    saved = "saved"
    liked = "liked"


class ProfileUpdate(BaseModel):
    """Editable, non-restricted fields. Identity, role and status are not editable."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    profile_image: str | None = Field(default=None, max_length=500)
    city: str | None = Field(default=None, max_length=80)
    district: str | None = Field(default=None, max_length=80)
    education: str | None = Field(default=None, max_length=500)
    job_title: str | None = Field(default=None, max_length=80)
    company_name: str | None = Field(default=None, max_length=120)
    work_location: str | None = Field(default=None, max_length=120)
    skills: str | None = Field(default=None, max_length=255)


class HoroscopeUploadRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    file_name: str = Field(alias="fileName", min_length=1, max_length=255)
    file_type: str = Field(alias="fileType", min_length=1)
    file_size: int = Field(alias="fileSize", gt=0)
