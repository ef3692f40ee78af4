from datetime import date

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    full_name: str = Field(alias="fullName", min_length=1, max_length=120)
    gender: str | None = Field(default=None, max_length=20)
    dob: date | None = None
    email: EmailStr = Field(max_length=191)
    mobile: str = Field(min_length=10, max_length=20)
    occupation: str | None = Field(default=None, max_length=80)
    location: str = Field(min_length=1, max_length=120)
    community: str | None = Field(default=None, max_length=80)
    kulam: str = Field(min_length=1, max_length=80)
    profile_photo: str | None = Field(default=None, alias="profilePhoto", max_length=500)
    govt_id_type: str | None = Field(default=None, alias="govtIdType", max_length=40)
    govt_id_file: str | None = Field(default=None, alias="govtIdFile", max_length=500)

    @field_validator("dob", mode="before")
    @classmethod
    def blank_dob(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class LoginRequest(BaseModel):
    email: EmailStr = Field(max_length=191)


class VerifyOtpRequest(BaseModel):
    email: EmailStr = Field(max_length=191)
    otp: str = Field(pattern=r"^\d{6}$")
