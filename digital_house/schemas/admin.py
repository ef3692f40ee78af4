from pydantic import BaseModel, ConfigDict, EmailStr, Field


class AdminLoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class ApproveUserRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    remarks: str | None = Field(default=None, max_length=500)


class RejectUserRequest(BaseModel):
    # Length is checked on the raw value; the service trims and falls back to the default remark.
    remarks: str = Field(min_length=1, max_length=500)


class ApproveProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)

    update_id: int = Field(alias="updateId", gt=0)
    remarks: str | None = Field(default=None, max_length=500)


class RejectProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    update_id: int = Field(alias="updateId", gt=0)
    remarks: str = Field(min_length=1, max_length=500)
