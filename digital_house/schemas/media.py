from pydantic import BaseModel, ConfigDict, Field, field_validator

from digital_house.models.media import MediaModule


class UploadUrlRequest(BaseModel):
    model_config = ConfigDict(extra="forbid", populate_by_name=True, str_strip_whitespace=True)

    file_name: str = Field(alias="fileName", min_length=1, max_length=255)
    file_type: str = Field(alias="fileType", min_length=1)
    file_size: int = Field(alias="fileSize", gt=0)
    module: MediaModule

    @field_validator("file_name")
    @classmethod
    def no_path_traversal(cls, value: str) -> str:
        if ".." in value or "/" in value or "\\" in value:
            raise ValueError("Invalid fileName: no path traversal")
        return value
