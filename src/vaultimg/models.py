from enum import Enum
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional

MIN_DIMENSION = 64
MAX_DIMENSION = 2048


class GenerationRequest(BaseModel):
    model_config = ConfigDict(frozen=True, protected_namespaces=())

    prompt: str = Field(..., min_length=1)
    width: int = Field(..., ge=MIN_DIMENSION, le=MAX_DIMENSION)
    height: int = Field(..., ge=MIN_DIMENSION, le=MAX_DIMENSION)
    model_identifier: str


class ModelDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    version: str = Field(..., description="Version handle sent to the predictions API.")
    display_name: str
    description: str


class JobStatus(str, Enum):
    STARTING = "starting"
    PROCESSING = "processing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELED = "canceled"


class Job(BaseModel):
    id: str
    # Raw remote status; unknown values are kept as-is and treated as pending.
    status: str
    output_url: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.status in (JobStatus.SUCCEEDED.value, JobStatus.FAILED.value)


class PluginSettings(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    api_token: str = Field("", alias="replicateApiToken")
    default_width: int = Field(
        1024, alias="defaultWidth", ge=MIN_DIMENSION, le=MAX_DIMENSION
    )
    default_height: int = Field(
        400, alias="defaultHeight", ge=MIN_DIMENSION, le=MAX_DIMENSION
    )
    default_model: str = Field("flux-schnell", alias="defaultModel")

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True)


class GenerationOutcome(BaseModel):
    image_url: Optional[str] = None
    saved_path: Optional[str] = None
    markdown: Optional[str] = None
    notice: str = ""
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.saved_path is not None
