"""Oracle response model."""

from enum import Enum

from pydantic import BaseModel, Field


class ResponseStatus(str, Enum):
    """Outcome of one generation request."""

    SUCCESS = "success"
    SKIP = "skip"
    ERROR = "error"


class GenerationResponse(BaseModel):
    """Discriminated result of a generation request."""

    status: ResponseStatus = Field(..., description="success, skip or error")
    content: str | None = Field(None, description="Generated doc comment on success")
    reason: str | None = Field(None, description="Why the request was skipped or failed")
    model_id: str | None = Field(None, description="Registry id of the model used")
    cached: bool = Field(False, description="Served from the response cache")

    @property
    def success(self) -> bool:
        return self.status == ResponseStatus.SUCCESS

    @classmethod
    def ok(cls, content: str, model_id: str | None = None) -> "GenerationResponse":
        """Create a successful response."""
        return cls(status=ResponseStatus.SUCCESS, content=content, model_id=model_id)

    @classmethod
    def skipped(cls, reason: str, model_id: str | None = None) -> "GenerationResponse":
        """Create a response for a request the oracle declined."""
        return cls(status=ResponseStatus.SKIP, reason=reason, model_id=model_id)

    @classmethod
    def failed(cls, reason: str, model_id: str | None = None) -> "GenerationResponse":
        """Create an error response."""
        return cls(status=ResponseStatus.ERROR, reason=reason, model_id=model_id)
